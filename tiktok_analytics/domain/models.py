# tiktok_analytics/domain/models.py
"""
Domain value objects.

These are plain dataclasses shared by the comparison engine, the dashboard
service and the CSV export. API routes convert them to Pydantic response
models; nothing here is persisted.
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class VideoMetric:
    """One posted video's stats for a period."""

    id: str
    video_url: str
    published_at: datetime
    duration: int
    views: int
    likes: int
    comments: int
    shares: int
    new_followers: int
    avg_watch_time: float

    @property
    def post_date(self) -> str:
        return self.published_at.strftime("%Y-%m-%d")

    @property
    def post_time(self) -> str:
        return self.published_at.strftime("%H:%M")


@dataclass(frozen=True)
class PeriodSummary:
    """Aggregate of a set of VideoMetric over a date range."""

    total_views: int = 0
    total_likes: int = 0
    total_comments: int = 0
    total_shares: int = 0
    total_new_followers: int = 0
    avg_watch_time: float = 0.0
    engagement_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ComparisonDelta:
    """
    Signed change between two summaries.

    Count fields hold relative percent change; ``engagement_rate`` holds the
    difference in percentage points.
    """

    total_views: float = 0.0
    total_likes: float = 0.0
    total_comments: float = 0.0
    total_shares: float = 0.0
    total_new_followers: float = 0.0
    engagement_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ComparisonResult:
    current: PeriodSummary
    previous: PeriodSummary
    delta: ComparisonDelta
    previous_estimated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current.to_dict(),
            "previous": self.previous.to_dict(),
            "delta": self.delta.to_dict(),
            "previous_estimated": self.previous_estimated,
        }


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-day window."""

    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def previous(self) -> "DateRange":
        """Adjacent window of equal length ending the day before ``start``."""
        from tiktok_analytics.services.comparison import previous_window

        return DateRange(*previous_window(self.start, self.end))

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def as_strings(self) -> Tuple[str, str]:
        return self.start.isoformat(), self.end.isoformat()

    def label(self) -> str:
        start, end = self.as_strings()
        return f"{start} ~ {end}"


@dataclass
class DashboardReport:
    """Result of one fetch-and-compute cycle for a window."""

    date_range: DateRange
    videos: List[VideoMetric] = field(default_factory=list)
    summary: PeriodSummary = field(default_factory=PeriodSummary)
    comparison: Optional[ComparisonResult] = None
    error: Optional[str] = None
    comparison_error: Optional[str] = None
    mode: str = "development"

    @property
    def ok(self) -> bool:
        return self.error is None
