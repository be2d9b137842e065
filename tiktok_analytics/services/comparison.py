"""
Period Comparison Engine
Aggregates per-video metrics and compares a window with the previous one
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Protocol, Tuple, Union, runtime_checkable

from tiktok_analytics.domain.models import (
    ComparisonDelta,
    ComparisonResult,
    PeriodSummary,
    VideoMetric,
)
from tiktok_analytics.services.exceptions import ValidationError

logger = logging.getLogger(__name__)

DateLike = Union[date, str]

COUNT_FIELDS = (
    "total_views",
    "total_likes",
    "total_comments",
    "total_shares",
    "total_new_followers",
)


# ============================================================================
# Aggregation
# ============================================================================


def engagement_rate(views: int, likes: int, comments: int, shares: int) -> float:
    """(likes + comments + shares) / views * 100, rounded to 2 decimals"""
    if views <= 0:
        return 0.0
    return round((likes + comments + shares) / views * 100, 2)


def summarize(videos: Iterable[VideoMetric]) -> PeriodSummary:
    """
    Aggregate a collection of videos into a PeriodSummary

    Watch time is the plain mean of each video's average watch time, not
    weighted by views. Empty input yields an all-zero summary.
    """
    videos = list(videos)
    if not videos:
        return PeriodSummary()

    total_views = sum(v.views for v in videos)
    total_likes = sum(v.likes for v in videos)
    total_comments = sum(v.comments for v in videos)
    total_shares = sum(v.shares for v in videos)
    total_new_followers = sum(v.new_followers for v in videos)
    avg_watch_time = sum(v.avg_watch_time for v in videos) / len(videos)

    return PeriodSummary(
        total_views=total_views,
        total_likes=total_likes,
        total_comments=total_comments,
        total_shares=total_shares,
        total_new_followers=total_new_followers,
        avg_watch_time=round(avg_watch_time, 2),
        engagement_rate=engagement_rate(
            total_views, total_likes, total_comments, total_shares
        ),
    )


# ============================================================================
# Windowing
# ============================================================================


def parse_date(value: DateLike, field: str = "date") -> date:
    """Accept a date or a YYYY-MM-DD string"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date '{value}', expected YYYY-MM-DD", field)


def previous_window(start: DateLike, end: DateLike) -> Tuple[date, date]:
    """
    Window of equal length that ends the day before ``start``

    Both bounds are inclusive, so 2024-01-08..2024-01-14 (7 days) maps to
    2024-01-01..2024-01-07.
    """
    start_day = parse_date(start, "start_date")
    end_day = parse_date(end, "end_date")
    if end_day < start_day:
        raise ValidationError(
            f"Window end {end_day} is before start {start_day}", "end_date"
        )

    length = (end_day - start_day).days + 1
    prev_end = start_day - timedelta(days=1)
    prev_start = prev_end - timedelta(days=length - 1)
    return prev_start, prev_end


# ============================================================================
# Comparison
# ============================================================================


def percent_change(current: float, previous: float) -> float:
    """Relative change in percent; 100 when growing from zero, 0 when flat at zero"""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def compare(
    current: PeriodSummary,
    previous: PeriodSummary,
    previous_estimated: bool = False,
) -> ComparisonResult:
    """Pair two summaries with their per-field deltas"""
    changes = {
        name: percent_change(getattr(current, name), getattr(previous, name))
        for name in COUNT_FIELDS
    }
    # Percentage points, not relative percent
    changes["engagement_rate"] = round(
        current.engagement_rate - previous.engagement_rate, 2
    )

    return ComparisonResult(
        current=current,
        previous=previous,
        delta=ComparisonDelta(**changes),
        previous_estimated=previous_estimated,
    )


def describe_change(change: float) -> str:
    """Short phrase for a percent change, as shown on the period report"""
    magnitude = abs(change)
    if magnitude < 0.1:
        return "almost no change"

    if change > 0:
        tiers = (
            (50, "growing sharply"),
            (25, "improving markedly"),
            (15, "growing steadily"),
            (10, "improving"),
            (5, "rising gradually"),
        )
        fallback = "up slightly"
    else:
        tiers = (
            (50, "dropping sharply"),
            (25, "declining markedly"),
            (15, "trending down"),
            (10, "declining"),
            (5, "falling gradually"),
        )
        fallback = "down slightly"

    for threshold, phrase in tiers:
        if magnitude >= threshold:
            return phrase
    return fallback


# ============================================================================
# Previous-Period Fallback Policies
# ============================================================================


@runtime_checkable
class PreviousPeriodFallbackPolicy(Protocol):
    """Decides what stands in for a previous period that could not be fetched"""

    name: str

    def estimate(self, current: PeriodSummary) -> Optional[PeriodSummary]:
        """Return a substitute summary, or None to omit the comparison"""
        ...


@dataclass(frozen=True)
class OmitComparison:
    name: str = "omit"

    def estimate(self, current: PeriodSummary) -> Optional[PeriodSummary]:
        return None


@dataclass(frozen=True)
class ProportionalEstimate:
    """Previous period assumed to be ``factor`` times the current one"""

    factor: float = 0.8
    name: str = "proportional"

    def __post_init__(self):
        if self.factor <= 0:
            raise ValidationError("Fallback factor must be positive", "factor")

    def estimate(self, current: PeriodSummary) -> Optional[PeriodSummary]:
        views = int(round(current.total_views * self.factor))
        likes = int(round(current.total_likes * self.factor))
        comments = int(round(current.total_comments * self.factor))
        shares = int(round(current.total_shares * self.factor))

        return PeriodSummary(
            total_views=views,
            total_likes=likes,
            total_comments=comments,
            total_shares=shares,
            total_new_followers=int(round(current.total_new_followers * self.factor)),
            avg_watch_time=round(current.avg_watch_time * self.factor, 2),
            engagement_rate=engagement_rate(views, likes, comments, shares),
        )


@dataclass(frozen=True)
class FixedSummary:
    summary: PeriodSummary
    name: str = "fixed"

    def estimate(self, current: PeriodSummary) -> Optional[PeriodSummary]:
        return self.summary


def resolve_fallback_policy(
    name: str, factor: float = 0.8
) -> PreviousPeriodFallbackPolicy:
    """Build a fallback policy from its configured name"""
    if name == "omit":
        return OmitComparison()
    if name == "proportional":
        return ProportionalEstimate(factor)
    raise ValidationError(f"Unknown fallback policy: {name}", "previous_period_fallback")


def compare_with_fallback(
    current: PeriodSummary, policy: PreviousPeriodFallbackPolicy
) -> Optional[ComparisonResult]:
    """Compare against the policy's substitute; None when the policy omits"""
    substitute = policy.estimate(current)
    if substitute is None:
        logger.info("ℹ️ Previous period unavailable, comparison omitted")
        return None

    logger.info(f"ℹ️ Previous period unavailable, using '{policy.name}' estimate")
    return compare(current, substitute, previous_estimated=True)
