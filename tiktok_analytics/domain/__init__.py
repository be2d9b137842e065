# tiktok_analytics/domain/__init__.py
"""
Domain layer: metric value objects and the interfaces services depend on.
"""
from .interfaces import IAccountRepository, TikTokClientProtocol
from .models import (
    ComparisonDelta,
    ComparisonResult,
    DashboardReport,
    DateRange,
    PeriodSummary,
    VideoMetric,
)

__all__ = [
    "IAccountRepository",
    "TikTokClientProtocol",
    "ComparisonDelta",
    "ComparisonResult",
    "DashboardReport",
    "DateRange",
    "PeriodSummary",
    "VideoMetric",
]
