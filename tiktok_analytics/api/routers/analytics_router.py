"""
Analytics API Router
Dashboard summary, video table, CSV export and period comparison
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from tiktok_analytics.app.config import get_config
from tiktok_analytics.app.dependencies import get_analytics_service
from tiktok_analytics.domain.models import ComparisonResult, DateRange, VideoMetric
from tiktok_analytics.services.analytics_service import AnalyticsService
from tiktok_analytics.services.comparison import describe_change
from tiktok_analytics.services.date_ranges import (
    CUSTOM_PRESET,
    make_date_range,
    resolve_date_range,
)
from tiktok_analytics.services.exceptions import ServiceError, error_to_http_status
from tiktok_analytics.services.export_service import export_csv, filter_videos, write_csv

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/analytics", tags=["Analytics"])


# ============================================================================
# Request/Response Models
# ============================================================================


class DateRangeModel(BaseModel):
    """Inclusive window"""

    start_date: str = Field(..., description="YYYY-MM-DD")
    end_date: str = Field(..., description="YYYY-MM-DD")
    days: Optional[int] = None


class VideoModel(BaseModel):
    """One row of the video table"""

    id: str
    video_url: str
    post_date: str
    post_time: str
    duration: int
    views: int
    likes: int
    comments: int
    shares: int
    new_followers: int
    avg_watch_time: float
    engagement_rate: float


class ComparisonModel(BaseModel):
    """Current vs previous period"""

    current: Dict[str, Any]
    previous: Dict[str, Any]
    delta: Dict[str, float]
    previous_estimated: bool = False
    labels: Dict[str, str] = Field(default_factory=dict)


class SummaryResponse(BaseModel):
    """Dashboard summary"""

    date_range: DateRangeModel
    previous_range: Optional[DateRangeModel] = None
    summary: Dict[str, Any]
    comparison: Optional[ComparisonModel] = None
    video_count: int
    mode: str
    error: Optional[str] = None
    comparison_error: Optional[str] = None


class VideoListResponse(BaseModel):
    """Video table"""

    date_range: DateRangeModel
    videos: List[VideoModel]
    total: int
    error: Optional[str] = None


class CompareRequest(BaseModel):
    """Two explicit windows; ``first`` is the baseline"""

    first: DateRangeModel
    second: DateRangeModel


# ============================================================================
# Helpers
# ============================================================================


def _range_model(date_range: DateRange) -> DateRangeModel:
    start, end = date_range.as_strings()
    return DateRangeModel(start_date=start, end_date=end, days=date_range.days)


def _video_model(video: VideoMetric) -> VideoModel:
    engagements = video.likes + video.comments + video.shares
    return VideoModel(
        id=video.id,
        video_url=video.video_url,
        post_date=video.post_date,
        post_time=video.post_time,
        duration=video.duration,
        views=video.views,
        likes=video.likes,
        comments=video.comments,
        shares=video.shares,
        new_followers=video.new_followers,
        avg_watch_time=video.avg_watch_time,
        engagement_rate=round(engagements / video.views * 100, 2) if video.views else 0.0,
    )


def _comparison_model(result: ComparisonResult) -> ComparisonModel:
    data = result.to_dict()
    labels = {
        key: describe_change(value)
        for key, value in data["delta"].items()
        if key != "engagement_rate"
    }
    return ComparisonModel(
        current=data["current"],
        previous=data["previous"],
        delta=data["delta"],
        previous_estimated=data["previous_estimated"],
        labels=labels,
    )


def _resolve_range(
    preset: Optional[str],
    start_date: Optional[str],
    end_date: Optional[str],
    service: AnalyticsService,
) -> DateRange:
    if preset is None:
        preset = CUSTOM_PRESET if (start_date or end_date) else service.settings.default_preset
    return resolve_date_range(preset, custom_start=start_date, custom_end=end_date)


def _http_error(e: ServiceError) -> HTTPException:
    status_code = error_to_http_status(e)
    if status_code >= 500:
        logger.error(f"❌ {e.message}")
    return HTTPException(status_code=status_code, detail=e.to_dict())


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(
    preset: Optional[str] = Query(None, description="7days, 14days, 21days or custom"),
    start_date: Optional[str] = Query(None, description="Custom start (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="Custom end (YYYY-MM-DD)"),
    compare: bool = Query(True, description="Compare with the previous period"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """
    Period summary with optional previous-period comparison

    Data source failures are reported in ``error`` with a zero summary.
    """
    try:
        date_range = _resolve_range(preset, start_date, end_date, service)
        report = await service.load_dashboard(
            date_range, view="summary", include_comparison=compare
        )
    except ServiceError as e:
        raise _http_error(e)

    return SummaryResponse(
        date_range=_range_model(report.date_range),
        previous_range=_range_model(report.date_range.previous()) if compare else None,
        summary=report.summary.to_dict(),
        comparison=_comparison_model(report.comparison) if report.comparison else None,
        video_count=len(report.videos),
        mode=report.mode,
        error=report.error,
        comparison_error=report.comparison_error,
    )


@router.get("/videos", response_model=VideoListResponse)
async def get_videos(
    preset: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    q: Optional[str] = Query(None, description="Filter by video ID substring"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Per-video table for a window"""
    try:
        date_range = _resolve_range(preset, start_date, end_date, service)
        report = await service.load_dashboard(
            date_range, view="videos", include_comparison=False
        )
    except ServiceError as e:
        raise _http_error(e)

    videos = filter_videos(report.videos, q)
    return VideoListResponse(
        date_range=_range_model(report.date_range),
        videos=[_video_model(v) for v in videos],
        total=len(videos),
        error=report.error,
    )


@router.get("/export.csv", response_class=PlainTextResponse)
async def export_videos_csv(
    preset: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    save: bool = Query(False, description="Also write the file to the export directory"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Download the video table as CSV"""
    try:
        date_range = _resolve_range(preset, start_date, end_date, service)
        report = await service.load_dashboard(
            date_range, view="export", include_comparison=False
        )
    except ServiceError as e:
        raise _http_error(e)

    if report.error:
        raise HTTPException(
            status_code=502,
            detail={"error": "external_service_error", "message": report.error},
        )

    videos = filter_videos(report.videos, q)
    if save:
        write_csv(videos)

    filename = get_config().storage.csv_filename
    return PlainTextResponse(
        export_csv(videos),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/compare", response_model=ComparisonModel)
async def compare_periods(
    request: CompareRequest,
    service: AnalyticsService = Depends(get_analytics_service),
):
    """
    Compare two explicit periods

    - **first**: baseline period
    - **second**: period measured against the baseline
    """
    try:
        first = make_date_range(request.first.start_date, request.first.end_date)
        second = make_date_range(request.second.start_date, request.second.end_date)
        result = await service.compare_periods(first, second)
    except ServiceError as e:
        raise _http_error(e)

    return _comparison_model(result)


@router.get("/status")
async def get_status(service: AnalyticsService = Depends(get_analytics_service)):
    """Data source mode and comparison settings"""
    return service.get_status()


@router.get("/profile")
async def get_profile(service: AnalyticsService = Depends(get_analytics_service)):
    """Profile of the account behind the data source"""
    try:
        return await service.get_user_profile()
    except ServiceError as e:
        raise _http_error(e)
