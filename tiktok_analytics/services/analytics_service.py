"""
Analytics Service
Fetch-and-compute cycle behind the dashboard: collect videos for a window,
summarize them, and compare against the previous equal-length window.
"""

import asyncio
import threading
from typing import Any, Callable, Dict, List, Optional

from tiktok_analytics.app.config import AnalyticsSettings
from tiktok_analytics.domain.interfaces import TikTokClientProtocol
from tiktok_analytics.domain.models import (
    ComparisonResult,
    DashboardReport,
    DateRange,
    VideoMetric,
)
from tiktok_analytics.infrastructure.clients.models import (
    VideoAnalytics,
    VideoInfo,
    estimate_new_followers,
    estimate_watch_time,
)
from tiktok_analytics.services.base_service import BaseService
from tiktok_analytics.services.comparison import (
    PreviousPeriodFallbackPolicy,
    compare,
    compare_with_fallback,
    resolve_fallback_policy,
    summarize,
)
from tiktok_analytics.services.exceptions import SupersededRequestError

DEFAULT_MAX_VIDEOS = 50
PAGE_SIZE = 20
USER_INFO_TTL_SECONDS = 300


class RequestTracker:
    """
    Generation counter per view

    Each new request for a view gets a fresh token; a request holding an
    older token has been superseded and its result must be dropped.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._generations: Dict[str, int] = {}

    def begin(self, view: str) -> int:
        with self._lock:
            token = self._generations.get(view, 0) + 1
            self._generations[view] = token
            return token

    def is_current(self, view: str, token: int) -> bool:
        with self._lock:
            return self._generations.get(view) == token

    def ensure_current(self, view: str, token: int) -> None:
        if not self.is_current(view, token):
            raise SupersededRequestError(view)


class AnalyticsService(BaseService):
    """
    Dashboard orchestration service

    Handles:
    - Paginated video collection from the data source
    - Joining per-video analytics onto the video list
    - Period summaries and previous-period comparison
    - Discarding results of superseded requests
    """

    def __init__(
        self,
        client: TikTokClientProtocol,
        settings: Optional[AnalyticsSettings] = None,
        max_videos: int = DEFAULT_MAX_VIDEOS,
        fallback_policy: Optional[PreviousPeriodFallbackPolicy] = None,
        tracker: Optional[RequestTracker] = None,
        on_synced: Optional[Callable[[], Any]] = None,
        scope: str = "shared",
        cache=None,
        config=None,
    ):
        super().__init__(cache=cache, config=config)
        self.validate_positive(max_videos, "max_videos")
        self.client = client
        # Called after a dashboard load succeeds (linked account bookkeeping)
        self.on_synced = on_synced
        # Distinguishes cached lookups of different linked accounts
        self.scope = scope
        self.settings = settings or AnalyticsSettings()
        self.max_videos = max_videos
        self.fallback_policy = fallback_policy or resolve_fallback_policy(
            self.settings.previous_period_fallback, self.settings.fallback_factor
        )
        self.tracker = tracker or RequestTracker()

    def get_service_name(self) -> str:
        return "analytics"

    # ========================================================================
    # Dashboard
    # ========================================================================

    async def load_dashboard(
        self,
        date_range: DateRange,
        view: str = "dashboard",
        include_comparison: bool = True,
    ) -> DashboardReport:
        """
        Run one fetch-and-compute cycle for a window

        Args:
            date_range: Inclusive window to report on
            view: Name of the requesting view; a newer request for the same
                view supersedes this one
            include_comparison: Also fetch and compare the previous window

        Returns:
            DashboardReport (``error`` set when the current window failed)

        Raises:
            SupersededRequestError: A newer request for ``view`` started
        """
        token = self.tracker.begin(view)
        mode = self.client.mode
        self.log_info(f"📊 Fetching {date_range.label()} ({mode} mode) for '{view}'")

        try:
            videos = await self.fetch_videos(date_range)
        except Exception as e:
            self.tracker.ensure_current(view, token)
            self.log_error(f"Failed to fetch {date_range.label()}", error=e)
            return DashboardReport(date_range=date_range, error=str(e), mode=mode)

        self.tracker.ensure_current(view, token)
        summary = summarize(videos)

        comparison: Optional[ComparisonResult] = None
        comparison_error: Optional[str] = None

        if include_comparison and self.settings.enable_comparison:
            previous_range = date_range.previous()
            try:
                previous_videos = await self.fetch_videos(previous_range)
                comparison = compare(summary, summarize(previous_videos))
            except Exception as e:
                self.log_warning(
                    f"Previous period {previous_range.label()} unavailable "
                    f"(fallback: {self.fallback_policy.name}): {e}"
                )
                comparison_error = str(e)
                comparison = compare_with_fallback(summary, self.fallback_policy)

        self.tracker.ensure_current(view, token)
        self.log_info(f"✅ Loaded {len(videos)} videos for {date_range.label()}")

        if self.on_synced is not None:
            self.on_synced()

        return DashboardReport(
            date_range=date_range,
            videos=videos,
            summary=summary,
            comparison=comparison,
            comparison_error=comparison_error,
            mode=mode,
        )

    async def compare_periods(
        self, first: DateRange, second: DateRange
    ) -> ComparisonResult:
        """
        Compare two explicit windows

        ``first`` is the earlier (baseline) period and ``second`` the later
        one, so deltas read as "second relative to first". Fetch failures
        propagate as ServiceError.
        """
        try:
            first_videos = await self.fetch_videos(first)
            second_videos = await self.fetch_videos(second)
        except Exception as e:
            raise self.handle_error(
                e,
                "compare_periods",
                {"first": first.label(), "second": second.label()},
            )

        return compare(summarize(second_videos), summarize(first_videos))

    # ========================================================================
    # Fetching
    # ========================================================================

    async def fetch_videos(self, date_range: DateRange) -> List[VideoMetric]:
        """
        Collect all videos of a window with their analytics joined in

        Pages are requested one after another until the source reports no
        more results or ``max_videos`` is reached.
        """
        start, end = date_range.as_strings()
        collected: List[VideoInfo] = []
        cursor: Optional[str] = None

        while len(collected) < self.max_videos:
            page = await asyncio.to_thread(
                self.client.get_video_list,
                start,
                end,
                min(PAGE_SIZE, self.max_videos - len(collected)),
                cursor,
            )
            collected.extend(page.videos)
            if not page.has_more or not page.cursor:
                break
            cursor = page.cursor

        collected = collected[: self.max_videos]
        if not collected:
            return []

        video_ids = [video.video_id for video in collected]
        analytics = await asyncio.to_thread(
            self.client.get_video_analytics, start, end, video_ids
        )
        by_id = {item.video_id: item for item in analytics.analytics}

        return [self._to_metric(video, by_id.get(video.video_id)) for video in collected]

    @staticmethod
    def _to_metric(video: VideoInfo, analytics: Optional[VideoAnalytics]) -> VideoMetric:
        if analytics is not None:
            new_followers = analytics.new_followers
            avg_watch_time = analytics.average_watch_time
        else:
            new_followers = estimate_new_followers(video.like_count)
            avg_watch_time = estimate_watch_time(video.duration)

        return VideoMetric(
            id=video.video_id,
            video_url=video.video_url,
            published_at=video.created_at,
            duration=video.duration,
            views=video.view_count,
            likes=video.like_count,
            comments=video.comment_count,
            shares=video.share_count,
            new_followers=new_followers,
            avg_watch_time=avg_watch_time,
        )

    # ========================================================================
    # Status
    # ========================================================================

    async def get_user_profile(self) -> Dict[str, Any]:
        """Profile of the connected account (cached briefly)"""
        cache_key = self.get_cache_key("user", self.client.mode, self.scope)
        cached = self.get_from_cache(cache_key)
        if cached is not None:
            self.log_debug("Cache hit for user profile")
            return cached

        user = await asyncio.to_thread(self.client.get_user_info)
        profile = user.model_dump()
        ttl = self.config.cache.default_ttl_seconds if self.config else USER_INFO_TTL_SECONDS
        self.set_in_cache(cache_key, profile, ttl_seconds=ttl)
        return profile

    def get_status(self) -> Dict[str, Any]:
        """Data source mode and comparison settings"""
        return {
            "mode": self.client.mode,
            "is_configured": self.client.is_configured(),
            "max_videos": self.max_videos,
            "comparison_enabled": self.settings.enable_comparison,
            "previous_period_fallback": self.fallback_policy.name,
        }
