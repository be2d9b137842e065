# tiktok_analytics/infrastructure/clients/tiktok_api.py
"""
TikTok Open API v2 Client
Handles authentication headers, rate limiting, retry logic, and parsing into
the shared response models.

Features:
- Token bucket rate limiting
- Exponential backoff on network and 5xx errors
- Retry-After aware handling of 429 responses
- Research API analytics with a video/list based fallback
"""

import logging
import time
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import httpx

from tiktok_analytics.app.config import TikTokAPISettings
from tiktok_analytics.infrastructure.clients.models import (
    AnalyticsResponse,
    UserInfo,
    VideoAnalytics,
    VideoInfo,
    VideoListResponse,
    analytics_from_video,
    build_analytics_summary,
    estimate_new_followers,
    estimate_watch_time,
)
from tiktok_analytics.infrastructure.clients.rate_limiter import RateLimiter
from tiktok_analytics.services.comparison import parse_date
from tiktok_analytics.services.exceptions import (
    ConfigurationError,
    RateLimitExceededError,
    TikTokAPIError,
)

logger = logging.getLogger(__name__)

USER_FIELDS = [
    "open_id",
    "union_id",
    "avatar_url",
    "display_name",
    "username",
    "follower_count",
    "following_count",
    "likes_count",
    "video_count",
]

VIDEO_FIELDS = [
    "id",
    "title",
    "video_description",
    "duration",
    "cover_image_url",
    "share_url",
    "embed_link",
    "like_count",
    "comment_count",
    "share_count",
    "view_count",
    "create_time",
]

RESEARCH_FIELDS = [
    "id",
    "like_count",
    "comment_count",
    "share_count",
    "view_count",
    "create_time",
    "duration",
]


class TikTokAPIClient:
    """
    TikTok Open API client (production mode)

    Handles:
    - User profile lookup
    - Video list pagination with client-side date filtering
    - Per-video analytics for a window
    """

    mode = "production"
    USER_AGENT = "TikTok-Analytics-Tool/1.0"

    def __init__(
        self,
        settings: TikTokAPISettings,
        access_token: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize TikTok API client

        Args:
            settings: TikTok API settings (client key, retries, limits)
            access_token: User access token (falls back to settings)
            http_client: Optional preconfigured httpx client
        """
        self.settings = settings
        self.client_key = settings.client_key
        self.access_token = access_token or settings.access_token or None
        self.max_retries = settings.max_retries
        self.base_url = f"{settings.base_url.rstrip('/')}/{settings.api_version}"

        self.client = http_client or httpx.Client(
            timeout=settings.request_timeout,
            limits=httpx.Limits(max_keepalive_connections=5),
        )
        self.rate_limiter = RateLimiter(calls_per_second=settings.requests_per_second)

        logger.info("🚀 TikTok API client initialized (production mode)")

    def is_configured(self) -> bool:
        return bool(self.client_key and self.access_token)

    def _require_credentials(self) -> None:
        if not self.is_configured():
            raise ConfigurationError("TikTok API credentials not configured")

    # ========================================================================
    # Transport
    # ========================================================================

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Make API request with rate limiting and retry logic

        Args:
            method: HTTP method
            endpoint: Path below the versioned base URL (e.g. 'video/list/')
            params: Query parameters
            body: JSON body

        Returns:
            The response's ``data`` object

        Raises:
            RateLimitExceededError: Still throttled after all retries
            TikTokAPIError: Any other unrecoverable failure
        """
        url = f"{self.base_url}/{endpoint}"
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
            "User-Agent": self.USER_AGENT,
        }
        last_error: Optional[str] = None

        for attempt in range(self.max_retries):
            self.rate_limiter.acquire()
            is_last = attempt == self.max_retries - 1

            try:
                response = self.client.request(
                    method, url, params=params, json=body, headers=headers
                )
            except httpx.RequestError as e:
                last_error = str(e)
                wait_time = 2**attempt
                logger.warning(
                    f"⚠️ Network error: {e}, "
                    f"retrying in {wait_time}s (attempt {attempt + 1}/{self.max_retries})"
                )
                if not is_last:
                    time.sleep(wait_time)
                continue

            if response.status_code == 429:
                retry_after = self._retry_after(response)
                if is_last:
                    raise RateLimitExceededError(
                        f"Rate limited by TikTok after {self.max_retries} attempts",
                        retry_after=retry_after,
                    )
                logger.warning(f"⚠️ Rate limited, retrying after {retry_after}s")
                time.sleep(retry_after)
                continue

            if response.status_code >= 500:
                last_error = f"HTTP {response.status_code}"
                wait_time = 2**attempt
                logger.warning(
                    f"⚠️ Server error {response.status_code}, "
                    f"retrying in {wait_time}s (attempt {attempt + 1}/{self.max_retries})"
                )
                if not is_last:
                    time.sleep(wait_time)
                continue

            return self._parse(response)

        raise TikTokAPIError(
            f"Failed after {self.max_retries} retries: {last_error}", code="retries_exhausted"
        )

    def _retry_after(self, response: httpx.Response) -> int:
        """Seconds to wait on 429, capped at the request timeout"""
        header = response.headers.get("Retry-After")
        try:
            seconds = int(header) if header else self.settings.default_retry_after
        except ValueError:
            seconds = self.settings.default_retry_after
        return max(0, min(seconds, self.settings.request_timeout))

    def _parse(self, response: httpx.Response) -> Dict[str, Any]:
        """Unwrap TikTok's {data, error} envelope"""
        try:
            payload = response.json()
        except ValueError:
            raise TikTokAPIError(
                f"Invalid JSON from TikTok (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        error = payload.get("error") or {}
        error_code = error.get("code")
        if response.is_error or (error_code and error_code != "ok"):
            message = error.get("message") or f"HTTP {response.status_code}"
            logger.error(f"❌ TikTok API error {response.status_code}: {message}")
            raise TikTokAPIError(
                message, code=error_code, status_code=response.status_code
            )

        return payload.get("data") or {}

    # ========================================================================
    # User Operations
    # ========================================================================

    def get_user_info(self) -> UserInfo:
        """Fetch the authorized user's profile"""
        self._require_credentials()

        data = self._request("GET", "user/info/", params={"fields": ",".join(USER_FIELDS)})
        user = data.get("user", data)

        return UserInfo(
            user_id=user.get("open_id", ""),
            username=user.get("username") or "",
            display_name=user.get("display_name") or "",
            avatar_url=user.get("avatar_url"),
            follower_count=user.get("follower_count"),
            following_count=user.get("following_count"),
            likes_count=user.get("likes_count"),
            video_count=user.get("video_count"),
        )

    # ========================================================================
    # Video Operations
    # ========================================================================

    def get_video_list(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        max_count: int = 20,
        cursor: Optional[str] = None,
    ) -> VideoListResponse:
        """
        Fetch one page of the user's videos

        video/list has no date filter, so the window is applied to the page
        after it arrives (inclusive on both ends). Videos come newest first,
        so a page reaching back past ``start_date`` ends the listing.
        """
        self._require_credentials()

        body: Dict[str, Any] = {"max_count": min(max_count, self.settings.page_size)}
        if cursor:
            body["cursor"] = int(cursor)

        data = self._request(
            "POST", "video/list/", params={"fields": ",".join(VIDEO_FIELDS)}, body=body
        )

        page = [self._parse_video(item) for item in data.get("videos") or []]
        videos = self._filter_window(page, start_date, end_date)

        has_more = bool(data.get("has_more", False))
        if has_more and start_date and page:
            oldest = min(v.created_at.date() for v in page)
            if oldest < parse_date(start_date, "start_date"):
                logger.debug(f"Reached videos older than {start_date}, stopping")
                has_more = False

        next_cursor = data.get("cursor")
        return VideoListResponse(
            videos=videos,
            cursor=str(next_cursor) if next_cursor is not None else None,
            has_more=has_more,
        )

    def get_video_analytics(
        self,
        start_date: str,
        end_date: str,
        video_ids: Optional[List[str]] = None,
    ) -> AnalyticsResponse:
        """
        Per-video analytics through the Research API

        Accounts without Research API access get analytics estimated from
        video/list instead.
        """
        self._require_credentials()

        conditions: List[Dict[str, Any]] = [
            {
                "operation": "IN",
                "field_name": "region_code",
                "field_values": [self.settings.research_region_code],
            }
        ]
        if video_ids:
            conditions.append(
                {"operation": "IN", "field_name": "id", "field_values": video_ids}
            )

        body = {
            "query": {"and": conditions},
            "start_date": parse_date(start_date, "start_date").strftime("%Y%m%d"),
            "end_date": parse_date(end_date, "end_date").strftime("%Y%m%d"),
            "max_count": 100,
        }

        try:
            data = self._request(
                "POST",
                "research/video/query/",
                params={"fields": ",".join(RESEARCH_FIELDS)},
                body=body,
            )
        except RateLimitExceededError:
            raise
        except TikTokAPIError as e:
            if e.status_code is None or not 400 <= e.status_code < 500:
                raise
            logger.warning(
                f"⚠️ Research API not available ({e.status_code}), estimating from video list"
            )
            return self._fallback_analytics(start_date, end_date, video_ids)

        analytics = [self._parse_research_video(item) for item in data.get("videos") or []]
        return AnalyticsResponse(
            analytics=analytics, summary=build_analytics_summary(analytics)
        )

    def _fallback_analytics(
        self,
        start_date: str,
        end_date: str,
        video_ids: Optional[List[str]],
    ) -> AnalyticsResponse:
        videos: List[VideoInfo] = []
        cursor: Optional[str] = None

        while len(videos) < self.settings.max_videos:
            page = self.get_video_list(
                start_date=start_date,
                end_date=end_date,
                max_count=self.settings.page_size,
                cursor=cursor,
            )
            videos.extend(page.videos)
            if not page.has_more or not page.cursor:
                break
            cursor = page.cursor

        if video_ids:
            wanted = set(video_ids)
            videos = [v for v in videos if v.video_id in wanted]

        analytics = [analytics_from_video(v) for v in videos[: self.settings.max_videos]]
        return AnalyticsResponse(
            analytics=analytics, summary=build_analytics_summary(analytics)
        )

    # ========================================================================
    # Parsing Helpers
    # ========================================================================

    @staticmethod
    def _parse_video(item: Dict[str, Any]) -> VideoInfo:
        return VideoInfo(
            video_id=str(item.get("id", "")),
            title=item.get("title") or "",
            description=item.get("video_description") or "",
            duration=item.get("duration") or 0,
            cover_image_url=item.get("cover_image_url"),
            video_url=item.get("share_url") or item.get("embed_link") or "",
            created_at=datetime.fromtimestamp(item.get("create_time") or 0),
            view_count=item.get("view_count") or 0,
            like_count=item.get("like_count") or 0,
            comment_count=item.get("comment_count") or 0,
            share_count=item.get("share_count") or 0,
        )

    @staticmethod
    def _parse_research_video(item: Dict[str, Any]) -> VideoAnalytics:
        views = item.get("view_count") or 0
        likes = item.get("like_count") or 0
        comments = item.get("comment_count") or 0
        shares = item.get("share_count") or 0

        return VideoAnalytics(
            video_id=str(item.get("id", "")),
            date=datetime.fromtimestamp(item.get("create_time") or 0).strftime("%Y-%m-%d"),
            view_count=views,
            like_count=likes,
            comment_count=comments,
            share_count=shares,
            new_followers=estimate_new_followers(likes),
            average_watch_time=estimate_watch_time(item.get("duration") or 0),
            engagement_rate=(
                round((likes + comments + shares) / views * 100, 2) if views else 0.0
            ),
        )

    @staticmethod
    def _filter_window(
        videos: List[VideoInfo],
        start_date: Optional[str],
        end_date: Optional[str],
    ) -> List[VideoInfo]:
        if not start_date and not end_date:
            return videos

        start = parse_date(start_date, "start_date") if start_date else date.min
        end = parse_date(end_date, "end_date") if end_date else date.max
        return [v for v in videos if start <= v.created_at.date() <= end]

    # ========================================================================
    # Utility Methods
    # ========================================================================

    def close(self) -> None:
        """Close HTTP client connection pool"""
        self.client.close()
        logger.info("🔌 TikTok API client closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
