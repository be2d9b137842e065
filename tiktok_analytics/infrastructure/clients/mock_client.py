# tiktok_analytics/infrastructure/clients/mock_client.py
"""
Synthetic TikTok client (development mode)

Generates plausible video metrics without network access. Every figure is
derived from a random.Random seeded with (seed, day) or (seed, video id), so
the same day always yields the same video and overlapping windows agree.
"""

import logging
import random
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from tiktok_analytics.infrastructure.clients.models import (
    AnalyticsResponse,
    UserInfo,
    VideoAnalytics,
    VideoInfo,
    VideoListResponse,
    build_analytics_summary,
)
from tiktok_analytics.services.comparison import parse_date

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK_DAYS = 30
DURATIONS = (15, 30, 45, 60, 90)


class TikTokMockClient:
    """Deterministic stand-in for the TikTok Open API"""

    mode = "development"

    def __init__(self, seed: int = 42, username: str = "demo_user"):
        self.seed = seed
        self.username = username
        logger.info(f"🔧 TikTok mock client initialized (seed={seed})")

    def is_configured(self) -> bool:
        return True

    # ========================================================================
    # Contract
    # ========================================================================

    def get_user_info(self) -> UserInfo:
        rng = random.Random(f"{self.seed}:user")
        return UserInfo(
            user_id="mock_user_12345",
            username=self.username,
            display_name="Sample TikTok User",
            avatar_url="https://via.placeholder.com/150",
            follower_count=rng.randint(10_000, 109_999),
            following_count=rng.randint(100, 1_099),
            likes_count=rng.randint(50_000, 1_049_999),
        )

    def get_video_list(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        max_count: int = 20,
        cursor: Optional[str] = None,
    ) -> VideoListResponse:
        videos = self._videos_in_window(start_date, end_date)

        offset = int(cursor) if cursor else 0
        page = videos[offset : offset + max_count]
        next_offset = offset + len(page)
        has_more = next_offset < len(videos)

        return VideoListResponse(
            videos=page,
            cursor=str(next_offset) if has_more else None,
            has_more=has_more,
        )

    def get_video_analytics(
        self,
        start_date: str,
        end_date: str,
        video_ids: Optional[List[str]] = None,
    ) -> AnalyticsResponse:
        videos = self._videos_in_window(start_date, end_date)
        if video_ids is not None:
            wanted = set(video_ids)
            videos = [v for v in videos if v.video_id in wanted]

        analytics = [self._analytics_for(video) for video in videos]
        return AnalyticsResponse(
            analytics=analytics, summary=build_analytics_summary(analytics)
        )

    # ========================================================================
    # Generators
    # ========================================================================

    def _videos_in_window(
        self, start_date: Optional[str], end_date: Optional[str]
    ) -> List[VideoInfo]:
        end = parse_date(end_date, "end_date") if end_date else date.today()
        start = (
            parse_date(start_date, "start_date")
            if start_date
            else end - timedelta(days=DEFAULT_LOOKBACK_DAYS)
        )

        videos = []
        day = start
        while day <= end:
            videos.append(self._video_for_day(day))
            day += timedelta(days=1)

        # Newest first, like the real endpoint
        videos.sort(key=lambda v: v.created_at, reverse=True)
        return videos

    def _video_for_day(self, day: date) -> VideoInfo:
        rng = random.Random(f"{self.seed}:{day.isoformat()}")

        views = rng.randint(10_000, 509_999)
        likes = int(views * (rng.random() * 0.1 + 0.05))
        comments = int(likes * (rng.random() * 0.05 + 0.02))
        shares = int(likes * (rng.random() * 0.15 + 0.05))
        posted = datetime.combine(
            day, time(hour=rng.randint(0, 23), minute=rng.randint(0, 59))
        )
        video_id = f"mock_video_{day.strftime('%Y%m%d')}"

        return VideoInfo(
            video_id=video_id,
            title=f"Sample video {day.isoformat()}",
            description="Synthetic video generated in development mode",
            duration=rng.choice(DURATIONS),
            cover_image_url=f"https://via.placeholder.com/300x400?text={video_id}",
            video_url=f"https://www.tiktok.com/@{self.username}/video/{video_id}",
            created_at=posted,
            view_count=views,
            like_count=likes,
            comment_count=comments,
            share_count=shares,
        )

    def _analytics_for(self, video: VideoInfo) -> VideoAnalytics:
        rng = random.Random(f"{self.seed}:{video.video_id}:analytics")
        views = video.view_count
        engagements = video.like_count + video.comment_count + video.share_count

        return VideoAnalytics(
            video_id=video.video_id,
            date=video.created_at.strftime("%Y-%m-%d"),
            view_count=views,
            like_count=video.like_count,
            comment_count=video.comment_count,
            share_count=video.share_count,
            new_followers=rng.randint(10, 109),
            average_watch_time=float(rng.randint(10, 54)),
            engagement_rate=round(engagements / views * 100, 2) if views else 0.0,
        )
