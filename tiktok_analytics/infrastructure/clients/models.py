# tiktok_analytics/infrastructure/clients/models.py
"""
Response Models (Type-Safe Data Containers)

Both the synthetic client and the Open API client return these, so the
services never see raw TikTok JSON.
"""

import math
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Share of likes assumed to convert into follows when TikTok does not report it
FOLLOWERS_PER_LIKE = 0.01
# Share of the video length assumed to be watched on average
WATCH_TIME_RATIO = 0.7


def estimate_new_followers(like_count: int) -> int:
    """Deterministic follower estimate for videos without follower data"""
    return int(math.floor(like_count * FOLLOWERS_PER_LIKE))


def estimate_watch_time(duration: int) -> float:
    """Deterministic average watch time estimate (seconds)"""
    return float(round(duration * WATCH_TIME_RATIO))


class UserInfo(BaseModel):
    """TikTok account profile"""

    user_id: str
    username: str = ""
    display_name: str = ""
    avatar_url: Optional[str] = None
    follower_count: Optional[int] = None
    following_count: Optional[int] = None
    likes_count: Optional[int] = None
    video_count: Optional[int] = None


class VideoInfo(BaseModel):
    """One entry of video/list"""

    video_id: str
    title: str = ""
    description: str = ""
    duration: int = 0
    cover_image_url: Optional[str] = None
    video_url: str = ""
    created_at: datetime
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0


class VideoListResponse(BaseModel):
    """Page of videos"""

    videos: List[VideoInfo] = Field(default_factory=list)
    cursor: Optional[str] = None
    has_more: bool = False


class VideoAnalytics(BaseModel):
    """Per-video analytics for the requested window"""

    video_id: str
    date: str
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0
    new_followers: int = 0
    average_watch_time: float = 0.0
    engagement_rate: float = 0.0


class AnalyticsSummaryPayload(BaseModel):
    """Totals reported alongside per-video analytics"""

    total_views: int = 0
    total_likes: int = 0
    total_comments: int = 0
    total_shares: int = 0
    total_new_followers: int = 0
    average_watch_time: float = 0.0
    engagement_rate: float = 0.0


class AnalyticsResponse(BaseModel):
    """Complete analytics response"""

    analytics: List[VideoAnalytics] = Field(default_factory=list)
    summary: AnalyticsSummaryPayload = Field(default_factory=AnalyticsSummaryPayload)


class TokenResponse(BaseModel):
    """OAuth token endpoint payload"""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str
    expires_in: int
    refresh_expires_in: int = 0
    open_id: str = ""
    scope: str = ""
    token_type: str = "Bearer"


def build_analytics_summary(analytics: List[VideoAnalytics]) -> AnalyticsSummaryPayload:
    """Totals over per-video analytics"""
    if not analytics:
        return AnalyticsSummaryPayload()

    views = sum(a.view_count for a in analytics)
    likes = sum(a.like_count for a in analytics)
    comments = sum(a.comment_count for a in analytics)
    shares = sum(a.share_count for a in analytics)
    rate = round((likes + comments + shares) / views * 100, 2) if views else 0.0

    return AnalyticsSummaryPayload(
        total_views=views,
        total_likes=likes,
        total_comments=comments,
        total_shares=shares,
        total_new_followers=sum(a.new_followers for a in analytics),
        average_watch_time=round(
            sum(a.average_watch_time for a in analytics) / len(analytics), 2
        ),
        engagement_rate=rate,
    )


def analytics_from_video(video: VideoInfo) -> VideoAnalytics:
    """Estimate analytics from list data when no analytics endpoint answers"""
    views = video.view_count
    engagements = video.like_count + video.comment_count + video.share_count
    return VideoAnalytics(
        video_id=video.video_id,
        date=video.created_at.strftime("%Y-%m-%d"),
        view_count=views,
        like_count=video.like_count,
        comment_count=video.comment_count,
        share_count=video.share_count,
        new_followers=estimate_new_followers(video.like_count),
        average_watch_time=estimate_watch_time(video.duration),
        engagement_rate=round(engagements / views * 100, 2) if views else 0.0,
    )
