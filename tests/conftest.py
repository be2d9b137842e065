"""
Shared test fixtures

Environment overrides are applied before any tiktok_analytics module builds
its configuration, so every test runs against a throwaway cache directory,
a temporary SQLite file and the synthetic data source.
"""

import os
import tempfile
from datetime import datetime

import pytest

_TEST_ROOT = tempfile.mkdtemp(prefix="tiktok_analytics_tests_")

os.environ["CACHE_CACHE_ROOT"] = os.path.join(_TEST_ROOT, "cache")
os.environ["DB_URL"] = f"sqlite:///{os.path.join(_TEST_ROOT, 'test.db')}"
os.environ["TIKTOK_CLIENT_KEY"] = ""
os.environ["TIKTOK_ACCESS_TOKEN"] = ""

from tiktok_analytics.domain.models import VideoMetric  # noqa: E402


def make_video(
    video_id: str = "v1",
    views: int = 1000,
    likes: int = 100,
    comments: int = 10,
    shares: int = 5,
    new_followers: int = 1,
    avg_watch_time: float = 20.0,
    published_at: datetime = datetime(2024, 1, 10, 18, 30),
    duration: int = 30,
) -> VideoMetric:
    return VideoMetric(
        id=video_id,
        video_url=f"https://www.tiktok.com/@demo/video/{video_id}",
        published_at=published_at,
        duration=duration,
        views=views,
        likes=likes,
        comments=comments,
        shares=shares,
        new_followers=new_followers,
        avg_watch_time=avg_watch_time,
    )


@pytest.fixture
def video_factory():
    """Build VideoMetric instances with sensible defaults"""
    return make_video


@pytest.fixture
def test_root() -> str:
    return _TEST_ROOT
