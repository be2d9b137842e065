# tests/unit/test_tiktok_api.py
"""
Unit Tests for the TikTok Open API Client
Tests request shaping, envelope parsing, retries and the research fallback
"""

import json
from datetime import datetime
from unittest.mock import patch

import httpx
import pytest

from tiktok_analytics.app.config import TikTokAPISettings
from tiktok_analytics.infrastructure.clients import (
    TikTokAPIClient,
    TikTokMockClient,
    create_tiktok_client,
)
from tiktok_analytics.services.exceptions import (
    ConfigurationError,
    RateLimitExceededError,
    TikTokAPIError,
)

OK = {"code": "ok", "message": "", "log_id": "test"}


def _ts(*args) -> int:
    return int(datetime(*args).timestamp())


def _video(video_id, created, views=1000, likes=200, comments=10, shares=5, duration=30):
    return {
        "id": video_id,
        "title": f"video {video_id}",
        "video_description": "",
        "duration": duration,
        "share_url": f"https://www.tiktok.com/@demo/video/{video_id}",
        "create_time": created,
        "view_count": views,
        "like_count": likes,
        "comment_count": comments,
        "share_count": shares,
    }


@pytest.fixture
def settings():
    return TikTokAPISettings(
        client_key="real-client-key",
        client_secret="secret",
        access_token="user-token",
        requests_per_second=1000,
        max_retries=3,
        default_retry_after=4,
    )


@pytest.fixture
def no_sleep():
    with patch("tiktok_analytics.infrastructure.clients.tiktok_api.time.sleep") as sleep:
        yield sleep


def make_client(settings, handler) -> TikTokAPIClient:
    http_client = httpx.Client(transport=httpx.MockTransport(handler))
    return TikTokAPIClient(settings, http_client=http_client)


# ============================================================================
# Request / Response Tests
# ============================================================================


class TestTikTokAPIClient:
    """Test endpoint calls against a mock transport"""

    def test_user_info(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["fields"] = request.url.params["fields"]
            return httpx.Response(
                200,
                json={
                    "data": {
                        "user": {
                            "open_id": "open-123",
                            "username": "creator",
                            "display_name": "Creator",
                            "follower_count": 1200,
                        }
                    },
                    "error": OK,
                },
            )

        with make_client(settings, handler) as client:
            user = client.get_user_info()

        assert seen["path"] == "/v2/user/info/"
        assert seen["auth"] == "Bearer user-token"
        assert "open_id" in seen["fields"]
        assert user.user_id == "open-123"
        assert user.username == "creator"
        assert user.follower_count == 1200

    def test_video_list_filters_window_inclusively(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "data": {
                        "videos": [
                            _video("late", _ts(2024, 1, 8, 0, 30)),
                            _video("end", _ts(2024, 1, 7, 23, 0)),
                            _video("start", _ts(2024, 1, 1, 0, 5)),
                            _video("early", _ts(2023, 12, 31, 22, 0)),
                        ],
                        "cursor": 1704067200000,
                        "has_more": True,
                    },
                    "error": OK,
                },
            )

        client = make_client(settings, handler)
        page = client.get_video_list("2024-01-01", "2024-01-07")

        assert [v.video_id for v in page.videos] == ["end", "start"]
        assert page.cursor == "1704067200000"
        # "early" predates the window, so nothing older is worth fetching
        assert page.has_more is False

    def test_video_list_keeps_paging_inside_window(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "data": {
                        "videos": [
                            _video("newer", _ts(2024, 1, 20, 12, 0)),
                            _video("inside", _ts(2024, 1, 5, 12, 0)),
                        ],
                        "cursor": 99,
                        "has_more": True,
                    },
                    "error": OK,
                },
            )

        client = make_client(settings, handler)
        page = client.get_video_list("2024-01-01", "2024-01-07")

        assert [v.video_id for v in page.videos] == ["inside"]
        assert page.has_more is True

    def test_video_list_sends_cursor_and_page_size(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200, json={"data": {"videos": [], "has_more": False}, "error": OK}
            )

        client = make_client(settings, handler)
        page = client.get_video_list(max_count=50, cursor="12345")

        assert seen["method"] == "POST"
        assert seen["body"] == {"max_count": 20, "cursor": 12345}
        assert page.videos == []
        assert page.cursor is None

    def test_error_envelope_raises(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "data": {},
                    "error": {"code": "access_token_invalid", "message": "bad token"},
                },
            )

        client = make_client(settings, handler)

        with pytest.raises(TikTokAPIError) as exc_info:
            client.get_user_info()

        assert exc_info.value.code == "access_token_invalid"
        assert "bad token" in exc_info.value.message

    def test_requires_credentials(self, settings):
        settings.access_token = ""
        client = make_client(settings, lambda request: httpx.Response(200, json={}))

        assert client.is_configured() is False
        with pytest.raises(ConfigurationError):
            client.get_video_list()


# ============================================================================
# Retry Tests
# ============================================================================


class TestRetries:
    """Test backoff and rate-limit handling"""

    def test_retry_after_honoured(self, settings, no_sleep):
        responses = [
            httpx.Response(429, headers={"Retry-After": "2"}, json={}),
            httpx.Response(200, json={"data": {"user": {"open_id": "x"}}, "error": OK}),
        ]

        client = make_client(settings, lambda request: responses.pop(0))
        user = client.get_user_info()

        assert user.user_id == "x"
        no_sleep.assert_any_call(2)

    def test_retry_after_capped_at_timeout(self, settings, no_sleep):
        settings.request_timeout = 30
        responses = [
            httpx.Response(429, headers={"Retry-After": "3600"}, json={}),
            httpx.Response(200, json={"data": {"user": {"open_id": "x"}}, "error": OK}),
        ]

        client = make_client(settings, lambda request: responses.pop(0))
        client.get_user_info()

        no_sleep.assert_called_once_with(30)

    def test_rate_limit_exhausted(self, settings, no_sleep):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(429, json={})

        client = make_client(settings, handler)

        with pytest.raises(RateLimitExceededError) as exc_info:
            client.get_user_info()

        assert len(calls) == settings.max_retries
        assert exc_info.value.retry_after == 4
        assert exc_info.value.status_code == 429

    def test_server_errors_backoff(self, settings, no_sleep):
        responses = [
            httpx.Response(502, text="bad gateway"),
            httpx.Response(503, text="unavailable"),
            httpx.Response(200, json={"data": {"user": {"open_id": "x"}}, "error": OK}),
        ]

        client = make_client(settings, lambda request: responses.pop(0))
        client.get_user_info()

        sleeps = [call.args[0] for call in no_sleep.call_args_list]
        assert 1 in sleeps and 2 in sleeps

    def test_network_errors_exhaust_retries(self, settings, no_sleep):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(settings, handler)

        with pytest.raises(TikTokAPIError) as exc_info:
            client.get_user_info()

        assert "connection refused" in exc_info.value.message


# ============================================================================
# Analytics Tests
# ============================================================================


class TestVideoAnalytics:
    """Test research query and its fallback"""

    def test_research_query(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "data": {
                        "videos": [
                            _video("v1", _ts(2024, 1, 3, 12, 0), views=2000, likes=250, duration=40)
                        ]
                    },
                    "error": OK,
                },
            )

        client = make_client(settings, handler)
        response = client.get_video_analytics("2024-01-01", "2024-01-07", ["v1"])

        assert seen["path"] == "/v2/research/video/query/"
        assert seen["body"]["start_date"] == "20240101"
        assert seen["body"]["end_date"] == "20240107"
        assert response.analytics[0].new_followers == 2
        assert response.analytics[0].average_watch_time == 28.0
        assert response.summary.total_views == 2000

    def test_falls_back_to_video_list_when_refused(self, settings):
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            if request.url.path.endswith("research/video/query/"):
                return httpx.Response(
                    403,
                    json={"error": {"code": "scope_not_authorized", "message": "no"}},
                )
            return httpx.Response(
                200,
                json={
                    "data": {
                        "videos": [
                            _video("a", _ts(2024, 1, 2, 9, 0), likes=350, duration=60),
                            _video("b", _ts(2024, 1, 3, 9, 0), likes=99, duration=15),
                        ],
                        "has_more": False,
                    },
                    "error": OK,
                },
            )

        client = make_client(settings, handler)
        response = client.get_video_analytics("2024-01-01", "2024-01-07", ["a"])

        assert paths == ["/v2/research/video/query/", "/v2/video/list/"]
        assert [a.video_id for a in response.analytics] == ["a"]
        assert response.analytics[0].new_followers == 3
        assert response.analytics[0].average_watch_time == 42.0

    def test_fallback_stops_at_videos_older_than_window(self, settings):
        list_cursors = []
        pages = {
            None: (
                [_video("feb1", _ts(2024, 2, 10, 9, 0)), _video("feb2", _ts(2024, 2, 3, 9, 0))],
                1,
            ),
            1: (
                [_video("jan", _ts(2024, 1, 20, 9, 0)), _video("dec", _ts(2023, 12, 20, 9, 0))],
                2,
            ),
            2: ([_video("nov", _ts(2023, 11, 1, 9, 0))], 3),
        }

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("research/video/query/"):
                return httpx.Response(
                    403,
                    json={"error": {"code": "scope_not_authorized", "message": "no"}},
                )
            cursor = json.loads(request.content).get("cursor")
            list_cursors.append(cursor)
            videos, next_cursor = pages[cursor]
            return httpx.Response(
                200,
                json={
                    "data": {"videos": videos, "cursor": next_cursor, "has_more": True},
                    "error": OK,
                },
            )

        client = make_client(settings, handler)
        response = client.get_video_analytics("2024-01-01", "2024-01-07")

        assert list_cursors == [None, 1]
        assert response.analytics == []

    def test_server_failure_not_masked_by_fallback(self, settings, no_sleep):
        client = make_client(settings, lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(TikTokAPIError):
            client.get_video_analytics("2024-01-01", "2024-01-07")


# ============================================================================
# Factory Tests
# ============================================================================


class TestClientFactory:
    """Test mode selection"""

    def test_placeholder_key_uses_mock(self):
        client = create_tiktok_client(TikTokAPISettings(client_key="your-client-key"))

        assert isinstance(client, TikTokMockClient)
        assert client.mode == "development"

    def test_empty_key_uses_mock(self):
        assert isinstance(
            create_tiktok_client(TikTokAPISettings(client_key="")), TikTokMockClient
        )

    def test_real_key_uses_api_client(self):
        client = create_tiktok_client(
            TikTokAPISettings(client_key="abc123"), access_token="token"
        )

        try:
            assert isinstance(client, TikTokAPIClient)
            assert client.mode == "production"
            assert client.access_token == "token"
        finally:
            client.close()
