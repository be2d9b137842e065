# tiktok_analytics/domain/interfaces.py
"""
Domain-facing client and repository interfaces (Protocols).

The synthetic and the Open API client both satisfy TikTokClientProtocol via
duck typing; there is no inheritance requirement.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:  # pragma: no cover
    from tiktok_analytics.app.models import TikTokAccount
    from tiktok_analytics.infrastructure.clients.models import (
        AnalyticsResponse,
        UserInfo,
        VideoListResponse,
    )


@runtime_checkable
class TikTokClientProtocol(Protocol):
    """
    Data source adapter contract.

    Calls are synchronous; async services wrap them with asyncio.to_thread.
    """

    mode: str

    def is_configured(self) -> bool: ...

    def get_user_info(self) -> "UserInfo": ...

    def get_video_list(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        max_count: int = 20,
        cursor: Optional[str] = None,
    ) -> "VideoListResponse":
        """One page of videos posted within the inclusive window."""
        ...

    def get_video_analytics(
        self,
        start_date: str,
        end_date: str,
        video_ids: Optional[List[str]] = None,
    ) -> "AnalyticsResponse": ...


@runtime_checkable
class IAccountRepository(Protocol):
    """Interface for linked TikTok account persistence."""

    def get_by_id(self, account_id: int) -> Optional["TikTokAccount"]: ...

    def get_for_user(self, account_id: int, user_id: str) -> Optional["TikTokAccount"]: ...

    def list_for_user(self, user_id: str) -> List["TikTokAccount"]: ...

    def upsert(self, user_id: str, tiktok_user_id: str, **values: Any) -> "TikTokAccount": ...

    def update_tokens(
        self,
        account: "TikTokAccount",
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> "TikTokAccount": ...

    def update(self, account: "TikTokAccount", values: Dict[str, Any]) -> "TikTokAccount": ...
