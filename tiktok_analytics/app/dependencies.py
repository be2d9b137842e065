"""
Service Dependency Injection
FastAPI dependency providers for services
"""

from functools import lru_cache
from typing import Generator, Optional

from fastapi import Depends, HTTPException, Query
from sqlalchemy.orm import Session

from tiktok_analytics.app.config import get_config
from tiktok_analytics.app.database import get_db
from tiktok_analytics.app.shared_cache import get_shared_cache
from tiktok_analytics.infrastructure.clients import (
    TikTokOAuthClient,
    create_tiktok_client,
)
from tiktok_analytics.infrastructure.repositories import AccountRepository
from tiktok_analytics.services.account_service import AccountService
from tiktok_analytics.services.analytics_service import AnalyticsService, RequestTracker
from tiktok_analytics.services.exceptions import (
    ServiceError,
    ValidationError,
    error_to_http_status,
)
from tiktok_analytics.services.session_service import SessionStore


# ============================================================================
# Singletons
# ============================================================================


@lru_cache()
def get_session_store() -> SessionStore:
    """
    Get or create the session store (Singleton)

    The lifespan handler calls load() on startup.
    """
    config = get_config()
    cache = get_shared_cache()
    return SessionStore(cache.get_path("SESSIONS") / config.storage.session_filename)


@lru_cache()
def get_tiktok_client():
    """
    Get or create the data source client (Singleton)

    A token saved in the session takes precedence over TIKTOK_ACCESS_TOKEN.
    """
    token = get_session_store().settings.tiktok_access_token
    return create_tiktok_client(get_config().tiktok, access_token=token)


def reset_tiktok_client() -> None:
    """Close the cached data source client so the next request rebuilds it"""
    if get_tiktok_client.cache_info().currsize:
        client = get_tiktok_client()
        if hasattr(client, "close"):
            client.close()
    get_tiktok_client.cache_clear()


@lru_cache()
def get_request_tracker() -> RequestTracker:
    return RequestTracker()


@lru_cache()
def get_oauth_client() -> TikTokOAuthClient:
    return TikTokOAuthClient(get_config().tiktok)


# ============================================================================
# Service Factories
# ============================================================================


def get_account_service(
    db: Session = Depends(get_db),
) -> Generator[AccountService, None, None]:
    """Dependency provider for AccountService (bound to the request's session)"""
    yield AccountService(
        account_repo=AccountRepository(db),
        oauth_client=get_oauth_client(),
        cache=get_shared_cache(),
        config=get_config(),
    )


def get_analytics_service(
    account_id: Optional[int] = Query(
        None, description="Linked TikTok account to read data for"
    ),
    user_id: Optional[str] = Query(None, description="Owner of the linked account"),
    accounts: AccountService = Depends(get_account_service),
) -> Generator[AnalyticsService, None, None]:
    """
    Dependency provider for AnalyticsService

    Without ``account_id`` the shared data source client is used. With it, a
    client is built from the linked account's (refreshed) token and the
    account's ``last_synced_at`` is updated after each successful load.

    Usage in FastAPI:
        @router.get("/summary")
        async def summary(service: AnalyticsService = Depends(get_analytics_service)):
            ...

    Yields:
        AnalyticsService instance
    """
    config = get_config()
    preferences = get_session_store().settings

    # Per-user dashboard preferences override the deployment defaults
    settings = config.analytics.model_copy(
        update={
            "default_preset": preferences.default_preset,
            "enable_comparison": preferences.enable_comparison,
        }
    )

    client = get_tiktok_client()
    account_client = None
    on_synced = None

    if account_id is not None:
        try:
            if not user_id:
                raise ValidationError("user_id is required with account_id", "user_id")
            token = accounts.get_access_token(account_id, user_id)
        except ServiceError as e:
            raise HTTPException(status_code=error_to_http_status(e), detail=e.to_dict())

        account_client = create_tiktok_client(config.tiktok, access_token=token)
        client = account_client

        def on_synced():
            accounts.mark_synced(account_id, user_id)

    service = AnalyticsService(
        client=client,
        settings=settings,
        max_videos=config.tiktok.max_videos,
        tracker=get_request_tracker(),
        on_synced=on_synced,
        scope=f"account:{account_id}" if account_id is not None else "shared",
        cache=get_shared_cache(),
        config=config,
    )

    try:
        yield service
    finally:
        if account_client is not None and hasattr(account_client, "close"):
            account_client.close()
