# tiktok_analytics/infrastructure/clients/__init__.py
"""API Clients"""

import logging
from typing import Optional, Union

from tiktok_analytics.app.config import TikTokAPISettings, get_tiktok_settings

from .mock_client import TikTokMockClient
from .rate_limiter import RateLimiter
from .tiktok_api import TikTokAPIClient
from .tiktok_oauth import TikTokOAuthClient

logger = logging.getLogger(__name__)


def create_tiktok_client(
    settings: Optional[TikTokAPISettings] = None,
    access_token: Optional[str] = None,
) -> Union[TikTokAPIClient, TikTokMockClient]:
    """
    Factory function to create the data source client

    The Open API client is used only when a real client key is configured;
    placeholder keys fall back to the synthetic client.

    Args:
        settings: TikTok settings (reads from env if not provided)
        access_token: Optional user token overriding the configured one

    Returns:
        TikTokAPIClient or TikTokMockClient
    """
    settings = settings or get_tiktok_settings()

    if settings.is_configured:
        return TikTokAPIClient(settings, access_token=access_token)

    logger.info("🔧 TikTok client key not configured, using synthetic data")
    return TikTokMockClient(seed=settings.mock_seed)


__all__ = [
    "TikTokAPIClient",
    "TikTokMockClient",
    "TikTokOAuthClient",
    "RateLimiter",
    "create_tiktok_client",
]
