# tiktok_analytics/infrastructure/clients/tiktok_oauth.py
"""
TikTok OAuth 2.0 Client
Authorization URL building, code exchange, token refresh and user lookup.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError as PydanticValidationError

from tiktok_analytics.app.config import TikTokAPISettings
from tiktok_analytics.infrastructure.clients.models import TokenResponse, UserInfo
from tiktok_analytics.services.exceptions import TikTokOAuthError

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://www.tiktok.com/v2/auth/authorize/"


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the accounts table stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TikTokOAuthClient:
    """OAuth helper for linking TikTok accounts"""

    def __init__(
        self,
        settings: TikTokAPISettings,
        http_client: Optional[httpx.Client] = None,
    ):
        self.settings = settings
        self.base_url = f"{settings.base_url.rstrip('/')}/{settings.api_version}"
        self.client = http_client or httpx.Client(timeout=settings.request_timeout)

    # ========================================================================
    # Authorization
    # ========================================================================

    def authorization_url(self, state: str) -> str:
        """
        Build the URL the user is redirected to for consent

        Args:
            state: Opaque CSRF token echoed back on the callback

        Returns:
            Absolute authorization URL
        """
        if not self.settings.client_key:
            raise TikTokOAuthError("TikTok client key not configured")

        query = urlencode(
            {
                "client_key": self.settings.client_key,
                "scope": ",".join(self.settings.scope_list),
                "response_type": "code",
                "redirect_uri": self.settings.redirect_uri,
                "state": state,
            }
        )
        return f"{AUTHORIZE_URL}?{query}"

    def exchange_code(self, code: str) -> TokenResponse:
        """Exchange an authorization code for an access/refresh token pair"""
        logger.info("🔑 Exchanging TikTok authorization code")
        return self._token_request(
            {
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self.settings.redirect_uri,
            }
        )

    def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """Trade a refresh token for a new token pair"""
        logger.info("🔄 Refreshing TikTok access token")
        return self._token_request(
            {"refresh_token": refresh_token, "grant_type": "refresh_token"}
        )

    def _token_request(self, form: Dict[str, str]) -> TokenResponse:
        data = {
            "client_key": self.settings.client_key,
            "client_secret": self.settings.client_secret,
            **form,
        }

        try:
            response = self.client.post(
                f"{self.base_url}/oauth/token/",
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.RequestError as e:
            logger.error(f"❌ Token request failed: {e}")
            raise TikTokOAuthError(f"Token request failed: {e}")

        payload = self._json(response)
        if response.is_error or payload.get("error"):
            message = payload.get("error_description") or str(payload.get("error"))
            logger.error(f"❌ Token endpoint refused request: {message}")
            raise TikTokOAuthError(
                message,
                code=str(payload.get("error") or ""),
                status_code=response.status_code,
            )

        try:
            return TokenResponse.model_validate(payload)
        except PydanticValidationError as e:
            raise TikTokOAuthError(f"Malformed token response: {e}")

    # ========================================================================
    # User Lookup
    # ========================================================================

    def get_user_info(self, access_token: str) -> UserInfo:
        """Profile of the user owning ``access_token``"""
        try:
            response = self.client.get(
                f"{self.base_url}/user/info/",
                params={"fields": "open_id,union_id,avatar_url,display_name,username"},
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.RequestError as e:
            raise TikTokOAuthError(f"User info request failed: {e}")

        payload = self._json(response)
        error = payload.get("error") or {}
        if response.is_error or error.get("code", "ok") != "ok":
            raise TikTokOAuthError(
                error.get("message") or f"HTTP {response.status_code}",
                code=error.get("code"),
                status_code=response.status_code,
            )

        user = (payload.get("data") or {}).get("user") or {}
        return UserInfo(
            user_id=user.get("open_id", ""),
            username=user.get("username") or "",
            display_name=user.get("display_name") or "",
            avatar_url=user.get("avatar_url"),
        )

    # ========================================================================
    # Helpers
    # ========================================================================

    def is_token_expired(
        self, expires_at: Optional[datetime], now: Optional[datetime] = None
    ) -> bool:
        """True when the token is gone or expires within the refresh margin"""
        if expires_at is None:
            return True
        now = now or utcnow()
        margin = timedelta(seconds=self.settings.token_refresh_margin_seconds)
        return expires_at <= now + margin

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError:
            raise TikTokOAuthError(
                f"Invalid JSON from TikTok (HTTP {response.status_code})",
                status_code=response.status_code,
            )

    def close(self) -> None:
        self.client.close()
