"""
Account Service
Linking TikTok accounts via OAuth and keeping their tokens fresh
"""

from datetime import datetime, timedelta
from typing import List, Optional

from tiktok_analytics.app.models import TikTokAccount
from tiktok_analytics.domain.interfaces import IAccountRepository
from tiktok_analytics.infrastructure.clients.tiktok_oauth import TikTokOAuthClient, utcnow
from tiktok_analytics.services.base_service import BaseService
from tiktok_analytics.services.exceptions import (
    ResourceNotFoundError,
    TikTokOAuthError,
)


class AccountService(BaseService):
    """
    Linked account operations

    Handles:
    - Code exchange and account upsert
    - Refreshing tokens that are about to expire
    - Sync bookkeeping
    """

    def __init__(
        self,
        account_repo: IAccountRepository,
        oauth_client: TikTokOAuthClient,
        cache=None,
        config=None,
    ):
        super().__init__(cache=cache, config=config)
        self.account_repo = account_repo
        self.oauth = oauth_client

    def get_service_name(self) -> str:
        return "account"

    # ========================================================================
    # Linking
    # ========================================================================

    def link_account(self, user_id: str, code: str) -> TikTokAccount:
        """
        Complete the OAuth callback for a user

        Args:
            user_id: Application user ID
            code: Authorization code from the callback

        Returns:
            Linked (or re-linked) account

        Raises:
            ValidationError: Missing user ID or code
            TikTokOAuthError: Exchange or profile lookup failed
        """
        self.validate_required(user_id, "user_id")
        self.validate_required(code, "code")

        tokens = self.oauth.exchange_code(code)
        profile = self.oauth.get_user_info(tokens.access_token)
        tiktok_user_id = profile.user_id or tokens.open_id
        if not tiktok_user_id:
            raise TikTokOAuthError("TikTok did not return an open_id")

        account = self.account_repo.upsert(
            user_id,
            tiktok_user_id,
            username=profile.username,
            display_name=profile.display_name,
            avatar_url=profile.avatar_url,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_expires_at=utcnow() + timedelta(seconds=tokens.expires_in),
            scope=tokens.scope,
        )
        self.log_info(f"🔗 Linked TikTok account @{account.username} for {user_id}")
        return account

    def unlink_account(self, account_id: int, user_id: str) -> TikTokAccount:
        account = self._get_owned(account_id, user_id)
        self.log_info(f"Unlinking TikTok account {account_id}")
        return self.account_repo.update(account, {"is_active": False})

    def list_accounts(self, user_id: str) -> List[TikTokAccount]:
        return self.account_repo.list_for_user(user_id)

    # ========================================================================
    # Tokens
    # ========================================================================

    def ensure_fresh_token(
        self, account_id: int, user_id: str, now: Optional[datetime] = None
    ) -> TikTokAccount:
        """
        Refresh the account's tokens when they expire within the margin

        Args:
            account_id: Linked account ID
            user_id: Owner; accounts of other users are not found
            now: Reference time (naive UTC), defaults to the current time

        Returns:
            Account with a usable access token

        Raises:
            ResourceNotFoundError: No such account for this user
            TikTokOAuthError: Refresh was refused
        """
        account = self._get_owned(account_id, user_id)
        if not self.oauth.is_token_expired(account.token_expires_at, now=now):
            return account

        self.log_info(f"🔄 Access token of account {account_id} expiring, refreshing")
        tokens = self.oauth.refresh_access_token(account.refresh_token)

        expires_at = (now or utcnow()) + timedelta(seconds=tokens.expires_in)
        account = self.account_repo.update_tokens(
            account,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=expires_at,
        )
        self.log_info(f"✅ Token refreshed, valid until {expires_at.isoformat()}")
        return account

    def get_access_token(self, account_id: int, user_id: str) -> str:
        """Current access token, refreshed first if needed"""
        return self.ensure_fresh_token(account_id, user_id).access_token

    def mark_synced(
        self, account_id: int, user_id: str, synced_at: Optional[datetime] = None
    ) -> TikTokAccount:
        """Record a successful data fetch for the account"""
        account = self._get_owned(account_id, user_id)
        self.log_debug(f"Account {account_id} synced")
        return self.account_repo.update(
            account, {"last_synced_at": synced_at or utcnow()}
        )

    def _get_owned(self, account_id: int, user_id: str) -> TikTokAccount:
        account = self.account_repo.get_for_user(account_id, user_id)
        if account is None:
            raise ResourceNotFoundError("TikTokAccount", account_id)
        return account
