# tiktok_analytics/infrastructure/repositories/account_repository.py
"""
Account Repository
Persistence for linked TikTok accounts and their OAuth tokens
"""

import logging
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from tiktok_analytics.app.models import TikTokAccount

from .base import BaseRepository

logger = logging.getLogger(__name__)


class AccountRepository(BaseRepository[TikTokAccount]):
    """Repository for TikTokAccount operations"""

    def __init__(self, session: Session):
        super().__init__(session, TikTokAccount)

    def get_for_user(self, account_id: int, user_id: str) -> Optional[TikTokAccount]:
        """Account by ID, only if it belongs to ``user_id``"""
        return self.find_one(id=account_id, user_id=user_id)

    def list_for_user(self, user_id: str) -> List[TikTokAccount]:
        """Active accounts linked by a user"""
        return self.find_by(user_id=user_id, is_active=True)

    def upsert(self, user_id: str, tiktok_user_id: str, **values: Any) -> TikTokAccount:
        """
        Create the account link or refresh an existing one

        Args:
            user_id: Application user ID
            tiktok_user_id: TikTok open_id
            **values: Remaining column values (tokens, profile fields)

        Returns:
            Persisted account
        """
        existing = self.find_one(user_id=user_id, tiktok_user_id=tiktok_user_id)
        if existing is not None:
            logger.info(f"🔗 Re-linking TikTok account {tiktok_user_id} for {user_id}")
            return self.update(existing, {**values, "is_active": True})

        return self.create(user_id=user_id, tiktok_user_id=tiktok_user_id, **values)

    def update_tokens(
        self,
        account: TikTokAccount,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> TikTokAccount:
        """Store a refreshed token pair"""
        return self.update(
            account,
            {
                "access_token": access_token,
                "refresh_token": refresh_token,
                "token_expires_at": expires_at,
            },
        )
