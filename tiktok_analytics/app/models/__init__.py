# tiktok_analytics/app/models/__init__.py
"""
ORM Models
Linked TikTok accounts and their OAuth tokens
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TikTokAccount(Base):
    """
    TikTok account linked to an application user

    One row per (user_id, tiktok_user_id); re-linking updates the tokens.
    """

    __tablename__ = "tiktok_accounts"
    __table_args__ = (
        UniqueConstraint("user_id", "tiktok_user_id", name="uq_user_tiktok_account"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Ownership
    user_id = Column(String(100), nullable=False, index=True, comment="App user ID")
    tiktok_user_id = Column(String(100), nullable=False, comment="TikTok open_id")

    # Profile
    username = Column(String(100), comment="TikTok username")
    display_name = Column(String(200), comment="TikTok display name")
    avatar_url = Column(Text, comment="Profile picture URL")

    # OAuth tokens
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=False)
    token_expires_at = Column(DateTime, nullable=False, comment="Access token expiry (UTC)")
    scope = Column(String(500), comment="Granted scopes")

    # Bookkeeping
    is_active = Column(Boolean, default=True, nullable=False)
    last_synced_at = Column(DateTime, comment="Last successful data fetch")
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<TikTokAccount(id={self.id}, user_id={self.user_id}, tiktok={self.username})>"

    def to_dict(self) -> dict:
        """Serialize without tokens"""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "tiktok_user_id": self.tiktok_user_id,
            "username": self.username,
            "display_name": self.display_name,
            "avatar_url": self.avatar_url,
            "token_expires_at": (
                self.token_expires_at.isoformat() if self.token_expires_at else None
            ),
            "is_active": self.is_active,
            "last_synced_at": (
                self.last_synced_at.isoformat() if self.last_synced_at else None
            ),
        }


__all__ = ["Base", "TikTokAccount"]
