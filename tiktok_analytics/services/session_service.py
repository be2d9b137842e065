"""
Session Service
Explicit lifecycle for the signed-in user and their dashboard settings.

The store is loaded once at startup, saved only when asked to, and cleared on
logout; nothing else reads the session file.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from tiktok_analytics.services.exceptions import ValidationError

logger = logging.getLogger(__name__)


class UserSession(BaseModel):
    """Opaque identity handed over by the identity provider"""

    user_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class DashboardSettings(BaseModel):
    """Per-user dashboard preferences"""

    default_preset: Literal["7days", "14days", "21days"] = "7days"
    enable_comparison: bool = True
    tiktok_access_token: Optional[str] = None
    oauth_state: Optional[str] = None


class SessionState(BaseModel):
    """What is written to disk"""

    user: Optional[UserSession] = None
    settings: DashboardSettings = Field(default_factory=DashboardSettings)
    saved_at: Optional[datetime] = None


class SessionStore:
    """File-backed session holder"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.state = SessionState()

    @property
    def user(self) -> Optional[UserSession]:
        return self.state.user

    @property
    def settings(self) -> DashboardSettings:
        return self.state.settings

    @property
    def is_authenticated(self) -> bool:
        return self.state.user is not None

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def load(self) -> SessionState:
        """
        Read the persisted session

        A missing or unreadable file yields an empty session.
        """
        if not self.path.exists():
            logger.debug(f"No saved session at {self.path}")
            self.state = SessionState()
            return self.state

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                self.state = SessionState.model_validate(json.load(f))
            logger.info(f"📂 Session loaded from {self.path}")
        except (OSError, ValueError, PydanticValidationError) as e:
            logger.warning(f"⚠️ Ignoring unreadable session file {self.path}: {e}")
            self.state = SessionState()

        return self.state

    def save(self) -> Path:
        """Persist the current session"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.state.saved_at = datetime.now()

        with open(self.path, "w", encoding="utf-8") as f:
            f.write(self.state.model_dump_json(indent=2))

        logger.info(f"💾 Session saved to {self.path}")
        return self.path

    def clear(self) -> None:
        """Forget the session in memory and on disk (logout)"""
        self.state = SessionState()
        if self.path.exists():
            self.path.unlink()
        logger.info("🗑️ Session cleared")

    # ========================================================================
    # Mutations
    # ========================================================================

    def sign_in(self, user: UserSession) -> None:
        self.state.user = user

    def update_settings(self, **changes: Any) -> DashboardSettings:
        """
        Apply setting changes in memory (call save() to persist)

        Raises:
            ValidationError: Unknown setting name or invalid value
        """
        unknown = set(changes) - set(DashboardSettings.model_fields)
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")

        try:
            updated = DashboardSettings.model_validate(
                {**self.state.settings.model_dump(), **changes}
            )
        except PydanticValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"])
            raise ValidationError(f"Invalid setting {field}: {error['msg']}", field)

        self.state.settings = updated
        return self.state.settings
