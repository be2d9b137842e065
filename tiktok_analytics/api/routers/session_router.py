"""
Session API Router
Explicit load/save/clear of the signed-in user and dashboard settings
"""

import logging
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from tiktok_analytics.app.dependencies import get_session_store, reset_tiktok_client
from tiktok_analytics.services.exceptions import ServiceError, error_to_http_status
from tiktok_analytics.services.session_service import SessionStore, UserSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/session", tags=["Session"])


class SettingsUpdate(BaseModel):
    """Partial settings update"""

    default_preset: Optional[Literal["7days", "14days", "21days"]] = None
    enable_comparison: Optional[bool] = None
    tiktok_access_token: Optional[str] = None


def _session_view(store: SessionStore) -> Dict[str, Any]:
    settings = store.settings
    return {
        "authenticated": store.is_authenticated,
        "user": store.user.model_dump() if store.user else None,
        "settings": {
            "default_preset": settings.default_preset,
            "enable_comparison": settings.enable_comparison,
            "has_tiktok_token": bool(settings.tiktok_access_token),
        },
    }


@router.get("")
def get_session(store: SessionStore = Depends(get_session_store)):
    """Current session (tokens are never returned)"""
    return _session_view(store)


@router.put("/user")
def set_user(user: UserSession, store: SessionStore = Depends(get_session_store)):
    """Attach the identity handed over by the identity provider"""
    store.sign_in(user)
    return _session_view(store)


@router.put("/settings")
def update_settings(
    update: SettingsUpdate, store: SessionStore = Depends(get_session_store)
):
    """Change dashboard settings in memory; POST /save persists them"""
    changes = update.model_dump(exclude_unset=True)
    try:
        store.update_settings(**changes)
    except ServiceError as e:
        raise HTTPException(status_code=error_to_http_status(e), detail=e.to_dict())

    if "tiktok_access_token" in changes:
        # Rebuild the data source client with the new token
        reset_tiktok_client()

    return _session_view(store)


@router.post("/save")
def save_session(store: SessionStore = Depends(get_session_store)):
    path = store.save()
    return {"saved": True, "path": str(path)}


@router.delete("")
def clear_session(store: SessionStore = Depends(get_session_store)):
    """Logout"""
    store.clear()
    reset_tiktok_client()
    return _session_view(store)
