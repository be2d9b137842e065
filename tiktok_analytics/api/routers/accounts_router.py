"""
Accounts API Router
TikTok OAuth linking and token maintenance
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel, Field

from tiktok_analytics.app.dependencies import (
    get_account_service,
    get_oauth_client,
    get_session_store,
)
from tiktok_analytics.infrastructure.clients import TikTokOAuthClient
from tiktok_analytics.services.account_service import AccountService
from tiktok_analytics.services.exceptions import (
    ServiceError,
    ValidationError,
    error_to_http_status,
)
from tiktok_analytics.services.session_service import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/accounts", tags=["Accounts"])


class CallbackRequest(BaseModel):
    """OAuth callback payload"""

    user_id: str = Field(..., description="Application user ID")
    code: str = Field(..., description="Authorization code")
    state: Optional[str] = Field(None, description="State echoed by TikTok")


def _http_error(e: ServiceError) -> HTTPException:
    return HTTPException(status_code=error_to_http_status(e), detail=e.to_dict())


@router.get("/authorize")
def authorize(
    oauth: TikTokOAuthClient = Depends(get_oauth_client),
    store: SessionStore = Depends(get_session_store),
):
    """
    Start the OAuth flow

    The generated state is kept in the session and checked on callback.
    """
    state = secrets.token_urlsafe(16)
    store.update_settings(oauth_state=state)

    try:
        return {"authorization_url": oauth.authorization_url(state), "state": state}
    except ServiceError as e:
        raise _http_error(e)


@router.post("/callback")
def oauth_callback(
    request: CallbackRequest,
    service: AccountService = Depends(get_account_service),
    store: SessionStore = Depends(get_session_store),
):
    """Exchange the authorization code and link the account"""
    try:
        expected = store.settings.oauth_state
        if not expected:
            raise ValidationError("No OAuth flow in progress; call /authorize first", "state")
        if not request.state or not secrets.compare_digest(request.state, expected):
            raise ValidationError("OAuth state mismatch", "state")

        account = service.link_account(request.user_id, request.code)
        store.update_settings(oauth_state=None)
        return account.to_dict()
    except ServiceError as e:
        raise _http_error(e)


@router.get("")
def list_accounts(
    user_id: str = Query(...),
    service: AccountService = Depends(get_account_service),
):
    return [account.to_dict() for account in service.list_accounts(user_id)]


@router.post("/{account_id}/refresh")
def refresh_account_token(
    account_id: int = Path(...),
    user_id: str = Query(...),
    service: AccountService = Depends(get_account_service),
):
    """Refresh the account's token if it is close to expiry"""
    try:
        return service.ensure_fresh_token(account_id, user_id).to_dict()
    except ServiceError as e:
        raise _http_error(e)


@router.delete("/{account_id}")
def unlink_account(
    account_id: int = Path(...),
    user_id: str = Query(...),
    service: AccountService = Depends(get_account_service),
):
    try:
        return service.unlink_account(account_id, user_id).to_dict()
    except ServiceError as e:
        raise _http_error(e)
