"""
api/routes/auth.py -- Session credential endpoints.

Routes:
  POST /api/login    -- email + password; returns access token + refresh token
  POST /api/refresh  -- Authorization: Bearer <refresh token>; returns a new access token
  POST /api/revoke   -- Authorization: Bearer <refresh token>; revokes it, 204

Security:
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Every credential failure returns the same 401 body (see auth/dependencies.py).
  Cache-Control: no-store on every response that carries a token.

Concurrency:
  Handlers are plain `def` so FastAPI runs them in its threadpool. bcrypt
  verification takes hundreds of milliseconds by design and must not block
  the event loop; the store calls are blocking too.

Refresh tokens are not rotated: /api/refresh leaves the presented token
valid until it expires or is revoked.
"""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, RefreshResponse
from auth.dependencies import get_refresh_record, get_request_token, unauthorized
from auth.errors import CredentialMismatch, RefreshTokenNotFound
from auth.models import RefreshTokenRecord
from auth.passwords import authenticate_user
from auth.refresh import issue_refresh_token, revoke_refresh_token
from auth.store import UserStore
from auth.tokens import clamp_access_token_ttl, create_access_token
from core.config import Settings

# Auth policy:
# - POST /api/login:   public -- the credential exchange itself
# - POST /api/refresh: refresh token (get_refresh_record)
# - POST /api/revoke:  refresh token, existence only -- revoked/expired tokens may be revoked again
router = APIRouter()


def _no_store(resp: Response) -> Response:
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; issue both credentials.

    The access token lifetime is the client's expires_in_seconds clamped to
    the configured maximum. The refresh token lives for
    refresh_token_expire_days.
    """
    settings: Settings = request.app.state.settings
    user_store: UserStore = request.app.state.user_store
    try:
        user = authenticate_user(user_store, body.email, body.password)
    except CredentialMismatch as exc:
        raise unauthorized(request, exc) from None

    expires_in = clamp_access_token_ttl(body.expires_in_seconds, settings.access_token_expire_seconds)
    token = create_access_token(user.id, settings.secret_key, expires_in)
    refresh_token = issue_refresh_token(
        user_store,
        user.id,
        timedelta(days=settings.refresh_token_expire_days),
    )
    content = LoginResponse(
        id=user.id,
        email=user.email,
        created_at=user.created_at,
        updated_at=user.updated_at,
        token=token,
        refresh_token=refresh_token,
    )
    return _no_store(JSONResponse(status_code=200, content=content.model_dump(mode="json")))


@router.post("/refresh", response_model=RefreshResponse)
def refresh(request: Request, record: RefreshTokenRecord = Depends(get_refresh_record)) -> JSONResponse:
    """Mint a fresh access token for the owner of a valid refresh token.

    The new token always gets the full configured lifetime; there is no
    client-supplied expiry on this route.
    """
    settings: Settings = request.app.state.settings
    token = create_access_token(
        record.user_id,
        settings.secret_key,
        timedelta(seconds=settings.access_token_expire_seconds),
    )
    return _no_store(JSONResponse(status_code=200, content=RefreshResponse(token=token).model_dump()))


@router.post("/revoke", status_code=204)
def revoke(request: Request, token: str = Depends(get_request_token)) -> Response:
    """Revoke a refresh token (logout). Repeating the call is harmless."""
    user_store: UserStore = request.app.state.user_store
    try:
        revoke_refresh_token(user_store, token)
    except RefreshTokenNotFound as exc:
        raise unauthorized(request, exc) from None
    return Response(status_code=204)
