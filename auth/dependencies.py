"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two bearer credentials arrive in the same Authorization header:
  1. Access tokens (JWT) -- protected resources. Validated statelessly with
     the signing secret from app.state.settings.
  2. Refresh tokens (opaque) -- POST /api/refresh and POST /api/revoke.
     Validated against app.state.user_store.

Every failure becomes the same HTTP 401 (UNAUTHORIZED_DETAIL). The concrete
Unauthenticated subclass is logged for diagnostics and never returned, so a
client cannot tell an expired token from a forged one or a revoked one.

Layer rule: auth/dependencies.py may import from fastapi because this module
is part of the FastAPI dependency injection system. No imports from api/.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, Request

from auth.bearer import get_bearer_token
from auth.errors import Unauthenticated
from auth.models import RefreshTokenRecord, User
from auth.refresh import lookup_refresh_token
from auth.tokens import validate_access_token

logger = logging.getLogger("chirpy.auth")

UNAUTHORIZED_DETAIL = {"code": "unauthorized", "message": "Authentication required."}
UNAUTHORIZED_HEADERS = {"WWW-Authenticate": "Bearer"}


def unauthorized(request: Request, exc: Unauthenticated) -> HTTPException:
    """Log the specific failure and return the uniform 401 exception."""
    logger.info("Unauthenticated %s %s: %s", request.method, request.url.path, type(exc).__name__)
    return HTTPException(status_code=401, detail=UNAUTHORIZED_DETAIL, headers=UNAUTHORIZED_HEADERS)


def get_request_token(request: Request) -> str:
    """Return the raw bearer token from the request's Authorization header."""
    try:
        return get_bearer_token(request.headers.get("Authorization"))
    except Unauthenticated as exc:
        raise unauthorized(request, exc) from None


def get_current_user_id(request: Request) -> UUID:
    """Require a valid access token. Returns the user id it asserts.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user_id: UUID = Depends(get_current_user_id)): ...
    """
    token = get_request_token(request)
    secret = request.app.state.settings.secret_key
    try:
        return validate_access_token(token, secret)
    except Unauthenticated as exc:
        raise unauthorized(request, exc) from None


def get_current_user(request: Request) -> User:
    """Require a valid access token for an account that still exists."""
    user_id = get_current_user_id(request)
    user = request.app.state.user_store.get_by_id(user_id)
    if user is None:
        logger.info("Access token for unknown user on %s %s", request.method, request.url.path)
        raise HTTPException(status_code=401, detail=UNAUTHORIZED_DETAIL, headers=UNAUTHORIZED_HEADERS)
    return user


def get_refresh_record(request: Request) -> RefreshTokenRecord:
    """Require a valid (present, unrevoked, unexpired) refresh token."""
    token = get_request_token(request)
    try:
        return lookup_refresh_token(request.app.state.user_store, token)
    except Unauthenticated as exc:
        raise unauthorized(request, exc) from None
