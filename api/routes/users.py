"""
api/routes/users.py -- Account endpoints.

Routes:
  POST /api/users     -- register with email + password (public)
  GET  /api/users/me  -- the account named by the access token (requires auth)

Registration is the only caller of hash_password(). The handler is a plain
`def` so bcrypt runs in FastAPI's threadpool.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError

from api.models import UserCreate, UserResponse
from auth.dependencies import get_current_user
from auth.models import User
from auth.passwords import hash_password
from auth.store import UserStore

# Auth policy:
# - POST /api/users:    public -- account creation
# - GET  /api/users/me: requires auth (get_current_user)
router = APIRouter()


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(request: Request, body: UserCreate) -> UserResponse:
    """Create an account. 409 if the email is already registered."""
    user_store: UserStore = request.app.state.user_store
    hashed = hash_password(body.password)
    try:
        user = user_store.create_user(body.email, hashed)
    except IntegrityError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": "A user with that email already exists."},
        ) from exc
    return UserResponse.from_user(user)


@router.get("/users/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the account of the currently authenticated user."""
    return UserResponse.from_user(current_user)
