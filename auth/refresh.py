"""
auth/refresh.py -- Opaque refresh token issuance, lookup and revocation.

Security design decisions:
  Tokens are secrets.token_hex(32): 256 bits of entropy, 64 hex chars.
  They carry no claims and are not signed. Their validity lives entirely in
  the refresh_tokens table, which makes them revocable (logout, compromise
  response) and independent of SECRET_KEY rotation.

  Acceptance requires all of: the record exists, revoked_at is unset, and
  now < expires_at. Revocation is checked before expiry, so a token that is
  both revoked and expired reports as revoked.

  Tokens are not rotated on use. The same refresh token keeps minting
  access tokens until it expires or is revoked.

  A duplicate token on insert is astronomically unlikely but handled: a new
  token is drawn and the insert retried, at most _ISSUE_ATTEMPTS times. Other
  integrity failures, such as an owner that does not exist, are raised at once.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from auth.errors import RefreshTokenExpired, RefreshTokenNotFound, RefreshTokenRevoked
from auth.models import RefreshTokenRecord

if TYPE_CHECKING:
    from auth.store import UserStore

logger = logging.getLogger("chirpy.auth")

REFRESH_TOKEN_TTL = timedelta(days=60)
_ISSUE_ATTEMPTS = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_refresh_token() -> str:
    """Return a new opaque refresh token (32 random bytes as 64 hex chars)."""
    return secrets.token_hex(32)


def issue_refresh_token(
    store: UserStore,
    owner: UUID,
    ttl: timedelta = REFRESH_TOKEN_TTL,
    *,
    now: datetime | None = None,
) -> str:
    """Create and persist a refresh token for `owner`; return the token string.

    Raises sqlalchemy.exc.IntegrityError if every attempt conflicts (which in
    practice means the owner does not exist).
    """
    if ttl <= timedelta(0):
        raise ValueError("ttl must be positive")
    stamp = now or _utcnow()
    attempt = 0
    while True:
        attempt += 1
        record = RefreshTokenRecord(
            token=generate_refresh_token(),
            user_id=owner,
            created_at=stamp,
            updated_at=stamp,
            expires_at=stamp + ttl,
        )
        try:
            store.create_refresh_token(record)
            return record.token
        except IntegrityError:
            # Only a clash on the token itself is worth a retry. Anything else
            # (an unknown owner) fails the same way every time.
            if attempt >= _ISSUE_ATTEMPTS or store.get_refresh_token(record.token) is None:
                raise
            logger.warning("Refresh token collided with an existing one (attempt %d); retrying", attempt)


def lookup_refresh_token(store: UserStore, token: str, *, now: datetime | None = None) -> RefreshTokenRecord:
    """Return the record for a currently valid refresh token.

    Raises RefreshTokenNotFound, RefreshTokenRevoked or RefreshTokenExpired.
    """
    record = store.get_refresh_token(token)
    if record is None:
        raise RefreshTokenNotFound()
    if record.is_revoked:
        raise RefreshTokenRevoked()
    if (now or _utcnow()) >= record.expires_at:
        raise RefreshTokenExpired()
    return record


def revoke_refresh_token(store: UserStore, token: str, *, now: datetime | None = None) -> None:
    """Revoke a refresh token. Idempotent for tokens that exist.

    The first revocation's timestamp is kept; later calls change nothing.
    Expired tokens can still be revoked. Raises RefreshTokenNotFound only if
    the token never existed.
    """
    if store.revoke_refresh_token(token, now or _utcnow()):
        return
    if store.get_refresh_token(token) is None:
        raise RefreshTokenNotFound()
