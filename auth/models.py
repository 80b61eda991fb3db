"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic beyond trivial
predicates). Stores and routes do the work.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass
class User:
    """A registered account.

    id is a random UUID4 assigned by the store at creation and never changes.
    hashed_password is a bcrypt string -- the plaintext is never stored.
    """

    id: UUID
    email: str
    hashed_password: str
    created_at: datetime
    updated_at: datetime


@dataclass
class RefreshTokenRecord:
    """Server-side state of one opaque refresh token.

    Security design:
    - token is 256 bits of randomness (hex). Its validity is decided entirely
      by this record, never by anything embedded in the token itself, so it
      survives SECRET_KEY rotation.
    - revoked_at is None until logout. Once set it is never cleared
      (revocation is monotonic).
    - Many records may share one user_id: each login opens a new session.
    """

    token: str
    user_id: UUID
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    revoked_at: datetime | None = None

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None


@dataclass(frozen=True)
class AccessTokenClaims:
    """Validated claims of a decoded access token.

    Built only by auth.tokens.decode_access_token() after signature, issuer,
    subject and expiry checks have all passed.
    """

    issuer: str
    subject: UUID
    issued_at: datetime
    expires_at: datetime
