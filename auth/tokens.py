"""
auth/tokens.py -- Access token (JWT) issuance and validation.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry exactly four claims -- iss, sub
       (user UUID), iat and exp -- and nothing else. They are never stored:
       validity is decided by the signature and the embedded expiry alone, so
       per-request validation needs no database round trip. The trade-off is
       that an access token cannot be revoked before it expires; lifetimes are
       therefore capped at one hour (clamp_access_token_ttl).

  Secret: every function takes the signing secret as an argument. This module
       never reads configuration -- the API layer passes
       app.state.settings.secret_key in.

  Clock: expiry is checked here against an injectable `now` rather than by
       python-jose's wall clock, so tests can simulate the passage of time.

  Failure classes: a token that cannot even be parsed is TokenMalformed; one
       that parses but does not verify under the secret (or uses another alg)
       is TokenSignatureInvalid; bad or missing claims are TokenMalformed;
       a past exp is TokenExpired. All four are Unauthenticated -- the
       distinction exists for logs only.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.errors import TokenExpired, TokenMalformed, TokenSignatureInvalid
from auth.models import AccessTokenClaims

ISSUER = "chirpy"
ALGORITHM = "HS256"
MAX_ACCESS_TOKEN_SECONDS = 3600

_REQUIRED_CLAIMS = frozenset({"iss", "sub", "iat", "exp"})

# Expiry is verified below against the caller's clock, not python-jose's.
_DECODE_OPTIONS = {"verify_exp": False, "verify_aud": False}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clamp_access_token_ttl(
    requested_seconds: int | None,
    maximum_seconds: int = MAX_ACCESS_TOKEN_SECONDS,
) -> timedelta:
    """Resolve a client-requested access-token lifetime.

    The request is advisory: missing, zero or negative values get the
    maximum, and anything above the maximum is clamped down to it.
    """
    if requested_seconds is None or requested_seconds <= 0 or requested_seconds > maximum_seconds:
        return timedelta(seconds=maximum_seconds)
    return timedelta(seconds=requested_seconds)


def create_access_token(
    subject: UUID,
    secret: str,
    expires_in: timedelta,
    *,
    now: datetime | None = None,
) -> str:
    """Encode a signed JWT asserting `subject` until now + expires_in.

    Timestamps are truncated to whole seconds, so the output is
    deterministic for identical subject, secret, lifetime and `now`.
    """
    if expires_in <= timedelta(0):
        raise ValueError("expires_in must be positive")
    issued_at = int((now or _utcnow()).timestamp())
    payload = {
        "iss": ISSUER,
        "sub": str(subject),
        "iat": issued_at,
        "exp": issued_at + int(expires_in.total_seconds()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_access_token(token: str, secret: str, *, now: datetime | None = None) -> AccessTokenClaims:
    """Verify a JWT and return its typed claims.

    Raises TokenMalformed, TokenSignatureInvalid or TokenExpired.
    """
    try:
        jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise TokenMalformed("token is not a decodable JWT") from exc

    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM], issuer=ISSUER, options=_DECODE_OPTIONS)
    except JWTClaimsError as exc:
        raise TokenMalformed(str(exc)) from exc
    except JWTError as exc:
        raise TokenSignatureInvalid("signature verification failed") from exc

    missing = _REQUIRED_CLAIMS - payload.keys()
    if missing:
        raise TokenMalformed(f"missing claims: {sorted(missing)}")
    issued_at, expires_at = payload["iat"], payload["exp"]
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in (issued_at, expires_at)):
        raise TokenMalformed("iat and exp must be integers")

    current = now or _utcnow()
    if current.timestamp() >= expires_at:
        raise TokenExpired("token expired")

    try:
        subject = UUID(payload["sub"])
    except (TypeError, ValueError, AttributeError) as exc:
        raise TokenMalformed("subject is not a user id") from exc

    try:
        issued = datetime.fromtimestamp(issued_at, tz=timezone.utc)
        expires = datetime.fromtimestamp(expires_at, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise TokenMalformed("iat or exp out of range") from exc

    return AccessTokenClaims(issuer=payload["iss"], subject=subject, issued_at=issued, expires_at=expires)


def validate_access_token(token: str, secret: str, *, now: datetime | None = None) -> UUID:
    """Return the user id asserted by a valid access token."""
    return decode_access_token(token, secret, now=now).subject
