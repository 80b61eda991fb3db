"""
auth/errors.py -- Exception taxonomy for the auth package.

Every credential failure derives from Unauthenticated. The HTTP layer maps the
whole subtree to one 401 response, so the specific class only ever reaches the
logs. That keeps "unknown email", "wrong password", "expired token" and
"revoked token" indistinguishable to a client probing for valid accounts or
tokens.

HashingFailure is deliberately NOT an Unauthenticated: it is a server fault
and must surface as a 500, never as "wrong password".

Layer rule: no imports from api/. These are plain exceptions with no HTTP
knowledge.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all auth package errors."""


class Unauthenticated(AuthError):
    """The caller could not be authenticated. Always maps to HTTP 401."""


class HashingFailure(AuthError):
    """The password hashing backend failed (resource or entropy exhaustion)."""


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------


class CredentialMismatch(Unauthenticated):
    """Wrong password, unknown account, or a stored hash that cannot be verified."""


# ---------------------------------------------------------------------------
# Access tokens
# ---------------------------------------------------------------------------


class TokenValidationError(Unauthenticated):
    pass


class TokenSignatureInvalid(TokenValidationError):
    pass


class TokenExpired(TokenValidationError):
    pass


class TokenMalformed(TokenValidationError):
    """Undecodable token, missing/invalid claims, or a subject that is not a UUID."""


# ---------------------------------------------------------------------------
# Refresh tokens
# ---------------------------------------------------------------------------


class RefreshTokenError(Unauthenticated):
    pass


class RefreshTokenNotFound(RefreshTokenError):
    pass


class RefreshTokenExpired(RefreshTokenError):
    pass


class RefreshTokenRevoked(RefreshTokenError):
    pass


# ---------------------------------------------------------------------------
# Authorization header
# ---------------------------------------------------------------------------


class AuthorizationHeaderError(Unauthenticated):
    pass


class AuthorizationHeaderMissing(AuthorizationHeaderError):
    pass


class AuthorizationHeaderMalformed(AuthorizationHeaderError):
    pass
