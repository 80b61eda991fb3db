"""
auth/bearer.py -- Authorization header parsing.

Only the exact, case-sensitive "Bearer " prefix (one space) is accepted.
Leniency here (lower-case scheme, extra whitespace) would let two different
header spellings name the same token, which complicates log correlation and
buys nothing for well-behaved clients.

Layer rule: no imports from api/. The FastAPI glue lives in
auth/dependencies.py.
"""

from __future__ import annotations

from auth.errors import AuthorizationHeaderMalformed, AuthorizationHeaderMissing

BEARER_PREFIX = "Bearer "


def get_bearer_token(authorization: str | None) -> str:
    """Return the raw token from an `Authorization: Bearer <token>` header value.

    Raises AuthorizationHeaderMissing for a missing or empty header and
    AuthorizationHeaderMalformed for any other scheme or an empty token.
    """
    if not authorization:
        raise AuthorizationHeaderMissing()
    if not authorization.startswith(BEARER_PREFIX):
        raise AuthorizationHeaderMalformed()
    token = authorization[len(BEARER_PREFIX) :]
    if not token:
        raise AuthorizationHeaderMalformed()
    return token
