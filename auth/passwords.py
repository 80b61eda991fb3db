"""
auth/passwords.py -- Password hashing and login verification.

Security design decisions:
  bcrypt, used directly (no passlib wrapper). Its cost factor makes every
  guess expensive, which is what low-entropy secrets need. gensalt() draws a
  fresh 128-bit salt per call, so two hashes of the same password never match
  and precomputed tables are useless.

  bcrypt only reads the first 72 bytes of input, and bcrypt 5.x refuses longer
  input outright. hash_password() rejects such passwords up front with
  ValueError; the API layer validates the same limit so users get a 422, not
  a 500.

  verify_password() raises CredentialMismatch for both a wrong password and a
  hash bcrypt cannot parse. Callers cannot tell the two apart -- only the
  DEBUG log can.

  _DUMMY_HASH enables timing equalization in authenticate_user(): an unknown
  email still costs one full bcrypt verification, so response time does not
  reveal whether an account exists.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import bcrypt

from auth.errors import CredentialMismatch, HashingFailure

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("chirpy.auth")

BCRYPT_ROUNDS = 12
MAX_PASSWORD_BYTES = 72


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Raises ValueError if the password is longer than 72 bytes once UTF-8
    encoded. Raises HashingFailure if the backend cannot produce a salt or
    hash (entropy source or memory exhausted).
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    try:
        hashed = bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    except (OSError, MemoryError, RuntimeError) as exc:
        raise HashingFailure("bcrypt could not hash the password") from exc
    return hashed.decode("utf-8")


def verify_password(plain: str, hashed: str) -> None:
    """Check a plaintext password against a stored bcrypt hash.

    bcrypt.checkpw() compares in constant time. Returns None on a match and
    raises CredentialMismatch otherwise. A plaintext over MAX_PASSWORD_BYTES
    never matches: no stored hash was made from one, and bcrypt 4.x would
    otherwise compare only its first 72 bytes.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise CredentialMismatch()
    try:
        matched = bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        logger.debug("Stored password hash could not be verified")
        raise CredentialMismatch() from None
    if not matched:
        raise CredentialMismatch()


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("chirpy_timing_dummy")


def authenticate_user(store: UserStore, email: str, password: str) -> User:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the account exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as a real check)
    - Wrong password: bcrypt runs against the real hash

    Returns the User on success, raises CredentialMismatch on any failure.
    """
    user = store.get_by_email(email)
    if user is None:
        # Equalize timing -- do NOT return early before running bcrypt
        try:
            verify_password(password, _DUMMY_HASH)
        except CredentialMismatch:
            pass
        raise CredentialMismatch()
    verify_password(password, user.hashed_password)
    return user
