"""Unit tests for auth/tokens.py -- access token issuance and validation.

Covers:
- valid before expiry, TokenExpired from the expiry second onwards
- wrong secret, tampered payload and disallowed alg -> TokenSignatureInvalid
- undecodable tokens, bad claims and non-UUID subjects -> TokenMalformed
- claim layout and determinism
- lifetime clamping policy
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest
from jose import jwt

from auth.errors import TokenExpired, TokenMalformed, TokenSignatureInvalid, TokenValidationError
from auth.tokens import (
    ISSUER,
    clamp_access_token_ttl,
    create_access_token,
    decode_access_token,
    validate_access_token,
)

ISSUED = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
HOUR = timedelta(hours=1)


@pytest.fixture
def subject() -> UUID:
    return uuid4()


def _raw(secret: str, **claims) -> str:
    """Sign an arbitrary claim set the way create_access_token() would."""
    return jwt.encode(claims, secret, algorithm="HS256")


class TestRoundTrip:
    def test_returns_subject_before_expiry(self, subject, secret):
        token = create_access_token(subject, secret, HOUR, now=ISSUED)
        assert validate_access_token(token, secret, now=ISSUED) == subject
        assert validate_access_token(token, secret, now=ISSUED + HOUR - timedelta(seconds=1)) == subject

    def test_expired_at_expiry_instant(self, subject, secret):
        token = create_access_token(subject, secret, HOUR, now=ISSUED)
        with pytest.raises(TokenExpired):
            validate_access_token(token, secret, now=ISSUED + HOUR)

    def test_expired_after_expiry(self, subject, secret):
        token = create_access_token(subject, secret, HOUR, now=ISSUED)
        with pytest.raises(TokenExpired):
            validate_access_token(token, secret, now=ISSUED + HOUR + timedelta(seconds=1))

    def test_defaults_to_wall_clock(self, subject, secret):
        token = create_access_token(subject, secret, timedelta(minutes=5))
        assert validate_access_token(token, secret) == subject

    def test_decoded_claims(self, subject, secret):
        token = create_access_token(subject, secret, HOUR, now=ISSUED)
        claims = decode_access_token(token, secret, now=ISSUED)
        assert claims.issuer == ISSUER
        assert claims.subject == subject
        assert claims.issued_at == ISSUED
        assert claims.expires_at == ISSUED + HOUR

    def test_wire_claims_are_exactly_iss_sub_iat_exp(self, subject, secret):
        token = create_access_token(subject, secret, HOUR, now=ISSUED)
        claims = jwt.get_unverified_claims(token)
        assert claims == {
            "iss": "chirpy",
            "sub": str(subject),
            "iat": int(ISSUED.timestamp()),
            "exp": int((ISSUED + HOUR).timestamp()),
        }
        assert jwt.get_unverified_header(token)["alg"] == "HS256"

    def test_deterministic_for_same_inputs(self, subject, secret):
        first = create_access_token(subject, secret, HOUR, now=ISSUED)
        second = create_access_token(subject, secret, HOUR, now=ISSUED)
        assert first == second

    @pytest.mark.parametrize("expires_in", [timedelta(0), timedelta(seconds=-5)])
    def test_non_positive_lifetime_rejected(self, subject, secret, expires_in):
        with pytest.raises(ValueError):
            create_access_token(subject, secret, expires_in, now=ISSUED)


class TestSignature:
    def test_other_secret_is_signature_mismatch(self, subject, secret):
        token = create_access_token(subject, "another-secret-" + "y" * 40, HOUR, now=ISSUED)
        with pytest.raises(TokenSignatureInvalid):
            validate_access_token(token, secret, now=ISSUED)

    def test_swapped_payload_is_signature_mismatch(self, secret):
        victim = create_access_token(uuid4(), secret, HOUR, now=ISSUED)
        attacker = create_access_token(uuid4(), secret, HOUR, now=ISSUED)
        header, _, signature = attacker.split(".")
        forged = ".".join([header, victim.split(".")[1], signature])
        with pytest.raises(TokenSignatureInvalid):
            validate_access_token(forged, secret, now=ISSUED)

    def test_other_algorithm_rejected(self, subject, secret):
        token = jwt.encode(
            {"iss": ISSUER, "sub": str(subject), "iat": 0, "exp": int((ISSUED + HOUR).timestamp())},
            secret,
            algorithm="HS512",
        )
        with pytest.raises(TokenSignatureInvalid):
            validate_access_token(token, secret, now=ISSUED)

    def test_failures_share_one_base_class(self):
        for exc in (TokenSignatureInvalid, TokenExpired, TokenMalformed):
            assert issubclass(exc, TokenValidationError)


class TestMalformed:
    @pytest.mark.parametrize("token", ["", "abc123", "not.a.jwt", "a.b.c.d"])
    def test_undecodable_token(self, token, secret):
        with pytest.raises(TokenMalformed):
            validate_access_token(token, secret, now=ISSUED)

    def test_non_uuid_subject(self, secret):
        exp = int((ISSUED + HOUR).timestamp())
        token = _raw(secret, iss=ISSUER, sub="walt", iat=int(ISSUED.timestamp()), exp=exp)
        with pytest.raises(TokenMalformed):
            validate_access_token(token, secret, now=ISSUED)

    def test_wrong_issuer(self, subject, secret):
        exp = int((ISSUED + HOUR).timestamp())
        token = _raw(secret, iss="someone-else", sub=str(subject), iat=int(ISSUED.timestamp()), exp=exp)
        with pytest.raises(TokenMalformed):
            validate_access_token(token, secret, now=ISSUED)

    @pytest.mark.parametrize("dropped", ["iss", "sub", "iat", "exp"])
    def test_missing_claim(self, subject, secret, dropped):
        claims = {
            "iss": ISSUER,
            "sub": str(subject),
            "iat": int(ISSUED.timestamp()),
            "exp": int((ISSUED + HOUR).timestamp()),
        }
        del claims[dropped]
        with pytest.raises(TokenMalformed):
            validate_access_token(_raw(secret, **claims), secret, now=ISSUED)

    def test_non_integer_expiry(self, subject, secret):
        token = _raw(secret, iss=ISSUER, sub=str(subject), iat=int(ISSUED.timestamp()), exp="tomorrow")
        with pytest.raises(TokenMalformed):
            validate_access_token(token, secret, now=ISSUED)

    @pytest.mark.parametrize("field", ["iat", "exp"])
    def test_timestamp_out_of_datetime_range(self, subject, secret, field):
        claims = {
            "iss": ISSUER,
            "sub": str(subject),
            "iat": int(ISSUED.timestamp()),
            "exp": int((ISSUED + HOUR).timestamp()),
        }
        claims[field] = 10**20
        with pytest.raises(TokenMalformed):
            validate_access_token(_raw(secret, **claims), secret, now=ISSUED)


class TestClamp:
    @pytest.mark.parametrize("requested", [None, 0, -30, 3601, 7200])
    def test_defaults_and_caps_to_one_hour(self, requested):
        assert clamp_access_token_ttl(requested) == HOUR

    @pytest.mark.parametrize("requested", [1, 60, 3600])
    def test_honours_requests_within_limit(self, requested):
        assert clamp_access_token_ttl(requested) == timedelta(seconds=requested)

    def test_custom_maximum(self):
        assert clamp_access_token_ttl(None, maximum_seconds=600) == timedelta(minutes=10)
        assert clamp_access_token_ttl(900, maximum_seconds=600) == timedelta(minutes=10)
