"""Unit tests for core/config.py -- SECRET_KEY policy and token lifetimes."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings


def test_defaults():
    settings = Settings(debug=True, secret_key="k" * 32)
    assert settings.access_token_expire_seconds == 3600
    assert settings.refresh_token_expire_days == 60


def test_production_requires_secret_key():
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(debug=False, secret_key="")


def test_debug_generates_secret_key():
    settings = Settings(debug=True, secret_key="")
    assert len(settings.secret_key) == 64


def test_short_secret_key_rejected():
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(debug=True, secret_key="too-short")


@pytest.mark.parametrize("field", ["access_token_expire_seconds", "refresh_token_expire_days"])
def test_non_positive_lifetimes_rejected(field):
    with pytest.raises(ValidationError):
        Settings(debug=True, secret_key="k" * 32, **{field: 0})
