"""
tests/conftest.py -- Shared test fixtures for Chirpy.

This module provides:
  - store / user: an isolated in-memory UserStore with one registered account
  - _patch_lifespan(): wires test settings and store into app.state, bypassing real startup
  - api_client: TestClient over the real FastAPI app for integration tests

Design: the integration store uses a named shared-memory SQLite URI (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any api/ import so the module-level
get_settings() call auto-generates SECRET_KEY instead of raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any api/core import.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.passwords import hash_password
from auth.store import UserStore
from core.config import Settings

TEST_SECRET = "test-secret-" + "x" * 52
TEST_EMAIL = "walt@breakingbad.com"
TEST_PASSWORD = "04234"


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def secret() -> str:
    return TEST_SECRET


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    """Fresh in-memory UserStore per test."""
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def password() -> str:
    return TEST_PASSWORD


@pytest.fixture
def user(store: UserStore, password: str) -> User:
    """A registered account whose password is the `password` fixture."""
    return store.create_user(TEST_EMAIL, hash_password(password))


# ---------------------------------------------------------------------------
# Integration fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(settings: Settings, user_store: UserStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = settings
        app.state.user_store = user_store
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, Settings], None, None]:
    """Yield (client, settings) for API integration tests.

    One TestClient per test module for speed; each module gets its own
    named in-memory database so modules never see each other's accounts.
    """
    db_name = request.module.__name__.rsplit(".", 1)[-1]
    db_url = f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true"
    settings = Settings(debug=True, secret_key=TEST_SECRET, database_url=db_url)
    user_store = UserStore(db_url)

    app.router.lifespan_context = _patch_lifespan(settings, user_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, settings

    user_store.close()
