"""
tests/conftest.py -- Shared test fixtures for HelpBoard tests.

This module provides:
  - make_settings(): Settings for tests (cheap bcrypt, fixed secret, isolated DB)
  - _patch_lifespan(): wires test components into app.state, bypassing real startup
  - api_client: TestClient for API integration tests
  - web_client: TestClient with follow_redirects=False for route gate tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

ENVIRONMENT and JWT_SECRET are set before any app import so nothing built at
import time can see a production configuration.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any core/auth/api import.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET", "test-secret-0123456789abcdef0123456789abcdef")

import pytest
from fastapi.testclient import TestClient

from api.main import close_state, init_state
from asgi import app
from core.config import Settings

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
TEST_PASSWORD = "Secret1!pass"


def memory_db_url(suffix: str) -> str:
    return f"sqlite:///file:test_helpboard_{suffix}_{uuid.uuid4().hex[:8]}?mode=memory&cache=shared&uri=true"


def make_settings(**overrides) -> Settings:
    """Settings for tests: bcrypt cost 4 (the minimum) keeps hashing fast."""
    values = {
        "environment": "test",
        "jwt_secret": TEST_SECRET,
        "bcrypt_rounds": 4,
        "database_url": memory_db_url("unit"),
    }
    values.update(overrides)
    return Settings(**values)


def _patch_lifespan(settings: Settings):
    """Return an async context manager that replaces the real lifespan.

    Builds the same components the production lifespan builds, from the test
    Settings, so routes see isolated in-memory stores.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        init_state(app, settings)
        yield
        close_state(app)

    return test_lifespan


@pytest.fixture
def settings() -> Settings:
    return make_settings()


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient over the real app with an isolated database.

    The app's components are available as client.app.state.* once the
    client has started (tokens, hasher, user_store, post_store, envelope).
    """
    settings = make_settings(database_url=memory_db_url("api"))
    app.router.lifespan_context = _patch_lifespan(settings)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client


@pytest.fixture(scope="module")
def web_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient for navigation tests.

    follow_redirects=False is essential: we assert on redirect *locations*
    (302 to /login), which are invisible once the client follows them.
    """
    settings = make_settings(database_url=memory_db_url("web"))
    app.router.lifespan_context = _patch_lifespan(settings)

    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as client:
        yield client


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def signup(client: TestClient, email: str, name: str = "Jo Tester", password: str = TEST_PASSWORD):
    return client.post("/api/auth/signup", json={"name": name, "email": email, "password": password})


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@test.com"
