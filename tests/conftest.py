"""
tests/conftest.py -- Shared test fixtures for tasktrack unit and integration tests.

This module provides:
  - make_engine(): a fresh named shared-memory SQLite engine per call
  - _patch_lifespan(): wires test services into app.state, bypassing real startup
  - engine / pool / hasher / tokens: unit-test building blocks
  - api_client: TestClient against the real app with isolated in-memory stores
  - register_and_login(): helper that returns (token, user_id) for a new account

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool and
AccountService calls the store through asyncio.to_thread(). Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

The environment must be set before any api/auth/core import: get_settings()
is cached on first call, and api.limiter reads it at import time.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set env before any tasktrack import so the cached Settings see it.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789abcdef")
os.environ.setdefault("BCRYPT_ROUNDS", "4")  # minimum cost keeps the suite fast
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from api.main import app
from api.services import AppServices, build_services
from auth.passwords import CredentialHasher
from auth.tokens import TokenService
from core.config import get_settings
from core.db import create_db_engine
from core.workers import CpuPool

TEST_SECRET = os.environ["SECRET_KEY"]


# ---------------------------------------------------------------------------
# Engine / service helpers
# ---------------------------------------------------------------------------


def _memory_url(name: str) -> str:
    return f"sqlite:///file:{name}?mode=memory&cache=shared&uri=true"


def make_engine(prefix: str = "test") -> Engine:
    """Create an engine on a uniquely named shared-memory database."""
    return create_db_engine(_memory_url(f"{prefix}_{uuid.uuid4().hex}"))


def _patch_lifespan(services: AppServices):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-built test services into app.state so TestClient routes see an
    isolated in-memory database rather than the configured DATABASE_URL.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.services = services
        yield

    return test_lifespan


def register_and_login(client: TestClient, email: str | None = None, password: str = "password123") -> tuple[str, str]:
    """Register a fresh account and log in. Returns (token, user_id)."""
    email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
    resp = client.post("/register", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = client.post("/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    return data["token"], data["user"]["id"]


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    eng = make_engine()
    yield eng
    eng.dispose()


@pytest.fixture
def pool() -> Generator[CpuPool, None, None]:
    p = CpuPool(max_workers=2)
    yield p
    p.close()


@pytest.fixture(scope="session")
def hasher() -> CredentialHasher:
    return CredentialHasher(rounds=4)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret_key=TEST_SECRET, ttl_seconds=3600)


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers, middleware and exception handlers but use an
    isolated in-memory database.
    """
    services = build_services(get_settings(), db_url=_memory_url(f"test_api_{uuid.uuid4().hex}"))
    app.router.lifespan_context = _patch_lifespan(services)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    services.close()
