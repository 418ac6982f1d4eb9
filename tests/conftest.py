"""
tests/conftest.py -- Shared test fixtures for the sign-in service.

This module provides:
  - make_store(): isolated named shared-memory SQLite AuthStore
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - store: function-scoped AuthStore with no users
  - alice_store: (store, user_id) with user "alice" / "Secret12"
  - api_client: (client, store, user_id) TestClient over the real app

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

Environment variables must be set before any core/auth/api import so
get_settings() sees them on its first (cached) call.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any core/auth/api import -- get_settings() is cached.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.passwords import hash_password
from auth.store import AuthStore

ALICE_PASSWORD = "Secret12"

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_store() -> AuthStore:
    """Create an isolated named shared-memory SQLite store.

    A fresh UUID in the name keeps every store's data private to its test.
    """
    return AuthStore(db_url=f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(auth_store: AuthStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.auth_store = auth_store
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[AuthStore, None, None]:
    s = make_store()
    yield s
    s.close()


@pytest.fixture
def alice_store(store: AuthStore) -> tuple[AuthStore, str]:
    """Store holding one user, alice, whose password is Secret12."""
    uid = store.create_user("alice", hash_password(ALICE_PASSWORD))
    return store, uid


@pytest.fixture
def api_client(alice_store: tuple[AuthStore, str]) -> Generator[tuple[TestClient, AuthStore, str], None, None]:
    """Yield (client, store, alice_id) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers but use an isolated in-memory store.
    """
    auth_store, uid = alice_store
    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(auth_store)

    try:
        with TestClient(app, raise_server_exceptions=True) as client:
            yield client, auth_store, uid
    finally:
        app.router.lifespan_context = original_lifespan
