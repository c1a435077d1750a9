"""
tests/conftest.py -- Shared test fixtures for userdir integration tests.

This module provides:
  - _make_test_stores(): isolated in-memory user + session stores
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - web_client: TestClient with follow_redirects=False, anonymous
  - logged_in_client: web_client after a successful POST /login
  - user_store: the UserStore behind the current client

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the user store because TestClient runs route handlers in a thread pool and
SQLAlchemy opens a connection per call. Plain :memory: DBs are per-connection
and would present a blank schema to each worker thread. The session store
holds one sqlite3 connection, so plain :memory: works there.

DEBUG and IMAGES_DIR must be set before any app import: get_settings() is a
singleton, auth.tokens reads it at import, and asgi.py mounts /images from it.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any auth/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("IMAGES_DIR", tempfile.mkdtemp(prefix="userdir-images-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import SingletonThreadPool

from asgi import app
from auth.models import User
from auth.store import UserStore
from core.config import get_settings
from sessions.store import SessionStore
from tests.helpers import TEST_PASSWORD, TEST_USERNAME, login

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores() -> tuple[UserStore, SessionStore]:
    """Create a fresh named shared-memory user store and an in-memory session store."""
    db_url = f"sqlite:///file:test_users_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    return UserStore(db_url=db_url, poolclass=SingletonThreadPool), SessionStore(":memory:")


def _patch_lifespan(user_store: UserStore, session_store: SessionStore):
    """Return an async context manager that replaces the real lifespan.

    The purge_task is a long-sleeping coroutine so shutdown has a real
    asyncio.Task to cancel.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        settings = get_settings()
        settings.upload_dir.mkdir(parents=True, exist_ok=True)
        app.state.upload_dir = settings.upload_dir
        app.state.user_store = user_store
        app.state.session_store = session_store
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures -- one TestClient per test so sessions and rows never leak
# ---------------------------------------------------------------------------


@pytest.fixture
def stores() -> Generator[tuple[UserStore, SessionStore], None, None]:
    user_store, session_store = _make_test_stores()
    user_store.create_user(User(username=TEST_USERNAME, password=TEST_PASSWORD))
    yield user_store, session_store
    user_store.close()
    session_store.close()


@pytest.fixture
def user_store(stores) -> UserStore:
    return stores[0]


@pytest.fixture
def web_client(stores) -> Generator[TestClient, None, None]:
    """Yield an anonymous TestClient for web route integration tests.

    follow_redirects=False is essential: we assert on redirect *locations*,
    which are invisible once the client follows the redirect.
    """
    app.router.lifespan_context = _patch_lifespan(*stores)
    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as client:
        yield client


@pytest.fixture
def logged_in_client(web_client: TestClient) -> TestClient:
    resp = login(web_client)
    assert resp.status_code == 302, f"login failed: {resp.status_code} {resp.text}"
    return web_client
