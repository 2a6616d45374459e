"""
tests/conftest.py -- Shared test fixtures for Inkwell.

This module provides:
  - db_url: a unique named shared-memory SQLite URL per test
  - user_store / post_store: repositories on that database
  - codec: a JWTTokenCodec signed with the test secret
  - app_settings: Settings for the app under test (override settings_overrides
    in a test class or module to change them)
  - web_client: TestClient with follow_redirects=False and a patched lifespan
  - signup / session_cookie: register a user through the real routes and
    build the Cookie header that carries their session

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

Session cookies are sent as an explicit Cookie header. The app marks the
cookie Secure, so the client's own cookie jar never replays it over the
plain-HTTP test transport; every request carries exactly the identity the
test chose.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from http.cookies import SimpleCookie

# Set before any app import so get_settings() never sees an unset secret.
TEST_SECRET = "inkwell-test-secret-key-0123456789abcdef"
os.environ.setdefault("SECRET_KEY", TEST_SECRET)

import pytest
from fastapi.testclient import TestClient

from asgi import app
from auth.store import UserStore
from auth.tokens import JWTTokenCodec
from core.config import Settings, load_settings
from posts.store import PostStore

# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture
def db_url() -> str:
    return f"sqlite:///file:inkwell_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


@pytest.fixture
def user_store(db_url: str) -> Generator[UserStore, None, None]:
    store = UserStore(db_url)
    yield store
    store.close()


@pytest.fixture
def post_store(db_url: str) -> Generator[PostStore, None, None]:
    store = PostStore(db_url)
    yield store
    store.close()


@pytest.fixture
def codec() -> JWTTokenCodec:
    return JWTTokenCodec(TEST_SECRET)


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


@pytest.fixture
def settings_overrides() -> dict:
    return {}


@pytest.fixture
def app_settings(db_url: str, settings_overrides: dict) -> Settings:
    return load_settings(secret_key=TEST_SECRET, database_url=db_url, **settings_overrides)


def _patch_lifespan(settings: Settings, user_store: UserStore, post_store: PostStore):
    """Return a lifespan that wires the test stores into app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = settings
        app.state.token_codec = JWTTokenCodec(settings.secret_key, expire_seconds=settings.token_expire_seconds)
        app.state.user_store = user_store
        app.state.post_store = post_store
        yield

    return test_lifespan


@pytest.fixture
def web_client(
    app_settings: Settings, user_store: UserStore, post_store: PostStore
) -> Generator[TestClient, None, None]:
    """TestClient over the full ASGI app (API + web UI).

    follow_redirects=False is essential: tests assert on redirect locations,
    which disappear once the client follows them.
    """
    app.router.lifespan_context = _patch_lifespan(app_settings, user_store, post_store)
    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as client:
        yield client


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------


def extract_session_token(response, cookie_name: str = "sessionToken") -> str:
    """Pull the session token out of a response's Set-Cookie header."""
    for key, value in response.headers.multi_items():
        if key.lower() == "set-cookie":
            cookie = SimpleCookie(value)
            if cookie_name in cookie:
                return cookie[cookie_name].value
    raise AssertionError(f"no {cookie_name} cookie in response")


@pytest.fixture
def session_cookie() -> Callable[[str], dict]:
    def _header(token: str) -> dict:
        return {"Cookie": f"sessionToken={token}"}

    return _header


@pytest.fixture
def signup(web_client: TestClient) -> Callable[..., str]:
    """Register through POST /register and return the issued session token."""

    def _signup(username: str, password: str = "password1") -> str:
        resp = web_client.post("/register", data={"username": username, "password": password})
        assert resp.status_code == 302, resp.text
        return extract_session_token(resp)

    return _signup


@pytest.fixture
def read_session_token() -> Callable:
    return extract_session_token
