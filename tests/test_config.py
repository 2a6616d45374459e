"""
tests/test_config.py -- Settings policy and startup behaviour.

Covers:
  - a missing or short SECRET_KEY is a ConfigurationError
  - defaults match the session cookie contract (24h, Secure)
  - the real lifespan refuses to start without a secret, and wires the
    codec and stores into app.state when configured
"""

from __future__ import annotations

import asyncio

import pytest
from fastapi import FastAPI

from api.main import lifespan
from auth.store import UserStore
from auth.tokens import JWTTokenCodec
from core.config import get_settings, load_settings
from core.errors import ConfigurationError
from posts.store import PostStore

GOOD_SECRET = "s" * 32


class TestSettings:
    def test_missing_secret_is_fatal(self) -> None:
        with pytest.raises(ConfigurationError):
            load_settings(secret_key="")

    def test_short_secret_is_fatal(self) -> None:
        with pytest.raises(ConfigurationError):
            load_settings(secret_key="too-short")

    def test_non_positive_lifetime_is_fatal(self) -> None:
        with pytest.raises(ConfigurationError):
            load_settings(secret_key=GOOD_SECRET, token_expire_seconds=0)

    def test_defaults(self) -> None:
        settings = load_settings(secret_key=GOOD_SECRET)
        assert settings.session_cookie_name == "sessionToken"
        assert settings.token_expire_seconds == 86400
        assert settings.secure_cookies is True
        assert settings.unify_login_errors is False

    def test_reads_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("SECRET_KEY", "e" * 40)
        monkeypatch.setenv("UNIFY_LOGIN_ERRORS", "true")
        settings = load_settings()
        assert settings.secret_key == "e" * 40
        assert settings.unify_login_errors is True


async def _run_lifespan(app: FastAPI) -> None:
    async with lifespan(app):
        pass


class TestLifespan:
    @pytest.fixture(autouse=True)
    def _isolated_settings(self, monkeypatch, tmp_path):
        # No .env pickup, fresh settings singleton on both sides of the test.
        monkeypatch.chdir(tmp_path)
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_startup_without_secret_fails(self, monkeypatch) -> None:
        monkeypatch.delenv("SECRET_KEY", raising=False)
        with pytest.raises(ConfigurationError):
            asyncio.run(_run_lifespan(FastAPI()))

    def test_startup_wires_state(self, monkeypatch, db_url) -> None:
        monkeypatch.setenv("SECRET_KEY", GOOD_SECRET)
        monkeypatch.setenv("DATABASE_URL", db_url)
        app = FastAPI()
        asyncio.run(_run_lifespan(app))
        assert isinstance(app.state.token_codec, JWTTokenCodec)
        assert isinstance(app.state.user_store, UserStore)
        assert isinstance(app.state.post_store, PostStore)
        assert app.state.settings.database_url == db_url
