"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Inkwell happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead,
or better, receive the Settings object from app.state.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  load_settings(): wraps Settings() and turns any pydantic validation failure
      into ConfigurationError, so callers deal with one startup-fatal type.

Security notes:
  A missing SECRET_KEY is a hard startup failure. There is no auto-generated
  fallback: a random key would silently log everyone out on every restart.

  SECRET_KEY shorter than 32 chars is rejected outright. JWT HS256 signing
  relies on key entropy.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
auth/, or posts/.
"""

import logging
from functools import lru_cache

from pydantic import ValidationError as PydanticValidationError
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigurationError

logger = logging.getLogger("inkwell.config")

_MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field except secret_key has a default. The model_validator enforces
    the signing-secret policy at construction time.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured"; the validator rejects it.
    secret_key: str = ""
    database_url: str = "sqlite:///inkwell.db"
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    session_cookie_name: str = "sessionToken"
    token_expire_seconds: int = 24 * 60 * 60
    # Only switch off for plain-HTTP local development.
    secure_cookies: bool = True

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    # False keeps the "user not found" / "invalid credentials" distinction.
    unify_login_errors: bool = False

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Refuse to build settings without a usable signing secret."""
        if not self.secret_key:
            raise ValueError("SECRET_KEY is required. Set SECRET_KEY in your environment or .env file.")
        if len(self.secret_key) < _MIN_SECRET_LENGTH:
            raise ValueError(f"SECRET_KEY must be at least {_MIN_SECRET_LENGTH} characters.")
        if self.token_expire_seconds <= 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be positive.")
        return self


def load_settings(**overrides) -> Settings:
    """Build Settings, raising ConfigurationError if the environment is unusable.

    Keyword overrides take precedence over environment variables, which is
    handy for the CLI and for tests.
    """
    try:
        return Settings(**overrides)
    except PydanticValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        logger.error("Invalid configuration: %s", messages)
        raise ConfigurationError(messages) from exc


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return load_settings()
