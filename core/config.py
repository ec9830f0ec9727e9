"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for TaskGate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET). Type coercion and validation are built in.

  @model_validator(mode="after"): flags the insecure signing-secret fallback.

Security notes:
  JWT_SECRET falls back to a fixed, publicly known default when unset. The
  fallback keeps the service usable out of the box, but any token signed with
  it can be forged by anyone who has read this file. The validator logs a
  warning every time settings are loaded with the default, and api/main.py
  repeats it at startup. It is a deployment problem and is not rejected here.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or tasks/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("taskgate.config")

DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'taskgate.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    jwt_secret: str = DEFAULT_JWT_SECRET
    # Tokens and the cookie carrying them share this lifetime (7 days).
    token_expire_seconds: int = 7 * 24 * 60 * 60
    secure_cookies: bool = False

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    auth_rate_limit: str = "10/minute"
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    @property
    def using_default_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET

    @model_validator(mode="after")
    def warn_on_default_secret(self) -> "Settings":
        """Log a warning when JWT_SECRET is missing or empty.

        An empty value is treated as unset and replaced with the default so
        the signing key is never the empty string.
        """
        if not self.jwt_secret:
            self.jwt_secret = DEFAULT_JWT_SECRET
        if self.using_default_secret:
            logger.warning(
                "WARNING: JWT_SECRET is not set -- tokens are signed with the built-in default key. "
                "Anyone can forge sessions. Set JWT_SECRET in your environment or .env file."
            )
        if self.token_expire_seconds <= 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
