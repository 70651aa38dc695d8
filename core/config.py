"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the dealership site happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. The
      signing secret and deployment mode are therefore fixed for the life of
      the process and treated as read-only.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved. Development mode generates a signing key with a warning;
      production mode refuses to start without one.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. JWT signing and the
  session cookie signature both rely on key entropy.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
auth/, or inventory/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("dealership.config")

_ENVIRONMENTS = ("development", "production")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults except the secret, which the validator fills in
    only for development mode.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    environment: str = "production"
    # Empty string is the sentinel for "not configured".
    secret_key: str = ""
    database_url: str = "sqlite:///dealership.db"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost", "testserver"]

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = 3600
    auth_cookie_name: str = "jwt"

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    placeholder_image: str = "/images/vehicles/no-image.png"

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in _ENVIRONMENTS:
            raise ValueError(f"ENVIRONMENT must be one of {', '.join(_ENVIRONMENTS)}")
        return v

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Development: auto-generate a random key with a warning. Tokens will
            not survive a restart, which is acceptable locally.

        Production: refuse to start if SECRET_KEY is missing.

        Both: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.is_development:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set ENVIRONMENT=development."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def secure_cookies(self) -> bool:
        """The auth cookie carries the Secure flag everywhere except development."""
        return not self.is_development


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
