"""
core/config.py -- Centralized configuration via pydantic-settings.

All environment variable reads happen here. No module should call os.getenv()
or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret_key -> JWT_SECRET_KEY). Type coercion and validation
      are built in.

  @model_validator(mode="after"): Runs the signing-secret policy after all
      fields are resolved: dev mode generates a key with a warning, production
      mode refuses to start without one.

Security notes:
  JWT_SECRET_KEY must yield at least 32 bytes, either as base64 or as raw
      UTF-8 (see auth/keys.py). A shorter key is a startup failure, not a
      warning.

  In production mode (DEBUG not set or false), a missing JWT_SECRET_KEY is a
      hard startup failure, so a process never runs with a throwaway key that
      invalidates every token on restart.

Layer rule: core/ is the kernel. This module imports only auth.keys,
auth.models and auth.passwords, none of which import core/config.py.
"""

import base64
import logging
import secrets
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from auth.keys import MIN_KEY_BYTES, resolve_key_material
from auth.models import SigningConfig
from auth.passwords import DEFAULT_ITERATIONS

logger = logging.getLogger("tokensmith.config")


class Settings(BaseSettings):
    """Settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments with DEBUG=true and nothing else set.
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

    # ------------------------------------------------------------------
    # Token signing
    # ------------------------------------------------------------------

    # Empty issuer/audience disables the claim and its check.
    jwt_issuer: str = ""
    jwt_audience: str = ""
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    jwt_secret_key: str = Field(default="", repr=False)
    jwt_expires_in_minutes: int = Field(default=60, gt=0)

    # ------------------------------------------------------------------
    # Password hashing
    # ------------------------------------------------------------------

    password_hash_iterations: int = Field(default=DEFAULT_ITERATIONS, gt=0)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the signing-secret policy.

        Dev mode (DEBUG=true): auto-generate a random base64 key with a
            warning. Tokens will not survive a restart.

        Production mode: refuse to start if JWT_SECRET_KEY is missing.

        Both modes: the key must resolve to at least 32 bytes.
        """
        if not self.jwt_secret_key:
            if self.debug:
                self.jwt_secret_key = base64.b64encode(secrets.token_bytes(MIN_KEY_BYTES)).decode("ascii")
                logger.warning("WARNING: Using auto-generated JWT_SECRET_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "JWT_SECRET_KEY is required in production mode. "
                    "Set JWT_SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        # ConfigurationError is a ValueError, so pydantic reports it as a ValidationError.
        resolve_key_material(self.jwt_secret_key)
        return self

    def signing_config(self) -> SigningConfig:
        """Build the immutable SigningConfig consumed by TokenIssuer/TokenValidator."""
        return SigningConfig(
            issuer=self.jwt_issuer,
            audience=self.jwt_audience,
            secret=self.jwt_secret_key,
            expiry_minutes=self.jwt_expires_in_minutes,
        )


@lru_cache
def get_settings() -> Settings:
    """Return the Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
