"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for TenantAuth happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. Only the
      composition roots (api/main.py lifespan, main.py CLI) call it.
      auth/hashing.py reads get_hashing_settings() instead, which carries
      only bcrypt_rounds and never demands a SECRET_KEY. The token issuer receives its
      Settings object as a constructor argument so tests can inject fixed
      values without touching the environment.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  @model_validator(mode="after"): DEBUG-conditional SECRET_KEY logic. Dev mode
      generates a key with a warning, production mode refuses to start
      without one.

Security notes:
  [M6] SECRET_KEY shorter than 32 chars is rejected outright. JWT HMAC signing
       relies on key entropy -- a short key makes tokens forgeable.

  [M7] In production mode (DEBUG not set or false), a missing SECRET_KEY is a
       hard startup failure. A random per-process key would invalidate every
       issued token on restart and differ between workers.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("tenantauth.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'tenantauth.db'}"


class HashingSettings(BaseSettings):
    """The settings auth/hashing.py reads at import.

    Kept apart from Settings so hashing (and `main.py hash-secret`) works on a
    machine with no SECRET_KEY configured: hashing never signs anything.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # bcrypt work factor (2^rounds iterations). Fixed per deployment.
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)


class Settings(HashingSettings):
    """Application settings loaded from environment variables and .env file.

    Inherits bcrypt_rounds from HashingSettings.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
    """

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Token issuance
    # ------------------------------------------------------------------

    jwt_issuer: str = "https://tenantauth.local"
    jwt_algorithm: str = "HS256"
    # Lifetimes in seconds. Web sessions last a day, installed apps a month,
    # machine clients an hour.
    token_duration_web: int = Field(default=86400, gt=0)
    token_duration_app: int = Field(default=2592000, gt=0)
    token_duration_client: int = Field(default=3600, gt=0)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost", "testserver"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce SECRET_KEY policy [M7].

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters [M6].
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated SECRET_KEY. Issued tokens will not survive a restart.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables, or construct Settings(...)
    directly and hand it to TokenIssuer.
    """
    return Settings()


@lru_cache
def get_hashing_settings() -> HashingSettings:
    """Return the hashing settings singleton. Never applies the SECRET_KEY policy."""
    return HashingSettings()
