"""
core/config.py -- tasktrack settings, loaded with pydantic-settings.

The environment is read in exactly one place: get_settings(). Nothing else
touches os.environ. Components (TokenService, CredentialHasher, the stores)
do not call get_settings() either; api/services.py reads the settings once
and passes explicit values into each constructor, so a component's behaviour
is fixed the moment it is built.

How it works:
  get_settings() is wrapped in lru_cache, so the environment and .env file
      are parsed once per process.

  Each field is filled from the env var of the same name in upper case
      (token_ttl_seconds <- TOKEN_TTL_SECONDS). List fields take JSON, e.g.
      ALLOWED_HOSTS='["api.example.com"]'. Bounds are declared with Field().

  validate_secret_key() runs once every field is resolved and applies the
      DEBUG-dependent SECRET_KEY rule below.

Security notes:
  [M6] A SECRET_KEY under 32 chars is rejected. HS256 token signatures are
       only as strong as the key.

  [M7] Without DEBUG=true, a missing SECRET_KEY stops the process at startup.
       There is no built-in fallback secret. With DEBUG=true a random key is
       generated, so tokens die with the process.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or tasks/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("tasktrack.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'tasktrack.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file (with DEBUG=true). The
    model_validator enforces production-safety rules at startup.
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
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # 1 day. Zero is accepted: such tokens are expired the moment they are issued.
    token_ttl_seconds: int = Field(default=86400, ge=0)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    # Upper bound on concurrent bcrypt/JWT computations.
    crypto_workers: int = Field(default=4, ge=1)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    auth_rate_limit: str = "10/minute"
    task_rate_limit: str = "30/minute"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost:3000"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy [M7].

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters [M6].
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
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
    to inject different environment variables.
    """
    return Settings()
