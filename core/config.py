"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for EasyPass happen here. No module should
call os.getenv() or os.environ.get() directly.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. Only the
      application edge (api/main.py lifespan) calls it. Everything below that
      receives the Settings object as a constructor argument, so no module
      reads configuration at import time.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  @model_validator(mode="after"): Cross-field validation after all fields are
      resolved. Dev mode (DEBUG=true) generates missing keys with a warning;
      production mode refuses to start without them.

Security notes:
  SECRET_KEY signs every bearer token. Shorter than 32 chars is rejected.
  ENCRYPTION_KEY is the vault passphrase. It is hashed into the AES key at
  startup; changing it makes every stored secret undecryptable.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/ or vault/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("easypass.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'easypass.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
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
    # Keys -- empty string is the "not configured" sentinel
    # ------------------------------------------------------------------

    secret_key: str = ""
    encryption_key: str = ""

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    token_issuer: str = "EasyPass"
    token_audience: str = "EasyPass"
    token_expire_seconds: int = Field(default=3600, gt=0)

    # ------------------------------------------------------------------
    # PIN hashing
    # ------------------------------------------------------------------

    # bcrypt accepts 4..31. 12 is the library default.
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_keys(self) -> "Settings":
        """Enforce the key policy.

        Dev mode (DEBUG=true): auto-generate missing keys with a warning.
            Tokens will not survive a restart, and secrets written with a
            generated ENCRYPTION_KEY cannot be read after one.

        Production mode: refuse to start if either key is missing.

        Both modes: reject signing keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Issued tokens will not survive a restart.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")

        if not self.encryption_key:
            if self.debug:
                self.encryption_key = secrets.token_urlsafe(32)
                logger.warning(
                    "Using auto-generated ENCRYPTION_KEY. Stored secrets will be unreadable after a restart."
                )
            else:
                raise ValueError(
                    "ENCRYPTION_KEY is required in production mode. "
                    "Set ENCRYPTION_KEY in your environment or .env file."
                )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables, or build Settings(...) directly
    and hand it to the component under test.
    """
    return Settings()
