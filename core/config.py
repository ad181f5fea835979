"""
core/config.py -- HelpBoard settings, read from the environment and .env.

Settings is the only place the process looks at environment variables. Each
field maps to the upper-case variable of the same name (jwt_secret ->
JWT_SECRET, protected_paths -> PROTECTED_PATHS as a JSON list).

get_settings() caches one instance per process. It is called by the entry
points only (the api/main.py lifespan and the CLI in main.py); everything
else is handed the instance, and route code reads it from app.state.

The JWT secret is resolved after the fields load:
  development/test -- generated on the spot when unset, with a warning
  production       -- left empty, so TokenService.ensure_configured() stops
                      startup with ConfigurationError

Layer rule: core/ is the kernel. No imports from api/, web/, auth/, posts/,
or client/.
"""

import logging
import secrets
from functools import lru_cache
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("helpboard.config")


class Settings(BaseSettings):
    """Process-wide configuration. Every field has a default, so Settings() works with no .env present."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    environment: Literal["development", "production", "test"] = "development"
    database_url: str = "sqlite:///helpboard.db"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured".
    jwt_secret: str = ""
    bcrypt_rounds: int = 10
    token_ttl_days: int = 7
    auth_cookie_name: str = "authToken"
    secure_cookies: bool = False

    # ------------------------------------------------------------------
    # Route gate
    # ------------------------------------------------------------------

    protected_paths: tuple[str, ...] = ("/create", "/profile", "/messages", "/dashboard")
    login_path: str = "/login"

    # ------------------------------------------------------------------
    # CLI client
    # ------------------------------------------------------------------

    api_base_url: str = "http://localhost:8000"
    # Holds session.json (client storage) and cookies.txt (cookie channel).
    client_state_dir: str = "~/.helpboard"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """Resolve the JWT signing secret.

        Non-production (development/test): auto-generate a random secret with a
            warning. Tokens will not survive a restart -- acceptable locally.

        Production: leave the secret empty. TokenService refuses to start
            without one, so the process fails at boot rather than issuing
            tokens signed with a throwaway key.

        Both modes: reject secrets shorter than 32 characters. HS256 relies on
            key entropy, and a short secret weakens every issued token.
        """
        if not self.jwt_secret:
            if not self.is_production:
                self.jwt_secret = secrets.token_hex(32)
                logger.warning("Using auto-generated JWT_SECRET. Tokens will not persist across restarts.")
            return self
        if len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Tests build Settings(...) directly instead of going through this cache.
    """
    return Settings()
