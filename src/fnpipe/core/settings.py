"""Deploy-time settings for fnpipe services.

Settings are read once at process start and passed by reference to the
middlewares that need them (API-key gate, token service). Nothing in a
pipeline reads the environment at request time.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not at request time
    - **Environment-driven:** Reads ``FNPIPE_*`` env vars and a ``.env`` file
    - **Fail fast in production:** Missing secrets are a startup error
    - **Sensible defaults:** Development gets placeholder keys and a warning

Examples:
    >>> from fnpipe.core.settings import FnpipeSettings, ApiKeyCategory
    >>> s = FnpipeSettings(environment="development")
    >>> s.api_key_for(ApiKeyCategory.GUEST)
    'dev-guest-key'

Tags:
    settings, configuration, pydantic, environment, fnpipe

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fnpipe.core.logging import get_logger

logger = get_logger(__name__)

_DEV_DEFAULTS: dict[str, str] = {
    "guest_api_key": "dev-guest-key",
    "login_api_key": "dev-login-key",
    "jwt_secret": "dev-secret",
}


class ApiKeyCategory(str, Enum):
    """Key categories accepted by the API-key gate."""

    GUEST = "GUEST"
    LOGIN = "LOGIN"


class FnpipeSettings(BaseSettings):
    """Settings for fnpipe pipelines and the HTTP adapter.

    Order of precedence (highest → lowest):
        1. Environment variables (``FNPIPE_GUEST_API_KEY``, etc.)
        2. ``.env`` file
        3. Defaults below
    """

    model_config = SettingsConfigDict(
        env_prefix="FNPIPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Runtime ──────────────────────────────────────────────────────────
    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Deployment environment"
    )
    service_name: str = Field(default="fnpipe", description="Service name in logs")
    log_level: str = Field(default="INFO", description="Log level")
    log_format: Literal["json", "console"] | None = Field(
        default=None, description="Log renderer; None auto-detects from the TTY"
    )
    request_timeout: float | None = Field(
        default=None, gt=0, description="Per-request timeout in seconds at the transport"
    )

    # ── API keys ─────────────────────────────────────────────────────────
    guest_api_key: str | None = Field(default=None, description="Key for guest endpoints")
    login_api_key: str | None = Field(default=None, description="Key for login endpoints")

    # ── Tokens ───────────────────────────────────────────────────────────
    jwt_secret: str | None = Field(default=None, description="HMAC secret for issued tokens")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_expires_minutes: int = Field(default=1440, gt=0, description="Token lifetime")

    # ── CORS ─────────────────────────────────────────────────────────────
    cors_origins: list[str] = Field(
        default=["http://localhost:8080"],
        description="Allowed CORS origins (JSON list in the environment)",
    )
    cors_max_age: int = Field(default=86400, ge=0, description="Preflight cache lifetime (s)")

    # ── Collaborators ────────────────────────────────────────────────────
    weather_api_url: str | None = Field(
        default=None, description="External weather API base URL; unset uses a static stand-in"
    )
    weather_api_key: str = Field(default="", description="Key sent to the weather API")

    @model_validator(mode="after")
    def _require_secrets(self) -> FnpipeSettings:
        missing = [name for name in _DEV_DEFAULTS if not getattr(self, name)]
        if not missing:
            return self
        env_names = ", ".join(f"FNPIPE_{name.upper()}" for name in missing)
        if self.environment == "production":
            raise ValueError(f"Missing required environment variables: {env_names}")
        logger.warning("settings_using_dev_defaults", missing=env_names)
        for name in missing:
            setattr(self, name, _DEV_DEFAULTS[name])
        return self

    def api_key_for(self, category: ApiKeyCategory | str) -> str:
        """Return the configured key for *category*."""
        category = ApiKeyCategory(category)
        if category is ApiKeyCategory.GUEST:
            return self.guest_api_key or ""
        return self.login_api_key or ""


@lru_cache(maxsize=1)
def get_settings() -> FnpipeSettings:
    """Cached settings, loaded once per process."""
    return FnpipeSettings()
