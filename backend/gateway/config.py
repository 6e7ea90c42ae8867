# backend/gateway/config.py
"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables with validation:
- ENVIRONMENT: Runtime mode (development, test, production)
- UPSTREAM_*: Trading-account provider URL, credentials and call limits
- CACHE_* / REDIS_*: Cache backend selection and connection
- *_ACCOUNT_IDS: The account sets behind the synthetic "default" account

Environment-specific behavior:
- test: No upstream credentials required, in-memory cache recommended
- development: Credentials optional (login fails at first use if missing)
- production: Upstream credentials are required

Account id lists accept either a comma-separated string
(EXNESS_ACCOUNT_IDS=123,456) or a JSON array.

Usage:
    from gateway.config import settings

    if settings.cache_backend == "redis":
        ...
"""
import json
from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


# Find the .env file in project root (parent of backend/)
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_PROJECT_ROOT = _BACKEND_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"

AccountIdList = Annotated[list[str], NoDecode]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables:
        - ENVIRONMENT: Runtime environment (development, test, production)
        - APP_NAME: Application name (default: "Account Analytics Gateway")
        - DEBUG: Enable debug mode (default: False)
        - LOG_LEVEL: Logging level (default: "INFO")
        - LOG_FORMAT: "text" or "json" (default: "text")

    Upstream Settings:
        - UPSTREAM_API_URL: Base URL of the provider API
        - UPSTREAM_EMAIL / UPSTREAM_PASSWORD: Backend-managed login
        - UPSTREAM_TIMEOUT_SECONDS: Per-call timeout (default: 30)
        - UPSTREAM_MAX_RETRIES: Attempts for transient failures (default: 3)

    Cache Settings:
        - CACHE_BACKEND: "memory" or "redis" (default: "memory")
        - CACHE_ENABLED: Memoize derived results (default: True)
        - CACHE_DEFAULT_TTL_SECONDS: TTL for derived results (default: 30)
        - REDIS_HOST / REDIS_PORT / REDIS_PASSWORD / REDIS_DB
    """

    # Environment mode - determines validation strictness
    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Runtime environment (development, test, production)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format"
    )

    app_name: str = "Account Analytics Gateway"
    debug: bool = False

    # =========================================================================
    # UPSTREAM PROVIDER
    # =========================================================================
    upstream_api_url: str = Field(
        default="https://www.myfxbook.com/api",
        description="Base URL of the trading-account provider API"
    )
    upstream_email: str | None = Field(
        default=None,
        description="Login email for the backend-managed session"
    )
    upstream_password: str | None = Field(
        default=None,
        description="Login password for the backend-managed session"
    )
    upstream_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=120,
        description="Per-call timeout for upstream requests in seconds"
    )
    upstream_max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Total attempts for transient upstream failures"
    )

    # =========================================================================
    # CACHE
    # =========================================================================
    cache_backend: Literal["memory", "redis"] = Field(
        default="memory",
        description="Cache backend (memory or redis)"
    )
    cache_enabled: bool = Field(
        default=True,
        description="Memoize derived results (the session is always stored)"
    )
    cache_default_ttl_seconds: int = Field(
        default=30,
        ge=1,
        description="Default TTL for cached results in seconds"
    )
    cache_max_entries: int = Field(
        default=1000,
        ge=10,
        description="Maximum entries held by the in-memory backend"
    )
    redis_host: str = "localhost"
    redis_port: int = Field(default=6379, ge=1, le=65535)
    redis_password: str | None = None
    redis_db: int = Field(default=0, ge=0)

    # =========================================================================
    # ACCOUNT SETS
    # =========================================================================
    exness_account_ids: AccountIdList = Field(
        default_factory=list,
        description="Accounts aggregated by the synthetic 'default' account"
    )
    low_risk_account_ids: AccountIdList = Field(
        default_factory=list,
        description="Accounts listed first and renamed to LOW_RISK_ACCOUNT_NAME"
    )
    medium_risk_account_ids: AccountIdList = Field(
        default_factory=list,
        description="Accounts listed after the low-risk set"
    )
    high_risk_account_ids: AccountIdList = Field(
        default_factory=list,
        description="Accounts listed after the medium-risk set"
    )
    low_risk_account_name: str | None = Field(
        default=None,
        description="Display name override for low-risk accounts"
    )
    default_account_name: str = Field(
        default="Combined Portfolio",
        description="Display name of the synthetic 'default' account"
    )
    default_account_currency: str = Field(
        default="USD",
        description="Currency reported for the synthetic 'default' account"
    )

    # =========================================================================
    # BACKGROUND JOBS
    # =========================================================================
    trade_length_refresh_enabled: bool = Field(
        default=False,
        description="Periodically pre-compute the default account trade length"
    )
    trade_length_refresh_minutes: int = Field(
        default=10,
        ge=1,
        le=1440,
        description="Interval between trade-length refresh runs"
    )
    trade_length_cache_ttl_seconds: int = Field(
        default=600,
        ge=1,
        description="TTL of the pre-computed default trade length"
    )

    # =========================================================================
    # CORS
    # =========================================================================
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Allowed CORS origins (JSON array in env var)"
    )

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "exness_account_ids",
        "low_risk_account_ids",
        "medium_risk_account_ids",
        "high_risk_account_ids",
        mode="before",
    )
    @classmethod
    def split_account_ids(cls, value: object) -> list[str]:
        """Accept comma-separated strings, JSON arrays or lists of ids."""
        if value is None:
            return []
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                value = json.loads(stripped)
            else:
                value = stripped.split(",")
        if isinstance(value, (int, float)):
            value = [value]
        return [str(item).strip() for item in value if str(item).strip()]

    @model_validator(mode="after")
    def validate_upstream_config(self) -> "Settings":
        """
        Validate upstream configuration based on environment.

        Rules:
        - test/development: credentials optional
        - production: UPSTREAM_EMAIL and UPSTREAM_PASSWORD required
        """
        if self.environment == "production" and not self.has_upstream_credentials:
            raise ValueError(
                "UPSTREAM_EMAIL and UPSTREAM_PASSWORD are required in production environment."
            )
        if not self.upstream_api_url.startswith(("http://", "https://")):
            raise ValueError(
                f"UPSTREAM_API_URL must be an http(s) URL, got: {self.upstream_api_url[:20]}..."
            )
        return self

    @property
    def has_upstream_credentials(self) -> bool:
        """Check if the backend-managed login is configured."""
        return bool(self.upstream_email and self.upstream_password)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


# Create single instance
settings = Settings()
