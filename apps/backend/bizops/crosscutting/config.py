"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Refuse insecure credentials configuration in production

Collaborators:
  - api/main.py: reads settings for CORS, uploads mount and pool sizing
  - identity/auth_users.py: reads JWT secret and TTL
  - application/sequence_allocator.py: reads allocation mode and retry policy
  - crosscutting/rate_limit.py: reads rate limit parameters

Notes:
  - Singleton via lru_cache
  - Tests disable .env loading from conftest
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SEQUENCE_MODES = frozenset({"racy", "strict"})


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        database_url: PostgreSQL connection string
        app_env: development | test | production
        allowed_origins: Comma-separated CORS origins
        cors_allow_credentials: Allow cookies cross-origin (default: True)
        jwt_secret: Secret for signing access tokens (HS256)
        jwt_access_ttl_minutes: Access token TTL in minutes (default: 24h)
        rate_limit_rps: Requests per second per client (default: 100 per 15 min)
        rate_limit_burst: Max burst tokens (default: 100)
        max_body_bytes: Max request body size (default: 10MB)
        uploads_dir: Directory served read-only under uploads_url_prefix
        sequence_mode: racy (read-then-insert) | strict (retry on unique violation)
        sequence_max_attempts: Attempts before giving up in strict mode
    """

    # Required (no defaults)
    database_url: str

    # Environment
    app_env: str = "development"
    app_version: str = "1.0.0"

    # CORS configuration
    allowed_origins: str = "http://localhost:3000"
    cors_allow_credentials: bool = True

    # Security - JWT Auth
    jwt_secret: str = "dev-secret"
    jwt_access_ttl_minutes: int = 60 * 24

    # Security - Rate Limiting (100 requests / 15 minutes)
    rate_limit_rps: float = 100 / 900
    rate_limit_burst: int = 100

    # Security - Hardening
    max_body_bytes: int = 10 * 1024 * 1024  # 10MB

    # Static uploads
    uploads_dir: str = "uploads"
    uploads_url_prefix: str = "/uploads"

    # Database - Connection Pool
    db_pool_min_size: int = 2
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 30000  # 30 seconds

    # Sequence allocation
    sequence_mode: str = "racy"
    sequence_max_attempts: int = 5
    sequence_backoff_initial_seconds: float = 0.05
    sequence_backoff_max_seconds: float = 1.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Dev Tools (Backend Safe)
    dev_seed_admin: bool = False
    dev_seed_admin_email: str = "admin@local"
    dev_seed_admin_password: str = "admin123"
    dev_seed_admin_first_name: str = "Admin"
    dev_seed_admin_last_name: str = "Local"
    dev_seed_admin_force_reset: bool = False

    @field_validator("sequence_mode")
    @classmethod
    def sequence_mode_valid(cls, v: str) -> str:
        mode = (v or "racy").strip().lower()
        if mode not in SEQUENCE_MODES:
            raise ValueError("sequence_mode must be racy or strict")
        return mode

    @field_validator("sequence_max_attempts")
    @classmethod
    def sequence_max_attempts_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("sequence_max_attempts must be >= 1")
        return v

    @field_validator("rate_limit_rps")
    @classmethod
    def rate_limit_rps_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("rate_limit_rps must be >= 0")
        return v

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        insecure_secrets = {"dev-secret", "changeme", "change-me", "password"}
        jwt_secret = (self.jwt_secret or "").strip()
        if not jwt_secret or jwt_secret in insecure_secrets:
            raise ValueError(
                "JWT_SECRET must be set to a strong, non-default value in production"
            )
        if len(jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters in production")
        if self.dev_seed_admin:
            raise ValueError("DEV_SEED_ADMIN must be disabled in production")

        return self

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def is_development(self) -> bool:
        # R: anything that is not production shows error detail on 500s.
        return not self.is_production()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()
