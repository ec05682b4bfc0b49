"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        app_name: Title used for the OpenAPI schema
        environment: Deployment environment name (development, production, ...)
        debug: Include tracebacks in 500 responses when enabled
        api_prefix: Prefix for all versioned API routes

        database_url: SQLAlchemy connection string

        jwt_secret: Secret used to sign access tokens
        jwt_algorithm: Signing algorithm shared by access and refresh tokens
        access_token_expire_minutes: Access token lifetime in minutes
        refresh_token_secret: Secret used to sign refresh tokens
        refresh_token_expire_days: Refresh token lifetime in days

        bcrypt_rounds: Cost factor for password hashing
        password_min_length: Minimum accepted password length
        password_require_*: Character classes a password must contain
        allow_admin_self_registration: Whether /auth/register may create ADMIN or SUPER_ADMIN accounts

        cors_origins: Origins allowed by the CORS middleware
        rate_limit_*: In-memory per-IP rate limiting for API routes

        bootstrap_admin_email: Optional super admin email created on startup
        bootstrap_admin_password: Optional super admin password created on startup
    """
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = "Hospital Management API"
    environment: str = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Database settings
    database_url: str = "sqlite:///./hospital.db"

    # JWT settings
    jwt_secret: str = "your-super-secret-jwt-key-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 24 * 60
    refresh_token_secret: str = "your-refresh-token-secret"
    refresh_token_expire_days: int = 7

    # Password policy
    bcrypt_rounds: int = 10
    password_min_length: int = 8
    password_require_uppercase: bool = True
    password_require_lowercase: bool = True
    password_require_digit: bool = True
    password_require_special: bool = True

    # Registration policy
    allow_admin_self_registration: bool = True

    # Transport settings
    cors_origins: List[str] = ["http://localhost:3000"]
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 15 * 60

    # Bootstrap admin settings (optional - only used for first super admin creation)
    bootstrap_admin_email: Optional[str] = None
    bootstrap_admin_password: Optional[str] = None

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, read once on first use."""
    return Settings()
