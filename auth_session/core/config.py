"""
Core configuration module for auth-session.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the AUTH_SESSION_ prefix.

Pattern: Pydantic BaseSettings with an lru_cache singleton accessor
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All fields use the AUTH_SESSION_ prefix for environment variables.
    Example: AUTH_SESSION_WARNING_WINDOW_SECONDS=600
    """

    # =========================================================================
    # Service Configuration
    # =========================================================================
    service_name: str = Field(
        default="auth-session",
        description="Name of the service for logging and identification",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for the structured logger",
    )

    # =========================================================================
    # Session Lifecycle
    # =========================================================================
    warning_window_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Seconds before expiry at which a session is expiring soon",
    )
    watchdog_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        le=3600.0,
        description="Period of the expiry watchdog",
    )
    provider_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300.0,
        description="Upper bound for any identity provider call",
    )
    revoke_on_logout: bool = Field(
        default=True,
        description="Revoke credentials at the identity provider on logout",
    )
    biometric_prompt: str = Field(
        default="Please authenticate to access your account",
        description="Prompt shown by the biometric gate before auto-login",
    )

    # =========================================================================
    # Credential Store
    # =========================================================================
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL for the remembered credential bundle",
    )
    credential_key: str = Field(
        default="auth_session:credentials",
        description="Key under which the remembered credential bundle is stored",
    )

    # =========================================================================
    # Identity Provider
    # =========================================================================
    default_token_lifetime_seconds: int = Field(
        default=1800,
        ge=60,
        description="Access token lifetime issued by the fake identity provider",
    )

    model_config = {
        "env_prefix": "AUTH_SESSION_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    # =========================================================================
    # Field Validators
    # =========================================================================
    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str) -> str:
        """Validate Redis URL format."""
        if not v.startswith(("redis://", "rediss://")):
            raise ValueError("Redis URL must start with redis:// or rediss://")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise and validate the log level name."""
        level = v.upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return level


# =============================================================================
# Settings Singleton
# =============================================================================


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses functools.lru_cache to ensure only one Settings instance is created.
    Call get_settings.cache_clear() after changing the environment in tests.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
