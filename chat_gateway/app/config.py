"""
Configuration module for the Agent Chat Gateway.

This module uses Pydantic Settings to load and validate environment variables
for backend agent-server forwarding, share snapshot storage, bug-report
delivery, identity checks and logging.

Environment variables are loaded from .env file or system environment.
Every setting has a default so the gateway starts with an empty environment.
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All configuration for the backend agent server, the Supabase-backed
    collaborators (auth, share snapshots) and the bug-report webhook is
    defined here.
    """

    # =========================================================================
    # Backend Agent Server
    # =========================================================================

    LANGGRAPH_API_URL: HttpUrl = Field(
        default="http://localhost:2024",
        description="Origin of the agent-execution server (e.g., http://localhost:2024)",
    )

    LANGGRAPH_API_KEY: Optional[str] = Field(
        None,
        description="API key sent as X-Api-Key by the agent client (optional)",
    )

    BACKEND_TIMEOUT_SECONDS: float = Field(
        default=300.0,
        description="Read/write/pool timeout for proxied backend calls",
        gt=0,
    )

    BACKEND_CONNECT_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Connect timeout for proxied backend calls",
        gt=0,
    )

    # =========================================================================
    # Bug Reports
    # =========================================================================

    BUG_REPORT_WEBHOOK_URL: Optional[str] = Field(
        None,
        description="Webhook receiving bug reports (leave empty to only log them)",
    )

    BUG_REPORT_RECIPIENT: Optional[str] = Field(
        None,
        description="Recipient address placed in the webhook payload 'to' field",
    )

    WEBHOOK_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout for webhook, identity provider and store calls",
        gt=0,
    )

    # =========================================================================
    # Supabase (identity provider + share snapshot store)
    # =========================================================================

    SUPABASE_URL: Optional[str] = Field(
        None,
        description="Supabase project URL (e.g., https://xyz.supabase.co)",
    )

    SUPABASE_SERVICE_KEY: Optional[str] = Field(
        None,
        description="Supabase key used for PostgREST and Auth API calls",
    )

    SUPABASE_JWT_SECRET: Optional[str] = Field(
        None,
        description="Supabase JWT secret for local token verification (optional)",
    )

    SHARE_TABLE: str = Field(
        default="shared_threads",
        description="PostgREST table holding share snapshots",
        min_length=1,
    )

    SHARE_EXPIRY_DAYS: int = Field(
        default=30,
        description="Lifetime of a share snapshot in days",
        ge=1,
        le=365,
    )

    PUBLIC_BASE_URL: Optional[str] = Field(
        None,
        description="Public origin used to build share URLs (defaults to the request origin)",
    )

    # =========================================================================
    # Gateway Server Configuration
    # =========================================================================

    GATEWAY_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the gateway server",
    )

    GATEWAY_PORT: int = Field(
        default=8080,
        description="Port to bind the gateway server",
        ge=1,
        le=65535,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # Pydantic Settings Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra env vars not defined here
    )

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def backend_base_url(self) -> str:
        """
        Get backend origin as string without trailing slash.

        Returns:
            Backend URL, e.g. "http://localhost:2024"
        """
        return str(self.LANGGRAPH_API_URL).rstrip("/")

    @property
    def supabase_configured(self) -> bool:
        """True when both the Supabase URL and key are present."""
        return bool(self.SUPABASE_URL and self.SUPABASE_SERVICE_KEY)

    @property
    def supabase_base_url(self) -> Optional[str]:
        if not self.SUPABASE_URL:
            return None
        return self.SUPABASE_URL.rstrip("/")

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate LOG_LEVEL is a standard logging level name.

        Raises:
            ValueError: If the level is unknown
        """
        level = v.strip().upper()
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

        if level not in allowed_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {allowed_levels}, got: {v}"
            )

        return level

    @field_validator(
        "BUG_REPORT_WEBHOOK_URL",
        "SUPABASE_URL",
        "PUBLIC_BASE_URL",
        "LANGGRAPH_API_KEY",
        "SUPABASE_SERVICE_KEY",
        "SUPABASE_JWT_SECRET",
        "BUG_REPORT_RECIPIENT",
    )
    @classmethod
    def empty_string_as_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank environment values as unset."""
        if v is not None and not v.strip():
            return None
        return v


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    This function is cached so that the settings are loaded only once
    during the application lifecycle.

    Returns:
        Settings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If an environment variable is present but invalid.

    Example:
        >>> from chat_gateway.app.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.backend_base_url)
    """
    return Settings()


# =============================================================================
# Configuration Helpers
# =============================================================================

def validate_configuration(settings: Settings) -> dict:
    """
    Validate configuration settings and return a status report.

    Called during application startup; the gateway still starts when
    warnings are present.

    Returns:
        Dictionary with validation status, errors and warnings.

    Example:
        >>> status = validate_configuration(get_settings())
        >>> if not status["valid"]:
        ...     print(status["errors"])
    """
    errors = []
    warnings = []

    if settings.SUPABASE_URL and not settings.SUPABASE_SERVICE_KEY:
        errors.append("SUPABASE_URL is set but SUPABASE_SERVICE_KEY is missing")

    if not settings.supabase_configured:
        warnings.append("Supabase not configured, share snapshots are kept in memory")

    if not settings.SUPABASE_JWT_SECRET and not settings.supabase_configured:
        warnings.append("No identity provider configured, /api/test-auth will fail")

    if not settings.BUG_REPORT_WEBHOOK_URL:
        warnings.append("BUG_REPORT_WEBHOOK_URL is not set, bug reports are only logged")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "backend_url": settings.backend_base_url,
        "share_expiry_days": settings.SHARE_EXPIRY_DAYS,
    }


def log_configuration_report(settings: Settings, logger: logging.Logger) -> None:
    """Log the validate_configuration() report."""
    status = validate_configuration(settings)
    for error in status["errors"]:
        logger.error(f"Configuration error: {error}")
    for warning in status["warnings"]:
        logger.warning(f"Configuration warning: {warning}")
