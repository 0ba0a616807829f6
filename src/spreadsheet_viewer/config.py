"""Configuration management for the spreadsheet viewer.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
SV_ prefix, or via a .env file in the project root.

Environment Variables:
    SV_MAX_FILE_SIZE_MB: Maximum file upload size in MB (default: 10)
    SV_LANGUAGE: Language of the page and its messages, fr or en (default: fr)
    SV_SESSION_TTL_MINUTES: Idle time before a viewer session is dropped (default: 60)
    SV_SESSION_COOKIE_NAME: Name of the session cookie (default: sv_session)
    SV_LOG_LEVEL: Logging level (default: INFO)
    SV_DEBUG: Enable debug mode (default: false)
    SV_CORS_ORIGINS: Comma-separated CORS origins (default: *)
    SV_SERVER_HOST: Server bind host (default: 0.0.0.0)
    SV_SERVER_PORT: Server bind port (default: 8000)
"""

import logging
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_LANGUAGES = ("fr", "en")


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Example .env file:
        SV_LANGUAGE=en
        SV_LOG_LEVEL=DEBUG
        SV_MAX_FILE_SIZE_MB=25
    """

    model_config = SettingsConfigDict(
        env_prefix="SV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Upload Settings
    # =========================================================================

    max_file_size_mb: int = 10
    """Maximum file upload size in megabytes."""

    # =========================================================================
    # Page Settings
    # =========================================================================

    language: str = "fr"
    """Language used for page labels and error messages."""

    # =========================================================================
    # Session Settings
    # =========================================================================

    session_ttl_minutes: int = 60
    """Idle time after which a viewer session and its workbook are dropped."""

    session_cookie_name: str = "sv_session"
    """Cookie carrying the viewer session identifier."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional logging and error details."""

    # =========================================================================
    # Server Settings
    # =========================================================================

    cors_origins: str = "*"
    """Comma-separated list of allowed CORS origins, or * for all."""

    server_host: str = "0.0.0.0"
    """Host address for the server to bind to."""

    server_port: int = 8000
    """Port for the server to listen on."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        """Validate the page language is one we have messages for."""
        lower_v = v.strip().lower()
        if lower_v not in SUPPORTED_LANGUAGES:
            raise ValueError(
                f"Invalid language: {v}. Must be one of: "
                f"{', '.join(SUPPORTED_LANGUAGES)}"
            )
        return lower_v

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_file_size(cls, v: int) -> int:
        """Validate file size is positive and reasonable."""
        if not 1 <= v <= 500:
            raise ValueError(f"max_file_size_mb must be between 1 and 500, got {v}")
        return v

    @field_validator("session_ttl_minutes")
    @classmethod
    def validate_session_ttl(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"session_ttl_minutes must be at least 1, got {v}")
        return v

    @field_validator("session_cookie_name")
    @classmethod
    def validate_cookie_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("session_cookie_name must be a non-empty string")
        return v.strip()

    @field_validator("server_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"server_port must be between 1 and 65535, got {v}")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def session_ttl_seconds(self) -> int:
        """Get session TTL in seconds."""
        return self.session_ttl_minutes * 60

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary suitable for logging."""
        return {
            "max_file_size_mb": self.max_file_size_mb,
            "language": self.language,
            "session_ttl_minutes": self.session_ttl_minutes,
            "session_cookie_name": self.session_cookie_name,
            "log_level": self.log_level,
            "debug": self.debug,
            "cors_origins": self.cors_origins,
            "server_host": self.server_host,
            "server_port": self.server_port,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Validate settings on application startup.

    Emits warnings for configurations that work but are not production ready.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    # Warn about permissive CORS in non-debug mode
    if s.cors_origins == "*" and not s.debug:
        logger.warning(
            "CORS is configured to allow all origins (*). "
            "Consider restricting this in production."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"language={s.language}, max_file_size_mb={s.max_file_size_mb}, "
        f"session_ttl_minutes={s.session_ttl_minutes}"
    )


# Create the global settings instance
settings = Settings()
