"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment."""

    return AppSettings()


def _build_store_settings() -> "StoreSettings":
    """Build counting store settings from environment."""

    return StoreSettings()


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()


class AppSettings(BaseSettings):
    """Rate limiting behaviour and request interception."""

    rate_limit_enabled: bool = Field(
        True,
        description="Enable rate limiting on protected routes",
    )
    default_max_requests: int = Field(
        5,
        description="Requests per window when no per-key config exists",
    )
    default_window_seconds: int = Field(
        60,
        description="Window length in seconds when no per-key config exists",
    )
    default_strategy: str = Field(
        "FIXED",
        description="Strategy name when no per-key config exists",
    )
    counter_key_prefix: str = Field(
        "rl:",
        description="Store key prefix for fixed-window counters",
    )
    config_key_prefix: str = Field(
        "rate_config:",
        description="Store key prefix for per-key config hashes",
    )
    user_id_header: str = Field(
        "X-User-ID",
        description="Header identifying the caller; combined with the path into the limiter key",
    )
    atomic_expiry: bool = Field(
        False,
        description="Create counters and set their expiry in one atomic store call",
    )
    rejection_message: str = Field(
        "Too many requests - Rate limited",
        description="Response detail returned with HTTP 429",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class StoreSettings(BaseSettings):
    """Shared counting store connection settings."""

    backend: str = Field(
        "redis",
        description="Counting store backend: redis or memory (single process only)",
    )
    redis_url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL",
    )
    socket_timeout_seconds: float = Field(
        0.5,
        description="Upper bound for a single store command",
        gt=0,
    )
    socket_connect_timeout_seconds: float = Field(
        0.5,
        description="Upper bound for establishing a store connection",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10_485_760,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    store: StoreSettings = Field(default_factory=_build_store_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
