"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here — no scattered magic strings.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        shutdown_timeout: Seconds between a graceful shutdown attempt
            and the forced exit.
        exit_status: Process exit status used on shutdown.
        host: Interface the bundled server binds to.
        port: Port the bundled server listens on.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    project_name: str = "graceful-errors"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    shutdown_timeout: float = 3.0
    exit_status: int = 1
    host: str = "127.0.0.1"
    port: int = 3000


class MaintenanceSettings(BaseSettings):
    """Maintenance mode switches read by the default maintenance policy.

    Kept as raw strings: the flag is only honoured when it reads exactly
    "true" (case-insensitive), and the retry-after value may be either
    seconds or an HTTP date.

    Attributes:
        maint_flag: Maintenance enabled flag (MAINT_FLAG).
        maint_retryafter: Retry-After source value (MAINT_RETRYAFTER).
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    maint_flag: Optional[str] = None
    maint_retryafter: Optional[str] = None


def read_maintenance_settings() -> MaintenanceSettings:
    """Read the maintenance switches fresh from the environment."""
    return MaintenanceSettings()


settings = Settings()
