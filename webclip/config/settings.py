"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="webclip", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # Clipping Configuration
    max_workers: int = Field(
        default=10, ge=1, description="Maximum number of concurrent renderer invocations"
    )
    presets_path: Optional[Path] = Field(default=None, description="Presets definition file")
    fetch_timeout: float = Field(default=30.0, gt=0, description="Page fetch timeout in seconds")
    user_agent: str = Field(default="webclip/1.0", description="User agent for page fetches")
    disconnect_poll_interval: float = Field(
        default=0.1, gt=0, description="Client disconnect polling interval in seconds"
    )

    # Diagnostics
    print_renderer_args: bool = Field(default=False, description="Log renderer arguments")
    diagnostic_dump_dir: Optional[Path] = Field(
        default=None, description="Directory for pre-render HTML dumps"
    )

    # Browser Configuration
    playwright_headless: bool = Field(default=True, description="Run browser in headless mode")
    playwright_timeout: int = Field(default=30000, description="Playwright timeout in milliseconds")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Optional[Path] = Field(default=None, description="Directory for rotating log files")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="WEBCLIP_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
