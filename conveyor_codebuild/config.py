"""Configuration settings for conveyor_codebuild.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the CONVEYOR_ prefix.
    CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONVEYOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Build naming
    project_prefix: str = Field(
        default="conveyor",
        min_length=1,
        description="Prefix of the CodeBuild project name (<prefix>-<repository>)",
    )

    # AWS
    aws_region: str | None = Field(
        default=None,
        description="AWS region (uses the boto3 default chain if not set)",
    )
    aws_profile: str | None = Field(
        default=None,
        description="AWS shared config profile name",
    )
    aws_max_attempts: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum attempts for CloudWatch Logs and CodeBuild status calls",
    )

    # Log streaming (in seconds)
    log_poll_interval: float = Field(
        default=1.0,
        ge=0,
        description="Delay between CloudWatch Logs polls when no new events",
    )
    log_location_timeout: int = Field(
        default=60,
        ge=0,
        description="How long to wait for CodeBuild to report the log location",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
