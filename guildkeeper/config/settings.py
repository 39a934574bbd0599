"""
Application settings and configuration management.

Uses Pydantic Settings for validation and environment variable support.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DiscordSettings(BaseSettings):
    """Discord connection configuration."""

    token: str = Field(default="", description="Discord bot token (DISCORD_TOKEN)")
    ready_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for the gateway READY event before giving up",
    )

    model_config = SettingsConfigDict(
        env_prefix="DISCORD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class ServerSettings(BaseSettings):
    """MCP server configuration."""

    name: str = Field(default="discord", description="Server name advertised to MCP clients")
    max_concurrent_reads: int = Field(
        default=5,
        ge=1,
        description="Upper bound on channels read in parallel by read-multiple-channels",
    )
    audit_reason: str = Field(
        default="Updated via MCP tool by request",
        description="Audit log reason attached to role and member mutations",
    )

    model_config = SettingsConfigDict(
        env_prefix="MCP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: Literal["development", "production"] = Field(
        default="development", description="Deployment environment"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_file: Path | None = Field(default=None, description="Log file path")

    # Sub-configurations
    discord: DiscordSettings = Field(default_factory=DiscordSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from file and environment.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Loaded settings instance
    """
    if env_file:
        return Settings(
            _env_file=env_file,
            discord=DiscordSettings(_env_file=env_file),
            server=ServerSettings(_env_file=env_file),
        )
    return Settings()
