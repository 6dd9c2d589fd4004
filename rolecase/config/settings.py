"""Configuration settings for RoleCase."""

from enum import Enum
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ParseMode(str, Enum):
    """Contract used to talk to the remote parse service."""

    POLL = "poll"
    SYNC = "sync"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults and can be overridden via
    environment variables with the ROLECASE_ prefix or a .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ROLECASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote services
    api_base_url: str = Field(
        default="http://127.0.0.1:8000/api",
        description="Base URL shared by the parse and upsert endpoints",
    )
    api_token: str | None = Field(
        default=None,
        description="Bearer token sent to the parse and upsert endpoints",
    )

    # Parse contract
    parse_mode: ParseMode = Field(
        default=ParseMode.POLL,
        description="Parse contract: 'poll' (start + status) or 'sync' (single call)",
    )
    parse_timeout: Annotated[float, Field(gt=0)] = Field(
        default=300.0,
        description="Upper bound in seconds for a synchronous parse call",
    )
    poll_interval: Annotated[float, Field(ge=0)] = Field(
        default=2.0,
        description="Seconds to wait before each status request",
    )
    poll_max_attempts: Annotated[int, Field(gt=0)] = Field(
        default=150,
        description="Status requests allowed before the job times out",
    )
    keepalive_interval: Annotated[float, Field(gt=0)] = Field(
        default=20.0,
        description="Seconds between keepalive pings while remote work runs",
    )

    # Storage
    db_path: Path = Field(
        default=Path("./data/rolecase.db"),
        description="Path to the SQLite job queue database",
    )
    default_avg_time_sec: Annotated[float, Field(gt=0)] = Field(
        default=60.0,
        description="Initial parse duration estimate before any job is saved",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR",
    )

    @field_validator("parse_mode", mode="before")
    @classmethod
    def validate_parse_mode(cls, v: str | ParseMode) -> ParseMode:
        """Convert a string parse mode to ParseMode."""
        if isinstance(v, ParseMode):
            return v
        if isinstance(v, str):
            try:
                return ParseMode(v.strip().lower())
            except ValueError:
                raise ValueError(
                    f"Invalid parse mode: {v}. Must be 'poll' or 'sync'"
                ) from None
        raise ValueError(f"Invalid parse mode type: {type(v)}")

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


# Singleton instance for easy import
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the settings singleton (useful for testing)."""
    global _settings
    _settings = None
