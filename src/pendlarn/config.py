"""
Configuration for Pendlarn.

Read once from the environment (or a .env file) at process start and passed
down explicitly; nothing below the entry point looks at the environment.
"""

import logging
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .trafikverket_client import DEFAULT_TIMEOUT, TRAFIKVERKET_URL

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    trafikverket_api_key: str = Field(
        min_length=1,
        description="Trafikverket open API authentication key",
    )
    trafikverket_url: str = Field(
        default=TRAFIKVERKET_URL,
        description="Trafikverket query endpoint",
    )
    request_timeout: float = Field(
        default=DEFAULT_TIMEOUT,
        gt=0,
        description="Timeout in seconds for each API request",
    )

    host: str = Field(default="0.0.0.0", description="Web server host")
    port: int = Field(default=3000, description="Web server port")

    timezone: str = Field(
        default="Europe/Stockholm",
        description="Time zone used to decide what 'now' is",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v):
        """Reject zone names the system does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown time zone {v!r}") from e
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper()

    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def load_settings(env_file: Optional[str] = ".env") -> Settings:
    """
    Load settings, exiting the process if they are incomplete.

    Raises:
        SystemExit: If TRAFIKVERKET_API_KEY is unset or any value is invalid.
    """
    try:
        return Settings(_env_file=env_file)
    except ValidationError as e:
        fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
        logger.error(f"Invalid configuration for: {', '.join(fields)}")
        if "trafikverket_api_key" in fields:
            raise SystemExit("TRAFIKVERKET_API_KEY environment variable not set")
        raise SystemExit(f"Invalid configuration: {e}")
