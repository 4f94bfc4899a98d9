"""
Configuration for token generation and verification.
"""

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_EXPIRATION_SECONDS = 2592000
YEAR_IN_SECONDS = 31557600
DEFAULT_CLOCK_DRIFT_SECONDS = 120
LOG_LEVELS = ("debug", "info", "warning", "error", "critical")

LogLevel = Literal["debug", "info", "warning", "error", "critical"]


class TWTSettings(BaseSettings):
    """Token lifetime limits and logging settings."""

    model_config = SettingsConfigDict(
        env_prefix="TWT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    default_expiration_seconds: int = Field(default=DEFAULT_EXPIRATION_SECONDS, gt=0)
    max_window_seconds: int = Field(default=YEAR_IN_SECONDS, gt=0)
    allowable_clock_drift_seconds: int = Field(default=DEFAULT_CLOCK_DRIFT_SECONDS, ge=0)
    log_level: LogLevel = "info"

    # Only read by the command line interface.
    encoded_secret: Optional[str] = None

    @field_validator("log_level", mode="before")
    @classmethod
    def _lower_log_level(cls, value):
        return value.lower() if isinstance(value, str) else value


def default_settings() -> TWTSettings:
    """Built-in defaults, without consulting the environment."""
    return TWTSettings.model_construct()


def get_settings() -> TWTSettings:
    """Load settings from the environment and an optional .env file."""
    return TWTSettings()
