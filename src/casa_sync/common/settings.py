"""
Configuration for the Casa Control Sync library.

Values are read from environment variables prefixed with ``CASA_`` (for example
``CASA_SUPABASE_URL``) or passed directly as keyword arguments.
"""

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CasaSettings(BaseSettings):
    """Connection and runtime settings for a dashboard instance."""

    model_config = SettingsConfigDict(env_prefix="CASA_", env_file=".env", extra="ignore")

    supabase_url: str = Field(description="Project URL, e.g. https://xyz.supabase.co")
    supabase_key: str = Field(description="Anon or service API key")
    db_schema: str = Field(default="public", description="Schema holding the devices table")
    devices_table: str = Field(default="devices", description="Devices table name")
    log_level: str = Field(default="INFO", description="Logging level name")
    http_timeout: Optional[float] = Field(
        default=None, description="Backend request timeout in seconds (None disables)"
    )
    webhook_timeout: Optional[float] = Field(
        default=None, description="Webhook request timeout in seconds (None disables)"
    )
    realtime_heartbeat_interval: float = Field(
        default=30.0, gt=0, description="Seconds between realtime heartbeats"
    )

    @field_validator("supabase_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def log_level_value(self) -> int:
        """Numeric logging level."""
        return logging.getLevelName(self.log_level)
