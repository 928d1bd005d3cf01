"""Server configuration settings."""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ServerSettings(BaseSettings):
    """HTTP server and logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STUDIO_",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=8000, ge=1, le=65535, description="Port to bind")
    reload: bool = Field(default=False, description="Enable uvicorn auto-reload")
    log_level: LogLevel = Field(default="INFO", description="Minimum log level")
    log_file: str | None = Field(
        default=None,
        description="Append log lines to this file instead of stdout",
    )
    json_logs: bool = Field(default=False, description="Render logs as JSON")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v
