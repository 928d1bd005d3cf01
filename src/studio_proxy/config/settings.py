"""Settings configuration for the studio proxy."""

import contextlib
import os
import tomllib
from pathlib import Path
from typing import Any

import orjson
import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from studio_proxy.config.discovery import find_toml_config_file
from studio_proxy.exceptions import ConfigurationError
from studio_proxy.rotation.pool import mask_credential

from .backend import BackendSettings
from .credentials import CredentialSettings
from .rotation import RotationSettings
from .server import ServerSettings


__all__ = [
    "Settings",
    "ConfigurationError",
    "get_settings",
]

logger = structlog.get_logger(__name__)

CONFIG_FILE_ENV = "STUDIO_CONFIG_FILE"
CONFIG_OVERRIDES_ENV = "STUDIO_PROXY_CONFIG_OVERRIDES"


def _coerce_settings(value: Any, settings_class: type) -> Any:
    """Coerce value to settings class instance.

    Handles: None → default, dict → instance, passthrough existing instances.
    """
    if value is None:
        return settings_class()
    if isinstance(value, settings_class):
        return value
    if isinstance(value, dict):
        return settings_class(**value)
    if hasattr(value, "model_dump"):
        return settings_class(**value.model_dump())
    return value


class Settings(BaseSettings):
    """
    Configuration settings for the studio proxy.

    Settings are loaded from environment variables, a .env file and an
    optional TOML configuration file. Environment variables take precedence
    over .env values; explicit keyword arguments win over both.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    server: ServerSettings = Field(
        default_factory=ServerSettings,
        description="Server configuration settings",
    )

    credentials: CredentialSettings = Field(
        default_factory=CredentialSettings,
        description="API key slots",
    )

    rotation: RotationSettings = Field(
        default_factory=RotationSettings,
        description="Credential rotation tuning",
    )

    backend: BackendSettings = Field(
        default_factory=BackendSettings,
        description="Generative-AI backend configuration",
    )

    @field_validator("server", mode="before")
    @classmethod
    def validate_server(cls, v: Any) -> Any:
        return _coerce_settings(v, ServerSettings)

    @field_validator("credentials", mode="before")
    @classmethod
    def validate_credentials(cls, v: Any) -> Any:
        return _coerce_settings(v, CredentialSettings)

    @field_validator("rotation", mode="before")
    @classmethod
    def validate_rotation(cls, v: Any) -> Any:
        return _coerce_settings(v, RotationSettings)

    @field_validator("backend", mode="before")
    @classmethod
    def validate_backend(cls, v: Any) -> Any:
        return _coerce_settings(v, BackendSettings)

    @property
    def server_url(self) -> str:
        """Get the complete server URL."""
        return f"http://{self.server.host}:{self.server.port}"

    def model_dump_safe(self) -> dict[str, Any]:
        """Dump settings with credential slots masked."""
        data = self.model_dump()
        data["credentials"] = {
            slot: mask_credential(value) if value else None
            for slot, value in data["credentials"].items()
        }
        return data

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file.

        Raises:
            ValueError: If the TOML file is invalid or cannot be read
        """
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ValueError(f"Cannot read TOML config file {toml_path}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls, config_path: Path | str | None = None, **kwargs: Any
    ) -> "Settings":
        """Create Settings instance from an optional TOML configuration file.

        Args:
            config_path: Path to configuration file. If None, uses the
                STUDIO_CONFIG_FILE env var or auto-discovers a file.
            **kwargs: Overrides that take precedence over file values

        Returns:
            Settings: Configured Settings instance
        """
        if config_path is None:
            config_path_env = os.environ.get(CONFIG_FILE_ENV)
            if config_path_env:
                config_path = Path(config_path_env)

        if isinstance(config_path, str):
            config_path = Path(config_path)

        if config_path is None:
            config_path = find_toml_config_file()

        config_data: dict[str, Any] = {}
        if config_path and config_path.exists():
            if config_path.suffix.lower() != ".toml":
                raise ValueError(
                    f"Unsupported config file format: {config_path.suffix}. "
                    "Only TOML (.toml) files are supported."
                )
            config_data = cls.load_toml_config(config_path)
            logger.debug("config_file_loaded", path=str(config_path))

        merged_config = {**config_data, **kwargs}
        return cls(**merged_config)


def get_settings(config_path: Path | str | None = None) -> Settings:
    """Build the settings instance with configuration file support.

    JSON overrides in STUDIO_PROXY_CONFIG_OVERRIDES are applied last; the
    CLI uses them to hand its options to reloaded server processes.

    Raises:
        ConfigurationError: If the configuration cannot be loaded
    """
    try:
        cli_overrides: dict[str, Any] = {}
        cli_overrides_json = os.environ.get(CONFIG_OVERRIDES_ENV)
        if cli_overrides_json:
            with contextlib.suppress(orjson.JSONDecodeError):
                cli_overrides = orjson.loads(cli_overrides_json)

        return Settings.from_config(config_path=config_path, **cli_overrides)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Failed to load configuration: {e}") from e
