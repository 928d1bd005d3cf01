"""Configuration module for the studio proxy."""

from studio_proxy.exceptions import ConfigurationError

from .backend import BackendSettings
from .credentials import CREDENTIAL_SLOTS, CredentialSettings
from .rotation import RotationSettings
from .server import ServerSettings
from .settings import Settings, get_settings


__all__ = [
    "BackendSettings",
    "CREDENTIAL_SLOTS",
    "ConfigurationError",
    "CredentialSettings",
    "RotationSettings",
    "ServerSettings",
    "Settings",
    "get_settings",
]
