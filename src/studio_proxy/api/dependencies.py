"""Shared FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from studio_proxy.backend.gemini import GeminiClient
from studio_proxy.config.settings import Settings
from studio_proxy.exceptions import ConfigurationError
from studio_proxy.rotation.rotator import CredentialRotator


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    settings: Settings = request.app.state.settings
    return settings


def get_rotator(request: Request) -> CredentialRotator:
    """Get the process-wide credential rotator.

    Raises:
        ConfigurationError: If startup did not create a rotator
    """
    rotator = getattr(request.app.state, "rotator", None)
    if rotator is None:
        raise ConfigurationError("Credential rotator not initialized")
    return rotator


def get_backend(request: Request) -> GeminiClient:
    """Get the shared backend client.

    Raises:
        ConfigurationError: If startup did not create a backend client
    """
    backend = getattr(request.app.state, "backend", None)
    if backend is None:
        raise ConfigurationError("Backend client not initialized")
    return backend


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
RotatorDep = Annotated[CredentialRotator, Depends(get_rotator)]
BackendDep = Annotated[GeminiClient, Depends(get_backend)]
