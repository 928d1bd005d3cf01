"""API layer for the studio proxy."""

from studio_proxy.api.app import create_app, get_app
from studio_proxy.api.dependencies import (
    BackendDep,
    RotatorDep,
    SettingsDep,
    get_backend,
    get_rotator,
)


__all__ = [
    "BackendDep",
    "RotatorDep",
    "SettingsDep",
    "create_app",
    "get_app",
    "get_backend",
    "get_rotator",
]
