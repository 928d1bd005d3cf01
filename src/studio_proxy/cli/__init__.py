from .commands.serve import serve
from .main import app, app_main, main, version_callback


__all__ = [
    "app",
    "app_main",
    "main",
    "serve",
    "version_callback",
]
