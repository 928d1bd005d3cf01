"""API middleware for the studio proxy."""

from studio_proxy.api.middleware.errors import setup_error_handlers


__all__ = ["setup_error_handlers"]
