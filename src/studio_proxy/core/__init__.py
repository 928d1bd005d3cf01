"""Core utilities shared across the studio proxy."""

from studio_proxy.core.logging import setup_logging


__all__ = ["setup_logging"]
