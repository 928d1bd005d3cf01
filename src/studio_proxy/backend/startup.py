"""Startup and shutdown helpers for the backend client."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI
from structlog import get_logger

from studio_proxy.backend.gemini import GeminiClient


if TYPE_CHECKING:
    from studio_proxy.config.settings import Settings


logger = get_logger(__name__)


async def initialize_backend_client_startup(app: FastAPI, settings: Settings) -> None:
    """Create the shared Gemini client on startup.

    Args:
        app: FastAPI application
        settings: Application settings
    """
    if getattr(app.state, "backend", None) is not None:
        return

    app.state.backend = GeminiClient(
        base_url=settings.backend.base_url,
        api_version=settings.backend.api_version,
        timeout=settings.backend.http_timeout_seconds,
    )
    logger.info(
        "backend_client_initialized",
        base_url=settings.backend.base_url,
        api_version=settings.backend.api_version,
    )


async def shutdown_backend_client(app: FastAPI) -> None:
    """Close the shared Gemini client.

    Args:
        app: FastAPI application
    """
    client = getattr(app.state, "backend", None)
    if client is not None:
        await client.aclose()
        logger.info("backend_client_closed")
