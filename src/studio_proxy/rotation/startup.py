"""Startup and shutdown helpers for the credential rotator.

Integrates with the application's lifecycle management.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI
from structlog import get_logger

from studio_proxy.config.credentials import CREDENTIAL_SLOTS
from studio_proxy.rotation.pool import build_credential_pool
from studio_proxy.rotation.rotator import CredentialRotator


if TYPE_CHECKING:
    from studio_proxy.config.settings import Settings


logger = get_logger(__name__)


def create_credential_rotator(settings: Settings) -> CredentialRotator:
    """Build the process-wide rotator from the configured credential slots.

    Args:
        settings: Application settings

    Returns:
        CredentialRotator over the usable credentials (possibly none)
    """
    pool = build_credential_pool(
        settings.credentials.candidates(),
        source=CREDENTIAL_SLOTS,
    )
    return CredentialRotator(
        pool,
        attempt_timeout=settings.rotation.attempt_timeout_seconds,
        serialize=settings.rotation.serialize_attempts,
    )


async def initialize_credential_rotator_startup(
    app: FastAPI, settings: Settings
) -> None:
    """Create the credential rotator on startup.

    A rotator created ahead of startup (e.g. by tests) is kept as is.

    Args:
        app: FastAPI application
        settings: Application settings
    """
    existing = getattr(app.state, "rotator", None)
    if existing is not None:
        logger.info(
            "credential_rotator_already_initialized",
            credentials=len(existing.pool),
        )
        return

    rotator = create_credential_rotator(settings)
    app.state.rotator = rotator

    logger.info(
        "credential_rotator_initialized",
        credentials=len(rotator.pool),
        attempt_timeout=settings.rotation.attempt_timeout_seconds,
        serialized=settings.rotation.serialize_attempts,
    )


async def shutdown_credential_rotator(app: FastAPI) -> None:
    """Log the final rotation position on shutdown.

    Args:
        app: FastAPI application
    """
    rotator = getattr(app.state, "rotator", None)
    if rotator is not None and rotator.pool:
        logger.info(
            "credential_rotator_stopped",
            cursor=rotator.cursor,
            credentials=len(rotator.pool),
        )
