"""FastAPI application factory for the studio proxy."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from structlog import get_logger

from studio_proxy import __version__
from studio_proxy.api.lifecycle import (
    LifecycleComponent,
    execute_shutdown_sequence,
    execute_startup_sequence,
    log_server_start,
)
from studio_proxy.api.middleware.errors import setup_error_handlers
from studio_proxy.api.routes.status import router as status_router
from studio_proxy.api.routes.studio import router as studio_router
from studio_proxy.backend.startup import (
    initialize_backend_client_startup,
    shutdown_backend_client,
)
from studio_proxy.config.settings import Settings, get_settings
from studio_proxy.core.logging import setup_logging
from studio_proxy.rotation.startup import (
    initialize_credential_rotator_startup,
    shutdown_credential_rotator,
)


logger = get_logger(__name__)


LIFECYCLE_COMPONENTS: list[LifecycleComponent] = [
    {
        "name": "Credential Rotator",
        "startup": initialize_credential_rotator_startup,
        "shutdown": shutdown_credential_rotator,
    },
    {
        "name": "Backend Client",
        "startup": initialize_backend_client_startup,
        "shutdown": shutdown_backend_client,
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager using component-based approach."""
    settings: Settings = app.state.settings

    log_server_start(settings)
    await execute_startup_sequence(LIFECYCLE_COMPONENTS, app, settings)

    yield

    logger.debug("server_stop")
    await execute_shutdown_sequence(LIFECYCLE_COMPONENTS, app)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override. If None, uses get_settings().

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    if not structlog.is_configured():
        setup_logging(
            json_logs=settings.server.json_logs,
            log_level_name=settings.server.log_level,
            log_file=settings.server.log_file,
        )

    app = FastAPI(
        title="GenAI Studio Proxy",
        description="Chat, transcription and speech endpoints backed by Gemini "
        "with automatic API-key failover",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    setup_error_handlers(app)

    app.include_router(status_router)
    app.include_router(studio_router, prefix="/api")

    return app


def get_app() -> FastAPI:
    """Get the FastAPI application instance (uvicorn factory entry point)."""
    return create_app()
