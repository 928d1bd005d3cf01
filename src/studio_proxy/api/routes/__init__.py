"""API routes for the studio proxy."""

from studio_proxy.api.routes.status import router as status_router
from studio_proxy.api.routes.studio import router as studio_router


__all__ = [
    "status_router",
    "studio_router",
]
