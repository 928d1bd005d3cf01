"""Error handling middleware for the studio proxy.

Provides unified error handling for all StudioProxyError subclasses
using their built-in error_type and status_code attributes.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException
from structlog import get_logger

from studio_proxy.exceptions import ErrorType, StudioProxyError


logger = get_logger(__name__)


def _build_error_response(
    status_code: int, error_type: str, message: str
) -> JSONResponse:
    """Build standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={"error": {"type": error_type, "message": message}},
    )


def setup_error_handlers(app: FastAPI) -> None:
    """Setup error handlers for the FastAPI application."""

    @app.exception_handler(StudioProxyError)
    async def studio_proxy_error_handler(
        request: Request, exc: StudioProxyError
    ) -> JSONResponse:
        """Handle all StudioProxyError subclasses using their built-in attributes."""
        error_type = (
            exc.error_type.value
            if hasattr(exc.error_type, "value")
            else str(exc.error_type)
        )

        log_kwargs: dict[str, Any] = {
            "error_type": error_type,
            "error_message": str(exc),
            "status_code": exc.status_code,
            "request_method": request.method,
            "request_url": str(request.url.path),
        }
        if exc.details:
            log_kwargs["details"] = exc.details

        if exc.status_code >= 500:
            logger.error(type(exc).__name__, **log_kwargs)
        else:
            logger.warning(type(exc).__name__, **log_kwargs)

        return _build_error_response(exc.status_code, error_type, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle malformed request bodies."""
        logger.warning(
            "request_validation_failed",
            errors=exc.errors(),
            request_method=request.method,
            request_url=str(request.url.path),
        )
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"{location}: {first.get('msg', 'Invalid request')}"
        return _build_error_response(
            422,
            ErrorType.INVALID_REQUEST.value,
            message,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle FastAPI and Starlette HTTP exceptions."""
        log_kwargs = {
            "error_type": f"http_{exc.status_code}",
            "error_message": exc.detail,
            "status_code": exc.status_code,
            "request_method": request.method,
            "request_url": str(request.url.path),
        }

        if exc.status_code in (404, 405):
            logger.debug(f"HTTP {exc.status_code}", **log_kwargs)
        else:
            logger.error("HTTP exception", **log_kwargs)

        response = _build_error_response(
            exc.status_code, "http_error", str(exc.detail)
        )
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle all other unhandled exceptions."""
        logger.error(
            "Unhandled exception",
            error_type="unhandled_exception",
            error_message=str(exc),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_method=request.method,
            request_url=str(request.url.path),
            exc_info=exc,
        )

        return _build_error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorType.INTERNAL_SERVER.value,
            "An internal server error occurred",
        )
