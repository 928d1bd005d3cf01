"""Consolidated exception hierarchy for the studio proxy.

All exceptions use proper exception chaining with the `from` keyword.
Error types use StrEnum for type safety and autocompletion.
"""

from enum import StrEnum
from typing import Any

from starlette import status


class ErrorType(StrEnum):
    """Error type codes for API responses."""

    INVALID_REQUEST = "invalid_request_error"
    AUTHENTICATION = "authentication_error"
    RATE_LIMIT = "rate_limit_error"
    TIMEOUT = "timeout_error"
    SERVICE_UNAVAILABLE = "service_unavailable_error"
    INTERNAL_SERVER = "internal_server_error"
    CONFIGURATION = "configuration_error"
    BACKEND = "backend_error"


# ============================================================================
# Base Exceptions
# ============================================================================


class StudioProxyError(Exception):
    """Base exception for all studio proxy errors.

    Supports HTTP status codes and structured error details.
    """

    def __init__(
        self,
        message: str,
        *,
        error_type: ErrorType | str = ErrorType.INTERNAL_SERVER,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if isinstance(error_type, str) and not isinstance(error_type, ErrorType):
            try:
                self.error_type = ErrorType(error_type)
            except ValueError:
                self.error_type = error_type  # type: ignore[assignment]
        else:
            self.error_type = error_type
        self.status_code = status_code
        self.details = details or {}


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(StudioProxyError):
    """Raised when configuration loading or validation fails."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message,
            error_type=ErrorType.CONFIGURATION,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
        )


# ============================================================================
# Credential Rotation Errors
# ============================================================================


class NoCredentialsConfiguredError(ConfigurationError):
    """The credential pool is empty; no backend call was attempted."""

    def __init__(
        self,
        message: str = (
            "No Gemini API key is configured. "
            "Set the CLE_1, CLE_2 and/or CLE_3 environment variables."
        ),
    ) -> None:
        super().__init__(message)


class AllCredentialsExhaustedError(StudioProxyError):
    """Every credential in the pool failed for a retryable reason.

    ``last_error`` holds the final underlying retryable error, which is also
    chained as ``__cause__``.
    """

    def __init__(
        self,
        *,
        attempts: int,
        last_error: BaseException | None = None,
        message: str = (
            "All available API keys have reached their quota or are invalid. "
            "Please try again later or check your keys."
        ),
    ) -> None:
        super().__init__(
            message,
            error_type=ErrorType.RATE_LIMIT,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            details={
                "attempts": attempts,
                "last_error": str(last_error) if last_error is not None else None,
            },
        )
        self.attempts = attempts
        self.last_error = last_error


class AttemptTimeoutError(StudioProxyError):
    """A single credential attempt exceeded the per-attempt limit."""

    def __init__(self, timeout: float) -> None:
        super().__init__(
            "Backend attempt timed out",
            error_type=ErrorType.TIMEOUT,
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            details={"timeout": timeout},
        )
        self.timeout = timeout


class RotationDeadlineExceededError(StudioProxyError):
    """The overall deadline of an ``execute`` call expired."""

    def __init__(self, timeout: float) -> None:
        super().__init__(
            "Request deadline exceeded",
            error_type=ErrorType.TIMEOUT,
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            details={"timeout": timeout},
        )
        self.timeout = timeout


# ============================================================================
# Backend Errors
# ============================================================================


class BackendError(StudioProxyError):
    """Error response returned by the generative-AI backend.

    The message carries the HTTP status and the backend's own status and
    message, e.g. ``"429 RESOURCE_EXHAUSTED: Quota exceeded"``.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = status.HTTP_502_BAD_GATEWAY,
        backend_status: str | None = None,
    ) -> None:
        super().__init__(
            message,
            error_type=ErrorType.BACKEND,
            status_code=status_code,
            details={"backend_status": backend_status} if backend_status else None,
        )
        self.backend_status = backend_status


class EmptyBackendResponseError(BackendError):
    """The backend answered successfully but without usable content."""

    def __init__(self, what: str = "content") -> None:
        super().__init__(f"The model returned no {what}")


class HTTPTimeoutError(StudioProxyError):
    """Exception raised when the backend HTTP request times out."""

    def __init__(self, message: str = "Request timed out") -> None:
        super().__init__(
            message,
            error_type=ErrorType.TIMEOUT,
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        )


class HTTPConnectionError(StudioProxyError):
    """Exception raised when the backend HTTP connection fails."""

    def __init__(self, message: str = "Connection failed") -> None:
        super().__init__(
            message,
            error_type=ErrorType.SERVICE_UNAVAILABLE,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
