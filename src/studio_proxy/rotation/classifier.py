"""Retryable/fatal classification of backend errors.

A retryable error is attributable to the credential that was used (quota,
rate limiting, invalid key) and may succeed with another credential. Every
other error is fatal: rotating credentials cannot fix it.
"""

from collections.abc import Callable
from enum import StrEnum

from studio_proxy.rotation.constants import RETRYABLE_ERROR_MARKERS


RetryPredicate = Callable[[BaseException], bool]


class ErrorVerdict(StrEnum):
    """Outcome of classifying a failed attempt."""

    RETRYABLE = "retryable"
    FATAL = "fatal"


def error_message(error: BaseException) -> str:
    """Return the lower-cased message of an error, or "" when it has none."""
    message = getattr(error, "message", None)
    if not isinstance(message, str) or not message:
        message = str(error)
    return message.lower()


def is_retryable_error(error: BaseException) -> bool:
    """Check whether an error message names a quota, rate limit or bad key.

    Args:
        error: Exception raised by a backend attempt

    Returns:
        True if another credential might succeed
    """
    message = error_message(error)
    if not message:
        return False
    return any(marker in message for marker in RETRYABLE_ERROR_MARKERS)


def classify_error(
    error: BaseException,
    is_retryable: RetryPredicate = is_retryable_error,
) -> ErrorVerdict:
    """Classify an error with the given predicate."""
    return ErrorVerdict.RETRYABLE if is_retryable(error) else ErrorVerdict.FATAL
