"""Credential rotation with failover for backend calls.

Runs a caller-supplied async operation with the current credential and, when
the backend rejects that credential for a retryable reason (quota, rate
limit, invalid key), moves on to the next one in the pool.
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, TypeVar

from structlog import get_logger

from studio_proxy.exceptions import (
    AllCredentialsExhaustedError,
    AttemptTimeoutError,
    NoCredentialsConfiguredError,
    RotationDeadlineExceededError,
)
from studio_proxy.rotation.classifier import (
    ErrorVerdict,
    RetryPredicate,
    classify_error,
    is_retryable_error,
)
from studio_proxy.rotation.pool import CredentialPool, mask_credential


logger = get_logger(__name__)

T = TypeVar("T")

Operation = Callable[[str], Awaitable[T]]


class CredentialRotator:
    """Owns a credential pool and the shared rotation cursor.

    One instance is created at startup and shared by every call site, so a
    credential found exhausted by one request is skipped first by the next.

    Features:
    - Sticky selection: the cursor stays on a credential while it succeeds
    - Failover to the next credential on retryable errors
    - Fatal errors propagate unchanged without touching the cursor
    - Optional per-attempt timeout, overall deadline and call serialization
    """

    def __init__(
        self,
        pool: CredentialPool,
        *,
        is_retryable: RetryPredicate = is_retryable_error,
        attempt_timeout: float | None = None,
        serialize: bool = False,
    ) -> None:
        """Initialize the rotator.

        Args:
            pool: Credentials in rotation order
            is_retryable: Predicate deciding whether a failed attempt rotates
            attempt_timeout: Seconds allowed for each attempt (None = no limit)
            serialize: Hold a lock across each whole execute call so that
                concurrent calls cannot interleave their rotations
        """
        self._pool = pool
        self._cursor = 0
        self._is_retryable = is_retryable
        self._attempt_timeout = attempt_timeout
        self._lock: asyncio.Lock | None = asyncio.Lock() if serialize else None

    @property
    def pool(self) -> CredentialPool:
        """Get the credential pool."""
        return self._pool

    @property
    def cursor(self) -> int:
        """Get the index of the credential the next call will try first."""
        return self._cursor

    @property
    def current_credential(self) -> str | None:
        """Get the credential at the cursor, or None for an empty pool."""
        if not self._pool:
            return None
        return self._pool[self._cursor]

    def _advance(self) -> None:
        self._cursor = (self._cursor + 1) % len(self._pool)

    async def execute(
        self, operation: Operation[T], *, timeout: float | None = None
    ) -> T:
        """Run ``operation`` with the current credential, rotating on failure.

        Args:
            operation: Async callable performing one backend call with the
                credential it receives. It must be safe to repeat.
            timeout: Optional overall deadline in seconds for all attempts

        Returns:
            The operation's result from the first successful attempt

        Raises:
            NoCredentialsConfiguredError: The pool is empty
            AllCredentialsExhaustedError: Every attempt failed retryably
            RotationDeadlineExceededError: ``timeout`` expired
            Exception: Any fatal error raised by ``operation``, unchanged
        """
        if not self._pool:
            logger.error("no_credentials_configured")
            raise NoCredentialsConfiguredError()

        deadline = asyncio.timeout(timeout)
        try:
            async with deadline, self._serialized():
                return await self._run(operation)
        except TimeoutError as e:
            if timeout is None or not deadline.expired():
                raise
            logger.warning("rotation_deadline_exceeded", timeout=timeout)
            raise RotationDeadlineExceededError(timeout) from e

    @contextlib.asynccontextmanager
    async def _serialized(self) -> AsyncIterator[None]:
        if self._lock is None:
            yield
            return
        async with self._lock:
            yield

    async def _attempt(self, operation: Operation[T], credential: str) -> T:
        attempt_deadline = asyncio.timeout(self._attempt_timeout)
        try:
            async with attempt_deadline:
                return await operation(credential)
        except TimeoutError as e:
            if self._attempt_timeout is None or not attempt_deadline.expired():
                raise
            raise AttemptTimeoutError(self._attempt_timeout) from e

    async def _run(self, operation: Operation[T]) -> T:
        pool_size = len(self._pool)
        start_index = self._cursor
        last_error: Exception | None = None
        attempts = 0

        for attempt in range(1, pool_size + 1):
            index = self._cursor
            credential = self._pool[index]
            masked = mask_credential(credential)
            attempts = attempt

            logger.info(
                "credential_attempt",
                attempt=attempt,
                credential=masked,
                index=index,
            )

            try:
                result = await self._attempt(operation, credential)
            except Exception as e:
                if classify_error(e, self._is_retryable) is ErrorVerdict.FATAL:
                    logger.warning(
                        "credential_attempt_failed",
                        attempt=attempt,
                        credential=masked,
                        error=str(e),
                        error_class=type(e).__name__,
                    )
                    raise

                last_error = e
                self._advance()
                logger.warning(
                    "credential_rotated",
                    attempt=attempt,
                    credential=masked,
                    next_credential=mask_credential(self._pool[self._cursor]),
                    reason=str(e),
                )
                if self._cursor == start_index:
                    break
                continue

            logger.debug(
                "credential_attempt_succeeded", attempt=attempt, credential=masked
            )
            return result

        logger.error(
            "all_credentials_exhausted",
            attempts=attempts,
            total=pool_size,
            last_error=str(last_error),
        )
        raise AllCredentialsExhaustedError(
            attempts=attempts, last_error=last_error
        ) from last_error

    def get_status(self) -> dict[str, Any]:
        """Get rotation status for monitoring.

        Returns:
            Status dictionary with masked credentials and the cursor position
        """
        current = self.current_credential
        return {
            "totalCredentials": len(self._pool),
            "cursor": self._cursor if self._pool else None,
            "currentCredential": mask_credential(current) if current else None,
            "serialized": self._lock is not None,
            "attemptTimeout": self._attempt_timeout,
            "credentials": [
                {
                    "index": index,
                    "credential": masked,
                    "isCurrent": index == self._cursor,
                }
                for index, masked in enumerate(self._pool.masked())
            ],
        }
