"""Tests for the credential rotator.

Covers sticky selection, failover on retryable errors, fatal short-circuit,
exhaustion, cursor persistence across calls and the optional limits.
"""

import asyncio

import pytest
from structlog.testing import capture_logs

from studio_proxy.exceptions import (
    AllCredentialsExhaustedError,
    AttemptTimeoutError,
    NoCredentialsConfiguredError,
    RotationDeadlineExceededError,
)
from studio_proxy.rotation.pool import CredentialPool
from studio_proxy.rotation.rotator import CredentialRotator


K1 = "AIzaSy-test-key-0001"
K2 = "AIzaSy-test-key-0002"
K3 = "AIzaSy-test-key-0003"


class FakeOperation:
    """Async operation whose outcome per credential is scripted.

    An outcome is either a value to return or an exception to raise.
    """

    def __init__(self, outcomes: dict[str, object]) -> None:
        self.outcomes = outcomes
        self.calls: list[str] = []

    async def __call__(self, credential: str) -> object:
        self.calls.append(credential)
        await asyncio.sleep(0)
        outcome = self.outcomes[credential]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def pool() -> CredentialPool:
    """Create a pool of three credentials."""
    return CredentialPool.from_candidates([K1, K2, K3])


@pytest.fixture
def rotator(pool: CredentialPool) -> CredentialRotator:
    """Create a fresh rotator starting at cursor 0."""
    return CredentialRotator(pool)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_empty_pool_fails_without_calling_operation() -> None:
    """An empty pool raises immediately and never invokes the operation."""
    rotator = CredentialRotator(CredentialPool.from_candidates(["", None]))
    operation = FakeOperation({})

    with pytest.raises(NoCredentialsConfiguredError):
        await rotator.execute(operation)

    assert operation.calls == []
    assert rotator.current_credential is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_immediate_success_keeps_cursor(rotator: CredentialRotator) -> None:
    """A first-attempt success makes exactly one call and leaves the cursor."""
    operation = FakeOperation({K1: "result"})

    result = await rotator.execute(operation)

    assert result == "result"
    assert operation.calls == [K1]
    assert rotator.cursor == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rotates_on_retryable_failure(rotator: CredentialRotator) -> None:
    """Quota errors on k1 and k2 fail over to k3."""
    operation = FakeOperation(
        {
            K1: RuntimeError("quota exceeded"),
            K2: RuntimeError("Quota exceeded for project"),
            K3: "from-k3",
        }
    )

    result = await rotator.execute(operation)

    assert result == "from-k3"
    assert operation.calls == [K1, K2, K3]
    assert rotator.cursor == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fatal_error_short_circuits(rotator: CredentialRotator) -> None:
    """A non-retryable error is re-raised unchanged after one attempt."""
    error = ValueError("invalid request body")
    operation = FakeOperation({K1: error, K2: "unused", K3: "unused"})

    with pytest.raises(ValueError) as exc_info:
        await rotator.execute(operation)

    assert exc_info.value is error
    assert operation.calls == [K1]
    assert rotator.cursor == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_full_exhaustion(rotator: CredentialRotator) -> None:
    """Every credential rate limited raises the aggregate error."""
    errors = {
        key: RuntimeError(f"429 rate limited ({key[-4:]})") for key in (K1, K2, K3)
    }
    operation = FakeOperation(dict(errors))

    with pytest.raises(AllCredentialsExhaustedError) as exc_info:
        await rotator.execute(operation)

    exhausted = exc_info.value
    assert operation.calls == [K1, K2, K3]
    assert rotator.cursor == 0
    assert exhausted.attempts == 3
    assert exhausted.last_error is errors[K3]
    assert exhausted.__cause__ is errors[K3]
    assert exhausted.status_code == 429
    assert exhausted.details["last_error"] == "429 rate limited (0003)"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cursor_persists_across_calls(rotator: CredentialRotator) -> None:
    """A later call starts with the credential that last succeeded."""
    first = FakeOperation(
        {K1: RuntimeError("quota"), K2: RuntimeError("quota"), K3: "ok"}
    )
    await rotator.execute(first)
    assert rotator.cursor == 2

    second = FakeOperation({K1: "k1", K2: "k2", K3: "k3"})
    result = await rotator.execute(second)

    assert result == "k3"
    assert second.calls == [K3]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rotation_wraps_around_from_later_start(
    rotator: CredentialRotator,
) -> None:
    """Rotation proceeds modulo the pool size from wherever the cursor is."""
    await rotator.execute(FakeOperation({K1: RuntimeError("quota"), K2: "ok"}))
    assert rotator.cursor == 1

    operation = FakeOperation(
        {K2: RuntimeError("429"), K3: RuntimeError("resource exhausted"), K1: "k1"}
    )
    result = await rotator.execute(operation)

    assert result == "k1"
    assert operation.calls == [K2, K3, K1]
    assert rotator.cursor == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_exhaustion_from_later_start_returns_cursor(
    rotator: CredentialRotator,
) -> None:
    await rotator.execute(FakeOperation({K1: RuntimeError("quota"), K2: "ok"}))

    operation = FakeOperation({key: RuntimeError("quota") for key in (K1, K2, K3)})
    with pytest.raises(AllCredentialsExhaustedError):
        await rotator.execute(operation)

    assert operation.calls == [K2, K3, K1]
    assert rotator.cursor == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fatal_after_rotation_keeps_advanced_cursor(
    rotator: CredentialRotator,
) -> None:
    """Only retryable failures move the cursor."""
    error = RuntimeError("500 INTERNAL: backend failure")
    operation = FakeOperation({K1: RuntimeError("API key not valid"), K2: error})

    with pytest.raises(RuntimeError) as exc_info:
        await rotator.execute(operation)

    assert exc_info.value is error
    assert operation.calls == [K1, K2]
    assert rotator.cursor == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_single_credential_exhausts_after_one_attempt() -> None:
    rotator = CredentialRotator(CredentialPool.from_candidates([K1]))
    operation = FakeOperation({K1: RuntimeError("quota")})

    with pytest.raises(AllCredentialsExhaustedError) as exc_info:
        await rotator.execute(operation)

    assert operation.calls == [K1]
    assert exc_info.value.attempts == 1
    assert rotator.cursor == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_at_most_one_attempt_per_entry_with_duplicates() -> None:
    rotator = CredentialRotator(CredentialPool.from_candidates([K1, K1]))
    operation = FakeOperation({K1: RuntimeError("quota")})

    with pytest.raises(AllCredentialsExhaustedError):
        await rotator.execute(operation)

    assert operation.calls == [K1, K1]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_injected_predicate_replaces_default(pool: CredentialPool) -> None:
    """A custom classifier decides retryability instead of the substrings."""

    class QuotaExceeded(Exception):
        pass

    rotator = CredentialRotator(
        pool, is_retryable=lambda error: isinstance(error, QuotaExceeded)
    )

    operation = FakeOperation({K1: QuotaExceeded("no message match"), K2: "ok"})
    assert await rotator.execute(operation) == "ok"
    assert rotator.cursor == 1

    fatal = RuntimeError("quota")
    operation = FakeOperation({K2: fatal})
    with pytest.raises(RuntimeError) as exc_info:
        await rotator.execute(operation)
    assert exc_info.value is fatal
    assert rotator.cursor == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_attempt_timeout_is_fatal_by_default(pool: CredentialPool) -> None:
    rotator = CredentialRotator(pool, attempt_timeout=0.05)
    calls: list[str] = []

    async def slow(credential: str) -> str:
        calls.append(credential)
        await asyncio.sleep(5)
        return "late"

    with pytest.raises(AttemptTimeoutError) as exc_info:
        await rotator.execute(slow)

    assert exc_info.value.timeout == 0.05
    assert calls == [K1]
    assert rotator.cursor == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_attempt_timeout_can_be_classified_retryable(
    pool: CredentialPool,
) -> None:
    rotator = CredentialRotator(
        pool,
        attempt_timeout=0.05,
        is_retryable=lambda error: isinstance(error, AttemptTimeoutError),
    )

    async def slow_first(credential: str) -> str:
        if credential == K1:
            await asyncio.sleep(5)
        return credential

    assert await rotator.execute(slow_first) == K2
    assert rotator.cursor == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_overall_deadline(rotator: CredentialRotator) -> None:
    async def hang(credential: str) -> str:
        await asyncio.sleep(5)
        return credential

    with pytest.raises(RotationDeadlineExceededError) as exc_info:
        await rotator.execute(hang, timeout=0.05)

    assert exc_info.value.status_code == 504
    assert rotator.cursor == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_operation_timeout_error_is_not_a_deadline(
    rotator: CredentialRotator,
) -> None:
    """A TimeoutError raised by the operation itself propagates unchanged."""
    error = TimeoutError()
    operation = FakeOperation({K1: error})

    with pytest.raises(TimeoutError) as exc_info:
        await rotator.execute(operation, timeout=10)

    assert exc_info.value is error
    assert not isinstance(exc_info.value, RotationDeadlineExceededError)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cancellation_propagates(rotator: CredentialRotator) -> None:
    """Cancelling a caller never counts as a failed credential."""
    started = asyncio.Event()

    async def wait_forever(credential: str) -> str:
        started.set()
        await asyncio.sleep(60)
        return credential

    task = asyncio.create_task(rotator.execute(wait_forever))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert rotator.cursor == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrent_callers_without_lock_all_succeed(
    rotator: CredentialRotator,
) -> None:
    """Interleaved rotations still give every caller a working credential."""
    operation = FakeOperation({K1: RuntimeError("quota"), K2: "k2", K3: "k3"})

    results = await asyncio.gather(
        rotator.execute(operation), rotator.execute(operation)
    )

    assert set(results) <= {"k2", "k3"}
    assert operation.calls.count(K1) == 2
    assert rotator.cursor in (1, 2)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_serialized_callers_do_not_interleave(pool: CredentialPool) -> None:
    rotator = CredentialRotator(pool, serialize=True)
    events: list[str] = []

    async def traced(credential: str) -> str:
        events.append(f"start:{credential[-4:]}")
        await asyncio.sleep(0.01)
        events.append(f"end:{credential[-4:]}")
        if credential == K1:
            raise RuntimeError("quota")
        return credential

    results = await asyncio.gather(rotator.execute(traced), rotator.execute(traced))

    assert results == [K2, K2]
    assert events == [
        "start:0001",
        "end:0001",
        "start:0002",
        "end:0002",
        "start:0002",
        "end:0002",
    ]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_logs_attempts_with_masked_credentials(
    rotator: CredentialRotator,
) -> None:
    operation = FakeOperation({K1: RuntimeError("quota"), K2: "ok"})

    with capture_logs() as logs:
        await rotator.execute(operation)

    attempts = [log for log in logs if log["event"] == "credential_attempt"]
    rotations = [log for log in logs if log["event"] == "credential_rotated"]
    assert [log["attempt"] for log in attempts] == [1, 2]
    assert [log["credential"] for log in attempts] == ["...0001", "...0002"]
    assert len(rotations) == 1
    assert rotations[0]["next_credential"] == "...0002"
    for secret in (K1, K2, K3):
        assert secret not in repr(logs)


@pytest.mark.unit
def test_status_reports_masked_pool(rotator: CredentialRotator) -> None:
    status = rotator.get_status()

    assert status["totalCredentials"] == 3
    assert status["cursor"] == 0
    assert status["currentCredential"] == "...0001"
    assert status["serialized"] is False
    assert [entry["isCurrent"] for entry in status["credentials"]] == [
        True,
        False,
        False,
    ]
    assert K1 not in repr(status)


@pytest.mark.unit
def test_status_for_empty_pool() -> None:
    status = CredentialRotator(CredentialPool()).get_status()

    assert status["totalCredentials"] == 0
    assert status["cursor"] is None
    assert status["currentCredential"] is None
    assert status["credentials"] == []
