import asyncio

import pytest

from awx_installer.errors import InstallationCancelled, ReadinessTimeoutError
from awx_installer.models import PollConfig, PollStatus
from awx_installer.readiness import ReadinessWaiter


def ready_on_attempt(k: int, fail_with=None):
    """Predicate that is not ready (or raises `fail_with`) until call k."""
    calls = []

    async def predicate():
        calls.append(len(calls) + 1)
        if len(calls) < k:
            if fail_with is not None:
                raise fail_with
            return False
        return True

    return predicate, calls


@pytest.mark.asyncio
@pytest.mark.parametrize("k", [1, 2, 5])
async def test_ready_on_attempt_k(sleep, k):
    """Ready on attempt k means k calls and k-1 sleeps."""
    predicate, calls = ready_on_attempt(k)
    waiter = ReadinessWaiter(PollConfig(max_attempts=5, interval=3.0), sleep=sleep)

    outcome = await waiter.wait(predicate, "test resource")

    assert outcome.status == PollStatus.ready
    assert outcome.attempts == k
    assert len(calls) == k
    assert sleep.delays == [3.0] * (k - 1)


@pytest.mark.asyncio
async def test_never_ready_times_out(sleep):
    predicate, calls = ready_on_attempt(100)
    waiter = ReadinessWaiter(PollConfig(max_attempts=4, interval=1.0), sleep=sleep)

    outcome = await waiter.wait(predicate, "test resource")

    assert outcome.status == PollStatus.timed_out
    assert outcome.attempts == 4
    assert len(calls) == 4
    assert len(sleep.delays) == 3
    assert not outcome.is_ready


@pytest.mark.asyncio
async def test_transient_errors_do_not_abort(sleep):
    predicate, calls = ready_on_attempt(3, fail_with=RuntimeError("NotFound"))
    waiter = ReadinessWaiter(PollConfig(max_attempts=5, interval=1.0), sleep=sleep)

    outcome = await waiter.wait(predicate, "test resource")

    assert outcome.is_ready
    assert outcome.attempts == 3


@pytest.mark.asyncio
async def test_single_attempt_never_sleeps(sleep):
    predicate, calls = ready_on_attempt(2)
    waiter = ReadinessWaiter(PollConfig(max_attempts=1, interval=10.0), sleep=sleep)

    outcome = await waiter.wait(predicate, "test resource")

    assert outcome.status == PollStatus.timed_out
    assert calls == [1]
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_zero_interval_has_no_measurable_delay():
    predicate, calls = ready_on_attempt(100)
    waiter = ReadinessWaiter(PollConfig(max_attempts=20, interval=0))

    outcome = await waiter.wait(predicate, "test resource")

    assert outcome.attempts == 20
    assert outcome.elapsed_time < 0.5


@pytest.mark.asyncio
async def test_observed_value_is_kept(sleep):
    async def predicate():
        return "s3cret"

    outcome = await ReadinessWaiter(sleep=sleep).wait(predicate, "secret")

    assert outcome.observed == "s3cret"


@pytest.mark.asyncio
async def test_plain_true_has_no_observed_value(sleep):
    predicate, _ = ready_on_attempt(1)

    outcome = await ReadinessWaiter(sleep=sleep).wait(predicate, "test resource")

    assert outcome.observed is None


@pytest.mark.asyncio
async def test_cancellation_is_reported(sleep):
    predicate, calls = ready_on_attempt(10, fail_with=asyncio.CancelledError())
    waiter = ReadinessWaiter(PollConfig(max_attempts=5, interval=1.0), sleep=sleep)

    outcome = await waiter.wait(predicate, "test resource")

    assert outcome.status == PollStatus.cancelled
    assert outcome.attempts == 1


@pytest.mark.asyncio
async def test_require_raises_on_timeout(sleep):
    predicate, _ = ready_on_attempt(100)
    waiter = ReadinessWaiter(PollConfig(max_attempts=2, interval=0), sleep=sleep)

    with pytest.raises(ReadinessTimeoutError) as excinfo:
        await waiter.require(predicate, "AWX to respond", hint="check logs")

    assert excinfo.value.outcome.attempts == 2
    assert excinfo.value.hint == "check logs"
    assert "AWX to respond" in str(excinfo.value)


@pytest.mark.asyncio
async def test_require_raises_on_cancel(sleep):
    predicate, _ = ready_on_attempt(10, fail_with=asyncio.CancelledError())
    waiter = ReadinessWaiter(PollConfig(max_attempts=3, interval=0), sleep=sleep)

    with pytest.raises(InstallationCancelled):
        await waiter.require(predicate, "cluster")


@pytest.mark.asyncio
async def test_attempts_are_logged(sleep, log_messages):
    predicate, _ = ready_on_attempt(3)
    waiter = ReadinessWaiter(PollConfig(max_attempts=3, interval=0), sleep=sleep)

    await waiter.wait(predicate, "awx-system namespace")

    assert "Attempt 1/3 - Waiting for awx-system namespace..." in log_messages
    assert "Attempt 2/3 - Waiting for awx-system namespace..." in log_messages


@pytest.mark.asyncio
async def test_tolerate_timeout_returns_timed_out(sleep):
    predicate, _ = ready_on_attempt(100)
    waiter = ReadinessWaiter(PollConfig(max_attempts=3, interval=0), sleep=sleep)

    outcome = await waiter.tolerate_timeout(predicate, "AWX pods")

    assert outcome.status == PollStatus.timed_out
    assert outcome.attempts == 3


@pytest.mark.asyncio
async def test_tolerate_timeout_still_raises_on_cancel(sleep):
    predicate, _ = ready_on_attempt(10, fail_with=asyncio.CancelledError())
    waiter = ReadinessWaiter(PollConfig(max_attempts=3, interval=0), sleep=sleep)

    with pytest.raises(InstallationCancelled):
        await waiter.tolerate_timeout(predicate, "admin password secret")
