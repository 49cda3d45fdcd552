"""
Tests for the circuit breaker implementation.
"""

import pytest

from app.utils.circuit_breaker import CircuitBreaker, CircuitState


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def circuit_breaker(clock):
    return CircuitBreaker(name="test", failure_threshold=3, reset_timeout=30, clock=clock)


async def _open(breaker: CircuitBreaker) -> None:
    for _ in range(breaker.failure_threshold):
        await breaker.record_failure()


@pytest.mark.asyncio
async def test_circuit_breaker_initial_state(circuit_breaker):
    assert circuit_breaker.state == CircuitState.CLOSED
    assert circuit_breaker.failure_count == 0
    assert await circuit_breaker.is_allowed() is True


@pytest.mark.asyncio
async def test_circuit_breaker_stays_closed_below_threshold(circuit_breaker):
    await circuit_breaker.record_failure()
    await circuit_breaker.record_failure()

    assert circuit_breaker.state == CircuitState.CLOSED
    assert await circuit_breaker.is_allowed() is True


@pytest.mark.asyncio
async def test_circuit_breaker_opens_after_threshold(circuit_breaker):
    await _open(circuit_breaker)

    assert circuit_breaker.state == CircuitState.OPEN
    assert await circuit_breaker.is_allowed() is False


@pytest.mark.asyncio
async def test_circuit_breaker_half_open_after_timeout(circuit_breaker, clock):
    await _open(circuit_breaker)

    clock.now += 29
    assert await circuit_breaker.is_allowed() is False

    clock.now += 1
    assert await circuit_breaker.is_allowed() is True
    assert circuit_breaker.state == CircuitState.HALF_OPEN


@pytest.mark.asyncio
async def test_circuit_breaker_closes_after_successful_trial_call(circuit_breaker, clock):
    await _open(circuit_breaker)
    clock.now += 30
    await circuit_breaker.is_allowed()

    await circuit_breaker.record_success()

    assert circuit_breaker.state == CircuitState.CLOSED
    assert circuit_breaker.failure_count == 0
    assert await circuit_breaker.is_allowed() is True


@pytest.mark.asyncio
async def test_circuit_breaker_reopens_after_failed_trial_call(circuit_breaker, clock):
    await _open(circuit_breaker)
    clock.now += 30
    await circuit_breaker.is_allowed()

    await circuit_breaker.record_failure()

    assert circuit_breaker.state == CircuitState.OPEN
    assert await circuit_breaker.is_allowed() is False


@pytest.mark.asyncio
async def test_success_resets_failure_count(circuit_breaker):
    await circuit_breaker.record_failure()
    await circuit_breaker.record_failure()
    await circuit_breaker.record_success()
    await circuit_breaker.record_failure()

    assert circuit_breaker.state == CircuitState.CLOSED
    assert circuit_breaker.failure_count == 1


@pytest.mark.asyncio
async def test_half_open_lets_one_trial_call_through(clock):
    breaker = CircuitBreaker(name="test", failure_threshold=1, reset_timeout=30, clock=clock)
    await breaker.record_failure()
    clock.now += 30

    allowed = [await breaker.is_allowed() for _ in range(5)]

    assert allowed == [True, False, False, False, False]
    assert breaker.state == CircuitState.HALF_OPEN


@pytest.mark.asyncio
async def test_callers_pass_again_after_trial_call_succeeds(circuit_breaker, clock):
    await _open(circuit_breaker)
    clock.now += 30
    assert await circuit_breaker.is_allowed() is True
    assert await circuit_breaker.is_allowed() is False

    await circuit_breaker.record_success()

    assert [await circuit_breaker.is_allowed() for _ in range(3)] == [True, True, True]


@pytest.mark.asyncio
async def test_silent_trial_call_is_replaced(circuit_breaker, clock):
    await _open(circuit_breaker)
    clock.now += 30
    assert await circuit_breaker.is_allowed() is True

    clock.now += 29
    assert await circuit_breaker.is_allowed() is False

    clock.now += 1
    assert await circuit_breaker.is_allowed() is True
    assert await circuit_breaker.is_allowed() is False
