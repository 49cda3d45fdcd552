"""
Circuit breaker for remote dependencies.

Used in front of Redis and the embedding provider: after ``failure_threshold``
consecutive failures the circuit opens and calls are refused locally until
``reset_timeout`` seconds have passed, then a single trial call is let through.
Other callers are refused until the trial call reports back; one that has not
reported within ``reset_timeout`` is treated as lost and replaced.
"""

import asyncio
import enum
import time
from typing import Callable, Optional

from loguru import logger


class CircuitState(enum.Enum):
    CLOSED = "closed"        # calls pass through
    OPEN = "open"            # calls refused
    HALF_OPEN = "half_open"  # one trial call allowed


class CircuitBreaker:
    """Async-safe circuit breaker keyed by a dependency name."""

    def __init__(
        self,
        name: str = "default",
        failure_threshold: int = 5,
        reset_timeout: float = 30,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            name: Dependency name used in log lines
            failure_threshold: Consecutive failures before the circuit opens
            reset_timeout: Seconds to wait before probing an open circuit
            clock: Monotonic time source, injectable for tests
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.failure_count = 0
        self.last_failure_time: Optional[float] = None
        self.state = CircuitState.CLOSED
        self.trial_started_at: Optional[float] = None
        self._clock = clock
        self._lock = asyncio.Lock()

        logger.debug(
            "Circuit breaker {name} ready",
            name=name,
            failure_threshold=failure_threshold,
            reset_timeout=reset_timeout,
        )

    async def is_allowed(self) -> bool:
        """Return True if a call may go through right now."""
        async with self._lock:
            if self.state == CircuitState.CLOSED:
                return True

            if self.state == CircuitState.OPEN:
                elapsed = (
                    self._clock() - self.last_failure_time
                    if self.last_failure_time is not None
                    else 0.0
                )
                if elapsed >= self.reset_timeout:
                    logger.info(
                        "Circuit breaker {name} half-open after {timeout}s",
                        name=self.name,
                        timeout=self.reset_timeout,
                    )
                    self.state = CircuitState.HALF_OPEN
                    self.trial_started_at = self._clock()
                    return True
                return False

            # HALF_OPEN: refuse while the trial call is outstanding
            if self._clock() - self.trial_started_at >= self.reset_timeout:
                logger.warning("Circuit breaker {name} trial call lost, allowing another", name=self.name)
                self.trial_started_at = self._clock()
                return True
            return False

    async def record_success(self) -> None:
        async with self._lock:
            if self.state == CircuitState.HALF_OPEN:
                logger.info("Circuit breaker {name} closed after successful trial call", name=self.name)
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            self.last_failure_time = None
            self.trial_started_at = None

    async def record_failure(self) -> None:
        async with self._lock:
            self.last_failure_time = self._clock()

            if self.state == CircuitState.HALF_OPEN:
                logger.warning("Circuit breaker {name} reopened after failed trial call", name=self.name)
                self.state = CircuitState.OPEN
                self.trial_started_at = None
                return

            if self.state == CircuitState.CLOSED:
                self.failure_count += 1
                if self.failure_count >= self.failure_threshold:
                    logger.warning(
                        "Circuit breaker {name} opened after {count} failures",
                        name=self.name,
                        count=self.failure_count,
                    )
                    self.state = CircuitState.OPEN
