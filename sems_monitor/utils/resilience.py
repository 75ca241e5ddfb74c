"""SEMS Monitor — Resilience Utilities.

Circuit breaker for the LLM providers and a retry decorator for
idempotent store reads.

Circuit Breaker states:
  CLOSED    → calls flow through
  OPEN      → provider is failing, calls blocked until cooldown expires
  HALF_OPEN → cooldown expired, the next call is a trial

Usage:
    cb = CircuitBreaker("gemini", failure_threshold=5, cooldown_seconds=300)
    result = await cb.call(client.generate, prompt)

    @retry_async(max_attempts=3, base_delay=0.5)
    async def read_record():
        ...

Delivery of notifications is never retried: dispatch is a single attempt.
"""

from __future__ import annotations

import asyncio
import functools
import time
from typing import Any, Callable, Sequence, Type

from sems_monitor.utils.logger import get_logger

logger = get_logger(__name__)


class CircuitOpenError(Exception):
    """Raised when a circuit breaker is OPEN and blocking calls."""

    def __init__(self, name: str, remaining_seconds: float) -> None:
        self.name = name
        self.remaining_seconds = remaining_seconds
        super().__init__(
            f"Circuit '{name}' is OPEN, retry in {remaining_seconds:.0f}s"
        )


class CircuitBreaker:
    """Blocks calls to a provider after repeated consecutive failures.

    Attributes:
        name: Provider name used in log lines.
        failure_threshold: Consecutive failures that open the circuit.
        cooldown_seconds: How long the circuit stays open.
    """

    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        cooldown_seconds: float = 300.0,
    ) -> None:
        self.name = name
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = cooldown_seconds

        self._state = self.CLOSED
        self._failures = 0
        self._opened_at = 0.0
        self._trips = 0

    @property
    def state(self) -> str:
        """Current state, reporting HALF_OPEN once the cooldown has passed."""
        if self._state == self.OPEN:
            if time.monotonic() - self._opened_at >= self.cooldown_seconds:
                return self.HALF_OPEN
        return self._state

    @property
    def remaining_cooldown(self) -> float:
        if self._state != self.OPEN:
            return 0.0
        return max(0.0, self.cooldown_seconds - (time.monotonic() - self._opened_at))

    @property
    def total_trips(self) -> int:
        return self._trips

    async def call(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Await ``func(*args, **kwargs)`` through the breaker.

        Raises:
            CircuitOpenError: If the circuit is OPEN.
            Exception: Whatever ``func`` raised, after recording the failure.
        """
        if self.state == self.OPEN:
            raise CircuitOpenError(self.name, self.remaining_cooldown)

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            self.record_failure(e)
            raise
        self.record_success()
        return result

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit '%s': HALF_OPEN → CLOSED", self.name)
        self._state = self.CLOSED
        self._failures = 0

    def record_failure(self, error: BaseException) -> None:
        """Count a failure; a failed trial call re-opens immediately."""
        was_half_open = self.state == self.HALF_OPEN
        self._failures += 1

        if was_half_open or self._failures >= self.failure_threshold:
            self._state = self.OPEN
            self._opened_at = time.monotonic()
            self._trips += 1
            logger.warning(
                "Circuit '%s' OPEN (trip #%d, %d failures, cooldown %.0fs): %s",
                self.name, self._trips, self._failures,
                self.cooldown_seconds, str(error)[:200],
            )
        else:
            logger.debug(
                "Circuit '%s': failure %d/%d: %s",
                self.name, self._failures, self.failure_threshold,
                type(error).__name__,
            )


def retry_async(
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    exceptions: Sequence[Type[BaseException]] = (Exception,),
) -> Callable:
    """Retry an async function with exponential backoff.

    delay = base_delay * 2^(attempt-1), capped at max_delay. The last
    failure is re-raised.

    Args:
        max_attempts: Attempts including the first one.
        base_delay: Initial delay in seconds.
        max_delay: Upper bound on any single delay.
        exceptions: Exception types that trigger a retry.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except tuple(exceptions) as e:
                    if attempt == max_attempts:
                        logger.warning(
                            "Giving up on %s after %d attempts: %s",
                            func.__name__, max_attempts, e,
                        )
                        raise
                    delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
                    logger.debug(
                        "Retry %d/%d for %s in %.1fs: %s",
                        attempt, max_attempts, func.__name__, delay, e,
                    )
                    await asyncio.sleep(delay)
        return wrapper
    return decorator
