"""SEMS Monitor — Async Rate Limiter.

Sliding-window limiter that keeps LLM provider calls under their
requests-per-minute quota. One limiter instance per provider client.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque

from sems_monitor.utils.logger import get_logger

logger = get_logger(__name__)


class AsyncRateLimiter:
    """Allow at most ``max_calls`` acquisitions per ``period`` seconds.

    Attributes:
        max_calls: Calls allowed inside one window.
        period: Window length in seconds.
    """

    def __init__(self, max_calls: int, period_seconds: float = 60.0) -> None:
        if max_calls < 1:
            raise ValueError(f"max_calls must be >= 1, got {max_calls}")
        self.max_calls = max_calls
        self.period = period_seconds
        self._calls: deque[float] = deque()
        self._lock = asyncio.Lock()

    def _evict(self, now: float) -> None:
        while self._calls and self._calls[0] <= now - self.period:
            self._calls.popleft()

    async def acquire(self) -> None:
        """Wait until a slot is free, then record the call.

        The lock is held while waiting, so callers are served in order.
        """
        async with self._lock:
            now = time.monotonic()
            self._evict(now)
            if len(self._calls) >= self.max_calls:
                wait = self._calls[0] + self.period - now
                logger.debug(
                    "Rate limit reached (%d/%d), sleeping %.2fs",
                    len(self._calls), self.max_calls, wait,
                )
                await asyncio.sleep(max(0.0, wait))
                now = time.monotonic()
                self._evict(now)
            self._calls.append(now)

    def __repr__(self) -> str:
        return f"AsyncRateLimiter(max_calls={self.max_calls}, period={self.period}s)"
