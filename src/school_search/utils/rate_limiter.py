"""Sliding-window rate limiter for outbound directory calls.

Two limits apply to every call:
- at most ``max_calls`` inside any rolling ``window`` seconds
- at least ``min_delay`` seconds between consecutive calls

One instance is shared by every strategy of an engine, so the bound holds in
aggregate. The check-sleep-record sequence runs under an ``asyncio.Lock``;
waiters queue behind the one currently sleeping.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
import logging
import time


logger = logging.getLogger(__name__)


class RateLimiter:
    """Bound outbound calls per rolling window plus a minimum inter-call spacing."""

    def __init__(
        self,
        max_calls: int = 20,
        window: float = 60.0,
        min_delay: float = 0.1,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        self.max_calls = max_calls
        self.window = window
        self.min_delay = min_delay
        self._clock = clock
        self._sleep = sleep
        self._call_timestamps: deque[float] = deque()
        self._last_call_time: float | None = None
        self._lock = asyncio.Lock()

    @property
    def last_call_time(self) -> float | None:
        return self._last_call_time

    def _prune(self, now: float) -> None:
        while self._call_timestamps and now - self._call_timestamps[0] >= self.window:
            self._call_timestamps.popleft()

    async def acquire(self) -> None:
        """Suspend until one more call is allowed, then record it."""
        async with self._lock:
            now = self._clock()
            self._prune(now)

            if len(self._call_timestamps) >= self.max_calls:
                oldest = self._call_timestamps[0]
                wait = self.window - (now - oldest)
                if wait > 0:
                    logger.info("Rate limit reached (%d calls/%.0fs), waiting %.3fs", self.max_calls, self.window, wait)
                    await self._sleep(wait)
                    now = self._clock()

            if self._last_call_time is not None:
                since_last = now - self._last_call_time
                if since_last < self.min_delay:
                    await self._sleep(self.min_delay - since_last)

            stamp = self._clock()
            self._call_timestamps.append(stamp)
            self._last_call_time = stamp

    def calls_in_window(self) -> int:
        """Number of recorded calls still inside the rolling window."""
        self._prune(self._clock())
        return len(self._call_timestamps)

    def snapshot(self) -> dict[str, float | int]:
        return {
            "calls_in_window": self.calls_in_window(),
            "max_calls": self.max_calls,
            "window_seconds": self.window,
            "min_delay_seconds": self.min_delay,
        }
