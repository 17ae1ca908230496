# medsafe/utils/rate_limiter.py
from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Deque

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Cooperative self-throttle: at most ``max_calls`` acquisitions in any
    rolling ``window_seconds``. A caller over the ceiling waits (never longer
    than one window) instead of being rejected.
    """

    def __init__(
        self,
        max_calls: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_calls < 1:
            raise ValueError("max_calls must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self._clock = clock
        self._sleep = sleep
        self._calls: Deque[float] = deque()
        self._lock = asyncio.Lock()

    def _prune(self, now: float) -> None:
        while self._calls and now - self._calls[0] >= self.window_seconds:
            self._calls.popleft()

    @property
    def calls_in_window(self) -> int:
        self._prune(self._clock())
        return len(self._calls)

    async def acquire(self) -> None:
        async with self._lock:
            now = self._clock()
            self._prune(now)

            while len(self._calls) >= self.max_calls:
                wait_s = self.window_seconds - (now - self._calls[0])
                logger.warning(f"Rate limit reached. Waiting {wait_s:.2f}s before next request.")
                await self._sleep(wait_s)
                now = self._clock()
                self._prune(now)

            self._calls.append(now)
