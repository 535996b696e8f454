"""Request pacing for paginated market-data retrieval.

The fetcher awaits a pacer between successive page requests and marks the
pacer each time a request goes out. Pacing is a courtesy to the upstream
API; swapping one pacer for another never changes what is fetched.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Protocol

SleepFunc = Callable[[float], Awaitable[None]]
ClockFunc = Callable[[], float]


class Pacer(Protocol):
    """Anything the fetcher can await between page requests."""

    async def wait(self) -> None: ...

    def mark(self) -> None:
        """Record that a request is being issued now."""
        ...


class FixedDelayPacer:
    """Sleep a fixed interval on every call."""

    def __init__(self, delay: float = 0.25, sleep: SleepFunc = asyncio.sleep):
        self.delay = delay
        self._sleep = sleep

    async def wait(self) -> None:
        if self.delay > 0:
            await self._sleep(self.delay)

    def mark(self) -> None:
        return None


class RateLimiter:
    """Simple rate limiter for API calls.

    Spaces requests at least ``60 / calls_per_minute`` seconds apart,
    measured from the moment each request was marked as issued.
    """

    def __init__(
        self,
        calls_per_minute: int = 1200,
        sleep: SleepFunc = asyncio.sleep,
        clock: ClockFunc = time.monotonic,
    ):
        if calls_per_minute <= 0:
            raise ValueError("calls_per_minute must be positive")
        self.calls_per_minute = calls_per_minute
        self.interval = 60.0 / calls_per_minute
        self.last_call: float | None = None
        self._sleep = sleep
        self._clock = clock
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        """Wait if necessary to respect rate limit."""
        async with self._lock:
            now = self._clock()
            if self.last_call is not None:
                wait_time = self.last_call + self.interval - now
                if wait_time > 0:
                    await self._sleep(wait_time)
            self.last_call = self._clock()

    def mark(self) -> None:
        self.last_call = self._clock()


class NoPacing:
    """Pacer that never waits."""

    async def wait(self) -> None:
        return None

    def mark(self) -> None:
        return None
