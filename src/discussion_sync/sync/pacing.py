"""Pacing policies for mutating collaborator calls.

Both platforms rate-limit writes.  The engine awaits ``pacer.wait()``
before every mutating call; the policy decides how long that takes.
Calls are still issued strictly one at a time, in order, whatever the
policy.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Protocol

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class Pacer(Protocol):
    async def wait(self) -> None:
        ...  # pragma: no cover


class NoPacing:
    """Never waits.  Used by tests and dry-runs."""

    async def wait(self) -> None:
        return None


class MinIntervalPacer:
    """Keep at least *interval* seconds between consecutive calls.

    Args:
        interval: Minimum spacing in seconds.
        clock: Monotonic time source.
        sleep: Awaitable sleep function.
    """

    def __init__(
        self,
        interval: float = 1.0,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if interval < 0:
            raise ValueError(f"Pacing interval must be >= 0, got {interval}")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        async with self._lock:
            now = self._clock()
            if self._last is not None:
                delay = self._last + self.interval - now
                if delay > 0:
                    logger.debug("Pacing: sleeping %.2fs", delay)
                    await self._sleep(delay)
                    now = self._clock()
            self._last = now


class TokenBucketPacer:
    """Allow bursts of up to *capacity* calls, refilled at *rate* per second."""

    def __init__(
        self,
        rate: float,
        capacity: int = 1,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if rate <= 0:
            raise ValueError(f"Token bucket rate must be > 0, got {rate}")
        if capacity < 1:
            raise ValueError(
                f"Token bucket capacity must be >= 1, got {capacity}"
            )
        self.rate = rate
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated = clock()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._updated = now

    async def wait(self) -> None:
        async with self._lock:
            self._refill()
            if self._tokens < 1:
                delay = (1 - self._tokens) / self.rate
                logger.debug("Pacing: bucket empty, sleeping %.2fs", delay)
                await self._sleep(delay)
                self._refill()
                # Guard against a clock that did not advance during sleep.
                self._tokens = max(self._tokens, 1.0)
            self._tokens -= 1


def build_pacer(interval: float, burst: int = 1) -> Pacer:
    """Return the pacer for a configured interval (0 disables).

    A *burst* above 1 selects a token bucket that refills one write per
    *interval*, so short bursts go out back to back.
    """
    if interval <= 0:
        return NoPacing()
    if burst > 1:
        return TokenBucketPacer(rate=1 / interval, capacity=burst)
    return MinIntervalPacer(interval)
