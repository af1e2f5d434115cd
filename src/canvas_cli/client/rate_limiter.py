"""Token-bucket rate limiter shared by every request of one API client.

The bucket holds up to ``capacity`` tokens and refills continuously at
``rate`` tokens per second, so a burst of ``capacity`` requests goes out
immediately and sustained throughput converges to ``rate``. Both values come
from the single configured requests-per-second figure.

The limiter is the only shared mutable state in the client. Every read or
write of the token count happens while holding one :class:`asyncio.Lock`;
waiting happens *outside* the lock so a sleeping caller never blocks the
others from checking the bucket.

Canvas reports its remaining request budget in ``X-Rate-Limit-Remaining``.
:meth:`RateLimiter.adjust_for_quota` slows the bucket down as that budget
shrinks and restores the configured rate once it recovers.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable

from canvas_cli.output import warning

SLOW_REQUESTS_PER_SECOND = 2.0
VERY_SLOW_REQUESTS_PER_SECOND = 1.0
QUOTA_WARNING_THRESHOLD = 0.5
QUOTA_CRITICAL_THRESHOLD = 0.2
DEFAULT_QUOTA_TOTAL = 700.0
# Float refills can land a hair under a whole token.
TOKEN_EPSILON = 1e-9


class RateLimiter:
    """Concurrency-safe token bucket.

    Args:
        requests_per_second: Sustained rate. Zero or negative disables
            limiting entirely.
        clock: Monotonic clock, injectable for tests.

    Example::

        limiter = RateLimiter(5.0)
        await limiter.acquire()   # returns at once for the first 5 calls
    """

    def __init__(
        self,
        requests_per_second: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._configured_rate = requests_per_second
        self._rate = requests_per_second
        self._capacity = max(1.0, requests_per_second)
        self._tokens = self._capacity
        self._clock = clock
        self._last_refill = clock()
        self._lock = asyncio.Lock()
        self._warned: set[float] = set()

    @property
    def enabled(self) -> bool:
        return self._configured_rate > 0

    @property
    def rate(self) -> float:
        """Current refill rate in tokens per second."""
        return self._rate

    @property
    def capacity(self) -> float:
        return self._capacity

    @property
    def tokens(self) -> float:
        """Token count as of the last refill (for diagnostics and tests)."""
        return self._tokens

    async def acquire(self) -> None:
        """Wait until a token is available and consume it.

        Raises:
            asyncio.CancelledError: If the calling task is cancelled while
                waiting, or was already cancelled. No token is consumed.
        """
        if not self.enabled:
            return
        while True:
            async with self._lock:
                self._refill()
                if self._tokens >= 1.0 - TOKEN_EPSILON:
                    self._tokens = max(0.0, self._tokens - 1.0)
                    return
                wait = (1.0 - self._tokens) / self._rate
            await asyncio.sleep(wait)

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)
        self._last_refill = now

    def adjust_for_quota(self, remaining: float, total: float = DEFAULT_QUOTA_TOTAL) -> None:
        """Adapt the refill rate to the server's remaining request budget.

        At or below 50 % of *total* the rate drops to 2 req/s, at or below
        20 % to 1 req/s, and above 50 % it returns to the configured rate.
        The configured rate is never exceeded. Each threshold warns once
        until the quota recovers.
        """
        if not self.enabled or total <= 0:
            return
        fraction = remaining / total

        # Bank the tokens earned at the old rate before switching.
        self._refill()

        if fraction <= QUOTA_CRITICAL_THRESHOLD:
            target = min(self._configured_rate, VERY_SLOW_REQUESTS_PER_SECOND)
            if target < self._rate:
                self._rate = target
                self._warn_once(
                    QUOTA_CRITICAL_THRESHOLD,
                    f"API rate limit: {fraction:.0%} remaining, slowing to {target:g} req/sec",
                )
        elif fraction <= QUOTA_WARNING_THRESHOLD:
            target = min(self._configured_rate, SLOW_REQUESTS_PER_SECOND)
            if target < self._rate:
                self._rate = target
                self._warn_once(
                    QUOTA_WARNING_THRESHOLD,
                    f"API rate limit: {fraction:.0%} remaining, slowing to {target:g} req/sec",
                )
        elif self._rate < self._configured_rate:
            self._rate = self._configured_rate
            self._warned.clear()

    def _warn_once(self, threshold: float, message: str) -> None:
        if threshold not in self._warned:
            self._warned.add(threshold)
            warning(message)
