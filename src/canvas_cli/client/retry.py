"""Retry decisions and backoff for failed API attempts.

:class:`RetryPolicy` answers one question per failed attempt: wait how long,
and try again at all? Only transient failures (rate limiting, server faults,
network errors) are retried. Deterministic rejections -- auth, not found,
validation, conflict -- fail on the first attempt regardless of the ceiling.

Backoff is exponential with multiplicative jitter so that many concurrent
callers hitting the same failure do not retry in lock-step::

    delay = base * 2 ** (attempt - 1) * (1 + jitter * U[0, 1))   capped at max_delay

A server wait hint (``Retry-After``) replaces the computed delay.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import Optional

from canvas_cli.exceptions import APIError

DEFAULT_MAX_ATTEMPTS = 4
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 8.0
DEFAULT_JITTER = 0.25


@dataclass
class RetryContext:
    """Bookkeeping for one logical request across its attempts."""

    max_attempts: int
    base_delay: float
    attempt: int = 0
    last_error: Optional[APIError] = None

    @property
    def retry_after(self) -> Optional[float]:
        """Server wait hint carried by the most recent failure."""
        return self.last_error.retry_after if self.last_error else None

    def record(self, error: APIError) -> None:
        self.last_error = error


@dataclass
class RetryPolicy:
    """Exponential backoff with jitter and a hard attempt ceiling.

    Attributes:
        max_attempts: Total attempts per request, including the first.
        base_delay: Delay before the first retry, in seconds (before jitter).
        max_delay: Upper bound on the computed delay.
        jitter: Maximum extra fraction added to each delay.
        rng: Random source for jitter; seed it for reproducible tests.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    jitter: float = DEFAULT_JITTER
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def new_context(self) -> RetryContext:
        return RetryContext(max_attempts=self.max_attempts, base_delay=self.base_delay)

    def next_delay(self, attempt: int, error: APIError) -> tuple[float, bool]:
        """Decide what to do after failed attempt number *attempt* (1-based).

        Returns:
            ``(delay_seconds, should_retry)``. When ``should_retry`` is
            ``False`` the delay is ``0.0`` and the caller must surface
            *error*.
        """
        if not error.retryable or attempt >= self.max_attempts:
            return 0.0, False

        if error.retry_after is not None:
            return max(0.0, error.retry_after), True

        delay = self.base_delay * (2 ** (attempt - 1)) * (1 + self.jitter * self.rng.random())
        return min(delay, self.max_delay), True

    async def sleep(self, delay: float) -> None:
        """Cancellable backoff sleep; task cancellation interrupts it at once."""
        if delay > 0:
            await asyncio.sleep(delay)
