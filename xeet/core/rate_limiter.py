"""Token bucket rate limiter shared by every outbound post."""

import asyncio
import threading
import time
from typing import Awaitable, Callable

from xeet.utils.errors import RateLimitCancelled
from xeet.utils.logging import get_logger

from .constants import RATE_LIMIT_BURST, RATE_LIMIT_INTERVAL

logger = get_logger(__name__)


class TokenBucket:
    """Reservation-based token bucket.

    Holds at most ``burst`` tokens and regains one every ``interval`` seconds.
    ``acquire()`` takes a token immediately, going into debt if none is
    available, then sleeps until the debt is paid. Construct one per process
    and pass it to every executor.
    """

    def __init__(
        self,
        interval: float = RATE_LIMIT_INTERVAL,
        burst: int = RATE_LIMIT_BURST,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if burst < 1:
            raise ValueError("burst must be at least 1")

        self.interval = interval
        self.burst = burst
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(burst)
        self._last = clock()
        self._lock = threading.Lock()

    @classmethod
    def unlimited(cls) -> "TokenBucket":
        """A bucket that never delays."""
        return cls(interval=0.0)

    @property
    def tokens(self) -> float:
        """Tokens available right now (negative while in debt)."""
        with self._lock:
            self._advance(self._clock())
            return self._tokens

    def _advance(self, now: float) -> None:
        if self.interval <= 0:
            self._tokens = float(self.burst)
        else:
            elapsed = max(0.0, now - self._last)
            self._tokens = min(float(self.burst), self._tokens + elapsed / self.interval)
        self._last = now

    def reserve(self) -> float:
        """Take one token and return how long the caller must wait for it."""
        with self._lock:
            self._advance(self._clock())
            self._tokens -= 1

            if self._tokens >= 0:
                return 0.0

            return -self._tokens * self.interval

    def _release(self) -> None:
        with self._lock:
            self._advance(self._clock())
            self._tokens = min(float(self.burst), self._tokens + 1)

    async def acquire(self) -> float:
        """Wait for a permit. Returns the delay that was waited.

        Raises:
            RateLimitCancelled: if the waiting task is cancelled
        """
        delay = self.reserve()
        if delay <= 0:
            return 0.0

        logger.info(f"Rate limited, waiting {delay:.1f}s for a request slot")

        try:
            await self._sleep(delay)
        except asyncio.CancelledError as e:
            self._release()
            raise RateLimitCancelled(
                "Cancelled while waiting for a request slot",
                details={"delay": delay},
            ) from e

        return delay
