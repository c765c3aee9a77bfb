import asyncio
import time
import logging
from typing import Callable

log = logging.getLogger(__name__)


class RateLimiter:
    """
    Token bucket: at most `max_requests` per `time_window` seconds.

    `acquire()` returns immediately while tokens are left and otherwise
    sleeps until the bucket refills enough for one more request.
    """

    def __init__(self, max_requests: int, time_window: float, clock: Callable[[], float] = time.monotonic):
        if max_requests < 1 or time_window <= 0:
            raise ValueError("RateLimiter needs max_requests >= 1 and time_window > 0")
        self.max_requests = max_requests
        self.time_window = time_window
        self._clock = clock
        self.tokens = float(max_requests)
        self.last_refill = clock()

    @property
    def refill_rate(self) -> float:
        return self.max_requests / self.time_window

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self.last_refill
        if elapsed > 0:
            self.tokens = min(float(self.max_requests), self.tokens + elapsed * self.refill_rate)
            self.last_refill = now

    async def acquire(self) -> None:
        while True:
            self._refill()
            if self.tokens >= 1:
                self.tokens -= 1
                return
            wait = (1 - self.tokens) / self.refill_rate
            log.debug(f"Rate limit hit, waiting {wait:.3f}s")
            await asyncio.sleep(wait)
