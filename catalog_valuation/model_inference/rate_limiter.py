"""
Token Bucket Rate Limiter.

Admission control for calls to the external extraction service. One
limiter instance is created per process and shared by every gateway
call; tests create their own.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

from catalog_valuation.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class TokenBucket:
    """
    Token bucket with asynchronous waiting.

    Permits accrue continuously at ``refill_rate`` per second up to
    ``capacity``. ``acquire()`` debits one permit, suspending the caller
    until one has accrued when the bucket is empty. Waiters are admitted
    in arrival order.

    Attributes:
        capacity: Maximum number of stored permits
        refill_rate: Permits added per second

    Example:
        >>> bucket = TokenBucket(capacity=5)      # 5 calls per minute
        >>> waited = await bucket.acquire()
    """

    def __init__(
        self,
        capacity: int = 5,
        refill_rate: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ) -> None:
        """
        Initialize a full bucket.

        Args:
            capacity: Maximum permits held at once.
            refill_rate: Permits per second. Defaults to capacity per minute.
            clock: Monotonic time source, in seconds.
            sleep: Coroutine used to suspend while waiting for a permit.
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self.capacity = capacity
        self.refill_rate = refill_rate if refill_rate is not None else capacity / 60.0
        if self.refill_rate <= 0:
            raise ValueError("refill_rate must be positive")

        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._last_refill = clock()
        self._lock = asyncio.Lock()

    @property
    def available(self) -> float:
        """Permits currently available (refilled to now)."""
        self._refill()
        return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.refill_rate)
        self._last_refill = now

    async def acquire(self) -> float:
        """
        Take one permit, waiting for it to accrue if necessary.

        Returns:
            Total seconds spent waiting.
        """
        waited = 0.0
        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= 1:
                    self._tokens -= 1
                    break

                wait_time = (1 - self._tokens) / self.refill_rate
                logger.debug(f"Rate limit reached, waiting {wait_time:.2f}s for a token")
                await self._sleep(wait_time)
                waited += wait_time

        if waited:
            logger.info(f"Extraction call admitted after {waited:.1f}s throttle")
        return waited
