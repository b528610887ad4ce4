"""
Token bucket rate limiting for generation backends.

Each backend gets a bucket sized to its real throughput. Callers await
a token before every request, so a burst of concurrent city generations
is smoothed out instead of being paced by fixed sleeps.
"""

import asyncio
import logging
import time
from typing import Optional

logger = logging.getLogger(__name__)


class TokenBucket:
    """
    Async token bucket.

    Usage:
        bucket = TokenBucket.per_minute(30)
        async with bucket:
            await call_backend()
    """

    def __init__(self, rate: float, capacity: Optional[float] = None, name: str = "backend"):
        """
        Args:
            rate: Tokens added per second
            capacity: Maximum burst size (defaults to one second of tokens, min 1)
            name: Label used in log messages
        """
        if rate <= 0:
            raise ValueError("rate must be positive")

        self.rate = rate
        self.capacity = capacity if capacity is not None else max(1.0, rate)
        self.name = name
        self._tokens = self.capacity
        self._last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    @classmethod
    def per_second(cls, requests: float, name: str = "backend") -> "TokenBucket":
        return cls(rate=requests, name=name)

    @classmethod
    def per_minute(cls, requests: float, name: str = "backend") -> "TokenBucket":
        return cls(rate=requests / 60.0, capacity=max(1.0, requests / 60.0), name=name)

    def _refill(self):
        now = time.monotonic()
        elapsed = now - self._last_refill
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._last_refill = now

    @property
    def available(self) -> float:
        self._refill()
        return self._tokens

    async def acquire(self, tokens: float = 1.0):
        """Wait until `tokens` are available, then consume them."""
        if tokens > self.capacity:
            raise ValueError(f"Cannot acquire {tokens} tokens from bucket of {self.capacity}")

        # Waiters queue on the lock, so tokens are granted in arrival order
        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= tokens:
                    self._tokens -= tokens
                    return

                wait_time = (tokens - self._tokens) / self.rate
                logger.debug(f"Rate limit reached for {self.name}, waiting {wait_time:.2f}s")
                await asyncio.sleep(wait_time)

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False
