"""
RateLimiter — Token bucket rate limiter for outbound calls.

Keeps Luna inside the Gemini quota and stops a chatty player from
hammering the Torii indexer or the Starknet RPC node.
"""

import time
import asyncio
import logging
from typing import Callable

logger = logging.getLogger('RateLimiter')


class RateLimiter:
    """Token bucket rate limiter.

    Allows up to `max_tokens` requests in a burst. Tokens refill at a
    steady rate. Callers use `await limiter.acquire()` before making a
    request; it sleeps if the bucket is empty.

    Args:
        max_tokens: Maximum burst size.
        refill_rate: Tokens added per second.
        name: Label for logging.
        clock: Monotonic time source, swappable in tests.
    """

    def __init__(
        self,
        max_tokens: int = 15,
        refill_rate: float = 0.25,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_tokens = max_tokens
        self.refill_rate = refill_rate
        self.name = name
        self._clock = clock
        self.tokens = float(max_tokens)
        self.last_refill = clock()
        self._lock = asyncio.Lock()

    def _refill(self):
        now = self._clock()
        elapsed = now - self.last_refill
        self.tokens = min(self.max_tokens, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    async def acquire(self):
        """Wait until a token is available, then consume one."""
        async with self._lock:
            self._refill()

            if self.tokens < 1.0:
                wait_time = (1.0 - self.tokens) / self.refill_rate
                logger.warning(f"[{self.name}] Rate limit, waiting {wait_time:.1f}s")
                await asyncio.sleep(wait_time)
                self._refill()

            self.tokens -= 1.0

    @property
    def available(self) -> float:
        """Current number of available tokens (without consuming)."""
        self._refill()
        return self.tokens


# Pre-configured limiters shared by the clients
gemini_limiter = RateLimiter(max_tokens=15, refill_rate=0.25, name="gemini")
torii_limiter = RateLimiter(max_tokens=20, refill_rate=5.0, name="torii")
rpc_limiter = RateLimiter(max_tokens=20, refill_rate=5.0, name="starknet-rpc")
