"""
Rate Limiter for Oracle Calls

Per-host sliding-window limiter. The product oracle is billed per call and
rejects bursts, so lookups go through `RateLimiter.limit`.

Usage:
    from amzwp_core.rate_limiter import RateLimiter

    limiter = RateLimiter(max_calls=30, window=60.0)
    data = await limiter.limit("https://serpapi.com/search.json", fetch, url)
"""

import asyncio
import logging
import time
from collections import defaultdict, deque
from typing import Awaitable, Callable, Deque, Dict, TypeVar
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimiter:
    """
    Per-host rate limiter using a sliding window.

    At most `max_calls` calls start within any `window` seconds for one
    host. Hosts are independent.
    """

    def __init__(
        self,
        max_calls: int = 30,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_calls < 1:
            raise ValueError("max_calls must be >= 1")
        self.max_calls = max_calls
        self.window = window
        self._clock = clock
        self._sleep = sleep
        self._calls: Dict[str, Deque[float]] = defaultdict(deque)
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @staticmethod
    def _host(url_or_host: str) -> str:
        if url_or_host.startswith(('http://', 'https://')):
            return urlparse(url_or_host).netloc
        return url_or_host

    def _expire(self, host: str, now: float):
        calls = self._calls[host]
        while calls and calls[0] <= now - self.window:
            calls.popleft()

    async def acquire(self, url_or_host: str) -> float:
        """
        Wait until a call slot is free for the host and claim it.

        Returns:
            Seconds waited
        """
        host = self._host(url_or_host)
        async with self._locks[host]:
            now = self._clock()
            self._expire(host, now)
            waited = 0.0
            calls = self._calls[host]
            if len(calls) >= self.max_calls:
                waited = calls[0] + self.window - now
                if waited > 0:
                    logger.info(f"Rate limit reached for {host}, waiting {waited:.1f}s")
                    await self._sleep(waited)
                now = self._clock()
                self._expire(host, now)
            calls.append(now)
            return max(waited, 0.0)

    async def limit(self, url_or_host: str, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """Run `func` once a slot for the host is available."""
        await self.acquire(url_or_host)
        return await func(*args, **kwargs)

