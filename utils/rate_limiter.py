"""
Per-API-family rate limiter for GitHub calls.

Token-bucket limiting with:
- Separate buckets for the core REST API and the search API
- Limits that depend on whether a personal access token is configured
- Async-safe implementation using asyncio.Lock

GitHub limits:
    - Core, authenticated: 5000/hour
    - Core, anonymous: 60/hour
    - Search, authenticated: 30/minute
    - Search, anonymous: 10/minute

Usage:
    from utils.rate_limiter import get_rate_limiter

    limiter = get_rate_limiter("github_search", authenticated=bool(token))
    await limiter.acquire()
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class AsyncRateLimiter:
    """
    Async rate limiter using token bucket algorithm.

    Args:
        rate: Maximum requests per period (None = unlimited)
        period: Time period in seconds
    """

    def __init__(self, rate: Optional[int] = None, period: int = 1):
        self.rate = rate
        self.period = period
        self._lock = asyncio.Lock()
        self._tokens: float = float(rate) if rate else float("inf")
        self._last_refill: Optional[float] = None

    async def acquire(self) -> None:
        """Wait until a request is allowed. Unlimited limiters return at once."""
        if self.rate is None:
            return

        async with self._lock:
            now = time.monotonic()
            if self._last_refill is None:
                self._last_refill = now

            elapsed = now - self._last_refill
            self._tokens = min(self.rate, self._tokens + elapsed * (self.rate / self.period))
            self._last_refill = now

            if self._tokens < 1:
                wait_time = (1 - self._tokens) * (self.period / self.rate)
                logger.debug(f"Rate limit: waiting {wait_time:.2f}s")
                await asyncio.sleep(wait_time)
                self._tokens = 1
                self._last_refill = time.monotonic()

            self._tokens -= 1


class RateLimiterPool:
    """Creates limiters on demand, one per (API family, authenticated) pair."""

    API_LIMITS: Dict[Tuple[str, bool], Dict[str, Optional[int]]] = {
        ("github_core", True): {"rate": 5000, "period": 3600},
        ("github_core", False): {"rate": 60, "period": 3600},
        ("github_search", True): {"rate": 30, "period": 60},
        ("github_search", False): {"rate": 10, "period": 60},
    }

    def __init__(self):
        self._limiters: Dict[Tuple[str, bool], AsyncRateLimiter] = {}

    def get(self, api_name: str, authenticated: bool = True) -> AsyncRateLimiter:
        key = (api_name, authenticated)
        if key not in self._limiters:
            limits = self.API_LIMITS.get(key, {"rate": None, "period": 1})
            self._limiters[key] = AsyncRateLimiter(rate=limits["rate"], period=limits["period"])
            if limits["rate"]:
                logger.info(
                    f"Created rate limiter for {api_name} "
                    f"({'token' if authenticated else 'anonymous'}): "
                    f"{limits['rate']} requests per {limits['period']}s"
                )
        return self._limiters[key]

    def reset(self) -> None:
        self._limiters.clear()


_global_pool = RateLimiterPool()


def get_rate_limiter(api_name: str, authenticated: bool = True) -> AsyncRateLimiter:
    return _global_pool.get(api_name, authenticated)


def reset_limiters() -> None:
    """Reset all global rate limiters (for testing)."""
    _global_pool.reset()
