"""
Freshness-windowed response cache for GitHub API calls.

Provides:
- TTL caching of payloads (10 minutes by default)
- At most one in-flight load per key: concurrent callers share one outcome
- Failed loads are never cached; every waiter sees the error

Entries are a tagged state (PENDING with the running task, READY with the
payload and fetch time). Expired READY entries are treated as absent and
simply overwritten on the next load.

Usage:
    from utils.cache_gateway import get_cache_gateway

    cache = get_cache_gateway()
    issue = await cache.fetch_cached(url, lambda: transport.fetch(url))
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 600.0

Loader = Callable[[], Awaitable[Any]]


class EntryState(str, Enum):
    PENDING = "pending"
    READY = "ready"


@dataclass
class CacheEntry:
    """One key in the cache table"""
    key: str
    state: EntryState
    task: Optional["asyncio.Task[Any]"] = None
    payload: Any = None
    fetched_at: Optional[float] = None

    def is_fresh(self, now: float, ttl: float) -> bool:
        return (
            self.state is EntryState.READY
            and self.fetched_at is not None
            and now - self.fetched_at < ttl
        )


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    shared: int = 0  # callers that joined an in-flight load
    failures: int = 0


class CacheGateway:
    """
    Async TTL cache that deduplicates concurrent loads.

    Args:
        ttl_seconds: Freshness window for READY entries
        clock: Monotonic clock in seconds (injectable for tests)
    """

    def __init__(
        self,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self.stats = CacheStats()

    async def fetch_cached(self, key: str, loader: Loader) -> Any:
        """
        Return the cached payload for `key`, loading it if absent or expired.

        Args:
            key: Request identity (URL plus query)
            loader: Zero-argument coroutine function producing the payload

        Returns:
            The payload

        Raises:
            Whatever `loader` raised, for every caller waiting on that load
        """
        entry = self._entries.get(key)

        if entry is not None and entry.state is EntryState.PENDING and entry.task is not None:
            self.stats.shared += 1
            logger.debug(f"Cache join: {key}")
            return await asyncio.shield(entry.task)

        if entry is not None and entry.is_fresh(self._clock(), self.ttl_seconds):
            self.stats.hits += 1
            logger.debug(f"Cache hit: {key}")
            return entry.payload

        self.stats.misses += 1
        logger.debug(f"Cache miss: {key}")

        task = asyncio.ensure_future(loader())
        pending = CacheEntry(key=key, state=EntryState.PENDING, task=task)
        self._entries[key] = pending
        # Registered before any waiter so the entry settles before callers resume
        task.add_done_callback(lambda t: self._settle(pending, t))

        return await asyncio.shield(task)

    def _settle(self, pending: CacheEntry, task: "asyncio.Task[Any]") -> None:
        if self._entries.get(pending.key) is not pending:
            return

        if task.cancelled() or task.exception() is not None:
            self.stats.failures += 1
            del self._entries[pending.key]
            if not task.cancelled():
                logger.debug(f"Load failed for {pending.key}: {task.exception()}")
            return

        self._entries[pending.key] = CacheEntry(
            key=pending.key,
            state=EntryState.READY,
            payload=task.result(),
            fetched_at=self._clock(),
        )

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Return the raw entry for a key (None if never loaded)"""
        return self._entries.get(key)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        """Drop all entries (for testing)."""
        self._entries.clear()
        self.stats = CacheStats()


# Process-wide instance shared by every collector
_global_gateway = CacheGateway()


def get_cache_gateway() -> CacheGateway:
    return _global_gateway


def reset_cache_gateway() -> None:
    """
    Clear the global cache.

    Primarily for testing purposes.
    """
    _global_gateway.clear()
