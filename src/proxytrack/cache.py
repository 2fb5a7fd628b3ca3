"""Memoization of live source results.

Entries are keyed by ``(source, identifier, timeframe)`` and expire after a
per-source staleness window. Concurrent requests for a key that is still
loading share the same in-flight task, so a burst of identical requests
issues one upstream call and every caller sees the same outcome.

Values are immutable once stored; a later store for the same key simply
replaces the entry.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, str]

T = TypeVar("T")

_MISSING = object()


def _consume_result(task: asyncio.Future[Any]) -> None:
    # Retrieve the outcome so abandoned loads do not warn about unread errors
    if not task.cancelled():
        task.exception()


class SeriesCache:
    """TTL cache with request de-duplication.

    :param clock: Monotonic time source in seconds, injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[CacheKey, tuple[float, Any]] = {}
        self._inflight: dict[CacheKey, asyncio.Future[Any]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def get(self, key: CacheKey, default: Any = None) -> Any:
        """Return the fresh value for ``key``, or ``default``.

        Expired entries are dropped on access.
        """
        entry = self._entries.get(key)
        if entry is None:
            return default
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def put(self, key: CacheKey, value: Any, ttl: float) -> None:
        """Store ``value`` for ``ttl`` seconds; a non-positive TTL stores nothing.

        Expired entries are swept on every store, so keys that are never read
        again do not accumulate.
        """
        now = self._clock()
        self._sweep(now)
        if ttl <= 0:
            return
        self._entries[key] = (now + ttl, value)

    def _sweep(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug("Evicted %d expired cache entries", len(expired))

    def invalidate(self, key: CacheKey | None = None) -> None:
        """Drop one entry, or every entry when ``key`` is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def in_flight(self, key: CacheKey) -> bool:
        """Whether a load for ``key`` is currently running."""
        return key in self._inflight

    async def get_or_load(
        self,
        key: CacheKey,
        ttl: float,
        loader: Callable[[], Awaitable[T]],
    ) -> T:
        """Return the cached value for ``key`` or load it once.

        Callers arriving while a load is running wait for that load instead
        of starting another. Successful results are stored for ``ttl``
        seconds; errors reach every waiting caller and are not stored. A
        caller that is cancelled does not cancel the shared load, which still
        populates the cache.

        :param key: Cache key.
        :param ttl: Staleness window for a successful result.
        :param loader: Zero-argument coroutine function producing the value.
        :returns: Cached or freshly loaded value.
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            self.hits += 1
            logger.debug("cache hit %s", key)
            return value

        task = self._inflight.get(key)
        if task is None:
            self.misses += 1
            task = asyncio.ensure_future(self._load(key, ttl, loader))
            task.add_done_callback(_consume_result)
            self._inflight[key] = task
        else:
            logger.debug("joining in-flight load %s", key)

        return await asyncio.shield(task)

    async def _load(
        self,
        key: CacheKey,
        ttl: float,
        loader: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            value = await loader()
            self.put(key, value, ttl)
            return value
        finally:
            self._inflight.pop(key, None)

    async def close(self) -> None:
        """Wait for running loads to settle and drop every entry."""
        pending = list(self._inflight.values())
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._entries.clear()
