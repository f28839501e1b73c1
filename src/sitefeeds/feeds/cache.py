from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Mapping

from sitefeeds.feeds.types import FeedKind, FetchResult


logger = logging.getLogger("sitefeeds.cache")

Fetcher = Callable[[], Awaitable[FetchResult]]


@dataclass(frozen=True)
class FeedCacheEntry:
    key: FeedKind
    expires_at: float
    result: FetchResult


class ResponseCache:
    """Short-lived per-feed memoization of upstream results.

    Entries are immutable and replaced wholesale. Error results are stored like
    any other result so a failing provider is asked again only after the TTL.
    """

    def __init__(self, ttls: Mapping[FeedKind, float], clock: Callable[[], float] = time.monotonic) -> None:
        self._ttls = dict(ttls)
        self._clock = clock
        self._data: dict[FeedKind, FeedCacheEntry] = {}
        self._locks: dict[FeedKind, asyncio.Lock] = {}

    def ttl(self, key: FeedKind) -> float:
        return self._ttls[key]

    def get(self, key: FeedKind) -> FeedCacheEntry | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            self._data.pop(key, None)
            return None
        return entry

    def set(self, key: FeedKind, result: FetchResult) -> FeedCacheEntry:
        entry = FeedCacheEntry(key=key, expires_at=self._clock() + self.ttl(key), result=result)
        self._data[key] = entry
        return entry

    def invalidate(self, key: FeedKind) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    async def get_or_fetch(self, key: FeedKind, fetcher: Fetcher) -> FetchResult:
        entry = self.get(key)
        if entry is not None:
            logger.debug("cache_hit", extra={"feed": key.value, "cache": "hit"})
            return entry.result

        # At most one upstream fetch per feed; waiters reuse the stored entry.
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            entry = self.get(key)
            if entry is not None:
                logger.debug("cache_hit", extra={"feed": key.value, "cache": "coalesced"})
                return entry.result
            logger.debug("cache_miss", extra={"feed": key.value, "cache": "miss"})
            result = await fetcher()
            return self.set(key, result).result
