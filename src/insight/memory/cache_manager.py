"""TTL cache shared by every memory store."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from cachetools import TLRUCache
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600
DEFAULT_MAX_ENTRIES = 10_000


class CacheStats(BaseModel):
    hits: int = 0
    misses: int = 0
    keys: int = 0


def _expires_at(key: str, entry: tuple[Any, float], now: float) -> float:
    _, ttl = entry
    return now + ttl


class CacheManager:
    """Key/value cache where every entry carries its own time-to-live.

    Entries are stored as ``(value, ttl)`` pairs so ``cachetools.TLRUCache``
    can compute a per-entry expiry; callers only ever see the value.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        *,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = ttl_seconds
        self._cache: TLRUCache = TLRUCache(maxsize=max_entries, ttu=_expires_at, timer=timer)
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        entry = self._cache.get(key)
        if entry is None:
            self._misses += 1
            logger.debug("Cache miss: %s", key)
            return None
        self._hits += 1
        logger.debug("Cache hit: %s", key)
        return entry[0]

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        self._cache[key] = (value, ttl or self.default_ttl)
        logger.debug("Cache set: %s (ttl=%ss)", key, ttl or self.default_ttl)

    def delete(self, key: str) -> bool:
        removed = self._cache.pop(key, None) is not None
        if removed:
            logger.debug("Cache deleted: %s", key)
        return removed

    def keys(self, prefix: str = "") -> list[str]:
        """Live keys, optionally filtered by prefix."""
        self._cache.expire()
        return [k for k in list(self._cache.keys()) if k.startswith(prefix)]

    def clear(self) -> None:
        self._cache.clear()
        logger.info("Cache cleared")

    def stats(self) -> CacheStats:
        self._cache.expire()
        return CacheStats(hits=self._hits, misses=self._misses, keys=len(self._cache))
