"""
CacheManager - Async-compatible result cache with optional TTL.

Features:
- Memory-based cache keyed by caller-supplied strings
- Optional TTL per entry (no TTL means the entry lives for the process)
- Oldest-entry eviction once max_size is reached
- Presence-tagged lookups so a cached None is distinguishable from a miss
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Generic, Mapping, TypeVar

from loguru import logger

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with metadata."""

    data: T
    timestamp: datetime
    ttl: timedelta | None = None

    def is_expired(self) -> bool:
        """Check if entry is past its TTL."""
        if self.ttl is None:
            return False
        return datetime.now() > self.timestamp + self.ttl


@dataclass
class CacheResult(Generic[T]):
    """Result from a cache hit."""

    data: T


class CacheManager:
    """
    Process-local cache for read responses.

    Usage:
        cache = CacheManager(default_ttl=timedelta(minutes=5))

        # Try to get from cache
        result = await cache.get("quests:1:20:")
        if result:
            return result.data

        # Fetch fresh data and cache it
        data = await fetch_data()
        await cache.set("quests:1:20:", data)

        # After a write, drop everything
        await cache.clear()

    Writes are last-write-wins per key. Invalidation after mutations is the
    caller's responsibility.
    """

    def __init__(
        self,
        prefix: str = "",
        max_size: int = 100,
        default_ttl: timedelta | None = None,
        debug: bool = False,
    ):
        self._memory: dict[str, CacheEntry[Any]] = {}
        self._prefix = prefix
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._debug = debug
        self._lock = asyncio.Lock()
        self._stats = CacheStats()

    @staticmethod
    def build_key(
        namespace: str,
        page: int,
        filters: Mapping[str, Any] | None = None,
        limit: int | None = None,
    ) -> str:
        """
        Build a key from normalized query parameters.

        Filters are sorted by name and empty values are dropped, so
        equivalent queries map to the same key.
        """
        parts = [namespace, str(page)]
        if limit is not None:
            parts.append(str(limit))

        filter_string = "|".join(
            f"{k}={_normalize(v)}"
            for k, v in sorted((filters or {}).items())
            if v is not None and v != ""
        )
        parts.append(filter_string)
        return ":".join(parts)

    async def get(self, key: str) -> CacheResult[Any] | None:
        """
        Get value from cache.

        Returns CacheResult if present and not expired, None otherwise.
        """
        full_key = self._prefix + key
        async with self._lock:
            entry = self._memory.get(full_key)
            if entry is None:
                self._stats.misses += 1
                self._log(f"MISS: {key[:50]}")
                return None

            if entry.is_expired():
                del self._memory[full_key]
                self._stats.misses += 1
                self._log(f"EXPIRED: {key[:50]}")
                return None

            self._stats.hits += 1
            self._log(f"HIT: {key[:50]}")
            return CacheResult(data=entry.data)

    async def set(self, key: str, data: Any, ttl: timedelta | None = None) -> None:
        """
        Set value in cache, overwriting any existing entry.

        Args:
            key: Cache key
            data: Data to cache
            ttl: Time to live (uses default if not specified)
        """
        full_key = self._prefix + key
        entry = CacheEntry(
            data=data,
            timestamp=datetime.now(),
            ttl=ttl if ttl is not None else self._default_ttl,
        )

        async with self._lock:
            if len(self._memory) >= self._max_size and full_key not in self._memory:
                self._purge_expired()
                if len(self._memory) >= self._max_size:
                    self._evict_oldest()

            self._memory[full_key] = entry
            self._log(f"SET: {key[:50]}")

    async def clear(self, key: str | None = None) -> None:
        """Remove one entry, or every entry when no key is given."""
        async with self._lock:
            if key is None:
                count = len(self._memory)
                self._memory.clear()
                self._log(f"CLEAR: {count} entries removed")
                return

            if self._memory.pop(self._prefix + key, None) is not None:
                self._log(f"DELETE: {key[:50]}")

    async def cleanup_expired(self) -> int:
        """Remove all expired entries. Returns count of removed entries."""
        async with self._lock:
            return self._purge_expired()

    def _purge_expired(self) -> int:
        expired_keys = [k for k, v in self._memory.items() if v.is_expired()]
        for key in expired_keys:
            del self._memory[key]

        if expired_keys:
            self._log(f"CLEANUP: {len(expired_keys)} expired entries removed")

        return len(expired_keys)

    def _evict_oldest(self) -> None:
        """Evict the oldest entry."""
        if not self._memory:
            return

        oldest_key = min(
            self._memory.keys(),
            key=lambda k: self._memory[k].timestamp,
        )
        del self._memory[oldest_key]
        self._stats.evictions += 1
        self._log(f"EVICT: {oldest_key[:50]}")

    def __len__(self) -> int:
        return len(self._memory)

    def get_stats(self) -> "CacheStats":
        """Get cache statistics."""
        self._stats.size = len(self._memory)
        self._stats.max_size = self._max_size
        return self._stats

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[CacheManager] {message}")


def _normalize(value: Any) -> str:
    # Enum members key by their value so QuestType.BUG_FIX == "BUG_FIX"
    return str(getattr(value, "value", value))


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0
    max_size: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "size": self.size,
            "max_size": self.max_size,
            "hit_rate": f"{self.hit_rate:.2%}",
        }
