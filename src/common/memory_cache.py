"""
In-process LRU/TTL cache.

Bounded by entry count and by an estimated byte size. Expired entries are
dropped on read and by clear_expired(); eviction of least recently used
entries happens synchronously at write time, so the cache never exceeds
its ceilings.

Usage:
    cache = get_memory_cache()
    cache.set(CacheKeys.company("Acme"), record, ttl=3600)
    record = cache.get(CacheKeys.company("Acme"))
"""

import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from src.common.config import Config

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Counters for a MemoryCache."""
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    keys: int = 0
    size_bytes: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "keys": self.keys,
            "size_bytes": self.size_bytes,
            "hit_rate": round(self.hit_rate, 4),
        }


@dataclass
class _Entry:
    value: Any
    expires_at: float
    size: int


def estimate_size(value: Any) -> int:
    """Approximate memory footprint: UTF-16 size of the JSON form."""
    try:
        return len(json.dumps(value, default=str)) * 2
    except (TypeError, ValueError):
        return len(repr(value)) * 2


class MemoryCache:
    """
    Thread-safe LRU cache with per-entry TTL.

    Args:
        max_keys: Maximum number of entries
        max_bytes: Maximum estimated total size
        default_ttl: Seconds an entry lives when set() gets no ttl
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(
        self,
        max_keys: int = 10_000,
        max_bytes: int = 100 * 1024 * 1024,
        default_ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_keys = max_keys
        self.max_bytes = max_bytes
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()
        self._size = 0
        self._lock = threading.RLock()
        self._stats = CacheStats()

    def get(self, key: str) -> Optional[Any]:
        """Return the value for key, or None when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None
            if entry.expires_at <= self._clock():
                self._remove(key)
                self._stats.expirations += 1
                self._stats.misses += 1
                return None
            self._entries.move_to_end(key)
            self._stats.hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        """
        Store a value, evicting least recently used entries as needed.

        Returns:
            False when the value alone exceeds max_bytes (nothing stored)
        """
        size = estimate_size(value)
        if size > self.max_bytes:
            logger.warning(f"Cache value for {key} too large ({size} bytes); not cached")
            return False

        expires_at = self._clock() + (self.default_ttl if ttl is None else ttl)
        with self._lock:
            if key in self._entries:
                self._remove(key)
            while self._entries and (
                len(self._entries) >= self.max_keys or self._size + size > self.max_bytes
            ):
                oldest_key = next(iter(self._entries))
                self._remove(oldest_key)
                self._stats.evictions += 1
            self._entries[key] = _Entry(value=value, expires_at=expires_at, size=size)
            self._size += size
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            if key not in self._entries:
                return False
            self._remove(key)
            return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._size = 0

    def clear_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
            for key in expired:
                self._remove(key)
            self._stats.expirations += len(expired)
        if expired:
            logger.debug(f"Cache cleanup: cleared {len(expired)} expired entries")
        return len(expired)

    def get_stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._stats.hits,
                misses=self._stats.misses,
                evictions=self._stats.evictions,
                expirations=self._stats.expirations,
                keys=len(self._entries),
                size_bytes=self._size,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._size -= entry.size


class CacheKeys:
    """Namespaced cache key builders."""

    @staticmethod
    def profile(user_id: str) -> str:
        return f"profile:{user_id}"

    @staticmethod
    def job(job_id: str) -> str:
        return f"job:{job_id}"

    @staticmethod
    def company(company_key: str) -> str:
        return f"company:{company_key}"


# Global cache instance
_global_cache: Optional[MemoryCache] = None
_global_cache_lock = threading.Lock()


def get_memory_cache() -> MemoryCache:
    """Get or create the process-wide cache."""
    global _global_cache
    with _global_cache_lock:
        if _global_cache is None:
            _global_cache = MemoryCache(
                max_keys=Config.MEMORY_CACHE_MAX_KEYS,
                max_bytes=Config.MEMORY_CACHE_MAX_BYTES,
                default_ttl=Config.MEMORY_CACHE_TTL_SECONDS,
            )
        return _global_cache


def reset_memory_cache() -> None:
    """Drop the process-wide cache (tests)."""
    global _global_cache
    with _global_cache_lock:
        _global_cache = None
