"""
Unit tests for src/common/memory_cache.py

Tests LRU ordering, TTL expiry with an injected clock, the byte ceiling
and the stats counters.
"""

from src.common.memory_cache import CacheKeys, MemoryCache, estimate_size, get_memory_cache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestLRU:
    """Tests for count-based eviction."""

    def test_evicts_least_recently_used(self):
        cache = MemoryCache(max_keys=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")  # a is now most recent
        cache.set("c", 3)

        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3
        assert cache.get_stats().evictions == 1

    def test_overwrite_does_not_evict(self):
        cache = MemoryCache(max_keys=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)

        assert len(cache) == 2
        assert cache.get("a") == 10
        assert cache.get_stats().evictions == 0


class TestTTL:
    """Tests for expiry."""

    def test_entry_expires(self):
        clock = FakeClock()
        cache = MemoryCache(default_ttl=60, clock=clock)
        cache.set("k", "v")

        clock.advance(59)
        assert cache.get("k") == "v"
        clock.advance(1)
        assert cache.get("k") is None
        assert cache.get_stats().expirations == 1

    def test_per_entry_ttl(self):
        clock = FakeClock()
        cache = MemoryCache(default_ttl=600, clock=clock)
        cache.set("short", 1, ttl=5)
        cache.set("long", 2)

        clock.advance(10)
        assert cache.get("short") is None
        assert cache.get("long") == 2

    def test_clear_expired(self):
        clock = FakeClock()
        cache = MemoryCache(clock=clock)
        cache.set("a", 1, ttl=1)
        cache.set("b", 2, ttl=1)
        cache.set("c", 3, ttl=100)

        clock.advance(2)
        assert cache.clear_expired() == 2
        assert len(cache) == 1


class TestSizeCeiling:
    """Tests for the byte ceiling."""

    def test_oversized_value_rejected(self):
        cache = MemoryCache(max_bytes=100)
        assert cache.set("big", "x" * 200) is False
        assert cache.get("big") is None

    def test_evicts_until_size_fits(self):
        item = "x" * 20
        size = estimate_size(item)
        cache = MemoryCache(max_bytes=size * 2)
        cache.set("a", item)
        cache.set("b", item)
        cache.set("c", item)

        stats = cache.get_stats()
        assert stats.size_bytes <= size * 2
        assert cache.get("a") is None
        assert cache.get("c") == item


class TestStats:
    """Tests for counters."""

    def test_hit_rate(self):
        cache = MemoryCache()
        cache.set("a", 1)
        cache.get("a")
        cache.get("missing")

        stats = cache.get_stats().to_dict()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5
        assert stats["keys"] == 1

    def test_delete_and_clear(self):
        cache = MemoryCache()
        cache.set("a", 1)
        assert cache.delete("a") is True
        assert cache.delete("a") is False
        cache.set("b", 2)
        cache.clear()
        assert len(cache) == 0
        assert cache.get_stats().size_bytes == 0


class TestGlobalCache:
    """Tests for the process-wide instance."""

    def test_singleton(self):
        assert get_memory_cache() is get_memory_cache()

    def test_key_namespaces(self):
        assert CacheKeys.profile("u") == "profile:u"
        assert CacheKeys.company("acme") == "company:acme"
