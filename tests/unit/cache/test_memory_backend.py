"""
kvcache - Memory Cache Backend Tests

Test suite for the in-memory cache backend.
Checks that it honours the same contract as the file backend.
"""

import asyncio
from typing import Any

import pytest

from kvcache.cache.backends.memory import MemoryCacheBackend
from kvcache.errors import ConfigurationError, InvalidArgumentError


class TestMemoryCacheBackend:
    """Test suite for MemoryCacheBackend."""

    @pytest.fixture
    async def cache(self) -> MemoryCacheBackend:
        """Create a fresh memory cache instance for each test."""
        return MemoryCacheBackend(default_ttl=3600, namespace="test")

    async def test_initialization(self) -> None:
        """Test cache initialization with custom parameters."""
        cache = MemoryCacheBackend(default_ttl=1800, namespace="custom")
        assert cache.default_ttl == 1800
        assert cache.namespace == "custom"

        stats = await cache.get_stats()
        assert stats["backend"] == "memory"
        assert stats["hits"] == 0
        assert stats["misses"] == 0
        assert stats["size"] == 0

    def test_invalid_namespace(self) -> None:
        with pytest.raises(ConfigurationError):
            MemoryCacheBackend(namespace="..")

    async def test_set_and_get(self, cache: MemoryCacheBackend) -> None:
        """Test basic set and get operations."""
        assert await cache.set("key1", "value1") is True
        assert await cache.get("key1") == "value1"

        stats = await cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 0
        assert stats["sets"] == 1

    async def test_get_nonexistent_key(self, cache: MemoryCacheBackend) -> None:
        """Test getting a key that doesn't exist."""
        assert await cache.get("nonexistent") is None
        assert await cache.get("nonexistent", 0) == 0

        stats = await cache.get_stats()
        assert stats["misses"] == 2
        assert stats["hits"] == 0

    async def test_set_with_various_types(self, cache: MemoryCacheBackend, sample_cache_data: dict[str, Any]) -> None:
        """Test storing different data types."""
        for key, value in sample_cache_data.items():
            await cache.set(key, value)

        for key, expected_value in sample_cache_data.items():
            assert await cache.get(key) == expected_value

    async def test_delete(self, cache: MemoryCacheBackend) -> None:
        """Test deleting keys."""
        assert await cache.delete("key1") is False

        await cache.set("key1", "value1")
        assert await cache.delete("key1") is True
        assert await cache.delete("key1") is False
        assert await cache.get("key1") is None

    async def test_clear(self, cache: MemoryCacheBackend) -> None:
        """Test clearing all cache entries."""
        for i in range(5):
            await cache.set(f"key{i}", f"value{i}")
        cache.namespace = "other"
        await cache.set("key0", "other")

        assert (await cache.get_stats())["size"] == 6
        assert await cache.clear() is True
        assert (await cache.get_stats())["size"] == 0

        cache.namespace = "test"
        for i in range(5):
            assert await cache.has(f"key{i}") is False

    async def test_ttl_expiration_with_lazy_eviction(self, cache: MemoryCacheBackend, clock: Any) -> None:
        """Test that entries expire after TTL and are dropped on access."""
        await cache.set("key1", "value1", ttl=1)
        assert await cache.get("key1") == "value1"

        clock.advance(2)

        assert await cache.has("key1") is True
        assert await cache.is_expired("key1") is True
        assert await cache.get("key1", "gone") == "gone"
        assert await cache.has("key1") is False

        stats = await cache.get_stats()
        assert stats["evictions"] == 1

    async def test_ttl_expiration_real_time(self) -> None:
        """TTL=None uses the default TTL."""
        short_ttl_cache = MemoryCacheBackend(default_ttl=1)

        await short_ttl_cache.set("key1", "value1", ttl=None)
        assert await short_ttl_cache.get("key1") == "value1"

        await asyncio.sleep(1.5)
        assert await short_ttl_cache.get("key1") is None

    async def test_zero_ttl_is_already_expired(self, cache: MemoryCacheBackend) -> None:
        await cache.set("key1", "value1", ttl=0)
        assert await cache.get("key1") is None

    async def test_invalid_ttl(self, cache: MemoryCacheBackend) -> None:
        with pytest.raises(InvalidArgumentError):
            await cache.set("key1", "value1", ttl=[1])  # type: ignore[arg-type]

    async def test_nan_ttl_rejected(self, cache: MemoryCacheBackend) -> None:
        with pytest.raises(InvalidArgumentError):
            await cache.set("key1", "value1", ttl=float("nan"))
        assert await cache.has("key1") is False

    async def test_lone_surrogate_key(self, cache: MemoryCacheBackend) -> None:
        key = "bad\ud800key"
        assert await cache.set(key, "v") is True
        assert await cache.has(key) is True
        assert await cache.get(key) == "v"
        assert await cache.has("badkey") is False
        assert await cache.delete(key) is True
        assert await cache.get(key) is None

    async def test_namespace_isolation(self, cache: MemoryCacheBackend) -> None:
        cache.namespace = "ns1"
        await cache.set("k", "v")

        cache.namespace = "ns2"
        assert await cache.get("k") is None

        cache.namespace = "ns1"
        assert await cache.get("k") == "v"

    async def test_no_size_limit(self, cache: MemoryCacheBackend) -> None:
        for i in range(2000):
            await cache.set(f"key{i}", i)
        assert (await cache.get_stats())["size"] == 2000
        assert await cache.get("key0") == 0

    async def test_get_many(self, cache: MemoryCacheBackend) -> None:
        """Test batch get operation."""
        for i in range(5):
            await cache.set(f"key{i}", f"value{i}")

        result = await cache.get_many(["key0", "key2", "key4", "nonexistent"])

        assert result == {
            "key0": "value0",
            "key2": "value2",
            "key4": "value4",
            "nonexistent": None,
        }

    async def test_set_many(self, cache: MemoryCacheBackend) -> None:
        """Test batch set operation."""
        items = {
            "key1": "value1",
            "key2": "value2",
            "key3": "value3",
        }

        assert await cache.set_many(items) is True
        for key, value in items.items():
            assert await cache.get(key) == value

    async def test_set_many_empty_key_fails_aggregate(self, cache: MemoryCacheBackend) -> None:
        assert await cache.set_many({"a": 1, "": 2}) is False
        assert await cache.get("a") == 1

    async def test_bulk_rejects_non_string_keys_up_front(self, cache: MemoryCacheBackend) -> None:
        with pytest.raises(InvalidArgumentError):
            await cache.set_many([("a", 1), (5, 2), ("c", 3)])
        assert (await cache.get_stats())["size"] == 0

        await cache.set("a", 1)
        with pytest.raises(InvalidArgumentError):
            await cache.delete_many(["a", 5])  # type: ignore[list-item]
        with pytest.raises(InvalidArgumentError):
            await cache.get_many([b"a"])  # type: ignore[list-item]
        assert await cache.get("a") == 1

    async def test_delete_many(self, cache: MemoryCacheBackend) -> None:
        """Test batch delete operation."""
        for i in range(5):
            await cache.set(f"key{i}", f"value{i}")

        assert await cache.delete_many(["key0", "key2", "key4"]) is True
        assert await cache.delete_many(["key1", "nonexistent"]) is False

        assert await cache.has("key1") is False
        assert await cache.has("key3") is True

    async def test_concurrent_access(self, cache: MemoryCacheBackend) -> None:
        """Test concurrent access to cache."""

        async def set_values(start: int, count: int) -> None:
            for i in range(start, start + count):
                await cache.set(f"key{i}", f"value{i}")

        await asyncio.gather(
            set_values(0, 20),
            set_values(20, 20),
            set_values(40, 20),
        )

        stats = await cache.get_stats()
        assert stats["size"] == 60

    async def test_close(self, cache: MemoryCacheBackend) -> None:
        await cache.set("key1", "value1")
        await cache.close()
        # Close doesn't clear data for memory backend
        assert await cache.get("key1") == "value1"
