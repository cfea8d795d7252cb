"""
kvcache - Memory Cache Backend

In-process cache implementation with TTL support.
Suitable for single-process deployments and tests; entries are lost on exit.
"""

import asyncio
import logging
from typing import Any

from ...errors import ConfigurationError, InvalidArgumentError
from ..interface import CacheDriver
from ..keys import DEFAULT_HASH_ALGORITHM, KeyHasher, check_key, normalize_namespace
from ..serialization import CacheRecord, TTLType, ttl_to_seconds

logger = logging.getLogger(__name__)


class MemoryCacheBackend(CacheDriver):
    """
    In-memory cache backend.

    Features:
    - Per-key TTL with lazy eviction on get()
    - Namespaces isolate keys like file backend subdirectories
    - Values are stored by reference (no serialization)
    - Unbounded; entries leave only by expiry, delete or clear
    """

    def __init__(
        self,
        default_ttl: float = 300,
        namespace: str | None = None,
        hash_algorithm: str = DEFAULT_HASH_ALGORITHM,
    ):
        """
        Initialize memory cache backend.

        Args:
            default_ttl: Default TTL in seconds
            namespace: Optional key namespace
            hash_algorithm: hashlib algorithm used to derive storage keys
        """
        try:
            self.default_ttl = ttl_to_seconds(default_ttl, 0)
            self._namespace = normalize_namespace(namespace)
        except InvalidArgumentError as e:
            raise ConfigurationError(e.message, details=e.details) from e
        self._hasher = KeyHasher(hash_algorithm)

        # Cache storage: (namespace, hashed key) -> record
        self._cache: dict[tuple[str | None, str], CacheRecord] = {}

        # Stats
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0
        self._evictions = 0

        self._lock = asyncio.Lock()

    @property
    def namespace(self) -> str | None:
        """Namespace applied to subsequent key lookups."""
        return self._namespace

    @namespace.setter
    def namespace(self, value: str | None) -> None:
        self._namespace = normalize_namespace(value)

    def _make_key(self, key: str) -> tuple[str | None, str]:
        """Create namespaced storage key."""
        return (self._namespace, self._hasher.encode(key))

    async def get(self, key: str, default: Any = None) -> Any:
        """Retrieve value from cache."""
        if not check_key(key, "get"):
            return default

        async with self._lock:
            cache_key = self._make_key(key)
            record = self._cache.get(cache_key)

            if record is None:
                self._misses += 1
                return default

            if record.is_expired():
                del self._cache[cache_key]
                self._evictions += 1
                self._misses += 1
                logger.debug(f"Evicted expired key from memory cache: {key}")
                return default

            self._hits += 1
            return record.value

    async def set(
        self,
        key: str,
        value: Any,
        ttl: TTLType = None,
    ) -> bool:
        """Store value in cache."""
        ttl_seconds = ttl_to_seconds(ttl, self.default_ttl)
        if not check_key(key, "set"):
            return False

        async with self._lock:
            self._cache[self._make_key(key)] = CacheRecord.create(value, ttl_seconds)
            self._sets += 1
            return True

    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        if not check_key(key, "delete"):
            return False

        async with self._lock:
            if self._cache.pop(self._make_key(key), None) is None:
                return False
            self._deletes += 1
            return True

    async def has(self, key: str) -> bool:
        """Check if key is stored, regardless of expiry."""
        if not check_key(key, "check"):
            return False

        async with self._lock:
            return self._make_key(key) in self._cache

    async def is_expired(self, key: str) -> bool:
        """Check if key is missing or past expiry."""
        if not check_key(key, "check"):
            return True

        async with self._lock:
            record = self._cache.get(self._make_key(key))
            return record is None or record.is_expired()

    async def clear(self) -> bool:
        """Clear all entries from cache, across namespaces."""
        async with self._lock:
            size = len(self._cache)
            self._cache.clear()
            logger.info(f"Cleared {size} entries from memory cache")
            return True

    async def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        async with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

            return {
                "backend": "memory",
                "namespace": self._namespace,
                "default_ttl": self.default_ttl,
                "size": len(self._cache),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "sets": self._sets,
                "deletes": self._deletes,
                "evictions": self._evictions,
            }

    async def close(self) -> None:
        """Close cache and release resources."""
        # Memory backend doesn't need cleanup - data persists in-process
        logger.debug(f"Memory cache backend closed for namespace '{self._namespace}'")
