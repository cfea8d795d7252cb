"""
kvcache - Cache Interface

Defines the abstract interface that all cache backends must implement.
Bulk operations have default per-key implementations with aggregate results.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from ..errors import InvalidArgumentError
from .serialization import TTLType, ttl_to_seconds


def _require_str_keys(keys: list[Any]) -> None:
    bad = [key for key in keys if not isinstance(key, str)]
    if bad:
        raise InvalidArgumentError(
            f"Cache keys must be strings, got {type(bad[0]).__name__}",
            details={"key_types": sorted({type(key).__name__ for key in bad})},
        )


def materialize_keys(keys: Any) -> list[str]:
    """
    Turn a finite iterable of keys into a list.

    Raises:
        InvalidArgumentError: If keys is not an iterable of string keys
    """
    if isinstance(keys, (str, bytes)) or not isinstance(keys, Iterable):
        raise InvalidArgumentError(
            "keys is neither a list nor an iterable of keys",
            details={"keys_type": type(keys).__name__},
        )
    result = list(keys)
    _require_str_keys(result)
    return result


def materialize_items(items: Any) -> list[tuple[str, Any]]:
    """
    Turn a mapping or an iterable of (key, value) pairs into a list of pairs.

    Raises:
        InvalidArgumentError: If items is neither a mapping nor an iterable of
            pairs, or a key is not a string
    """
    if isinstance(items, Mapping):
        pairs = list(items.items())
        _require_str_keys([key for key, _ in pairs])
        return pairs
    if isinstance(items, (str, bytes)) or not isinstance(items, Iterable):
        raise InvalidArgumentError(
            "items is neither a mapping nor an iterable of pairs",
            details={"items_type": type(items).__name__},
        )
    try:
        pairs = list(dict(items).items())
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(
            f"items must contain (key, value) pairs: {e}",
            details={"items_type": type(items).__name__},
        ) from e
    _require_str_keys([key for key, _ in pairs])
    return pairs


class CacheDriver(ABC):
    """
    Abstract base class for cache backends.

    All cache implementations must implement this interface so callers can
    swap backends (file, memory) without code changes.
    """

    namespace: str | None

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a value from the cache.

        Args:
            key: Cache key
            default: Value returned on a miss

        Returns:
            Cached value if present and not expired, ``default`` otherwise
        """

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        ttl: TTLType = None,
    ) -> bool:
        """
        Store a value in the cache, replacing any existing entry.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Seconds or timedelta (None = use default)

        Returns:
            True if stored successfully, False otherwise
        """

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete a key from the cache.

        Returns:
            True if the entry was removed, False if it didn't exist or removal failed
        """

    @abstractmethod
    async def has(self, key: str) -> bool:
        """
        Check if an entry is stored for a key.

        Expiry is not considered; use is_expired() or get() for that.
        """

    @abstractmethod
    async def is_expired(self, key: str) -> bool:
        """
        Check if the entry for a key is expired.

        Missing or unreadable entries count as expired.
        """

    @abstractmethod
    async def clear(self) -> bool:
        """
        Clear all entries from the cache.

        Returns:
            True only if every entry was removed
        """

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics (hits, misses, size, etc.)
        """

    @abstractmethod
    async def close(self) -> None:
        """Close the cache backend and release resources."""

    async def get_many(self, keys: Iterable[str], default: Any = None) -> dict[str, Any]:
        """
        Retrieve multiple values from the cache.

        Every input key is present in the result; misses map to ``default``.

        Raises:
            InvalidArgumentError: If keys is not an iterable of string keys
        """
        result = {}
        for key in materialize_keys(keys):
            result[key] = await self.get(key, default)
        return result

    async def set_many(
        self,
        items: Mapping[str, Any] | Iterable[tuple[str, Any]],
        ttl: TTLType = None,
    ) -> bool:
        """
        Store multiple values in the cache.

        Every item is attempted even after a failure.

        Returns:
            True only if every item was stored

        Raises:
            InvalidArgumentError: If items is neither a mapping nor pairs, or a key is not a string
        """
        pairs = materialize_items(items)
        ttl_to_seconds(ttl, 0)  # reject a bad ttl before storing anything
        ok = True
        for key, value in pairs:
            if not await self.set(key, value, ttl):
                ok = False
        return ok

    async def delete_many(self, keys: Iterable[str]) -> bool:
        """
        Delete multiple keys from the cache.

        Every key is attempted even after a failure.

        Returns:
            True only if every key was deleted

        Raises:
            InvalidArgumentError: If keys is not an iterable of string keys
        """
        ok = True
        for key in materialize_keys(keys):
            if not await self.delete(key):
                ok = False
        return ok
