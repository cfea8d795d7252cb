"""
kvcache - Cache Module

Provides caching functionality with pluggable backends.

- factory.py: Single source of truth for cache creation
- interface.py: Abstract cache interface all backends must implement
- keys.py / serialization.py: Key hashing, path resolution and record encoding
- backends/: Cache backend implementations (file, memory)

Usage:
    from kvcache.cache import create_driver

    cache = create_driver("file", {"dir": "/tmp/app-cache", "ttl": 600})
    await cache.set("key", "value", ttl=3600)
    value = await cache.get("key")
"""

from .backends import FileCacheBackend, MemoryCacheBackend
from .factory import (
    close_all_caches,
    create_cache,
    create_driver,
    get_cache,
    list_cache_instances,
    reset_cache_factory,
)
from .interface import CacheDriver
from .keys import KeyHasher
from .serialization import CacheRecord

__all__ = [
    # Factory functions
    "create_driver",
    "create_cache",
    "get_cache",
    "close_all_caches",
    "list_cache_instances",
    "reset_cache_factory",
    # Interface
    "CacheDriver",
    # Backends
    "FileCacheBackend",
    "MemoryCacheBackend",
    # Building blocks
    "KeyHasher",
    "CacheRecord",
]
