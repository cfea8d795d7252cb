"""
kvcache - Pluggable key-value cache

File-backed and in-memory cache backends behind one async CacheDriver interface.
"""

from .cache import (
    CacheDriver,
    FileCacheBackend,
    MemoryCacheBackend,
    close_all_caches,
    create_cache,
    create_driver,
    get_cache,
)
from .errors import CacheError, ConfigurationError, InvalidArgumentError, KVCacheError

__version__ = "0.1.0"

__all__ = [
    "CacheDriver",
    "FileCacheBackend",
    "MemoryCacheBackend",
    "create_driver",
    "create_cache",
    "get_cache",
    "close_all_caches",
    "KVCacheError",
    "ConfigurationError",
    "CacheError",
    "InvalidArgumentError",
]
