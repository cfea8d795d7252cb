"""
kvcache - Cache Factory

Canonical factory for creating cache instances based on configuration.

Key points:
- Backend selected by name: "file" (default) or "memory"
- create_driver() accepts a plain option map: dir, ext, namespace, ttl
- create_cache() keeps a registry of named instances built from CacheConfig
- All configuration is typed and validated via Pydantic models

Examples:
    from kvcache.cache.factory import create_cache, create_driver

    # Plain option map
    cache = create_driver("file", {"dir": "/tmp/app-cache", "ttl": 600})

    # Uses env-configured backend (CACHE_BACKEND=file|memory)
    cache = create_cache()

    # Or explicitly supply a CacheConfig (e.g., for tests)
    from kvcache.config import CacheConfig, CacheBackend
    cfg = CacheConfig(backend=CacheBackend.MEMORY, ttl_seconds=600)
    mem_cache = create_cache(cfg, name="test")
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError

from ..config import CacheBackend, CacheConfig, get_config
from ..errors import ConfigurationError
from .backends.file import FileCacheBackend
from .backends.memory import MemoryCacheBackend
from .interface import CacheDriver

logger = logging.getLogger(__name__)

# Global cache instances registry
_cache_instances: dict[str, CacheDriver] = {}

# Option map keys accepted by create_driver() -> CacheConfig fields
_OPTION_FIELDS = {
    "dir": "directory",
    "ext": "extension",
    "namespace": "namespace",
    "ttl": "ttl_seconds",
    "hash_algorithm": "hash_algorithm",
}


def _create_file_cache(config: CacheConfig) -> CacheDriver:
    """Internal helper to construct a file cache backend."""
    return FileCacheBackend(
        directory=config.directory,
        extension=config.extension,
        default_ttl=config.ttl_seconds,
        namespace=config.namespace,
        hash_algorithm=config.hash_algorithm,
    )


def _create_memory_cache(config: CacheConfig) -> CacheDriver:
    """Internal helper to construct a memory cache backend."""
    return MemoryCacheBackend(
        default_ttl=config.ttl_seconds,
        namespace=config.namespace,
        hash_algorithm=config.hash_algorithm,
    )


_BACKENDS: dict[str, Callable[[CacheConfig], CacheDriver]] = {
    CacheBackend.FILE.value: _create_file_cache,
    CacheBackend.MEMORY.value: _create_memory_cache,
}


def build_backend(config: CacheConfig) -> CacheDriver:
    """
    Construct a backend for a validated config without registering it.

    Raises:
        ConfigurationError: If the backend is unknown or cannot be constructed
    """
    backend = str(CacheBackend(config.backend).value)
    builder = _BACKENDS.get(backend)
    if builder is None:
        raise ConfigurationError(
            f"Unknown cache backend: {backend}",
            details={"backend": backend, "supported": sorted(_BACKENDS)},
        )
    return builder(config)


def create_driver(
    driver: str | None = None,
    options: Mapping[str, Any] | None = None,
) -> CacheDriver:
    """
    Create an unregistered cache backend from a driver name and option map.

    Args:
        driver: Backend name ("file" when empty)
        options: Map with optional keys dir, ext, namespace, ttl, hash_algorithm

    Returns:
        Constructed cache backend

    Raises:
        ConfigurationError: If the driver name is unknown or options are invalid
    """
    if driver is not None and not isinstance(driver, str):
        raise ConfigurationError(
            f"Cache driver name must be a string, got {type(driver).__name__}",
            details={"driver_type": type(driver).__name__, "supported": sorted(_BACKENDS)},
        )

    name = (driver or CacheBackend.FILE.value).strip().lower()
    if name not in _BACKENDS:
        raise ConfigurationError(
            f"Unknown cache driver: {driver}",
            details={"driver": driver, "supported": sorted(_BACKENDS)},
        )

    options = dict(options or {})
    unknown = sorted(set(options) - set(_OPTION_FIELDS))
    if unknown:
        raise ConfigurationError(
            f"Unknown cache option(s): {', '.join(unknown)}",
            details={"unknown": unknown, "supported": sorted(_OPTION_FIELDS)},
        )

    fields = {_OPTION_FIELDS[key]: value for key, value in options.items() if value is not None}
    try:
        config = CacheConfig(backend=name, **fields)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid options for cache driver '{name}'",
            details={"driver": name, "validation_errors": e.errors()},
        ) from e

    logger.debug("Creating unregistered cache driver: %s", name, extra={"backend": name})
    return build_backend(config)


def create_cache(
    config: CacheConfig | None = None,
    name: str = "default",
) -> CacheDriver:
    """
    Create a cache backend instance based on configuration.

    Args:
        config: Cache configuration (uses global config if not provided)
        name: Cache instance name (for multiple cache instances)

    Returns:
        Configured cache backend instance

    Raises:
        ConfigurationError: If cache configuration is invalid or backend unavailable
    """
    # Return existing instance if already created
    if name in _cache_instances:
        logger.debug("Returning existing cache instance: %s", name)
        return _cache_instances[name]

    # Use global config if not provided
    if config is None:
        config = get_config().cache

    logger.info(
        "Creating cache instance '%s' with backend: %s",
        name,
        config.backend,
        extra={"cache_name": name, "backend": str(config.backend)},
    )

    try:
        cache = build_backend(config)
    except ConfigurationError:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error creating cache instance '%s': %s",
            name,
            e,
            extra={"cache_name": name, "backend": str(config.backend), "error": str(e)},
            exc_info=True,
        )
        raise ConfigurationError(
            f"Failed to create cache instance '{name}': {e}",
            details={"cache_name": name, "backend": str(config.backend), "error": str(e)},
        ) from e

    _cache_instances[name] = cache
    logger.info(
        "Cache instance '%s' created successfully",
        name,
        extra={"cache_name": name, "backend": str(config.backend)},
    )
    return cache


def get_cache(name: str = "default") -> CacheDriver:
    """
    Get an existing cache instance by name.

    If the instance doesn't exist, it will be created automatically
    using the global configuration.
    """
    if name not in _cache_instances:
        logger.debug("Cache instance '%s' not found, creating new instance", name)
        return create_cache(name=name)

    return _cache_instances[name]


async def close_all_caches() -> None:
    """
    Close all cache instances and release resources.

    Should be called during graceful shutdown.
    """
    if not _cache_instances:
        logger.debug("No cache instances to close")
        return

    logger.info("Closing %d cache instance(s)...", len(_cache_instances))

    for name, cache in list(_cache_instances.items()):
        try:
            await cache.close()
            logger.info("Closed cache instance: %s", name)
        except Exception as e:
            logger.error(
                "Error closing cache instance '%s': %s",
                name,
                e,
                extra={"cache_name": name, "error": str(e)},
                exc_info=True,
            )

    _cache_instances.clear()
    logger.info("All cache instances closed")


def reset_cache_factory() -> None:
    """
    Reset the cache factory by clearing all instance references.

    Does NOT call close() on instances - use close_all_caches() for proper cleanup.
    """
    count = len(_cache_instances)
    _cache_instances.clear()
    logger.debug("Reset cache factory, cleared %d instance reference(s)", count)


def list_cache_instances() -> list[str]:
    """List all registered cache instance names."""
    return list(_cache_instances.keys())
