"""
kvcache - Configuration Loader

Builds the process-wide KVCacheConfig from the environment.

Variables (all optional; empty values fall back to the default):
    LOG_LEVEL             logging level name          INFO
    CACHE_BACKEND         "file" or "memory"          file
    CACHE_DIR             file backend root           cache
    CACHE_EXT             entry file extension        cache
    CACHE_NAMESPACE       key namespace               (none)
    CACHE_TTL_SECONDS     default TTL                 300
    CACHE_HASH_ALGORITHM  hashlib name for file keys  sha256

A .env file is applied first and overrides variables already set.
"""

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import KVCacheConfig

logger = logging.getLogger(__name__)

# env var -> CacheConfig field; unset or empty variables keep the model default
_CACHE_ENV = {
    "CACHE_BACKEND": "backend",
    "CACHE_DIR": "directory",
    "CACHE_EXT": "extension",
    "CACHE_NAMESPACE": "namespace",
    "CACHE_TTL_SECONDS": "ttl_seconds",
    "CACHE_HASH_ALGORITHM": "hash_algorithm",
}

_config_instance: KVCacheConfig | None = None


def _apply_env_file(env_file: str | None) -> None:
    """Export the variables of a .env file into os.environ, if the file exists."""
    env_path = Path(env_file) if env_file else Path.cwd() / ".env"
    if not env_path.exists():
        logger.debug(f"No env file at {env_path}; reading the process environment only")
        return

    logger.info(f"Applying cache settings from {env_path}")
    try:
        load_dotenv(env_path, override=True)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(
            f"Failed to read env file {env_path}: {e}",
            details={"path": str(env_path), "error": str(e)},
        ) from e


def _settings_from_env() -> dict[str, Any]:
    """Collect the raw (unvalidated) settings present in the environment."""
    settings: dict[str, Any] = {}
    log_level = os.getenv("LOG_LEVEL")
    if log_level:
        settings["log_level"] = log_level.upper()

    settings["cache"] = {field: os.environ[var] for var, field in _CACHE_ENV.items() if os.getenv(var)}
    return settings


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> KVCacheConfig:
    """
    Return the process-wide configuration, building it on first use.

    Args:
        env_file: .env file to apply (default: ./.env when present)
        reload: Rebuild even if a configuration is already cached

    Raises:
        ConfigurationError: If the env file is unreadable or a value is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    _apply_env_file(env_file)
    settings = _settings_from_env()

    try:
        config = KVCacheConfig(**settings)
    except ValidationError as e:
        logger.error(
            f"Invalid cache configuration: {e.error_count()} error(s)",
            extra={"validation_errors": e.errors(), "variables": sorted(settings["cache"])},
        )
        raise ConfigurationError(
            "Invalid cache configuration; check the CACHE_* and LOG_LEVEL variables",
            details={"validation_errors": e.errors()},
        ) from e

    _config_instance = config
    logger.debug(
        f"Cache configuration ready (backend: {config.cache.backend})",
        extra={"cache_backend": config.cache.backend, "cache_dir": config.cache.directory},
    )
    return config


def get_config() -> KVCacheConfig:
    """Return the cached configuration, loading it from the environment if needed."""
    if _config_instance is None:
        return load_config()
    return _config_instance


def reload_config(env_file: str | None = None) -> KVCacheConfig:
    """Discard the cached configuration and load it again."""
    return load_config(env_file=env_file, reload=True)
