"""
kvcache - Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
All configuration is validated before any backend is constructed.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import KVCacheError


class CacheBackend(str, Enum):
    """Supported cache backends."""

    FILE = "file"
    MEMORY = "memory"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CacheConfig(BaseModel):
    """Cache configuration."""

    backend: CacheBackend = Field(default=CacheBackend.FILE, description="Cache backend to use")
    directory: str = Field(default="cache", min_length=1, description="Root directory for cache files")
    extension: str = Field(default="cache", description="File extension for cache entries")
    namespace: str | None = Field(default=None, description="Subdirectory/prefix scoping cache keys")
    ttl_seconds: float = Field(default=300, ge=0, description="Default TTL in seconds")
    hash_algorithm: str = Field(default="sha256", description="hashlib algorithm for key hashing")

    @field_validator("extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        """Strip dots and reject empty extensions."""
        from ..cache.keys import normalize_extension  # lazy: cache package imports config

        try:
            return normalize_extension(v)
        except KVCacheError as e:
            raise ValueError(e.message) from e

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: str | None) -> str | None:
        """Trim separators and reject traversal segments."""
        from ..cache.keys import normalize_namespace

        try:
            return normalize_namespace(v)
        except KVCacheError as e:
            raise ValueError(e.message) from e

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True, validate_default=True)


class KVCacheConfig(BaseModel):
    """Root configuration for kvcache."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    cache: CacheConfig = Field(default_factory=CacheConfig)

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True, validate_default=True)
