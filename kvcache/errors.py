"""
kvcache - Core Error Types

Defines the exception hierarchy for the cache runtime.
All exceptions inherit from KVCacheError for consistent error handling.

Propagation policy:
- ConfigurationError is fatal and raised at construction time
- InvalidArgumentError is raised to the caller before any work is done
- DecodeError never leaves a backend; it is turned into a cache miss
- I/O failures are never raised from cache operations; they become False/miss
"""

from typing import Any


class KVCacheError(Exception):
    """Base exception for all kvcache errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for structured logging."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(KVCacheError):
    """Raised when configuration is invalid or a backend cannot be constructed."""


class CacheError(KVCacheError):
    """Base exception for cache-related errors."""


class InvalidArgumentError(CacheError, ValueError):
    """Raised when a cache operation receives an unusable argument."""


class DecodeError(CacheError):
    """Raised when a stored record is malformed or truncated."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None):
        message = f"Failed to decode cache record: {reason}"
        super().__init__(message, details)
        self.reason = reason
