"""
kvcache - Key Hashing and Path Resolution

Maps arbitrary cache keys to filesystem-safe identifiers and resolves
entry file paths under a cache root.

Layout:
    <root>/[<namespace>/]<hex digest of key>.<extension>
"""

import hashlib
import logging
from pathlib import Path

from ..errors import ConfigurationError, InvalidArgumentError

logger = logging.getLogger(__name__)

DEFAULT_HASH_ALGORITHM = "sha256"


class KeyHasher:
    """
    One-way key codec.

    Produces a fixed-length lowercase hex digest for any key string, so the
    result is always safe to use as a single path component.
    """

    def __init__(self, algorithm: str = DEFAULT_HASH_ALGORITHM):
        algorithm = algorithm.lower()
        if algorithm not in hashlib.algorithms_guaranteed:
            raise ConfigurationError(
                f"Unsupported key hash algorithm: {algorithm}",
                details={"algorithm": algorithm, "supported": sorted(hashlib.algorithms_guaranteed)},
            )
        # shake_* digests need an explicit length
        if algorithm.startswith("shake_"):
            raise ConfigurationError(
                f"Variable-length hash algorithm not supported: {algorithm}",
                details={"algorithm": algorithm},
            )
        self.algorithm = algorithm

    def encode(self, key: str) -> str:
        """Return the hex digest identifier for a key."""
        # surrogatepass keeps lone surrogates hashable; the mapping stays injective
        return hashlib.new(self.algorithm, key.encode("utf-8", "surrogatepass")).hexdigest()

    __call__ = encode


def normalize_namespace(namespace: str | None) -> str | None:
    """
    Trim and validate a namespace.

    Leading/trailing separators are stripped. Nested namespaces such as
    ``"tenant/reports"`` are allowed; traversal segments are not.

    Returns:
        Normalized namespace, or None when no namespace applies

    Raises:
        InvalidArgumentError: If the namespace could escape the cache root
    """
    if namespace is None:
        return None
    if not isinstance(namespace, str):
        raise InvalidArgumentError(
            "Namespace must be a string",
            details={"namespace_type": type(namespace).__name__},
        )

    trimmed = namespace.strip().strip("/")
    if not trimmed:
        return None

    if "\\" in trimmed or "\x00" in trimmed:
        raise InvalidArgumentError(
            f"Illegal character in namespace: {namespace!r}",
            details={"namespace": namespace},
        )
    try:
        trimmed.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidArgumentError(
            f"Namespace is not encodable as a path: {namespace!r}",
            details={"namespace": namespace, "error": str(e)},
        ) from e

    for segment in trimmed.split("/"):
        if segment in ("", ".", ".."):
            raise InvalidArgumentError(
                f"Illegal path segment in namespace: {namespace!r}",
                details={"namespace": namespace, "segment": segment},
            )

    return trimmed


def normalize_extension(extension: str) -> str:
    """Strip surrounding dots and whitespace from a file extension."""
    normalized = extension.strip().strip(".")
    if not normalized or "/" in normalized or "\\" in normalized:
        raise ConfigurationError(
            f"Invalid cache file extension: {extension!r}",
            details={"extension": extension},
        )
    return normalized


def resolve_path(
    root: Path,
    namespace: str | None,
    extension: str,
    identifier: str,
) -> Path:
    """
    Join root, namespace, identifier and extension into an entry path.

    Pure function: performs no I/O. ``namespace`` and ``extension`` are
    expected to be normalized already.
    """
    directory = root / namespace if namespace else root
    return directory / f"{identifier}.{extension}"


def check_key(key: str, operation: str) -> bool:
    """
    Validate a cache key before use.

    Returns:
        False for an empty key (the operation should degrade to a miss/failure)

    Raises:
        InvalidArgumentError: If the key is not a string
    """
    if not isinstance(key, str):
        raise InvalidArgumentError(
            f"Cache key must be a string, got {type(key).__name__}",
            details={"key_type": type(key).__name__, "operation": operation},
        )
    if not key:
        logger.warning(f"Attempted to {operation} cache value with empty key")
        return False
    return True
