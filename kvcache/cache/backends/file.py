"""
kvcache - File Cache Backend

Filesystem cache implementation with:
- One file per entry at <directory>/[<namespace>/]<sha256(key)>.<extension>
- Per-entry TTL with lazy eviction on get()
- Atomic writes (temp file in the target directory + os.replace)
- Depth-first clear() that keeps the root directory

Blocking filesystem calls run in worker threads via asyncio.to_thread().

Example:
    cache = FileCacheBackend(directory="/var/cache/app", namespace="reports", default_ttl=600)
    await cache.set("greeting", {"msg": "hello"}, ttl=60)
    val = await cache.get("greeting")
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from ...errors import ConfigurationError, DecodeError, InvalidArgumentError
from ..interface import CacheDriver
from ..keys import (
    DEFAULT_HASH_ALGORITHM,
    KeyHasher,
    check_key,
    normalize_extension,
    normalize_namespace,
    resolve_path,
)
from ..serialization import CacheRecord, TTLType, decode_record, encode_record, ttl_to_seconds

logger = logging.getLogger(__name__)


class FileCacheBackend(CacheDriver):
    """
    File cache backend with TTL expiry.

    Notes:
    - Keys are hashed, so raw keys never reach the filesystem.
    - has() is a pure existence check; expiry is evaluated by get()/is_expired().
    - Expired entries are removed only when get() touches them.
    - Readers never observe a partially written file.
    """

    def __init__(
        self,
        directory: str | os.PathLike[str] = "cache",
        extension: str = "cache",
        default_ttl: float = 300,
        namespace: str | None = None,
        hash_algorithm: str = DEFAULT_HASH_ALGORITHM,
    ) -> None:
        """
        Initialize file cache backend.

        Args:
            directory: Root directory for cache files (created if missing)
            extension: File extension for entry files
            default_ttl: Default TTL in seconds
            namespace: Optional subdirectory scoping the keys
            hash_algorithm: hashlib algorithm used to derive file names

        Raises:
            ConfigurationError: If the root directory is unusable
        """
        self.directory = Path(directory).expanduser().absolute()
        self.extension = normalize_extension(extension)
        try:
            self.default_ttl = ttl_to_seconds(default_ttl, 0)
            self._namespace = normalize_namespace(namespace)
        except InvalidArgumentError as e:
            raise ConfigurationError(e.message, details=e.details) from e
        self._hasher = KeyHasher(hash_algorithm)

        # Stats
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0
        self._evictions = 0
        self._errors = 0

        self._ensure_root()

    @property
    def namespace(self) -> str | None:
        """Subdirectory prefix applied to subsequent key lookups."""
        return self._namespace

    @namespace.setter
    def namespace(self, value: str | None) -> None:
        self._namespace = normalize_namespace(value)

    # ------------ Helpers ------------

    def _ensure_root(self) -> None:
        """Create the root directory or fail construction."""
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Cache directory '{self.directory}' could not be created: {e}",
                details={"directory": str(self.directory), "error": str(e)},
            ) from e

        if not self.directory.is_dir():
            raise ConfigurationError(
                f"Cache directory '{self.directory}' is not a directory",
                details={"directory": str(self.directory)},
            )
        if not os.access(self.directory, os.W_OK | os.X_OK):
            raise ConfigurationError(
                f"Cache directory '{self.directory}' is not writable",
                details={"directory": str(self.directory)},
            )

    def path_for(self, key: str) -> Path:
        """Resolve the entry file path for a key under the current namespace."""
        return resolve_path(self.directory, self._namespace, self.extension, self._hasher.encode(key))

    @staticmethod
    def _read_record(path: Path) -> CacheRecord | None:
        """Load a record, or None if the file does not exist."""
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        return decode_record(data)

    @staticmethod
    def _remove(path: Path) -> bool:
        """Unlink a file. Returns False if it was already gone."""
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        """Write data to path so concurrent readers see old or new content only."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(temp_path)
            raise

    def _store(self, path: Path, value: Any, ttl_seconds: float) -> None:
        """Replace the entry at path with a fresh record."""
        # The old entry goes first so a failed write never leaves stale data behind
        self._remove(path)
        data = encode_record(CacheRecord.create(value, ttl_seconds))
        self._write_atomic(path, data)

    def _clear_tree(self) -> list[tuple[str, str]]:
        """Remove everything under the root, children before parents."""
        failures: list[tuple[str, str]] = []

        def on_walk_error(error: OSError) -> None:
            if not isinstance(error, FileNotFoundError):
                failures.append((str(error.filename), str(error)))

        for dirpath, dirnames, filenames in os.walk(self.directory, topdown=False, onerror=on_walk_error):
            current = Path(dirpath)

            # os.walk lists symlinked directories without descending into them
            links = [name for name in dirnames if (current / name).is_symlink()]
            for name in [*filenames, *links]:
                try:
                    (current / name).unlink()
                except FileNotFoundError:
                    continue
                except OSError as e:
                    failures.append((str(current / name), str(e)))

            if current == self.directory:
                continue
            try:
                current.rmdir()
            except FileNotFoundError:
                continue
            except OSError as e:
                failures.append((str(current), str(e)))

        return failures

    def _count_entries(self) -> int:
        """Count entry files under the root (all namespaces)."""
        suffix = f".{self.extension}"
        count = 0
        for _, _, filenames in os.walk(self.directory):
            count += sum(1 for name in filenames if name.endswith(suffix) and not name.startswith("."))
        return count

    async def _evict(self, key: str, path: Path) -> None:
        """Remove an expired entry."""
        try:
            if await asyncio.to_thread(self._remove, path):
                self._evictions += 1
                logger.debug(f"Evicted expired key from file cache: {key}")
        except OSError as e:
            self._errors += 1
            logger.error(
                f"Failed to evict expired key '{key}' from file cache: {e}",
                extra={"key": key, "path": str(path), "error": str(e)},
                exc_info=True,
            )

    # ------------ Interface ------------

    async def get(self, key: str, default: Any = None) -> Any:
        """Retrieve value from cache."""
        if not check_key(key, "get"):
            return default

        path = self.path_for(key)
        try:
            record = await asyncio.to_thread(self._read_record, path)
        except DecodeError as e:
            logger.warning(
                f"Ignoring unreadable cache entry for key '{key}': {e.reason}",
                extra={"key": key, "path": str(path), **e.details},
            )
            record = None
        except OSError as e:
            self._errors += 1
            logger.error(
                f"Unexpected error reading key '{key}' from file cache: {e}",
                extra={"key": key, "path": str(path), "error": str(e)},
                exc_info=True,
            )
            record = None

        if record is None:
            self._misses += 1
            return default

        if record.is_expired():
            await self._evict(key, path)
            self._misses += 1
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

        path = self.path_for(key)
        try:
            await asyncio.to_thread(self._store, path, value, ttl_seconds)
        except (TypeError, ValueError) as e:
            self._errors += 1
            logger.error(
                f"Value for key '{key}' cannot be serialized: {e}",
                extra={"key": key, "value_type": type(value).__name__, "error": str(e)},
            )
            return False
        except OSError as e:
            self._errors += 1
            logger.error(
                f"Unexpected error writing key '{key}' to file cache: {e}",
                extra={"key": key, "path": str(path), "ttl": ttl_seconds, "error": str(e)},
                exc_info=True,
            )
            return False

        self._sets += 1
        return True

    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        if not check_key(key, "delete"):
            return False

        path = self.path_for(key)
        try:
            removed = await asyncio.to_thread(self._remove, path)
        except OSError as e:
            self._errors += 1
            logger.error(
                f"Unexpected error deleting key '{key}' from file cache: {e}",
                extra={"key": key, "path": str(path), "error": str(e)},
                exc_info=True,
            )
            return False

        if removed:
            self._deletes += 1
        return removed

    async def has(self, key: str) -> bool:
        """Check if an entry file exists for key."""
        if not check_key(key, "check"):
            return False

        path = self.path_for(key)
        try:
            return await asyncio.to_thread(path.is_file)
        except OSError as e:
            self._errors += 1
            logger.error(
                f"Unexpected error checking key '{key}' in file cache: {e}",
                extra={"key": key, "path": str(path), "error": str(e)},
                exc_info=True,
            )
            return False

    async def is_expired(self, key: str) -> bool:
        """Check if the entry for key is missing, unreadable or past expiry."""
        if not check_key(key, "check"):
            return True

        path = self.path_for(key)
        try:
            record = await asyncio.to_thread(self._read_record, path)
        except (DecodeError, OSError) as e:
            logger.debug(f"Treating unreadable entry for key '{key}' as expired: {e}")
            return True

        return record is None or record.is_expired()

    async def clear(self) -> bool:
        """Remove every file and subdirectory under the cache root."""
        failures = await asyncio.to_thread(self._clear_tree)
        if failures:
            self._errors += len(failures)
            logger.error(
                f"Failed to remove {len(failures)} path(s) while clearing file cache '{self.directory}'",
                extra={"directory": str(self.directory), "failures": failures[:10]},
            )
            return False

        logger.info(f"Cleared file cache directory '{self.directory}'")
        return True

    async def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        try:
            size = await asyncio.to_thread(self._count_entries)
        except OSError as e:
            logger.warning(f"Could not count file cache entries: {e}", extra={"directory": str(self.directory)})
            size = -1

        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

        return {
            "backend": "file",
            "directory": str(self.directory),
            "namespace": self._namespace,
            "extension": self.extension,
            "default_ttl": self.default_ttl,
            "size": size,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(hit_rate, 2),
            "sets": self._sets,
            "deletes": self._deletes,
            "evictions": self._evictions,
            "errors": self._errors,
        }

    async def close(self) -> None:
        """Close cache and release resources."""
        # Every operation opens and closes its own files
        logger.debug(f"File cache backend closed for directory '{self.directory}'")
