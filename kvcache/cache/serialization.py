"""
kvcache - Entry Serialization

Encodes cache records to the bytes persisted on disk and back.

Records are stored as compact UTF-8 JSON:
    {"value": <any JSON value>, "expires_at": <epoch seconds>}

Limits:
- Values must be JSON-representable (None, bool, int, float, str, list, dict
  with string keys). Tuples are read back as lists. Dicts with non-string
  keys are rejected rather than coerced, so a stored value reads back equal.
- Cyclic structures and arbitrary objects are not supported; encoding them
  raises TypeError/ValueError.
"""

from __future__ import annotations

import json
import math
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from ..errors import DecodeError, InvalidArgumentError

TTLType = int | float | timedelta | None


@dataclass(frozen=True)
class CacheRecord:
    """A cached value and its absolute expiry timestamp."""

    value: Any
    expires_at: float

    @classmethod
    def create(cls, value: Any, ttl_seconds: float, now: float | None = None) -> CacheRecord:
        """Build a record expiring ``ttl_seconds`` from now."""
        if now is None:
            now = time.time()
        return cls(value=value, expires_at=now + ttl_seconds)

    def is_expired(self, now: float | None = None) -> bool:
        """Check if the record is past its expiry."""
        if now is None:
            now = time.time()
        return self.expires_at <= now


def ttl_to_seconds(ttl: TTLType, default: float) -> float:
    """
    Normalize a TTL to seconds.

    Args:
        ttl: Seconds, a timedelta, or None for the default
        default: Default TTL in seconds

    Returns:
        TTL in seconds (may be <= 0, which yields an already-expired record)

    Raises:
        InvalidArgumentError: If ttl has an unsupported type or is NaN
    """
    if ttl is None:
        return float(default)
    if isinstance(ttl, timedelta):
        seconds = ttl.total_seconds()
    # bool is an int subclass but never a meaningful duration
    elif isinstance(ttl, bool) or not isinstance(ttl, (int, float)):
        raise InvalidArgumentError(
            f"TTL must be seconds or a timedelta, got {type(ttl).__name__}",
            details={"ttl_type": type(ttl).__name__},
        )
    else:
        try:
            seconds = float(ttl)
        except OverflowError as e:
            raise InvalidArgumentError(f"TTL is out of range: {ttl}", details={"ttl": str(ttl)}) from e

    if math.isnan(seconds):
        raise InvalidArgumentError("TTL must not be NaN", details={"ttl": str(ttl)})
    return seconds


def _reject_non_string_keys(value: Any, seen: set[int] | None = None) -> None:
    """Raise TypeError for dict keys json would silently turn into strings."""
    if not isinstance(value, (dict, list, tuple)):
        return

    if seen is None:
        seen = set()
    if id(value) in seen:
        raise ValueError("Circular reference detected")
    seen.add(id(value))

    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"dict keys must be str, not {type(key).__name__}")
            _reject_non_string_keys(item, seen)
    else:
        for item in value:
            _reject_non_string_keys(item, seen)

    seen.discard(id(value))


def encode_record(record: CacheRecord) -> bytes:
    """
    Serialize a record to bytes.

    Raises:
        TypeError: If the value holds an unsupported type or a non-string dict key
        ValueError: If the value is cyclic
    """
    _reject_non_string_keys(record.value)
    payload = {"value": record.value, "expires_at": record.expires_at}
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def decode_record(data: bytes) -> CacheRecord:
    """
    Deserialize bytes produced by encode_record().

    Raises:
        DecodeError: If the payload is malformed or truncated
    """
    try:
        payload = json.loads(data.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise DecodeError("payload is not valid UTF-8", details={"error": str(e)}) from e
    except ValueError as e:
        raise DecodeError("payload is not valid JSON", details={"error": str(e), "size": len(data)}) from e

    if not isinstance(payload, dict):
        raise DecodeError("payload is not an object", details={"payload_type": type(payload).__name__})

    if "value" not in payload or "expires_at" not in payload:
        raise DecodeError("payload is missing fields", details={"fields": sorted(payload)})

    expires_at = payload["expires_at"]
    if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
        raise DecodeError("expires_at is not a number", details={"expires_at_type": type(expires_at).__name__})

    return CacheRecord(value=payload["value"], expires_at=float(expires_at))
