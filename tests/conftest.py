"""
kvcache - Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

# Set test environment
os.environ["LOG_LEVEL"] = "DEBUG"


class FakeClock:
    """Stand-in for the time module used by cache records."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def time(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Freeze the clock used for record expiry; advance it explicitly."""
    from kvcache.cache import serialization

    fake = FakeClock()
    monkeypatch.setattr(serialization, "time", fake)
    return fake


@pytest.fixture
def temp_cache_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for cache testing."""
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir()
    return cache_dir


@pytest.fixture
def mock_env_file(monkeypatch: pytest.MonkeyPatch, temp_cache_dir: Path) -> None:
    """Set environment variables for the file cache backend."""
    monkeypatch.setenv("CACHE_BACKEND", "file")
    monkeypatch.setenv("CACHE_DIR", str(temp_cache_dir))
    monkeypatch.setenv("CACHE_EXT", "cache")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "3600")
    monkeypatch.delenv("CACHE_NAMESPACE", raising=False)


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for the memory cache backend."""
    monkeypatch.setenv("CACHE_BACKEND", "memory")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "3600")
    monkeypatch.setenv("CACHE_NAMESPACE", "test")


@pytest.fixture
def sample_cache_data() -> dict[str, Any]:
    """Sample data for cache testing."""
    return {
        "simple_string": "hello",
        "simple_int": 42,
        "simple_float": 3.14,
        "simple_bool": True,
        "simple_none": None,
        "unicode": "caché ✓",
        "complex_dict": {
            "nested": {
                "key": "value",
                "number": 123,
                "list": [1, 2, 3],
            }
        },
        "complex_list": [
            {"id": 1, "name": "Alice"},
            {"id": 2, "name": "Bob"},
        ],
    }


@pytest.fixture(autouse=True)
def reset_global_state(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Reset config singleton and cache registry around each test."""
    from kvcache.cache.factory import reset_cache_factory
    from kvcache.config import loader

    monkeypatch.setattr(loader, "_config_instance", None)
    yield
    reset_cache_factory()
