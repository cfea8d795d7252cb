"""
kvcache - Cache Backends

Exports available cache backend implementations.
"""

from .file import FileCacheBackend
from .memory import MemoryCacheBackend

__all__ = [
    "FileCacheBackend",
    "MemoryCacheBackend",
]
