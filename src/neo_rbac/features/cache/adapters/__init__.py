"""Cache adapters."""

from .memory_adapter import MemoryCacheAdapter, MemoryCacheEntry

__all__ = [
    "MemoryCacheAdapter",
    "MemoryCacheEntry",
]
