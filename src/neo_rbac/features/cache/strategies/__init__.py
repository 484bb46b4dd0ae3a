"""In-process eviction strategies."""

from .lru_strategy import LRUStrategy
from .ttl_strategy import TTLEntry, TTLStrategy

__all__ = [
    "LRUStrategy",
    "TTLEntry",
    "TTLStrategy",
]
