"""Cache feature for neo-rbac.

LRU and TTL eviction primitives plus an in-process adapter implementing
the cache collaborator contract used by the role hierarchy resolver.
"""

from .adapters import MemoryCacheAdapter, MemoryCacheEntry
from .entities import (
    CacheKeyGenerator,
    LRUEvictionEvent,
    MemoryCacheOptions,
    RBACCache,
    TTLExpirationEvent,
    TTLRemaining,
    TTLStatus,
    TTLStrategyOptions,
)
from .strategies import LRUStrategy, TTLEntry, TTLStrategy

__all__ = [
    # Adapters
    "MemoryCacheAdapter",
    "MemoryCacheEntry",

    # Entities
    "CacheKeyGenerator",
    "LRUEvictionEvent",
    "MemoryCacheOptions",
    "RBACCache",
    "TTLExpirationEvent",
    "TTLRemaining",
    "TTLStatus",
    "TTLStrategyOptions",

    # Strategies
    "LRUStrategy",
    "TTLEntry",
    "TTLStrategy",
]
