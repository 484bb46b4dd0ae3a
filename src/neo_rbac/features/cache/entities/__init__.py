"""Cache entities: options, events, key generation and protocols."""

from .config import MemoryCacheOptions, TTLStrategyOptions
from .events import LRUEvictionEvent, TTLExpirationEvent, TTLRemaining, TTLStatus
from .keys import CacheKeyGenerator
from .protocols import RBACCache

__all__ = [
    "MemoryCacheOptions",
    "TTLStrategyOptions",
    "LRUEvictionEvent",
    "TTLExpirationEvent",
    "TTLRemaining",
    "TTLStatus",
    "CacheKeyGenerator",
    "RBACCache",
]
