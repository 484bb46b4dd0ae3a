"""Least-recently-used eviction strategy.

``LRUStrategy`` is a fixed-capacity key/value store backed by an
``OrderedDict`` (a hash map over a doubly linked list). The most recently
used key sits at the end of the dict and the least recently used key at
the front, so every operation is O(1):

- ``get``/``touch``/``set`` of an existing key call ``move_to_end``;
- eviction pops the front with ``popitem(last=False)``;
- traversal walks ``reversed()`` to yield MRU -> LRU order.

The eviction callback runs synchronously, before the evicted entry is
removed. Mutating the strategy from inside the callback raises
``CacheError`` with ``REENTRANT_MUTATION``.
"""

import logging
from collections import OrderedDict
from typing import Callable, Generic, Iterator, List, Optional, Tuple, TypeVar

from ..entities.events import LRUEvictionEvent
from ....core.exceptions import CacheError, CacheErrorCode, ConfigurationError

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")

EvictionCallback = Callable[[LRUEvictionEvent], None]


class LRUStrategy(Generic[K, V]):
    """Fixed-capacity store with least-recently-used eviction."""

    def __init__(self, capacity: int, on_evict: Optional[EvictionCallback] = None):
        if not isinstance(capacity, int) or capacity < 1:
            raise ConfigurationError(
                f"LRU capacity must be at least 1, got: {capacity}",
                details={"field": "capacity", "value": capacity},
            )

        self._capacity = capacity
        self._cache: "OrderedDict[K, V]" = OrderedDict()
        self._on_evict = on_evict
        self._eviction_count = 0
        self._in_callback = False

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        """Get a value and mark it most recently used."""
        if key not in self._cache:
            return default
        self._guard("get")
        self._cache.move_to_end(key)
        return self._cache[key]

    def peek(self, key: K, default: Optional[V] = None) -> Optional[V]:
        """Get a value without changing its recency."""
        return self._cache.get(key, default)

    def has(self, key: K) -> bool:
        return key in self._cache

    def set(self, key: K, value: V) -> None:
        """Insert or update a value, evicting the LRU entry when over capacity."""
        self._guard("set")

        if key in self._cache:
            self._cache[key] = value
            self._cache.move_to_end(key)
            return

        self._cache[key] = value
        if len(self._cache) > self._capacity:
            self._evict_lru()

    def delete(self, key: K) -> bool:
        self._guard("delete")
        if key not in self._cache:
            return False
        del self._cache[key]
        return True

    def touch(self, key: K) -> bool:
        """Mark a key most recently used; False if it is absent."""
        self._guard("touch")
        if key not in self._cache:
            return False
        self._cache.move_to_end(key)
        return True

    def clear(self) -> None:
        """Drop every entry without firing eviction callbacks."""
        self._guard("clear")
        self._cache.clear()

    def size(self) -> int:
        return len(self._cache)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def evictions(self) -> int:
        """Total capacity evictions over the lifetime of the strategy."""
        return self._eviction_count

    def keys(self) -> List[K]:
        """Keys in MRU -> LRU order."""
        return list(reversed(self._cache))

    def entries(self) -> List[Tuple[K, V]]:
        """``(key, value)`` pairs in MRU -> LRU order."""
        return [(key, self._cache[key]) for key in reversed(self._cache)]

    def for_each(self, callback: Callable[[V, K], None]) -> None:
        for key, value in self.entries():
            callback(value, key)

    def get_lru_key(self) -> Optional[K]:
        return next(iter(self._cache), None)

    def get_mru_key(self) -> Optional[K]:
        return next(reversed(self._cache), None)

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: object) -> bool:
        return key in self._cache

    def __iter__(self) -> Iterator[K]:
        return iter(self.keys())

    def _evict_lru(self) -> None:
        lru_key = next(iter(self._cache))
        event = LRUEvictionEvent(key=lru_key, value=self._cache[lru_key], reason="capacity")

        try:
            if self._on_evict is not None:
                self._in_callback = True
                self._on_evict(event)
        finally:
            self._in_callback = False
            self._cache.pop(lru_key, None)
            self._eviction_count += 1
            logger.debug(f"LRU evicted key {lru_key!r} (evictions={self._eviction_count})")

    def _guard(self, operation: str) -> None:
        if self._in_callback:
            raise CacheError(
                f"Cannot call {operation}() on LRUStrategy from inside its eviction callback",
                CacheErrorCode.REENTRANT_MUTATION,
                details={"operation": operation},
            )
