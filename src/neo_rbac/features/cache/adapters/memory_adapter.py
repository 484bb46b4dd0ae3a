"""Memory cache adapter for neo-rbac.

In-process implementation of the cache collaborator used by the role
hierarchy resolver. Capacity is bounded by an ``LRUStrategy`` and expiry is
tracked by a ``TTLStrategy``; a tag index allows group invalidation.
"""

import asyncio
import json
import logging
import re
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Set,
)

from ..entities.config import MemoryCacheOptions, TTLStrategyOptions
from ..entities.events import LRUEvictionEvent, TTLExpirationEvent, TTLRemaining
from ..strategies.lru_strategy import LRUStrategy
from ..strategies.ttl_strategy import TTLStrategy
from ....core.exceptions import (
    CacheError,
    CacheErrorCode,
    CacheKeyError,
    CacheTimeoutError,
    ConfigurationError,
)

logger = logging.getLogger(__name__)

LOCK_PREFIX = "__lock__:"


@dataclass
class MemoryCacheEntry:
    """Memory cache entry with metadata."""
    value: Any
    created_at: float
    accessed_at: float
    expires_at: Optional[float] = None
    tags: List[str] = field(default_factory=list)
    access_count: int = 0
    estimated_size: int = 0

    def access(self, now: float) -> None:
        """Record access to this entry."""
        self.access_count += 1
        self.accessed_at = now


@lru_cache(maxsize=256)
def pattern_to_regex(pattern: str) -> "re.Pattern[str]":
    """Compile a key glob: ``*`` one segment, ``**`` anything, ``?`` one char."""
    parts = []
    index = 0
    while index < len(pattern):
        if pattern.startswith("**", index):
            parts.append(".*")
            index += 2
            continue
        char = pattern[index]
        if char == "*":
            parts.append("[^:]*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
        index += 1
    return re.compile(f"^{''.join(parts)}$")


def estimate_size(value: Any) -> int:
    """Rough size estimate of a value in bytes (2 bytes per character)."""
    try:
        return len(json.dumps(value, default=str)) * 2
    except (TypeError, ValueError):
        return 0


class MemoryCacheAdapter:
    """Memory cache adapter with LRU eviction, TTL expiry and tags.

    ``ttl=0`` stores an entry without expiry. Every operation except
    ``is_ready``/``health_check``/``shutdown`` requires ``initialize()``.
    """

    name = "memory"

    def __init__(
        self,
        options: Optional[MemoryCacheOptions] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.options = options or MemoryCacheOptions()
        self._clock = clock
        self._lru: LRUStrategy[str, MemoryCacheEntry] = LRUStrategy(
            self.options.max_size, on_evict=self._handle_eviction
        )
        self._ttl = TTLStrategy(
            TTLStrategyOptions(
                default_ttl=self.options.default_ttl or TTLStrategyOptions.default_ttl,
                cleanup_interval=self.options.cleanup_interval,
                cleanup_batch_size=self.options.cleanup_batch_size,
            ),
            clock=clock,
        )
        self._ttl.on_expiration(self._handle_expiration)
        self._tag_index: Dict[str, Set[str]] = {}
        self._initialized = False
        self._started_at: Optional[datetime] = None
        self._metrics = self._empty_metrics()

    @staticmethod
    def _empty_metrics() -> Dict[str, float]:
        return {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
            "expirations": 0,
            "get_operations": 0,
            "set_operations": 0,
            "delete_operations": 0,
            "get_total_latency_ms": 0.0,
            "set_total_latency_ms": 0.0,
        }

    # Lifecycle

    async def initialize(self) -> None:
        """Mark the cache ready and start background expiry on this loop."""
        self._started_at = datetime.now(timezone.utc)
        self._initialized = True
        self._ttl.start()
        logger.info(f"Memory cache initialized with max_size={self.options.max_size}")

    def is_ready(self) -> bool:
        return self._initialized

    async def health_check(self) -> bool:
        return self._initialized

    async def get_health_status(self) -> Dict[str, Any]:
        return {
            "healthy": self._initialized,
            "adapter": self.name,
            "connected": True,
            "size": self._lru.size(),
            "checked_at": datetime.now(timezone.utc).isoformat(),
        }

    async def shutdown(self) -> None:
        """Stop background expiry and drop every entry."""
        self._ttl.stop()
        self._lru.clear()
        self._ttl.clear()
        self._tag_index.clear()
        self._initialized = False
        logger.info("Memory cache shut down")

    # Reads

    async def get(self, key: str, refresh_ttl: bool = False) -> Optional[Any]:
        """Get a value; ``refresh_ttl`` restarts the entry's TTL from now."""
        self._ensure_initialized()
        start = time.perf_counter()
        self._metrics["get_operations"] += 1

        try:
            if self._is_expired(key):
                self._purge(key)
                self._metrics["misses"] += 1
                logger.debug(f"Cache miss (expired): {key}")
                return None

            entry = self._lru.get(key)
            if entry is None:
                self._metrics["misses"] += 1
                logger.debug(f"Cache miss: {key}")
                return None

            entry.access(self._clock())
            if refresh_ttl and self._ttl.touch(key):
                entry.expires_at = self._ttl.get_expires_at(key)

            self._metrics["hits"] += 1
            logger.debug(f"Cache hit: {key}")
            return entry.value
        finally:
            self._metrics["get_total_latency_ms"] += (time.perf_counter() - start) * 1000

    async def exists(self, key: str) -> bool:
        self._ensure_initialized()
        return self._lru.has(key) and not self._is_expired(key)

    async def get_many(self, keys: Iterable[str]) -> Dict[str, Optional[Any]]:
        self._ensure_initialized()
        return {key: await self.get(key) for key in keys}

    async def keys(self, pattern: str = "**") -> List[str]:
        """Live keys matching a glob, in MRU -> LRU order."""
        self._ensure_initialized()
        regex = pattern_to_regex(pattern)
        return [key for key in self._lru.keys() if regex.match(key) and not self._is_expired(key)]

    async def get_ttl(self, key: str) -> int:
        """Remaining seconds, ``-1`` for no expiry, ``-2`` if missing."""
        self._ensure_initialized()
        return self._remaining(key).to_code()

    # Writes

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> None:
        """Store a value. ``ttl=None`` uses the default, ``ttl=0`` never expires."""
        self._ensure_initialized()
        self._validate_key(key)
        self._validate_ttl(ttl)
        start = time.perf_counter()
        self._metrics["set_operations"] += 1

        try:
            now = self._clock()
            effective_ttl = self.options.default_ttl if ttl is None else ttl
            entry_tags = list(dict.fromkeys(tags or []))

            existing = self._lru.peek(key)
            if existing is not None:
                self._remove_from_tag_index(key, existing.tags)

            entry = MemoryCacheEntry(
                value=value,
                created_at=now,
                accessed_at=now,
                expires_at=now + effective_ttl if effective_ttl > 0 else None,
                tags=entry_tags,
                estimated_size=estimate_size(value) if self.options.track_memory else 0,
            )
            self._lru.set(key, entry)

            if effective_ttl > 0:
                # Tracked as sliding; only get(refresh_ttl=True) renews it
                self._ttl.set(key, effective_ttl, sliding=True)
            else:
                self._ttl.remove(key)

            self._add_to_tag_index(key, entry_tags)
        finally:
            self._metrics["set_total_latency_ms"] += (time.perf_counter() - start) * 1000

    async def set_many(
        self,
        entries: Mapping[str, Any],
        ttl: Optional[int] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> None:
        self._ensure_initialized()
        tag_list = list(tags or [])
        for key, value in entries.items():
            await self.set(key, value, ttl=ttl, tags=tag_list)

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Any:
        """Return the cached value or compute, store and return it."""
        self._ensure_initialized()
        cached = await self.get(key)
        if cached is not None:
            return cached

        value = await factory()
        await self.set(key, value, ttl=ttl, tags=tags)
        return value

    async def update_ttl(self, key: str, ttl: int) -> bool:
        """Rewrite the expiry of an existing key; ``ttl=0`` removes expiry."""
        self._ensure_initialized()
        self._validate_ttl(ttl)
        entry = self._lru.peek(key)
        if entry is None or self._is_expired(key):
            return False

        if ttl > 0:
            if not self._ttl.update_ttl(key, ttl):
                self._ttl.set(key, ttl, sliding=True)
            entry.expires_at = self._ttl.get_expires_at(key)
        else:
            self._ttl.remove(key)
            entry.expires_at = None
        return True

    async def touch(self, key: str) -> bool:
        """Mark a key recently used without reading it."""
        self._ensure_initialized()
        if self._is_expired(key):
            return False

        entry = self._lru.get(key)
        if entry is None:
            return False
        entry.access(self._clock())
        return True

    # Deletes

    async def delete(self, key: str) -> bool:
        self._ensure_initialized()
        self._metrics["delete_operations"] += 1
        return self._purge(key)

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob and return the count."""
        self._ensure_initialized()
        self._metrics["delete_operations"] += 1
        regex = pattern_to_regex(pattern)
        matched = [key for key in self._lru.keys() if regex.match(key)]
        for key in matched:
            self._purge(key)
        logger.debug(f"Deleted {len(matched)} keys matching {pattern!r}")
        return len(matched)

    async def delete_by_tag(self, tag: str) -> int:
        return await self.delete_by_tags([tag])

    async def delete_by_tags(self, tags: Iterable[str]) -> int:
        self._ensure_initialized()
        self._metrics["delete_operations"] += 1
        keys: Set[str] = set()
        for tag in tags:
            keys.update(self._tag_index.get(tag, ()))
        for key in keys:
            self._purge(key)
        return len(keys)

    async def clear(self) -> int:
        """Drop every entry and return how many there were."""
        self._ensure_initialized()
        count = self._lru.size()
        self._lru.clear()
        self._ttl.clear()
        self._tag_index.clear()
        return count

    # Locking

    async def lock(self, key: str, ttl: int = 30) -> Optional[Callable[[], Awaitable[None]]]:
        """Try to take an advisory lock.

        Returns an async release function, or ``None`` if the lock is held.
        """
        lock_key = f"{LOCK_PREFIX}{key}"
        if await self.get(lock_key):
            return None

        await self.set(lock_key, True, ttl=ttl)

        async def release() -> None:
            await self.delete(lock_key)

        return release

    @asynccontextmanager
    async def locked(
        self,
        key: str,
        ttl: int = 30,
        timeout: float = 5.0,
        retry_interval: float = 0.05,
    ) -> AsyncIterator[None]:
        """Hold the advisory lock for ``key`` for the duration of the block.

        Raises:
            CacheTimeoutError: If the lock is not acquired within ``timeout``.
        """
        deadline = time.monotonic() + timeout
        release = await self.lock(key, ttl)
        while release is None:
            if time.monotonic() >= deadline:
                raise CacheTimeoutError(
                    f"Timed out acquiring lock for {key!r}",
                    details={"key": key, "timeout": timeout},
                )
            await asyncio.sleep(retry_interval)
            release = await self.lock(key, ttl)

        try:
            yield
        finally:
            await release()

    # Statistics

    async def get_stats(self) -> Dict[str, Any]:
        self._ensure_initialized()
        hits, misses = self._metrics["hits"], self._metrics["misses"]
        total = hits + misses
        return {
            "hits": hits,
            "misses": misses,
            "hit_rate": hits / total if total else 0.0,
            "size": self._lru.size(),
            "memory_usage": self._memory_usage() if self.options.track_memory else None,
        }

    async def reset_stats(self) -> None:
        self._metrics = self._empty_metrics()

    async def get_metrics(self) -> Dict[str, Any]:
        self._ensure_initialized()
        metrics = self._metrics
        total = metrics["hits"] + metrics["misses"]
        now = datetime.now(timezone.utc)
        return {
            "hits": metrics["hits"],
            "misses": metrics["misses"],
            "hit_rate": (metrics["hits"] / total) * 100 if total else 0.0,
            "size": self._lru.size(),
            "max_size": self.options.max_size,
            "memory_usage": self._memory_usage() if self.options.track_memory else None,
            "evictions": metrics["evictions"],
            "expirations": metrics["expirations"],
            "get_operations": metrics["get_operations"],
            "set_operations": metrics["set_operations"],
            "delete_operations": metrics["delete_operations"],
            "avg_get_latency_ms": (
                metrics["get_total_latency_ms"] / metrics["get_operations"]
                if metrics["get_operations"] else 0.0
            ),
            "avg_set_latency_ms": (
                metrics["set_total_latency_ms"] / metrics["set_operations"]
                if metrics["set_operations"] else 0.0
            ),
            "started_at": self._started_at or now,
            "uptime_seconds": (now - self._started_at).total_seconds() if self._started_at else 0.0,
        }

    async def cleanup_expired(self) -> List[str]:
        """Run one TTL cleanup batch immediately."""
        self._ensure_initialized()
        return self._ttl.cleanup()

    # Internals

    def _is_expired(self, key: str) -> bool:
        # Keys without TTL tracking never expire
        return self._ttl.has(key) and self._ttl.is_expired(key)

    def _remaining(self, key: str) -> TTLRemaining:
        if not self._lru.has(key):
            return TTLRemaining.not_found()
        if not self._ttl.has(key):
            return TTLRemaining.no_expiry()
        return self._ttl.remaining(key)

    def _purge(self, key: str) -> bool:
        entry = self._lru.peek(key)
        if entry is None:
            return False
        self._remove_from_tag_index(key, entry.tags)
        self._ttl.remove(key)
        return self._lru.delete(key)

    def _handle_eviction(self, event: LRUEvictionEvent) -> None:
        self._metrics["evictions"] += 1
        self._remove_from_tag_index(event.key, event.value.tags)
        self._ttl.remove(event.key)
        logger.debug(f"Evicted {event.key} ({event.reason})")

    def _handle_expiration(self, event: TTLExpirationEvent) -> None:
        entry = self._lru.peek(event.key)
        if entry is None:
            return
        self._metrics["expirations"] += 1
        self._remove_from_tag_index(event.key, entry.tags)
        self._lru.delete(event.key)

    def _add_to_tag_index(self, key: str, tags: Iterable[str]) -> None:
        for tag in tags:
            self._tag_index.setdefault(tag, set()).add(key)

    def _remove_from_tag_index(self, key: str, tags: Iterable[str]) -> None:
        for tag in tags:
            keys = self._tag_index.get(tag)
            if keys is None:
                continue
            keys.discard(key)
            if not keys:
                del self._tag_index[tag]

    def _memory_usage(self) -> int:
        return sum(entry.estimated_size for _, entry in self._lru.entries())

    def _validate_key(self, key: str) -> None:
        if not isinstance(key, str) or not key:
            raise CacheKeyError(f"Cache key must be a non-empty string, got: {key!r}")

    def _validate_ttl(self, ttl: Optional[int]) -> None:
        if ttl is not None and ttl < 0:
            raise ConfigurationError(
                f"ttl cannot be negative, got: {ttl}",
                details={"field": "ttl", "value": ttl},
            )

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise CacheError(
                "Memory cache adapter is not initialized. Call initialize() first.",
                CacheErrorCode.NOT_INITIALIZED,
                details={"adapter": self.name},
            )
