"""Per-key absolute expiration tracking.

``TTLStrategy`` keeps two structures:

- ``_entries``: the authoritative ``key -> TTLEntry`` map;
- ``_queue``: ``(expires_at, key)`` tuples sorted ascending, maintained
  with ``bisect.insort``.

Rescheduling a key (``set``, ``update_ttl``, sliding ``touch``) appends a
new tuple and leaves the old one in place. ``cleanup`` validates every
popped tuple against the live entry and silently discards stale ones.

Time comes from an injectable ``clock`` (``time.time`` by default) so that
expiry can be simulated in tests.
"""

import asyncio
import bisect
import logging
import math
import time
import weakref
from dataclasses import dataclass
from operator import itemgetter
from typing import Callable, Dict, List, Optional, Tuple

from ....core.exceptions import ConfigurationError
from ..entities.config import TTLStrategyOptions
from ..entities.events import TTLExpirationEvent, TTLRemaining

logger = logging.getLogger(__name__)

ExpirationCallback = Callable[[TTLExpirationEvent], None]

_expires_at = itemgetter(0)


@dataclass
class TTLEntry:
    """Tracking state of a single key."""
    key: str
    expires_at: float
    ttl_seconds: float
    sliding: bool

    @property
    def ttl_ms(self) -> int:
        return int(round(self.ttl_seconds * 1000))


async def _periodic_cleanup(strategy_ref: "weakref.ref[TTLStrategy]", interval: float) -> None:
    """Run ``cleanup()`` every ``interval`` seconds until cancelled.

    Only a weak reference is held between ticks, so an abandoned strategy
    can still be garbage collected.
    """
    while True:
        await asyncio.sleep(interval)
        strategy = strategy_ref()
        if strategy is None:
            return
        try:
            expired = strategy.cleanup()
            if expired:
                logger.debug(f"Background TTL cleanup expired {len(expired)} keys")
        except Exception as e:
            logger.warning(f"Background TTL cleanup failed: {e}")
        finally:
            strategy = None


def _validate_ttl(ttl_seconds: float) -> None:
    if ttl_seconds < 0:
        raise ConfigurationError(
            f"ttl_seconds cannot be negative, got: {ttl_seconds}",
            details={"field": "ttl_seconds", "value": ttl_seconds},
        )


def _cancel_task(task: "asyncio.Task") -> None:
    if not task.done():
        task.cancel()


class TTLStrategy:
    """Tracks absolute expiry per key with optional sliding expiration."""

    def __init__(
        self,
        options: Optional[TTLStrategyOptions] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.options = options or TTLStrategyOptions()
        self._clock = clock
        self._entries: Dict[str, TTLEntry] = {}
        self._queue: List[Tuple[float, str]] = []
        self._callbacks: List[ExpirationCallback] = []
        self._expired_count = 0
        self._cleanup_task: Optional[asyncio.Task] = None
        self._finalizer: Optional[weakref.finalize] = None

        if self.options.cleanup_interval > 0:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("No running event loop; call start() to enable background TTL cleanup")
            else:
                self.start()

    # Tracking

    def set(self, key: str, ttl_seconds: Optional[float] = None, sliding: Optional[bool] = None) -> None:
        """Track ``key`` for ``ttl_seconds``, replacing any previous tracking."""
        ttl = self.options.default_ttl if ttl_seconds is None else ttl_seconds
        _validate_ttl(ttl)
        is_sliding = self.options.default_sliding if sliding is None else sliding

        self.remove(key)
        entry = TTLEntry(key=key, expires_at=self._clock() + ttl, ttl_seconds=ttl, sliding=is_sliding)
        self._entries[key] = entry
        self._enqueue(entry)

    def is_expired(self, key: str) -> bool:
        """True if the key is untracked or its expiry instant has passed."""
        entry = self._entries.get(key)
        if entry is None:
            return True
        return self._clock() > entry.expires_at

    def remaining(self, key: str) -> TTLRemaining:
        entry = self._entries.get(key)
        if entry is None:
            return TTLRemaining.not_found()

        remaining = entry.expires_at - self._clock()
        if remaining <= 0:
            return TTLRemaining.not_found()
        return TTLRemaining.expires(math.ceil(remaining))

    def get_ttl(self, key: str) -> int:
        """Remaining whole seconds (rounded up), or ``-2`` if missing/expired."""
        return self.remaining(key).to_code()

    def get_expires_at(self, key: str) -> Optional[float]:
        entry = self._entries.get(key)
        return entry.expires_at if entry else None

    def update_ttl(self, key: str, ttl_seconds: float) -> bool:
        """Rewrite the expiry of a tracked key, sliding or not."""
        _validate_ttl(ttl_seconds)
        entry = self._entries.get(key)
        if entry is None:
            return False

        entry.ttl_seconds = ttl_seconds
        entry.expires_at = self._clock() + ttl_seconds
        self._enqueue(entry)
        return True

    def touch(self, key: str) -> bool:
        """Renew a sliding entry.

        Non-sliding entries keep their expiry; the return value only signals
        that the key is tracked.
        """
        entry = self._entries.get(key)
        if entry is None:
            return False
        if not entry.sliding:
            return True

        entry.expires_at = self._clock() + entry.ttl_seconds
        self._enqueue(entry)
        return True

    def remove(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def has(self, key: str) -> bool:
        return key in self._entries

    def get_expired_keys(self) -> List[str]:
        now = self._clock()
        return [key for key, entry in self._entries.items() if now > entry.expires_at]

    # Cleanup

    def cleanup(self, max_count: Optional[int] = None) -> List[str]:
        """Expire up to ``max_count`` keys whose expiry is at or before now.

        Returns the expired keys in expiry order.
        """
        now = self._clock()
        limit = self.options.cleanup_batch_size if max_count is None else max_count
        expired: List[TTLEntry] = []
        expired_at: List[float] = []

        index = 0
        while index < len(self._queue) and len(expired) < limit:
            queued_at, key = self._queue[index]
            if queued_at > now:
                break
            index += 1

            entry = self._entries.get(key)
            if entry is None or entry.expires_at != queued_at:
                continue

            del self._entries[key]
            expired.append(entry)
            expired_at.append(queued_at)

        del self._queue[:index]
        self._expired_count += len(expired)

        for entry, at in zip(expired, expired_at):
            self._notify(TTLExpirationEvent(key=entry.key, expired_at=at, ttl_ms=entry.ttl_ms))

        return [entry.key for entry in expired]

    def on_expiration(self, callback: ExpirationCallback) -> Callable[[], None]:
        """Register an expiration callback; returns an unsubscribe function."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def size(self) -> int:
        return len(self._entries)

    @property
    def expirations(self) -> int:
        """Total keys expired by ``cleanup`` over the strategy's lifetime."""
        return self._expired_count

    def clear(self) -> None:
        self._entries.clear()
        self._queue.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    # Background cleanup

    @property
    def is_running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    def start(self) -> None:
        """Start the background cleanup task on the running event loop.

        Raises:
            RuntimeError: If called outside a running event loop.
        """
        if self.is_running or self.options.cleanup_interval <= 0:
            return

        loop = asyncio.get_running_loop()
        self._cleanup_task = loop.create_task(
            _periodic_cleanup(weakref.ref(self), self.options.cleanup_interval)
        )
        self._finalizer = weakref.finalize(self, _cancel_task, self._cleanup_task)
        logger.debug(f"Started TTL cleanup task (interval={self.options.cleanup_interval}s)")

    def stop(self) -> None:
        """Cancel the background cleanup task."""
        if self._finalizer is not None:
            self._finalizer()
            self._finalizer = None
        self._cleanup_task = None

    def _enqueue(self, entry: TTLEntry) -> None:
        bisect.insort(self._queue, (entry.expires_at, entry.key), key=_expires_at)

    def _notify(self, event: TTLExpirationEvent) -> None:
        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Error in TTL expiration callback for key {event.key!r}: {e}")
