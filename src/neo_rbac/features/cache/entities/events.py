"""Cache event payloads and the tagged TTL lookup result."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from ....config.constants import TTLCodes

K = TypeVar("K")
V = TypeVar("V")


@dataclass(frozen=True)
class LRUEvictionEvent(Generic[K, V]):
    """Passed to the LRU eviction callback before the entry is removed."""
    key: K
    value: V
    reason: str = "capacity"


@dataclass(frozen=True)
class TTLExpirationEvent(Generic[K]):
    """Passed to TTL expiration callbacks during cleanup."""
    key: K
    expired_at: float
    ttl_ms: int


class TTLStatus(str, Enum):
    """State of a tracked key."""
    EXPIRES = "expires"
    NO_EXPIRY = "no_expiry"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class TTLRemaining:
    """Remaining lifetime of a key.

    ``seconds`` is only set for ``EXPIRES``. ``to_code()`` translates to the
    Redis-style integers (``n``, ``-1``, ``-2``) used by ``get_ttl``.
    """

    status: TTLStatus
    seconds: Optional[int] = None

    @classmethod
    def expires(cls, seconds: int) -> "TTLRemaining":
        return cls(TTLStatus.EXPIRES, seconds)

    @classmethod
    def no_expiry(cls) -> "TTLRemaining":
        return cls(TTLStatus.NO_EXPIRY)

    @classmethod
    def not_found(cls) -> "TTLRemaining":
        return cls(TTLStatus.NOT_FOUND)

    @property
    def exists(self) -> bool:
        return self.status is not TTLStatus.NOT_FOUND

    def to_code(self) -> int:
        if self.status is TTLStatus.EXPIRES:
            return self.seconds
        if self.status is TTLStatus.NO_EXPIRY:
            return TTLCodes.NO_EXPIRY
        return TTLCodes.NOT_FOUND
