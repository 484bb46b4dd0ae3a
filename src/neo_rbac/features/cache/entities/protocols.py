"""Cache protocols for neo-rbac.

This module defines the contract the hierarchy resolver expects from an
optional cache collaborator. Any backend (in-process or distributed) that
implements these coroutines can be plugged in.
"""

from abc import abstractmethod
from typing import Any, Iterable, Optional, Protocol, runtime_checkable


@runtime_checkable
class RBACCache(Protocol):
    """Protocol for the cache collaborator used by RoleHierarchyResolver."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Get a value, ``None`` on miss or expiry."""
        ...

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> None:
        """Store a value with optional TTL (seconds) and tags."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key and return whether it existed."""
        ...

    @abstractmethod
    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob and return the count."""
        ...
