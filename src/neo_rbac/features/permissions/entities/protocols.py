"""Protocol interfaces for the role/permission data source.

The hierarchy resolver reads roles through this contract; persistence is
the implementation's concern.
"""

from abc import abstractmethod
from typing import List, Optional, Protocol, runtime_checkable

from .role import Role


@runtime_checkable
class RoleDataSource(Protocol):
    """Protocol for read-only role lookups."""

    @abstractmethod
    async def find_role_by_id(self, role_id: str) -> Optional[Role]:
        """Get a role snapshot by id, ``None`` if it does not exist."""
        ...

    @abstractmethod
    async def find_child_roles(self, parent_id: str) -> List[Role]:
        """Get every role that lists ``parent_id`` among its parents."""
        ...
