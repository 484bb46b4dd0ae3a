"""Role domain entities for neo-rbac permissions feature.

A role's ``parent_roles`` are directed child -> parent edges ("inherits
from"). Roles are read-only snapshots supplied by a RoleDataSource.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

from .permission import Permission


@dataclass
class Role:
    """Domain entity representing a role with permissions and parent edges."""

    id: str
    name: str
    permissions: List[Permission] = field(default_factory=list)
    parent_roles: List[str] = field(default_factory=list)
    is_active: bool = True
    display_name: Optional[str] = None
    description: Optional[str] = None
    is_system: bool = False
    organization_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate role entity and initialize defaults."""
        if not self.id:
            raise ValueError("Role id cannot be empty")
        if self.display_name is None:
            self.display_name = self.name

    def has_parent(self, role_id: str) -> bool:
        return role_id in self.parent_roles

    def permission_ids(self) -> List[str]:
        return [permission.id for permission in self.permissions]

    def permission_codes(self) -> List[str]:
        return [permission.code for permission in self.permissions]

    def __str__(self) -> str:
        return f"Role({self.id})"


@dataclass
class RoleHierarchyTree:
    """Tree of a role and its descendants, built along child edges."""

    role: Role
    children: List["RoleHierarchyTree"] = field(default_factory=list)
    depth: int = 0

    def walk(self) -> Iterator["RoleHierarchyTree"]:
        """Pre-order traversal of every node."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def flatten(self) -> List[Role]:
        """Roles in pre-order."""
        return [node.role for node in self.walk()]

    def max_depth(self) -> int:
        return max(node.depth for node in self.walk())

    def find(self, role_id: str) -> Optional["RoleHierarchyTree"]:
        for node in self.walk():
            if node.role.id == role_id:
                return node
        return None

    def path_to(self, role_id: str) -> Optional[List[str]]:
        """Role ids from this root down to ``role_id``, or None if absent."""
        if self.role.id == role_id:
            return [role_id]
        for child in self.children:
            path = child.path_to(role_id)
            if path is not None:
                return [self.role.id, *path]
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role_id": self.role.id,
            "name": self.role.name,
            "depth": self.depth,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class HierarchyResolution:
    """Full resolution of a role: ancestors, effective permissions and depth."""

    role: Role
    parent_roles: List[Role]
    permissions: List[Permission]
    depth: int
    ancestor_chain: List[str]
    from_cache: bool = False
