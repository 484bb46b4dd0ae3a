"""Permission feature entities."""

from .config import HierarchyOptions, PermissionOptions
from .permission import (
    MatchResult,
    ParsedPermission,
    Permission,
    PermissionCheckResult,
    PermissionMatchContext,
    ValidationResult,
    WildcardMatchResult,
)
from .protocols import RoleDataSource
from .role import HierarchyResolution, Role, RoleHierarchyTree

__all__ = [
    # Options
    "HierarchyOptions",
    "PermissionOptions",

    # Permissions
    "MatchResult",
    "ParsedPermission",
    "Permission",
    "PermissionCheckResult",
    "PermissionMatchContext",
    "ValidationResult",
    "WildcardMatchResult",

    # Roles
    "HierarchyResolution",
    "Role",
    "RoleHierarchyTree",

    # Protocols
    "RoleDataSource",
]
