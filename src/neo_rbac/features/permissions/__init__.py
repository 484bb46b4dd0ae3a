"""Permissions feature for neo-rbac.

Wildcard permission parsing, scope and condition aware matching, and role
hierarchy resolution over a pluggable role data source.
"""

from .entities import (
    HierarchyOptions,
    HierarchyResolution,
    MatchResult,
    ParsedPermission,
    Permission,
    PermissionCheckResult,
    PermissionMatchContext,
    PermissionOptions,
    Role,
    RoleDataSource,
    RoleHierarchyTree,
    ValidationResult,
    WildcardMatchResult,
)
from .services import (
    PermissionMatcher,
    RoleHierarchyResolver,
    WildcardParser,
    permission_matcher,
    wildcard_parser,
)

__all__ = [
    # Entities
    "HierarchyOptions",
    "HierarchyResolution",
    "MatchResult",
    "ParsedPermission",
    "Permission",
    "PermissionCheckResult",
    "PermissionMatchContext",
    "PermissionOptions",
    "Role",
    "RoleDataSource",
    "RoleHierarchyTree",
    "ValidationResult",
    "WildcardMatchResult",

    # Services
    "PermissionMatcher",
    "RoleHierarchyResolver",
    "WildcardParser",
    "permission_matcher",
    "wildcard_parser",
]
