"""Permission feature services."""

from .permission_matcher import PermissionMatcher, permission_matcher
from .role_hierarchy import RoleHierarchyResolver
from .wildcard_parser import WildcardParser, wildcard_parser

__all__ = [
    "PermissionMatcher",
    "RoleHierarchyResolver",
    "WildcardParser",
    "permission_matcher",
    "wildcard_parser",
]
