"""Constants and enums for neo-rbac.

This module defines the tokens, cache key fragments and default values
used throughout the neo-rbac library.
"""

from enum import Enum
from typing import Final


# Permission Wire Format
class PermissionTokens:
    """Tokens of the ``<resource>:<action>[:<scope>]`` permission format."""

    SEPARATOR: Final[str] = ":"
    WILDCARD: Final[str] = "*"
    GLOBSTAR: Final[str] = "**"
    MAX_PARTS: Final[int] = 3
    PART_PATTERN: Final[str] = r"[a-zA-Z0-9_-]+"


class ScopeNames:
    """Scope values with ownership semantics."""

    OWN: Final[str] = "own"
    ALL: Final[str] = "all"


class MatchScore:
    """Weights used when ranking competing permission matches."""

    RESOURCE: Final[int] = 10
    ACTION: Final[int] = 10
    SCOPE: Final[int] = 5
    CONDITIONS: Final[int] = 3


class MatchReason(str, Enum):
    """Diagnostic reasons attached to match results."""

    SUPERADMIN = "Matched by superadmin permission (**)"
    FULL_WILDCARD = "Matched by full wildcard (*:*)"
    RESOURCE_WILDCARD = "Matched by resource wildcard"
    ACTION_WILDCARD = "Matched by action wildcard"
    EXACT = "Exact match"
    NOT_MATCHED = "Permission does not match required"
    NO_MATCH = "No matching permission found"


# Cache Configuration
class CacheKeys:
    """Cache key fragments for RBAC data."""

    PREFIX: Final[str] = "rbac"
    SEPARATOR: Final[str] = ":"
    ROLE: Final[str] = "role"
    PERMISSION: Final[str] = "permission"
    USER_PERMISSIONS: Final[str] = "user-permissions"
    USER_ROLES: Final[str] = "user-roles"
    ROLE_HIERARCHY: Final[str] = "role-hierarchy"
    ROLE_PERMISSIONS: Final[str] = "role-permissions"


class CacheTags:
    """Tags attached to cached hierarchy entries."""

    ROLE: Final[str] = "role"
    ROLE_PREFIX: Final[str] = "role:"


class CacheTTL:
    """Cache TTL values in seconds."""

    DEFAULT: Final[int] = 300                # 5 minutes
    ROLE_HIERARCHY: Final[int] = 3600        # 1 hour
    ROLE_PERMISSIONS: Final[int] = 1800      # 30 minutes


class CacheDefaults:
    """Defaults for the in-process cache primitives."""

    MAX_SIZE: Final[int] = 1000
    CLEANUP_INTERVAL_SECONDS: Final[float] = 60.0
    CLEANUP_BATCH_SIZE: Final[int] = 100


class HierarchyDefaults:
    """Defaults for role hierarchy resolution."""

    MAX_DEPTH: Final[int] = 10


# Legacy TTL codes returned by get_ttl()
class TTLCodes:
    """Sentinel values of the wire-compatible TTL API."""

    NO_EXPIRY: Final[int] = -1
    NOT_FOUND: Final[int] = -2
