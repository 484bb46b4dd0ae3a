"""Neo-RBAC - Embeddable RBAC/ABAC authorization engine.

This library provides wildcard permission matching with ownership scopes and
attribute conditions, role hierarchy resolution with cycle detection, and the
LRU/TTL cache primitives backing hierarchy and decision caching.
"""

# Initialize logging configuration on import
from .config.logging_config import setup_logging
setup_logging()

from .__version__ import __version__

from .config import RBACSettings, get_settings

from .core.exceptions import (
    # Base Exception
    RBACError,
    RBACErrorCode,

    # Domain Exceptions
    ConfigurationError,
    AuthorizationError,
    PermissionDeniedError,
    RoleNotFoundError,
    CircularHierarchyError,

    # Infrastructure Exceptions
    CacheError,
    CacheErrorCode,
)

from .features.permissions import (
    HierarchyOptions,
    HierarchyResolution,
    MatchResult,
    ParsedPermission,
    Permission,
    PermissionCheckResult,
    PermissionMatchContext,
    PermissionMatcher,
    PermissionOptions,
    Role,
    RoleDataSource,
    RoleHierarchyResolver,
    RoleHierarchyTree,
    WildcardParser,
    permission_matcher,
    wildcard_parser,
)

from .features.cache import (
    CacheKeyGenerator,
    LRUStrategy,
    MemoryCacheAdapter,
    MemoryCacheOptions,
    RBACCache,
    TTLRemaining,
    TTLStrategy,
    TTLStrategyOptions,
)

__all__ = [
    "__version__",
    "setup_logging",

    # Configuration
    "RBACSettings",
    "get_settings",

    # Exceptions
    "RBACError",
    "RBACErrorCode",
    "ConfigurationError",
    "AuthorizationError",
    "PermissionDeniedError",
    "RoleNotFoundError",
    "CircularHierarchyError",
    "CacheError",
    "CacheErrorCode",

    # Permissions
    "HierarchyOptions",
    "HierarchyResolution",
    "MatchResult",
    "ParsedPermission",
    "Permission",
    "PermissionCheckResult",
    "PermissionMatchContext",
    "PermissionMatcher",
    "PermissionOptions",
    "Role",
    "RoleDataSource",
    "RoleHierarchyResolver",
    "RoleHierarchyTree",
    "WildcardParser",
    "permission_matcher",
    "wildcard_parser",

    # Cache
    "CacheKeyGenerator",
    "LRUStrategy",
    "MemoryCacheAdapter",
    "MemoryCacheOptions",
    "RBACCache",
    "TTLRemaining",
    "TTLStrategy",
    "TTLStrategyOptions",
]
