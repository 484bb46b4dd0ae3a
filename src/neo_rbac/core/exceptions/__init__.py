"""Exception hierarchy for neo-rbac."""

from .base import (
    RBACError,
    RBACErrorCode,
)
from .domain import (
    AuthorizationError,
    CircularHierarchyError,
    ConfigurationError,
    PermissionDeniedError,
    RoleNotFoundError,
)
from .infrastructure import (
    CacheError,
    CacheErrorCode,
    CacheKeyError,
    CacheTimeoutError,
)

__all__ = [
    # Base
    "RBACError",
    "RBACErrorCode",

    # Domain
    "AuthorizationError",
    "CircularHierarchyError",
    "ConfigurationError",
    "PermissionDeniedError",
    "RoleNotFoundError",

    # Infrastructure
    "CacheError",
    "CacheErrorCode",
    "CacheKeyError",
    "CacheTimeoutError",
]
