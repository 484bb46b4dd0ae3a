"""Infrastructure-specific exceptions for neo-rbac.

This module defines exceptions raised by the cache layer: the LRU/TTL
strategies and the in-process cache adapter.
"""

from enum import Enum
from typing import Any, Dict, Optional

from .base import RBACError, RBACErrorCode


class CacheErrorCode(str, Enum):
    """Reasons a cache operation can fail."""
    NOT_INITIALIZED = "NOT_INITIALIZED"
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_KEY = "INVALID_KEY"
    REENTRANT_MUTATION = "REENTRANT_MUTATION"
    LOCK_TIMEOUT = "LOCK_TIMEOUT"
    OPERATION_FAILED = "OPERATION_FAILED"


# Cache Errors
class CacheError(RBACError):
    """Base class for cache-related errors."""

    default_code = RBACErrorCode.CACHE_ERROR

    def __init__(
        self,
        message: str,
        cache_code: CacheErrorCode = CacheErrorCode.OPERATION_FAILED,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details={**(details or {}), "cache_code": cache_code.value})
        self.cache_code = cache_code


class CacheKeyError(CacheError):
    """Raised when cache key is invalid."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, CacheErrorCode.INVALID_KEY, details)


class CacheTimeoutError(CacheError):
    """Raised when a cache lock cannot be acquired in time."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, CacheErrorCode.LOCK_TIMEOUT, details)
