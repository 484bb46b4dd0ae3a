"""Base exceptions for neo-rbac.

This module defines the base exception hierarchy for the neo-rbac library.
All exceptions inherit from RBACError and include error codes and details.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class RBACErrorCode(str, Enum):
    """Stable error codes for programmatic error handling."""

    # Permission errors (1xxx)
    PERMISSION_DENIED = "RBAC_1001"
    PERMISSION_NOT_FOUND = "RBAC_1002"
    INVALID_PERMISSION_FORMAT = "RBAC_1003"

    # Role errors (2xxx)
    ROLE_NOT_FOUND = "RBAC_2001"

    # Hierarchy errors (3xxx)
    CIRCULAR_HIERARCHY = "RBAC_3001"
    MAX_HIERARCHY_DEPTH = "RBAC_3002"
    INVALID_PARENT_ROLE = "RBAC_3003"

    # Configuration errors (5xxx)
    INVALID_CONFIGURATION = "RBAC_5001"
    ADAPTER_NOT_INITIALIZED = "RBAC_5002"
    CACHE_ERROR = "RBAC_5003"

    # General errors (9xxx)
    UNKNOWN_ERROR = "RBAC_9001"
    OPERATION_FAILED = "RBAC_9002"


class RBACError(Exception):
    """Base exception for all neo-rbac errors.

    All exceptions in the neo-rbac library inherit from this base class
    and include structured error information for better debugging and API responses.
    """

    default_code: RBACErrorCode = RBACErrorCode.UNKNOWN_ERROR

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self.message = message
        if isinstance(error_code, Enum):
            error_code = error_code.value
        self.error_code = error_code or self.default_code.value
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for logs and structured payloads."""
        return {
            "name": self.__class__.__name__,
            "code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def wrap(
        cls,
        error: BaseException,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> "RBACError":
        """Wrap an arbitrary exception, keeping it as ``__cause__``.

        RBAC errors are returned unchanged.
        """
        if isinstance(error, RBACError):
            return error

        wrapped = cls(
            str(error) or error.__class__.__name__,
            error_code=error_code or RBACErrorCode.UNKNOWN_ERROR,
            details={**(details or {}), "cause": error.__class__.__name__},
        )
        wrapped.__cause__ = error
        return wrapped

    def __str__(self) -> str:
        return self.message
