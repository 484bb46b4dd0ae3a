"""Domain-specific exceptions for neo-rbac.

This module defines exceptions that relate to authorization concepts:
permissions, roles and the role hierarchy.
"""

from typing import Any, Dict, List, Optional

from .base import RBACError, RBACErrorCode


# Configuration Errors
class ConfigurationError(RBACError):
    """Raised when strategy or engine options are invalid."""

    default_code = RBACErrorCode.INVALID_CONFIGURATION


# Authorization Errors
class AuthorizationError(RBACError):
    """Base class for authorization failures."""

    default_code = RBACErrorCode.PERMISSION_DENIED


class PermissionDeniedError(AuthorizationError):
    """Raised by callers that demand a hard failure on a non-match."""

    def __init__(
        self,
        permission: str,
        user_id: Optional[str] = None,
        resource: Optional[str] = None,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = f"Permission denied: '{permission}'"
        if user_id:
            message += f" for user '{user_id}'"
        if resource:
            message += f" on resource '{resource}'"
        if reason:
            message += f". Reason: {reason}"

        super().__init__(
            message,
            details={
                **(details or {}),
                "permission": permission,
                "user_id": user_id,
                "resource": resource,
                "reason": reason,
            },
        )
        self.permission = permission
        self.user_id = user_id
        self.resource = resource
        self.reason = reason

    @classmethod
    def for_resource(
        cls,
        permission: str,
        user_id: str,
        resource: str,
        resource_id: Optional[str] = None,
    ) -> "PermissionDeniedError":
        details = {"resource_id": resource_id} if resource_id else None
        return cls(permission, user_id=user_id, resource=resource, details=details)

    @classmethod
    def for_ownership(
        cls, permission: str, user_id: str, resource_owner_id: str
    ) -> "PermissionDeniedError":
        return cls(
            permission,
            user_id=user_id,
            reason="User does not own this resource",
            details={"resource_owner_id": resource_owner_id},
        )

    @classmethod
    def for_missing_roles(
        cls,
        permission: str,
        user_id: str,
        required_roles: List[str],
        user_roles: List[str],
    ) -> "PermissionDeniedError":
        reason = (
            f"Required one of roles: [{', '.join(required_roles)}], "
            f"but user has: [{', '.join(user_roles)}]"
        )
        return cls(
            permission,
            user_id=user_id,
            reason=reason,
            details={"checked_roles": list(user_roles)},
        )


class RoleNotFoundError(AuthorizationError):
    """Raised when a role lookup misses where existence is required."""

    default_code = RBACErrorCode.ROLE_NOT_FOUND

    def __init__(
        self,
        role: str,
        search_type: str = "id",
        organization_id: Optional[str] = None,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = f"Role not found: {search_type} '{role}'"
        if organization_id:
            message += f" in organization '{organization_id}'"
        if operation:
            message += f". Required for: {operation}"

        super().__init__(
            message,
            details={
                **(details or {}),
                "role": role,
                "search_type": search_type,
                "organization_id": organization_id,
                "operation": operation,
            },
        )
        self.role_id = role if search_type == "id" else None
        self.role_name = role if search_type == "name" else None
        self.organization_id = organization_id

    @classmethod
    def by_id(cls, role_id: str, organization_id: Optional[str] = None) -> "RoleNotFoundError":
        return cls(role_id, search_type="id", organization_id=organization_id)

    @classmethod
    def by_name(cls, name: str, organization_id: Optional[str] = None) -> "RoleNotFoundError":
        return cls(name, search_type="name", organization_id=organization_id)

    @classmethod
    def parent_role(cls, parent_role_id: str, child_role_id: str) -> "RoleNotFoundError":
        return cls(
            parent_role_id,
            operation=f"setting parent of role '{child_role_id}'",
            details={"child_role_id": child_role_id},
        )


class CircularHierarchyError(AuthorizationError):
    """Raised when the role graph contains a cycle or is too deep.

    Every instance carries the complete discovered id chain so the graph
    can be repaired without re-deriving it. Max-depth violations use the
    ``RBAC_3002`` code and additionally carry ``depth``/``max_depth``.
    """

    default_code = RBACErrorCode.CIRCULAR_HIERARCHY

    def __init__(
        self,
        role_id: str,
        target_role_id: str,
        chain: List[str],
        depth: Optional[int] = None,
        max_depth: Optional[int] = None,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        if message is None:
            if role_id == target_role_id:
                message = f"Circular hierarchy detected: Role '{role_id}' cannot inherit from itself"
            else:
                message = (
                    f"Circular hierarchy detected: Adding '{target_role_id}' as parent of "
                    f"'{role_id}' would create cycle: {' -> '.join(chain)}"
                )

        super().__init__(
            message,
            error_code=error_code,
            details={
                "role_id": role_id,
                "target_role_id": target_role_id,
                "chain": list(chain),
                "chain_length": len(chain),
                "visual_chain": " -> ".join(chain),
                "depth": depth,
                "max_depth": max_depth,
            },
        )
        self.role_id = role_id
        self.target_role_id = target_role_id
        self.chain = list(chain)
        self.depth = depth
        self.max_depth = max_depth

    @classmethod
    def self_reference(cls, role_id: str) -> "CircularHierarchyError":
        return cls(role_id, role_id, [role_id, role_id])

    @classmethod
    def direct(cls, role_a: str, role_b: str) -> "CircularHierarchyError":
        return cls(role_a, role_b, [role_a, role_b, role_a])

    @classmethod
    def max_depth_exceeded(
        cls, role_id: str, chain: List[str], max_depth: int
    ) -> "CircularHierarchyError":
        message = (
            f"Maximum hierarchy depth ({max_depth}) exceeded for role '{role_id}'. "
            f"Chain length: {len(chain)}. This may indicate a circular dependency "
            f"or excessively deep hierarchy."
        )
        return cls(
            role_id,
            chain[0] if chain else role_id,
            chain,
            depth=len(chain),
            max_depth=max_depth,
            message=message,
            error_code=RBACErrorCode.MAX_HIERARCHY_DEPTH,
        )

    @property
    def is_max_depth(self) -> bool:
        return self.error_code == RBACErrorCode.MAX_HIERARCHY_DEPTH.value

    def visual_chain(self) -> str:
        """Render the chain as ``a -> b -> a (CYCLE!)``."""
        parts = list(self.chain)
        if len(parts) > 1 and parts[-1] == parts[0]:
            parts[-1] = f"{parts[-1]} (CYCLE!)"
        return " -> ".join(parts)

    def involved_roles(self) -> List[str]:
        """Unique role ids in the chain, in first-seen order."""
        return list(dict.fromkeys(self.chain))
