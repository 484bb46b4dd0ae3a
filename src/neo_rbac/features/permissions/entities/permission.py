"""Permission domain entities for neo-rbac permissions feature.

Represents permissions in the ``<resource>:<action>[:<scope>]`` wire format,
their parsed form, and the structured results produced by matching.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

from ....config.constants import PermissionTokens


@dataclass(frozen=True)
class ParsedPermission:
    """Immutable parse of a permission string, produced per parse call."""

    resource: str
    action: str
    scope: Optional[str]
    is_resource_wildcard: bool
    is_action_wildcard: bool
    is_scope_wildcard: bool
    is_globstar: bool
    has_wildcard: bool
    original: str


@dataclass(frozen=True)
class Permission:
    """Domain entity for a grant owned by the role/permission source.

    ``conditions`` maps attribute names to expected values; every entry must
    equal the corresponding context attribute for the permission to apply.
    """

    id: str
    resource: str
    action: str
    scope: Optional[str] = None
    conditions: Optional[Mapping[str, Any]] = None
    metadata: Optional[Mapping[str, Any]] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate permission entity consistency."""
        if not self.id:
            raise ValueError("Permission id cannot be empty")
        if not self.resource:
            raise ValueError(f"Permission resource cannot be empty (id={self.id})")
        if not self.action:
            raise ValueError(f"Permission action cannot be empty (id={self.id})")

    @property
    def code(self) -> str:
        """Permission string in the default wire format."""
        return self.to_string()

    @property
    def has_conditions(self) -> bool:
        return bool(self.conditions)

    def to_string(self, separator: str = PermissionTokens.SEPARATOR) -> str:
        parts = [self.resource, self.action]
        if self.scope:
            parts.append(self.scope)
        return separator.join(parts)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        condition_info = f", conditions={dict(self.conditions)}" if self.conditions else ""
        return f"Permission(id={self.id!r}, code={self.code!r}{condition_info})"


@dataclass
class PermissionMatchContext:
    """Runtime attributes for ownership and condition evaluation."""

    user_id: Optional[str] = None
    resource_owner_id: Optional[str] = None
    organization_id: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[datetime] = None

    @classmethod
    def from_value(
        cls, context: Union["PermissionMatchContext", Mapping[str, Any], None]
    ) -> Optional["PermissionMatchContext"]:
        """Accept a context object or a plain mapping with the same keys."""
        if context is None or isinstance(context, PermissionMatchContext):
            return context
        return cls(
            user_id=context.get("user_id"),
            resource_owner_id=context.get("resource_owner_id"),
            organization_id=context.get("organization_id"),
            attributes=dict(context.get("attributes") or {}),
            timestamp=context.get("timestamp"),
        )

    @property
    def is_owner(self) -> bool:
        """True only when both ids are known and equal."""
        if not self.user_id or not self.resource_owner_id:
            return False
        return self.user_id == self.resource_owner_id


@dataclass(frozen=True)
class MatchResult:
    """Outcome of evaluating a required permission against candidates."""

    matched: bool
    score: int = 0
    reason: str = ""
    matched_permission: Optional[Permission] = None
    matched_pattern: Optional[str] = None

    def __bool__(self) -> bool:
        return self.matched


@dataclass(frozen=True)
class PermissionCheckResult:
    """Detailed answer of ``PermissionMatcher.check``."""

    allowed: bool
    permission: str
    reason: str
    matched_permission: Optional[Permission] = None
    context: Optional[PermissionMatchContext] = None


@dataclass(frozen=True)
class WildcardMatchResult:
    """Per-part breakdown of a pattern/permission match."""

    matches: bool
    pattern: str
    permission: str
    matched_parts: Dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating a permission string."""

    valid: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid
