"""Cache key generation for RBAC data."""

from typing import Optional

from ....config.constants import CacheKeys


class CacheKeyGenerator:
    """Builds namespaced cache keys such as ``rbac:role-hierarchy:<id>``."""

    def __init__(self, prefix: str = CacheKeys.PREFIX, separator: str = CacheKeys.SEPARATOR):
        self.prefix = prefix
        self.separator = separator

    def for_role(self, role_id: str) -> str:
        return self._build_key(CacheKeys.ROLE, role_id)

    def for_permission(self, permission_id: str) -> str:
        return self._build_key(CacheKeys.PERMISSION, permission_id)

    def for_user_permissions(self, user_id: str, organization_id: Optional[str] = None) -> str:
        base = self._build_key(CacheKeys.USER_PERMISSIONS, user_id)
        return f"{base}{self.separator}{organization_id}" if organization_id else base

    def for_user_roles(self, user_id: str, organization_id: Optional[str] = None) -> str:
        base = self._build_key(CacheKeys.USER_ROLES, user_id)
        return f"{base}{self.separator}{organization_id}" if organization_id else base

    def for_role_hierarchy(self, role_id: str) -> str:
        return self._build_key(CacheKeys.ROLE_HIERARCHY, role_id)

    def for_role_permissions(self, role_id: str) -> str:
        return self._build_key(CacheKeys.ROLE_PERMISSIONS, role_id)

    def pattern_for_user(self, user_id: str) -> str:
        """Glob matching every user-scoped key of ``user_id``."""
        return f"{self.prefix}{self.separator}user-*{self.separator}{user_id}*"

    def pattern_for_role(self, role_id: str) -> str:
        """Glob matching every role-scoped key of ``role_id``."""
        return f"{self.prefix}{self.separator}*role*{self.separator}{role_id}*"

    def _build_key(self, *parts: str) -> str:
        segments = [self.prefix, *parts] if self.prefix else list(parts)
        return self.separator.join(segments)
