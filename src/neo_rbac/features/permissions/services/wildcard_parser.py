"""Wildcard permission parsing and matching.

Permission strings have the form ``resource[:action[:scope]]``. A single
wildcard token (``*``) matches any value of its part; the globstar token
(``**``) matches everything, but only when it is the entire string.

Scope matching is deliberately asymmetric: a pattern without a scope (or
with a wildcard scope) admits any scope on the permission, whereas a pattern
with a concrete scope never matches a permission that has no scope.
"""

import re
from typing import Iterable, List, Optional

from ..entities.config import PermissionOptions
from ..entities.permission import ParsedPermission, ValidationResult, WildcardMatchResult
from ....config.constants import PermissionTokens


class WildcardParser:
    """Parses permission strings and answers pattern/permission matches."""

    def __init__(self, options: Optional[PermissionOptions] = None):
        self.options = options or PermissionOptions()
        self.separator = self.options.separator
        self.wildcard_char = self.options.wildcard_char
        self.globstar_char = self.options.globstar_char
        self.case_sensitive = self.options.case_sensitive
        self._part_pattern = re.compile(
            f"(?:{PermissionTokens.PART_PATTERN}"
            f"|{re.escape(self.wildcard_char)}"
            f"|{re.escape(self.globstar_char)})"
        )

    def parse(self, permission: str) -> ParsedPermission:
        """Parse a permission string.

        A missing action defaults to the wildcard; the scope is optional.
        Parts beyond the third are ignored.
        """
        normalized = self._fold(permission)

        if normalized == self.globstar_char:
            return ParsedPermission(
                resource=self.globstar_char,
                action=self.globstar_char,
                scope=None,
                is_resource_wildcard=True,
                is_action_wildcard=True,
                is_scope_wildcard=True,
                is_globstar=True,
                has_wildcard=True,
                original=permission,
            )

        parts = normalized.split(self.separator)
        resource = parts[0]
        action = parts[1] if len(parts) > 1 else self.wildcard_char
        scope = parts[2] if len(parts) > 2 else None

        is_resource_wildcard = resource == self.wildcard_char
        is_action_wildcard = action == self.wildcard_char
        is_scope_wildcard = scope == self.wildcard_char

        return ParsedPermission(
            resource=resource,
            action=action,
            scope=scope,
            is_resource_wildcard=is_resource_wildcard,
            is_action_wildcard=is_action_wildcard,
            is_scope_wildcard=is_scope_wildcard,
            is_globstar=False,
            has_wildcard=is_resource_wildcard or is_action_wildcard or is_scope_wildcard,
            original=permission,
        )

    def matches(self, pattern: str, permission: str) -> bool:
        """Whether ``pattern`` grants ``permission``."""
        parsed_pattern = self.parse(pattern)
        if parsed_pattern.is_globstar:
            return True

        parsed_permission = self.parse(permission)

        if (not parsed_pattern.is_resource_wildcard
                and parsed_pattern.resource != parsed_permission.resource):
            return False

        if (not parsed_pattern.is_action_wildcard
                and parsed_pattern.action != parsed_permission.action):
            return False

        if parsed_pattern.scope is not None and not parsed_pattern.is_scope_wildcard:
            if parsed_permission.scope is None or parsed_pattern.scope != parsed_permission.scope:
                return False

        return True

    def matches_detailed(self, pattern: str, permission: str) -> WildcardMatchResult:
        """Like ``matches`` but reports which parts matched."""
        parsed_pattern = self.parse(pattern)
        parsed_permission = self.parse(permission)
        globstar = parsed_pattern.is_globstar

        matched_parts = {
            "resource": (globstar
                         or parsed_pattern.is_resource_wildcard
                         or parsed_pattern.resource == parsed_permission.resource),
            "action": (globstar
                       or parsed_pattern.is_action_wildcard
                       or parsed_pattern.action == parsed_permission.action),
            "scope": (globstar
                      or parsed_pattern.is_scope_wildcard
                      or parsed_pattern.scope is None
                      or parsed_pattern.scope == parsed_permission.scope),
        }

        return WildcardMatchResult(
            matches=all(matched_parts.values()),
            pattern=pattern,
            permission=permission,
            matched_parts=matched_parts,
        )

    def normalize(self, permission: str) -> str:
        """Case-fold and expand a bare resource to ``resource:*``."""
        normalized = self._fold(permission)
        if normalized != self.globstar_char and self.separator not in normalized:
            return f"{normalized}{self.separator}{self.wildcard_char}"
        return normalized

    def create(self, resource: str, action: str, scope: Optional[str] = None) -> str:
        parts = [resource, action]
        if scope is not None:
            parts.append(scope)
        return self.separator.join(parts)

    def create_resource_wildcard(self, resource: str) -> str:
        """``resource:*``"""
        return f"{resource}{self.separator}{self.wildcard_char}"

    def create_action_wildcard(self, action: str) -> str:
        """``*:action``"""
        return f"{self.wildcard_char}{self.separator}{action}"

    def has_wildcard(self, permission: str) -> bool:
        return self.wildcard_char in permission or self.globstar_char in permission

    def expand(self, pattern: str, available: Iterable[str]) -> List[str]:
        """Every available permission granted by ``pattern``."""
        return [permission for permission in available if self.matches(pattern, permission)]

    def get_specificity(self, permission: str) -> int:
        """Count of concrete parts (0-3); globstar and ``*:*`` score 0."""
        parsed = self.parse(permission)
        if parsed.is_globstar:
            return 0

        specificity = 0
        if not parsed.is_resource_wildcard:
            specificity += 1
        if not parsed.is_action_wildcard:
            specificity += 1
        if parsed.scope is not None and not parsed.is_scope_wildcard:
            specificity += 1
        return specificity

    def sort_by_specificity(self, permissions: Iterable[str]) -> List[str]:
        """Most specific first; ties keep their input order."""
        return sorted(permissions, key=self.get_specificity, reverse=True)

    def validate(self, permission: str) -> ValidationResult:
        if not permission or not permission.strip():
            return ValidationResult(False, "Permission cannot be empty")

        parts = permission.split(self.separator)
        if len(parts) > PermissionTokens.MAX_PARTS:
            return ValidationResult(
                False, f"Permission has too many parts (max {PermissionTokens.MAX_PARTS}): {permission}"
            )

        if any(part == "" for part in parts):
            return ValidationResult(False, f"Permission contains empty parts: {permission}")

        for part in parts:
            if not self._part_pattern.fullmatch(part):
                return ValidationResult(False, f"Invalid characters in permission part: {part}")

        return ValidationResult(True)

    def _fold(self, permission: str) -> str:
        return permission if self.case_sensitive else permission.lower()


wildcard_parser = WildcardParser()
