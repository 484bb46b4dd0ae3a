"""Permission matching with scope and condition (ABAC) evaluation.

``PermissionMatcher`` decides whether a required permission string is
granted by a set of ``Permission`` objects. Beyond the wildcard rules of
``WildcardParser`` it applies:

- ownership scopes: a granted ``own`` scope requires
  ``context.user_id == context.resource_owner_id``; a granted ``all``
  scope also satisfies a required ``own`` (never the reverse);
- conditions: every ``permission.conditions`` entry must equal the
  matching ``context.attributes`` value; a missing context fails closed.

A non-match is always a structured result, never an exception.
"""

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from .wildcard_parser import WildcardParser
from ..entities.config import PermissionOptions
from ..entities.permission import (
    MatchResult,
    ParsedPermission,
    Permission,
    PermissionCheckResult,
    PermissionMatchContext,
)
from ....config.constants import MatchReason, MatchScore, ScopeNames

ContextLike = Union[PermissionMatchContext, Mapping[str, Any], None]

_NO_MATCH = MatchResult(matched=False, score=0, reason=MatchReason.NO_MATCH.value)


class PermissionMatcher:
    """Evaluates required permissions against available grants."""

    def __init__(self, options: Optional[PermissionOptions] = None):
        self.options = options or PermissionOptions()
        self.parser = WildcardParser(self.options)

    def matches(
        self,
        required: Union[str, Sequence[str]],
        available: Iterable[Permission],
        context: ContextLike = None,
    ) -> bool:
        """OR semantics: True if any required permission is granted."""
        required_list = [required] if isinstance(required, str) else list(required)
        candidates = self._prepare(available)
        match_context = PermissionMatchContext.from_value(context)
        return any(
            self._match_single(permission, candidates, match_context)
            for permission in required_list
        )

    def matches_all(
        self,
        required: Sequence[str],
        available: Iterable[Permission],
        context: ContextLike = None,
    ) -> bool:
        """AND semantics: True only if every required permission is granted."""
        candidates = self._prepare(available)
        match_context = PermissionMatchContext.from_value(context)
        return all(
            self._match_single(permission, candidates, match_context)
            for permission in required
        )

    def matches_with_wildcard(self, pattern: str, permissions: Iterable[Permission]) -> bool:
        """Whether ``pattern`` overlaps any permission in either direction.

        Scope and conditions are not evaluated.
        """
        parsed_pattern = self.parser.parse(pattern)

        for permission in permissions:
            permission_string = self._to_string(permission)
            parsed_permission = self.parser.parse(permission_string)

            if parsed_permission.is_globstar or parsed_pattern.is_globstar:
                return True
            if self.parser.matches(pattern, permission_string):
                return True
            if parsed_permission.has_wildcard and self.parser.matches(permission_string, pattern):
                return True

        return False

    def parse(self, permission: str) -> ParsedPermission:
        return self.parser.parse(permission)

    def normalize(self, permission: Union[str, Mapping[str, Any], Permission]) -> Permission:
        """Build a ``Permission`` from a string or a partial mapping.

        Generated ids follow ``perm_<resource>_<action>[_<scope>]``.
        """
        if isinstance(permission, Permission):
            return permission

        if isinstance(permission, str):
            parsed = self.parser.parse(permission)
            suffix = f"_{parsed.scope}" if parsed.scope else ""
            return Permission(
                id=f"perm_{parsed.resource}_{parsed.action}{suffix}",
                resource=parsed.resource,
                action=parsed.action,
                scope=parsed.scope,
            )

        resource = permission.get("resource") or self.options.wildcard_char
        action = permission.get("action") or self.options.wildcard_char
        return Permission(
            id=permission.get("id") or f"perm_{permission.get('resource') or 'unknown'}_{permission.get('action') or 'unknown'}",
            resource=resource,
            action=action,
            scope=permission.get("scope"),
            conditions=permission.get("conditions"),
            metadata=permission.get("metadata"),
            description=permission.get("description"),
            created_at=permission.get("created_at"),
        )

    def find_best_match(
        self,
        required: str,
        available: Iterable[Permission],
        context: ContextLike = None,
    ) -> MatchResult:
        """Highest scoring grant for ``required``; first seen wins ties.

        Score: +10 concrete resource, +10 concrete action, +5 concrete scope,
        +3 conditions present.
        """
        parsed_required = self.parser.parse(required)
        match_context = PermissionMatchContext.from_value(context)
        best: Optional[MatchResult] = None

        for permission, parsed in self._prepare(available):
            result = self._evaluate(parsed_required, parsed, permission, match_context)
            if result.matched and (best is None or result.score > best.score):
                best = result

        return best or _NO_MATCH

    def check(
        self,
        required: str,
        available: Iterable[Permission],
        context: ContextLike = None,
    ) -> PermissionCheckResult:
        match_context = PermissionMatchContext.from_value(context)
        result = self.find_best_match(required, available, match_context)
        return PermissionCheckResult(
            allowed=result.matched,
            permission=required,
            reason=result.reason,
            matched_permission=result.matched_permission,
            context=match_context,
        )

    def find_all_matches(self, pattern: str, available: Iterable[Permission]) -> List[Permission]:
        """Permissions overlapping ``pattern`` in either direction."""
        matched = []
        for permission in available:
            permission_string = self._to_string(permission)
            if (self.parser.matches(pattern, permission_string)
                    or self.parser.matches(permission_string, pattern)):
                matched.append(permission)
        return matched

    def check_scope(
        self,
        permission_scope: Optional[str],
        required_scope: Optional[str],
        context: Optional[PermissionMatchContext],
    ) -> bool:
        """Ownership-aware scope rule, applied to case-folded scopes."""
        if not required_scope:
            return True
        if not permission_scope:
            return False
        if permission_scope == self.options.wildcard_char:
            return True

        if required_scope == ScopeNames.OWN:
            if permission_scope == ScopeNames.OWN:
                return context is not None and context.is_owner
            if permission_scope == ScopeNames.ALL:
                return True

        return permission_scope == required_scope

    def evaluate_conditions(
        self, permission: Permission, context: Optional[PermissionMatchContext]
    ) -> bool:
        if not permission.conditions:
            return True
        if context is None:
            return False

        attributes = context.attributes or {}
        for key, expected in permission.conditions.items():
            if key not in attributes or attributes[key] != expected:
                return False
        return True

    def _match_single(
        self,
        required: str,
        candidates: List[tuple],
        context: Optional[PermissionMatchContext],
    ) -> bool:
        parsed_required = self.parser.parse(required)
        return any(
            self._permission_matches(parsed_required, parsed, permission, context)
            for permission, parsed in candidates
        )

    def _permission_matches(
        self,
        required: ParsedPermission,
        available: ParsedPermission,
        permission: Permission,
        context: Optional[PermissionMatchContext],
    ) -> bool:
        if available.is_globstar:
            return self.evaluate_conditions(permission, context)

        if (not available.is_resource_wildcard
                and not required.is_resource_wildcard
                and available.resource != required.resource):
            return False

        if (not available.is_action_wildcard
                and not required.is_action_wildcard
                and available.action != required.action):
            return False

        if not self.check_scope(available.scope, required.scope, context):
            return False

        return self.evaluate_conditions(permission, context)

    def _evaluate(
        self,
        required: ParsedPermission,
        available: ParsedPermission,
        permission: Permission,
        context: Optional[PermissionMatchContext],
    ) -> MatchResult:
        if not self._permission_matches(required, available, permission, context):
            return MatchResult(matched=False, score=0, reason=MatchReason.NOT_MATCHED.value)

        score = 0
        if not available.is_resource_wildcard:
            score += MatchScore.RESOURCE
        if not available.is_action_wildcard:
            score += MatchScore.ACTION
        if available.scope and not available.is_scope_wildcard:
            score += MatchScore.SCOPE
        if permission.has_conditions:
            score += MatchScore.CONDITIONS

        return MatchResult(
            matched=True,
            score=score,
            reason=self._reason(available),
            matched_permission=permission,
            matched_pattern=available.original,
        )

    def _reason(self, available: ParsedPermission) -> str:
        wildcard = self.options.wildcard_char
        separator = self.options.separator
        if available.is_globstar:
            return MatchReason.SUPERADMIN.value
        if available.is_resource_wildcard and available.is_action_wildcard:
            return MatchReason.FULL_WILDCARD.value
        if available.is_resource_wildcard:
            return f"{MatchReason.RESOURCE_WILDCARD.value} ({wildcard}{separator}{available.action})"
        if available.is_action_wildcard:
            return f"{MatchReason.ACTION_WILDCARD.value} ({available.resource}{separator}{wildcard})"
        return f"{MatchReason.EXACT.value}: {available.original}"

    def _prepare(self, available: Iterable[Permission]) -> List[tuple]:
        return [
            (permission, self.parser.parse(self._to_string(permission)))
            for permission in available
        ]

    def _to_string(self, permission: Permission) -> str:
        globstar = self.options.globstar_char
        # A superadmin grant is stored as resource "**" with a "**" or "*" action
        if (permission.resource == globstar and not permission.scope
                and permission.action in (globstar, self.options.wildcard_char)):
            return globstar
        return permission.to_string(self.options.separator)


permission_matcher = PermissionMatcher()
