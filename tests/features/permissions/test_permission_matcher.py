"""Tests for PermissionMatcher."""

import pytest

from neo_rbac.config.constants import MatchReason
from neo_rbac.features.permissions.entities.permission import Permission, PermissionMatchContext
from neo_rbac.features.permissions.services.permission_matcher import (
    PermissionMatcher,
    permission_matcher,
)


@pytest.fixture
def matcher():
    return PermissionMatcher()


@pytest.fixture
def superadmin():
    return Permission(id="perm_superadmin", resource="**", action="**")


@pytest.fixture
def owner_context():
    return PermissionMatchContext(user_id="user-1", resource_owner_id="user-1")


@pytest.fixture
def other_context():
    return PermissionMatchContext(user_id="user-1", resource_owner_id="user-2")


class TestMatches:
    """Test cases for OR/AND permission matching."""

    def test_exact_permission(self, matcher, permission_factory):
        assert matcher.matches("users:read", [permission_factory("users:read")])

    def test_resource_and_action_wildcards(self, matcher, permission_factory):
        assert matcher.matches("posts:read", [permission_factory("*:read")])
        assert matcher.matches("posts:delete", [permission_factory("posts:*")])
        assert not matcher.matches("users:delete", [permission_factory("posts:*")])

    def test_superadmin_matches_everything(self, matcher, superadmin):
        assert matcher.matches("billing:refund:all", [superadmin])
        assert matcher.matches("users:read", [Permission(id="p", resource="**", action="*")])

    def test_or_semantics(self, matcher, permission_factory):
        available = [permission_factory("users:read")]

        assert matcher.matches(["users:delete", "users:read"], available)
        assert not matcher.matches(["users:delete", "users:write"], available)

    def test_and_semantics(self, matcher, permission_factory):
        available = [permission_factory("users:read"), permission_factory("posts:*")]

        assert matcher.matches_all(["users:read", "posts:write"], available)
        assert not matcher.matches_all(["users:read", "users:write"], available)

    def test_no_permissions(self, matcher):
        assert not matcher.matches("users:read", [])

    def test_module_level_instance(self, permission_factory):
        assert permission_matcher.matches("users:read", [permission_factory("users:*")])


class TestScopes:
    """Test cases for ownership-aware scope evaluation."""

    def test_own_scope_requires_ownership(self, matcher, permission_factory, owner_context, other_context):
        available = [permission_factory("posts:update:own")]

        assert matcher.matches("posts:update:own", available, owner_context)
        assert not matcher.matches("posts:update:own", available, other_context)

    def test_own_scope_fails_closed_without_context(self, matcher, permission_factory):
        assert not matcher.matches("posts:update:own", [permission_factory("posts:update:own")])

    def test_own_scope_fails_closed_with_unknown_owner(self, matcher, permission_factory):
        context = PermissionMatchContext(user_id="user-1")

        assert not matcher.matches("posts:update:own", [permission_factory("posts:update:own")], context)

    def test_all_scope_satisfies_own(self, matcher, permission_factory, other_context):
        assert matcher.matches("posts:update:own", [permission_factory("posts:update:all")], other_context)

    def test_own_scope_never_satisfies_all(self, matcher, permission_factory, owner_context):
        assert not matcher.matches("posts:update:all", [permission_factory("posts:update:own")], owner_context)

    def test_scoped_requirement_rejects_unscoped_grant(self, matcher, permission_factory, owner_context):
        assert not matcher.matches("posts:update:own", [permission_factory("posts:update")], owner_context)

    def test_unscoped_requirement_admits_scoped_grant(self, matcher, permission_factory):
        assert matcher.matches("posts:update", [permission_factory("posts:update:own")])

    def test_wildcard_scope_grant(self, matcher, permission_factory):
        assert matcher.matches("posts:update:team", [permission_factory("posts:update:*")])

    def test_context_as_mapping(self, matcher, permission_factory):
        context = {"user_id": "user-1", "resource_owner_id": "user-1"}

        assert matcher.matches("posts:update:own", [permission_factory("posts:update:own")], context)


class TestConditions:
    """Test cases for attribute condition evaluation."""

    @pytest.fixture
    def conditional(self, permission_factory):
        return permission_factory("reports:read", conditions={"department": "eng", "level": 3})

    def test_all_conditions_satisfied(self, matcher, conditional):
        context = PermissionMatchContext(attributes={"department": "eng", "level": 3, "extra": True})

        assert matcher.matches("reports:read", [conditional], context)

    def test_condition_mismatch(self, matcher, conditional):
        context = PermissionMatchContext(attributes={"department": "sales", "level": 3})

        assert not matcher.matches("reports:read", [conditional], context)

    def test_missing_attribute_fails(self, matcher, conditional):
        context = PermissionMatchContext(attributes={"department": "eng"})

        assert not matcher.matches("reports:read", [conditional], context)

    def test_missing_context_fails(self, matcher, conditional):
        assert not matcher.matches("reports:read", [conditional])

    def test_conditions_apply_to_superadmin(self, matcher):
        superadmin = Permission(id="p", resource="**", action="**", conditions={"mfa": True})

        assert not matcher.matches("users:read", [superadmin])
        assert matcher.matches("users:read", [superadmin], {"attributes": {"mfa": True}})


class TestFindBestMatch:
    """Test cases for specificity scoring."""

    def test_exact_beats_wildcard(self, matcher, permission_factory):
        exact = permission_factory("users:read")
        wildcard = permission_factory("*:read")

        result = matcher.find_best_match("users:read", [wildcard, exact])

        assert result.matched
        assert result.matched_permission is exact
        assert result.score == 20
        assert result.reason == "Exact match: users:read"

    def test_resource_wildcard_reason(self, matcher, permission_factory):
        result = matcher.find_best_match("users:read", [permission_factory("*:read")])

        assert result.score == 10
        assert result.reason == "Matched by resource wildcard (*:read)"

    def test_action_wildcard_reason(self, matcher, permission_factory):
        result = matcher.find_best_match("users:read", [permission_factory("users:*")])

        assert result.score == 10
        assert result.reason == "Matched by action wildcard (users:*)"

    def test_full_wildcard(self, matcher, permission_factory):
        result = matcher.find_best_match("users:read", [permission_factory("*:*")])

        assert result.matched
        assert result.score == 0
        assert result.reason == MatchReason.FULL_WILDCARD.value

    def test_superadmin_alone_is_selected(self, matcher, superadmin):
        result = matcher.find_best_match("users:read", [superadmin])

        assert result.matched
        assert result.score == 0
        assert result.matched_permission is superadmin
        assert result.reason == MatchReason.SUPERADMIN.value

    def test_superadmin_loses_to_exact(self, matcher, permission_factory, superadmin):
        exact = permission_factory("users:read")

        assert matcher.find_best_match("users:read", [superadmin, exact]).matched_permission is exact

    def test_scope_and_conditions_add_to_score(self, matcher, permission_factory, owner_context):
        permission = permission_factory("posts:update:own", conditions={"team": "a"})
        context = PermissionMatchContext(
            user_id=owner_context.user_id,
            resource_owner_id=owner_context.resource_owner_id,
            attributes={"team": "a"},
        )

        assert matcher.find_best_match("posts:update:own", [permission], context).score == 28

    def test_first_seen_wins_ties(self, matcher, permission_factory):
        first = permission_factory("users:read", id="first")
        second = permission_factory("users:read", id="second")

        assert matcher.find_best_match("users:read", [first, second]).matched_permission is first

    def test_no_match_is_a_result(self, matcher, permission_factory):
        result = matcher.find_best_match("users:delete", [permission_factory("users:read")])

        assert not result
        assert result.score == 0
        assert result.matched_permission is None
        assert result.reason == MatchReason.NO_MATCH.value


class TestCheck:
    """Test cases for detailed permission checks."""

    def test_allowed(self, matcher, permission_factory, owner_context):
        granted = permission_factory("posts:update:all")

        result = matcher.check("posts:update:own", [granted], owner_context)

        assert result.allowed
        assert result.permission == "posts:update:own"
        assert result.matched_permission is granted
        assert result.context is owner_context

    def test_denied(self, matcher):
        result = matcher.check("users:read", [], {"user_id": "u"})

        assert not result.allowed
        assert result.reason == MatchReason.NO_MATCH.value
        assert result.context.user_id == "u"


class TestWildcardQueries:
    """Test cases for bidirectional wildcard queries."""

    def test_matches_with_wildcard(self, matcher, permission_factory):
        assert matcher.matches_with_wildcard("users:*", [permission_factory("users:read")])
        assert matcher.matches_with_wildcard("users:read", [permission_factory("*:read")])
        assert matcher.matches_with_wildcard("**", [permission_factory("posts:read")])
        assert not matcher.matches_with_wildcard("users:read", [permission_factory("posts:read")])

    def test_find_all_matches(self, matcher, permission_factory, superadmin):
        users_read = permission_factory("users:read")
        available = [users_read, permission_factory("posts:read"), superadmin]

        assert matcher.find_all_matches("users:*", available) == [users_read, superadmin]


class TestNormalize:
    """Test cases for building permissions from loose input."""

    def test_from_string(self, matcher):
        permission = matcher.normalize("Users:Read:own")

        assert permission.id == "perm_users_read_own"
        assert (permission.resource, permission.action, permission.scope) == ("users", "read", "own")

    def test_from_mapping(self, matcher):
        permission = matcher.normalize({"resource": "users"})

        assert permission.id == "perm_users_unknown"
        assert permission.action == "*"

    def test_permission_passthrough(self, matcher, permission_factory):
        permission = permission_factory("users:read")

        assert matcher.normalize(permission) is permission
