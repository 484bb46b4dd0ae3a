"""Pytest configuration and fixtures for neo-rbac tests."""

from typing import Dict, Iterable, List, Optional

import pytest
import pytest_asyncio

from neo_rbac.features.cache.adapters.memory_adapter import MemoryCacheAdapter
from neo_rbac.features.cache.entities.config import MemoryCacheOptions
from neo_rbac.features.permissions.entities.permission import Permission
from neo_rbac.features.permissions.entities.role import Role


class InMemoryRoleSource:
    """Role data source backed by a dict, recording every lookup."""

    def __init__(self, roles: Iterable[Role] = ()):
        self.roles: Dict[str, Role] = {role.id: role for role in roles}
        self.lookups: List[str] = []

    def add(self, role: Role) -> None:
        self.roles[role.id] = role

    async def find_role_by_id(self, role_id: str) -> Optional[Role]:
        self.lookups.append(role_id)
        return self.roles.get(role_id)

    async def find_child_roles(self, parent_id: str) -> List[Role]:
        return [role for role in self.roles.values() if parent_id in role.parent_roles]


class FakeClock:
    """Controllable clock for TTL tests, in seconds."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_permission(code: str, **kwargs) -> Permission:
    """Build a Permission from ``resource:action[:scope]``."""
    parts = code.split(":")
    return Permission(
        id=kwargs.pop("id", f"perm_{'_'.join(parts)}"),
        resource=parts[0],
        action=parts[1] if len(parts) > 1 else "*",
        scope=parts[2] if len(parts) > 2 else None,
        **kwargs,
    )


@pytest.fixture
def clock():
    """Fake clock starting at t=0."""
    return FakeClock()


@pytest.fixture
def sample_permissions():
    """Sample permissions keyed by code."""
    codes = ["users:read", "users:write", "posts:read", "posts:*", "*:read", "posts:update:own"]
    return {code: make_permission(code) for code in codes}


@pytest.fixture
def viewer_role(sample_permissions):
    """Viewer role with read permissions."""
    return Role(
        id="viewer",
        name="Viewer",
        permissions=[sample_permissions["users:read"], sample_permissions["posts:read"]],
    )


@pytest.fixture
def editor_role(sample_permissions):
    """Editor role inheriting from viewer."""
    return Role(
        id="editor",
        name="Editor",
        permissions=[sample_permissions["users:write"], sample_permissions["posts:update:own"]],
        parent_roles=["viewer"],
    )


@pytest.fixture
def admin_role(sample_permissions):
    """Admin role inheriting from editor."""
    return Role(
        id="admin",
        name="Admin",
        permissions=[sample_permissions["posts:*"]],
        parent_roles=["editor"],
    )


@pytest.fixture
def role_source(viewer_role, editor_role, admin_role):
    """In-memory role source with viewer <- editor <- admin."""
    return InMemoryRoleSource([viewer_role, editor_role, admin_role])


@pytest_asyncio.fixture
async def memory_cache(clock):
    """Initialized memory cache without a background cleanup task."""
    cache = MemoryCacheAdapter(
        MemoryCacheOptions(max_size=100, default_ttl=300, cleanup_interval=0),
        clock=clock,
    )
    await cache.initialize()
    yield cache
    await cache.shutdown()


@pytest.fixture
def permission_factory():
    """Factory building permissions from ``resource:action[:scope]``."""
    return make_permission


@pytest.fixture
def role_source_factory():
    """Factory building in-memory role sources."""
    return InMemoryRoleSource
