"""Role hierarchy resolution.

``RoleHierarchyResolver`` walks the child -> parent edges supplied by a
``RoleDataSource`` to collect ancestors, aggregate inherited permissions,
build descendant trees and cascade cache invalidation.

Every traversal threads an explicit visited set. Ancestor collection keeps
two of them: the ids on the current path (a revisit there is a cycle) and
every id collected so far (a revisit there is a diamond and is skipped).
Cycle and depth errors abort the whole resolution; parents the data source
cannot resolve are skipped as orphaned references.

The cache collaborator is optional and strictly an optimization: any cache
failure is logged and the result is recomputed.
"""

import logging
from collections import deque
from typing import Any, Dict, List, Optional, Set, Tuple

from ..entities.config import HierarchyOptions
from ..entities.permission import Permission
from ..entities.protocols import RoleDataSource
from ..entities.role import HierarchyResolution, Role, RoleHierarchyTree
from ...cache.entities.keys import CacheKeyGenerator
from ...cache.entities.protocols import RBACCache
from ....config.constants import CacheTags
from ....core.exceptions import CircularHierarchyError, RoleNotFoundError

logger = logging.getLogger(__name__)


class RoleHierarchyResolver:
    """Resolves role ancestry and inherited permissions."""

    def __init__(
        self,
        data_source: RoleDataSource,
        cache: Optional[RBACCache] = None,
        options: Optional[HierarchyOptions] = None,
        key_generator: Optional[CacheKeyGenerator] = None,
    ):
        self.data_source = data_source
        self.cache = cache
        self.options = options or HierarchyOptions()
        self.keys = key_generator or CacheKeyGenerator()

    @property
    def caching_enabled(self) -> bool:
        return self.cache is not None and self.options.cache_hierarchy

    # Public API

    async def get_inherited_permissions(self, role_id: str) -> List[Permission]:
        """Direct plus inherited permissions, deduplicated by id.

        On an id collision the closer role's permission wins.
        """
        cache_key = self.keys.for_role_permissions(role_id)
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return list(cached)

        resolution = await self.resolve_hierarchy(role_id)
        # The caller owns the returned list; the cache keeps its own copy
        await self._cache_set(
            cache_key, list(resolution.permissions), self.options.role_permissions_ttl, role_id
        )
        return resolution.permissions

    async def get_parent_roles(self, role_id: str, max_depth: Optional[int] = None) -> List[Role]:
        """Every ancestor of ``role_id`` in traversal order.

        Raises:
            RoleNotFoundError: If ``role_id`` does not exist.
            CircularHierarchyError: On a cycle or when ``max_depth`` is exceeded,
                unless cycle detection is disabled.
        """
        parents, _ = await self._get_parent_roles(role_id, max_depth)
        return parents

    async def get_child_roles(self, role_id: str) -> List[Role]:
        """Direct children of ``role_id``."""
        return await self.data_source.find_child_roles(role_id)

    async def has_circular_dependency(self, role_id: str) -> bool:
        """Whether a cycle is reachable from ``role_id`` along parent edges.

        Each branch gets its own copy of the path, so two branches sharing an
        ancestor are not reported. Unknown roles report False.
        """
        role = await self.data_source.find_role_by_id(role_id)
        if role is None:
            return False
        return await self._detect_cycle(role, frozenset(), set())

    async def validate_hierarchy(self, child_role_id: str, parent_role_id: str) -> bool:
        """Pre-flight check before adding ``parent_role_id`` as a parent.

        Rejects self-reference, a missing parent, and a parent that already
        descends from the child.
        """
        if child_role_id == parent_role_id:
            return False

        parent = await self.data_source.find_role_by_id(parent_role_id)
        if parent is None:
            return False

        ancestors = await self._get_ancestor_ids(parent)
        return child_role_id not in ancestors

    async def get_role_depth(self, role_id: str) -> int:
        """``0`` for a role without parents, else ``1 + max(parent depths)``.

        Raises:
            RoleNotFoundError: If ``role_id`` does not exist.
            CircularHierarchyError: If a cycle is reachable from the role.
        """
        role = await self._require_role(role_id)
        return await self._depth(role, [role.id], {})

    async def get_hierarchy_tree(self, root_role_id: str) -> RoleHierarchyTree:
        """Tree of ``root_role_id`` and its descendants along child edges."""
        role = await self._require_role(root_role_id)
        return await self._build_tree(role, 0, {root_role_id})

    async def resolve_hierarchy(self, role_id: str) -> HierarchyResolution:
        """Resolve ancestors and effective permissions of ``role_id``.

        ``depth`` is the number of resolved ancestors.
        """
        role = await self._require_role(role_id)
        parents, from_cache = await self._get_parent_roles(role_id, role=role)

        permissions: Dict[str, Permission] = {}
        for permission in role.permissions:
            permissions.setdefault(permission.id, permission)
        for parent in parents:
            for permission in parent.permissions:
                # Closer roles were inserted first and keep their copy
                permissions.setdefault(permission.id, permission)

        return HierarchyResolution(
            role=role,
            parent_roles=parents,
            permissions=list(permissions.values()),
            depth=len(parents),
            ancestor_chain=[role_id, *(parent.id for parent in parents)],
            from_cache=from_cache,
        )

    async def invalidate_cache(self, role_id: str) -> None:
        """Drop cached entries of ``role_id`` and all of its descendants.

        The cascade completes before this coroutine returns.
        """
        if self.cache is None:
            return

        queue = deque([role_id])
        visited: Set[str] = {role_id}
        while queue:
            current_id = queue.popleft()
            await self._cache_delete(self.keys.for_role_hierarchy(current_id))
            await self._cache_delete(self.keys.for_role_permissions(current_id))

            for child in await self.data_source.find_child_roles(current_id):
                if child.id not in visited:
                    visited.add(child.id)
                    queue.append(child.id)

        logger.debug(f"Invalidated hierarchy cache for {len(visited)} roles starting at {role_id}")

    # Traversal

    async def _get_parent_roles(
        self, role_id: str, max_depth: Optional[int] = None, role: Optional[Role] = None
    ) -> Tuple[List[Role], bool]:
        depth_limit = self.options.max_depth if max_depth is None else max_depth
        # Results for a non-default limit are never cached under the shared key
        use_cache = depth_limit == self.options.max_depth
        cache_key = self.keys.for_role_hierarchy(role_id)

        if use_cache:
            cached = await self._cache_get(cache_key)
            if cached is not None:
                return list(cached), True

        if role is None:
            role = await self._require_role(role_id)
        collected: List[Role] = []
        await self._collect_parents(role, [role_id], {role_id}, collected, 0, depth_limit)

        if use_cache:
            await self._cache_set(cache_key, list(collected), self.options.role_hierarchy_ttl, role_id)
        return collected, False

    async def _collect_parents(
        self,
        role: Role,
        path: List[str],
        seen: Set[str],
        collected: List[Role],
        depth: int,
        max_depth: int,
    ) -> None:
        if not role.parent_roles:
            return

        if depth >= max_depth:
            if self.options.detect_circular_dependencies:
                raise CircularHierarchyError.max_depth_exceeded(role.id, list(path), max_depth)
            logger.debug(f"Stopped ancestor traversal at {role.id}: max depth {max_depth} reached")
            return

        for parent_id in role.parent_roles:
            if parent_id in path:
                if self.options.detect_circular_dependencies:
                    raise CircularHierarchyError(role.id, parent_id, [*path, parent_id])
                continue
            if parent_id in seen:
                continue

            parent = await self.data_source.find_role_by_id(parent_id)
            if parent is None:
                logger.debug(f"Skipping orphaned parent reference {parent_id} of role {role.id}")
                continue

            seen.add(parent_id)
            collected.append(parent)
            path.append(parent_id)
            try:
                await self._collect_parents(parent, path, seen, collected, depth + 1, max_depth)
            finally:
                path.pop()

    async def _detect_cycle(self, role: Role, path: frozenset, acyclic: Set[str]) -> bool:
        if role.id in path:
            return True
        if role.id in acyclic or not role.parent_roles:
            return False

        branch_path = path | {role.id}
        for parent_id in role.parent_roles:
            parent = await self.data_source.find_role_by_id(parent_id)
            if parent is None:
                continue
            if await self._detect_cycle(parent, branch_path, acyclic):
                return True

        acyclic.add(role.id)
        return False

    async def _get_ancestor_ids(self, role: Role) -> Set[str]:
        ancestors: Set[str] = set()
        queue = deque([role])
        visited: Set[str] = {role.id}

        while queue:
            current = queue.popleft()
            for parent_id in current.parent_roles:
                ancestors.add(parent_id)
                if parent_id in visited:
                    continue
                visited.add(parent_id)
                parent = await self.data_source.find_role_by_id(parent_id)
                if parent is not None:
                    queue.append(parent)

        return ancestors

    async def _depth(self, role: Role, path: List[str], memo: Dict[str, int]) -> int:
        if role.id in memo:
            return memo[role.id]

        depth = 0
        for parent_id in role.parent_roles:
            if parent_id in path:
                raise CircularHierarchyError(role.id, parent_id, [*path, parent_id])

            parent = await self.data_source.find_role_by_id(parent_id)
            if parent is None:
                continue
            depth = max(depth, 1 + await self._depth(parent, [*path, parent_id], memo))

        memo[role.id] = depth
        return depth

    async def _build_tree(self, role: Role, depth: int, path: Set[str]) -> RoleHierarchyTree:
        children = []
        for child in await self.data_source.find_child_roles(role.id):
            if child.id in path:
                continue
            children.append(await self._build_tree(child, depth + 1, path | {child.id}))
        return RoleHierarchyTree(role=role, children=children, depth=depth)

    async def _require_role(self, role_id: str) -> Role:
        role = await self.data_source.find_role_by_id(role_id)
        if role is None:
            raise RoleNotFoundError.by_id(role_id)
        return role

    # Best-effort cache access

    async def _cache_get(self, key: str) -> Optional[Any]:
        if not self.caching_enabled:
            return None
        try:
            value = await self.cache.get(key)
        except Exception as e:
            logger.warning(f"Cache get failed for {key}: {e}")
            return None

        logger.debug(f"Hierarchy cache {'hit' if value is not None else 'miss'}: {key}")
        return value

    async def _cache_set(self, key: str, value: Any, ttl: int, role_id: str) -> None:
        if not self.caching_enabled:
            return
        try:
            await self.cache.set(
                key,
                value,
                ttl=ttl,
                tags=[CacheTags.ROLE, f"{CacheTags.ROLE_PREFIX}{role_id}"],
            )
        except Exception as e:
            logger.warning(f"Cache set failed for {key}: {e}")

    async def _cache_delete(self, key: str) -> None:
        try:
            await self.cache.delete(key)
        except Exception as e:
            logger.warning(f"Cache delete failed for {key}: {e}")
