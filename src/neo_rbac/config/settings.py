"""
Settings for the neo-rbac engine.

Environment-driven configuration (prefix ``RBAC_``) for the permission
format, hierarchy resolution and the in-process cache. Components never
read settings themselves; the builders below turn settings into the
option objects each component accepts.
"""
from functools import lru_cache
from typing import TYPE_CHECKING

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    CacheDefaults,
    CacheKeys,
    CacheTTL,
    HierarchyDefaults,
    PermissionTokens,
)

if TYPE_CHECKING:
    from ..features.cache.entities.config import MemoryCacheOptions, TTLStrategyOptions
    from ..features.cache.entities.keys import CacheKeyGenerator
    from ..features.permissions.entities.config import HierarchyOptions, PermissionOptions


class RBACSettings(BaseSettings):
    """RBAC engine settings loaded from the environment or a ``.env`` file."""

    model_config = SettingsConfigDict(
        env_prefix="RBAC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Permission Format
    permission_separator: str = Field(default=PermissionTokens.SEPARATOR, min_length=1)
    permission_wildcard: str = Field(default=PermissionTokens.WILDCARD, min_length=1)
    permission_globstar: str = Field(default=PermissionTokens.GLOBSTAR, min_length=1)
    permission_case_sensitive: bool = Field(default=False)

    # Role Hierarchy
    hierarchy_max_depth: int = Field(default=HierarchyDefaults.MAX_DEPTH, ge=1)
    hierarchy_detect_circular: bool = Field(default=True)
    hierarchy_cache_enabled: bool = Field(default=True)
    role_hierarchy_ttl: int = Field(default=CacheTTL.ROLE_HIERARCHY, ge=0)
    role_permissions_ttl: int = Field(default=CacheTTL.ROLE_PERMISSIONS, ge=0)

    # In-process Cache
    cache_max_size: int = Field(default=CacheDefaults.MAX_SIZE, ge=1)
    cache_default_ttl: int = Field(default=CacheTTL.DEFAULT, ge=0)
    cache_cleanup_interval: float = Field(default=CacheDefaults.CLEANUP_INTERVAL_SECONDS, ge=0)
    cache_cleanup_batch_size: int = Field(default=CacheDefaults.CLEANUP_BATCH_SIZE, ge=1)
    cache_track_memory: bool = Field(default=False)

    # Cache Keys
    cache_key_prefix: str = Field(default=CacheKeys.PREFIX)
    cache_key_separator: str = Field(default=CacheKeys.SEPARATOR, min_length=1)

    def permission_options(self) -> "PermissionOptions":
        """Options for WildcardParser and PermissionMatcher."""
        from ..features.permissions.entities.config import PermissionOptions

        return PermissionOptions(
            separator=self.permission_separator,
            wildcard_char=self.permission_wildcard,
            globstar_char=self.permission_globstar,
            case_sensitive=self.permission_case_sensitive,
        )

    def hierarchy_options(self) -> "HierarchyOptions":
        """Options for RoleHierarchyResolver."""
        from ..features.permissions.entities.config import HierarchyOptions

        return HierarchyOptions(
            max_depth=self.hierarchy_max_depth,
            cache_hierarchy=self.hierarchy_cache_enabled,
            detect_circular_dependencies=self.hierarchy_detect_circular,
            role_hierarchy_ttl=self.role_hierarchy_ttl,
            role_permissions_ttl=self.role_permissions_ttl,
        )

    def ttl_options(self) -> "TTLStrategyOptions":
        """Options for a standalone TTLStrategy."""
        from ..features.cache.entities.config import TTLStrategyOptions

        return TTLStrategyOptions(
            default_ttl=self.cache_default_ttl,
            cleanup_interval=self.cache_cleanup_interval,
            cleanup_batch_size=self.cache_cleanup_batch_size,
        )

    def memory_cache_options(self) -> "MemoryCacheOptions":
        """Options for MemoryCacheAdapter."""
        from ..features.cache.entities.config import MemoryCacheOptions

        return MemoryCacheOptions(
            max_size=self.cache_max_size,
            default_ttl=self.cache_default_ttl,
            cleanup_interval=self.cache_cleanup_interval,
            cleanup_batch_size=self.cache_cleanup_batch_size,
            track_memory=self.cache_track_memory,
        )

    def key_generator(self) -> "CacheKeyGenerator":
        """Cache key generator using the configured prefix and separator."""
        from ..features.cache.entities.keys import CacheKeyGenerator

        return CacheKeyGenerator(
            prefix=self.cache_key_prefix,
            separator=self.cache_key_separator,
        )


@lru_cache()
def get_settings() -> RBACSettings:
    """Get cached settings instance."""
    return RBACSettings()
