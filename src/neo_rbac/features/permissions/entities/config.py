"""Options for the permission parser, matcher and hierarchy resolver."""

from dataclasses import dataclass

from ....config.constants import CacheTTL, HierarchyDefaults, PermissionTokens
from ....core.exceptions import ConfigurationError


@dataclass(frozen=True)
class PermissionOptions:
    """Tokens of the permission wire format."""

    separator: str = PermissionTokens.SEPARATOR
    wildcard_char: str = PermissionTokens.WILDCARD
    globstar_char: str = PermissionTokens.GLOBSTAR
    case_sensitive: bool = False

    def __post_init__(self):
        for name in ("separator", "wildcard_char", "globstar_char"):
            if not getattr(self, name):
                raise ConfigurationError(
                    f"{name} cannot be empty",
                    details={"field": name},
                )
        if self.wildcard_char == self.globstar_char:
            raise ConfigurationError(
                "wildcard_char and globstar_char must differ",
                details={"wildcard_char": self.wildcard_char, "globstar_char": self.globstar_char},
            )
        if self.separator in self.wildcard_char or self.separator in self.globstar_char:
            raise ConfigurationError(
                f"separator {self.separator!r} cannot appear in wildcard tokens",
                details={"separator": self.separator},
            )


@dataclass(frozen=True)
class HierarchyOptions:
    """Role hierarchy resolution options. TTLs are in seconds."""

    max_depth: int = HierarchyDefaults.MAX_DEPTH
    cache_hierarchy: bool = True
    detect_circular_dependencies: bool = True
    role_hierarchy_ttl: int = CacheTTL.ROLE_HIERARCHY
    role_permissions_ttl: int = CacheTTL.ROLE_PERMISSIONS

    def __post_init__(self):
        if self.max_depth < 1:
            raise ConfigurationError(
                f"max_depth must be at least 1, got: {self.max_depth}",
                details={"field": "max_depth", "value": self.max_depth},
            )
        for name in ("role_hierarchy_ttl", "role_permissions_ttl"):
            value = getattr(self, name)
            if value < 0:
                raise ConfigurationError(
                    f"{name} cannot be negative, got: {value}",
                    details={"field": name, "value": value},
                )
