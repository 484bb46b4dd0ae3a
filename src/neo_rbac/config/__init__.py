"""Configuration for neo-rbac: constants, settings and logging."""

from .constants import (
    CacheDefaults,
    CacheKeys,
    CacheTags,
    CacheTTL,
    HierarchyDefaults,
    MatchReason,
    MatchScore,
    PermissionTokens,
    ScopeNames,
    TTLCodes,
)
from .logging_config import (
    LogFormat,
    LoggingConfig,
    LogLevel,
    LogVerbosity,
    get_logger,
    setup_logging,
)
from .settings import RBACSettings, get_settings

__all__ = [
    # Constants
    "CacheDefaults",
    "CacheKeys",
    "CacheTags",
    "CacheTTL",
    "HierarchyDefaults",
    "MatchReason",
    "MatchScore",
    "PermissionTokens",
    "ScopeNames",
    "TTLCodes",

    # Logging
    "LogFormat",
    "LoggingConfig",
    "LogLevel",
    "LogVerbosity",
    "get_logger",
    "setup_logging",

    # Settings
    "RBACSettings",
    "get_settings",
]
