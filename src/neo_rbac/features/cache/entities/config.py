"""Cache configuration for neo-rbac."""

from dataclasses import dataclass

from ....config.constants import CacheDefaults, CacheTTL
from ....core.exceptions import ConfigurationError


@dataclass(frozen=True)
class TTLStrategyOptions:
    """Configuration for TTLStrategy.

    ``cleanup_interval`` is in seconds; ``0`` disables the background
    cleanup task.
    """

    default_ttl: float = CacheTTL.DEFAULT
    cleanup_interval: float = CacheDefaults.CLEANUP_INTERVAL_SECONDS
    cleanup_batch_size: int = CacheDefaults.CLEANUP_BATCH_SIZE
    default_sliding: bool = False

    def __post_init__(self):
        if self.default_ttl <= 0:
            raise ConfigurationError(
                f"default_ttl must be positive, got: {self.default_ttl}",
                details={"field": "default_ttl", "value": self.default_ttl},
            )
        if self.cleanup_interval < 0:
            raise ConfigurationError(
                f"cleanup_interval cannot be negative, got: {self.cleanup_interval}",
                details={"field": "cleanup_interval", "value": self.cleanup_interval},
            )
        if self.cleanup_batch_size < 1:
            raise ConfigurationError(
                f"cleanup_batch_size must be at least 1, got: {self.cleanup_batch_size}",
                details={"field": "cleanup_batch_size", "value": self.cleanup_batch_size},
            )


@dataclass(frozen=True)
class MemoryCacheOptions:
    """Configuration for MemoryCacheAdapter.

    ``default_ttl`` of ``0`` stores entries without expiry.
    """

    max_size: int = CacheDefaults.MAX_SIZE
    default_ttl: int = CacheTTL.DEFAULT
    cleanup_interval: float = CacheDefaults.CLEANUP_INTERVAL_SECONDS
    cleanup_batch_size: int = CacheDefaults.CLEANUP_BATCH_SIZE
    track_memory: bool = False

    def __post_init__(self):
        if self.max_size < 1:
            raise ConfigurationError(
                f"max_size must be at least 1, got: {self.max_size}",
                details={"field": "max_size", "value": self.max_size},
            )
        if self.default_ttl < 0:
            raise ConfigurationError(
                f"default_ttl cannot be negative, got: {self.default_ttl}",
                details={"field": "default_ttl", "value": self.default_ttl},
            )
        if self.cleanup_interval < 0:
            raise ConfigurationError(
                f"cleanup_interval cannot be negative, got: {self.cleanup_interval}",
                details={"field": "cleanup_interval", "value": self.cleanup_interval},
            )
        if self.cleanup_batch_size < 1:
            raise ConfigurationError(
                f"cleanup_batch_size must be at least 1, got: {self.cleanup_batch_size}",
                details={"field": "cleanup_batch_size", "value": self.cleanup_batch_size},
            )
