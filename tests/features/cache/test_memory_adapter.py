"""Tests for MemoryCacheAdapter."""

from unittest.mock import AsyncMock

import pytest

from neo_rbac.core.exceptions import (
    CacheError,
    CacheErrorCode,
    CacheKeyError,
    CacheTimeoutError,
    ConfigurationError,
)
from neo_rbac.features.cache.adapters.memory_adapter import MemoryCacheAdapter, pattern_to_regex
from neo_rbac.features.cache.entities.config import MemoryCacheOptions
from neo_rbac.features.cache.entities.keys import CacheKeyGenerator
from neo_rbac.features.cache.entities.protocols import RBACCache


@pytest.fixture
def small_options():
    return MemoryCacheOptions(max_size=2, default_ttl=300, cleanup_interval=0)


class TestLifecycle:
    """Test cases for initialization and health."""

    @pytest.mark.asyncio
    async def test_operations_require_initialize(self, clock):
        cache = MemoryCacheAdapter(MemoryCacheOptions(cleanup_interval=0), clock=clock)

        assert not cache.is_ready()
        with pytest.raises(CacheError) as exc_info:
            await cache.get("k")

        assert exc_info.value.cache_code == CacheErrorCode.NOT_INITIALIZED

    @pytest.mark.asyncio
    async def test_health(self, memory_cache):
        assert memory_cache.is_ready()
        assert await memory_cache.health_check()

        status = await memory_cache.get_health_status()
        assert status["healthy"]
        assert status["adapter"] == "memory"

    @pytest.mark.asyncio
    async def test_shutdown_drops_entries(self, clock):
        cache = MemoryCacheAdapter(MemoryCacheOptions(cleanup_interval=0), clock=clock)
        await cache.initialize()
        await cache.set("k", "v")

        await cache.shutdown()

        assert not cache.is_ready()
        assert not await cache.health_check()

    @pytest.mark.asyncio
    async def test_satisfies_cache_protocol(self, memory_cache):
        assert isinstance(memory_cache, RBACCache)


class TestReadWrite:
    """Test cases for get/set/delete."""

    @pytest.mark.asyncio
    async def test_set_and_get(self, memory_cache):
        await memory_cache.set("k", {"roles": ["admin"]})

        assert await memory_cache.get("k") == {"roles": ["admin"]}
        assert await memory_cache.get("missing") is None
        assert await memory_cache.exists("k")

    @pytest.mark.asyncio
    async def test_invalid_key(self, memory_cache):
        with pytest.raises(CacheKeyError):
            await memory_cache.set("", "v")

    @pytest.mark.asyncio
    async def test_delete(self, memory_cache):
        await memory_cache.set("k", "v")

        assert await memory_cache.delete("k")
        assert not await memory_cache.delete("k")
        assert await memory_cache.get("k") is None

    @pytest.mark.asyncio
    async def test_get_many_and_set_many(self, memory_cache):
        await memory_cache.set_many({"a": 1, "b": 2}, ttl=60)

        assert await memory_cache.get_many(["a", "b", "c"]) == {"a": 1, "b": 2, "c": None}
        assert await memory_cache.get_ttl("a") == 60

    @pytest.mark.asyncio
    async def test_get_or_set(self, memory_cache):
        factory = AsyncMock(return_value="computed")

        assert await memory_cache.get_or_set("k", factory) == "computed"
        assert await memory_cache.get_or_set("k", factory) == "computed"
        factory.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_clear_returns_count(self, memory_cache):
        await memory_cache.set("a", 1)
        await memory_cache.set("b", 2)

        assert await memory_cache.clear() == 2
        assert await memory_cache.keys() == []

    @pytest.mark.asyncio
    async def test_keys_in_recency_order(self, memory_cache):
        await memory_cache.set("rbac:role:1", 1)
        await memory_cache.set("rbac:role:2", 2)
        await memory_cache.set("other", 3)
        await memory_cache.touch("rbac:role:1")

        assert await memory_cache.keys("rbac:**") == ["rbac:role:1", "rbac:role:2"]


class TestExpiry:
    """Test cases for TTL handling."""

    @pytest.mark.asyncio
    async def test_entry_expires(self, memory_cache, clock):
        await memory_cache.set("k", "v", ttl=10)
        clock.advance(11)

        assert await memory_cache.get("k") is None
        assert not await memory_cache.exists("k")
        assert await memory_cache.get_ttl("k") == -2

    @pytest.mark.asyncio
    async def test_default_ttl(self, memory_cache):
        await memory_cache.set("k", "v")

        assert await memory_cache.get_ttl("k") == 300

    @pytest.mark.asyncio
    async def test_zero_ttl_never_expires(self, memory_cache, clock):
        await memory_cache.set("k", "v", ttl=10)
        await memory_cache.set("k", "v", ttl=0)
        clock.advance(100_000)

        assert await memory_cache.get("k") == "v"
        assert await memory_cache.get_ttl("k") == -1

    @pytest.mark.asyncio
    async def test_refresh_ttl_on_read(self, memory_cache, clock):
        await memory_cache.set("k", "v", ttl=10)
        clock.advance(8)

        assert await memory_cache.get("k", refresh_ttl=True) == "v"
        clock.advance(8)

        assert await memory_cache.get("k") == "v"
        assert await memory_cache.get_ttl("k") == 2

    @pytest.mark.asyncio
    async def test_update_ttl(self, memory_cache, clock):
        await memory_cache.set("k", "v", ttl=10)

        assert await memory_cache.update_ttl("k", 100)
        clock.advance(50)
        assert await memory_cache.get("k") == "v"

        assert await memory_cache.update_ttl("k", 0)
        assert await memory_cache.get_ttl("k") == -1
        assert not await memory_cache.update_ttl("missing", 10)

    @pytest.mark.asyncio
    async def test_negative_ttl_rejected(self, memory_cache):
        with pytest.raises(ConfigurationError):
            await memory_cache.set("k", "v", ttl=-1)

        assert not await memory_cache.exists("k")

    @pytest.mark.asyncio
    async def test_negative_update_ttl_rejected(self, memory_cache):
        await memory_cache.set("k", "v", ttl=10)

        with pytest.raises(ConfigurationError):
            await memory_cache.update_ttl("k", -1)

        assert await memory_cache.get_ttl("k") == 10

    @pytest.mark.asyncio
    async def test_cleanup_expired_purges_tags(self, memory_cache, clock):
        await memory_cache.set("k", "v", ttl=1, tags=["role"])
        clock.advance(2)

        assert await memory_cache.cleanup_expired() == ["k"]
        assert await memory_cache.delete_by_tag("role") == 0
        assert (await memory_cache.get_metrics())["expirations"] == 1


class TestEviction:
    """Test cases for capacity eviction."""

    @pytest.mark.asyncio
    async def test_lru_eviction(self, small_options, clock):
        cache = MemoryCacheAdapter(small_options, clock=clock)
        await cache.initialize()
        await cache.set("a", 1, tags=["t"])
        await cache.set("b", 2, tags=["t"])
        await cache.get("a")

        await cache.set("c", 3)

        assert await cache.get("b") is None
        assert await cache.get("a") == 1
        assert await cache.delete_by_tag("t") == 1
        assert (await cache.get_metrics())["evictions"] == 1


class TestInvalidation:
    """Test cases for pattern and tag deletion."""

    @pytest.mark.asyncio
    async def test_delete_pattern(self, memory_cache):
        for key in ("rbac:role:1", "rbac:role:2", "rbac:user-permissions:1"):
            await memory_cache.set(key, key)

        assert await memory_cache.delete_pattern("rbac:role:*") == 2
        assert await memory_cache.keys() == ["rbac:user-permissions:1"]

    @pytest.mark.asyncio
    async def test_delete_pattern_for_role(self, memory_cache):
        keys = CacheKeyGenerator()
        await memory_cache.set(keys.for_role_hierarchy("editor"), [])
        await memory_cache.set(keys.for_role_permissions("editor"), [])
        await memory_cache.set(keys.for_role_permissions("viewer"), [])

        assert await memory_cache.delete_pattern(keys.pattern_for_role("editor")) == 2
        assert await memory_cache.exists("rbac:role-permissions:viewer")

    @pytest.mark.asyncio
    async def test_delete_by_tags(self, memory_cache):
        await memory_cache.set("a", 1, tags=["role", "role:a"])
        await memory_cache.set("b", 2, tags=["role:b"])
        await memory_cache.set("c", 3)

        assert await memory_cache.delete_by_tags(["role:a", "role:b"]) == 2
        assert await memory_cache.keys() == ["c"]

    @pytest.mark.parametrize("pattern,key,expected", [
        ("rbac:*", "rbac:role", True),
        ("rbac:*", "rbac:role:1", False),
        ("rbac:**", "rbac:role:1", True),
        ("user-?", "user-1", True),
        ("user-?", "user-12", False),
        ("a.b", "axb", False),
    ])
    def test_pattern_to_regex(self, pattern, key, expected):
        assert bool(pattern_to_regex(pattern).match(key)) is expected


class TestLocking:
    """Test cases for advisory locks."""

    @pytest.mark.asyncio
    async def test_lock_and_release(self, memory_cache):
        release = await memory_cache.lock("resource")

        assert release is not None
        assert await memory_cache.lock("resource") is None

        await release()
        assert await memory_cache.lock("resource") is not None

    @pytest.mark.asyncio
    async def test_locked_context_manager(self, memory_cache):
        async with memory_cache.locked("resource"):
            assert await memory_cache.lock("resource") is None

        assert await memory_cache.lock("resource") is not None

    @pytest.mark.asyncio
    async def test_locked_timeout(self, memory_cache):
        await memory_cache.lock("resource")

        with pytest.raises(CacheTimeoutError):
            async with memory_cache.locked("resource", timeout=0.05, retry_interval=0.01):
                pass


class TestStatistics:
    """Test cases for stats and metrics."""

    @pytest.mark.asyncio
    async def test_stats(self, memory_cache):
        await memory_cache.set("k", "v")
        await memory_cache.get("k")
        await memory_cache.get("missing")

        stats = await memory_cache.get_stats()

        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5
        assert stats["size"] == 1
        assert stats["memory_usage"] is None

    @pytest.mark.asyncio
    async def test_reset_stats(self, memory_cache):
        await memory_cache.get("missing")
        await memory_cache.reset_stats()

        assert (await memory_cache.get_stats())["misses"] == 0

    @pytest.mark.asyncio
    async def test_metrics(self, memory_cache):
        await memory_cache.set("k", "v")
        await memory_cache.delete("k")

        metrics = await memory_cache.get_metrics()

        assert metrics["set_operations"] == 1
        assert metrics["delete_operations"] == 1
        assert metrics["max_size"] == 100

    @pytest.mark.asyncio
    async def test_memory_tracking(self, clock):
        cache = MemoryCacheAdapter(
            MemoryCacheOptions(cleanup_interval=0, track_memory=True), clock=clock
        )
        await cache.initialize()
        await cache.set("k", "value")

        assert (await cache.get_stats())["memory_usage"] == len('"value"') * 2
