"""Tests for TTLStrategy."""

import asyncio

import pytest

from neo_rbac.core.exceptions import ConfigurationError
from neo_rbac.features.cache.entities.config import TTLStrategyOptions
from neo_rbac.features.cache.entities.events import TTLRemaining, TTLStatus
from neo_rbac.features.cache.strategies.ttl_strategy import TTLStrategy


@pytest.fixture
def ttl(clock):
    return TTLStrategy(TTLStrategyOptions(cleanup_interval=0), clock=clock)


class TestExpiry:
    """Test cases for expiry tracking."""

    def test_live_immediately_after_set(self, ttl):
        ttl.set("k", 1)

        assert not ttl.is_expired("k")
        assert ttl.has("k")

    def test_expiry_is_strictly_after_deadline(self, ttl, clock):
        ttl.set("k", 1)

        clock.advance(1)
        assert not ttl.is_expired("k")

        clock.advance(0.001)
        assert ttl.is_expired("k")

    def test_untracked_key_is_expired(self, ttl):
        assert ttl.is_expired("missing")

    def test_sliding_touch_renews(self, ttl, clock):
        ttl.set("k", 1, sliding=True)
        ttl.set("plain", 1, sliding=True)

        clock.advance(0.5)
        assert ttl.touch("k")
        clock.advance(0.8)

        assert not ttl.is_expired("k")
        assert ttl.is_expired("plain")

    def test_touch_non_sliding_keeps_expiry(self, ttl, clock):
        ttl.set("k", 1)
        expires_at = ttl.get_expires_at("k")

        clock.advance(0.5)

        assert ttl.touch("k")
        assert ttl.get_expires_at("k") == expires_at
        assert not ttl.touch("missing")

    def test_update_ttl_is_unconditional(self, ttl, clock):
        ttl.set("k", 1)
        clock.advance(0.5)

        assert ttl.update_ttl("k", 10)
        assert ttl.get_expires_at("k") == 10.5
        assert not ttl.update_ttl("missing", 10)

    def test_set_replaces_tracking(self, ttl, clock):
        ttl.set("k", 1)
        ttl.set("k", 10)
        clock.advance(2)

        assert not ttl.is_expired("k")
        assert ttl.cleanup() == []

    def test_defaults_from_options(self, clock):
        ttl = TTLStrategy(
            TTLStrategyOptions(default_ttl=5, cleanup_interval=0, default_sliding=True),
            clock=clock,
        )
        ttl.set("k")
        clock.advance(4)
        ttl.touch("k")
        clock.advance(4)

        assert not ttl.is_expired("k")

    def test_get_expired_keys(self, ttl, clock):
        ttl.set("short", 1)
        ttl.set("long", 10)
        clock.advance(2)

        assert ttl.get_expired_keys() == ["short"]

    def test_remove_and_clear(self, ttl):
        ttl.set("a", 1)
        ttl.set("b", 1)

        assert ttl.remove("a")
        assert not ttl.remove("a")
        ttl.clear()
        assert ttl.size() == 0
        assert "b" not in ttl

    def test_negative_ttl_rejected(self, ttl):
        with pytest.raises(ConfigurationError):
            ttl.set("k", -1)

        assert not ttl.has("k")

    def test_negative_update_rejected(self, ttl):
        ttl.set("k", 10)

        with pytest.raises(ConfigurationError):
            ttl.update_ttl("k", -5)

        assert ttl.get_ttl("k") == 10


class TestRemaining:
    """Test cases for remaining lifetime lookups."""

    def test_get_ttl_rounds_up(self, ttl, clock):
        ttl.set("k", 10)
        assert ttl.get_ttl("k") == 10

        clock.advance(2.5)
        assert ttl.get_ttl("k") == 8

    def test_get_ttl_missing_or_expired(self, ttl, clock):
        ttl.set("k", 1)
        clock.advance(2)

        assert ttl.get_ttl("k") == -2
        assert ttl.get_ttl("missing") == -2

    def test_remaining_is_tagged(self, ttl):
        ttl.set("k", 3)

        assert ttl.remaining("k") == TTLRemaining.expires(3)
        assert ttl.remaining("missing").status is TTLStatus.NOT_FOUND
        assert not ttl.remaining("missing").exists

    def test_tagged_codes(self):
        assert TTLRemaining.expires(7).to_code() == 7
        assert TTLRemaining.no_expiry().to_code() == -1
        assert TTLRemaining.not_found().to_code() == -2


class TestCleanup:
    """Test cases for batched cleanup."""

    def test_cleanup_expires_due_keys_in_order(self, ttl, clock):
        events = []
        ttl.on_expiration(events.append)
        ttl.set("b", 2)
        ttl.set("a", 1)
        ttl.set("c", 5)
        clock.advance(2)

        assert ttl.cleanup() == ["a", "b"]
        assert [(event.key, event.expired_at, event.ttl_ms) for event in events] == [
            ("a", 1, 1000), ("b", 2, 2000),
        ]
        assert ttl.size() == 1
        assert ttl.expirations == 2

    def test_stale_tuple_is_discarded(self, ttl, clock):
        events = []
        ttl.on_expiration(events.append)
        ttl.set("k", 1)
        ttl.update_ttl("k", 5)
        clock.advance(2)

        assert ttl.cleanup() == []
        assert events == []
        assert ttl.has("k")

        clock.advance(4)
        assert ttl.cleanup() == ["k"]

    def test_stale_tuple_does_not_count_toward_batch(self, ttl, clock):
        ttl.set("k", 1)
        ttl.update_ttl("k", 10)
        ttl.set("a", 1.5)
        clock.advance(2)

        assert ttl.cleanup(max_count=1) == ["a"]

    def test_batch_limit(self, ttl, clock):
        for key in ("a", "b", "c"):
            ttl.set(key, 1)
        clock.advance(2)

        assert len(ttl.cleanup(max_count=2)) == 2
        assert len(ttl.cleanup()) == 1
        assert ttl.size() == 0

    def test_callback_errors_do_not_stop_cleanup(self, ttl, clock):
        received = []

        def broken(event):
            raise RuntimeError("listener failed")

        ttl.on_expiration(broken)
        ttl.on_expiration(received.append)
        ttl.set("k", 1)
        clock.advance(2)

        assert ttl.cleanup() == ["k"]
        assert [event.key for event in received] == ["k"]

    def test_unsubscribe(self, ttl, clock):
        received = []
        unsubscribe = ttl.on_expiration(received.append)
        unsubscribe()
        ttl.set("k", 1)
        clock.advance(2)

        ttl.cleanup()

        assert received == []


class TestBackgroundCleanup:
    """Test cases for the background cleanup task."""

    def test_start_requires_running_loop(self, clock):
        ttl = TTLStrategy(TTLStrategyOptions(cleanup_interval=1), clock=clock)

        assert not ttl.is_running
        with pytest.raises(RuntimeError):
            ttl.start()

    @pytest.mark.asyncio
    async def test_starts_inside_running_loop(self, clock):
        ttl = TTLStrategy(TTLStrategyOptions(cleanup_interval=0.01), clock=clock)
        ttl.set("k", 1)
        clock.advance(2)

        assert ttl.is_running
        for _ in range(100):
            if not ttl.has("k"):
                break
            await asyncio.sleep(0.01)

        assert not ttl.has("k")

        ttl.stop()
        await asyncio.sleep(0)
        assert not ttl.is_running

    @pytest.mark.asyncio
    async def test_zero_interval_never_starts(self, ttl):
        ttl.start()

        assert not ttl.is_running


class TestTTLStrategyOptions:
    """Test cases for option validation."""

    @pytest.mark.parametrize("kwargs", [
        {"default_ttl": 0},
        {"cleanup_interval": -1},
        {"cleanup_batch_size": 0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            TTLStrategyOptions(**kwargs)
