"""Tests for CacheManager."""

import asyncio
from datetime import timedelta

import pytest

from reviewquest.models.quest import QuestState, QuestType
from reviewquest.services.cache import CacheManager


class TestCacheManager:
    """Tests for get/set/clear semantics."""

    @pytest.mark.asyncio
    async def test_set_then_get(self, cache: CacheManager) -> None:
        await cache.set("quests:1:20:", {"quests": []})

        result = await cache.get("quests:1:20:")

        assert result is not None
        assert result.data == {"quests": []}

    @pytest.mark.asyncio
    async def test_missing_key(self, cache: CacheManager) -> None:
        assert await cache.get("nope") is None

    @pytest.mark.asyncio
    async def test_cached_none_is_a_hit(self, cache: CacheManager) -> None:
        await cache.set("empty", None)

        result = await cache.get("empty")

        assert result is not None
        assert result.data is None

    @pytest.mark.asyncio
    async def test_set_overwrites(self, cache: CacheManager) -> None:
        await cache.set("key", 1)
        await cache.set("key", 2)

        assert (await cache.get("key")).data == 2
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_clear_all(self, cache: CacheManager) -> None:
        await cache.set("a", 1)
        await cache.set("b", 2)

        await cache.clear()

        assert await cache.get("a") is None
        assert await cache.get("b") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_clear_single_key(self, cache: CacheManager) -> None:
        await cache.set("a", 1)
        await cache.set("b", 2)

        await cache.clear("a")
        await cache.clear("missing")

        assert await cache.get("a") is None
        assert (await cache.get("b")).data == 2

    @pytest.mark.asyncio
    async def test_prefix_isolates_keys(self) -> None:
        cache = CacheManager(prefix="test:")
        await cache.set("key", "value")

        assert (await cache.get("key")).data == "value"
        await cache.clear("key")
        assert len(cache) == 0


class TestExpiry:
    @pytest.mark.asyncio
    async def test_entry_without_ttl_never_expires(self, cache: CacheManager) -> None:
        await cache.set("key", "value")
        await asyncio.sleep(0.01)

        assert await cache.get("key") is not None

    @pytest.mark.asyncio
    async def test_expired_entry_is_a_miss(self, cache: CacheManager) -> None:
        await cache.set("key", "value", ttl=timedelta(milliseconds=1))
        await asyncio.sleep(0.01)

        assert await cache.get("key") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_default_ttl_applies(self) -> None:
        cache = CacheManager(default_ttl=timedelta(milliseconds=1))
        await cache.set("key", "value")
        await asyncio.sleep(0.01)

        assert await cache.get("key") is None

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, cache: CacheManager) -> None:
        await cache.set("old", 1, ttl=timedelta(milliseconds=1))
        await cache.set("fresh", 2)
        await asyncio.sleep(0.01)

        assert await cache.cleanup_expired() == 1
        assert len(cache) == 1


class TestEviction:
    @pytest.mark.asyncio
    async def test_oldest_entry_is_evicted(self) -> None:
        cache = CacheManager(max_size=2)
        await cache.set("a", 1)
        await cache.set("b", 2)
        await cache.set("c", 3)

        assert len(cache) == 2
        assert await cache.get("a") is None
        assert (await cache.get("c")).data == 3
        assert cache.get_stats().evictions == 1

    @pytest.mark.asyncio
    async def test_expired_entries_go_first(self) -> None:
        cache = CacheManager(max_size=2)
        await cache.set("keep", 1)
        await cache.set("stale", 2, ttl=timedelta(milliseconds=1))
        await asyncio.sleep(0.01)

        await cache.set("new", 3)

        assert (await cache.get("keep")).data == 1
        assert cache.get_stats().evictions == 0

    @pytest.mark.asyncio
    async def test_overwrite_at_capacity_does_not_evict(self) -> None:
        cache = CacheManager(max_size=2)
        await cache.set("a", 1)
        await cache.set("b", 2)
        await cache.set("a", 10)

        assert (await cache.get("b")).data == 2
        assert cache.get_stats().evictions == 0


class TestBuildKey:
    def test_no_filters(self) -> None:
        assert CacheManager.build_key("quests", 1, limit=20) == "quests:1:20:"

    def test_filters_sorted_and_empty_dropped(self) -> None:
        key = CacheManager.build_key(
            "quests",
            2,
            {"type": QuestType.BUG_FIX, "search": "", "state": None, "priority": "HIGH"},
            limit=20,
        )
        assert key == "quests:2:20:priority=HIGH|type=BUG_FIX"

    def test_equivalent_queries_share_a_key(self) -> None:
        first = CacheManager.build_key("quests", 1, {"state": QuestState.OPEN, "a": 1})
        second = CacheManager.build_key("quests", 1, {"a": "1", "state": "OPEN"})
        assert first == second

    def test_limit_distinguishes_pages(self) -> None:
        assert CacheManager.build_key("quests", 1, limit=20) != CacheManager.build_key(
            "quests", 1, limit=1
        )


class TestStats:
    @pytest.mark.asyncio
    async def test_hit_rate(self) -> None:
        cache = CacheManager(max_size=10)
        await cache.set("key", "value")
        await cache.get("key")
        await cache.get("missing")

        stats = cache.get_stats()

        assert stats.hits == 1
        assert stats.misses == 1
        assert stats.size == 1
        assert stats.max_size == 10
        assert stats.to_dict()["hit_rate"] == "50.00%"

    def test_empty_hit_rate(self, cache: CacheManager) -> None:
        assert cache.get_stats().hit_rate == 0.0
