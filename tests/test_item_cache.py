"""Tests for the item cache and its silent degradation."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from inventory.app.core.cache import InMemoryCache, RedisCache
from inventory.app.services.item_cache import (
    ItemCache,
    NullItemCache,
    build_item_cache,
)
from inventory.app.services.models import ItemSnapshot


@pytest.fixture
def snapshot():
    return ItemSnapshot(id="1", name="Laptop", stock=10, price=Decimal("999.99"))


def failing_backend(error=None):
    backend = AsyncMock(spec=InMemoryCache)
    err = error or RedisConnectionError("Connection refused")
    backend.get.side_effect = err
    backend.set.side_effect = err
    backend.delete.side_effect = err
    return backend


class TestItemCache:
    """Round trip and key handling."""

    @pytest.mark.asyncio
    async def test_set_then_get_returns_value(self, item_cache, snapshot):
        await item_cache.set("1", snapshot)
        cached, found = await item_cache.get("1")
        assert found is True
        assert cached == snapshot

    @pytest.mark.asyncio
    async def test_invalidate_then_get_misses(self, item_cache, snapshot):
        await item_cache.set("1", snapshot)
        await item_cache.invalidate("1")
        cached, found = await item_cache.get("1")
        assert found is False
        assert cached is None

    @pytest.mark.asyncio
    async def test_invalidate_absent_entry_is_noop(self, item_cache):
        await item_cache.invalidate("missing")
        assert await item_cache.get("missing") == (None, False)

    @pytest.mark.asyncio
    async def test_stored_bytes_match_last_set(self, item_cache, backend, snapshot):
        await item_cache.set("1", snapshot)
        newer = snapshot.model_copy(update={"stock": 3})
        await item_cache.set("1", newer)
        assert await backend.get("item:1") == newer.to_bytes()

    @pytest.mark.asyncio
    async def test_key_prefix(self, backend, snapshot):
        cache = ItemCache(backend, key_prefix="shop")
        await cache.set("abc", snapshot)
        assert cache.make_key("abc") == "shop:abc"
        assert await backend.get("shop:abc") is not None

    @pytest.mark.asyncio
    async def test_price_survives_round_trip(self, item_cache, snapshot):
        await item_cache.set("1", snapshot)
        cached, _ = await item_cache.get("1")
        assert cached.price == Decimal("999.99")


class TestItemCacheCorruption:
    """Undecodable entries are misses, never errors."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [b"not json", b'{"id": "1"}', b"\xff\xfe\x00", b'{"id": "1", "name": "x", "stock": "many", "price": 1}'],
    )
    async def test_corrupted_entry_is_a_miss(self, item_cache, backend, payload):
        await backend.set("item:1", payload)
        assert await item_cache.get("1") == (None, False)


class TestItemCacheUnavailable:
    """Backend failures degrade to miss / no-op."""

    @pytest.mark.asyncio
    async def test_get_degrades_to_miss(self):
        cache = ItemCache(failing_backend())
        assert await cache.get("1") == (None, False)

    @pytest.mark.asyncio
    async def test_set_does_not_raise(self, snapshot):
        cache = ItemCache(failing_backend())
        await cache.set("1", snapshot)

    @pytest.mark.asyncio
    async def test_invalidate_does_not_raise(self):
        cache = ItemCache(failing_backend())
        await cache.invalidate("1")

    @pytest.mark.asyncio
    async def test_os_error_is_absorbed(self, snapshot):
        cache = ItemCache(failing_backend(ConnectionRefusedError("refused")))
        await cache.set("1", snapshot)
        assert await cache.get("1") == (None, False)

    @pytest.mark.asyncio
    async def test_unreachable_redis_is_a_miss(self, snapshot):
        client = AsyncMock()
        client.get.side_effect = RedisConnectionError("Error 111 connecting to localhost:6379")
        client.set.side_effect = RedisConnectionError("Error 111 connecting to localhost:6379")
        cache = ItemCache(RedisCache("redis://localhost:6379/0", client=client))
        await cache.set("1", snapshot)
        assert await cache.get("1") == (None, False)


class TestNullItemCache:
    """The disabled cache behaves as a permanent miss."""

    @pytest.mark.asyncio
    async def test_always_misses(self, snapshot):
        cache = NullItemCache()
        await cache.set("1", snapshot)
        assert await cache.get("1") == (None, False)
        await cache.invalidate("1")


class TestBuildItemCache:

    def test_disabled_returns_null_cache(self):
        assert isinstance(build_item_cache(False, InMemoryCache()), NullItemCache)

    def test_enabled_wraps_backend(self):
        backend = InMemoryCache()
        cache = build_item_cache(True, backend, key_prefix="item")
        assert isinstance(cache, ItemCache)
        assert cache.backend is backend
