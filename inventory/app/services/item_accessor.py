"""Cache-aside access to items.

Reads consult the cache first and populate it on a miss. Mutations always
write the durable store first and only then invalidate the cache entry; an
update never writes its payload into the cache. If the store write fails
the cache is left untouched and the error propagates.

Two concurrent updates of one item can interleave so that a re-populating
read lands after the other update's invalidation, leaving a stale entry
until the next mutation of that item. The store itself stays correct.
"""

from inventory.app.core.logging import get_log_context, get_logger
from inventory.app.db.crud.item import ItemStore
from inventory.app.exceptions import ItemNotFoundError
from inventory.app.services.item_cache import BaseItemCache
from inventory.app.services.models import (
    ItemCreate,
    ItemListQuery,
    ItemPage,
    ItemSnapshot,
    ItemUpdate,
)

logger = get_logger(__name__)


class ItemAccessor:
    """Composes the item cache with the durable item store."""

    def __init__(self, store: ItemStore, cache: BaseItemCache) -> None:
        self._store = store
        self._cache = cache

    async def get_item(self, item_id: str) -> ItemSnapshot:
        """Read an item, served from cache when possible.

        Raises:
            ItemNotFoundError: If the store has no such item (not cached)
            ItemStoreError: If the store read fails
        """
        snapshot, found = await self._cache.get(item_id)
        if found:
            logger.debug("Item cache hit", extra=get_log_context(item_id=item_id))
            return snapshot

        item = await self._store.find(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)

        snapshot = ItemSnapshot.model_validate(item)
        await self._cache.set(item_id, snapshot)
        return snapshot

    async def list_items(self, query: ItemListQuery) -> ItemPage:
        """List items straight from the store."""
        items, total = await self._store.list(query)
        return ItemPage.build(
            [ItemSnapshot.model_validate(item) for item in items], total, query
        )

    async def create_item(self, data: ItemCreate) -> ItemSnapshot:
        """Insert a new item. The cache is filled by the first read."""
        item = await self._store.create(data)
        logger.info("Item created", extra=get_log_context(item_id=item.id))
        return ItemSnapshot.model_validate(item)

    async def ensure_exists(self, item_id: str) -> None:
        """Check the store, bypassing the cache.

        Raises:
            ItemNotFoundError: If the store has no such item
        """
        if await self._store.find(item_id) is None:
            raise ItemNotFoundError(item_id)

    async def update_item(self, item_id: str, data: ItemUpdate) -> ItemSnapshot:
        """Replace an item in the store, then invalidate its cache entry.

        Raises:
            ItemNotFoundError: If the store has no such item
        """
        item = await self._store.save(item_id, data)
        if item is None:
            raise ItemNotFoundError(item_id)

        await self._cache.invalidate(item_id)
        logger.info("Item updated", extra=get_log_context(item_id=item_id))
        return ItemSnapshot.model_validate(item)

    async def delete_item(self, item_id: str) -> int:
        """Delete an item from the store, then invalidate its cache entry.

        Returns:
            Rows affected (always 1 on success)

        Raises:
            ItemNotFoundError: If nothing was deleted
        """
        rows = await self._store.delete(item_id)
        if rows == 0:
            raise ItemNotFoundError(item_id)

        await self._cache.invalidate(item_id)
        logger.info("Item deleted", extra=get_log_context(item_id=item_id))
        return rows
