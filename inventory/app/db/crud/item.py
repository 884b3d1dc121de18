"""Item CRUD operations.

``ItemStore`` is the durable side of the cache-aside pair. Every mutation
commits before returning, so callers may rely on the write being durable
once the coroutine completes. "Not found" is reported as ``None`` / ``0``;
database failures are raised as ``ItemStoreError``.
"""

import uuid
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from inventory.app.core.logging import get_log_context, get_logger
from inventory.app.db.models import Item
from inventory.app.exceptions import ItemStoreError
from inventory.app.services.models import ItemFields, ItemListQuery

logger = get_logger(__name__)


class ItemStore:
    """Durable item store backed by an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find(self, item_id: str) -> Optional[Item]:
        """Get an item by ID.

        Returns:
            Item if found, None otherwise
        """
        try:
            result = await self._session.execute(
                select(Item).where(Item.id == item_id)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._failure("find", item_id) from e

    async def create(self, fields: ItemFields) -> Item:
        """Insert a new item under a freshly generated identifier."""
        item = Item(id=str(uuid.uuid4()), **fields.model_dump())
        try:
            self._session.add(item)
            await self._session.commit()
            await self._session.refresh(item)
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise self._failure("create", item.id) from e
        return item

    async def save(self, item_id: str, fields: ItemFields) -> Optional[Item]:
        """Replace all writable fields of an existing item.

        Returns:
            The updated item, or None if no item has this ID
        """
        item = await self.find(item_id)
        if item is None:
            return None
        try:
            for key, value in fields.model_dump().items():
                setattr(item, key, value)
            await self._session.commit()
            await self._session.refresh(item)
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise self._failure("save", item_id) from e
        return item

    async def delete(self, item_id: str) -> int:
        """Delete an item by ID.

        Returns:
            Number of rows deleted (0 when the item did not exist)
        """
        try:
            result = await self._session.execute(
                delete(Item).where(Item.id == item_id)
            )
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise self._failure("delete", item_id) from e
        return result.rowcount

    async def list(self, query: ItemListQuery) -> Tuple[List[Item], int]:
        """Get one page of items and the total number of matches."""
        stmt = select(Item)
        if query.min_stock is not None:
            stmt = stmt.where(Item.stock >= query.min_stock)
        if query.name:
            stmt = stmt.where(func.lower(Item.name).contains(query.name.lower()))

        column = getattr(Item, query.sort_by)
        order = column.desc() if query.sort_order == "desc" else column.asc()
        offset = (query.page - 1) * query.page_size

        try:
            total = await self._session.scalar(
                select(func.count()).select_from(stmt.subquery())
            )
            result = await self._session.execute(
                stmt.order_by(order, Item.id).limit(query.page_size).offset(offset)
            )
        except SQLAlchemyError as e:
            raise self._failure("list", None) from e
        return list(result.scalars().all()), total or 0

    async def count(self) -> int:
        try:
            return await self._session.scalar(select(func.count(Item.id))) or 0
        except SQLAlchemyError as e:
            raise self._failure("count", None) from e

    def _failure(self, operation: str, item_id: Optional[str]) -> ItemStoreError:
        logger.error(
            f"Item store {operation} failed",
            exc_info=True,
            extra=get_log_context(item_id=item_id, operation=operation),
        )
        return ItemStoreError(operation)
