"""Database package for the inventory service.

This package provides:
- The Item model
- Asynchronous engine and session management
- The durable item store
- FastAPI dependency injection support
"""

from inventory.app.db.base import Base
from inventory.app.db.models import Item
from inventory.app.db.async_session import (
    build_async_engine,
    build_session_maker,
    close_async_engine,
    get_db,
)
from inventory.app.db.dependencies import SessionDep
from inventory.app.db.crud import ItemStore

__all__ = [
    "Base",
    "Item",
    "build_async_engine",
    "build_session_maker",
    "close_async_engine",
    "get_db",
    "SessionDep",
    "ItemStore",
]
