"""CRUD operations for the inventory database."""

from inventory.app.db.crud.item import ItemStore

__all__ = ["ItemStore"]
