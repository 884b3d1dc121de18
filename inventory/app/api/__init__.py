"""API endpoints package for the inventory service."""

from inventory.app.api.auth import router as auth_router
from inventory.app.api.inventory import router as inventory_router

__all__ = [
    "auth_router",
    "inventory_router",
]
