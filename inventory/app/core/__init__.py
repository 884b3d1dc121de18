"""Core utilities for the inventory service."""

from inventory.app.core.cache import (
    CacheBackend,
    InMemoryCache,
    RedisCache,
    get_cache_backend,
)
from inventory.app.core.config import settings
from inventory.app.core.logging import get_logger, setup_logging

__all__ = [
    "CacheBackend",
    "InMemoryCache",
    "RedisCache",
    "get_cache_backend",
    "settings",
    "get_logger",
    "setup_logging",
]
