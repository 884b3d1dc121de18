"""Cache abstraction layer for the inventory service.

Provides a pluggable key-value backend with in-memory and Redis
implementations. Backends raise on failure; absorbing failures is the job
of the caller (see ``inventory.app.services.item_cache``).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import asyncio
import time
from typing import Any

import redis.asyncio as aioredis


@dataclass
class _CacheEntry:
    """Internal cache entry with optional TTL tracking."""

    value: bytes
    expires_at: float | None = None

    def is_expired(self) -> bool:
        """Check if the entry has expired."""
        if self.expires_at is None:
            return False
        return time.time() > self.expires_at


class CacheBackend(ABC):
    """Abstract base class for cache backends.

    All cache implementations must inherit from this class and implement
    the abstract methods.
    """

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Retrieve a value from the cache.

        Args:
            key: The cache key to look up.

        Returns:
            The cached value as bytes, or None if not found or expired.
        """

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        """Store a value in the cache.

        Args:
            key: The cache key.
            value: The value to store (as bytes).
            ttl: Time-to-live in seconds. None or <= 0 means no expiry.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a value from the cache. Missing keys are ignored."""

    async def close(self) -> None:
        """Release backend resources."""


class InMemoryCache(CacheBackend):
    """In-memory cache implementation.

    Stores all data in a Python dictionary. Not distributed; data is lost
    when the process restarts.
    """

    def __init__(self) -> None:
        self._data: dict[str, _CacheEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> bytes | None:
        async with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            if entry.is_expired():
                del self._data[key]
                return None
            return entry.value

    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        async with self._lock:
            expires_at = time.time() + ttl if ttl and ttl > 0 else None
            self._data[key] = _CacheEntry(value=value, expires_at=expires_at)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)


class RedisCache(CacheBackend):
    """Redis-based cache implementation.

    The connection is created lazily on first use, so constructing the
    cache never fails even when Redis is down.

    Example:
        >>> cache = RedisCache("redis://localhost:6379/0")
        >>> await cache.set("item:42", b"{...}")
    """

    def __init__(
        self,
        redis_url: str,
        socket_timeout: float | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., "redis://localhost:6379/0")
            socket_timeout: Per-operation socket timeout in seconds
            client: Optional pre-built client (used by tests)
        """
        self._redis_url = redis_url
        self._socket_timeout = socket_timeout
        self._redis = client

    def _get_client(self) -> Any:
        if self._redis is None:
            self._redis = aioredis.from_url(
                self._redis_url,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._socket_timeout,
            )
        return self._redis

    async def get(self, key: str) -> bytes | None:
        return await self._get_client().get(key)

    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        client = self._get_client()
        if ttl and ttl > 0:
            await client.setex(key, ttl, value)
        else:
            await client.set(key, value)

    async def delete(self, key: str) -> None:
        await self._get_client().delete(key)

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


def get_cache_backend(
    backend: str | None = None,
    redis_url: str | None = None,
) -> CacheBackend:
    """Create a cache backend based on configuration.

    Args:
        backend: Cache backend to use ('memory', 'redis', or None for auto).
            When None, checks settings.redis_enabled.
        redis_url: Redis connection URL. If not provided, uses settings.redis_url.

    Returns:
        A CacheBackend instance (InMemoryCache or RedisCache).
    """
    # Import settings here to avoid circular imports
    from inventory.app.core.config import settings

    if backend == "redis":
        use_redis = True
    elif backend == "memory":
        use_redis = False
    else:
        use_redis = settings.redis_enabled

    if use_redis:
        return RedisCache(
            redis_url or settings.redis_url,
            socket_timeout=settings.redis_socket_timeout,
        )
    return InMemoryCache()
