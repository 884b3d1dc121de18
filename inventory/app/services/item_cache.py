"""Side cache of item snapshots keyed by item ID.

The cache is a pure performance optimisation. Every backend failure is
logged and absorbed here: reads degrade to a miss, writes and invalidations
to a no-op. Entries never expire; they live until invalidated.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

from pydantic import ValidationError
from redis.exceptions import RedisError

from inventory.app.core.cache import CacheBackend
from inventory.app.core.logging import get_log_context, get_logger
from inventory.app.services.models import ItemSnapshot

logger = get_logger(__name__)

# Raised by backends when the store is unreachable or slow
BACKEND_ERRORS = (RedisError, OSError, TimeoutError)


class BaseItemCache(ABC):
    """Capability interface used by ItemAccessor."""

    @abstractmethod
    async def get(self, item_id: str) -> Tuple[Optional[ItemSnapshot], bool]:
        """Return ``(snapshot, True)`` on a hit, ``(None, False)`` otherwise."""

    @abstractmethod
    async def set(self, item_id: str, snapshot: ItemSnapshot) -> None:
        """Store a snapshot, best effort."""

    @abstractmethod
    async def invalidate(self, item_id: str) -> None:
        """Drop the entry for ``item_id`` if present."""

    async def close(self) -> None:
        """Release backend resources."""


class NullItemCache(BaseItemCache):
    """Cache that never holds anything. Used when caching is disabled."""

    async def get(self, item_id: str) -> Tuple[Optional[ItemSnapshot], bool]:
        return None, False

    async def set(self, item_id: str, snapshot: ItemSnapshot) -> None:
        return None

    async def invalidate(self, item_id: str) -> None:
        return None


class ItemCache(BaseItemCache):
    """Item cache over a key-value ``CacheBackend``.

    Cache key format: {prefix}:{item_id}
    """

    def __init__(self, backend: CacheBackend, key_prefix: str = "item") -> None:
        self._backend = backend
        self._key_prefix = key_prefix

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    def make_key(self, item_id: str) -> str:
        return f"{self._key_prefix}:{item_id}"

    async def get(self, item_id: str) -> Tuple[Optional[ItemSnapshot], bool]:
        key = self.make_key(item_id)
        try:
            data = await self._backend.get(key)
        except BACKEND_ERRORS as e:
            self._log_degraded("get", item_id, e)
            return None, False
        except Exception:
            logger.exception(
                "Unexpected item cache error on get",
                extra=get_log_context(item_id=item_id),
            )
            return None, False

        if data is None:
            return None, False

        try:
            return ItemSnapshot.from_bytes(data), True
        except (ValidationError, ValueError, UnicodeDecodeError):
            # Corrupted entry, treat as miss
            logger.warning(
                "Discarding undecodable item cache entry",
                extra=get_log_context(item_id=item_id),
            )
            return None, False

    async def set(self, item_id: str, snapshot: ItemSnapshot) -> None:
        try:
            await self._backend.set(self.make_key(item_id), snapshot.to_bytes())
        except BACKEND_ERRORS as e:
            self._log_degraded("set", item_id, e)
        except Exception:
            logger.exception(
                "Unexpected item cache error on set",
                extra=get_log_context(item_id=item_id),
            )

    async def invalidate(self, item_id: str) -> None:
        try:
            await self._backend.delete(self.make_key(item_id))
        except BACKEND_ERRORS as e:
            self._log_degraded("invalidate", item_id, e)
        except Exception:
            logger.exception(
                "Unexpected item cache error on invalidate",
                extra=get_log_context(item_id=item_id),
            )

    async def close(self) -> None:
        try:
            await self._backend.close()
        except BACKEND_ERRORS as e:
            logger.warning(f"Failed to close item cache backend: {e}")

    def _log_degraded(self, operation: str, item_id: str, error: Exception) -> None:
        logger.warning(
            f"Item cache {operation} failed, continuing without cache: {error}",
            extra=get_log_context(item_id=item_id, operation=operation),
        )


def build_item_cache(
    enabled: bool,
    backend: Optional[CacheBackend] = None,
    key_prefix: str = "item",
) -> BaseItemCache:
    """Create the item cache for the application.

    Args:
        enabled: When False a NullItemCache is returned
        backend: Key-value backend, required when enabled
        key_prefix: Prefix for cache keys
    """
    if not enabled or backend is None:
        logger.info("Item cache disabled")
        return NullItemCache()
    logger.info(f"Item cache enabled ({type(backend).__name__})")
    return ItemCache(backend, key_prefix=key_prefix)
