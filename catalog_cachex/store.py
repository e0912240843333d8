"""Expiry-based cache store over a string key-value storage.

The store is an optimization, never a correctness dependency: persistence
faults are logged and degrade to a miss (reads) or a no-op (writes). Only
programmer errors, such as a payload that cannot be encoded or a negative
TTL, are raised to the caller.
"""

import time
from collections.abc import Callable
from logging import getLogger
from typing import Any
from typing import Optional

from catalog_cachex.codec import decode
from catalog_cachex.codec import encode
from catalog_cachex.config import CacheSettings
from catalog_cachex.exceptions import DecodeError
from catalog_cachex.storage import BaseStorage
from catalog_cachex.types import CACHE_KEY_PREFIX
from catalog_cachex.types import CacheEntry

logger = getLogger(__name__)

Clock = Callable[[], int]


def now_ms() -> int:
    """Current epoch time in milliseconds."""
    return time.time_ns() // 1_000_000


class TTLCacheStore:
    """Keyed get/put/invalidate with expiry and lazy eviction.

    Args:
        storage: The key-value storage entries are persisted in
        prefix: Namespace prepended to every logical key
        clock: Returns the current epoch time in milliseconds
    """

    def __init__(
        self,
        storage: BaseStorage,
        prefix: str = CACHE_KEY_PREFIX,
        clock: Clock = now_ms,
    ) -> None:
        if not prefix:
            msg = "Cache key prefix must not be empty"
            raise ValueError(msg)
        self.storage = storage
        self.prefix = prefix
        self.clock = clock

    @classmethod
    def from_settings(
        cls, storage: BaseStorage, settings: CacheSettings, clock: Clock = now_ms
    ) -> "TTLCacheStore":
        return cls(storage, prefix=settings.key_prefix, clock=clock)

    def _make_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def put(self, key: str, data: Any, ttl_millis: int) -> None:
        """Store ``data`` under ``key`` for ``ttl_millis`` milliseconds.

        Raises:
            ValueError: If the TTL is negative
            EncodeError: If ``data`` is not JSON serializable
        """
        if ttl_millis < 0:
            msg = f"TTL must be a non-negative number of milliseconds, got {ttl_millis}"
            raise ValueError(msg)

        timestamp = self.clock()
        raw = encode(CacheEntry(data=data, timestamp=timestamp, expiry=timestamp + ttl_millis))

        try:
            await self.storage.set_item(self._make_key(key), raw)
        except Exception:
            logger.exception("Failed to cache <%s>", key)
            return
        logger.debug("Cached <%s> for %d ms", key, ttl_millis)

    async def _read(self, key: str) -> Optional[CacheEntry[Any]]:
        """Fetch and decode an entry, purging it when it is corrupt."""
        storage_key = self._make_key(key)
        try:
            raw = await self.storage.get_item(storage_key)
        except Exception:
            logger.exception("Failed to read cache entry <%s>", key)
            return None

        if raw is None:
            return None

        try:
            return decode(raw)
        except DecodeError as e:
            logger.warning("Discarding corrupt cache entry <%s>: %s", key, e)
            await self._remove_quietly(storage_key)
            return None

    async def _remove_quietly(self, storage_key: str) -> None:
        try:
            await self.storage.remove_item(storage_key)
        except Exception as e:
            logger.warning("Failed to remove cache entry <%s>: %s", storage_key, e)

    async def get(self, key: str) -> Any:
        """Return cached data, or None on a miss.

        Absent, corrupt and expired entries are all misses. An expired entry
        is deleted as a side effect.
        """
        entry = await self._read(key)
        if entry is None:
            logger.debug("Cache miss <%s>", key)
            return None

        if not entry.is_valid(self.clock()):
            logger.debug("Cache expired <%s>", key)
            await self._remove_quietly(self._make_key(key))
            return None

        logger.debug("Cache hit <%s>", key)
        return entry.data

    async def peek(self, key: str) -> Optional[CacheEntry[Any]]:
        """Return the stored entry even if expired, without any side effect."""
        try:
            raw = await self.storage.get_item(self._make_key(key))
        except Exception:
            logger.exception("Failed to read cache entry <%s>", key)
            return None

        if raw is None:
            return None

        try:
            return decode(raw)
        except DecodeError:
            return None

    async def invalidate(self, key: str) -> None:
        """Remove a single entry. Missing entries are ignored."""
        try:
            await self.storage.remove_item(self._make_key(key))
        except Exception:
            logger.exception("Failed to invalidate cache entry <%s>", key)
            return
        logger.info("Invalidated cache entry <%s>", key)

    async def invalidate_all(self) -> int:
        """Remove every namespaced entry and leave all other keys alone.

        Returns:
            The number of entries targeted for removal, 0 on failure
        """
        try:
            keys = [k for k in await self.storage.get_all_keys() if k.startswith(self.prefix)]
            if keys:
                await self.storage.multi_remove(keys)
        except Exception:
            logger.exception("Failed to clear cache entries with prefix <%s>", self.prefix)
            return 0

        logger.info("Cleared %d cache entries", len(keys))
        return len(keys)

    async def age_seconds(self, key: str) -> Optional[int]:
        """Seconds since the entry was written, expired or not."""
        entry = await self.peek(key)
        if entry is None:
            return None
        return entry.age_seconds(self.clock())

    async def keys(self) -> list[str]:
        """Logical keys currently persisted under the namespace."""
        try:
            all_keys = await self.storage.get_all_keys()
        except Exception:
            logger.exception("Failed to list cache entries")
            return []
        return sorted(k[len(self.prefix) :] for k in all_keys if k.startswith(self.prefix))
