"""Application-wide cache wiring.

The registry builds the cache store from :class:`CacheSettings` once at
startup. Diagnostic routes and services that are not handed a store
explicitly resolve it here at call time.
"""

from logging import getLogger
from typing import Optional

from catalog_cachex.config import CacheSettings
from catalog_cachex.exceptions import StoreNotFoundError
from catalog_cachex.remote import RemoteCatalog
from catalog_cachex.services import CatalogService
from catalog_cachex.storage import BaseStorage
from catalog_cachex.store import Clock
from catalog_cachex.store import TTLCacheStore
from catalog_cachex.store import now_ms

logger = getLogger(__name__)


class StoreRegistry:
    """Holds the configured cache store and the settings it was built from."""

    def __init__(self) -> None:
        self.store: Optional[TTLCacheStore] = None
        self.settings: Optional[CacheSettings] = None

    def configure(
        self,
        storage: BaseStorage,
        settings: Optional[CacheSettings] = None,
        clock: Clock = now_ms,
    ) -> TTLCacheStore:
        """Build the store over ``storage`` and make it the default.

        Args:
            storage: Key-value storage the entries are persisted in
            settings: Cache settings; read from ``CATALOG_CACHE_*`` variables when None
            clock: Epoch milliseconds source

        Returns:
            The registered store
        """
        settings = CacheSettings.from_env() if settings is None else settings
        self.store = TTLCacheStore.from_settings(storage, settings, clock)
        self.settings = settings
        logger.info(
            "Cache store configured on <%s> with prefix <%s>",
            type(storage).__name__,
            settings.key_prefix,
        )
        return self.store

    def require(self) -> TTLCacheStore:
        """Return the configured store.

        Raises:
            StoreNotFoundError: If :meth:`configure` has not been called
        """
        if self.store is None:
            msg = "Cache store is not configured. Call configure() at startup."
            raise StoreNotFoundError(msg)
        return self.store

    def service(self, remote: RemoteCatalog, single_flight: bool = False) -> CatalogService:
        """A catalog service over the configured store and settings."""
        return CatalogService(self.require(), remote, self.settings, single_flight=single_flight)

    def reset(self) -> None:
        if self.store is not None:
            logger.info("Cache store unregistered")
        self.store = None
        self.settings = None


default_registry = StoreRegistry()
