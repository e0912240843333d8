"""Cache diagnostic routes."""

from collections.abc import Mapping
from logging import getLogger
from typing import Optional

from fastapi import FastAPI
from fastapi import HTTPException
from starlette.status import HTTP_404_NOT_FOUND
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from catalog_cachex.exceptions import StoreNotFoundError
from catalog_cachex.exceptions import UnknownCacheKeyError
from catalog_cachex.registry import default_registry
from catalog_cachex.status import DEFAULT_CACHE_KEYS
from catalog_cachex.status import CacheReport
from catalog_cachex.status import CacheStatusAggregator
from catalog_cachex.status import empty_report
from catalog_cachex.store import TTLCacheStore

logger = getLogger(__name__)


def add_routes(
    app: FastAPI,
    keys: Optional[Mapping[str, str]] = None,
    store: Optional[TTLCacheStore] = None,
    path: str = "/cache-status",
) -> None:
    """Register cache status routes on ``app``.

    Args:
        app: The FastAPI application
        keys: Display name -> logical cache key to monitor
        store: Store to inspect; resolved through the default registry per request when None
        path: Base path of the routes
    """
    monitored = dict(DEFAULT_CACHE_KEYS if keys is None else keys)

    def _aggregator() -> Optional[CacheStatusAggregator]:
        current = store if store is not None else default_registry.store
        if current is None:
            return None
        return CacheStatusAggregator(current, monitored)

    def _require_aggregator() -> CacheStatusAggregator:
        if store is not None:
            return CacheStatusAggregator(store, monitored)
        try:
            return CacheStatusAggregator(default_registry.require(), monitored)
        except StoreNotFoundError as e:
            raise HTTPException(
                status_code=HTTP_503_SERVICE_UNAVAILABLE,
                detail=str(e),
            ) from e

    @app.get(path, response_model=CacheReport)
    async def get_cache_status() -> CacheReport:
        aggregator = _aggregator()
        if aggregator is None:
            return empty_report(monitored)
        return await aggregator.refresh()

    @app.delete(path, response_model=CacheReport)
    async def clear_all_caches() -> CacheReport:
        report = await _require_aggregator().clear_all()
        logger.info("Cleared all caches via diagnostics route")
        return report

    @app.delete(f"{path}/{{name}}", response_model=CacheReport)
    async def clear_cache(name: str) -> CacheReport:
        try:
            return await _require_aggregator().clear(name)
        except UnknownCacheKeyError as e:
            raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=str(e)) from e
