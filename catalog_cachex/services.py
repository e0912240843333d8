"""Read-through wrappers around the remote catalog.

Every wrapper checks the cache store first, falls back to the remote catalog
on a miss and stores the fresh result before returning it. Results are
returned as :class:`~catalog_cachex.types.Ok` or :class:`~catalog_cachex.types.Err`
values; remote failures are never masked with empty data.
"""

import asyncio
import re
from collections.abc import Awaitable
from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import Any
from typing import Optional
from typing import TypeVar

from catalog_cachex.config import CacheSettings
from catalog_cachex.exceptions import EncodeError
from catalog_cachex.exceptions import RemoteCatalogError
from catalog_cachex.remote import RemoteCatalog
from catalog_cachex.remote import Row
from catalog_cachex.store import TTLCacheStore
from catalog_cachex.types import Err
from catalog_cachex.types import LookupRecord
from catalog_cachex.types import Ok
from catalog_cachex.types import Result

T = TypeVar("T")

logger = getLogger(__name__)

_WHITESPACE = re.compile(r"\s")


def _map_organisation(row: Row) -> LookupRecord:
    return {"id": row.get("id"), "name": row.get("name") or "Unnamed", "type": row.get("type")}


def _map_builder(row: Row) -> LookupRecord:
    return {"id": row.get("id"), "name": row.get("name") or row.get("code") or "Unnamed"}


@dataclass(frozen=True)
class LookupResource:
    """How a filter lookup is queried and cached.

    Args:
        table: Remote table or view to query
        cache_key: Logical cache key the normalized records are stored under
        columns: Columns to project
        not_null: Columns that must not be NULL
        order_by: Column to order by
        mapper: Converts a row to a lookup record (default: id and name)
        static: Whether the data practically never changes (uses the long TTL)
    """

    table: str
    cache_key: str
    columns: tuple[str, ...]
    not_null: tuple[str, ...] = ()
    order_by: Optional[str] = None
    mapper: Optional[Callable[[Row], LookupRecord]] = None
    static: bool = False

    def normalize(self, rows: list[Row]) -> list[LookupRecord]:
        if self.mapper is not None:
            return [self.mapper(row) for row in rows]

        if len(self.columns) > 1:
            return [{"id": row.get("id"), "name": row.get("name")} for row in rows]

        # Single column lookups collapse to their distinct values
        column = self.columns[0]
        values = sorted({row.get(column) for row in rows if row.get(column)}, key=str)
        return [{"id": value, "name": value} for value in values]


def _single(table: str, cache_key: str, column: str) -> LookupResource:
    return LookupResource(table, cache_key, (column,), not_null=(column,))


def _named(table: str, cache_key: str, *, static: bool = False) -> LookupResource:
    return LookupResource(table, cache_key, ("id", "name"), order_by="name", static=static)


LOOKUPS: dict[str, LookupResource] = {
    "categories": _single("mobile_catalog_view", "categories", "category"),
    "photographers": _named("photographer", "photographers"),
    "locations": _named("location", "locations"),
    "organisations": LookupResource(
        "organisation",
        "organisations",
        ("id", "name", "type"),
        order_by="name",
        mapper=_map_organisation,
    ),
    "organisation_types": _single("organisation", "organisation_types", "type"),
    "active_areas": _single("mobile_catalog_view", "active_areas", "active_area"),
    "gauges": _single("mobile_catalog_view", "gauges", "gauge"),
    "collections": _named("collection", "collections"),
    "countries": _named("country", "countries", static=True),
    "routes": _named("route", "routes"),
    "corporate_bodies": _single("mobile_catalog_view", "corporate_bodies", "corporate_body"),
    "facilities": _single("mobile_catalog_view", "facilities", "facility"),
    "builders": LookupResource(
        "builder",
        "builders",
        ("id", "name", "code"),
        order_by="name",
        mapper=_map_builder,
        static=True,
    ),
}


def catalog_page_key(page: int, limit: int) -> str:
    return f"photos_page_{page}_limit_{limit}"


def category_page_key(category: str, page: int, limit: int) -> str:
    return f"category_{category.lower()}_page_{page}_limit_{limit}"


def search_page_key(query: str, page: int, limit: int) -> str:
    return f"search_{query.strip().lower()}_page_{page}_limit_{limit}"


def photo_key(image_no: str) -> str:
    return f"photo_{image_no}"


def _non_empty(data: Any) -> bool:
    return bool(data)


class CatalogService:
    """Cached access to the remote catalog.

    Args:
        store: Cache store used for lookups and listings
        remote: The authoritative catalog
        settings: TTLs and photo URL settings
        single_flight: Share one remote fetch between concurrent misses on the same key
    """

    def __init__(
        self,
        store: TTLCacheStore,
        remote: RemoteCatalog,
        settings: Optional[CacheSettings] = None,
        single_flight: bool = False,
    ) -> None:
        self.store = store
        self.remote = remote
        self.settings = settings or CacheSettings()
        self.single_flight = single_flight
        self._in_flight: dict[str, asyncio.Task[Any]] = {}

    async def fetch_through(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        ttl_millis: int,
        *,
        force_fresh: bool = False,
        use_cache: bool = True,
        cache_if: Callable[[T], bool] = lambda _: True,
    ) -> Result[T]:
        """Serve ``key`` from the cache, or from ``fetch`` on a miss.

        Args:
            key: Logical cache key
            fetch: Coroutine factory querying the remote catalog
            ttl_millis: Lifetime of a fresh entry in milliseconds
            force_fresh: Skip the cache read but still store the fresh result
            use_cache: When False, neither read nor write the cache
            cache_if: Predicate deciding whether a fetched result is worth caching

        Returns:
            ``Ok`` tagged with its source, or ``Err`` carrying the remote failure
        """
        if ttl_millis < 0:
            msg = f"TTL must be a non-negative number of milliseconds, got {ttl_millis}"
            return Err(msg, status=400)

        if use_cache and not force_fresh:
            cached = await self.store.get(key)
            if cached is not None:
                return Ok(cached, source="cache")

        def load() -> Awaitable[T]:
            return self._load(key, fetch, ttl_millis, use_cache=use_cache, cache_if=cache_if)

        try:
            if self.single_flight:
                data = await self._shared(key, load)
            else:
                data = await load()
        except RemoteCatalogError as e:
            logger.warning("Remote catalog failed for <%s>: %s", key, e)
            return Err(str(e), cause=e, status=e.status)
        except Exception as e:
            logger.exception("Unexpected failure fetching <%s>", key)
            return Err(str(e) or type(e).__name__, cause=e, status=500)

        return Ok(data, source="remote")

    async def _load(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        ttl_millis: int,
        *,
        use_cache: bool,
        cache_if: Callable[[T], bool],
    ) -> T:
        data = await fetch()
        if use_cache and cache_if(data):
            try:
                await self.store.put(key, data, ttl_millis)
            except EncodeError:
                logger.exception("Result for <%s> cannot be cached", key)
        return data

    async def _shared(self, key: str, load: Callable[[], Awaitable[T]]) -> T:
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(load())
            self._in_flight[key] = task

            def _forget(done: "asyncio.Task[Any]") -> None:
                if self._in_flight.get(key) is done:
                    del self._in_flight[key]
                # Every waiter may have been cancelled; mark the outcome as seen
                if not done.cancelled():
                    done.exception()

            task.add_done_callback(_forget)
        else:
            logger.debug("Joining in-flight fetch for <%s>", key)
        return await asyncio.shield(task)

    # Lookups

    async def get_lookup(
        self,
        name: str,
        *,
        force_fresh: bool = False,
        use_cache: bool = True,
        ttl_millis: Optional[int] = None,
    ) -> Result[list[LookupRecord]]:
        """Fetch a filter lookup by name (see :data:`LOOKUPS`)."""
        try:
            resource = LOOKUPS[name]
        except KeyError:
            return Err(f"Unknown lookup: {name}", status=400)

        if ttl_millis is None:
            ttl_millis = (
                self.settings.static_lookup_ttl if resource.static else self.settings.lookup_ttl
            )

        async def fetch() -> list[LookupRecord]:
            rows = await self.remote.select(
                resource.table,
                resource.columns,
                not_null=resource.not_null,
                order_by=resource.order_by,
            )
            return resource.normalize(rows)

        return await self.fetch_through(
            resource.cache_key,
            fetch,
            ttl_millis,
            force_fresh=force_fresh,
            use_cache=use_cache,
            cache_if=_non_empty,
        )

    async def get_categories(self, **options: Any) -> Result[list[LookupRecord]]:
        return await self.get_lookup("categories", **options)

    async def get_photographers(self, **options: Any) -> Result[list[LookupRecord]]:
        return await self.get_lookup("photographers", **options)

    async def get_locations(self, **options: Any) -> Result[list[LookupRecord]]:
        return await self.get_lookup("locations", **options)

    async def get_organisations(self, **options: Any) -> Result[list[LookupRecord]]:
        return await self.get_lookup("organisations", **options)

    async def get_organisation_types(self, **options: Any) -> Result[list[LookupRecord]]:
        return await self.get_lookup("organisation_types", **options)

    async def get_active_areas(self, **options: Any) -> Result[list[LookupRecord]]:
        return await self.get_lookup("active_areas", **options)

    async def get_gauges(self, **options: Any) -> Result[list[LookupRecord]]:
        return await self.get_lookup("gauges", **options)

    async def get_collections(self, **options: Any) -> Result[list[LookupRecord]]:
        return await self.get_lookup("collections", **options)

    async def get_countries(self, **options: Any) -> Result[list[LookupRecord]]:
        return await self.get_lookup("countries", **options)

    async def get_routes(self, **options: Any) -> Result[list[LookupRecord]]:
        return await self.get_lookup("routes", **options)

    async def get_corporate_bodies(self, **options: Any) -> Result[list[LookupRecord]]:
        return await self.get_lookup("corporate_bodies", **options)

    async def get_facilities(self, **options: Any) -> Result[list[LookupRecord]]:
        return await self.get_lookup("facilities", **options)

    async def get_builders(self, **options: Any) -> Result[list[LookupRecord]]:
        return await self.get_lookup("builders", **options)

    # Photos

    def image_url(self, image_no: str) -> str:
        normalized = _WHITESPACE.sub("", image_no)
        return f"{self.settings.storage_base_url}/{self.settings.image_bucket}/images/{normalized}.webp"

    def thumbnail_url(self, image_no: str) -> str:
        normalized = _WHITESPACE.sub("", image_no)
        return f"{self.settings.storage_base_url}/{self.settings.image_bucket}/thumbnails/{normalized}.webp"

    def _decorate(self, photo: Row) -> Row:
        image_no = str(photo.get("image_no") or "")
        return {
            **photo,
            "id": image_no,
            "image_url": self.image_url(image_no),
            "thumbnail_url": self.thumbnail_url(image_no),
            "price": photo.get("price") or self.settings.default_price,
        }

    async def _photo_page(
        self,
        key: str,
        page: int,
        limit: int,
        ttl_millis: int,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        force_fresh: bool = False,
        use_cache: bool = True,
    ) -> Result[list[Row]]:
        if page < 1 or limit < 1:
            return Err(f"Invalid page {page} or limit {limit}", status=400)

        async def fetch() -> list[Row]:
            rows = await self.remote.fetch_photos(
                offset=(page - 1) * limit,
                limit=limit,
                category=category,
                search=search,
            )
            return [self._decorate(row) for row in rows]

        return await self.fetch_through(
            key,
            fetch,
            ttl_millis,
            force_fresh=force_fresh,
            use_cache=use_cache,
            cache_if=_non_empty,
        )

    async def get_catalog_photos(
        self,
        page: int = 1,
        limit: int = 10,
        *,
        force_fresh: bool = False,
        use_cache: bool = True,
        ttl_millis: Optional[int] = None,
    ) -> Result[list[Row]]:
        """Fetch one page of the catalog, newest first."""
        return await self._photo_page(
            catalog_page_key(page, limit),
            page,
            limit,
            self.settings.catalog_page_ttl if ttl_millis is None else ttl_millis,
            force_fresh=force_fresh,
            use_cache=use_cache,
        )

    async def get_photos_by_category(
        self,
        category: str,
        page: int = 1,
        limit: int = 10,
        *,
        force_fresh: bool = False,
        use_cache: bool = True,
        ttl_millis: Optional[int] = None,
    ) -> Result[list[Row]]:
        if not category:
            return Err("Category is required", status=400)
        return await self._photo_page(
            category_page_key(category, page, limit),
            page,
            limit,
            self.settings.catalog_page_ttl if ttl_millis is None else ttl_millis,
            category=category,
            force_fresh=force_fresh,
            use_cache=use_cache,
        )

    async def search_photos(
        self,
        query: str,
        page: int = 1,
        limit: int = 10,
        *,
        force_fresh: bool = False,
        use_cache: bool = True,
        ttl_millis: Optional[int] = None,
    ) -> Result[list[Row]]:
        """Search descriptions, categories, photographers and locations.

        A blank query returns the regular catalog page.
        """
        if not query.strip():
            return await self.get_catalog_photos(
                page, limit, force_fresh=force_fresh, use_cache=use_cache, ttl_millis=ttl_millis
            )
        return await self._photo_page(
            search_page_key(query, page, limit),
            page,
            limit,
            self.settings.search_ttl if ttl_millis is None else ttl_millis,
            search=query.strip().lower(),
            force_fresh=force_fresh,
            use_cache=use_cache,
        )

    async def get_photo_by_id(
        self,
        image_no: str,
        *,
        force_fresh: bool = False,
        use_cache: bool = True,
        ttl_millis: Optional[int] = None,
    ) -> Result[Row]:
        if not image_no:
            return Err("Image number is required", status=400)

        async def fetch() -> Row:
            photo = await self.remote.fetch_photo(image_no)
            if photo is None:
                msg = f"Photo not found: {image_no}"
                raise RemoteCatalogError(msg, status=404)
            return self._decorate(photo)

        return await self.fetch_through(
            photo_key(image_no),
            fetch,
            self.settings.photo_ttl if ttl_millis is None else ttl_millis,
            force_fresh=force_fresh,
            use_cache=use_cache,
        )

    # Invalidation

    async def clear_cache(self, key: str) -> None:
        await self.store.invalidate(key)

    async def clear_all_caches(self) -> int:
        """Remove every namespaced entry and return how many were targeted."""
        return await self.store.invalidate_all()
