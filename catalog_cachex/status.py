"""Cache status reporting for diagnostic screens.

Reports are built from :meth:`TTLCacheStore.peek`, so looking at the cache
never evicts anything, expired entries included.
"""

from collections.abc import Mapping
from datetime import datetime
from datetime import timezone
from typing import Optional

from pydantic import BaseModel
from pydantic import Field

from catalog_cachex.exceptions import UnknownCacheKeyError
from catalog_cachex.store import TTLCacheStore
from catalog_cachex.types import MILLISECONDS_PER_SECOND

# Display name -> logical cache key of the filter lookups
DEFAULT_CACHE_KEYS: dict[str, str] = {
    "CATEGORIES": "categories",
    "COUNTRIES": "countries",
    "ORGANISATION_TYPES": "organisation_types",
    "ORGANISATIONS": "organisations",
    "ACTIVE_AREAS": "active_areas",
    "ROUTES": "routes",
    "CORPORATE_BODIES": "corporate_bodies",
    "LOCATIONS": "locations",
    "FACILITIES": "facilities",
    "BUILDERS": "builders",
    "COLLECTIONS": "collections",
    "GAUGES": "gauges",
    "PHOTOGRAPHERS": "photographers",
}


def format_duration(seconds: Optional[int]) -> str:
    """Render an age in the largest whole unit."""
    if seconds is None:
        return "Unknown"
    if seconds < 60:
        return f"{seconds} seconds"
    if seconds < 3600:
        return f"{seconds // 60} minutes"
    if seconds < 86400:
        return f"{seconds // 3600} hours"
    return f"{seconds // 86400} days"


class KeyStatus(BaseModel):
    """Status of one monitored cache key."""

    name: str
    key: str
    exists: bool = False
    expired: bool = False
    age_seconds: Optional[int] = None
    last_updated: Optional[str] = Field(
        default=None,
        description="ISO-8601 UTC time the entry was written",
    )


class AgeSummary(BaseModel):
    name: str
    age_seconds: int
    age: str


class CacheReport(BaseModel):
    """Roll-up of every monitored cache key."""

    statuses: dict[str, KeyStatus] = Field(default_factory=dict)
    is_cache_available: bool = False
    cached_items: int = 0
    total_items: int = 0
    oldest: Optional[AgeSummary] = None
    newest: Optional[AgeSummary] = None


def build_report(statuses: list[KeyStatus]) -> CacheReport:
    present = [s for s in statuses if s.exists and s.age_seconds is not None]
    oldest = max(present, key=lambda s: s.age_seconds or 0, default=None)
    newest = min(present, key=lambda s: s.age_seconds or 0, default=None)

    def summarize(status: Optional[KeyStatus]) -> Optional[AgeSummary]:
        if status is None or status.age_seconds is None:
            return None
        return AgeSummary(
            name=status.name,
            age_seconds=status.age_seconds,
            age=format_duration(status.age_seconds),
        )

    return CacheReport(
        statuses={s.name: s for s in statuses},
        is_cache_available=bool(present),
        cached_items=len(present),
        total_items=len(statuses),
        oldest=summarize(oldest),
        newest=summarize(newest),
    )


class CacheStatusAggregator:
    """Inspect a fixed set of cache keys.

    Args:
        store: The cache store to inspect
        keys: Display name -> logical cache key
    """

    def __init__(
        self,
        store: TTLCacheStore,
        keys: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.store = store
        self.keys = dict(DEFAULT_CACHE_KEYS if keys is None else keys)

    async def status(self, name: str, key: str) -> KeyStatus:
        entry = await self.store.peek(key)
        if entry is None:
            return KeyStatus(name=name, key=key)

        now = self.store.clock()
        written = datetime.fromtimestamp(entry.timestamp / MILLISECONDS_PER_SECOND, tz=timezone.utc)
        return KeyStatus(
            name=name,
            key=key,
            exists=True,
            expired=not entry.is_valid(now),
            age_seconds=entry.age_seconds(now),
            last_updated=written.isoformat(),
        )

    async def refresh(self) -> CacheReport:
        """Build a report for every monitored key."""
        return build_report([await self.status(name, key) for name, key in self.keys.items()])

    async def clear(self, name: str) -> CacheReport:
        """Invalidate one monitored key by display name.

        Raises:
            UnknownCacheKeyError: If ``name`` is not monitored
        """
        try:
            key = self.keys[name]
        except KeyError:
            msg = f"Cache key not found: {name}"
            raise UnknownCacheKeyError(msg) from None
        await self.store.invalidate(key)
        return await self.refresh()

    async def clear_all(self) -> CacheReport:
        """Invalidate every namespaced entry, monitored or not."""
        await self.store.invalidate_all()
        return await self.refresh()


def empty_report(keys: Mapping[str, str]) -> CacheReport:
    return build_report([KeyStatus(name=name, key=key) for name, key in keys.items()])
