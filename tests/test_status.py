"""Tests for cache status reporting."""

import pytest

from catalog_cachex.exceptions import UnknownCacheKeyError
from catalog_cachex.status import DEFAULT_CACHE_KEYS
from catalog_cachex.status import CacheStatusAggregator
from catalog_cachex.status import empty_report
from catalog_cachex.status import format_duration
from catalog_cachex.storage.memory import MemoryStorage
from catalog_cachex.store import TTLCacheStore

KEYS = {"COUNTRIES": "countries", "ROUTES": "routes", "GAUGES": "gauges"}


@pytest.fixture
def aggregator(store: TTLCacheStore) -> CacheStatusAggregator:
    return CacheStatusAggregator(store, KEYS)


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (None, "Unknown"),
        (0, "0 seconds"),
        (59, "59 seconds"),
        (60, "1 minutes"),
        (3599, "59 minutes"),
        (3600, "1 hours"),
        (86399, "23 hours"),
        (86400, "1 days"),
        (10 * 86400 + 5, "10 days"),
    ],
)
def test_format_duration(seconds, expected) -> None:
    assert format_duration(seconds) == expected


@pytest.mark.asyncio
async def test_empty_cache_report(aggregator: CacheStatusAggregator) -> None:
    report = await aggregator.refresh()

    assert report.is_cache_available is False
    assert report.cached_items == 0
    assert report.total_items == 3
    assert report.oldest is None
    assert report.newest is None
    assert all(not s.exists and s.age_seconds is None for s in report.statuses.values())


@pytest.mark.asyncio
async def test_report_with_entries(aggregator, store: TTLCacheStore, clock) -> None:
    await store.put("countries", ["uk"], 7 * 86_400_000)
    clock.advance(7_200_000)
    await store.put("routes", ["Riviera Line"], 86_400_000)
    clock.advance(30_000)

    report = await aggregator.refresh()

    assert report.is_cache_available is True
    assert report.cached_items == 2
    assert report.total_items == 3

    countries = report.statuses["COUNTRIES"]
    assert countries.exists
    assert countries.key == "countries"
    assert countries.age_seconds == 7230
    assert countries.last_updated is not None
    assert countries.last_updated.startswith("2023-11-14T22:13:20")
    assert not report.statuses["GAUGES"].exists

    assert report.oldest is not None
    assert report.oldest.name == "COUNTRIES"
    assert report.oldest.age == "2 hours"
    assert report.newest is not None
    assert report.newest.name == "ROUTES"
    assert report.newest.age_seconds == 30
    assert report.newest.age == "30 seconds"


@pytest.mark.asyncio
async def test_report_does_not_evict_expired_entries(
    aggregator, store: TTLCacheStore, storage: MemoryStorage, clock
) -> None:
    await store.put("gauges", ["narrow"], 1000)
    clock.advance(5000)

    report = await aggregator.refresh()

    gauges = report.statuses["GAUGES"]
    assert gauges.exists
    assert gauges.expired
    assert gauges.age_seconds == 5
    assert await storage.get_item("filter_cache_gauges") is not None


@pytest.mark.asyncio
async def test_report_skips_corrupt_entries(aggregator, storage: MemoryStorage) -> None:
    await storage.set_item("filter_cache_routes", "not json")

    report = await aggregator.refresh()

    assert not report.statuses["ROUTES"].exists
    # Reporting never purges, even corrupt entries
    assert await storage.get_item("filter_cache_routes") == "not json"


@pytest.mark.asyncio
async def test_clear_single_key(aggregator, store: TTLCacheStore) -> None:
    await store.put("countries", ["uk"], 60_000)
    await store.put("routes", ["Riviera Line"], 60_000)

    report = await aggregator.clear("COUNTRIES")

    assert not report.statuses["COUNTRIES"].exists
    assert report.statuses["ROUTES"].exists


@pytest.mark.asyncio
async def test_clear_unknown_key(aggregator) -> None:
    with pytest.raises(UnknownCacheKeyError, match="LOCOMOTIVES"):
        await aggregator.clear("LOCOMOTIVES")


@pytest.mark.asyncio
async def test_clear_all(aggregator, store: TTLCacheStore, storage: MemoryStorage) -> None:
    await storage.set_item("user_token", "abc")
    await store.put("countries", ["uk"], 60_000)
    await store.put("photos_page_1_limit_10", [], 60_000)

    report = await aggregator.clear_all()

    assert report.cached_items == 0
    assert await storage.get_all_keys() == ["user_token"]


def test_default_keys_are_monitored(store: TTLCacheStore) -> None:
    aggregator = CacheStatusAggregator(store)

    assert aggregator.keys == DEFAULT_CACHE_KEYS
    assert "BUILDERS" in aggregator.keys


def test_empty_report() -> None:
    report = empty_report(KEYS)

    assert report.total_items == 3
    assert report.cached_items == 0
    assert set(report.statuses) == set(KEYS)
