from collections.abc import Iterable
from collections.abc import Sequence
from typing import Any
from typing import Optional

import pytest

from catalog_cachex.remote import Row
from catalog_cachex.remote import SampleCatalog
from catalog_cachex.storage.base import BaseStorage
from catalog_cachex.storage.memory import MemoryStorage
from catalog_cachex.store import TTLCacheStore

START_MS = 1_700_000_000_000


class FakeClock:
    """Virtual epoch clock in milliseconds."""

    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


class FailingStorage(BaseStorage):
    """Storage whose every operation raises."""

    def __init__(self) -> None:
        self.calls = 0

    def _fail(self) -> None:
        self.calls += 1
        msg = "storage unavailable"
        raise OSError(msg)

    async def get_item(self, key: str) -> Optional[str]:
        self._fail()

    async def set_item(self, key: str, value: str) -> None:
        self._fail()

    async def remove_item(self, key: str) -> None:
        self._fail()

    async def multi_remove(self, keys: Iterable[str]) -> None:
        self._fail()

    async def get_all_keys(self) -> list[str]:
        self._fail()
        return []


class RecordingCatalog(SampleCatalog):
    """Sample catalog that records every remote query it serves."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.calls: list[str] = []

    async def select(self, table: str, columns: Sequence[str], **kwargs: Any) -> list[Row]:
        self.calls.append(f"select:{table}")
        return await super().select(table, columns, **kwargs)

    async def fetch_photos(self, **kwargs: Any) -> list[Row]:
        self.calls.append("photos")
        return await super().fetch_photos(**kwargs)

    async def fetch_photo(self, image_no: str) -> Optional[Row]:
        self.calls.append(f"photo:{image_no}")
        return await super().fetch_photo(image_no)


PHOTOS = [
    {
        "image_no": "GW 1001",
        "description": "Castle class on the sea wall",
        "category": "steam",
        "photographer": "A. Driver",
        "location": "Dawlish",
        "gauge": "standard",
        "active_area": "Devon",
        "corporate_body": "GWR",
        "facility": "Mainline",
        "date_taken": "1958-06-01",
    },
    {
        "image_no": "BR 2002",
        "description": "Class 47 at the head of a sleeper",
        "category": "modern",
        "photographer": "B. Guard",
        "location": "Penzance",
        "gauge": "standard",
        "active_area": "Cornwall",
        "corporate_body": "BR",
        "facility": "Depot",
        "date_taken": "1985-09-12",
    },
    {
        "image_no": "NG 3003",
        "description": "Double Fairlie climbing",
        "category": "steam",
        "photographer": "A. Driver",
        "location": "Tan-y-Bwlch",
        "gauge": "narrow",
        "active_area": "Gwynedd",
        "corporate_body": None,
        "facility": "Heritage",
        "date_taken": "1972-04-30",
    },
]

TABLES = {
    "photographer": [
        {"id": 2, "name": "B. Guard"},
        {"id": 1, "name": "A. Driver"},
    ],
    "location": [
        {"id": 1, "name": "Dawlish"},
        {"id": 2, "name": "Penzance"},
    ],
    "organisation": [
        {"id": 1, "name": "Great Western Railway", "type": "railway"},
        {"id": 2, "name": None, "type": "society"},
        {"id": 3, "name": "Ffestiniog", "type": None},
    ],
    "collection": [{"id": 1, "name": "Western steam"}],
    "country": [
        {"id": "uk", "name": "United Kingdom"},
        {"id": "ie", "name": "Ireland"},
    ],
    "route": [{"id": 1, "name": "Riviera Line"}],
    "builder": [
        {"id": 1, "name": "Swindon Works", "code": "SW"},
        {"id": 2, "name": None, "code": "BP"},
        {"id": 3, "name": None, "code": None},
    ],
}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage, clock: FakeClock) -> TTLCacheStore:
    return TTLCacheStore(storage, clock=clock)


@pytest.fixture
def catalog() -> RecordingCatalog:
    return RecordingCatalog(tables=TABLES, photos=PHOTOS)


@pytest.fixture
def failing_storage() -> FailingStorage:
    return FailingStorage()
