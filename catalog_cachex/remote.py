"""Remote catalog contract consumed by the read-through services."""

from abc import ABC
from abc import abstractmethod
from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from copy import deepcopy
from typing import Any
from typing import Optional

from catalog_cachex.exceptions import RemoteCatalogError

Row = dict[str, Any]

SEARCH_FIELDS = ("description", "category", "photographer", "location")


class RemoteCatalog(ABC):
    """Authoritative source of photos and lookup data."""

    @abstractmethod
    async def select(
        self,
        table: str,
        columns: Sequence[str],
        *,
        not_null: Sequence[str] = (),
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[Row]:
        """Query a lookup table, projecting ``columns``."""

    @abstractmethod
    async def fetch_photos(
        self,
        *,
        offset: int,
        limit: int,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Row]:
        """Return a page of catalog photos, newest ``date_taken`` first."""

    @abstractmethod
    async def fetch_photo(self, image_no: str) -> Optional[Row]:
        """Return a single photo, or None when it does not exist."""


class SampleCatalog(RemoteCatalog):
    """In-memory catalog built from seed rows.

    The seed data is copied on construction, so one instance is an explicit,
    self-contained store that can be handed to whoever needs it.

    Args:
        tables: Lookup tables by name
        photos: Rows of the catalog view
    """

    def __init__(
        self,
        tables: Optional[Mapping[str, Iterable[Row]]] = None,
        photos: Optional[Iterable[Row]] = None,
    ) -> None:
        self.tables: dict[str, list[Row]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self.photos: list[Row] = [dict(row) for row in (photos or [])]
        # The catalog view doubles as a lookup table for single-column filters
        self.tables.setdefault("mobile_catalog_view", self.photos)

    def _table(self, table: str) -> list[Row]:
        try:
            return self.tables[table]
        except KeyError:
            msg = f"Unknown table: {table}"
            raise RemoteCatalogError(msg, status=404) from None

    async def select(
        self,
        table: str,
        columns: Sequence[str],
        *,
        not_null: Sequence[str] = (),
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[Row]:
        rows = [
            row
            for row in self._table(table)
            if all(row.get(column) is not None for column in not_null)
        ]
        if order_by:
            rows.sort(key=lambda row: (row.get(order_by) is None, row.get(order_by) or ""))
        if limit is not None:
            rows = rows[:limit]
        return [{column: row.get(column) for column in columns} for row in rows]

    async def fetch_photos(
        self,
        *,
        offset: int,
        limit: int,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Row]:
        rows = self.photos
        if category is not None:
            rows = [row for row in rows if row.get("category") == category]
        if search:
            needle = search.lower()
            rows = [
                row
                for row in rows
                if any(needle in str(row.get(name) or "").lower() for name in SEARCH_FIELDS)
            ]
        rows = sorted(rows, key=lambda row: row.get("date_taken") or "", reverse=True)
        return deepcopy(rows[offset : offset + limit])

    async def fetch_photo(self, image_no: str) -> Optional[Row]:
        for row in self.photos:
            if row.get("image_no") == image_no:
                return deepcopy(row)
        return None
