"""Type definitions and type aliases for CatalogCacheX."""

import math
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Generic
from typing import Literal
from typing import TypeVar
from typing import Union

T = TypeVar("T")

# Namespace prefix for every persisted cache key. Anything stored without it
# belongs to the rest of the application and is never touched by the cache.
CACHE_KEY_PREFIX = "filter_cache_"

MILLISECONDS_PER_SECOND = 1000
MINUTE_MS = 60 * MILLISECONDS_PER_SECOND
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

CacheSource = Literal["cache", "remote"]

LookupRecord = dict[str, Any]


@dataclass
class CacheEntry(Generic[T]):
    """Cache envelope persisted under a namespaced key.

    Args:
        data: The cached payload (any JSON-serializable value)
        timestamp: Epoch milliseconds when the entry was written
        expiry: Epoch milliseconds after which the entry is stale
    """

    data: T
    timestamp: int
    expiry: int

    def is_valid(self, now: int) -> bool:
        # A zero TTL is stored but never served
        return self.expiry > self.timestamp and now <= self.expiry

    def age_seconds(self, now: int) -> int:
        return math.floor((now - self.timestamp) / MILLISECONDS_PER_SECOND)


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful read-through result.

    Args:
        data: The payload served to the caller
        source: Where the payload came from ("cache" or "remote")
    """

    data: T
    source: CacheSource = "remote"

    @property
    def ok(self) -> bool:
        return True

    @property
    def from_cache(self) -> bool:
        return self.source == "cache"


@dataclass(frozen=True)
class Err:
    """Failed read-through result.

    Args:
        reason: Human readable description of the failure
        cause: The exception raised by the collaborator, if any
        status: HTTP-like status code (400 bad input, 404 not found, 500 remote failure)
    """

    reason: str
    cause: BaseException | None = field(default=None, compare=False)
    status: int = 500

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]
