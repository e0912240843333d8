"""CatalogCacheX: expiry-based read-through caching for the photo catalog."""

from .config import CacheSettings as CacheSettings
from .registry import StoreRegistry as StoreRegistry
from .registry import default_registry as default_registry
from .remote import RemoteCatalog as RemoteCatalog
from .remote import SampleCatalog as SampleCatalog
from .routes import add_routes as add_routes
from .services import CatalogService as CatalogService
from .status import CacheStatusAggregator as CacheStatusAggregator
from .store import TTLCacheStore as TTLCacheStore
from .types import Err as Err
from .types import Ok as Ok

__all__ = [
    "CacheSettings",
    "CacheStatusAggregator",
    "CatalogService",
    "Err",
    "Ok",
    "RemoteCatalog",
    "SampleCatalog",
    "StoreRegistry",
    "TTLCacheStore",
    "add_routes",
    "default_registry",
]
