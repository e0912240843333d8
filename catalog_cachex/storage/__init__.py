"""Key-value storage implementations for CatalogCacheX."""

from .base import BaseStorage
from .memory import MemoryStorage
from .redis import RedisStorage

__all__ = [
    "BaseStorage",
    "MemoryStorage",
    "RedisStorage",
]
