import asyncio
from collections.abc import Iterable
from typing import Optional

from .base import BaseStorage


class MemoryStorage(BaseStorage):
    """In-memory storage implementation."""

    def __init__(self) -> None:
        self.items: dict[str, str] = {}
        self.lock = asyncio.Lock()

    async def get_item(self, key: str) -> Optional[str]:
        async with self.lock:
            return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        async with self.lock:
            self.items[key] = value

    async def remove_item(self, key: str) -> None:
        async with self.lock:
            self.items.pop(key, None)

    async def multi_remove(self, keys: Iterable[str]) -> None:
        async with self.lock:
            for key in keys:
                self.items.pop(key, None)

    async def get_all_keys(self) -> list[str]:
        async with self.lock:
            return list(self.items.keys())
