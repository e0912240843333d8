from abc import ABC
from abc import abstractmethod
from collections.abc import Iterable
from typing import Optional


class BaseStorage(ABC):
    """Base class for all string-keyed key-value storages."""

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """Retrieve the value stored under a key, or None if absent."""

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""

    @abstractmethod
    async def multi_remove(self, keys: Iterable[str]) -> None:
        """Remove several keys in one batch."""

    @abstractmethod
    async def get_all_keys(self) -> list[str]:
        """List every key currently stored."""
