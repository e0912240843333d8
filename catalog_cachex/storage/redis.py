from collections.abc import Iterable
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
from typing import Optional

from catalog_cachex.exceptions import CacheXError
from catalog_cachex.exceptions import StorageError

from .base import BaseStorage


class RedisStorage(BaseStorage):
    """Async Redis storage implementation.

    Values are stored as plain strings. The storage keeps no key prefix of
    its own; namespacing is done by the cache store. Client failures are
    raised as :class:`StorageError`.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 6379,
        password: Optional[str] = None,
        db: int = 0,
        socket_timeout: float = 1.0,
        socket_connect_timeout: float = 1.0,
        scan_count: int = 100,
        **kwargs: Any,
    ) -> None:
        try:
            from redis.asyncio import Redis as AsyncRedis
            from redis.exceptions import RedisError
        except ImportError as e:
            msg = "redis is not installed. Please install it with 'pip install redis'"
            raise CacheXError(msg) from e

        self.client = AsyncRedis(
            host=host,
            port=port,
            password=password,
            db=db,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_connect_timeout,
            **kwargs,
        )
        self.scan_count = scan_count
        self._client_error = RedisError

    @contextmanager
    def _translate_errors(self, command: str) -> Iterator[None]:
        try:
            yield
        except self._client_error as e:
            msg = f"Redis {command} failed: {e}"
            raise StorageError(msg) from e

    async def get_item(self, key: str) -> Optional[str]:
        with self._translate_errors("GET"):
            return await self.client.get(key)

    async def set_item(self, key: str, value: str) -> None:
        with self._translate_errors("SET"):
            await self.client.set(key, value)

    async def remove_item(self, key: str) -> None:
        with self._translate_errors("DEL"):
            await self.client.delete(key)

    async def multi_remove(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        with self._translate_errors("DEL"):
            await self.client.delete(*keys)

    async def get_all_keys(self) -> list[str]:
        with self._translate_errors("SCAN"):
            return [key async for key in self.client.scan_iter(count=self.scan_count)]

    async def close(self) -> None:
        await self.client.aclose()
