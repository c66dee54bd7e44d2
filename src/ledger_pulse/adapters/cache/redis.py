import asyncio
from typing import List, Optional, Sequence, Union

import redis

from ledger_pulse.runtime.exceptions import CacheUnavailable


class RedisCounterStore:
    """
    A CounterStore implementation using Redis.
    Uses asyncio.to_thread to wrap synchronous redis client calls to ensure
    compatibility with the async Protocol without blocking the loop.
    """

    def __init__(self, client: "redis.Redis"):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCounterStore":
        return cls(redis.Redis.from_url(url))

    async def mget(self, keys: Sequence[str]) -> List[Optional[Union[bytes, str]]]:
        if not keys:
            return []
        try:
            return await asyncio.to_thread(self._client.mget, list(keys))
        except redis.RedisError as e:
            raise CacheUnavailable(f"Counter cache read failed: {e}") from e
