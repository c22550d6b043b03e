"""Redis-backed counter store for multi-instance deployments.

Every method maps to one Redis command, so increments and list pushes stay
atomic across engine instances. Redis failures are raised as
``CounterStoreError``; there is no fallback to local state.
"""

import logging
from typing import List, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from checkout_risk.errors import CounterStoreError
from checkout_risk.storage.base import Number, ScoreBound

logger = logging.getLogger(__name__)


class RedisCounterStore:
    """Counter store backed by a ``redis.asyncio`` client."""

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCounterStore":
        return cls(aioredis.from_url(url, decode_responses=True))

    async def close(self) -> None:
        await self._client.aclose()

    async def increment(self, key: str, by: Number = 1) -> Number:
        try:
            if isinstance(by, float):
                return float(await self._client.incrbyfloat(key, by))
            return int(await self._client.incrby(key, by))
        except RedisError as exc:
            logger.error("Counter increment failed: %s", exc)
            raise CounterStoreError("counter increment failed") from exc

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client.get(key)
        except RedisError as exc:
            logger.error("Counter read failed: %s", exc)
            raise CounterStoreError("counter read failed") from exc

    async def expire(self, key: str, seconds: int) -> None:
        try:
            await self._client.expire(key, seconds)
        except RedisError as exc:
            logger.error("Counter expiry failed: %s", exc)
            raise CounterStoreError("counter expiry failed") from exc

    async def append_to_list(self, key: str, entry: str) -> None:
        try:
            await self._client.lpush(key, entry)
        except RedisError as exc:
            logger.error("Queue append failed: %s", exc)
            raise CounterStoreError("queue append failed") from exc

    async def list_range(self, key: str, start: int = 0, stop: int = -1) -> List[str]:
        try:
            return await self._client.lrange(key, start, stop)
        except RedisError as exc:
            logger.error("Queue read failed: %s", exc)
            raise CounterStoreError("queue read failed") from exc

    async def add_to_sorted_set(self, key: str, score: float, member: str) -> None:
        try:
            await self._client.zadd(key, {member: score})
        except RedisError as exc:
            logger.error("History write failed: %s", exc)
            raise CounterStoreError("history write failed") from exc

    async def count_sorted_set_members(
        self,
        key: str,
        min_score: ScoreBound = "-inf",
        max_score: ScoreBound = "+inf",
    ) -> int:
        try:
            return int(await self._client.zcount(key, min_score, max_score))
        except RedisError as exc:
            logger.error("History count failed: %s", exc)
            raise CounterStoreError("history count failed") from exc

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as exc:
            logger.error("Counter store ping failed: %s", exc)
            raise CounterStoreError("counter store unreachable") from exc
