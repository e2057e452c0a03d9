"""
Read-through cache for single-task reads.

Entries are keyed by (user id, task id), hold a JSON snapshot of the task,
and expire passively a fixed TTL after insertion. Writers call
``invalidate``/``invalidate_all`` after the store write and before
reporting success; a failed invalidation raises CacheError so the write
is never reported as a success behind a stale entry.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import redis
import redis.asyncio as aioredis
from pydantic import ValidationError

from .errors import CacheError
from .models import TaskResponse

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60.0


def _decode(payload) -> Optional[TaskResponse]:
    try:
        return TaskResponse.model_validate_json(payload)
    except ValidationError:
        return None


class TaskCache:
    """Common contract for the cache backends."""

    async def lookup(self, user_id: str, task_id: str) -> Optional[TaskResponse]:
        raise NotImplementedError

    async def store(self, user_id: str, task_id: str, task: TaskResponse) -> None:
        raise NotImplementedError

    async def invalidate(self, user_id: str, task_id: str) -> None:
        raise NotImplementedError

    async def invalidate_all(self) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        return


class MemoryTaskCache(TaskCache):
    """Process-wide in-memory backend with an injectable monotonic clock."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[tuple[str, str], tuple[float, str]] = {}

    async def lookup(self, user_id, task_id):
        entry = self._entries.get((user_id, task_id))
        if entry is None:
            return None
        expires_at, payload = entry
        if self._clock() >= expires_at:
            return None
        task = _decode(payload)
        if task is None:
            logger.warning("dropping unreadable cache entry user=%s task=%s", user_id, task_id)
            self._entries.pop((user_id, task_id), None)
        return task

    async def store(self, user_id, task_id, task):
        self._entries[(user_id, task_id)] = (self._clock() + self._ttl, task.model_dump_json())

    async def invalidate(self, user_id, task_id):
        self._entries.pop((user_id, task_id), None)

    async def invalidate_all(self):
        self._entries.clear()

    def entries(self) -> dict[tuple[str, str], str]:
        """Snapshot of live (unexpired) entries, for inspection."""
        now = self._clock()
        return {k: payload for k, (exp, payload) in self._entries.items() if now < exp}

    async def close(self):
        self._entries.clear()


class RedisTaskCache(TaskCache):
    """
    Redis backend. Expiry is delegated to Redis (SET ... EX).

    A failed lookup or store is a miss; a failed invalidation raises CacheError.
    """

    def __init__(self, client: aioredis.Redis, ttl_seconds: float = DEFAULT_TTL_SECONDS, prefix: str = "tasklist"):
        self._r = client
        self._ttl = max(1, int(ttl_seconds))
        self._prefix = prefix

    def _key(self, user_id, task_id):
        return f"{self._prefix}:task:{user_id}:{task_id}"

    async def lookup(self, user_id, task_id):
        key = self._key(user_id, task_id)
        try:
            raw = await self._r.get(key)
        except redis.RedisError:
            logger.warning("cache lookup failed user=%s task=%s", user_id, task_id, exc_info=True)
            return None
        if raw is None:
            return None
        task = _decode(raw)
        if task is None:
            logger.warning("dropping unreadable cache entry key=%s", key)
            try:
                await self._r.delete(key)
            except redis.RedisError:
                logger.warning("cache drop failed key=%s", key, exc_info=True)
        return task

    async def store(self, user_id, task_id, task):
        try:
            await self._r.set(self._key(user_id, task_id), task.model_dump_json(), ex=self._ttl)
        except redis.RedisError:
            logger.warning("cache store failed user=%s task=%s", user_id, task_id, exc_info=True)

    async def invalidate(self, user_id, task_id):
        try:
            await self._r.delete(self._key(user_id, task_id))
        except redis.RedisError as e:
            raise CacheError(f"cache invalidate failed: {e}", cause=e) from e

    async def invalidate_all(self):
        try:
            keys = [k async for k in self._r.scan_iter(match=f"{self._prefix}:task:*")]
            if not keys:
                return
            async with self._r.pipeline(transaction=True) as p:
                for key in keys:
                    p.delete(key)
                await p.execute()
        except redis.RedisError as e:
            raise CacheError(f"cache invalidate_all failed: {e}", cause=e) from e

    async def close(self):
        await self._r.aclose()
