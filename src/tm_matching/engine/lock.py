"""Global matching lock.

Matching runs under one subsystem-wide lock acquired without waiting: a
caller that finds it held skips its pass and relies on the next trigger
(order creation, sweep, settlement) to retry. hold() yields True when the
lock was taken.

RedisMatchingLock is shared across worker processes and expires after the
configured TTL so a crashed holder cannot wedge matching. LocalMatchingLock
covers a single process.
"""
import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol

import redis.asyncio as aioredis
from redis.exceptions import LockError

from config.settings import settings
from src.tm_common.redis_client import get_redis

logger = logging.getLogger(__name__)


class MatchingLock(Protocol):
    def hold(self) -> AbstractAsyncContextManager[bool]: ...


class LocalMatchingLock:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[bool]:
        if self._lock.locked():
            yield False
            return
        # uncontended acquire completes without yielding to the loop
        await self._lock.acquire()
        try:
            yield True
        finally:
            self._lock.release()


class RedisMatchingLock:
    def __init__(
        self,
        client: aioredis.Redis | None = None,
        key: str | None = None,
        ttl_seconds: int | None = None,
    ) -> None:
        self._client = client
        self._key = key or settings.MATCHING_LOCK_KEY
        self._ttl = ttl_seconds or settings.MATCHING_LOCK_TTL_SECONDS

    async def _redis(self) -> aioredis.Redis:
        if self._client is None:
            self._client = await get_redis()
        return self._client

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[bool]:
        client = await self._redis()
        lock = client.lock(self._key, timeout=self._ttl)
        acquired = bool(await lock.acquire(blocking=False))
        try:
            yield acquired
        finally:
            if acquired:
                try:
                    await lock.release()
                except LockError:
                    logger.warning(
                        "matching lock %s expired before release (ttl=%ss)", self._key, self._ttl
                    )


def build_matching_lock(backend: str | None = None) -> MatchingLock:
    backend = (backend or settings.MATCHING_LOCK_BACKEND).lower()
    if backend == "redis":
        return RedisMatchingLock()
    if backend == "local":
        return LocalMatchingLock()
    raise ValueError(f"Unknown MATCHING_LOCK_BACKEND: {backend}")
