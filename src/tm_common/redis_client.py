"""Shared redis.asyncio client.

Only the global matching lock lives in Redis; orders, chunks and the pool
are in the database. The client is created lazily so processes running
with MATCHING_LOCK_BACKEND=local never open a connection.
"""
import logging

import redis.asyncio as aioredis

from config.settings import settings

logger = logging.getLogger(__name__)

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            # lock calls must fail fast rather than stall a matching pass
            socket_timeout=5,
            health_check_interval=30,
        )
    return _client


async def check_redis() -> None:
    """Fail startup early when the lock backend is unreachable."""
    client = await get_redis()
    await client.ping()
    logger.info("redis reachable at %s", settings.REDIS_URL)


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None
