"""Unit tests for the global matching lock backends."""
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import LockError

from src.tm_matching.engine.lock import (
    LocalMatchingLock,
    RedisMatchingLock,
    build_matching_lock,
)


class TestLocalMatchingLock:
    async def test_acquires_when_free(self) -> None:
        lock = LocalMatchingLock()
        async with lock.hold() as acquired:
            assert acquired
            assert lock.locked
        assert not lock.locked

    async def test_second_holder_skips(self) -> None:
        lock = LocalMatchingLock()
        async with lock.hold() as first:
            async with lock.hold() as second:
                assert first
                assert not second
            # the skipped holder must not release the real owner's lock
            assert lock.locked

    async def test_released_on_error(self) -> None:
        lock = LocalMatchingLock()
        with pytest.raises(RuntimeError):
            async with lock.hold():
                raise RuntimeError("boom")
        assert not lock.locked


def _redis_with_lock(acquire_result: bool) -> tuple[MagicMock, MagicMock]:
    redis_lock = MagicMock()
    redis_lock.acquire = AsyncMock(return_value=acquire_result)
    redis_lock.release = AsyncMock()
    client = MagicMock()
    client.lock.return_value = redis_lock
    return client, redis_lock


class TestRedisMatchingLock:
    async def test_acquire_without_blocking_and_release(self) -> None:
        client, redis_lock = _redis_with_lock(True)
        lock = RedisMatchingLock(client=client, key="tm:test", ttl_seconds=15)
        async with lock.hold() as acquired:
            assert acquired
        client.lock.assert_called_once_with("tm:test", timeout=15)
        redis_lock.acquire.assert_awaited_once_with(blocking=False)
        redis_lock.release.assert_awaited_once()

    async def test_busy_lock_not_released(self) -> None:
        client, redis_lock = _redis_with_lock(False)
        lock = RedisMatchingLock(client=client, key="tm:test", ttl_seconds=15)
        async with lock.hold() as acquired:
            assert not acquired
        redis_lock.release.assert_not_awaited()

    async def test_expired_lock_release_is_logged_not_raised(self) -> None:
        client, redis_lock = _redis_with_lock(True)
        redis_lock.release.side_effect = LockError("expired")
        lock = RedisMatchingLock(client=client, key="tm:test", ttl_seconds=15)
        async with lock.hold() as acquired:
            assert acquired


class TestBuildMatchingLock:
    def test_local(self) -> None:
        assert isinstance(build_matching_lock("local"), LocalMatchingLock)

    def test_redis(self) -> None:
        assert isinstance(build_matching_lock("REDIS"), RedisMatchingLock)

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="MATCHING_LOCK_BACKEND"):
            build_matching_lock("zookeeper")
