"""Tests for tm_common.id_generator and tm_common.datetime_utils."""

from datetime import UTC, datetime

import pytest

from src.tm_common.datetime_utils import ensure_utc, utc_now
from src.tm_common.id_generator import SnowflakeIdGenerator, generate_id


class TestSnowflakeIdGenerator:
    def test_returns_str(self) -> None:
        assert isinstance(SnowflakeIdGenerator(worker_id=1).next_id(), str)

    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(worker_id=1)
        ids = {gen.next_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(worker_id=1)
        prev = int(gen.next_id())
        for _ in range(100):
            current = int(gen.next_id())
            assert current > prev
            prev = current

    def test_clock_moving_backwards_keeps_order(self, monkeypatch: pytest.MonkeyPatch) -> None:
        gen = SnowflakeIdGenerator(worker_id=0)
        first = int(gen.next_id())
        monkeypatch.setattr(SnowflakeIdGenerator, "_now_ms", staticmethod(lambda: 1_700_000_000_001))
        assert int(gen.next_id()) > first

    def test_rejects_bad_worker_id(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(worker_id=1024)

    def test_module_level_generate_id(self) -> None:
        assert generate_id() != generate_id()


class TestUtcHelpers:
    def test_utc_now_is_aware(self) -> None:
        assert utc_now().tzinfo is not None

    def test_ensure_utc_attaches_tz(self) -> None:
        naive = datetime(2026, 1, 1, 12, 0)
        assert ensure_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def test_ensure_utc_passes_through(self) -> None:
        aware = datetime(2026, 1, 1, tzinfo=UTC)
        assert ensure_utc(aware) is aware
        assert ensure_utc(None) is None
