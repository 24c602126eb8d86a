"""Unit tests for MatchingEngine with mocked repositories."""
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.tm_chunk.application.ledger import ChunkLedger
from src.tm_common.enums import OrderRole, OrderStatus, PairingOutcome
from src.tm_common.errors import OrderNotFoundError
from src.tm_matching.engine.engine import MatchingEngine
from src.tm_matching.engine.lock import LocalMatchingLock
from src.tm_order.domain.models import Order

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def _make_order(**kwargs: Any) -> Order:
    defaults: dict[str, Any] = {
        "id": "buyer-1",
        "owner_id": "alice",
        "principal": 1_000,
        "expected_payout": 1_300,
        "duration_days": 4,
        "profit_percent": 30,
        "status": OrderStatus.PENDING.value,
        "remaining_to_send": 1_000,
    }
    defaults.update(kwargs)
    return Order(**defaults)


def _seller(**kwargs: Any) -> Order:
    defaults: dict[str, Any] = {
        "id": "seller-1",
        "owner_id": "bob",
        "principal": 0,
        "expected_payout": 1_000,
        "target_payout": 1_000,
        "status": OrderStatus.MATURED.value,
        "remaining_to_receive": 1_000,
    }
    defaults.update(kwargs)
    return _make_order(**defaults)


def _db() -> MagicMock:
    db = MagicMock()
    db.commit = AsyncMock()
    return db


def _chunk_repo() -> AsyncMock:
    repo = AsyncMock()
    repo.allocated_to_buyer.return_value = 0
    repo.allocated_to_seller.return_value = 0
    repo.has_open_chunk.return_value = False
    return repo


def _engine(orders: AsyncMock, chunk_repo: AsyncMock, lock: LocalMatchingLock | None = None) -> MatchingEngine:
    return MatchingEngine(
        lock=lock or LocalMatchingLock(),
        orders=orders,
        ledger=ChunkLedger(chunk_repo),
        min_chunk_amount=100,
        clock=lambda: NOW,
    )


class TestPairGuards:
    async def test_missing_order(self) -> None:
        orders = AsyncMock()
        orders.get_by_id.return_value = None
        with pytest.raises(OrderNotFoundError):
            await _engine(orders, _chunk_repo()).pair("nope", _db())

    async def test_active_order_is_ineligible(self) -> None:
        orders = AsyncMock()
        orders.get_by_id.return_value = _make_order(status=OrderStatus.ACTIVE.value)
        result = await _engine(orders, _chunk_repo()).pair("buyer-1", _db())
        assert result.outcome is PairingOutcome.INELIGIBLE
        orders.list_counterparties.assert_not_awaited()

    async def test_fully_allocated_has_nothing_to_pair(self) -> None:
        orders = AsyncMock()
        orders.get_by_id.return_value = _make_order()
        chunks = _chunk_repo()
        chunks.allocated_to_buyer.return_value = 1_000
        result = await _engine(orders, chunks).pair("buyer-1", _db())
        assert result.outcome is PairingOutcome.NOTHING_TO_PAIR

    async def test_busy_lock_touches_nothing(self) -> None:
        orders = AsyncMock()
        lock = LocalMatchingLock()
        engine = _engine(orders, _chunk_repo(), lock)
        async with lock.hold():
            result = await engine.pair("buyer-1", _db())
        assert result.outcome is PairingOutcome.LOCKED
        orders.get_by_id.assert_not_awaited()


class TestPairAllocation:
    async def test_exact_match_creates_one_chunk(self) -> None:
        orders = AsyncMock()
        orders.get_by_id.return_value = _make_order()
        orders.list_counterparties.return_value = [_seller()]
        orders.reserve.return_value = True
        chunks = _chunk_repo()
        db = _db()

        result = await _engine(orders, chunks).pair("buyer-1", db, commit=True)

        assert result.outcome is PairingOutcome.PAIRED
        assert result.allocated == 1_000
        assert result.remaining == 0
        orders.list_counterparties.assert_awaited_once_with(OrderRole.SELL, db)
        reserved = [c.args[:3] for c in orders.reserve.await_args_list]
        assert reserved == [("seller-1", OrderRole.SELL, 1_000), ("buyer-1", OrderRole.BUY, 1_000)]
        chunks.insert.assert_awaited_once()
        db.commit.assert_awaited_once()

    async def test_same_owner_is_skipped(self) -> None:
        orders = AsyncMock()
        orders.get_by_id.return_value = _make_order()
        orders.list_counterparties.return_value = [_seller(owner_id="alice")]
        result = await _engine(orders, _chunk_repo()).pair("buyer-1", _db())
        assert result.outcome is PairingOutcome.NO_COUNTERPARTY
        orders.reserve.assert_not_awaited()

    async def test_amount_below_min_chunk_is_skipped(self) -> None:
        orders = AsyncMock()
        orders.get_by_id.return_value = _make_order()
        chunks = _chunk_repo()
        chunks.allocated_to_seller.return_value = 950  # 50 left on the seller
        orders.list_counterparties.return_value = [_seller()]
        result = await _engine(orders, chunks).pair("buyer-1", _db())
        assert result.outcome is PairingOutcome.NO_COUNTERPARTY
        orders.reserve.assert_not_awaited()

    async def test_outstanding_chunk_with_same_seller_is_skipped(self) -> None:
        orders = AsyncMock()
        orders.get_by_id.return_value = _make_order()
        orders.list_counterparties.return_value = [_seller()]
        chunks = _chunk_repo()
        chunks.has_open_chunk.return_value = True
        result = await _engine(orders, chunks).pair("buyer-1", _db())
        assert result.outcome is PairingOutcome.NO_COUNTERPARTY
        chunks.insert.assert_not_awaited()

    async def test_lost_seller_reservation_writes_no_chunk(self) -> None:
        orders = AsyncMock()
        orders.get_by_id.return_value = _make_order()
        orders.list_counterparties.return_value = [_seller()]
        orders.reserve.return_value = False
        chunks = _chunk_repo()
        result = await _engine(orders, chunks).pair("buyer-1", _db())
        assert result.outcome is PairingOutcome.NO_COUNTERPARTY
        chunks.insert.assert_not_awaited()

    async def test_lost_buyer_reservation_writes_no_chunk(self) -> None:
        orders = AsyncMock()
        orders.get_by_id.return_value = _make_order()
        orders.list_counterparties.return_value = [_seller()]
        orders.reserve.side_effect = [True, False]
        chunks = _chunk_repo()
        result = await _engine(orders, chunks).pair("buyer-1", _db())
        assert result.outcome is PairingOutcome.NO_COUNTERPARTY
        chunks.insert.assert_not_awaited()

    async def test_seller_initiated_pass_walks_buyers(self) -> None:
        orders = AsyncMock()
        orders.get_by_id.return_value = _seller()
        orders.list_counterparties.return_value = [
            _make_order(id="buyer-1", principal=400, remaining_to_send=400),
            _make_order(id="buyer-2", owner_id="carol", principal=700, remaining_to_send=700),
        ]
        orders.reserve.return_value = True
        result = await _engine(orders, _chunk_repo()).pair("seller-1", _db())
        assert result.outcome is PairingOutcome.PAIRED
        assert [a.amount for a in result.allocations] == [400, 600]
        assert [a.buyer_order_id for a in result.allocations] == ["buyer-1", "buyer-2"]
