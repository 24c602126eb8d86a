# tests/unit/test_order_persistence.py
"""Unit tests for OrderRepository using MagicMock AsyncSession."""
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.tm_common.enums import OrderRole
from src.tm_order.domain.models import Order
from src.tm_order.infrastructure.persistence import OrderRepository


def _make_row(**kwargs: Any) -> MagicMock:
    """Create a mock row with all Order fields."""
    row = MagicMock()
    row.id = kwargs.get("id", "ord-1")
    row.owner_id = kwargs.get("owner_id", "alice")
    row.status = kwargs.get("status", "PENDING")
    row.sub_status = kwargs.get("sub_status", "Pending")
    row.principal = kwargs.get("principal", 100_000)
    row.expected_payout = kwargs.get("expected_payout", 130_000)
    row.target_payout = kwargs.get("target_payout")
    row.duration_days = kwargs.get("duration_days", 4)
    row.profit_percent = kwargs.get("profit_percent", 30)
    row.remaining_to_send = kwargs.get("remaining_to_send", 100_000)
    row.remaining_to_receive = kwargs.get("remaining_to_receive", 0)
    row.referral_bonus = kwargs.get("referral_bonus", 0)
    row.returned_to_pool = kwargs.get("returned_to_pool", 0)
    row.maturity_at = kwargs.get("maturity_at")
    row.activated_at = kwargs.get("activated_at")
    row.matured_at = kwargs.get("matured_at")
    row.closed_at = kwargs.get("closed_at")
    row.revoked_at = kwargs.get("revoked_at")
    row.revoked_reason = kwargs.get("revoked_reason")
    row.created_at = kwargs.get("created_at", datetime(2026, 1, 1, 12, 0))
    row.updated_at = kwargs.get("updated_at", datetime(2026, 1, 1, 12, 0))
    return row


def _result(rowcount: int) -> MagicMock:
    result = MagicMock()
    result.rowcount = rowcount
    return result


class TestOrderRepository:
    @pytest.mark.asyncio
    async def test_save_executes_insert(self) -> None:
        db = AsyncMock()
        order = Order(
            id="ord-1",
            owner_id="alice",
            principal=100_000,
            expected_payout=130_000,
            duration_days=4,
            profit_percent=30,
            remaining_to_send=100_000,
            created_at=datetime.now(UTC),
        )
        await OrderRepository().save(order, db)
        db.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_by_id_maps_row(self) -> None:
        db = AsyncMock()
        result_mock = MagicMock()
        result_mock.fetchone.return_value = _make_row()
        db.execute.return_value = result_mock
        order = await OrderRepository().get_by_id("ord-1", db)
        assert order is not None
        assert order.status == "PENDING"
        assert order.returned_to_pool is False
        # naive timestamps from SQLite come back as UTC
        assert order.created_at == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self) -> None:
        db = AsyncMock()
        result_mock = MagicMock()
        result_mock.fetchone.return_value = None
        db.execute.return_value = result_mock
        assert await OrderRepository().get_by_id("nope", db) is None

    @pytest.mark.asyncio
    async def test_reserve_won(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(1)
        assert await OrderRepository().reserve("ord-1", OrderRole.BUY, 400, db)

    @pytest.mark.asyncio
    async def test_reserve_lost(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(0)
        assert not await OrderRepository().reserve("ord-1", OrderRole.SELL, 400, db)

    @pytest.mark.asyncio
    async def test_reserve_sql_is_conditional(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(1)
        await OrderRepository().reserve("ord-1", OrderRole.SELL, 400, db)
        stmt = db.execute.call_args[0][0]
        sql = str(stmt.compile(compile_kwargs={"literal_binds": True}))
        assert "remaining_to_receive >= 400" in sql
        assert "orders.remaining_to_receive - 400" in sql

    @pytest.mark.asyncio
    async def test_transitions_report_rowcount(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(0)
        repo = OrderRepository()
        now = datetime.now(UTC)
        assert not await repo.mark_paired("ord-1", now, db)
        assert not await repo.close("ord-1", now, db)
        assert not await repo.revoke("ord-1", "reason", now, db)
        assert not await repo.reinstate("ord-1", now, db)
        assert not await repo.claim_pool_return("ord-1", db)
