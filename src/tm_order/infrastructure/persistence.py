# src/tm_order/infrastructure/persistence.py
"""OrderRepository — SQLAlchemy Core persistence over the orders table.

Every state transition is a conditional UPDATE guarded on the expected
current status; the returned bool says whether this caller made the
transition. Balance counters move only through reserve()/give_back(), which
are evaluated by the database (x = x - :amt WHERE x >= :amt), never
read-modify-write.
"""
from datetime import datetime
from typing import Any

from sqlalchemy import and_, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.datetime_utils import ensure_utc
from src.tm_common.enums import OrderRole, OrderStatus, SubStatus
from src.tm_order.domain.models import BUYER_STATUSES, Order
from src.tm_order.infrastructure.db_models import OrderORM

_orders = OrderORM.__table__

_COUNTER_BY_ROLE = {
    OrderRole.BUY: _orders.c.remaining_to_send,
    OrderRole.SELL: _orders.c.remaining_to_receive,
}

_OLDEST_FIRST = (_orders.c.created_at.asc(), _orders.c.id.asc())

_BUY_SIDE_OPEN = and_(
    _orders.c.status.in_(BUYER_STATUSES),
    _orders.c.remaining_to_send > 0,
)
_SELL_SIDE_OPEN = and_(
    _orders.c.status == OrderStatus.MATURED.value,
    _orders.c.remaining_to_receive > 0,
)


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object."""
    return Order(
        id=row.id,
        owner_id=row.owner_id,
        status=row.status,
        sub_status=row.sub_status,
        principal=row.principal,
        expected_payout=row.expected_payout,
        target_payout=row.target_payout,
        duration_days=row.duration_days,
        profit_percent=row.profit_percent,
        remaining_to_send=row.remaining_to_send,
        remaining_to_receive=row.remaining_to_receive,
        referral_bonus=row.referral_bonus,
        returned_to_pool=bool(row.returned_to_pool),
        maturity_at=ensure_utc(row.maturity_at),
        activated_at=ensure_utc(row.activated_at),
        matured_at=ensure_utc(row.matured_at),
        closed_at=ensure_utc(row.closed_at),
        revoked_at=ensure_utc(row.revoked_at),
        revoked_reason=row.revoked_reason,
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol."""

    async def save(self, order: Order, db: AsyncSession) -> None:
        await db.execute(
            insert(_orders).values(
                id=order.id,
                owner_id=order.owner_id,
                status=order.status,
                sub_status=order.sub_status,
                principal=order.principal,
                expected_payout=order.expected_payout,
                target_payout=order.target_payout,
                duration_days=order.duration_days,
                profit_percent=order.profit_percent,
                remaining_to_send=order.remaining_to_send,
                remaining_to_receive=order.remaining_to_receive,
                referral_bonus=order.referral_bonus,
                returned_to_pool=order.returned_to_pool,
                maturity_at=order.maturity_at,
                matured_at=order.matured_at,
                created_at=order.created_at,
                updated_at=order.updated_at or order.created_at,
            )
        )

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None:
        result = await db.execute(select(_orders).where(_orders.c.id == order_id))
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def list_by_owner(
        self,
        owner_id: str,
        statuses: list[str] | None,
        limit: int,
        cursor_id: str | None,
        db: AsyncSession,
    ) -> list[Order]:
        stmt = select(_orders).where(_orders.c.owner_id == owner_id)
        if statuses:
            stmt = stmt.where(_orders.c.status.in_(statuses))
        if cursor_id:
            stmt = stmt.where(_orders.c.id < cursor_id)
        stmt = stmt.order_by(_orders.c.id.desc()).limit(limit)
        rows = (await db.execute(stmt)).fetchall()
        return [_row_to_order(row) for row in rows]

    async def list_counterparties(self, role: OrderRole, db: AsyncSession) -> list[Order]:
        """Orders able to take the given role right now, oldest first."""
        condition = _BUY_SIDE_OPEN if role is OrderRole.BUY else _SELL_SIDE_OPEN
        stmt = select(_orders).where(condition).order_by(*_OLDEST_FIRST)
        rows = (await db.execute(stmt)).fetchall()
        return [_row_to_order(row) for row in rows]

    async def list_matchable(self, db: AsyncSession) -> list[Order]:
        stmt = (
            select(_orders)
            .where(or_(_BUY_SIDE_OPEN, _SELL_SIDE_OPEN))
            .order_by(*_OLDEST_FIRST)
        )
        rows = (await db.execute(stmt)).fetchall()
        return [_row_to_order(row) for row in rows]

    async def list_due_for_maturity(self, now: datetime, db: AsyncSession) -> list[Order]:
        stmt = (
            select(_orders)
            .where(
                _orders.c.status == OrderStatus.ACTIVE.value,
                _orders.c.maturity_at.is_not(None),
                _orders.c.maturity_at <= now,
            )
            .order_by(*_OLDEST_FIRST)
        )
        rows = (await db.execute(stmt)).fetchall()
        return [_row_to_order(row) for row in rows]

    async def list_all(self, db: AsyncSession) -> list[Order]:
        rows = (await db.execute(select(_orders).order_by(*_OLDEST_FIRST))).fetchall()
        return [_row_to_order(row) for row in rows]

    # -- atomic counters -----------------------------------------------------

    async def reserve(
        self, order_id: str, role: OrderRole, amount: int, db: AsyncSession
    ) -> bool:
        """Compare-and-decrement the role's counter. False means the race was lost."""
        counter = _COUNTER_BY_ROLE[role]
        result = await db.execute(
            update(_orders)
            .where(_orders.c.id == order_id, counter >= amount)
            .values({counter.name: counter - amount})
        )
        return result.rowcount == 1

    async def give_back(
        self, order_id: str, role: OrderRole, amount: int, db: AsyncSession
    ) -> None:
        counter = _COUNTER_BY_ROLE[role]
        await db.execute(
            update(_orders)
            .where(_orders.c.id == order_id)
            .values({counter.name: counter + amount})
        )

    # -- transitions ---------------------------------------------------------

    async def set_sub_status(
        self, order_id: str, sub_status: str, now: datetime, db: AsyncSession
    ) -> None:
        await db.execute(
            update(_orders)
            .where(_orders.c.id == order_id)
            .values(sub_status=sub_status, updated_at=now)
        )

    async def mark_paired(self, order_id: str, now: datetime, db: AsyncSession) -> bool:
        result = await db.execute(
            update(_orders)
            .where(_orders.c.id == order_id, _orders.c.status == OrderStatus.PENDING.value)
            .values(
                status=OrderStatus.PAIRED.value,
                sub_status=SubStatus.WAITING_FOR_PAYMENT.value,
                updated_at=now,
            )
        )
        return result.rowcount == 1

    async def activate(
        self,
        order_id: str,
        target_payout: int,
        maturity_at: datetime,
        now: datetime,
        db: AsyncSession,
    ) -> bool:
        result = await db.execute(
            update(_orders)
            .where(_orders.c.id == order_id, _orders.c.status.in_(BUYER_STATUSES))
            .values(
                status=OrderStatus.ACTIVE.value,
                sub_status=SubStatus.RUNNING.value,
                target_payout=target_payout,
                maturity_at=maturity_at,
                activated_at=now,
                updated_at=now,
            )
        )
        return result.rowcount == 1

    async def mature(self, order_id: str, now: datetime, db: AsyncSession) -> bool:
        """ACTIVE -> MATURED; the seller counter starts at the full target payout."""
        result = await db.execute(
            update(_orders)
            .where(
                _orders.c.id == order_id,
                _orders.c.status == OrderStatus.ACTIVE.value,
                _orders.c.maturity_at <= now,
            )
            .values(
                status=OrderStatus.MATURED.value,
                sub_status=SubStatus.WAITING_TO_BE_PAIRED.value,
                remaining_to_receive=_orders.c.target_payout,
                matured_at=now,
                updated_at=now,
            )
        )
        return result.rowcount == 1

    async def claim_pool_return(self, order_id: str, db: AsyncSession) -> bool:
        """Flip returned_to_pool once; only the caller that flips it may credit the pool."""
        result = await db.execute(
            update(_orders)
            .where(_orders.c.id == order_id, _orders.c.returned_to_pool.is_(False))
            .values(returned_to_pool=True)
        )
        return result.rowcount == 1

    async def close(self, order_id: str, now: datetime, db: AsyncSession) -> bool:
        result = await db.execute(
            update(_orders)
            .where(_orders.c.id == order_id, _orders.c.status == OrderStatus.MATURED.value)
            .values(
                status=OrderStatus.CLOSED.value,
                sub_status=SubStatus.COMPLETED.value,
                closed_at=now,
                updated_at=now,
            )
        )
        return result.rowcount == 1

    async def revoke(
        self, order_id: str, reason: str, now: datetime, db: AsyncSession
    ) -> bool:
        result = await db.execute(
            update(_orders)
            .where(_orders.c.id == order_id, _orders.c.status.in_(BUYER_STATUSES))
            .values(
                status=OrderStatus.REVOKED.value,
                sub_status=SubStatus.PAYMENT_TIMEOUT.value,
                revoked_at=now,
                revoked_reason=reason,
                updated_at=now,
            )
        )
        return result.rowcount == 1

    async def reopen_seller(self, order_id: str, now: datetime, db: AsyncSession) -> bool:
        result = await db.execute(
            update(_orders)
            .where(
                _orders.c.id == order_id,
                _orders.c.status != OrderStatus.CLOSED.value,
                _orders.c.target_payout.is_not(None),
            )
            .values(
                status=OrderStatus.MATURED.value,
                sub_status=SubStatus.WAITING_TO_BE_PAIRED.value,
                updated_at=now,
            )
        )
        return result.rowcount == 1

    async def reinstate(self, order_id: str, now: datetime, db: AsyncSession) -> bool:
        result = await db.execute(
            update(_orders)
            .where(_orders.c.id == order_id, _orders.c.status == OrderStatus.REVOKED.value)
            .values(
                status=OrderStatus.PENDING.value,
                sub_status=SubStatus.PENDING.value,
                revoked_at=None,
                revoked_reason=None,
                updated_at=now,
            )
        )
        return result.rowcount == 1
