# src/tm_admin/application/service.py
"""Admin application service."""
import logging
from collections import defaultdict
from dataclasses import asdict
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_chunk.application.ledger import ChunkLedger
from src.tm_common.datetime_utils import utc_now
from src.tm_common.enums import OrderRole, OrderStatus, SubStatus
from src.tm_common.errors import OrderNotFoundError, OrderNotRevokedError
from src.tm_common.id_generator import generate_id
from src.tm_lifecycle.application.scheduler import LifecycleScheduler
from src.tm_lifecycle.application.service import get_lifecycle_scheduler
from src.tm_order.domain.models import Order
from src.tm_order.domain.repository import OrderRepositoryProtocol
from src.tm_order.infrastructure.persistence import OrderRepository
from src.tm_pool.application.service import LiquidityPool

logger = logging.getLogger(__name__)

_SELLER_STATUSES = (OrderStatus.MATURED.value, OrderStatus.CLOSED.value)


class AdminService:
    def __init__(
        self,
        orders: OrderRepositoryProtocol | None = None,
        ledger: ChunkLedger | None = None,
        pool: LiquidityPool | None = None,
        scheduler: LifecycleScheduler | None = None,
    ) -> None:
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()
        self._ledger = ledger or ChunkLedger()
        self._pool = pool or LiquidityPool()
        self._scheduler = scheduler

    @property
    def scheduler(self) -> LifecycleScheduler:
        return self._scheduler or get_lifecycle_scheduler()

    async def reinstate(self, order_id: str, db: AsyncSession) -> dict[str, Any]:
        """REVOKED -> PENDING: re-debit the pool for the unallocated principal and re-pair."""
        try:
            order = await self._orders.get_by_id(order_id, db)
            if order is None:
                raise OrderNotFoundError(order_id)
            if order.status != OrderStatus.REVOKED.value:
                raise OrderNotRevokedError(order_id, order.status)
            now = utc_now()
            if not await self._orders.reinstate(order.id, now, db):
                # reinstated concurrently by another admin call
                raise OrderNotRevokedError(order_id, "PENDING")
            outstanding = await self._ledger.remaining_to_send(order, db)
            await self._pool.debit(outstanding, db, order_id=order.id, reason="admin reinstate")
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.warning("order %s reinstated by admin, re-debited %d", order_id, outstanding)

        result = await self.scheduler.engine.pair(order_id, db, commit=True)
        return {
            "order_id": order_id,
            "status": OrderStatus.PENDING.value,
            "pool_debited": outstanding,
            "pairing": result.outcome.value,
            "allocated": result.allocated,
        }

    async def seed_matured_seller(
        self, owner_id: str, target_payout: int, db: AsyncSession
    ) -> dict[str, Any]:
        """Create a MATURED order that is owed target_payout, to bootstrap liquidity."""
        now = utc_now()
        order = Order(
            id=generate_id(),
            owner_id=owner_id,
            principal=0,
            expected_payout=target_payout,
            target_payout=target_payout,
            duration_days=0,
            profit_percent=0,
            status=OrderStatus.MATURED.value,
            sub_status=SubStatus.WAITING_TO_BE_PAIRED.value,
            remaining_to_receive=target_payout,
            returned_to_pool=True,
            maturity_at=now,
            matured_at=now,
            created_at=now,
            updated_at=now,
        )
        try:
            await self._orders.save(order, db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.warning("seller %s seeded for %s owing %d", order.id, owner_id, target_payout)

        result = await self.scheduler.engine.pair(order.id, db, commit=True)
        return {
            "order_id": order.id,
            "status": OrderStatus.MATURED.value,
            "target_payout": target_payout,
            "pairing": result.outcome.value,
            "allocated": result.allocated,
        }

    async def set_pool_balance(self, balance: int, db: AsyncSession) -> dict[str, Any]:
        try:
            await self._pool.set_balance(balance, db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return {"name": self._pool.name, "balance": balance}

    async def run_sweep(self, name: str, db: AsyncSession) -> dict[str, Any]:
        scheduler = self.scheduler
        if name == "maturity":
            report: Any = await scheduler.run_maturity_sweep(db)
        elif name == "timeout":
            report = await scheduler.run_timeout_sweep(db)
        else:
            report = await scheduler.run_matching_sweep(db)
        return {"sweep": name, **asdict(report)}

    async def verify_invariants(self, db: AsyncSession) -> list[str]:
        """Audit conservation, no-overshoot and no-duplicate-pairing. Returns violation strings."""
        violations: list[str] = []
        chunks = await self._ledger.repo.list_all(db)
        by_buyer: dict[str, int] = defaultdict(int)
        by_seller: dict[str, int] = defaultdict(int)
        open_pairs: dict[tuple[str, str], int] = defaultdict(int)
        for chunk in chunks:
            by_buyer[chunk.buyer_order_id] += chunk.amount
            by_seller[chunk.seller_order_id] += chunk.amount
            if chunk.is_open:
                open_pairs[(chunk.buyer_order_id, chunk.seller_order_id)] += 1

        for order in await self._orders.list_all(db):
            allocated = by_buyer.get(order.id, 0)
            if allocated > order.principal:
                violations.append(
                    f"order {order.id}: buyer chunks {allocated} exceed "
                    f"principal {order.principal}"
                )
            if order.remaining_to_send + allocated != order.principal:
                violations.append(
                    f"order {order.id}: remaining_to_send({order.remaining_to_send}) + "
                    f"chunks({allocated}) != principal({order.principal})"
                )
            sold = by_seller.get(order.id, 0)
            if order.target_payout is not None and order.status in _SELLER_STATUSES and (
                order.remaining_to_receive + sold != order.target_payout
            ):
                violations.append(
                    f"order {order.id}: remaining_to_receive({order.remaining_to_receive}) + "
                    f"chunks({sold}) != target_payout({order.target_payout})"
                )
            if sold and sold > order.capacity_for(OrderRole.SELL):
                violations.append(
                    f"order {order.id}: seller chunks {sold} exceed target "
                    f"{order.target_payout}"
                )

        for (buyer_id, seller_id), count in open_pairs.items():
            if count > 1:
                violations.append(
                    f"pair buyer={buyer_id} seller={seller_id}: {count} open chunks"
                )
        for msg in violations:
            logger.error("invariant violated: %s", msg)
        return violations
