# src/tm_lifecycle/application/scheduler.py
"""LifecycleScheduler — maturity, timeout and matching sweeps.

Each sweep is safe to run repeatedly and concurrently with itself: every
transition it makes is a conditional UPDATE/DELETE that only one caller can
win, and the pool is only touched by the caller that won. One failing
order or chunk is rolled back to its savepoint, logged and skipped.
"""
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tm_chunk.application.ledger import ChunkLedger
from src.tm_chunk.domain.models import Chunk
from src.tm_common.datetime_utils import utc_now
from src.tm_common.enums import OrderRole, SubStatus
from src.tm_lifecycle.domain.models import (
    REVOKE_REASON_PAYMENT_TIMEOUT,
    MaturitySweepReport,
    TimeoutSweepReport,
    VoidOutcome,
)
from src.tm_matching.domain.models import MatchingSweepReport, PairingResult
from src.tm_matching.engine.engine import MatchingEngine
from src.tm_order.domain.repository import OrderRepositoryProtocol
from src.tm_order.infrastructure.persistence import OrderRepository
from src.tm_pool.application.service import LiquidityPool

logger = logging.getLogger(__name__)


class LifecycleScheduler:
    def __init__(
        self,
        engine: MatchingEngine,
        orders: OrderRepositoryProtocol | None = None,
        ledger: ChunkLedger | None = None,
        pool: LiquidityPool | None = None,
        clock: Callable[[], datetime] = utc_now,
        payment_deadline_seconds: int | None = None,
    ) -> None:
        self._engine = engine
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()
        self._ledger = ledger or ChunkLedger()
        self._pool = pool or LiquidityPool()
        self._clock = clock
        self._deadline = timedelta(
            seconds=payment_deadline_seconds or settings.PAYMENT_DEADLINE_SECONDS
        )

    @property
    def engine(self) -> MatchingEngine:
        return self._engine

    # ------------------------------------------------------------------
    # Maturity
    # ------------------------------------------------------------------

    async def run_maturity_sweep(self, db: AsyncSession) -> MaturitySweepReport:
        """Promote due ACTIVE orders to MATURED, credit the pool once, then offer them for matching."""
        now = self._clock()
        report = MaturitySweepReport()
        for order in await self._orders.list_due_for_maturity(now, db):
            try:
                async with db.begin_nested():
                    if not await self._orders.mature(order.id, now, db):
                        continue
                    if await self._orders.claim_pool_return(order.id, db):
                        await self._pool.credit(
                            order.target_payout or 0, db, order_id=order.id, reason="maturity"
                        )
                        report.credited += order.target_payout or 0
            except Exception:
                report.failed += 1
                logger.exception("maturity sweep: failed on order %s", order.id)
                continue
            report.matured += 1
            report.order_ids.append(order.id)
            logger.info("order %s matured, owed %s", order.id, order.target_payout)
        await db.commit()

        for order_id in report.order_ids:
            await self._pair_quietly(order_id, db)
        logger.info(
            "maturity sweep: matured=%d credited=%d failed=%d",
            report.matured,
            report.credited,
            report.failed,
        )
        return report

    # ------------------------------------------------------------------
    # Payment timeout
    # ------------------------------------------------------------------

    async def run_timeout_sweep(self, db: AsyncSession) -> TimeoutSweepReport:
        """Void chunks left unpaid past the deadline and revoke buyers left with nothing."""
        now = self._clock()
        report = TimeoutSweepReport()
        rematch: list[str] = []
        for chunk in await self._ledger.repo.list_overdue(now - self._deadline, db):
            try:
                async with db.begin_nested():
                    outcome = await self._void_chunk(chunk, now, db)
            except Exception:
                report.failed += 1
                logger.exception("timeout sweep: failed on chunk %s", chunk.id)
                continue
            if outcome is None:
                report.skipped += 1
                continue
            report.voided += 1
            if outcome.revoked:
                report.revoked += 1
                report.refunded += outcome.refund
                report.revoked_order_ids.append(chunk.buyer_order_id)
            elif chunk.buyer_order_id not in rematch:
                rematch.append(chunk.buyer_order_id)
            if chunk.seller_order_id not in rematch:
                rematch.append(chunk.seller_order_id)
        await db.commit()

        for order_id in rematch:
            if order_id not in report.revoked_order_ids:
                await self._pair_quietly(order_id, db)
        logger.info(
            "timeout sweep: voided=%d skipped=%d revoked=%d refunded=%d failed=%d",
            report.voided,
            report.skipped,
            report.revoked,
            report.refunded,
            report.failed,
        )
        return report

    async def _void_chunk(
        self, chunk: Chunk, now: datetime, db: AsyncSession
    ) -> VoidOutcome | None:
        # status is re-checked by the DELETE itself; a chunk paid meanwhile survives
        if not await self._ledger.repo.delete_if_awaiting(chunk.id, db):
            return None
        await self._orders.give_back(chunk.seller_order_id, OrderRole.SELL, chunk.amount, db)
        await self._orders.give_back(chunk.buyer_order_id, OrderRole.BUY, chunk.amount, db)
        logger.info(
            "chunk %s voided: buyer=%s seller=%s amount=%d",
            chunk.id,
            chunk.buyer_order_id,
            chunk.seller_order_id,
            chunk.amount,
        )

        revoked, refund = False, 0
        buyer = await self._orders.get_by_id(chunk.buyer_order_id, db)
        if buyer is not None:
            buyer_left = await self._ledger.remaining_to_send(buyer, db)
            counts = await self._ledger.repo.buyer_counts(buyer.id, db)
            if buyer_left > 0 and counts.total == 0:
                if await self._orders.revoke(buyer.id, REVOKE_REASON_PAYMENT_TIMEOUT, now, db):
                    await self._pool.credit(
                        buyer_left, db, order_id=buyer.id, reason="payment timeout"
                    )
                    revoked, refund = True, buyer_left
                    logger.warning(
                        "order %s revoked: reason=%r refund=%d",
                        buyer.id,
                        REVOKE_REASON_PAYMENT_TIMEOUT,
                        buyer_left,
                    )
            elif buyer_left > 0:
                await self._orders.set_sub_status(
                    buyer.id, SubStatus.PARTIALLY_PAIRED.value, now, db
                )

        await self._orders.reopen_seller(chunk.seller_order_id, now, db)
        return VoidOutcome(chunk_id=chunk.id, amount=chunk.amount, revoked=revoked, refund=refund)

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    async def run_matching_sweep(self, db: AsyncSession) -> MatchingSweepReport:
        return await self._engine.run_matching_sweep(db, commit=True)

    async def after_order_created(self, order_id: str, db: AsyncSession) -> PairingResult:
        """Eager trigger: bring maturities up to date, then pair the new order."""
        await self.run_maturity_sweep(db)
        return await self._engine.pair(order_id, db, commit=True)

    async def run_all(self, db: AsyncSession) -> None:
        await self.run_timeout_sweep(db)
        await self.run_maturity_sweep(db)
        await self.run_matching_sweep(db)

    async def _pair_quietly(self, order_id: str, db: AsyncSession) -> None:
        try:
            await self._engine.pair(order_id, db, commit=True)
        except Exception:
            await db.rollback()
            logger.exception("pairing after sweep failed for order %s", order_id)
