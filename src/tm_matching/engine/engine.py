"""MatchingEngine — allocates chunks between buyer and matured seller orders."""
import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tm_chunk.application.ledger import ChunkLedger
from src.tm_chunk.domain.models import Chunk
from src.tm_common.datetime_utils import utc_now
from src.tm_common.enums import OrderRole, PairingOutcome, SubStatus
from src.tm_common.errors import OrderNotFoundError
from src.tm_common.id_generator import generate_id
from src.tm_matching.domain.models import Allocation, MatchingSweepReport, PairingResult
from src.tm_matching.engine.lock import MatchingLock
from src.tm_order.domain.models import Order
from src.tm_order.domain.repository import OrderRepositoryProtocol
from src.tm_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


class _ReservationLost(Exception):
    """Buyer-side reservation failed after the seller side succeeded."""


class MatchingEngine:
    def __init__(
        self,
        lock: MatchingLock,
        orders: OrderRepositoryProtocol | None = None,
        ledger: ChunkLedger | None = None,
        min_chunk_amount: int | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._lock = lock
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()
        self._ledger = ledger or ChunkLedger()
        self._min_chunk = (
            settings.MIN_CHUNK_AMOUNT if min_chunk_amount is None else min_chunk_amount
        )
        self._clock = clock

    @property
    def lock(self) -> MatchingLock:
        return self._lock

    async def pair(
        self, order_id: str, db: AsyncSession, *, commit: bool = False
    ) -> PairingResult:
        """Allocate as much of the order's remaining balance as counterparties allow.

        Returns a LOCKED result without touching the database when another
        pass holds the matching lock. With commit=True the session is
        committed before the lock is released.
        """
        async with self._lock.hold() as acquired:
            if not acquired:
                logger.info("pairing skipped for order %s: matching lock busy", order_id)
                return PairingResult(order_id=order_id, outcome=PairingOutcome.LOCKED)
            result = await self._pair_locked(order_id, db)
            if commit:
                await db.commit()
            return result

    async def run_matching_sweep(
        self, db: AsyncSession, *, commit: bool = False
    ) -> MatchingSweepReport:
        """Retry pairing for every order that still has unallocated balance."""
        report = MatchingSweepReport()
        async with self._lock.hold() as acquired:
            if not acquired:
                logger.info("matching sweep skipped: matching lock busy")
                report.skipped = True
                return report
            for order in await self._orders.list_matchable(db):
                report.examined += 1
                try:
                    async with db.begin_nested():
                        result = await self._pair_locked(order.id, db)
                except Exception:
                    report.failed += 1
                    logger.exception("matching sweep: pairing failed for order %s", order.id)
                    continue
                report.chunks_created += len(result.allocations)
            if commit:
                await db.commit()
        logger.info(
            "matching sweep: examined=%d chunks=%d failed=%d",
            report.examined,
            report.chunks_created,
            report.failed,
        )
        return report

    async def _pair_locked(self, order_id: str, db: AsyncSession) -> PairingResult:
        order = await self._orders.get_by_id(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)

        role = order.role
        if role is None:
            return PairingResult(order_id=order_id, outcome=PairingOutcome.INELIGIBLE)

        remaining = await self._ledger.remaining_for(order, role, db)
        if remaining <= 0:
            return PairingResult(order_id=order_id, outcome=PairingOutcome.NOTHING_TO_PAIR)

        allocations: list[Allocation] = []
        for candidate in await self._orders.list_counterparties(role.opposite, db):
            if remaining < self._min_chunk:
                break
            if candidate.id == order.id or candidate.owner_id == order.owner_id:
                continue
            candidate_remaining = await self._ledger.remaining_for(candidate, role.opposite, db)
            amount = min(remaining, candidate_remaining)
            if amount < self._min_chunk:
                continue

            buyer, seller = (order, candidate) if role is OrderRole.BUY else (candidate, order)
            allocation = await self._allocate(buyer, seller, amount, db)
            if allocation is None:
                continue
            allocations.append(allocation)
            remaining -= amount
            if remaining <= 0:
                break

        if not allocations:
            outcome = PairingOutcome.NO_COUNTERPARTY
        elif remaining <= 0:
            outcome = PairingOutcome.PAIRED
        else:
            outcome = PairingOutcome.PARTIAL
        return PairingResult(
            order_id=order_id,
            outcome=outcome,
            allocations=allocations,
            remaining=max(0, remaining),
        )

    async def _allocate(
        self, buyer: Order, seller: Order, amount: int, db: AsyncSession
    ) -> Allocation | None:
        """Reserve both sides and write the chunk in one savepoint, or change nothing."""
        now = self._clock()
        chunk = Chunk(
            id=generate_id(),
            buyer_order_id=buyer.id,
            seller_order_id=seller.id,
            amount=amount,
            paired_at=now,
        )
        try:
            async with db.begin_nested():
                if await self._ledger.repo.has_open_chunk(buyer.id, seller.id, db):
                    logger.debug(
                        "skip pair buyer=%s seller=%s: chunk outstanding", buyer.id, seller.id
                    )
                    return None
                if not await self._orders.reserve(seller.id, OrderRole.SELL, amount, db):
                    logger.info(
                        "seller %s capacity taken concurrently, wanted %d", seller.id, amount
                    )
                    return None
                if not await self._orders.reserve(buyer.id, OrderRole.BUY, amount, db):
                    raise _ReservationLost(buyer.id)
                await self._ledger.repo.insert(chunk, db)
                await self._refresh_sub_statuses(buyer, seller, now, db)
        except _ReservationLost:
            logger.info("buyer %s balance taken concurrently, wanted %d", buyer.id, amount)
            return None
        except IntegrityError:
            logger.info("skip pair buyer=%s seller=%s: duplicate open chunk", buyer.id, seller.id)
            return None

        logger.info(
            "chunk %s created: buyer=%s seller=%s amount=%d",
            chunk.id,
            buyer.id,
            seller.id,
            amount,
        )
        return Allocation(
            chunk_id=chunk.id,
            buyer_order_id=buyer.id,
            seller_order_id=seller.id,
            amount=amount,
        )

    async def _refresh_sub_statuses(
        self, buyer: Order, seller: Order, now: datetime, db: AsyncSession
    ) -> None:
        if await self._ledger.remaining_to_send(buyer, db) <= 0:
            if await self._orders.mark_paired(buyer.id, now, db):
                logger.info("order %s fully allocated, now PAIRED", buyer.id)
            else:
                await self._orders.set_sub_status(
                    buyer.id, SubStatus.WAITING_FOR_PAYMENT.value, now, db
                )
        else:
            await self._orders.set_sub_status(buyer.id, SubStatus.PARTIALLY_PAIRED.value, now, db)

        seller_left = await self._ledger.remaining_to_receive(seller, db)
        note = SubStatus.FULLY_ALLOCATED if seller_left <= 0 else SubStatus.PARTIALLY_ALLOCATED
        await self._orders.set_sub_status(seller.id, note.value, now, db)
