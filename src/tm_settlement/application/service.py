# src/tm_settlement/application/service.py
"""Payment confirmation: buyer marks a chunk paid, seller marks it received.

Receipt triggers the two completion checks:
  - buyer activation: every chunk of the buyer RECEIVED and nothing left to
    allocate -> ACTIVE, maturity_at = now + duration_days, target_payout =
    expected_payout
  - seller closure: RECEIVED total equals target_payout (within
    SETTLEMENT_TOLERANCE cents) -> CLOSED

Each call commits its own transaction; a chunk already past the requested
state is reported as success without changes.
"""
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tm_chunk.application.ledger import ChunkLedger
from src.tm_chunk.application.schemas import ChunkResponse
from src.tm_chunk.domain.models import Chunk
from src.tm_common.cents import within_tolerance
from src.tm_common.datetime_utils import utc_now
from src.tm_common.enums import OPEN_CHUNK_STATUSES, ChunkStatus, OrderStatus, SubStatus
from src.tm_common.errors import ChunkNotFoundError, NotOrderOwnerError, OrderNotFoundError
from src.tm_order.domain.models import BUYER_STATUSES, Order
from src.tm_order.domain.repository import OrderRepositoryProtocol
from src.tm_order.infrastructure.persistence import OrderRepository
from src.tm_settlement.application.schemas import SettlementResponse

logger = logging.getLogger(__name__)


class SettlementService:
    def __init__(
        self,
        orders: OrderRepositoryProtocol | None = None,
        ledger: ChunkLedger | None = None,
        clock: Callable[[], datetime] = utc_now,
        tolerance: int | None = None,
    ) -> None:
        self._orders: OrderRepositoryProtocol = orders or OrderRepository()
        self._ledger = ledger or ChunkLedger()
        self._clock = clock
        self._tolerance = settings.SETTLEMENT_TOLERANCE if tolerance is None else tolerance

    async def mark_chunk_paid(
        self, chunk_id: str, caller_id: str, db: AsyncSession
    ) -> SettlementResponse:
        try:
            chunk, buyer = await self._load(chunk_id, db, buyer_side=True)
            self._check_owner(buyer, caller_id)
            now = self._clock()
            if chunk.status == ChunkStatus.AWAITING_PAYMENT.value:
                moved = await self._ledger.repo.transition(
                    chunk.id,
                    (ChunkStatus.AWAITING_PAYMENT.value,),
                    ChunkStatus.PAYMENT_MADE.value,
                    now,
                    db,
                )
                if moved:
                    await self._orders.set_sub_status(
                        buyer.id, SubStatus.PAYMENT_MADE.value, now, db
                    )
                    logger.info("chunk %s marked paid by %s", chunk.id, caller_id)
            chunk = await self._reload(chunk.id, db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return SettlementResponse(chunk=ChunkResponse.from_chunk(chunk))

    async def mark_chunk_received(
        self, chunk_id: str, caller_id: str, db: AsyncSession
    ) -> SettlementResponse:
        try:
            chunk, seller = await self._load(chunk_id, db, buyer_side=False)
            self._check_owner(seller, caller_id)
            now = self._clock()
            if chunk.status != ChunkStatus.RECEIVED.value:
                moved = await self._ledger.repo.transition(
                    chunk.id, OPEN_CHUNK_STATUSES, ChunkStatus.RECEIVED.value, now, db
                )
                if moved:
                    logger.info("chunk %s marked received by %s", chunk.id, caller_id)
            chunk = await self._reload(chunk.id, db)
            activated = await self.activate_buyer_if_complete(chunk.buyer_order_id, now, db)
            closed = await self.close_seller_if_repaid(chunk.seller_order_id, now, db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return SettlementResponse(
            chunk=ChunkResponse.from_chunk(chunk),
            buyer_activated=activated,
            seller_closed=closed,
        )

    async def activate_buyer_if_complete(
        self, order_id: str, now: datetime, db: AsyncSession
    ) -> bool:
        buyer = await self._orders.get_by_id(order_id, db)
        if buyer is None or buyer.status not in BUYER_STATUSES:
            return False
        counts = await self._ledger.repo.buyer_counts(buyer.id, db)
        if not counts.all_received:
            return False
        if await self._ledger.remaining_to_send(buyer, db) > 0:
            return False
        maturity_at = now + timedelta(days=buyer.duration_days)
        if not await self._orders.activate(buyer.id, buyer.expected_payout, maturity_at, now, db):
            return False
        logger.info(
            "order %s activated: target=%d maturity_at=%s",
            buyer.id,
            buyer.expected_payout,
            maturity_at.isoformat(),
        )
        return True

    async def close_seller_if_repaid(
        self, order_id: str, now: datetime, db: AsyncSession
    ) -> bool:
        seller = await self._orders.get_by_id(order_id, db)
        if (
            seller is None
            or seller.status != OrderStatus.MATURED.value
            or seller.target_payout is None
        ):
            return False
        received = await self._ledger.repo.received_by_seller(seller.id, db)
        if not within_tolerance(received, seller.target_payout, self._tolerance):
            return False
        if not await self._orders.close(seller.id, now, db):
            return False
        logger.info("order %s closed: received=%d", seller.id, received)
        return True

    async def _load(
        self, chunk_id: str, db: AsyncSession, *, buyer_side: bool
    ) -> tuple[Chunk, Order]:
        chunk = await self._ledger.repo.get_by_id(chunk_id, db)
        if chunk is None:
            raise ChunkNotFoundError(chunk_id)
        order_id = chunk.buyer_order_id if buyer_side else chunk.seller_order_id
        order = await self._orders.get_by_id(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        return chunk, order

    async def _reload(self, chunk_id: str, db: AsyncSession) -> Chunk:
        # voided by the timeout sweep between our read and our update
        chunk = await self._ledger.repo.get_by_id(chunk_id, db)
        if chunk is None:
            raise ChunkNotFoundError(chunk_id)
        return chunk

    @staticmethod
    def _check_owner(order: Order, caller_id: str) -> None:
        if order.owner_id != caller_id:
            raise NotOrderOwnerError(order.id)
