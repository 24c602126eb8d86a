# src/tm_order/application/service.py
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.tm_chunk.application.ledger import ChunkLedger
from src.tm_chunk.application.schemas import ChunkListResponse, ChunkResponse
from src.tm_chunk.domain.models import Chunk
from src.tm_common.datetime_utils import utc_now
from src.tm_common.enums import OrderStatus, SubStatus
from src.tm_common.errors import NotOrderOwnerError, OrderNotFoundError, PurchaseOutOfRangeError
from src.tm_common.id_generator import generate_id
from src.tm_lifecycle.application.service import get_lifecycle_scheduler
from src.tm_matching.domain.models import PairingResult
from src.tm_order.application.schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    OrderBalanceResponse,
    OrderListResponse,
    OrderResponse,
    PairingResponse,
)
from src.tm_order.domain.models import Order
from src.tm_order.infrastructure.persistence import OrderRepository
from src.tm_pool.application.service import LiquidityPool
from src.tm_referral.application.service import ReferralService

logger = logging.getLogger(__name__)

_repo = OrderRepository()
_ledger = ChunkLedger()
_pool = LiquidityPool()
_referrals = ReferralService()


def _pairing_to_response(result: PairingResult) -> PairingResponse:
    return PairingResponse(
        outcome=result.outcome.value,
        allocated=result.allocated,
        remaining=result.remaining,
        chunk_ids=[a.chunk_id for a in result.allocations],
    )


def _check_purchase_bounds(principal: int) -> None:
    if not (settings.MIN_PURCHASE <= principal <= settings.MAX_PURCHASE):
        raise PurchaseOutOfRangeError(principal, settings.MIN_PURCHASE, settings.MAX_PURCHASE)


async def _load_visible(order_id: str, user_id: str, is_admin: bool, db: AsyncSession) -> Order:
    order = await _repo.get_by_id(order_id, db)
    if order is None:
        raise OrderNotFoundError(order_id)
    if order.owner_id != user_id and not is_admin:
        raise NotOrderOwnerError(order_id)
    return order


async def create_buyer_order(
    req: CreateOrderRequest, owner_id: str, db: AsyncSession
) -> CreateOrderResponse:
    """Record a purchase, debit the pool, then try to pair it straight away.

    The order is committed before matching runs, so a busy matching lock or
    a pairing failure leaves a valid PENDING order for the next sweep.
    """
    plan = req.resolve_plan()
    _check_purchase_bounds(req.principal)
    now = utc_now()
    try:
        order_id = generate_id()
        bonus = await _referrals.claim_pending(owner_id, order_id, now, db)
        order = Order(
            id=order_id,
            owner_id=owner_id,
            principal=req.principal,
            expected_payout=plan.expected_payout(req.principal) + bonus,
            duration_days=plan.duration_days,
            profit_percent=plan.profit_percent,
            status=OrderStatus.PENDING.value,
            sub_status=SubStatus.PENDING.value,
            remaining_to_send=req.principal,
            referral_bonus=bonus,
            created_at=now,
            updated_at=now,
        )
        await _repo.save(order, db)
        await _pool.debit(req.principal, db, order_id=order.id, reason="purchase")
        await _referrals.record_bonus(req.referrer_id, owner_id, order.id, req.principal, now, db)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info(
        "order %s created: owner=%s principal=%d plan=%r expected=%d",
        order.id,
        owner_id,
        order.principal,
        plan.label,
        order.expected_payout,
    )

    pairing: PairingResponse | None = None
    try:
        result = await get_lifecycle_scheduler().after_order_created(order.id, db)
        pairing = _pairing_to_response(result)
    except Exception:
        await db.rollback()
        logger.exception("pairing after creation failed for order %s", order.id)

    refreshed = await _repo.get_by_id(order.id, db)
    return CreateOrderResponse(
        order=OrderResponse.from_order(refreshed or order),
        pairing=pairing,
    )


async def get_order(
    order_id: str, user_id: str, db: AsyncSession, is_admin: bool = False
) -> OrderResponse:
    order = await _load_visible(order_id, user_id, is_admin, db)
    return OrderResponse.from_order(order)


async def list_orders(
    user_id: str,
    status: str | None,
    limit: int,
    cursor: str | None,
    db: AsyncSession,
) -> OrderListResponse:
    statuses = [status] if status else None
    orders = await _repo.list_by_owner(
        owner_id=user_id,
        statuses=statuses,
        limit=limit + 1,
        cursor_id=cursor,
        db=db,
    )
    has_more = len(orders) > limit
    if has_more:
        orders = orders[:limit]
    next_cursor = orders[-1].id if has_more else None
    return OrderListResponse(
        items=[OrderResponse.from_order(o) for o in orders],
        next_cursor=next_cursor,
        has_more=has_more,
    )


async def get_balance(
    order_id: str, user_id: str, db: AsyncSession, is_admin: bool = False
) -> OrderBalanceResponse:
    order = await _load_visible(order_id, user_id, is_admin, db)
    return OrderBalanceResponse(
        order_id=order.id,
        status=order.status,
        remaining_to_send=await _ledger.remaining_to_send(order, db),
        remaining_to_receive=await _ledger.remaining_to_receive(order, db),
    )


def _chunk_list(order_id: str, chunks: list[Chunk]) -> ChunkListResponse:
    return ChunkListResponse(
        order_id=order_id,
        items=[ChunkResponse.from_chunk(c) for c in chunks],
        total_amount=sum(c.amount for c in chunks),
    )


async def list_buyer_chunks(
    order_id: str, user_id: str, db: AsyncSession, is_admin: bool = False
) -> ChunkListResponse:
    order = await _load_visible(order_id, user_id, is_admin, db)
    return _chunk_list(order.id, await _ledger.repo.list_for_buyer(order.id, db))


async def list_seller_chunks(
    order_id: str, user_id: str, db: AsyncSession, is_admin: bool = False
) -> ChunkListResponse:
    order = await _load_visible(order_id, user_id, is_admin, db)
    return _chunk_list(order.id, await _ledger.repo.list_for_seller(order.id, db))
