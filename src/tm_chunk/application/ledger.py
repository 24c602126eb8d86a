# src/tm_chunk/application/ledger.py
"""Ledger-derived balances.

remaining = capacity - sum(existing chunk amounts), clamped at zero. These
values, not the counters on the orders row, decide how much may be
allocated; the counters only arbitrate concurrent reservations.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_chunk.domain.repository import ChunkRepositoryProtocol
from src.tm_chunk.infrastructure.persistence import ChunkRepository
from src.tm_common.enums import OrderRole
from src.tm_order.domain.models import Order


class ChunkLedger:
    def __init__(self, repo: ChunkRepositoryProtocol | None = None) -> None:
        self.repo: ChunkRepositoryProtocol = repo or ChunkRepository()

    async def remaining_to_send(self, order: Order, db: AsyncSession) -> int:
        allocated = await self.repo.allocated_to_buyer(order.id, db)
        return max(0, order.principal - allocated)

    async def remaining_to_receive(self, order: Order, db: AsyncSession) -> int:
        if order.target_payout is None:
            return 0
        allocated = await self.repo.allocated_to_seller(order.id, db)
        return max(0, order.target_payout - allocated)

    async def remaining_for(self, order: Order, role: OrderRole, db: AsyncSession) -> int:
        if role is OrderRole.BUY:
            return await self.remaining_to_send(order, db)
        return await self.remaining_to_receive(order, db)
