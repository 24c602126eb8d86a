# src/tm_order/domain/repository.py
"""OrderRepository Protocol — interface contract for persistence layer."""
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.enums import OrderRole
from src.tm_order.domain.models import Order


class OrderRepositoryProtocol(Protocol):
    async def save(self, order: Order, db: AsyncSession) -> None: ...

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def list_by_owner(
        self,
        owner_id: str,
        statuses: list[str] | None,
        limit: int,
        cursor_id: str | None,
        db: AsyncSession,
    ) -> list[Order]: ...

    async def list_counterparties(self, role: OrderRole, db: AsyncSession) -> list[Order]: ...

    async def list_matchable(self, db: AsyncSession) -> list[Order]: ...

    async def list_due_for_maturity(self, now: datetime, db: AsyncSession) -> list[Order]: ...

    async def list_all(self, db: AsyncSession) -> list[Order]: ...

    async def reserve(
        self, order_id: str, role: OrderRole, amount: int, db: AsyncSession
    ) -> bool: ...

    async def give_back(
        self, order_id: str, role: OrderRole, amount: int, db: AsyncSession
    ) -> None: ...

    async def set_sub_status(
        self, order_id: str, sub_status: str, now: datetime, db: AsyncSession
    ) -> None: ...

    async def mark_paired(self, order_id: str, now: datetime, db: AsyncSession) -> bool: ...

    async def activate(
        self,
        order_id: str,
        target_payout: int,
        maturity_at: datetime,
        now: datetime,
        db: AsyncSession,
    ) -> bool: ...

    async def mature(self, order_id: str, now: datetime, db: AsyncSession) -> bool: ...

    async def claim_pool_return(self, order_id: str, db: AsyncSession) -> bool: ...

    async def close(self, order_id: str, now: datetime, db: AsyncSession) -> bool: ...

    async def revoke(
        self, order_id: str, reason: str, now: datetime, db: AsyncSession
    ) -> bool: ...

    async def reopen_seller(self, order_id: str, now: datetime, db: AsyncSession) -> bool: ...

    async def reinstate(self, order_id: str, now: datetime, db: AsyncSession) -> bool: ...
