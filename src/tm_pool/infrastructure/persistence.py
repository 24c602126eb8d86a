# src/tm_pool/infrastructure/persistence.py
"""LiquidityPoolRepository — atomic counter updates on one named row.

All writes are single UPDATE statements evaluated by the database, never
read-then-write, so concurrent debits and credits cannot lose updates.
"""
from sqlalchemy import case, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_common.datetime_utils import utc_now
from src.tm_pool.infrastructure.db_models import LiquidityPoolORM

_pool = LiquidityPoolORM.__table__


class LiquidityPoolRepository:
    async def get_balance(self, name: str, db: AsyncSession) -> int | None:
        result = await db.execute(select(_pool.c.balance).where(_pool.c.name == name))
        return result.scalar_one_or_none()

    async def create(self, name: str, balance: int, db: AsyncSession) -> None:
        await db.execute(
            insert(_pool).values(name=name, balance=balance, updated_at=utc_now())
        )

    async def debit(self, name: str, amount: int, db: AsyncSession) -> bool:
        """Subtract amount, clamping the stored balance at zero. False if the row is missing."""
        result = await db.execute(
            update(_pool)
            .where(_pool.c.name == name)
            .values(
                balance=case((_pool.c.balance >= amount, _pool.c.balance - amount), else_=0),
                updated_at=utc_now(),
            )
        )
        return result.rowcount == 1

    async def credit(self, name: str, amount: int, db: AsyncSession) -> bool:
        result = await db.execute(
            update(_pool)
            .where(_pool.c.name == name)
            .values(balance=_pool.c.balance + amount, updated_at=utc_now())
        )
        return result.rowcount == 1

    async def set_balance(self, name: str, balance: int, db: AsyncSession) -> bool:
        result = await db.execute(
            update(_pool)
            .where(_pool.c.name == name)
            .values(balance=balance, updated_at=utc_now())
        )
        return result.rowcount == 1
