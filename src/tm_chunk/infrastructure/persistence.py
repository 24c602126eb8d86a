# src/tm_chunk/infrastructure/persistence.py
"""ChunkRepository — the chunk ledger.

Remaining balances are always derived from here: every chunk that still
exists holds capacity on both of its orders, whatever its status. Voiding a
chunk deletes the row.
"""
from datetime import datetime
from typing import Any

from sqlalchemy import case, delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_chunk.domain.models import BuyerChunkCounts, Chunk
from src.tm_chunk.infrastructure.db_models import ChunkORM
from src.tm_common.datetime_utils import ensure_utc
from src.tm_common.enums import OPEN_CHUNK_STATUSES, ChunkStatus

_chunks = ChunkORM.__table__

_STAMP_COLUMN = {
    ChunkStatus.PAYMENT_MADE.value: "paid_at",
    ChunkStatus.RECEIVED.value: "received_at",
}


def _row_to_chunk(row: Any) -> Chunk:
    return Chunk(
        id=row.id,
        buyer_order_id=row.buyer_order_id,
        seller_order_id=row.seller_order_id,
        amount=row.amount,
        status=row.status,
        paired_at=ensure_utc(row.paired_at),
        paid_at=ensure_utc(row.paid_at),
        received_at=ensure_utc(row.received_at),
    )


class ChunkRepository:
    async def insert(self, chunk: Chunk, db: AsyncSession) -> None:
        await db.execute(
            insert(_chunks).values(
                id=chunk.id,
                buyer_order_id=chunk.buyer_order_id,
                seller_order_id=chunk.seller_order_id,
                amount=chunk.amount,
                status=chunk.status,
                paired_at=chunk.paired_at,
            )
        )

    async def get_by_id(self, chunk_id: str, db: AsyncSession) -> Chunk | None:
        row = (await db.execute(select(_chunks).where(_chunks.c.id == chunk_id))).fetchone()
        return _row_to_chunk(row) if row else None

    async def list_for_buyer(self, order_id: str, db: AsyncSession) -> list[Chunk]:
        return await self._list(_chunks.c.buyer_order_id == order_id, db)

    async def list_for_seller(self, order_id: str, db: AsyncSession) -> list[Chunk]:
        return await self._list(_chunks.c.seller_order_id == order_id, db)

    async def list_overdue(self, deadline: datetime, db: AsyncSession) -> list[Chunk]:
        """AWAITING_PAYMENT chunks paired at or before the deadline, oldest first."""
        return await self._list(
            (_chunks.c.status == ChunkStatus.AWAITING_PAYMENT.value)
            & (_chunks.c.paired_at <= deadline),
            db,
        )

    async def list_all(self, db: AsyncSession) -> list[Chunk]:
        return await self._list(None, db)

    async def _list(self, condition: Any, db: AsyncSession) -> list[Chunk]:
        stmt = select(_chunks)
        if condition is not None:
            stmt = stmt.where(condition)
        stmt = stmt.order_by(_chunks.c.paired_at.asc(), _chunks.c.id.asc())
        rows = (await db.execute(stmt)).fetchall()
        return [_row_to_chunk(row) for row in rows]

    async def allocated_to_buyer(self, order_id: str, db: AsyncSession) -> int:
        stmt = select(func.coalesce(func.sum(_chunks.c.amount), 0)).where(
            _chunks.c.buyer_order_id == order_id
        )
        return int((await db.execute(stmt)).scalar_one())

    async def allocated_to_seller(self, order_id: str, db: AsyncSession) -> int:
        stmt = select(func.coalesce(func.sum(_chunks.c.amount), 0)).where(
            _chunks.c.seller_order_id == order_id
        )
        return int((await db.execute(stmt)).scalar_one())

    async def received_by_seller(self, order_id: str, db: AsyncSession) -> int:
        stmt = select(func.coalesce(func.sum(_chunks.c.amount), 0)).where(
            _chunks.c.seller_order_id == order_id,
            _chunks.c.status == ChunkStatus.RECEIVED.value,
        )
        return int((await db.execute(stmt)).scalar_one())

    async def buyer_counts(self, order_id: str, db: AsyncSession) -> BuyerChunkCounts:
        received = case((_chunks.c.status == ChunkStatus.RECEIVED.value, 1), else_=0)
        stmt = select(
            func.count(_chunks.c.id),
            func.coalesce(func.sum(received), 0),
        ).where(_chunks.c.buyer_order_id == order_id)
        total, received_count = (await db.execute(stmt)).one()
        return BuyerChunkCounts(total=int(total), received=int(received_count))

    async def has_open_chunk(
        self, buyer_order_id: str, seller_order_id: str, db: AsyncSession
    ) -> bool:
        stmt = (
            select(_chunks.c.id)
            .where(
                _chunks.c.buyer_order_id == buyer_order_id,
                _chunks.c.seller_order_id == seller_order_id,
                _chunks.c.status.in_(OPEN_CHUNK_STATUSES),
            )
            .limit(1)
        )
        return (await db.execute(stmt)).first() is not None

    async def transition(
        self,
        chunk_id: str,
        from_statuses: tuple[str, ...],
        to_status: str,
        now: datetime,
        db: AsyncSession,
    ) -> bool:
        values: dict[str, Any] = {"status": to_status}
        stamp = _STAMP_COLUMN.get(to_status)
        if stamp:
            values[stamp] = now
        result = await db.execute(
            update(_chunks)
            .where(_chunks.c.id == chunk_id, _chunks.c.status.in_(from_statuses))
            .values(values)
        )
        return result.rowcount == 1

    async def delete_if_awaiting(self, chunk_id: str, db: AsyncSession) -> bool:
        """Void a chunk only if it is still unpaid at the moment of deletion."""
        result = await db.execute(
            delete(_chunks).where(
                _chunks.c.id == chunk_id,
                _chunks.c.status == ChunkStatus.AWAITING_PAYMENT.value,
            )
        )
        return result.rowcount == 1
