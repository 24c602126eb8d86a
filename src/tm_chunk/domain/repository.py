# src/tm_chunk/domain/repository.py
"""ChunkRepository Protocol — interface contract for the chunk ledger."""
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.tm_chunk.domain.models import BuyerChunkCounts, Chunk


class ChunkRepositoryProtocol(Protocol):
    async def insert(self, chunk: Chunk, db: AsyncSession) -> None: ...

    async def get_by_id(self, chunk_id: str, db: AsyncSession) -> Chunk | None: ...

    async def list_for_buyer(self, order_id: str, db: AsyncSession) -> list[Chunk]: ...

    async def list_for_seller(self, order_id: str, db: AsyncSession) -> list[Chunk]: ...

    async def list_overdue(self, deadline: datetime, db: AsyncSession) -> list[Chunk]: ...

    async def list_all(self, db: AsyncSession) -> list[Chunk]: ...

    async def allocated_to_buyer(self, order_id: str, db: AsyncSession) -> int: ...

    async def allocated_to_seller(self, order_id: str, db: AsyncSession) -> int: ...

    async def received_by_seller(self, order_id: str, db: AsyncSession) -> int: ...

    async def buyer_counts(self, order_id: str, db: AsyncSession) -> BuyerChunkCounts: ...

    async def has_open_chunk(
        self, buyer_order_id: str, seller_order_id: str, db: AsyncSession
    ) -> bool: ...

    async def transition(
        self,
        chunk_id: str,
        from_statuses: tuple[str, ...],
        to_status: str,
        now: datetime,
        db: AsyncSession,
    ) -> bool: ...

    async def delete_if_awaiting(self, chunk_id: str, db: AsyncSession) -> bool: ...
