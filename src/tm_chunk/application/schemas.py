# src/tm_chunk/application/schemas.py
from datetime import datetime

from pydantic import BaseModel

from src.tm_chunk.domain.models import Chunk


class ChunkResponse(BaseModel):
    id: str
    buyer_order_id: str
    seller_order_id: str
    amount: int
    status: str
    paired_at: datetime | None = None
    paid_at: datetime | None = None
    received_at: datetime | None = None

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> "ChunkResponse":
        return cls(
            id=chunk.id,
            buyer_order_id=chunk.buyer_order_id,
            seller_order_id=chunk.seller_order_id,
            amount=chunk.amount,
            status=chunk.status,
            paired_at=chunk.paired_at,
            paid_at=chunk.paid_at,
            received_at=chunk.received_at,
        )


class ChunkListResponse(BaseModel):
    order_id: str
    items: list[ChunkResponse]
    total_amount: int
