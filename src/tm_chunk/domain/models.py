"""Chunk domain model — one allocation between one buyer and one seller order."""
from dataclasses import dataclass
from datetime import datetime

from src.tm_common.enums import OPEN_CHUNK_STATUSES, ChunkStatus


@dataclass
class Chunk:
    id: str
    buyer_order_id: str
    seller_order_id: str
    amount: int  # cents, > 0
    status: str = ChunkStatus.AWAITING_PAYMENT.value
    paired_at: datetime | None = None
    paid_at: datetime | None = None
    received_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_CHUNK_STATUSES


@dataclass(frozen=True)
class BuyerChunkCounts:
    total: int
    received: int

    @property
    def all_received(self) -> bool:
        return self.total > 0 and self.total == self.received
