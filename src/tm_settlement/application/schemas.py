# src/tm_settlement/application/schemas.py
from pydantic import BaseModel

from src.tm_chunk.application.schemas import ChunkResponse


class SettlementResponse(BaseModel):
    chunk: ChunkResponse
    buyer_activated: bool = False
    seller_closed: bool = False
