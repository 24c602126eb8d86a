# src/tm_pool/application/schemas.py
from pydantic import BaseModel, Field

from src.tm_common.cents import cents_to_display


class PoolBalanceResponse(BaseModel):
    name: str
    balance: int
    balance_display: str

    @classmethod
    def from_cents(cls, name: str, balance: int) -> "PoolBalanceResponse":
        return cls(name=name, balance=balance, balance_display=cents_to_display(balance))


class SetPoolBalanceRequest(BaseModel):
    balance: int = Field(..., ge=0, description="New pool balance in cents")
