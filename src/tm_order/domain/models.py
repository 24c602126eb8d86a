"""Order domain model — pure dataclass, no SQLAlchemy dependency.

One order plays two roles over its life: it pays in as a buyer while
PENDING/PAIRED and is paid out as a seller once MATURED. The two roles keep
separate balances (remaining_to_send, remaining_to_receive) so a role switch
never rewrites the other side's history.
"""
from dataclasses import dataclass
from datetime import datetime

from src.tm_common.enums import OrderRole, OrderStatus

_ROLE_BY_STATUS: dict[str, OrderRole] = {
    OrderStatus.PENDING.value: OrderRole.BUY,
    OrderStatus.PAIRED.value: OrderRole.BUY,
    OrderStatus.MATURED.value: OrderRole.SELL,
}

BUYER_STATUSES = (OrderStatus.PENDING.value, OrderStatus.PAIRED.value)


def role_for_status(status: str) -> OrderRole | None:
    """Matching role for a status, or None when the order cannot be paired."""
    return _ROLE_BY_STATUS.get(status)


@dataclass
class Order:
    id: str
    owner_id: str
    principal: int  # cents paid in as buyer; 0 for seeded sellers
    expected_payout: int  # principal + plan profit + applied referral bonus
    duration_days: int
    profit_percent: int
    status: str = OrderStatus.PENDING.value
    sub_status: str = "Pending"
    # Seller-side amount owed; fixed at activation (or at seeding)
    target_payout: int | None = None
    # Atomic counters, reconciled against the chunk ledger before use
    remaining_to_send: int = 0
    remaining_to_receive: int = 0
    referral_bonus: int = 0
    returned_to_pool: bool = False
    maturity_at: datetime | None = None
    activated_at: datetime | None = None
    matured_at: datetime | None = None
    closed_at: datetime | None = None
    revoked_at: datetime | None = None
    revoked_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def role(self) -> OrderRole | None:
        return role_for_status(self.status)

    @property
    def is_buyer(self) -> bool:
        return self.role is OrderRole.BUY

    @property
    def is_seller(self) -> bool:
        return self.role is OrderRole.SELL

    def capacity_for(self, role: OrderRole) -> int:
        """Total amount this order moves in the given role."""
        if role is OrderRole.BUY:
            return self.principal
        return self.target_payout or 0
