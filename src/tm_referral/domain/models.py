"""Referral bonus domain model."""
from dataclasses import dataclass
from datetime import datetime

from src.tm_common.enums import BonusStatus


@dataclass
class ReferralBonus:
    id: str
    beneficiary_id: str  # the referrer, paid on their next order
    referred_owner_id: str
    source_order_id: str
    amount: int
    status: str = BonusStatus.PENDING.value
    applied_order_id: str | None = None
    created_at: datetime | None = None
    applied_at: datetime | None = None
