# src/tm_order/application/schemas.py
from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from src.tm_order.domain.models import Order
from src.tm_order.domain.plans import InvestmentPlan, parse_plan_label, plan_for_duration


class CreateOrderRequest(BaseModel):
    principal: int = Field(..., gt=0, description="Purchase amount in cents")
    duration_days: int | None = Field(None, description="4, 8 or 12")
    plan: str | None = Field(None, description="Plan label, e.g. '65% in 8 Days'")
    referrer_id: str | None = None

    @model_validator(mode="after")
    def one_plan_selector(self) -> "CreateOrderRequest":
        if self.duration_days is None and not self.plan:
            raise ValueError("either duration_days or plan is required")
        return self

    def resolve_plan(self) -> InvestmentPlan:
        if self.duration_days is not None:
            return plan_for_duration(self.duration_days)
        return parse_plan_label(self.plan or "")


class OrderResponse(BaseModel):
    id: str
    owner_id: str
    status: str
    sub_status: str
    principal: int
    expected_payout: int
    target_payout: int | None = None
    duration_days: int
    profit_percent: int
    referral_bonus: int = 0
    maturity_at: datetime | None = None
    activated_at: datetime | None = None
    matured_at: datetime | None = None
    closed_at: datetime | None = None
    revoked_at: datetime | None = None
    revoked_reason: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            owner_id=order.owner_id,
            status=order.status,
            sub_status=order.sub_status,
            principal=order.principal,
            expected_payout=order.expected_payout,
            target_payout=order.target_payout,
            duration_days=order.duration_days,
            profit_percent=order.profit_percent,
            referral_bonus=order.referral_bonus,
            maturity_at=order.maturity_at,
            activated_at=order.activated_at,
            matured_at=order.matured_at,
            closed_at=order.closed_at,
            revoked_at=order.revoked_at,
            revoked_reason=order.revoked_reason,
            created_at=order.created_at,
        )


class PairingResponse(BaseModel):
    outcome: str
    allocated: int
    remaining: int
    chunk_ids: list[str]


class CreateOrderResponse(BaseModel):
    order: OrderResponse
    pairing: PairingResponse | None = None


class OrderBalanceResponse(BaseModel):
    order_id: str
    status: str
    remaining_to_send: int
    remaining_to_receive: int


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    next_cursor: str | None
    has_more: bool
