from dataclasses import dataclass, field

REVOKE_REASON_PAYMENT_TIMEOUT = "Timeout on pending payments."


@dataclass
class MaturitySweepReport:
    matured: int = 0
    credited: int = 0  # cents returned to the pool
    failed: int = 0
    order_ids: list[str] = field(default_factory=list)


@dataclass
class TimeoutSweepReport:
    voided: int = 0
    skipped: int = 0  # moved past AWAITING_PAYMENT before the void
    revoked: int = 0
    refunded: int = 0  # cents returned to the pool
    failed: int = 0
    revoked_order_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class VoidOutcome:
    chunk_id: str
    amount: int
    revoked: bool = False
    refund: int = 0
