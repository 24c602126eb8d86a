"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAIRED = "PAIRED"
    ACTIVE = "ACTIVE"
    MATURED = "MATURED"
    CLOSED = "CLOSED"
    REVOKED = "REVOKED"


class OrderRole(str, Enum):
    """Which side of a pairing an order plays, derived from its status."""
    BUY = "BUY"
    SELL = "SELL"

    @property
    def opposite(self) -> "OrderRole":
        return OrderRole.SELL if self is OrderRole.BUY else OrderRole.BUY


class ChunkStatus(str, Enum):
    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    PAYMENT_MADE = "PAYMENT_MADE"
    RECEIVED = "RECEIVED"


# Chunks that still hold capacity on both sides but are not yet settled.
OPEN_CHUNK_STATUSES = (ChunkStatus.AWAITING_PAYMENT.value, ChunkStatus.PAYMENT_MADE.value)


class SubStatus(str, Enum):
    """Human-readable progress notes stored in orders.sub_status."""
    PENDING = "Pending"
    PARTIALLY_PAIRED = "Partially Paired"
    WAITING_FOR_PAYMENT = "Waiting for Payment"
    PAYMENT_MADE = "Payment Made"
    RUNNING = "Running"
    WAITING_TO_BE_PAIRED = "Waiting to be Paired"
    PARTIALLY_ALLOCATED = "Partially Allocated"
    FULLY_ALLOCATED = "Fully Allocated"
    COMPLETED = "Completed"
    PAYMENT_TIMEOUT = "Payment Timeout"


class BonusStatus(str, Enum):
    PENDING = "PENDING"
    APPLIED = "APPLIED"


class PairingOutcome(str, Enum):
    PAIRED = "PAIRED"                    # initiating order fully allocated
    PARTIAL = "PARTIAL"                  # some chunks created, remainder left
    NO_COUNTERPARTY = "NO_COUNTERPARTY"  # nothing could be allocated this pass
    NOTHING_TO_PAIR = "NOTHING_TO_PAIR"  # remaining already zero
    INELIGIBLE = "INELIGIBLE"            # status has no matching role
    LOCKED = "LOCKED"                    # matching lock busy, retry later
