from dataclasses import dataclass, field

from src.tm_common.enums import PairingOutcome


@dataclass
class Allocation:
    """One chunk created during a matching pass."""

    chunk_id: str
    buyer_order_id: str
    seller_order_id: str
    amount: int


@dataclass
class PairingResult:
    order_id: str
    outcome: PairingOutcome
    allocations: list[Allocation] = field(default_factory=list)
    remaining: int = 0  # ledger-derived remaining after the pass

    @property
    def allocated(self) -> int:
        return sum(a.amount for a in self.allocations)


@dataclass
class MatchingSweepReport:
    skipped: bool = False  # lock busy
    examined: int = 0
    chunks_created: int = 0
    failed: int = 0
