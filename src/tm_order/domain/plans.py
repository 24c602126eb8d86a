"""Investment plans offered at purchase time."""
import re
from dataclasses import dataclass

from src.tm_common.cents import apply_percent
from src.tm_common.errors import UnknownPlanError

SECONDS_PER_DAY = 86_400


@dataclass(frozen=True)
class InvestmentPlan:
    duration_days: int
    profit_percent: int

    @property
    def label(self) -> str:
        return f"{self.profit_percent}% in {self.duration_days} Days"

    @property
    def duration_seconds(self) -> int:
        return self.duration_days * SECONDS_PER_DAY

    def expected_payout(self, principal: int) -> int:
        return apply_percent(principal, self.profit_percent)


PLANS: dict[int, InvestmentPlan] = {
    4: InvestmentPlan(duration_days=4, profit_percent=30),
    8: InvestmentPlan(duration_days=8, profit_percent=65),
    12: InvestmentPlan(duration_days=12, profit_percent=95),
}

_LABEL_DAYS_RE = re.compile(r"(\d+)\s*days?", re.IGNORECASE)


def plan_for_duration(duration_days: int) -> InvestmentPlan:
    plan = PLANS.get(duration_days)
    if plan is None:
        raise UnknownPlanError(f"{duration_days} days")
    return plan


def parse_plan_label(label: str) -> InvestmentPlan:
    """Resolve a label such as '65% in 8 Days' to its plan, keyed on the day count."""
    match = _LABEL_DAYS_RE.search(label)
    if match is None:
        raise UnknownPlanError(label)
    return plan_for_duration(int(match.group(1)))
