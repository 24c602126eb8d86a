"""Integer arithmetic for token amounts.

All principals, payouts, chunk amounts and the pool balance are int cents.
No float, no Decimal.
"""


def cents_to_display(cents: int) -> str:
    """Convert cents to a display string: 650000 -> '6,500.00', -1200 -> '-12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-{abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"{cents // 100:,}.{cents % 100:02d}"


def apply_percent(amount: int, percent: int) -> int:
    """Return amount plus percent of it, flooring the profit part."""
    return amount + (amount * percent) // 100


def bps_of(amount: int, bps: int) -> int:
    """Basis points of amount, floored: bps_of(100000, 300) == 3000."""
    if amount == 0 or bps == 0:
        return 0
    return (amount * bps) // 10000


def within_tolerance(a: int, b: int, tolerance: int) -> bool:
    return abs(a - b) <= tolerance
