"""
Deterministic integer arithmetic for profit and statistics calculations.

Every amount in this package is a plain Python int. Value amounts are scaled to
18 decimals (wei), rates and ratios to basis points. All division truncates
toward zero, so results are reproducible bit-for-bit across runs and hosts.

Conversion policy:
- Internal: int, never float
- Percentages of principal: always through bps()
- Display: format_units() / Decimal only at the edges
"""

from decimal import ROUND_DOWN, Decimal, getcontext
from typing import Sequence, Union

from .exceptions import InvalidInput, InvalidPrice

getcontext().prec = 78

BPS_DENOMINATOR = 10_000
PRECISION = 10**18
WEI_DECIMALS = 18
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


# ============================================================================
# Basis-point helpers
# ============================================================================


def bps(amount: int, bps_value: int) -> int:
    """Apply a basis-point rate to an amount. 10e18 at 9 bps -> 0.009e18"""
    return amount * bps_value // BPS_DENOMINATOR


def to_bps(part: int, whole: int) -> int:
    """Share of part in whole, in basis points. Zero when whole is zero."""
    if whole == 0:
        return 0
    return part * BPS_DENOMINATOR // whole


def saturating_sub(a: int, b: int) -> int:
    """a - b, floored at zero."""
    return a - b if a >= b else 0


def deviation_bps(p1: int, p2: int) -> int:
    """
    Relative distance between two prices in basis points.

    The larger price is the reference, so the result is symmetric in its
    arguments and never exceeds 10_000.

    Raises:
        InvalidPrice: If either price is zero
    """
    if p1 == 0 or p2 == 0:
        raise InvalidPrice(
            "Cannot compute deviation against a zero price",
            details={"p1": p1, "p2": p2},
        )
    return abs(p1 - p2) * BPS_DENOMINATOR // max(p1, p2)


# ============================================================================
# Order statistics
# ============================================================================


def integer_sqrt(x: int) -> int:
    """Floor square root via Newton's method."""
    if x < 0:
        raise InvalidInput(f"integer_sqrt of negative value: {x}")
    if x <= 1:
        return x

    z = (x + 1) // 2
    y = x
    while z < y:
        y = z
        z = (x // z + z) // 2
    return y


def percentile(sorted_values: Sequence[int], p: int) -> int:
    """
    Nearest-rank-by-truncation percentile over an ascending sequence.

    index = len * p // 100, clamped to the last element. This is not an
    interpolated percentile: percentile([10, 20, 30, 40, 50], 95) is 50
    (index 4), and callers reproducing recommendations must use the same rule.

    Returns 0 for an empty sequence.
    """
    if p < 0:
        raise InvalidInput(f"Percentile must be in [0, 100], got {p}")
    if not sorted_values:
        return 0
    if p >= 100:
        return sorted_values[-1]

    index = len(sorted_values) * p // 100
    if index >= len(sorted_values):
        index = len(sorted_values) - 1
    return sorted_values[index]


def median(sorted_values: Sequence[int]) -> int:
    """Median of an ascending sequence; 0 when empty."""
    n = len(sorted_values)
    if n == 0:
        return 0
    if n % 2 == 1:
        return sorted_values[n // 2]
    return (sorted_values[n // 2 - 1] + sorted_values[n // 2]) // 2


def mean(values: Sequence[int]) -> int:
    """Truncating arithmetic mean; 0 when empty."""
    if not values:
        return 0
    return sum(values) // len(values)


# ============================================================================
# Unit conversion (edges only)
# ============================================================================


def to_wei(value: Union[int, float, str, Decimal], decimals: int = WEI_DECIMALS) -> int:
    """Convert a human amount to base units. to_wei("0.05") -> 5 * 10**16"""
    scaled = Decimal(str(value)) * (Decimal(10) ** decimals)
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def format_units(amount: int, decimals: int = WEI_DECIMALS) -> Decimal:
    """Convert base units to a Decimal amount for display."""
    return Decimal(amount) / (Decimal(10) ** decimals)


def bps_to_pct(bps_value: int) -> Decimal:
    """Convert basis points to percent. 15 bps -> 0.15"""
    return Decimal(bps_value) / Decimal("100")
