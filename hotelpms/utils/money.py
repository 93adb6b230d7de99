"""
Decimal helpers for money amounts.

All amounts are kept as ``Decimal`` and quantized to cents with
ROUND_HALF_UP before they are stored or compared.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from turning into 0.1000000000000000055...
    return Decimal(str(value))


def quantize(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable) -> Decimal:
    total = ZERO
    for v in values:
        total += to_decimal(v)
    return quantize(total)


def percent_change(current, previous) -> float:
    """Growth from ``previous`` to ``current`` in percent; 0 when there is no baseline."""
    current = to_decimal(current)
    previous = to_decimal(previous)
    if previous == 0:
        return 0.0
    return float(((current - previous) / abs(previous) * 100).quantize(CENT, rounding=ROUND_HALF_UP))


def ratio_percent(part, whole) -> float:
    part = to_decimal(part)
    whole = to_decimal(whole)
    if whole == 0:
        return 0.0
    return float((part / whole * 100).quantize(CENT, rounding=ROUND_HALF_UP))


def as_float(value: Optional[Decimal]) -> Optional[float]:
    """JSON-friendly money value."""
    if value is None:
        return None
    return float(quantize(value))
