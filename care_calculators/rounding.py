"""Rounding helpers shared by the care calculators."""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (62.5 -> 63).

    The built-in round() rounds halves to even. Floats are squashed to 9
    decimals first so 62.4999999999 from weight arithmetic still lands on 63.
    """
    return int(Decimal(repr(round(value, 9))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(high, value))
