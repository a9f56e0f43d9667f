"""Numeric helpers for scores and progress percentages."""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: Decimal | float | int) -> int:
    """Round to the nearest integer, halves away from zero.

    Python's ``round`` uses banker's rounding (``round(12.5) == 12``); scores
    and progress are displayed to students, where 12.5 must become 13.
    """
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def percentage(part: int, whole: int) -> int:
    """Integer percentage of ``part`` over ``whole``, 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return round_half_up(Decimal(100 * part) / Decimal(whole))


def round_points(value: Decimal | float | int) -> float:
    """Round leaderboard points to one decimal, halves away from zero."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
