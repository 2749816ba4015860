"""
Rounding policy for salary amounts.

Every intermediate amount of a breakdown is rounded to a whole currency
unit at the step that produces it (half away from zero).  Previously
persisted breakdowns depend on this per-step policy, so it must not be
replaced with a single rounding at the end.
"""

from decimal import ROUND_HALF_UP, Decimal

WHOLE_UNIT = Decimal("1")


def round_whole(value: Decimal | int) -> Decimal:
    """Round to the nearest whole unit, halves away from zero."""
    return Decimal(value).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)
