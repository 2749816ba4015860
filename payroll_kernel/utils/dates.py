"""Calendar helpers."""

import calendar
from datetime import date, datetime


def as_date(value: date | datetime) -> date:
    """Truncate a datetime to its calendar date; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def add_months(value: date, months: int) -> date:
    """
    Shift ``value`` by ``months`` calendar months.

    The day of month is clamped to the target month's length, so
    2024-01-31 + 1 month is 2024-02-29.
    """
    index = value.year * 12 + (value.month - 1) + months
    year, month_zero = divmod(index, 12)
    month = month_zero + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
