"""
Working-Days Counter - classify every day of a date range.

Pure functions with no I/O - the workweek and holiday set are parameters.

Usage:
    from datetime import date
    from payroll_engines.working_days import WorkingDaysCounter, MONDAY_TO_FRIDAY

    count = WorkingDaysCounter().count(
        start=date(2024, 3, 1),
        end=date(2024, 3, 31),
        workweek=MONDAY_TO_FRIDAY,
        holidays=frozenset(),
    )
    print(count.working_days)  # 21

Classification priority per day: holiday > working > weekend.  The three
classes are mutually exclusive, so
``total_days == working_days + weekends + holidays``.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.dtos import WorkingDaysCount
from payroll_kernel.utils.dates import as_date

# Python weekday indices: Monday == 0 ... Sunday == 6
MONDAY_TO_FRIDAY: frozenset[int] = frozenset({0, 1, 2, 3, 4})

WEEKDAY_NAMES: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def workweek_from_names(names: Iterable[str]) -> frozenset[int]:
    """
    Convert day names ("monday", "Fri", ...) to weekday indices.

    Raises:
        ValueError: If a name does not match any weekday.
    """
    indices: set[int] = set()
    for name in names:
        key = name.strip().lower()
        for index, full in enumerate(WEEKDAY_NAMES):
            if key == full or (len(key) >= 3 and full.startswith(key)):
                indices.add(index)
                break
        else:
            raise ValueError(f"Unknown weekday name: {name!r}")
    return frozenset(indices)


class WorkingDaysCounter:
    """
    Count working days, weekend days and holidays in an inclusive range.

    Pure - no I/O, no clock access.
    """

    @traced_engine(
        "working_days",
        "1.0",
        fingerprint_fields=("start", "end", "workweek", "holidays"),
    )
    def count(
        self,
        start: date | datetime,
        end: date | datetime,
        workweek: Iterable[int] = MONDAY_TO_FRIDAY,
        holidays: Iterable[date] = (),
    ) -> WorkingDaysCount:
        """
        Walk the range day by day.

        Args:
            start: First day (a datetime is truncated to its date).
            end: Last day, inclusive.
            workweek: Weekday indices that are working days.
            holidays: Dates that are never working days.

        Returns:
            WorkingDaysCount; all zeros when start > end.
        """
        first = as_date(start)
        last = as_date(end)
        working_set = frozenset(workweek)
        holiday_set = frozenset(as_date(h) for h in holidays)

        total = working = weekends = holiday_count = 0
        day = first
        while day <= last:
            total += 1
            if day in holiday_set:
                holiday_count += 1
            elif day.weekday() in working_set:
                working += 1
            else:
                weekends += 1
            day += timedelta(days=1)

        return WorkingDaysCount(
            total_days=total,
            working_days=working,
            weekends=weekends,
            holidays=holiday_count,
        )
