"""
Proration Calculator - scale pay to the working days actually employed.

Pure functions with no I/O.  Proration is on a working-day basis, not a
calendar-day basis: an employee hired on the Monday after a long holiday
weekend is owed the same fraction as one hired the Friday before.

Usage:
    from datetime import date
    from payroll_engines.proration import ProrationCalculator

    result = ProrationCalculator().calculate(
        hire_date=date(2024, 3, 14),
        termination_date=None,
        period_start=date(2024, 3, 1),
        period_end=date(2024, 3, 31),
    )
    print(result.ratio)   # 12/21
    print(result.reason)  # ProrationReason.NEW_HIRE
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from payroll_engines.tracer import traced_engine
from payroll_engines.working_days import MONDAY_TO_FRIDAY, WorkingDaysCounter
from payroll_kernel.domain.dtos import ProrationReason, ProrationResult

_ZERO = Decimal("0")
_ONE = Decimal("1")


def proration_reason(
    hire_date: date,
    termination_date: date | None,
    period_start: date,
    period_end: date,
) -> ProrationReason:
    """Classify why (or whether) a period is partial for this employee."""
    is_new_hire = hire_date > period_start
    is_termination = termination_date is not None and termination_date < period_end
    if is_new_hire and is_termination:
        return ProrationReason.BOTH
    if is_new_hire:
        return ProrationReason.NEW_HIRE
    if is_termination:
        return ProrationReason.TERMINATION
    return ProrationReason.FULL


class ProrationCalculator:
    """
    Compute the fraction of a period's working days an employee was employed.

    Contract:
        - ratio is always within [0, 1].
        - period_working_days is the working-day count of the full period,
          regardless of the employee's dates.
        - is_prorated == (ratio < 1).
    """

    def __init__(self, counter: WorkingDaysCounter | None = None):
        self._counter = counter or WorkingDaysCounter()

    @traced_engine(
        "proration",
        "1.0",
        fingerprint_fields=(
            "hire_date",
            "termination_date",
            "period_start",
            "period_end",
            "workweek",
            "holidays",
        ),
    )
    def calculate(
        self,
        hire_date: date,
        termination_date: date | None,
        period_start: date,
        period_end: date,
        workweek: Iterable[int] = MONDAY_TO_FRIDAY,
        holidays: Iterable[date] = (),
    ) -> ProrationResult:
        workweek = frozenset(workweek)
        holidays = frozenset(holidays)

        reason = proration_reason(
            hire_date, termination_date, period_start, period_end
        )
        period_working_days = self._counter.count(
            period_start, period_end, workweek, holidays
        ).working_days

        effective_start = max(hire_date, period_start)
        effective_end = period_end
        if termination_date is not None and termination_date < period_end:
            effective_end = termination_date

        wholly_inactive = effective_start > period_end or (
            termination_date is not None and termination_date < period_start
        )
        if wholly_inactive:
            return ProrationResult(
                ratio=_ZERO,
                is_prorated=True,
                reason=reason,
                period_working_days=period_working_days,
                effective_working_days=0,
            )

        effective_working_days = self._counter.count(
            effective_start, effective_end, workweek, holidays
        ).working_days

        if period_working_days == 0:
            ratio = _ZERO
        else:
            ratio = Decimal(effective_working_days) / Decimal(period_working_days)
            ratio = min(_ONE, max(_ZERO, ratio))

        return ProrationResult(
            ratio=ratio,
            is_prorated=ratio < _ONE,
            reason=reason,
            period_working_days=period_working_days,
            effective_working_days=effective_working_days,
        )

    @staticmethod
    def full_period(period_working_days: int) -> ProrationResult:
        """Result used when proration is switched off."""
        return ProrationResult(
            ratio=_ONE,
            is_prorated=False,
            reason=ProrationReason.FULL,
            period_working_days=period_working_days,
            effective_working_days=period_working_days,
        )
