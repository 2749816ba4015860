"""
Attendance Deduction Calculator - unpaid absence as a salary deduction.

Pure functions with no I/O.

Usage:
    from decimal import Decimal
    from payroll_engines.attendance import AttendanceDeductionCalculator
    from payroll_kernel.domain.dtos import AttendanceFact

    deduction = AttendanceDeductionCalculator().calculate(
        prorated_base=Decimal("110000"),
        attendance=AttendanceFact(expected_days=22, actual_days=20),
    )
    print(deduction)  # 10000

A missing AttendanceFact means "no attendance data": the deduction is zero.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.dtos import AttendanceFact
from payroll_kernel.utils.rounding import round_whole

_ZERO = Decimal("0")
_HALF = Decimal("0.5")

# Weight of each attendance mark toward attended days
ATTENDANCE_WEIGHTS: dict[str, Decimal] = {
    "full_day": Decimal("1"),
    "half_day": _HALF,
    "paid_leave": Decimal("1"),
    "absent": _ZERO,
}


def count_attended_days(kinds: Iterable[str]) -> int:
    """
    Collapse daily marks into a whole number of attended days.

    Full days and paid leave count 1, half days 0.5, anything else 0.  The
    sum is rounded half-up.
    """
    total = sum((ATTENDANCE_WEIGHTS.get(kind, _ZERO) for kind in kinds), _ZERO)
    return int(round_whole(total))


def daily_rate(prorated_base: Decimal, expected_days: int) -> Decimal:
    if expected_days <= 0:
        return _ZERO
    return Decimal(prorated_base) / Decimal(expected_days)


class AttendanceDeductionCalculator:
    """
    Deduct pay for expected working days that were not attended.

    Contract:
        - deduction = round(absent_days * daily_rate), never negative.
        - deduction never exceeds round(daily_rate * expected_days *
          max_deduction_percent / 100).
    """

    def __init__(self, max_deduction_percent: Decimal | int = 100):
        self._max_deduction_percent = Decimal(max_deduction_percent)

    @traced_engine(
        "attendance",
        "1.0",
        fingerprint_fields=("prorated_base", "attendance"),
    )
    def calculate(
        self,
        prorated_base: Decimal,
        attendance: AttendanceFact | None,
    ) -> Decimal:
        if attendance is None:
            return _ZERO

        rate = daily_rate(prorated_base, attendance.expected_days)
        absent_days = max(0, attendance.expected_days - attendance.actual_days)
        deduction = round_whole(Decimal(absent_days) * rate)
        cap = round_whole(
            rate
            * Decimal(attendance.expected_days)
            * self._max_deduction_percent
            / Decimal(100)
        )
        return max(_ZERO, min(deduction, cap))
