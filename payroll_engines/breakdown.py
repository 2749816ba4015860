"""
Breakdown Assembler - the complete salary computation for one period.

Pure functions with no I/O.  All collaborator data (holidays, attendance)
is fetched by the caller and passed in.

Evaluation order is fixed; downstream totals depend on it:

    1. Proration ratio.
    2. prorated_base = round(base_amount * ratio).
    3. Effective allowances/deductions, each scaled by the ratio.
    4. Attendance deduction from prorated_base ("absence" line if > 0).
    5. gross_salary = prorated_base + sum(allowances).
    6. taxable_amount = prorated_base + sum(taxable allowances).
    7. tax_amount = progressive tax on taxable_amount ("tax" line if > 0).
    8. net_salary = gross_salary - sum(all deductions), floored at zero.

Every intermediate amount is rounded to a whole unit at the step that
produces it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_engines.attendance import AttendanceDeductionCalculator
from payroll_engines.compensation import CompensationResolver
from payroll_engines.proration import ProrationCalculator
from payroll_engines.tax import ProgressiveTaxCalculator
from payroll_engines.tracer import traced_engine
from payroll_engines.working_days import MONDAY_TO_FRIDAY, WorkingDaysCounter
from payroll_kernel.domain.dtos import (
    AttendanceFact,
    BreakdownLine,
    CompensationProfile,
    PayrollBreakdown,
)
from payroll_kernel.utils.rounding import round_whole

_ZERO = Decimal("0")

ABSENCE_LINE_TYPE = "absence"
ABSENCE_LINE_DESCRIPTION = "Unpaid leave deduction"
TAX_LINE_TYPE = "tax"
TAX_LINE_DESCRIPTION = "Income tax"


@dataclass(frozen=True)
class BreakdownPolicy:
    """
    Switches that change which steps of the computation run.

    Attributes:
        allow_proration: Scale base and items by the working-day ratio.
        attendance_integration: Apply the attendance deduction when a fact
            is supplied.
        auto_deductions: Apply progressive tax.
    """

    allow_proration: bool = True
    attendance_integration: bool = True
    auto_deductions: bool = True


class BreakdownAssembler:
    """
    Compose the proration, compensation, attendance and tax engines.

    Contract:
        Identical inputs always produce an identical PayrollBreakdown.
    """

    def __init__(
        self,
        tax_calculator: ProgressiveTaxCalculator,
        policy: BreakdownPolicy | None = None,
        resolver: CompensationResolver | None = None,
        attendance_calculator: AttendanceDeductionCalculator | None = None,
        counter: WorkingDaysCounter | None = None,
    ):
        self._counter = counter or WorkingDaysCounter()
        self._proration = ProrationCalculator(self._counter)
        self._tax = tax_calculator
        self._policy = policy or BreakdownPolicy()
        self._resolver = resolver or CompensationResolver()
        self._attendance = attendance_calculator or AttendanceDeductionCalculator()

    @property
    def policy(self) -> BreakdownPolicy:
        return self._policy

    def effective_working_days(
        self,
        hire_date: date,
        termination_date: date | None,
        period_start: date,
        period_end: date,
        workweek: Iterable[int] = MONDAY_TO_FRIDAY,
        holidays: Iterable[date] = (),
    ) -> int:
        """Working days the employee was employed within the period."""
        return self._proration.calculate(
            hire_date,
            termination_date,
            period_start,
            period_end,
            workweek,
            holidays,
        ).effective_working_days

    @traced_engine(
        "breakdown",
        "1.0",
        fingerprint_fields=(
            "compensation",
            "hire_date",
            "termination_date",
            "period_start",
            "period_end",
            "workweek",
            "holidays",
            "attendance",
        ),
    )
    def assemble(
        self,
        compensation: CompensationProfile,
        hire_date: date,
        termination_date: date | None,
        period_start: date,
        period_end: date,
        workweek: Iterable[int] = MONDAY_TO_FRIDAY,
        holidays: Iterable[date] = (),
        attendance: AttendanceFact | None = None,
    ) -> PayrollBreakdown:
        workweek = frozenset(workweek)
        holidays = frozenset(holidays)
        policy = self._policy

        # 1. Proration ratio
        if policy.allow_proration:
            proration = self._proration.calculate(
                hire_date, termination_date, period_start, period_end, workweek, holidays
            )
        else:
            proration = ProrationCalculator.full_period(
                self._counter.count(
                    period_start, period_end, workweek, holidays
                ).working_days
            )

        # 2. Prorated base
        if policy.allow_proration:
            prorated_base = round_whole(
                Decimal(compensation.base_amount) * proration.ratio
            )
        else:
            prorated_base = Decimal(compensation.base_amount)

        # 3. Effective allowances and deductions
        resolved = self._resolver.resolve(
            compensation.allowances,
            compensation.deductions,
            period_start,
            period_end,
            proration.ratio,
            apply_proration=policy.allow_proration,
        )
        allowances = resolved.allowances
        deductions = list(resolved.deductions)

        # 4. Attendance
        attendance_deduction = _ZERO
        actual_days = proration.effective_working_days
        if policy.attendance_integration and attendance is not None:
            attendance_deduction = self._attendance.calculate(prorated_base, attendance)
            actual_days = attendance.actual_days
        if attendance_deduction > _ZERO:
            deductions.append(
                BreakdownLine(
                    type=ABSENCE_LINE_TYPE,
                    amount=attendance_deduction,
                    description=ABSENCE_LINE_DESCRIPTION,
                )
            )

        # 5. Gross
        gross_salary = prorated_base + sum(
            (line.amount for line in allowances), _ZERO
        )

        # 6. Taxable
        taxable_amount = prorated_base + sum(
            (line.amount for line in allowances if line.taxable), _ZERO
        )

        # 7. Tax
        tax_amount = _ZERO
        if policy.auto_deductions:
            tax_amount = self._tax.calculate(taxable_amount, compensation.currency).amount
        if tax_amount > _ZERO:
            deductions.append(
                BreakdownLine(
                    type=TAX_LINE_TYPE,
                    amount=tax_amount,
                    description=TAX_LINE_DESCRIPTION,
                )
            )

        # 8. Net
        total_deductions = sum((line.amount for line in deductions), _ZERO)
        net_salary = max(_ZERO, gross_salary - total_deductions)

        return PayrollBreakdown(
            base_amount=prorated_base,
            allowances=allowances,
            deductions=tuple(deductions),
            gross_salary=gross_salary,
            net_salary=net_salary,
            taxable_amount=taxable_amount,
            tax_amount=tax_amount,
            working_days=proration.period_working_days,
            actual_days=actual_days,
            pro_rated_amount=prorated_base if proration.is_prorated else _ZERO,
            attendance_deduction=attendance_deduction,
            proration_ratio=proration.ratio,
            proration_reason=proration.reason,
            currency=compensation.currency,
        )
