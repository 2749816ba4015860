"""
Compensation Resolver - pick the allowances and deductions that apply to a
period and scale them by the proration ratio.

Pure functions with no I/O.

Only recurring items are resolved automatically (allowances unless flagged
non-recurring, deductions when auto or recurring).  One-off items are the
caller's responsibility for the period they belong to.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.dtos import Allowance, BreakdownLine, Deduction
from payroll_kernel.utils.rounding import round_whole


@dataclass(frozen=True)
class ResolvedCompensation:
    """Allowance and deduction lines effective for one period."""

    allowances: tuple[BreakdownLine, ...]
    deductions: tuple[BreakdownLine, ...]


def is_recurring_allowance(allowance: Allowance) -> bool:
    return allowance.recurring is not False


def is_recurring_deduction(deduction: Deduction) -> bool:
    return bool(deduction.auto or deduction.recurring)


class CompensationResolver:
    """
    Resolve effective compensation items for [period_start, period_end].

    Contract:
        - An item is effective iff its EffectiveWindow overlaps the period.
        - With proration on, allowance amounts are ratio-scaled and rounded
          to whole units; deductions follow the same rule when
          ``prorate_deductions`` is True and are taken verbatim otherwise.
        - With proration off every amount is taken verbatim.
    """

    def __init__(self, prorate_deductions: bool = True):
        self._prorate_deductions = prorate_deductions

    @traced_engine(
        "compensation",
        "1.0",
        fingerprint_fields=(
            "allowances",
            "deductions",
            "period_start",
            "period_end",
            "ratio",
            "apply_proration",
        ),
    )
    def resolve(
        self,
        allowances: Iterable[Allowance],
        deductions: Iterable[Deduction],
        period_start: date,
        period_end: date,
        ratio: Decimal,
        apply_proration: bool = True,
    ) -> ResolvedCompensation:
        allowance_lines = tuple(
            BreakdownLine(
                type=allowance.type,
                amount=self._scale(allowance.amount, ratio, apply_proration),
                taxable=allowance.taxable,
            )
            for allowance in allowances
            if is_recurring_allowance(allowance)
            and allowance.window.overlaps(period_start, period_end)
        )

        scale_deductions = apply_proration and self._prorate_deductions
        deduction_lines = tuple(
            BreakdownLine(
                type=deduction.type,
                amount=self._scale(deduction.amount, ratio, scale_deductions),
                description=deduction.description,
            )
            for deduction in deductions
            if is_recurring_deduction(deduction)
            and deduction.window.overlaps(period_start, period_end)
        )

        return ResolvedCompensation(
            allowances=allowance_lines,
            deductions=deduction_lines,
        )

    @staticmethod
    def _scale(amount: Decimal, ratio: Decimal, apply: bool) -> Decimal:
        if not apply:
            return Decimal(amount)
        return round_whole(Decimal(amount) * ratio)
