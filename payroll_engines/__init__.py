"""
Module: payroll_engines
Responsibility:
    Package entrypoint that re-exports the pure salary calculators.  This is
    the canonical import surface for payroll_services and payroll_batch.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel domain types and utilities.
    MUST NOT import payroll_services or payroll_batch.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Dates are passed in explicitly.
    - Decimal-only arithmetic for every amount.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine invocation is traced via ``@traced_engine``
    (see ``payroll_engines.tracer``), emitting PAYROLL_ENGINE_TRACE log
    records with engine name, version, input fingerprint, and duration.
"""

from payroll_engines.attendance import (
    AttendanceDeductionCalculator,
    count_attended_days,
)
from payroll_engines.breakdown import BreakdownAssembler, BreakdownPolicy
from payroll_engines.compensation import CompensationResolver, ResolvedCompensation
from payroll_engines.proration import ProrationCalculator
from payroll_engines.tax import ProgressiveTaxCalculator, TaxTable
from payroll_engines.tracer import traced_engine
from payroll_engines.working_days import (
    MONDAY_TO_FRIDAY,
    WorkingDaysCounter,
    workweek_from_names,
)

__all__ = [
    "AttendanceDeductionCalculator",
    "BreakdownAssembler",
    "BreakdownPolicy",
    "CompensationResolver",
    "MONDAY_TO_FRIDAY",
    "ProgressiveTaxCalculator",
    "ProrationCalculator",
    "ResolvedCompensation",
    "TaxTable",
    "WorkingDaysCounter",
    "count_attended_days",
    "traced_engine",
    "workweek_from_names",
]
