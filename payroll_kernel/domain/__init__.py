"""Pure domain types for the payroll kernel (no I/O)."""

from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payroll_kernel.domain.dtos import (
    ACTIVE_PAYROLL_STATUSES,
    PAYABLE_STATUSES,
    Allowance,
    AttendanceFact,
    BreakdownLine,
    CompensationProfile,
    Deduction,
    EffectiveWindow,
    EmployeeSnapshot,
    EmployeeStatus,
    LedgerTransactionRequest,
    PaymentFrequency,
    PaymentMethod,
    PayPeriod,
    PayrollBreakdown,
    PayrollStats,
    PayrollStatus,
    ProrationReason,
    ProrationResult,
    TaxBracket,
    TaxResult,
    WorkingDaysCount,
)

__all__ = [
    "ACTIVE_PAYROLL_STATUSES",
    "PAYABLE_STATUSES",
    "Allowance",
    "AttendanceFact",
    "BreakdownLine",
    "Clock",
    "CompensationProfile",
    "Deduction",
    "DeterministicClock",
    "EffectiveWindow",
    "EmployeeSnapshot",
    "EmployeeStatus",
    "LedgerTransactionRequest",
    "PaymentFrequency",
    "PaymentMethod",
    "PayPeriod",
    "PayrollBreakdown",
    "PayrollStats",
    "PayrollStatus",
    "ProrationReason",
    "ProrationResult",
    "SystemClock",
    "TaxBracket",
    "TaxResult",
    "WorkingDaysCount",
]
