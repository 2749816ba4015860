"""
Domain DTOs -- Immutable value objects for salary computation.

Responsibility:
    Defines the frozen dataclasses passed between the employee directory,
    the pure calculation engines, and the payroll processor: pay periods,
    effective-dated compensation items, proration and tax results, and the
    salary breakdown that is persisted on a payroll record.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ORM models never leak past the repositories; services and engines only
    see these types.

Invariants enforced:
    - All monetary amounts are Decimal (never float).
    - EffectiveWindow uses None for an open-ended side; no sentinel dates.
    - PayPeriod always covers exactly one calendar month.

Failure modes:
    - ValidationError from PayPeriod.for_month() when month is outside 1..12.
    - ValueError from EffectiveWindow when starts > ends.

Audit relevance:
    PayrollBreakdown.to_dict() is the exact JSON stored on the payroll
    record.  Decimals are serialised as strings so persisted breakdowns
    round-trip without precision loss.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from payroll_kernel.exceptions import ValidationError

ZERO = Decimal("0")

# Actor recorded on rows written without an explicit processed_by.
SYSTEM_ACTOR_ID = UUID(int=0)


class EmployeeStatus(str, Enum):
    """Employment status as reported by the employee directory."""

    ACTIVE = "active"
    ON_LEAVE = "on_leave"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"


# Statuses that may receive salary.
PAYABLE_STATUSES: frozenset[EmployeeStatus] = frozenset(
    {EmployeeStatus.ACTIVE, EmployeeStatus.ON_LEAVE}
)


class PaymentFrequency(str, Enum):
    MONTHLY = "monthly"
    BI_WEEKLY = "bi_weekly"
    WEEKLY = "weekly"
    DAILY = "daily"
    HOURLY = "hourly"


class PaymentMethod(str, Enum):
    BANK = "bank"
    CASH = "cash"
    MOBILE = "mobile"
    BKASH = "bkash"
    NAGAD = "nagad"
    ROCKET = "rocket"
    CHECK = "check"


class PayrollStatus(str, Enum):
    """
    Payroll record lifecycle.

    Contract: processing -> paid inside one unit of work.  A paid record is
    never mutated afterwards except for the export flag.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


# Statuses that block another run for the same employee and period.
ACTIVE_PAYROLL_STATUSES: tuple[str, ...] = (
    PayrollStatus.PROCESSING.value,
    PayrollStatus.PAID.value,
)


class ProrationReason(str, Enum):
    FULL = "full"
    NEW_HIRE = "new_hire"
    TERMINATION = "termination"
    BOTH = "both"


@dataclass(frozen=True, slots=True)
class PayPeriod:
    """
    One calendar month of payroll.

    Guarantees:
        - start_date is the 1st of the month, end_date its last day.
        - pay_date defaults to end_date when not supplied.
    """

    month: int
    year: int
    start_date: date
    end_date: date
    pay_date: date

    @classmethod
    def for_month(
        cls,
        month: int,
        year: int,
        pay_date: date | None = None,
    ) -> PayPeriod:
        if not 1 <= month <= 12:
            raise ValidationError(
                f"Month must be between 1 and 12, got {month}", field="month"
            )
        if year < 1:
            raise ValidationError(f"Invalid year: {year}", field="year")
        last_day = calendar.monthrange(year, month)[1]
        start = date(year, month, 1)
        end = date(year, month, last_day)
        return cls(
            month=month,
            year=year,
            start_date=start,
            end_date=end,
            pay_date=pay_date or end,
        )

    @property
    def label(self) -> str:
        return f"{self.month:02d}/{self.year}"


@dataclass(frozen=True, slots=True)
class EffectiveWindow:
    """
    Closed date interval with optionally open ends.

    ``starts=None`` means "effective since forever", ``ends=None`` means
    "effective until further notice".
    """

    starts: date | None = None
    ends: date | None = None

    def __post_init__(self) -> None:
        if self.starts is not None and self.ends is not None:
            if self.starts > self.ends:
                raise ValueError(
                    f"Effective window starts after it ends: "
                    f"{self.starts} > {self.ends}"
                )

    def overlaps(self, start: date, end: date) -> bool:
        """True iff the window intersects the inclusive range [start, end]."""
        if self.starts is not None and self.starts > end:
            return False
        if self.ends is not None and self.ends < start:
            return False
        return True

    @property
    def is_open(self) -> bool:
        return self.starts is None and self.ends is None


@dataclass(frozen=True, slots=True)
class Allowance:
    type: str
    amount: Decimal
    taxable: bool = True
    recurring: bool = True
    window: EffectiveWindow = field(default_factory=EffectiveWindow)


@dataclass(frozen=True, slots=True)
class Deduction:
    type: str
    amount: Decimal
    auto: bool = False
    recurring: bool = False
    window: EffectiveWindow = field(default_factory=EffectiveWindow)
    description: str | None = None


@dataclass(frozen=True, slots=True)
class CompensationProfile:
    base_amount: Decimal
    currency: str = "BDT"
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    allowances: tuple[Allowance, ...] = ()
    deductions: tuple[Deduction, ...] = ()


@dataclass(frozen=True, slots=True)
class PayrollStats:
    """Running payment statistics kept on the employee."""

    total_paid: Decimal = ZERO
    payments_this_year: int = 0
    average_monthly: Decimal = ZERO
    last_payment_date: date | None = None
    next_payment_date: date | None = None


@dataclass(frozen=True, slots=True)
class EmployeeSnapshot:
    """
    Read-only view of an employee as needed for one salary computation.

    Contract:
        Produced by an EmployeeDirectory.  The processor never writes to the
        employee except through EmployeeDirectory.record_payment().
    """

    id: UUID
    organization_id: UUID | None
    employee_code: str
    name: str
    status: EmployeeStatus
    hire_date: date | None
    compensation: CompensationProfile
    termination_date: date | None = None
    stats: PayrollStats = field(default_factory=PayrollStats)

    @property
    def is_payable(self) -> bool:
        return self.status in PAYABLE_STATUSES


@dataclass(frozen=True, slots=True)
class AttendanceFact:
    """Expected vs. actually attended working days for one period."""

    expected_days: int
    actual_days: int


@dataclass(frozen=True, slots=True)
class WorkingDaysCount:
    total_days: int
    working_days: int
    weekends: int
    holidays: int


@dataclass(frozen=True, slots=True)
class ProrationResult:
    ratio: Decimal
    is_prorated: bool
    reason: ProrationReason
    period_working_days: int
    effective_working_days: int


@dataclass(frozen=True, slots=True)
class TaxBracket:
    """Marginal tax band; ``max=None`` means unbounded."""

    min: Decimal
    max: Decimal | None
    rate: Decimal


@dataclass(frozen=True, slots=True)
class TaxResult:
    amount: Decimal
    effective_rate: Decimal


@dataclass(frozen=True, slots=True)
class BreakdownLine:
    """One allowance or deduction line on a salary breakdown."""

    type: str
    amount: Decimal
    taxable: bool | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "amount": str(self.amount)}
        if self.taxable is not None:
            data["taxable"] = self.taxable
        if self.description is not None:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BreakdownLine:
        return cls(
            type=data["type"],
            amount=Decimal(data["amount"]),
            taxable=data.get("taxable"),
            description=data.get("description"),
        )


@dataclass(frozen=True, slots=True)
class PayrollBreakdown:
    """
    Complete salary computation for one employee and one period.

    Contract:
        base_amount is the post-proration base.  deductions include the
        synthetic ``absence`` and ``tax`` lines when they apply.

    Guarantees:
        - gross_salary == base_amount + sum(allowances)
        - net_salary == max(0, gross_salary - sum(deductions))
    """

    base_amount: Decimal
    allowances: tuple[BreakdownLine, ...]
    deductions: tuple[BreakdownLine, ...]
    gross_salary: Decimal
    net_salary: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    working_days: int
    actual_days: int | None
    pro_rated_amount: Decimal
    attendance_deduction: Decimal
    proration_ratio: Decimal
    proration_reason: ProrationReason
    currency: str

    @property
    def total_allowances(self) -> Decimal:
        return sum((line.amount for line in self.allowances), ZERO)

    @property
    def total_deductions(self) -> Decimal:
        return sum((line.amount for line in self.deductions), ZERO)

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_amount": str(self.base_amount),
            "allowances": [line.to_dict() for line in self.allowances],
            "deductions": [line.to_dict() for line in self.deductions],
            "gross_salary": str(self.gross_salary),
            "net_salary": str(self.net_salary),
            "taxable_amount": str(self.taxable_amount),
            "tax_amount": str(self.tax_amount),
            "working_days": self.working_days,
            "actual_days": self.actual_days,
            "pro_rated_amount": str(self.pro_rated_amount),
            "attendance_deduction": str(self.attendance_deduction),
            "proration_ratio": str(self.proration_ratio),
            "proration_reason": self.proration_reason.value,
            "currency": self.currency,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PayrollBreakdown:
        return cls(
            base_amount=Decimal(data["base_amount"]),
            allowances=tuple(
                BreakdownLine.from_dict(line) for line in data["allowances"]
            ),
            deductions=tuple(
                BreakdownLine.from_dict(line) for line in data["deductions"]
            ),
            gross_salary=Decimal(data["gross_salary"]),
            net_salary=Decimal(data["net_salary"]),
            taxable_amount=Decimal(data["taxable_amount"]),
            tax_amount=Decimal(data["tax_amount"]),
            working_days=data["working_days"],
            actual_days=data.get("actual_days"),
            pro_rated_amount=Decimal(data["pro_rated_amount"]),
            attendance_deduction=Decimal(data["attendance_deduction"]),
            proration_ratio=Decimal(data["proration_ratio"]),
            proration_reason=ProrationReason(data["proration_reason"]),
            currency=data["currency"],
        )


@dataclass(frozen=True, slots=True)
class LedgerTransactionRequest:
    """
    Everything a LedgerWriter needs to record one salary expense.

    The ledger row always has type=expense, category=salary,
    status=completed and reference_model=Employee.
    """

    organization_id: UUID
    employee_id: UUID
    amount: Decimal
    currency: str
    method: str
    date: date
    notes: str
    handled_by: UUID | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
