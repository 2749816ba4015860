"""
Module: payroll_kernel.models.payroll_record
Responsibility: ORM persistence for one employee's salary for one pay period:
    the period, the computed breakdown, the payment status, and the link to
    the ledger transaction that paid it.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, engines or outer layers.

Invariants enforced:
    - At most one record with status IN ('processing', 'paid') per
      (employee_id, period_month, period_year).  Backed by the partial
      unique index uq_payroll_record_active_period, so concurrent runs for
      the same period cannot both commit.  Failed and cancelled records do
      not block a re-run.
    - A paid record always has transaction_id set.
    - After status becomes 'paid' only exported/exported_at change.

Failure modes:
    - IntegrityError on a second active record for the same employee/period
      (translated to DuplicatePayrollError by the processor).

Audit relevance:
    ``breakdown`` is the exact PayrollBreakdown.to_dict() that produced the
    ledger amount.  gross/net/tax/deduction totals are denormalised from it
    for reporting queries.

Non-goals:
    employee_id carries no foreign key: the employee directory is a
    collaborator and may live outside this schema.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_kernel.db.base import TrackedBase, UUIDString
from payroll_kernel.domain.dtos import PayrollBreakdown, PayrollStatus
from payroll_kernel.models.ledger_transaction import LedgerTransaction

ACTIVE_PERIOD_INDEX = "uq_payroll_record_active_period"
_ACTIVE_STATUS_PREDICATE = "status IN ('processing', 'paid')"


class PayrollRecord(TrackedBase):
    """
    Salary record for one employee and one month.

    Contract:
        Created with status PROCESSING and moved to PAID in the same unit of
        work once the ledger transaction exists.  No partially-paid state is
        ever committed.
    """

    __tablename__ = "payroll_records"

    __table_args__ = (
        Index(
            ACTIVE_PERIOD_INDEX,
            "employee_id",
            "period_month",
            "period_year",
            unique=True,
            postgresql_where=text(_ACTIVE_STATUS_PREDICATE),
            sqlite_where=text(_ACTIVE_STATUS_PREDICATE),
        ),
        Index(
            "idx_payroll_record_org_period",
            "organization_id",
            "period_year",
            "period_month",
        ),
        Index("idx_payroll_record_pay_date", "organization_id", "pay_date"),
        Index("idx_payroll_record_status", "status"),
    )

    organization_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    employee_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    # Period
    period_month: Mapped[int] = mapped_column(Integer, nullable=False)

    period_year: Mapped[int] = mapped_column(Integer, nullable=False)

    period_start: Mapped[date] = mapped_column(Date, nullable=False)

    period_end: Mapped[date] = mapped_column(Date, nullable=False)

    pay_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Breakdown
    breakdown: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    gross_salary: Mapped[Decimal] = mapped_column(nullable=False)

    net_salary: Mapped[Decimal] = mapped_column(nullable=False)

    total_deductions: Mapped[Decimal] = mapped_column(nullable=False)

    tax_amount: Mapped[Decimal] = mapped_column(nullable=False)

    # Payment
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PayrollStatus.PENDING.value,
    )

    transaction_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("ledger_transactions.id"),
        nullable=True,
    )

    payment_method: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="bank",
    )

    processed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    processed_by: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Export
    exported: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    exported_at: Mapped[datetime | None] = mapped_column(nullable=True)

    transaction: Mapped[LedgerTransaction | None] = relationship(
        lazy="joined",
    )

    @property
    def payroll_status(self) -> PayrollStatus:
        return PayrollStatus(self.status)

    @property
    def is_paid(self) -> bool:
        return self.status == PayrollStatus.PAID.value

    def to_breakdown(self) -> PayrollBreakdown:
        """Rebuild the frozen breakdown DTO from the stored JSON."""
        return PayrollBreakdown.from_dict(self.breakdown)

    def __repr__(self) -> str:
        return (
            f"<PayrollRecord {self.employee_id} "
            f"{self.period_month:02d}/{self.period_year} {self.status}>"
        )
