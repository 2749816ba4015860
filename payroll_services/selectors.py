"""
Read-only queries over payroll records.

Responsibility:
    Payroll history with filters and pagination, period summaries, and the
    PayrollRecordInfo DTO returned by every payroll read and by the
    processor.

Invariants enforced:
    - Read-only access: the selector never adds, flushes, commits or
      deletes.  The caller owns the session.
    - DTO return convention: callers receive PayrollRecordInfo, never
      PayrollRecord ORM instances.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from payroll_kernel.domain.dtos import (
    ACTIVE_PAYROLL_STATUSES,
    PayrollBreakdown,
    PayrollStatus,
)
from payroll_kernel.models.payroll_record import PayrollRecord

_ZERO = Decimal("0")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 500


@dataclass(frozen=True)
class PayrollRecordInfo:
    """Immutable view of a payroll record."""

    id: UUID
    organization_id: UUID
    employee_id: UUID
    month: int
    year: int
    period_start: date
    period_end: date
    pay_date: date
    status: PayrollStatus
    breakdown: PayrollBreakdown
    transaction_id: UUID | None
    payment_method: str
    processed_at: datetime | None
    processed_by: UUID | None
    paid_at: datetime | None
    exported: bool
    exported_at: datetime | None

    @property
    def gross_salary(self) -> Decimal:
        return self.breakdown.gross_salary

    @property
    def net_salary(self) -> Decimal:
        return self.breakdown.net_salary


def record_to_info(record: PayrollRecord) -> PayrollRecordInfo:
    return PayrollRecordInfo(
        id=record.id,
        organization_id=record.organization_id,
        employee_id=record.employee_id,
        month=record.period_month,
        year=record.period_year,
        period_start=record.period_start,
        period_end=record.period_end,
        pay_date=record.pay_date,
        status=PayrollStatus(record.status),
        breakdown=record.to_breakdown(),
        transaction_id=record.transaction_id,
        payment_method=record.payment_method,
        processed_at=record.processed_at,
        processed_by=record.processed_by,
        paid_at=record.paid_at,
        exported=record.exported,
        exported_at=record.exported_at,
    )


@dataclass(frozen=True)
class PayrollSummary:
    """Aggregates over the payroll records of an organization."""

    total_gross: Decimal
    total_net: Decimal
    total_deductions: Decimal
    total_tax: Decimal
    employee_count: int
    paid_count: int
    pending_count: int


class PayrollRecordSelector:
    """
    Queries over ``payroll_records``.

    Contract:
        Accepts a Session from the caller and never mutates data.
    """

    def __init__(self, session: Session):
        self.session = session

    def get(self, record_id: UUID) -> PayrollRecordInfo | None:
        record = self.session.get(PayrollRecord, record_id)
        return record_to_info(record) if record is not None else None

    def find_active(
        self,
        employee_id: UUID,
        month: int,
        year: int,
    ) -> PayrollRecordInfo | None:
        """The processing or paid record for the period, if any."""
        stmt = (
            select(PayrollRecord)
            .where(PayrollRecord.employee_id == employee_id)
            .where(PayrollRecord.period_month == month)
            .where(PayrollRecord.period_year == year)
            .where(PayrollRecord.status.in_(ACTIVE_PAYROLL_STATUSES))
        )
        record = self.session.execute(stmt).scalars().first()
        return record_to_info(record) if record is not None else None

    def history(
        self,
        employee_id: UUID | None = None,
        organization_id: UUID | None = None,
        month: int | None = None,
        year: int | None = None,
        status: PayrollStatus | str | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> list[PayrollRecordInfo]:
        """
        Payroll records matching every supplied filter, newest period first.

        Args:
            page: 1-based page number.
            limit: Page size, capped at MAX_PAGE_SIZE.

        Raises:
            ValueError: If page or limit is below 1.
        """
        if page < 1:
            raise ValueError("page must be >= 1")
        if limit < 1:
            raise ValueError("limit must be >= 1")
        limit = min(limit, MAX_PAGE_SIZE)

        stmt = select(PayrollRecord)
        if employee_id is not None:
            stmt = stmt.where(PayrollRecord.employee_id == employee_id)
        if organization_id is not None:
            stmt = stmt.where(PayrollRecord.organization_id == organization_id)
        if month is not None:
            stmt = stmt.where(PayrollRecord.period_month == month)
        if year is not None:
            stmt = stmt.where(PayrollRecord.period_year == year)
        if status is not None:
            stmt = stmt.where(PayrollRecord.status == PayrollStatus(status).value)

        stmt = (
            stmt.order_by(
                PayrollRecord.period_year.desc(),
                PayrollRecord.period_month.desc(),
                PayrollRecord.created_at.desc(),
            )
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return [record_to_info(r) for r in self.session.execute(stmt).scalars().all()]

    def summary(
        self,
        organization_id: UUID,
        month: int | None = None,
        year: int | None = None,
    ) -> PayrollSummary:
        """Totals for the organization, optionally narrowed to a month/year."""
        stmt = select(
            func.coalesce(func.sum(PayrollRecord.gross_salary), 0),
            func.coalesce(func.sum(PayrollRecord.net_salary), 0),
            func.coalesce(func.sum(PayrollRecord.total_deductions), 0),
            func.coalesce(func.sum(PayrollRecord.tax_amount), 0),
            func.count(PayrollRecord.id),
        ).where(PayrollRecord.organization_id == organization_id)
        if month is not None:
            stmt = stmt.where(PayrollRecord.period_month == month)
        if year is not None:
            stmt = stmt.where(PayrollRecord.period_year == year)

        gross, net, deductions, tax, count = self.session.execute(stmt).one()

        status_stmt = (
            select(PayrollRecord.status, func.count(PayrollRecord.id))
            .where(PayrollRecord.organization_id == organization_id)
            .group_by(PayrollRecord.status)
        )
        if month is not None:
            status_stmt = status_stmt.where(PayrollRecord.period_month == month)
        if year is not None:
            status_stmt = status_stmt.where(PayrollRecord.period_year == year)
        by_status = dict(self.session.execute(status_stmt).all())

        return PayrollSummary(
            total_gross=_as_decimal(gross),
            total_net=_as_decimal(net),
            total_deductions=_as_decimal(deductions),
            total_tax=_as_decimal(tax),
            employee_count=int(count),
            paid_count=int(by_status.get(PayrollStatus.PAID.value, 0)),
            pending_count=int(by_status.get(PayrollStatus.PENDING.value, 0)),
        )


def _as_decimal(value) -> Decimal:
    if value is None:
        return _ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))
