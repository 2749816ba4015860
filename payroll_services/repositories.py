"""
SQLAlchemy implementations of the payroll collaborator interfaces.

Responsibility:
    Serve employees, attendance and holidays from the payroll_kernel tables
    and write salary transactions to ``ledger_transactions``.  ORM rows are
    converted to frozen DTOs at this boundary; nothing past it sees a model
    instance.

Contract:
    Every method works inside the caller's session.  Writes are flushed so
    that generated ids exist, never committed.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from payroll_engines.attendance import count_attended_days
from payroll_kernel.domain.dtos import (
    PAYABLE_STATUSES,
    SYSTEM_ACTOR_ID,
    Allowance,
    AttendanceFact,
    CompensationProfile,
    Deduction,
    EffectiveWindow,
    EmployeeSnapshot,
    EmployeeStatus,
    LedgerTransactionRequest,
    PaymentFrequency,
    PayPeriod,
    PayrollStats,
)
from payroll_kernel.exceptions import EmployeeNotFoundError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.employee import (
    Employee,
    EmployeeAllowance,
    EmployeeDeduction,
)
from payroll_kernel.models.ledger_transaction import (
    LedgerTransaction,
    TransactionStatus,
    TransactionType,
)
from payroll_kernel.models.work_calendar import AttendanceRecord, Holiday

logger = get_logger("services.repositories")

SALARY_CATEGORY = "salary"
EMPLOYEE_REFERENCE_MODEL = "Employee"


def _allowance_to_dto(row: EmployeeAllowance) -> Allowance:
    return Allowance(
        type=row.allowance_type,
        amount=row.amount,
        taxable=row.taxable,
        recurring=row.recurring,
        window=EffectiveWindow(starts=row.effective_from, ends=row.effective_to),
    )


def _deduction_to_dto(row: EmployeeDeduction) -> Deduction:
    return Deduction(
        type=row.deduction_type,
        amount=row.amount,
        auto=row.auto,
        recurring=row.recurring,
        window=EffectiveWindow(starts=row.effective_from, ends=row.effective_to),
        description=row.description,
    )


def employee_to_snapshot(employee: Employee) -> EmployeeSnapshot:
    """Convert an ORM Employee (with its items) to an EmployeeSnapshot."""
    return EmployeeSnapshot(
        id=employee.id,
        organization_id=employee.organization_id,
        employee_code=employee.employee_code,
        name=employee.name,
        status=EmployeeStatus(employee.status),
        hire_date=employee.hire_date,
        termination_date=employee.termination_date,
        compensation=CompensationProfile(
            base_amount=employee.base_amount,
            currency=employee.currency,
            frequency=PaymentFrequency(employee.frequency),
            allowances=tuple(_allowance_to_dto(a) for a in employee.allowances),
            deductions=tuple(_deduction_to_dto(d) for d in employee.deductions),
        ),
        stats=PayrollStats(
            total_paid=employee.total_paid,
            payments_this_year=employee.payments_this_year,
            average_monthly=employee.average_monthly,
            last_payment_date=employee.last_payment_date,
            next_payment_date=employee.next_payment_date,
        ),
    )


class SqlEmployeeDirectory:
    """EmployeeDirectory backed by the ``employees`` table."""

    def get_employee(self, session: Session, employee_id: UUID) -> EmployeeSnapshot | None:
        employee = session.get(Employee, employee_id)
        if employee is None:
            return None
        return employee_to_snapshot(employee)

    def list_payable_employees(
        self,
        session: Session,
        organization_id: UUID,
        employee_ids: Sequence[UUID] | None = None,
    ) -> list[UUID]:
        if employee_ids is not None:
            requested = list(employee_ids)
            if not requested:
                return []
            # Status is not filtered: ineligible employees fail per employee.
            in_organization = set(
                session.execute(
                    select(Employee.id)
                    .where(Employee.organization_id == organization_id)
                    .where(Employee.id.in_(requested))
                ).scalars()
            )
            return [i for i in requested if i in in_organization]

        stmt = (
            select(Employee.id)
            .where(Employee.organization_id == organization_id)
            .where(Employee.status.in_([s.value for s in PAYABLE_STATUSES]))
            .order_by(Employee.employee_code)
        )
        return list(session.execute(stmt).scalars().all())

    def record_payment(
        self,
        session: Session,
        employee_id: UUID,
        stats: PayrollStats,
    ) -> None:
        employee = session.get(Employee, employee_id)
        if employee is None:
            raise EmployeeNotFoundError(str(employee_id))

        employee.total_paid = stats.total_paid
        employee.payments_this_year = stats.payments_this_year
        employee.average_monthly = stats.average_monthly
        employee.last_payment_date = stats.last_payment_date
        employee.next_payment_date = stats.next_payment_date
        session.flush()


class SqlAttendanceSource:
    """
    AttendanceSource backed by daily ``attendance_records`` marks.

    Returns None when the employee has no marks in the month.
    """

    def get_attendance(
        self,
        session: Session,
        organization_id: UUID,
        employee_id: UUID,
        year: int,
        month: int,
        expected_days: int,
    ) -> AttendanceFact | None:
        period = PayPeriod.for_month(month, year)
        stmt = (
            select(AttendanceRecord.kind)
            .where(AttendanceRecord.employee_id == employee_id)
            .where(AttendanceRecord.work_date >= period.start_date)
            .where(AttendanceRecord.work_date <= period.end_date)
        )
        if organization_id is not None:
            stmt = stmt.where(AttendanceRecord.organization_id == organization_id)

        kinds = list(session.execute(stmt).scalars().all())
        if not kinds:
            return None

        return AttendanceFact(
            expected_days=expected_days,
            actual_days=count_attended_days(kinds),
        )


class SqlHolidayCalendar:
    """
    HolidayCalendar backed by the ``holidays`` table.

    Rows with a NULL organization apply to every organization.
    """

    def get_holidays(
        self,
        session: Session,
        organization_id: UUID,
        start: date,
        end: date,
    ) -> list[date]:
        stmt = (
            select(Holiday.holiday_date)
            .where(Holiday.holiday_date >= start)
            .where(Holiday.holiday_date <= end)
            .where(
                or_(
                    Holiday.organization_id == organization_id,
                    Holiday.organization_id.is_(None),
                )
            )
            .distinct()
            .order_by(Holiday.holiday_date)
        )
        return list(session.execute(stmt).scalars().all())


class SqlLedgerWriter:
    """LedgerWriter that inserts into ``ledger_transactions``."""

    def create_transaction(
        self,
        session: Session,
        request: LedgerTransactionRequest,
    ) -> UUID:
        actor_id = request.handled_by or SYSTEM_ACTOR_ID
        transaction = LedgerTransaction(
            organization_id=request.organization_id,
            type=TransactionType.EXPENSE.value,
            category=SALARY_CATEGORY,
            amount=request.amount,
            currency=request.currency,
            method=request.method,
            status=TransactionStatus.COMPLETED.value,
            transaction_date=request.date,
            reference_id=request.employee_id,
            reference_model=EMPLOYEE_REFERENCE_MODEL,
            handled_by=request.handled_by,
            notes=request.notes,
            details=dict(request.metadata),
            created_by_id=actor_id,
        )
        session.add(transaction)
        session.flush()

        logger.debug(
            "ledger_transaction_created",
            extra={
                "transaction_id": str(transaction.id),
                "amount": str(request.amount),
                "currency": request.currency,
            },
        )
        return transaction.id
