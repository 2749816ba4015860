"""
Payroll Processor -- compute and commit one employee's salary, exactly once.

Responsibility:
    Turns a salary breakdown into linked financial records: a PayrollRecord,
    the ledger transaction that pays it, and the employee's updated payment
    statistics.  All of it commits together or not at all.

Architecture position:
    Services -- owns the unit of work.  Calls pure engines through the
    BreakdownAssembler and reaches every external system through the
    collaborator interfaces in ``payroll_services.interfaces``.

State machine per (employee, period):

    none --> processing --> paid
                 |
                 +--> (rollback: nothing persisted)

    ``processing`` is only ever visible inside the unit of work.  A paid
    record is never mutated afterwards except for its export flag.

Protocol (process_salary):
    1. Load the employee; status must be payable and base compensation > 0.
    2. Reject when a processing/paid record already exists for the period.
    3. Compute the breakdown.
    4. Insert the PayrollRecord with status ``processing``.
    5. Create the ledger transaction for the net salary.
    6. Link the transaction, set status ``paid`` and paid_at.
    7. Update the employee's payment statistics.
    8. Commit, then emit ``salary.processed``.

Invariants enforced:
    - At most one processing/paid record per (employee, month, year):
      application check in step 2, partial unique index at insert time.
      An IntegrityError from the index becomes DuplicatePayrollError.
    - Any failure in steps 3-7 rolls the whole unit back.  No retries.

Failure modes:
    - EmployeeNotFoundError, NotEligibleError, DuplicatePayrollError,
      ValidationError: surfaced to the caller unchanged.
    - Storage errors propagate unmodified after rollback.
    - Attendance and holiday lookup failures are logged and ignored.  Each
      lookup runs in its own savepoint, so a failed query never poisons
      the surrounding transaction.
"""

from __future__ import annotations

import dataclasses
import functools
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import event, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, SessionTransaction, sessionmaker

from payroll_config.config import PayrollConfig
from payroll_engines.breakdown import BreakdownAssembler
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.dtos import (
    ACTIVE_PAYROLL_STATUSES,
    SYSTEM_ACTOR_ID,
    AttendanceFact,
    EmployeeSnapshot,
    LedgerTransactionRequest,
    PaymentMethod,
    PayPeriod,
    PayrollBreakdown,
    PayrollStats,
    PayrollStatus,
)
from payroll_kernel.exceptions import (
    DuplicatePayrollError,
    EmployeeNotFoundError,
    NotEligibleError,
    PayrollKernelError,
    ValidationError,
)
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_kernel.models.payroll_record import ACTIVE_PERIOD_INDEX, PayrollRecord
from payroll_kernel.utils.dates import add_months
from payroll_kernel.utils.rounding import round_whole
from payroll_services.events import SALARY_FAILED, SALARY_PROCESSED
from payroll_services.interfaces import (
    AttendanceSource,
    EmployeeDirectory,
    HolidayCalendar,
    LedgerWriter,
    PayrollEventBus,
)
from payroll_services.selectors import PayrollRecordInfo, record_to_info

logger = get_logger("services.payroll_processor")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class ProcessSalaryResult:
    """
    Outcome of a committed salary payment.

    ``employee`` carries the statistics as updated by this payment.
    """

    payroll_record: PayrollRecordInfo
    transaction_id: UUID
    breakdown: PayrollBreakdown
    employee: EmployeeSnapshot


def next_payment_stats(
    stats: PayrollStats,
    net_salary: Decimal,
    pay_date: date,
) -> PayrollStats:
    """Running statistics after one more payment of ``net_salary``."""
    total_paid = stats.total_paid + net_salary
    payments = stats.payments_this_year + 1
    return PayrollStats(
        total_paid=total_paid,
        payments_this_year=payments,
        average_monthly=round_whole(total_paid / Decimal(payments)),
        last_payment_date=pay_date,
        next_payment_date=add_months(pay_date, 1),
    )


def is_active_period_violation(exc: IntegrityError) -> bool:
    """True when ``exc`` comes from uq_payroll_record_active_period."""
    message = str(exc.orig)
    if ACTIVE_PERIOD_INDEX in message:
        return True
    # SQLite names the columns instead of the index
    return "UNIQUE" in message.upper() and "payroll_records.employee_id" in message


def error_code(exc: Exception) -> str:
    """Machine-readable code for any exception surfaced by a payroll run."""
    if isinstance(exc, PayrollKernelError):
        return exc.code
    return type(exc).__name__


def _period_payload(period: PayPeriod) -> dict[str, int]:
    return {"month": period.month, "year": period.year}


# Notifications waiting for a caller-owned session to commit, kept in
# ``session.info``.  The two listeners below are attached once per session.
_PENDING_NOTIFICATIONS = "payroll_pending_notifications"


def _release_notifications(session: Session) -> None:
    # after_commit also fires when a savepoint is released
    if session.in_nested_transaction():
        return
    pending = session.info.pop(_PENDING_NOTIFICATIONS, [])
    for notify in pending:
        notify()


def _discard_notifications(session: Session, transaction: SessionTransaction) -> None:
    if transaction.parent is None:
        session.info.pop(_PENDING_NOTIFICATIONS, None)


class PayrollProcessor:
    """
    Explicitly constructed salary engine.

    Contract:
        Holds its collaborators and configuration; no module-level state.
        Several processors (tenants, tests) can run side by side.

    Session ownership:
        ``process_salary(session=None)`` opens a session from the factory,
        commits on success and rolls back on any failure.  With a caller
        supplied session the unit runs inside a savepoint: a failure rolls
        back only that savepoint, success only flushes.  The caller commits
        or rolls back, and ``salary.processed`` fires when the caller's
        outermost transaction commits.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        config: PayrollConfig,
        employees: EmployeeDirectory,
        ledger: LedgerWriter,
        *,
        attendance: AttendanceSource | None = None,
        holidays: HolidayCalendar | None = None,
        events: PayrollEventBus | None = None,
        clock: Clock | None = None,
        assembler: BreakdownAssembler | None = None,
    ):
        self._session_factory = session_factory
        self._config = config
        self._employees = employees
        self._ledger = ledger
        self._attendance = attendance
        self._holidays = holidays
        self._events = events
        self._clock = clock or SystemClock()
        self._assembler = assembler or config.build_assembler()
        self._workweek = config.workweek_indices

    @property
    def config(self) -> PayrollConfig:
        return self._config

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def session_factory(self) -> sessionmaker[Session]:
        return self._session_factory

    @property
    def employees(self) -> EmployeeDirectory:
        return self._employees

    @property
    def events(self) -> PayrollEventBus | None:
        return self._events

    # =========================================================================
    # Public API
    # =========================================================================

    def process_salary(
        self,
        employee_id: UUID,
        month: int,
        year: int,
        *,
        payment_date: date | None = None,
        payment_method: str | None = None,
        processed_by: UUID | None = None,
        attendance: AttendanceFact | None = None,
        session: Session | None = None,
    ) -> ProcessSalaryResult:
        """
        Compute and pay one employee's salary for month/year.

        Args:
            employee_id: Employee to pay.
            month: 1..12.
            year: Calendar year.
            payment_date: Pay date; defaults to today per the clock.
            payment_method: One of PaymentMethod values; defaults to the
                configured default method.
            processed_by: Actor recorded on the record and transaction.
            attendance: Explicit attendance; skips the AttendanceSource.
            session: Caller-owned session (see class docstring).

        Raises:
            EmployeeNotFoundError, NotEligibleError, DuplicatePayrollError,
            ValidationError.
        """
        period = PayPeriod.for_month(month, year, payment_date or self._clock.today())
        method = self._validate_payment_method(payment_method)

        with LogContext.bind(
            employee_id=employee_id,
            actor_id=processed_by,
        ):
            logger.info(
                "salary_processing_started",
                extra={"period": period.label, "payment_method": method},
            )

            if session is not None:
                try:
                    # A failed unit only rolls back its own savepoint; the
                    # caller's transaction stays usable.
                    with session.begin_nested():
                        result = self._process_unit(
                            session, employee_id, period, method, processed_by, attendance
                        )
                except Exception as exc:
                    logger.warning(
                        "salary_processing_rolled_back",
                        extra={"period": period.label, "caller_session": True},
                        exc_info=True,
                    )
                    self._emit_failed(employee_id, period, exc)
                    raise
                self._emit_on_commit(session, result, period)
                return result

            session = self._session_factory()
            try:
                result = self._process_unit(
                    session, employee_id, period, method, processed_by, attendance
                )
                session.commit()
            except Exception as exc:
                session.rollback()
                logger.warning(
                    "salary_processing_rolled_back",
                    extra={"period": period.label},
                    exc_info=True,
                )
                self._emit_failed(employee_id, period, exc)
                raise
            finally:
                session.close()

            logger.info(
                "salary_processed",
                extra={
                    "period": period.label,
                    "payroll_record_id": str(result.payroll_record.id),
                    "transaction_id": str(result.transaction_id),
                    "net_salary": str(result.breakdown.net_salary),
                },
            )
            self._emit_processed(result, period)
            return result

    def calculate_breakdown(
        self,
        employee_id: UUID,
        month: int,
        year: int,
        attendance: AttendanceFact | None = None,
    ) -> PayrollBreakdown:
        """
        Dry run: the breakdown process_salary would compute.  Persists nothing.

        Raises:
            EmployeeNotFoundError, NotEligibleError, ValidationError.
        """
        period = PayPeriod.for_month(month, year)
        session = self._session_factory()
        try:
            employee = self._load_eligible_employee(session, employee_id)
            return self._compute_breakdown(session, employee, period, attendance)
        finally:
            session.rollback()
            session.close()

    # =========================================================================
    # Unit of work
    # =========================================================================

    def _process_unit(
        self,
        session: Session,
        employee_id: UUID,
        period: PayPeriod,
        method: str,
        processed_by: UUID | None,
        attendance: AttendanceFact | None,
    ) -> ProcessSalaryResult:
        # 1. Employee and eligibility
        employee = self._load_eligible_employee(session, employee_id)
        organization_id = employee.organization_id

        # 2. Duplicate check
        existing_id = session.execute(
            select(PayrollRecord.id)
            .where(PayrollRecord.employee_id == employee.id)
            .where(PayrollRecord.period_month == period.month)
            .where(PayrollRecord.period_year == period.year)
            .where(PayrollRecord.status.in_(ACTIVE_PAYROLL_STATUSES))
        ).scalars().first()
        if existing_id is not None:
            raise DuplicatePayrollError(
                str(employee.id), period.month, period.year, str(existing_id)
            )

        # 3. Breakdown
        breakdown = self._compute_breakdown(session, employee, period, attendance)

        # 4. Record in processing
        now = self._clock.now()
        actor_id = processed_by or SYSTEM_ACTOR_ID
        record = PayrollRecord(
            organization_id=organization_id,
            employee_id=employee.id,
            period_month=period.month,
            period_year=period.year,
            period_start=period.start_date,
            period_end=period.end_date,
            pay_date=period.pay_date,
            breakdown=breakdown.to_dict(),
            currency=breakdown.currency,
            gross_salary=breakdown.gross_salary,
            net_salary=breakdown.net_salary,
            total_deductions=breakdown.total_deductions,
            tax_amount=breakdown.tax_amount,
            status=PayrollStatus.PROCESSING.value,
            payment_method=method,
            processed_at=now,
            processed_by=processed_by,
            created_by_id=actor_id,
        )
        session.add(record)
        try:
            session.flush()
        except IntegrityError as exc:
            if not is_active_period_violation(exc):
                raise
            # Lost the race against a concurrent run for the same period.
            raise DuplicatePayrollError(
                str(employee.id), period.month, period.year
            ) from exc

        # 5. Ledger transaction
        transaction_id = self._ledger.create_transaction(
            session,
            LedgerTransactionRequest(
                organization_id=organization_id,
                employee_id=employee.id,
                amount=breakdown.net_salary,
                currency=breakdown.currency,
                method=method,
                date=period.pay_date,
                notes=f"Salary payment - {employee.name} ({period.label})",
                handled_by=processed_by,
                metadata={
                    "payroll_record_id": str(record.id),
                    "period": _period_payload(period),
                    "base_amount": str(breakdown.base_amount),
                    "allowances": str(breakdown.total_allowances),
                    "deductions": str(breakdown.total_deductions),
                    "tax": str(breakdown.tax_amount),
                    "gross": str(breakdown.gross_salary),
                    "net": str(breakdown.net_salary),
                },
            ),
        )

        # 6. Paid
        record.transaction_id = transaction_id
        record.status = PayrollStatus.PAID.value
        record.paid_at = now
        record.touch(actor_id)
        session.flush()

        # 7. Employee statistics
        stats = next_payment_stats(
            employee.stats, breakdown.net_salary, period.pay_date
        )
        self._employees.record_payment(session, employee.id, stats)

        return ProcessSalaryResult(
            payroll_record=record_to_info(record),
            transaction_id=transaction_id,
            breakdown=breakdown,
            employee=dataclasses.replace(employee, stats=stats),
        )

    def _load_eligible_employee(
        self,
        session: Session,
        employee_id: UUID,
    ) -> EmployeeSnapshot:
        employee = self._employees.get_employee(session, employee_id)
        if employee is None:
            raise EmployeeNotFoundError(str(employee_id))

        if not employee.is_payable:
            raise NotEligibleError(
                str(employee_id), f"status is {employee.status.value}"
            )
        if employee.compensation.base_amount <= _ZERO:
            raise NotEligibleError(
                str(employee_id), "base compensation must be greater than zero"
            )
        if employee.organization_id is None:
            raise ValidationError(
                f"Employee {employee_id} has no organization",
                field="organization_id",
            )
        if employee.hire_date is None:
            raise ValidationError(
                f"Employee {employee_id} has no hire date", field="hire_date"
            )
        return employee

    # =========================================================================
    # Breakdown inputs
    # =========================================================================

    def _compute_breakdown(
        self,
        session: Session,
        employee: EmployeeSnapshot,
        period: PayPeriod,
        attendance: AttendanceFact | None,
    ) -> PayrollBreakdown:
        holidays = self._lookup_holidays(session, employee, period)

        if (
            attendance is None
            and self._attendance is not None
            and self._assembler.policy.attendance_integration
        ):
            expected_days = self._assembler.effective_working_days(
                employee.hire_date,
                employee.termination_date,
                period.start_date,
                period.end_date,
                self._workweek,
                holidays,
            )
            attendance = self._lookup_attendance(
                session, employee, period, expected_days
            )

        return self._assembler.assemble(
            employee.compensation,
            employee.hire_date,
            employee.termination_date,
            period.start_date,
            period.end_date,
            self._workweek,
            holidays,
            attendance,
        )

    def _lookup_holidays(
        self,
        session: Session,
        employee: EmployeeSnapshot,
        period: PayPeriod,
    ) -> list[date]:
        if self._holidays is None:
            return []
        try:
            with session.begin_nested():
                return self._holidays.get_holidays(
                    session, employee.organization_id, period.start_date, period.end_date
                )
        except Exception:
            logger.warning(
                "holiday_lookup_failed",
                extra={"period": period.label},
                exc_info=True,
            )
            return []

    def _lookup_attendance(
        self,
        session: Session,
        employee: EmployeeSnapshot,
        period: PayPeriod,
        expected_days: int,
    ) -> AttendanceFact | None:
        try:
            with session.begin_nested():
                return self._attendance.get_attendance(
                    session,
                    employee.organization_id,
                    employee.id,
                    period.year,
                    period.month,
                    expected_days,
                )
        except Exception:
            logger.warning(
                "attendance_lookup_failed",
                extra={"period": period.label},
                exc_info=True,
            )
            return None

    def _validate_payment_method(self, payment_method: str | None) -> str:
        method = payment_method or self._config.default_payment_method
        try:
            return PaymentMethod(method).value
        except ValueError:
            raise ValidationError(
                f"Unknown payment method: {method!r}", field="payment_method"
            ) from None

    # =========================================================================
    # Notifications
    # =========================================================================

    def _emit_processed(self, result: ProcessSalaryResult, period: PayPeriod) -> None:
        if self._events is None:
            return
        record = result.payroll_record
        self._events.emit(
            SALARY_PROCESSED,
            {
                "employee_id": record.employee_id,
                "organization_id": record.organization_id,
                "payroll_record_id": record.id,
                "transaction_id": result.transaction_id,
                "period": _period_payload(period),
                "gross_salary": result.breakdown.gross_salary,
                "net_salary": result.breakdown.net_salary,
                "currency": result.breakdown.currency,
            },
        )

    def _emit_failed(self, employee_id: UUID, period: PayPeriod, exc: Exception) -> None:
        if self._events is None:
            return
        payload: dict[str, Any] = {
            "employee_id": employee_id,
            "period": _period_payload(period),
            "error_code": error_code(exc),
            "error": str(exc),
        }
        self._events.emit(SALARY_FAILED, payload)

    def _emit_on_commit(
        self,
        session: Session,
        result: ProcessSalaryResult,
        period: PayPeriod,
    ) -> None:
        """
        Defer ``salary.processed`` until the caller commits the session.

        Pending notifications are dropped when the caller's transaction ends
        any other way (rollback or close).
        """
        if self._events is None:
            return
        if not event.contains(session, "after_commit", _release_notifications):
            event.listen(session, "after_commit", _release_notifications)
            event.listen(session, "after_transaction_end", _discard_notifications)
        session.info.setdefault(_PENDING_NOTIFICATIONS, []).append(
            functools.partial(self._emit_processed, result, period)
        )
