"""
Tests for PayrollProcessor.

Covers:
- Happy path: record, ledger transaction and employee statistics
- Idempotence per (employee, month, year)
- Atomicity when the ledger or the statistics update fails
- Eligibility and validation errors
- Holidays and attendance flowing into the breakdown; failed lookups stay soft
- Caller-owned sessions: savepoint per unit, deferred notifications
- Dry-run breakdowns
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select, text

from payroll_kernel.db.engine import (
    create_engine_from_url,
    create_session_factory,
    create_tables,
    drop_tables,
)
from payroll_kernel.domain.dtos import (
    SYSTEM_ACTOR_ID,
    AttendanceFact,
    PayrollStats,
    PayrollStatus,
)
from payroll_kernel.exceptions import (
    DuplicatePayrollError,
    EmployeeNotFoundError,
    NotEligibleError,
    ValidationError,
)
from payroll_kernel.models.employee import Employee
from payroll_kernel.models.ledger_transaction import LedgerTransaction
from payroll_kernel.models.payroll_record import PayrollRecord
from payroll_kernel.models.work_calendar import Holiday
from payroll_services.events import SALARY_FAILED, SALARY_PROCESSED
from payroll_services.payroll_processor import PayrollProcessor, next_payment_stats
from payroll_services.repositories import (
    SqlAttendanceSource,
    SqlEmployeeDirectory,
    SqlHolidayCalendar,
    SqlLedgerWriter,
)

PAY_DATE = date(2024, 3, 31)

# 100000 BDT/month: 1.2M/yr -> 150000 tax/yr -> 12500/mo
FULL_MONTH_TAX = Decimal("12500")
FULL_MONTH_NET = Decimal("87500")


def _count(session_factory, model) -> int:
    with session_factory() as session:
        return session.execute(select(func.count()).select_from(model)).scalar_one()


class FailingLedger:
    def create_transaction(self, session, request):
        raise RuntimeError("ledger unavailable")


class FailingStatsDirectory(SqlEmployeeDirectory):
    def record_payment(self, session, employee_id, stats):
        raise RuntimeError("employee store unavailable")


class FailingHolidayCalendar:
    def get_holidays(self, session, organization_id, start, end):
        raise RuntimeError("calendar service down")


class LedgerFailingFor(SqlLedgerWriter):
    """Ledger that refuses one employee's payment."""

    def __init__(self, employee_id):
        self._employee_id = employee_id

    def create_transaction(self, session, request):
        if request.employee_id == self._employee_id:
            raise RuntimeError("ledger unavailable")
        return super().create_transaction(session, request)


class FailingAttendanceSource:
    def get_attendance(self, session, organization_id, employee_id, year, month, days):
        raise RuntimeError("attendance service down")


class HalfWrittenAttendanceSource:
    """Writes through the payroll session, then fails."""

    def get_attendance(self, session, organization_id, employee_id, year, month, days):
        session.add(Holiday(holiday_date=date(2024, 3, 26), name="Left by failed lookup"))
        session.flush()
        raise RuntimeError("attendance service down")


class BrokenQueryAttendanceSource:
    def get_attendance(self, session, organization_id, employee_id, year, month, days):
        session.execute(text("SELECT days FROM missing_attendance_feed"))


def _processor(session_factory, config, clock, event_bus, **overrides):
    kwargs = {
        "employees": SqlEmployeeDirectory(),
        "ledger": SqlLedgerWriter(),
        "attendance": SqlAttendanceSource(),
        "holidays": SqlHolidayCalendar(),
    }
    kwargs.update(overrides)
    return PayrollProcessor(
        session_factory,
        config,
        kwargs.pop("employees"),
        kwargs.pop("ledger"),
        events=event_bus,
        clock=clock,
        **kwargs,
    )


class TestProcessSalary:
    def test_pays_full_month(self, processor, create_employee, session_factory, actor_id):
        employee_id = create_employee()

        result = processor.process_salary(
            employee_id, 3, 2024, payment_date=PAY_DATE, processed_by=actor_id
        )

        record = result.payroll_record
        assert record.status == PayrollStatus.PAID
        assert record.transaction_id == result.transaction_id
        assert record.month == 3 and record.year == 2024
        assert record.pay_date == PAY_DATE
        assert record.payment_method == "bank"
        assert record.processed_by == actor_id
        assert record.paid_at is not None
        assert result.breakdown.tax_amount == FULL_MONTH_TAX
        assert result.breakdown.net_salary == FULL_MONTH_NET

        with session_factory() as session:
            transaction = session.get(LedgerTransaction, result.transaction_id)
            assert transaction.amount == FULL_MONTH_NET
            assert transaction.type == "expense"
            assert transaction.category == "salary"
            assert transaction.status == "completed"
            assert transaction.reference_id == employee_id
            assert transaction.reference_model == "Employee"
            assert transaction.notes == "Salary payment - Employee 1 (03/2024)"
            assert transaction.details["payroll_record_id"] == str(record.id)
            assert transaction.details["period"] == {"month": 3, "year": 2024}
            assert transaction.details["net"] == "87500"

            stored = session.get(PayrollRecord, record.id)
            assert stored.status == "paid"
            assert stored.created_by_id == actor_id
            assert stored.to_breakdown() == result.breakdown

    def test_updates_employee_statistics(self, processor, create_employee, session_factory):
        employee_id = create_employee()

        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert result.employee.stats.total_paid == FULL_MONTH_NET
        assert result.employee.stats.payments_this_year == 1
        assert result.employee.stats.last_payment_date == PAY_DATE
        assert result.employee.stats.next_payment_date == date(2024, 4, 30)

        with session_factory() as session:
            employee = session.get(Employee, employee_id)
            assert employee.total_paid == FULL_MONTH_NET
            assert employee.payments_this_year == 1
            assert employee.average_monthly == FULL_MONTH_NET

    def test_statistics_accumulate_over_months(self, processor, create_employee):
        employee_id = create_employee()

        processor.process_salary(employee_id, 2, 2024, payment_date=date(2024, 2, 29))
        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert result.employee.stats.payments_this_year == 2
        assert result.employee.stats.total_paid == FULL_MONTH_NET * 2
        assert result.employee.stats.average_monthly == FULL_MONTH_NET

    def test_system_actor_when_unattributed(self, processor, create_employee, session_factory):
        employee_id = create_employee()

        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        with session_factory() as session:
            stored = session.get(PayrollRecord, result.payroll_record.id)
            assert stored.created_by_id == SYSTEM_ACTOR_ID
            assert stored.processed_by is None

    def test_pay_date_defaults_to_clock_today(self, processor, create_employee):
        employee_id = create_employee()

        result = processor.process_salary(employee_id, 3, 2024)

        assert result.payroll_record.pay_date == processor.clock.today()

    def test_explicit_payment_method(self, processor, create_employee, session_factory):
        employee_id = create_employee()

        result = processor.process_salary(
            employee_id, 3, 2024, payment_date=PAY_DATE, payment_method="bkash"
        )

        assert result.payroll_record.payment_method == "bkash"
        with session_factory() as session:
            assert session.get(LedgerTransaction, result.transaction_id).method == "bkash"

    def test_new_hire_example(self, processor, create_employee):
        employee_id = create_employee(
            hire_date=date(2024, 3, 14),
            allowances=[
                {
                    "allowance_type": "housing",
                    "amount": Decimal("20000"),
                    "taxable": True,
                    "effective_from": date(2024, 1, 1),
                }
            ],
        )

        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert result.breakdown.base_amount == Decimal("57143")
        assert result.breakdown.allowances[0].amount == Decimal("11429")
        assert result.breakdown.gross_salary == Decimal("68572")
        assert result.breakdown.net_salary == Decimal("62358")


class TestIdempotence:
    def test_second_run_rejected(self, processor, create_employee, session_factory):
        employee_id = create_employee()
        first = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        with pytest.raises(DuplicatePayrollError) as exc_info:
            processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert exc_info.value.existing_record_id == str(first.payroll_record.id)
        assert exc_info.value.code == "DUPLICATE_PAYROLL"
        assert _count(session_factory, PayrollRecord) == 1
        assert _count(session_factory, LedgerTransaction) == 1

    def test_other_month_allowed(self, processor, create_employee, session_factory):
        employee_id = create_employee()
        processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)
        processor.process_salary(employee_id, 4, 2024, payment_date=date(2024, 4, 30))

        assert _count(session_factory, PayrollRecord) == 2

    @pytest.mark.parametrize("status", ["failed", "cancelled", "pending"])
    def test_inactive_record_does_not_block(
        self, processor, create_employee, session_factory, organization_id, actor_id, status
    ):
        employee_id = create_employee()
        with session_factory() as session:
            session.add(
                PayrollRecord(
                    organization_id=organization_id,
                    employee_id=employee_id,
                    period_month=3,
                    period_year=2024,
                    period_start=date(2024, 3, 1),
                    period_end=date(2024, 3, 31),
                    pay_date=PAY_DATE,
                    breakdown={},
                    currency="BDT",
                    gross_salary=Decimal("0"),
                    net_salary=Decimal("0"),
                    total_deductions=Decimal("0"),
                    tax_amount=Decimal("0"),
                    status=status,
                    created_by_id=actor_id,
                )
            )
            session.commit()

        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert result.payroll_record.status == PayrollStatus.PAID
        assert _count(session_factory, PayrollRecord) == 2


class TestAtomicity:
    def test_ledger_failure_persists_nothing(
        self, session_factory, config, clock, event_bus, recorded_events, create_employee
    ):
        processor = _processor(
            session_factory, config, clock, event_bus, ledger=FailingLedger()
        )
        employee_id = create_employee()

        with pytest.raises(RuntimeError, match="ledger unavailable"):
            processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert _count(session_factory, PayrollRecord) == 0
        assert _count(session_factory, LedgerTransaction) == 0
        with session_factory() as session:
            employee = session.get(Employee, employee_id)
            assert employee.total_paid == Decimal("0")
            assert employee.payments_this_year == 0

        assert [name for name, _ in recorded_events] == [SALARY_FAILED]
        assert recorded_events[0][1]["error_code"] == "RuntimeError"

    def test_statistics_failure_rolls_back_ledger(
        self, session_factory, config, clock, event_bus, create_employee
    ):
        processor = _processor(
            session_factory, config, clock, event_bus, employees=FailingStatsDirectory()
        )
        employee_id = create_employee()

        with pytest.raises(RuntimeError):
            processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert _count(session_factory, PayrollRecord) == 0
        assert _count(session_factory, LedgerTransaction) == 0

    def test_retry_after_failure_succeeds(
        self, session_factory, config, clock, event_bus, processor, create_employee
    ):
        failing = _processor(
            session_factory, config, clock, event_bus, ledger=FailingLedger()
        )
        employee_id = create_employee()
        with pytest.raises(RuntimeError):
            failing.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert result.payroll_record.status == PayrollStatus.PAID


class TestEligibility:
    def test_unknown_employee(self, processor):
        with pytest.raises(EmployeeNotFoundError):
            processor.process_salary(uuid4(), 3, 2024, payment_date=PAY_DATE)

    @pytest.mark.parametrize("status", ["terminated", "suspended"])
    def test_non_payable_status(self, processor, create_employee, status):
        employee_id = create_employee(status=status)

        with pytest.raises(NotEligibleError) as exc_info:
            processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert exc_info.value.code == "NOT_ELIGIBLE"

    def test_on_leave_is_paid(self, processor, create_employee):
        employee_id = create_employee(status="on_leave")

        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert result.payroll_record.status == PayrollStatus.PAID

    def test_zero_base_not_eligible(self, processor, create_employee):
        employee_id = create_employee(base_amount=Decimal("0"))

        with pytest.raises(NotEligibleError, match="base compensation"):
            processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

    def test_missing_hire_date(self, processor, create_employee):
        employee_id = create_employee(hire_date=None)

        with pytest.raises(ValidationError) as exc_info:
            processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert exc_info.value.field == "hire_date"


class TestValidation:
    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_month_out_of_range(self, processor, create_employee, month):
        employee_id = create_employee()

        with pytest.raises(ValidationError) as exc_info:
            processor.process_salary(employee_id, month, 2024)

        assert exc_info.value.field == "month"

    def test_unknown_payment_method(self, processor, create_employee, session_factory):
        employee_id = create_employee()

        with pytest.raises(ValidationError) as exc_info:
            processor.process_salary(
                employee_id, 3, 2024, payment_date=PAY_DATE, payment_method="barter"
            )

        assert exc_info.value.field == "payment_method"
        assert _count(session_factory, PayrollRecord) == 0


class TestBreakdownInputs:
    def test_holidays_from_calendar(self, processor, create_employee, add_holiday):
        add_holiday(date(2024, 3, 26))
        employee_id = create_employee(hire_date=date(2024, 3, 15))

        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert result.breakdown.working_days == 20
        assert result.breakdown.base_amount == Decimal("50000")

    def test_other_organization_holiday_ignored(self, processor, create_employee, add_holiday):
        add_holiday(date(2024, 3, 26), organization=uuid4())
        employee_id = create_employee()

        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert result.breakdown.working_days == 21

    def test_attendance_from_source(self, processor, create_employee, mark_attendance):
        employee_id = create_employee()
        # 18 attended days out of 21 expected
        days = [date(2024, 3, d) for d in (1, 4, 5, 6, 7, 8, 11, 12, 13, 14, 15,
                                           18, 19, 20, 21, 22, 25, 26)]
        mark_attendance(employee_id, days)

        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert result.breakdown.actual_days == 18
        # 100000 / 21 * 3
        assert result.breakdown.attendance_deduction == Decimal("14286")

    def test_explicit_attendance_overrides_source(
        self, processor, create_employee, mark_attendance
    ):
        employee_id = create_employee(base_amount=Decimal("110000"))
        mark_attendance(employee_id, [date(2024, 3, 1)])

        result = processor.process_salary(
            employee_id,
            3,
            2024,
            payment_date=PAY_DATE,
            attendance=AttendanceFact(expected_days=22, actual_days=20),
        )

        assert result.breakdown.attendance_deduction == Decimal("10000")

    def test_no_marks_means_no_deduction(self, processor, create_employee):
        employee_id = create_employee()

        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert result.breakdown.attendance_deduction == Decimal("0")

    def test_holiday_lookup_failure_is_soft(
        self, session_factory, config, clock, event_bus, create_employee, captured_logs
    ):
        processor = _processor(
            session_factory, config, clock, event_bus, holidays=FailingHolidayCalendar()
        )
        employee_id = create_employee()

        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert result.breakdown.working_days == 21
        assert any(r["message"] == "holiday_lookup_failed" for r in captured_logs())

    def test_attendance_lookup_failure_is_soft(
        self, session_factory, config, clock, event_bus, create_employee, captured_logs
    ):
        processor = _processor(
            session_factory, config, clock, event_bus, attendance=FailingAttendanceSource()
        )
        employee_id = create_employee()

        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert result.breakdown.attendance_deduction == Decimal("0")
        assert "absence" not in [line.type for line in result.breakdown.deductions]
        assert result.breakdown.net_salary == FULL_MONTH_NET
        assert any(r["message"] == "attendance_lookup_failed" for r in captured_logs())
        assert _count(session_factory, PayrollRecord) == 1

    def test_failed_lookup_writes_are_discarded(
        self, session_factory, config, clock, event_bus, create_employee
    ):
        processor = _processor(
            session_factory, config, clock, event_bus, attendance=HalfWrittenAttendanceSource()
        )
        employee_id = create_employee()

        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert result.payroll_record.status == PayrollStatus.PAID
        assert _count(session_factory, PayrollRecord) == 1
        assert _count(session_factory, Holiday) == 0

    def test_failed_lookup_query_does_not_block_payment(
        self, session_factory, config, clock, event_bus, create_employee
    ):
        processor = _processor(
            session_factory, config, clock, event_bus, attendance=BrokenQueryAttendanceSource()
        )
        employee_id = create_employee()

        processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert _count(session_factory, LedgerTransaction) == 1


class TestNotifications:
    def test_processed_event_after_commit(self, processor, create_employee, recorded_events):
        employee_id = create_employee()

        result = processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert len(recorded_events) == 1
        name, payload = recorded_events[0]
        assert name == SALARY_PROCESSED
        assert payload["employee_id"] == employee_id
        assert payload["payroll_record_id"] == result.payroll_record.id
        assert payload["transaction_id"] == result.transaction_id
        assert payload["period"] == {"month": 3, "year": 2024}
        assert payload["net_salary"] == FULL_MONTH_NET

    def test_failed_event_on_duplicate(self, processor, create_employee, recorded_events):
        employee_id = create_employee()
        processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        with pytest.raises(DuplicatePayrollError):
            processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert recorded_events[-1][0] == SALARY_FAILED
        assert recorded_events[-1][1]["error_code"] == "DUPLICATE_PAYROLL"

    def test_handler_error_does_not_undo_payment(
        self, processor, create_employee, event_bus, session_factory
    ):
        def broken(name, payload):
            raise RuntimeError("subscriber bug")

        event_bus.subscribe(SALARY_PROCESSED, broken)
        employee_id = create_employee()

        processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        assert _count(session_factory, PayrollRecord) == 1

    def test_processing_logged(self, processor, create_employee, captured_logs):
        employee_id = create_employee()

        processor.process_salary(employee_id, 3, 2024, payment_date=PAY_DATE)

        logs = captured_logs()
        done = [r for r in logs if r["message"] == "salary_processed"]
        assert done[0]["employee_id"] == str(employee_id)
        assert done[0]["period"] == "03/2024"


class TestCallerOwnedSession:
    def test_commit_by_caller_emits_event(
        self, processor, create_employee, session_factory, recorded_events
    ):
        employee_id = create_employee()

        with session_factory() as session:
            result = processor.process_salary(
                employee_id, 3, 2024, payment_date=PAY_DATE, session=session
            )
            assert recorded_events == []
            session.commit()

        assert [name for name, _ in recorded_events] == [SALARY_PROCESSED]
        assert recorded_events[0][1]["payroll_record_id"] == result.payroll_record.id
        assert _count(session_factory, PayrollRecord) == 1

    def test_rollback_by_caller_discards_everything(
        self, processor, create_employee, session_factory, recorded_events
    ):
        employee_id = create_employee()

        with session_factory() as session:
            processor.process_salary(
                employee_id, 3, 2024, payment_date=PAY_DATE, session=session
            )
            session.rollback()
            session.commit()

        assert recorded_events == []
        assert _count(session_factory, PayrollRecord) == 0
        assert _count(session_factory, LedgerTransaction) == 0

    def test_failed_unit_leaves_nothing_in_caller_transaction(
        self, session_factory, config, clock, event_bus, recorded_events, create_employee
    ):
        refused = create_employee()
        paid = create_employee()
        processor = _processor(
            session_factory, config, clock, event_bus, ledger=LedgerFailingFor(refused)
        )

        with session_factory() as session:
            with pytest.raises(RuntimeError, match="ledger unavailable"):
                processor.process_salary(
                    refused, 3, 2024, payment_date=PAY_DATE, session=session
                )
            processor.process_salary(paid, 3, 2024, payment_date=PAY_DATE, session=session)
            session.commit()

        with session_factory() as session:
            rows = session.execute(
                select(PayrollRecord.employee_id, PayrollRecord.status)
            ).all()
            refused_employee = session.get(Employee, refused)
            assert refused_employee.payments_this_year == 0
        assert [(row.employee_id, row.status) for row in rows] == [(paid, "paid")]
        assert _count(session_factory, LedgerTransaction) == 1
        assert [name for name, _ in recorded_events] == [SALARY_FAILED, SALARY_PROCESSED]

        # The period is still open for the refused employee.
        retry = _processor(session_factory, config, clock, event_bus)
        result = retry.process_salary(refused, 3, 2024, payment_date=PAY_DATE)
        assert result.payroll_record.status == PayrollStatus.PAID

    def test_events_wait_for_outer_commit(
        self, processor, create_employee, session_factory, recorded_events
    ):
        first = create_employee()
        second = create_employee()

        with session_factory() as session:
            processor.process_salary(first, 3, 2024, payment_date=PAY_DATE, session=session)
            processor.process_salary(second, 3, 2024, payment_date=PAY_DATE, session=session)
            assert recorded_events == []
            session.commit()

        payloads = [payload for _, payload in recorded_events]
        assert [p["employee_id"] for p in payloads] == [first, second]

    def test_close_without_commit_drops_events(
        self, processor, create_employee, session_factory, recorded_events
    ):
        employee_id = create_employee()

        session = session_factory()
        processor.process_salary(
            employee_id, 3, 2024, payment_date=PAY_DATE, session=session
        )
        session.close()
        # closed sessions are reusable; a later commit emits nothing
        session.commit()
        session.close()

        assert recorded_events == []
        assert _count(session_factory, PayrollRecord) == 0

    def test_listeners_attached_once_per_session(
        self, processor, create_employee, session_factory, recorded_events
    ):
        employee_ids = [create_employee() for _ in range(5)]

        with session_factory() as session:
            for employee_id in employee_ids:
                processor.process_salary(
                    employee_id, 3, 2024, payment_date=PAY_DATE, session=session
                )
                session.commit()

            assert len(session.dispatch.after_commit) == 1
            assert len(session.dispatch.after_transaction_end) == 1

        assert [name for name, _ in recorded_events] == [SALARY_PROCESSED] * 5


class TestCalculateBreakdown:
    def test_dry_run_persists_nothing(self, processor, create_employee, session_factory):
        employee_id = create_employee()

        breakdown = processor.calculate_breakdown(employee_id, 3, 2024)

        assert breakdown.net_salary == FULL_MONTH_NET
        assert _count(session_factory, PayrollRecord) == 0
        assert _count(session_factory, LedgerTransaction) == 0

    def test_dry_run_checks_eligibility(self, processor, create_employee):
        employee_id = create_employee(status="terminated")

        with pytest.raises(NotEligibleError):
            processor.calculate_breakdown(employee_id, 3, 2024)


class TestNextPaymentStats:
    def test_next_payment_clamps_month_end(self):
        stats = next_payment_stats(
            PayrollStats(), Decimal("1000"), date(2024, 1, 31)
        )

        assert stats.next_payment_date == date(2024, 2, 29)
        assert stats.average_monthly == Decimal("1000")


@pytest.mark.postgres
class TestLookupFailureOnPostgres:
    """A failed SELECT aborts a PostgreSQL transaction unless it ran in a savepoint."""

    def test_broken_attendance_query_is_soft(self, postgres_url, config, clock, actor_id):
        engine = create_engine_from_url(postgres_url)
        create_tables(engine)
        try:
            session_factory = create_session_factory(engine)
            employee = Employee(
                organization_id=uuid4(),
                employee_code="PG-ATT-1",
                name="Attendance Feed",
                status="active",
                hire_date=date(2020, 1, 1),
                base_amount=Decimal("100000"),
                currency="BDT",
                created_by_id=actor_id,
            )
            with session_factory() as session:
                session.add(employee)
                session.commit()

            processor = PayrollProcessor(
                session_factory,
                config,
                SqlEmployeeDirectory(),
                SqlLedgerWriter(),
                attendance=BrokenQueryAttendanceSource(),
                clock=clock,
            )

            result = processor.process_salary(employee.id, 3, 2024, payment_date=PAY_DATE)

            assert result.payroll_record.status == PayrollStatus.PAID
            assert result.breakdown.net_salary == FULL_MONTH_NET
        finally:
            drop_tables(engine)
            engine.dispose()
