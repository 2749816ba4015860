"""
Pytest fixtures for the payroll test suite.

Provides:
- A file-backed SQLite database per test (schema created from the models)
- A deterministic clock and the bundled configuration
- A fully wired PayrollProcessor with the default SQL collaborators
- Employee / holiday / attendance factories

Environment Variables:
- PAYROLL_TEST_DATABASE_URL: PostgreSQL URL for tests marked ``postgres``.
  Those tests are skipped when it is not set.
"""

import json
import logging
import os
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import UUID, uuid4

import pytest

from payroll_config import get_active_config
from payroll_kernel.db.engine import (
    create_engine_from_url,
    create_session_factory,
    create_tables,
    drop_tables,
)
from payroll_kernel.domain.clock import DeterministicClock
from payroll_kernel.logging_config import LogContext, StructuredFormatter
from payroll_kernel.models.employee import (
    Employee,
    EmployeeAllowance,
    EmployeeDeduction,
)
from payroll_kernel.models.work_calendar import AttendanceRecord, Holiday
from payroll_services.events import ALL_EVENTS, InMemoryEventBus
from payroll_services.payroll_processor import PayrollProcessor
from payroll_services.repositories import (
    SqlAttendanceSource,
    SqlEmployeeDirectory,
    SqlHolidayCalendar,
    SqlLedgerWriter,
)

# Test actor ID for all test operations
TEST_ACTOR_ID = UUID("00000000-0000-0000-0000-0000000a11ce")

POSTGRES_URL_ENV = "PAYROLL_TEST_DATABASE_URL"


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "postgres: needs PostgreSQL via PAYROLL_TEST_DATABASE_URL"
    )
    config.addinivalue_line(
        "markers", "slow_locks: exercises real row/index locking between connections"
    )


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture payroll_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, processor):
            processor.process_salary(...)
            logs = captured_logs()
            assert any(r["message"] == "salary_processed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("payroll_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine(tmp_path):
    engine = create_engine_from_url(f"sqlite:///{tmp_path / 'payroll.db'}")
    create_tables(engine)
    yield engine
    drop_tables(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock.on_date(date(2024, 3, 31))


@pytest.fixture
def config():
    return get_active_config()


@pytest.fixture
def event_bus():
    return InMemoryEventBus()


@pytest.fixture
def recorded_events(event_bus):
    """Every event emitted on ``event_bus`` as (name, payload) pairs."""
    events: list[tuple[str, dict]] = []
    event_bus.subscribe(ALL_EVENTS, lambda name, payload: events.append((name, payload)))
    return events


@pytest.fixture
def ledger():
    return SqlLedgerWriter()


@pytest.fixture
def processor(session_factory, config, ledger, event_bus, clock):
    return PayrollProcessor(
        session_factory,
        config,
        SqlEmployeeDirectory(),
        ledger,
        attendance=SqlAttendanceSource(),
        holidays=SqlHolidayCalendar(),
        events=event_bus,
        clock=clock,
    )


@pytest.fixture
def organization_id() -> UUID:
    return uuid4()


@pytest.fixture
def actor_id() -> UUID:
    return TEST_ACTOR_ID


# =============================================================================
# Data factories
# =============================================================================


@pytest.fixture
def create_employee(session_factory, organization_id):
    """
    Factory that commits an employee and returns its id.

    ``allowances`` / ``deductions`` are lists of keyword dicts for
    EmployeeAllowance / EmployeeDeduction.
    """
    counter = {"n": 0}

    def _create(
        base_amount: Decimal | str = Decimal("100000"),
        hire_date: date = date(2020, 1, 1),
        termination_date: date | None = None,
        status: str = "active",
        currency: str = "BDT",
        allowances: list[dict] | None = None,
        deductions: list[dict] | None = None,
        organization: UUID | None = None,
        name: str | None = None,
    ) -> UUID:
        counter["n"] += 1
        code = f"EMP-{counter['n']:04d}"
        employee = Employee(
            organization_id=organization or organization_id,
            employee_code=code,
            name=name or f"Employee {counter['n']}",
            status=status,
            hire_date=hire_date,
            termination_date=termination_date,
            base_amount=Decimal(base_amount),
            currency=currency,
            created_by_id=TEST_ACTOR_ID,
        )
        for row in allowances or []:
            employee.allowances.append(EmployeeAllowance(**row))
        for row in deductions or []:
            employee.deductions.append(EmployeeDeduction(**row))

        with session_factory() as session:
            session.add(employee)
            session.commit()
            return employee.id

    return _create


@pytest.fixture
def add_holiday(session_factory):
    def _add(holiday_date: date, organization: UUID | None = None, name: str = "Holiday"):
        with session_factory() as session:
            session.add(
                Holiday(organization_id=organization, holiday_date=holiday_date, name=name)
            )
            session.commit()

    return _add


@pytest.fixture
def mark_attendance(session_factory, organization_id):
    def _mark(employee_id: UUID, days: list[date], kind: str = "full_day"):
        with session_factory() as session:
            for day in days:
                session.add(
                    AttendanceRecord(
                        organization_id=organization_id,
                        employee_id=employee_id,
                        work_date=day,
                        kind=kind,
                    )
                )
            session.commit()

    return _mark


@pytest.fixture
def postgres_url():
    url = os.environ.get(POSTGRES_URL_ENV)
    if not url:
        pytest.skip(f"{POSTGRES_URL_ENV} not set")
    return url
