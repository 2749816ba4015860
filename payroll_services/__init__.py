"""
payroll_services -- the transactional layer.

Owns units of work: the PayrollProcessor commits salary payments, the
PayrollExporter flags exported records, and PayrollRecordSelector serves
reads.  Collaborator contracts live in ``interfaces`` with SQLAlchemy
implementations in ``repositories``.
"""

from payroll_services.events import (
    PAYROLL_COMPLETED,
    PAYROLL_EXPORTED,
    SALARY_FAILED,
    SALARY_PROCESSED,
    InMemoryEventBus,
)
from payroll_services.export import PayrollExporter
from payroll_services.interfaces import (
    AttendanceSource,
    EmployeeDirectory,
    HolidayCalendar,
    LedgerWriter,
    PayrollEventBus,
)
from payroll_services.payroll_processor import PayrollProcessor, ProcessSalaryResult
from payroll_services.repositories import (
    SqlAttendanceSource,
    SqlEmployeeDirectory,
    SqlHolidayCalendar,
    SqlLedgerWriter,
)
from payroll_services.selectors import (
    PayrollRecordInfo,
    PayrollRecordSelector,
    PayrollSummary,
)

__all__ = [
    "AttendanceSource",
    "EmployeeDirectory",
    "HolidayCalendar",
    "InMemoryEventBus",
    "LedgerWriter",
    "PAYROLL_COMPLETED",
    "PAYROLL_EXPORTED",
    "PayrollEventBus",
    "PayrollExporter",
    "PayrollProcessor",
    "PayrollRecordInfo",
    "PayrollRecordSelector",
    "PayrollSummary",
    "ProcessSalaryResult",
    "SALARY_FAILED",
    "SALARY_PROCESSED",
    "SqlAttendanceSource",
    "SqlEmployeeDirectory",
    "SqlHolidayCalendar",
    "SqlLedgerWriter",
]
