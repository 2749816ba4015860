"""ORM models for the payroll kernel."""

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
from payroll_kernel.models.payroll_record import PayrollRecord
from payroll_kernel.models.work_calendar import (
    AttendanceKind,
    AttendanceRecord,
    Holiday,
)

__all__ = [
    "AttendanceKind",
    "AttendanceRecord",
    "Employee",
    "EmployeeAllowance",
    "EmployeeDeduction",
    "Holiday",
    "LedgerTransaction",
    "PayrollRecord",
    "TransactionStatus",
    "TransactionType",
]
