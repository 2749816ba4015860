"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Payroll callers must decide what to do with a failure without reading its
message: a duplicate run means "fetch the existing record", an ineligible
employee means "fix the employee", a storage error means "the host may
retry".  Every exception therefore has:
  1. A TYPED class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (employee id, period, existing record id)

Example:
    try:
        processor.process_salary(employee_id, month=3, year=2024)
    except DuplicatePayrollError as e:
        record = selector.get(e.existing_record_id)
    except NotEligibleError as e:
        log.warning("skipped", extra={"employee_id": e.employee_id})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollKernelError (base)
    |
    +-- EmployeeError
    |   +-- EmployeeNotFoundError
    |   +-- NotEligibleError
    |
    +-- PayrollError
    |   +-- DuplicatePayrollError
    |
    +-- ValidationError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                  | When Raised                        | Retry?
----------------|-----------------------|------------------------------------|-------
Employee        | EMPLOYEE_NOT_FOUND    | Employee id does not exist         | no
                | NOT_ELIGIBLE          | Status or base compensation check  | no
----------------|-----------------------|------------------------------------|-------
Payroll         | DUPLICATE_PAYROLL     | Period already processing/paid     | no
----------------|-----------------------|------------------------------------|-------
Validation      | VALIDATION_ERROR      | Missing linkage data, bad period   | no
----------------|-----------------------|------------------------------------|-------
Configuration   | INVALID_CONFIGURATION | Bad tax table / config value       | no

Storage errors (``sqlalchemy.exc.OperationalError`` and friends) are NOT
wrapped: they propagate unmodified and retry policy belongs to the host.
"""


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


# Employee-related exceptions


class EmployeeError(PayrollKernelError):
    """Base exception for employee-related errors."""

    code: str = "EMPLOYEE_ERROR"


class EmployeeNotFoundError(EmployeeError):
    """Employee with given ID was not found."""

    code: str = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Employee not found: {employee_id}")


class NotEligibleError(EmployeeError):
    """Employee cannot receive salary (status or base compensation)."""

    code: str = "NOT_ELIGIBLE"

    def __init__(self, employee_id: str, reason: str):
        self.employee_id = employee_id
        self.reason = reason
        super().__init__(
            f"Employee {employee_id} is not eligible to receive salary: {reason}"
        )


# Payroll-related exceptions


class PayrollError(PayrollKernelError):
    """Base exception for payroll record errors."""

    code: str = "PAYROLL_ERROR"


class DuplicatePayrollError(PayrollError):
    """
    A processing or paid record already exists for the employee/period.

    Not retryable: the caller should fetch ``existing_record_id`` instead.
    ``existing_record_id`` is None when the duplicate was detected by the
    storage-level unique index rather than the application check.
    """

    code: str = "DUPLICATE_PAYROLL"

    def __init__(
        self,
        employee_id: str,
        month: int,
        year: int,
        existing_record_id: str | None = None,
    ):
        self.employee_id = employee_id
        self.month = month
        self.year = year
        self.existing_record_id = existing_record_id
        super().__init__(
            f"Payroll already processed for employee {employee_id} "
            f"in {month:02d}/{year}"
        )


# Validation


class ValidationError(PayrollKernelError):
    """Required input or linkage data is missing or malformed."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


# Configuration


class ConfigurationError(PayrollKernelError):
    """Payroll configuration is inconsistent (e.g. overlapping tax brackets)."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, message: str, key: str | None = None):
        self.key = key
        super().__init__(message)
