"""payroll_batch -- bulk payroll runs over many employees."""

from payroll_batch.bulk import (
    BulkFailure,
    BulkPayrollProcessor,
    BulkPayrollResult,
    CancellationToken,
)

__all__ = [
    "BulkFailure",
    "BulkPayrollProcessor",
    "BulkPayrollResult",
    "CancellationToken",
]
