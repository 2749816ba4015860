"""
BulkPayrollProcessor -- pay every eligible employee of an organization.

Contract:
    Runs PayrollProcessor.process_salary once per employee, each in its own
    unit of work.  One employee's failure never affects another: the error
    is recorded and the run moves on.

Architecture: payroll_batch.  Imports from payroll_services and the kernel.

Invariants enforced:
    - Per-employee isolation: every employee commits or rolls back alone.
    - Cancellation is only observed between employees; a unit that has
      started always finishes.
    - ``total == len(successful) + len(failed) + skipped``.
    - With ``max_workers > 1`` units run on a bounded thread pool; a single
      unit is never split across threads.

Audit relevance:
    Every run carries a ``batch_id`` in the log context and in the
    ``payroll.completed`` event, so the salary.processed/salary.failed
    events of one run can be tied together.
"""

from __future__ import annotations

import contextvars
import threading
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from payroll_kernel.domain.dtos import PayPeriod
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_services.events import PAYROLL_COMPLETED
from payroll_services.interfaces import PayrollEventBus
from payroll_services.payroll_processor import (
    PayrollProcessor,
    ProcessSalaryResult,
    error_code,
)

logger = get_logger("batch.bulk")


class CancellationToken:
    """Cooperative cancellation flag shared with a running bulk job."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class BulkFailure:
    """One employee that could not be paid."""

    employee_id: UUID
    error_code: str
    error: str


@dataclass(frozen=True)
class BulkPayrollResult:
    """Immutable outcome of a bulk run."""

    batch_id: UUID
    total: int
    successful: tuple[ProcessSalaryResult, ...] = ()
    failed: tuple[BulkFailure, ...] = ()
    skipped: int = 0
    cancelled: bool = False
    duration_ms: int = 0

    @property
    def total_amount(self) -> Decimal:
        """Sum of net salary over the successful payments."""
        return sum(
            (r.breakdown.net_salary for r in self.successful),
            Decimal("0"),
        )

    def summary(self) -> dict[str, object]:
        return {
            "total": self.total,
            "successful": len(self.successful),
            "failed": len(self.failed),
            "skipped": self.skipped,
            "total_amount": self.total_amount,
            "cancelled": self.cancelled,
        }


# Outcome of a single employee: a payment, a failure, or None when the run
# was cancelled before the employee started.
_Outcome = ProcessSalaryResult | BulkFailure | None


class BulkPayrollProcessor:
    """Process payroll for many employees with partial-failure tolerance.

    Non-goals:
        - No retries.  A failed employee is reported, not re-run.
        - Does NOT hold a session across employees.
    """

    def __init__(
        self,
        processor: PayrollProcessor,
        events: PayrollEventBus | None = None,
    ):
        self._processor = processor
        self._events = events if events is not None else processor.events

    def process(
        self,
        organization_id: UUID,
        month: int,
        year: int,
        *,
        employee_ids: Sequence[UUID] | None = None,
        payment_date: date | None = None,
        payment_method: str | None = None,
        processed_by: UUID | None = None,
        max_workers: int = 1,
        cancellation: CancellationToken | None = None,
    ) -> BulkPayrollResult:
        """
        Pay the organization's employees for month/year.

        Args:
            employee_ids: Explicit employees to pay, in order.  Ids outside
                the organization are left out and logged.  When omitted
                every employee in a payable status is paid.
            max_workers: Size of the thread pool; 1 runs sequentially.
            cancellation: Token checked before each employee starts.

        Raises:
            ValidationError: If month is outside 1..12.
            ValueError: If max_workers is below 1.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        period = PayPeriod.for_month(month, year, payment_date)

        batch_id = uuid4()
        start_time = time.monotonic()

        with LogContext.bind(
            organization_id=organization_id,
            actor_id=processed_by,
            batch_id=batch_id,
        ):
            ids = self._list_employees(organization_id, employee_ids)
            logger.info(
                "bulk_payroll_started",
                extra={
                    "period": period.label,
                    "employee_count": len(ids),
                    "max_workers": max_workers,
                },
            )

            def run(employee_id: UUID) -> _Outcome:
                if cancellation is not None and cancellation.cancelled:
                    return None
                return self._process_one(
                    employee_id,
                    month,
                    year,
                    payment_date,
                    payment_method,
                    processed_by,
                )

            if max_workers == 1:
                outcomes: list[_Outcome] = []
                for employee_id in ids:
                    outcome = run(employee_id)
                    if outcome is None:
                        break
                    outcomes.append(outcome)
            else:
                with ThreadPoolExecutor(
                    max_workers=max_workers,
                    thread_name_prefix="payroll-bulk",
                ) as pool:
                    # Worker threads do not inherit context variables.
                    futures = [
                        pool.submit(contextvars.copy_context().run, run, employee_id)
                        for employee_id in ids
                    ]
                    outcomes = [f.result() for f in futures]

            successful = tuple(o for o in outcomes if isinstance(o, ProcessSalaryResult))
            failed = tuple(o for o in outcomes if isinstance(o, BulkFailure))
            skipped = len(ids) - len(successful) - len(failed)

            result = BulkPayrollResult(
                batch_id=batch_id,
                total=len(ids),
                successful=successful,
                failed=failed,
                skipped=skipped,
                cancelled=cancellation is not None and cancellation.cancelled,
                duration_ms=int((time.monotonic() - start_time) * 1000),
            )

            logger.info(
                "bulk_payroll_completed",
                extra={
                    "period": period.label,
                    "successful": len(successful),
                    "failed": len(failed),
                    "skipped": skipped,
                    "cancelled": result.cancelled,
                    "total_amount": result.total_amount,
                    "duration_ms": result.duration_ms,
                },
            )

        if self._events is not None:
            self._events.emit(
                PAYROLL_COMPLETED,
                {
                    "organization_id": organization_id,
                    "batch_id": batch_id,
                    "period": {"month": period.month, "year": period.year},
                    "summary": result.summary(),
                },
            )
        return result

    def _list_employees(
        self,
        organization_id: UUID,
        employee_ids: Sequence[UUID] | None,
    ) -> list[UUID]:
        session = self._processor.session_factory()
        try:
            ids = self._processor.employees.list_payable_employees(
                session, organization_id, employee_ids
            )
        finally:
            session.close()

        if employee_ids is not None:
            listed = set(ids)
            excluded = [i for i in employee_ids if i not in listed]
            if excluded:
                logger.warning(
                    "bulk_employees_outside_organization",
                    extra={
                        "excluded_count": len(excluded),
                        "excluded_employee_ids": [str(i) for i in excluded],
                    },
                )
        return ids

    def _process_one(
        self,
        employee_id: UUID,
        month: int,
        year: int,
        payment_date: date | None,
        payment_method: str | None,
        processed_by: UUID | None,
    ) -> ProcessSalaryResult | BulkFailure:
        try:
            return self._processor.process_salary(
                employee_id,
                month,
                year,
                payment_date=payment_date,
                payment_method=payment_method,
                processed_by=processed_by,
            )
        except Exception as exc:
            logger.warning(
                "bulk_employee_failed",
                extra={
                    "employee_id": str(employee_id),
                    "error_code": error_code(exc),
                    "error": str(exc),
                },
            )
            return BulkFailure(
                employee_id=employee_id,
                error_code=error_code(exc),
                error=str(exc),
            )
