"""
Collaborator interfaces consumed by the payroll processor.

Responsibility:
    Declares the narrow, explicit contracts through which payroll reaches
    systems it does not own: the employee directory, attendance, holidays,
    the financial ledger, and event subscribers.  Each collaborator is
    resolved once, when a PayrollProcessor is constructed; nothing probes an
    object for optional methods at call time.

Architecture position:
    Services -- contracts only.  Default SQLAlchemy implementations live in
    ``payroll_services.repositories``.

Contract shared by every session-taking method:
    The caller owns the session and its transaction.  Implementations may
    ``flush()`` but MUST NOT ``commit()`` or ``rollback()``; the payroll
    processor decides when the unit of work ends.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.orm import Session

from payroll_kernel.domain.dtos import (
    AttendanceFact,
    EmployeeSnapshot,
    LedgerTransactionRequest,
    PayrollStats,
)

EventHandler = Callable[[str, dict[str, Any]], None]


@runtime_checkable
class EmployeeDirectory(Protocol):
    """Read employees and write back payment statistics."""

    def get_employee(self, session: Session, employee_id: UUID) -> EmployeeSnapshot | None:
        """Return the employee, or None when the id is unknown."""
        ...

    def list_payable_employees(
        self,
        session: Session,
        organization_id: UUID,
        employee_ids: Sequence[UUID] | None = None,
    ) -> list[UUID]:
        """
        Ids to include in a bulk run.

        Without ``employee_ids``: every employee of the organization in a
        payable status.  With ``employee_ids``: those of the ids that belong to
        the organization, in the given order, whatever their status
        (eligibility is checked per employee by the processor).  Unknown ids
        and employees of other organizations are left out.
        """
        ...

    def record_payment(
        self,
        session: Session,
        employee_id: UUID,
        stats: PayrollStats,
    ) -> None:
        """Persist updated statistics inside the caller's transaction."""
        ...


@runtime_checkable
class AttendanceSource(Protocol):
    """Attended vs. expected working days for one employee and month."""

    def get_attendance(
        self,
        session: Session,
        organization_id: UUID,
        employee_id: UUID,
        year: int,
        month: int,
        expected_days: int,
    ) -> AttendanceFact | None:
        """None when no attendance was tracked for the period."""
        ...


@runtime_checkable
class HolidayCalendar(Protocol):
    """Non-working dates for an organization."""

    def get_holidays(
        self,
        session: Session,
        organization_id: UUID,
        start: date,
        end: date,
    ) -> list[date]:
        """Holidays within [start, end], ascending."""
        ...


@runtime_checkable
class LedgerWriter(Protocol):
    """Records the salary expense transaction."""

    def create_transaction(
        self,
        session: Session,
        request: LedgerTransactionRequest,
    ) -> UUID:
        """Insert the transaction and return its id (flushed, not committed)."""
        ...


@runtime_checkable
class PayrollEventBus(Protocol):
    """
    Fire-and-forget notifications.

    ``emit`` never raises: a failing handler is logged and the remaining
    handlers still run.
    """

    def subscribe(self, event: str, handler: EventHandler) -> None:
        ...

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        ...
