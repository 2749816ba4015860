"""
Module: payroll_kernel.models.ledger_transaction
Responsibility: ORM persistence for the financial transaction that records
    one salary payment as an organization expense.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Salary transactions are written with type=expense, category=salary,
      status=completed, reference_model=Employee.
    - amount equals the net salary of the linked payroll record.

Audit relevance:
    ``details`` (column ``metadata``) holds the breakdown summary (base,
    allowances, deductions, tax, gross, net) so the ledger row can be read
    without joining the payroll record.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Date, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TrackedBase, UUIDString


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class LedgerTransaction(TrackedBase):
    """
    Financial transaction row.

    Non-goals:
        - Double-entry journal lines; this is a single-sided expense record.
        - Currency conversion.
    """

    __tablename__ = "ledger_transactions"

    __table_args__ = (
        Index("idx_ledger_txn_org_date", "organization_id", "transaction_date"),
        Index("idx_ledger_txn_reference", "reference_model", "reference_id"),
    )

    organization_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TransactionType.EXPENSE.value,
    )

    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    method: Mapped[str] = mapped_column(String(20), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TransactionStatus.COMPLETED.value,
    )

    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)

    reference_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    reference_model: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    handled_by: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # "metadata" is reserved on declarative classes
    details: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )

    def __repr__(self) -> str:
        return (
            f"<LedgerTransaction {self.type}/{self.category} "
            f"{self.amount} {self.currency}>"
        )
