"""
Module: payroll_kernel.db.base
Responsibility: Declarative bases shared by every payroll table.
Architecture position: Kernel > DB.  Imported by every model module; imports
    nothing from models/, services/ or the engines.

Invariants enforced:
    - Identifiers are uuid4 values persisted as 36-character strings, so the
      same schema works on PostgreSQL and SQLite.
    - Salary amounts are Numeric(18, 2).  Floats never reach a money column.
    - Rows that represent a payment (employees, payroll records, ledger
      transactions) carry created/updated timestamps and actors.

Audit relevance:
    ``created_by_id`` is NOT NULL on tracked tables.  Unattributed runs are
    recorded under SYSTEM_ACTOR_ID rather than left blank.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

# Whole-unit salaries with room for fractional ledger amounts.
MONEY = Numeric(18, 2, asdecimal=True)


class UUIDString(TypeDecorator):
    """Stores a UUID as its canonical string; loads it back as a UUID."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, PyUUID):
            return value
        return PyUUID(value)


class Base(DeclarativeBase):
    """
    Root of the payroll schema.

    Annotated columns pick their SQL type from ``type_annotation_map``:
    Decimal -> MONEY, datetime -> timezone-aware DateTime, UUID ->
    UUIDString, int -> BigInteger.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: MONEY,
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Abstract base adding who/when columns for payment-bearing rows."""

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    created_by_id: Mapped[PyUUID] = mapped_column(nullable=False)
    updated_by_id: Mapped[PyUUID | None] = mapped_column(nullable=True)

    def touch(self, actor_id: PyUUID) -> None:
        """Attribute the pending UPDATE to ``actor_id``."""
        self.updated_by_id = actor_id
