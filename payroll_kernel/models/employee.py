"""
Module: payroll_kernel.models.employee
Responsibility: ORM persistence for the employee data the default SQL
    collaborators serve to the payroll processor: employment status and
    dates, base compensation, effective-dated allowances and deductions,
    and running payment statistics.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, engines or outer layers.

Invariants enforced:
    - employee_code is unique within an organization (uq_employee_org_code).
    - effective_from/effective_to NULL means open-ended on that side.

Failure modes:
    - IntegrityError on duplicate (organization_id, employee_code).

Audit relevance:
    The stats columns (total_paid, payments_this_year, ...) are only ever
    written inside the same unit of work that commits a paid payroll record.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_kernel.db.base import Base, TrackedBase, UUIDString


class Employee(TrackedBase):
    """
    Employee as seen by payroll.

    Contract:
        status is one of EmployeeStatus values.  base_amount is the monthly
        base before proration.

    Non-goals:
        - Lifecycle administration (hire, transfer, terminate workflows).
        - Leave balances and leave requests.
    """

    __tablename__ = "employees"

    __table_args__ = (
        UniqueConstraint(
            "organization_id", "employee_code", name="uq_employee_org_code"
        ),
        Index("idx_employee_org_status", "organization_id", "status"),
    )

    organization_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    employee_code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="active",
    )

    hire_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    termination_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    # Compensation
    base_amount: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="BDT",
    )

    frequency: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="monthly",
    )

    # Payroll statistics
    total_paid: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    payments_this_year: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    average_monthly: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    last_payment_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    next_payment_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )

    allowances: Mapped[list["EmployeeAllowance"]] = relationship(
        back_populates="employee",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="EmployeeAllowance.allowance_type",
    )

    deductions: Mapped[list["EmployeeDeduction"]] = relationship(
        back_populates="employee",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="EmployeeDeduction.deduction_type",
    )

    def __repr__(self) -> str:
        return f"<Employee {self.employee_code}: {self.name} ({self.status})>"


class EmployeeAllowance(Base):
    """Effective-dated allowance attached to an employee."""

    __tablename__ = "employee_allowances"

    __table_args__ = (Index("idx_allowance_employee", "employee_id"),)

    employee_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )

    allowance_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    taxable: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    recurring: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    effective_from: Mapped[date | None] = mapped_column(Date, nullable=True)

    effective_to: Mapped[date | None] = mapped_column(Date, nullable=True)

    employee: Mapped[Employee] = relationship(back_populates="allowances")


class EmployeeDeduction(Base):
    """Effective-dated deduction attached to an employee."""

    __tablename__ = "employee_deductions"

    __table_args__ = (Index("idx_deduction_employee", "employee_id"),)

    employee_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )

    deduction_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    auto: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    recurring: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    effective_from: Mapped[date | None] = mapped_column(Date, nullable=True)

    effective_to: Mapped[date | None] = mapped_column(Date, nullable=True)

    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    employee: Mapped[Employee] = relationship(back_populates="deductions")
