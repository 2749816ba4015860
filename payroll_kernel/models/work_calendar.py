"""
Module: payroll_kernel.models.work_calendar
Responsibility: ORM persistence for organization holidays and daily
    attendance marks, read by the default HolidayCalendar and
    AttendanceSource implementations.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One holiday row per (organization, date) (uq_holiday_org_date).
      organization_id NULL marks a holiday that applies to every organization.
    - One attendance mark per (employee, work_date) (uq_attendance_employee_day).
"""

from datetime import date
from enum import Enum
from uuid import UUID

from sqlalchemy import Date, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import Base, UUIDString


class AttendanceKind(str, Enum):
    """How a single day counts toward attended days."""

    FULL_DAY = "full_day"  # counts 1
    HALF_DAY = "half_day"  # counts 0.5
    PAID_LEAVE = "paid_leave"  # counts 1
    ABSENT = "absent"  # counts 0


class Holiday(Base):
    __tablename__ = "holidays"

    __table_args__ = (
        UniqueConstraint(
            "organization_id", "holiday_date", name="uq_holiday_org_date"
        ),
        Index("idx_holiday_date", "holiday_date"),
    )

    organization_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    holiday_date: Mapped[date] = mapped_column(Date, nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "work_date", name="uq_attendance_employee_day"
        ),
        Index("idx_attendance_org_employee", "organization_id", "employee_id"),
    )

    organization_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    employee_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    work_date: Mapped[date] = mapped_column(Date, nullable=False)

    kind: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AttendanceKind.FULL_DAY.value,
    )
