"""
Payroll export -- hand paid records to an outside system and flag them.

Exporting is the one mutation allowed on a paid record: ``exported`` and
``exported_at`` are set, nothing else changes.  Records are selected by pay
date, inclusive on both ends.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.dtos import PayrollStatus
from payroll_kernel.exceptions import ValidationError
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_kernel.models.payroll_record import PayrollRecord
from payroll_services.events import PAYROLL_EXPORTED
from payroll_services.interfaces import PayrollEventBus
from payroll_services.selectors import PayrollRecordInfo, record_to_info

logger = get_logger("services.export")


class PayrollExporter:
    """Select paid records by pay date and mark them exported."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        events: PayrollEventBus | None = None,
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._events = events
        self._clock = clock or SystemClock()

    def export(
        self,
        organization_id: UUID,
        start_date: date,
        end_date: date,
        processed_by: UUID | None = None,
    ) -> list[PayrollRecordInfo]:
        """
        Export the organization's paid records with pay_date in range.

        Returns the records as they were exported, newest period first.
        Records exported earlier are included again and get a fresh
        exported_at.

        Raises:
            ValidationError: If start_date is after end_date.
        """
        if start_date > end_date:
            raise ValidationError(
                f"Export range is reversed: {start_date} > {end_date}",
                field="start_date",
            )

        with LogContext.bind(organization_id=organization_id, actor_id=processed_by):
            session = self._session_factory()
            try:
                stmt = (
                    select(PayrollRecord)
                    .where(PayrollRecord.organization_id == organization_id)
                    .where(PayrollRecord.status == PayrollStatus.PAID.value)
                    .where(PayrollRecord.pay_date >= start_date)
                    .where(PayrollRecord.pay_date <= end_date)
                    .order_by(
                        PayrollRecord.period_year.desc(),
                        PayrollRecord.period_month.desc(),
                    )
                )
                records = list(session.execute(stmt).scalars().unique().all())

                now = self._clock.now()
                for record in records:
                    record.exported = True
                    record.exported_at = now
                    if processed_by is not None:
                        record.touch(processed_by)
                session.flush()
                exported = [record_to_info(r) for r in records]
                session.commit()
            except Exception:
                session.rollback()
                logger.warning("payroll_export_rolled_back", exc_info=True)
                raise
            finally:
                session.close()

            logger.info(
                "payroll_exported",
                extra={
                    "start_date": start_date,
                    "end_date": end_date,
                    "count": len(exported),
                },
            )

        if self._events is not None:
            self._events.emit(
                PAYROLL_EXPORTED,
                {
                    "organization_id": organization_id,
                    "start_date": start_date,
                    "end_date": end_date,
                    "count": len(exported),
                    "record_ids": [info.id for info in exported],
                },
            )
        return exported
