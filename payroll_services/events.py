"""
In-process payroll event bus.

Events are notifications, not part of the unit of work: they are emitted
only after the owning transaction has committed (or rolled back, for
``salary.failed``), and a failing subscriber never changes the outcome of
the operation that emitted the event.

Event names and payloads:

    salary.processed   {employee_id, payroll_record_id, transaction_id,
                        organization_id, period{month, year}, gross_salary,
                        net_salary, currency}
    salary.failed      {employee_id, organization_id, period{month, year},
                        error_code, error}
    payroll.completed  {organization_id, batch_id, period{month, year},
                        summary{total, successful, failed, skipped,
                        total_amount}}
    payroll.exported   {organization_id, start_date, end_date, count,
                        record_ids}
"""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import Any

from payroll_kernel.logging_config import get_logger
from payroll_services.interfaces import EventHandler

logger = get_logger("services.events")

SALARY_PROCESSED = "salary.processed"
SALARY_FAILED = "salary.failed"
PAYROLL_COMPLETED = "payroll.completed"
PAYROLL_EXPORTED = "payroll.exported"

# Subscribing to this receives every event.
ALL_EVENTS = "*"


class InMemoryEventBus:
    """
    Synchronous, thread-safe subscriber registry.

    Guarantees:
        - Handlers run in subscription order, wildcard handlers last.
        - ``emit`` never raises.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event: str, handler: EventHandler) -> None:
        with self._lock:
            self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: EventHandler) -> None:
        with self._lock:
            if handler in self._handlers.get(event, []):
                self._handlers[event].remove(handler)

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        with self._lock:
            handlers = list(self._handlers.get(event, [])) + list(
                self._handlers.get(ALL_EVENTS, [])
            )

        logger.debug(
            "payroll_event_emitted",
            extra={"event": event, "handler_count": len(handlers)},
        )
        for handler in handlers:
            try:
                handler(event, payload)
            except Exception:
                logger.warning(
                    "payroll_event_handler_failed",
                    extra={
                        "event": event,
                        "handler": getattr(handler, "__qualname__", repr(handler)),
                    },
                    exc_info=True,
                )
