"""
Injectable time source for payroll services.

Services stamp ``processed_at``, ``paid_at`` and ``exported_at`` and pick
the default pay date from a Clock handed to their constructor.  Engines
never see a clock at all: every date they use is an argument.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone


class Clock(ABC):
    """Source of the current UTC time."""

    @abstractmethod
    def now(self) -> datetime:
        """Timezone-aware current time."""

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Defaults to noon UTC on 2024-01-01.  ``on_date`` builds one fixed at
    noon on a pay date, which is what most payroll scenarios need.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    @classmethod
    def on_date(cls, day: date) -> "DeterministicClock":
        return cls(datetime.combine(day, time(12, 0), tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._current

    def set_time(self, moment: datetime) -> None:
        self._current = moment

    def advance(self, delta: timedelta = timedelta(seconds=1)) -> datetime:
        """Move forward by ``delta`` and return the new time."""
        self._current += delta
        return self._current
