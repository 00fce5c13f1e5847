# booking_engine/services/availability/exception_calendar.py
"""
Date-keyed overrides of the weekly schedule.

An exception for a date fully decides that date: closed all day, or open for
its own hours. The weekly schedule is consulted only for dates without one.
"""
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from booking_engine.core.exceptions import ValidationError
from booking_engine.services.availability.weekly_schedule import (
    TimeWindow,
    WeeklySchedule,
    build_window,
)
from booking_engine.utils.time_utils import day_of_week, parse_date


@dataclass(frozen=True)
class ExceptionDate:
    """Closed-all-day (``is_available=False``) or special hours for one date"""
    date: date
    is_available: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None

    def __post_init__(self):
        # Accept "YYYY-MM-DD" at the boundary
        object.__setattr__(self, "date", parse_date(self.date, field="date"))
        if self.is_available:
            build_window(self.start_time, self.end_time, f"exception {self.date.isoformat()}")

    @property
    def window(self) -> Optional[TimeWindow]:
        if not self.is_available:
            return None
        return build_window(self.start_time, self.end_time, f"exception {self.date.isoformat()}")


class ExceptionCalendar:
    """At most one exception per date"""

    def __init__(self, exceptions: Iterable[ExceptionDate] = ()):
        by_date: Dict[date, ExceptionDate] = {}
        for exception in exceptions:
            if exception.date in by_date:
                raise ValidationError(
                    f"An exception already exists for {exception.date.isoformat()}",
                    field="date",
                )
            by_date[exception.date] = exception
        self._by_date = by_date

    def lookup(self, on: date) -> Optional[ExceptionDate]:
        return self._by_date.get(on)

    def __len__(self) -> int:
        return len(self._by_date)

    @property
    def exceptions(self) -> List[ExceptionDate]:
        return [self._by_date[key] for key in sorted(self._by_date)]

    def effective_hours_for(self, weekly: WeeklySchedule, on: date) -> Optional[TimeWindow]:
        return effective_hours_for(weekly, self, on)


def effective_hours_for(
        weekly: WeeklySchedule,
        exceptions: ExceptionCalendar,
        on: date
) -> Optional[TimeWindow]:
    """
    Hours actually in force on ``on``, or None when closed.

    An exception wins over the weekly schedule regardless of what the weekly
    schedule says for that weekday.
    """
    exception = exceptions.lookup(on)
    if exception is not None:
        return exception.window

    return weekly.hours_for(day_of_week(on))
