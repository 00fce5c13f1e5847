# booking_engine/services/availability/slot_generator.py
"""
Slot Generation

Produces candidate appointment slots for a date range from the business's
effective hours. Existing appointments are not consulted here: this answers
"what hours are open", the booking conflict service answers "what is taken".
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from booking_engine.core.exceptions import ValidationError
from booking_engine.services.availability.exception_calendar import (
    ExceptionCalendar,
    effective_hours_for,
)
from booking_engine.services.availability.weekly_schedule import TimeWindow, WeeklySchedule
from booking_engine.utils.time_utils import (
    add_minutes,
    date_range,
    day_of_week,
    format_time,
    parse_date,
    parse_time,
)


@dataclass(frozen=True, order=True)
class AvailabilitySlot:
    """A bookable window; ``end_time - start_time`` is exactly one service duration"""
    date: date
    start_time: int
    end_time: int

    @property
    def start(self) -> str:
        return format_time(self.start_time)

    @property
    def end(self) -> str:
        return format_time(self.end_time)

    def to_dict(self) -> Dict[str, str]:
        return {
            "date": self.date.isoformat(),
            "start_time": self.start,
            "end_time": self.end,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AvailabilitySlot":
        return cls(
            date=parse_date(data["date"]),
            start_time=parse_time(data["start_time"], field="start_time"),
            end_time=parse_time(data["end_time"], field="end_time"),
        )


@dataclass(frozen=True)
class ServiceTiming:
    """The scheduling-relevant part of a service"""
    duration: int
    buffer_time: int = 0
    service_id: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.duration, int) or self.duration <= 0:
            raise ValidationError("Service duration must be a positive number of minutes", field="duration")
        if not isinstance(self.buffer_time, int) or self.buffer_time < 0:
            raise ValidationError("Buffer time cannot be negative", field="buffer_time")


@dataclass(frozen=True)
class BusinessSchedule:
    """Weekly hours plus date exceptions for one business"""
    weekly: WeeklySchedule
    exceptions: ExceptionCalendar = field(default_factory=ExceptionCalendar)
    business_id: Optional[str] = None

    def effective_hours_for(self, on: date) -> Optional[TimeWindow]:
        return effective_hours_for(self.weekly, self.exceptions, on)


def _clamp_window(
        hours: TimeWindow,
        window_start: Optional[int],
        window_end: Optional[int]
) -> Optional[TimeWindow]:
    start = max(hours.start, window_start) if window_start is not None else hours.start
    end = min(hours.end, window_end) if window_end is not None else hours.end
    if start >= end:
        return None
    return TimeWindow(start, end)


def generate_day_slots(
        on: date,
        hours: TimeWindow,
        slot_duration: int,
        buffer_time: int = 0
) -> List[AvailabilitySlot]:
    """Slots for a single open window, stepping by duration plus buffer"""
    slots = []
    step = slot_duration + buffer_time
    current = hours.start

    # The buffer after the slot must still fit before closing
    while current + slot_duration + buffer_time <= hours.end:
        slots.append(AvailabilitySlot(on, current, add_minutes(current, slot_duration)))
        current += step

    return slots


def generate_slots(
        schedule: BusinessSchedule,
        service: ServiceTiming,
        start_date,
        days: int,
        slot_duration: Optional[int] = None,
        buffer_time: Optional[int] = None,
        window_start: Optional[str] = None,
        window_end: Optional[str] = None
) -> List[AvailabilitySlot]:
    """
    Candidate slots for ``[start_date, start_date + days)``.

    Args:
        schedule: weekly hours and exceptions of the business
        service: default slot duration and buffer
        start_date: first date, ``date`` or ``YYYY-MM-DD``
        days: number of dates to cover; zero or less yields nothing
        slot_duration: overrides the service duration
        buffer_time: overrides the service buffer
        window_start: optional ``HH:MM`` lower bound applied to every date
        window_end: optional ``HH:MM`` upper bound applied to every date

    Returns:
        list[AvailabilitySlot] ordered by date then start time. Closed dates
        and dates shorter than one slot contribute nothing.
    """
    start = parse_date(start_date, field="start_date")
    duration = service.duration if slot_duration is None else slot_duration
    buffer = service.buffer_time if buffer_time is None else buffer_time

    if not isinstance(duration, int) or duration <= 0:
        raise ValidationError("Slot duration must be a positive number of minutes", field="slot_duration")
    if not isinstance(buffer, int) or buffer < 0:
        raise ValidationError("Buffer time cannot be negative", field="buffer_time")

    lower = parse_time(window_start, field="window_start") if window_start is not None else None
    upper = parse_time(window_end, field="window_end") if window_end is not None else None

    slots: List[AvailabilitySlot] = []
    for current_date in date_range(start, days):
        hours = schedule.effective_hours_for(current_date)
        if hours is None:
            continue

        hours = _clamp_window(hours, lower, upper)
        if hours is None:
            continue

        slots.extend(generate_day_slots(current_date, hours, duration, buffer))

    return slots


def group_slots_by_date(
        slots: List[AvailabilitySlot],
        start_date: date,
        days: int
) -> List[Dict[str, Any]]:
    """Per-date view of a slot sequence; every date in range appears, even empty ones"""
    by_date: Dict[date, List[AvailabilitySlot]] = {}
    for slot in slots:
        by_date.setdefault(slot.date, []).append(slot)

    return [
        {
            "date": current.isoformat(),
            "day_of_week": day_of_week(current),
            "slots": [slot.to_dict() for slot in by_date.get(current, [])],
        }
        for current in date_range(start_date, days)
    ]
