# booking_engine/services/availability/weekly_schedule.py
"""Recurring per-weekday opening hours"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, NamedTuple, Optional

from booking_engine.core.exceptions import ValidationError
from booking_engine.utils.time_utils import format_time, is_before, parse_time

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class TimeWindow(NamedTuple):
    """Open hours for one date, in minutes since midnight, half-open"""
    start: int
    end: int

    @property
    def start_time(self) -> str:
        return format_time(self.start)

    @property
    def end_time(self) -> str:
        return format_time(self.end)

    def contains(self, start: int, end: int) -> bool:
        return self.start <= start and end <= self.end

    def __str__(self) -> str:
        return f"{self.start_time}-{self.end_time}"


def build_window(start_time: Optional[str], end_time: Optional[str], label: str) -> TimeWindow:
    """Parse and order-check a start/end pair; ``label`` names the owner in errors."""
    if start_time is None or end_time is None:
        raise ValidationError(f"{label}: start and end time are required when available", field=label)

    start = parse_time(start_time, field=f"{label} start_time")
    end = parse_time(end_time, field=f"{label} end_time")
    if not is_before(start, end):
        raise ValidationError(f"{label}: end time must be after start time", field=label)
    return TimeWindow(start, end)


@dataclass(frozen=True)
class WeeklyScheduleEntry:
    """One weekday's availability. ``day_of_week`` uses 0 = Sunday."""
    day_of_week: int
    is_available: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.day_of_week, int) or not 0 <= self.day_of_week <= 6:
            raise ValidationError(
                f"Day of week must be between 0 (Sunday) and 6 (Saturday), got {self.day_of_week!r}",
                field="day_of_week",
            )
        if self.is_available:
            # Raises when times are missing, malformed or out of order
            build_window(self.start_time, self.end_time, self.label)

    @property
    def label(self) -> str:
        return f"day {self.day_of_week} ({DAY_NAMES[self.day_of_week]})"

    @property
    def window(self) -> Optional[TimeWindow]:
        if not self.is_available:
            return None
        return build_window(self.start_time, self.end_time, self.label)

    @classmethod
    def closed(cls, day_of_week: int) -> "WeeklyScheduleEntry":
        return cls(day_of_week=day_of_week, is_available=False)


class WeeklySchedule:
    """
    Exactly one entry per weekday.

    Construction fails with a ValidationError naming the day when a weekday
    is missing or repeated.
    """

    def __init__(self, entries: Iterable[WeeklyScheduleEntry]):
        by_day: Dict[int, WeeklyScheduleEntry] = {}
        for entry in entries:
            if entry.day_of_week in by_day:
                raise ValidationError(
                    f"Duplicate schedule entry for {entry.label}", field=entry.label
                )
            by_day[entry.day_of_week] = entry

        for day in range(7):
            if day not in by_day:
                raise ValidationError(
                    f"Missing schedule entry for day {day} ({DAY_NAMES[day]})",
                    field=f"day {day} ({DAY_NAMES[day]})",
                )

        self._entries = by_day
        self._windows = {day: entry.window for day, entry in by_day.items()}

    @classmethod
    def from_partial(cls, entries: Iterable[WeeklyScheduleEntry]) -> "WeeklySchedule":
        """Build from stored rows, where an absent weekday means closed."""
        entries = list(entries)
        present = {entry.day_of_week for entry in entries}
        entries.extend(WeeklyScheduleEntry.closed(day) for day in range(7) if day not in present)
        return cls(entries)

    @classmethod
    def always_closed(cls) -> "WeeklySchedule":
        return cls(WeeklyScheduleEntry.closed(day) for day in range(7))

    def is_open_on(self, day_of_week: int) -> bool:
        return self._windows.get(day_of_week) is not None

    def hours_for(self, day_of_week: int) -> Optional[TimeWindow]:
        return self._windows.get(day_of_week)

    @property
    def entries(self) -> List[WeeklyScheduleEntry]:
        return [self._entries[day] for day in range(7)]

    @property
    def has_open_days(self) -> bool:
        return any(window is not None for window in self._windows.values())
