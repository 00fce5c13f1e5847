# booking_engine/utils/time_utils.py
"""
Time and date primitives for availability math.

Times of day travel as ``HH:MM`` strings and are computed on as minutes since
midnight. Dates travel as ``YYYY-MM-DD`` and are naive local dates in the
business's own frame. Intervals are half-open: ``[start, end)``.
"""
import re
from datetime import date, datetime, timedelta
from typing import Iterator, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from booking_engine.core.exceptions import FormatError

MINUTES_PER_DAY = 24 * 60

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_valid_time_format(value: Optional[str]) -> bool:
    return isinstance(value, str) and TIME_PATTERN.match(value) is not None


def is_valid_date_format(value: Optional[str]) -> bool:
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def parse_time(value: str, field: str = "time") -> int:
    """Parse ``HH:MM`` into minutes since midnight (0-1439)."""
    if not isinstance(value, str):
        raise FormatError(field, value, "HH:MM")

    match = TIME_PATTERN.match(value)
    if not match:
        raise FormatError(field, value, "HH:MM")

    return int(match.group(1)) * 60 + int(match.group(2))


def format_time(minutes: int) -> str:
    """Render minutes since midnight as ``HH:MM``."""
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def parse_date(value, field: str = "date") -> date:
    """Parse ``YYYY-MM-DD`` into a calendar date. Date objects pass through."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise FormatError(field, value, "YYYY-MM-DD")

    try:
        return date.fromisoformat(value)
    except ValueError:
        # Right shape, impossible calendar date (e.g. 2026-02-30)
        raise FormatError(field, value, "YYYY-MM-DD")


def day_of_week(value: date) -> int:
    """Day of week with 0 = Sunday ... 6 = Saturday."""
    return (value.weekday() + 1) % 7


def date_range(start: date, days: int) -> Iterator[date]:
    """Yield ``days`` consecutive dates beginning at ``start``."""
    for offset in range(max(days, 0)):
        yield start + timedelta(days=offset)


def add_minutes(minutes: int, delta: int) -> int:
    return minutes + delta


def is_after(a: int, b: int) -> bool:
    return a > b


def is_before(a: int, b: int) -> bool:
    return a < b


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open overlap test: touching intervals do not overlap."""
    return a_start < b_end and b_start < a_end


def minutes_between(a_date: date, a_minutes: int, b_date: date, b_minutes: int) -> int:
    """Signed distance in minutes from ``a`` to ``b``."""
    return (b_date - a_date).days * MINUTES_PER_DAY + (b_minutes - a_minutes)


def local_now(timezone_name: Optional[str], fallback: str = "UTC") -> datetime:
    """Current wall-clock time in the named zone, as a naive datetime."""
    try:
        zone = ZoneInfo(timezone_name or fallback)
    except (ZoneInfoNotFoundError, ValueError):
        zone = ZoneInfo(fallback)
    return datetime.now(zone).replace(tzinfo=None)
