# booking_engine/services/booking/occupancy.py
"""
Calendar occupancy of existing appointments.

An appointment blocks ``[start, end + buffer)``: its service's buffer keeps
the next booking from starting right after it, and never pushes back on the
booking before it. The same rule applies to the interval being requested.
"""
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from booking_engine.services.availability.slot_generator import AvailabilitySlot
from booking_engine.utils.time_utils import format_time, overlaps, parse_time


@dataclass(frozen=True)
class BookedInterval:
    appointment_id: Optional[str]
    date: date
    start: int
    end: int
    buffer_time: int = 0

    @property
    def occupied_end(self) -> int:
        return self.end + self.buffer_time

    def describe(self) -> str:
        return f"{format_time(self.start)}-{format_time(self.end)}"


def intervals_from_appointments(appointments: Iterable, default_buffer: int = 0) -> List[BookedInterval]:
    """
    Convert appointment rows into booked intervals.

    Each row uses the buffer of the service it booked; ``default_buffer``
    covers rows whose service is no longer loadable.
    """
    intervals = []
    for appointment in appointments:
        service = getattr(appointment, "service", None)
        buffer_time = service.buffer_time if service is not None and service.buffer_time is not None else default_buffer

        intervals.append(BookedInterval(
            appointment_id=appointment.id,
            date=appointment.appointment_date,
            start=parse_time(appointment.start_time, field="start_time"),
            end=parse_time(appointment.end_time, field="end_time"),
            buffer_time=buffer_time,
        ))
    return intervals


def find_conflicts(
        booked: Iterable[BookedInterval],
        start: int,
        end: int,
        buffer_time: int = 0
) -> List[BookedInterval]:
    """Booked intervals overlapping the request ``[start, end + buffer_time)``"""
    # The request is widened by its own trailing buffer, like a stored appointment.
    # No two live appointments overlap as [start, end + buffer); do not narrow this
    # to [start, end).
    return [
        interval for interval in booked
        if overlaps(start, end + buffer_time, interval.start, interval.occupied_end)
    ]


def index_by_date(booked: Iterable[BookedInterval]) -> Dict[date, List[BookedInterval]]:
    by_date: Dict[date, List[BookedInterval]] = {}
    for interval in booked:
        by_date.setdefault(interval.date, []).append(interval)
    return by_date


def free_slots(
        slots: Iterable[AvailabilitySlot],
        booked: Iterable[BookedInterval],
        buffer_time: int = 0
) -> List[AvailabilitySlot]:
    """Drop slots that would collide with a booked interval on the same date"""
    by_date = index_by_date(booked)
    return [
        slot for slot in slots
        if not find_conflicts(by_date.get(slot.date, []), slot.start_time, slot.end_time, buffer_time)
    ]
