# booking_engine/repositories/schedule_repository.py
"""Weekly hours and exception dates of a business"""
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booking_engine.core.exceptions import NotFoundError, ValidationError
from booking_engine.models.availability import AvailabilityException, WeeklyAvailability
from booking_engine.models.business import Business
from booking_engine.services.availability.exception_calendar import ExceptionCalendar, ExceptionDate
from booking_engine.services.availability.weekly_schedule import WeeklySchedule, WeeklyScheduleEntry

logger = logging.getLogger(__name__)


class ScheduleRepository:
    """Reads and writes the schedule tables for the availability engine"""

    def __init__(self, db: Session):
        self.db = db

    async def get_business(self, business_id: str) -> Business:
        business = self.db.query(Business).filter(
            Business.id == business_id,
            Business.is_active == True  # noqa: E712
        ).first()

        if not business:
            raise NotFoundError("Business", business_id)
        return business

    async def list_weekly_rows(self, business_id: str) -> List[WeeklyAvailability]:
        return self.db.query(WeeklyAvailability).filter(
            WeeklyAvailability.business_id == business_id
        ).order_by(WeeklyAvailability.day_of_week).all()

    async def get_weekly_schedule(self, business_id: str) -> WeeklySchedule:
        """Weekly schedule with absent weekdays treated as closed"""
        rows = await self.list_weekly_rows(business_id)

        if not rows:
            logger.warning(f"No weekly availability found for business {business_id}")

        return WeeklySchedule.from_partial(
            WeeklyScheduleEntry(
                day_of_week=row.day_of_week,
                is_available=bool(row.is_available),
                start_time=row.start_time,
                end_time=row.end_time,
            )
            for row in rows
        )

    async def list_exception_rows(
            self,
            business_id: str,
            start: Optional[date] = None,
            end: Optional[date] = None
    ) -> List[AvailabilityException]:
        query = self.db.query(AvailabilityException).filter(
            AvailabilityException.business_id == business_id
        )
        if start is not None:
            query = query.filter(AvailabilityException.date >= start)
        if end is not None:
            query = query.filter(AvailabilityException.date <= end)

        return query.order_by(AvailabilityException.date).all()

    async def get_exceptions(
            self,
            business_id: str,
            start: Optional[date] = None,
            end: Optional[date] = None
    ) -> ExceptionCalendar:
        """Exception dates, optionally limited to ``[start, end]`` inclusive"""
        rows = await self.list_exception_rows(business_id, start, end)

        return ExceptionCalendar(
            ExceptionDate(
                date=row.date,
                is_available=bool(row.is_available),
                start_time=row.start_time,
                end_time=row.end_time,
                reason=row.reason,
            )
            for row in rows
        )

    async def upsert_weekly(
            self,
            business_id: str,
            entries: List[WeeklyScheduleEntry]
    ) -> List[WeeklyAvailability]:
        """Insert or replace the rows for the given weekdays; other weekdays are untouched"""
        seen = set()
        for entry in entries:
            if entry.day_of_week in seen:
                raise ValidationError(f"Duplicate schedule entry for {entry.label}", field=entry.label)
            seen.add(entry.day_of_week)

        existing = {row.day_of_week: row for row in await self.list_weekly_rows(business_id)}

        for entry in entries:
            row = existing.get(entry.day_of_week)
            if row is None:
                row = WeeklyAvailability(business_id=business_id, day_of_week=entry.day_of_week)
                self.db.add(row)

            row.is_available = entry.is_available
            row.start_time = entry.start_time if entry.is_available else None
            row.end_time = entry.end_time if entry.is_available else None

        self.db.commit()
        logger.info(f"Weekly availability updated for business {business_id}: days {sorted(seen)}")

        return await self.list_weekly_rows(business_id)

    async def add_exception(self, business_id: str, exception: ExceptionDate) -> AvailabilityException:
        """Create an exception; a second exception for the same date is rejected"""
        duplicate = self.db.query(AvailabilityException).filter(
            AvailabilityException.business_id == business_id,
            AvailabilityException.date == exception.date
        ).first()
        if duplicate:
            raise ValidationError("An exception already exists for this date", field="date")

        row = AvailabilityException(
            business_id=business_id,
            date=exception.date,
            is_available=exception.is_available,
            start_time=exception.start_time if exception.is_available else None,
            end_time=exception.end_time if exception.is_available else None,
            reason=exception.reason,
        )
        self.db.add(row)

        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent insert for the same date
            self.db.rollback()
            raise ValidationError("An exception already exists for this date", field="date")

        self.db.refresh(row)
        logger.info(f"Availability exception added for business {business_id} on {row.date}")
        return row

    async def delete_exception(self, business_id: str, exception_id: str) -> None:
        row = self.db.query(AvailabilityException).filter(
            AvailabilityException.id == exception_id,
            AvailabilityException.business_id == business_id
        ).first()

        if not row:
            raise NotFoundError("Availability exception", exception_id)

        self.db.delete(row)
        self.db.commit()
        logger.info(f"Availability exception {exception_id} removed for business {business_id}")
