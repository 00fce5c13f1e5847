import asyncio
import os
from datetime import date, datetime

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('AVAILABILITY_CACHE_ENABLED', 'false')

from booking_engine.config.settings import Settings  # noqa: E402
from booking_engine.models import (  # noqa: E402
    Appointment,
    AvailabilityException,
    Base,
    Business,
    Service,
    WeeklyAvailability,
)
from booking_engine.repositories.appointment_repository import AppointmentRepository  # noqa: E402
from booking_engine.repositories.schedule_repository import ScheduleRepository  # noqa: E402
from booking_engine.repositories.service_repository import ServiceRepository  # noqa: E402
from booking_engine.services.availability.availability_cache import AvailabilityCache  # noqa: E402
from booking_engine.services.availability.availability_service import AvailabilityService  # noqa: E402
from booking_engine.services.availability.schedule_service import ScheduleService  # noqa: E402
from booking_engine.services.booking.appointment_service import AppointmentService  # noqa: E402
from booking_engine.services.booking.booking_conflict_service import BookingConflictService  # noqa: E402

MONDAY = date(2026, 1, 5)
SUNDAY = date(2026, 1, 4)
TUESDAY = date(2026, 1, 6)
BEFORE_MONDAY = datetime(2026, 1, 1, 8, 0)


def run(coro):
    return asyncio.run(coro)


def fixed_clock(now: datetime):
    return lambda timezone_name: now


class FakeRedis:
    """The handful of async Redis commands the availability cache uses"""

    def __init__(self, fail: bool = False):
        self.store = {}
        self.ttls = {}
        self.fail = fail

    def _check(self) -> None:
        if self.fail:
            raise RedisConnectionError('connection refused')

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self._check()
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def incr(self, key):
        self._check()
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = str(value)
        return value


@pytest.fixture
def db_session():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = testing_session_local()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        AVAILABILITY_CACHE_ENABLED=False,
        BOOKING_MAX_SUGGESTIONS=5,
        BOOKING_SUGGESTION_ADJACENT_DAYS=0,
        ALLOW_PAST_BOOKINGS=False,
    )


def make_business(db, name: str = 'Downtown Salon', timezone: str = 'UTC', open_weekdays: bool = True) -> Business:
    business = Business(name=name, timezone=timezone)
    db.add(business)
    db.commit()
    db.refresh(business)

    if open_weekdays:
        # Monday through Friday 09:00-17:00, weekend rows closed
        for day in range(7):
            is_open = 1 <= day <= 5
            db.add(WeeklyAvailability(
                business_id=business.id,
                day_of_week=day,
                is_available=is_open,
                start_time='09:00' if is_open else None,
                end_time='17:00' if is_open else None,
            ))
        db.commit()
    return business


def make_service(db, business: Business, duration: int = 60, buffer_time: int = 0, is_active: bool = True) -> Service:
    service = Service(
        business_id=business.id,
        name='Haircut',
        duration=duration,
        buffer_time=buffer_time,
        is_active=is_active,
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def make_appointment(
        db,
        business: Business,
        service: Service,
        on: date,
        start_time: str,
        end_time: str,
        status: str = 'confirmed',
) -> Appointment:
    appointment = Appointment(
        business_id=business.id,
        service_id=service.id,
        appointment_date=on,
        start_time=start_time,
        end_time=end_time,
        status=status,
        customer_name='Jamie Doe',
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def make_exception(db, business: Business, on: date, is_available: bool = False, start_time=None, end_time=None):
    row = AvailabilityException(
        business_id=business.id,
        date=on,
        is_available=is_available,
        start_time=start_time,
        end_time=end_time,
        reason='Holiday',
    )
    db.add(row)
    db.commit()
    return row


def build_conflict_service(db, settings: Settings, now: datetime = BEFORE_MONDAY) -> BookingConflictService:
    return BookingConflictService(
        ScheduleRepository(db),
        ServiceRepository(db),
        AppointmentRepository(db),
        settings=settings,
        clock=fixed_clock(now),
    )


def build_availability_service(db, settings: Settings, cache=None, now: datetime = BEFORE_MONDAY) -> AvailabilityService:
    return AvailabilityService(
        ScheduleRepository(db),
        ServiceRepository(db),
        AppointmentRepository(db),
        cache=cache,
        settings=settings,
        clock=fixed_clock(now),
    )


def build_schedule_service(db, cache=None) -> ScheduleService:
    return ScheduleService(ScheduleRepository(db), ServiceRepository(db), cache=cache)


def build_appointment_service(db, settings: Settings, cache=None, now: datetime = BEFORE_MONDAY) -> AppointmentService:
    return AppointmentService(
        AppointmentRepository(db),
        build_conflict_service(db, settings, now),
        cache=cache,
    )


def build_cache(fail: bool = False) -> AvailabilityCache:
    return AvailabilityCache(FakeRedis(fail=fail), ttl_seconds=300)
