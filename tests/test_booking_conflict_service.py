from datetime import datetime

import pytest

from booking_engine.core.exceptions import FormatError, NotFoundError
from booking_engine.services.booking.booking_conflict_service import (
    BookingConflictService,
    rank_suggestions,
)
from booking_engine.services.availability.slot_generator import AvailabilitySlot
from booking_engine.services.booking.occupancy import BookedInterval, find_conflicts

from conftest import (
    MONDAY,
    SUNDAY,
    TUESDAY,
    build_conflict_service,
    make_appointment,
    make_business,
    make_exception,
    make_service,
    run,
)


class UntouchableStore:
    def __getattr__(self, name):
        raise AssertionError(f'store accessed: {name}')


@pytest.fixture
def booked_monday(db_session):
    business = make_business(db_session)
    service = make_service(db_session, business, duration=60)
    appointment = make_appointment(db_session, business, service, MONDAY, '10:00', '11:00')
    return business, service, appointment


def test_overlapping_request_is_rejected_with_nearest_suggestions(db_session, settings, booked_monday) -> None:
    business, service, _ = booked_monday
    conflicts = build_conflict_service(db_session, settings)

    result = run(conflicts.validate_booking_request(business.id, service.id, '2026-01-05', '10:30'))

    assert result.is_available is False
    assert result.conflicts == ['Overlaps existing appointment 10:00-11:00']
    assert [slot.start for slot in result.suggestions] == ['11:00', '09:00', '12:00', '13:00', '14:00']
    assert all(slot.start != '10:00' for slot in result.suggestions)


def test_free_slot_is_available(db_session, settings, booked_monday) -> None:
    business, service, _ = booked_monday
    conflicts = build_conflict_service(db_session, settings)

    result = run(conflicts.validate_booking_request(business.id, service.id, MONDAY, '11:00'))

    assert result.is_available is True
    assert result.to_dict() == {'available': True, 'conflicts': [], 'suggestions': []}
    assert result.requested.end == '12:00'


def test_malformed_time_fails_before_any_lookup(settings) -> None:
    conflicts = BookingConflictService(UntouchableStore(), UntouchableStore(), UntouchableStore(), settings=settings)

    with pytest.raises(FormatError) as exception_info:
        run(conflicts.validate_booking_request('biz', 'svc', '2026-01-05', '25:00'))

    assert exception_info.value.field == 'start_time'


def test_malformed_date_fails_before_any_lookup(settings) -> None:
    conflicts = BookingConflictService(UntouchableStore(), UntouchableStore(), UntouchableStore(), settings=settings)

    with pytest.raises(FormatError) as exception_info:
        run(conflicts.validate_booking_request('biz', 'svc', '05-01-2026', '10:00'))

    assert exception_info.value.field == 'appointment_date'


def test_buffer_blocks_the_following_start(db_session, settings) -> None:
    business = make_business(db_session)
    service = make_service(db_session, business, duration=60, buffer_time=15)
    make_appointment(db_session, business, service, MONDAY, '10:00', '11:00')
    conflicts = build_conflict_service(db_session, settings)

    blocked = run(conflicts.validate_booking_request(business.id, service.id, MONDAY, '11:00'))
    after_buffer = run(conflicts.validate_booking_request(business.id, service.id, MONDAY, '11:15'))

    assert blocked.is_available is False
    assert blocked.conflicts == ['Overlaps existing appointment 10:00-11:00']
    assert after_buffer.is_available is True


def test_existing_appointment_uses_its_own_service_buffer(db_session, settings) -> None:
    business = make_business(db_session)
    long_cleanup = make_service(db_session, business, duration=60, buffer_time=30)
    quick = make_service(db_session, business, duration=30, buffer_time=0)
    make_appointment(db_session, business, long_cleanup, MONDAY, '10:00', '11:00')
    conflicts = build_conflict_service(db_session, settings)

    assert run(conflicts.is_time_slot_available(business.id, quick.id, MONDAY, '11:00')) is False
    assert run(conflicts.is_time_slot_available(business.id, quick.id, MONDAY, '11:30')) is True
    assert run(conflicts.is_time_slot_available(business.id, quick.id, MONDAY, '09:30')) is True


def test_requested_buffer_must_clear_the_next_appointment(db_session, settings) -> None:
    business = make_business(db_session)
    quick = make_service(db_session, business, duration=60, buffer_time=0)
    with_cleanup = make_service(db_session, business, duration=60, buffer_time=15)
    make_appointment(db_session, business, quick, MONDAY, '10:00', '11:00')
    conflicts = build_conflict_service(db_session, settings)

    result = run(conflicts.validate_booking_request(business.id, with_cleanup.id, MONDAY, '09:00'))

    assert result.is_available is False
    assert result.conflicts == ['Overlaps existing appointment 10:00-11:00']
    assert run(conflicts.is_time_slot_available(business.id, quick.id, MONDAY, '09:00')) is True


def test_find_conflicts_widens_the_request_by_its_buffer() -> None:
    booked = [BookedInterval(appointment_id='a1', date=MONDAY, start=600, end=660, buffer_time=0)]

    assert find_conflicts(booked, 540, 600, buffer_time=15) == booked
    assert find_conflicts(booked, 540, 600, buffer_time=0) == []


def test_cancelled_appointments_do_not_occupy(db_session, settings) -> None:
    business = make_business(db_session)
    service = make_service(db_session, business)
    make_appointment(db_session, business, service, MONDAY, '10:00', '11:00', status='cancelled')
    conflicts = build_conflict_service(db_session, settings)

    assert run(conflicts.is_time_slot_available(business.id, service.id, MONDAY, '10:00')) is True


def test_completed_appointments_still_occupy(db_session, settings) -> None:
    business = make_business(db_session)
    service = make_service(db_session, business)
    make_appointment(db_session, business, service, MONDAY, '10:00', '11:00', status='completed')
    conflicts = build_conflict_service(db_session, settings)

    assert run(conflicts.is_time_slot_available(business.id, service.id, MONDAY, '10:00')) is False


def test_excluded_appointment_is_ignored(db_session, settings, booked_monday) -> None:
    business, service, appointment = booked_monday
    conflicts = build_conflict_service(db_session, settings)

    result = run(conflicts.validate_booking_request(
        business.id, service.id, MONDAY, '10:30', exclude_appointment_id=appointment.id
    ))

    assert result.is_available is True


def test_closed_date_is_reported(db_session, settings) -> None:
    business = make_business(db_session)
    service = make_service(db_session, business)
    make_exception(db_session, business, TUESDAY, is_available=False)
    conflicts = build_conflict_service(db_session, settings)

    assert run(conflicts.get_conflicts(business.id, service.id, SUNDAY, '10:00')) == [
        'Business is closed on this date'
    ]
    assert run(conflicts.get_conflicts(business.id, service.id, TUESDAY, '10:00')) == [
        'Business is closed on this date'
    ]


def test_request_running_past_closing_is_outside_hours(db_session, settings) -> None:
    business = make_business(db_session)
    service = make_service(db_session, business)
    conflicts = build_conflict_service(db_session, settings)

    result = run(conflicts.validate_booking_request(business.id, service.id, MONDAY, '16:30'))

    assert result.is_available is False
    assert result.conflicts == ['Requested time is outside business hours (09:00-17:00)']
    assert [slot.start for slot in result.suggestions][:2] == ['16:00', '15:00']


def test_past_start_is_rejected_and_suggestions_are_in_the_future(db_session, settings) -> None:
    business = make_business(db_session)
    service = make_service(db_session, business)
    conflicts = build_conflict_service(db_session, settings, now=datetime(2026, 1, 5, 12, 0))

    result = run(conflicts.validate_booking_request(business.id, service.id, MONDAY, '11:00'))

    assert result.conflicts == ['Cannot book appointments in the past']
    assert [slot.start for slot in result.suggestions] == ['13:00', '14:00', '15:00', '16:00']


def test_past_bookings_can_be_allowed(db_session, settings) -> None:
    business = make_business(db_session)
    service = make_service(db_session, business)
    permissive = settings.model_copy(update={'ALLOW_PAST_BOOKINGS': True})
    conflicts = build_conflict_service(db_session, permissive, now=datetime(2026, 1, 5, 12, 0))

    assert run(conflicts.is_time_slot_available(business.id, service.id, MONDAY, '11:00')) is True


def test_unknown_or_inactive_service_is_not_found(db_session, settings) -> None:
    business = make_business(db_session)
    inactive = make_service(db_session, business, is_active=False)
    conflicts = build_conflict_service(db_session, settings)

    with pytest.raises(NotFoundError):
        run(conflicts.validate_booking_request(business.id, 'missing-service', MONDAY, '10:00'))

    with pytest.raises(NotFoundError) as exception_info:
        run(conflicts.validate_booking_request(business.id, inactive.id, MONDAY, '10:00'))

    assert exception_info.value.message == 'Service not found or inactive'


def test_unknown_business_is_not_found(db_session, settings) -> None:
    conflicts = build_conflict_service(db_session, settings)

    with pytest.raises(NotFoundError) as exception_info:
        run(conflicts.validate_booking_request('missing-business', 'svc', MONDAY, '10:00'))

    assert exception_info.value.resource == 'Business'


def test_suggestions_can_be_turned_off(db_session, settings, booked_monday) -> None:
    business, service, _ = booked_monday
    conflicts = build_conflict_service(db_session, settings)

    result = run(conflicts.validate_booking_request(
        business.id, service.id, MONDAY, '10:00', include_suggestions=False
    ))

    assert result.is_available is False
    assert result.suggestions == []


def test_suggestions_reach_adjacent_days_when_configured(db_session, settings) -> None:
    business = make_business(db_session)
    service = make_service(db_session, business)
    make_exception(db_session, business, MONDAY, is_available=True, start_time='10:00', end_time='11:00')
    make_appointment(db_session, business, service, MONDAY, '10:00', '11:00')

    same_day = build_conflict_service(db_session, settings)
    nearby = build_conflict_service(
        db_session, settings.model_copy(update={'BOOKING_SUGGESTION_ADJACENT_DAYS': 1})
    )

    assert run(same_day.validate_booking_request(business.id, service.id, MONDAY, '10:00')).suggestions == []

    suggestions = run(nearby.validate_booking_request(business.id, service.id, MONDAY, '10:00')).suggestions
    assert suggestions[0].date == TUESDAY
    assert suggestions[0].start == '09:00'


def test_repeated_checks_give_identical_results(db_session, settings, booked_monday) -> None:
    business, service, _ = booked_monday
    conflicts = build_conflict_service(db_session, settings)

    first = run(conflicts.validate_booking_request(business.id, service.id, MONDAY, '10:30'))
    second = run(conflicts.validate_booking_request(business.id, service.id, MONDAY, '10:30'))

    assert first.to_dict() == second.to_dict()


def test_rank_suggestions_prefers_earlier_slot_on_ties() -> None:
    candidates = [AvailabilitySlot(MONDAY, 720, 780), AvailabilitySlot(MONDAY, 540, 600)]

    ranked = rank_suggestions(candidates, MONDAY, 630, limit=5)

    assert [slot.start for slot in ranked] == ['09:00', '12:00']
    assert rank_suggestions(candidates, MONDAY, 630, limit=0) == []
