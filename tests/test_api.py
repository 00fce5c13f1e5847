import pytest
from fastapi.testclient import TestClient

from booking_engine.config.database import get_db
from booking_engine.config.settings import Settings, get_settings
from booking_engine.core.middleware import CORRELATION_HEADER
from booking_engine.main import create_app
from booking_engine.models import Business, Service

from conftest import MONDAY, make_appointment, make_business, make_service

BASE = '/api/v1/businesses'


@pytest.fixture
def client(db_session):
    app = create_app()

    def override_get_db():
        yield db_session

    # Fixed 2026 dates may lie in the past when the suite runs
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: Settings(
        AVAILABILITY_CACHE_ENABLED=False,
        ALLOW_PAST_BOOKINGS=True,
    )

    return TestClient(app)


@pytest.fixture
def salon(db_session):
    business = make_business(db_session)
    service = make_service(db_session, business, duration=60)
    return business.id, service.id


def test_health(client) -> None:
    response = client.get('/health')

    assert response.status_code == 200
    assert response.json()['status'] == 'healthy'


def test_correlation_id_is_echoed(client) -> None:
    response = client.get('/health', headers={CORRELATION_HEADER: 'req-123'})

    assert response.headers[CORRELATION_HEADER] == 'req-123'


def test_availability_listing(client, salon) -> None:
    business_id, service_id = salon

    response = client.get(
        f'{BASE}/{business_id}/availability',
        params={'service_id': service_id, 'start_date': '2026-01-05', 'days': 2},
    )

    assert response.status_code == 200
    body = response.json()
    assert [group['date'] for group in body['availability']] == ['2026-01-05', '2026-01-06']
    assert len(body['availability'][0]['slots']) == 8


def test_availability_check_reports_conflicts_and_suggestions(client, db_session, salon) -> None:
    business_id, service_id = salon
    business = db_session.get(Business, business_id)
    service = db_session.get(Service, service_id)
    make_appointment(db_session, business, service, MONDAY, '10:00', '11:00')

    response = client.get(
        f'{BASE}/{business_id}/availability/check',
        params={'service_id': service_id, 'appointment_date': '2026-01-05', 'start_time': '10:30'},
    )

    assert response.status_code == 200
    body = response.json()
    assert body['available'] is False
    assert body['conflicts'] == ['Overlaps existing appointment 10:00-11:00']
    assert body['suggestions'][0] == {'date': '2026-01-05', 'start_time': '11:00', 'end_time': '12:00'}


def test_availability_check_rejects_malformed_time(client, salon) -> None:
    business_id, service_id = salon

    response = client.post(
        f'{BASE}/{business_id}/availability/check',
        json={'service_id': service_id, 'appointment_date': '2026-01-05', 'start_time': '25:00'},
    )

    assert response.status_code == 400
    assert response.json()['error'] == 'FORMAT_ERROR'
    assert response.json()['field'] == 'start_time'


def test_unknown_business_is_404(client) -> None:
    response = client.get(f'{BASE}/missing/availability', params={'start_date': '2026-01-05', 'days': 1})

    assert response.status_code == 404
    assert response.json()['error'] == 'NOT_FOUND'


def test_next_available_slot(client, salon) -> None:
    business_id, service_id = salon

    response = client.get(
        f'{BASE}/{business_id}/availability/next',
        params={'service_id': service_id, 'start_date': '2026-01-05'},
    )

    assert response.status_code == 200
    assert response.json()['slot'] == {'date': '2026-01-05', 'start_time': '09:00', 'end_time': '10:00'}


def test_booking_lifecycle(client, salon) -> None:
    business_id, service_id = salon
    payload = {
        'service_id': service_id,
        'appointment_date': '2026-01-05',
        'start_time': '10:00',
        'customer_name': 'Jamie Doe',
    }

    created = client.post(f'{BASE}/{business_id}/bookings', json=payload)
    assert created.status_code == 201
    appointment_id = created.json()['id']
    assert created.json()['end_time'] == '11:00'

    conflict = client.post(f'{BASE}/{business_id}/bookings', json=payload)
    assert conflict.status_code == 409
    assert conflict.json()['error'] == 'BOOKING_CONFLICT'
    assert conflict.json()['suggestions']

    confirmed = client.post(f'{BASE}/{business_id}/bookings/{appointment_id}/confirm')
    assert confirmed.json()['status'] == 'confirmed'

    moved = client.post(
        f'{BASE}/{business_id}/bookings/{appointment_id}/reschedule',
        json={'appointment_date': '2026-01-05', 'start_time': '14:00'},
    )
    assert moved.status_code == 200
    assert moved.json()['start_time'] == '14:00'

    cancelled = client.post(
        f'{BASE}/{business_id}/bookings/{appointment_id}/cancel',
        json={'reason': 'Sick'},
    )
    assert cancelled.json()['status'] == 'cancelled'

    fetched = client.get(f'{BASE}/{business_id}/bookings/{appointment_id}')
    assert fetched.json()['cancellation_reason'] == 'Sick'

    illegal = client.post(f'{BASE}/{business_id}/bookings/{appointment_id}/complete')
    assert illegal.status_code == 400
    assert illegal.json()['field'] == 'status'


def test_weekly_schedule_round_trip(client, salon) -> None:
    business_id, _ = salon

    updated = client.put(
        f'{BASE}/{business_id}/availability/weekly',
        json={'entries': [{'day_of_week': 6, 'is_available': True, 'start_time': '10:00', 'end_time': '14:00'}]},
    )

    assert updated.status_code == 200
    entries = updated.json()['entries']
    assert len(entries) == 7
    assert entries[6] == {'day_of_week': 6, 'is_available': True, 'start_time': '10:00', 'end_time': '14:00'}

    invalid = client.put(
        f'{BASE}/{business_id}/availability/weekly',
        json={'entries': [{'day_of_week': 1, 'is_available': True, 'start_time': '17:00', 'end_time': '09:00'}]},
    )
    assert invalid.status_code == 400
    assert invalid.json()['error'] == 'VALIDATION_ERROR'


def test_exceptions_close_dates(client, salon) -> None:
    business_id, service_id = salon

    created = client.post(
        f'{BASE}/{business_id}/availability/exceptions',
        json={'date': '2026-01-05', 'is_available': False, 'reason': 'Holiday'},
    )
    assert created.status_code == 201
    exception_id = created.json()['id']

    duplicate = client.post(
        f'{BASE}/{business_id}/availability/exceptions',
        json={'date': '2026-01-05', 'is_available': False},
    )
    assert duplicate.status_code == 400

    listing = client.get(
        f'{BASE}/{business_id}/availability',
        params={'service_id': service_id, 'start_date': '2026-01-05', 'days': 1},
    )
    assert listing.json()['availability'][0]['slots'] == []

    assert len(client.get(f'{BASE}/{business_id}/availability/exceptions').json()) == 1

    deleted = client.delete(f'{BASE}/{business_id}/availability/exceptions/{exception_id}')
    assert deleted.status_code == 204

    missing = client.delete(f'{BASE}/{business_id}/availability/exceptions/{exception_id}')
    assert missing.status_code == 404


def test_service_timing_update(client, salon) -> None:
    business_id, service_id = salon

    response = client.patch(
        f'{BASE}/{business_id}/services/{service_id}/timing',
        json={'buffer_time': 15},
    )
    assert response.status_code == 200
    assert response.json()['buffer_time'] == 15

    listing = client.get(
        f'{BASE}/{business_id}/availability',
        params={'service_id': service_id, 'start_date': '2026-01-05', 'days': 1},
    )
    assert len(listing.json()['availability'][0]['slots']) == 6

    invalid = client.patch(
        f'{BASE}/{business_id}/services/{service_id}/timing',
        json={'duration': 0},
    )
    assert invalid.status_code == 400
