import pytest
from fastapi.testclient import TestClient

from trainhub.auth.jwt_handler import create_access_token
from trainhub.core import config
from trainhub.database import get_db
from trainhub.main import app


@pytest.fixture
def api(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_header(user) -> dict:
    return {'Authorization': f'Bearer {create_access_token(user.email, role=user.role)}'}


def test_requests_without_token_are_unauthorized(api) -> None:
    response = api.get('/api/availability')

    assert response.status_code == 401
    assert response.json() == {'error': 'Unauthorized'}


def test_invalid_token_is_unauthorized(api) -> None:
    response = api.get('/auth/me', headers={'Authorization': 'Bearer not-a-token'})

    assert response.status_code == 401
    assert response.json()['error'] == 'Invalid token'


def test_me_with_bearer_token(api, make_user) -> None:
    trainer = make_user('trainer@example.com', role='trainer', studio_id=8)

    response = api.get('/auth/me', headers=auth_header(trainer))

    assert response.status_code == 200
    assert response.json() == {'id': trainer.id, 'email': trainer.email, 'role': 'trainer', 'studioId': 8}


def test_me_with_session_cookie(api, make_user) -> None:
    client = make_user('client@example.com', role='client', studio_id=8)
    api.cookies.set(config.SESSION_COOKIE_NAME, create_access_token(client.email))

    response = api.get('/auth/me')

    assert response.status_code == 200
    assert response.json()['role'] == 'client'


def test_clients_cannot_manage_availability(api, make_user) -> None:
    client = make_user('client@example.com', role='client', studio_id=8)

    response = api.post(
        '/api/availability',
        json={'blockType': 'available', 'dayOfWeek': 1, 'startHour': 9, 'endHour': 12},
        headers=auth_header(client),
    )

    assert response.status_code == 403
    assert 'error' in response.json()


def test_malformed_body_is_a_400_with_details(api, make_user) -> None:
    trainer = make_user('trainer@example.com', role='trainer', studio_id=8)

    response = api.post('/api/availability', json={'dayOfWeek': 9}, headers=auth_header(trainer))

    assert response.status_code == 400
    body = response.json()
    assert body['error'] == 'Invalid request'
    assert body['details']


def test_booking_flow_over_http(api, make_user, frozen_now) -> None:
    trainer = make_user('trainer@example.com', role='trainer', studio_id=8)
    client = make_user('client@example.com', role='client', studio_id=8)

    created = api.post(
        '/api/booking-requests',
        json={'trainerId': trainer.id, 'preferredTimes': ['2026-01-05T10:00:00']},
        headers=auth_header(client),
    )
    assert created.status_code == 201
    request_id = created.json()['request']['id']

    accepted = api.put(
        '/api/booking-requests',
        json={'id': request_id, 'status': 'accepted', 'acceptedTime': '2026-01-05T10:00:00'},
        headers=auth_header(trainer),
    )
    assert accepted.status_code == 200
    assert accepted.json()['request']['status'] == 'accepted'
    assert accepted.json()['booking']['scheduledAt'] == '2026-01-05T10:00:00'

    again = api.put(
        '/api/booking-requests',
        json={'id': request_id, 'status': 'declined'},
        headers=auth_header(trainer),
    )
    assert again.status_code == 409
    assert again.json() == {'error': 'Booking request is already accepted'}

    slots = api.get(
        '/api/slots',
        params={'providerId': trainer.id, 'date': '2026-01-05', 'durationMinutes': 60},
        headers=auth_header(client),
    )
    assert slots.status_code == 200
    assert slots.json() == []


def test_unknown_route_uses_error_body(api) -> None:
    response = api.get('/api/nothing-here')

    assert response.status_code == 404
    assert response.json() == {'error': 'Not Found'}


def test_logout_clears_session_cookie(api) -> None:
    response = api.post('/auth/logout')

    assert response.status_code == 200
    assert response.json() == {'success': True}
    assert config.SESSION_COOKIE_NAME in response.headers['set-cookie']
