from datetime import datetime, timedelta

import pytest

from trainhub.core.errors import Forbidden, InvalidStateTransition, NotFound, ValidationError
from trainhub.routes import booking_request_routes
from trainhub.schemas.booking_requests import CreateBookingRequestBody, UpdateBookingRequestBody

TEN_AM = '2026-01-05T10:00:00'


@pytest.fixture
def trainer(make_user):
    return make_user('trainer@example.com', role='trainer', studio_id=4)


@pytest.fixture
def client(make_user):
    return make_user('client@example.com', role='client', studio_id=4)


def create_as_client(db, client, trainer, **extra):
    body = CreateBookingRequestBody.model_validate(
        {'trainerId': trainer.id, 'preferredTimes': [TEN_AM, '2026-01-06T07:30:00'], **extra}
    )
    return booking_request_routes.create_booking_request(data=body, current_user=client, db=db)


def test_client_creates_pending_request(db, frozen_now, trainer, client) -> None:
    response = create_as_client(db, client, trainer, notes='  knee rehab  ')

    body = response.model_dump(by_alias=True)
    assert body['request']['status'] == 'pending'
    assert body['request']['trainerId'] == trainer.id
    assert body['request']['clientId'] == client.id
    assert body['request']['notes'] == 'knee rehab'
    assert body['request']['expiresAt'] == frozen_now + timedelta(hours=48)
    assert body['booking'] is None


def test_client_cannot_request_for_someone_else(db, frozen_now, trainer, client) -> None:
    with pytest.raises(Forbidden):
        create_as_client(db, client, trainer, clientId=client.id + 100)


def test_client_must_name_a_trainer(db, frozen_now, client) -> None:
    body = CreateBookingRequestBody.model_validate({'preferredTimes': [TEN_AM]})

    with pytest.raises(ValidationError):
        booking_request_routes.create_booking_request(data=body, current_user=client, db=db)


def test_unknown_service_is_not_found(db, frozen_now, trainer, client) -> None:
    with pytest.raises(NotFound):
        create_as_client(db, client, trainer, serviceId=12345)


def test_trainer_accepts_request(db, frozen_now, trainer, client) -> None:
    created = create_as_client(db, client, trainer)
    update = UpdateBookingRequestBody.model_validate(
        {'id': created.request.id, 'status': 'accepted', 'acceptedTime': TEN_AM}
    )

    response = booking_request_routes.update_booking_request(data=update, current_user=trainer, db=db)

    assert response.request.status == 'accepted'
    assert response.booking.scheduled_at == datetime(2026, 1, 5, 10, 0)
    assert response.request.booking_id == response.booking.id
    assert response.booking.status == 'confirmed'


def test_accept_without_time_is_rejected(db, frozen_now, trainer, client) -> None:
    created = create_as_client(db, client, trainer)
    update = UpdateBookingRequestBody.model_validate({'id': created.request.id, 'status': 'accepted'})

    with pytest.raises(ValidationError):
        booking_request_routes.update_booking_request(data=update, current_user=trainer, db=db)


def test_decline_twice(db, frozen_now, trainer, client) -> None:
    created = create_as_client(db, client, trainer)
    update = UpdateBookingRequestBody.model_validate({'id': created.request.id, 'status': 'declined'})

    first = booking_request_routes.update_booking_request(data=update, current_user=trainer, db=db)
    assert first.request.status == 'declined'

    with pytest.raises(InvalidStateTransition):
        booking_request_routes.update_booking_request(data=update, current_user=trainer, db=db)


def test_listing_reports_effective_status(db, frozen_now, monkeypatch, trainer, client) -> None:
    created = create_as_client(db, client, trainer)
    monkeypatch.setattr(
        booking_request_routes.clock, 'now', lambda: frozen_now + timedelta(hours=49)
    )

    listed = booking_request_routes.list_booking_requests(request_status=None, current_user=trainer, db=db)
    expired = booking_request_routes.list_booking_requests(request_status='expired', current_user=client, db=db)

    assert [request.status for request in listed.requests] == ['expired']
    assert [request.id for request in expired.requests] == [created.request.id]


def test_listing_rejects_unknown_status(db, frozen_now, trainer) -> None:
    with pytest.raises(ValidationError):
        booking_request_routes.list_booking_requests(request_status='maybe', current_user=trainer, db=db)


def test_trainer_from_another_studio_cannot_answer(db, frozen_now, make_user, trainer, client) -> None:
    outsider = make_user('outsider@example.com', role='trainer', studio_id=77)
    created = create_as_client(db, client, trainer)
    update = UpdateBookingRequestBody.model_validate({'id': created.request.id, 'status': 'declined'})

    with pytest.raises(Forbidden):
        booking_request_routes.update_booking_request(data=update, current_user=outsider, db=db)


def test_client_deletes_own_request(db, frozen_now, make_user, trainer, client) -> None:
    created = create_as_client(db, client, trainer)
    stranger = make_user('stranger@example.com', role='client', studio_id=4)

    with pytest.raises(Forbidden):
        booking_request_routes.delete_booking_request(request_id=created.request.id, current_user=stranger, db=db)

    assert booking_request_routes.delete_booking_request(
        request_id=created.request.id, current_user=client, db=db
    ).success
