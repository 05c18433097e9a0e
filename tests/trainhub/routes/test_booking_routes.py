from datetime import datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from trainhub.core.errors import BookingConflict, Forbidden, ValidationError
from trainhub.routes import booking_routes
from trainhub.schemas.bookings import CreateBookingRequest, UpdateBookingRequest


@pytest.fixture
def trainer(make_user):
    return make_user('trainer@example.com', role='trainer', studio_id=2)


@pytest.fixture
def client(make_user):
    return make_user('client@example.com', role='client', studio_id=2)


def create(db, user, **fields):
    payload = {'scheduledAt': '2026-01-05T10:00:00', 'duration': 60, **fields}
    return booking_routes.create_booking(data=CreateBookingRequest.model_validate(payload), current_user=user, db=db)


def list_for(db, user):
    return booking_routes.list_bookings(
        start_date=None, end_date=None, booking_status=None, client_id=None, current_user=user, db=db
    )


def test_trainer_books_own_calendar(db, frozen_now, trainer, client) -> None:
    response = create(db, trainer, clientId=client.id)

    body = response.model_dump(by_alias=True)
    assert body['booking']['trainerId'] == trainer.id
    assert body['booking']['duration'] == 60
    assert body['booking']['status'] == 'confirmed'


def test_overlapping_booking_is_rejected(db, frozen_now, trainer) -> None:
    create(db, trainer)

    with pytest.raises(BookingConflict):
        create(db, trainer, scheduledAt='2026-01-05T10:30:00')


def test_zero_duration_is_rejected(db, frozen_now, trainer) -> None:
    with pytest.raises(ValidationError):
        create(db, trainer, duration=0)


def test_client_books_for_self_only(db, frozen_now, trainer, client) -> None:
    with pytest.raises(ValidationError):
        create(db, client)
    with pytest.raises(Forbidden):
        create(db, client, trainerId=trainer.id, clientId=trainer.id)

    response = create(db, client, trainerId=trainer.id)

    assert response.booking.client_id == client.id
    assert [booking.id for booking in list_for(db, client).bookings] == [response.booking.id]


def test_client_may_only_cancel(db, frozen_now, trainer, client) -> None:
    booking = create(db, client, trainerId=trainer.id).booking

    with pytest.raises(Forbidden):
        booking_routes.update_booking(
            booking_id=booking.id,
            data=UpdateBookingRequest.model_validate({'scheduledAt': '2026-01-05T12:00:00'}),
            current_user=client,
            db=db,
        )

    cancelled = booking_routes.update_booking(
        booking_id=booking.id,
        data=UpdateBookingRequest.model_validate({'status': 'cancelled'}),
        current_user=client,
        db=db,
    )
    assert cancelled.booking.status == 'cancelled'


def test_trainer_reschedules(db, frozen_now, trainer) -> None:
    booking = create(db, trainer).booking

    moved = booking_routes.update_booking(
        booking_id=booking.id,
        data=UpdateBookingRequest.model_validate({'scheduledAt': '2026-01-05T14:00:00', 'durationMinutes': 45}),
        current_user=trainer,
        db=db,
    )

    assert moved.booking.scheduled_at == datetime(2026, 1, 5, 14, 0)
    assert moved.booking.duration == 45


def test_cancel_then_rebook_same_time(db, frozen_now, trainer) -> None:
    booking = create(db, trainer).booking

    assert booking_routes.cancel_booking(booking_id=booking.id, hard_delete=False, current_user=trainer, db=db).success
    rebooked = create(db, trainer)

    statuses = sorted(item.status for item in list_for(db, trainer).bookings)
    assert statuses == ['cancelled', 'confirmed']
    assert rebooked.booking.id != booking.id


def test_only_trainers_hard_delete(db, frozen_now, trainer, client) -> None:
    booking = create(db, client, trainerId=trainer.id).booking

    with pytest.raises(Forbidden):
        booking_routes.cancel_booking(booking_id=booking.id, hard_delete=True, current_user=client, db=db)

    booking_routes.cancel_booking(booking_id=booking.id, hard_delete=True, current_user=trainer, db=db)
    assert list_for(db, trainer).bookings == []


def test_booking_body_caps_duration_at_a_day() -> None:
    with pytest.raises(PydanticValidationError):
        CreateBookingRequest.model_validate({'scheduledAt': '2026-01-05T00:00:00', 'duration': 2000})
    with pytest.raises(PydanticValidationError):
        UpdateBookingRequest.model_validate({'durationMinutes': 24 * 60 + 1})
