import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trainhub.auth.dependencies import ensure_can_manage, get_current_user
from trainhub.core import clock
from trainhub.core.errors import Forbidden, TrainhubError, UpstreamFailure, ValidationError
from trainhub.database import get_db
from trainhub.models.booking import CANCELLED, Booking
from trainhub.models.user import User
from trainhub.routes.common import ensure_database_ready, ensure_same_studio, get_provider, resolve_provider
from trainhub.schemas.bookings import (
    BookingEnvelope,
    BookingListEnvelope,
    BookingResponse,
    CreateBookingRequest,
    UpdateBookingRequest,
)
from trainhub.schemas.common import SuccessResponse
from trainhub.services import booking_store

router = APIRouter(tags=['bookings'])
logger = logging.getLogger(__name__)


def _ensure_booking_access(user: User, booking: Booking) -> None:
    if user.is_provider:
        ensure_can_manage(user, booking.provider_id, booking.studio_id)
    elif booking.client_id != user.id:
        raise Forbidden('You do not have access to this booking')


@router.get('', response_model=BookingListEnvelope)
def list_bookings(
    start_date: datetime | None = Query(default=None, alias='startDate'),
    end_date: datetime | None = Query(default=None, alias='endDate'),
    booking_status: str | None = Query(default=None, alias='status'),
    client_id: int | None = Query(default=None, alias='clientId'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        now = clock.now()
        start = clock.to_wall_clock(start_date) if start_date else None
        end = clock.to_wall_clock(end_date) if end_date else None

        if current_user.is_provider:
            booking_store.release_expired_holds(db, now, provider_id=current_user.id)
            db.commit()
            bookings = booking_store.list_bookings(
                db,
                provider_id=current_user.id,
                studio_id=current_user.studio_scope,
                start=start,
                end=end,
                status=booking_status,
                client_id=client_id,
            )
        else:
            bookings = booking_store.list_bookings(
                db, start=start, end=end, status=booking_status, client_id=current_user.id
            )

        return BookingListEnvelope(bookings=[BookingResponse.model_validate(booking) for booking in bookings])
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error fetching bookings')
        raise UpstreamFailure('Failed to fetch bookings') from exc


@router.post('', response_model=BookingEnvelope, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: CreateBookingRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        if current_user.is_provider:
            provider = resolve_provider(db, current_user, data.trainer_id)
            ensure_can_manage(current_user, provider.id, provider.studio_scope)
            client_id = data.client_id
        else:
            if data.trainer_id is None:
                raise ValidationError('trainerId is required')
            if data.client_id is not None and data.client_id != current_user.id:
                raise Forbidden('Clients can only book for themselves')
            provider = get_provider(db, data.trainer_id)
            ensure_same_studio(current_user, provider)
            client_id = current_user.id

        booking = booking_store.create_booking(
            db,
            provider_id=provider.id,
            studio_id=provider.studio_scope,
            client_id=client_id,
            service_id=data.service_id,
            scheduled_at=clock.to_wall_clock(data.scheduled_at),
            duration_minutes=data.duration_minutes,
            status=data.status,
            hold_expiry=clock.to_wall_clock(data.hold_expiry) if data.hold_expiry else None,
            notes=data.notes,
            now=clock.now(),
        )
        db.commit()
        db.refresh(booking)

        return BookingEnvelope(booking=BookingResponse.model_validate(booking))
    except TrainhubError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error creating booking')
        raise UpstreamFailure('Failed to create booking') from exc


@router.patch('/{booking_id}', response_model=BookingEnvelope)
def update_booking(
    booking_id: int,
    data: UpdateBookingRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        booking = booking_store.get_booking(db, booking_id)
        _ensure_booking_access(current_user, booking)

        if not current_user.is_provider and (
            data.scheduled_at is not None
            or data.duration_minutes is not None
            or data.status not in (None, CANCELLED)
        ):
            raise Forbidden('Clients can only cancel their bookings')

        now = clock.now()
        if data.scheduled_at is not None or data.duration_minutes is not None:
            booking_store.reschedule_booking(
                db,
                booking,
                now,
                scheduled_at=clock.to_wall_clock(data.scheduled_at) if data.scheduled_at else None,
                duration_minutes=data.duration_minutes,
            )
        if data.status is not None and data.status != booking.status:
            booking_store.transition_booking(db, booking, data.status, now)
        if data.notes is not None:
            booking.notes = data.notes

        db.commit()
        db.refresh(booking)

        return BookingEnvelope(booking=BookingResponse.model_validate(booking))
    except TrainhubError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error updating booking %s', booking_id)
        raise UpstreamFailure('Failed to update booking') from exc


@router.delete('', response_model=SuccessResponse)
def cancel_booking(
    booking_id: int = Query(..., alias='id'),
    hard_delete: bool = Query(default=False, alias='hardDelete'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        booking = booking_store.get_booking(db, booking_id)
        _ensure_booking_access(current_user, booking)

        if hard_delete:
            if not current_user.is_provider:
                raise Forbidden('Only trainers can delete bookings')
            db.delete(booking)
        elif booking.status != CANCELLED:
            booking_store.transition_booking(db, booking, CANCELLED, clock.now())

        db.commit()
        return SuccessResponse()
    except TrainhubError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error cancelling booking %s', booking_id)
        raise UpstreamFailure('Failed to cancel booking') from exc
