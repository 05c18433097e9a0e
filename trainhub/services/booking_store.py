"""Data access for ta_bookings.

Functions here add and flush but never commit; the caller owns the
transaction so a conflict check and the insert that follows it land together.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from trainhub.core import config
from trainhub.core.errors import BookingConflict, InvalidStateTransition, NotFound, ValidationError
from trainhub.models.booking import (
    ACTIVE_STATUSES,
    BOOKING_STATUSES,
    CANCELLED,
    COMPLETED,
    CONFIRMED,
    MAX_BOOKING_MINUTES,
    SOFT_HOLD,
    Booking,
)
from trainhub.services.conflict_filter import intervals_overlap

logger = logging.getLogger(__name__)

# Bounds the look-back when searching for overlaps.
MAX_BOOKING_SPAN = timedelta(minutes=MAX_BOOKING_MINUTES)

ALLOWED_TRANSITIONS = {
    SOFT_HOLD: {CONFIRMED, CANCELLED},
    CONFIRMED: {COMPLETED, CANCELLED},
    COMPLETED: set(),
    CANCELLED: set(),
}


def get_booking(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFound('Booking not found')
    return booking


def list_bookings(
    db: Session,
    provider_id: int | None = None,
    studio_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    status: str | None = None,
    client_id: int | None = None,
) -> list[Booking]:
    query = db.query(Booking)

    if provider_id is not None and studio_id is not None:
        query = query.filter((Booking.provider_id == provider_id) | (Booking.studio_id == studio_id))
    elif provider_id is not None:
        query = query.filter(Booking.provider_id == provider_id)
    elif studio_id is not None:
        query = query.filter(Booking.studio_id == studio_id)

    if start is not None:
        query = query.filter(Booking.scheduled_at >= start)
    if end is not None:
        query = query.filter(Booking.scheduled_at <= end)
    if status:
        query = query.filter(Booking.status == status)
    if client_id is not None:
        query = query.filter(Booking.client_id == client_id)

    return query.order_by(Booking.scheduled_at.asc(), Booking.id.asc()).all()


def active_bookings_between(
    db: Session,
    provider_ids: list[int],
    range_start: datetime,
    range_end: datetime,
    now: datetime,
) -> list[Booking]:
    """Active bookings of ``provider_ids`` whose interval touches the range."""
    if not provider_ids:
        return []

    candidates = db.query(Booking).filter(
        Booking.provider_id.in_(provider_ids),
        Booking.status.in_(ACTIVE_STATUSES),
        Booking.scheduled_at < range_end,
        Booking.scheduled_at >= range_start - MAX_BOOKING_SPAN,
    ).order_by(Booking.scheduled_at.asc(), Booking.id.asc()).all()

    return [
        booking for booking in candidates
        if booking.is_active(now) and booking.ends_at > range_start
    ]


def find_conflicts(
    db: Session,
    provider_id: int,
    scheduled_at: datetime,
    duration_minutes: int,
    now: datetime,
    exclude_id: int | None = None,
) -> list[Booking]:
    end = scheduled_at + timedelta(minutes=duration_minutes)
    bookings = active_bookings_between(db, [provider_id], scheduled_at, end, now)
    return [
        booking for booking in bookings
        if booking.id != exclude_id
        and intervals_overlap(scheduled_at, end, booking.scheduled_at, booking.ends_at)
    ]


def release_expired_holds(db: Session, now: datetime, provider_id: int | None = None) -> int:
    """Cancel soft-holds whose hold has lapsed. Returns how many were released."""
    query = db.query(Booking).filter(
        Booking.status == SOFT_HOLD,
        Booking.hold_expiry.is_not(None),
        Booking.hold_expiry < now,
    )
    if provider_id is not None:
        query = query.filter(Booking.provider_id == provider_id)

    expired = query.all()
    for booking in expired:
        booking.status = CANCELLED

    if expired:
        db.flush()
        logger.info('Released %d expired soft-hold booking(s)', len(expired))

    return len(expired)


def _validate_duration(duration_minutes: int | None) -> int:
    if duration_minutes is None or duration_minutes <= 0:
        raise ValidationError('duration must be greater than zero')
    if duration_minutes > MAX_BOOKING_MINUTES:
        raise ValidationError(f'duration cannot exceed {MAX_BOOKING_MINUTES} minutes')
    return duration_minutes


def create_booking(
    db: Session,
    *,
    provider_id: int,
    scheduled_at: datetime,
    duration_minutes: int,
    now: datetime,
    studio_id: int | None = None,
    client_id: int | None = None,
    service_id: int | None = None,
    status: str = CONFIRMED,
    hold_expiry: datetime | None = None,
    notes: str | None = None,
    booking_request_id: int | None = None,
) -> Booking:
    duration_minutes = _validate_duration(duration_minutes)
    if status not in ACTIVE_STATUSES:
        raise ValidationError(f'New bookings must be {SOFT_HOLD} or {CONFIRMED}')

    if status == SOFT_HOLD and hold_expiry is None:
        hold_expiry = now + timedelta(minutes=config.SOFT_HOLD_MINUTES)

    release_expired_holds(db, now, provider_id=provider_id)

    if find_conflicts(db, provider_id, scheduled_at, duration_minutes, now):
        raise BookingConflict('Time slot conflict with existing booking')

    booking = Booking(
        provider_id=provider_id,
        studio_id=studio_id,
        client_id=client_id,
        service_id=service_id,
        scheduled_at=scheduled_at,
        duration_minutes=duration_minutes,
        status=status,
        hold_expiry=hold_expiry if status == SOFT_HOLD else None,
        notes=notes,
        booking_request_id=booking_request_id,
    )
    db.add(booking)

    try:
        db.flush()
    except IntegrityError as exc:
        # A concurrent writer took the same provider/start between our check and insert.
        db.rollback()
        raise BookingConflict('Time slot conflict with existing booking') from exc

    logger.info(
        'Created %s booking %s for provider %s at %s',
        booking.status, booking.id, provider_id, scheduled_at.isoformat(),
    )
    return booking


def transition_booking(db: Session, booking: Booking, new_status: str, now: datetime) -> Booking:
    if new_status not in BOOKING_STATUSES:
        raise ValidationError('Invalid booking status.')

    if booking.status == SOFT_HOLD and not booking.is_active(now) and new_status == CONFIRMED:
        raise InvalidStateTransition('Soft hold has expired')

    if new_status not in ALLOWED_TRANSITIONS.get(booking.status, set()):
        raise InvalidStateTransition(f'Cannot move booking from {booking.status} to {new_status}')

    booking.status = new_status
    if new_status != SOFT_HOLD:
        booking.hold_expiry = None
    db.flush()
    return booking


def reschedule_booking(
    db: Session,
    booking: Booking,
    now: datetime,
    scheduled_at: datetime | None = None,
    duration_minutes: int | None = None,
) -> Booking:
    new_start = scheduled_at or booking.scheduled_at
    new_duration = _validate_duration(duration_minutes or booking.duration_minutes)

    release_expired_holds(db, now, provider_id=booking.provider_id)

    if booking.status in ACTIVE_STATUSES and find_conflicts(
        db, booking.provider_id, new_start, new_duration, now, exclude_id=booking.id
    ):
        raise BookingConflict('Time slot conflict with existing booking')

    booking.scheduled_at = new_start
    booking.duration_minutes = new_duration

    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise BookingConflict('Time slot conflict with existing booking') from exc

    return booking
