"""Booking request lifecycle.

A request moves one way only: ``pending`` to ``accepted``, ``declined`` or
``expired``. Expiry is evaluated lazily from ``expires_at``; the stored row
keeps reading ``pending`` until a write observes the lapse and persists it.

Accepting creates exactly one confirmed booking. The booking insert and the
request update share a transaction, so a failed insert leaves the request
pending.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable

from sqlalchemy.orm import Session

from trainhub.core import clock, config
from trainhub.core.errors import InvalidStateTransition, NotFound, TrainhubError, ValidationError
from trainhub.models.booking import CONFIRMED, Booking
from trainhub.models.booking_request import ACCEPTED, DECLINED, EXPIRED, PENDING, BookingRequest
from trainhub.models.service import Service
from trainhub.services import booking_store

logger = logging.getLogger(__name__)


def _normalize_times(times: Iterable[datetime]) -> list[str]:
    return [clock.to_wall_clock(value).isoformat() for value in times]


def preferred_datetimes(request: BookingRequest) -> list[datetime]:
    return [datetime.fromisoformat(value) for value in request.preferred_times or []]


def get_request(db: Session, request_id: int, for_update: bool = False) -> BookingRequest:
    query = db.query(BookingRequest).filter(BookingRequest.id == request_id)
    if for_update:
        query = query.with_for_update()

    request = query.first()
    if not request:
        raise NotFound('Booking request not found')
    return request


def list_requests(
    db: Session,
    provider_id: int,
    studio_id: int,
    now: datetime,
    status: str | None = None,
    client_id: int | None = None,
) -> list[BookingRequest]:
    """Requests visible to a provider, filtered on their effective status."""
    query = db.query(BookingRequest)
    if client_id is not None:
        query = query.filter(BookingRequest.client_id == client_id)
    else:
        query = query.filter(
            (BookingRequest.provider_id == provider_id) | (BookingRequest.studio_id == studio_id)
        )

    if status in (PENDING, EXPIRED):
        # Lapsed pending rows read as expired, so both filters need the raw pending rows.
        query = query.filter(BookingRequest.status.in_((PENDING, EXPIRED)))
    elif status:
        query = query.filter(BookingRequest.status == status)

    requests = query.order_by(BookingRequest.created_at.desc(), BookingRequest.id.desc()).all()

    if status:
        requests = [request for request in requests if request.effective_status(now) == status]
    return requests


def create_request(
    db: Session,
    *,
    provider_id: int,
    studio_id: int | None,
    client_id: int | None,
    preferred_times: list[datetime] | None,
    now: datetime,
    service_id: int | None = None,
    notes: str | None = None,
    expires_at: datetime | None = None,
) -> BookingRequest:
    if not client_id:
        raise ValidationError('clientId is required')
    if not preferred_times:
        raise ValidationError('preferredTimes is required')

    if expires_at is None:
        expires_at = now + timedelta(hours=config.BOOKING_REQUEST_TTL_HOURS)

    request = BookingRequest(
        provider_id=provider_id,
        studio_id=studio_id,
        client_id=client_id,
        service_id=service_id,
        preferred_times=_normalize_times(preferred_times),
        notes=notes,
        status=PENDING,
        expires_at=clock.to_wall_clock(expires_at),
    )
    db.add(request)
    db.flush()

    logger.info('Booking request %s created for provider %s by client %s', request.id, provider_id, client_id)
    return request


def _ensure_pending(db: Session, request: BookingRequest, now: datetime) -> None:
    effective = request.effective_status(now)

    if effective == EXPIRED and request.status == PENDING:
        request.status = EXPIRED
        db.commit()
        logger.info('Booking request %s expired at %s', request.id, request.expires_at.isoformat())

    if effective != PENDING:
        raise InvalidStateTransition(f'Booking request is already {effective}')


def _session_duration(db: Session, request: BookingRequest) -> int:
    if request.service_id is not None:
        service = db.query(Service).filter(Service.id == request.service_id).first()
        if service and service.duration_minutes:
            return service.duration_minutes
    return config.DEFAULT_SERVICE_DURATION_MINUTES


def accept_request(
    db: Session,
    request_id: int,
    chosen_time: datetime | None,
    now: datetime,
    require_preferred_time: bool | None = None,
) -> tuple[BookingRequest, Booking]:
    if chosen_time is None:
        raise ValidationError('acceptedTime is required when accepting a request')

    if require_preferred_time is None:
        require_preferred_time = config.REQUIRE_PREFERRED_TIME_ON_ACCEPT

    request = get_request(db, request_id, for_update=True)
    _ensure_pending(db, request, now)

    chosen_time = clock.to_wall_clock(chosen_time)
    if require_preferred_time and chosen_time not in preferred_datetimes(request):
        raise ValidationError('acceptedTime must be one of the preferred times')

    try:
        booking = booking_store.create_booking(
            db,
            provider_id=request.provider_id,
            studio_id=request.studio_id,
            client_id=request.client_id,
            service_id=request.service_id,
            scheduled_at=chosen_time,
            duration_minutes=_session_duration(db, request),
            status=CONFIRMED,
            notes=request.notes,
            booking_request_id=request.id,
            now=now,
        )

        request.status = ACCEPTED
        request.accepted_time = chosen_time
        request.booking_id = booking.id
        db.commit()
    except TrainhubError:
        db.rollback()
        raise

    db.refresh(request)
    db.refresh(booking)
    logger.info('Booking request %s accepted as booking %s', request.id, booking.id)
    return request, booking


def decline_request(db: Session, request_id: int, now: datetime) -> BookingRequest:
    request = get_request(db, request_id, for_update=True)
    _ensure_pending(db, request, now)

    request.status = DECLINED
    db.commit()
    db.refresh(request)

    logger.info('Booking request %s declined', request.id)
    return request


def delete_request(db: Session, request_id: int) -> None:
    request = get_request(db, request_id)
    db.delete(request)
    db.commit()
    logger.info('Booking request %s deleted', request_id)
