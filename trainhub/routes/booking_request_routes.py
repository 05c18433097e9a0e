import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trainhub.auth.dependencies import ensure_can_manage, get_current_user, require_provider
from trainhub.core import clock
from trainhub.core.errors import Forbidden, NotFound, TrainhubError, UpstreamFailure, ValidationError
from trainhub.database import get_db
from trainhub.models.booking_request import REQUEST_STATUSES, BookingRequest
from trainhub.models.service import Service
from trainhub.models.user import User
from trainhub.routes.common import ensure_database_ready, ensure_same_studio, get_provider, resolve_provider
from trainhub.schemas.booking_requests import (
    BookingRequestEnvelope,
    BookingRequestListEnvelope,
    BookingRequestResponse,
    CreateBookingRequestBody,
    UpdateBookingRequestBody,
)
from trainhub.schemas.bookings import BookingResponse
from trainhub.schemas.common import SuccessResponse
from trainhub.services import booking_requests

router = APIRouter(tags=['booking-requests'])
logger = logging.getLogger(__name__)


def to_response(request: BookingRequest, now: datetime) -> BookingRequestResponse:
    response = BookingRequestResponse.model_validate(request)
    return response.model_copy(update={'status': request.effective_status(now)})


@router.get('', response_model=BookingRequestListEnvelope)
def list_booking_requests(
    request_status: str | None = Query(default=None, alias='status'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if request_status is not None and request_status not in REQUEST_STATUSES:
        raise ValidationError('status must be one of: ' + ', '.join(REQUEST_STATUSES))

    ensure_database_ready()

    try:
        now = clock.now()
        requests = booking_requests.list_requests(
            db,
            provider_id=current_user.id,
            studio_id=current_user.studio_scope,
            now=now,
            status=request_status,
            client_id=None if current_user.is_provider else current_user.id,
        )

        return BookingRequestListEnvelope(requests=[to_response(request, now) for request in requests])
    except SQLAlchemyError as exc:
        logger.exception('Error fetching booking requests')
        raise UpstreamFailure('Failed to fetch booking requests') from exc


@router.post('', response_model=BookingRequestEnvelope, status_code=status.HTTP_201_CREATED)
def create_booking_request(
    data: CreateBookingRequestBody,
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
            if data.client_id is not None and data.client_id != current_user.id:
                raise Forbidden('Clients can only request bookings for themselves')
            if data.trainer_id is None:
                raise ValidationError('trainerId is required')
            provider = get_provider(db, data.trainer_id)
            ensure_same_studio(current_user, provider)
            client_id = current_user.id

        if data.service_id is not None:
            if not db.query(Service).filter(Service.id == data.service_id).first():
                raise NotFound('Service not found')

        now = clock.now()
        request = booking_requests.create_request(
            db,
            provider_id=provider.id,
            studio_id=provider.studio_scope,
            client_id=client_id,
            service_id=data.service_id,
            preferred_times=data.preferred_times,
            notes=data.notes,
            expires_at=data.expires_at,
            now=now,
        )
        db.commit()
        db.refresh(request)

        return BookingRequestEnvelope(request=to_response(request, now))
    except TrainhubError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error creating booking request')
        raise UpstreamFailure('Failed to create booking request') from exc


@router.put('', response_model=BookingRequestEnvelope)
def update_booking_request(
    data: UpdateBookingRequestBody,
    current_user: User = Depends(require_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        existing = booking_requests.get_request(db, data.id)
        ensure_can_manage(current_user, existing.provider_id, existing.studio_id)

        now = clock.now()
        if data.status == 'accepted':
            request, booking = booking_requests.accept_request(db, data.id, data.accepted_time, now)
            return BookingRequestEnvelope(
                request=to_response(request, now),
                booking=BookingResponse.model_validate(booking),
            )

        request = booking_requests.decline_request(db, data.id, now)
        return BookingRequestEnvelope(request=to_response(request, now))
    except TrainhubError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error updating booking request %s', data.id)
        raise UpstreamFailure('Failed to update booking request') from exc


@router.delete('', response_model=SuccessResponse)
def delete_booking_request(
    request_id: int = Query(..., alias='id'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        existing = booking_requests.get_request(db, request_id)
        if current_user.is_provider:
            ensure_can_manage(current_user, existing.provider_id, existing.studio_id)
        elif existing.client_id != current_user.id:
            raise Forbidden('You do not have access to this booking request')

        booking_requests.delete_request(db, request_id)
        return SuccessResponse()
    except TrainhubError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error deleting booking request %s', request_id)
        raise UpstreamFailure('Failed to delete booking request') from exc
