import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trainhub.auth.dependencies import get_current_user
from trainhub.core import clock, config
from trainhub.core.errors import NotFound, UpstreamFailure, ValidationError
from trainhub.database import get_db
from trainhub.models.booking import MAX_BOOKING_MINUTES
from trainhub.models.service import Service
from trainhub.models.user import User
from trainhub.routes.common import ensure_database_ready, ensure_same_studio, get_provider
from trainhub.schemas.slots import SlotResponse
from trainhub.services.slots import load_slots

router = APIRouter(tags=['slots'])
logger = logging.getLogger(__name__)


def resolve_duration(db: Session, duration_minutes: int | None, service_id: int | None) -> int:
    if duration_minutes is not None:
        return duration_minutes

    if service_id is not None:
        service = db.query(Service).filter(Service.id == service_id).first()
        if not service:
            raise NotFound('Service not found')
        return service.duration_minutes

    return config.DEFAULT_SERVICE_DURATION_MINUTES


@router.get('', response_model=list[SlotResponse])
def list_slots(
    provider_id: int = Query(..., alias='providerId'),
    start_date: date = Query(..., alias='date'),
    duration_minutes: int | None = Query(default=None, alias='durationMinutes', ge=1, le=MAX_BOOKING_MINUTES),
    service_id: int | None = Query(default=None, alias='serviceId'),
    days: int = Query(default=1, ge=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if days > config.MAX_SLOT_RANGE_DAYS:
        raise ValidationError(f'days must be {config.MAX_SLOT_RANGE_DAYS} or fewer')

    ensure_database_ready()

    try:
        provider = get_provider(db, provider_id)
        ensure_same_studio(current_user, provider)

        duration = resolve_duration(db, duration_minutes, service_id)
        slots = load_slots(db, [provider.id], start_date, days, duration, clock.now())

        return [SlotResponse.model_validate(slot) for slot in slots]
    except SQLAlchemyError as exc:
        logger.exception('Error computing slots for provider %s', provider_id)
        raise UpstreamFailure('Failed to compute slots') from exc
