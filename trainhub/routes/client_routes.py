import logging
from datetime import date, datetime, time, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trainhub.auth.dependencies import get_current_user
from trainhub.core import clock, config
from trainhub.core.errors import Forbidden, NotFound, UpstreamFailure
from trainhub.database import get_db
from trainhub.models.user import CLIENT_ROLE, PROVIDER_ROLES, User
from trainhub.routes.common import ensure_database_ready
from trainhub.schemas.bookings import ExistingBookingResponse
from trainhub.schemas.slots import ClientAvailabilitySlot, ClientStudioAvailabilityResponse
from trainhub.services import availability_store, booking_store
from trainhub.services.slot_generator import block_applies_on

router = APIRouter(tags=['client'])
logger = logging.getLogger(__name__)


def studio_providers(db: Session, client: User) -> list[User]:
    """Trainers, practitioners and owners who share the client's studio."""
    if client.studio_id is None:
        return []

    return db.query(User).filter(
        User.role.in_(PROVIDER_ROLES),
        (User.studio_id == client.studio_id) | (User.id == client.studio_id),
    ).order_by(User.id.asc()).all()


@router.get('/studio/availability', response_model=ClientStudioAvailabilityResponse)
def get_studio_availability(
    trainer_id: int | None = Query(default=None, alias='trainerId'),
    on_date: date | None = Query(default=None, alias='date'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if current_user.role != CLIENT_ROLE:
        raise Forbidden('Only clients can browse studio availability')

    ensure_database_ready()

    try:
        providers = studio_providers(db, current_user)
        if trainer_id is not None:
            providers = [provider for provider in providers if provider.id == trainer_id]
            if not providers:
                raise NotFound('Trainer not found')

        names = {provider.id: provider.display_name for provider in providers}
        provider_ids = list(names)
        now = clock.now()

        if on_date is not None:
            blocks = [
                block for block in availability_store.blocks_for_date(db, provider_ids, on_date)
                if block.block_type == 'available' and block_applies_on(block, on_date)
            ]
            range_start = datetime.combine(on_date, time.min)
            range_end = range_start + timedelta(days=1)
        else:
            blocks = availability_store.list_blocks(db, provider_ids, block_type='available')
            range_start = now
            range_end = now + timedelta(days=config.MAX_SLOT_RANGE_DAYS)

        bookings = booking_store.active_bookings_between(db, provider_ids, range_start, range_end, now)

        return ClientStudioAvailabilityResponse(
            availability=[
                ClientAvailabilitySlot(
                    id=block.id,
                    trainer_id=block.provider_id,
                    trainer_name=names.get(block.provider_id, 'Trainer'),
                    day_of_week=block.day_of_week,
                    start_hour=block.start_hour,
                    start_minute=block.start_minute,
                    end_hour=block.end_hour,
                    end_minute=block.end_minute,
                    recurrence=block.recurrence,
                    specific_date=block.specific_date,
                )
                for block in blocks
            ],
            existing_bookings=[ExistingBookingResponse.model_validate(booking) for booking in bookings],
        )
    except SQLAlchemyError as exc:
        logger.exception('Error in client studio availability lookup')
        raise UpstreamFailure('Failed to fetch availability') from exc
