import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trainhub.auth.dependencies import ensure_can_manage, ensure_can_view, require_provider
from trainhub.core import config
from trainhub.core.errors import TrainhubError, UpstreamFailure
from trainhub.database import get_db
from trainhub.models.user import User
from trainhub.routes.common import ensure_database_ready, resolve_provider
from trainhub.schemas.availability import (
    AvailabilityBlockResponse,
    AvailabilityEnvelope,
    AvailabilityListEnvelope,
    CreateAvailabilityRequest,
    ReplaceScheduleRequest,
    UpdateAvailabilityRequest,
)
from trainhub.schemas.common import SuccessResponse
from trainhub.services import availability_store

router = APIRouter(tags=['availability'])
logger = logging.getLogger(__name__)


def _envelope(blocks) -> AvailabilityListEnvelope:
    return AvailabilityListEnvelope(
        availability=[AvailabilityBlockResponse.model_validate(block) for block in blocks]
    )


@router.get('', response_model=AvailabilityListEnvelope)
def list_availability(
    trainer_id: int | None = Query(default=None, alias='trainerId'),
    block_type: str | None = Query(default=None, alias='blockType'),
    current_user: User = Depends(require_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        provider = resolve_provider(db, current_user, trainer_id)
        ensure_can_view(current_user, provider.id, provider.studio_scope)

        blocks = availability_store.list_blocks(db, [provider.id], block_type=block_type)

        if not blocks and config.SEED_DEFAULT_AVAILABILITY and provider.id == current_user.id:
            if not availability_store.list_blocks(db, [provider.id]):
                availability_store.seed_default_availability(db, provider.id, provider.studio_scope)
                db.commit()
                blocks = availability_store.list_blocks(db, [provider.id], block_type=block_type)

        return _envelope(blocks)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error fetching availability')
        raise UpstreamFailure('Failed to fetch availability') from exc


@router.post('', response_model=AvailabilityEnvelope, status_code=status.HTTP_201_CREATED)
def create_availability_block(
    data: CreateAvailabilityRequest,
    current_user: User = Depends(require_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        provider = resolve_provider(db, current_user, data.trainer_id)
        ensure_can_manage(current_user, provider.id, provider.studio_scope)

        block = availability_store.create_block(
            db,
            provider.id,
            provider.studio_scope,
            data.model_dump(exclude_unset=True, exclude={'trainer_id'}),
        )
        db.commit()
        db.refresh(block)

        return AvailabilityEnvelope(availability=AvailabilityBlockResponse.model_validate(block))
    except TrainhubError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error creating availability block')
        raise UpstreamFailure('Failed to create availability block') from exc


@router.put('', response_model=AvailabilityEnvelope)
def update_availability_block(
    data: UpdateAvailabilityRequest,
    current_user: User = Depends(require_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        block = availability_store.get_block(db, data.id)
        ensure_can_manage(current_user, block.provider_id, block.studio_id)

        availability_store.update_block(db, block, data.model_dump(exclude_unset=True, exclude={'id'}))
        db.commit()
        db.refresh(block)

        return AvailabilityEnvelope(availability=AvailabilityBlockResponse.model_validate(block))
    except TrainhubError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error updating availability block %s', data.id)
        raise UpstreamFailure('Failed to update availability block') from exc


@router.put('/schedule', response_model=AvailabilityListEnvelope)
def replace_availability_schedule(
    data: ReplaceScheduleRequest,
    current_user: User = Depends(require_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        provider = resolve_provider(db, current_user, data.trainer_id)
        ensure_can_manage(current_user, provider.id, provider.studio_scope)

        blocks = availability_store.replace_schedule(
            db,
            provider.id,
            provider.studio_scope,
            [block.model_dump(exclude_unset=True, exclude={'trainer_id'}) for block in data.blocks],
        )
        db.commit()
        for block in blocks:
            db.refresh(block)

        return _envelope(blocks)
    except TrainhubError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error replacing availability schedule')
        raise UpstreamFailure('Failed to save availability') from exc


@router.delete('', response_model=SuccessResponse)
def delete_availability_block(
    block_id: int = Query(..., alias='id'),
    current_user: User = Depends(require_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        block = availability_store.get_block(db, block_id)
        ensure_can_manage(current_user, block.provider_id, block.studio_id)

        availability_store.delete_block(db, block)
        db.commit()

        return SuccessResponse()
    except TrainhubError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error deleting availability block %s', block_id)
        raise UpstreamFailure('Failed to delete availability block') from exc
