"""Data access for ta_availability."""

import logging
from datetime import date
from typing import Any, Iterable

from sqlalchemy.orm import Session

from trainhub.core import clock
from trainhub.core.errors import NotFound, ValidationError
from trainhub.models.availability import BLOCK_TYPES, RECURRENCES, AvailabilityBlock

logger = logging.getLogger(__name__)

# Seeded for a provider the first time their availability is read.
DEFAULT_AVAILABILITY = [
    # Monday - Friday: 6am - 8pm
    *(
        {'day_of_week': day, 'start_hour': 6, 'start_minute': 0, 'end_hour': 20, 'end_minute': 0,
         'block_type': 'available', 'recurrence': 'weekly'}
        for day in range(1, 6)
    ),
    # Saturday: 7am - 12pm
    {'day_of_week': 6, 'start_hour': 7, 'start_minute': 0, 'end_hour': 12, 'end_minute': 0,
     'block_type': 'available', 'recurrence': 'weekly'},
    # Lunch break Mon-Fri: 12pm - 1pm
    *(
        {'day_of_week': day, 'start_hour': 12, 'start_minute': 0, 'end_hour': 13, 'end_minute': 0,
         'block_type': 'blocked', 'recurrence': 'weekly', 'reason': 'break'}
        for day in range(1, 6)
    ),
]

EDITABLE_FIELDS = (
    'block_type',
    'recurrence',
    'day_of_week',
    'start_hour',
    'start_minute',
    'end_hour',
    'end_minute',
    'specific_date',
    'end_date',
    'reason',
    'notes',
)


def validate_block(block: AvailabilityBlock) -> None:
    if block.block_type not in BLOCK_TYPES:
        raise ValidationError('blockType must be one of: ' + ', '.join(BLOCK_TYPES))

    if block.recurrence not in RECURRENCES:
        raise ValidationError('recurrence must be one of: ' + ', '.join(RECURRENCES))

    if block.recurrence == 'weekly':
        if block.day_of_week is None or not 0 <= block.day_of_week <= 6:
            raise ValidationError('dayOfWeek must be between 0 (Sunday) and 6 (Saturday) for weekly blocks')
    else:
        if block.specific_date is None:
            raise ValidationError('specificDate is required for one-off blocks')
        if block.end_date is not None and block.end_date < block.specific_date:
            raise ValidationError('endDate cannot be before specificDate')

    if block.start_hour is None or block.end_hour is None:
        raise ValidationError('startHour and endHour are required')

    if not 0 <= block.start_hour <= 23:
        raise ValidationError('startHour must be between 0 and 23')
    if not 0 <= block.end_hour <= 24:
        raise ValidationError('endHour must be between 0 and 24')
    for minute in (block.start_minute or 0, block.end_minute or 0):
        if not 0 <= minute <= 59:
            raise ValidationError('Minutes must be between 0 and 59')
    if block.end_hour == 24 and block.end_minute:
        raise ValidationError('A block ending at hour 24 must end on the hour')

    if block.start_offset >= block.end_offset:
        raise ValidationError('Start time must be before end time')


def get_block(db: Session, block_id: int) -> AvailabilityBlock:
    block = db.query(AvailabilityBlock).filter(AvailabilityBlock.id == block_id).first()
    if not block:
        raise NotFound('Availability block not found')
    return block


def list_blocks(
    db: Session,
    provider_ids: Iterable[int],
    block_type: str | None = None,
    day_of_week: int | None = None,
) -> list[AvailabilityBlock]:
    provider_ids = list(provider_ids)
    if not provider_ids:
        return []

    query = db.query(AvailabilityBlock).filter(AvailabilityBlock.provider_id.in_(provider_ids))

    if block_type:
        query = query.filter(AvailabilityBlock.block_type == block_type)
    if day_of_week is not None:
        query = query.filter(AvailabilityBlock.day_of_week == day_of_week)

    return query.order_by(
        AvailabilityBlock.day_of_week.asc(),
        AvailabilityBlock.start_hour.asc(),
        AvailabilityBlock.start_minute.asc(),
        AvailabilityBlock.id.asc(),
    ).all()


def blocks_for_date(db: Session, provider_ids: Iterable[int], target_date: date) -> list[AvailabilityBlock]:
    """Weekly blocks for the weekday plus one-off blocks that may cover the date."""
    provider_ids = list(provider_ids)
    if not provider_ids:
        return []

    weekday = clock.day_of_week(target_date)
    return db.query(AvailabilityBlock).filter(
        AvailabilityBlock.provider_id.in_(provider_ids),
        (
            (AvailabilityBlock.recurrence == 'weekly') & (AvailabilityBlock.day_of_week == weekday)
        ) | (
            (AvailabilityBlock.recurrence == 'once') & (AvailabilityBlock.specific_date <= target_date)
        ),
    ).order_by(AvailabilityBlock.id.asc()).all()


def seed_default_availability(db: Session, provider_id: int, studio_id: int | None) -> list[AvailabilityBlock]:
    blocks = [
        AvailabilityBlock(provider_id=provider_id, studio_id=studio_id, **fields)
        for fields in DEFAULT_AVAILABILITY
    ]
    db.add_all(blocks)
    db.flush()
    logger.info('Seeded %d default availability blocks for provider %s', len(blocks), provider_id)
    return blocks


def create_block(db: Session, provider_id: int, studio_id: int | None, fields: dict[str, Any]) -> AvailabilityBlock:
    values = {name: fields[name] for name in EDITABLE_FIELDS if name in fields}
    values.setdefault('recurrence', 'weekly')
    values.setdefault('start_minute', 0)
    values.setdefault('end_minute', 0)

    block = AvailabilityBlock(provider_id=provider_id, studio_id=studio_id, **values)
    validate_block(block)

    db.add(block)
    db.flush()
    return block


def update_block(db: Session, block: AvailabilityBlock, changes: dict[str, Any]) -> AvailabilityBlock:
    for name in EDITABLE_FIELDS:
        if name in changes:
            setattr(block, name, changes[name])

    validate_block(block)
    db.flush()
    return block


def delete_block(db: Session, block: AvailabilityBlock) -> None:
    db.delete(block)
    db.flush()


def replace_schedule(
    db: Session,
    provider_id: int,
    studio_id: int | None,
    blocks: list[dict[str, Any]],
) -> list[AvailabilityBlock]:
    """Drop every block the provider has and write ``blocks`` in their place."""
    db.query(AvailabilityBlock).filter(AvailabilityBlock.provider_id == provider_id).delete(
        synchronize_session=False
    )

    created = [create_block(db, provider_id, studio_id, fields) for fields in blocks]
    logger.info('Replaced availability for provider %s with %d block(s)', provider_id, len(created))
    return created
