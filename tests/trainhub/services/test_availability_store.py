from datetime import date, timedelta

import pytest

from trainhub.core.errors import NotFound, ValidationError
from trainhub.services import availability_store


@pytest.fixture
def trainer(make_user):
    return make_user('trainer@example.com', role='trainer', studio_id=3)


def test_create_block_applies_defaults(db, trainer) -> None:
    block = availability_store.create_block(
        db, trainer.id, trainer.studio_scope,
        {'block_type': 'available', 'day_of_week': 1, 'start_hour': 9, 'end_hour': 12},
    )
    db.commit()

    stored = availability_store.get_block(db, block.id)
    assert stored.recurrence == 'weekly'
    assert (stored.start_minute, stored.end_minute) == (0, 0)
    assert stored.studio_id == 3


@pytest.mark.parametrize(
    'fields',
    [
        {'block_type': 'open', 'day_of_week': 1, 'start_hour': 9, 'end_hour': 12},
        {'block_type': 'available', 'recurrence': 'monthly', 'day_of_week': 1, 'start_hour': 9, 'end_hour': 12},
        {'block_type': 'available', 'start_hour': 9, 'end_hour': 12},
        {'block_type': 'available', 'day_of_week': 7, 'start_hour': 9, 'end_hour': 12},
        {'block_type': 'available', 'day_of_week': 1, 'start_hour': 12, 'end_hour': 9},
        {'block_type': 'available', 'day_of_week': 1, 'start_hour': 9, 'end_hour': 9},
        {'block_type': 'available', 'day_of_week': 1, 'start_hour': 9, 'start_minute': 60, 'end_hour': 12},
        {'block_type': 'available', 'recurrence': 'once', 'start_hour': 9, 'end_hour': 12},
        {
            'block_type': 'available', 'recurrence': 'once', 'specific_date': date(2026, 1, 9),
            'end_date': date(2026, 1, 8), 'start_hour': 9, 'end_hour': 12,
        },
    ],
)
def test_invalid_blocks_are_rejected(db, trainer, fields) -> None:
    with pytest.raises(ValidationError):
        availability_store.create_block(db, trainer.id, trainer.studio_scope, fields)


def test_update_block_revalidates(db, trainer, make_block) -> None:
    block = make_block(trainer, day_of_week=2, start_hour=9, end_hour=11)

    availability_store.update_block(db, block, {'end_hour': 13, 'notes': 'extended'})
    assert block.end_offset == timedelta(hours=13)

    with pytest.raises(ValidationError):
        availability_store.update_block(db, block, {'start_hour': 14})


def test_blocks_for_date_returns_weekday_and_one_off_candidates(db, trainer, make_block) -> None:
    monday = make_block(trainer, day_of_week=1, start_hour=9, end_hour=12)
    make_block(trainer, day_of_week=2, start_hour=9, end_hour=12)
    one_off = make_block(trainer, recurrence='once', specific_date=date(2026, 1, 5), start_hour=18, end_hour=19)
    make_block(trainer, recurrence='once', specific_date=date(2026, 1, 12), start_hour=18, end_hour=19)

    found = availability_store.blocks_for_date(db, [trainer.id], date(2026, 1, 5))

    assert {block.id for block in found} == {monday.id, one_off.id}


def test_replace_schedule_swaps_every_block(db, trainer, make_block) -> None:
    make_block(trainer, day_of_week=1, start_hour=9, end_hour=12)
    make_block(trainer, day_of_week=3, start_hour=9, end_hour=12)

    created = availability_store.replace_schedule(
        db, trainer.id, trainer.studio_scope,
        [{'block_type': 'available', 'day_of_week': 5, 'start_hour': 6, 'end_hour': 10}],
    )
    db.commit()

    remaining = availability_store.list_blocks(db, [trainer.id])
    assert [block.id for block in remaining] == [created[0].id]
    assert remaining[0].day_of_week == 5


def test_seed_default_availability(db, trainer) -> None:
    availability_store.seed_default_availability(db, trainer.id, trainer.studio_scope)
    db.commit()

    blocks = availability_store.list_blocks(db, [trainer.id])
    available = [block for block in blocks if block.block_type == 'available']
    blocked = [block for block in blocks if block.block_type == 'blocked']

    assert sorted(block.day_of_week for block in available) == [1, 2, 3, 4, 5, 6]
    assert sorted(block.day_of_week for block in blocked) == [1, 2, 3, 4, 5]
    assert all(block.reason == 'break' for block in blocked)


def test_list_blocks_filters_by_type(db, trainer, make_block) -> None:
    make_block(trainer, day_of_week=1, start_hour=9, end_hour=12)
    make_block(trainer, day_of_week=1, start_hour=10, end_hour=11, block_type='blocked')

    blocked = availability_store.list_blocks(db, [trainer.id], block_type='blocked')

    assert [block.start_hour for block in blocked] == [10]
    assert availability_store.list_blocks(db, []) == []


def test_delete_block(db, trainer, make_block) -> None:
    block = make_block(trainer, day_of_week=1, start_hour=9, end_hour=12)

    availability_store.delete_block(db, block)
    db.commit()

    with pytest.raises(NotFound):
        availability_store.get_block(db, block.id)


def test_block_may_end_at_midnight(db, trainer) -> None:
    block = availability_store.create_block(
        db, trainer.id, trainer.studio_scope,
        {'block_type': 'available', 'day_of_week': 5, 'start_hour': 22, 'end_hour': 24},
    )

    assert block.end_offset == timedelta(hours=24)

    with pytest.raises(ValidationError):
        availability_store.create_block(
            db, trainer.id, trainer.studio_scope,
            {'block_type': 'available', 'day_of_week': 5, 'start_hour': 22, 'end_hour': 24, 'end_minute': 30},
        )
    with pytest.raises(ValidationError):
        availability_store.create_block(
            db, trainer.id, trainer.studio_scope,
            {'block_type': 'available', 'day_of_week': 5, 'start_hour': 24, 'end_hour': 24},
        )
