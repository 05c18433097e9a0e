"""Expand provider availability into candidate appointment slots.

Weekly blocks apply on their ``day_of_week`` (0 = Sunday); one-off blocks
apply on ``specific_date`` through ``end_date`` when a range is given. Each
``available`` block is walked from its start in fixed increments, and a step
is emitted only while ``step + duration`` still fits inside the block.
``blocked`` blocks for the same provider knock out any candidate they overlap.

The result is a generator: nothing is cached between calls, so calling it
twice with the same inputs yields the same slots.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator

from trainhub.core import clock, config
from trainhub.core.errors import ValidationError
from trainhub.models.availability import AvailabilityBlock


@dataclass(frozen=True)
class Slot:
    provider_id: int
    start_time: datetime
    end_time: datetime
    available: bool = True


def block_applies_on(block: AvailabilityBlock, target_date: date) -> bool:
    if block.recurrence == 'once':
        if block.specific_date is None:
            return False
        last_date = block.end_date or block.specific_date
        return block.specific_date <= target_date <= last_date

    return block.day_of_week == clock.day_of_week(target_date)


def block_window(block: AvailabilityBlock, target_date: date) -> tuple[datetime, datetime]:
    midnight = datetime.combine(target_date, time.min)
    return midnight + block.start_offset, midnight + block.end_offset


def _blocked_windows(blocks: list[AvailabilityBlock], target_date: date) -> dict[int, list[tuple[datetime, datetime]]]:
    windows: dict[int, list[tuple[datetime, datetime]]] = {}
    if not config.HONOR_BLOCKED_WINDOWS:
        return windows

    for block in blocks:
        if block.block_type == 'blocked' and block_applies_on(block, target_date):
            windows.setdefault(block.provider_id, []).append(block_window(block, target_date))
    return windows


def generate_slots(
    blocks: Iterable[AvailabilityBlock],
    target_date: date,
    duration_minutes: int,
    now: datetime | None = None,
    increment_minutes: int | None = None,
) -> Iterator[Slot]:
    """Yield candidate slots for ``target_date``, block by block in start order.

    Slots that start at or before ``now`` are dropped, so for today only
    future start times survive.
    """
    if duration_minutes <= 0:
        raise ValidationError('durationMinutes must be greater than zero')

    increment = increment_minutes or config.SLOT_INCREMENT_MINUTES
    now = now or clock.now()
    blocks = list(blocks)

    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=increment)
    blocked = _blocked_windows(blocks, target_date)

    available_blocks = sorted(
        (
            block for block in blocks
            if block.block_type == 'available' and block_applies_on(block, target_date)
        ),
        key=lambda block: (block.start_offset, block.provider_id),
    )

    for block in available_blocks:
        window_start, window_end = block_window(block, target_date)
        provider_blocked = blocked.get(block.provider_id, [])
        current = window_start

        while current + duration <= window_end:
            slot_end = current + duration
            is_past = current <= now
            is_blocked = any(
                current < blocked_end and slot_end > blocked_start
                for blocked_start, blocked_end in provider_blocked
            )

            if not is_past and not is_blocked:
                yield Slot(provider_id=block.provider_id, start_time=current, end_time=slot_end)

            current += step


def iterate_dates(start_date: date, days: int) -> Iterator[date]:
    for offset in range(days):
        yield start_date + timedelta(days=offset)
