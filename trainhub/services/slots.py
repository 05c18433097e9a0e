"""Bookable slots: generation, conflict marking and dedupe wired to the stores."""

from datetime import date, datetime, time, timedelta
from typing import Iterable

from sqlalchemy.orm import Session

from trainhub.models.availability import AvailabilityBlock
from trainhub.models.booking import Booking
from trainhub.services import availability_store, booking_store
from trainhub.services.conflict_filter import dedupe_by_start, mark_conflicts
from trainhub.services.slot_generator import Slot, generate_slots, iterate_dates


def compute_day_slots(
    blocks: Iterable[AvailabilityBlock],
    bookings: Iterable[Booking],
    target_date: date,
    duration_minutes: int,
    now: datetime,
) -> list[Slot]:
    candidates = generate_slots(blocks, target_date, duration_minutes, now=now)
    return dedupe_by_start(mark_conflicts(candidates, bookings, now))


def load_slots(
    db: Session,
    provider_ids: list[int],
    start_date: date,
    days: int,
    duration_minutes: int,
    now: datetime,
) -> list[Slot]:
    slots: list[Slot] = []

    for target_date in iterate_dates(start_date, days):
        blocks = availability_store.blocks_for_date(db, provider_ids, target_date)
        if not blocks:
            continue

        day_start = datetime.combine(target_date, time.min)
        bookings = booking_store.active_bookings_between(
            db, provider_ids, day_start, day_start + timedelta(days=1), now
        )
        slots.extend(compute_day_slots(blocks, bookings, target_date, duration_minutes, now))

    return slots
