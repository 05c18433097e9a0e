"""Mark generated slots against existing bookings."""

from dataclasses import replace
from datetime import datetime
from typing import Iterable, Iterator

from trainhub.models.booking import Booking
from trainhub.services.slot_generator import Slot


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    # Strict on both sides: back-to-back intervals do not overlap.
    return start_a < end_b and end_a > start_b


def booking_conflicts(slot: Slot, booking: Booking) -> bool:
    if booking.provider_id != slot.provider_id:
        return False
    return intervals_overlap(slot.start_time, slot.end_time, booking.scheduled_at, booking.ends_at)


def mark_conflicts(slots: Iterable[Slot], bookings: Iterable[Booking], now: datetime) -> Iterator[Slot]:
    """Yield each slot with ``available`` cleared when an active booking overlaps it.

    Cancelled and completed bookings, and soft-holds past their expiry, are
    ignored.
    """
    active = [booking for booking in bookings if booking.is_active(now)]

    for slot in slots:
        if any(booking_conflicts(slot, booking) for booking in active):
            yield replace(slot, available=False)
        else:
            yield slot


def dedupe_by_start(slots: Iterable[Slot]) -> list[Slot]:
    """Collapse slots sharing a start time, keeping an available one if any."""
    by_start: dict[datetime, Slot] = {}

    for slot in slots:
        kept = by_start.get(slot.start_time)
        if kept is None or (slot.available and not kept.available):
            by_start[slot.start_time] = slot

    return [by_start[start] for start in sorted(by_start)]
