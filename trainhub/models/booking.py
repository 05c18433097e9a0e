"""Booking model definitions."""

from datetime import datetime, timedelta

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Index, String, text
from trainhub.database import Base

SOFT_HOLD = 'soft-hold'
CONFIRMED = 'confirmed'
COMPLETED = 'completed'
CANCELLED = 'cancelled'
BOOKING_STATUSES = (SOFT_HOLD, CONFIRMED, COMPLETED, CANCELLED)
ACTIVE_STATUSES = (SOFT_HOLD, CONFIRMED)

# No session runs longer than a day.
MAX_BOOKING_MINUTES = 24 * 60

_ACTIVE_WHERE = text("status IN ('soft-hold', 'confirmed')")


class Booking(Base):
    """Represents a scheduled session between a provider and a client."""
    __tablename__ = "ta_bookings"
    __table_args__ = (
        Index('idx_bookings_provider_scheduled', 'provider_id', 'scheduled_at'),
        Index(
            'uq_bookings_active_provider_start',
            'provider_id',
            'scheduled_at',
            unique=True,
            sqlite_where=_ACTIVE_WHERE,
            postgresql_where=_ACTIVE_WHERE,
        ),
    )

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    studio_id = Column(Integer, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), index=True)
    service_id = Column(Integer, ForeignKey("ta_services.id"), nullable=True)
    # Set when the booking was materialized from an accepted request.
    booking_request_id = Column(Integer, unique=True, nullable=True)
    scheduled_at = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default=CONFIRMED, index=True)
    hold_expiry = Column(DateTime, nullable=True)
    notes = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def ends_at(self) -> datetime:
        return self.scheduled_at + timedelta(minutes=self.duration_minutes)

    def is_active(self, now: datetime) -> bool:
        if self.status == CONFIRMED:
            return True
        if self.status == SOFT_HOLD:
            return self.hold_expiry is None or self.hold_expiry > now
        return False
