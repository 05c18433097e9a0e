"""Booking request model definitions."""

from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, ForeignKey, JSON, String
from trainhub.database import Base

PENDING = 'pending'
ACCEPTED = 'accepted'
DECLINED = 'declined'
EXPIRED = 'expired'
REQUEST_STATUSES = (PENDING, ACCEPTED, DECLINED, EXPIRED)


class BookingRequest(Base):
    """A client's proposal of preferred times awaiting a provider's answer."""
    __tablename__ = "ta_booking_requests"

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, ForeignKey("users.id"), index=True)
    studio_id = Column(Integer, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("ta_services.id"), nullable=True)
    preferred_times = Column(JSON, nullable=False)  # ISO timestamps
    notes = Column(String)
    status = Column(String, nullable=False, default=PENDING, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    accepted_time = Column(DateTime, nullable=True)
    booking_id = Column(Integer, ForeignKey("ta_bookings.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def effective_status(self, now: datetime) -> str:
        if self.status == PENDING and now > self.expires_at:
            return EXPIRED
        return self.status
