"""Availability model definitions."""

from datetime import datetime, timedelta

from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, String
from trainhub.database import Base

BLOCK_TYPES = ('available', 'blocked')
RECURRENCES = ('weekly', 'once')


class AvailabilityBlock(Base):
    """A recurring weekly or one-off window a provider is open or closed."""
    __tablename__ = "ta_availability"

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    studio_id = Column(Integer, index=True)
    block_type = Column(String, nullable=False)
    recurrence = Column(String, nullable=False, default='weekly')
    day_of_week = Column(Integer, index=True)  # 0=Sun ... 6=Sat
    start_hour = Column(Integer)
    start_minute = Column(Integer, default=0)
    end_hour = Column(Integer)
    end_minute = Column(Integer, default=0)
    specific_date = Column(Date, index=True)
    end_date = Column(Date)
    reason = Column(String)
    notes = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Offsets from midnight; end_hour 24 closes the window at the following midnight.
    @property
    def start_offset(self) -> timedelta:
        return timedelta(hours=self.start_hour or 0, minutes=self.start_minute or 0)

    @property
    def end_offset(self) -> timedelta:
        return timedelta(hours=self.end_hour or 0, minutes=self.end_minute or 0)
