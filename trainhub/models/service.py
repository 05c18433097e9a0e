"""Service model definitions."""

from sqlalchemy import Column, Integer, ForeignKey, String
from trainhub.database import Base


class Service(Base):
    """A bookable offering with a fixed session length."""
    __tablename__ = "ta_services"

    id = Column(Integer, primary_key=True)
    provider_id = Column(Integer, ForeignKey("users.id"), index=True)
    studio_id = Column(Integer, index=True)
    name = Column(String, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
