"""User model definitions."""

from sqlalchemy import Column, Integer, String
from trainhub.database import Base

PROVIDER_ROLES = frozenset({'studio_owner', 'solo_practitioner', 'trainer'})
CLIENT_ROLE = 'client'


class User(Base):
    """Represents a studio owner, practitioner, trainer or client."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    role = Column(String)  # studio_owner/solo_practitioner/trainer/client
    studio_id = Column(Integer, nullable=True, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)

    @property
    def is_provider(self) -> bool:
        return self.role in PROVIDER_ROLES

    @property
    def studio_scope(self) -> int:
        # Solo practitioners and studio owners without a studio row scope to themselves.
        return self.studio_id or self.id

    @property
    def display_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or 'Trainer'
