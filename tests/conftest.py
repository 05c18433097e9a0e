import os
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from trainhub.core import clock  # noqa: E402
from trainhub.database import Base  # noqa: E402
from trainhub.models import availability, booking, booking_request, service, user  # noqa: E402,F401
from trainhub.models.availability import AvailabilityBlock  # noqa: E402
from trainhub.models.user import User  # noqa: E402

# Thursday; 2026-01-05 is the following Monday.
FIXED_NOW = datetime(2026, 1, 1, 8, 0)


@pytest.fixture
def db():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def frozen_now(monkeypatch: pytest.MonkeyPatch) -> datetime:
    monkeypatch.setattr(clock, 'now', lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture
def make_user(db):
    def _make_user(email: str, role: str = 'trainer', studio_id: int | None = None, **fields) -> User:
        created = User(email=email, role=role, studio_id=studio_id, **fields)
        db.add(created)
        db.commit()
        db.refresh(created)
        return created

    return _make_user


@pytest.fixture
def make_block(db):
    def _make_block(provider: User, **fields) -> AvailabilityBlock:
        values = {
            'block_type': 'available',
            'recurrence': 'weekly',
            'start_minute': 0,
            'end_minute': 0,
        }
        values.update(fields)
        block = AvailabilityBlock(provider_id=provider.id, studio_id=provider.studio_scope, **values)
        db.add(block)
        db.commit()
        db.refresh(block)
        return block

    return _make_block
