from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from trainhub.core import config


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(config.DATABASE_URL, connect_args=_connect_args(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_schema_checked: set[str] = set()

# Columns added after the first release. Older databases get them on startup.
_MIGRATION_STEPS = {
    'ta_availability': [
        ('end_date', 'ALTER TABLE ta_availability ADD COLUMN end_date DATE'),
        ('reason', 'ALTER TABLE ta_availability ADD COLUMN reason VARCHAR'),
        ('notes', 'ALTER TABLE ta_availability ADD COLUMN notes VARCHAR'),
    ],
    'ta_bookings': [
        ('hold_expiry', 'ALTER TABLE ta_bookings ADD COLUMN hold_expiry TIMESTAMP'),
        ('booking_request_id', 'ALTER TABLE ta_bookings ADD COLUMN booking_request_id INTEGER'),
        ('notes', 'ALTER TABLE ta_bookings ADD COLUMN notes VARCHAR'),
    ],
    'ta_booking_requests': [
        ('notes', 'ALTER TABLE ta_booking_requests ADD COLUMN notes VARCHAR'),
    ],
}


def _ensure_table_columns(table_name: str) -> None:
    if table_name in _schema_checked:
        return

    with _schema_lock:
        if table_name in _schema_checked:
            return

        inspector = inspect(engine)

        if table_name not in inspector.get_table_names():
            _schema_checked.add(table_name)
            return

        existing_columns = {column['name'] for column in inspector.get_columns(table_name)}

        with engine.begin() as connection:
            for column_name, statement in _MIGRATION_STEPS[table_name]:
                if column_name not in existing_columns:
                    connection.execute(text(statement))

        _schema_checked.add(table_name)


def ensure_scheduling_schema() -> None:
    for table_name in _MIGRATION_STEPS:
        _ensure_table_columns(table_name)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
