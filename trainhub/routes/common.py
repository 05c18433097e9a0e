import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from trainhub.core.errors import Forbidden, NotFound, UpstreamFailure
from trainhub.database import ensure_scheduling_schema
from trainhub.models.user import User

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_schema()
    except SQLAlchemyError as exc:
        logger.exception('Schema check failed')
        raise UpstreamFailure(DATABASE_UNAVAILABLE) from exc


def get_provider(db: Session, provider_id: int) -> User:
    provider = db.query(User).filter(User.id == provider_id).first()
    if provider is None or not provider.is_provider:
        raise NotFound('Trainer not found')
    return provider


def resolve_provider(db: Session, current_user: User, provider_id: int | None) -> User:
    """The provider a request acts on: the one named, or the caller themselves."""
    if provider_id is None or provider_id == current_user.id:
        if not current_user.is_provider:
            raise Forbidden('Only trainers and practitioners can manage schedules')
        return current_user
    return get_provider(db, provider_id)


def ensure_same_studio(user: User, provider: User) -> None:
    if user.id == provider.id or user.studio_scope == provider.studio_scope:
        return
    raise Forbidden('This trainer is not part of your studio')
