import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from trainhub.auth import jwt_handler
from trainhub.core import config
from trainhub.core.errors import Forbidden, Unauthorized
from trainhub.database import get_db
from trainhub.models.user import User

security = HTTPBearer(auto_error=False)


def _token_from_request(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(config.SESSION_COOKIE_NAME)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = _token_from_request(request, credentials)
    if not token:
        raise Unauthorized("Unauthorized")

    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise Unauthorized("Invalid token") from exc

    email = payload.get("sub")
    if not email:
        raise Unauthorized("Invalid token subject")

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise Unauthorized("User not found")
    return user


def require_provider(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_provider:
        raise Forbidden("Only trainers and practitioners can manage schedules")
    return current_user


def ensure_can_view(user: User, provider_id: int | None, studio_id: int | None) -> None:
    if user.id == provider_id:
        return
    if user.is_provider and studio_id is not None and user.studio_scope == studio_id:
        return
    raise Forbidden("You do not have access to this calendar")


def ensure_can_manage(user: User, provider_id: int | None, studio_id: int | None) -> None:
    """Providers manage their own calendar; studio owners manage every calendar in their studio."""
    if user.id == provider_id:
        return
    if user.role == "studio_owner" and studio_id is not None and user.studio_scope == studio_id:
        return
    raise Forbidden("You do not have access to this calendar")
