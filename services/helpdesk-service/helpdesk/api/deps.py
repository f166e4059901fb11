from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from helpdesk.core.db import get_db
from helpdesk.core.errors import AuthenticationError, AuthorizationError
from helpdesk.core.security import decode_token
from helpdesk.models.user import User, UserRole
from helpdesk.services.category_service import CategoryService
from helpdesk.services.stats_service import StatsService
from helpdesk.services.ticket_service import TicketService
from helpdesk.services.user_service import UserService


_http_bearer = HTTPBearer(auto_error=False)


def get_current_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_http_bearer),
) -> User:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise AuthenticationError()

    try:
        payload = decode_token(credentials.credentials)
    except ValueError:
        raise AuthenticationError()

    subject = payload.get("sub")
    if not subject or not str(subject).isdigit():
        raise AuthenticationError("Invalid token payload")

    user = db.get(User, int(subject))
    if not user:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")
    return user


def require_roles(*roles: str):
    """Dependency factory admitting only the given roles."""

    def _check(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise AuthorizationError(f"User role {user.role} is not authorized to access this route")
        return user

    return _check


require_admin = require_roles(UserRole.ADMIN)


def get_ticket_service(db: Session = Depends(get_db)) -> TicketService:
    return TicketService(db)


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    return CategoryService(db)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_stats_service(db: Session = Depends(get_db)) -> StatsService:
    return StatsService(db)
