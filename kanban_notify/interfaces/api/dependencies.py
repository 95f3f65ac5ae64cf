"""FastAPI dependency utilities."""

from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from kanban_notify.application.use_cases.notifications import NotificationFanOut
from kanban_notify.domain.entities import User
from kanban_notify.infrastructure.database import get_db
from kanban_notify.infrastructure.push import PushSender
from kanban_notify.infrastructure.repositories import UserRepository
from kanban_notify.infrastructure.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_current_user(token: str, db: Session) -> User:
    """Resolve the active user identified by the ``sub`` claim of ``token``."""

    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise _unauthorized("Invalid credentials") from exc

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise _unauthorized("Invalid credentials")

    user = UserRepository(db).get(user_id)
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Return the authenticated user from the provided token."""

    return resolve_current_user(token, db)


def get_fan_out(request: Request) -> NotificationFanOut:
    return request.app.state.fan_out


def get_push_sender(request: Request) -> PushSender:
    return request.app.state.push_sender


def get_session_factory(request: Request) -> Callable[[], Session]:
    return request.app.state.session_factory
