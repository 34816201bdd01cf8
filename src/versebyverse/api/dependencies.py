"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from versebyverse.core.errors import AuthenticationError
from versebyverse.core.security import sign_session_id, unsign_session_id
from versebyverse.core.settings import settings
from versebyverse.db.session import get_db
from versebyverse.models import User
from versebyverse.services.sessions import SessionStore, get_session_store

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
SessionStoreDep = Annotated[SessionStore, Depends(get_session_store)]


def get_session_id(request: Request) -> str | None:
    """Return the session id carried by the signed session cookie, if any."""
    cookie = request.cookies.get(settings.session_cookie_name)
    if not cookie:
        return None
    return unsign_session_id(cookie)


SessionIdDep = Annotated[str | None, Depends(get_session_id)]


def get_session_user_id(
    session_id: SessionIdDep,
    db: SessionDep,
    store: SessionStoreDep,
) -> int | None:
    """Resolve the session to a user id, sliding its expiry forward."""
    if not session_id:
        return None
    return store.resolve(db, session_id)


def require_session_user_id(
    user_id: Annotated[int | None, Depends(get_session_user_id)],
) -> int:
    """Reject the request with 401 unless it carries a live session."""
    if user_id is None:
        raise AuthenticationError()
    return user_id


def get_optional_user(
    user_id: Annotated[int | None, Depends(get_session_user_id)],
    db: SessionDep,
) -> User | None:
    """Return the signed-in user for routes that also serve anonymous callers."""
    if user_id is None:
        return None
    return db.get(User, user_id)


def get_current_user(
    user_id: Annotated[int, Depends(require_session_user_id)],
    db: SessionDep,
) -> User:
    """Return the signed-in user or fail with 401.

    A session whose user no longer exists is treated as no session.
    """
    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError()
    return user


SessionUserIdDep = Annotated[int, Depends(require_session_user_id)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=sign_session_id(session_id),
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
    )
