"""Account and session endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from versebyverse.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    SignupRequest,
    UserEnvelope,
    UserResponse,
)
from versebyverse.schemas.common import OkResponse
from versebyverse.services import user_service

from ..dependencies import (
    CurrentUserDep,
    SessionDep,
    SessionIdDep,
    SessionStoreDep,
    SessionUserIdDep,
    clear_session_cookie,
    set_session_cookie,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest, db: SessionDep) -> UserEnvelope:
    """Create an account. The caller still has to log in afterwards."""
    user = user_service.create_user(db, payload)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.post("/login", response_model=UserEnvelope)
async def login(
    payload: LoginRequest,
    response: Response,
    db: SessionDep,
    store: SessionStoreDep,
) -> UserEnvelope:
    """Verify credentials, open a session and set the session cookie."""
    user = user_service.authenticate(db, payload)
    session_id = store.create(db, user.id)
    set_session_cookie(response, session_id)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserEnvelope)
async def me(user_id: SessionUserIdDep, db: SessionDep) -> UserEnvelope:
    user = user_service.require_user(db, user_id)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.post("/logout", response_model=OkResponse)
async def logout(
    response: Response,
    session_id: SessionIdDep,
    db: SessionDep,
    store: SessionStoreDep,
) -> OkResponse:
    if session_id:
        store.destroy(db, session_id)
    clear_session_cookie(response)
    return OkResponse()


@router.post("/change-password", response_model=OkResponse)
async def change_password(
    payload: ChangePasswordRequest,
    response: Response,
    current_user: CurrentUserDep,
    session_id: SessionIdDep,
    db: SessionDep,
    store: SessionStoreDep,
) -> OkResponse:
    """Replace the caller's password and end the current session."""
    user_service.change_password(db, current_user, payload)
    if session_id:
        store.destroy(db, session_id)
    clear_session_cookie(response)
    return OkResponse()
