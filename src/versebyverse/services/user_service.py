"""Account lifecycle helpers: signup, credential checks and password changes."""
from __future__ import annotations

import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from versebyverse.core import security
from versebyverse.core.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from versebyverse.core.settings import settings
from versebyverse.models import User
from versebyverse.schemas.auth import ChangePasswordRequest, LoginRequest, SignupRequest

__all__ = [
    "get_user",
    "create_user",
    "authenticate",
    "change_password",
    "require_user",
]

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User | None:
    """Return a single user by primary key."""
    return db.query(User).filter(User.id == user_id).first()


def create_user(db: Session, payload: SignupRequest) -> User:
    """Persist a new account with a hashed password.

    Raises:
        ConflictError: if the email or username is already registered.
    """
    existing = db.query(User).filter(
        or_(User.email == payload.email, User.username == payload.username)
    ).first()
    if existing is not None:
        if existing.email == payload.email:
            raise ConflictError("Email already registered")
        raise ConflictError("Username already taken")

    user = User(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        username=payload.username,
        password_hash=security.hash_password(payload.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as err:
        # Lost a race with a concurrent signup for the same identity.
        db.rollback()
        raise ConflictError("Email or username already registered") from err
    db.refresh(user)
    logger.info("Created user %s", user.id)
    return user


def authenticate(db: Session, payload: LoginRequest) -> User:
    """Return the user matching the login name and password.

    A login name containing "@" is looked up as an email, otherwise as a username.
    """
    login_name = payload.login_name
    column = User.email if "@" in login_name else User.username
    user = db.query(User).filter(column == login_name).first()
    if user is None or not security.verify_password(payload.password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    return user


def change_password(db: Session, user: User, payload: ChangePasswordRequest) -> None:
    """Replace the password of `user` after verifying the current one."""
    if len(payload.new_password) < settings.min_password_length:
        raise ValidationError("New password is too short")
    if not security.verify_password(payload.current_password, user.password_hash):
        raise AuthenticationError("Current password is incorrect")
    if security.verify_password(payload.new_password, user.password_hash):
        raise ValidationError("New password must be different")

    user.password_hash = security.hash_password(payload.new_password)
    db.commit()
    logger.info("Password changed for user %s", user.id)


def require_user(db: Session, user_id: int) -> User:
    user = get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user
