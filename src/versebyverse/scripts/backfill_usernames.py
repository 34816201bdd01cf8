"""Assign a unique username to every account created before usernames existed."""
from __future__ import annotations

import logging
import re

from sqlalchemy import or_
from sqlalchemy.orm import Session

from versebyverse.db.session import SessionLocal
from versebyverse.models import User

logger = logging.getLogger(__name__)

_DISALLOWED = re.compile(r"[^a-z0-9._-]")


def make_base_username(user: User) -> str:
    """Derive a username from the email local part, else the names, else the id."""
    if user.email:
        local = user.email.split("@", 1)[0].lower()
        base = _DISALLOWED.sub("", local)
        if base:
            return base
    if user.first_name or user.last_name:
        names = f"{user.first_name or ''}{user.last_name or ''}".lower()
        base = _DISALLOWED.sub("", re.sub(r"\s+", "", names))
        if base:
            return base
    return f"user{user.id}"


def _is_taken(db: Session, candidate: str, user_id: int) -> bool:
    return (
        db.query(User.id).filter(User.username == candidate, User.id != user_id).first()
        is not None
    )


def unique_username(db: Session, user: User) -> str:
    base = make_base_username(user)
    candidate = base
    suffix = 1
    while _is_taken(db, candidate, user.id):
        candidate = f"{base}{suffix}"
        suffix += 1
    return candidate


def backfill_usernames(db: Session) -> int:
    """Fill in missing usernames; returns the number of users updated."""
    users = (
        db.query(User)
        .filter(or_(User.username.is_(None), User.username == ""))
        .order_by(User.id)
        .all()
    )
    logger.info("Found %d users without username", len(users))
    for user in users:
        user.username = unique_username(db, user)
        # Flush so the next candidate check sees this assignment.
        db.flush()
        logger.info("Updated user %s -> username: %s", user.id, user.username)
    db.commit()
    return len(users)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    with SessionLocal() as db:
        backfill_usernames(db)


if __name__ == "__main__":
    main()
