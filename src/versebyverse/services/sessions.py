"""Server-side login session stores.

A session is an opaque random id mapped to a user id with a sliding expiry.
The id travels to the client inside a signed cookie (see
`versebyverse.core.security`); the mapping lives either in the database or in
Redis depending on `SESSION_BACKEND`.
"""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from functools import lru_cache
from typing import Protocol

import redis
from sqlalchemy.orm import Session

from versebyverse.core.settings import settings
from versebyverse.db.time import as_utc, utcnow
from versebyverse.models import UserSession

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


class SessionStore(Protocol):
    """Mapping of opaque session ids to user ids."""

    def create(self, db: Session, user_id: int) -> str:
        """Open a session for `user_id` and return its id."""
        ...

    def resolve(self, db: Session, session_id: str) -> int | None:
        """Return the owning user id and extend the expiry, or None if expired/unknown."""
        ...

    def destroy(self, db: Session, session_id: str) -> None:
        """Forget a session; unknown ids are ignored."""
        ...


class DatabaseSessionStore:
    """Stores sessions in the `user_session` table."""

    def __init__(self, ttl_seconds: int) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)

    def purge_expired(self, db: Session) -> int:
        """Delete every expired row; returns how many were removed."""
        removed = (
            db.query(UserSession)
            .filter(UserSession.expires_at <= utcnow())
            .delete(synchronize_session=False)
        )
        if removed:
            logger.info("Purged %d expired sessions", removed)
        return removed

    def create(self, db: Session, user_id: int) -> str:
        # Abandoned sessions are never resolved again, so sweep them on login.
        self.purge_expired(db)
        session_id = new_session_id()
        db.add(UserSession(id=session_id, user_id=user_id, expires_at=utcnow() + self.ttl))
        db.commit()
        return session_id

    def resolve(self, db: Session, session_id: str) -> int | None:
        record = db.get(UserSession, session_id)
        if record is None:
            return None
        now = utcnow()
        if as_utc(record.expires_at) <= now:
            db.delete(record)
            db.commit()
            return None
        record.expires_at = now + self.ttl
        db.commit()
        return record.user_id

    def destroy(self, db: Session, session_id: str) -> None:
        db.query(UserSession).filter(UserSession.id == session_id).delete()
        db.commit()


class RedisSessionStore:
    """Stores sessions as Redis keys whose TTL is the session lifetime."""

    key_prefix = "vbv:session:"

    def __init__(self, client: redis.Redis, ttl_seconds: int) -> None:
        self._redis = client
        self.ttl_seconds = ttl_seconds

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    def create(self, db: Session, user_id: int) -> str:
        session_id = new_session_id()
        self._redis.set(self._key(session_id), str(user_id), ex=self.ttl_seconds)
        return session_id

    def resolve(self, db: Session, session_id: str) -> int | None:
        key = self._key(session_id)
        value = self._redis.get(key)
        if value is None:
            return None
        self._redis.expire(key, self.ttl_seconds)
        if isinstance(value, bytes):
            value = value.decode()
        try:
            return int(value)
        except ValueError:
            logger.warning("Discarding malformed session record")
            self._redis.delete(key)
            return None

    def destroy(self, db: Session, session_id: str) -> None:
        self._redis.delete(self._key(session_id))


@lru_cache
def get_session_store() -> SessionStore:
    """Return the process-wide session store selected by configuration."""
    if settings.session_backend == "redis":
        logger.info("Using Redis session store")
        return RedisSessionStore(
            redis.from_url(settings.redis_url),
            settings.session_ttl_seconds,
        )
    if settings.session_backend != "database":
        raise ValueError(f"Unknown SESSION_BACKEND {settings.session_backend!r}")
    return DatabaseSessionStore(settings.session_ttl_seconds)
