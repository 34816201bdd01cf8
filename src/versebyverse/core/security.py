"""Password hashing and session cookie signing."""
from __future__ import annotations

from jose import JWTError, jwt
from passlib.context import CryptContext

from versebyverse.core.settings import settings

# pbkdf2 for new hashes; bcrypt is kept so hashes imported from the previous
# deployment still verify and get upgraded on next password change.
_pwd = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Return a salted one-way hash of `password`."""
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Return True if `password` matches the stored hash."""
    try:
        return _pwd.verify(password, password_hash)
    except ValueError:
        # Unknown or malformed hash format.
        return False


def sign_session_id(session_id: str) -> str:
    """Wrap an opaque session id into a signed cookie value."""
    return jwt.encode(
        {"sid": session_id},
        settings.secret_key,
        algorithm=settings.session_algorithm,
    )


def unsign_session_id(cookie_value: str) -> str | None:
    """Return the session id carried by a cookie, or None if it was tampered with."""
    try:
        payload = jwt.decode(
            cookie_value,
            settings.secret_key,
            algorithms=[settings.session_algorithm],
        )
    except JWTError:
        return None
    session_id = payload.get("sid")
    if not isinstance(session_id, str) or not session_id:
        return None
    return session_id
