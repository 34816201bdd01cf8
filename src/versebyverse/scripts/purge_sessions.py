"""Delete expired rows from the database session store."""
from __future__ import annotations

import logging

from versebyverse.core.settings import settings
from versebyverse.db.session import SessionLocal
from versebyverse.services.sessions import DatabaseSessionStore


def purge_sessions() -> int:
    store = DatabaseSessionStore(settings.session_ttl_seconds)
    with SessionLocal() as db:
        removed = store.purge_expired(db)
        db.commit()
    return removed


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    print(f"[purge] removed {purge_sessions()} expired sessions")


if __name__ == "__main__":
    main()
