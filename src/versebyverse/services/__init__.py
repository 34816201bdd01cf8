# src/versebyverse/services/__init__.py
"""Business logic services for the VerseByVerse application."""

from .passage import PassageClient, get_passage_client
from .sessions import DatabaseSessionStore, RedisSessionStore, SessionStore, get_session_store
from .uploads import HeroImageStorage, get_hero_image_storage

__all__ = [
    "PassageClient",
    "get_passage_client",
    "SessionStore",
    "DatabaseSessionStore",
    "RedisSessionStore",
    "get_session_store",
    "HeroImageStorage",
    "get_hero_image_storage",
]
