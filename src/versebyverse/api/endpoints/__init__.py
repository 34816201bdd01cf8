# src/versebyverse/api/endpoints/__init__.py
"""API endpoint modules."""

from .auth import router as auth_router
from .communities import router as communities_router
from .notes import router as notes_router
from .notifications import router as notifications_router
from .passage import router as passage_router
from .posts import router as posts_router

__all__ = [
    "auth_router",
    "communities_router",
    "posts_router",
    "notifications_router",
    "notes_router",
    "passage_router",
]
