# src/versebyverse/api/__init__.py
"""HTTP API routers."""

from .endpoints import (
    auth_router,
    communities_router,
    notes_router,
    notifications_router,
    passage_router,
    posts_router,
)

__all__ = [
    "auth_router",
    "communities_router",
    "posts_router",
    "notifications_router",
    "notes_router",
    "passage_router",
]
