# src/versebyverse/main.py
"""Main entry point for the VerseByVerse application."""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles

from versebyverse.api import (
    auth_router,
    communities_router,
    notes_router,
    notifications_router,
    passage_router,
    posts_router,
)
from versebyverse.core.errors import register_exception_handlers
from versebyverse.core.settings import settings
from versebyverse.db.session import check_connection, create_tables, engine
from versebyverse.services.passage import close_passage_client

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Configure root logging once for the whole process."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for noisy in ("httpx", "httpcore", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    setup_logging()
    try:
        check_connection()
    except Exception:
        logger.critical("Database is unreachable, aborting startup", exc_info=True)
        raise
    if settings.auto_create_tables:
        create_tables()
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    logger.info("%s %s started", settings.app_name, settings.app_version)

    yield

    await close_passage_client()
    engine.dispose()
    logger.info("%s stopped", settings.app_name)


# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Community, notes and scripture passage API",
    version=settings.app_version,
    lifespan=lifespan,
)

# Add CORS middleware; it answers preflight requests before any auth dependency runs
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

register_exception_handlers(app)

# Include API routers
app.include_router(auth_router)
app.include_router(communities_router)
app.include_router(posts_router)
app.include_router(notifications_router)
app.include_router(notes_router)
app.include_router(passage_router)

app.mount(
    settings.upload_url_prefix,
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)


@app.get("/health")
async def health_check() -> dict[str, object]:
    """Health check endpoint to verify the service is running."""
    return {"ok": True, "status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("versebyverse.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
