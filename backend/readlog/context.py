"""
Readlog Backend — Application Context
=======================================

What:  The one object holding every long-lived resource: settings, engine,
       DocumentStore and the services built on it.
Why:   Components receive their collaborators explicitly instead of
       importing module-level handles, and there is a single place to
       release them on shutdown.
How:   create_app() builds an AppContext (or accepts one, e.g. from tests)
       and stores it on `app.state.context`; route handlers obtain services
       through the FastAPI dependencies below.
"""

import logging
from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from readlog.config import Settings
from readlog.database import create_all, create_engine, create_session_factory
from readlog.services.book_service import BookService
from readlog.services.note_service import NoteService
from readlog.store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    engine: AsyncEngine
    store: DocumentStore
    books: BookService
    notes: NoteService

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        """Wire everything from settings. Opens no connections yet."""
        engine = create_engine(settings)
        store = DocumentStore(create_session_factory(engine))
        return cls(
            settings=settings,
            engine=engine,
            store=store,
            books=BookService(store),
            notes=NoteService(
                store,
                atomic=settings.atomic_relationships,
                strict_listing=settings.strict_note_listing,
            ),
        )

    async def startup(self) -> None:
        if self.settings.db_create_all:
            await create_all(self.engine)
            logger.info("Database tables ensured (DB_CREATE_ALL)")

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()
        logger.info("Database engine disposed")


# ── FastAPI Dependencies ──────────────────────────────────────────────────

def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_book_service(request: Request) -> BookService:
    return get_context(request).books


def get_note_service(request: Request) -> NoteService:
    return get_context(request).notes
