"""
Readlog Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test that needs a database gets its own in-memory SQLite
       database (aiosqlite + StaticPool), so tests never share state and
       never need a running PostgreSQL.

Fixture Hierarchy (all function-scoped):
    test_settings ── app_context ──┬── store
                                   ├── book_service
                                   ├── note_service / atomic_note_service
                                   └── test_client (HTTPX AsyncClient)
    mock_store: MagicMock with the DocumentStore interface (no database)
"""

import os

# Override settings BEFORE any readlog import creates the settings singleton
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from readlog.config import Settings
from readlog.context import AppContext
from readlog.database import create_all
from readlog.services.book_service import BookService
from readlog.services.note_service import NoteService
from readlog.store import DocumentStore


@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite+aiosqlite://",
        log_level="WARNING",
        rate_limit_requests=10000,
    )


@pytest_asyncio.fixture
async def app_context(test_settings):
    """AppContext bound to a fresh in-memory database with tables created."""
    context = AppContext.from_settings(test_settings)
    await create_all(context.engine)
    yield context
    await context.dispose()


@pytest.fixture
def store(app_context) -> DocumentStore:
    return app_context.store


@pytest.fixture
def book_service(app_context) -> BookService:
    return app_context.books


@pytest.fixture
def note_service(app_context) -> NoteService:
    return app_context.notes


@pytest.fixture
def atomic_note_service(store) -> NoteService:
    """NoteService running create/delete inside one store transaction."""
    return NoteService(store, atomic=True)


@pytest.fixture
def mock_store():
    """
    DocumentStore stand-in that records calls and touches no database.

    Used to prove that malformed identifiers are rejected before the store
    is called at all.
    """
    return MagicMock(spec=DocumentStore)


@pytest_asyncio.fixture
async def test_client(app_context):
    """
    Async HTTP client talking to a full app bound to the test database.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from readlog.main import create_app

    app = create_app(context=app_context)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
