"""
Readlog Backend — Application Package Initializer
==================================================

What: Marks the `readlog` directory as a Python package.
Why:  Enables module imports like `from readlog.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    ┌─────────────────────────────────────┐
    │     Routes (API Layer + Envelope)   │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (Relationship Maintainer, │  ← Saga, partial updates
    │            Partial-Update Patches)  │
    ├─────────────────────────────────────┤
    │  Identifiers, Schemas, Models       │  ← Codec, Pydantic, SQLAlchemy
    ├─────────────────────────────────────┤
    │  DocumentStore (book / note)        │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Everything below the routes is reachable through a single AppContext
    (see readlog.context) built once per application instance.
"""

__version__ = "1.0.0"
