"""
Readlog Backend — Book SQLAlchemy Model
=========================================

What:  ORM model backing the `book` collection.
Why:   Maps book documents to rows for the DocumentStore.
Who:   Used by DocumentStore (collection "book") and by Alembic.

Table Design Rationale:
    - id: 12-byte identifier stored as 24 hex chars (see readlog.identifiers)
    - notes: ordered JSON array of note identifiers, denormalized on purpose;
      the order is the order notes were appended and is what list-by-book returns
    - start_time / end_time: nullable, NULL means "not set"
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from readlog.database import Base
from readlog.identifiers import Identifier
from readlog.models.types import IdentifierListType, IdentifierType, UTCDateTime


class Book(Base):
    """
    A book being tracked.

    Lifecycle:
        1. Created with an empty `notes` list
        2. `notes` grows as notes are created and shrinks as they are deleted
        3. Deleting a book deletes every note whose book_id matches it
    """

    __tablename__ = "book"

    id: Mapped[Identifier] = mapped_column(
        IdentifierType(),
        primary_key=True,
        comment="12-byte identifier in hex form",
    )

    title: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    author: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Reading state; values beyond 0 are defined by the client
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Stored and returned in UTC; the client's offset is not kept
    start_time: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    end_time: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    notes: Mapped[List[Identifier]] = mapped_column(
        IdentifierListType(),
        nullable=False,
        default=list,
        comment="Ordered note identifiers (JSON array of hex strings)",
    )

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', notes={len(self.notes or [])})>"
