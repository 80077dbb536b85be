"""
Readlog Backend — Note SQLAlchemy Model
=========================================

What:  ORM model backing the `note` collection.
Who:   Used by DocumentStore (collection "note") and by Alembic.

Table Design Rationale:
    - book_id: owning book, set once at creation; indexed because book deletion
      removes notes by book_id in bulk
    - reply_to: optional identifier of another note; existence is NOT enforced,
      so there is deliberately no foreign key
    - No foreign key on book_id either: Book.notes is the authoritative
      relationship and is maintained by the services, not by the database
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from readlog.database import Base
from readlog.identifiers import Identifier
from readlog.models.types import IdentifierType, UTCDateTime


class Note(Base):
    """A note attached to a book, optionally replying to another note."""

    __tablename__ = "note"

    id: Mapped[Identifier] = mapped_column(IdentifierType(), primary_key=True)

    book_id: Mapped[Identifier] = mapped_column(IdentifierType(), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    reply_to: Mapped[Optional[Identifier]] = mapped_column(IdentifierType(), nullable=True)

    create_time: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_note_book_id", "book_id"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, book_id={self.book_id})>"
