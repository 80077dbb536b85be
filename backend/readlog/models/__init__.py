"""ORM models for the two collections: `book` and `note`."""

from readlog.models.book import Book
from readlog.models.note import Note

__all__ = ["Book", "Note"]
