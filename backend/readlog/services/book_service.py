"""
Readlog Backend — Book Service
================================

What:  List, get, create, edit and delete books.
Who:   Called by the /book route handlers.

Deletion cascade:
    1. delete every note whose book_id is the book's id
    2. delete the book
    Both steps run inside ONE store transaction, so a failure in step 2
    rolls step 1 back and no notes are lost without their book going too.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from readlog.exceptions import NotFoundError
from readlog.identifiers import Identifier, decode_identifier
from readlog.schemas.book import BookCreate, BookPatch, BookResponse
from readlog.services.patch import apply_partial_update
from readlog.store import DocumentStore

logger = logging.getLogger(__name__)

# Fields list_books() may filter on (exact match, conjunctive)
BOOK_FILTER_FIELDS = ("title", "author", "status")


class BookService:
    """
    Business logic for the `book` collection.

    Stateless apart from the store handle it is constructed with.
    """

    def __init__(self, store: DocumentStore):
        self._store = store

    async def list_books(
        self,
        title: Optional[str] = None,
        author: Optional[str] = None,
        status: Optional[int] = None,
    ) -> List[BookResponse]:
        """
        Books matching every given filter; no filter returns all books.

        Order is whatever the store returns (no sort is applied).
        """
        candidates = {"title": title, "author": author, "status": status}
        filter: Dict[str, Any] = {
            key: value
            for key, value in candidates.items()
            if value is not None and value != ""
        }
        documents = await self._store.find("book", filter)
        logger.debug("Listed %d books with filter %s", len(documents), filter)
        return [BookResponse.from_document(document) for document in documents]

    async def get_book(self, book_id: Any) -> BookResponse:
        oid = decode_identifier(book_id, field="bookid")
        document = await self._store.find_one("book", {"id": oid})
        if document is None:
            raise NotFoundError(resource="book", resource_id=str(oid))
        return BookResponse.from_document(document)

    async def create_book(self, payload: BookCreate) -> str:
        """Insert a book with a fresh id and an empty notes list; return the id."""
        document = payload.to_document()
        document["id"] = Identifier.generate()
        document["notes"] = []
        book_id = await self._store.insert_one("book", document)
        logger.info("Created book %s (%r)", book_id, payload.title)
        return str(book_id)

    async def edit_book(self, fields: Mapping[str, Any]) -> BookResponse:
        """Apply a sparse patch and return the book as updated."""
        document = await apply_partial_update(
            self._store, "book", fields, BookPatch, return_document=True,
        )
        return BookResponse.from_document(document)

    async def delete_book(self, book_id: Any) -> int:
        """
        Delete a book and all of its notes.

        Returns:
            Number of deleted books (0 when the id is unknown).
        """
        oid = decode_identifier(book_id, field="id")
        async with self._store.transaction() as session:
            notes_deleted = await self._store.delete_many(
                "note", {"book_id": oid}, session=session,
            )
            books_deleted = await self._store.delete_one("book", {"id": oid}, session=session)

        logger.info(
            "Deleted book %s (%d book, %d notes)", oid, books_deleted, notes_deleted,
        )
        return books_deleted
