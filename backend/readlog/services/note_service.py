"""
Readlog Backend — Note Service (Relationship Maintainer)
==========================================================

What:  Note CRUD that keeps every book's `notes` list consistent with the
       notes that actually exist.
Who:   Called by the /note route handlers.

Note creation (saga):
    ┌──────────┐     ┌──────────┐
    │  Append  │────▶│  Insert  │
    │ book.notes│     │   note   │
    └──────────┘     └──────────┘
         ▲                │ fails
         └── Compensate ◀─┘  (pull the id back out of book.notes)

    Append fails (book unknown) → BookNotFoundError, nothing to undo.
    Insert fails                → compensation runs, the insert error is raised.
    Compensation fails          → logged as a dangling reference, insert error
                                  is still what the caller sees.

Note deletion:
    Locate (NotFoundError) → Detach from book.notes (DetachFailedError) → Delete.
    The note document is only removed after the detach succeeded, so a note
    referenced by a book always exists.

Atomic mode (ATOMIC_RELATIONSHIPS=true):
    The same steps run inside one store transaction; a failure rolls every
    step back and no compensation is needed.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from readlog.exceptions import (
    BookNotFoundError,
    DetachFailedError,
    NotFoundError,
    StoreError,
)
from readlog.identifiers import (
    Identifier,
    decode_identifier,
    decode_optional_identifier,
)
from readlog.schemas.note import NoteCreate, NotePatch, NoteResponse
from readlog.services.patch import apply_partial_update
from readlog.services.saga import Saga
from readlog.store import Document, DocumentStore

logger = logging.getLogger(__name__)


class NoteService:
    """
    Business logic for the `note` collection and the book↔note relationship.

    Args:
        store: Shared DocumentStore.
        atomic: Run create/delete steps in one store transaction.
        strict_listing: Raise NotFoundError when a book references a missing
                        note instead of returning a placeholder.
    """

    def __init__(
        self,
        store: DocumentStore,
        atomic: bool = False,
        strict_listing: bool = False,
    ):
        self._store = store
        self._atomic = atomic
        self._strict_listing = strict_listing

    # ══════════════════════════════════════════════════════════════════════
    # Reads
    # ══════════════════════════════════════════════════════════════════════

    async def list_notes_by_book(self, book_id: Any) -> List[NoteResponse]:
        """
        Notes of a book in the order stored in book.notes.

        Each id is looked up on its own. A referenced note that no longer
        exists becomes an empty placeholder (or NotFoundError in strict mode).
        """
        oid = decode_identifier(book_id, field="bookid")
        book = await self._store.find_one("book", {"id": oid})
        if book is None:
            raise NotFoundError(resource="book", resource_id=str(oid))

        notes: List[NoteResponse] = []
        for note_id in book["notes"]:
            document = await self._store.find_one("note", {"id": note_id})
            if document is not None:
                notes.append(NoteResponse.from_document(document))
                continue
            if self._strict_listing:
                raise NotFoundError(resource="note", resource_id=str(note_id))
            logger.warning("Book %s references missing note %s", oid, note_id)
            notes.append(NoteResponse.placeholder())
        return notes

    async def get_note(self, note_id: Any) -> NoteResponse:
        oid = decode_identifier(note_id, field="noteid")
        document = await self._store.find_one("note", {"id": oid})
        if document is None:
            raise NotFoundError(resource="note", resource_id=str(oid))
        return NoteResponse.from_document(document)

    # ══════════════════════════════════════════════════════════════════════
    # Create
    # ══════════════════════════════════════════════════════════════════════

    async def create_note(self, payload: NoteCreate) -> str:
        """
        Create a note and append its id to the owning book.

        Returns:
            The new note id.

        Raises:
            InvalidIdentifierError: bookID / replyTo malformed (no store access)
            BookNotFoundError: no book with that id
            StoreError: the insert failed (after compensation was attempted)
        """
        book_id = decode_identifier(payload.book_id, field="bookID")
        reply_to = decode_optional_identifier(payload.reply_to, field="replyTo")
        document: Document = {
            "id": Identifier.generate(),
            "book_id": book_id,
            "content": payload.content,
            "reply_to": reply_to,
            "create_time": datetime.now(timezone.utc),
        }

        if self._atomic:
            async with self._store.transaction() as session:
                await self._creation_saga(document, session).run(compensate=False)
        else:
            await self._creation_saga(document).run()

        logger.info("Created note %s on book %s", document["id"], book_id)
        return str(document["id"])

    def _creation_saga(self, document: Document, session: Optional[AsyncSession] = None) -> Saga:
        note_id: Identifier = document["id"]
        book_id: Identifier = document["book_id"]

        async def append() -> None:
            result = await self._store.push(
                "book", {"id": book_id}, "notes", note_id, session=session,
            )
            if result.matched_count == 0:
                raise BookNotFoundError(str(book_id))

        async def insert() -> Identifier:
            return await self._store.insert_one("note", document, session=session)

        async def unappend() -> None:
            result = await self._store.pull(
                "book", {"id": book_id}, "notes", note_id, session=session,
            )
            if result.matched_count == 0:
                raise DetachFailedError(str(note_id), str(book_id))
            logger.info("Removed note %s from book %s after failed insert", note_id, book_id)

        return (
            Saga("create_note")
            .step("append", append, compensation=unappend)
            .step("insert", insert)
        )

    # ══════════════════════════════════════════════════════════════════════
    # Delete
    # ══════════════════════════════════════════════════════════════════════

    async def delete_note(self, note_id: Any) -> int:
        """
        Detach a note from its book, then delete it.

        Returns:
            Number of deleted notes.

        Raises:
            InvalidIdentifierError: id malformed (no store access)
            NotFoundError: no note with that id
            DetachFailedError: book.notes could not be updated; note kept
        """
        oid = decode_identifier(note_id, field="id")
        if self._atomic:
            async with self._store.transaction() as session:
                return await self._detach_and_delete(oid, session)
        return await self._detach_and_delete(oid)

    async def _detach_and_delete(
        self, note_id: Identifier, session: Optional[AsyncSession] = None
    ) -> int:
        note = await self._store.find_one("note", {"id": note_id}, session=session)
        if note is None:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        book_id: Identifier = note["book_id"]

        try:
            result = await self._store.pull(
                "book", {"id": book_id}, "notes", note_id, session=session,
            )
        except StoreError as exc:
            raise DetachFailedError(
                str(note_id), str(book_id), context={"error_type": exc.context.get("error_type")},
            ) from exc
        if result.matched_count == 0:
            raise DetachFailedError(str(note_id), str(book_id), context={"reason": "book not found"})

        deleted = await self._store.delete_one("note", {"id": note_id}, session=session)
        logger.info("Deleted note %s from book %s", note_id, book_id)
        return deleted

    # ══════════════════════════════════════════════════════════════════════
    # Edit
    # ══════════════════════════════════════════════════════════════════════

    async def edit_note(self, fields: Mapping[str, Any]) -> int:
        """Apply a sparse patch; returns the modified count. Never touches the book."""
        return await apply_partial_update(
            self._store, "note", fields, NotePatch, return_document=False,
        )
