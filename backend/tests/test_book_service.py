"""
Readlog Backend — Book Service Tests
======================================

What:  BookService against an in-memory database.

What we test:
    ✅ Create assigns a fresh id and an empty notes list
    ✅ List filters are exact-match and conjunctive
    ✅ Edit changes only the fields sent and returns the updated book
    ✅ Delete removes the book and every note pointing at it, atomically
    ✅ Malformed ids are rejected before the store is touched
"""

from unittest.mock import AsyncMock, patch

import pytest

from readlog.exceptions import (
    InvalidIdentifierError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from readlog.identifiers import Identifier
from readlog.schemas.book import BookCreate
from readlog.schemas.note import NoteCreate
from readlog.services.book_service import BookService


async def make_book(book_service, **fields):
    payload = {"title": "Dune", "author": "Frank Herbert", **fields}
    return await book_service.create_book(BookCreate(**payload))


class TestCreateAndGet:

    @pytest.mark.asyncio
    async def test_create_then_get(self, book_service):
        book_id = await make_book(book_service, status=1, startTime="2024-03-01T00:00:00Z")

        book = await book_service.get_book(book_id)

        assert book.id == book_id
        assert book.title == "Dune"
        assert book.status == 1
        assert book.start_time is not None
        assert book.end_time is None
        assert book.notes == []

    @pytest.mark.asyncio
    async def test_client_supplied_id_and_notes_are_ignored(self, book_service):
        payload = BookCreate.model_validate(
            {"id": "6523f1c2a9e4b0d1c8a7e3f0", "title": "Emma", "notes": ["6523f1c2a9e4b0d1c8a7e3f1"]}
        )
        book_id = await book_service.create_book(payload)

        assert book_id != "6523f1c2a9e4b0d1c8a7e3f0"
        assert (await book_service.get_book(book_id)).notes == []

    @pytest.mark.asyncio
    async def test_get_unknown_book(self, book_service):
        with pytest.raises(NotFoundError):
            await book_service.get_book(str(Identifier.generate()))

    @pytest.mark.asyncio
    async def test_get_malformed_id(self, mock_store):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            await BookService(mock_store).get_book("not-an-id")
        assert exc_info.value.field == "bookid"
        assert mock_store.mock_calls == []


class TestListBooks:

    @pytest.mark.asyncio
    async def test_filters(self, book_service):
        await make_book(book_service, title="Dune", author="Herbert", status=2)
        await make_book(book_service, title="Emma", author="Austen", status=2)
        await make_book(book_service, title="Persuasion", author="Austen", status=0)

        assert len(await book_service.list_books()) == 3
        assert len(await book_service.list_books(title="", author="")) == 3
        assert {b.title for b in await book_service.list_books(author="Austen")} == {"Emma", "Persuasion"}
        assert [b.title for b in await book_service.list_books(author="Austen", status=2)] == ["Emma"]
        assert await book_service.list_books(title="Dune", author="Austen") == []

    @pytest.mark.asyncio
    async def test_status_zero_is_a_filter(self, book_service):
        await make_book(book_service, title="Dune", status=2)
        await make_book(book_service, title="Emma", status=0)

        assert [b.title for b in await book_service.list_books(status=0)] == ["Emma"]


class TestEditBook:

    @pytest.mark.asyncio
    async def test_edit_changes_only_sent_fields(self, book_service):
        book_id = await make_book(book_service, description="Arrakis")

        updated = await book_service.edit_book({"id": book_id, "status": 2, "title": ""})

        assert updated.status == 2
        assert updated.title == "Dune"
        assert updated.description == "Arrakis"
        assert (await book_service.get_book(book_id)).status == 2

    @pytest.mark.asyncio
    async def test_edit_with_nothing_to_change(self, book_service):
        book_id = await make_book(book_service)
        book = await book_service.edit_book({"id": book_id, "author": ""})
        assert book.author == "Frank Herbert"

    @pytest.mark.asyncio
    async def test_edit_unknown_book(self, book_service):
        with pytest.raises(NotFoundError):
            await book_service.edit_book({"id": str(Identifier.generate()), "title": "x"})
        with pytest.raises(NotFoundError):
            await book_service.edit_book({"id": str(Identifier.generate())})

    @pytest.mark.asyncio
    async def test_notes_cannot_be_edited(self, book_service):
        book_id = await make_book(book_service)
        with pytest.raises(ValidationError):
            await book_service.edit_book({"id": book_id, "notes": []})


class TestDeleteBook:

    @pytest.mark.asyncio
    async def test_delete_cascades_to_notes(self, book_service, note_service, store):
        book_id = await make_book(book_service)
        other_id = await make_book(book_service, title="Emma")
        for content in ("one", "two"):
            await note_service.create_note(NoteCreate(bookID=book_id, content=content))
        kept = await note_service.create_note(NoteCreate(bookID=other_id, content="kept"))

        assert await book_service.delete_book(book_id) == 1

        with pytest.raises(NotFoundError):
            await book_service.get_book(book_id)
        remaining = await store.find("note")
        assert [str(n["id"]) for n in remaining] == [kept]

    @pytest.mark.asyncio
    async def test_delete_unknown_book_returns_zero(self, book_service):
        assert await book_service.delete_book(str(Identifier.generate())) == 0

    @pytest.mark.asyncio
    async def test_delete_malformed_id(self, mock_store):
        with pytest.raises(InvalidIdentifierError):
            await BookService(mock_store).delete_book("xyz")
        assert mock_store.mock_calls == []

    @pytest.mark.asyncio
    async def test_failed_book_delete_keeps_notes(self, book_service, note_service, store):
        book_id = await make_book(book_service)
        note_id = await note_service.create_note(NoteCreate(bookID=book_id, content="one"))

        with patch.object(store, "delete_one", AsyncMock(side_effect=StoreError())):
            with pytest.raises(StoreError):
                await book_service.delete_book(book_id)

        # The note deletion was rolled back with the book deletion
        assert (await book_service.get_book(book_id)).notes == [note_id]
        assert await store.find_one("note", {"id": Identifier.from_string(note_id)}) is not None
