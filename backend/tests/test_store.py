"""
Readlog Backend — DocumentStore Tests
=======================================

What:  The store adapter against a real (in-memory SQLite) database.

What we test:
    ✅ insert / find_one / find with exact-match conjunctive filters
    ✅ push keeps order; pull removes every occurrence and reports modified count
    ✅ update_one / find_one_and_update matched & modified semantics
    ✅ delete_one / delete_many counts
    ✅ transaction() commits together or rolls back together
    ✅ Timestamps round-trip as UTC regardless of the input offset
    ✅ Driver failures surface as StoreError; programming errors as ValueError
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from readlog.exceptions import StoreError
from readlog.identifiers import Identifier
from readlog.store import DocumentStore


def book_doc(**overrides):
    document = {
        "id": Identifier.generate(),
        "title": "Dune",
        "author": "Frank Herbert",
        "description": "",
        "status": 0,
        "notes": [],
    }
    document.update(overrides)
    return document


class TestReads:

    @pytest.mark.asyncio
    async def test_insert_then_find_one(self, store):
        document = book_doc()
        book_id = await store.insert_one("book", document)

        found = await store.find_one("book", {"id": book_id})

        assert book_id == document["id"]
        assert found["title"] == "Dune"
        assert found["notes"] == []
        assert found["start_time"] is None

    @pytest.mark.asyncio
    async def test_insert_mints_id_when_missing(self, store):
        document = book_doc()
        del document["id"]

        book_id = await store.insert_one("book", document)

        assert isinstance(book_id, Identifier)
        assert await store.find_one("book", {"id": book_id}) is not None

    @pytest.mark.asyncio
    async def test_find_one_missing_returns_none(self, store):
        assert await store.find_one("book", {"id": Identifier.generate()}) is None

    @pytest.mark.asyncio
    async def test_find_filters_are_conjunctive(self, store):
        await store.insert_one("book", book_doc(title="Dune", author="Herbert"))
        await store.insert_one("book", book_doc(title="Emma", author="Austen", status=2))
        await store.insert_one("book", book_doc(title="Persuasion", author="Austen", status=1))

        assert len(await store.find("book")) == 3
        assert len(await store.find("book", {})) == 3
        austen = await store.find("book", {"author": "Austen"})
        assert sorted(b["title"] for b in austen) == ["Emma", "Persuasion"]
        assert [b["title"] for b in await store.find("book", {"author": "Austen", "status": 2})] == ["Emma"]
        assert await store.find("book", {"author": "Austen", "title": "Dune"}) == []

    @pytest.mark.asyncio
    async def test_unknown_collection_or_field(self, store):
        with pytest.raises(ValueError, match="Unknown collection"):
            await store.find("shelf", {})
        with pytest.raises(ValueError, match="Unknown field"):
            await store.find("book", {"isbn": "123"})


class TestListOperators:

    @pytest.mark.asyncio
    async def test_push_appends_in_order(self, store):
        book_id = await store.insert_one("book", book_doc())
        first, second = Identifier.generate(), Identifier.generate()

        r1 = await store.push("book", {"id": book_id}, "notes", first)
        r2 = await store.push("book", {"id": book_id}, "notes", second)

        assert (r1.matched_count, r1.modified_count) == (1, 1)
        assert (r2.matched_count, r2.modified_count) == (1, 1)
        found = await store.find_one("book", {"id": book_id})
        assert found["notes"] == [first, second]

    @pytest.mark.asyncio
    async def test_push_to_missing_document(self, store):
        result = await store.push("book", {"id": Identifier.generate()}, "notes", Identifier.generate())
        assert result.matched_count == 0
        assert result.modified_count == 0

    @pytest.mark.asyncio
    async def test_pull_removes_every_occurrence(self, store):
        a, b = Identifier.generate(), Identifier.generate()
        book_id = await store.insert_one("book", book_doc(notes=[a, b, a]))

        result = await store.pull("book", {"id": book_id}, "notes", a)

        assert (result.matched_count, result.modified_count) == (1, 1)
        assert (await store.find_one("book", {"id": book_id}))["notes"] == [b]

    @pytest.mark.asyncio
    async def test_pull_absent_value_matches_without_modifying(self, store):
        book_id = await store.insert_one("book", book_doc())
        result = await store.pull("book", {"id": book_id}, "notes", Identifier.generate())
        assert (result.matched_count, result.modified_count) == (1, 0)

    @pytest.mark.asyncio
    async def test_push_on_non_list_field(self, store):
        book_id = await store.insert_one("book", book_doc())
        with pytest.raises(ValueError, match="not a list"):
            await store.push("book", {"id": book_id}, "title", "x")


class TestTimestamps:

    @pytest.mark.asyncio
    async def test_offset_times_come_back_as_utc(self, store):
        local = datetime(2024, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=2)))
        book_id = await store.insert_one("book", book_doc(start_time=local))

        found = await store.find_one("book", {"id": book_id})

        assert found["start_time"] == local
        assert found["start_time"].tzinfo is timezone.utc
        assert found["start_time"].hour == 8

    @pytest.mark.asyncio
    async def test_updated_document_matches_a_later_read(self, store):
        book_id = await store.insert_one("book", book_doc())
        local = datetime(2024, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=2)))

        updated = await store.find_one_and_update("book", {"id": book_id}, {"end_time": local})

        assert updated["end_time"] == (await store.find_one("book", {"id": book_id}))["end_time"]
        assert updated["end_time"].tzinfo is timezone.utc

    @pytest.mark.asyncio
    async def test_note_create_time_is_aware(self, store):
        note_id = await store.insert_one("note", {"book_id": Identifier.generate()})
        found = await store.find_one("note", {"id": note_id})
        assert found["create_time"].tzinfo is timezone.utc


class TestUpdates:

    @pytest.mark.asyncio
    async def test_update_one_counts(self, store):
        book_id = await store.insert_one("book", book_doc())

        changed = await store.update_one("book", {"id": book_id}, {"title": "Dune Messiah"})
        unchanged = await store.update_one("book", {"id": book_id}, {"title": "Dune Messiah"})
        missing = await store.update_one("book", {"id": Identifier.generate()}, {"title": "x"})

        assert (changed.matched_count, changed.modified_count) == (1, 1)
        assert (unchanged.matched_count, unchanged.modified_count) == (1, 0)
        assert (missing.matched_count, missing.modified_count) == (0, 0)

    @pytest.mark.asyncio
    async def test_find_one_and_update_returns_updated_document(self, store):
        book_id = await store.insert_one("book", book_doc())

        updated = await store.find_one_and_update("book", {"id": book_id}, {"status": 3})

        assert updated["status"] == 3
        assert updated["title"] == "Dune"
        assert await store.find_one_and_update("book", {"id": Identifier.generate()}, {"status": 3}) is None


class TestDeletes:

    @pytest.mark.asyncio
    async def test_delete_one(self, store):
        book_id = await store.insert_one("book", book_doc())
        assert await store.delete_one("book", {"id": book_id}) == 1
        assert await store.delete_one("book", {"id": book_id}) == 0
        assert await store.find_one("book", {"id": book_id}) is None

    @pytest.mark.asyncio
    async def test_delete_many_by_field(self, store):
        owner, other = Identifier.generate(), Identifier.generate()
        for owner_id in (owner, owner, other):
            await store.insert_one("note", {"book_id": owner_id, "content": "x"})

        assert await store.delete_many("note", {"book_id": owner}) == 2
        remaining = await store.find("note")
        assert [n["book_id"] for n in remaining] == [other]


class TestTransactions:

    @pytest.mark.asyncio
    async def test_transaction_commits_all_operations(self, store):
        book_id = Identifier.generate()
        note_id = Identifier.generate()

        async with store.transaction() as session:
            await store.insert_one("book", book_doc(id=book_id), session=session)
            await store.push("book", {"id": book_id}, "notes", note_id, session=session)
            await store.insert_one("note", {"id": note_id, "book_id": book_id}, session=session)

        assert (await store.find_one("book", {"id": book_id}))["notes"] == [note_id]
        assert await store.find_one("note", {"id": note_id}) is not None

    @pytest.mark.asyncio
    async def test_transaction_rolls_back_on_error(self, store):
        book_id = await store.insert_one("book", book_doc())

        with pytest.raises(RuntimeError):
            async with store.transaction() as session:
                await store.push("book", {"id": book_id}, "notes", Identifier.generate(), session=session)
                await store.insert_one("note", {"book_id": book_id}, session=session)
                raise RuntimeError("abort")

        assert (await store.find_one("book", {"id": book_id}))["notes"] == []
        assert await store.find("note") == []


class TestStoreErrors:

    @pytest.mark.asyncio
    async def test_driver_error_becomes_store_error(self):
        failing_factory = MagicMock(
            side_effect=OperationalError("SELECT 1", {}, Exception("connection refused"))
        )
        store = DocumentStore(failing_factory)

        with pytest.raises(StoreError) as exc_info:
            await store.find_one("book", {"id": Identifier.generate()})

        assert exc_info.value.context["operation"] == "find_one"
        assert exc_info.value.context["collection"] == "book"
        assert isinstance(exc_info.value.__cause__, OperationalError)

    @pytest.mark.asyncio
    async def test_duplicate_id_is_store_error(self, store):
        document = book_doc()
        await store.insert_one("book", document)
        with pytest.raises(StoreError):
            await store.insert_one("book", document)

    @pytest.mark.asyncio
    async def test_ping(self, store):
        await store.ping()
