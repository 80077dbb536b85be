"""
Readlog Backend — Document Store Adapter
==========================================

What:  Find / insert / update / push / pull / delete over two logical
       collections, "book" and "note", using plain dict filters and documents.
Why:   Services speak in documents and field filters; only this module knows
       the documents live in SQLAlchemy tables.
How:   Every operation takes an optional `session`:
         - None:    the operation runs in its own short transaction and is
                    committed before returning (single-document atomicity)
         - given:   the operation joins the caller's transaction
                    (see DocumentStore.transaction())
       Driver failures (SQLAlchemyError, connection errors, timeouts) are
       wrapped in StoreError; the original exception is chained and logged.

Document shape:
    Keys are the model attribute names (snake_case), e.g. for a note:
        {"id": Identifier, "book_id": Identifier, "content": str,
         "reply_to": Identifier | None, "create_time": datetime}

Filters:
    {"field": value, ...}: exact match, all conditions must hold.
    {} matches every document.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Type

from sqlalchemy import delete, select, text
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from readlog.database import Base
from readlog.exceptions import StoreError
from readlog.identifiers import Identifier
from readlog.models import Book, Note

logger = logging.getLogger(__name__)

Document = Dict[str, Any]

COLLECTIONS: Dict[str, Type[Base]] = {
    "book": Book,
    "note": Note,
}

# Errors raised by drivers that mean "the store failed", not "the code is wrong"
_STORE_FAILURES = (SQLAlchemyError, OSError, asyncio.TimeoutError)


@dataclass(frozen=True)
class UpdateResult:
    matched_count: int
    modified_count: int


class DocumentStore:
    """
    Collection-oriented access to the book and note tables.

    One instance is created per AppContext and shared by all services.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # ══════════════════════════════════════════════════════════════════════
    # Sessions & Transactions
    # ══════════════════════════════════════════════════════════════════════

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Open one transaction that several operations can share.

        Usage:
            async with store.transaction() as session:
                await store.push("book", {"id": book_id}, "notes", note_id, session=session)
                await store.insert_one("note", document, session=session)

        Commits when the block exits normally; rolls back on any exception.
        """
        async with self._unit(None, "transaction", "*") as session:
            yield session

    @asynccontextmanager
    async def _unit(
        self,
        session: Optional[AsyncSession],
        operation: str,
        collection: str,
    ) -> AsyncIterator[AsyncSession]:
        try:
            if session is not None:
                yield session
            else:
                async with self._session_factory() as own, own.begin():
                    yield own
        except _STORE_FAILURES as exc:
            logger.error(
                "Store %s on '%s' failed: %s: %s",
                operation, collection, type(exc).__name__, exc,
            )
            raise StoreError(
                context={
                    "operation": operation,
                    "collection": collection,
                    "error_type": type(exc).__name__,
                },
            ) from exc

    # ══════════════════════════════════════════════════════════════════════
    # Reads
    # ══════════════════════════════════════════════════════════════════════

    async def find_one(
        self,
        collection: str,
        filter: Mapping[str, Any],
        session: Optional[AsyncSession] = None,
    ) -> Optional[Document]:
        model = self._model(collection)
        async with self._unit(session, "find_one", collection) as s:
            instance = await self._first(s, model, filter)
            return self._to_document(instance) if instance is not None else None

    async def find(
        self,
        collection: str,
        filter: Optional[Mapping[str, Any]] = None,
        session: Optional[AsyncSession] = None,
    ) -> List[Document]:
        """All matching documents in store-native order (no ORDER BY)."""
        model = self._model(collection)
        async with self._unit(session, "find", collection) as s:
            result = await s.execute(select(model).where(*self._clauses(model, filter or {})))
            return [self._to_document(instance) for instance in result.scalars().all()]

    # ══════════════════════════════════════════════════════════════════════
    # Writes
    # ══════════════════════════════════════════════════════════════════════

    async def insert_one(
        self,
        collection: str,
        document: Mapping[str, Any],
        session: Optional[AsyncSession] = None,
    ) -> Identifier:
        """Insert a document; an `id` is minted when the document has none."""
        model = self._model(collection)
        values = dict(document)
        if not values.get("id"):
            values["id"] = Identifier.generate()
        self._check_fields(model, values)
        async with self._unit(session, "insert_one", collection) as s:
            s.add(model(**values))
            await s.flush()
        logger.debug("Inserted %s %s", collection, values["id"])
        return values["id"]

    async def update_one(
        self,
        collection: str,
        match: Mapping[str, Any],
        set_fields: Mapping[str, Any],
        session: Optional[AsyncSession] = None,
    ) -> UpdateResult:
        """Set fields on the first matching document."""
        model = self._model(collection)
        self._check_fields(model, set_fields)
        async with self._unit(session, "update_one", collection) as s:
            instance = await self._first(s, model, match)
            if instance is None:
                return UpdateResult(matched_count=0, modified_count=0)
            modified = self._apply(instance, set_fields)
            await s.flush()
            return UpdateResult(matched_count=1, modified_count=int(modified))

    async def find_one_and_update(
        self,
        collection: str,
        match: Mapping[str, Any],
        set_fields: Mapping[str, Any],
        session: Optional[AsyncSession] = None,
    ) -> Optional[Document]:
        """Set fields on the first matching document and return it as updated."""
        model = self._model(collection)
        self._check_fields(model, set_fields)
        async with self._unit(session, "find_one_and_update", collection) as s:
            instance = await self._first(s, model, match)
            if instance is None:
                return None
            self._apply(instance, set_fields)
            await s.flush()
            # Reload so values come back exactly as a later find_one reads them
            await s.refresh(instance)
            return self._to_document(instance)

    async def push(
        self,
        collection: str,
        match: Mapping[str, Any],
        field: str,
        value: Any,
        session: Optional[AsyncSession] = None,
    ) -> UpdateResult:
        """Append `value` to the list `field` of the first matching document."""
        model = self._model(collection)
        self._check_fields(model, {field: value})
        async with self._unit(session, "push", collection) as s:
            instance = await self._first(s, model, match, for_update=True)
            if instance is None:
                return UpdateResult(matched_count=0, modified_count=0)
            current = self._list_field(instance, field)
            # Assign a new list so the JSON column is flagged dirty
            setattr(instance, field, current + [value])
            await s.flush()
            return UpdateResult(matched_count=1, modified_count=1)

    async def pull(
        self,
        collection: str,
        match: Mapping[str, Any],
        field: str,
        value: Any,
        session: Optional[AsyncSession] = None,
    ) -> UpdateResult:
        """Remove every occurrence of `value` from the list `field`."""
        model = self._model(collection)
        self._check_fields(model, {field: value})
        async with self._unit(session, "pull", collection) as s:
            instance = await self._first(s, model, match, for_update=True)
            if instance is None:
                return UpdateResult(matched_count=0, modified_count=0)
            current = self._list_field(instance, field)
            remaining = [item for item in current if item != value]
            modified = len(remaining) != len(current)
            if modified:
                setattr(instance, field, remaining)
                await s.flush()
            return UpdateResult(matched_count=1, modified_count=int(modified))

    async def delete_one(
        self,
        collection: str,
        filter: Mapping[str, Any],
        session: Optional[AsyncSession] = None,
    ) -> int:
        model = self._model(collection)
        async with self._unit(session, "delete_one", collection) as s:
            instance = await self._first(s, model, filter)
            if instance is None:
                return 0
            await s.delete(instance)
            await s.flush()
            return 1

    async def delete_many(
        self,
        collection: str,
        filter: Mapping[str, Any],
        session: Optional[AsyncSession] = None,
    ) -> int:
        model = self._model(collection)
        async with self._unit(session, "delete_many", collection) as s:
            result = await s.execute(
                delete(model)
                .where(*self._clauses(model, filter))
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

    async def ping(self) -> None:
        """Round-trip a trivial query; raises StoreError when unreachable."""
        async with self._unit(None, "ping", "*") as s:
            await s.execute(text("SELECT 1"))

    # ══════════════════════════════════════════════════════════════════════
    # Helpers
    # ══════════════════════════════════════════════════════════════════════

    @staticmethod
    def _model(collection: str) -> Type[Base]:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection '{collection}'") from None

    @staticmethod
    def _field_names(model: Type[Base]) -> List[str]:
        return [attr.key for attr in sa_inspect(model).column_attrs]

    def _check_fields(self, model: Type[Base], values: Mapping[str, Any]) -> None:
        unknown = set(values) - set(self._field_names(model))
        if unknown:
            raise ValueError(
                f"Unknown field(s) for {model.__tablename__}: {', '.join(sorted(unknown))}"
            )

    def _clauses(self, model: Type[Base], filter: Mapping[str, Any]) -> list:
        self._check_fields(model, filter)
        return [getattr(model, key) == value for key, value in filter.items()]

    async def _first(
        self,
        session: AsyncSession,
        model: Type[Base],
        filter: Mapping[str, Any],
        for_update: bool = False,
    ) -> Optional[Base]:
        stmt = select(model).where(*self._clauses(model, filter)).limit(1)
        if for_update:
            # Row lock on PostgreSQL; SQLite ignores FOR UPDATE
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalars().first()

    @staticmethod
    def _list_field(instance: Base, field: str) -> list:
        current = getattr(instance, field)
        if current is None:
            return []
        if not isinstance(current, list):
            raise ValueError(f"Field '{field}' is not a list")
        return list(current)

    @staticmethod
    def _apply(instance: Base, set_fields: Mapping[str, Any]) -> bool:
        modified = False
        for key, value in set_fields.items():
            if getattr(instance, key) != value:
                setattr(instance, key, value)
                modified = True
        return modified

    def _to_document(self, instance: Base) -> Document:
        document = {}
        for key in self._field_names(type(instance)):
            value = getattr(instance, key)
            document[key] = list(value) if isinstance(value, list) else value
        return document
