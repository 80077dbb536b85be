"""
Column types shared by the book and note models.

IdentifierType:      one identifier as its 24-character hex form
IdentifierListType:  ordered list of identifiers as a JSON array of hex strings
UTCDateTime:         timestamp normalized to UTC on every backend
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.types import TypeDecorator

from readlog.identifiers import Identifier


class IdentifierType(TypeDecorator):
    impl = String(24)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, Identifier):
            return str(value)
        # Already-encoded strings are accepted for filters built from raw values
        return str(Identifier.from_string(value))

    def process_result_value(self, value: Optional[str], dialect) -> Optional[Identifier]:
        if value is None:
            return None
        return Identifier.from_string(value)


class IdentifierListType(TypeDecorator):
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> List[str]:
        return [str(item) for item in (value or [])]

    def process_result_value(self, value: Any, dialect) -> List[Identifier]:
        return [Identifier.from_string(item) for item in (value or [])]


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp that always round-trips in UTC.

    SQLite has no timestamp-with-time-zone type and would drop the offset, so
    values are converted to UTC before binding and tagged as UTC on load.
    Naive values are taken to be UTC already.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
