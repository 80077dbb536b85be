"""
Readlog Backend — Identifier Codec
====================================

What:  The 12-byte identifier assigned to every book and note, and the codec
       between it and its external form (24 lowercase hex characters).
Why:   Every identifier that arrives from a client (path, query, body) is
       decoded here first, so malformed ids are rejected before the store is
       touched.
How:   Identifier wraps 12 raw bytes:
           [0:4]   creation time, big-endian seconds since the epoch
           [4:9]   per-process random value
           [9:12]  incrementing counter (starts at a random value)
       decode_identifier() only accepts the canonical 24-hex-character form.
"""

import os
import re
import threading
from datetime import datetime, timezone
from typing import Any, Optional

from readlog.exceptions import InvalidIdentifierError

_HEX_PATTERN = re.compile(r"[0-9a-fA-F]{24}")


class Identifier:
    """Immutable 12-byte identifier; compares and hashes by value."""

    __slots__ = ("_raw",)

    _lock = threading.Lock()
    _counter = int.from_bytes(os.urandom(3), "big")
    _process_random = os.urandom(5)
    _pid = os.getpid()

    NIL: "Identifier"

    def __init__(self, raw: bytes):
        if not isinstance(raw, (bytes, bytearray)) or len(raw) != 12:
            raise ValueError("Identifier requires exactly 12 bytes")
        self._raw = bytes(raw)

    @classmethod
    def generate(cls, when: Optional[datetime] = None) -> "Identifier":
        """Mint a new identifier, unique within this process."""
        seconds = int((when or datetime.now(timezone.utc)).timestamp())
        with cls._lock:
            # Forked workers must not share the parent's random part
            if os.getpid() != cls._pid:
                cls._pid = os.getpid()
                cls._process_random = os.urandom(5)
            cls._counter = (cls._counter + 1) & 0xFFFFFF
            counter = cls._counter
            process_random = cls._process_random
        return cls(
            seconds.to_bytes(4, "big")
            + process_random
            + counter.to_bytes(3, "big")
        )

    @classmethod
    def from_string(cls, text: str) -> "Identifier":
        return cls(bytes.fromhex(text))

    @property
    def binary(self) -> bytes:
        return self._raw

    @property
    def generation_time(self) -> datetime:
        return datetime.fromtimestamp(int.from_bytes(self._raw[:4], "big"), tz=timezone.utc)

    def __str__(self) -> str:
        return self._raw.hex()

    def __repr__(self) -> str:
        return f"Identifier('{self}')"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Identifier):
            return self._raw == other._raw
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._raw)

    def __bool__(self) -> bool:
        return self._raw != bytes(12)


Identifier.NIL = Identifier(bytes(12))


def is_valid_identifier(value: Any) -> bool:
    return isinstance(value, str) and _HEX_PATTERN.fullmatch(value) is not None


def decode_identifier(value: Any, field: str = "id") -> Identifier:
    """
    Decode the external string form of an identifier.

    Args:
        value: Client-supplied value; must be a 24-character hex string.
        field: Name reported in the error (e.g. 'id', 'bookID', 'replyTo').

    Raises:
        InvalidIdentifierError: Anything other than the canonical form.
    """
    if not is_valid_identifier(value):
        raise InvalidIdentifierError(value=value, field=field)
    return Identifier.from_string(value)


def decode_optional_identifier(value: Any, field: str) -> Optional[Identifier]:
    """Like decode_identifier, but None and '' mean "no identifier"."""
    if value is None or value == "":
        return None
    return decode_identifier(value, field=field)
