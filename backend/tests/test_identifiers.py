"""
Readlog Backend — Identifier Codec Tests
==========================================

What we test:
    ✅ Canonical 24-hex strings decode (case-insensitive, normalized to lowercase)
    ✅ Everything else raises InvalidIdentifierError naming the field
    ✅ Generated identifiers are unique, canonical and carry their creation time
"""

from datetime import datetime, timedelta, timezone

import pytest

from readlog.exceptions import InvalidIdentifierError, ValidationError
from readlog.identifiers import (
    Identifier,
    decode_identifier,
    decode_optional_identifier,
    is_valid_identifier,
)

VALID = "6523f1c2a9e4b0d1c8a7e3f0"


class TestDecode:

    def test_decode_valid(self):
        oid = decode_identifier(VALID)
        assert str(oid) == VALID
        assert len(oid.binary) == 12

    def test_decode_uppercase_is_normalized(self):
        oid = decode_identifier(VALID.upper())
        assert str(oid) == VALID
        assert oid == decode_identifier(VALID)

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "abc",
            VALID[:-1],
            VALID + "0",
            "zz23f1c2a9e4b0d1c8a7e3f0",
            " " + VALID[1:],
            None,
            12345,
            b"6523f1c2a9e4b0d1c8a7e3f0",
        ],
    )
    def test_decode_rejects_non_canonical(self, value):
        with pytest.raises(InvalidIdentifierError):
            decode_identifier(value)

    def test_error_names_field_and_is_a_validation_error(self):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            decode_identifier("nope", field="bookID")
        assert exc_info.value.field == "bookID"
        assert "bookID" in exc_info.value.message
        assert isinstance(exc_info.value, ValidationError)

    def test_decode_optional(self):
        assert decode_optional_identifier(None, "replyTo") is None
        assert decode_optional_identifier("", "replyTo") is None
        assert str(decode_optional_identifier(VALID, "replyTo")) == VALID
        with pytest.raises(InvalidIdentifierError):
            decode_optional_identifier("x", "replyTo")

    def test_is_valid_identifier(self):
        assert is_valid_identifier(VALID)
        assert not is_valid_identifier("x" * 24)
        assert not is_valid_identifier(None)


class TestGenerate:

    def test_generated_ids_are_unique(self):
        ids = {Identifier.generate() for _ in range(1000)}
        assert len(ids) == 1000

    def test_generated_id_round_trips_through_decode(self):
        oid = Identifier.generate()
        assert is_valid_identifier(str(oid))
        assert decode_identifier(str(oid)) == oid

    def test_generation_time(self):
        when = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
        oid = Identifier.generate(when)
        assert oid.generation_time == when

        now = datetime.now(timezone.utc)
        assert abs(Identifier.generate().generation_time - now) < timedelta(seconds=5)

    def test_nil_identifier(self):
        assert str(Identifier.NIL) == "0" * 24
        assert not Identifier.NIL
        assert Identifier.generate()

    def test_requires_twelve_bytes(self):
        with pytest.raises(ValueError):
            Identifier(b"short")

    def test_equality_and_hash(self):
        a = Identifier.from_string(VALID)
        b = Identifier.from_string(VALID)
        assert a == b
        assert hash(a) == hash(b)
        assert a != Identifier.generate()
        assert a != VALID  # not equal to its string form

    def test_counter_uses_all_three_bytes(self, monkeypatch):
        monkeypatch.setattr(Identifier, "_counter", 0xFFFFFE)

        top = Identifier.generate()
        wrapped = Identifier.generate()

        assert top.binary[9:] == b"\xff\xff\xff"
        assert wrapped.binary[9:] == b"\x00\x00\x00"
