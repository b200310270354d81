from __future__ import annotations

import pytest

from dxfcodec.coerce import (
    ValueKind,
    check_value,
    coerce_value,
    decode_unicode_escapes,
    encode_unicode_escapes,
    format_double,
    format_value,
    value_kind,
)
from dxfcodec.const import Revision
from dxfcodec.errors import MalformedToken, TypeMismatch
from dxfcodec.handle import Handle, HandleGenerator


@pytest.mark.parametrize(
    ("code", "kind"),
    [
        (0, ValueKind.TEXT),
        (5, ValueKind.HANDLE),
        (8, ValueKind.TEXT),
        (10, ValueKind.DOUBLE),
        (39, ValueKind.DOUBLE),
        (62, ValueKind.INT16),
        (90, ValueKind.INT32),
        (100, ValueKind.TEXT),
        (105, ValueKind.HANDLE),
        (210, ValueKind.DOUBLE),
        (280, ValueKind.INT8),
        (290, ValueKind.BOOL),
        (310, ValueKind.BINARY),
        (330, ValueKind.HANDLE),
        (360, ValueKind.HANDLE),
        (370, ValueKind.INT16),
        (420, ValueKind.INT32),
        (999, ValueKind.TEXT),
        (1000, ValueKind.TEXT),
        (1004, ValueKind.BINARY),
        (1005, ValueKind.HANDLE),
        (1010, ValueKind.DOUBLE),
        (1071, ValueKind.INT32),
    ],
)
def test_value_kind_by_code_range(code: int, kind: ValueKind) -> None:
    assert value_kind(code) is kind


@pytest.mark.parametrize("code", [80, 150, 250, 1072, 2000])
def test_value_kind_rejects_undocumented_codes(code: int) -> None:
    with pytest.raises(MalformedToken):
        value_kind(code)


@pytest.mark.parametrize(
    ("code", "text", "expected"),
    [
        (40, " 2.5 ", 2.5),
        (70, "  3", 3),
        (90, "-12", -12),
        (290, "1", True),
        (5, "2A", Handle(0x2A)),
        (310, "0aff", b"\x0a\xff"),
        (1, "  keep spaces ", "  keep spaces "),
    ],
)
def test_coerce_value(code: int, text: str, expected: object) -> None:
    assert coerce_value(code, text) == expected


@pytest.mark.parametrize(("code", "text"), [(40, "abc"), (70, "1.5"), (5, "zz"), (310, "0g")])
def test_coerce_value_type_mismatch(code: int, text: str) -> None:
    with pytest.raises(TypeMismatch) as exc_info:
        coerce_value(code, text)

    assert exc_info.value.code == code


def test_format_double_uses_six_digits_unless_lossy() -> None:
    assert format_double(1.0) == "1.000000"
    assert format_double(-0.25) == "-0.250000"
    assert format_double(0.1 + 0.2) == repr(0.1 + 0.2)
    assert float(format_double(1e-7)) == 1e-7


def test_format_value_by_kind() -> None:
    assert format_value(5, Handle(255)) == "ff"
    assert format_value(310, b"\x0a\xff") == "0AFF"
    assert format_value(290, False) == "0"
    assert format_value(62, 256) == "256"
    assert format_value(1, "Ω", Revision.R14) == "\\U+03A9"
    assert format_value(1, "Ω", Revision.R2010) == "Ω"


def test_unicode_escapes_round_trip() -> None:
    text = "Ω 😀 plain"

    escaped = encode_unicode_escapes(text)

    assert escaped == "\\U+03A9 \\U+D83D\\U+DE00 plain"
    assert decode_unicode_escapes(escaped) == text
    assert coerce_value(1, escaped, Revision.R2000) == text
    assert coerce_value(1, escaped, Revision.R2007) == escaped


def test_check_value_converts_application_values() -> None:
    assert check_value(62, 1.0) == 1
    assert check_value(40, 2) == 2.0
    assert check_value(5, "2a") == Handle(0x2A)
    assert check_value(310, "0AFF") == b"\x0a\xff"
    with pytest.raises(TypeMismatch):
        check_value(62, 1.5)
    with pytest.raises(TypeMismatch):
        check_value(8, 5)


def test_handle_type() -> None:
    handle = Handle("2A")

    assert handle == 42
    assert str(handle) == "2a"
    assert repr(handle) == "Handle('2a')"
    with pytest.raises(ValueError):
        Handle(-1)
    with pytest.raises(ValueError):
        Handle.parse("xyz")


def test_handle_generator_advances_past_loaded_handles() -> None:
    handles = HandleGenerator()

    assert handles.next() == 1
    handles.advance_past(Handle("10"))
    assert handles.seed == 0x11
    handles.advance_past(3)
    assert handles.next() == 0x11
    assert handles.next() == 0x12


def test_revision_parsing() -> None:
    assert Revision.parse("R2000") is Revision.R2000
    assert Revision.parse("r2000i") is Revision.R2000i
    assert Revision.parse("AC1015") is Revision.R2002
    assert Revision.from_acadver("AC1009") is Revision.R12
    assert Revision.R2004.acadver == "AC1018"
    assert str(Revision.R14) == "R14"
    assert Revision.R12 < Revision.R13
    with pytest.raises(ValueError):
        Revision.from_acadver("AC9999")
