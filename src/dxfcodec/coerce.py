from __future__ import annotations

import re
from enum import Enum
from functools import lru_cache
from typing import Any

from .const import Revision
from .errors import MalformedToken, TypeMismatch
from .handle import Handle


class ValueKind(Enum):
    TEXT = "text"
    HANDLE = "handle"
    DOUBLE = "double"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    BOOL = "bool"
    BINARY = "binary"


# Single codes first, then ranges; first match wins.
_SINGLE_CODES = {
    5: ValueKind.HANDLE,
    105: ValueKind.HANDLE,
    999: ValueKind.TEXT,
    1004: ValueKind.BINARY,
    1005: ValueKind.HANDLE,
    1071: ValueKind.INT32,
}

_RANGES = (
    (0, 9, ValueKind.TEXT),
    (10, 59, ValueKind.DOUBLE),
    (60, 79, ValueKind.INT16),
    (90, 99, ValueKind.INT32),
    (100, 102, ValueKind.TEXT),
    (110, 149, ValueKind.DOUBLE),
    (160, 169, ValueKind.INT64),
    (170, 179, ValueKind.INT16),
    (210, 239, ValueKind.DOUBLE),
    (270, 279, ValueKind.INT16),
    (280, 289, ValueKind.INT8),
    (290, 299, ValueKind.BOOL),
    (300, 309, ValueKind.TEXT),
    (310, 319, ValueKind.BINARY),
    (320, 369, ValueKind.HANDLE),
    (370, 389, ValueKind.INT16),
    (390, 399, ValueKind.HANDLE),
    (400, 409, ValueKind.INT16),
    (410, 419, ValueKind.TEXT),
    (420, 429, ValueKind.INT32),
    (430, 439, ValueKind.TEXT),
    (440, 459, ValueKind.INT32),
    (460, 469, ValueKind.DOUBLE),
    (470, 479, ValueKind.TEXT),
    (480, 481, ValueKind.HANDLE),
    (1000, 1009, ValueKind.TEXT),
    (1010, 1059, ValueKind.DOUBLE),
    (1060, 1070, ValueKind.INT16),
)

_INTEGER_KINDS = {ValueKind.INT8, ValueKind.INT16, ValueKind.INT32, ValueKind.INT64}

_UNICODE_ESCAPE_RE = re.compile(r"\\[Uu]\+([0-9A-Fa-f]{4})")


@lru_cache(maxsize=None)
def value_kind(code: int) -> ValueKind:
    kind = _SINGLE_CODES.get(code)
    if kind is not None:
        return kind
    for low, high, kind in _RANGES:
        if low <= code <= high:
            return kind
    raise MalformedToken(f"group code {code} is outside the documented ranges", code=code)


def coerce_value(code: int, text: str, revision: Revision | None = None) -> Any:
    kind = value_kind(code)
    try:
        if kind is ValueKind.TEXT:
            if revision is not None and revision < Revision.R2007:
                return decode_unicode_escapes(text)
            return text
        if kind is ValueKind.DOUBLE:
            return float(text.strip())
        if kind in _INTEGER_KINDS:
            return int(text.strip())
        if kind is ValueKind.BOOL:
            return bool(int(text.strip()))
        if kind is ValueKind.HANDLE:
            return Handle.parse(text)
        return bytes.fromhex(text.strip())
    except ValueError as exc:
        raise TypeMismatch(
            f"group code {code} expects {kind.value}, got {text!r}", code=code
        ) from exc


def format_value(code: int, value: Any, revision: Revision | None = None) -> str:
    kind = value_kind(code)
    if kind is ValueKind.DOUBLE:
        return format_double(value)
    if kind in _INTEGER_KINDS:
        return str(int(value))
    if kind is ValueKind.BOOL:
        return "1" if value else "0"
    if kind is ValueKind.HANDLE:
        return format(int(value), "x")
    if kind is ValueKind.BINARY:
        return bytes(value).hex().upper()
    text = str(value)
    if revision is not None and revision < Revision.R2007:
        return encode_unicode_escapes(text)
    return text


def format_double(value: float) -> str:
    value = float(value)
    text = f"{value:.6f}"
    if float(text) != value:
        text = repr(value)
    return text


def check_value(code: int, value: Any) -> Any:
    """Coerce an application-supplied value to the Python type of ``code``."""
    kind = value_kind(code)
    try:
        if kind is ValueKind.DOUBLE:
            return float(value)
        if kind in _INTEGER_KINDS:
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(value)
            return int(value)
        if kind is ValueKind.BOOL:
            return bool(value)
        if kind is ValueKind.HANDLE:
            return value if isinstance(value, Handle) else Handle(value)
        if kind is ValueKind.BINARY:
            return bytes.fromhex(value) if isinstance(value, str) else bytes(value)
    except (TypeError, ValueError) as exc:
        raise TypeMismatch(
            f"group code {code} expects {kind.value}, got {value!r}", code=code
        ) from exc
    if not isinstance(value, str):
        raise TypeMismatch(f"group code {code} expects text, got {value!r}", code=code)
    return value


def decode_unicode_escapes(text: str) -> str:
    if "\\U+" not in text and "\\u+" not in text:
        return text
    decoded = _UNICODE_ESCAPE_RE.sub(lambda match: chr(int(match.group(1), 16)), text)
    # astral characters arrive as escaped surrogate pairs
    return decoded.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "replace")


def encode_unicode_escapes(text: str) -> str:
    chars = []
    for char in text:
        try:
            char.encode("cp1252")
        except UnicodeEncodeError:
            units = char.encode("utf-16-be", "surrogatepass")
            for i in range(0, len(units), 2):
                chars.append(f"\\U+{int.from_bytes(units[i:i + 2], 'big'):04X}")
            continue
        chars.append(char)
    return "".join(chars)
