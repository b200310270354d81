"""Declarative record schemas.

Every entity, object, table entry and class is described by an
``EntitySchema``: an ordered list of ``Subclass`` groups, each holding the
``Field`` declarations written after its subclass marker. The generic
reader and writer in ``codec.py`` are driven entirely by these tables.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Any, Callable, Iterator, NamedTuple

from .const import Revision


class Shape(Enum):
    SCALAR = "scalar"
    POINT = "point"
    POINT2D = "point2d"
    LIST = "list"
    POINTS = "points"
    POINTS2D = "points2d"
    BINARY = "binary"
    RECORDS = "records"
    TAGS = "tags"
    COUNT = "count"


class _NoDefault:
    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT: Any = _NoDefault()

STRICT = "strict"
SILENT = "silent"

ENTITY = "entity"
OBJECT = "object"
TABLE_ENTRY = "table_entry"
TABLE = "table"
CLASS = "class"

ORIGIN = (0.0, 0.0, 0.0)
ORIGIN2D = (0.0, 0.0)
Z_AXIS = (0.0, 0.0, 1.0)
X_AXIS = (1.0, 0.0, 0.0)

Check = Callable[[Any], "str | None"]


@dataclass(frozen=True)
class Field:
    name: str
    code: int
    shape: Shape = Shape.SCALAR
    default: Any = NO_DEFAULT
    always: bool = False
    min_revision: Revision | None = None
    max_revision: Revision | None = None
    gate: str = STRICT
    bounds: tuple[int, int] | None = None
    check: Check | None = None
    follows: tuple[int, ...] = ()
    count_of: str | None = None
    members: tuple["Field", ...] = ()
    stop_codes: frozenset[int] = frozenset()
    until: tuple[int, str] | None = None
    bits: int | None = None
    flatland: bool = False
    accept: frozenset[int] = frozenset()
    emit: bool = True
    # written in place of an empty string
    blank: Any = None

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @property
    def is_point(self) -> bool:
        return self.shape in (Shape.POINT, Shape.POINT2D, Shape.POINTS, Shape.POINTS2D)

    @property
    def dimensions(self) -> int:
        return 2 if self.shape in (Shape.POINT2D, Shape.POINTS2D) else 3

    def supports(self, revision: Revision) -> bool:
        if self.min_revision is not None and revision < self.min_revision:
            return False
        if self.max_revision is not None and revision > self.max_revision:
            return False
        return True

    def is_default(self, value: Any) -> bool:
        return self.has_default and value == self.default

    @property
    def bits_name(self) -> str:
        return f"{self.name}_bits"


@dataclass(frozen=True)
class Subclass:
    marker: str | None
    fields: tuple[Field, ...] = ()
    min_revision: Revision | None = None
    when: Callable[[dict[str, Any]], bool] | None = None
    catch_all: str | None = None

    def applies(self, dxf: dict[str, Any]) -> bool:
        return self.when is None or bool(self.when(dxf))


class Slot(NamedTuple):
    group: int
    field: Field
    axis: int | None = None
    member: Field | None = None

    @property
    def starts_record(self) -> bool:
        member = self.member
        return member is not None and member is self.field.members[0] and self.axis in (None, 0)


@dataclass(frozen=True)
class EntitySchema:
    name: str
    kind: str
    groups: tuple[Subclass, ...] = ()
    common: Subclass | None = None
    leading: tuple[Field, ...] = ()
    trailer: tuple[Field, ...] = ()
    min_revision: Revision | None = None
    max_revision: Revision | None = None
    handle_code: int | None = 5
    checks: tuple[Callable[[dict[str, Any]], Iterator[tuple[str, str]]], ...] = ()
    advisories: tuple[Callable[[dict[str, Any]], Iterator[tuple[str, str]]], ...] = ()

    @cached_property
    def layout(self) -> tuple[Subclass, ...]:
        """Leading fields, common group, payload groups, trailer; write order."""
        parts: list[Subclass] = [Subclass(None, self.leading)]
        parts.append(self.common if self.common is not None else Subclass(None))
        parts.extend(self.groups)
        parts.append(Subclass(None, self.trailer))
        return tuple(parts)

    @property
    def common_position(self) -> int:
        return 1

    @property
    def trailer_position(self) -> int:
        return len(self.layout) - 1

    @cached_property
    def index(self) -> dict[int, tuple[Slot, ...]]:
        slots: dict[int, list[Slot]] = {}
        for position, group in enumerate(self.layout):
            for field in group.fields:
                for code, slot in _field_slots(position, field):
                    slots.setdefault(code, []).append(slot)
        return {code: tuple(items) for code, items in slots.items()}

    def fields(self) -> Iterator[tuple[Subclass, Field]]:
        for group in self.layout:
            for field in group.fields:
                yield group, field

    def field(self, name: str) -> Field | None:
        for _group, field in self.fields():
            if field.name == name:
                return field
        return None

    def supports(self, revision: Revision) -> bool:
        if self.min_revision is not None and revision < self.min_revision:
            return False
        if self.max_revision is not None and revision > self.max_revision:
            return False
        return True

    def markers(self) -> tuple[str, ...]:
        return tuple(group.marker for group in self.layout if group.marker)


def _field_slots(position: int, field: Field) -> Iterator[tuple[int, Slot]]:
    if field.shape is Shape.RECORDS:
        for member in field.members:
            if member.is_point:
                for axis in range(member.dimensions):
                    yield member.code + 10 * axis, Slot(position, field, axis, member)
            else:
                yield member.code, Slot(position, field, None, member)
        return
    if field.is_point:
        for axis in range(field.dimensions):
            yield field.code + 10 * axis, Slot(position, field, axis)
        return
    yield field.code, Slot(position, field)
    for code in sorted(field.accept - {field.code}):
        yield code, Slot(position, field)


# -- builders -----------------------------------------------------------------


def value(name: str, code: int, default: Any = NO_DEFAULT, **options: Any) -> Field:
    """A scalar written on every save."""
    return Field(name, code, default=default, always=True, **options)


def optional(name: str, code: int, default: Any = NO_DEFAULT, **options: Any) -> Field:
    """A scalar written only when set to something other than its default."""
    return Field(name, code, default=default, **options)


def point(name: str, code: int, default: Any = ORIGIN, **options: Any) -> Field:
    return Field(name, code, Shape.POINT, default=default, always=True, **options)


def optional_point(name: str, code: int, default: Any = NO_DEFAULT, **options: Any) -> Field:
    return Field(name, code, Shape.POINT, default=default, **options)


def point2d(name: str, code: int, default: Any = ORIGIN2D, **options: Any) -> Field:
    return Field(name, code, Shape.POINT2D, default=default, always=True, **options)


def optional_point2d(name: str, code: int, default: Any = NO_DEFAULT, **options: Any) -> Field:
    return Field(name, code, Shape.POINT2D, default=default, **options)


def values(name: str, code: int, **options: Any) -> Field:
    return Field(name, code, Shape.LIST, **options)


def points(name: str, code: int, **options: Any) -> Field:
    return Field(name, code, Shape.POINTS, **options)


def points2d(name: str, code: int, **options: Any) -> Field:
    return Field(name, code, Shape.POINTS2D, **options)


def binary(name: str, code: int, **options: Any) -> Field:
    return Field(name, code, Shape.BINARY, **options)


def records(name: str, *members: Field, **options: Any) -> Field:
    return Field(name, members[0].code, Shape.RECORDS, members=tuple(members), **options)


def raw_tags(
    name: str,
    code: int,
    stop: tuple[int, ...] = (),
    until: tuple[int, str] | None = None,
    accept: tuple[int, ...] = (),
    **options: Any,
) -> Field:
    return Field(
        name,
        code,
        Shape.TAGS,
        stop_codes=frozenset(stop),
        until=until,
        accept=frozenset(accept),
        **options,
    )


def count(name: str, code: int, of: str, **options: Any) -> Field:
    return Field(name, code, Shape.COUNT, count_of=of, always=True, **options)


def extrusion(code: int = 210, name: str = "extrusion") -> Field:
    return Field(
        name,
        code,
        Shape.POINT,
        default=Z_AXIS,
        min_revision=Revision.R12,
        gate=SILENT,
    )


# -- checks -------------------------------------------------------------------


def positive(value: Any) -> str | None:
    return None if value > 0 else "must be > 0"


def non_negative(value: Any) -> str | None:
    return None if value >= 0 else "must be >= 0"


def non_zero(value: Any) -> str | None:
    return None if value != 0 else "must be non-zero"
