"""Generic record reader and writer driven by the registry schemas."""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Iterator

from .coerce import check_value, coerce_value
from .config import DEFAULT_CONFIG, CodecConfig
from .const import DEFAULT_SOURCE_REVISION, Revision
from .entity import AppData, Entity
from .errors import (
    Diagnostics,
    InvalidEntity,
    OutOfRange,
    RecordError,
    TruncatedEntity,
    TypeMismatch,
    UnsupportedByVersion,
)
from .registry import get_schema, lookup
from .schema import CLASS, NO_DEFAULT, STRICT, EntitySchema, Field, Shape, Slot, Subclass
from .tags import Tag, TagReader

logger = logging.getLogger(__name__)

REACTORS = "{ACAD_REACTORS"
XDICTIONARY = "{ACAD_XDICTIONARY"

_DROP = object()
_COLLECTIONS = (Shape.LIST, Shape.POINTS, Shape.POINTS2D, Shape.BINARY, Shape.RECORDS, Shape.TAGS)
_TAGS_END = frozenset({0, 100, 1001})


@dataclass
class ReadContext:
    config: CodecConfig = DEFAULT_CONFIG
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    revision: Revision = DEFAULT_SOURCE_REVISION

    @property
    def strict(self) -> bool:
        return self.config.strict


# -- read ---------------------------------------------------------------------


def read_record(name: str, reader: TagReader, ctx: ReadContext) -> Entity:
    """Consume one record body up to (not including) the next ``(0, ...)`` tag."""
    schema = get_schema(name)
    state = _RecordReader(schema, reader, ctx)
    for code, text in reader:
        if code == 0:
            reader.push_back(Tag(code, text))
            break
        state.feed(code, text)
    else:
        raise TruncatedEntity(
            f"end of file inside {schema.name}",
            filename=reader.filename,
            line=reader.line,
            entity=schema.name,
        )
    state.finish()
    return state.entity


class _RecordReader:
    def __init__(self, schema: EntitySchema, reader: TagReader, ctx: ReadContext) -> None:
        self.schema = schema
        self.reader = reader
        self.ctx = ctx
        self.entity = Entity(schema.name)
        self.values = self.entity.dxf
        self.current: int | None = None
        self.marker_seen = False
        self.handle_seen = False
        self.seq = 0
        self.last_seen: dict[int, int] = {}
        self.counts: dict[str, int] = {}
        self.records_field: Field | None = None
        self.tags_field: Field | None = None
        self.catch_all: str | None = None
        self.xdata_app: str | None = None
        self.gated: set[str] = set()

    # dispatch

    def feed(self, code: int, text: str) -> None:
        self.seq += 1
        if code == 999:
            self._comment(text)
            return
        if self.tags_field is not None and self._capture(code, text):
            return
        if code == 1001 or self.xdata_app is not None:
            self._xdata(code, text)
            return
        if code == 102:
            self._app_group(text)
            return
        if code == 100:
            self._marker(text.strip())
            return
        if code == self.schema.handle_code and not self.handle_seen:
            self.handle_seen = True
            handle = self._coerce(code, text)
            if handle is not _DROP:
                self.entity.handle = handle
            return
        if (
            code == 330
            and not self.marker_seen
            and self.entity.owner is None
            and self.schema.kind != CLASS
        ):
            owner = self._coerce(code, text)
            if owner is not _DROP:
                self.entity.owner = owner
            return

        if self.catch_all is not None:
            self._catch(code, text)
            return
        slot = self._lookup(code)
        if slot is None:
            if self._catch_all_name() is not None:
                self.catch_all = self._catch_all_name()
                self._catch(code, text)
                return
            self._warn(
                "UnknownTag",
                f"group code {code} is not defined for {self.schema.name}",
                code=code,
            )
            return
        self._store(slot, code, text)
        self.last_seen[code] = self.seq

    def finish(self) -> None:
        values = self.values
        for _group, fld in self.schema.fields():
            if fld.name not in values:
                continue
            values[fld.name] = _freeze(fld, values[fld.name])
        for name, declared in self.counts.items():
            fld = self.schema.field(name)
            actual = len(values.get(fld.count_of, ()) or ())
            if declared != actual:
                self._warn(
                    "CountMismatch",
                    f"{name} declares {declared} items, found {actual}",
                    field=name,
                    code=fld.code,
                )
        apply_defaults(self.entity, self.schema)
        for advisory in self.schema.advisories:
            for name, message in advisory(values):
                self._warn("Advisory", message, field=name)
        try:
            validate_record(self.entity, self.schema)
        except RecordError as exc:
            raise self._locate(exc) from None

    # structure

    def _marker(self, marker: str) -> None:
        self.marker_seen = True
        self.records_field = None
        self.catch_all = None
        layout = self.schema.layout
        start = self.current + 1 if self.current is not None else 0
        for position in (*range(start, len(layout)), *range(0, start)):
            if layout[position].marker == marker:
                self.current = position
                return
        self._warn(
            "BadSubclassMarker",
            f"subclass marker {marker!r} is not part of {self.schema.name}",
            code=100,
        )

    def _app_group(self, text: str) -> None:
        name = text.strip()
        if not name.startswith("{"):
            self._warn("UnknownTag", f"unexpected application group tag {name!r}", code=102)
            return
        tags: list[Tag] = []
        for code, raw in self.reader:
            if code == 102 and raw.strip() == "}":
                break
            if code == 0:
                self.reader.push_back(Tag(code, raw))
                self._warn("UnknownTag", f"application group {name} is not closed", code=102)
                break
            value = self._coerce(code, raw)
            if value is not _DROP:
                tags.append(Tag(code, value))
        else:
            raise TruncatedEntity(
                f"end of file inside application group {name}",
                filename=self.reader.filename,
                line=self.reader.line,
                entity=self.schema.name,
            )
        if name == REACTORS:
            self.entity.reactors.extend(value for code, value in tags if code == 330)
        elif name == XDICTIONARY and tags:
            self.entity.xdictionary = tags[0].value
        else:
            self.entity.appdata.append(AppData(name, tags))

    def _xdata(self, code: int, text: str) -> None:
        if code == 1001:
            app = text.strip()
            self.entity.xdata.setdefault(app, [])
            self.xdata_app = app
            return
        if code < 1000:
            self._warn(
                "UnknownTag",
                f"group code {code} after extended data of {self.xdata_app}",
                code=code,
            )
            return
        value = self._coerce(code, text)
        if value is not _DROP:
            self.entity.xdata[self.xdata_app].append(Tag(code, value))

    def _comment(self, text: str) -> None:
        logger.debug("%s:%s: comment: %s", self.reader.filename, self.reader.line, text)
        if self.ctx.config.preserve_comments:
            self.entity.comments.append(text)

    def _catch_all_name(self) -> str | None:
        layout = self.schema.layout
        if self.current is not None:
            return layout[self.current].catch_all
        for group in layout:
            if group.catch_all:
                return group.catch_all
        return None

    def _catch(self, code: int, text: str) -> None:
        value = self._coerce(code, text)
        if value is not _DROP:
            self.values.setdefault(self.catch_all, []).append(Tag(code, value))

    # fields

    def _lookup(self, code: int) -> Slot | None:
        slots = self.schema.index.get(code)
        if not slots:
            return None
        if self.records_field is not None:
            for slot in slots:
                if slot.field is self.records_field and slot.member is not None:
                    return slot
            self.records_field = None
        candidates = [slot for slot in slots if slot.member is None or slot.starts_record]
        if not candidates:
            return None
        return min(candidates, key=self._rank)

    def _rank(self, slot: Slot) -> tuple[int, int, int]:
        if slot.group == self.current:
            tier = 0
        elif slot.group == self.schema.common_position:
            tier = 1
        else:
            tier = 2
        follows = slot.field.follows
        if not follows:
            score = 0
        else:
            score = max(self.last_seen.get(code, -1) for code in follows)
        return (tier, -score, slot.group)

    def _store(self, slot: Slot, code: int, text: str) -> None:
        fld = slot.field
        value = self._coerce(code, text)
        if value is _DROP:
            return
        self._gate(fld, code)
        values = self.values
        if slot.member is not None:
            self._store_member(slot, value)
            return
        shape = fld.shape
        if shape is Shape.SCALAR:
            self._store_scalar(fld, value)
        elif shape is Shape.COUNT:
            self.counts[fld.name] = value
        elif shape in (Shape.LIST, Shape.BINARY):
            values.setdefault(fld.name, []).append(value)
        elif shape in (Shape.POINT, Shape.POINT2D):
            current = values.get(fld.name)
            if slot.axis == 0 or not isinstance(current, list):
                current = [0.0] * fld.dimensions
                values[fld.name] = current
            current[slot.axis] = value
        elif shape in (Shape.POINTS, Shape.POINTS2D):
            items = values.setdefault(fld.name, [])
            if slot.axis == 0 or not items:
                items.append([0.0] * fld.dimensions)
            items[-1][slot.axis] = value
        elif shape is Shape.TAGS:
            values.setdefault(fld.name, []).append(Tag(code, value))
            if fld.until is None or (code, value) != fld.until:
                self.tags_field = fld

    def _store_scalar(self, fld: Field, value: Any) -> None:
        if fld.bits is not None:
            self.values[fld.bits_name] = int(value) & ~fld.bits
            value = int(value) & fld.bits
        if fld.bounds is not None and isinstance(value, int):
            low, high = fld.bounds
            if not low <= value <= high:
                message = f"{fld.name}={value} is outside {low}..{high}"
                if self.ctx.strict:
                    raise self._locate(
                        OutOfRange(message, entity=self.schema.name, field=fld.name, code=fld.code)
                    )
                self._warn("OutOfRange", f"{message}, clamped", field=fld.name, code=fld.code)
                value = min(max(value, low), high)
        self.values[fld.name] = value

    def _store_member(self, slot: Slot, value: Any) -> None:
        fld = slot.field
        member = slot.member
        items = self.values.setdefault(fld.name, [])
        self.records_field = fld
        if slot.starts_record or not items:
            items.append({})
        item = items[-1]
        if member.is_point:
            current = item.get(member.name)
            if slot.axis == 0 or current is None:
                current = [0.0] * member.dimensions
                item[member.name] = current
            current[slot.axis] = value
        else:
            item[member.name] = value

    def _capture(self, code: int, text: str) -> bool:
        fld = self.tags_field
        if code in _TAGS_END or code in fld.stop_codes or (fld.accept and code not in fld.accept):
            self.tags_field = None
            return False
        value = self._coerce(code, text)
        if value is not _DROP:
            self.values[fld.name].append(Tag(code, value))
            if fld.until is not None and (code, value) == fld.until:
                self.tags_field = None
        return True

    def _gate(self, fld: Field, code: int) -> None:
        if fld.supports(self.ctx.revision) or not self.ctx.strict or fld.name in self.gated:
            return
        self.gated.add(fld.name)
        self._warn(
            "UnsupportedByVersion",
            f"{fld.name} (group {code}) is not defined for {self.ctx.revision}",
            field=fld.name,
            code=code,
        )

    def _coerce(self, code: int, text: str) -> Any:
        try:
            return coerce_value(code, text, self.ctx.revision)
        except TypeMismatch as exc:
            if self.ctx.strict:
                raise self._locate(exc) from None
            self._warn("TypeMismatch", f"{exc.message}, dropped", code=code)
            return _DROP

    # diagnostics

    def _warn(self, kind: str, message: str, **context: Any) -> None:
        self.ctx.diagnostics.warn(
            kind, message, line=self.reader.line, entity=self.schema.name, **context
        )

    def _locate(self, exc: RecordError) -> RecordError:
        return exc.locate(
            filename=self.reader.filename, line=self.reader.line, entity=self.schema.name
        )


def _freeze(fld: Field, value: Any) -> Any:
    shape = fld.shape
    if shape in (Shape.POINT, Shape.POINT2D) and isinstance(value, list):
        return tuple(value)
    if shape in (Shape.POINTS, Shape.POINTS2D):
        return [tuple(item) for item in value]
    if shape is Shape.RECORDS:
        return [
            {key: tuple(item) if isinstance(item, list) else item for key, item in record.items()}
            for record in value
        ]
    return value


# -- defaults and validation --------------------------------------------------


def apply_defaults(entity: Entity, schema: EntitySchema | None = None) -> None:
    schema = schema or get_schema(entity.dxftype)
    dxf = entity.dxf
    for group in schema.layout:
        if not group.applies(dxf):
            continue
        for fld in group.fields:
            if fld.shape is Shape.COUNT:
                continue
            if fld.bits is not None:
                dxf.setdefault(fld.bits_name, 0)
            if fld.name not in dxf and fld.has_default:
                dxf[fld.name] = copy.deepcopy(fld.default)


def record_problems(entity: Entity, schema: EntitySchema | None = None) -> Iterator[InvalidEntity]:
    schema = schema or get_schema(entity.dxftype)
    dxf = entity.dxf
    for group in schema.layout:
        if not group.applies(dxf):
            continue
        for fld in group.fields:
            value = dxf.get(fld.name)
            if value is None:
                continue
            reason = _field_problem(fld, value)
            if reason is not None:
                yield InvalidEntity(schema.name, fld.name, reason, code=fld.code)
    for check in schema.checks:
        for name, reason in check(dxf):
            yield InvalidEntity(schema.name, name, reason)


def validate_record(entity: Entity, schema: EntitySchema | None = None) -> None:
    for problem in record_problems(entity, schema):
        raise problem


def _field_problem(fld: Field, value: Any) -> str | None:
    if fld.bounds is not None and fld.shape is Shape.SCALAR:
        low, high = fld.bounds
        try:
            if not low <= value <= high:
                return f"must be in {low}..{high}"
        except TypeError:
            return f"has an invalid value {value!r}"
    if fld.check is not None:
        try:
            return fld.check(value)
        except TypeError:
            return f"has an invalid value {value!r}"
    return None


def normalize_attribs(schema: EntitySchema, attribs: dict[str, Any]) -> dict[str, Any]:
    """Convert application values to the Python types the reader produces."""
    dxf: dict[str, Any] = {}
    for name, value in attribs.items():
        fld = schema.field(name)
        if fld is None or value is None:
            dxf[name] = value
            continue
        if fld.shape is Shape.COUNT:
            continue
        dxf[name] = _normalize(fld, value)
        if fld.bits is not None and dxf[name] & ~fld.bits:
            dxf[fld.bits_name] = dxf[name] & ~fld.bits
            dxf[name] &= fld.bits
    return dxf


def _normalize(fld: Field, value: Any) -> Any:
    shape = fld.shape
    if shape is Shape.SCALAR:
        return check_value(fld.code, value)
    if shape in (Shape.POINT, Shape.POINT2D):
        return _coords(value, fld.dimensions)
    if shape in (Shape.POINTS, Shape.POINTS2D):
        return [_coords(item, fld.dimensions) for item in value]
    if shape in (Shape.LIST, Shape.BINARY):
        return [check_value(fld.code, item) for item in value]
    if shape is Shape.TAGS:
        return [Tag(code, check_value(code, item)) for code, item in value]
    if shape is Shape.RECORDS:
        members = {member.name: member for member in fld.members}
        return [
            {
                key: _normalize(members[key], item) if key in members else item
                for key, item in record.items()
            }
            for record in value
        ]
    return value


def _coords(value: Any, dimensions: int) -> tuple[float, ...]:
    try:
        coords = tuple(float(item) for item in value)
    except (TypeError, ValueError) as exc:
        raise TypeMismatch(f"expected a point, got {value!r}") from exc
    if len(coords) < dimensions:
        coords += (0.0,) * (dimensions - len(coords))
    return coords[:dimensions]


# -- write --------------------------------------------------------------------


def render_record(
    entity: Entity,
    revision: Revision,
    config: CodecConfig = DEFAULT_CONFIG,
    diagnostics: Diagnostics | None = None,
) -> list[Tag]:
    """Render ``entity`` into the typed tag list written for ``revision``.

    Raises ``UnsupportedByVersion`` when the record type or one of its
    revision-gated fields cannot be expressed at ``revision`` and
    ``InvalidEntity`` when the record breaks one of its invariants.
    """
    schema = lookup(entity.dxftype)
    if schema is None:
        raise InvalidEntity(entity.dxftype, None, "is not a known record type")
    if not schema.supports(revision):
        raise UnsupportedByVersion(
            f"{schema.name} {revision_requirement(schema, revision)}, target is {revision}",
            entity=schema.name,
        )
    validate_record(entity, schema)

    writer = _RecordWriter(schema, entity, revision, config, diagnostics)
    return writer.render()


def revision_requirement(schema: EntitySchema, revision: Revision) -> str:
    if schema.min_revision is not None and revision < schema.min_revision:
        return f"requires {schema.min_revision} or later"
    return f"is not supported after {schema.max_revision}"


class _RecordWriter:
    def __init__(
        self,
        schema: EntitySchema,
        entity: Entity,
        revision: Revision,
        config: CodecConfig,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.schema = schema
        self.entity = entity
        self.revision = revision
        self.config = config
        self.diagnostics = diagnostics
        self.out: list[Tag] = []

    def render(self) -> list[Tag]:
        entity = self.entity
        schema = self.schema
        out = self.out
        out.append(Tag(0, schema.name))
        if self.config.preserve_comments:
            out.extend(Tag(999, comment) for comment in entity.comments)
        layout = schema.layout
        self._group(layout[0], marker=False)
        if schema.handle_code is not None and entity.handle is not None:
            out.append(Tag(schema.handle_code, entity.handle))
        if self.revision >= Revision.R14:
            self._app_groups()
        if self.revision >= Revision.R13 and entity.owner is not None:
            out.append(Tag(330, entity.owner))
        for group in layout[1:]:
            self._group(group)
        for app, tags in entity.xdata.items():
            out.append(Tag(1001, app))
            out.extend(tags)
        return out

    def _app_groups(self) -> None:
        entity = self.entity
        out = self.out
        if entity.reactors:
            out.append(Tag(102, REACTORS))
            out.extend(Tag(330, handle) for handle in entity.reactors)
            out.append(Tag(102, "}"))
        if entity.xdictionary is not None:
            out.append(Tag(102, XDICTIONARY))
            out.append(Tag(360, entity.xdictionary))
            out.append(Tag(102, "}"))
        for name, tags in entity.appdata:
            out.append(Tag(102, name))
            out.extend(tags)
            out.append(Tag(102, "}"))

    def _group(self, group: Subclass, marker: bool = True) -> None:
        dxf = self.entity.dxf
        if not group.applies(dxf):
            return
        if group.min_revision is not None and self.revision < group.min_revision:
            for fld in group.fields:
                self._refuse_if_set(fld, min_revision=group.min_revision)
            return
        if marker and group.marker and self.revision >= Revision.R13:
            self.out.append(Tag(100, group.marker))
        for fld in group.fields:
            self._field(fld)
        if group.catch_all:
            self.out.extend(dxf.get(group.catch_all) or ())

    def _field(self, fld: Field) -> None:
        if not fld.emit:
            return
        dxf = self.entity.dxf
        if fld.shape is Shape.COUNT:
            self.out.append(Tag(fld.code, len(dxf.get(fld.count_of) or ())))
            return
        value = dxf.get(fld.name, NO_DEFAULT)
        if _is_absent(fld, value):
            if not (fld.always and fld.has_default):
                return
            value = fld.default
        if not fld.supports(self.revision):
            self._refuse_if_set(fld)
            return
        if fld.blank is not None and value == "":
            self._blank(fld)
            value = fld.blank
        if fld.flatland and not self.config.flatland:
            return
        extra_bits = dxf.get(fld.bits_name, 0) if fld.bits is not None else 0
        if not fld.always and fld.is_default(value) and not extra_bits:
            return
        if extra_bits:
            value = int(value) | int(extra_bits)
        self._emit(fld, value)

    def _blank(self, fld: Field) -> None:
        message = f"empty {fld.name} written as {fld.blank!r}"
        if self.diagnostics is None:
            logger.warning("%s: %s", self.schema.name, message)
            return
        self.diagnostics.warn(
            "Advisory", message, entity=self.schema.name, field=fld.name, code=fld.code
        )

    def _refuse_if_set(self, fld: Field, min_revision: Revision | None = None) -> None:
        if fld.gate != STRICT or fld.shape is Shape.COUNT:
            return
        value = self.entity.dxf.get(fld.name, NO_DEFAULT)
        if _is_absent(fld, value) or fld.is_default(value):
            return
        minimum = min_revision or fld.min_revision
        if minimum is not None and self.revision < minimum:
            requirement = f"requires {minimum} or later"
        else:
            requirement = f"is not supported after {fld.max_revision}"
        raise UnsupportedByVersion(
            f"{self.schema.name}.{fld.name} {requirement}, target is {self.revision}",
            entity=self.schema.name,
            field=fld.name,
            code=fld.code,
        )

    def _emit(self, fld: Field, value: Any) -> None:
        out = self.out
        shape = fld.shape
        if shape is Shape.SCALAR:
            out.append(Tag(fld.code, value))
        elif shape in (Shape.POINT, Shape.POINT2D):
            self._point(fld.code, value, fld.dimensions)
        elif shape in (Shape.LIST, Shape.BINARY):
            out.extend(Tag(fld.code, item) for item in value)
        elif shape in (Shape.POINTS, Shape.POINTS2D):
            for item in value:
                self._point(fld.code, item, fld.dimensions)
        elif shape is Shape.TAGS:
            out.extend(Tag(code, item) for code, item in value)
        elif shape is Shape.RECORDS:
            for record in value:
                for member in fld.members:
                    if member.name in record:
                        item = record[member.name]
                    elif member.always and member.has_default:
                        item = member.default
                    else:
                        continue
                    if member.is_point:
                        self._point(member.code, item, member.dimensions)
                    else:
                        out.append(Tag(member.code, item))

    def _point(self, code: int, value: Any, dimensions: int) -> None:
        for axis, coord in enumerate(_coords(value, dimensions)):
            self.out.append(Tag(code + 10 * axis, coord))


def _is_absent(fld: Field, value: Any) -> bool:
    if value is NO_DEFAULT or value is None:
        return True
    return fld.shape in _COLLECTIONS and not value


__all__ = [
    "ReadContext",
    "read_record",
    "render_record",
    "apply_defaults",
    "validate_record",
    "record_problems",
    "normalize_attribs",
]
