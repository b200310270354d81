"""Section framing: HEADER, CLASSES, TABLES, BLOCKS, ENTITIES, OBJECTS and
THUMBNAILIMAGE, read into plain containers and written back in canonical order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from .codec import ReadContext, read_record, render_record, revision_requirement
from .coerce import check_value, coerce_value
from .config import CodecConfig
from .const import SECTION_ORDER, TABLE_ORDER, Revision
from .entity import Entity, new_entity
from .errors import (
    Diagnostics,
    InvalidEntity,
    MalformedToken,
    RecordError,
    TruncatedEntity,
    TypeMismatch,
)
from .handle import Handle
from .registry import accepts, lookup
from .tags import Tag, TagReader, TagWriter

logger = logging.getLogger(__name__)

# group code of the value written for well-known header variables
KNOWN_VARIABLES: dict[str, int] = {
    "$ACADVER": 1,
    "$ACADMAINTVER": 70,
    "$DWGCODEPAGE": 3,
    "$HANDSEED": 5,
    "$INSBASE": 10,
    "$EXTMIN": 10,
    "$EXTMAX": 10,
    "$LIMMIN": 10,
    "$LIMMAX": 10,
    "$ORTHOMODE": 70,
    "$LTSCALE": 40,
    "$TEXTSIZE": 40,
    "$TEXTSTYLE": 7,
    "$CLAYER": 8,
    "$CELTYPE": 6,
    "$CECOLOR": 62,
    "$CELTSCALE": 40,
    "$DIMSTYLE": 2,
    "$LUNITS": 70,
    "$LUPREC": 70,
    "$AUNITS": 70,
    "$AUPREC": 70,
    "$ANGBASE": 50,
    "$ANGDIR": 70,
    "$PDMODE": 70,
    "$PDSIZE": 40,
    "$INSUNITS": 70,
    "$MEASUREMENT": 70,
    "$LASTSAVEDBY": 1,
    "$TDCREATE": 40,
    "$TDUPDATE": 40,
}

_POINT_CODES = frozenset({10, 11, 12, 13, 14, 15, 16, 17, 18, 110, 111, 112})


class Header:
    """HEADER variables in file order, each kept as its list of typed tags."""

    def __init__(self, variables: dict[str, list[Tag]] | None = None) -> None:
        self.variables: dict[str, list[Tag]] = dict(variables or {})

    @classmethod
    def new(cls, revision: Revision, handseed: Handle | None = None) -> "Header":
        header = cls({"$ACADVER": [Tag(1, revision.acadver)]})
        if handseed is not None:
            header.variables["$HANDSEED"] = [Tag(5, handseed)]
        return header

    def __getitem__(self, name: str) -> Any:
        tags = self.variables[name.upper()]
        if len(tags) == 1:
            return tags[0].value
        return tuple(tag.value for tag in tags)

    def __setitem__(self, name: str, value: Any) -> None:
        key = name.upper()
        if key in self.variables:
            code = self.variables[key][0].code
        elif key in KNOWN_VARIABLES:
            code = KNOWN_VARIABLES[key]
        else:
            raise KeyError(f"unknown header variable {name}; set its tags through Header.variables")
        if code in _POINT_CODES:
            coords = tuple(float(item) for item in value)
            self.variables[key] = [Tag(code + 10 * axis, coord) for axis, coord in enumerate(coords)]
        else:
            self.variables[key] = [Tag(code, check_value(code, value))]

    def __delitem__(self, name: str) -> None:
        del self.variables[name.upper()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.upper() in self.variables

    def __iter__(self) -> Iterator[str]:
        return iter(self.variables)

    def __len__(self) -> int:
        return len(self.variables)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Header):
            return NotImplemented
        return self.variables == other.variables

    def __repr__(self) -> str:
        return f"Header({len(self.variables)} variables)"

    def get(self, name: str, default: Any = None) -> Any:
        try:
            return self[name]
        except KeyError:
            return default


@dataclass
class Thumbnail:
    size: int
    chunks: list[bytes] = field(default_factory=list)

    @property
    def data(self) -> bytes:
        return b"".join(self.chunks)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Thumbnail":
        step = 127
        return cls(len(data), [data[start:start + step] for start in range(0, len(data), step)])


@dataclass
class Table:
    head: Entity
    entries: list[Entity] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.head.dxf.get("name", "")

    def get(self, name: str) -> Entity | None:
        key = name.upper()
        for entry in self.entries:
            if str(entry.dxf.get("name", "")).upper() == key:
                return entry
        return None


@dataclass
class Block:
    block: Entity
    entities: list[Entity] = field(default_factory=list)
    endblk: Entity = field(default_factory=lambda: new_entity("ENDBLK"))

    @property
    def name(self) -> str:
        return self.block.dxf.get("name", "")


@dataclass
class SectionData:
    revision: Revision
    header: Header = field(default_factory=Header)
    classes: list[Entity] = field(default_factory=list)
    tables: list[Table] = field(default_factory=list)
    blocks: list[Block] = field(default_factory=list)
    entities: list[Entity] = field(default_factory=list)
    objects: list[Entity] = field(default_factory=list)
    thumbnail: Thumbnail | None = None
    comments: list[str] = field(default_factory=list)


# -- read ---------------------------------------------------------------------


def read_sections(reader: TagReader, ctx: ReadContext) -> SectionData:
    data = SectionData(revision=ctx.revision)
    for code, text in reader:
        if code == 999:
            _comment(text, reader, ctx, data)
            continue
        if code != 0:
            raise _malformed(reader, f"unexpected group code {code} outside of a section")
        name = text.strip()
        if name == "EOF":
            break
        if name != "SECTION":
            raise _malformed(reader, f"expected SECTION, got {name!r}")
        section = _section_name(reader)
        handler = _SECTION_READERS.get(section)
        if handler is None:
            ctx.diagnostics.warn(
                "UnknownSection", f"unknown section {section} skipped", line=reader.line
            )
            _skip_section(reader, section)
            continue
        logger.debug("reading section %s", section)
        handler(reader, ctx, data)
    else:
        if ctx.strict:
            raise _malformed(reader, "missing EOF marker")
        ctx.diagnostics.warn("MalformedToken", "missing EOF marker", line=reader.line)
    data.revision = ctx.revision
    return data


def _section_name(reader: TagReader) -> str:
    try:
        code, text = next(reader)
    except StopIteration:
        raise _truncated(reader, "end of file after SECTION") from None
    if code != 2:
        raise _malformed(reader, f"expected section name (group 2), got group {code}")
    return text.strip().upper()


def _read_header(reader: TagReader, ctx: ReadContext, data: SectionData) -> None:
    header = data.header
    current: str | None = None
    for code, text in reader:
        if code == 0:
            if text.strip() == "ENDSEC":
                return
            raise _malformed(reader, f"unexpected {text.strip()} in HEADER section")
        if code == 999:
            _comment(text, reader, ctx, data)
            continue
        if code == 9:
            current = text.strip()
            header.variables[current] = []
            continue
        if current is None:
            ctx.diagnostics.warn(
                "UnknownTag", f"group code {code} before the first header variable",
                line=reader.line, code=code,
            )
            continue
        try:
            value = coerce_value(code, text, ctx.revision)
        except TypeMismatch as exc:
            exc.locate(filename=reader.filename, line=reader.line, entity="HEADER")
            if ctx.strict:
                ctx.diagnostics.record(exc)
            else:
                ctx.diagnostics.warn(
                    "TypeMismatch", f"{current}: {exc.message}, dropped", line=reader.line, code=code
                )
            continue
        header.variables[current].append(Tag(code, value))
        if current == "$ACADVER":
            _set_revision(str(value), reader, ctx)
    raise _truncated(reader, "end of file inside HEADER section")


def _set_revision(acadver: str, reader: TagReader, ctx: ReadContext) -> None:
    try:
        ctx.revision = Revision.from_acadver(acadver)
    except ValueError:
        ctx.diagnostics.warn(
            "UnsupportedByVersion",
            f"unknown $ACADVER {acadver!r}, reading as {ctx.revision}",
            line=reader.line,
        )
    reader.encoding = "utf-8" if ctx.revision >= Revision.R2007 else "cp1252"


def _read_classes(reader: TagReader, ctx: ReadContext, data: SectionData) -> None:
    data.classes.extend(_read_records(reader, ctx, data, "CLASSES"))


def _read_entities(reader: TagReader, ctx: ReadContext, data: SectionData) -> None:
    data.entities.extend(_read_records(reader, ctx, data, "ENTITIES"))


def _read_objects(reader: TagReader, ctx: ReadContext, data: SectionData) -> None:
    data.objects.extend(_read_records(reader, ctx, data, "OBJECTS"))


def _read_tables(reader: TagReader, ctx: ReadContext, data: SectionData) -> None:
    while True:
        name = _next_record_name(reader, ctx, data)
        if name == "ENDSEC":
            return
        if name != "TABLE":
            raise _malformed(reader, f"expected TABLE in TABLES section, got {name!r}")
        head = _read_one("TABLE", reader, ctx, "TABLE")
        entries = _read_records(reader, ctx, data, "TABLES", end="ENDTAB")
        _skip_record(reader)
        if head is None:
            logger.debug("table with an unreadable head dropped (%d entries)", len(entries))
            continue
        data.tables.append(Table(head, entries))


def _read_blocks(reader: TagReader, ctx: ReadContext, data: SectionData) -> None:
    while True:
        name = _next_record_name(reader, ctx, data)
        if name == "ENDSEC":
            return
        if name != "BLOCK":
            raise _malformed(reader, f"expected BLOCK in BLOCKS section, got {name!r}")
        block = _read_one("BLOCK", reader, ctx, "BLOCK")
        entities = _read_records(reader, ctx, data, "BLOCKS", end="ENDBLK")
        endblk = _read_one("ENDBLK", reader, ctx, "ENDBLK")
        if block is None:
            continue
        data.blocks.append(Block(block, entities, endblk or new_entity("ENDBLK")))


def _read_thumbnail(reader: TagReader, ctx: ReadContext, data: SectionData) -> None:
    size = 0
    chunks: list[bytes] = []
    for code, text in reader:
        if code == 0:
            if text.strip() != "ENDSEC":
                raise _malformed(reader, f"unexpected {text.strip()} in THUMBNAILIMAGE section")
            break
        if code == 999:
            _comment(text, reader, ctx, data)
        elif code in (90, 310):
            try:
                value = coerce_value(code, text)
            except TypeMismatch as exc:
                ctx.diagnostics.record(exc.locate(line=reader.line, entity="THUMBNAILIMAGE"))
                continue
            if code == 90:
                size = value
            else:
                chunks.append(value)
        else:
            ctx.diagnostics.warn(
                "UnknownTag", f"group code {code} is not defined for THUMBNAILIMAGE",
                line=reader.line, entity="THUMBNAILIMAGE", code=code,
            )
    else:
        raise _truncated(reader, "end of file inside THUMBNAILIMAGE section")
    thumbnail = Thumbnail(size, chunks)
    actual = len(thumbnail.data)
    if actual != size:
        ctx.diagnostics.warn(
            "ThumbnailSize",
            f"thumbnail image data is {actual} vs {size} declared bytes",
            line=reader.line,
            entity="THUMBNAILIMAGE",
            code=90,
        )
    data.thumbnail = thumbnail


_SECTION_READERS: dict[str, Callable[[TagReader, ReadContext, SectionData], None]] = {
    "HEADER": _read_header,
    "CLASSES": _read_classes,
    "TABLES": _read_tables,
    "BLOCKS": _read_blocks,
    "ENTITIES": _read_entities,
    "OBJECTS": _read_objects,
    "THUMBNAILIMAGE": _read_thumbnail,
}


def _read_records(
    reader: TagReader,
    ctx: ReadContext,
    data: SectionData,
    section: str,
    end: str = "ENDSEC",
) -> list[Entity]:
    """Read records up to and including the ``(0, end)`` tag."""
    records: list[Entity] = []
    while True:
        name = _next_record_name(reader, ctx, data)
        if name == end:
            return records
        if name == "ENDSEC":
            raise _malformed(reader, f"ENDSEC before {end} in {section} section")
        if not accepts(section, name):
            if lookup(name) is None:
                message = f"unknown record type {name} skipped"
            else:
                message = f"{name} is not valid in the {section} section, skipped"
            ctx.diagnostics.warn("UnknownTag", message, line=reader.line, entity=name, code=0)
            _skip_record(reader)
            continue
        line = reader.line
        entity = _read_one(name, reader, ctx, section)
        if entity is None:
            continue
        if not entity.is_supported(ctx.revision):
            ctx.diagnostics.warn(
                "UnsupportedByVersion",
                f"{name} {revision_requirement(entity.schema, ctx.revision)}, file is {ctx.revision}",
                line=line,
                entity=name,
                code=0,
            )
        records.append(entity)


def _read_one(name: str, reader: TagReader, ctx: ReadContext, section: str) -> Entity | None:
    try:
        return read_record(name, reader, ctx)
    except RecordError as exc:
        exc.locate(filename=reader.filename, line=reader.line, entity=name)
        ctx.diagnostics.record(exc)
        logger.debug("skipping %s record in %s: %s", name, section, exc.message)
        _skip_record(reader)
        return None


def _next_record_name(reader: TagReader, ctx: ReadContext, data: SectionData) -> str:
    for code, text in reader:
        if code == 0:
            return text.strip()
        if code == 999:
            _comment(text, reader, ctx, data)
            continue
        ctx.diagnostics.warn(
            "UnknownTag", f"group code {code} outside of a record", line=reader.line, code=code
        )
    raise _truncated(reader, "end of file inside a section")


def _skip_record(reader: TagReader) -> None:
    """Consume the tags of the current record body, leaving the next ``(0, ...)``."""
    for code, text in reader:
        if code == 0:
            reader.push_back(Tag(code, text))
            return
    raise _truncated(reader, "end of file inside a skipped record")


def _skip_section(reader: TagReader, section: str) -> None:
    for code, text in reader:
        if code == 0 and text.strip() == "ENDSEC":
            return
    raise _truncated(reader, f"end of file inside {section} section")


def _comment(text: str, reader: TagReader, ctx: ReadContext, data: SectionData) -> None:
    logger.debug("%s:%s: comment: %s", reader.filename, reader.line, text)
    if ctx.config.preserve_comments:
        data.comments.append(text)


def _malformed(reader: TagReader, message: str) -> MalformedToken:
    return MalformedToken(message, filename=reader.filename, line=reader.line)


def _truncated(reader: TagReader, message: str) -> TruncatedEntity:
    return TruncatedEntity(message, filename=reader.filename, line=reader.line)


# -- write --------------------------------------------------------------------


class SectionWriter:
    """Writes the sections of a drawing; record errors skip the record."""

    def __init__(
        self,
        writer: TagWriter,
        config: CodecConfig,
        diagnostics: Diagnostics,
        *,
        strict: bool = False,
    ) -> None:
        self.writer = writer
        self.revision = writer.revision
        self.config = config
        self.diagnostics = diagnostics
        self.strict = strict
        self.written = 0
        self.skipped_by_type: dict[str, int] = {}
        self.errors: list[RecordError] = []

    def write(self, data: SectionData, handseed: Handle | None = None) -> None:
        revision = self.revision
        if self.config.preserve_comments:
            self.writer.write_tags(Tag(999, comment) for comment in data.comments)
        for section in SECTION_ORDER:
            if section == "HEADER":
                self._header(data.header, handseed)
            elif section == "CLASSES":
                self._gated(section, data.classes, Revision.R13, self._records)
            elif section == "TABLES" and data.tables:
                self._section(section, self._tables, data.tables)
            elif section == "BLOCKS" and data.blocks:
                self._section(section, self._blocks, data.blocks)
            elif section == "ENTITIES":
                self._section(section, self._records, data.entities)
            elif section == "OBJECTS":
                self._gated(section, data.objects, Revision.R13, self._records)
            elif section == "THUMBNAILIMAGE" and data.thumbnail is not None:
                self._thumbnail(data.thumbnail)
        self.writer.write_tag(0, "EOF")
        logger.debug("wrote %d records at %s", self.written, revision)

    def _gated(self, section: str, content: Any, minimum: Revision, body: Callable[[Any], None]) -> None:
        if not content:
            return
        if self.revision < minimum:
            self.diagnostics.warn(
                "UnsupportedByVersion",
                f"{section} section requires {minimum} or later, skipped at {self.revision}",
            )
            return
        self._section(section, body, content)

    def _section(self, section: str, body: Callable[[Any], None], content: Any) -> None:
        self.writer.write_tags((Tag(0, "SECTION"), Tag(2, section)))
        body(content)
        self.writer.write_tag(0, "ENDSEC")

    def _header(self, header: Header, handseed: Handle | None) -> None:
        variables = dict(header.variables)
        if "$ACADVER" in variables or self.revision != Revision.R12:
            variables["$ACADVER"] = [Tag(1, self.revision.acadver)]
            if next(iter(variables)) != "$ACADVER":
                variables = {"$ACADVER": variables.pop("$ACADVER"), **variables}
        if "$HANDSEED" in variables and handseed is not None:
            variables["$HANDSEED"] = [Tag(5, handseed)]
        if not variables:
            return
        self.writer.write_tags((Tag(0, "SECTION"), Tag(2, "HEADER")))
        for name, tags in variables.items():
            try:
                encoded = self.writer.encode([Tag(9, name), *tags])
            except RecordError as exc:
                self._failed("HEADER", exc.locate(entity="HEADER"))
                continue
            self.writer.write_encoded(encoded)
        self.writer.write_tag(0, "ENDSEC")

    def _records(self, records: list[Entity]) -> None:
        for entity in records:
            self._record(entity)

    def _record(self, entity: Entity) -> bool:
        try:
            tags = render_record(entity, self.revision, self.config, self.diagnostics)
            encoded = self.writer.encode(tags)
        except RecordError as exc:
            self._failed(entity.dxftype, exc.locate(entity=entity.dxftype))
            return False
        self.writer.write_encoded(encoded)
        self.written += 1
        return True

    def _failed(self, dxftype: str, exc: RecordError) -> None:
        if self.strict:
            raise exc
        self.errors.append(exc)
        self.diagnostics.record(exc)
        self.skipped_by_type[dxftype] = self.skipped_by_type.get(dxftype, 0) + 1

    def _tables(self, tables: list[Table]) -> None:
        for table in sorted(tables, key=_table_rank):
            unsupported = next(
                (entry for entry in table.entries if not entry.is_supported(self.revision)), None
            )
            if unsupported is not None:
                self.diagnostics.warn(
                    "UnsupportedByVersion",
                    f"{table.name} table requires {unsupported.schema.min_revision} or later, "
                    f"skipped at {self.revision}",
                    entity="TABLE",
                )
                continue
            if not self._record(table.head):
                continue
            self._records(table.entries)
            self.writer.write_tag(0, "ENDTAB")

    def _blocks(self, blocks: list[Block]) -> None:
        for block in blocks:
            if not self._record(block.block):
                continue
            self._records(block.entities)
            if not self._record(block.endblk):
                self.writer.write_tag(0, "ENDBLK")

    def _thumbnail(self, thumbnail: Thumbnail) -> None:
        if self.revision < Revision.R2000:
            self.diagnostics.warn(
                "UnsupportedByVersion",
                f"THUMBNAILIMAGE section requires {Revision.R2000} or later, skipped at {self.revision}",
            )
            return
        if thumbnail.size < 1:
            self._failed(
                "THUMBNAILIMAGE",
                InvalidEntity("THUMBNAILIMAGE", "size", "must be >= 1", code=90),
            )
            return
        tags = [Tag(0, "SECTION"), Tag(2, "THUMBNAILIMAGE"), Tag(90, thumbnail.size)]
        tags.extend(Tag(310, chunk) for chunk in thumbnail.chunks)
        tags.append(Tag(0, "ENDSEC"))
        try:
            encoded = self.writer.encode(tags)
        except RecordError as exc:
            self._failed("THUMBNAILIMAGE", exc.locate(entity="THUMBNAILIMAGE"))
            return
        self.writer.write_encoded(encoded)


def _table_rank(table: Table) -> int:
    name = str(table.name).upper()
    return TABLE_ORDER.index(name) if name in TABLE_ORDER else len(TABLE_ORDER)


__all__ = [
    "Header",
    "Thumbnail",
    "Table",
    "Block",
    "SectionData",
    "SectionWriter",
    "KNOWN_VARIABLES",
    "read_sections",
]
