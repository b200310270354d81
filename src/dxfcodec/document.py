from __future__ import annotations

import fnmatch
import io
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Iterable, Iterator

from .codec import ReadContext, record_problems
from .config import DEFAULT_CONFIG, CodecConfig
from .const import DEFAULT_SOURCE_REVISION, DXF_MODELSPACE, DXF_PAPERSPACE, Revision
from .entity import Entity, new_donut, new_entity
from .errors import Diagnostic, Diagnostics, DXFError, InvalidEntity, RecordError
from .handle import Handle, HandleGenerator
from .registry import BLOCK_FRAMING, ENTITY_TYPES, get_schema
from .schema import CLASS, ENTITY, OBJECT, TABLE_ENTRY, Shape
from .sections import Block, Header, SectionData, SectionWriter, Table, Thumbnail, read_sections
from .tags import TagReader, TagWriter

_HANDLE_SHAPES = (Shape.SCALAR, Shape.LIST)


def read(path: str | Path, config: CodecConfig | None = None) -> "Drawing":
    with open(path, "rb") as stream:
        return load(stream, config, filename=str(path))


def load(
    stream: IO[bytes] | IO[str],
    config: CodecConfig | None = None,
    filename: str | None = None,
) -> "Drawing":
    config = config or DEFAULT_CONFIG
    if filename is None:
        filename = getattr(stream, "name", None)
        if not isinstance(filename, str):
            filename = None
    diagnostics = Diagnostics(filename)
    ctx = ReadContext(config=config, diagnostics=diagnostics)
    reader = TagReader(stream, filename=filename, diagnostics=diagnostics, strict=config.strict)
    try:
        data = read_sections(reader, ctx)
    except DXFError as exc:
        diagnostics.record(exc.locate(filename=filename), level="fatal")
        raise
    drawing = Drawing.from_sections(data, config=config, filename=filename, diagnostics=diagnostics)
    drawing.resolve_handles()
    return drawing


def loads(data: bytes | str, config: CodecConfig | None = None) -> "Drawing":
    if isinstance(data, str):
        return load(io.StringIO(data), config)
    return load(io.BytesIO(data), config)


@dataclass(frozen=True)
class SaveResult:
    output_path: str | None
    revision: Revision
    written_records: int
    skipped_records: int
    skipped_by_type: dict[str, int]
    errors: list[RecordError] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(eq=True)
class Drawing:
    """A decoded DXF drawing: header, the section collections and handle issuance."""

    revision: Revision = field(default=DEFAULT_SOURCE_REVISION, compare=False)
    header: Header = field(default_factory=Header)
    classes: list[Entity] = field(default_factory=list)
    tables: list[Table] = field(default_factory=list)
    blocks: list[Block] = field(default_factory=list)
    entities: list[Entity] = field(default_factory=list)
    objects: list[Entity] = field(default_factory=list)
    thumbnail: Thumbnail | None = None
    comments: list[str] = field(default_factory=list)
    config: CodecConfig = field(default=DEFAULT_CONFIG, compare=False, repr=False)
    filename: str | None = field(default=None, compare=False)
    diagnostics: Diagnostics = field(default_factory=Diagnostics, compare=False, repr=False)
    handles: HandleGenerator = field(default_factory=HandleGenerator, compare=False, repr=False)

    def __post_init__(self) -> None:
        self._index: dict[int, Entity] = {}
        self._reindex()

    @classmethod
    def new(
        cls,
        revision: Revision | str = DEFAULT_SOURCE_REVISION,
        config: CodecConfig | None = None,
    ) -> "Drawing":
        revision = Revision.parse(revision)
        handles = HandleGenerator()
        return cls(
            revision=revision,
            header=Header.new(revision, handles.seed),
            config=config or DEFAULT_CONFIG,
            handles=handles,
        )

    @classmethod
    def from_sections(
        cls,
        data: SectionData,
        *,
        config: CodecConfig = DEFAULT_CONFIG,
        filename: str | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> "Drawing":
        drawing = cls(
            revision=data.revision,
            header=data.header,
            classes=data.classes,
            tables=data.tables,
            blocks=data.blocks,
            entities=data.entities,
            objects=data.objects,
            thumbnail=data.thumbnail,
            comments=data.comments,
            config=config,
            filename=filename,
            diagnostics=diagnostics if diagnostics is not None else Diagnostics(filename),
        )
        seed = drawing.header.get("$HANDSEED")
        if isinstance(seed, int):
            drawing.handles.advance_past(seed - 1)
        return drawing

    # -- layouts ---------------------------------------------------------

    def modelspace(self) -> "Layout":
        return Layout(self, "MODELSPACE")

    def paperspace(self) -> "Layout":
        return Layout(self, "PAPERSPACE")

    # -- records ---------------------------------------------------------

    def iter_records(self) -> Iterator[Entity]:
        """Every handle-bearing record in section order."""
        for table in self.tables:
            yield table.head
            yield from table.entries
        for block in self.blocks:
            yield block.block
            yield from block.entities
            yield block.endblk
        yield from self.entities
        yield from self.objects

    def get(self, handle: int | str) -> Entity | None:
        return self._index.get(_as_handle(handle))

    def table(self, name: str) -> Table | None:
        key = name.upper()
        for table in self.tables:
            if str(table.name).upper() == key:
                return table
        return None

    def block(self, name: str) -> Block | None:
        for block in self.blocks:
            if block.name == name:
                return block
        return None

    def new_block(self, name: str, base_point: tuple[float, ...] = (0.0, 0.0, 0.0)) -> Block:
        if self.block(name) is not None:
            raise ValueError(f"block already exists: {name}")
        block = Block(
            new_entity("BLOCK", {"name": name, "name2": name, "base_point": base_point}),
            endblk=new_entity("ENDBLK"),
        )
        self._issue(block.block)
        self._issue(block.endblk)
        self.blocks.append(block)
        return block

    def append(self, entity: Entity, block: str | Block | None = None) -> Entity:
        """Add ``entity`` to the collection its record kind belongs to.

        A handle is issued when the record has none; a handle already used
        in this drawing raises ``ValueError``.
        """
        kind = get_schema(entity.dxftype).kind
        if entity.dxftype in BLOCK_FRAMING:
            raise ValueError(f"{entity.dxftype} records are managed by the drawing")
        if block is not None:
            if kind != ENTITY:
                raise ValueError(f"{entity.dxftype} cannot be added to a block")
            target = block if isinstance(block, Block) else self.block(block)
            if target is None:
                raise KeyError(f"unknown block: {block}")
            self._issue(entity)
            target.entities.append(entity)
        elif kind == ENTITY:
            self._issue(entity)
            self.entities.append(entity)
        elif kind == OBJECT:
            self._issue(entity)
            self.objects.append(entity)
        elif kind == TABLE_ENTRY:
            self._issue(entity)
            table = self._table_for(entity.dxftype)
            table.entries.append(entity)
            count = table.head.dxf.get("count", 0)
            if count < len(table.entries):
                table.head.dxf["count"] = len(table.entries)
        elif kind == CLASS:
            self.classes.append(entity)
        else:
            raise ValueError(f"{entity.dxftype} records are managed by the drawing")
        return entity

    def remove(self, handle: int | str) -> Entity:
        """Take the record with ``handle`` out of the drawing.

        A table entry lowers its table's ``count``. Links other records held
        to the removed one fall back to the raw hex handle, as an unresolved
        reference would.
        """
        key = _as_handle(handle)
        entity = self._index.get(key)
        if entity is None:
            raise KeyError(f"no record with handle {key}")
        for collection in self._collections():
            for position, candidate in enumerate(collection):
                if candidate is entity:
                    del collection[position]
                    del self._index[key]
                    entity.links.clear()
                    self._forget(entity, key)
                    return entity
        raise ValueError(f"{entity.dxftype} {key} is structural and cannot be removed")

    def _forget(self, entity: Entity, key: Handle) -> None:
        if get_schema(entity.dxftype).kind == TABLE_ENTRY:
            table = self._table_for(entity.dxftype)
            count = table.head.dxf.get("count", 0)
            if count > len(table.entries):
                table.head.dxf["count"] = count - 1
        for record in self.iter_records():
            for name, linked in record.links.items():
                if isinstance(linked, list):
                    record.links[name] = [str(key) if item is entity else item for item in linked]
                elif linked is entity:
                    record.links[name] = str(key)

    def resolve_handles(self) -> list[Diagnostic]:
        """Link every referenced handle to its record.

        ``Entity.links`` maps the owner, xdictionary, reactor and handle
        fields to the referenced records; a handle with no record in this
        drawing stays as its raw hex string and is reported as
        ``HandleUnresolved``.
        """
        self._reindex()
        unresolved: list[Diagnostic] = []
        for entity in self.iter_records():
            entity.links.clear()
            for name, value in _references(entity):
                if isinstance(value, list):
                    linked = [self._link(entity, name, item, unresolved) for item in value]
                    entity.links[name] = linked
                else:
                    entity.links[name] = self._link(entity, name, value, unresolved)
        return unresolved

    def validate(self) -> list[InvalidEntity]:
        problems: list[InvalidEntity] = []
        for entity in self.iter_records():
            problems.extend(record_problems(entity))
        for entity in self.classes:
            problems.extend(record_problems(entity))
        return problems

    # -- output ----------------------------------------------------------

    def save(
        self,
        stream: IO[bytes],
        revision: Revision | str | None = None,
        *,
        strict: bool | None = None,
        output_path: str | None = None,
    ) -> SaveResult:
        target = self._target_revision(revision)
        strict = self.config.strict if strict is None else strict
        diagnostics = Diagnostics(output_path)
        writer = SectionWriter(TagWriter(stream, target), self.config, diagnostics, strict=strict)
        writer.write(self._sections(), handseed=self.handles.seed)
        skipped = sum(writer.skipped_by_type.values())
        return SaveResult(
            output_path=output_path,
            revision=target,
            written_records=writer.written,
            skipped_records=skipped,
            skipped_by_type=dict(sorted(writer.skipped_by_type.items())),
            errors=list(writer.errors),
            diagnostics=list(diagnostics),
        )

    def saveas(
        self,
        path: str | Path,
        revision: Revision | str | None = None,
        *,
        strict: bool | None = None,
    ) -> SaveResult:
        out_path = Path(path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        buffer = io.BytesIO()
        result = self.save(buffer, revision, strict=strict, output_path=str(out_path))
        out_path.write_bytes(buffer.getvalue())
        self.filename = str(out_path)
        return result

    def to_bytes(self, revision: Revision | str | None = None, *, strict: bool | None = None) -> bytes:
        buffer = io.BytesIO()
        self.save(buffer, revision, strict=strict)
        return buffer.getvalue()

    # -- internals -------------------------------------------------------

    def _target_revision(self, revision: Revision | str | None) -> Revision:
        if revision is not None:
            return Revision.parse(revision)
        if self.config.target_revision is not None:
            return self.config.target_revision
        return self.revision

    def _sections(self) -> SectionData:
        return SectionData(
            revision=self.revision,
            header=self.header,
            classes=self.classes,
            tables=self.tables,
            blocks=self.blocks,
            entities=self.entities,
            objects=self.objects,
            thumbnail=self.thumbnail,
            comments=self.comments,
        )

    def _collections(self) -> Iterator[list[Entity]]:
        yield self.entities
        yield self.objects
        for table in self.tables:
            yield table.entries
        for block in self.blocks:
            yield block.entities

    def _reindex(self) -> None:
        self._index = {}
        for entity in self.iter_records():
            if entity.handle is None:
                continue
            self._index.setdefault(entity.handle, entity)
            self.handles.advance_past(entity.handle)

    def _issue(self, entity: Entity) -> None:
        if entity.handle is None:
            entity.handle = self.handles.next()
        elif entity.handle in self._index:
            raise ValueError(f"duplicate handle {entity.handle} for {entity.dxftype}")
        else:
            self.handles.advance_past(entity.handle)
        self._index[entity.handle] = entity
        if "$HANDSEED" in self.header:
            self.header["$HANDSEED"] = self.handles.seed

    def _table_for(self, dxftype: str) -> Table:
        table = self.table(dxftype)
        if table is None:
            head = new_entity("TABLE", {"name": dxftype})
            self._issue(head)
            table = Table(head)
            self.tables.append(table)
        return table

    def _link(
        self,
        entity: Entity,
        name: str,
        handle: Handle,
        unresolved: list[Diagnostic],
    ) -> Entity | str:
        target = self._index.get(handle)
        if target is not None:
            return target
        unresolved.append(
            self.diagnostics.warn(
                "HandleUnresolved",
                f"{entity.dxftype} {entity.handle or '?'} references missing handle {handle} ({name})",
                entity=entity.dxftype,
                field=name,
            )
        )
        return str(handle)


def _references(entity: Entity) -> Iterator[tuple[str, Any]]:
    if entity.owner:
        yield "owner", entity.owner
    if entity.xdictionary:
        yield "xdictionary", entity.xdictionary
    reactors = [handle for handle in entity.reactors if handle]
    if reactors:
        yield "reactors", reactors
    schema = entity.schema
    for _group, fld in schema.fields():
        if fld.shape not in _HANDLE_SHAPES:
            continue
        value = entity.dxf.get(fld.name)
        if isinstance(value, Handle):
            if value:
                yield fld.name, value
        elif isinstance(value, list) and value and all(isinstance(item, Handle) for item in value):
            handles = [item for item in value if item]
            if handles:
                yield fld.name, handles


def _as_handle(value: int | str) -> Handle:
    if isinstance(value, Handle):
        return value
    if isinstance(value, str):
        return Handle.parse(value)
    return Handle(value)


@dataclass(frozen=True)
class Layout:
    doc: Drawing
    name: str

    @property
    def paperspace(self) -> int:
        return DXF_PAPERSPACE if self.name == "PAPERSPACE" else DXF_MODELSPACE

    def __iter__(self) -> Iterator[Entity]:
        return self.query()

    def __len__(self) -> int:
        return sum(1 for _entity in self.query())

    def iter_entities(self, types: str | Iterable[str] | None = None) -> Iterator[Entity]:
        return self.query(types)

    def query(self, types: str | Iterable[str] | None = None) -> Iterator[Entity]:
        type_set = set(_normalize_types(types))
        for entity in self.doc.entities:
            if entity.dxftype not in type_set:
                continue
            if entity.dxf.get("paperspace", DXF_MODELSPACE) != self.paperspace:
                continue
            yield entity

    def add(self, dxftype: str, dxfattribs: dict[str, Any] | None = None) -> Entity:
        attribs = dict(dxfattribs or {})
        if self.paperspace:
            attribs["paperspace"] = DXF_PAPERSPACE
        return self.doc.append(new_entity(dxftype, attribs))

    def add_donut(
        self,
        center: tuple[float, ...],
        inside_diameter: float,
        outside_diameter: float,
        dxfattribs: dict[str, Any] | None = None,
    ) -> list[Entity]:
        attribs = dict(dxfattribs or {})
        if self.paperspace:
            attribs["paperspace"] = DXF_PAPERSPACE
        records = new_donut(center, inside_diameter, outside_diameter, attribs)
        return [self.doc.append(entity) for entity in records]


def _normalize_types(types: str | Iterable[str] | None) -> list[str]:
    default_types = list(ENTITY_TYPES)
    if types is None:
        return default_types
    if isinstance(types, str):
        tokens = re.split(r"[,\s]+", types.strip())
    else:
        tokens = list(types)

    normalized = [token.strip().upper() for token in tokens if token and token.strip()]
    if not normalized:
        return default_types

    if any(token in {"*", "ALL"} for token in normalized):
        return default_types

    selected: list[str] = []
    seen = set()

    for token in normalized:
        if any(ch in token for ch in "*?[]"):
            matches = [name for name in default_types if fnmatch.fnmatchcase(name, token)]
            for name in matches:
                if name not in seen:
                    seen.add(name)
                    selected.append(name)
            continue

        if token in default_types:
            if token not in seen:
                seen.add(token)
                selected.append(token)

    return selected


__all__ = [
    "read",
    "load",
    "loads",
    "Drawing",
    "Layout",
    "SaveResult",
    "Block",
    "Table",
    "Header",
    "Thumbnail",
]
