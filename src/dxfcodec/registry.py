from __future__ import annotations

from .entities import ENTITY_SCHEMAS
from .objects import CLASS_RECORD, OBJECT_SCHEMAS
from .schema import CLASS, ENTITY, OBJECT, TABLE_ENTRY, EntitySchema
from .tables import TABLE_HEAD, TABLE_SCHEMAS

REGISTRY: dict[str, EntitySchema] = {
    schema.name: schema
    for schema in (*ENTITY_SCHEMAS, *OBJECT_SCHEMAS, *TABLE_SCHEMAS, CLASS_RECORD)
}

# Block framing records are read by the BLOCKS framer, never as free entities.
BLOCK_FRAMING = frozenset({"BLOCK", "ENDBLK"})

ENTITY_TYPES = tuple(sorted(name for name, schema in REGISTRY.items() if schema.kind == ENTITY))
OBJECT_TYPES = tuple(sorted(name for name, schema in REGISTRY.items() if schema.kind == OBJECT))
TABLE_ENTRY_TYPES = tuple(
    sorted(name for name, schema in REGISTRY.items() if schema.kind == TABLE_ENTRY)
)


def lookup(name: str) -> EntitySchema | None:
    return REGISTRY.get(name.strip().upper())


def get_schema(name: str) -> EntitySchema:
    schema = lookup(name)
    if schema is None:
        raise KeyError(f"unknown DXF record type: {name}")
    return schema


def accepts(section: str, name: str) -> bool:
    """True when a record named ``name`` may appear directly in ``section``."""
    schema = lookup(name)
    if schema is None:
        return False
    if section in ("ENTITIES", "BLOCKS"):
        return schema.kind == ENTITY and schema.name not in BLOCK_FRAMING
    if section == "OBJECTS":
        return schema.kind == OBJECT
    if section == "CLASSES":
        return schema.kind == CLASS
    if section == "TABLES":
        return schema.kind == TABLE_ENTRY
    return False


__all__ = [
    "REGISTRY",
    "ENTITY_TYPES",
    "OBJECT_TYPES",
    "TABLE_ENTRY_TYPES",
    "TABLE_HEAD",
    "lookup",
    "get_schema",
    "accepts",
]
