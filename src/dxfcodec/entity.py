from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NamedTuple

from .const import Revision
from .handle import Handle
from .tags import Tag

Point3D = tuple[float, float, float]


class AppData(NamedTuple):
    """An application-defined ``{NAME ... }`` group kept verbatim."""

    name: str
    tags: list[Tag]


@dataclass
class Entity:
    dxftype: str
    handle: Handle | None = None
    dxf: dict[str, Any] = field(default_factory=dict)
    owner: Handle | None = None
    reactors: list[Handle] = field(default_factory=list)
    xdictionary: Handle | None = None
    appdata: list[AppData] = field(default_factory=list)
    xdata: dict[str, list[Tag]] = field(default_factory=dict)
    comments: list[str] = field(default_factory=list)
    links: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def dictionary_owner_soft(self) -> Handle | None:
        return self.reactors[0] if self.reactors else None

    @property
    def dictionary_owner_hard(self) -> Handle | None:
        return self.xdictionary

    @property
    def schema(self):
        from .registry import get_schema

        return get_schema(self.dxftype)

    def get(self, name: str, default: Any = None) -> Any:
        return self.dxf.get(name, default)

    def validate(self) -> None:
        from .codec import validate_record

        validate_record(self)

    def is_supported(self, revision: Revision) -> bool:
        return self.schema.supports(revision)


def new_entity(
    dxftype: str,
    dxfattribs: dict[str, Any] | None = None,
    *,
    handle: int | str | None = None,
    owner: int | str | None = None,
) -> Entity:
    """Build a record with every schema default filled in.

    Attribute values are converted to the Python type of their group code,
    so ``new_entity("LINE", {"start": (0, 0), "color": 1})`` yields float
    coordinates and an int colour.
    """
    from .codec import apply_defaults, normalize_attribs
    from .registry import lookup

    schema = lookup(dxftype)
    if schema is None:
        raise ValueError(f"unknown DXF record type: {dxftype}")
    entity = Entity(
        dxftype=schema.name,
        handle=_as_handle(handle),
        dxf=normalize_attribs(schema, dict(dxfattribs or {})),
        owner=_as_handle(owner),
    )
    apply_defaults(entity, schema)
    return entity


def new_donut(
    center: tuple[float, ...],
    inside_diameter: float,
    outside_diameter: float,
    dxfattribs: dict[str, Any] | None = None,
) -> list[Entity]:
    """Expand a donut into a closed POLYLINE, two bulged VERTEX records and a SEQEND.

    DXF has no DONUT record; this is the polyline rendition that gets written.
    ``dxfattribs`` carries the shared entity properties (layer, color, ...).
    """
    from .registry import get_schema

    if inside_diameter < 0 or outside_diameter < inside_diameter:
        raise ValueError(
            f"outside diameter {outside_diameter} is smaller than "
            f"inside diameter {inside_diameter}"
        )
    x, y, z = (tuple(float(coord) for coord in center) + (0.0, 0.0, 0.0))[:3]
    width = 0.5 * (outside_diameter - inside_diameter)
    radius = 0.25 * (outside_diameter + inside_diameter)
    seqend = get_schema("SEQEND")
    shared = {
        name: value for name, value in (dxfattribs or {}).items() if seqend.field(name) is not None
    }
    polyline = new_entity(
        "POLYLINE",
        {
            **shared,
            "elevation_point": (x, y, z),
            "flags": 1,
            "default_start_width": width,
            "default_end_width": width,
        },
    )
    vertices = [
        new_entity(
            "VERTEX",
            {
                **shared,
                "location": (x + offset, y, z),
                "start_width": width,
                "end_width": width,
                "bulge": 1.0,
            },
        )
        for offset in (-radius, radius)
    ]
    return [polyline, *vertices, new_entity("SEQEND", shared)]


def _as_handle(value: int | str | None) -> Handle | None:
    if value is None or isinstance(value, Handle):
        return value
    if isinstance(value, str):
        return Handle.parse(value)
    return Handle(value)
