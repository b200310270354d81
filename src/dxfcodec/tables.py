"""Schemas for the TABLE head record and the symbol-table entries."""
from __future__ import annotations

from typing import Any

from .const import Revision
from .schema import (
    SILENT,
    TABLE,
    TABLE_ENTRY,
    X_AXIS,
    Z_AXIS,
    EntitySchema,
    Field,
    Shape,
    Subclass,
    count,
    optional,
    optional_point,
    point,
    point2d,
    records,
    value,
    values,
)

R13 = Revision.R13
R2000 = Revision.R2000
R2004 = Revision.R2004
R2007 = Revision.R2007

Y_AXIS = (0.0, 1.0, 0.0)

SYMBOL_TABLE_RECORD = Subclass("AcDbSymbolTableRecord")


def _newer(name: str, code: int, revision: Revision, default: Any = None, **options: Any) -> Field:
    """Table settings added by later releases are dropped silently on older output."""
    if default is None:
        return optional(name, code, min_revision=revision, gate=SILENT, **options)
    return optional(name, code, default, min_revision=revision, gate=SILENT, **options)


def _entry(name: str, marker: str, *fields: Field, **options: Any) -> EntitySchema:
    head = (value("name", 2, ""), value("flags", 70, 0))
    return EntitySchema(
        name,
        TABLE_ENTRY,
        groups=(Subclass(marker, head + fields),),
        common=SYMBOL_TABLE_RECORD,
        **options,
    )


TABLE_HEAD = EntitySchema(
    "TABLE",
    TABLE,
    leading=(value("name", 2, ""),),
    groups=(
        Subclass("AcDbSymbolTable", (value("count", 70, 0),)),
        Subclass(
            "AcDbDimStyleTable",
            (optional("n_dimstyles", 71), values("dimstyle_handles", 340)),
            when=lambda dxf: dxf.get("name") == "DIMSTYLE",
            min_revision=R2000,
        ),
    ),
)

APPID = _entry("APPID", "AcDbRegAppTableRecord")

BLOCK_RECORD = EntitySchema(
    "BLOCK_RECORD",
    TABLE_ENTRY,
    groups=(
        Subclass(
            "AcDbBlockTableRecord",
            (
                value("name", 2, ""),
                _newer("layout_handle", 340, R2000),
                _newer("units", 70, R2007, 0),
                _newer("explode", 280, R2007, 1),
                _newer("scale", 281, R2007, 0),
                Field("preview", 310, Shape.BINARY, min_revision=R2000, gate=SILENT),
            ),
        ),
    ),
    common=SYMBOL_TABLE_RECORD,
    min_revision=R13,
)

DIMSTYLE = EntitySchema(
    "DIMSTYLE",
    TABLE_ENTRY,
    groups=(
        Subclass(
            "AcDbDimStyleTableRecord",
            (value("name", 2, ""), value("flags", 70, 0)),
            catch_all="variables",
        ),
    ),
    common=SYMBOL_TABLE_RECORD,
    handle_code=105,
)

LAYER = _entry(
    "LAYER",
    "AcDbLayerTableRecord",
    value("color", 62, 7),
    value("linetype", 6, "CONTINUOUS"),
    _newer("plot", 290, R2000, True),
    _newer("lineweight", 370, R2000, -3),
    _newer("plotstyle_handle", 390, R2000),
    _newer("material_handle", 347, R2007),
    _newer("true_color", 420, R2004),
)

LTYPE = _entry(
    "LTYPE",
    "AcDbLinetypeTableRecord",
    value("description", 3, ""),
    value("alignment", 72, 65),
    count("n_elements", 73, of="elements"),
    value("total_length", 40, 0.0),
    records(
        "elements",
        value("length", 49, 0.0),
        optional("type", 74, 0),
        optional("shape_number", 75),
        optional("style_handle", 340),
        optional("scale", 46),
        optional("rotation", 50),
        optional("x_offset", 44),
        optional("y_offset", 45),
        optional("text", 9),
    ),
)

STYLE = _entry(
    "STYLE",
    "AcDbTextStyleTableRecord",
    value("height", 40, 0.0),
    value("width", 41, 1.0),
    value("oblique", 50, 0.0),
    value("generation_flags", 71, 0),
    value("last_height", 42, 2.5),
    value("font", 3, "txt"),
    value("bigfont", 4, ""),
)

UCS = _entry(
    "UCS",
    "AcDbUCSTableRecord",
    point("origin", 10),
    point("xaxis", 11, X_AXIS),
    point("yaxis", 12, Y_AXIS),
    _newer("ucs_ortho_type", 79, R2000, 0),
    _newer("elevation", 146, R2000, 0.0),
    _newer("base_ucs_handle", 346, R2000),
)

VIEW = _entry(
    "VIEW",
    "AcDbViewTableRecord",
    value("height", 40, 1.0),
    point2d("center", 10),
    value("width", 41, 1.0),
    point("direction", 11, Z_AXIS),
    point("target", 12),
    value("focal_length", 42, 50.0),
    value("front_clipping", 43, 0.0),
    value("back_clipping", 44, 0.0),
    value("view_twist", 50, 0.0),
    value("view_mode", 71, 0),
    _newer("render_mode", 281, R2000, 0),
    _newer("ucs", 72, R2000, 0),
    optional_point("ucs_origin", 110, min_revision=R2000, gate=SILENT),
    optional_point("ucs_xaxis", 111, min_revision=R2000, gate=SILENT),
    optional_point("ucs_yaxis", 112, min_revision=R2000, gate=SILENT),
    _newer("ucs_ortho_type", 79, R2000),
    _newer("elevation", 146, R2000),
    _newer("ucs_handle", 345, R2000),
    _newer("base_ucs_handle", 346, R2000),
)

VPORT = _entry(
    "VPORT",
    "AcDbViewportTableRecord",
    point2d("lower_left", 10),
    point2d("upper_right", 11, (1.0, 1.0)),
    point2d("center", 12),
    point2d("snap_base", 13),
    point2d("snap_spacing", 14, (10.0, 10.0)),
    point2d("grid_spacing", 15, (10.0, 10.0)),
    point("direction", 16, Z_AXIS),
    point("target", 17),
    value("height", 40, 1.0),
    value("aspect_ratio", 41, 1.0),
    value("focal_length", 42, 50.0),
    value("front_clipping", 43, 0.0),
    value("back_clipping", 44, 0.0),
    value("snap_rotation", 50, 0.0),
    value("view_twist", 51, 0.0),
    value("view_mode", 71, 0),
    value("circle_zoom", 72, 1000),
    value("fast_zoom", 73, 1),
    value("ucs_icon", 74, 3),
    value("snap_on", 75, 0),
    value("grid_on", 76, 0),
    value("snap_style", 77, 0),
    value("snap_isopair", 78, 0),
    _newer("render_mode", 281, R2000, 0),
    _newer("ucs_vp", 65, R2000, 1),
    optional_point("ucs_origin", 110, min_revision=R2000, gate=SILENT),
    optional_point("ucs_xaxis", 111, min_revision=R2000, gate=SILENT),
    optional_point("ucs_yaxis", 112, min_revision=R2000, gate=SILENT),
    _newer("ucs_ortho_type", 79, R2000),
    _newer("elevation", 146, R2000),
    _newer("grid_flags", 60, R2007),
    _newer("grid_major", 61, R2007),
)

TABLE_SCHEMAS = (
    TABLE_HEAD,
    APPID,
    BLOCK_RECORD,
    DIMSTYLE,
    LAYER,
    LTYPE,
    STYLE,
    UCS,
    VIEW,
    VPORT,
)
