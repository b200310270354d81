"""Schemas for drawable entities (ENTITIES section and BLOCK contents)."""
from __future__ import annotations

import math
from typing import Any, Iterator

from .const import (
    DXF_COLOR_BYLAYER,
    DXF_DEFAULT_LAYER,
    DXF_DEFAULT_LINETYPE,
    DXF_DEFAULT_LINETYPE_SCALE,
    DXF_DEFAULT_TEXT_STYLE,
    DXF_DEFAULT_VISIBILITY,
    DXF_MODELSPACE,
    Revision,
)
from .schema import (
    ENTITY,
    ORIGIN,
    SILENT,
    X_AXIS,
    Z_AXIS,
    EntitySchema,
    Field,
    Subclass,
    binary,
    count,
    extrusion,
    non_negative,
    optional,
    optional_point,
    optional_point2d,
    point,
    point2d,
    points,
    points2d,
    positive,
    raw_tags,
    records,
    value,
    values,
)
from .tags import Tag

R11 = Revision.R11
R12 = Revision.R12
R13 = Revision.R13
R2000 = Revision.R2000
R2002 = Revision.R2002
R2004 = Revision.R2004
R2007 = Revision.R2007
R2008 = Revision.R2008
R2009 = Revision.R2009
R2010 = Revision.R2010

Y_AXIS = (0.0, 1.0, 0.0)

COMMON = Subclass(
    "AcDbEntity",
    (
        optional("paperspace", 67, DXF_MODELSPACE, bounds=(0, 1)),
        value("layer", 8, DXF_DEFAULT_LAYER, blank=DXF_DEFAULT_LAYER),
        optional("linetype", 6, DXF_DEFAULT_LINETYPE, blank=DXF_DEFAULT_LINETYPE),
        optional("elevation", 38, 0.0, max_revision=R11, gate=SILENT, flatland=True),
        optional("thickness", 39, 0.0, check=non_negative),
        optional("color", 62, DXF_COLOR_BYLAYER, bounds=(-1, 256)),
        optional(
            "linetype_scale",
            48,
            DXF_DEFAULT_LINETYPE_SCALE,
            min_revision=R13,
            check=non_negative,
        ),
        optional("visibility", 60, DXF_DEFAULT_VISIBILITY, bounds=(0, 1), min_revision=R13),
        optional("lineweight", 370, min_revision=R2002),
        optional("material_handle", 347, min_revision=R2008),
        optional("true_color", 420, min_revision=R2004),
        optional("color_name", 430, min_revision=R2004),
        optional("transparency", 440, min_revision=R2004),
        optional("plotstyle_handle", 390, min_revision=R2009),
        optional("shadow_mode", 284, bounds=(0, 3), min_revision=R2009),
    ),
)

EXTRUSION = (extrusion(),)


def _entity(
    name: str,
    *groups: Subclass,
    trailer: tuple[Field, ...] = EXTRUSION,
    **options: Any,
) -> EntitySchema:
    return EntitySchema(name, ENTITY, groups=groups, common=COMMON, trailer=trailer, **options)


def _flag(bit: int, key: str = "flags"):
    return lambda dxf: bool(int(dxf.get(key, 0)) & bit)


# -- simple geometry ----------------------------------------------------------

LINE = _entity(
    "LINE",
    Subclass("AcDbLine", (point("start", 10), point("end", 11))),
)

LINE3D = _entity(
    "3DLINE",
    Subclass("AcDbLine", (point("start", 10), point("end", 11))),
    max_revision=R12,
)

POINT = _entity(
    "POINT",
    Subclass("AcDbPoint", (point("location", 10), optional("angle", 50, 0.0))),
)

CIRCLE = _entity(
    "CIRCLE",
    Subclass("AcDbCircle", (point("center", 10), value("radius", 40, 1.0, check=positive))),
)

ARC = _entity(
    "ARC",
    Subclass("AcDbCircle", (point("center", 10), value("radius", 40, 1.0))),
    Subclass("AcDbArc", (value("start_angle", 50, 0.0), value("end_angle", 51, 360.0))),
)

ELLIPSE = _entity(
    "ELLIPSE",
    Subclass(
        "AcDbEllipse",
        (
            point("center", 10),
            point("major_axis", 11, X_AXIS),
            value("ratio", 40, 1.0, check=positive),
            value("start_param", 41, 0.0),
            value("end_param", 42, math.tau),
        ),
    ),
    min_revision=R13,
)

_CORNERS = (
    point("vtx0", 10),
    point("vtx1", 11),
    point("vtx2", 12),
    point("vtx3", 13),
)

SOLID = _entity("SOLID", Subclass("AcDbTrace", _CORNERS))

TRACE = _entity("TRACE", Subclass("AcDbTrace", _CORNERS))

FACE3D = _entity(
    "3DFACE",
    Subclass("AcDbFace", _CORNERS + (optional("invisible_edges", 70, 0),)),
    trailer=(),
)

RAY = _entity(
    "RAY",
    Subclass("AcDbRay", (point("start", 10), point("unit_vector", 11, X_AXIS))),
    trailer=(),
    min_revision=R13,
)

XLINE = _entity(
    "XLINE",
    Subclass("AcDbXline", (point("start", 10), point("unit_vector", 11, X_AXIS))),
    trailer=(),
    min_revision=R13,
)

SHAPE = _entity(
    "SHAPE",
    Subclass(
        "AcDbShape",
        (
            point("insert", 10),
            value("size", 40, 1.0),
            value("name", 2, ""),
            optional("rotation", 50, 0.0),
            optional("xscale", 41, 1.0),
            optional("oblique", 51, 0.0),
        ),
    ),
)


# -- text ---------------------------------------------------------------------


def _text_fields() -> tuple[Field, ...]:
    return (
        point("insert", 10),
        value("height", 40, 1.0, check=positive),
        value("text", 1, ""),
        optional("rotation", 50, 0.0),
        optional("width", 41, 1.0, check=positive),
        optional("oblique", 51, 0.0),
        optional("style", 7, DXF_DEFAULT_TEXT_STYLE),
        optional("text_generation_flag", 71, 0),
        optional("halign", 72, 0, bounds=(0, 5)),
        optional_point("align_point", 11),
    )


TEXT = _entity(
    "TEXT",
    Subclass("AcDbText", _text_fields()),
    Subclass("AcDbText", (optional("valign", 73, 0, bounds=(0, 3)),)),
)

ATTDEF = _entity(
    "ATTDEF",
    Subclass("AcDbText", _text_fields()),
    Subclass(
        "AcDbAttributeDefinition",
        (
            value("prompt", 3, ""),
            value("tag", 2, ""),
            value("flags", 70, 0),
            optional("field_length", 73, 0),
            optional("valign", 74, 0, bounds=(0, 3)),
            optional("lock_position", 280, 0, min_revision=R2010),
        ),
    ),
)

ATTRIB = _entity(
    "ATTRIB",
    Subclass("AcDbText", _text_fields()),
    Subclass(
        "AcDbAttribute",
        (
            value("tag", 2, ""),
            value("flags", 70, 0),
            optional("field_length", 73, 0),
            optional("valign", 74, 0, bounds=(0, 3)),
            optional("lock_position", 280, 0, min_revision=R2010),
        ),
    ),
)

MTEXT = _entity(
    "MTEXT",
    Subclass(
        "AcDbMText",
        (
            point("insert", 10),
            value("char_height", 40, 1.0, check=positive),
            value("width", 41, 0.0),
            optional("defined_height", 46, 0.0, min_revision=R2007),
            value("attachment_point", 71, 1, bounds=(1, 9)),
            value("flow_direction", 72, 1, bounds=(1, 5)),
            values("text_chunks", 3),
            value("text", 1, ""),
            optional("style", 7, DXF_DEFAULT_TEXT_STYLE),
            optional_point("text_direction", 11),
            optional("rect_width", 42),
            optional("rect_height", 43),
            optional("rotation", 50, 0.0),
            optional("line_spacing_style", 73, 1, bounds=(1, 2)),
            optional("line_spacing_factor", 44, 1.0),
            optional("bg_fill", 90, 0, min_revision=R2004),
            optional("bg_fill_color", 63, min_revision=R2004),
            optional("bg_fill_true_color", 421, min_revision=R2004),
            optional("bg_fill_color_name", 431, min_revision=R2004),
            optional("box_fill_scale", 45, min_revision=R2004),
            optional("bg_fill_transparency", 441, min_revision=R2004),
        ),
    ),
    min_revision=R13,
)

TOLERANCE = _entity(
    "TOLERANCE",
    Subclass(
        "AcDbFcf",
        (
            value("dimstyle", 3, DXF_DEFAULT_TEXT_STYLE),
            point("insert", 10),
            value("content", 1, ""),
            optional_point("x_axis", 11, X_AXIS),
        ),
    ),
    min_revision=R13,
)


# -- blocks and references ----------------------------------------------------

BLOCK = _entity(
    "BLOCK",
    Subclass(
        "AcDbBlockBegin",
        (
            value("name", 2, ""),
            value("flags", 70, 0),
            point("base_point", 10),
            value("name2", 3, ""),
            value("xref_path", 1, ""),
            optional("description", 4, ""),
        ),
    ),
    trailer=(),
)

ENDBLK = _entity("ENDBLK", Subclass("AcDbBlockEnd"), trailer=())

SEQEND = _entity("SEQEND", trailer=())

INSERT = _entity(
    "INSERT",
    Subclass(
        "AcDbBlockReference",
        (
            optional("attributes_follow", 66, 0),
            value("name", 2, ""),
            point("insert", 10),
            optional("xscale", 41, 1.0),
            optional("yscale", 42, 1.0),
            optional("zscale", 43, 1.0),
            optional("rotation", 50, 0.0),
            optional("column_count", 70, 1),
            optional("row_count", 71, 1),
            optional("column_spacing", 44, 0.0),
            optional("row_spacing", 45, 0.0),
        ),
    ),
)


# -- polylines ----------------------------------------------------------------


def _polyline_fields() -> tuple[Field, ...]:
    return (
        value("vertices_follow", 66, 1),
        point("elevation_point", 10),
        optional("flags", 70, 0),
        optional("default_start_width", 40, 0.0),
        optional("default_end_width", 41, 0.0),
        optional("m_count", 71, 0),
        optional("n_count", 72, 0),
        optional("m_smooth_density", 73, 0),
        optional("n_smooth_density", 74, 0),
        optional("smooth_type", 75, 0),
    )


def _is_2d_polyline(dxf: dict[str, Any]) -> bool:
    return not int(dxf.get("flags", 0)) & (8 | 16 | 64)


POLYLINE = _entity(
    "POLYLINE",
    Subclass("AcDb2dPolyline", _polyline_fields(), when=_is_2d_polyline),
    Subclass("AcDb3dPolyline", _polyline_fields(), when=_flag(8)),
    Subclass("AcDbPolygonMesh", _polyline_fields(), when=_flag(16)),
    Subclass("AcDbPolyFaceMesh", _polyline_fields(), when=_flag(64)),
)


def _vertex_fields() -> tuple[Field, ...]:
    return (
        point("location", 10),
        optional("start_width", 40, 0.0),
        optional("end_width", 41, 0.0),
        optional("bulge", 42, 0.0),
        optional("flags", 70, 0),
        optional("tangent", 50),
        optional("vtx0", 71),
        optional("vtx1", 72),
        optional("vtx2", 73),
        optional("vtx3", 74),
        optional("vertex_id", 91, min_revision=R2010),
    )


def _vertex_kind(dxf: dict[str, Any]) -> str:
    flags = int(dxf.get("flags", 0))
    if flags & 128:
        return "pface" if flags & 64 else "face"
    if flags & 64:
        return "mesh"
    if flags & 32:
        return "3d"
    return "2d"


VERTEX = _entity(
    "VERTEX",
    Subclass("AcDbVertex", when=lambda dxf: _vertex_kind(dxf) != "face"),
    Subclass("AcDb2dVertex", _vertex_fields(), when=lambda dxf: _vertex_kind(dxf) == "2d"),
    Subclass(
        "AcDb3dPolylineVertex", _vertex_fields(), when=lambda dxf: _vertex_kind(dxf) == "3d"
    ),
    Subclass(
        "AcDbPolygonMeshVertex", _vertex_fields(), when=lambda dxf: _vertex_kind(dxf) == "mesh"
    ),
    Subclass(
        "AcDbPolyFaceMeshVertex", _vertex_fields(), when=lambda dxf: _vertex_kind(dxf) == "pface"
    ),
    Subclass("AcDbFaceRecord", _vertex_fields(), when=lambda dxf: _vertex_kind(dxf) == "face"),
    trailer=(),
)

LWPOLYLINE = _entity(
    "LWPOLYLINE",
    Subclass(
        "AcDbPolyline",
        (
            count("count", 90, of="vertices"),
            value("flags", 70, 0),
            optional("const_width", 43),
            optional("elevation", 38, 0.0),
            records(
                "vertices",
                point2d("point", 10),
                optional("start_width", 40),
                optional("end_width", 41),
                optional("bulge", 42),
                optional("vertex_id", 91),
            ),
        ),
    ),
    min_revision=R13,
)


# -- curves -------------------------------------------------------------------


def _spline_fields() -> tuple[Field, ...]:
    return (
        optional_point("extrusion", 210, Z_AXIS),
        value("flags", 70, 0),
        value("degree", 71, 3),
        count("n_knots", 72, of="knots"),
        count("n_control_points", 73, of="control_points"),
        count("n_fit_points", 74, of="fit_points"),
        optional("knot_tolerance", 42, 1e-10),
        optional("control_point_tolerance", 43, 1e-10),
        optional("fit_tolerance", 44, 1e-10),
        optional_point("start_tangent", 12),
        optional_point("end_tangent", 13),
        values("knots", 40),
        values("weights", 41),
        points("control_points", 10),
        points("fit_points", 11),
    )


SPLINE = _entity(
    "SPLINE",
    Subclass("AcDbSpline", _spline_fields()),
    trailer=(),
    min_revision=R13,
)

HELIX = _entity(
    "HELIX",
    Subclass("AcDbSpline", _spline_fields()),
    Subclass(
        "AcDbHelix",
        (
            value("helix_major_version", 90, 29),
            value("helix_maintenance_version", 91, 63),
            point("axis_base_point", 10),
            point("start_point", 11, X_AXIS),
            point("axis_vector", 12, Z_AXIS),
            value("radius", 40, 1.0),
            value("turns", 41, 1.0),
            value("turn_height", 42, 1.0),
            value("handedness", 290, True),
            value("constrain", 280, 1),
        ),
    ),
    trailer=(),
    min_revision=R2007,
)


# -- dimensions and leaders ---------------------------------------------------


def _dimtype(*types: int):
    return lambda dxf: int(dxf.get("flag", 0)) in types


DIMENSION = _entity(
    "DIMENSION",
    Subclass(
        "AcDbDimension",
        (
            optional("version", 280, 0, min_revision=R2010),
            value("geometry", 2, ""),
            point("defpoint", 10),
            point("text_midpoint", 11),
            optional_point("insert", 12),
            value("flag", 70, 0, bounds=(0, 6), bits=0x07),
            optional("attachment_point", 71, 5, bounds=(1, 9), min_revision=R2000),
            optional("line_spacing_style", 72, 1, bounds=(1, 2), min_revision=R2000),
            optional("line_spacing_factor", 41, 1.0, min_revision=R2000),
            optional("actual_measurement", 42, min_revision=R2000),
            optional("text", 1, ""),
            optional("text_rotation", 53, 0.0),
            optional("horizontal_direction", 51, 0.0),
            value("dimstyle", 3, DXF_DEFAULT_TEXT_STYLE),
        ),
    ),
    Subclass(
        "AcDbAlignedDimension",
        (
            point("defpoint2", 13),
            point("defpoint3", 14),
            optional("angle", 50, 0.0),
            optional("oblique_angle", 52, 0.0),
        ),
        when=_dimtype(0, 1),
    ),
    Subclass("AcDbRotatedDimension", when=_dimtype(0)),
    Subclass(
        "AcDb2LineAngularDimension",
        (
            point("defpoint2", 13),
            point("defpoint3", 14),
            point("defpoint4", 15),
            point("defpoint5", 16),
        ),
        when=_dimtype(2),
    ),
    Subclass(
        "AcDbDiametricDimension",
        (point("defpoint4", 15), value("leader_length", 40, 0.0)),
        when=_dimtype(3),
    ),
    Subclass(
        "AcDbRadialDimension",
        (point("defpoint4", 15), value("leader_length", 40, 0.0)),
        when=_dimtype(4),
    ),
    Subclass(
        "AcDb3PointAngularDimension",
        (point("defpoint2", 13), point("defpoint3", 14), point("defpoint4", 15)),
        when=_dimtype(5),
    ),
    Subclass(
        "AcDbOrdinateDimension",
        (point("defpoint2", 13), point("defpoint3", 14)),
        when=_dimtype(6),
    ),
)

LEADER = _entity(
    "LEADER",
    Subclass(
        "AcDbLeader",
        (
            value("dimstyle", 3, DXF_DEFAULT_TEXT_STYLE),
            value("has_arrowhead", 71, 1),
            value("path_type", 72, 0),
            value("annotation_type", 73, 3),
            value("hookline_direction", 74, 0),
            value("has_hookline", 75, 0),
            optional("text_height", 40),
            optional("text_width", 41),
            count("n_vertices", 76, of="vertices"),
            points("vertices", 10),
            optional("block_color", 77),
            optional("annotation_handle", 340),
            optional_point("extrusion", 210, Z_AXIS),
            optional_point("horizontal_direction", 211, X_AXIS),
            optional_point("leader_offset_block_ref", 212, ORIGIN),
            optional_point("leader_offset_annotation_placement", 213, ORIGIN),
        ),
    ),
    trailer=(),
    min_revision=R13,
)

MULTILEADER = _entity(
    "MULTILEADER",
    Subclass(
        "AcDbMLeader",
        (
            optional("version", 270, min_revision=R2010, gate=SILENT),
            # leader context block, kept verbatim from CONTEXT_DATA{ to its closing 301
            raw_tags("context", 300, until=(301, "}")),
            optional("leader_style_id", 340),
            value("property_override_flag", 90, 0),
            value("leader_linetype_style", 170, 0),
            value("leader_line_color", 91, 0),
            optional("leader_linetype_id", 341),
            value("leader_line_weight", 171, 0),
            value("enable_landing", 290, False),
            value("enable_dogleg", 291, False),
            value("dogleg_length", 41, 0.0, check=non_negative),
            optional("arrowhead_id", 342),
            value("arrowhead_size", 42, 0.0, check=non_negative),
            value("content_type", 172, 0),
            optional("text_style_id", 343),
            value("text_left_attachment_type", 173, 0),
            value("text_right_attachment_type", 95, 0),
            value("text_angle_type", 174, 0),
            value("text_alignment_type", 175, 0),
            value("text_color", 92, 0),
            value("enable_frame_text", 292, False),
            optional("block_content_id", 344),
            value("block_content_color", 93, 0),
            optional_point("block_content_scale", 10, (1.0, 1.0, 1.0)),
            value("block_content_rotation", 43, 0.0),
            value("block_content_connection_type", 176, 0),
            value("enable_annotation_scale", 293, False),
            optional("arrowhead_index", 94),
            optional("arrow_head_id", 345),
            records(
                "block_attributes",
                optional("id", 330),
                value("index", 177, 0),
                value("width", 44, 0.0),
                value("text", 302, ""),
            ),
            value("text_direction_negative", 294, False),
            value("text_align_in_ipe", 178, 0),
            value("text_attachment_point", 179, 0),
            optional("text_attachment_direction", 271, 0, min_revision=R2010, gate=SILENT),
            optional("bottom_text_attachment_direction", 272, 9, min_revision=R2010, gate=SILENT),
            optional("top_text_attachment_direction", 273, 9, min_revision=R2010, gate=SILENT),
        ),
        catch_all="data",
    ),
    trailer=(),
    min_revision=R2000,
)


# -- fills and multilines -----------------------------------------------------

HATCH = _entity(
    "HATCH",
    Subclass(
        "AcDbHatch",
        (
            point("elevation_point", 10),
            optional_point("extrusion", 210, Z_AXIS),
            value("pattern_name", 2, "SOLID"),
            value("solid_fill", 70, 1),
            value("associative", 71, 0),
            raw_tags(
                "boundary_paths",
                91,
                stop=(75,),
                default=[Tag(91, 0)],
                always=True,
            ),
            value("hatch_style", 75, 0),
            value("pattern_type", 76, 1),
            optional("pattern_angle", 52),
            optional("pattern_scale", 41),
            optional("pattern_double", 77),
            raw_tags("pattern_lines", 78, stop=(47, 98, 450)),
            optional("pixel_size", 47),
            count("n_seed_points", 98, of="seed_points"),
            points2d("seed_points", 10, follows=(98,)),
            raw_tags("gradient", 450, min_revision=R2004),
        ),
    ),
    trailer=(),
    min_revision=R13,
)

MLINE = _entity(
    "MLINE",
    Subclass(
        "AcDbMline",
        (
            value("style_name", 2, "STANDARD"),
            optional("style_handle", 340),
            value("scale_factor", 40, 1.0),
            value("justification", 70, 0),
            value("flags", 71, 1),
            value("n_vertices", 72, 0),
            value("n_style_elements", 73, 2),
            point("start_location", 10),
            optional_point("extrusion", 210, Z_AXIS),
            raw_tags("vertices", 11),
        ),
    ),
    trailer=(),
    min_revision=R13,
)

MESH = _entity(
    "MESH",
    Subclass(
        "AcDbSubDMesh",
        (
            value("version", 71, 2),
            value("blend_crease", 72, 0),
            value("subdivision_levels", 91, 0),
            count("n_vertices", 92, of="vertices"),
            points("vertices", 10),
            count("face_list_size", 93, of="faces"),
            values("faces", 90, follows=(93,)),
            value("n_edges", 94, 0),
            values("edges", 90, follows=(94,)),
            count("n_creases", 95, of="creases"),
            values("creases", 140),
            value("n_overrides", 90, 0, follows=(95, 140)),
        ),
    ),
    trailer=(),
    min_revision=R2010,
)


# -- modeler geometry ---------------------------------------------------------


def _modeler_geometry() -> Subclass:
    return Subclass(
        "AcDbModelerGeometry",
        (
            value("version", 70, 1),
            raw_tags("acis_data", 1, accept=(1, 3)),
        ),
    )


BODY = _entity("BODY", _modeler_geometry(), trailer=(), min_revision=R13)

REGION = _entity("REGION", _modeler_geometry(), trailer=(), min_revision=R13)

SOLID3D = _entity(
    "3DSOLID",
    _modeler_geometry(),
    Subclass("AcDb3dSolid", (optional("history_handle", 350),), min_revision=R2008),
    trailer=(),
    min_revision=R13,
)

PLANESURFACE = _entity(
    "PLANESURFACE",
    _modeler_geometry(),
    Subclass("AcDbSurface", (value("u_isolines", 71, 0), value("v_isolines", 72, 0))),
    Subclass("AcDbPlaneSurface"),
    trailer=(),
    min_revision=R2007,
)


# -- raster, ole and underlays ------------------------------------------------


def _raster_image() -> Subclass:
    return Subclass(
        "AcDbRasterImage",
        (
            value("class_version", 90, 0),
            point("insert", 10),
            point("u_pixel", 11, X_AXIS),
            point("v_pixel", 12, Y_AXIS),
            point2d("image_size", 13, (1.0, 1.0)),
            optional("image_def_handle", 340),
            value("flags", 70, 3),
            value("clipping", 280, 0),
            value("brightness", 281, 50),
            value("contrast", 282, 50),
            value("fade", 283, 0),
            optional("image_def_reactor_handle", 360),
            value("clipping_boundary_type", 71, 1),
            count("count_boundary_points", 91, of="boundary_path"),
            points2d("boundary_path", 14),
            optional("clip_mode", 290, False, min_revision=R2010),
        ),
    )


IMAGE = _entity("IMAGE", _raster_image(), trailer=(), min_revision=R13)

WIPEOUT = _entity(
    "WIPEOUT",
    _raster_image(),
    Subclass("AcDbWipeout"),
    trailer=(),
    min_revision=R13,
)


def _underlay(name: str) -> EntitySchema:
    return _entity(
        name,
        Subclass(
            "AcDbUnderlayReference",
            (
                optional("underlay_def_handle", 340),
                point("insert", 10),
                value("scale_x", 41, 1.0),
                value("scale_y", 42, 1.0),
                value("scale_z", 43, 1.0),
                value("rotation", 50, 0.0),
                optional_point("extrusion", 210, Z_AXIS),
                value("flags", 280, 2),
                value("contrast", 281, 100),
                value("fade", 282, 0),
                points2d("boundary_path", 11),
            ),
        ),
        trailer=(),
        min_revision=R2007,
    )


PDFUNDERLAY = _underlay("PDFUNDERLAY")
DWFUNDERLAY = _underlay("DWFUNDERLAY")
DGNUNDERLAY = _underlay("DGNUNDERLAY")

OLEFRAME = _entity(
    "OLEFRAME",
    Subclass(
        "AcDbOleFrame",
        (
            value("version", 70, 2),
            value("data_length", 90, 0),
            binary("data", 310),
            value("end_marker", 1, "OLE"),
        ),
    ),
    trailer=(),
)

OLE2FRAME = _entity(
    "OLE2FRAME",
    Subclass(
        "AcDbOle2Frame",
        (
            value("version", 70, 2),
            optional("description", 3, ""),
            point("upper_left", 10),
            point("lower_right", 11),
            value("ole_type", 71, 2),
            value("tile_mode", 72, 0),
            value("data_length", 90, 0),
            binary("data", 310),
            value("end_marker", 1, "OLE"),
        ),
    ),
    trailer=(),
    min_revision=R13,
)


# -- viewports and lights -----------------------------------------------------

VIEWPORT = _entity(
    "VIEWPORT",
    Subclass(
        "AcDbViewport",
        (
            point("center", 10),
            value("width", 40, 1.0),
            value("height", 41, 1.0),
            value("status", 68, 0),
            value("id", 69, 1),
            point2d("view_center", 12),
            optional_point2d("snap_base_point", 13),
            optional_point2d("snap_spacing", 14),
            optional_point2d("grid_spacing", 15),
            optional_point("view_direction_vector", 16),
            optional_point("view_target_point", 17),
            optional("perspective_lens_length", 42, 50.0),
            optional("front_clip_plane_z_value", 43, 0.0),
            optional("back_clip_plane_z_value", 44, 0.0),
            optional("view_height", 45),
            optional("snap_angle", 50, 0.0),
            optional("view_twist_angle", 51, 0.0),
            optional("circle_zoom", 72, 100),
            values("frozen_layer_handles", 331),
            optional("flags", 90, 0, min_revision=R2000),
            optional("clipping_boundary_handle", 340, min_revision=R2000),
            optional("plot_style_name", 1, "", min_revision=R2000),
            optional("render_mode", 281, 0, min_revision=R2000),
            optional("ucs_per_viewport", 71, 0, min_revision=R2000),
            optional("ucs_icon", 74, 0, min_revision=R2000),
            optional_point("ucs_origin", 110, min_revision=R2000),
            optional_point("ucs_x_axis", 111, min_revision=R2000),
            optional_point("ucs_y_axis", 112, min_revision=R2000),
            optional("ucs_handle", 345, min_revision=R2000),
            optional("ucs_base_handle", 346, min_revision=R2000),
            optional("ucs_ortho_type", 79, 0, min_revision=R2000),
            optional("elevation", 146, 0.0, min_revision=R2000),
            optional("shade_plot_mode", 170, 0, min_revision=R2000),
            optional("grid_frequency", 61, 5, min_revision=R2007),
            optional("background_handle", 332, min_revision=R2007),
            optional("shade_plot_handle", 333, min_revision=R2007),
            optional("visual_style_handle", 348, min_revision=R2007),
            optional("default_lighting_flag", 292, True, min_revision=R2007),
            optional("default_lighting_type", 282, 1, min_revision=R2007),
            optional("view_brightness", 141, 0.0, min_revision=R2007),
            optional("view_contrast", 142, 0.0, min_revision=R2007),
            optional("sun_handle", 361, min_revision=R2007),
        ),
    ),
    trailer=(),
)

LIGHT = _entity(
    "LIGHT",
    Subclass(
        "AcDbLight",
        (
            value("version", 90, 1),
            value("name", 1, ""),
            value("type", 70, 1, bounds=(1, 3)),
            value("status", 290, True),
            value("plot_glyph", 291, False),
            value("intensity", 40, 1.0),
            point("location", 10),
            point("target", 11),
            value("attenuation_type", 72, 0),
            value("use_attenuation_limits", 292, False),
            value("attenuation_start_limit", 41, 0.0),
            value("attenuation_end_limit", 42, 0.0),
            value("hotspot", 50, 45.0),
            value("falloff", 51, 50.0),
            value("cast_shadows", 293, True),
            value("shadow_type", 73, 0),
            value("shadow_map_size", 91, 256),
            value("shadow_softness", 280, 1),
        ),
    ),
    trailer=(),
    min_revision=R2007,
)


# -- proxies ------------------------------------------------------------------


def _proxy_data_sizes(dxf: dict[str, Any]) -> Iterator[tuple[str, str]]:
    size = dxf.get("entity_data_size")
    data = dxf.get("entity_data")
    if size is None or not data:
        return
    n_bytes = sum(len(chunk) for chunk in data)
    if size == n_bytes:
        yield (
            "entity_data_size",
            f"entity data size {size} matches the byte count, expected bits ({n_bytes * 8})",
        )


def _proxy_fields(class_id: int) -> tuple[Field, ...]:
    return (
        value("proxy_class_id", 90, class_id),
        value("application_class_id", 91, 500),
        optional("graphics_data_size", 92),
        optional("graphics_data_size", 160, emit=False),
        binary("graphics_data", 310, follows=(92, 160)),
        optional("entity_data_size", 93),
        binary("entity_data", 310, follows=(93,)),
        raw_tags("object_ids", 330, accept=(330, 340, 350, 360)),
        value("object_ids_end", 94, 0),
        optional("object_drawing_format", 95, min_revision=R2000),
        optional("original_data_format", 70, min_revision=R2000),
    )


PROXY_ENTITY = _entity(
    "ACAD_PROXY_ENTITY",
    Subclass("AcDbProxyEntity", _proxy_fields(498)),
    trailer=(),
    min_revision=R13,
    advisories=(_proxy_data_sizes,),
)


ENTITY_SCHEMAS = (
    FACE3D,
    LINE3D,
    SOLID3D,
    PROXY_ENTITY,
    ARC,
    ATTDEF,
    ATTRIB,
    BLOCK,
    BODY,
    CIRCLE,
    DIMENSION,
    ELLIPSE,
    ENDBLK,
    HATCH,
    HELIX,
    IMAGE,
    INSERT,
    LEADER,
    LIGHT,
    LINE,
    LWPOLYLINE,
    MESH,
    MLINE,
    MTEXT,
    MULTILEADER,
    OLEFRAME,
    OLE2FRAME,
    PDFUNDERLAY,
    DWFUNDERLAY,
    DGNUNDERLAY,
    PLANESURFACE,
    POINT,
    POLYLINE,
    RAY,
    REGION,
    SEQEND,
    SHAPE,
    SOLID,
    SPLINE,
    TEXT,
    TOLERANCE,
    TRACE,
    VERTEX,
    VIEWPORT,
    WIPEOUT,
    XLINE,
)

