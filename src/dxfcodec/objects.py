"""Schemas for non-graphical objects (OBJECTS section) and CLASS records."""
from __future__ import annotations

from typing import Any

from .const import DXF_COLOR_BYLAYER, Revision
from .schema import (
    CLASS,
    OBJECT,
    X_AXIS,
    EntitySchema,
    Field,
    Subclass,
    binary,
    count,
    optional,
    point,
    point2d,
    raw_tags,
    records,
    value,
    values,
)

R13 = Revision.R13
R14 = Revision.R14
R2000 = Revision.R2000
R2004 = Revision.R2004
R2007 = Revision.R2007

Y_AXIS = (0.0, 1.0, 0.0)


def _object(name: str, *groups: Subclass, **options: Any) -> EntitySchema:
    options.setdefault("min_revision", R13)
    return EntitySchema(name, OBJECT, groups=groups, **options)


CLASS_RECORD = EntitySchema(
    "CLASS",
    CLASS,
    groups=(
        Subclass(
            None,
            (
                value("name", 1, ""),
                value("cpp_class_name", 2, ""),
                value("app_name", 3, ""),
                value("flags", 90, 0),
                optional("instance_count", 91, 0, min_revision=R2004),
                value("was_a_proxy", 280, 0),
                value("is_an_entity", 281, 0),
            ),
        ),
    ),
    handle_code=None,
    min_revision=R13,
)


def _dictionary_fields() -> tuple[Field, ...]:
    return (
        optional("hard_owned", 280, 0, min_revision=R2000),
        optional("cloning", 281, 1, min_revision=R2000),
        records(
            "entries",
            value("name", 3, ""),
            optional("entry", 350),
            optional("owned_entry", 360),
        ),
    )


DICTIONARY = _object("DICTIONARY", Subclass("AcDbDictionary", _dictionary_fields()))

DICTIONARY_WITH_DEFAULT = _object(
    "ACDBDICTIONARYWDFLT",
    Subclass("AcDbDictionary", _dictionary_fields()),
    Subclass("AcDbDictionaryWithDefault", (optional("default", 340),)),
    min_revision=R2000,
)

PLACEHOLDER = _object("ACDBPLACEHOLDER", min_revision=R2000)

DICTIONARYVAR = _object(
    "DICTIONARYVAR",
    Subclass("DictionaryVariables", (value("schema", 280, 0), value("value", 1, ""))),
)

GROUP = _object(
    "GROUP",
    Subclass(
        "AcDbGroup",
        (
            value("description", 300, ""),
            value("unnamed", 70, 1),
            value("selectable", 71, 1),
            values("handles", 340),
        ),
    ),
)

IDBUFFER = _object("IDBUFFER", Subclass("AcDbIdBuffer", (values("handles", 330),)))

IMAGEDEF = _object(
    "IMAGEDEF",
    Subclass(
        "AcDbRasterImageDef",
        (
            value("class_version", 90, 0),
            value("filename", 1, ""),
            point2d("image_size", 10, (1.0, 1.0)),
            point2d("pixel_size", 11, (1.0, 1.0)),
            value("loaded", 280, 1),
            value("resolution_units", 281, 0),
        ),
    ),
)

IMAGEDEF_REACTOR = _object(
    "IMAGEDEF_REACTOR",
    Subclass(
        "AcDbRasterImageDefReactor",
        (value("class_version", 90, 2), optional("image_handle", 330)),
    ),
)

RASTERVARIABLES = _object(
    "RASTERVARIABLES",
    Subclass(
        "AcDbRasterVariables",
        (
            value("class_version", 90, 0),
            value("frame", 70, 0),
            value("quality", 71, 1),
            value("units", 72, 3),
        ),
    ),
)

WIPEOUTVARIABLES = _object(
    "WIPEOUTVARIABLES",
    Subclass("AcDbWipeoutVariables", (value("frame", 70, 0),)),
)


def _plot_settings() -> Subclass:
    return Subclass(
        "AcDbPlotSettings",
        (
            value("page_setup_name", 1, ""),
            value("plot_configuration_file", 2, "Adobe PDF"),
            value("paper_size", 4, "A3"),
            value("plot_view_name", 6, ""),
            value("left_margin", 40, 7.5),
            value("bottom_margin", 41, 20.0),
            value("right_margin", 42, 7.5),
            value("top_margin", 43, 20.0),
            value("paper_width", 44, 420.0),
            value("paper_height", 45, 297.0),
            value("plot_origin_x_offset", 46, 0.0),
            value("plot_origin_y_offset", 47, 0.0),
            value("plot_window_x1", 48, 0.0),
            value("plot_window_y1", 49, 0.0),
            value("plot_window_x2", 140, 0.0),
            value("plot_window_y2", 141, 0.0),
            value("scale_numerator", 142, 1.0),
            value("scale_denominator", 143, 1.0),
            value("plot_layout_flags", 70, 688),
            value("plot_paper_units", 72, 0),
            value("plot_rotation", 73, 0),
            value("plot_type", 74, 5),
            value("current_style_sheet", 7, ""),
            value("standard_scale_type", 75, 16),
            optional("shade_plot_mode", 76, 0),
            optional("shade_plot_resolution_level", 77, 2),
            optional("shade_plot_custom_dpi", 78, 300),
            value("unit_factor", 147, 1.0),
            value("paper_image_origin_x", 148, 0.0),
            value("paper_image_origin_y", 149, 0.0),
            optional("shade_plot_handle", 333, min_revision=R2007),
        ),
    )


PLOTSETTINGS = _object("PLOTSETTINGS", _plot_settings(), min_revision=R2000)

LAYOUT = _object(
    "LAYOUT",
    _plot_settings(),
    Subclass(
        "AcDbLayout",
        (
            value("name", 1, "Layoutname"),
            value("layout_flags", 70, 1),
            value("taborder", 71, 1),
            point2d("limmin", 10),
            point2d("limmax", 11, (420.0, 297.0)),
            point("insert_base", 12),
            point("extmin", 14, (1e20, 1e20, 1e20)),
            point("extmax", 15, (-1e20, -1e20, -1e20)),
            value("elevation", 146, 0.0),
            point("ucs_origin", 13),
            point("ucs_xaxis", 16, X_AXIS),
            point("ucs_yaxis", 17, Y_AXIS),
            value("ucs_type", 76, 1),
            optional("block_record_handle", 330),
            optional("viewport_handle", 331),
            optional("ucs_handle", 345),
            optional("base_ucs_handle", 346),
        ),
    ),
    min_revision=R2000,
)

MATERIAL = _object(
    "MATERIAL",
    Subclass("AcDbMaterial", (value("name", 1, ""),), catch_all="properties"),
    min_revision=R2000,
)

MLINESTYLE = _object(
    "MLINESTYLE",
    Subclass(
        "AcDbMlineStyle",
        (
            value("name", 2, ""),
            value("flags", 70, 0),
            value("description", 3, ""),
            value("fill_color", 62, DXF_COLOR_BYLAYER),
            value("start_angle", 51, 90.0),
            value("end_angle", 52, 90.0),
            count("n_elements", 71, of="elements"),
            records(
                "elements",
                value("offset", 49, 0.0),
                value("color", 62, DXF_COLOR_BYLAYER),
                value("linetype", 6, "BYLAYER"),
            ),
        ),
    ),
)

OBJECT_PTR = _object("OBJECT_PTR", Subclass("CAseDLPNTableRecord"), min_revision=R14)

SCALE = _object(
    "SCALE",
    Subclass(
        "AcDbScale",
        (
            value("flags", 70, 0),
            value("name", 300, ""),
            value("paper_units", 140, 1.0),
            value("drawing_units", 141, 1.0),
            value("is_unit_scale", 290, False),
        ),
    ),
    min_revision=R2007,
)

SORTENTSTABLE = _object(
    "SORTENTSTABLE",
    Subclass(
        "AcDbSortentsTable",
        (
            optional("block_record_handle", 330),
            records("entries", value("entity", 331, 0), value("sort_handle", 5, 0)),
        ),
    ),
    min_revision=R2000,
)

SUN = _object(
    "SUN",
    Subclass(
        "AcDbSun",
        (
            value("version", 90, 1),
            value("status", 290, True),
            value("color", 63, 7),
            value("intensity", 40, 1.0),
            value("shadows", 291, True),
            value("julian_day", 91, 2456922),
            value("time", 92, 43200),
            value("daylight_savings", 292, False),
            value("shadow_type", 70, 0),
            value("shadow_map_size", 71, 256),
            value("shadow_softness", 280, 1),
        ),
    ),
    min_revision=R2007,
)

XRECORD = _object(
    "XRECORD",
    Subclass(
        "AcDbXrecord",
        (optional("cloning", 280, 1, min_revision=R2000),),
        catch_all="data",
    ),
)

DIMASSOC = _object(
    "DIMASSOC",
    Subclass(
        "AcDbDimAssoc",
        (
            optional("dimension_handle", 330),
            value("associativity", 90, 0),
            value("trans_space", 70, 0),
            optional("rotated_dim_type", 71),
        ),
        catch_all="references",
    ),
    min_revision=R2000,
)

PROXY_OBJECT = _object(
    "ACAD_PROXY_OBJECT",
    Subclass(
        "AcDbProxyObject",
        (
            value("proxy_class_id", 90, 499),
            value("application_class_id", 91, 500),
            optional("entity_data_size", 93),
            binary("entity_data", 310),
            raw_tags("object_ids", 330, accept=(330, 340, 350, 360)),
            value("object_ids_end", 94, 0),
            optional("object_drawing_format", 95, min_revision=R2000),
            optional("original_data_format", 70, min_revision=R2000),
        ),
    ),
)

OBJECT_SCHEMAS = (
    PROXY_OBJECT,
    DICTIONARY_WITH_DEFAULT,
    PLACEHOLDER,
    DICTIONARY,
    DICTIONARYVAR,
    DIMASSOC,
    GROUP,
    IDBUFFER,
    IMAGEDEF,
    IMAGEDEF_REACTOR,
    LAYOUT,
    MATERIAL,
    MLINESTYLE,
    OBJECT_PTR,
    PLOTSETTINGS,
    RASTERVARIABLES,
    SCALE,
    SORTENTSTABLE,
    SUN,
    WIPEOUTVARIABLES,
    XRECORD,
)
