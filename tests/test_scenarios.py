from __future__ import annotations

import io
from pathlib import Path

import pytest

import dxfcodec
from dxfcodec.codec import render_record
from dxfcodec.errors import InvalidEntity, UnsupportedByVersion
from tests._dxf_helpers import (
    dxf_entities_of_type,
    dxf_text,
    entities_dxf,
    groups_after_marker,
    section,
    triplet_close,
)


ROOT = Path(__file__).resolve().parents[1]
SAMPLES = ROOT / "test_dxf"

ARC_RECORD = [
    (0, "ARC"),
    (5, "2A"),
    (8, "0"),
    (10, "1.0"),
    (20, "2.0"),
    (30, "0.0"),
    (40, "5.0"),
    (50, "0.0"),
    (51, "90.0"),
]


def test_minimal_arc_sample() -> None:
    doc = dxfcodec.read(SAMPLES / "arc_minimal.dxf")

    arcs = list(doc.modelspace().query("ARC"))
    assert len(arcs) == 1
    arc = arcs[0]
    assert arc.handle == 0x2A
    assert arc.dxf["layer"] == "0"
    assert triplet_close(arc.dxf["center"], (1.0, 2.0, 0.0))
    assert arc.dxf["radius"] == 5.0
    assert arc.dxf["start_angle"] == 0.0
    assert arc.dxf["end_angle"] == 90.0
    assert arc.dxf["linetype"] == dxfcodec.DXF_DEFAULT_LINETYPE
    assert doc.revision is dxfcodec.Revision.R12
    assert list(doc.diagnostics) == []


def test_minimal_arc_inline_matches_sample() -> None:
    inline = dxfcodec.loads(entities_dxf(ARC_RECORD))

    assert inline == dxfcodec.read(SAMPLES / "arc_minimal.dxf")


def test_ellipse_with_zero_ratio_fails_on_write() -> None:
    doc = dxfcodec.Drawing.new("R2000")
    ellipse = doc.append(
        dxfcodec.new_entity(
            "ELLIPSE",
            {"center": (1.0, 2.0, 0.0), "major_axis": (5.0, 0.0, 0.0), "ratio": 0.0},
        )
    )

    with pytest.raises(InvalidEntity) as exc_info:
        render_record(ellipse, dxfcodec.Revision.R2000)
    assert exc_info.value.entity == "ELLIPSE"
    assert exc_info.value.field == "ratio"
    assert exc_info.value.reason == "must be > 0"

    with pytest.raises(InvalidEntity):
        doc.save(io.BytesIO(), strict=True)

    result = doc.save(io.BytesIO())
    assert result.skipped_by_type == {"ELLIPSE": 1}
    assert [error.field for error in result.errors] == ["ratio"]


def test_ellipse_with_zero_ratio_is_skipped_on_read() -> None:
    record = [
        (0, "ELLIPSE"),
        (5, "2A"),
        (8, "0"),
        (10, "1.0"),
        (20, "2.0"),
        (30, "0.0"),
        (11, "5.0"),
        (21, "0.0"),
        (31, "0.0"),
        (40, "0.0"),
    ]

    doc = dxfcodec.loads(
        entities_dxf(record, [(0, "LINE"), (8, "0")], header=[(9, "$ACADVER"), (1, "AC1015")])
    )

    assert [entity.dxftype for entity in doc.entities] == ["LINE"]
    errors = doc.diagnostics.errors
    assert len(errors) == 1
    assert errors[0].kind == "InvalidEntity"
    assert errors[0].entity == "ELLIPSE"
    assert errors[0].field == "ratio"


def test_diametric_dimension_writes_its_subclass_chain() -> None:
    record = [
        (0, "DIMENSION"),
        (5, "30"),
        (8, "0"),
        (2, "*D1"),
        (10, "0.0"),
        (20, "0.0"),
        (30, "0.0"),
        (11, "5.0"),
        (21, "5.0"),
        (31, "0.0"),
        (70, "3"),
        (3, "STANDARD"),
        (13, "1.0"),
        (23, "1.0"),
        (33, "0.0"),
        (15, "10.0"),
        (25, "0.0"),
        (35, "0.0"),
        (40, "12.5"),
    ]
    doc = dxfcodec.loads(entities_dxf(record))

    dimension = doc.entities[0]
    assert dimension.dxf["flag"] == 3
    assert dimension.dxf["leader_length"] == 12.5

    data = doc.to_bytes(dxfcodec.Revision.R2000)
    written = dxf_entities_of_type(data, "DIMENSION")[0]
    markers = [value for code, value in written["groups"] if code == 100]
    assert markers == ["AcDbEntity", "AcDbDimension", "AcDbDiametricDimension"]
    tail = [(code, float(value)) for code, value in groups_after_marker(written, "AcDbDiametricDimension")]
    assert tail == [(15, 10.0), (25, 0.0), (35, 0.0), (40, 12.5)]


def test_unknown_group_code_warns_once(tmp_path: Path) -> None:
    record = ARC_RECORD[:6] + [(77, "xyz")] + ARC_RECORD[6:]
    source = tmp_path / "unknown_code.dxf"
    source.write_text(entities_dxf(record), encoding="utf-8")

    doc = dxfcodec.read(source)

    warnings = doc.diagnostics.of_kind("UnknownTag")
    assert len(warnings) == 1
    warning = warnings[0]
    assert warning.filename == str(source)
    assert warning.entity == "ARC"
    assert warning.code == 77
    # (0, SECTION) and (2, ENTITIES) precede the record, each pair is two lines
    assert warning.line == 2 * (2 + 6) + 1
    arc = doc.entities[0]
    assert arc.dxf["radius"] == 5.0
    assert arc.dxf["end_angle"] == 90.0


def test_thumbnail_size_mismatch_warns() -> None:
    payload = bytes(range(98))
    pairs = section(
        "THUMBNAILIMAGE",
        [(90, "100"), (310, payload[:64].hex().upper()), (310, payload[64:].hex().upper())],
    )

    doc = dxfcodec.loads(dxf_text(*pairs))

    assert doc.thumbnail is not None
    assert doc.thumbnail.size == 100
    assert doc.thumbnail.data == payload
    warnings = doc.diagnostics.of_kind("ThumbnailSize")
    assert len(warnings) == 1
    assert "98" in warnings[0].message
    assert "100" in warnings[0].message


def test_shadow_mode_is_refused_at_r14() -> None:
    doc = dxfcodec.Drawing.new("R2010")
    line = doc.modelspace().add("LINE", {"start": (0, 0), "end": (1, 1), "shadow_mode": 2})

    with pytest.raises(UnsupportedByVersion) as exc_info:
        render_record(line, dxfcodec.Revision.R14)
    assert exc_info.value.field == "shadow_mode"

    result = doc.save(io.BytesIO(), "R14")
    assert result.skipped_by_type == {"LINE": 1}
    assert isinstance(result.errors[0], UnsupportedByVersion)
    assert b"284" in doc.to_bytes()
