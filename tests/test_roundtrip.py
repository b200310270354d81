from __future__ import annotations

import io
from pathlib import Path

import pytest

import dxfcodec
from dxfcodec import Drawing, Revision, Thumbnail, new_entity
from dxfcodec.tags import Tag
from tests._dxf_helpers import dxf_entities_of_type, dxf_lwpolyline_points, group_values


CANONICAL_R12 = b"""\
  0
SECTION
  2
HEADER
  9
$ACADVER
  1
AC1009
  9
$INSBASE
 10
0.000000
 20
0.000000
 30
0.000000
  0
ENDSEC
  0
SECTION
  2
ENTITIES
  0
LINE
  5
2a
  8
0
 10
0.000000
 20
0.000000
 30
0.000000
 11
10.000000
 21
5.000000
 31
0.000000
  0
CIRCLE
  5
2b
  8
WALLS
 62
1
 10
1.500000
 20
2.500000
 30
0.000000
 40
3.000000
  0
ENDSEC
  0
EOF
"""


def _sample_drawing() -> Drawing:
    doc = Drawing.new("R2000")
    doc.append(new_entity("LAYER", {"name": "WALLS", "color": 1}))
    doc.append(
        new_entity(
            "CLASS",
            {
                "name": "ACDBDICTIONARYWDFLT",
                "cpp_class_name": "AcDbDictionaryWithDefault",
                "app_name": "ObjectDBX Classes",
            },
        )
    )

    door = doc.new_block("DOOR", base_point=(1.0, 0.0, 0.0))
    doc.append(new_entity("LINE", {"start": (0, 0), "end": (0, 2)}), block=door)

    msp = doc.modelspace()
    line = msp.add("LINE", {"start": (0, 0), "end": (10, 5), "layer": "WALLS"})
    line.xdata["ACAD"] = [Tag(1000, "note"), Tag(1040, 2.5)]
    msp.add(
        "LWPOLYLINE",
        {
            "flags": 1,
            "vertices": [
                {"point": (0, 0)},
                {"point": (4, 0), "bulge": 0.5},
                {"point": (4, 3), "start_width": 0.1, "end_width": 0.2},
            ],
        },
    )
    msp.add("CIRCLE", {"center": (2, 2), "radius": 1.5, "color": 3})

    dictionary = doc.append(new_entity("DICTIONARY"))
    xrecord = doc.append(
        new_entity("XRECORD", {"data": [Tag(1, "hello"), Tag(40, 2.5), Tag(70, 3)]})
    )
    xrecord.owner = dictionary.handle
    dictionary.dxf["entries"] = [{"name": "NOTES", "owned_entry": xrecord.handle}]

    doc.thumbnail = Thumbnail.from_bytes(bytes(range(200)))
    return doc


def test_canonical_r12_file_is_rewritten_byte_for_byte() -> None:
    doc = dxfcodec.loads(CANONICAL_R12)

    assert doc.revision is Revision.R12
    assert [entity.dxftype for entity in doc.entities] == ["LINE", "CIRCLE"]
    assert doc.header["$INSBASE"] == (0.0, 0.0, 0.0)
    assert doc.to_bytes() == CANONICAL_R12


def test_r2000_drawing_survives_save_and_load() -> None:
    doc = _sample_drawing()

    data = doc.to_bytes()
    loaded = dxfcodec.loads(data)

    assert loaded.revision.acadver == "AC1015"
    assert list(loaded.diagnostics) == []
    assert loaded == doc
    assert loaded.validate() == []
    assert loaded.header["$HANDSEED"] == doc.handles.seed


def test_resave_is_idempotent() -> None:
    data = _sample_drawing().to_bytes()

    assert dxfcodec.loads(data).to_bytes() == data


def test_written_r2000_layout() -> None:
    doc = _sample_drawing()
    data = doc.to_bytes()

    polyline = dxf_entities_of_type(data, "LWPOLYLINE")[0]
    assert group_values(polyline, 90) == ["3"]
    assert dxf_lwpolyline_points(polyline) == [(0.0, 0.0, 0.0), (4.0, 0.0, 0.0), (4.0, 3.0, 0.0)]
    assert [float(item) for item in group_values(polyline, 42)] == [0.5]
    line = dxf_entities_of_type(data, "LINE")[0]
    assert group_values(line, 1001) == ["ACAD"]
    assert group_values(line, 100) == ["AcDbEntity", "AcDbLine"]

    text = data.decode("ascii")
    sections = [
        text.splitlines()[index + 2]
        for index, value in enumerate(text.splitlines())
        if value == "SECTION"
    ]
    assert sections == ["HEADER", "CLASSES", "TABLES", "BLOCKS", "ENTITIES", "OBJECTS", "THUMBNAILIMAGE"]
    assert text.index("$ACADVER") < text.index("$HANDSEED")


def test_loaded_drawing_links_handles() -> None:
    loaded = dxfcodec.loads(_sample_drawing().to_bytes())

    dictionary, xrecord = loaded.objects
    assert xrecord.links["owner"] is dictionary
    assert loaded.get(xrecord.handle) is xrecord
    assert dictionary.dxf["entries"] == [{"name": "NOTES", "owned_entry": xrecord.handle}]
    assert xrecord.dxf["data"] == [(1, "hello"), (40, 2.5), (70, 3)]


@pytest.mark.parametrize("revision", ["R2000", "R2004", "R2007", "R2010", "R2013"])
def test_saving_at_newer_revisions_round_trips(revision: str, tmp_path: Path) -> None:
    doc = _sample_drawing()
    out_path = tmp_path / "out" / f"sample_{revision}.dxf"

    result = doc.saveas(out_path, revision)

    assert result.ok
    assert result.skipped_records == 0
    assert result.output_path == str(out_path)
    loaded = dxfcodec.read(out_path)
    assert loaded.revision.acadver == Revision.parse(revision).acadver
    assert loaded.header["$ACADVER"] == Revision.parse(revision).acadver
    assert loaded.classes == doc.classes
    assert loaded.tables == doc.tables
    assert loaded.blocks == doc.blocks
    assert loaded.entities == doc.entities
    assert loaded.objects == doc.objects
    assert loaded.thumbnail == doc.thumbnail


def test_thumbnail_is_dropped_below_r2000() -> None:
    doc = Drawing.new("R12")
    doc.thumbnail = Thumbnail.from_bytes(b"\x01\x02")

    result = doc.save(io.BytesIO())

    assert result.ok
    assert [item.kind for item in result.diagnostics] == ["UnsupportedByVersion"]


@pytest.mark.parametrize("revision", ["R12", "R2000", "R2004", "R2010"])
def test_text_survives_the_file_encoding(revision: str) -> None:
    content = "Ã© café Ω"
    doc = Drawing.new(revision)
    doc.modelspace().add("TEXT", {"text": content})

    loaded = dxfcodec.loads(doc.to_bytes())

    assert loaded.entities[0].dxf["text"] == content
    assert loaded.diagnostics.of_kind("Encoding") == []
