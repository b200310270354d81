from __future__ import annotations

from pathlib import Path

import pytest

import dxfcodec
import dxfcodec.document as document_module
from dxfcodec import Drawing, Handle, Revision, new_entity
from dxfcodec.errors import InvalidEntity
from dxfcodec.registry import ENTITY_TYPES
from tests._dxf_helpers import dxf_entities_of_type, group_values


def test_new_drawing_header() -> None:
    doc = Drawing.new("R2000")

    assert doc.revision is Revision.R2000
    assert doc.header["$ACADVER"] == "AC1015"
    assert doc.header["$HANDSEED"] == 1
    assert "$acadver" in doc.header
    assert list(doc.header) == ["$ACADVER", "$HANDSEED"]


def test_header_item_access() -> None:
    doc = Drawing.new()

    doc.header["$INSBASE"] = (1, 2)
    doc.header["$LTSCALE"] = 2
    doc.header["$CLAYER"] = "WALLS"

    assert doc.header["$INSBASE"] == (1.0, 2.0)
    assert doc.header["$LTSCALE"] == 2.0
    assert doc.header.get("$CLAYER") == "WALLS"
    assert doc.header.get("$MISSING", "n/a") == "n/a"
    with pytest.raises(KeyError):
        doc.header["$NOT_A_VARIABLE"] = 1
    del doc.header["$CLAYER"]
    assert "$CLAYER" not in doc.header


def test_append_issues_sequential_handles() -> None:
    doc = Drawing.new("R2000")
    msp = doc.modelspace()

    first = msp.add("LINE", {"end": (1, 0)})
    second = msp.add("CIRCLE", {"radius": 2})

    assert (first.handle, second.handle) == (1, 2)
    assert isinstance(first.handle, Handle)
    assert doc.header["$HANDSEED"] == 3
    assert doc.get(1) is first
    assert doc.get("2") is second
    assert doc.get(99) is None


def test_append_keeps_explicit_handles_unique() -> None:
    doc = Drawing.new("R2000")
    doc.append(new_entity("LINE", handle="100"))

    with pytest.raises(ValueError, match="duplicate handle"):
        doc.append(new_entity("CIRCLE", handle=0x100))

    assert doc.modelspace().add("ARC").handle == 0x101
    assert doc.header["$HANDSEED"] == 0x102


def test_append_routes_records_by_kind() -> None:
    doc = Drawing.new("R2000")

    walls = doc.append(new_entity("LAYER", {"name": "WALLS"}))
    doc.append(new_entity("LAYER", {"name": "DOORS"}))
    dictionary = doc.append(new_entity("DICTIONARY"))
    klass = doc.append(new_entity("CLASS", {"name": "X", "cpp_class_name": "AcDbX"}))

    layers = doc.table("layer")
    assert layers is not None
    assert layers.head.dxf["count"] == 2
    assert layers.get("walls") is walls
    assert doc.objects == [dictionary]
    assert doc.classes == [klass]
    assert klass.handle is None
    assert doc.entities == []


@pytest.mark.parametrize("dxftype", ["BLOCK", "ENDBLK", "TABLE"])
def test_structural_records_cannot_be_appended(dxftype: str) -> None:
    doc = Drawing.new("R2000")

    with pytest.raises(ValueError, match="managed by the drawing"):
        doc.append(new_entity(dxftype))


def test_blocks() -> None:
    doc = Drawing.new("R2000")
    door = doc.new_block("DOOR", base_point=(1, 2))

    line = doc.append(new_entity("LINE"), block="DOOR")

    assert doc.block("DOOR") is door
    assert door.name == "DOOR"
    assert door.block.dxf["base_point"] == (1.0, 2.0, 0.0)
    assert door.entities == [line]
    assert {door.block.handle, door.endblk.handle, line.handle} == {1, 2, 3}
    with pytest.raises(ValueError):
        doc.new_block("DOOR")
    with pytest.raises(KeyError):
        doc.append(new_entity("LINE"), block="WINDOW")
    with pytest.raises(ValueError):
        doc.append(new_entity("DICTIONARY"), block=door)


def test_remove() -> None:
    doc = Drawing.new("R2000")
    line = doc.modelspace().add("LINE")
    block = doc.new_block("PART")

    assert doc.remove(line.handle) is line
    assert doc.get(line.handle) is None
    assert doc.entities == []
    with pytest.raises(KeyError):
        doc.remove(line.handle)
    with pytest.raises(ValueError, match="structural"):
        doc.remove(block.block.handle)


def test_remove_updates_table_count_and_links() -> None:
    doc = Drawing.new("R2000")
    layer = doc.append(new_entity("LAYER", {"name": "WALLS"}))
    reactor = doc.append(new_entity("XRECORD"))
    line = doc.modelspace().add("LINE", {"layer": "WALLS"})
    line.owner = layer.handle
    line.reactors = [reactor.handle]
    doc.resolve_handles()
    table = doc.table("LAYER")
    count = table.head.dxf["count"]

    doc.remove(layer.handle)
    doc.remove(reactor.handle)

    assert table.head.dxf["count"] == count - 1 == len(table.entries)
    assert line.links["owner"] == str(layer.handle)
    assert line.links["reactors"] == [str(reactor.handle)]
    assert [item.field for item in doc.resolve_handles()] == ["owner", "reactors"]


def test_layout_query_filters_types_and_space() -> None:
    doc = Drawing.new("R2000")
    msp = doc.modelspace()
    line = msp.add("LINE")
    arc = msp.add("ARC")
    circle = msp.add("CIRCLE")
    sheet_circle = doc.paperspace().add("CIRCLE")

    assert list(msp.query("LINE CIRCLE")) == [line, circle]
    assert list(msp.query(["arc"])) == [arc]
    assert list(msp.query("ARC,CIRCLE")) == [arc, circle]
    assert list(msp.query("*")) == [line, arc, circle]
    assert list(msp.query("L*")) == [line]
    assert list(msp.query("FOO")) == []
    assert list(msp) == [line, arc, circle]
    assert len(msp) == 3
    assert list(doc.paperspace().query("CIRCLE")) == [sheet_circle]
    assert sheet_circle.dxf["paperspace"] == dxfcodec.DXF_PAPERSPACE


def test_normalize_types_expands_patterns() -> None:
    types = document_module._normalize_types("*LINE")

    assert "LINE" in types
    assert "LWPOLYLINE" in types
    assert "MLINE" in types
    assert "ARC" not in types
    assert document_module._normalize_types(None) == document_module._normalize_types("ALL")
    assert document_module._normalize_types(" , ") == list(ENTITY_TYPES)


def test_resolve_handles_links_references() -> None:
    doc = Drawing.new("R2000")
    dictionary = doc.append(new_entity("DICTIONARY"))
    reactor = doc.append(new_entity("XRECORD"))
    line = doc.modelspace().add("LINE", {"material_handle": dictionary.handle})
    line.xdictionary = dictionary.handle
    line.reactors = [reactor.handle, Handle(0x77)]

    unresolved = doc.resolve_handles()

    assert line.links["xdictionary"] is dictionary
    assert line.links["material_handle"] is dictionary
    assert line.links["reactors"] == [reactor, "77"]
    assert [item.field for item in unresolved] == ["reactors"]
    assert unresolved[0].kind == "HandleUnresolved"


def test_validate_collects_invalid_records() -> None:
    doc = Drawing.new("R2000")
    doc.modelspace().add("CIRCLE", {"radius": 2})
    bad = doc.modelspace().add("CIRCLE", {"radius": 1})
    bad.dxf["radius"] = -1.0

    problems = doc.validate()

    assert [(problem.entity, problem.field) for problem in problems] == [("CIRCLE", "radius")]
    assert isinstance(problems[0], InvalidEntity)
    with pytest.raises(InvalidEntity):
        bad.validate()


def test_new_entity_rejects_unknown_types() -> None:
    with pytest.raises(ValueError):
        new_entity("SPACESHIP")


def test_saveas_creates_directories_and_reads_back(tmp_path: Path) -> None:
    doc = Drawing.new("R2000")
    doc.modelspace().add("LINE", {"end": (3, 4)})
    out_path = tmp_path / "nested" / "dir" / "line.dxf"

    result = doc.saveas(out_path)

    assert out_path.exists()
    assert result.ok
    assert result.written_records == 1
    assert result.revision is Revision.R2000
    assert doc.filename == str(out_path)

    loaded = dxfcodec.read(out_path)
    assert loaded.filename == str(out_path)
    assert loaded.entities == doc.entities

    with out_path.open("rb") as stream:
        from_stream = dxfcodec.load(stream)
    assert from_stream.filename == str(out_path)
    assert from_stream == loaded


def test_target_revision_from_config() -> None:
    doc = Drawing.new("R2000", config=dxfcodec.CodecConfig(target_revision="R2010"))

    data = doc.to_bytes()

    assert b"AC1024" in data
    assert doc.to_bytes("R2000").count(b"AC1015") == 1


def test_donut_expands_into_a_closed_polyline() -> None:
    doc = Drawing.new("R12")

    records = doc.modelspace().add_donut((5, 5), 2.0, 5.0, {"layer": "RINGS", "color": 3})

    assert [entity.dxftype for entity in records] == ["POLYLINE", "VERTEX", "VERTEX", "SEQEND"]
    assert [entity.handle for entity in records] == [1, 2, 3, 4]
    polyline, first, second, seqend = records
    assert polyline.dxf["flags"] == 1
    assert (polyline.dxf["default_start_width"], polyline.dxf["default_end_width"]) == (1.5, 1.5)
    assert [vertex.dxf["location"] for vertex in (first, second)] == [(3.25, 5.0, 0.0), (6.75, 5.0, 0.0)]
    assert [vertex.dxf["bulge"] for vertex in (first, second)] == [1.0, 1.0]
    assert [vertex.dxf["end_width"] for vertex in (first, second)] == [1.5, 1.5]
    assert {entity.dxf["layer"] for entity in records} == {"RINGS"}
    assert seqend.dxf["color"] == 3

    data = doc.to_bytes()
    written = dxf_entities_of_type(data, "VERTEX")
    assert [group_values(vertex, 42) for vertex in written] == [["1.000000"], ["1.000000"]]
    assert dxfcodec.loads(data).entities == doc.entities


def test_donut_on_paperspace() -> None:
    doc = Drawing.new("R2000")

    records = doc.paperspace().add_donut((0, 0, 2), 0.0, 1.0)

    assert {entity.dxf["paperspace"] for entity in records} == {dxfcodec.DXF_PAPERSPACE}
    assert records[0].dxf["elevation_point"] == (0.0, 0.0, 2.0)
    assert records[1].dxf["start_width"] == 0.5


def test_donut_rejects_swapped_diameters() -> None:
    with pytest.raises(ValueError, match="smaller than inside diameter"):
        dxfcodec.new_donut((0, 0), 5.0, 2.0)
