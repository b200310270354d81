from __future__ import annotations

import math

import pytest

import dxfcodec
from dxfcodec import Drawing


def _sample_r12() -> Drawing:
    doc = Drawing.new("R12")
    msp = doc.modelspace()
    msp.add("LINE", {"start": (0, 0), "end": (3, 4), "layer": "WALLS"})
    msp.add("CIRCLE", {"center": (1, 1), "radius": 2.5, "color": 1})
    msp.add("ARC", {"center": (0, 0), "radius": 1, "start_angle": 0, "end_angle": 90})
    return doc


def test_to_ezdxf_reads_codec_output() -> None:
    pytest.importorskip("ezdxf")

    ezdoc = dxfcodec.to_ezdxf(_sample_r12())

    assert ezdoc.dxfversion == "AC1009"
    msp = ezdoc.modelspace()
    lines = msp.query("LINE")
    assert len(lines) == 1
    assert tuple(lines[0].dxf.start) == (0.0, 0.0, 0.0)
    assert tuple(lines[0].dxf.end) == (3.0, 4.0, 0.0)
    assert lines[0].dxf.layer == "WALLS"
    circle = msp.query("CIRCLE")[0]
    assert math.isclose(circle.dxf.radius, 2.5)
    assert circle.dxf.color == 1
    arc = msp.query("ARC")[0]
    assert math.isclose(arc.dxf.end_angle, 90.0)


def test_from_ezdxf_reads_a_new_document() -> None:
    ezdxf = pytest.importorskip("ezdxf")

    source = ezdxf.new("R2000")
    msp = source.modelspace()
    msp.add_line((0, 0), (3, 4), dxfattribs={"layer": "WALLS"})
    msp.add_circle((1, 1), radius=2.5)
    msp.add_lwpolyline([(0, 0), (1, 0), (1, 1)], close=True)

    doc = dxfcodec.from_ezdxf(source)

    assert doc.revision.acadver == "AC1015"
    lines = list(doc.modelspace().query("LINE"))
    assert len(lines) == 1
    assert lines[0].dxf["layer"] == "WALLS"
    assert lines[0].dxf["end"] == (3.0, 4.0, 0.0)
    circle = next(doc.modelspace().query("CIRCLE"))
    assert circle.dxf["radius"] == 2.5
    polyline = next(doc.modelspace().query("LWPOLYLINE"))
    assert polyline.dxf["flags"] & 1
    assert [vertex["point"] for vertex in polyline.dxf["vertices"]] == [
        (0.0, 0.0),
        (1.0, 0.0),
        (1.0, 1.0),
    ]
    assert doc.table("LAYER") is not None
    assert doc.block("*Model_Space") is not None
    assert doc.objects


def test_round_trip_through_ezdxf() -> None:
    pytest.importorskip("ezdxf")

    original = _sample_r12()

    restored = dxfcodec.from_ezdxf(dxfcodec.to_ezdxf(original))

    kept = [(entity.dxftype, entity.dxf["layer"]) for entity in restored.modelspace()]
    assert kept == [("LINE", "WALLS"), ("CIRCLE", "0"), ("ARC", "0")]
    circle = next(restored.modelspace().query("CIRCLE"))
    assert circle.dxf["center"] == (1.0, 1.0, 0.0)
    assert circle.dxf["color"] == 1
