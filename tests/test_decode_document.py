from __future__ import annotations

import cadsync
from cadsync import Circle, Insert, Line, LWPolyline, MText, Polyline, Spline, Text, Unknown, Vertex
from cadsync.decoder import decode_entities
from tests._dxf_helpers import dxf_text, triplet_close

LINE_0_TO_10 = "0\nLINE\n8\n0\n10\n0\n20\n0\n30\n0\n11\n10\n21\n0\n31\n0"


def test_decode_single_line_entity() -> None:
    result = cadsync.decode(dxf_text(LINE_0_TO_10))

    assert result.document.to_dict() == {
        "entities": [{"type": "LINE", "layer": "0", "start": [0.0, 0.0, 0.0], "end": [10.0, 0.0, 0.0]}]
    }
    assert result.warnings == ()
    assert result.sections == ("HEADER", "ENTITIES")


def test_decode_insert_and_circle_fields() -> None:
    text = dxf_text(
        "0\nINSERT\n2\nCHAIR\n8\nFURN\n10\n1\n20\n2\n30\n3\n41\n2\n42\n3\n43\n4\n50\n90",
        "0\nCIRCLE\n8\nHOLES\n10\n5\n20\n6\n30\n0\n40\n2.5",
    )
    insert, circle = cadsync.decode(text).document.entities

    assert insert == Insert(
        layer="FURN",
        block="CHAIR",
        insertion_point=(1.0, 2.0, 3.0),
        scale=(2.0, 3.0, 4.0),
        rotation=90.0,
    )
    assert circle == Circle(layer="HOLES", center=(5.0, 6.0, 0.0), radius=2.5)


def test_decode_missing_codes_use_defaults() -> None:
    text = dxf_text("0\nINSERT\n2\nDOOR\n10\n4\n20\n5", "0\nLINE", "0\nCIRCLE")
    insert, line, circle = cadsync.decode(text).document.entities

    assert insert.layer == "0"
    assert insert.rotation == 0.0
    assert insert.scale == (1.0, 1.0, 1.0)
    assert insert.insertion_point == (4.0, 5.0, 0.0)
    assert line == Line(layer="0", start=(0.0, 0.0, 0.0), end=(0.0, 0.0, 0.0))
    assert circle.radius == 1.0


def test_decode_only_reads_entities_section() -> None:
    text = dxf_text(
        "0\nCIRCLE\n40\n3",
        extra_sections="0\nSECTION\n2\nBLOCKS\n0\nBLOCK\n2\nB\n0\nLINE\n8\nINNER\n0\nENDBLK\n0\nENDSEC\n",
    )
    entities = cadsync.decode(text).document.entities
    assert [entity.dxftype for entity in entities] == ["CIRCLE"]


def test_decode_malformed_number_keeps_default_and_warns() -> None:
    text = dxf_text("0\nLINE\n8\nA\n10\nabc\n20\n2\n11\nnan\n21\n4")
    result = cadsync.decode(text)

    (line,) = result.document.entities
    assert line.start == (0.0, 2.0, 0.0)
    assert line.end == (0.0, 4.0, 0.0)
    kinds = [(warning.kind, warning.group_code) for warning in result.warnings]
    assert kinds == [("invalid-number", "10"), ("invalid-number", "11")]
    assert all(warning.entity_index == 0 for warning in result.warnings)


def test_decode_unknown_group_code_is_ignored_with_warning() -> None:
    result = cadsync.decode(dxf_text("0\nCIRCLE\n5\n2F\n40\n4"))

    assert result.document.entities == (Circle(radius=4.0),)
    assert [(warning.kind, warning.group_code) for warning in result.warnings] == [("unknown-group-code", "5")]


def test_decode_empty_layer_becomes_default_layer() -> None:
    result = cadsync.decode(dxf_text("0\nLINE\n8\n\n10\n1"))

    assert result.document.entities[0].layer == "0"
    assert result.warnings[0].kind == "empty-layer"


def test_decode_unknown_entity_keeps_raw_groups_and_following_entities() -> None:
    text = dxf_text(
        "0\nHATCH\n8\nFILL\n2\nSOLID\n70\n1",
        "0\nCIRCLE\n8\nC\n40\n2",
    )
    result = cadsync.decode(text)
    hatch, circle = result.document.entities

    assert hatch == Unknown(layer="FILL", name="HATCH", groups=(("8", "FILL"), ("2", "SOLID"), ("70", "1")))
    assert circle == Circle(layer="C", radius=2.0)
    assert [warning.kind for warning in result.warnings] == ["unknown-entity"]


def test_decode_trailing_unpaired_line_is_dropped() -> None:
    text = dxf_text(LINE_0_TO_10, "0\nCIRCLE\n40\n5") + "999"
    entities = cadsync.decode(text).document.entities

    assert [entity.dxftype for entity in entities] == ["LINE", "CIRCLE"]
    assert entities[1].radius == 5.0


def test_decode_empty_text() -> None:
    result = cadsync.decode("")
    assert result.document.entities == ()
    assert result.document.metadata is None


def test_decode_attaches_metadata_when_requested() -> None:
    result = cadsync.decode(dxf_text(LINE_0_TO_10), filename="plan.dxf", last_modified="2024-01-01T00:00:00")
    metadata = result.document.metadata

    assert metadata is not None
    assert metadata.version == 1
    assert metadata.filename == "plan.dxf"
    assert metadata.last_modified == "2024-01-01T00:00:00"


def test_decode_lwpolyline_vertices_bulges_and_closed_flag() -> None:
    text = dxf_text("0\nLWPOLYLINE\n8\nWALL\n90\n3\n70\n1\n38\n2\n10\n0\n20\n0\n42\n0.5\n10\n4\n20\n0\n10\n4\n20\n3")
    (polyline,) = cadsync.decode(text).document.entities

    assert polyline == LWPolyline(
        layer="WALL",
        vertices=(
            Vertex(x=0.0, y=0.0, z=2.0, bulge=0.5),
            Vertex(x=4.0, y=0.0, z=2.0),
            Vertex(x=4.0, y=3.0, z=2.0),
        ),
        closed=True,
    )


def test_decode_polyline_collects_vertex_records_until_seqend() -> None:
    text = dxf_text(
        "0\nPOLYLINE\n8\nP\n66\n1\n70\n0",
        "0\nVERTEX\n8\nP\n10\n1\n20\n2\n30\n0",
        "0\nVERTEX\n8\nP\n10\n3\n20\n4\n30\n0\n42\n1",
        "0\nSEQEND\n8\nP",
        "0\nLINE\n8\nL",
    )
    polyline, line = cadsync.decode(text).document.entities

    assert polyline == Polyline(
        layer="P",
        vertices=(Vertex(x=1.0, y=2.0, z=0.0), Vertex(x=3.0, y=4.0, z=0.0, bulge=1.0)),
        closed=False,
    )
    assert line.layer == "L"


def test_decode_polyline_without_seqend_is_kept() -> None:
    text = dxf_text("0\nPOLYLINE\n70\n1", "0\nVERTEX\n10\n1\n20\n1")
    (polyline,) = cadsync.decode(text).document.entities

    assert polyline.closed is True
    assert polyline.vertices == (Vertex(x=1.0, y=1.0),)


def test_decode_orphan_vertex_becomes_unknown() -> None:
    entities, warnings = decode_entities([("0", "VERTEX"), ("10", "1")])

    assert entities == [Unknown(name="VERTEX", groups=(("10", "1"),))]
    assert warnings[0].kind == "unknown-entity"


def test_decode_text_and_mtext() -> None:
    text = dxf_text(
        "0\nTEXT\n8\nNOTES\n10\n1\n20\n2\n40\n0.25\n1\nHello\n50\n30",
        "0\nMTEXT\n10\n5\n20\n5\n40\n2\n41\n10\n3\nfirst-\n1\nsecond",
    )
    label, note = cadsync.decode(text).document.entities

    assert label == Text(layer="NOTES", text="Hello", insert=(1.0, 2.0, 0.0), height=0.25, rotation=30.0)
    assert note == MText(text="first-second", insert=(5.0, 5.0, 0.0), height=2.0, width=10.0)


def test_decode_spline_points_and_knots() -> None:
    text = dxf_text(
        "0\nSPLINE\n8\nS\n70\n8\n71\n3\n72\n8\n73\n4\n"
        "40\n0\n40\n0\n40\n0\n40\n0\n40\n1\n40\n1\n40\n1\n40\n1\n"
        "10\n0\n20\n0\n30\n0\n10\n1\n20\n2\n30\n0\n10\n3\n20\n2\n30\n0\n10\n4\n20\n0\n30\n0"
    )
    (spline,) = cadsync.decode(text).document.entities

    assert isinstance(spline, Spline)
    assert spline.degree == 3
    assert spline.closed is False
    assert spline.knots == (0.0, 0.0, 0.0, 0.0, 1.0, 1.0, 1.0, 1.0)
    assert len(spline.control_points) == 4
    assert triplet_close(spline.control_points[1], (1.0, 2.0, 0.0))


def test_decode_arc_and_dimension_fields() -> None:
    text = dxf_text(
        "0\nARC\n10\n1\n20\n1\n40\n2\n50\n0\n51\n90",
        "0\nDIMENSION\n2\n*D1\n10\n0\n20\n0\n11\n5\n21\n1\n70\n32\n1\n<>\n42\n10",
    )
    arc, dimension = cadsync.decode(text).document.entities

    assert (arc.center, arc.radius, arc.start_angle, arc.end_angle) == ((1.0, 1.0, 0.0), 2.0, 0.0, 90.0)
    assert dimension.block == "*D1"
    assert dimension.dimtype == 32
    assert dimension.measurement == 10.0
    assert dimension.text_midpoint == (5.0, 1.0, 0.0)


def test_decode_unicode_line_separators_in_text_keep_following_entities() -> None:
    text = dxf_text(
        "0\nTEXT\n8\nN\n1\nfoo\u2028bar",
        "0\nLINE\n8\nWALLS\n11\n10",
        "0\nTEXT\n8\nN\n1\nwait\x85more",
        "0\nCIRCLE\n8\nHOLES\n40\n2",
    )
    result = cadsync.decode(text)
    first, line, second, circle = result.document.entities

    assert first.text == "foo\u2028bar"
    assert line == Line(layer="WALLS", end=(10.0, 0.0, 0.0))
    assert second.text == "wait\x85more"
    assert circle == Circle(layer="HOLES", radius=2.0)
    assert result.warnings == ()
