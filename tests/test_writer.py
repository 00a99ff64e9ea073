from __future__ import annotations

import io

import dxftree
from dxftree import Circle, Document, Line, dumps, iter_tags, loads, read, write
from tests._dxf_helpers import SAMPLE_DXF, SAMPLE_RECORDS, dxf_entities_of_type, dxf_text, group_float, section


def test_round_trip_reproduces_the_record_stream() -> None:
    doc = loads(SAMPLE_DXF)

    assert dumps(doc) == SAMPLE_DXF


def test_round_trip_without_materialization_is_lossless() -> None:
    doc = read(SAMPLE_DXF.splitlines())

    assert list(iter_tags(doc)) == [(code, value) for code, value in SAMPLE_RECORDS]


def test_write_emits_two_lines_per_record() -> None:
    doc = Document()
    buffer = io.StringIO()
    write(doc, buffer)

    lines = buffer.getvalue().splitlines()
    assert len(lines) % 2 == 0
    assert lines[:4] == ["0", "SECTION", "2", "HEADER"]
    assert lines[-2:] == ["0", "EOF"]


def test_write_synchronizes_edited_fields() -> None:
    doc = loads(SAMPLE_DXF)
    line = doc.get_entities()[0]
    assert isinstance(line, Line)
    line.end = (12.5, -3.0)

    text = dumps(doc)

    (written,) = dxf_entities_of_type(text, "LINE")
    assert group_float(written, "11") == 12.5
    assert group_float(written, "21") == -3.0
    assert ("5", "2A") in written["groups"]
    assert ("31", "0.0") in written["groups"]


def test_new_entities_are_serialized_inside_entities_section() -> None:
    doc = dxftree.new()
    doc.add_entity(Circle.new(center=(1.0, 2.0), radius=3.0))

    text = dumps(doc)
    (circle,) = dxf_entities_of_type(text, "CIRCLE")
    assert circle["groups"] == [("8", "0"), ("10", "1"), ("20", "2"), ("40", "3")]

    reread = loads(text)
    (entity,) = reread.get_entities()
    assert isinstance(entity, Circle)
    assert entity.center == (1.0, 2.0)
    assert entity.radius == 3.0


def test_floats_use_shortest_repr() -> None:
    doc = dxftree.new()
    doc.add_entity(Line.new(start=(0.1, 2.0), end=(1e-12, 3.25)))

    (line,) = dxf_entities_of_type(dumps(doc), "LINE")
    assert line["groups"] == [
        ("8", "0"),
        ("10", "0.1"),
        ("20", "2"),
        ("11", "1e-12"),
        ("21", "3.25"),
    ]


def _entities_text(*records: tuple[int, str]) -> str:
    return dxf_text([*section("ENTITIES", *records), (0, "EOF")])


def test_round_trip_keeps_polyline_with_malformed_vertex() -> None:
    text = _entities_text(
        (0, "LWPOLYLINE"),
        (8, "0"),
        (90, "3"),
        (70, "0"),
        (10, "1"),
        (20, "1"),
        (10, "abc"),
        (20, "2"),
        (10, "3"),
        (20, "3"),
    )
    doc = loads(text)

    assert len(doc.field_errors) == 1
    assert dumps(doc) == text


def test_round_trip_keeps_hatch_boundary_with_malformed_vertex() -> None:
    text = _entities_text(
        (0, "HATCH"),
        (8, "0"),
        (2, "SOLID"),
        (70, "1"),
        (91, "1"),
        (92, "2"),
        (72, "0"),
        (73, "1"),
        (93, "3"),
        (10, "0"),
        (20, "0"),
        (10, "BAD"),
        (20, "0"),
        (10, "4"),
        (20, "3"),
        (97, "0"),
        (75, "0"),
        (76, "1"),
        (98, "0"),
    )
    doc = loads(text)

    assert doc.get_entities()[0].paths == []
    assert dumps(doc) == text


def test_malformed_scalar_is_written_back_until_reassigned() -> None:
    text = _entities_text((0, "LINE"), (8, "0"), (10, "xyz"), (20, "0"), (11, "1"), (21, "1"))
    doc = loads(text)

    assert dumps(doc) == text

    line = doc.get_entities()[0]
    line.start = (2.0, 0.0)
    assert line.get_value(10) == "xyz"
    dumps(doc)

    assert line.get_value(10) == "2"
    assert line.get_value(20) == "0"


def test_polyline_with_malformed_vertex_is_rewritten_after_assignment() -> None:
    text = _entities_text((0, "LWPOLYLINE"), (8, "0"), (90, "2"), (70, "0"), (10, "oops"), (20, "0"), (10, "1"), (20, "1"))
    doc = loads(text)
    poly = doc.get_entities()[0]

    poly.vertices = [(0.0, 0.0), (1.0, 1.0)]
    dumps(doc)

    assert poly.get_values(10) == ["0", "1"]
    assert poly.get_value(90) == "2"
