from __future__ import annotations

import pytest

from dxftree import (
    Block,
    Circle,
    Layer,
    Line,
    MalformedRecordError,
    Reader,
    ReaderState,
    UnbalancedStructureError,
    UnknownEntity,
    read,
)
from dxftree.node import EndMarker, EofMarker
from tests._dxf_helpers import SAMPLE_DXF, dxf_text, section


def test_reader_builds_sections_and_returns_to_root() -> None:
    reader = Reader()
    doc = reader.read(SAMPLE_DXF.splitlines())

    assert reader.depth == 1
    assert reader.state is ReaderState.IDLE
    assert [child.get_value(2) for child in doc.children[:-1]] == ["HEADER", "TABLES", "BLOCKS", "ENTITIES"]
    assert isinstance(doc.children[-1], EofMarker)


def test_reader_dispatches_known_types() -> None:
    doc = read(SAMPLE_DXF.splitlines())

    entities = doc.entities_section.children
    assert isinstance(entities[0], Line)
    assert isinstance(entities[1], Circle)
    assert isinstance(entities[3], UnknownEntity)
    assert isinstance(entities[-1], EndMarker)
    assert all(isinstance(layer, Layer) for layer in doc.get_layers())
    assert isinstance(doc.blocks_section.children[0], Block)


def test_reader_closes_previous_object_on_next_code_zero() -> None:
    text = dxf_text(
        [
            *section("ENTITIES", (0, "LINE"), (8, "A"), (0, "CIRCLE"), (8, "B")),
            (0, "EOF"),
        ]
    )
    doc = read(text.splitlines())

    line, circle, end = doc.entities_section.children
    assert [(p.code, p.value) for p in line.properties] == [(0, "LINE"), (8, "A")]
    assert [(p.code, p.value) for p in circle.properties] == [(0, "CIRCLE"), (8, "B")]
    assert isinstance(end, EndMarker)


def test_reader_keeps_end_marker_properties_on_the_marker() -> None:
    doc = read(SAMPLE_DXF.splitlines())

    block = doc.blocks_section.children[0]
    endblk = block.children[-1]
    assert isinstance(endblk, EndMarker)
    assert endblk.get_value(5) == "1F"
    assert endblk.get_value(8) == "0"
    assert block.get_value(5) is None


def test_reader_preserves_unknown_objects_verbatim() -> None:
    text = dxf_text(
        [
            *section("OBJECTS", (0, "ACAD_PROXY_OBJECT"), (5, "AA"), (1001, "ACME"), (1000, " keep ")),
            (0, "EOF"),
        ]
    )
    doc = read(text.splitlines())

    node = doc.children[0].children[0]
    assert isinstance(node, UnknownEntity)
    assert node.kind == "ACAD_PROXY_OBJECT"
    assert [(p.code, p.value) for p in node.properties] == [
        (0, "ACAD_PROXY_OBJECT"),
        (5, "AA"),
        (1001, "ACME"),
        (1000, "keep"),
    ]


def test_reader_stops_silently_on_truncated_record() -> None:
    text = "0\nSECTION\n2\nENTITIES\n0\nLINE\n8\n"
    reader = Reader()
    doc = reader.read(text.splitlines())

    assert reader.truncated
    line = doc.children[0].children[0]
    assert [(p.code, p.value) for p in line.properties] == [(0, "LINE")]
    assert not any(isinstance(child, EofMarker) for child in doc.children)


def test_reader_treats_blank_code_line_as_end_of_input() -> None:
    text = "0\nSECTION\n2\nENTITIES\n\n0\nLINE\n"
    doc = read(text.splitlines())

    assert doc.children[0].children == []


def test_reader_rejects_whitespace_only_group_code() -> None:
    lines = ["0", "SECTION", "2", "ENTITIES", "   ", "x", "0", "LINE"]

    with pytest.raises(MalformedRecordError) as exc_info:
        Reader().read(lines)

    assert exc_info.value.line_number == 5


def test_reader_rejects_non_integer_group_code() -> None:
    text = "0\nSECTION\nabc\nENTITIES\n"

    with pytest.raises(MalformedRecordError) as exc_info:
        read(text.splitlines())

    assert exc_info.value.line_number == 3
    assert exc_info.value.text == "abc"


def test_reader_rejects_negative_group_code() -> None:
    with pytest.raises(MalformedRecordError):
        read(["-1", "x"])


def test_reader_trims_codes_and_values() -> None:
    text = "  0\nSECTION  \n  2\n ENTITIES\n  0\nENDSEC\n  0\nEOF\n"
    doc = read(text.splitlines())

    assert doc.children[0].get_value(2) == "ENTITIES"
    assert isinstance(doc.children[-1], EofMarker)


def test_reader_tolerates_unmatched_end_marker() -> None:
    reader = Reader()
    doc = reader.read(["0", "ENDTAB", "0", "EOF"])

    assert reader.depth == 1
    assert isinstance(doc.children[0], EndMarker)
    assert isinstance(doc.children[1], EofMarker)


def test_reader_strict_mode_rejects_unmatched_end_marker() -> None:
    with pytest.raises(UnbalancedStructureError) as exc_info:
        Reader(strict=True).read(["0", "SECTION", "2", "ENTITIES", "0", "ENDBLK"])

    assert exc_info.value.marker == "ENDBLK"
    assert exc_info.value.line_number == 6


def test_reader_accepts_a_text_stream(tmp_path) -> None:  # noqa: ANN001
    path = tmp_path / "sample.dxf"
    path.write_text(SAMPLE_DXF, encoding="utf-8")

    with path.open(encoding="utf-8") as stream:
        doc = read(stream)

    assert len(doc.get_entities()) == 4
