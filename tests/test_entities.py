from __future__ import annotations

import pytest

from dxftree import (
    Arc,
    Circle,
    ColorMethod,
    ColorSpec,
    Hatch,
    Layer,
    Line,
    MalformedFieldValueError,
    MText,
    Polyline,
    Spline,
    Text,
    Trace,
    UnknownEntity,
)
from dxftree.node import Property
from tests._dxf_helpers import codes


def _props(node, *records: tuple[int, str]) -> None:  # noqa: ANN001
    node.properties = [node.properties[0]] + [Property(code, value) for code, value in records]


def _pairs(node) -> list[tuple[int, str]]:  # noqa: ANN001
    return [(prop.code, prop.value) for prop in node.properties]


def test_materialize_keeps_sibling_fields_when_one_fails() -> None:
    line = Line()
    _props(line, (8, "0"), (10, "1"), (20, "2"), (11, "abc"), (21, "4"))

    with pytest.raises(MalformedFieldValueError) as exc_info:
        line.materialize_from_properties()

    assert exc_info.value.failures == [(11, "abc", "end")]
    assert line.start == (1.0, 2.0)
    assert line.end == (0.0, 4.0)


def test_materialize_keeps_defaults_for_missing_codes() -> None:
    circle = Circle()
    _props(circle, (40, "2.5"))
    circle.materialize_from_properties()

    assert circle.radius == 2.5
    assert circle.center == (0.0, 0.0)
    assert circle.layer_name == "0"
    assert circle.color.method is ColorMethod.BYLAYER


def test_synchronize_updates_first_occurrence_in_place() -> None:
    line = Line()
    _props(line, (5, "AB"), (8, "0"), (10, "1.0"), (20, "2.0"), (30, "0.0"), (11, "3"), (21, "4"))
    line.materialize_from_properties()
    line.start = (5.0, 6.0)
    line.synchronize_properties_from_fields()

    assert _pairs(line) == [
        (0, "LINE"),
        (5, "AB"),
        (8, "0"),
        (10, "5"),
        (20, "6"),
        (30, "0.0"),
        (11, "3"),
        (21, "4"),
    ]


def test_new_omits_optional_fields_left_at_default() -> None:
    text = Text.new(text="hi", insert=(1.0, 2.0))

    assert codes(text) == [0, 8, 10, 20, 40, 1]


def test_new_rejects_unknown_fields() -> None:
    with pytest.raises(TypeError):
        Line.new(radius=3.0)


def test_polyline_vertex_edit_keeps_bulges() -> None:
    poly = Polyline()
    _props(
        poly,
        (8, "0"),
        (90, "3"),
        (70, "1"),
        (10, "0"),
        (20, "0"),
        (42, "0.5"),
        (10, "1"),
        (20, "0"),
        (10, "1"),
        (20, "1"),
    )
    poly.materialize_from_properties()
    assert poly.closed
    assert poly.vertices == [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)]

    poly.vertices[1] = (2.0, 0.0)
    poly.synchronize_properties_from_fields()

    assert poly.get_values(10) == ["0", "2", "1"]
    assert poly.get_value(42) == "0.5"
    assert poly.get_value(90) == "3"


def test_polyline_vertex_count_change_rewrites_the_run() -> None:
    poly = Polyline()
    _props(poly, (8, "0"), (90, "2"), (70, "0"), (10, "0"), (20, "0"), (42, "0.5"), (10, "1"), (20, "0"))
    poly.materialize_from_properties()

    poly.vertices.append((1.0, 1.0))
    poly.closed = True
    poly.synchronize_properties_from_fields()

    assert codes(poly) == [0, 8, 90, 70, 10, 20, 10, 20, 10, 20]
    assert poly.get_value(90) == "3"
    assert poly.get_value(70) == "1"


def test_mtext_splits_long_text_into_chunks() -> None:
    mtext = MText.new(text="a" * 600, insert=(0.0, 0.0))

    assert [len(v) for v in mtext.get_values(3)] == [250, 250]
    assert len(mtext.get_value(1)) == 100

    reread = MText()
    reread.properties = list(mtext.properties)
    reread.materialize_from_properties()
    assert reread.text == "a" * 600


def test_mtext_lines_split_on_paragraph_marker() -> None:
    mtext = MText.new(text="one\\Ptwo", char_height=2.0)

    assert mtext.lines == ["one", "two"]
    bounds = mtext.bounds()
    assert bounds.height == pytest.approx(4.0)
    assert bounds.max_y == pytest.approx(0.0)


def _hatch() -> Hatch:
    hatch = Hatch()
    _props(
        hatch,
        (8, "0"),
        (10, "0"),
        (20, "0"),
        (30, "0"),
        (2, "SOLID"),
        (70, "1"),
        (71, "0"),
        (91, "1"),
        (92, "2"),
        (72, "0"),
        (73, "1"),
        (93, "3"),
        (10, "0"),
        (20, "0"),
        (10, "4"),
        (20, "0"),
        (10, "4"),
        (20, "3"),
        (97, "0"),
        (75, "0"),
        (76, "1"),
        (98, "0"),
    )
    hatch.materialize_from_properties()
    return hatch


def test_hatch_reads_boundary_paths_only_between_markers() -> None:
    hatch = _hatch()

    assert hatch.solid_fill
    assert hatch.paths == [[(0.0, 0.0), (4.0, 0.0), (4.0, 3.0)]]
    assert hatch.hit_test((3.0, 1.0))
    assert not hatch.hit_test((1.0, 2.0))


def test_hatch_synchronize_is_a_no_op_when_unchanged() -> None:
    hatch = _hatch()
    before = _pairs(hatch)

    hatch.synchronize_properties_from_fields()

    assert _pairs(hatch) == before


def test_hatch_new_path_regenerates_boundary_data() -> None:
    hatch = _hatch()
    hatch.paths.append([(10.0, 10.0), (11.0, 10.0), (11.0, 11.0)])
    hatch.synchronize_properties_from_fields()

    assert hatch.get_value(91) == "2"
    assert hatch.get_values(93) == ["3", "3"]
    assert codes(hatch)[-3:] == [75, 76, 98]
    assert hatch.get_value(10) == "0"

    reread = Hatch()
    reread.properties = list(hatch.properties)
    reread.materialize_from_properties()
    assert reread.paths == hatch.paths


def test_spline_derives_counts() -> None:
    spline = Spline.new(
        control_points=[(0.0, 0.0), (1.0, 1.0), (2.0, 0.0), (3.0, 1.0)],
        knots=[0.0, 0.0, 0.0, 0.0, 1.0, 1.0, 1.0, 1.0],
    )

    assert spline.get_value(72) == "8"
    assert spline.get_value(73) == "4"
    assert not spline.has_code(74)
    assert spline.get_values(40) == ["0", "0", "0", "0", "1", "1", "1", "1"]

    reread = Spline()
    reread.properties = list(spline.properties)
    reread.materialize_from_properties()
    assert reread.control_points == spline.control_points
    assert reread.degree == 3


def test_layer_flags_keep_unknown_bits() -> None:
    layer = Layer()
    _props(layer, (2, "Walls"), (70, "69"), (62, "-3"), (6, "DASHED"))
    layer.materialize_from_properties()

    assert not layer.visible
    assert layer.locked
    assert layer.plottable

    layer.locked = False
    layer.synchronize_properties_from_fields()

    assert layer.get_value(70) == "65"
    assert layer.get_value(62) == "-3"


def test_true_color_is_written_to_group_420() -> None:
    line = Line()
    _props(line, (8, "0"), (62, "1"), (10, "0"), (20, "0"), (11, "1"), (21, "1"))
    line.materialize_from_properties()

    line.color = ColorSpec.true_color(0x00FF00)
    line.synchronize_properties_from_fields()
    assert line.get_value(420) == "65280"
    assert line.get_value(62) == "1"

    line.color = ColorSpec.by_layer()
    line.synchronize_properties_from_fields()
    assert not line.has_code(420)
    assert line.get_value(62) == "256"


def test_legacy_negative_true_color_round_trips() -> None:
    line = Line()
    _props(line, (8, "0"), (62, "-255"), (10, "0"), (20, "0"), (11, "1"), (21, "1"))
    line.materialize_from_properties()
    before = _pairs(line)

    assert line.color.method is ColorMethod.TRUE_COLOR
    assert line.color.rgb == 255

    line.synchronize_properties_from_fields()
    assert _pairs(line) == before


def test_unknown_entity_is_never_rewritten() -> None:
    node = UnknownEntity("ACAD_TABLE")
    _props(node, (8, "Notes"), (62, "2"), (1, "cell"))
    node.materialize_from_properties()
    before = _pairs(node)

    assert node.layer_name == "Notes"
    node.layer_name = "Other"
    node.synchronize_properties_from_fields()

    assert _pairs(node) == before


def test_line_and_circle_hit_tests() -> None:
    line = Line.new(start=(0.0, 0.0), end=(10.0, 0.0))
    circle = Circle.new(center=(0.0, 0.0), radius=2.0)

    assert line.hit_test((5.0, 0.3))
    assert not line.hit_test((5.0, 1.0))
    assert circle.hit_test((2.0, 0.0))
    assert not circle.hit_test((0.0, 0.0))


def test_arc_bounds_follow_the_sweep() -> None:
    arc = Arc.new(center=(0.0, 0.0), radius=1.0, start_angle=0.0, end_angle=90.0)

    bounds = arc.bounds()
    assert (bounds.min_x, bounds.min_y, bounds.max_x, bounds.max_y) == pytest.approx((0.0, 0.0, 1.0, 1.0))
    assert arc.hit_test((0.0, 1.0))
    assert not arc.hit_test((-1.0, 0.0))


def test_text_bounds_scale_with_height() -> None:
    text = Text.new(text="ab", insert=(0.0, 0.0), height=1.0)

    bounds = text.bounds()
    assert bounds.width == pytest.approx(1.2)
    assert bounds.height == pytest.approx(1.0)


def test_trace_uses_one_two_four_three_outline() -> None:
    trace = Trace.new(first=(0.0, 0.0), second=(2.0, 0.0), third=(0.0, 2.0), fourth=(2.0, 2.0))

    assert trace.polygon() == [(0.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 2.0)]
    assert trace.hit_test((1.0, 1.0))


def test_bounds_cache_is_invalidated_by_materialize() -> None:
    circle = Circle.new(center=(0.0, 0.0), radius=1.0)
    assert circle.bounds().width == pytest.approx(2.0)

    circle.set_value(40, "3")
    circle.materialize_from_properties()

    assert circle.bounds().width == pytest.approx(6.0)
