from __future__ import annotations

import math
import weakref
from typing import ClassVar

from .colors import FALLBACK_COLOR, Color, ColorMethod, ColorSpec, resolve
from .fields import (
    Field,
    FieldFailures,
    TypedNode,
    format_float,
    parse_float,
    parse_int,
    point,
    point_items,
)
from .geometry import (
    Bounds,
    Point2D,
    Transform,
    angle_in_sweep,
    arc_points,
    distance,
    distance_to_polyline,
    distance_to_segment,
    ellipse_points,
    point_in_polygon,
    rotate,
)
from .layer import DEFAULT_LAYER, Layer
from .node import BLOCK, DocumentNode, Property

MAX_BLOCK_DEPTH = 16
MTEXT_CHUNK_SIZE = 250
# Rough glyph advance relative to text height, used for text extents.
_CHAR_WIDTH_FACTOR = 0.6


class Entity(TypedNode):
    FIELDS: ClassVar[tuple[Field, ...]] = (
        Field(8, "layer_name", "str", DEFAULT_LAYER, required=True),
    )

    layer_name: str

    def __init__(self, dxftype: str | None = None) -> None:
        self._bounds_cache: Bounds | None = None
        self._layer_ref: weakref.ReferenceType[Layer] | None = None
        self.color = ColorSpec.by_layer()
        self.resolved_color: Color = FALLBACK_COLOR
        super().__init__(dxftype)

    @property
    def dxftype(self) -> str:
        return self.kind or self.DXFTYPE

    @property
    def layer(self) -> Layer | None:
        if self._layer_ref is None:
            return None
        return self._layer_ref()

    def bind_layer(self, layer: Layer | None) -> None:
        self._layer_ref = weakref.ref(layer) if layer is not None else None

    def display_color(self, block_color: Color | None = None) -> Color:
        return resolve(self.color, self.layer, block_color)

    def _materialize_extra(self, failures: FieldFailures) -> None:
        aci = self._parse_first(62, "color", parse_int, failures, None)
        true_color = self._parse_first(420, "color", parse_int, failures, None)
        if aci is not None or true_color is not None:
            self.color = ColorSpec.from_group_codes(aci, true_color)

    def _synchronize_extra(self) -> None:
        if self._is_held("color"):
            return
        spec = self.color
        if spec.method is ColorMethod.TRUE_COLOR:
            legacy = self.get_value(62, "").lstrip().startswith("-") and not self.has_code(420)
            if legacy:
                self._store(62, -(spec.rgb or 0), "int")
            else:
                self._store(420, spec.rgb, "int")
            return
        self.remove_codes(420)
        if spec.method is not ColorMethod.BYLAYER or self.has_code(62):
            self._store(62, spec.aci, "int")

    def invalidate(self) -> None:
        self._bounds_cache = None

    def bounds(self) -> Bounds:
        if self._bounds_cache is None:
            self._bounds_cache = self._calculate_bounds()
        return self._bounds_cache

    def hit_test(self, point: Point2D, tolerance: float = 0.5) -> bool:
        return self._hit_at_depth(point, tolerance, 0)

    def _calculate_bounds(self) -> Bounds:
        return Bounds.empty()

    def _bounds_at_depth(self, depth: int) -> Bounds:
        return self.bounds()

    def _hit_at_depth(self, point: Point2D, tolerance: float, depth: int) -> bool:
        if not self.bounds().expanded(tolerance).contains(point):
            return False
        return self._hit(point, tolerance)

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        return True


class UnknownEntity(Entity):
    """Opaque object: its property list is kept verbatim and never rewritten."""

    def __init__(self, dxftype: str) -> None:
        super().__init__(dxftype)

    def synchronize_properties_from_fields(self) -> None:
        pass

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        return False


class Line(Entity):
    DXFTYPE = "LINE"
    FIELDS = Entity.FIELDS + (
        point(10, "start", required=True),
        point(11, "end", required=True),
    )

    start: Point2D
    end: Point2D

    def _calculate_bounds(self) -> Bounds:
        return Bounds.from_points([self.start, self.end])

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        return distance_to_segment(point, self.start, self.end) <= tolerance


class Circle(Entity):
    DXFTYPE = "CIRCLE"
    FIELDS = Entity.FIELDS + (
        point(10, "center", required=True),
        Field(40, "radius", "float", 0.0, required=True),
    )

    center: Point2D
    radius: float

    def _calculate_bounds(self) -> Bounds:
        cx, cy = self.center
        r = abs(self.radius)
        return Bounds(cx - r, cy - r, cx + r, cy + r)

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        return abs(distance(point, self.center) - abs(self.radius)) <= tolerance


class Arc(Entity):
    DXFTYPE = "ARC"
    FIELDS = Entity.FIELDS + (
        point(10, "center", required=True),
        Field(40, "radius", "float", 0.0, required=True),
        Field(50, "start_angle", "float", 0.0, required=True),
        Field(51, "end_angle", "float", 360.0, required=True),
    )

    center: Point2D
    radius: float
    start_angle: float
    end_angle: float

    def _calculate_bounds(self) -> Bounds:
        return Bounds.from_points(arc_points(self.center, abs(self.radius), self.start_angle, self.end_angle))

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        if abs(distance(point, self.center) - abs(self.radius)) > tolerance:
            return False
        angle = math.degrees(math.atan2(point[1] - self.center[1], point[0] - self.center[0]))
        return angle_in_sweep(angle, self.start_angle, self.end_angle)


class Ellipse(Entity):
    DXFTYPE = "ELLIPSE"
    FIELDS = Entity.FIELDS + (
        point(10, "center", required=True),
        point(11, "major_axis", (1.0, 0.0), required=True),
        Field(40, "ratio", "float", 1.0, required=True),
        Field(41, "start_param", "float", 0.0, required=True),
        Field(42, "end_param", "float", 2.0 * math.pi, required=True),
    )

    center: Point2D
    major_axis: Point2D
    ratio: float
    start_param: float
    end_param: float

    def outline(self) -> list[Point2D]:
        return ellipse_points(self.center, self.major_axis, self.ratio, self.start_param, self.end_param)

    def _calculate_bounds(self) -> Bounds:
        return Bounds.from_points(self.outline())

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        return distance_to_polyline(point, self.outline()) <= tolerance


class Polyline(Entity):
    DXFTYPE = "LWPOLYLINE"

    def _init_fields(self) -> None:
        self.vertices: list[Point2D] = []
        self.closed = False
        self.flags = 0

    def _materialize_extra(self, failures: FieldFailures) -> None:
        super()._materialize_extra(failures)
        self.flags = self._parse_first(70, "closed", parse_int, failures, self.flags)
        self.closed = bool(self.flags & 1)
        vertices = self._parse_points(10, "vertices", failures)
        if vertices is not None:
            self.vertices = vertices

    def _synchronize_extra(self) -> None:
        super()._synchronize_extra()
        flags = (self.flags & ~1) | (1 if self.closed else 0)
        if not (self._is_held("closed") and flags == self.flags):
            self.flags = flags
            self._store(70, flags, "int")
        if self._is_held("vertices"):
            return
        self._store(90, len(self.vertices), "int")
        # per-vertex widths and bulges lose their meaning once the vertex list changes shape
        self._rewrite_repeated({10, 20}, point_items(10, self.vertices), companions={40, 41, 42, 91})

    def _calculate_bounds(self) -> Bounds:
        return Bounds.from_points(self.vertices)

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        return distance_to_polyline(point, self.vertices, self.closed) <= tolerance


def _box(anchor: Point2D, offset: Point2D, width: float, height: float, rotation: float) -> list[Point2D]:
    x0, y0 = offset
    corners = [(x0, y0), (x0 + width, y0), (x0 + width, y0 + height), (x0, y0 + height)]
    out = []
    for corner in corners:
        x, y = rotate(corner, rotation)
        out.append((anchor[0] + x, anchor[1] + y))
    return out


def _box_hit(point: Point2D, box: list[Point2D], tolerance: float) -> bool:
    return point_in_polygon(point, box) or distance_to_polyline(point, box, closed=True) <= tolerance


class Text(Entity):
    DXFTYPE = "TEXT"
    FIELDS = Entity.FIELDS + (
        point(10, "insert", required=True),
        Field(40, "height", "float", 1.0, required=True),
        Field(1, "text", "str", "", required=True),
        Field(50, "rotation", "float", 0.0),
        Field(41, "width_factor", "float", 1.0),
        Field(51, "oblique", "float", 0.0),
        Field(7, "style", "str", "STANDARD"),
        Field(71, "generation_flags", "int", 0),
        Field(72, "halign", "int", 0),
        point(11, "align_point"),
        Field(73, "valign", "int", 0),
    )

    insert: Point2D
    height: float
    text: str
    rotation: float
    width_factor: float
    oblique: float
    style: str
    generation_flags: int
    halign: int
    align_point: Point2D
    valign: int

    def box(self) -> list[Point2D]:
        width = len(self.text) * self.height * _CHAR_WIDTH_FACTOR * self.width_factor
        anchor = self.insert
        offset_x = 0.0
        if self.halign or self.valign:
            anchor = self.align_point
            if self.halign in (1, 4):
                offset_x = -width / 2.0
            elif self.halign == 2:
                offset_x = -width
        return _box(anchor, (offset_x, 0.0), width, self.height, self.rotation)

    def _calculate_bounds(self) -> Bounds:
        return Bounds.from_points(self.box())

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        return _box_hit(point, self.box(), tolerance)


class MText(Entity):
    DXFTYPE = "MTEXT"
    FIELDS = Entity.FIELDS + (
        point(10, "insert", required=True),
        Field(40, "char_height", "float", 1.0, required=True),
        Field(41, "width", "float", 0.0),
        Field(71, "attachment_point", "int", 1, required=True),
        Field(72, "flow_direction", "int", 1),
        Field(7, "style", "str", "STANDARD"),
        Field(50, "rotation", "float", 0.0),
        Field(73, "line_spacing_style", "int", 1),
        Field(44, "line_spacing_factor", "float", 1.0),
    )

    insert: Point2D
    char_height: float
    width: float
    attachment_point: int
    flow_direction: int
    style: str
    rotation: float
    line_spacing_style: int
    line_spacing_factor: float

    def _init_fields(self) -> None:
        self.text = ""

    def _stored_text(self) -> str:
        # code 3 carries leading chunks, code 1 the final chunk
        return "".join(self.get_values(3)) + (self.get_value(1) or "")

    def _materialize_extra(self, failures: FieldFailures) -> None:
        super()._materialize_extra(failures)
        if self.has_code(1) or self.has_code(3):
            self.text = self._stored_text()

    def _synchronize_extra(self) -> None:
        super()._synchronize_extra()
        if self.has_code(1) and self.text == self._stored_text():
            return
        chunks = [self.text[i : i + MTEXT_CHUNK_SIZE] for i in range(0, len(self.text), MTEXT_CHUNK_SIZE)]
        if not chunks:
            chunks = [""]
        items = [(3, chunk) for chunk in chunks[:-1]] + [(1, chunks[-1])]
        self._rewrite_repeated({1, 3}, items, kind="str")

    @property
    def lines(self) -> list[str]:
        return self.text.split("\\P")

    def box(self) -> list[Point2D]:
        lines = self.lines
        width = self.width
        if width <= 0.0:
            width = max(len(line) for line in lines) * self.char_height * _CHAR_WIDTH_FACTOR
        height = len(lines) * self.char_height * self.line_spacing_factor
        attachment = min(max(self.attachment_point, 1), 9) - 1
        column, row = attachment % 3, attachment // 3
        offset = (-column * width / 2.0, row * height / 2.0 - height)
        return _box(self.insert, offset, width, height, self.rotation)

    def _calculate_bounds(self) -> Bounds:
        return Bounds.from_points(self.box())

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        return _box_hit(point, self.box(), tolerance)


class Hatch(Entity):
    DXFTYPE = "HATCH"
    FIELDS = Entity.FIELDS + (
        Field(2, "pattern_name", "str", "SOLID", required=True),
        Field(70, "solid_fill", "bool", True, required=True),
        Field(75, "hatch_style", "int", 0, required=True),
        Field(76, "pattern_type", "int", 1, required=True),
        Field(52, "pattern_angle", "float", 0.0),
        Field(41, "pattern_scale", "float", 1.0),
    )

    pattern_name: str
    solid_fill: bool
    hatch_style: int
    pattern_type: int
    pattern_angle: float
    pattern_scale: float

    def _init_fields(self) -> None:
        self.paths: list[list[Point2D]] = []

    def _boundary_span(self) -> tuple[int, int]:
        """Index range of the boundary path data: from the first 91 up to the first 75/98."""
        start = None
        for i, prop in enumerate(self.properties):
            if prop.code == 91:
                start = i
                break
        if start is None:
            for i, prop in enumerate(self.properties):
                if prop.code in (75, 98):
                    return i, i
            return len(self.properties), len(self.properties)
        for i in range(start + 1, len(self.properties)):
            if self.properties[i].code in (75, 98):
                return start, i
        return start, len(self.properties)

    def _read_paths(self, failures: FieldFailures) -> list[list[Point2D]] | None:
        lo, hi = self._boundary_span()
        paths: list[list[Point2D]] = []
        current: list[Point2D] | None = None
        pending_x: float | None = None
        for prop in self.properties[lo:hi]:
            if prop.code == 92:
                current = []
                paths.append(current)
                pending_x = None
            elif prop.code == 10:
                try:
                    pending_x = parse_float(prop.value)
                except ValueError:
                    failures.append((10, prop.value, "paths"))
                    return None
            elif prop.code == 20 and pending_x is not None:
                try:
                    y = parse_float(prop.value)
                except ValueError:
                    failures.append((20, prop.value, "paths"))
                    return None
                if current is None:
                    current = []
                    paths.append(current)
                current.append((pending_x, y))
                pending_x = None
        return paths

    def _materialize_extra(self, failures: FieldFailures) -> None:
        super()._materialize_extra(failures)
        paths = self._read_paths(failures)
        if paths is not None:
            self.paths = paths

    def _synchronize_extra(self) -> None:
        super()._synchronize_extra()
        if self._is_held("paths"):
            return
        lo, hi = self._boundary_span()
        stored = self._read_paths([]) if lo < hi else []
        if stored is not None and [len(p) for p in stored] == [len(p) for p in self.paths]:
            flat = [vertex for path in self.paths for vertex in path]
            self._rewrite_repeated({10, 20}, point_items(10, flat), span=(lo, hi))
            return
        self.properties[lo:hi] = _boundary_properties(self.paths)

    def _calculate_bounds(self) -> Bounds:
        return Bounds.from_points(vertex for path in self.paths for vertex in path)

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        for path in self.paths:
            if point_in_polygon(point, path):
                return True
            if distance_to_polyline(point, path, closed=True) <= tolerance:
                return True
        return False


def _boundary_properties(paths: list[list[Point2D]]) -> list[Property]:
    props = [Property(91, str(len(paths)))]
    for path in paths:
        props.append(Property(92, "2"))
        props.append(Property(72, "0"))
        props.append(Property(73, "1"))
        props.append(Property(93, str(len(path))))
        for code, value in point_items(10, path):
            props.append(Property(code, format_float(value)))
        props.append(Property(97, "0"))
    return props


class Dimension(Entity):
    DXFTYPE = "DIMENSION"
    FIELDS = Entity.FIELDS + (
        Field(2, "block_name", "str", ""),
        point(10, "defpoint", required=True),
        point(11, "text_midpoint"),
        Field(70, "dimtype", "int", 0, required=True),
        Field(1, "text", "str", ""),
        point(13, "defpoint2"),
        point(14, "defpoint3"),
        Field(140, "text_height", "float", 2.5),
    )

    block_name: str
    defpoint: Point2D
    text_midpoint: Point2D
    dimtype: int
    text: str
    defpoint2: Point2D
    defpoint3: Point2D
    text_height: float

    def points(self) -> list[Point2D]:
        out = [self.defpoint]
        for field in self.FIELDS:
            if field.kind != "point" or field.attr == "defpoint":
                continue
            value = getattr(self, field.attr)
            if value != field.default or self.has_code(field.code):
                out.append(value)
        return out

    def _calculate_bounds(self) -> Bounds:
        return Bounds.from_points(self.points())

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        return distance_to_polyline(point, self.points()) <= tolerance or any(
            distance(point, p) <= tolerance for p in self.points()
        )


class Trace(Entity):
    """Four-corner filled shape, used for both TRACE and SOLID records."""

    DXFTYPE = "TRACE"
    FIELDS = Entity.FIELDS + (
        point(10, "first", required=True),
        point(11, "second", required=True),
        point(12, "third", required=True),
        point(13, "fourth"),
    )

    first: Point2D
    second: Point2D
    third: Point2D
    fourth: Point2D

    def polygon(self) -> list[Point2D]:
        fourth = self.fourth
        if not self.has_code(13) and fourth == (0.0, 0.0):
            fourth = self.third
        # the format orders corners 1-2-4-3 around the outline
        return [self.first, self.second, fourth, self.third]

    def _calculate_bounds(self) -> Bounds:
        return Bounds.from_points(self.polygon())

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        return _box_hit(point, self.polygon(), tolerance)


class RasterImage(Entity):
    DXFTYPE = "IMAGE"
    FIELDS = Entity.FIELDS + (
        point(10, "insert", required=True),
        point(11, "u_vector", (1.0, 0.0), required=True),
        point(12, "v_vector", (0.0, 1.0), required=True),
        point(13, "size", (1.0, 1.0), required=True),
        Field(1, "path", "str", ""),
    )

    insert: Point2D
    u_vector: Point2D
    v_vector: Point2D
    size: Point2D
    path: str

    def polygon(self) -> list[Point2D]:
        x, y = self.insert
        ux, uy = self.u_vector[0] * self.size[0], self.u_vector[1] * self.size[0]
        vx, vy = self.v_vector[0] * self.size[1], self.v_vector[1] * self.size[1]
        return [(x, y), (x + ux, y + uy), (x + ux + vx, y + uy + vy), (x + vx, y + vy)]

    def _calculate_bounds(self) -> Bounds:
        return Bounds.from_points(self.polygon())

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        return _box_hit(point, self.polygon(), tolerance)


class Ole2Frame(Entity):
    DXFTYPE = "OLE2FRAME"
    FIELDS = Entity.FIELDS + (
        point(10, "insert", required=True),
        Field(40, "width", "float", 1.0, required=True),
        Field(41, "height", "float", 1.0, required=True),
        Field(50, "rotation", "float", 0.0),
        Field(1, "ole_type", "str", ""),
    )

    insert: Point2D
    width: float
    height: float
    rotation: float
    ole_type: str

    def polygon(self) -> list[Point2D]:
        return _box(self.insert, (0.0, 0.0), self.width, self.height, self.rotation)

    def _calculate_bounds(self) -> Bounds:
        return Bounds.from_points(self.polygon())

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        return _box_hit(point, self.polygon(), tolerance)


class Spline(Entity):
    DXFTYPE = "SPLINE"
    FIELDS = Entity.FIELDS + (
        Field(70, "flags", "int", 0, required=True),
        Field(71, "degree", "int", 3, required=True),
        Field(42, "knot_tolerance", "float", 0.0000001),
        Field(43, "control_point_tolerance", "float", 0.0000001),
        Field(44, "fit_tolerance", "float", 0.0000001),
        point(12, "start_tangent"),
        point(13, "end_tangent"),
    )

    flags: int
    degree: int
    knot_tolerance: float
    control_point_tolerance: float
    fit_tolerance: float
    start_tangent: Point2D
    end_tangent: Point2D

    def _init_fields(self) -> None:
        self.knots: list[float] = []
        self.weights: list[float] = []
        self.control_points: list[Point2D] = []
        self.fit_points: list[Point2D] = []

    @property
    def closed(self) -> bool:
        return bool(self.flags & 1)

    def _materialize_extra(self, failures: FieldFailures) -> None:
        super()._materialize_extra(failures)
        knots = self._parse_all(40, "knots", parse_float, failures)
        if knots is not None:
            self.knots = knots
        weights = self._parse_all(41, "weights", parse_float, failures)
        if weights is not None:
            self.weights = weights
        control_points = self._parse_points(10, "control_points", failures)
        if control_points is not None:
            self.control_points = control_points
        fit_points = self._parse_points(11, "fit_points", failures)
        if fit_points is not None:
            self.fit_points = fit_points

    def _synchronize_extra(self) -> None:
        super()._synchronize_extra()
        for code, attr in ((72, "knots"), (73, "control_points"), (74, "fit_points")):
            items = getattr(self, attr)
            if not self._is_held(attr) and (items or self.has_code(code)):
                self._store(code, len(items), "int")
        if not self._is_held("knots"):
            self._rewrite_repeated({40}, [(40, k) for k in self.knots])
        if not self._is_held("weights"):
            self._rewrite_repeated({41}, [(41, w) for w in self.weights])
        if not self._is_held("control_points"):
            self._rewrite_repeated({10, 20}, point_items(10, self.control_points), companions={30})
        if not self._is_held("fit_points"):
            self._rewrite_repeated({11, 21}, point_items(11, self.fit_points), companions={31})

    def outline(self) -> list[Point2D]:
        if self.fit_points:
            return list(self.fit_points)
        return list(self.control_points)

    def _calculate_bounds(self) -> Bounds:
        # a B-spline lies inside the convex hull of its control points
        return Bounds.from_points(self.control_points + self.fit_points)

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        return distance_to_polyline(point, self.outline(), self.closed) <= tolerance


class Wipeout(Entity):
    DXFTYPE = "WIPEOUT"
    FIELDS = Entity.FIELDS + (
        Field(290, "show_frame", "bool", True),
    )

    show_frame: bool

    def _init_fields(self) -> None:
        self.vertices: list[Point2D] = []

    def _materialize_extra(self, failures: FieldFailures) -> None:
        super()._materialize_extra(failures)
        vertices = self._parse_points(10, "vertices", failures)
        if vertices is not None:
            self.vertices = vertices

    def _synchronize_extra(self) -> None:
        super()._synchronize_extra()
        if self._is_held("vertices"):
            return
        self._rewrite_repeated({10, 20}, point_items(10, self.vertices), companions={30})

    def _calculate_bounds(self) -> Bounds:
        return Bounds.from_points(self.vertices)

    def _hit(self, point: Point2D, tolerance: float) -> bool:
        return _box_hit(point, self.vertices, tolerance)


class Block(Entity):
    """Block definition. Its entities are tree children, closed by ENDBLK."""

    DXFTYPE = BLOCK
    FIELDS = Entity.FIELDS + (
        Field(2, "name", "str", "", required=True),
        Field(70, "flags", "int", 0, required=True),
        point(10, "base_point", required=True),
    )

    name: str
    flags: int
    base_point: Point2D

    def _synchronize_extra(self) -> None:
        super()._synchronize_extra()
        if self.has_code(3):
            self._store(3, self.name, "str")

    @property
    def entities(self) -> list[Entity]:
        return [child for child in self.children if isinstance(child, Entity)]

    def add_entity(self, entity: Entity) -> Entity:
        self.append_content(entity)
        self.invalidate()
        return entity

    def remove_entity(self, entity: Entity) -> None:
        self.remove(entity)
        self.invalidate()

    def matches(self, name: str) -> bool:
        return self.name.casefold() == name.casefold()

    def _calculate_bounds(self) -> Bounds:
        return self.content_bounds(0)

    def content_bounds(self, depth: int) -> Bounds:
        bounds = Bounds.empty()
        for entity in self.entities:
            bounds = bounds.union(entity._bounds_at_depth(depth))
        return bounds

    def _hit_at_depth(self, point: Point2D, tolerance: float, depth: int) -> bool:
        return any(entity._hit_at_depth(point, tolerance, depth) for entity in self.entities)


class BlockReference(Entity):
    DXFTYPE = "INSERT"
    FIELDS = Entity.FIELDS + (
        Field(2, "block_name", "str", "", required=True),
        point(10, "insert", required=True),
        Field(41, "x_scale", "float", 1.0),
        Field(42, "y_scale", "float", 1.0),
        Field(50, "rotation", "float", 0.0),
    )

    block_name: str
    insert: Point2D
    x_scale: float
    y_scale: float
    rotation: float

    def _init_fields(self) -> None:
        self._block_ref: weakref.ReferenceType[Block] | None = None

    @property
    def block(self) -> Block | None:
        if self._block_ref is None:
            return None
        return self._block_ref()

    def bind_block(self, block: Block | None) -> None:
        self._block_ref = weakref.ref(block) if block is not None else None
        self.invalidate()

    @property
    def transform(self) -> Transform:
        return Transform(self.insert, self.rotation, (self.x_scale, self.y_scale))

    def to_world(self, point: Point2D) -> Point2D:
        base = self.block.base_point if self.block is not None else (0.0, 0.0)
        return self.transform.apply((point[0] - base[0], point[1] - base[1]))

    def to_block(self, point: Point2D) -> Point2D | None:
        local = self.transform.inverse_apply(point)
        if local is None:
            return None
        base = self.block.base_point if self.block is not None else (0.0, 0.0)
        return (local[0] + base[0], local[1] + base[1])

    def _calculate_bounds(self) -> Bounds:
        return self._bounds_at_depth(0)

    def _bounds_at_depth(self, depth: int) -> Bounds:
        block = self.block
        if block is None or depth >= MAX_BLOCK_DEPTH:
            return Bounds.empty()
        content = block.content_bounds(depth + 1)
        return Bounds.from_points(self.to_world(corner) for corner in content.corners)

    def _hit_at_depth(self, point: Point2D, tolerance: float, depth: int) -> bool:
        block = self.block
        if block is None or depth >= MAX_BLOCK_DEPTH:
            return False
        if depth == 0 and not self.bounds().expanded(tolerance).contains(point):
            return False
        local = self.to_block(point)
        if local is None:
            return False
        scale = min(abs(self.x_scale), abs(self.y_scale))
        return block._hit_at_depth(local, tolerance / scale, depth + 1)


OBJECT_TYPES: dict[str, type[TypedNode]] = {
    "LINE": Line,
    "CIRCLE": Circle,
    "ARC": Arc,
    "ELLIPSE": Ellipse,
    "LWPOLYLINE": Polyline,
    "TEXT": Text,
    "MTEXT": MText,
    "HATCH": Hatch,
    "DIMENSION": Dimension,
    "TRACE": Trace,
    "SOLID": Trace,
    "IMAGE": RasterImage,
    "OLE2FRAME": Ole2Frame,
    "SPLINE": Spline,
    "WIPEOUT": Wipeout,
    "INSERT": BlockReference,
    "LAYER": Layer,
}


def create_object(dxftype: str) -> DocumentNode:
    factory = OBJECT_TYPES.get(dxftype)
    if factory is None:
        return UnknownEntity(dxftype)
    return factory(dxftype)
