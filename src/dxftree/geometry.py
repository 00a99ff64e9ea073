from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

Point2D = tuple[float, float]


@dataclass(frozen=True)
class Bounds:
    min_x: float = math.inf
    min_y: float = math.inf
    max_x: float = -math.inf
    max_y: float = -math.inf

    @classmethod
    def empty(cls) -> "Bounds":
        return cls()

    @classmethod
    def from_points(cls, points: Iterable[Point2D]) -> "Bounds":
        xs: list[float] = []
        ys: list[float] = []
        for x, y in points:
            xs.append(x)
            ys.append(y)
        if not xs:
            return cls()
        return cls(min(xs), min(ys), max(xs), max(ys))

    @property
    def is_empty(self) -> bool:
        return self.min_x > self.max_x or self.min_y > self.max_y

    @property
    def width(self) -> float:
        return 0.0 if self.is_empty else self.max_x - self.min_x

    @property
    def height(self) -> float:
        return 0.0 if self.is_empty else self.max_y - self.min_y

    @property
    def corners(self) -> list[Point2D]:
        if self.is_empty:
            return []
        return [
            (self.min_x, self.min_y),
            (self.max_x, self.min_y),
            (self.max_x, self.max_y),
            (self.min_x, self.max_y),
        ]

    def union(self, other: "Bounds") -> "Bounds":
        if self.is_empty:
            return other
        if other.is_empty:
            return self
        return Bounds(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )

    def expanded(self, margin: float) -> "Bounds":
        if self.is_empty:
            return self
        return Bounds(
            self.min_x - margin,
            self.min_y - margin,
            self.max_x + margin,
            self.max_y + margin,
        )

    def contains(self, point: Point2D) -> bool:
        if self.is_empty:
            return False
        x, y = point
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y


def distance(a: Point2D, b: Point2D) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def distance_to_segment(point: Point2D, start: Point2D, end: Point2D) -> float:
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return distance(point, start)
    t = ((point[0] - start[0]) * dx + (point[1] - start[1]) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return distance(point, (start[0] + t * dx, start[1] + t * dy))


def distance_to_polyline(point: Point2D, points: Sequence[Point2D], closed: bool = False) -> float:
    if not points:
        return math.inf
    if len(points) == 1:
        return distance(point, points[0])
    best = math.inf
    for start, end in zip(points, points[1:]):
        best = min(best, distance_to_segment(point, start, end))
    if closed:
        best = min(best, distance_to_segment(point, points[-1], points[0]))
    return best


def point_in_polygon(point: Point2D, polygon: Sequence[Point2D]) -> bool:
    if len(polygon) < 3:
        return False
    x, y = point
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def rotate(point: Point2D, degrees: float, origin: Point2D = (0.0, 0.0)) -> Point2D:
    angle = math.radians(degrees)
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    x = point[0] - origin[0]
    y = point[1] - origin[1]
    return (origin[0] + x * cos_a - y * sin_a, origin[1] + x * sin_a + y * cos_a)


def normalize_angle(degrees: float) -> float:
    return degrees % 360.0


def angle_in_sweep(degrees: float, start: float, end: float) -> bool:
    """True if ``degrees`` lies on the counter-clockwise sweep from ``start`` to ``end``."""
    start = normalize_angle(start)
    sweep = normalize_angle(end - start)
    if sweep == 0.0:
        sweep = 360.0
    return normalize_angle(degrees - start) <= sweep


def arc_points(
    center: Point2D,
    radius: float,
    start_angle: float,
    end_angle: float,
) -> list[Point2D]:
    """Arc endpoints plus every axis extreme that lies on the sweep."""
    cx, cy = center
    points = [
        (cx + radius * math.cos(math.radians(start_angle)), cy + radius * math.sin(math.radians(start_angle))),
        (cx + radius * math.cos(math.radians(end_angle)), cy + radius * math.sin(math.radians(end_angle))),
    ]
    for quadrant in (0.0, 90.0, 180.0, 270.0):
        if angle_in_sweep(quadrant, start_angle, end_angle):
            points.append(
                (cx + radius * math.cos(math.radians(quadrant)), cy + radius * math.sin(math.radians(quadrant)))
            )
    return points


def ellipse_points(
    center: Point2D,
    major_axis: Point2D,
    ratio: float,
    start_param: float,
    end_param: float,
    segments: int = 64,
) -> list[Point2D]:
    """Sample an ellipse (parameters in radians) into a polyline."""
    sweep = end_param - start_param
    if sweep <= 0.0:
        sweep += 2.0 * math.pi
    minor_axis = (-major_axis[1] * ratio, major_axis[0] * ratio)
    count = max(2, int(math.ceil(segments * sweep / (2.0 * math.pi))) + 1)
    points: list[Point2D] = []
    for i in range(count):
        t = start_param + sweep * i / (count - 1)
        cos_t = math.cos(t)
        sin_t = math.sin(t)
        points.append(
            (
                center[0] + major_axis[0] * cos_t + minor_axis[0] * sin_t,
                center[1] + major_axis[1] * cos_t + minor_axis[1] * sin_t,
            )
        )
    return points


@dataclass(frozen=True)
class Transform:
    """Insert transform: scale, then rotate, then translate."""

    translation: Point2D = (0.0, 0.0)
    rotation: float = 0.0
    scale: Point2D = (1.0, 1.0)

    def apply(self, point: Point2D) -> Point2D:
        scaled = (point[0] * self.scale[0], point[1] * self.scale[1])
        x, y = rotate(scaled, self.rotation)
        return (x + self.translation[0], y + self.translation[1])

    def inverse_apply(self, point: Point2D) -> Point2D | None:
        if self.scale[0] == 0.0 or self.scale[1] == 0.0:
            return None
        local = (point[0] - self.translation[0], point[1] - self.translation[1])
        x, y = rotate(local, -self.rotation)
        return (x / self.scale[0], y / self.scale[1])

    def apply_bounds(self, bounds: Bounds) -> Bounds:
        return Bounds.from_points(self.apply(corner) for corner in bounds.corners)
