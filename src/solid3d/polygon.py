"""Convex polygons lying in a plane.

A :class:`ConvexPolygon` lives in the 2D frame of a supporting
:class:`~solid3d.plane.Plane` and is described by its bounding lines, kept
in counterclockwise order.  Each bounding line ``a x + b y + c = 0`` has a
unit normal ``(a, b)`` pointing out of the polygon.  Vertices are always
recomputed as the intersection of two consecutive bounding lines, so
repeated clipping does not accumulate interpolation errors.

Unbounded regions start as a huge square whose sides are flagged ``open``;
a polygon keeping any open side is unbounded.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import math
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from solid3d.plane import Plane
from solid3d.settings import GEOMETRY_EPSILON
from solid3d.vector import Vector3D

Point2D = Tuple[float, float]

# half width of the square standing for a whole plane
HUGE = 1.0e10


class Edge(NamedTuple):
    """Bounding line ``a x + b y + c = 0``, polygon on the negative side."""

    a: float
    b: float
    c: float
    open: bool = False

    def offset(self, point: Point2D) -> float:
        return self.a * point[0] + self.b * point[1] + self.c


def line_through(p: Point2D, q: Point2D) -> Edge:
    """Bounding line from ``p`` to ``q``, the polygon being on its left."""
    dx = q[0] - p[0]
    dy = q[1] - p[1]
    length = math.hypot(dx, dy)
    a = dy / length
    b = -dx / length
    return Edge(a, b, -(a * p[0] + b * p[1]))


def plane_trace(cut: Plane, support: Plane) -> Optional[Edge]:
    """Trace of ``cut`` in the 2D frame of ``support``.

    The returned line is negative where ``cut`` offsets are negative.  None
    is returned when the planes are parallel.
    """
    n = cut.normal
    a = n.dot(support.u)
    b = n.dot(support.v)
    norm = math.hypot(a, b)
    if norm < GEOMETRY_EPSILON:
        return None
    c = cut.offset - support.offset * n.dot(support.normal)
    return Edge(a / norm, b / norm, c / norm)


def _intersect(e1: Edge, e2: Edge) -> Point2D:
    det = e1.a * e2.b - e2.a * e1.b
    return ((e1.b * e2.c - e2.b * e1.c) / det,
            (e2.a * e1.c - e1.a * e2.c) / det)


class ConvexPolygon:
    """Convex polygon given by its counterclockwise bounding lines."""

    __slots__ = ('_edges', '_vertices')

    def __init__(self, edges: Sequence[Edge]):
        self._edges = tuple(edges)
        self._vertices = None

    @classmethod
    def whole_plane(cls, extent: float = HUGE) -> "ConvexPolygon":
        return cls((Edge(0.0, -1.0, -extent, True), Edge(1.0, 0.0, -extent, True),
                    Edge(0.0, 1.0, -extent, True), Edge(-1.0, 0.0, -extent, True)))

    @classmethod
    def from_points(cls, points: Sequence[Point2D]) -> "ConvexPolygon":
        """Polygon with the given vertices, in either winding order."""
        points = [tuple(p) for p in points]
        if _signed_area(points) < 0.0:
            points.reverse()
        n = len(points)
        return cls([line_through(points[i], points[(i + 1) % n]) for i in range(n)])

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return self._edges

    def vertices(self) -> List[Point2D]:
        """Vertex ``i`` is where edge ``i - 1`` meets edge ``i``."""
        if self._vertices is None:
            edges = self._edges
            self._vertices = [_intersect(edges[i - 1], edges[i]) for i in range(len(edges))]
        return self._vertices

    def is_bounded(self) -> bool:
        return not any(e.open for e in self._edges)

    def area(self) -> float:
        if not self.is_bounded():
            return math.inf
        return _signed_area(self.vertices())

    def centroid(self) -> Point2D:
        pts = np.asarray(self.vertices(), dtype=float)
        x, y = pts[:, 0], pts[:, 1]
        xn, yn = np.roll(x, -1), np.roll(y, -1)
        cross = x * yn - xn * y
        area = cross.sum() / 2.0
        if abs(area) < GEOMETRY_EPSILON * GEOMETRY_EPSILON:
            return float(x.mean()), float(y.mean())
        return (float(((x + xn) * cross).sum() / (6.0 * area)),
                float(((y + yn) * cross).sum() / (6.0 * area)))

    def contains(self, point: Point2D, tolerance: float = GEOMETRY_EPSILON) -> bool:
        """True for points inside the polygon or on its boundary."""
        return all(e.offset(point) <= tolerance for e in self._edges)

    def clip(self, edge: Edge, tolerance: float = GEOMETRY_EPSILON) -> Optional["ConvexPolygon"]:
        """Part of the polygon on the negative side of ``edge``, None if empty."""
        vertices = self.vertices()
        s = [edge.offset(p) for p in vertices]
        if all(v <= tolerance for v in s):
            return self
        if all(v >= -tolerance for v in s):
            return None
        n = len(self._edges)
        # edge i runs from vertex i to vertex i + 1
        kept = [s[i] < -tolerance or s[(i + 1) % n] < -tolerance for i in range(n)]
        cut = Edge(edge.a, edge.b, edge.c)
        if all(kept):
            j = next(i for i in range(n) if s[i] > tolerance)
            edges = self._edges[:j] + (cut,) + self._edges[j:]
        else:
            start = next(i for i in range(n) if kept[i] and not kept[i - 1])
            edges = []
            i = start
            while kept[i]:
                edges.append(self._edges[i])
                i = (i + 1) % n
            edges.append(cut)
        if len(edges) < 3:
            return None
        return ConvexPolygon(edges)

    def split(self, edge: Edge, tolerance: float = GEOMETRY_EPSILON
              ) -> Tuple[Optional["ConvexPolygon"], Optional["ConvexPolygon"]]:
        """Return the ``(minus, plus)`` parts of the polygon."""
        opposite = Edge(-edge.a, -edge.b, -edge.c)
        return self.clip(edge, tolerance), self.clip(opposite, tolerance)

    def closest_point(self, point: Point2D) -> Point2D:
        """Point of the polygon closest to ``point``."""
        if self.contains(point, 0.0):
            return point
        vertices = self.vertices()
        best = None
        best_distance = math.inf
        for i, p in enumerate(vertices):
            q = vertices[(i + 1) % len(vertices)]
            candidate = _segment_closest(p, q, point)
            distance = math.hypot(candidate[0] - point[0], candidate[1] - point[1])
            if distance < best_distance:
                best = candidate
                best_distance = distance
        return best

    def __repr__(self) -> str:
        return f"ConvexPolygon({list(self._edges)!r})"


class PlanarPolygon:
    """A :class:`ConvexPolygon` together with its supporting plane."""

    __slots__ = ('plane', 'polygon')

    def __init__(self, plane: Plane, polygon: ConvexPolygon):
        self.plane = plane
        self.polygon = polygon

    def vertices(self) -> List[Vector3D]:
        return [self.plane.to_space(p) for p in self.polygon.vertices()]

    def centroid(self) -> Vector3D:
        return self.plane.to_space(self.polygon.centroid())

    def area(self) -> float:
        return self.polygon.area()

    def is_bounded(self) -> bool:
        return self.polygon.is_bounded()

    def contains(self, point: Vector3D, tolerance: float = GEOMETRY_EPSILON) -> bool:
        if abs(self.plane.get_offset(point)) > tolerance:
            return False
        return self.polygon.contains(self.plane.to_subspace(point), tolerance)

    def closest_point(self, point: Vector3D) -> Vector3D:
        return self.plane.to_space(self.polygon.closest_point(self.plane.to_subspace(point)))

    def split(self, cut: Plane, tolerance: float = GEOMETRY_EPSILON):
        """Return the ``(minus, plus)`` parts with respect to ``cut``.

        A polygon lying in ``cut`` is returned as ``(None, None)``.
        """
        trace = plane_trace(cut, self.plane)
        if trace is None:
            offset = cut.get_offset(self.plane.origin)
            if offset < -tolerance:
                return self, None
            if offset > tolerance:
                return None, self
            return None, None
        minus, plus = self.polygon.split(trace, tolerance)
        return (PlanarPolygon(self.plane, minus) if minus is not None else None,
                PlanarPolygon(self.plane, plus) if plus is not None else None)

    def __repr__(self) -> str:
        return f"PlanarPolygon({self.plane!r}, {self.polygon!r})"


def _segment_closest(p: Point2D, q: Point2D, point: Point2D) -> Point2D:
    dx = q[0] - p[0]
    dy = q[1] - p[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        return p
    t = ((point[0] - p[0]) * dx + (point[1] - p[1]) * dy) / length_sq
    t = min(max(t, 0.0), 1.0)
    return p[0] + t * dx, p[1] + t * dy


def _signed_area(loop: Sequence[Point2D]) -> float:
    total = 0.0
    for i, (x0, y0) in enumerate(loop):
        x1, y1 = loop[(i + 1) % len(loop)]
        total += x0 * y1 - x1 * y0
    return total / 2.0
