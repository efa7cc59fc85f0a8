"""Oriented planes in 3D space.

A :class:`Plane` is described by a unit normal ``w`` and an origin offset:
the signed offset of a point ``p`` is ``p . w + origin_offset``, positive on
the side the normal points to.  Each plane also carries an in-plane frame
``(u, v)`` such that ``(u, v, w)`` is direct, used to map points to and from
2D plane coordinates.

Planes double as the cut hyperplanes of the BSP trees in
:mod:`solid3d.bsp`, which is why they know how to compare orientations and
offsets with one another.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

from solid3d.errors import IllegalArgumentError, zero_norm
from solid3d.line import Line
from solid3d.settings import GEOMETRY_EPSILON
from solid3d.vector import Vector3D


class Plane:
    """Oriented plane with an in-plane 2D frame."""

    __slots__ = ('_origin_offset', '_origin', '_u', '_v', '_w')

    def __init__(self, normal: Vector3D, origin_offset: float = 0.0):
        norm = normal.norm()
        if norm < GEOMETRY_EPSILON:
            raise zero_norm('plane normal')
        self._w = normal / norm
        self._origin_offset = float(origin_offset)
        self._set_frame(self._w.orthogonal())

    def _set_frame(self, u: Vector3D, v: Optional[Vector3D] = None) -> None:
        self._origin = self._w * -self._origin_offset
        self._u = u
        self._v = v if v is not None else self._w.cross(u)

    @classmethod
    def _with_frame(cls, origin_offset, u, v, w) -> "Plane":
        plane = cls.__new__(cls)
        plane._w = w
        plane._origin_offset = origin_offset
        plane._set_frame(u, v)
        return plane

    @classmethod
    def from_point_normal(cls, point: Vector3D, normal: Vector3D) -> "Plane":
        plane = cls(normal)
        plane._origin_offset = -point.dot(plane.normal)
        plane._set_frame(plane.u, plane.v)
        return plane

    @classmethod
    def from_points(cls, p1: Vector3D, p2: Vector3D, p3: Vector3D) -> "Plane":
        """Plane through three points, oriented by ``(p2 - p1) x (p3 - p1)``."""
        normal = (p2 - p1).cross(p3 - p1)
        if normal.norm() < GEOMETRY_EPSILON:
            raise IllegalArgumentError('points are aligned, they do not define a plane',
                                       {'points': [str(p1), str(p2), str(p3)]})
        return cls.from_point_normal(p1, normal)

    @classmethod
    def from_point_and_line(cls, point: Vector3D, line: Line) -> "Plane":
        """Plane containing ``line`` and ``point``."""
        if line.distance(point) < GEOMETRY_EPSILON:
            raise IllegalArgumentError('point lies on the line, the plane is undefined',
                                       {'point': str(point)})
        return cls.from_points(line.origin, line.origin + line.direction, point)

    # ------------------------------------------------------------------
    # frame
    # ------------------------------------------------------------------
    @property
    def origin(self) -> Vector3D:
        """Projection of the coordinate origin on the plane."""
        return self._origin

    @property
    def u(self) -> Vector3D:
        return self._u

    @property
    def v(self) -> Vector3D:
        return self._v

    @property
    def normal(self) -> Vector3D:
        return self._w

    @property
    def offset(self) -> float:
        return self._origin_offset

    def get_offset(self, point: Vector3D) -> float:
        """Signed distance of ``point``, positive on the normal side."""
        return point.dot(self._w) + self._origin_offset

    def get_offset_plane(self, plane: "Plane") -> float:
        """Offset of a parallel ``plane`` with respect to this one."""
        if self.same_orientation_as(plane):
            return self._origin_offset - plane.offset
        return self._origin_offset + plane.offset

    def same_orientation_as(self, plane: "Plane") -> bool:
        return self._w.dot(plane.normal) > 0.0

    def to_subspace(self, point: Vector3D) -> Tuple[float, float]:
        return point.dot(self._u), point.dot(self._v)

    def to_space(self, xy) -> Vector3D:
        return Vector3D.linear(xy[0], self._u, xy[1], self._v, -self._origin_offset, self._w)

    def get_point_at(self, xy, offset: float) -> Vector3D:
        return Vector3D.linear(xy[0], self._u, xy[1], self._v,
                               offset - self._origin_offset, self._w)

    def contains(self, point: Vector3D) -> bool:
        return abs(self.get_offset(point)) < GEOMETRY_EPSILON

    def revert(self) -> "Plane":
        """Same points, opposite normal (u and v are swapped)."""
        return Plane._with_frame(-self._origin_offset, self._v, self._u, -self._w)

    def is_similar_to(self, plane: "Plane") -> bool:
        angle = Vector3D.angle(self._w, plane.normal)
        return (angle < GEOMETRY_EPSILON
                and abs(self._origin_offset - plane.offset) < GEOMETRY_EPSILON) \
            or (angle > math.pi - GEOMETRY_EPSILON
                and abs(self._origin_offset + plane.offset) < GEOMETRY_EPSILON)

    def rotate(self, center: Vector3D, rotation) -> "Plane":
        """Rotate the plane around ``center``."""
        delta = self._origin - center
        w = rotation.apply_to(self._w)
        point = center + rotation.apply_to(delta)
        return Plane._with_frame(-point.dot(w), rotation.apply_to(self._u),
                                 rotation.apply_to(self._v), w)

    def translate(self, translation: Vector3D) -> "Plane":
        point = self._origin + translation
        return Plane._with_frame(-point.dot(self._w), self._u, self._v, self._w)

    # ------------------------------------------------------------------
    # intersections
    # ------------------------------------------------------------------
    def intersection_line(self, line: Line) -> Optional[Vector3D]:
        """Intersection point with the supporting line of ``line``, None if parallel."""
        direction = line.direction
        dot = self._w.dot(direction)
        if abs(dot) < GEOMETRY_EPSILON:
            return None
        point = line.origin
        k = -(self._origin_offset + self._w.dot(point)) / dot
        return point.add(k, direction)

    def intersection_plane(self, other: "Plane") -> Optional[Line]:
        direction = self._w.cross(other.normal)
        if direction.norm() < GEOMETRY_EPSILON:
            return None
        point = Plane.intersection_planes(self, other, Plane(direction))
        return Line(point, point + direction)

    @staticmethod
    def intersection_planes(plane1: "Plane", plane2: "Plane",
                            plane3: "Plane") -> Optional[Vector3D]:
        """Common point of three planes, None if they do not meet in a single point."""
        a1, b1, c1 = plane1.normal
        d1 = plane1.offset
        a2, b2, c2 = plane2.normal
        d2 = plane2.offset
        a3, b3, c3 = plane3.normal
        d3 = plane3.offset

        m23 = b2 * c3 - b3 * c2
        m31 = c2 * a3 - c3 * a2
        m12 = a2 * b3 - a3 * b2
        determinant = a1 * m23 + b1 * m31 + c1 * m12
        if abs(determinant) < GEOMETRY_EPSILON:
            return None

        r = 1.0 / determinant
        return Vector3D((-m23 * d1 - (c1 * b3 - c3 * b1) * d2 - (c2 * b1 - c1 * b2) * d3) * r,
                        (-m31 * d1 - (c3 * a1 - c1 * a3) * d2 - (c1 * a2 - c2 * a1) * d3) * r,
                        (-m12 * d1 - (b1 * a3 - b3 * a1) * d2 - (b2 * a1 - b1 * a2) * d3) * r)

    # ------------------------------------------------------------------
    # plane vs line and point
    # ------------------------------------------------------------------
    def intersects(self, line: Line) -> bool:
        return bool(self.get_intersection_points(line))

    def get_intersection_points(self, line: Line) -> Tuple[Vector3D, ...]:
        """Crossing point of ``line``; a line lying in the plane gives its origin point."""
        point = self.intersection_line(line)
        if point is None:
            if self.contains(line.origin):
                if math.isinf(line.min_abscissa):
                    return (line.origin,)
                return (line.point_of_min_abscissa(),)
            return ()
        if not line.is_valid_abscissa(line.abscissa(point)):
            return ()
        return (point,)

    def distance_to(self, point: Vector3D) -> float:
        return abs(self.get_offset(point))

    def distance_to_line(self, line: Line) -> float:
        on_line, on_plane = self.closest_point_to(line)
        return on_line.distance(on_plane)

    def closest_point_to_point(self, point: Vector3D) -> Vector3D:
        return point.subtract(self.get_offset(point), self._w)

    def closest_point_to(self, line: Line) -> Tuple[Vector3D, Vector3D]:
        """Return ``(point_on_line, point_on_plane)``."""
        points = self.get_intersection_points(line)
        if points:
            return points[0], points[0]
        if math.isinf(line.min_abscissa):
            # parallel to the plane
            start = line.origin
        else:
            start = line.point_of_min_abscissa()
        return start, self.closest_point_to_point(start)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Plane):
            return NotImplemented
        return self._w == other.normal and self._origin_offset == other.offset

    def __hash__(self) -> int:
        return hash((self._w, self._origin_offset))

    def __repr__(self) -> str:
        return f"Plane(normal={self._w!r}, origin_offset={self._origin_offset!r})"

    def __str__(self) -> str:
        return f"Plane{{Origin{self._origin},Normal{self._w}}}"
