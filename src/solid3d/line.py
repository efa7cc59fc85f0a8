"""Oriented lines in 3D space.

A :class:`Line` is stored as the point of the line closest to the coordinate
origin plus a unit direction.  Points along the line are addressed by their
abscissa, the signed distance from that origin point.  A line may carry a
minimum abscissa, turning it into a half line starting at
:meth:`Line.point_of_min_abscissa`.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Tuple

from solid3d.errors import IllegalArgumentError
from solid3d.settings import GEOMETRY_EPSILON
from solid3d.vector import Vector3D

# below this squared sine two directions are considered parallel
_PARALLEL_EPSILON = 2.220446049250313e-16


class Line:
    """Line through two points, optionally limited to abscissas >= ``min_abscissa``."""

    __slots__ = ('_origin', '_direction', '_min_abscissa')

    def __init__(self, p1: Vector3D, p2: Vector3D, min_abscissa: float = -math.inf):
        delta = p2 - p1
        norm_sq = delta.norm_sq()
        if norm_sq == 0.0:
            raise IllegalArgumentError('a line needs two distinct points',
                                       {'p1': str(p1), 'p2': str(p2)})
        self._direction = delta / math.sqrt(norm_sq)
        self._origin = Vector3D.linear(1.0, p1, -p1.dot(delta) / norm_sq, delta)
        self._min_abscissa = float(min_abscissa)

    @classmethod
    def from_direction(cls, origin: Vector3D, direction: Vector3D,
                       min_abscissa: float = -math.inf) -> "Line":
        """Line through ``origin`` along ``direction``.

        ``min_abscissa`` is measured from ``origin`` along ``direction``, so
        ``min_abscissa=0`` gives the half line starting at ``origin``.
        """
        if direction.norm() < GEOMETRY_EPSILON:
            raise IllegalArgumentError('line direction has zero norm', {'direction': str(direction)})
        line = cls(origin, origin + direction)
        if min_abscissa != -math.inf:
            line._min_abscissa = line.abscissa(origin) + min_abscissa
        return line

    @property
    def origin(self) -> Vector3D:
        """Point of the line closest to the coordinate origin."""
        return self._origin

    @property
    def direction(self) -> Vector3D:
        return self._direction

    @property
    def min_abscissa(self) -> float:
        return self._min_abscissa

    def abscissa(self, point: Vector3D) -> float:
        return (point - self._origin).dot(self._direction)

    def point_at(self, abscissa: float) -> Vector3D:
        return self._origin.add(abscissa, self._direction)

    def to_subspace(self, point: Vector3D) -> float:
        return self.abscissa(point)

    def to_space(self, abscissa: float) -> Vector3D:
        return self.point_at(abscissa)

    def point_of_min_abscissa(self, points: Optional[Iterable[Vector3D]] = None):
        """Starting point of the line, or the candidate with the lowest abscissa.

        Without arguments, return the point at :attr:`min_abscissa` (which is
        at infinity for a full line).  With ``points``, return the one whose
        abscissa is the smallest, or ``None`` when there is none.
        """
        if points is None:
            if math.isinf(self._min_abscissa):
                return Vector3D(*(-math.inf * c if c != 0.0 else 0.0
                                  for c in self._direction))
            return self.point_at(self._min_abscissa)
        best = None
        best_abscissa = math.inf
        for p in points:
            a = self.abscissa(p)
            if a < best_abscissa:
                best = p
                best_abscissa = a
        return best

    def is_valid_abscissa(self, abscissa: float) -> bool:
        return abscissa >= self._min_abscissa - GEOMETRY_EPSILON

    def revert(self) -> "Line":
        """Same points, opposite direction, no minimum abscissa."""
        return Line(self._origin, self._origin - self._direction)

    def is_similar_to(self, line: "Line") -> bool:
        angle = Vector3D.angle(self._direction, line.direction)
        return (angle < GEOMETRY_EPSILON or angle > math.pi - GEOMETRY_EPSILON) \
            and self.contains(line.origin)

    def contains(self, point: Vector3D) -> bool:
        return self.distance(point) < GEOMETRY_EPSILON \
            and self.is_valid_abscissa(self.abscissa(point))

    def distance(self, point: Vector3D) -> float:
        d = point - self._origin
        n = d.subtract(d.dot(self._direction), self._direction)
        return n.norm()

    def distance_to_line(self, line: "Line") -> float:
        """Distance between the supporting lines, ignoring minimum abscissas."""
        normal = self._direction.cross(line.direction)
        n = normal.norm()
        if n < _PARALLEL_EPSILON:
            return self.distance(line.origin)
        offset = (line.origin - self._origin).dot(normal) / n
        return abs(offset)

    def closest_point(self, line: "Line") -> Vector3D:
        """Point of the supporting line closest to ``line``."""
        cos = self._direction.dot(line.direction)
        n = 1.0 - cos * cos
        if n < _PARALLEL_EPSILON:
            return self._origin
        delta0 = line.origin - self._origin
        a = delta0.dot(self._direction)
        b = delta0.dot(line.direction)
        return self._origin.add((a - b * cos) / n, self._direction)

    def intersection(self, line: "Line") -> Optional[Vector3D]:
        closest = self.closest_point(line)
        return closest if line.contains(closest) else None

    def project(self, point: Vector3D) -> Vector3D:
        """Point of the line closest to ``point``, respecting the minimum abscissa."""
        return self.point_at(max(self.abscissa(point), self._min_abscissa))

    # ------------------------------------------------------------------
    # line vs line, in the same terms as the solid shapes
    # ------------------------------------------------------------------
    def closest_point_to(self, line: "Line") -> Tuple[Vector3D, Vector3D]:
        """Return ``(point_on_line, point_on_self)`` realizing the distance."""
        cos = self._direction.dot(line.direction)
        if 1.0 - cos * cos < _PARALLEL_EPSILON:
            start = self._origin if math.isinf(self._min_abscissa) \
                else self.point_of_min_abscissa()
            on_line = line.project(start)
            return on_line, self.project(on_line)
        on_self = self.closest_point(line)
        on_line = line.closest_point(self)
        if not self.is_valid_abscissa(self.abscissa(on_self)):
            on_self = self.point_of_min_abscissa()
            on_line = line.project(on_self)
            on_self = self.project(on_line)
        elif not line.is_valid_abscissa(line.abscissa(on_line)):
            on_line = line.point_of_min_abscissa()
            on_self = self.project(on_line)
            on_line = line.project(on_self)
        return on_line, on_self

    def distance_to(self, line: "Line") -> float:
        on_line, on_self = self.closest_point_to(line)
        return on_line.distance(on_self)

    def intersects(self, line: "Line") -> bool:
        return self.distance_to(line) < GEOMETRY_EPSILON

    def get_intersection_points(self, line: "Line") -> Tuple[Vector3D, ...]:
        if self.is_similar_to(line):
            return (self._origin,)
        on_line, on_self = self.closest_point_to(line)
        if on_line.distance(on_self) < GEOMETRY_EPSILON:
            return (on_self,)
        return ()

    def __eq__(self, other) -> bool:
        if not isinstance(other, Line):
            return NotImplemented
        return self._origin == other.origin and self._direction == other.direction \
            and self._min_abscissa == other.min_abscissa

    def __hash__(self) -> int:
        return hash((self._origin, self._direction, self._min_abscissa))

    def __repr__(self) -> str:
        return f"Line(origin={self._origin!r}, direction={self._direction!r}, " \
               f"min_abscissa={self._min_abscissa!r})"

    def __str__(self) -> str:
        return f"Line{{Origin{self._origin},Direction{self._direction}," \
               f"Minimal abscissa{{{self._min_abscissa!r}}}}}"
