"""Planar elliptic plates.

An :class:`Ellipse` is the filled ellipse of semi axes ``radius_a`` along
``u`` and ``radius_b`` along ``v`` in the plane through ``center`` orthogonal
to ``normal``.  It is a degenerate solid: lines cross it at most once and
every point of space is at a nonnegative distance from it.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

from typing import Tuple

from solid3d.cylinders import check_positive, project_on_ellipse_disk
from solid3d.frame import LocalFrame
from solid3d.line import Line
from solid3d.settings import GEOMETRY_EPSILON, SolverSettings
from solid3d.shape import FramedShape, keep_on_line
from solid3d.solvers import minimize_along_line
from solid3d.vector import Vector3D


class Ellipse(FramedShape):
    """Filled ellipse centred on ``center``.

    ``u_vector`` is made orthogonal to ``normal`` to give the direction of
    the ``radius_a`` semi axis; ``v = normal x u``.
    """

    def __init__(self, center: Vector3D, normal: Vector3D, u_vector: Vector3D,
                 radius_a: float, radius_b: float, settings: SolverSettings = None):
        frame = LocalFrame(center, normal, u_vector)
        self._a = check_positive('radius a', radius_a)
        self._b = check_positive('radius b', radius_b)
        super().__init__(frame, settings)

    @property
    def center(self) -> Vector3D:
        return self._frame.origin

    @property
    def normal(self) -> Vector3D:
        return self._frame.z_axis

    @property
    def radius_a(self) -> float:
        return self._a

    @property
    def radius_b(self) -> float:
        return self._b

    def get_u(self) -> Vector3D:
        return self._frame.x_axis

    def get_v(self) -> Vector3D:
        return self._frame.y_axis

    def _fields(self):
        return (('Center', self.center), ('Normal', self.normal), ('U vector', self.get_u()),
                ('Radius A', self._a), ('Radius B', self._b))

    def _level(self, local: Vector3D) -> float:
        return local.x * local.x / (self._a * self._a) + local.y * local.y / (self._b * self._b)

    def contains(self, point: Vector3D) -> bool:
        local = self.affine_local(point)
        return abs(local.z) <= GEOMETRY_EPSILON and self._level(local) <= 1.0 + GEOMETRY_EPSILON

    def get_intersection_points(self, line: Line) -> Tuple[Vector3D, ...]:
        """The crossing point with the plate, none for a line parallel to its plane."""
        local = self._local_line(line)
        o, d = local.origin, local.direction
        if abs(d.z) <= GEOMETRY_EPSILON:
            return ()
        p = o.add(-o.z / d.z, d)
        if self._level(p) > 1.0 + GEOMETRY_EPSILON:
            return ()
        return tuple(keep_on_line(line, self._to_standard((Vector3D(p.x, p.y, 0.0),))))

    def closest_point_to_point(self, point: Vector3D) -> Vector3D:
        """Plate point closest to ``point``, on the rim when its projection falls outside."""
        local = self.affine_local(point)
        x, y = project_on_ellipse_disk(self._a, self._b, local.x, local.y, self._settings)
        return self.affine_standard(Vector3D(x, y, 0.0))

    def distance_to_point(self, point: Vector3D) -> float:
        return self.closest_point_to_point(point).distance(point)

    def closest_point_to(self, line: Line) -> Tuple[Vector3D, Vector3D]:
        """Return ``(point_on_line, point_on_plate)``."""
        points = self.get_intersection_points(line)
        if points:
            return points[0], points[0]
        return minimize_along_line(line, self.closest_point_to_point, self._settings,
                                   start=line.abscissa(self.center),
                                   scale=max(self._a, self._b))


class Circle(Ellipse):
    """Disk of the given ``radius``."""

    def __init__(self, center: Vector3D, normal: Vector3D, radius: float,
                 settings: SolverSettings = None):
        # a zero normal is rejected by the frame
        u = normal.orthogonal() if normal.norm() >= GEOMETRY_EPSILON else normal
        super().__init__(center, normal, u, radius, radius, settings)

    @property
    def radius(self) -> float:
        return self._a

    def _fields(self):
        return (('Center', self.center), ('Normal', self.normal), ('Radius', self._a))

    def closest_point_to_point(self, point: Vector3D) -> Vector3D:
        local = self.affine_local(point)
        r = local.x * local.x + local.y * local.y
        if r <= self._a * self._a:
            return self.affine_standard(Vector3D(local.x, local.y, 0.0))
        scale = self._a / r ** 0.5
        return self.affine_standard(Vector3D(local.x * scale, local.y * scale, 0.0))
