"""Elliptic and circular cylinders, infinite or bounded by two end caps.

All cylinders live in a :class:`~solid3d.frame.LocalFrame` whose Z axis is
the cylinder axis and whose X axis carries the ``a`` semi axis.  The side
surface is ``x^2/a^2 + y^2/b^2 = 1``; bounded cylinders are centred on their
origin and extend ``height / 2`` on both sides of it.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import math
from typing import Tuple

from solid3d.errors import IllegalArgumentError, not_strictly_positive
from solid3d.frame import LocalFrame
from solid3d.line import Line
from solid3d.settings import (DEFAULT_SETTINGS, DOUBLE_COMPARISON_EPSILON,
                              GEOMETRY_EPSILON, SolverSettings)
from solid3d.shape import FramedShape, keep_on_line
from solid3d.solvers import minimize_along_line, newton_stationary, solve_quadratic
from solid3d.vector import Vector3D

# largest Newton step on the ellipse angle
_ANGLE_STEP = math.pi / 25.0


def check_positive(name: str, value: float) -> float:
    """Return ``value`` as a float, raising if it is not strictly positive."""
    if not value > 0.0:
        raise not_strictly_positive(name, value)
    return float(value)


# ----------------------------------------------------------------------
# planar ellipse helpers, also used for the cone bases
# ----------------------------------------------------------------------

def _ellipse_curve(a, b):
    def surface(params):
        theta = params[0]
        ct, st = math.cos(theta), math.sin(theta)
        return (Vector3D(a * ct, b * st, 0.0),
                (Vector3D(-a * st, b * ct, 0.0),),
                ((Vector3D(-a * ct, -b * st, 0.0),),))
    return surface


def closest_point_on_ellipse(a: float, b: float, x: float, y: float,
                             settings: SolverSettings = DEFAULT_SETTINGS) -> Tuple[float, float]:
    """Point of the ellipse ``x^2/a^2 + y^2/b^2 = 1`` closest to ``(x, y)``.

    The point is folded into the first quadrant.  Points on the ellipse,
    on an axis outside of it, or at its center are answered directly; the
    others go through a Newton iteration on the ellipse angle.
    """
    sx = -1.0 if x < 0.0 else 1.0
    sy = -1.0 if y < 0.0 else 1.0
    x = abs(x)
    y = abs(y)
    eps = DOUBLE_COMPARISON_EPSILON
    level = x * x / (a * a) + y * y / (b * b) - 1.0
    if abs(level) <= eps:
        return sx * x, sy * y

    target = Vector3D(x, y, 0.0)
    curve = _ellipse_curve(a, b)
    theta0 = math.atan2(y / b, x / a)
    if level > 0.0:
        if y <= eps:
            return sx * a, 0.0
        if x <= eps:
            return 0.0, sy * b
        starts = (theta0,)
    else:
        if x <= eps and y <= eps:
            return (sx * a, 0.0) if a <= b else (0.0, sy * b)
        # inside, the stationary points on the axes may trap a single start
        margin = 0.1
        starts = (min(max(theta0, margin), 0.5 * math.pi - margin),
                  margin, 0.5 * math.pi - margin)

    best = None
    best_distance = math.inf
    for start in starts:
        theta = newton_stationary(curve, (start,), target, settings, (_ANGLE_STEP,))[0]
        candidate = (a * math.cos(theta), b * math.sin(theta))
        distance = math.hypot(candidate[0] - x, candidate[1] - y)
        if distance < best_distance:
            best = candidate
            best_distance = distance
    return sx * abs(best[0]), sy * abs(best[1])


def project_on_ellipse_disk(a: float, b: float, x: float, y: float,
                            settings: SolverSettings = DEFAULT_SETTINGS) -> Tuple[float, float]:
    """Point of the filled ellipse closest to ``(x, y)``."""
    if x * x / (a * a) + y * y / (b * b) <= 1.0:
        return x, y
    return closest_point_on_ellipse(a, b, x, y, settings)


def side_roots(a: float, b: float, origin: Vector3D, direction: Vector3D) -> Tuple[float, ...]:
    """Parameters where the local line ``origin + t direction`` meets the side."""
    qa = direction.x * direction.x / (a * a) + direction.y * direction.y / (b * b)
    qb = 2.0 * (direction.x * origin.x / (a * a) + direction.y * origin.y / (b * b))
    qc = origin.x * origin.x / (a * a) + origin.y * origin.y / (b * b) - 1.0
    eps = DOUBLE_COMPARISON_EPSILON
    if abs(qa) <= eps and abs(qb) <= eps:
        # parallel to the axis: on the side or away from it
        return (0.0,) if abs(qc) <= eps else ()
    return solve_quadratic(qa, qb, qc, GEOMETRY_EPSILON)


class InfiniteEllipticCylinder(FramedShape):
    """Cylinder of elliptic section extending to infinity along ``direction``."""

    def __init__(self, origin: Vector3D, direction: Vector3D, u_vector: Vector3D,
                 a: float, b: float, settings: SolverSettings = None):
        frame = LocalFrame(origin, direction, u_vector)
        self._a = check_positive('semi axis a', a)
        self._b = check_positive('semi axis b', b)
        super().__init__(frame, settings)

    @property
    def origin(self) -> Vector3D:
        return self._frame.origin

    @property
    def direction(self) -> Vector3D:
        return self._frame.z_axis

    @property
    def semi_axis_a(self) -> float:
        return self._a

    @property
    def semi_axis_b(self) -> float:
        return self._b

    def get_u(self) -> Vector3D:
        return self._frame.x_axis

    def get_v(self) -> Vector3D:
        return self._frame.y_axis

    def _fields(self):
        return (('Origin', self.origin), ('Direction', self.direction),
                ('U vector', self.get_u()), ('Radius A', self._a), ('Radius B', self._b))

    def _level(self, local: Vector3D) -> float:
        return local.x * local.x / (self._a * self._a) + local.y * local.y / (self._b * self._b)

    def contains(self, point: Vector3D) -> bool:
        return self._level(self.affine_local(point)) <= 1.0 + GEOMETRY_EPSILON

    def get_intersection_points(self, line: Line) -> Tuple[Vector3D, ...]:
        local = self._local_line(line)
        roots = side_roots(self._a, self._b, local.origin, local.direction)
        points = self._to_standard(local.point_at(t) for t in roots)
        return tuple(keep_on_line(line, points))

    def _side_point(self, local: Vector3D) -> Vector3D:
        x, y = closest_point_on_ellipse(self._a, self._b, local.x, local.y, self._settings)
        return Vector3D(x, y, local.z)

    def closest_point_to_point(self, point: Vector3D) -> Vector3D:
        """Point of the side surface closest to ``point``."""
        return self.affine_standard(self._side_point(self.affine_local(point)))

    def distance_to_point(self, point: Vector3D) -> float:
        """Distance to the side surface, negative inside."""
        distance = self.closest_point_to_point(point).distance(point)
        if self._level(self.affine_local(point)) < 1.0:
            return -distance
        return distance

    def get_normal(self, point: Vector3D) -> Vector3D:
        """Outward unit normal at the side point closest to ``point``."""
        local = self._side_point(self.affine_local(point))
        gradient = Vector3D(local.x / (self._a * self._a), local.y / (self._b * self._b), 0.0)
        return self.vectorial_standard(gradient.normalize())

    def _project(self, point: Vector3D) -> Vector3D:
        if self._level(self.affine_local(point)) <= 1.0:
            return point
        return self.closest_point_to_point(point)

    def closest_point_to(self, line: Line) -> Tuple[Vector3D, Vector3D]:
        """Return ``(point_on_line, point_on_cylinder)``."""
        points = self.get_intersection_points(line)
        if points:
            return points[0], points[0]
        if line.direction.cross(self.direction).norm() <= GEOMETRY_EPSILON:
            # every point of the line is at the same distance
            on_line = line.project(self.origin)
            return on_line, self.closest_point_to_point(on_line)
        return minimize_along_line(line, self._project, self._settings,
                                   start=line.abscissa(self.origin),
                                   scale=max(self._a, self._b))


class InfiniteRightCircularCylinder(InfiniteEllipticCylinder):
    """Infinite cylinder of circular section."""

    def __init__(self, origin: Vector3D, direction: Vector3D, radius: float,
                 settings: SolverSettings = None):
        if direction.norm() < GEOMETRY_EPSILON:
            raise IllegalArgumentError('cylinder direction has a zero norm',
                                       {'direction': str(direction)})
        super().__init__(origin, direction, direction.orthogonal(), radius, radius, settings)

    @classmethod
    def from_axis(cls, axis: Line, radius: float, settings: SolverSettings = None):
        return cls(axis.origin, axis.direction, radius, settings)

    @property
    def radius(self) -> float:
        return self._a

    def _fields(self):
        return (('Origin', self.origin), ('Direction', self.direction), ('Radius', self._a))

    def _side_point(self, local: Vector3D) -> Vector3D:
        r = math.hypot(local.x, local.y)
        if r < DOUBLE_COMPARISON_EPSILON:
            return Vector3D(self._a, 0.0, local.z)
        return Vector3D(local.x * self._a / r, local.y * self._a / r, local.z)


class EllipticCylinder(InfiniteEllipticCylinder):
    """Elliptic cylinder of total ``height`` centred on ``origin``."""

    def __init__(self, origin: Vector3D, direction: Vector3D, u_vector: Vector3D,
                 a: float, b: float, height: float, settings: SolverSettings = None):
        super().__init__(origin, direction, u_vector, a, b, settings)
        self._height = check_positive('height', height)

    @property
    def height(self) -> float:
        return self._height

    def _fields(self):
        return tuple(super()._fields()) + (('Height', self._height),)

    def _inside(self, local: Vector3D) -> bool:
        return self._level(local) < 1.0 and abs(local.z) < 0.5 * self._height

    def contains(self, point: Vector3D) -> bool:
        local = self.affine_local(point)
        return self._level(local) <= 1.0 + GEOMETRY_EPSILON \
            and abs(local.z) <= 0.5 * self._height + GEOMETRY_EPSILON

    def get_intersection_points(self, line: Line) -> Tuple[Vector3D, ...]:
        """Side crossings first, then the top and bottom caps.

        A line lying on the side surface gives the two rim points only.
        """
        local = self._local_line(line)
        o, d = local.origin, local.direction
        half = 0.5 * self._height
        candidates = []
        eps = DOUBLE_COMPARISON_EPSILON
        if abs(d.x) > eps or abs(d.y) > eps:
            for t in side_roots(self._a, self._b, o, d):
                p = local.point_at(t)
                if abs(p.z) <= half + GEOMETRY_EPSILON:
                    candidates.append(p)
        if abs(d.z) > DOUBLE_COMPARISON_EPSILON:
            for z in (half, -half):
                p = o.add((z - o.z) / d.z, d)
                if self._level(p) <= 1.0 + GEOMETRY_EPSILON:
                    candidates.append(p)
        return tuple(keep_on_line(line, self._to_standard(candidates)))

    def _project_local(self, local: Vector3D) -> Vector3D:
        x, y = project_on_ellipse_disk(self._a, self._b, local.x, local.y, self._settings)
        half = 0.5 * self._height
        return Vector3D(x, y, min(max(local.z, -half), half))

    def closest_point_to_point(self, point: Vector3D) -> Vector3D:
        """Point of the cylinder surface (side or caps) closest to ``point``."""
        local = self.affine_local(point)
        if not self._inside(local):
            return self.affine_standard(self._project_local(local))
        half = 0.5 * self._height
        candidates = (self._side_point(local),
                      Vector3D(local.x, local.y, half),
                      Vector3D(local.x, local.y, -half))
        best = min(candidates, key=local.distance)
        return self.affine_standard(best)

    def distance_to_point(self, point: Vector3D) -> float:
        """Distance to the surface, negative inside."""
        distance = self.closest_point_to_point(point).distance(point)
        if self._inside(self.affine_local(point)):
            return -distance
        return distance

    def get_normal(self, point: Vector3D) -> Vector3D:
        """Outward unit normal at the surface point closest to ``point``."""
        local = self.affine_local(self.closest_point_to_point(point))
        if self._level(local) < 1.0 - GEOMETRY_EPSILON:
            # on a cap
            return self.direction if local.z > 0.0 else -self.direction
        return super().get_normal(point)

    def _project(self, point: Vector3D) -> Vector3D:
        return self.affine_standard(self._project_local(self.affine_local(point)))

    def closest_point_to(self, line: Line) -> Tuple[Vector3D, Vector3D]:
        """Return ``(point_on_line, point_on_cylinder)``."""
        points = self.get_intersection_points(line)
        if points:
            return points[0], points[0]
        return minimize_along_line(line, self._project, self._settings,
                                   start=line.abscissa(self.origin),
                                   scale=max(self._a, self._b, self._height))


class RightCircularCylinder(EllipticCylinder):
    """Cylinder of circular section, total ``height``, centred on ``origin``."""

    def __init__(self, origin: Vector3D, direction: Vector3D, radius: float, height: float,
                 settings: SolverSettings = None):
        if direction.norm() < GEOMETRY_EPSILON:
            raise IllegalArgumentError('cylinder direction has a zero norm',
                                       {'direction': str(direction)})
        super().__init__(origin, direction, direction.orthogonal(), radius, radius, height,
                         settings)

    @classmethod
    def from_axis(cls, axis: Line, radius: float, height: float,
                  settings: SolverSettings = None):
        return cls(axis.origin, axis.direction, radius, height, settings)

    @property
    def radius(self) -> float:
        return self._a

    @property
    def base_surface(self) -> float:
        return math.pi * self._a * self._a

    @property
    def transversal_surface(self) -> float:
        """Area of the cylinder section by a plane containing its axis."""
        return 2.0 * self._a * self._height

    def _fields(self):
        return (('Origin', self.origin), ('Direction', self.direction),
                ('Radius', self._a), ('Height', self._height))

    def _side_point(self, local: Vector3D) -> Vector3D:
        r = math.hypot(local.x, local.y)
        if r < DOUBLE_COMPARISON_EPSILON:
            return Vector3D(self._a, 0.0, local.z)
        return Vector3D(local.x * self._a / r, local.y * self._a / r, local.z)

    def _project_local(self, local: Vector3D) -> Vector3D:
        r = math.hypot(local.x, local.y)
        scale = min(1.0, self._a / r) if r > 0.0 else 1.0
        half = 0.5 * self._height
        return Vector3D(local.x * scale, local.y * scale, min(max(local.z, -half), half))
