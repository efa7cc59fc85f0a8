"""Ellipsoids, spheroids and spheres.

An :class:`Ellipsoid` has semi axes ``a``, ``b`` and ``c`` along the X, Y and
Z axes of its local frame, Z being the revolution axis given at
construction.  Surface points are parametrized by the ellipsoidic
coordinates ``(theta, phi)``::

    x = a cos(phi) cos(theta)
    y = b cos(phi) sin(theta)
    z = c sin(phi)

The closest surface point to a point is found by folding the point into the
first octant, handling the points on the axes directly and otherwise running
a Newton iteration on ``(theta, phi)`` started from the intersection of the
segment center-point with the surface.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

from solid3d.errors import not_strictly_positive, zero_norm
from solid3d.frame import LocalFrame
from solid3d.line import Line
from solid3d.settings import DOUBLE_COMPARISON_EPSILON, GEOMETRY_EPSILON, SolverSettings
from solid3d.shape import FramedShape, keep_on_line
from solid3d.solvers import minimize_along_line, newton_stationary, solve_quadratic
from solid3d.vector import Vector3D

# largest Newton step on either angle
_ANGLE_STEP = math.pi / 25.0


def _check_positive(name, value):
    if not value > DOUBLE_COMPARISON_EPSILON:
        raise not_strictly_positive(name, value)
    return float(value)


class Ellipsoid(FramedShape):
    """Ellipsoid centred on ``center`` with revolution axis ``rev_axis``.

    ``x_axis`` gives the direction of the ``a`` semi axis; it is made
    orthogonal to ``rev_axis``.
    """

    def __init__(self, center: Vector3D, rev_axis: Vector3D, x_axis: Vector3D,
                 a: float, b: float, c: float, settings: SolverSettings = None):
        a = _check_positive('semi axis a', a)
        b = _check_positive('semi axis b', b)
        c = _check_positive('semi axis c', c)
        if rev_axis.norm() < GEOMETRY_EPSILON:
            raise zero_norm('revolution axis')
        if x_axis.norm() < GEOMETRY_EPSILON:
            raise zero_norm('x axis')
        super().__init__(LocalFrame(center, rev_axis, x_axis), settings)
        self._a = a
        self._b = b
        self._c = c

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------
    @property
    def center(self) -> Vector3D:
        return self._frame.origin

    @property
    def semi_a(self) -> float:
        return self._a

    @property
    def semi_b(self) -> float:
        return self._b

    @property
    def semi_c(self) -> float:
        return self._c

    @property
    def semi_principal_x(self) -> Vector3D:
        return self._frame.x_axis

    @property
    def semi_principal_y(self) -> Vector3D:
        return self._frame.y_axis

    @property
    def semi_principal_z(self) -> Vector3D:
        return self._frame.z_axis

    def _fields(self):
        return (('Center', self.center), ('Revolution axis', self._frame.z_axis),
                ('Axis a', self._frame.x_axis), ('Semi axis a', self._a),
                ('Semi axis b', self._b), ('Semi axis c', self._c))

    # ------------------------------------------------------------------
    # coordinates
    # ------------------------------------------------------------------
    def get_cartesian_coordinates(self, theta: float, phi: float) -> Tuple[float, float, float]:
        """Local cartesian coordinates of the surface point at ``(theta, phi)``."""
        cos_phi = math.cos(phi)
        return (self._a * cos_phi * math.cos(theta),
                self._b * cos_phi * math.sin(theta),
                self._c * math.sin(phi))

    def get_ellipsoidic_coordinates(self, point: Vector3D) -> Tuple[float, float]:
        """Angles ``(theta, phi)`` of a point given in the local frame."""
        x, y, z = point
        theta = math.atan2(y / self._b, x / self._a)
        phi = math.atan2(z / self._c, math.sqrt(x * x / (self._a * self._a)
                                                + y * y / (self._b * self._b)))
        return theta, phi

    def _level(self, local: Vector3D) -> float:
        x, y, z = local
        return x * x / (self._a * self._a) + y * y / (self._b * self._b) \
            + z * z / (self._c * self._c)

    def contains(self, point: Vector3D) -> bool:
        """True for points inside the ellipsoid or on its surface."""
        return self._level(self.affine_local(point)) <= 1.0 + GEOMETRY_EPSILON

    def _is_inside(self, local: Vector3D) -> bool:
        x, y, z = local
        rest = 1.0 - x * x / (self._a * self._a) - y * y / (self._b * self._b)
        if rest < 0.0:
            return False
        return abs(z) < self._c * math.sqrt(rest)

    def get_normal(self, point: Vector3D) -> Vector3D:
        """Outward unit normal at the surface point closest to ``point``."""
        local = self.affine_local(self.closest_point_to_point(point))
        gradient = Vector3D(local.x / (self._a * self._a), local.y / (self._b * self._b),
                            local.z / (self._c * self._c))
        return self.vectorial_standard(gradient.normalize())

    # ------------------------------------------------------------------
    # intersections
    # ------------------------------------------------------------------
    def get_intersection_points(self, line: Line) -> Tuple[Vector3D, ...]:
        """Crossing points, the one closest to the line origin first.

        A half line lists them from its start instead.
        """
        local = self._local_line(line)
        o = local.origin
        d = local.direction
        inv = (1.0 / (self._a * self._a), 1.0 / (self._b * self._b), 1.0 / (self._c * self._c))
        qa = sum(d[i] * d[i] * inv[i] for i in range(3))
        qb = 2.0 * sum(d[i] * o[i] * inv[i] for i in range(3))
        qc = sum(o[i] * o[i] * inv[i] for i in range(3)) - 1.0
        roots = solve_quadratic(qa, qb, qc, GEOMETRY_EPSILON)
        points = self._to_standard(local.point_at(t) for t in roots)
        points = keep_on_line(line, points)
        if math.isinf(line.min_abscissa):
            points.sort(key=lambda p: p.distance(line.origin))
        return tuple(points)

    # ------------------------------------------------------------------
    # closest points
    # ------------------------------------------------------------------
    def _surface(self, params):
        theta, phi = params
        ct, st = math.cos(theta), math.sin(theta)
        cp, sp = math.cos(phi), math.sin(phi)
        a, b, c = self._a, self._b, self._c
        s = Vector3D(a * cp * ct, b * cp * st, c * sp)
        s_t = Vector3D(-a * cp * st, b * cp * ct, 0.0)
        s_p = Vector3D(-a * sp * ct, -b * sp * st, c * cp)
        s_tt = Vector3D(-a * cp * ct, -b * cp * st, 0.0)
        s_tp = Vector3D(a * sp * st, -b * sp * ct, 0.0)
        s_pp = Vector3D(-a * cp * ct, -b * cp * st, -c * sp)
        return s, (s_t, s_p), ((s_tt, s_tp), (s_tp, s_pp))

    def _smallest_axis_point(self) -> Vector3D:
        if self._a >= self._b:
            if self._b >= self._c:
                return Vector3D(0.0, 0.0, self._c)
            return Vector3D(0.0, self._b, 0.0)
        if self._a >= self._c:
            return Vector3D(0.0, 0.0, self._c)
        return Vector3D(self._a, 0.0, 0.0)

    def _newton(self, start: Sequence[float], point: Vector3D) -> Vector3D:
        theta, phi = newton_stationary(self._surface, start, point, self._settings,
                                       (_ANGLE_STEP, _ANGLE_STEP))
        return Vector3D(*self.get_cartesian_coordinates(theta, phi))

    def _closest_first_octant(self, p: Vector3D) -> Vector3D:
        x, y, z = p
        eps = DOUBLE_COMPARISON_EPSILON
        rest = (1.0 - x * x / (self._a * self._a) - y * y / (self._b * self._b)) \
            * self._c * self._c
        inside = False
        if rest >= 0.0:
            z_surface = math.sqrt(rest)
            if abs(z - z_surface) <= eps:
                return p
            inside = z < z_surface
        on_x = abs(x) <= eps
        on_y = abs(y) <= eps
        on_z = abs(z) <= eps
        if inside:
            if on_x and on_y and on_z:
                return self._smallest_axis_point()
            start = self.get_ellipsoidic_coordinates(p * (1.0 / math.sqrt(self._level(p))))
            best = self._newton(start, p)
            # a second start near the smallest axis vertex catches points
            # where the first start sits on a stationary point
            vertex = self._smallest_axis_point()
            near = vertex + Vector3D(*(0.1 * s for s in (self._a, self._b, self._c)))
            other = self._newton(self.get_ellipsoidic_coordinates(near), p)
            return other if other.distance(p) < best.distance(p) else best
        if on_x and on_y:
            return Vector3D(0.0, 0.0, self._c)
        if on_x and on_z:
            return Vector3D(0.0, self._b, 0.0)
        if on_y and on_z:
            return Vector3D(self._a, 0.0, 0.0)
        start = self.get_ellipsoidic_coordinates(p * (1.0 / math.sqrt(self._level(p))))
        return self._newton(start, p)

    def closest_point_to_point(self, point: Vector3D) -> Vector3D:
        """Surface point closest to ``point`` (inside or outside)."""
        local = self.affine_local(point)
        signs = tuple(-1.0 if c < 0.0 else 1.0 for c in local)
        folded = Vector3D(*(s * c for s, c in zip(signs, local)))
        closest = self._closest_first_octant(folded)
        return self.affine_standard(Vector3D(*(s * c for s, c in zip(signs, closest))))

    def distance_to_point(self, point: Vector3D) -> float:
        """Distance to the surface, negative for points inside."""
        distance = self.closest_point_to_point(point).distance(point)
        if self._is_inside(self.affine_local(point)):
            return -distance
        return distance

    def _project(self, point: Vector3D) -> Vector3D:
        if self._level(self.affine_local(point)) <= 1.0:
            return point
        return self.closest_point_to_point(point)

    def closest_point_to(self, line: Line) -> Tuple[Vector3D, Vector3D]:
        """Return ``(point_on_line, point_on_ellipsoid)``.

        A crossing line gives its first intersection point twice.
        """
        points = self.get_intersection_points(line)
        if points:
            return points[0], points[0]
        return minimize_along_line(line, self._project, self._settings,
                                   start=line.abscissa(self.center),
                                   scale=max(self._a, self._b, self._c))


class Spheroid(Ellipsoid):
    """Ellipsoid of revolution with equatorial radius ``a`` and polar radius ``c``."""

    def __init__(self, center: Vector3D, axis: Vector3D, a: float, c: float,
                 settings: SolverSettings = None):
        if axis.norm() < GEOMETRY_EPSILON:
            raise zero_norm('revolution axis')
        super().__init__(center, axis, axis.orthogonal(), a, a, c, settings)

    def _fields(self):
        return (('Center', self.center), ('Revolution axis', self._frame.z_axis),
                ('Equatorial radius', self._a), ('Polar radius', self._c))


class Sphere(Spheroid):
    """Sphere of the given ``radius``."""

    def __init__(self, center: Vector3D, radius: float, settings: SolverSettings = None):
        super().__init__(center, Vector3D.PLUS_K, radius, radius, settings)

    @property
    def radius(self) -> float:
        return self._a

    def _fields(self):
        return (('Center', self.center), ('Radius', self._a))

    def closest_point_to_point(self, point: Vector3D) -> Vector3D:
        delta = point - self.center
        if delta.norm() < DOUBLE_COMPARISON_EPSILON:
            return self.center + Vector3D.PLUS_K * self._a
        return self.center.add(self._a / delta.norm(), delta)

    def distance_to_point(self, point: Vector3D) -> float:
        return point.distance(self.center) - self._a
