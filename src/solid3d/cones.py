"""Elliptic, circular and rectangular cones.

Cones have their apex at ``origin`` and open along ``direction``; only the
nappe on the positive side of the apex belongs to the shape.  In the local
frame of an elliptic cone the side surface is::

    x^2 / tan(alpha)^2 + y^2 / tan(beta)^2 = z^2,  z >= 0

and surface points are parametrized by ``(theta, h)``::

    x = h tan(alpha) cos(theta)
    y = h tan(beta) sin(theta)
    z = h

Bounded cones stop at a base ellipse of height ``height``.  The rectangle
cone is the pyramid bounded by the four planes ``x = +-z tan(alpha)`` and
``y = +-z tan(beta)``.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from solid3d.cylinders import check_positive, project_on_ellipse_disk
from solid3d.errors import IllegalArgumentError
from solid3d.frame import LocalFrame
from solid3d.line import Line
from solid3d.plane import Plane
from solid3d.settings import (DEFAULT_SETTINGS, DOUBLE_COMPARISON_EPSILON, GEOMETRY_EPSILON,
                              SolverSettings)
from solid3d.shape import FramedShape, keep_on_line
from solid3d.solvers import bisect_increasing, minimize_along_line, solve_quadratic
from solid3d.vector import Vector3D

# generatrix angles sampled over a quarter turn before refining
_SAMPLES = 90


def _check_half_angle(name, value):
    if not 0.0 < value < 0.5 * math.pi:
        raise IllegalArgumentError(f"{name} must be in (0, pi/2), got {value}",
                                   {'name': name, 'value': value})
    return float(value)


def _meridian_foot(r, z, t, h_max=math.inf):
    """Foot of ``(r, z)`` on the generatrix ``r = z t`` of a meridian half plane.

    Returns ``(r, z)`` of the foot, the apex when the foot would fall on the
    other nappe and the rim when it would pass ``h_max``.
    """
    h = min((r * t + z) / (1.0 + t * t), h_max)
    if h <= 0.0:
        return 0.0, 0.0
    return h * t, h


def _generatrix(ta, tb, theta):
    # exact on the two axis planes
    if theta <= 0.0:
        return Vector3D(ta, 0.0, 1.0)
    if theta >= 0.5 * math.pi:
        return Vector3D(0.0, tb, 1.0)
    return Vector3D(ta * math.cos(theta), tb * math.sin(theta), 1.0)


def closest_point_on_nappe(ta: float, tb: float, p: Vector3D, h_max: float = math.inf,
                           settings: SolverSettings = DEFAULT_SETTINGS) -> Vector3D:
    """Point of the cone side ``0 <= z <= h_max`` closest to ``p``.

    The side is ``x^2 / ta^2 + y^2 / tb^2 = z^2`` and ``p`` must have
    nonnegative ``x`` and ``y``; so does the result.  The side is the union
    of the generatrix segments ``h g(theta)`` with
    ``g = (ta cos(theta), tb sin(theta), 1)``, and the foot of ``p`` on one of
    them has the height ``p.g / |g|^2`` clamped to ``[0, h_max]``.  That
    leaves a search over ``theta`` in ``[0, pi/2]``: the squared distance is
    sampled, then every sampled local minimum is refined by bisection on the
    derivative ``2 h g'.(h g - p)``.
    """
    thetas = np.linspace(0.0, 0.5 * math.pi, _SAMPLES + 1)
    gx = ta * np.cos(thetas)
    gy = tb * np.sin(thetas)
    dots = p.x * gx + p.y * gy + p.z
    norms = gx * gx + gy * gy + 1.0
    heights = np.clip(dots / norms, 0.0, h_max)
    apex_sq = p.norm_sq()
    distances_sq = apex_sq - 2.0 * heights * dots + heights * heights * norms

    def foot(theta):
        g = _generatrix(ta, tb, theta)
        return g * min(max(p.dot(g) / g.norm_sq(), 0.0), h_max)

    def slope(theta):
        q = foot(theta)
        tangent = Vector3D(-ta * math.sin(theta), tb * math.cos(theta), 0.0)
        return q.z * tangent.dot(q - p)

    best = Vector3D.ZERO
    best_distance = math.sqrt(apex_sq)
    last = len(thetas) - 1
    snap = 4.0 * settings.newton_threshold
    for k in range(last + 1):
        value = distances_sq[k]
        if value >= apex_sq:
            continue
        if k > 0 and value >= distances_sq[k - 1]:
            continue
        if k < last and value > distances_sq[k + 1]:
            continue
        lo = float(thetas[max(k - 1, 0)])
        hi = float(thetas[min(k + 1, last)])
        if slope(lo) >= 0.0:
            theta = lo
        elif slope(hi) <= 0.0:
            theta = hi
        else:
            theta = bisect_increasing(slope, lo, hi, settings)
        if theta <= snap:
            theta = 0.0
        elif theta >= 0.5 * math.pi - snap:
            theta = 0.5 * math.pi
        for candidate in (foot(theta), foot(float(thetas[k]))):
            distance = candidate.distance(p)
            if distance < best_distance:
                best = candidate
                best_distance = distance
    return best


class InfiniteEllipticCone(FramedShape):
    """Infinite cone of elliptic section with apex at ``origin``.

    ``angle_u`` is the half angle in the ``(direction, u_vector)`` plane and
    ``angle_v`` the half angle in the orthogonal plane containing the axis.
    """

    def __init__(self, origin: Vector3D, direction: Vector3D, u_vector: Vector3D,
                 angle_u: float, angle_v: float, settings: SolverSettings = None):
        frame = LocalFrame(origin, direction, u_vector)
        self._alpha = _check_half_angle('angle on U', angle_u)
        self._beta = _check_half_angle('angle on V', angle_v)
        self._ta = math.tan(self._alpha)
        self._tb = math.tan(self._beta)
        super().__init__(frame, settings)

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------
    @property
    def origin(self) -> Vector3D:
        return self._frame.origin

    @property
    def direction(self) -> Vector3D:
        return self._frame.z_axis

    def get_u(self) -> Vector3D:
        return self._frame.x_axis

    def get_v(self) -> Vector3D:
        return self._frame.y_axis

    @property
    def angle_x(self) -> float:
        return self._alpha

    @property
    def angle_y(self) -> float:
        return self._beta

    @property
    def aperture_x(self) -> float:
        return 2.0 * self._alpha

    @property
    def aperture_y(self) -> float:
        return 2.0 * self._beta

    @property
    def semi_axis_x(self) -> float:
        """Semi axis of the section at unit height along U."""
        return self._ta

    @property
    def semi_axis_y(self) -> float:
        return self._tb

    def _fields(self):
        return (('Origin', self.origin), ('Direction', self.direction),
                ('U vector', self.get_u()), ('Angle on U', self._alpha),
                ('Angle on V', self._beta))

    # ------------------------------------------------------------------
    # location
    # ------------------------------------------------------------------
    def _cone_height(self, local: Vector3D) -> float:
        """Height of the side surface above ``(x, y)``."""
        return math.sqrt(local.x * local.x / (self._ta * self._ta)
                         + local.y * local.y / (self._tb * self._tb))

    def _inside_local(self, local: Vector3D) -> bool:
        return local.z > self._cone_height(local)

    def contains(self, point: Vector3D) -> bool:
        """True for points inside the cone or on its surface."""
        local = self.affine_local(point)
        return local.z >= self._cone_height(local) - GEOMETRY_EPSILON

    def is_strictly_inside(self, point: Vector3D) -> bool:
        local = self.affine_local(point)
        return local.z > self._cone_height(local) + GEOMETRY_EPSILON

    # ------------------------------------------------------------------
    # intersections
    # ------------------------------------------------------------------
    def _side_roots(self, o: Vector3D, d: Vector3D) -> Tuple[float, ...]:
        ia = 1.0 / (self._ta * self._ta)
        ib = 1.0 / (self._tb * self._tb)
        qa = d.x * d.x * ia + d.y * d.y * ib - d.z * d.z
        qb = 2.0 * (d.x * o.x * ia + d.y * o.y * ib - d.z * o.z)
        qc = o.x * o.x * ia + o.y * o.y * ib - o.z * o.z
        if max(abs(qa), abs(qb), abs(qc)) <= DOUBLE_COMPARISON_EPSILON:
            # a generatrix: report the apex
            return (-o.dot(d),)
        return solve_quadratic(qa, qb, qc)

    def _side_points(self, local: Line):
        """Local side crossings on the cone nappe."""
        o, d = local.origin, local.direction
        for t in self._side_roots(o, d):
            p = local.point_at(t)
            if p.z >= -GEOMETRY_EPSILON:
                yield p

    def get_intersection_points(self, line: Line) -> Tuple[Vector3D, ...]:
        local = self._local_line(line)
        return tuple(keep_on_line(line, self._to_standard(self._side_points(local))))

    # ------------------------------------------------------------------
    # closest points
    # ------------------------------------------------------------------
    def _nappe_height(self) -> float:
        return math.inf

    def _side_point(self, local: Vector3D) -> Vector3D:
        """Side point closest to ``local``, folded into the first quadrant and back."""
        sx = -1.0 if local.x < 0.0 else 1.0
        sy = -1.0 if local.y < 0.0 else 1.0
        folded = Vector3D(abs(local.x), abs(local.y), local.z)
        if abs(folded.z - self._cone_height(folded)) <= DOUBLE_COMPARISON_EPSILON \
                and folded.z <= self._nappe_height():
            return local
        closest = closest_point_on_nappe(self._ta, self._tb, folded, self._nappe_height(),
                                         self._settings)
        return Vector3D(sx * closest.x, sy * closest.y, closest.z)

    def closest_point_to_point(self, point: Vector3D) -> Vector3D:
        """Point of the side surface closest to ``point``."""
        return self.affine_standard(self._side_point(self.affine_local(point)))

    def distance_to_point(self, point: Vector3D) -> float:
        """Distance to the side surface, negative inside."""
        distance = self.closest_point_to_point(point).distance(point)
        if self._inside_local(self.affine_local(point)):
            return -distance
        return distance

    def get_normal(self, point: Vector3D) -> Vector3D:
        """Outward unit normal at the surface point closest to ``point``.

        At the apex the normal is taken opposite to the cone axis.
        """
        local = self._side_point(self.affine_local(point))
        gradient = Vector3D(local.x / (self._ta * self._ta),
                            local.y / (self._tb * self._tb), -local.z)
        if gradient.norm() < DOUBLE_COMPARISON_EPSILON:
            return -self.direction
        return self.vectorial_standard(gradient.normalize())

    def _project_local(self, local: Vector3D) -> Vector3D:
        if local.z >= self._cone_height(local):
            return local
        return self._side_point(local)

    def _project(self, point: Vector3D) -> Vector3D:
        return self.affine_standard(self._project_local(self.affine_local(point)))

    def _search_scale(self) -> float:
        return 1.0

    def closest_point_to(self, line: Line) -> Tuple[Vector3D, Vector3D]:
        """Return ``(point_on_line, point_on_cone)``.

        A line running along the cone without meeting it has no closest
        point and raises :class:`~solid3d.errors.ConvergenceError`.
        """
        points = self.get_intersection_points(line)
        if points:
            return points[0], points[0]
        return minimize_along_line(line, self._project, self._settings,
                                   start=line.abscissa(self.origin),
                                   scale=self._search_scale())


class InfiniteRightCircularCone(InfiniteEllipticCone):
    """Infinite cone of circular section and half angle ``angle``."""

    def __init__(self, origin: Vector3D, direction: Vector3D, angle: float,
                 settings: SolverSettings = None):
        if direction.norm() < GEOMETRY_EPSILON:
            raise IllegalArgumentError('cone direction has a zero norm',
                                       {'direction': str(direction)})
        super().__init__(origin, direction, direction.orthogonal(), angle, angle, settings)

    @property
    def angle(self) -> float:
        return self._alpha

    def _fields(self):
        return (('Origin', self.origin), ('Direction', self.direction),
                ('Angle', self._alpha))

    def _side_point(self, local: Vector3D) -> Vector3D:
        return _circular_side_point(self._ta, local)


def _circular_side_point(t, local, h_max=math.inf):
    r = math.hypot(local.x, local.y)
    if r < DOUBLE_COMPARISON_EPSILON:
        foot_r, h = _meridian_foot(0.0, local.z, t, h_max)
        return Vector3D(foot_r, 0.0, h)
    foot_r, h = _meridian_foot(r, local.z, t, h_max)
    return Vector3D(local.x * foot_r / r, local.y * foot_r / r, h)


class EllipticCone(InfiniteEllipticCone):
    """Elliptic cone from the apex ``origin`` up to a base at ``height``."""

    def __init__(self, origin: Vector3D, direction: Vector3D, u_vector: Vector3D,
                 angle_u: float, angle_v: float, height: float,
                 settings: SolverSettings = None):
        super().__init__(origin, direction, u_vector, angle_u, angle_v, settings)
        self._height = check_positive('height', height)

    @property
    def height(self) -> float:
        return self._height

    @property
    def angle_u(self) -> float:
        return self._alpha

    @property
    def angle_v(self) -> float:
        return self._beta

    def _fields(self):
        return tuple(super()._fields()) + (('Height', self._height),)

    def _base_axes(self):
        return self._height * self._ta, self._height * self._tb

    def _inside_local(self, local: Vector3D) -> bool:
        return self._cone_height(local) < local.z < self._height

    def contains(self, point: Vector3D) -> bool:
        local = self.affine_local(point)
        return self._cone_height(local) - GEOMETRY_EPSILON <= local.z \
            <= self._height + GEOMETRY_EPSILON

    def is_strictly_inside(self, point: Vector3D) -> bool:
        local = self.affine_local(point)
        return self._cone_height(local) + GEOMETRY_EPSILON < local.z \
            < self._height - GEOMETRY_EPSILON

    def get_intersection_points(self, line: Line) -> Tuple[Vector3D, ...]:
        """Side crossings first, then the base."""
        local = self._local_line(line)
        o, d = local.origin, local.direction
        candidates = [p for p in self._side_points(local)
                      if p.z <= self._height + GEOMETRY_EPSILON]
        if abs(d.z) > DOUBLE_COMPARISON_EPSILON:
            p = o.add((self._height - o.z) / d.z, d)
            if self._cone_height(p) <= self._height + GEOMETRY_EPSILON:
                candidates.append(p)
        return tuple(keep_on_line(line, self._to_standard(candidates)))

    def _nappe_height(self) -> float:
        return self._height

    def _project_local(self, local: Vector3D) -> Vector3D:
        if self._cone_height(local) <= local.z <= self._height:
            return local
        a, b = self._base_axes()
        x, y = project_on_ellipse_disk(a, b, local.x, local.y, self._settings)
        return min((self._side_point(local), Vector3D(x, y, self._height)), key=local.distance)

    def closest_point_to_point(self, point: Vector3D) -> Vector3D:
        """Point of the cone surface (side or base) closest to ``point``."""
        local = self.affine_local(point)
        if not self._inside_local(local):
            return self.affine_standard(self._project_local(local))
        candidates = (self._side_point(local), Vector3D(local.x, local.y, self._height))
        return self.affine_standard(min(candidates, key=local.distance))

    def get_normal(self, point: Vector3D) -> Vector3D:
        local = self.affine_local(self.closest_point_to_point(point))
        if abs(local.z - self._height) <= GEOMETRY_EPSILON \
                and self._cone_height(local) < self._height - GEOMETRY_EPSILON:
            return self.direction
        return super().get_normal(point)

    def _search_scale(self) -> float:
        return max(self._base_axes() + (self._height,))


class RightCircularCone(EllipticCone):
    """Circular cone of half angle ``angle`` from the apex ``origin`` up to ``height``."""

    def __init__(self, origin: Vector3D, direction: Vector3D, angle: float, height: float,
                 settings: SolverSettings = None):
        if direction.norm() < GEOMETRY_EPSILON:
            raise IllegalArgumentError('cone direction has a zero norm',
                                       {'direction': str(direction)})
        super().__init__(origin, direction, direction.orthogonal(), angle, angle, height,
                         settings)

    @property
    def angle(self) -> float:
        return self._alpha

    @property
    def base_radius(self) -> float:
        return self._height * self._ta

    def _fields(self):
        return (('Origin', self.origin), ('Direction', self.direction),
                ('Angle', self._alpha), ('Height', self._height))

    def _side_point(self, local: Vector3D) -> Vector3D:
        return _circular_side_point(self._ta, local, self._height)


class InfiniteRectangleCone(FramedShape):
    """Infinite pyramid of rectangular section with apex at ``origin``."""

    def __init__(self, origin: Vector3D, direction: Vector3D, u_vector: Vector3D,
                 angle_u: float, angle_v: float, settings: SolverSettings = None):
        frame = LocalFrame(origin, direction, u_vector)
        self._alpha = _check_half_angle('angle on U', angle_u)
        self._beta = _check_half_angle('angle on V', angle_v)
        self._ta = math.tan(self._alpha)
        self._tb = math.tan(self._beta)
        super().__init__(frame, settings)
        ta, tb = self._ta, self._tb
        # outward normals of the four faces, in the local frame
        self._local_normals = (Vector3D(1.0, 0.0, -ta).normalize(),
                               Vector3D(-1.0, 0.0, -ta).normalize(),
                               Vector3D(0.0, 1.0, -tb).normalize(),
                               Vector3D(0.0, -1.0, -tb).normalize())
        self._faces = tuple(Plane.from_point_normal(origin, self.vectorial_standard(n))
                            for n in self._local_normals)
        self._edges = tuple(Vector3D(sx * ta, sy * tb, 1.0).normalize()
                            for sx in (1.0, -1.0) for sy in (1.0, -1.0))

    @property
    def origin(self) -> Vector3D:
        return self._frame.origin

    @property
    def direction(self) -> Vector3D:
        return self._frame.z_axis

    def get_u(self) -> Vector3D:
        return self._frame.x_axis

    def get_v(self) -> Vector3D:
        return self._frame.y_axis

    @property
    def angle_x(self) -> float:
        return self._alpha

    @property
    def angle_y(self) -> float:
        return self._beta

    @property
    def faces(self) -> Tuple[Plane, ...]:
        """Planes of the four faces, normals pointing outwards."""
        return self._faces

    def _fields(self):
        return (('Origin', self.origin), ('Direction', self.direction),
                ('U vector', self.get_u()), ('Angle on U', self._alpha),
                ('Angle on V', self._beta))

    def _margins(self, local: Vector3D) -> Tuple[float, float]:
        return (local.z * self._ta - abs(local.x), local.z * self._tb - abs(local.y))

    def contains(self, point: Vector3D) -> bool:
        return min(self._margins(self.affine_local(point))) >= -GEOMETRY_EPSILON

    def _inside_local(self, local: Vector3D) -> bool:
        return min(self._margins(local)) > 0.0

    def _on_face(self, local: Vector3D, index: int) -> bool:
        if local.z < -GEOMETRY_EPSILON:
            return False
        if index < 2:
            return abs(local.y) <= local.z * self._tb + GEOMETRY_EPSILON
        return abs(local.x) <= local.z * self._ta + GEOMETRY_EPSILON

    def get_intersection_points(self, line: Line) -> Tuple[Vector3D, ...]:
        """Face crossings sorted along the line."""
        candidates = []
        for index, face in enumerate(self._faces):
            point = face.intersection_line(line)
            if point is not None and self._on_face(self.affine_local(point), index):
                candidates.append(point)
        candidates.sort(key=line.abscissa)
        return tuple(keep_on_line(line, candidates))

    def _surface_point_local(self, local: Vector3D) -> Vector3D:
        candidates = [Vector3D.ZERO]
        for index, n in enumerate(self._local_normals):
            foot = local.subtract(local.dot(n), n)
            if self._on_face(foot, index):
                candidates.append(foot)
        for e in self._edges:
            candidates.append(e * max(local.dot(e), 0.0))
        return min(candidates, key=local.distance)

    def closest_point_to_point(self, point: Vector3D) -> Vector3D:
        return self.affine_standard(self._surface_point_local(self.affine_local(point)))

    def distance_to_point(self, point: Vector3D) -> float:
        """Distance to the faces, negative inside."""
        distance = self.closest_point_to_point(point).distance(point)
        if self._inside_local(self.affine_local(point)):
            return -distance
        return distance

    def _project(self, point: Vector3D) -> Vector3D:
        local = self.affine_local(point)
        if self._inside_local(local):
            return point
        return self.affine_standard(self._surface_point_local(local))

    def closest_point_to(self, line: Line) -> Tuple[Vector3D, Vector3D]:
        """Return ``(point_on_line, point_on_cone)``."""
        points = self.get_intersection_points(line)
        if points:
            return points[0], points[0]
        return minimize_along_line(line, self._project, self._settings,
                                   start=line.abscissa(self.origin))
