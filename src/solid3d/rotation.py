"""Rotations in 3D space as unit quaternions.

Rotations act as vector operators: ``r.apply_to(u)`` returns ``u`` rotated
by ``r``, and a rotation of angle ``theta`` around the unit axis ``a`` is the
quaternion ``(cos(theta/2), sin(theta/2) a)``.  Composition follows the same
rule, ``r1.apply_to(r2)`` being the rotation that first applies ``r2`` and
then ``r1``.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Tuple

import numpy as np

from solid3d.errors import (IllegalArgumentError, NotARotationMatrixError,
                            zero_norm)
from solid3d.settings import DOUBLE_COMPARISON_EPSILON, GEOMETRY_EPSILON
from solid3d.vector import Vector3D
from solid3d.xform import Matrix3D

_AXES = (Vector3D.PLUS_I, Vector3D.PLUS_J, Vector3D.PLUS_K)


class RotationOrder(Enum):
    """Axis sequences for Cardan (three distinct axes) and Euler angles."""

    XYZ = (0, 1, 2)
    XZY = (0, 2, 1)
    YXZ = (1, 0, 2)
    YZX = (1, 2, 0)
    ZXY = (2, 0, 1)
    ZYX = (2, 1, 0)
    XYX = (0, 1, 0)
    XZX = (0, 2, 0)
    YXY = (1, 0, 1)
    YZY = (1, 2, 1)
    ZXZ = (2, 0, 2)
    ZYZ = (2, 1, 2)

    @property
    def axes(self) -> Tuple[Vector3D, Vector3D, Vector3D]:
        return tuple(_AXES[i] for i in self.value)

    @property
    def is_euler(self) -> bool:
        return self.value[0] == self.value[2]


def _is_cyclic(i, j, k):
    return (i, j, k) in ((0, 1, 2), (1, 2, 0), (2, 0, 1))


def _clamp(value):
    return max(-1.0, min(1.0, value))


class Rotation:
    """Immutable rotation stored as the quaternion ``(q0, q1, q2, q3)``."""

    __slots__ = ('_q0', '_q1', '_q2', '_q3')

    def __init__(self, q0: float, q1: float, q2: float, q3: float,
                 needs_normalization: bool = False):
        if needs_normalization:
            norm = math.sqrt(q0 * q0 + q1 * q1 + q2 * q2 + q3 * q3)
            if norm < DOUBLE_COMPARISON_EPSILON:
                raise zero_norm('quaternion')
            inv = 1.0 / norm
            q0 *= inv
            q1 *= inv
            q2 *= inv
            q3 *= inv
        self._q0 = float(q0)
        self._q1 = float(q1)
        self._q2 = float(q2)
        self._q3 = float(q3)

    # ------------------------------------------------------------------
    # constructors
    # ------------------------------------------------------------------
    @classmethod
    def from_axis_angle(cls, axis: Vector3D, angle: float) -> "Rotation":
        """Rotation of ``angle`` radians around ``axis`` (right hand rule).

        A zero axis gives the identity.
        """
        norm = axis.norm()
        if norm == 0.0:
            return cls(1.0, 0.0, 0.0, 0.0)
        half = 0.5 * angle
        coeff = math.sin(half) / norm
        return cls(math.cos(half), coeff * axis.x, coeff * axis.y, coeff * axis.z)

    @classmethod
    def from_matrix(cls, matrix, threshold: float = 1e-10) -> "Rotation":
        """Rotation from a 3x3 matrix, orthogonalized if needed.

        Raises :class:`NotARotationMatrixError` if the matrix is not 3x3, if
        the orthogonalization does not settle within ``threshold`` or if the
        determinant is negative.
        """
        if isinstance(matrix, Matrix3D):
            rows = matrix.to_list()
        else:
            rows = [list(r) for r in matrix]
        if len(rows) != 3 or any(len(r) != 3 for r in rows):
            raise NotARotationMatrixError('a rotation matrix must be 3x3',
                                          {'shape': [len(r) for r in rows]})
        m = _orthogonalize(np.array(rows, dtype=float), threshold)
        if np.linalg.det(m) < 0.0:
            raise NotARotationMatrixError('matrix has a negative determinant',
                                          {'determinant': float(np.linalg.det(m))})
        return cls(*_matrix_to_quaternion(m))

    @classmethod
    def from_vector_pairs(cls, u1: Vector3D, u2: Vector3D,
                          v1: Vector3D, v2: Vector3D) -> "Rotation":
        """Rotation mapping ``u1`` to ``v1`` and the (u1, u2) plane to the (v1, v2) plane.

        Only the directions matter: ``u1`` and ``v1`` are matched exactly, the
        second vectors only fix the rotation about them.
        """
        fu = _frame(u1, u2)
        fv = _frame(v1, v2)
        m = fv @ fu.T
        return cls(*_matrix_to_quaternion(m))

    @classmethod
    def between(cls, u: Vector3D, v: Vector3D) -> "Rotation":
        """Smallest rotation mapping the direction of ``u`` to the direction of ``v``."""
        norm_product = u.norm() * v.norm()
        if norm_product == 0.0:
            raise zero_norm()
        dot = u.dot(v)
        if dot < (2.0e-15 - 1.0) * norm_product:
            # opposite vectors, any axis orthogonal to u will do
            w = u.orthogonal()
            return cls(0.0, w.x, w.y, w.z)
        q0 = math.sqrt(0.5 * (1.0 + dot / norm_product))
        q = u.cross(v) * (1.0 / (2.0 * q0 * norm_product))
        return cls(q0, q.x, q.y, q.z)

    @classmethod
    def from_angles(cls, order: RotationOrder, alpha1: float, alpha2: float,
                    alpha3: float) -> "Rotation":
        """Compose rotations around the axes of ``order``.

        The result applies the third rotation first: ``R1 o R2 o R3``.
        """
        a1, a2, a3 = order.axes
        r1 = cls.from_axis_angle(a1, alpha1)
        r2 = cls.from_axis_angle(a2, alpha2)
        r3 = cls.from_axis_angle(a3, alpha3)
        return r1.apply_to(r2.apply_to(r3))

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    @property
    def q0(self) -> float:
        return self._q0

    @property
    def q1(self) -> float:
        return self._q1

    @property
    def q2(self) -> float:
        return self._q2

    @property
    def q3(self) -> float:
        return self._q3

    def get_quaternion(self) -> Tuple[float, float, float, float]:
        return self._q0, self._q1, self._q2, self._q3

    def get_axis(self) -> Vector3D:
        """Unit rotation axis, +I for the identity."""
        squared_sine = self._q1 * self._q1 + self._q2 * self._q2 + self._q3 * self._q3
        if squared_sine < DOUBLE_COMPARISON_EPSILON * DOUBLE_COMPARISON_EPSILON:
            return Vector3D.PLUS_I
        inverse = 1.0 / math.sqrt(squared_sine)
        if self._q0 < 0.0:
            inverse = -inverse
        return Vector3D(self._q1 * inverse, self._q2 * inverse, self._q3 * inverse)

    def get_angle(self) -> float:
        """Rotation angle in [0, pi]."""
        if self._q0 < -0.1 or self._q0 > 0.1:
            return 2.0 * math.asin(math.sqrt(self._q1 * self._q1 + self._q2 * self._q2
                                             + self._q3 * self._q3))
        if self._q0 < 0.0:
            return 2.0 * math.acos(-self._q0)
        return 2.0 * math.acos(self._q0)

    def get_matrix(self) -> Matrix3D:
        q0, q1, q2, q3 = self._q0, self._q1, self._q2, self._q3
        q0q0 = q0 * q0
        q0q1 = q0 * q1
        q0q2 = q0 * q2
        q0q3 = q0 * q3
        q1q1 = q1 * q1
        q1q2 = q1 * q2
        q1q3 = q1 * q3
        q2q2 = q2 * q2
        q2q3 = q2 * q3
        q3q3 = q3 * q3
        return Matrix3D([[2.0 * (q0q0 + q1q1) - 1.0, 2.0 * (q1q2 - q0q3), 2.0 * (q1q3 + q0q2)],
                         [2.0 * (q1q2 + q0q3), 2.0 * (q0q0 + q2q2) - 1.0, 2.0 * (q2q3 - q0q1)],
                         [2.0 * (q1q3 - q0q2), 2.0 * (q2q3 + q0q1), 2.0 * (q0q0 + q3q3) - 1.0]])

    def get_angles(self, order: RotationOrder) -> Tuple[float, float, float]:
        """Angles ``(a1, a2, a3)`` such that ``from_angles(order, a1, a2, a3)`` is self.

        Cardan second angles are in [-pi/2, pi/2], Euler second angles in
        [0, pi].  In the singular configurations the third angle is set to
        zero and the first one absorbs the whole rotation about the axis.
        """
        i, j, k = order.value
        e_i, e_j = _AXES[i], _AXES[j]
        inverse = self.revert()

        if order.is_euler:
            k = 3 - i - j
            s = 1.0 if _is_cyclic(i, j, k) else -1.0
            v1 = self.apply_to(e_i)
            v2 = inverse.apply_to(e_i)
            a2 = math.acos(_clamp(v2[i]))
            if math.hypot(v2[j], v2[k]) < GEOMETRY_EPSILON:
                return self._singular_first_angle(e_i, e_j), a2, 0.0
            return (math.atan2(v1[j], -s * v1[k]), a2,
                    math.atan2(v2[j], s * v2[k]))

        s = 1.0 if _is_cyclic(i, j, k) else -1.0
        v1 = self.apply_to(_AXES[k])
        v2 = inverse.apply_to(e_i)
        a2 = s * math.asin(_clamp(v2[k]))
        if math.hypot(v2[i], v2[j]) < GEOMETRY_EPSILON:
            return self._singular_first_angle(e_i, e_j), a2, 0.0
        return (math.atan2(-s * v1[j], v1[k]), a2,
                math.atan2(-s * v2[j], v2[i]))

    def _singular_first_angle(self, e_i, e_j):
        w = self.apply_to(e_j)
        return math.atan2(e_i.dot(e_j.cross(w)), e_j.dot(w))

    # ------------------------------------------------------------------
    # application and composition
    # ------------------------------------------------------------------
    def revert(self) -> "Rotation":
        return Rotation(self._q0, -self._q1, -self._q2, -self._q3)

    def apply_to(self, other):
        """Rotate a :class:`Vector3D`, or compose with a rotation applied first."""
        if isinstance(other, Rotation):
            return Rotation(
                self._q0 * other.q0 - (self._q1 * other.q1 + self._q2 * other.q2
                                       + self._q3 * other.q3),
                self._q0 * other.q1 + other.q0 * self._q1
                + (self._q2 * other.q3 - self._q3 * other.q2),
                self._q0 * other.q2 + other.q0 * self._q2
                + (self._q3 * other.q1 - self._q1 * other.q3),
                self._q0 * other.q3 + other.q0 * self._q3
                + (self._q1 * other.q2 - self._q2 * other.q1))
        return self._rotate(other, 1.0)

    def apply_inverse_to(self, other):
        """Apply the inverse rotation to a vector, or compose it with a rotation."""
        if isinstance(other, Rotation):
            return Rotation(
                self._q0 * other.q0 + (self._q1 * other.q1 + self._q2 * other.q2
                                       + self._q3 * other.q3),
                self._q0 * other.q1 - other.q0 * self._q1
                - (self._q2 * other.q3 - self._q3 * other.q2),
                self._q0 * other.q2 - other.q0 * self._q2
                - (self._q3 * other.q1 - self._q1 * other.q3),
                self._q0 * other.q3 - other.q0 * self._q3
                - (self._q1 * other.q2 - self._q2 * other.q1))
        return self._rotate(other, -1.0)

    def compose(self, other: "Rotation") -> "Rotation":
        """Alias of :meth:`apply_to` for rotations."""
        return self.apply_to(other)

    def _rotate(self, u: Vector3D, sign: float) -> Vector3D:
        x, y, z = u.x, u.y, u.z
        q0, q1, q2, q3 = self._q0, self._q1, self._q2, self._q3
        s = q1 * x + q2 * y + q3 * z
        return Vector3D(2.0 * (q0 * (x * q0 + sign * (q2 * z - q3 * y)) + s * q1) - x,
                        2.0 * (q0 * (y * q0 + sign * (q3 * x - q1 * z)) + s * q2) - y,
                        2.0 * (q0 * (z * q0 + sign * (q1 * y - q2 * x)) + s * q3) - z)

    @staticmethod
    def distance(r1: "Rotation", r2: "Rotation") -> float:
        """Angle of the rotation taking ``r1`` to ``r2``."""
        return r1.apply_inverse_to(r2).get_angle()

    def is_equal_to(self, rotation: "Rotation",
                    angle_threshold: float = DOUBLE_COMPARISON_EPSILON,
                    axis_threshold: float = DOUBLE_COMPARISON_EPSILON) -> bool:
        """Compare angles and axes within thresholds.

        Axes are ignored when both angles are below ``angle_threshold``.
        """
        angle1 = self.get_angle()
        angle2 = rotation.get_angle()
        if abs(angle1 - angle2) > angle_threshold:
            return False
        if angle1 <= angle_threshold and angle2 <= angle_threshold:
            return True
        return Vector3D.angle(self.get_axis(), rotation.get_axis()) <= axis_threshold

    def is_identity(self, threshold: float = DOUBLE_COMPARISON_EPSILON) -> bool:
        return self.get_angle() <= threshold

    # ------------------------------------------------------------------
    # interpolation
    # ------------------------------------------------------------------
    @staticmethod
    def lerp(r0: "Rotation", r1: "Rotation", h: float) -> "Rotation":
        """Normalized linear interpolation of the quaternions."""
        _check_interpolation(h)
        a = 1.0 - h
        return Rotation(a * r0.q0 + h * r1.q0, a * r0.q1 + h * r1.q1,
                        a * r0.q2 + h * r1.q2, a * r0.q3 + h * r1.q3,
                        needs_normalization=True)

    @staticmethod
    def slerp(r0: "Rotation", r1: "Rotation", h: float) -> "Rotation":
        """Spherical linear interpolation along the shortest path."""
        _check_interpolation(h)
        p = r0.get_quaternion()
        q = r1.get_quaternion()
        cos = sum(a * b for a, b in zip(p, q))
        if cos < 0.0:
            q = tuple(-c for c in q)
            cos = -cos
        if cos >= 1.0:
            return r0
        theta = math.acos(cos)
        sin = math.sin(theta)
        w0 = math.sin((1.0 - h) * theta) / sin
        w1 = math.sin(h * theta) / sin
        return Rotation(*(w0 * a + w1 * b for a, b in zip(p, q)), needs_normalization=True)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Rotation):
            return NotImplemented
        return self.get_quaternion() == other.get_quaternion()

    def __hash__(self) -> int:
        return hash(self.get_quaternion())

    def __repr__(self) -> str:
        return f"Rotation({self._q0!r}, {self._q1!r}, {self._q2!r}, {self._q3!r})"

    def __str__(self) -> str:
        return 'Rotation{' + ','.join(repr(c) for c in self.get_quaternion()) + '}'


Rotation.IDENTITY = Rotation(1.0, 0.0, 0.0, 0.0)


def _check_interpolation(h):
    if not 0.0 <= h <= 1.0:
        raise IllegalArgumentError(f"interpolation parameter {h} is outside [0, 1]", {'h': h})


def _frame(u1: Vector3D, u2: Vector3D):
    """Orthonormal frame (as matrix columns) built on u1 and the (u1, u2) plane."""
    if u1.norm() == 0.0 or u2.norm() == 0.0:
        raise zero_norm()
    e1 = u1.normalize()
    n = u1.cross(u2)
    if n.norm() < GEOMETRY_EPSILON * u1.norm() * u2.norm():
        raise zero_norm('cross product of the vector pair')
    e3 = n.normalize()
    e2 = e3.cross(e1)
    return np.array([e1.to_array(), e2.to_array(), e3.to_array()]).T


def _orthogonalize(m, threshold):
    """Closest orthogonal matrix by fixed point iteration."""
    x = m.copy()
    fn = 0.0
    iteration = 0
    while iteration < 10:
        iteration += 1
        mx = m.T @ x
        o = x - 0.5 * (x @ mx - m)
        corr = o - m
        fn1 = float(np.sum(corr * corr))
        if abs(fn1 - fn) <= threshold:
            return o
        x = o
        fn = fn1
    raise NotARotationMatrixError(
        f"unable to orthogonalize matrix in {iteration} iterations",
        {'iterations': iteration, 'threshold': threshold})


def _matrix_to_quaternion(m):
    """Quaternion of a vector operator rotation matrix."""
    s = m[0][0] + m[1][1] + m[2][2]
    if s > -0.19:
        q0 = 0.5 * math.sqrt(s + 1.0)
        inv = 0.25 / q0
        return (q0, inv * (m[2][1] - m[1][2]), inv * (m[0][2] - m[2][0]),
                inv * (m[1][0] - m[0][1]))
    s = m[0][0] - m[1][1] - m[2][2]
    if s > -0.19:
        q1 = 0.5 * math.sqrt(s + 1.0)
        inv = 0.25 / q1
        return (inv * (m[2][1] - m[1][2]), q1, inv * (m[0][1] + m[1][0]),
                inv * (m[0][2] + m[2][0]))
    s = m[1][1] - m[0][0] - m[2][2]
    if s > -0.19:
        q2 = 0.5 * math.sqrt(s + 1.0)
        inv = 0.25 / q2
        return (inv * (m[0][2] - m[2][0]), inv * (m[0][1] + m[1][0]), q2,
                inv * (m[1][2] + m[2][1]))
    s = m[2][2] - m[0][0] - m[1][1]
    q3 = 0.5 * math.sqrt(s + 1.0)
    inv = 0.25 / q3
    return (inv * (m[1][0] - m[0][1]), inv * (m[0][2] + m[2][0]),
            inv * (m[1][2] + m[2][1]), q3)
