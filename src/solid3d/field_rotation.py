"""Rotations whose quaternion components carry partial derivatives.

:class:`FieldRotation` mirrors :class:`~solid3d.rotation.Rotation` with
:class:`~solid3d.dual.Dual` components, so rotating a vector also yields the
derivatives of the result with respect to the free parameters the rotation
was built from.  Plain vectors and rotations are accepted everywhere and
lifted to constants.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

from typing import List, Tuple

from solid3d.dual import Dual
from solid3d.errors import IllegalArgumentError, zero_norm
from solid3d.field_vector import FieldVector3D
from solid3d.rotation import Rotation, RotationOrder
from solid3d.settings import DOUBLE_COMPARISON_EPSILON
from solid3d.vector import Vector3D


def _components(rotation) -> Tuple:
    if isinstance(rotation, FieldRotation):
        return rotation.q0, rotation.q1, rotation.q2, rotation.q3
    return rotation.get_quaternion()


class FieldRotation:
    """Unit quaternion ``(q0, q1, q2, q3)`` of :class:`Dual` numbers."""

    __slots__ = ('_q0', '_q1', '_q2', '_q3')

    def __init__(self, q0: Dual, q1: Dual, q2: Dual, q3: Dual,
                 needs_normalization: bool = False):
        counts = {q.count for q in (q0, q1, q2, q3) if isinstance(q, Dual)}
        if len(counts) != 1:
            raise IllegalArgumentError('quaternion components need one derivative dimension',
                                       {'counts': sorted(counts)})
        count = counts.pop()
        q0, q1, q2, q3 = (q if isinstance(q, Dual) else Dual.constant(q, count)
                          for q in (q0, q1, q2, q3))
        if needs_normalization:
            norm = (q0 * q0 + q1 * q1 + q2 * q2 + q3 * q3).sqrt()
            if norm.value < DOUBLE_COMPARISON_EPSILON:
                raise zero_norm('quaternion')
            inv = 1.0 / norm
            q0, q1, q2, q3 = q0 * inv, q1 * inv, q2 * inv, q3 * inv
        self._q0 = q0
        self._q1 = q1
        self._q2 = q2
        self._q3 = q3

    @classmethod
    def from_axis_angle(cls, axis: FieldVector3D, angle: Dual) -> "FieldRotation":
        """Rotation of ``angle`` around ``axis``, the identity for a zero axis."""
        if isinstance(axis, Vector3D):
            axis = FieldVector3D.from_vector3d(axis, angle.count)
        norm = axis.norm()
        if norm.value == 0.0:
            one = Dual.constant(1.0, axis.count)
            zero = Dual.constant(0.0, axis.count)
            return cls(one, zero, zero, zero)
        half = angle * 0.5
        coeff = half.sin() / norm
        return cls(half.cos(), coeff * axis.x, coeff * axis.y, coeff * axis.z)

    @classmethod
    def from_rotation(cls, rotation: Rotation, count: int) -> "FieldRotation":
        """Constant rotation (zero derivatives) equal to ``rotation``."""
        return cls(*(Dual.constant(q, count) for q in rotation.get_quaternion()))

    @classmethod
    def from_angles(cls, order: RotationOrder, alpha1: Dual, alpha2: Dual,
                    alpha3: Dual) -> "FieldRotation":
        """Same composition as :meth:`Rotation.from_angles`, ``R1 o R2 o R3``."""
        a1, a2, a3 = order.axes
        r1 = cls.from_axis_angle(a1, alpha1)
        r2 = cls.from_axis_angle(a2, alpha2)
        r3 = cls.from_axis_angle(a3, alpha3)
        return r1.apply_to(r2.apply_to(r3))

    @property
    def q0(self) -> Dual:
        return self._q0

    @property
    def q1(self) -> Dual:
        return self._q1

    @property
    def q2(self) -> Dual:
        return self._q2

    @property
    def q3(self) -> Dual:
        return self._q3

    @property
    def count(self) -> int:
        return self._q0.count

    def to_rotation(self) -> Rotation:
        """Drop the derivatives."""
        return Rotation(self._q0.value, self._q1.value, self._q2.value, self._q3.value)

    def get_axis(self) -> FieldVector3D:
        squared_sine = self._q1 * self._q1 + self._q2 * self._q2 + self._q3 * self._q3
        if squared_sine.value < DOUBLE_COMPARISON_EPSILON * DOUBLE_COMPARISON_EPSILON:
            return FieldVector3D.from_vector3d(Vector3D.PLUS_I, self.count)
        inverse = 1.0 / squared_sine.sqrt()
        if self._q0.value < 0.0:
            inverse = -inverse
        return FieldVector3D(self._q1 * inverse, self._q2 * inverse, self._q3 * inverse)

    def get_angle(self) -> Dual:
        """Rotation angle in [0, pi]."""
        if self._q0.value < -0.1 or self._q0.value > 0.1:
            sine = (self._q1 * self._q1 + self._q2 * self._q2 + self._q3 * self._q3).sqrt()
            return 2.0 * sine.asin()
        if self._q0.value < 0.0:
            return 2.0 * (-self._q0).acos()
        return 2.0 * self._q0.acos()

    def get_matrix(self) -> List[List[Dual]]:
        """Rows of the rotation matrix as :class:`Dual` entries."""
        q0, q1, q2, q3 = self._q0, self._q1, self._q2, self._q3
        return [[2.0 * (q0 * q0 + q1 * q1) - 1.0, 2.0 * (q1 * q2 - q0 * q3),
                 2.0 * (q1 * q3 + q0 * q2)],
                [2.0 * (q1 * q2 + q0 * q3), 2.0 * (q0 * q0 + q2 * q2) - 1.0,
                 2.0 * (q2 * q3 - q0 * q1)],
                [2.0 * (q1 * q3 - q0 * q2), 2.0 * (q2 * q3 + q0 * q1),
                 2.0 * (q0 * q0 + q3 * q3) - 1.0]]

    def revert(self) -> "FieldRotation":
        return FieldRotation(self._q0, -self._q1, -self._q2, -self._q3)

    def apply_to(self, other):
        """Rotate a vector, or compose with a rotation applied first.

        ``other`` may be a :class:`Vector3D`, a :class:`FieldVector3D`, a
        :class:`Rotation` or a :class:`FieldRotation`.
        """
        if isinstance(other, (Rotation, FieldRotation)):
            p0, p1, p2, p3 = _components(other)
            return FieldRotation(
                self._q0 * p0 - (self._q1 * p1 + self._q2 * p2 + self._q3 * p3),
                self._q0 * p1 + self._q1 * p0 + (self._q2 * p3 - self._q3 * p2),
                self._q0 * p2 + self._q2 * p0 + (self._q3 * p1 - self._q1 * p3),
                self._q0 * p3 + self._q3 * p0 + (self._q1 * p2 - self._q2 * p1))
        return self._rotate(other, 1.0)

    def apply_inverse_to(self, other):
        """Apply the inverse rotation to a vector, or compose it with a rotation."""
        if isinstance(other, (Rotation, FieldRotation)):
            p0, p1, p2, p3 = _components(other)
            return FieldRotation(
                self._q0 * p0 + (self._q1 * p1 + self._q2 * p2 + self._q3 * p3),
                self._q0 * p1 - self._q1 * p0 - (self._q2 * p3 - self._q3 * p2),
                self._q0 * p2 - self._q2 * p0 - (self._q3 * p1 - self._q1 * p3),
                self._q0 * p3 - self._q3 * p0 - (self._q1 * p2 - self._q2 * p1))
        return self._rotate(other, -1.0)

    def _rotate(self, u, sign: float) -> FieldVector3D:
        x, y, z = u.x, u.y, u.z
        q0, q1, q2, q3 = self._q0, self._q1, self._q2, self._q3
        s = q1 * x + q2 * y + q3 * z
        return FieldVector3D(2.0 * (q0 * (q0 * x + sign * (q2 * z - q3 * y)) + s * q1) - x,
                             2.0 * (q0 * (q0 * y + sign * (q3 * x - q1 * z)) + s * q2) - y,
                             2.0 * (q0 * (q0 * z + sign * (q1 * y - q2 * x)) + s * q3) - z)

    @staticmethod
    def distance(r1: "FieldRotation", r2) -> Dual:
        """Angle of the rotation taking ``r1`` to ``r2``."""
        return r1.apply_inverse_to(r2).get_angle()

    def __repr__(self) -> str:
        return f"FieldRotation({self._q0!r}, {self._q1!r}, {self._q2!r}, {self._q3!r})"

    def __str__(self) -> str:
        return 'FieldRotation{' + ','.join(repr(q.value) for q in _components(self)) + '}'
