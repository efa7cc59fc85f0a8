"""3D vectors whose components carry derivatives.

:class:`FieldVector3D` mirrors :class:`~solid3d.vector.Vector3D` with
:class:`~solid3d.dual.Dual` components, so geometric quantities (norms,
angles, dot and cross products) come with their partial derivatives with
respect to the free parameters the components depend on.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import math

from solid3d.dual import Dual
from solid3d.errors import zero_norm, IllegalArgumentError
from solid3d.vector import Vector3D, format_number


def _as_dual(value, count):
    if isinstance(value, Dual):
        return value
    return Dual.constant(value, count)


class FieldVector3D:
    """Immutable vector of three :class:`Dual` components."""

    __slots__ = ('_x', '_y', '_z')

    def __init__(self, x, y, z):
        counts = {c.count for c in (x, y, z) if isinstance(c, Dual)}
        if not counts:
            raise IllegalArgumentError('at least one component must be a Dual')
        if len(counts) > 1:
            raise IllegalArgumentError('components have different derivative dimensions',
                                       {'counts': sorted(counts)})
        count = counts.pop()
        self._x = _as_dual(x, count)
        self._y = _as_dual(y, count)
        self._z = _as_dual(z, count)

    @classmethod
    def from_vector3d(cls, vector: Vector3D, count: int) -> "FieldVector3D":
        """Constant field vector (zero derivatives) equal to ``vector``."""
        return cls(Dual.constant(vector.x, count),
                   Dual.constant(vector.y, count),
                   Dual.constant(vector.z, count))

    @property
    def x(self) -> Dual:
        return self._x

    @property
    def y(self) -> Dual:
        return self._y

    @property
    def z(self) -> Dual:
        return self._z

    @property
    def count(self) -> int:
        return self._x.count

    def to_vector3d(self) -> Vector3D:
        """Drop the derivatives."""
        return Vector3D(self._x.value, self._y.value, self._z.value)

    def __iter__(self):
        yield self._x
        yield self._y
        yield self._z

    def _other(self, other):
        if isinstance(other, Vector3D):
            return FieldVector3D.from_vector3d(other, self.count)
        return other

    def __add__(self, other) -> "FieldVector3D":
        o = self._other(other)
        return FieldVector3D(self._x + o.x, self._y + o.y, self._z + o.z)

    def __sub__(self, other) -> "FieldVector3D":
        o = self._other(other)
        return FieldVector3D(self._x - o.x, self._y - o.y, self._z - o.z)

    def __neg__(self) -> "FieldVector3D":
        return FieldVector3D(-self._x, -self._y, -self._z)

    def __mul__(self, scalar) -> "FieldVector3D":
        return FieldVector3D(self._x * scalar, self._y * scalar, self._z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar) -> "FieldVector3D":
        return FieldVector3D(self._x / scalar, self._y / scalar, self._z / scalar)

    def dot(self, other) -> Dual:
        o = self._other(other)
        return self._x * o.x + self._y * o.y + self._z * o.z

    def cross(self, other) -> "FieldVector3D":
        o = self._other(other)
        return FieldVector3D(self._y * o.z - self._z * o.y,
                             self._z * o.x - self._x * o.z,
                             self._x * o.y - self._y * o.x)

    def norm_sq(self) -> Dual:
        return self._x * self._x + self._y * self._y + self._z * self._z

    def norm(self) -> Dual:
        return self.norm_sq().sqrt()

    def normalize(self) -> "FieldVector3D":
        n = self.norm()
        if n.value == 0.0:
            raise zero_norm()
        return self / n

    def distance(self, other) -> Dual:
        return (self - other).norm()

    @staticmethod
    def angle(u, v) -> Dual:
        """Angular separation of ``u`` and ``v``, sine formula near alignment."""
        if isinstance(u, Vector3D):
            u = FieldVector3D.from_vector3d(u, v.count)
        norm_product = u.norm() * v.norm()
        if norm_product.value == 0.0:
            raise zero_norm()
        dot = u.dot(v)
        threshold = norm_product.value * 0.9999
        if dot.value < -threshold or dot.value > threshold:
            sine = u.cross(v).norm() / norm_product
            if dot.value >= 0.0:
                return sine.asin()
            return math.pi - sine.asin()
        return (dot / norm_product).acos()

    def __eq__(self, other) -> bool:
        if not isinstance(other, FieldVector3D):
            return NotImplemented
        return self._x == other.x and self._y == other.y and self._z == other.z

    def __hash__(self) -> int:
        return hash((self._x, self._y, self._z))

    def __repr__(self) -> str:
        return f"FieldVector3D({self._x!r}, {self._y!r}, {self._z!r})"

    def __str__(self) -> str:
        return '{' + '; '.join(format_number(c.value) for c in (self._x, self._y, self._z)) + '}'
