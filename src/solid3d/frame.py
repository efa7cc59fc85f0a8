"""Local frames attached to shapes.

Every quadric is described in its own orthonormal frame: Z along the
shape axis, X along the reference direction (made orthogonal to the axis)
and Y completing a direct basis.  :class:`LocalFrame` converts points,
vectors and lines between that frame and the standard one.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import math

from solid3d.errors import IllegalArgumentError
from solid3d.line import Line
from solid3d.settings import GEOMETRY_EPSILON
from solid3d.vector import Vector3D
from solid3d.xform import Matrix3D


class LocalFrame:
    """Orthonormal frame centred on ``origin`` with Z along ``axis``."""

    __slots__ = ('_origin', '_x', '_y', '_z', '_standard', '_local')

    def __init__(self, origin: Vector3D, axis: Vector3D, reference: Vector3D):
        if axis.norm() < GEOMETRY_EPSILON:
            raise IllegalArgumentError('axis vector has a zero norm', {'axis': str(axis)})
        if reference.norm() < GEOMETRY_EPSILON:
            raise IllegalArgumentError('reference vector has a zero norm',
                                       {'reference': str(reference)})
        if axis.cross(reference).norm() < GEOMETRY_EPSILON:
            raise IllegalArgumentError('axis and reference vectors are parallel',
                                       {'axis': str(axis), 'reference': str(reference)})
        self._origin = origin
        self._z = axis.normalize()
        self._x = reference.subtract(reference.dot(self._z), self._z).normalize()
        self._y = self._z.cross(self._x)
        self._standard = Matrix3D.from_columns(self._x, self._y, self._z)
        self._local = self._standard.transpose()

    @classmethod
    def from_axis(cls, origin: Vector3D, axis: Vector3D) -> "LocalFrame":
        """Frame whose X direction is chosen orthogonal to ``axis``."""
        if axis.norm() < GEOMETRY_EPSILON:
            raise IllegalArgumentError('axis vector has a zero norm', {'axis': str(axis)})
        return cls(origin, axis, axis.orthogonal())

    @property
    def origin(self) -> Vector3D:
        return self._origin

    @property
    def x_axis(self) -> Vector3D:
        return self._x

    @property
    def y_axis(self) -> Vector3D:
        return self._y

    @property
    def z_axis(self) -> Vector3D:
        return self._z

    @property
    def standard_basis_transform(self) -> Matrix3D:
        """Matrix whose columns are the local X, Y and Z axes."""
        return Matrix3D(self._standard)

    @property
    def local_basis_transform(self) -> Matrix3D:
        return Matrix3D(self._local)

    def vectorial_local(self, vector: Vector3D) -> Vector3D:
        return self._local.mul(vector)

    def vectorial_standard(self, vector: Vector3D) -> Vector3D:
        return self._standard.mul(vector)

    def affine_local(self, point: Vector3D) -> Vector3D:
        return self._local.mul(point - self._origin)

    def affine_standard(self, point: Vector3D) -> Vector3D:
        return self._standard.mul(point) + self._origin

    def line_to_local(self, line: Line) -> Line:
        """Express ``line`` in local coordinates, keeping its starting point."""
        origin = self.affine_local(line.origin)
        direction = self.vectorial_local(line.direction)
        if math.isinf(line.min_abscissa):
            return Line.from_direction(origin, direction)
        return Line.from_direction(origin, direction, line.min_abscissa)

    def __repr__(self) -> str:
        return f"LocalFrame(origin={self._origin!r}, z={self._z!r}, x={self._x!r})"
