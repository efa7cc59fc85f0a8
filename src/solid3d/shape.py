"""Common interface of the solid shapes.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import abc
import math
from typing import Iterable, List, Sequence, Tuple

from solid3d.frame import LocalFrame
from solid3d.line import Line
from solid3d.settings import DEFAULT_SETTINGS, GEOMETRY_EPSILON, SolverSettings
from solid3d.vector import Vector3D
from solid3d.xform import Matrix3D


class SolidShape(abc.ABC):
    """A shape that can be intersected with lines and measured against them."""

    def __init__(self, settings: SolverSettings = None):
        self._settings = settings if settings is not None else DEFAULT_SETTINGS

    @property
    def settings(self) -> SolverSettings:
        return self._settings

    @abc.abstractmethod
    def get_intersection_points(self, line: Line) -> Tuple[Vector3D, ...]:
        """Points where ``line`` crosses the shape surface."""

    @abc.abstractmethod
    def closest_point_to(self, line: Line) -> Tuple[Vector3D, Vector3D]:
        """Return ``(point_on_line, point_on_shape)`` realizing the distance."""

    def intersects(self, line: Line) -> bool:
        return len(self.get_intersection_points(line)) > 0

    def distance_to(self, line: Line) -> float:
        """Distance between ``line`` and the shape, zero when they intersect."""
        if self.intersects(line):
            return 0.0
        on_line, on_shape = self.closest_point_to(line)
        return on_line.distance(on_shape)

    # ------------------------------------------------------------------
    # helpers for the concrete shapes
    # ------------------------------------------------------------------
    def _fields(self) -> Sequence[Tuple[str, object]]:
        return ()

    def __str__(self) -> str:
        parts = []
        for name, value in self._fields():
            if isinstance(value, Vector3D):
                parts.append(f"{name}{value}")
            else:
                parts.append(f"{name}{{{value!r}}}")
        return f"{type(self).__name__}{{{','.join(parts)}}}"

    def __repr__(self) -> str:
        return str(self)


class FramedShape(SolidShape):
    """Shape described in a :class:`~solid3d.frame.LocalFrame`."""

    def __init__(self, frame: LocalFrame, settings: SolverSettings = None):
        super().__init__(settings)
        self._frame = frame

    @property
    def frame(self) -> LocalFrame:
        return self._frame

    @property
    def standard_basis_transform(self) -> Matrix3D:
        return self._frame.standard_basis_transform

    @property
    def local_basis_transform(self) -> Matrix3D:
        return self._frame.local_basis_transform

    def affine_local(self, point: Vector3D) -> Vector3D:
        return self._frame.affine_local(point)

    def affine_standard(self, point: Vector3D) -> Vector3D:
        return self._frame.affine_standard(point)

    def vectorial_local(self, vector: Vector3D) -> Vector3D:
        return self._frame.vectorial_local(vector)

    def vectorial_standard(self, vector: Vector3D) -> Vector3D:
        return self._frame.vectorial_standard(vector)

    def _local_line(self, line: Line) -> Line:
        return self._frame.line_to_local(line)

    def _to_standard(self, points: Iterable[Vector3D]) -> Tuple[Vector3D, ...]:
        return tuple(self._frame.affine_standard(p) for p in points)


def keep_on_line(line: Line, points: Iterable[Vector3D]) -> List[Vector3D]:
    """Drop the points before the line start and merge duplicates.

    On a half line the kept points are ordered from its start.
    """
    kept = []
    for p in points:
        if not line.is_valid_abscissa(line.abscissa(p)):
            continue
        if any(p.distance(q) < GEOMETRY_EPSILON for q in kept):
            continue
        kept.append(p)
    if not math.isinf(line.min_abscissa):
        kept.sort(key=line.abscissa)
    return kept
