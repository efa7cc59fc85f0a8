"""Binary space partitioning trees of planes.

Internal nodes hold a cut :class:`~solid3d.plane.Plane` and two children:
``minus`` for the half space where the plane offset is negative and
``plus`` for the other one.  Leaves only say whether their cell is inside
the region.  Boundary planes are oriented outwards, so the inside of a
region is on the minus side of its boundary planes.

Points and polygons lying exactly on a cut are resolved with probe
directions: going down a child of a cut the point lies on, the child's side
normal is remembered and used to pick a side when the point lies on a later
cut with the same supporting plane.  Other cuts send the point down both
children and a disagreement means the point is on the boundary.

Set operations graft a copy of one tree under the leaves of the other.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from solid3d.plane import Plane
from solid3d.polygon import ConvexPolygon, PlanarPolygon, plane_trace
from solid3d.settings import GEOMETRY_EPSILON
from solid3d.vector import Vector3D

logger = logging.getLogger(__name__)


class Location(Enum):
    INSIDE = 'inside'
    OUTSIDE = 'outside'
    BOUNDARY = 'boundary'


class BSPTree:
    """Node of a BSP tree; a leaf when ``cut`` is None."""

    __slots__ = ('cut', 'minus', 'plus', 'inside')

    def __init__(self, cut: Optional[Plane] = None, minus: "BSPTree" = None,
                 plus: "BSPTree" = None, inside: bool = False):
        if cut is not None and (minus is None or plus is None):
            minus = minus or BSPTree(inside=True)
            plus = plus or BSPTree(inside=False)
        self.cut = cut
        self.minus = minus
        self.plus = plus
        self.inside = inside

    @classmethod
    def leaf(cls, inside: bool) -> "BSPTree":
        return cls(inside=inside)

    def is_leaf(self) -> bool:
        return self.cut is None

    def __repr__(self) -> str:
        if self.is_leaf():
            return f"BSPTree(inside={self.inside})"
        return f"BSPTree(cut={self.cut!r}, minus={self.minus!r}, plus={self.plus!r})"

    # ------------------------------------------------------------------
    # structure
    # ------------------------------------------------------------------
    def copy(self) -> "BSPTree":
        if self.is_leaf():
            return BSPTree.leaf(self.inside)
        return BSPTree(self.cut, self.minus.copy(), self.plus.copy())

    def complement(self) -> "BSPTree":
        if self.is_leaf():
            return BSPTree.leaf(not self.inside)
        return BSPTree(self.cut, self.minus.complement(), self.plus.complement())

    def transform(self, fn: Callable[[Plane], Plane]) -> "BSPTree":
        """Copy of the tree with every cut replaced by ``fn(cut)``."""
        if self.is_leaf():
            return BSPTree.leaf(self.inside)
        return BSPTree(fn(self.cut), self.minus.transform(fn), self.plus.transform(fn))

    def graft(self, other: "BSPTree", rule: Callable[[bool, "BSPTree"], "BSPTree"]) -> "BSPTree":
        """Copy of the tree where each leaf is replaced by ``rule(leaf.inside, other)``."""
        if self.is_leaf():
            return rule(self.inside, other)
        return BSPTree(self.cut, self.minus.graft(other, rule), self.plus.graft(other, rule))

    def simplify(self) -> "BSPTree":
        """Collapse the cuts whose two children are leaves with the same flag."""
        if self.is_leaf():
            return BSPTree.leaf(self.inside)
        minus = self.minus.simplify()
        plus = self.plus.simplify()
        if minus.is_leaf() and plus.is_leaf() and minus.inside == plus.inside:
            return BSPTree.leaf(minus.inside)
        return BSPTree(self.cut, minus, plus)

    def count(self) -> int:
        if self.is_leaf():
            return 1
        return 1 + self.minus.count() + self.plus.count()

    def leaves(self) -> Iterator["BSPTree"]:
        if self.is_leaf():
            yield self
        else:
            yield from self.minus.leaves()
            yield from self.plus.leaves()

    # ------------------------------------------------------------------
    # classification
    # ------------------------------------------------------------------
    def check_point(self, point: Vector3D, tolerance: float = GEOMETRY_EPSILON) -> Location:
        return self._locate(point, (), tolerance)

    def _locate(self, point, probes, tolerance):
        if self.is_leaf():
            return Location.INSIDE if self.inside else Location.OUTSIDE
        offset = self.cut.get_offset(point)
        if offset < -tolerance:
            return self.minus._locate(point, probes, tolerance)
        if offset > tolerance:
            return self.plus._locate(point, probes, tolerance)
        side = _probe_side(self.cut, probes)
        if side < 0:
            return self.minus._locate(point, probes, tolerance)
        if side > 0:
            return self.plus._locate(point, probes, tolerance)
        normal = self.cut.normal
        minus = self.minus._locate(point, probes + (-normal,), tolerance)
        plus = self.plus._locate(point, probes + (normal,), tolerance)
        return minus if minus == plus else Location.BOUNDARY

    def split_polygon(self, polygon: PlanarPolygon, probe: Vector3D,
                      tolerance: float = GEOMETRY_EPSILON
                      ) -> List[Tuple[PlanarPolygon, bool]]:
        """Cut ``polygon`` down to the leaves, returning ``(piece, inside)`` pairs.

        Pieces lying in a cut go to the side ``probe`` points to.
        """
        if self.is_leaf():
            return [(polygon, self.inside)]
        minus, plus = polygon.split(self.cut, tolerance)
        if minus is None and plus is None:
            if probe.dot(self.cut.normal) > 0.0:
                return self.plus.split_polygon(polygon, probe, tolerance)
            return self.minus.split_polygon(polygon, probe, tolerance)
        pieces = []
        if minus is not None:
            pieces.extend(self.minus.split_polygon(minus, probe, tolerance))
        if plus is not None:
            pieces.extend(self.plus.split_polygon(plus, probe, tolerance))
        return pieces

    # ------------------------------------------------------------------
    # cells
    # ------------------------------------------------------------------
    def cut_facets(self, tolerance: float = GEOMETRY_EPSILON
                   ) -> Iterator[Tuple["BSPTree", PlanarPolygon]]:
        """Yield each internal node with the part of its cut inside the node cell.

        A cut lying in one of its ancestors' cuts has an empty facet and is
        skipped.
        """
        yield from self._cut_facets([], tolerance)

    def _cut_facets(self, constraints, tolerance):
        if self.is_leaf():
            return
        facet = _cell_facet(self.cut, constraints, tolerance)
        if facet is not None:
            yield self, facet
        constraints.append(self.cut)
        yield from self.minus._cut_facets(constraints, tolerance)
        constraints[-1] = self.cut.revert()
        yield from self.plus._cut_facets(constraints, tolerance)
        constraints.pop()

    def insert_polygon(self, polygon: PlanarPolygon, tolerance: float = GEOMETRY_EPSILON) -> None:
        """Insert the plane of ``polygon`` as a cut wherever the polygon reaches a leaf.

        Parts of the polygon lying in an existing cut are dropped.  The new
        cuts get an inside leaf on their minus side.
        """
        if self.is_leaf():
            self.cut = polygon.plane
            self.minus = BSPTree.leaf(True)
            self.plus = BSPTree.leaf(False)
            return
        minus, plus = polygon.split(self.cut, tolerance)
        if minus is not None:
            self.minus.insert_polygon(minus, tolerance)
        if plus is not None:
            self.plus.insert_polygon(plus, tolerance)


def _probe_side(cut: Plane, probes: Sequence[Vector3D]) -> int:
    for probe in probes:
        dot = probe.dot(cut.normal)
        # only a cut lying in the plane the probe came from is decided
        if dot > 1.0 - GEOMETRY_EPSILON:
            return 1
        if dot < GEOMETRY_EPSILON - 1.0:
            return -1
    return 0


def _cell_facet(cut: Plane, constraints: Sequence[Plane], tolerance: float
                ) -> Optional[PlanarPolygon]:
    """Part of ``cut`` on the minus side of every constraint plane."""
    polygon = ConvexPolygon.whole_plane()
    for constraint in constraints:
        trace = plane_trace(constraint, cut)
        if trace is None:
            if abs(constraint.get_offset(cut.origin)) <= tolerance \
                    or constraint.get_offset(cut.origin) > 0.0:
                return None
            continue
        polygon = polygon.clip(trace, tolerance)
        if polygon is None:
            return None
    return PlanarPolygon(cut, polygon)


def build_convex(planes: Sequence[Plane]) -> BSPTree:
    """Tree of the convex region on the minus side of all ``planes``."""
    tree = BSPTree.leaf(True)
    for plane in reversed(planes):
        tree = BSPTree(plane, tree, BSPTree.leaf(False))
    logger.debug('convex tree built from %d planes', len(planes))
    return tree


def union_rule(inside: bool, other: BSPTree) -> BSPTree:
    return BSPTree.leaf(True) if inside else other.copy()


def intersection_rule(inside: bool, other: BSPTree) -> BSPTree:
    return other.copy() if inside else BSPTree.leaf(False)


def difference_rule(inside: bool, other: BSPTree) -> BSPTree:
    return other.complement() if inside else BSPTree.leaf(False)


def xor_rule(inside: bool, other: BSPTree) -> BSPTree:
    return other.complement() if inside else other.copy()
