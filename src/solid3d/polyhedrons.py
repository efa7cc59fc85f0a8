"""Polyhedral regions stored as BSP trees.

A :class:`PolyhedronsSet` is a possibly non convex, possibly unbounded
region of space bounded by planar facets.  It is stored as a
:class:`~solid3d.bsp.BSPTree` and can be built from planes, from a box, or
from a boundary representation (:class:`BRep`): a list of vertices and a
list of facets, each facet being the indices of its vertices in
counterclockwise order seen from outside.

The boundary is computed from the tree: the part of each cut lying in its
node cell is split down both children, and the pieces with inside cells on
exactly one side form the boundary.  Volumes and barycenters follow from the
divergence theorem applied to these pieces.

Copyright (c) 2025 solid3d contributors
MIT License
"""

from __future__ import annotations

import logging
import math
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from solid3d.bsp import (BSPTree, Location, build_convex, difference_rule,
                         intersection_rule, union_rule, xor_rule)
from solid3d.errors import (BRepError, BRepErrorKind, GeometryArithmeticError,
                            IllegalArgumentError)
from solid3d.line import Line
from solid3d.plane import Plane
from solid3d.polygon import ConvexPolygon, PlanarPolygon
from solid3d.settings import GEOMETRY_EPSILON, SolverSettings
from solid3d.shape import SolidShape, keep_on_line
from solid3d.solvers import minimize_along_line
from solid3d.triangulator import triangulate_loop
from solid3d.vector import Vector3D

logger = logging.getLogger(__name__)


class BRep:
    """Boundary representation: shared vertices and facets of vertex indices."""

    __slots__ = ('_vertices', '_facets')

    def __init__(self, vertices: Sequence[Vector3D], facets: Sequence[Sequence[int]]):
        self._vertices = tuple(vertices)
        self._facets = tuple(tuple(int(i) for i in facet) for facet in facets)

    @property
    def vertices(self) -> Tuple[Vector3D, ...]:
        return self._vertices

    @property
    def facets(self) -> Tuple[Tuple[int, ...], ...]:
        return self._facets

    def facet_points(self, index: int) -> List[Vector3D]:
        return [self._vertices[i] for i in self._facets[index]]

    def __eq__(self, other) -> bool:
        if not isinstance(other, BRep):
            return NotImplemented
        return self._vertices == other.vertices and self._facets == other.facets

    def __hash__(self) -> int:
        return hash((self._vertices, self._facets))

    def __repr__(self) -> str:
        return f"BRep({len(self._vertices)} vertices, {len(self._facets)} facets)"


class BoundaryFacet:
    """Convex piece of the boundary with its outward oriented plane.

    ``polygon`` lies in the frame of the tree cut it comes from; when the
    inside of the region is on the plus side of that cut, the facet is
    ``reversed`` and its outward plane is the reverted cut.
    """

    __slots__ = ('_node', '_polygon', '_reversed', '_plane')

    def __init__(self, node: BSPTree, polygon: PlanarPolygon, reversed: bool):
        self._node = node
        self._polygon = polygon
        self._reversed = reversed
        self._plane = polygon.plane.revert() if reversed else polygon.plane

    @property
    def node(self) -> BSPTree:
        return self._node

    @property
    def plane(self) -> Plane:
        return self._plane

    @property
    def normal(self) -> Vector3D:
        return self._plane.normal

    @property
    def reversed(self) -> bool:
        return self._reversed

    @property
    def polygon(self) -> PlanarPolygon:
        return self._polygon

    def vertices(self) -> List[Vector3D]:
        """Vertices counterclockwise seen from outside."""
        points = self._polygon.vertices()
        if self._reversed:
            points.reverse()
        return points

    def area(self) -> float:
        return self._polygon.area()

    def centroid(self) -> Vector3D:
        return self._polygon.centroid()

    def is_bounded(self) -> bool:
        return self._polygon.is_bounded()

    def contains(self, point: Vector3D, tolerance: float = GEOMETRY_EPSILON) -> bool:
        return self._polygon.contains(point, tolerance)

    def closest_point(self, point: Vector3D) -> Vector3D:
        return self._polygon.closest_point(point)

    def __repr__(self) -> str:
        return f"BoundaryFacet(normal={self.normal}, area={self.area()!r})"


class PolyhedronsSet(SolidShape):
    """Region of space bounded by planar facets."""

    def __init__(self, tree: BSPTree = None, tolerance: float = GEOMETRY_EPSILON,
                 settings: SolverSettings = None):
        super().__init__(settings)
        self._tree = tree if tree is not None else BSPTree.leaf(True)
        self._tolerance = tolerance
        self._facets = None
        self._size = None
        self._barycenter = None

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------
    @classmethod
    def full(cls, tolerance: float = GEOMETRY_EPSILON) -> "PolyhedronsSet":
        return cls(BSPTree.leaf(True), tolerance)

    @classmethod
    def empty(cls, tolerance: float = GEOMETRY_EPSILON) -> "PolyhedronsSet":
        return cls(BSPTree.leaf(False), tolerance)

    @classmethod
    def from_planes(cls, planes: Sequence[Plane],
                    tolerance: float = GEOMETRY_EPSILON) -> "PolyhedronsSet":
        """Convex region on the inner side of all ``planes`` (normals point outwards)."""
        return cls(build_convex(list(planes)), tolerance)

    @classmethod
    def box(cls, xmin: float, xmax: float, ymin: float, ymax: float,
            zmin: float, zmax: float, tolerance: float = GEOMETRY_EPSILON) -> "PolyhedronsSet":
        """Axis aligned parallelepiped."""
        for name, low, high in (('x', xmin, xmax), ('y', ymin, ymax), ('z', zmin, zmax)):
            if not high - low > tolerance:
                raise IllegalArgumentError(f"empty box along {name}: [{low}, {high}]",
                                           {'axis': name, 'min': low, 'max': high})
        low = Vector3D(xmin, ymin, zmin)
        high = Vector3D(xmax, ymax, zmax)
        planes = [Plane.from_point_normal(low, Vector3D.MINUS_I),
                  Plane.from_point_normal(high, Vector3D.PLUS_I),
                  Plane.from_point_normal(low, Vector3D.MINUS_J),
                  Plane.from_point_normal(high, Vector3D.PLUS_J),
                  Plane.from_point_normal(low, Vector3D.MINUS_K),
                  Plane.from_point_normal(high, Vector3D.PLUS_K)]
        return cls.from_planes(planes, tolerance)

    @classmethod
    def from_brep(cls, vertices: Sequence[Vector3D], facets: Sequence[Sequence[int]],
                  tolerance: float = GEOMETRY_EPSILON) -> "PolyhedronsSet":
        """Build the region bounded by a closed, consistently oriented surface.

        Raises :class:`~solid3d.errors.BRepError` when the surface is
        malformed; the checks run in this order: close vertices, facets with
        fewer than three vertices, orientation mismatch, edge used by a
        single facet, vertex out of its facet plane.
        """
        vertices = list(vertices)
        facets = [list(facet) for facet in facets]
        _check_close_vertices(vertices, tolerance)
        for index, facet in enumerate(facets):
            if len(facet) < 3:
                raise BRepError(BRepErrorKind.WRONG_NUMBER_OF_POINTS,
                                f"facet {index} has {len(facet)} vertices, at least 3 are needed",
                                {'facet': index, 'count': len(facet)})
        _check_edges(facets)
        planes = [_facet_plane(vertices, facet, index, tolerance)
                  for index, facet in enumerate(facets)]

        root = BSPTree.leaf(False)
        triangles = 0
        for plane, facet in zip(planes, facets):
            loop = [plane.to_subspace(vertices[i]) for i in facet]
            for tri in triangulate_loop(loop):
                polygon = ConvexPolygon.from_points([loop[k] for k in tri])
                root.insert_polygon(PlanarPolygon(plane, polygon), tolerance)
                triangles += 1
        logger.debug('BSP tree built from %d facets (%d triangles), %d nodes',
                     len(facets), triangles, root.count())
        return cls(root, tolerance)

    @classmethod
    def from_brep_object(cls, brep: BRep, tolerance: float = GEOMETRY_EPSILON) -> "PolyhedronsSet":
        return cls.from_brep(brep.vertices, brep.facets, tolerance)

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------
    @property
    def tree(self) -> BSPTree:
        return self._tree

    @property
    def tolerance(self) -> float:
        return self._tolerance

    def _fields(self):
        return (('Nodes', self._tree.count()), ('Tolerance', self._tolerance))

    def check_point(self, point: Vector3D) -> Location:
        return self._tree.check_point(point, self._tolerance)

    def contains(self, point: Vector3D) -> bool:
        """True for points inside the region or on its boundary."""
        return self.check_point(point) != Location.OUTSIDE

    def is_empty(self) -> bool:
        return not any(leaf.inside for leaf in self._tree.leaves())

    def is_full(self) -> bool:
        return all(leaf.inside for leaf in self._tree.leaves())

    # ------------------------------------------------------------------
    # boundary and measures
    # ------------------------------------------------------------------
    def boundary_facets(self) -> Tuple[BoundaryFacet, ...]:
        """Convex pieces of the boundary, outward oriented."""
        if self._facets is None:
            tol = self._tolerance
            facets = []
            for node, facet in self._tree.cut_facets(tol):
                normal = node.cut.normal
                for piece, plus_inside in node.plus.split_polygon(facet, normal, tol):
                    for sub, minus_inside in node.minus.split_polygon(piece, -normal, tol):
                        if minus_inside == plus_inside:
                            continue
                        if sub.is_bounded() and sub.area() <= tol * tol:
                            continue
                        facets.append(BoundaryFacet(node, sub, plus_inside))
            self._facets = tuple(facets)
        return self._facets

    def _compute_measures(self) -> None:
        facets = self.boundary_facets()
        if not facets:
            self._size = math.inf if self.is_full() else 0.0
            self._barycenter = Vector3D.NAN
            return
        if not all(f.is_bounded() for f in facets):
            self._size = math.inf
            self._barycenter = Vector3D.NAN
            return
        volume = 0.0
        moment = np.zeros(3)
        for facet in facets:
            centroid = facet.centroid()
            weight = facet.area() * facet.normal.dot(centroid)
            volume += weight
            moment += weight * np.asarray(centroid.to_array())
        volume /= 3.0
        if volume < 0.0:
            self._size = math.inf
            self._barycenter = Vector3D.NAN
        elif volume == 0.0:
            self._size = 0.0
            self._barycenter = Vector3D.NAN
        else:
            self._size = volume
            self._barycenter = Vector3D.from_array(moment / (4.0 * volume))

    def get_size(self) -> float:
        """Volume of the region, ``inf`` when unbounded."""
        if self._size is None:
            self._compute_measures()
        return self._size

    def get_barycenter(self) -> Vector3D:
        """Center of mass of the region, NaN components when unbounded or empty."""
        if self._barycenter is None:
            self._compute_measures()
        return self._barycenter

    def get_boundary_size(self) -> float:
        return sum(f.area() for f in self.boundary_facets())

    def first_intersection(self, point: Vector3D, line: Line) -> Optional[BoundaryFacet]:
        """First boundary facet met by ``line`` from ``point`` onwards, or None.

        A facet containing ``point`` itself counts as met.
        """
        start = line.abscissa(point)
        best = None
        best_abscissa = math.inf
        for facet in self.boundary_facets():
            hit = facet.plane.intersection_line(line)
            if hit is None:
                continue
            abscissa = line.abscissa(hit)
            if abscissa < start - self._tolerance or abscissa >= best_abscissa:
                continue
            if facet.contains(hit, self._tolerance):
                best = facet
                best_abscissa = abscissa
        return best

    # ------------------------------------------------------------------
    # transforms and set operations
    # ------------------------------------------------------------------
    def _derive(self, tree: BSPTree) -> "PolyhedronsSet":
        return PolyhedronsSet(tree, self._tolerance, self._settings)

    def translate(self, translation: Vector3D) -> "PolyhedronsSet":
        return self._derive(self._tree.transform(lambda plane: plane.translate(translation)))

    def rotate(self, center: Vector3D, rotation) -> "PolyhedronsSet":
        return self._derive(self._tree.transform(lambda plane: plane.rotate(center, rotation)))

    def union(self, other: "PolyhedronsSet") -> "PolyhedronsSet":
        return self._derive(self._tree.graft(other.tree, union_rule).simplify())

    def intersection(self, other: "PolyhedronsSet") -> "PolyhedronsSet":
        return self._derive(self._tree.graft(other.tree, intersection_rule).simplify())

    def difference(self, other: "PolyhedronsSet") -> "PolyhedronsSet":
        return self._derive(self._tree.graft(other.tree, difference_rule).simplify())

    def xor(self, other: "PolyhedronsSet") -> "PolyhedronsSet":
        return self._derive(self._tree.graft(other.tree, xor_rule).simplify())

    def complement(self) -> "PolyhedronsSet":
        return self._derive(self._tree.complement())

    # ------------------------------------------------------------------
    # boundary representation
    # ------------------------------------------------------------------
    def get_brep(self) -> BRep:
        """Extract one facet per boundary plane orientation.

        Raises :class:`~solid3d.errors.BRepError` with kind ``OPEN_LOOP``
        for unbounded regions and ``SEVERAL_LOOPS`` when the boundary
        pieces on one plane do not form a single loop.
        """
        groups: Dict[Tuple[int, bool], List[BoundaryFacet]] = {}
        for facet in self.boundary_facets():
            groups.setdefault((id(facet.node), facet.reversed), []).append(facet)

        vertices: List[Vector3D] = []
        facets: List[Tuple[int, ...]] = []
        for pieces in groups.values():
            if not all(piece.is_bounded() for piece in pieces):
                raise BRepError(BRepErrorKind.OPEN_LOOP,
                                'boundary facet extends to infinity',
                                {'plane': str(pieces[0].plane)})
            plane = pieces[0].polygon.plane
            loop = _single_loop([p.polygon.polygon.vertices() for p in pieces],
                                self._tolerance)
            if pieces[0].reversed:
                loop.reverse()
            facets.append(tuple(_vertex_index(vertices, plane.to_space(p), self._tolerance)
                                for p in loop))
        logger.debug('boundary representation with %d vertices and %d facets',
                     len(vertices), len(facets))
        return BRep(vertices, facets)

    # ------------------------------------------------------------------
    # solid shape
    # ------------------------------------------------------------------
    def get_intersection_points(self, line: Line) -> Tuple[Vector3D, ...]:
        """Boundary crossing points sorted along ``line``."""
        points = []
        for facet in self.boundary_facets():
            hit = facet.plane.intersection_line(line)
            if hit is not None and facet.contains(hit, self._tolerance):
                points.append(hit)
        points.sort(key=line.abscissa)
        return tuple(keep_on_line(line, points))

    def closest_point_to_point(self, point: Vector3D) -> Vector3D:
        """Boundary point closest to ``point``."""
        facets = self.boundary_facets()
        if not facets:
            raise GeometryArithmeticError('region without boundary has no closest point')
        candidates = [facet.closest_point(point) for facet in facets]
        return min(candidates, key=point.distance)

    def distance_to_point(self, point: Vector3D) -> float:
        """Distance to the boundary, negative for points inside."""
        distance = self.closest_point_to_point(point).distance(point)
        if self.check_point(point) == Location.INSIDE:
            return -distance
        return distance

    def closest_point_to(self, line: Line) -> Tuple[Vector3D, Vector3D]:
        """Return ``(point_on_line, point_on_boundary)``.

        A crossing line gives its first intersection point twice.
        """
        points = self.get_intersection_points(line)
        if points:
            return points[0], points[0]
        start = line.point_of_min_abscissa() if not math.isinf(line.min_abscissa) \
            else line.origin
        if self.check_point(start) != Location.OUTSIDE:
            return start, start
        facets = self.boundary_facets()
        if not facets:
            raise GeometryArithmeticError('empty region has no closest point')
        best = None
        best_distance = math.inf
        for facet in facets:
            scale = math.sqrt(facet.area()) if facet.is_bounded() else 1.0
            on_line, on_facet = minimize_along_line(
                line, facet.closest_point, self._settings,
                start=line.abscissa(facet.centroid()), scale=scale)
            distance = on_line.distance(on_facet)
            if distance < best_distance:
                best = (on_line, on_facet)
                best_distance = distance
        return best


def _check_close_vertices(vertices: Sequence[Vector3D], tolerance: float) -> None:
    if len(vertices) < 2:
        return
    points = np.asarray([v.to_array() for v in vertices], dtype=float)
    for i in range(len(points) - 1):
        distances = np.linalg.norm(points[i + 1:] - points[i], axis=1)
        close = np.nonzero(distances <= tolerance)[0]
        if close.size:
            j = i + 1 + int(close[0])
            raise BRepError(BRepErrorKind.CLOSE_VERTICES,
                            f"vertices {i} and {j} are too close: {vertices[i]} and {vertices[j]}",
                            {'vertices': (i, j), 'distance': float(distances[close[0]])})


def _check_edges(facets: Sequence[Sequence[int]]) -> None:
    successors: Dict[int, List[int]] = defaultdict(list)
    for index, facet in enumerate(facets):
        for k, a in enumerate(facet):
            b = facet[(k + 1) % len(facet)]
            if b in successors[a]:
                raise BRepError(BRepErrorKind.FACET_ORIENTATION_MISMATCH,
                                f"edge {a} -> {b} is used twice in the same direction",
                                {'edge': (a, b), 'facet': index})
            successors[a].append(b)
    for a, targets in successors.items():
        for b in targets:
            if a not in successors.get(b, ()):
                raise BRepError(BRepErrorKind.EDGE_CONNECTED_TO_ONE_FACET,
                                f"edge {a} -> {b} is connected to one facet only",
                                {'edge': (a, b)})


def _newell_normal(points: Sequence[Vector3D]) -> Vector3D:
    nx = ny = nz = 0.0
    for i, p in enumerate(points):
        q = points[(i + 1) % len(points)]
        nx += (p.y - q.y) * (p.z + q.z)
        ny += (p.z - q.z) * (p.x + q.x)
        nz += (p.x - q.x) * (p.y + q.y)
    return Vector3D(nx, ny, nz)


def _facet_plane(vertices: Sequence[Vector3D], facet: Sequence[int], index: int,
                 tolerance: float) -> Plane:
    points = [vertices[i] for i in facet]
    newell = _newell_normal(points)
    normal = (points[1] - points[0]).cross(points[2] - points[0])
    if normal.norm() < GEOMETRY_EPSILON:
        plane = Plane.from_point_normal(points[0], newell)
    else:
        plane = Plane.from_points(points[0], points[1], points[2])
        if plane.normal.dot(newell) < 0.0:
            plane = plane.revert()
    for i, p in zip(facet, points):
        offset = plane.get_offset(p)
        if abs(offset) > tolerance:
            raise BRepError(BRepErrorKind.OUT_OF_PLANE,
                            f"vertex {i} is {offset:g} away from the plane of facet {index}",
                            {'vertex': i, 'facet': index, 'offset': offset})
    return plane


def _point_index(points: List[Tuple[float, float]], p, tolerance: float) -> int:
    for i, q in enumerate(points):
        if math.hypot(p[0] - q[0], p[1] - q[1]) <= tolerance:
            return i
    points.append(p)
    return len(points) - 1


def _vertex_index(vertices: List[Vector3D], p: Vector3D, tolerance: float) -> int:
    for i, q in enumerate(vertices):
        if p.distance(q) <= tolerance:
            return i
    vertices.append(p)
    return len(vertices) - 1


def _split_at_points(a: int, b: int, points, tolerance: float) -> List[int]:
    """Indices ``a``, the points lying inside segment ``a b`` in order, then ``b``."""
    pa, pb = points[a], points[b]
    dx, dy = pb[0] - pa[0], pb[1] - pa[1]
    length = math.hypot(dx, dy)
    inner = []
    for k, q in enumerate(points):
        if k in (a, b):
            continue
        along = ((q[0] - pa[0]) * dx + (q[1] - pa[1]) * dy) / length
        across = abs((q[1] - pa[1]) * dx - (q[0] - pa[0]) * dy) / length
        if tolerance < along < length - tolerance and across <= tolerance:
            inner.append((along, k))
    inner.sort()
    return [a] + [k for _, k in inner] + [b]


def _single_loop(polygons: Sequence[Sequence[Tuple[float, float]]],
                 tolerance: float) -> List[Tuple[float, float]]:
    """Outline of adjacent counterclockwise convex pieces, as a single loop."""
    points: List[Tuple[float, float]] = []
    indexed = []
    for polygon in polygons:
        ids = []
        for p in polygon:
            i = _point_index(points, p, tolerance)
            if not ids or ids[-1] != i:
                ids.append(i)
        if len(ids) > 1 and ids[0] == ids[-1]:
            ids.pop()
        indexed.append(ids)

    edges = Counter()
    for ids in indexed:
        for k, a in enumerate(ids):
            b = ids[(k + 1) % len(ids)]
            if a == b:
                continue
            chain = _split_at_points(a, b, points, tolerance)
            edges.update(zip(chain, chain[1:]))

    outgoing: Dict[int, List[int]] = defaultdict(list)
    for (a, b), count in edges.items():
        for _ in range(count - edges.get((b, a), 0)):
            outgoing[a].append(b)

    loops = []
    while outgoing:
        start = next(iter(outgoing))
        loop = [start]
        current = start
        while True:
            targets = outgoing.get(current)
            if not targets:
                raise BRepError(BRepErrorKind.OPEN_LOOP, 'boundary loop is not closed',
                                {'point': points[current]})
            following = targets.pop()
            if not targets:
                del outgoing[current]
            if following == start:
                break
            loop.append(following)
            current = following
        loops.append(loop)

    if not loops:
        raise BRepError(BRepErrorKind.OPEN_LOOP, 'no boundary loop found')
    if len(loops) > 1:
        raise BRepError(BRepErrorKind.SEVERAL_LOOPS,
                        f"facet boundary has {len(loops)} loops",
                        {'loops': len(loops)})
    return _drop_collinear([points[i] for i in loops[0]], tolerance)


def _drop_collinear(loop: List[Tuple[float, float]], tolerance: float):
    changed = True
    while changed and len(loop) > 3:
        changed = False
        for i in range(len(loop)):
            p, c, n = loop[i - 1], loop[i], loop[(i + 1) % len(loop)]
            dx, dy = n[0] - p[0], n[1] - p[1]
            length = math.hypot(dx, dy)
            if length == 0.0:
                continue
            if abs((c[1] - p[1]) * dx - (c[0] - p[0]) * dy) / length <= tolerance:
                del loop[i]
                changed = True
                break
    return loop
