import math

from solid3d.bsp import (BSPTree, Location, build_convex, difference_rule,
                         intersection_rule, union_rule, xor_rule)
from solid3d.plane import Plane
from solid3d.polygon import ConvexPolygon, Edge, PlanarPolygon, line_through, plane_trace
from solid3d.vector import Vector3D

SQUARE = [(0.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 2.0)]


def _box_planes(low=0.0, high=1.0):
    lo = Vector3D(low, low, low)
    hi = Vector3D(high, high, high)
    return [Plane.from_point_normal(lo, Vector3D.MINUS_I),
            Plane.from_point_normal(hi, Vector3D.PLUS_I),
            Plane.from_point_normal(lo, Vector3D.MINUS_J),
            Plane.from_point_normal(hi, Vector3D.PLUS_J),
            Plane.from_point_normal(lo, Vector3D.MINUS_K),
            Plane.from_point_normal(hi, Vector3D.PLUS_K)]


def _close(p, q, tol=1e-12):
    return math.hypot(p[0] - q[0], p[1] - q[1]) < tol


def test_line_through():
    e = line_through((0.0, 0.0), (2.0, 0.0))
    # left of the direction is negative
    assert e.offset((1.0, 1.0)) < 0.0
    assert e.offset((1.0, -1.0)) > 0.0
    assert abs(e.offset((5.0, 0.0))) < 1e-15


def test_square():
    square = ConvexPolygon.from_points(SQUARE)
    assert square.is_bounded()
    assert abs(square.area() - 4.0) < 1e-15
    assert _close(square.centroid(), (1.0, 1.0))
    assert all(_close(p, q) for p, q in zip(square.vertices(), SQUARE))
    assert square.contains((1.0, 1.0))
    assert square.contains((2.0, 1.0))
    assert not square.contains((2.1, 1.0))
    # clockwise input gives the same polygon
    assert abs(ConvexPolygon.from_points(SQUARE[::-1]).area() - 4.0) < 1e-15


def test_whole_plane():
    plane = ConvexPolygon.whole_plane()
    assert not plane.is_bounded()
    assert plane.area() == math.inf
    assert plane.contains((1e6, -1e6))


def test_clip_and_split():
    square = ConvexPolygon.from_points(SQUARE)
    left = square.clip(Edge(1.0, 0.0, -1.0))
    assert abs(left.area() - 2.0) < 1e-15
    assert _close(left.centroid(), (0.5, 1.0))
    assert square.clip(Edge(1.0, 0.0, -5.0)) is square
    assert square.clip(Edge(1.0, 0.0, 5.0)) is None
    minus, plus = square.split(Edge(1.0, 1.0, -2.0))
    assert abs(minus.area() - 2.0) < 1e-14
    assert abs(plus.area() - 2.0) < 1e-14
    assert len(minus.vertices()) == 3
    # touching the boundary is not a split
    minus, plus = square.split(Edge(1.0, 0.0, -2.0))
    assert minus is square
    assert plus is None


def test_clip_whole_plane():
    strip = ConvexPolygon.whole_plane().clip(Edge(1.0, 0.0, -1.0))
    strip = strip.clip(Edge(-1.0, 0.0, 0.0))
    assert not strip.is_bounded()
    square = strip.clip(Edge(0.0, 1.0, -1.0)).clip(Edge(0.0, -1.0, 0.0))
    assert square.is_bounded()
    assert abs(square.area() - 1.0) < 1e-12


def test_polygon_closest_point():
    square = ConvexPolygon.from_points(SQUARE)
    assert square.closest_point((1.0, 1.0)) == (1.0, 1.0)
    assert _close(square.closest_point((3.0, 1.0)), (2.0, 1.0))
    assert _close(square.closest_point((3.0, 3.0)), (2.0, 2.0))


class TestPlanarPolygon:
    """convex polygons lying in a 3D plane"""

    def _polygon(self):
        plane = Plane.from_point_normal(Vector3D(0, 0, 1), Vector3D.PLUS_K)
        corners = [Vector3D(x, y, 1) for x, y in SQUARE]
        return PlanarPolygon(plane, ConvexPolygon.from_points(
            [plane.to_subspace(p) for p in corners]))

    def test_measures(self):
        polygon = self._polygon()
        assert abs(polygon.area() - 4.0) < 1e-15
        assert polygon.centroid().distance(Vector3D(1, 1, 1)) < 1e-15
        assert all(abs(v.z - 1.0) < 1e-15 for v in polygon.vertices())
        assert polygon.contains(Vector3D(1, 1, 1))
        assert not polygon.contains(Vector3D(1, 1, 1.1))
        assert polygon.closest_point(Vector3D(3, 1, 5)).distance(Vector3D(2, 1, 1)) < 1e-15

    def test_trace(self):
        support = Plane.from_point_normal(Vector3D(0, 0, 1), Vector3D.PLUS_K)
        cut = Plane.from_point_normal(Vector3D(1, 0, 0), Vector3D.PLUS_I)
        trace = plane_trace(cut, support)
        for p in (Vector3D(0, 0, 1), Vector3D(3, -2, 1)):
            assert abs(trace.offset(support.to_subspace(p)) - cut.get_offset(p)) < 1e-15
        assert plane_trace(support, Plane.from_point_normal(Vector3D.ZERO, Vector3D.MINUS_K)) is None

    def test_split(self):
        polygon = self._polygon()
        minus, plus = polygon.split(Plane.from_point_normal(Vector3D(1, 0, 0), Vector3D.PLUS_I))
        assert abs(minus.area() - 2.0) < 1e-15
        assert abs(plus.area() - 2.0) < 1e-15
        assert minus.centroid().distance(Vector3D(0.5, 1, 1)) < 1e-15
        above = Plane.from_point_normal(Vector3D(0, 0, 3), Vector3D.PLUS_K)
        assert polygon.split(above) == (polygon, None)
        assert polygon.split(above.revert()) == (None, polygon)
        coplanar = Plane.from_point_normal(Vector3D(5, 5, 1), Vector3D.MINUS_K)
        assert polygon.split(coplanar) == (None, None)


class TestBSPTree:
    """binary space partitions of convex cells"""

    def test_convex_tree(self):
        tree = build_convex(_box_planes())
        assert tree.count() == 13
        assert [leaf.inside for leaf in tree.leaves()].count(True) == 1
        assert tree.check_point(Vector3D(0.5, 0.5, 0.5)) == Location.INSIDE
        assert tree.check_point(Vector3D(2.0, 0.5, 0.5)) == Location.OUTSIDE
        assert tree.check_point(Vector3D(1.0, 0.5, 0.5)) == Location.BOUNDARY
        assert tree.check_point(Vector3D(1.0, 1.0, 1.0)) == Location.BOUNDARY
        assert tree.check_point(Vector3D(1.0, 1.0, 1.5)) == Location.OUTSIDE

    def test_complement(self):
        tree = build_convex(_box_planes()).complement()
        assert tree.check_point(Vector3D(0.5, 0.5, 0.5)) == Location.OUTSIDE
        assert tree.check_point(Vector3D(2.0, 0.5, 0.5)) == Location.INSIDE
        assert tree.check_point(Vector3D(0.0, 0.5, 0.5)) == Location.BOUNDARY

    def test_leaf_trees(self):
        assert BSPTree.leaf(True).check_point(Vector3D.ZERO) == Location.INSIDE
        plane = Plane(Vector3D.PLUS_K)
        tree = BSPTree(plane)
        assert tree.minus.inside and not tree.plus.inside
        same = BSPTree(plane, BSPTree.leaf(True), BSPTree.leaf(True)).simplify()
        assert same.is_leaf() and same.inside
        assert str(BSPTree.leaf(False)) == 'BSPTree(inside=False)'

    def test_transform(self):
        shift = Vector3D(10, 0, 0)
        tree = build_convex(_box_planes()).transform(lambda plane: plane.translate(shift))
        assert tree.check_point(Vector3D(10.5, 0.5, 0.5)) == Location.INSIDE
        assert tree.check_point(Vector3D(0.5, 0.5, 0.5)) == Location.OUTSIDE

    def test_graft_rules(self):
        other = build_convex(_box_planes())
        assert union_rule(True, other).is_leaf()
        assert union_rule(False, other).count() == other.count()
        assert intersection_rule(False, other).inside is False
        assert not difference_rule(False, other).inside
        inverted = difference_rule(True, other)
        assert inverted.check_point(Vector3D(0.5, 0.5, 0.5)) == Location.OUTSIDE
        assert xor_rule(False, other).check_point(Vector3D(0.5, 0.5, 0.5)) == Location.INSIDE
        big = build_convex(_box_planes(-1.0, 2.0))
        hollow = big.graft(other, difference_rule).simplify()
        assert hollow.check_point(Vector3D(0.5, 0.5, 0.5)) == Location.OUTSIDE
        assert hollow.check_point(Vector3D(-0.5, 0.5, 0.5)) == Location.INSIDE
        assert hollow.check_point(Vector3D(5.0, 0.5, 0.5)) == Location.OUTSIDE

    def test_cut_facets(self):
        facets = list(build_convex(_box_planes()).cut_facets())
        assert len(facets) == 6
        assert [f.is_bounded() for _, f in facets] == [False] * 4 + [True] * 2
        for node, facet in facets[4:]:
            assert abs(facet.area() - 1.0) < 1e-12
            assert facet.plane is node.cut

    def test_split_polygon(self):
        tree = build_convex(_box_planes())
        plane = Plane.from_point_normal(Vector3D(0, 0, 0.5), Vector3D.PLUS_K)
        corners = [Vector3D(x, y, 0.5) for x, y in ((-1, -1), (2, -1), (2, 2), (-1, 2))]
        polygon = PlanarPolygon(plane, ConvexPolygon.from_points(
            [plane.to_subspace(p) for p in corners]))
        pieces = tree.split_polygon(polygon, Vector3D.PLUS_K)
        assert abs(sum(piece.area() for piece, _ in pieces) - 9.0) < 1e-9
        inside = [piece for piece, flag in pieces if flag]
        assert len(inside) == 1
        assert abs(inside[0].area() - 1.0) < 1e-12
        assert inside[0].centroid().distance(Vector3D(0.5, 0.5, 0.5)) < 1e-12

    def test_insert_polygon(self):
        tree = BSPTree.leaf(False)
        plane = Plane.from_point_normal(Vector3D.ZERO, Vector3D.MINUS_K)
        triangle = ConvexPolygon.from_points(
            [plane.to_subspace(p) for p in (Vector3D.ZERO, Vector3D.PLUS_I, Vector3D.PLUS_J)])
        tree.insert_polygon(PlanarPolygon(plane, triangle))
        assert tree.count() == 3
        assert tree.check_point(Vector3D(0.2, 0.2, 1.0)) == Location.INSIDE
        assert tree.check_point(Vector3D(0.2, 0.2, -1.0)) == Location.OUTSIDE
        # a coplanar polygon does not add a cut
        tree.insert_polygon(PlanarPolygon(plane, triangle))
        assert tree.count() == 3
