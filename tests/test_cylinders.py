import math

import pytest

from solid3d.cylinders import (EllipticCylinder, InfiniteEllipticCylinder,
                               InfiniteRightCircularCylinder, RightCircularCylinder,
                               closest_point_on_ellipse, project_on_ellipse_disk)
from solid3d.errors import IllegalArgumentError
from solid3d.line import Line
from solid3d.vector import Vector3D


def _sorted_by_x(points):
    return sorted(points, key=lambda p: p.x)


def test_ellipse_projection():
    assert closest_point_on_ellipse(2.0, 1.0, 5.0, 0.0) == (2.0, 0.0)
    assert closest_point_on_ellipse(2.0, 1.0, 0.0, -3.0) == (0.0, -1.0)
    # the center goes to the closest vertex
    assert closest_point_on_ellipse(2.0, 1.0, 0.0, 0.0) == (0.0, 1.0)
    x, y = closest_point_on_ellipse(2.0, 1.0, 3.0, 3.0)
    assert abs(x * x / 4.0 + y * y - 1.0) < 1e-12
    # the offset is along the ellipse normal
    assert abs((x - 3.0) * (y / 1.0) - (y - 3.0) * (x / 4.0)) < 1e-10
    assert project_on_ellipse_disk(2.0, 1.0, 1.0, 0.5) == (1.0, 0.5)


def test_inside_ellipse_projection():
    x, y = closest_point_on_ellipse(2.0, 1.0, 0.5, 0.1)
    assert abs(x * x / 4.0 + y * y - 1.0) < 1e-12
    assert math.hypot(x - 0.5, y - 0.1) <= 0.9 + 1e-12
    assert y > 0.0


class TestInfiniteCylinders:
    """cylinders along Z through the origin"""

    def test_containment_and_distances(self):
        c = InfiniteRightCircularCylinder(Vector3D.ZERO, Vector3D.PLUS_K, 2.0)
        assert c.radius == 2.0
        assert c.contains(Vector3D(1, 1, 100))
        assert not c.contains(Vector3D(2, 1, 0))
        assert abs(c.distance_to_point(Vector3D(5, 0, 0)) - 3.0) < 1e-15
        assert abs(c.distance_to_point(Vector3D(1, 0, 0)) + 1.0) < 1e-15
        assert c.closest_point_to_point(Vector3D(0, 3, 7)).distance(Vector3D(0, 2, 7)) < 1e-15
        assert c.get_normal(Vector3D(5, 0, 3)).distance(Vector3D.PLUS_I) < 1e-15

    def test_intersections(self):
        c = InfiniteRightCircularCylinder(Vector3D.ZERO, Vector3D.PLUS_K, 2.0)
        line = Line.from_direction(Vector3D(-10, 0, 5), Vector3D.PLUS_I)
        points = _sorted_by_x(c.get_intersection_points(line))
        assert len(points) == 2
        assert points[0].distance(Vector3D(-2, 0, 5)) < 1e-14
        assert points[1].distance(Vector3D(2, 0, 5)) < 1e-14
        on_line, on_shape = c.closest_point_to(line)
        assert on_line == on_shape

    def test_parallel_line(self):
        c = InfiniteRightCircularCylinder.from_axis(
            Line.from_direction(Vector3D.ZERO, Vector3D.PLUS_K), 2.0)
        line = Line.from_direction(Vector3D(5, 0, 0), Vector3D.PLUS_K)
        assert c.get_intersection_points(line) == ()
        on_line, on_shape = c.closest_point_to(line)
        assert on_line.distance(Vector3D(5, 0, 0)) < 1e-15
        assert on_shape.distance(Vector3D(2, 0, 0)) < 1e-15
        assert abs(c.distance_to(line) - 3.0) < 1e-15

    def test_skew_line(self):
        c = InfiniteRightCircularCylinder(Vector3D.ZERO, Vector3D.PLUS_K, 2.0)
        line = Line.from_direction(Vector3D(5, 0, 0), Vector3D.PLUS_J)
        assert abs(c.distance_to(line) - 3.0) < 1e-9

    def test_elliptic_section(self):
        c = InfiniteEllipticCylinder(Vector3D(0, 0, 1), Vector3D.PLUS_K, Vector3D.PLUS_I, 2.0, 1.0)
        assert c.get_u() == Vector3D.PLUS_I
        assert c.get_v() == Vector3D.PLUS_J
        assert c.contains(Vector3D(1.9, 0.0, -50.0))
        assert not c.contains(Vector3D(0.0, 1.1, 0.0))
        assert abs(c.distance_to_point(Vector3D(0, 4, 3)) - 3.0) < 1e-15
        with pytest.raises(IllegalArgumentError):
            InfiniteEllipticCylinder(Vector3D.ZERO, Vector3D.PLUS_K, Vector3D.PLUS_K, 2.0, 1.0)
        with pytest.raises(IllegalArgumentError):
            InfiniteEllipticCylinder(Vector3D.ZERO, Vector3D.PLUS_K, Vector3D.PLUS_I, -2.0, 1.0)


class TestBoundedCylinders:
    """cylinders with end caps"""

    def test_elliptic_cylinder(self):
        c = EllipticCylinder(Vector3D.ZERO, Vector3D.PLUS_K, Vector3D.PLUS_I, 2.0, 1.0, 4.0)
        assert c.contains(Vector3D(1.9, 0.0, 1.9))
        assert not c.contains(Vector3D(0.0, 0.0, 2.1))
        assert c.closest_point_to_point(Vector3D(5, 0, 0)).distance(Vector3D(2, 0, 0)) < 1e-15
        assert c.closest_point_to_point(Vector3D(0, 0, 10)).distance(Vector3D(0, 0, 2)) < 1e-15
        # inside: the top cap is closer than the side
        assert c.closest_point_to_point(Vector3D(0, 0, 1.5)).distance(Vector3D(0, 0, 2)) < 1e-15
        assert abs(c.distance_to_point(Vector3D(0, 0, 1.5)) + 0.5) < 1e-15
        assert c.get_normal(Vector3D(0, 0, 10)) == Vector3D.PLUS_K
        assert c.get_normal(Vector3D(0, 0, -10)) == Vector3D.MINUS_K
        assert c.get_normal(Vector3D(5, 0, 0)).distance(Vector3D.PLUS_I) < 1e-15

    def test_cap_intersections(self):
        c = EllipticCylinder(Vector3D.ZERO, Vector3D.PLUS_K, Vector3D.PLUS_I, 2.0, 1.0, 4.0)
        line = Line.from_direction(Vector3D(1, 0, -10), Vector3D.PLUS_K)
        points = sorted(c.get_intersection_points(line), key=lambda p: p.z)
        assert len(points) == 2
        assert points[0].distance(Vector3D(1, 0, -2)) < 1e-15
        assert points[1].distance(Vector3D(1, 0, 2)) < 1e-15
        slanted = Line(Vector3D(0, 0, 0), Vector3D(1, 0, 1))
        points = c.get_intersection_points(slanted)
        assert len(points) == 2
        assert all(abs(abs(p.x) - 2.0) < 1e-14 for p in points)

    def test_right_circular_cylinder(self):
        c = RightCircularCylinder(Vector3D(0, 1, 1), Vector3D(1, 0, 0), 2.0, 6.0)
        assert str(c) == 'RightCircularCylinder{Origin{0; 1; 1},Direction{1; 0; 0},' \
                         'Radius{2.0},Height{6.0}}'
        assert abs(c.base_surface - 4.0 * math.pi) < 1e-15
        assert c.transversal_surface == 24.0
        assert c.contains(Vector3D(3, 1, 2))
        assert not c.contains(Vector3D(3.5, 1, 1))
        assert abs(c.distance_to_point(Vector3D(0, 1, 6)) - 3.0) < 1e-15
        assert abs(c.distance_to_point(Vector3D(0, 1, 1)) + 2.0) < 1e-15
        with pytest.raises(IllegalArgumentError):
            RightCircularCylinder(Vector3D.ZERO, Vector3D.ZERO, 1.0, 1.0)
        with pytest.raises(IllegalArgumentError):
            RightCircularCylinder(Vector3D.ZERO, Vector3D.PLUS_K, 1.0, 0.0)

    def test_closest_point_to_parallel_line(self):
        c = RightCircularCylinder.from_axis(
            Line.from_direction(Vector3D.ZERO, Vector3D.PLUS_K), 1.0, 2.0)
        line = Line.from_direction(Vector3D(3, 0, 0), Vector3D.PLUS_K)
        assert not c.intersects(line)
        on_line, on_shape = c.closest_point_to(line)
        assert abs(on_line.distance(on_shape) - 2.0) < 1e-9
        assert abs(on_shape.x - 1.0) < 1e-9
        assert abs(c.distance_to(line) - 2.0) < 1e-9

    def test_line_on_the_side(self):
        c = EllipticCylinder(Vector3D.ZERO, Vector3D.PLUS_K, Vector3D.PLUS_I, 2.0, 1.0, 4.0)
        line = Line.from_direction(Vector3D(2, 0, -10), Vector3D.PLUS_K)
        points = c.get_intersection_points(line)
        assert len(points) == 2
        assert points[0].distance(Vector3D(2, 0, -2)) < 1e-15
        assert points[1].distance(Vector3D(2, 0, 2)) < 1e-15
        tilted = EllipticCylinder(Vector3D(1, -1, 2), Vector3D(0, 1, 1), Vector3D.PLUS_I,
                                  2.0, 1.0, 4.0)
        rim = tilted.affine_standard(Vector3D(2, 0, 0))
        along = Line.from_direction(rim, tilted.direction)
        points = tilted.get_intersection_points(along)
        assert len(points) == 2
        assert abs(abs(tilted.affine_local(points[0]).z) - 2.0) < 1e-12

    def test_line_through_the_center(self):
        c = EllipticCylinder(Vector3D(0, 1, 1), Vector3D(1, 0, 0), Vector3D(0, 1, 0),
                             4.0, 2.0, 5.0)
        line = Line.from_direction(Vector3D(0, 1, 1), Vector3D(0, 4, -2))
        points = c.get_intersection_points(line)
        assert len(points) == 2
        offset = Vector3D(0, 4, -2) * (1.0 / math.sqrt(2.0))
        expected = (Vector3D(0, 1, 1) + offset, Vector3D(0, 1, 1) - offset)
        for p in points:
            assert min(p.distance(q) for q in expected) < 1e-14
            assert c.contains(p)
        assert c.distance_to(line) == 0.0
        assert abs(c.distance_to_point(Vector3D(0, 1, 1)) + 2.0) < 1e-15

    def test_half_line_order(self):
        c = EllipticCylinder(Vector3D.ZERO, Vector3D.PLUS_K, Vector3D.PLUS_I, 2.0, 1.0, 4.0)
        ray = Line.from_direction(Vector3D(1, 0, -10), Vector3D.PLUS_K, 0.0)
        points = c.get_intersection_points(ray)
        assert len(points) == 2
        assert points[0].distance(Vector3D(1, 0, -2)) < 1e-15
        assert points[1].distance(Vector3D(1, 0, 2)) < 1e-15
        assert c.closest_point_to(ray)[1] == points[0]
