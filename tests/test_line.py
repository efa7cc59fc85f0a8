import math

import pytest

from solid3d.errors import IllegalArgumentError
from solid3d.line import Line
from solid3d.vector import Vector3D


def test_origin_is_closest_point_to_coordinate_origin():
    line = Line(Vector3D(1, 1, -4), Vector3D(1, 1, 7))
    assert line.origin.distance(Vector3D(1, 1, 0)) < 1e-15
    assert line.direction == Vector3D.PLUS_K
    assert abs(line.abscissa(Vector3D(1, 1, 3)) - 3.0) < 1e-15
    assert line.point_at(-2.0).distance(Vector3D(1, 1, -2)) < 1e-15


def test_degenerate_lines():
    with pytest.raises(IllegalArgumentError):
        Line(Vector3D(1, 2, 3), Vector3D(1, 2, 3))
    with pytest.raises(IllegalArgumentError):
        Line.from_direction(Vector3D(1, 2, 3), Vector3D.ZERO)


def test_half_line():
    ray = Line.from_direction(Vector3D(0, 0, 5), Vector3D.PLUS_K, 0.0)
    assert abs(ray.min_abscissa - 5.0) < 1e-15
    assert ray.point_of_min_abscissa().distance(Vector3D(0, 0, 5)) < 1e-15
    assert ray.contains(Vector3D(0, 0, 6))
    assert not ray.contains(Vector3D(0, 0, 4))
    assert ray.project(Vector3D(1, 0, 0)).distance(Vector3D(0, 0, 5)) < 1e-15
    full = Line.from_direction(Vector3D(0, 0, 5), Vector3D.PLUS_K)
    assert math.isinf(full.min_abscissa)
    assert full.contains(Vector3D(0, 0, 4))


def test_point_distance():
    line = Line.from_direction(Vector3D.ZERO, Vector3D(1, 1, 0))
    assert abs(line.distance(Vector3D(1, -1, 0)) - math.sqrt(2.0)) < 1e-15
    assert line.distance(Vector3D(3, 3, 0)) < 1e-15


def test_skew_lines():
    x_axis = Line.from_direction(Vector3D.ZERO, Vector3D.PLUS_I)
    other = Line.from_direction(Vector3D(0, 0, 1), Vector3D.PLUS_J)
    on_other, on_x = x_axis.closest_point_to(other)
    assert on_other.distance(Vector3D(0, 0, 1)) < 1e-15
    assert on_x.distance(Vector3D.ZERO) < 1e-15
    assert abs(x_axis.distance_to(other) - 1.0) < 1e-15
    assert abs(x_axis.distance_to_line(other) - 1.0) < 1e-15
    assert not x_axis.intersects(other)
    assert x_axis.get_intersection_points(other) == ()


def test_crossing_and_parallel_lines():
    x_axis = Line.from_direction(Vector3D.ZERO, Vector3D.PLUS_I)
    crossing = Line.from_direction(Vector3D(2, -3, 0), Vector3D.PLUS_J)
    points = x_axis.get_intersection_points(crossing)
    assert len(points) == 1
    assert points[0].distance(Vector3D(2, 0, 0)) < 1e-15
    assert x_axis.intersection(crossing).distance(Vector3D(2, 0, 0)) < 1e-15

    parallel = Line.from_direction(Vector3D(0, 2, 0), Vector3D.MINUS_I)
    assert abs(x_axis.distance_to(parallel) - 2.0) < 1e-15
    assert x_axis.intersection(parallel) is None


def test_half_line_against_line():
    ray = Line.from_direction(Vector3D(0, 0, 2), Vector3D.PLUS_K, 0.0)
    x_axis = Line.from_direction(Vector3D.ZERO, Vector3D.PLUS_I)
    on_x, on_ray = ray.closest_point_to(x_axis)
    assert on_ray.distance(Vector3D(0, 0, 2)) < 1e-15
    assert on_x.distance(Vector3D.ZERO) < 1e-15
    assert abs(ray.distance_to(x_axis) - 2.0) < 1e-15


def test_similarity_and_revert():
    line = Line(Vector3D(0, 0, 0), Vector3D(1, 2, 3))
    reverted = line.revert()
    assert reverted.direction.distance(-line.direction) < 1e-15
    assert line.is_similar_to(reverted)
    assert not line.is_similar_to(Line(Vector3D(1, 0, 0), Vector3D(2, 2, 3)))
    assert str(Line(Vector3D(0, 0, 0), Vector3D(0, 0, 2))).startswith('Line{Origin{0; 0; 0},Direction{0; 0; 1}')


def test_point_of_min_abscissa_among_points():
    line = Line.from_direction(Vector3D.ZERO, Vector3D.PLUS_I)
    points = [Vector3D(3, 0, 0), Vector3D(-1, 0, 0), Vector3D(2, 0, 0)]
    assert line.point_of_min_abscissa(points) == Vector3D(-1, 0, 0)
    assert line.point_of_min_abscissa([]) is None
