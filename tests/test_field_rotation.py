import math

import pytest

from solid3d.dual import Dual
from solid3d.errors import GeometryArithmeticError, IllegalArgumentError
from solid3d.field_rotation import FieldRotation
from solid3d.field_vector import FieldVector3D
from solid3d.rotation import Rotation, RotationOrder
from solid3d.vector import Vector3D


def _close(a, b, tol=1e-12):
    return abs(a - b) < tol


def _quaternions_close(r1, r2, tol=1e-14):
    q = r1.to_rotation().get_quaternion() if isinstance(r1, FieldRotation) \
        else r1.get_quaternion()
    return all(_close(a, b, tol) for a, b in zip(q, r2.get_quaternion()))


class TestFieldRotation:
    """rotations carrying derivatives with respect to their angles"""

    def test_rotation_about_k(self):
        theta = Dual.variable(0.4, 0, 1)
        r = FieldRotation.from_axis_angle(Vector3D.PLUS_K, theta)
        v = r.apply_to(Vector3D.PLUS_I)
        assert _close(v.x.value, math.cos(0.4))
        assert _close(v.y.value, math.sin(0.4))
        assert _close(v.z.value, 0.0)
        assert _close(v.x.partial(0), -math.sin(0.4))
        assert _close(v.y.partial(0), math.cos(0.4))
        assert _close(v.z.partial(0), 0.0)
        angle = r.get_angle()
        assert _close(angle.value, 0.4)
        assert _close(angle.partial(0), 1.0)
        axis = r.get_axis()
        assert axis.to_vector3d().distance(Vector3D.PLUS_K) < 1e-15
        assert _close(axis.z.partial(0), 0.0)

    def test_matches_plain_rotation(self):
        axis = Vector3D(1.0, -2.0, 0.5)
        r = FieldRotation.from_axis_angle(FieldVector3D.from_vector3d(axis, 2),
                                          Dual.variable(2.1, 1, 2))
        plain = Rotation.from_axis_angle(axis, 2.1)
        assert r.count == 2
        assert _quaternions_close(r, plain)
        u = Vector3D(0.3, 0.7, -1.2)
        assert r.apply_to(u).to_vector3d().distance(plain.apply_to(u)) < 1e-14
        assert r.apply_inverse_to(u).to_vector3d().distance(plain.apply_inverse_to(u)) < 1e-14
        m, expected = r.get_matrix(), plain.get_matrix()
        for i in range(3):
            for j in range(3):
                assert _close(m[i][j].value, expected.get(i, j), 1e-15)
        assert _close(r.get_angle().value, plain.get_angle())
        assert r.get_axis().to_vector3d().distance(plain.get_axis()) < 1e-14

    def test_composition(self):
        a = Dual.variable(0.8, 0, 1)
        r1 = FieldRotation.from_axis_angle(Vector3D(0.0, 1.0, 1.0), a)
        r2 = Rotation.from_axis_angle(Vector3D(1.0, 0.2, 0.0), -1.3)
        plain = Rotation.from_axis_angle(Vector3D(0.0, 1.0, 1.0), 0.8)
        assert _quaternions_close(r1.apply_to(r2), plain.apply_to(r2))
        assert _quaternions_close(r1.apply_inverse_to(r2), plain.apply_inverse_to(r2))
        lifted = FieldRotation.from_rotation(r2, 1)
        assert _quaternions_close(r1.apply_to(lifted), plain.apply_to(r2))
        u = Vector3D(1.0, 2.0, 3.0)
        # composing then rotating equals rotating twice
        twice = r1.apply_to(r2.apply_to(u)).to_vector3d()
        assert r1.apply_to(r2).apply_to(u).to_vector3d().distance(twice) < 1e-14
        assert r1.revert().apply_to(r1.apply_to(u)).to_vector3d().distance(u) < 1e-14
        assert _close(r1.apply_inverse_to(r1).get_angle().value, 0.0)

    def test_angle_derivatives_by_finite_differences(self):
        angles = (0.3, -0.5, 1.1)
        duals = [Dual.variable(a, i, 3) for i, a in enumerate(angles)]
        r = FieldRotation.from_angles(RotationOrder.XYZ, *duals)
        assert _quaternions_close(r, Rotation.from_angles(RotationOrder.XYZ, *angles))
        u = Vector3D(0.4, -1.0, 2.0)
        v = r.apply_to(u)
        h = 1e-6
        for i in range(3):
            plus = list(angles)
            minus = list(angles)
            plus[i] += h
            minus[i] -= h
            delta = Rotation.from_angles(RotationOrder.XYZ, *plus).apply_to(u) \
                - Rotation.from_angles(RotationOrder.XYZ, *minus).apply_to(u)
            slope = delta * (1.0 / (2.0 * h))
            assert _close(v.x.partial(i), slope.x, 1e-8)
            assert _close(v.y.partial(i), slope.y, 1e-8)
            assert _close(v.z.partial(i), slope.z, 1e-8)

    def test_field_vectors(self):
        r = FieldRotation.from_rotation(Rotation.from_axis_angle(Vector3D.PLUS_K, 0.5 * math.pi),
                                        1)
        u = FieldVector3D(Dual.variable(2.0, 0, 1), 1.0, 0.0)
        v = r.apply_to(u)
        assert v.to_vector3d().distance(Vector3D(-1.0, 2.0, 0.0)) < 1e-15
        # d/dx of the rotated vector is the rotated unit vector along x
        assert _close(v.x.partial(0), 0.0, 1e-15)
        assert _close(v.y.partial(0), 1.0, 1e-15)
        back = r.apply_inverse_to(v)
        assert back.to_vector3d().distance(Vector3D(2.0, 1.0, 0.0)) < 1e-15

    def test_distance(self):
        theta = Dual.variable(0.7, 0, 1)
        r = FieldRotation.from_axis_angle(Vector3D(1.0, 1.0, 0.0), theta)
        d = FieldRotation.distance(r, Rotation.IDENTITY)
        assert _close(d.value, 0.7)
        assert _close(d.partial(0), 1.0)

    def test_construction(self):
        r = FieldRotation(Dual.variable(2.0, 0, 1), 0.0, 0.0, 0.0, needs_normalization=True)
        assert _close(r.q0.value, 1.0)
        assert _close(r.q0.partial(0), 0.0)
        identity = FieldRotation.from_axis_angle(Vector3D.ZERO, Dual.variable(1.0, 0, 1))
        assert identity.to_rotation().is_identity()
        assert str(identity) == 'FieldRotation{1.0,0.0,0.0,0.0}'
        with pytest.raises(GeometryArithmeticError):
            FieldRotation(Dual.constant(0.0, 1), 0.0, 0.0, 0.0, needs_normalization=True)
        with pytest.raises(IllegalArgumentError):
            FieldRotation(1.0, 0.0, 0.0, 0.0)
        with pytest.raises(IllegalArgumentError):
            FieldRotation(Dual.constant(1.0, 1), Dual.constant(0.0, 2), 0.0, 0.0)
