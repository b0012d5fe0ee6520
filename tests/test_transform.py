"""Unit tests for rigid instance transforms."""

import math

import numpy as np
import pytest
import taichi as ti


class TestRotationMatrix:
    @pytest.mark.parametrize("axis", [0, 1, 2])
    def test_orthonormal(self, axis):
        from nextweek.geometry.transform import rotation_matrix

        r = rotation_matrix(axis, 37.0)
        np.testing.assert_allclose(r @ r.T, np.eye(3), atol=1e-12)
        assert np.linalg.det(r) == pytest.approx(1.0)

    def test_y_rotation_direction(self):
        from nextweek.geometry.transform import rotation_matrix

        # +90 degrees about y takes +z to +x
        r = rotation_matrix(1, 90.0)
        np.testing.assert_allclose(r @ [0.0, 0.0, 1.0], [1.0, 0.0, 0.0], atol=1e-12)

    def test_invalid_axis(self):
        from nextweek.geometry.transform import rotation_matrix

        with pytest.raises(ValueError):
            rotation_matrix(3, 10.0)


class TestTransform:
    def test_identity(self):
        from nextweek.geometry.transform import Transform

        xf = Transform.identity()
        assert xf.is_identity()
        np.testing.assert_array_equal(xf.apply_point((1.0, 2.0, 3.0)), [1.0, 2.0, 3.0])

    def test_translation_leaves_vectors_alone(self):
        from nextweek.geometry.transform import Transform

        xf = Transform.from_translation((1.0, 2.0, 3.0))
        assert not xf.is_identity()
        np.testing.assert_allclose(xf.apply_point((0.0, 0.0, 0.0)), [1.0, 2.0, 3.0])
        np.testing.assert_allclose(xf.apply_vector((0.0, 1.0, 0.0)), [0.0, 1.0, 0.0])

    def test_compose_applies_inner_first(self):
        from nextweek.geometry.transform import Transform

        rotate = Transform.from_rotation(1, 90.0)
        xf = Transform.from_translation((1.0, 0.0, 0.0)).compose(rotate)
        np.testing.assert_allclose(xf.apply_point((0.0, 0.0, 1.0)), [2.0, 0.0, 0.0], atol=1e-12)


class TestTaichiTransforms:
    def test_round_trip(self):
        from nextweek.geometry.transform import (
            Transform,
            point_to_local,
            point_to_world,
            vec3,
        )

        rotate = Transform.from_rotation(1, 15.0)
        xf = Transform.from_translation((0.5, -1.0, 2.0)).compose(rotate)
        rotation = ti.Matrix.field(3, 3, dtype=ti.f32, shape=())
        offset = ti.Vector.field(3, dtype=ti.f32, shape=())
        result = ti.Vector.field(3, dtype=ti.f32, shape=())
        rotation[None] = xf.rotation.tolist()
        offset[None] = xf.offset.tolist()

        @ti.kernel
        def test_kernel():
            p = vec3(0.3, 0.7, -1.2)
            local = point_to_local(rotation[None], offset[None], p)
            result[None] = point_to_world(rotation[None], offset[None], local)

        test_kernel()
        r = result[None]
        assert (r[0], r[1], r[2]) == pytest.approx((0.3, 0.7, -1.2), abs=1e-5)

    def test_vector_to_local_preserves_length(self):
        from nextweek.geometry.transform import rotation_matrix, vec3, vector_to_local

        r = rotation_matrix(2, 63.0)
        rotation = ti.Matrix.field(3, 3, dtype=ti.f32, shape=())
        result = ti.Vector.field(3, dtype=ti.f32, shape=())
        rotation[None] = r.tolist()

        @ti.kernel
        def test_kernel():
            result[None] = vector_to_local(rotation[None], vec3(1.0, 2.0, 2.0))

        test_kernel()
        v = result[None]
        assert math.sqrt(v[0] ** 2 + v[1] ** 2 + v[2] ** 2) == pytest.approx(3.0, rel=1e-5)
