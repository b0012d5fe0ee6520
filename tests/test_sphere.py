"""Unit tests for the sphere intersection module.

Tests cover:
- Direct hits, misses and hits from inside
- The open (t_min, t_max) range
- Hit points lying on the surface
- Equirectangular (u, v) coordinates
- Moving sphere centers
"""

import math

import pytest
import taichi as ti


def _hit_sphere(center, radius, origin, direction, t_min=0.001, t_max=1000.0):
    """Intersect one ray with one sphere and return the record as a dict."""
    from nextweek.geometry.sphere import Sphere, hit_sphere

    vectors = ti.Vector.field(3, dtype=ti.f32, shape=3)
    out_vectors = ti.Vector.field(3, dtype=ti.f32, shape=2)
    out_scalars = ti.field(dtype=ti.f32, shape=5)
    for k, value in enumerate((center, origin, direction)):
        vectors[k] = [float(x) for x in value]

    @ti.kernel
    def test_kernel(radius: ti.f32, t_min: ti.f32, t_max: ti.f32):
        sphere = Sphere(center=vectors[0], radius=radius)
        rec = hit_sphere(vectors[1], vectors[2], sphere, t_min, t_max)
        out_vectors[0] = rec.point
        out_vectors[1] = rec.normal
        out_scalars[0] = rec.hit
        out_scalars[1] = rec.t
        out_scalars[2] = rec.front_face
        out_scalars[3] = rec.u
        out_scalars[4] = rec.v

    test_kernel(radius, t_min, t_max)
    return {
        "hit": int(out_scalars[0]),
        "t": out_scalars[1],
        "front_face": int(out_scalars[2]),
        "u": out_scalars[3],
        "v": out_scalars[4],
        "point": out_vectors[0].to_numpy(),
        "normal": out_vectors[1].to_numpy(),
    }


class TestHitSphere:
    def test_direct_hit(self):
        rec = _hit_sphere((0, 0, -1), 0.5, (0, 0, 0), (0, 0, -1))
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(0.5, abs=1e-5)
        assert rec["front_face"] == 1
        assert rec["normal"] == pytest.approx([0.0, 0.0, 1.0], abs=1e-5)

    def test_miss(self):
        rec = _hit_sphere((0, 0, -1), 0.5, (0, 2, 0), (0, 0, -1))
        assert rec["hit"] == 0

    def test_behind_ray(self):
        rec = _hit_sphere((0, 0, 5), 0.5, (0, 0, 0), (0, 0, -1))
        assert rec["hit"] == 0

    def test_inside_hits_back_face(self):
        rec = _hit_sphere((0, 0, 0), 2.0, (0, 0, 0), (1, 0, 0))
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(2.0, abs=1e-5)
        assert rec["front_face"] == 0
        # Normal faces the incoming ray
        assert rec["normal"] == pytest.approx([-1.0, 0.0, 0.0], abs=1e-5)

    def test_t_max_excludes_far_hit(self):
        rec = _hit_sphere((0, 0, -10), 1.0, (0, 0, 0), (0, 0, -1), t_max=5.0)
        assert rec["hit"] == 0

    def test_t_min_selects_far_root(self):
        rec = _hit_sphere((0, 0, -2), 1.0, (0, 0, 0), (0, 0, -1), t_min=1.5)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(3.0, abs=1e-5)

    def test_unnormalized_direction(self):
        rec = _hit_sphere((0, 0, -4), 1.0, (0, 0, 0), (0, 0, -2))
        assert rec["t"] == pytest.approx(1.5, abs=1e-5)

    @pytest.mark.parametrize(
        "direction",
        [(0.1, 0.05, -1.0), (-0.2, 0.1, -1.0), (0.0, -0.25, -1.0), (0.15, 0.15, -1.0)],
    )
    def test_hit_point_on_surface(self, direction):
        center = (0.3, -0.2, -3.0)
        rec = _hit_sphere(center, 0.7, (0, 0, 0), direction)
        assert rec["hit"] == 1
        distance = math.dist(rec["point"], center)
        assert distance == pytest.approx(0.7, abs=1e-4)
        assert float((rec["normal"] ** 2).sum()) == pytest.approx(1.0, abs=1e-5)

    def test_far_away_sphere_is_stable(self):
        rec = _hit_sphere((0, 0, -1000), 1.0, (0, 0, 0), (0, 0, -1), t_max=1e10)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(999.0, rel=1e-5)


class TestSphereUV:
    def test_poles(self):
        top = _hit_sphere((0, 0, 0), 1.0, (0, 5, 0), (0, -1, 0))
        bottom = _hit_sphere((0, 0, 0), 1.0, (0, -5, 0), (0, 1, 0))
        assert top["v"] == pytest.approx(1.0, abs=1e-3)
        assert bottom["v"] == pytest.approx(0.0, abs=1e-3)

    @pytest.mark.parametrize(
        "origin,expected_u",
        [((5, 0, 0), 0.5), ((0, 0, 5), 0.25), ((0, 0, -5), 0.75)],
    )
    def test_equator(self, origin, expected_u):
        direction = tuple(-c for c in origin)
        rec = _hit_sphere((0, 0, 0), 1.0, origin, direction)
        assert rec["v"] == pytest.approx(0.5, abs=1e-4)
        assert rec["u"] == pytest.approx(expected_u, abs=1e-4)

    def test_seam(self):
        # -x sits on the seam, where u may come out as 0 or 1
        rec = _hit_sphere((0, 0, 0), 1.0, (-5, 0, 0), (1, 0, 0))
        assert min(rec["u"], 1.0 - rec["u"]) < 1e-4


class TestMovingSphere:
    def test_center_at(self):
        from nextweek.geometry.sphere import sphere_center_at, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            c0 = vec3(0.0, 0.0, 0.0)
            c1 = vec3(0.0, 1.0, 0.0)
            result[0] = sphere_center_at(c0, c1, 0.0, 1.0, 0.25)
            result[1] = sphere_center_at(c0, c1, 0.0, 1.0, 1.0)
            result[2] = sphere_center_at(c0, c1, 0.5, 0.5, 0.9)

        test_kernel()
        assert result[0][1] == pytest.approx(0.25)
        assert result[1][1] == pytest.approx(1.0)
        assert result[2][1] == pytest.approx(0.0)
