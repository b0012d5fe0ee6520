"""Unit tests for the Lambertian material module.

Tests cover:
- Scatter direction stays on the normal's side and is never zero
- Degenerate offset fallback to the normal
- Attenuation equals the albedo
- Material registry operations
"""

import pytest
import taichi as ti

N_SAMPLES = 2000


class TestScatterLambertian:
    """Tests for Lambertian scattering."""

    def test_direction_in_normal_hemisphere(self):
        from nextweek.core.sampler import init_rng
        from nextweek.materials.lambertian import scatter_lambertian

        cosines = ti.field(dtype=ti.f32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            for i in range(N_SAMPLES):
                state = init_rng(0, i, 0)
                direction, _, state = scatter_lambertian(ti.math.vec3(0.5), normal, state)
                cosines[i] = ti.math.dot(ti.math.normalize(direction), normal)

        test_kernel()
        # normal + unit vector lies in the closed hemisphere
        assert cosines.to_numpy().min() >= -1e-6

    def test_cosine_distribution_mean(self):
        """normal + random unit vector gives a cosine-weighted direction."""
        from nextweek.core.sampler import init_rng
        from nextweek.materials.lambertian import scatter_lambertian

        cosines = ti.field(dtype=ti.f32, shape=N_SAMPLES)

        @ti.kernel
        def test_kernel():
            normal = ti.math.vec3(0.0, 0.0, 1.0)
            for i in range(N_SAMPLES):
                state = init_rng(1, i, 0)
                direction, _, state = scatter_lambertian(ti.math.vec3(0.5), normal, state)
                cosines[i] = ti.math.dot(ti.math.normalize(direction), normal)

        test_kernel()
        # E[cos] = 2/3 for a cosine-weighted hemisphere
        assert cosines.to_numpy().mean() == pytest.approx(2.0 / 3.0, abs=0.03)

    def test_attenuation_is_albedo(self):
        from nextweek.core.sampler import init_rng
        from nextweek.materials.lambertian import scatter_lambertian

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            state = init_rng(0, 0, 0)
            albedo = ti.math.vec3(0.2, 0.4, 0.6)
            _, attenuation, state = scatter_lambertian(albedo, ti.math.vec3(0.0, 1.0, 0.0), state)
            result[None] = attenuation

        test_kernel()
        assert result[None].to_numpy() == pytest.approx([0.2, 0.4, 0.6])

    def test_opposite_offset_falls_back_to_normal(self):
        from nextweek.materials.lambertian import lambertian_direction

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            n = ti.math.vec3(0.0, 1.0, 0.0)
            result[None] = lambertian_direction(n, -n)

        test_kernel()
        assert result[None].to_numpy() == pytest.approx([0.0, 1.0, 0.0])

    def test_regular_offset_added(self):
        from nextweek.materials.lambertian import lambertian_direction

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = lambertian_direction(
                ti.math.vec3(0.0, 1.0, 0.0), ti.math.vec3(1.0, 0.0, 0.0)
            )

        test_kernel()
        assert result[None].to_numpy() == pytest.approx([1.0, 1.0, 0.0])


class TestMaterialRegistry:
    """Tests for the Lambertian registry."""

    def test_add_and_count(self):
        from nextweek.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_material_count,
        )
        from nextweek.materials.textures import add_solid_texture

        tex = add_solid_texture((0.1, 0.2, 0.3))
        assert add_lambertian_material(tex) == 0
        assert add_lambertian_material(tex) == 1
        assert get_lambertian_material_count() == 2

    def test_texture_lookup(self):
        from nextweek.materials.lambertian import add_lambertian_material, get_lambertian_texture
        from nextweek.materials.textures import add_solid_texture

        add_solid_texture((0.1, 0.2, 0.3))
        tex = add_solid_texture((0.9, 0.8, 0.7))
        idx = add_lambertian_material(tex)
        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            result[None] = get_lambertian_texture(mat_idx)

        test_kernel(idx)
        assert result[None] == tex

    def test_clear(self):
        from nextweek.materials.lambertian import (
            add_lambertian_material,
            clear_lambertian_materials,
            get_lambertian_material_count,
        )

        add_lambertian_material(0)
        clear_lambertian_materials()
        assert get_lambertian_material_count() == 0
        assert add_lambertian_material(0) == 0
