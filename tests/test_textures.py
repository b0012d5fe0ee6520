"""Unit tests for solid, checker and image textures and diffuse lights."""

import numpy as np
import pytest
import taichi as ti
from PIL import Image


def _evaluate(texture_id, u, v, p):
    from nextweek.materials.textures import texture_value

    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    result = ti.Vector.field(3, dtype=ti.f32, shape=())
    point[None] = list(p)

    @ti.kernel
    def test_kernel(texture_id: ti.i32, u: ti.f32, v: ti.f32):
        result[None] = texture_value(texture_id, u, v, point[None])

    test_kernel(texture_id, u, v)
    return result[None].to_numpy()


class TestSolidTexture:
    def test_constant_everywhere(self):
        from nextweek.materials.textures import TextureType, add_solid_texture, get_texture_type

        tex = add_solid_texture((0.2, 0.4, 0.6))
        assert get_texture_type(tex) == TextureType.SOLID
        for u, v, p in [(0.0, 0.0, (0, 0, 0)), (0.7, 0.1, (5, -3, 2))]:
            assert _evaluate(tex, u, v, p) == pytest.approx([0.2, 0.4, 0.6])

    def test_emitter_strength_allowed(self):
        from nextweek.materials.textures import add_solid_texture

        tex = add_solid_texture((10.0, 10.0, 10.0))
        assert _evaluate(tex, 0.5, 0.5, (0, 0, 0)) == pytest.approx([10.0, 10.0, 10.0])

    def test_negative_color_rejected(self):
        from nextweek.materials.textures import add_solid_texture

        with pytest.raises(ValueError):
            add_solid_texture((0.1, -0.1, 0.1))


class TestCheckerTexture:
    def test_alternates_by_sign_of_sines(self):
        from nextweek.materials.textures import add_checker_texture, add_solid_texture

        even = add_solid_texture((1.0, 1.0, 1.0))
        odd = add_solid_texture((0.0, 0.0, 0.0))
        checker = add_checker_texture(1.0, even, odd)

        # sin(1) ** 3 > 0
        assert _evaluate(checker, 0.0, 0.0, (1.0, 1.0, 1.0)) == pytest.approx([1.0, 1.0, 1.0])
        # sin(-1) * sin(1) * sin(1) < 0
        assert _evaluate(checker, 0.0, 0.0, (-1.0, 1.0, 1.0)) == pytest.approx([0.0, 0.0, 0.0])

    def test_invalid_arguments(self):
        from nextweek.materials.textures import add_checker_texture, add_solid_texture

        solid = add_solid_texture((0.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            add_checker_texture(0.0, solid, solid)
        with pytest.raises(ValueError):
            add_checker_texture(1.0, solid, 99)
        checker = add_checker_texture(1.0, solid, solid)
        with pytest.raises(ValueError):
            add_checker_texture(1.0, checker, solid)


class TestImageTexture:
    def _two_by_two(self):
        # top row: red, green; bottom row: blue, white
        return np.array(
            [[[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]], [[0.0, 0.0, 1.0], [1.0, 1.0, 1.0]]],
            dtype=np.float32,
        )

    def test_lookup_flips_v(self):
        from nextweek.materials.textures import TextureType, add_image_texture, get_texture_type

        tex = add_image_texture(self._two_by_two())
        assert get_texture_type(tex) == TextureType.IMAGE
        origin = (0, 0, 0)
        # v = 1 is the top of the image
        assert _evaluate(tex, 0.25, 0.75, origin) == pytest.approx([1.0, 0.0, 0.0])
        assert _evaluate(tex, 0.75, 0.75, origin) == pytest.approx([0.0, 1.0, 0.0])
        assert _evaluate(tex, 0.25, 0.25, origin) == pytest.approx([0.0, 0.0, 1.0])
        assert _evaluate(tex, 0.75, 0.25, origin) == pytest.approx([1.0, 1.0, 1.0])

    def test_coordinates_clamped(self):
        from nextweek.materials.textures import add_image_texture

        tex = add_image_texture(self._two_by_two())
        assert _evaluate(tex, -3.0, 5.0, (0, 0, 0)) == pytest.approx([1.0, 0.0, 0.0])
        assert _evaluate(tex, 1.0, 0.0, (0, 0, 0)) == pytest.approx([1.0, 1.0, 1.0])

    def test_load_from_file(self, tmp_path):
        from nextweek.materials.textures import add_image_texture

        path = tmp_path / "tex.png"
        Image.fromarray(np.full((4, 4, 3), 255, dtype=np.uint8)).save(path)
        tex = add_image_texture(path)
        assert _evaluate(tex, 0.5, 0.5, (0, 0, 0)) == pytest.approx([1.0, 1.0, 1.0])

    def test_empty_image_is_cyan(self):
        from nextweek.materials.textures import MISSING_IMAGE_COLOR, add_image_texture

        tex = add_image_texture(np.zeros((0, 0, 3), dtype=np.float32))
        assert _evaluate(tex, 0.5, 0.5, (0, 0, 0)) == pytest.approx(list(MISSING_IMAGE_COLOR))

    def test_bad_shape_rejected(self):
        from nextweek.materials.textures import add_image_texture

        with pytest.raises(ValueError):
            add_image_texture(np.zeros((4, 4), dtype=np.float32))


class TestDiffuseLight:
    def test_emits_texture_value(self):
        from nextweek.materials.diffuse_light import (
            add_diffuse_light_material,
            emitted_diffuse_light,
            get_diffuse_light_material_count,
        )
        from nextweek.materials.textures import add_solid_texture

        tex = add_solid_texture((4.0, 3.0, 2.0))
        idx = add_diffuse_light_material(tex)
        assert get_diffuse_light_material_count() == 1
        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            result[None] = emitted_diffuse_light(mat_idx, 0.5, 0.5, ti.math.vec3(0.0))

        test_kernel(idx)
        assert result[None].to_numpy() == pytest.approx([4.0, 3.0, 2.0])
