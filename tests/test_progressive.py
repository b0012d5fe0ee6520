"""Tests for the progressive renderer.

This module tests the ProgressiveRenderer class including:
- Initialization and setup
- Progressive sample accumulation
- Progress callbacks and generators
- Reset and resize
- Image output

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import numpy as np
import pytest


def _small_scene():
    """A lit floor and a sphere; cheap to render."""
    from nextweek.camera.thin_lens import Camera
    from nextweek.scene.manager import Scene, SceneManager

    manager = SceneManager()
    grey = manager.add_lambertian_material(albedo=(0.6, 0.6, 0.6))
    light = manager.add_diffuse_light_material(color=(4.0, 4.0, 4.0))
    manager.add_quad((-2.0, -0.5, 0.0), (4.0, 0.0, 0.0), (0.0, 0.0, -4.0), grey)
    manager.add_sphere((0.0, 0.0, -2.0), 0.5, grey)
    manager.add_quad((-0.5, 1.5, -1.5), (1.0, 0.0, 0.0), (0.0, 0.0, -1.0), light)
    return Scene(manager, Camera(vfov=70.0, aspect_ratio=4.0 / 3.0))


class TestProgressiveRendererInit:
    def test_init_creates_render_target(self):
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 16, 12)
        assert renderer.width == 16
        assert renderer.height == 12
        assert renderer.sample_count == 0
        assert repr(renderer) == "ProgressiveRenderer(width=16, height=12, samples=0)"

    def test_init_builds_scene(self):
        from nextweek.core.progressive import ProgressiveRenderer

        scene = _small_scene()
        assert not scene.manager.is_built
        ProgressiveRenderer(scene, 8, 6)
        assert scene.manager.is_built

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"width": 0, "height": 6},
            {"width": 8, "height": 4096},
            {"width": 8, "height": 6, "max_depth": 0},
            {"width": 8, "height": 6, "background": (-1.0, 0.0, 0.0)},
        ],
    )
    def test_init_rejects_invalid_settings(self, kwargs):
        from nextweek.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError):
            ProgressiveRenderer(_small_scene(), **kwargs)

    def test_init_rejects_empty_scene(self):
        from nextweek.camera.thin_lens import Camera
        from nextweek.core.progressive import ProgressiveRenderer
        from nextweek.scene.manager import Scene, SceneManager

        with pytest.raises(ValueError):
            ProgressiveRenderer(Scene(SceneManager(), Camera()), 8, 6)


class TestAccumulation:
    def test_render_accumulates_samples(self):
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6, max_depth=4)
        renderer.render(3)
        renderer.render(2, batch_size=2)
        assert renderer.sample_count == 5

    @pytest.mark.parametrize("num_samples", [0, -3])
    def test_non_positive_samples_do_nothing(self, num_samples):
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6)
        renderer.render(num_samples)
        assert renderer.sample_count == 0
        assert list(renderer.render_progressive(num_samples)) == []

    def test_split_render_matches_single_render(self):
        """10 + 10 samples give the same image as 20 samples at once."""
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6, max_depth=5, seed=21)
        renderer.render(20, batch_size=20)
        single = renderer.get_image_numpy(gamma=None)

        renderer.reset()
        renderer.render(10, batch_size=3)
        renderer.render(10, batch_size=10)
        split = renderer.get_image_numpy(gamma=None)

        np.testing.assert_allclose(split, single, rtol=1e-5, atol=1e-6)

    def test_same_seed_is_reproducible(self):
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6, max_depth=5, seed=4)
        renderer.render(4)
        first = renderer.get_image_numpy()
        renderer.reset()
        renderer.render(4)
        assert np.array_equal(renderer.get_image_numpy(), first)

    def test_callback_receives_progress(self):
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6, max_depth=2)
        renderer.render(2)
        calls = []
        renderer.render(7, batch_size=3, callback=lambda cur, target: calls.append((cur, target)))
        assert calls == [(5, 9), (8, 9), (9, 9)]

    def test_render_progressive_is_interruptible(self):
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6, max_depth=2)
        for current, _target in renderer.render_progressive(10, batch_size=2):
            if current >= 4:
                break
        assert renderer.sample_count == 4


class TestMatchesRender:
    def test_single_sample_matches_render(self):
        """One progressive sample samples pixel centers, like render() with one sample."""
        from nextweek.core.integrator import render
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6, max_depth=4, seed=5)
        renderer.render(1)
        progressive = renderer.get_image_numpy(gamma=None)

        expected = render(
            _small_scene(), 8, 6, samples_per_pixel=1, max_depth=4, seed=5, gamma=None
        )
        assert np.array_equal(progressive, expected)

    def test_batches_match_render(self):
        from nextweek.core.integrator import render
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6, max_depth=4, seed=5)
        renderer.render(4, batch_size=1)
        progressive = renderer.get_image_numpy(gamma=None)

        expected = render(
            _small_scene(), 8, 6, samples_per_pixel=4, max_depth=4, seed=5, gamma=None
        )
        np.testing.assert_allclose(progressive, expected, rtol=1e-5, atol=1e-6)

    def test_renders_own_scene_after_another_is_created(self):
        from nextweek.core.integrator import render
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6, max_depth=4, seed=5)
        _small_scene().manager.add_diffuse_light_material(color=(0.0, 0.0, 9.0))
        renderer.render(2)
        progressive = renderer.get_image_numpy(gamma=None)

        expected = render(
            _small_scene(), 8, 6, samples_per_pixel=2, max_depth=4, seed=5, gamma=None
        )
        np.testing.assert_allclose(progressive, expected, rtol=1e-5, atol=1e-6)


class TestResetAndResize:
    def test_reset_clears_buffer(self):
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6, max_depth=3)
        renderer.render(2)
        assert renderer.get_image_numpy(gamma=None).max() > 0.0
        renderer.reset()
        assert renderer.sample_count == 0
        assert renderer.get_image_numpy(gamma=None).max() == 0.0

    def test_resize(self):
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6, max_depth=2)
        renderer.render(2)
        renderer.resize(12, 9)
        assert (renderer.width, renderer.height) == (12, 9)
        assert renderer.sample_count == 0
        renderer.render(1)
        assert renderer.get_image_numpy().shape == (9, 12, 3)

    def test_resize_rejects_invalid_dimensions(self):
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6)
        with pytest.raises(ValueError):
            renderer.resize(0, 9)
        assert (renderer.width, renderer.height) == (8, 6)


class TestImageOutput:
    def test_image_numpy_shape_and_range(self):
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6, max_depth=4)
        renderer.render(3)
        image = renderer.get_image_numpy()
        assert image.shape == (6, 8, 3)
        assert image.dtype == np.float32
        assert np.all(np.isfinite(image))
        assert image.min() >= 0.0
        assert image.max() <= 1.0

    def test_gamma_brightens(self):
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6, max_depth=4)
        renderer.render(2)
        linear = renderer.get_image_numpy(gamma=None)
        corrected = renderer.get_image_numpy(gamma=2.0)
        np.testing.assert_allclose(corrected, np.sqrt(linear), rtol=1e-5, atol=1e-6)

    def test_image_uint8(self):
        from nextweek.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(_small_scene(), 8, 6, max_depth=4)
        renderer.render(1)
        image = renderer.get_image_uint8()
        assert image.dtype == np.uint8
        assert image.shape == (6, 8, 3)

    def test_save_image(self, tmp_path):
        from nextweek.core.progressive import ProgressiveRenderer
        from nextweek.preview.export import load_image

        renderer = ProgressiveRenderer(_small_scene(), 8, 6, max_depth=4)
        renderer.render(2)
        path = tmp_path / "progress.png"
        renderer.save_image(path)
        loaded = load_image(path)
        expected = renderer.get_image_uint8().astype(np.float32) / 255.0
        np.testing.assert_allclose(loaded, expected, atol=1e-6)
