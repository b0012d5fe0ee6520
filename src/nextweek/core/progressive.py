"""Progressive rendering: keep adding samples to one accumulating image.

The ProgressiveRenderer prepares a scene once (BVH, camera, background) and
then keeps adding samples to the integrator's running average, reporting
progress after each batch through a callback or a generator. Sample
indices continue across calls, so rendering 10 + 10 samples gives exactly
the same image as rendering 20 at once with the same seed. A request that
ends at a single sample per pixel samples pixel centers, as render() does.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from nextweek.core.progressive import ProgressiveRenderer
    >>> from nextweek.scene.cornell_box import create_cornell_box_scene
    >>>
    >>> renderer = ProgressiveRenderer(create_cornell_box_scene(), 320, 240)
    >>> renderer.render(100, batch_size=10)
    >>> image = renderer.get_image_numpy()
"""

import logging
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt

from nextweek.camera.thin_lens import setup_camera
from nextweek.core.integrator import (
    MAX_DEPTH,
    RenderSettings,
    clear_render_target,
    gamma_correct,
    get_image,
    get_linear_image_numpy,
    get_total_samples,
    render_image,
    setup_background,
    setup_render_target,
)
from nextweek.preview.export import image_to_uint8, save_image
from nextweek.scene.manager import Scene

logger = logging.getLogger(__name__)

# Called with (samples so far, samples when the current request finishes)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """Accumulates samples of one scene into the integrator's image buffer.

    The image buffer is a module-level Taichi field, so only one renderer
    (or render() call) may be active at a time.

    Attributes:
        scene: The scene being rendered.
        max_depth: Maximum path length.
        seed: Seed for the per-sample random generators.
    """

    def __init__(
        self,
        scene: Scene,
        width: int,
        height: int,
        max_depth: int = MAX_DEPTH,
        seed: int = 0,
        background: tuple[float, float, float] = (0.0, 0.0, 0.0),
        sky: bool = False,
    ) -> None:
        """Prepare the scene and the render target.

        Raises:
            ValueError: On invalid dimensions or depth, a degenerate camera
                or an empty scene.
        """
        RenderSettings(
            width=width,
            height=height,
            samples_per_pixel=1,
            max_depth=max_depth,
            seed=seed,
            background=background,
            sky=sky,
        ).validate()

        self.scene = scene
        self._width = width
        self._height = height
        self.max_depth = max_depth
        self.seed = seed

        self._background = background
        self._sky = sky

        scene.camera.validate()
        self._prepare_scene()
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Drop the accumulated samples."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset the accumulator.

        Raises:
            ValueError: If dimensions are not positive or exceed the maximum.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def _prepare_scene(self) -> None:
        camera = self.scene.camera
        self.scene.manager.ensure_built(camera.time0, camera.time1)
        setup_camera(camera)
        setup_background(self._background, self._sky)

    def _render_batch(self, batch: int, jitter: bool) -> None:
        self._prepare_scene()
        render_image(batch, max_depth=self.max_depth, seed=self.seed, jitter=jitter)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add ``num_samples`` samples per pixel, in batches of ``batch_size``.

        ``callback``, if given, is called after every batch with the sample
        count so far and the count this call will reach.

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Like render(), but yields (samples so far, target) after each batch.

        Stopping the iteration early leaves the finished batches in the image.
        """
        if num_samples <= 0:
            return

        batch_size = max(1, batch_size)
        target_samples = self.sample_count + num_samples
        jitter = target_samples > 1

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            self._render_batch(batch, jitter)
            remaining -= batch
            logger.debug("Accumulated %d/%d samples", self.sample_count, target_samples)
            yield (self.sample_count, target_samples)

    def get_image(self) -> Any:
        """The preallocated Taichi color buffer; only [:width, :height] is live."""
        return get_image()

    def get_image_numpy(self, gamma: float | None = 2.0) -> npt.NDArray[np.float32]:
        """Get the rendered image as a (height, width, 3) array in [0, 1].

        Args:
            gamma: Gamma correction value. Default 2.0 (square root).
                None returns clamped linear radiance.
        """
        image = get_linear_image_numpy()
        if gamma is None:
            return np.clip(image, 0.0, 1.0).astype(np.float32)
        return gamma_correct(image, gamma)

    def get_image_uint8(self, gamma: float | None = 2.0) -> npt.NDArray[np.uint8]:
        """Get the rendered image as an 8-bit array suitable for saving."""
        return image_to_uint8(self.get_image_numpy(gamma=gamma))

    def save_image(self, filepath: str | Path, gamma: float | None = 2.0) -> None:
        """Save the rendered image (PNG, BMP or TGA, by extension)."""
        save_image(self.get_image_numpy(gamma=gamma), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
