"""Path tracing integrator for Monte Carlo light transport.

This module implements the main rendering kernel: an iterative path tracer
with material-based scattering, emissive surfaces, a configurable
background and progressive sample accumulation.

Each camera sample follows one path through the scene. At every bounce the
path picks up the emission of the surface it hits (weighted by the
throughput so far), then either scatters (throughput *= attenuation) or is
absorbed. A path that escapes picks up the background. A path still alive
after ``max_depth`` bounces contributes nothing more, which bounds the work
for materials that always scatter.

Random numbers come from an explicit generator state per sample, derived
from (seed, pixel index, sample index), so renders are reproducible.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric, DiffuseLight)
    - Solid or sky-gradient background
    - Progressive sample accumulation for convergence
    - NaN/Inf guard before accumulation
    - Self-intersection avoidance with a positive t_min

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from nextweek.core.integrator import render
    >>> from nextweek.scene.cornell_box import create_cornell_box_scene
    >>>
    >>> scene = create_cornell_box_scene()
    >>> image = render(scene, 320, 240, samples_per_pixel=16, max_depth=30)
    >>> image.shape
    (240, 320, 3)
"""

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from nextweek.camera.thin_lens import get_ray, setup_camera
from nextweek.core.sampler import init_rng, random_float
from nextweek.materials.dielectric import get_dielectric_ior, scatter_dielectric
from nextweek.materials.diffuse_light import emitted_diffuse_light
from nextweek.materials.lambertian import get_lambertian_texture, scatter_lambertian
from nextweek.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal
from nextweek.materials.textures import texture_value
from nextweek.scene.intersection import intersect_scene
from nextweek.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

if TYPE_CHECKING:
    from nextweek.scene.manager import Scene

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum ray bounces (path length)
MAX_DEPTH = 30

# t_min and t_max for ray intersection; t_min > 0 avoids shadow acne
T_MIN = 0.001
T_MAX = 1e10

# Background modes
BACKGROUND_SOLID = 0
BACKGROUND_SKY = 1

# Sky gradient endpoints (horizon/down, zenith)
SKY_BOTTOM = (1.0, 1.0, 1.0)
SKY_TOP = (0.5, 0.7, 1.0)


@dataclass
class RenderSettings:
    """Parameters of one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Camera samples averaged per pixel. With a single
            sample the camera ray goes through the pixel center.
        max_depth: Maximum number of path segments per sample.
        seed: Seed for the per-sample random generators.
        background: Color returned for rays that escape the scene.
        sky: Use the blue-white sky gradient instead of ``background``.
    """

    width: int = 320
    height: int = 240
    samples_per_pixel: int = 100
    max_depth: int = MAX_DEPTH
    seed: int = 0
    background: tuple[float, float, float] = (0.0, 0.0, 0.0)
    sky: bool = False

    def validate(self) -> None:
        """Check the settings before any pixel work starts.

        Raises:
            ValueError: On non-positive dimensions, sample count or depth,
                dimensions above the render target size, a seed outside
                [0, 2**31) or a negative background component.
        """
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth <= 0:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        if not 0 <= self.seed < 2**31:
            raise ValueError(f"seed must be in [0, 2**31), got {self.seed}")
        if len(self.background) != 3 or any(c < 0.0 for c in self.background):
            raise ValueError(f"background must be 3 non-negative components, got {self.background}")


# =============================================================================
# Background
# =============================================================================

_background_mode = ti.field(dtype=ti.i32, shape=())
_background_color = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_background(
    color: tuple[float, float, float] = (0.0, 0.0, 0.0),
    sky: bool = False,
) -> None:
    """Configure what escaped rays see.

    Args:
        color: Solid background color (ignored when ``sky`` is set).
        sky: Use a vertical gradient from white (down) to light blue (up).
    """
    _background_mode[None] = BACKGROUND_SKY if sky else BACKGROUND_SOLID
    _background_color[None] = vec3(color[0], color[1], color[2])


@ti.func
def background_radiance(direction: vec3) -> vec3:
    """Radiance arriving along an escaped ray."""
    result = _background_color[None]
    if _background_mode[None] == BACKGROUND_SKY:
        unit_direction = tm.normalize(direction)
        a = 0.5 * (unit_direction.y + 1.0)
        result = (1.0 - a) * vec3(*SKY_BOTTOM) + a * vec3(*SKY_TOP)
    return result


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color accumulation buffer (running average of linear radiance), j = 0 is the bottom row
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.
    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT
    to avoid Taichi kernel recompilation issues.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> "ti.MatrixField":
    """Get the color buffer.

    Note: This returns the full preallocated buffer. Use get_image_dimensions()
    to determine the active region.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


def get_sample_count() -> "ti.ScalarField":
    """Get the per-pixel sample count field.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _sample_count


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    front_face: ti.i32,
    u: ti.f32,
    v: ti.f32,
    state: ti.u32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        hit_point: The intersection point on the surface.
        normal: The surface normal (unit, facing the incoming ray).
        front_face: 1 if hit front face, 0 if back face.
        u: Surface u coordinate of the hit.
        v: Surface v coordinate of the hit.
        state: The generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, new_state)
        where did_scatter is 1 if the ray scattered and 0 if it was absorbed
        (including by emitters and unknown materials).
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    s = state

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = texture_value(get_lambertian_texture(type_index), u, v, hit_point)
        scattered_direction, attenuation, s = scatter_lambertian(albedo, normal, s)
        did_scatter = 1

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter, s = scatter_metal(
            albedo, fuzz, incident_direction, normal, s
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered_direction, attenuation, s = scatter_dielectric(
            ior, incident_direction, normal, front_face, s
        )
        did_scatter = 1

    return scattered_direction, attenuation, did_scatter, s


@ti.func
def _get_emission(material_id: ti.i32, u: ti.f32, v: ti.f32, hit_point: vec3) -> vec3:
    """Emitted radiance of the hit surface, or zero if it is not an emitter."""
    emission = vec3(0.0, 0.0, 0.0)
    if get_material_type(material_id) == int(MaterialType.DIFFUSE_LIGHT):
        emission = emitted_diffuse_light(get_material_type_index(material_id), u, v, hit_point)
    return emission


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace_path(origin: vec3, direction: vec3, ray_time: ti.f32, max_depth: ti.i32, state: ti.u32):
    """Trace a single path from a camera ray through the scene.

    Equivalent to the recursive ray_color: emitted + attenuation * ray_color(
    scattered, depth - 1), with black once the depth is exhausted.

    Args:
        origin: Ray origin.
        direction: Ray direction (any length).
        ray_time: Ray time, for moving geometry.
        max_depth: Maximum number of intersections along the path.
        state: The generator state.

    Returns:
        A tuple of (radiance, new_state).
    """
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction
    s = state

    # Active flag for path continuation
    active = 1

    for _depth in range(max_depth):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, ray_time, T_MIN, T_MAX)

            if rec.hit == 0:
                radiance += throughput * background_radiance(ray_direction)
                active = 0
            else:
                emission = _get_emission(rec.material_id, rec.u, rec.v, rec.point)
                radiance += throughput * emission

                scattered_direction, attenuation, did_scatter, s = _scatter_material(
                    rec.material_id,
                    ray_direction,
                    rec.point,
                    rec.normal,
                    rec.front_face,
                    rec.u,
                    rec.v,
                    s,
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    return radiance, s


@ti.func
def render_sample_impl(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
    sample_index: ti.i32,
    jitter: ti.i32,
) -> vec3:
    """Render one sample for a pixel (i = 0 is the left column, j = 0 the bottom row)."""
    state = init_rng(seed, pixel_j * width + pixel_i, sample_index)

    du = 0.5
    dv = 0.5
    if jitter == 1:
        du, state = random_float(state)
        dv, state = random_float(state)

    s = (ti.cast(pixel_i, ti.f32) + du) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + dv) / ti.cast(height, ti.f32)

    origin, direction, ray_time, state = get_ray(s, t, state)
    color, state = trace_path(origin, direction, ray_time, max_depth, state)
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
    jitter: ti.i32,
):
    """Render one sample per pixel and accumulate it into the color buffer."""
    for i, j in ti.ndrange(width, height):
        sample_index = _sample_count[i, j]
        color = render_sample_impl(i, j, width, height, max_depth, seed, sample_index, jitter)

        # Clamp negative values (numerical errors)
        color = tm.max(color, vec3(0.0, 0.0, 0.0))

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _sample_count[i, j] += 1
        n = _sample_count[i, j]

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
    sample_index: ti.i32,
) -> vec3:
    """Render a single pixel-center sample for a specific pixel."""
    return render_sample_impl(pixel_i, pixel_j, width, height, max_depth, seed, sample_index, 0)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_sample(
    pixel_i: int,
    pixel_j: int,
    max_depth: int = MAX_DEPTH,
    seed: int = 0,
    sample_index: int = 0,
) -> tuple[float, float, float]:
    """Render a single sample through the center of a specific pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Maximum path length.
        seed: Render seed.
        sample_index: Sample index fed to the generator.

    Returns:
        Tuple of (R, G, B) linear radiance.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_pixel(pixel_i, pixel_j, width, height, max_depth, seed, sample_index)

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(
    num_samples: int = 1,
    max_depth: int = MAX_DEPTH,
    seed: int = 0,
    jitter: bool = True,
) -> None:
    """Render the image with the specified number of samples per pixel.

    Progressively accumulates samples into the color buffer. Can be called
    multiple times to add more samples for convergence; each call continues
    the per-pixel sample indices, so a sequence of calls with the same seed
    is equivalent to one call with the total sample count.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Maximum path length.
        seed: Render seed.
        jitter: Jitter samples within the pixel; otherwise sample pixel centers.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth, seed, 1 if jitter else 0)


def get_total_samples() -> int:
    """Get the number of samples per pixel rendered so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_linear_image_numpy() -> npt.NDArray[np.float32]:
    """Get the accumulated linear radiance as an (height, width, 3) array.

    Rows are top first. Values are not clamped.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Taichi rows start at the bottom, images at the top
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)


def get_normalized_image_numpy() -> npt.NDArray[np.float32]:
    """Get the rendered linear image clamped to [0, 1], top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    return np.clip(get_linear_image_numpy(), 0.0, 1.0).astype(np.float32)


def gamma_correct(image: npt.NDArray[np.float32], gamma: float = 2.0) -> npt.NDArray[np.float32]:
    """Apply gamma correction and clamp to the displayable range [0, 1].

    With the default gamma of 2 this is a square root, so a linear 0.25
    becomes 0.5.
    """
    image = np.clip(np.nan_to_num(image, nan=0.0, posinf=0.0, neginf=0.0), 0.0, None)
    corrected = np.power(image, 1.0 / gamma)
    return np.clip(corrected, 0.0, 1.0).astype(np.float32)


def render(
    scene: "Scene",
    width: int,
    height: int,
    samples_per_pixel: int,
    max_depth: int = MAX_DEPTH,
    seed: int = 0,
    background: tuple[float, float, float] = (0.0, 0.0, 0.0),
    sky: bool = False,
    gamma: float | None = 2.0,
) -> npt.NDArray[np.float32]:
    """Render a scene to a grid of colors.

    Configuration is checked and the scene is built before any pixel work
    starts. The camera's aspect ratio is used as given.

    Args:
        scene: The scene (objects and camera) to render.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Camera samples averaged per pixel.
        max_depth: Maximum path length.
        seed: Seed for the per-sample random generators.
        background: Color of escaped rays.
        sky: Use the sky gradient instead of ``background``.
        gamma: Gamma for the output (2.0 is a square root); None returns
            linear radiance clamped to [0, 1].

    Returns:
        Array of shape (height, width, 3), dtype float32, values in [0, 1],
        top row first.

    Raises:
        ValueError: On invalid settings, a degenerate camera or an empty scene.
    """
    settings = RenderSettings(
        width=width,
        height=height,
        samples_per_pixel=samples_per_pixel,
        max_depth=max_depth,
        seed=seed,
        background=background,
        sky=sky,
    )
    return render_with_settings(scene, settings, gamma=gamma)


def render_with_settings(
    scene: "Scene",
    settings: RenderSettings,
    gamma: float | None = 2.0,
) -> npt.NDArray[np.float32]:
    """Render a scene with a RenderSettings bundle. See render()."""
    settings.validate()
    scene.camera.validate()
    scene.manager.ensure_built(scene.camera.time0, scene.camera.time1)

    setup_camera(scene.camera)
    setup_background(settings.background, settings.sky)
    setup_render_target(settings.width, settings.height)

    logger.info(
        "Rendering %dx%d, %d samples/pixel, max depth %d, seed %d",
        settings.width,
        settings.height,
        settings.samples_per_pixel,
        settings.max_depth,
        settings.seed,
    )
    start = time.perf_counter()
    render_image(
        settings.samples_per_pixel,
        max_depth=settings.max_depth,
        seed=settings.seed,
        jitter=settings.samples_per_pixel > 1,
    )
    ti.sync()
    logger.info("Render finished in %.2fs", time.perf_counter() - start)

    linear = get_linear_image_numpy()
    if gamma is None:
        return np.clip(linear, 0.0, 1.0).astype(np.float32)
    return gamma_correct(linear, gamma)
