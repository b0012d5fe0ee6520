"""Textures: map a surface coordinate and hit point to a color.

Three texture types are supported:

    SOLID    a constant color, ignoring its inputs
    CHECKER  a 3D checkerboard choosing between two sub-textures by the sign
             of sin(s*x) * sin(s*y) * sin(s*z); being defined in space rather
             than in (u, v), it tiles curved surfaces without seams at poles
    IMAGE    an image looked up by (u, v), nearest texel, v = 0 at the bottom

Textures live in module-level Taichi fields, addressed by texture id. The
texels of all image textures are packed into one flat field; each image
texture records its offset, width and height.

Checker sub-textures must be solid or image textures, which keeps the
lookup a fixed two-level dispatch inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from nextweek.materials.textures import add_solid_texture, add_checker_texture
    >>> white = add_solid_texture((0.9, 0.9, 0.9))
    >>> green = add_solid_texture((0.2, 0.3, 0.1))
    >>> floor = add_checker_texture(10.0, white, green)
    >>> # Within a kernel: color = texture_value(floor, u, v, p)
"""

import logging
from enum import IntEnum
from pathlib import Path

import numpy as np
import taichi as ti
import taichi.math as tm
from PIL import Image

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


class TextureType(IntEnum):
    """Texture kinds, stored per texture id for dispatch in kernels."""

    SOLID = 0
    CHECKER = 1
    IMAGE = 2


# Maximum number of textures and packed image texels
MAX_TEXTURES = 512
MAX_TEXELS = 1024 * 1024

# Color shown for an image texture without data, so missing images stand out
MISSING_IMAGE_COLOR = (0.0, 1.0, 1.0)

texture_types = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXTURES)
texture_scales = ti.field(dtype=ti.f32, shape=MAX_TEXTURES)
texture_even_ids = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_odd_ids = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_image_offsets = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_image_widths = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_image_heights = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
num_textures = ti.field(dtype=ti.i32, shape=())

texels = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXELS)
num_texels = ti.field(dtype=ti.i32, shape=())

# Python-side mirror of texture types, used for validation
_texture_kinds: list[TextureType] = []


def clear_textures() -> None:
    """Remove all textures and image data."""
    num_textures[None] = 0
    num_texels[None] = 0
    _texture_kinds.clear()


def _validate_color(color: tuple[float, float, float], name: str = "color") -> None:
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    for i, component in enumerate(color):
        if component < 0.0:
            raise ValueError(f"{name} component {i} = {component} is negative")


def _next_texture_id() -> int:
    idx = num_textures[None]
    if idx >= MAX_TEXTURES:
        raise RuntimeError(f"Maximum number of textures ({MAX_TEXTURES}) exceeded")
    return idx


def add_solid_texture(color: tuple[float, float, float]) -> int:
    """Add a constant-color texture.

    Args:
        color: RGB color. Components must be non-negative; values above 1
            are allowed so the same texture can drive emitters.

    Returns:
        The texture id.

    Raises:
        ValueError: If the color is malformed or has a negative component.
        RuntimeError: If the maximum number of textures is exceeded.
    """
    _validate_color(color)
    idx = _next_texture_id()
    texture_types[idx] = int(TextureType.SOLID)
    texture_colors[idx] = vec3(color[0], color[1], color[2])
    num_textures[None] = idx + 1
    _texture_kinds.append(TextureType.SOLID)
    return idx


def add_checker_texture(scale: float, even_id: int, odd_id: int) -> int:
    """Add a 3D checker texture alternating between two sub-textures.

    Args:
        scale: Spatial frequency s in sin(s*x) * sin(s*y) * sin(s*z).
        even_id: Texture used where the product is non-negative.
        odd_id: Texture used where the product is negative.

    Returns:
        The texture id.

    Raises:
        ValueError: If scale is not positive, a sub-texture id is unknown,
            or a sub-texture is itself a checker.
    """
    if scale <= 0.0:
        raise ValueError(f"Checker scale must be positive, got {scale}")
    for name, sub_id in (("even_id", even_id), ("odd_id", odd_id)):
        if not 0 <= sub_id < len(_texture_kinds):
            raise ValueError(f"{name} = {sub_id} does not name an existing texture")
        if _texture_kinds[sub_id] == TextureType.CHECKER:
            raise ValueError(f"{name} = {sub_id} is a checker; checkers cannot be nested")

    idx = _next_texture_id()
    texture_types[idx] = int(TextureType.CHECKER)
    texture_scales[idx] = scale
    texture_even_ids[idx] = even_id
    texture_odd_ids[idx] = odd_id
    num_textures[None] = idx + 1
    _texture_kinds.append(TextureType.CHECKER)
    return idx


def load_image_texels(source: str | Path | np.ndarray | Image.Image) -> np.ndarray:
    """Load an image as an (height, width, 3) float32 array in [0, 1].

    Row 0 of the result is the top row of the image.
    """
    if isinstance(source, np.ndarray):
        data = np.asarray(source, dtype=np.float32)
        if data.ndim != 3 or data.shape[2] != 3:
            raise ValueError(f"Image array must have shape (H, W, 3), got {data.shape}")
        if data.size and data.max() > 1.0:
            data = data / 255.0
        return data

    if isinstance(source, Image.Image):
        return np.asarray(source.convert("RGB"), dtype=np.float32) / 255.0
    with Image.open(source) as image:
        return np.asarray(image.convert("RGB"), dtype=np.float32) / 255.0


def add_image_texture(source: str | Path | np.ndarray | Image.Image) -> int:
    """Add an image texture from a file path, PIL image or RGB array.

    Args:
        source: Image file path, ``PIL.Image.Image``, or an (H, W, 3) array
            of floats in [0, 1] (or 0-255 values).

    Returns:
        The texture id.

    Raises:
        RuntimeError: If the texture table or texel storage is full.
    """
    data = load_image_texels(source)
    height, width = data.shape[0], data.shape[1]

    offset = num_texels[None]
    if offset + width * height > MAX_TEXELS:
        raise RuntimeError(f"Image texture storage ({MAX_TEXELS} texels) exceeded")
    idx = _next_texture_id()

    if width * height > 0:
        packed = texels.to_numpy()
        packed[offset : offset + width * height] = data.reshape(-1, 3)
        texels.from_numpy(packed)

    texture_types[idx] = int(TextureType.IMAGE)
    texture_image_offsets[idx] = offset
    texture_image_widths[idx] = width
    texture_image_heights[idx] = height
    num_texels[None] = offset + width * height
    num_textures[None] = idx + 1
    _texture_kinds.append(TextureType.IMAGE)
    logger.debug("Added image texture %d (%dx%d)", idx, width, height)
    return idx


def get_texture_count() -> int:
    """Get the number of textures in the registry."""
    return int(num_textures[None])


def get_texture_type(texture_id: int) -> TextureType:
    """Get the type of a texture by id (Python side)."""
    return _texture_kinds[texture_id]


@ti.func
def _image_value(texture_id: ti.i32, u: ti.f32, v: ti.f32) -> vec3:
    """Nearest-texel lookup with (u, v) clamped to [0, 1] and v flipped."""
    width = texture_image_widths[texture_id]
    height = texture_image_heights[texture_id]
    color = vec3(MISSING_IMAGE_COLOR[0], MISSING_IMAGE_COLOR[1], MISSING_IMAGE_COLOR[2])
    if width > 0 and height > 0:
        uu = tm.clamp(u, 0.0, 1.0)
        vv = 1.0 - tm.clamp(v, 0.0, 1.0)
        i = ti.min(ti.cast(uu * width, ti.i32), width - 1)
        j = ti.min(ti.cast(vv * height, ti.i32), height - 1)
        color = texels[texture_image_offsets[texture_id] + j * width + i]
    return color


@ti.func
def _leaf_value(texture_id: ti.i32, u: ti.f32, v: ti.f32) -> vec3:
    """Value of a solid or image texture."""
    color = texture_colors[texture_id]
    if texture_types[texture_id] == int(TextureType.IMAGE):
        color = _image_value(texture_id, u, v)
    return color


@ti.func
def texture_value(texture_id: ti.i32, u: ti.f32, v: ti.f32, p: vec3) -> vec3:
    """Evaluate a texture at surface coordinate (u, v) and point p.

    Args:
        texture_id: Id returned by one of the ``add_*_texture`` functions.
        u: Surface texture coordinate.
        v: Surface texture coordinate.
        p: World-space hit point (used by checker textures).

    Returns:
        The texture color (RGB).
    """
    leaf_id = texture_id
    if texture_types[texture_id] == int(TextureType.CHECKER):
        s = texture_scales[texture_id]
        sines = ti.sin(s * p.x) * ti.sin(s * p.y) * ti.sin(s * p.z)
        leaf_id = texture_even_ids[texture_id]
        if sines < 0.0:
            leaf_id = texture_odd_ids[texture_id]
    return _leaf_value(leaf_id, u, v)
