"""Image export utilities for rendered images.

This module persists the color grids produced by the integrator. Grids are
float arrays of shape (H, W, 3), top row first, already gamma corrected,
with values in [0, 1]; they are scaled to 8 bits per channel here.

Supported formats (chosen by file extension):
    - PNG
    - BMP
    - TGA

Example:
    >>> from nextweek.core.integrator import render
    >>> from nextweek.preview.export import save_image
    >>>
    >>> image = render(scene, 320, 240, samples_per_pixel=100)
    >>> save_image(image, "output.png")
"""

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# File extension -> Pillow format name
SUPPORTED_FORMATS = {
    ".png": "PNG",
    ".bmp": "BMP",
    ".tga": "TGA",
}


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a [0, 1] float image to uint8.

    Values are clamped to [0, 1] (NaN becomes 0) and rounded to the nearest
    of the 256 levels.

    Args:
        image: Image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.

    Raises:
        ValueError: If the array is not (H, W, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")

    clean = np.nan_to_num(image.astype(np.float64), nan=0.0, posinf=1.0, neginf=0.0)
    clamped = np.clip(clean, 0.0, 1.0)
    return np.round(clamped * 255.0).astype(np.uint8)


def _resolve_format(filepath: Path, image_format: str | None) -> str:
    if image_format is not None:
        name = image_format.upper()
        if name not in SUPPORTED_FORMATS.values():
            raise ValueError(f"Unsupported image format: {image_format}")
        return name

    suffix = filepath.suffix.lower()
    if suffix not in SUPPORTED_FORMATS:
        supported = ", ".join(sorted(SUPPORTED_FORMATS))
        raise ValueError(f"Unsupported file extension '{suffix}' (expected one of {supported})")
    return SUPPORTED_FORMATS[suffix]


def save_image(
    image: npt.NDArray[np.floating],
    filepath: str | Path,
    image_format: str | None = None,
) -> Path:
    """Save a color grid as an 8-bit RGB image file.

    Args:
        image: Display-ready image of shape (H, W, 3), values in [0, 1],
            top row first.
        filepath: Output path; the extension selects the format unless
            ``image_format`` is given.
        image_format: Optional explicit format ("PNG", "BMP" or "TGA").

    Returns:
        The path written.

    Raises:
        ValueError: If the format is unsupported or the array malformed.
    """
    path = Path(filepath)
    name = _resolve_format(path, image_format)
    image_uint8 = image_to_uint8(image)

    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(path, format=name)
    logger.info("Saved %dx%d %s image to %s", image.shape[1], image.shape[0], name, path)
    return path


def load_image(filepath: str | Path) -> npt.NDArray[np.float32]:
    """Read an image file back as a float (H, W, 3) array in [0, 1]."""
    with PILImage.open(filepath) as pil_image:
        data = np.asarray(pil_image.convert("RGB"), dtype=np.float32)
    return data / 255.0


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
