"""Preview module for image output.

Components:
    export: PNG/BMP/TGA export of rendered color grids via Pillow

Example:
    >>> from nextweek.preview import save_image
    >>> save_image(image, "output.png")
"""

from nextweek.preview.export import (
    SUPPORTED_FORMATS,
    compute_rmse,
    image_to_uint8,
    load_image,
    save_image,
)

__all__ = [
    "SUPPORTED_FORMATS",
    "save_image",
    "load_image",
    "image_to_uint8",
    "compute_rmse",
]
