"""Camera module for view and ray generation.

Components:
    thin_lens: Look-at camera with depth of field and a shutter interval

Camera responsibilities:
    - Transform (s, t) image coordinates to world-space rays
    - Jitter ray origins over the lens disk for defocus blur
    - Assign each ray a random time inside the shutter for motion blur

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    Camera,
    get_camera_basis,
    get_camera_info,
    get_camera_origin,
    get_ray,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "get_ray",
    "get_camera_origin",
    "get_camera_basis",
    "get_camera_info",
]
