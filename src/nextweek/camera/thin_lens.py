"""Thin-lens camera with depth of field and a shutter interval.

The camera builds an orthonormal basis (u, v, w) from its look-at
parameters:

- w: points from look_at toward look_from (opposite the view direction)
- u: points right in the image plane
- v: points up in the image plane

The image plane is placed at the focus distance, so points on it are in
perfect focus. Each ray starts at a random point on a lens disk of radius
aperture / 2 around the camera origin (defocus blur) and carries a random
time in [time0, time1] (motion blur). With aperture = 0 the camera is a
pinhole; with time0 == time1 there is no motion blur.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from nextweek.camera.thin_lens import Camera, setup_camera, get_ray
    >>>
    >>> camera = Camera(
    ...     look_from=(13.0, 2.0, 3.0),
    ...     look_at=(0.0, 0.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=16.0 / 9.0,
    ...     aperture=0.1,
    ...     focus_dist=10.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> # Within a kernel:
    >>> # origin, direction, time, state = get_ray(0.5, 0.5, state)
"""

import math
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
import taichi as ti

from nextweek.core.ray import random_in_unit_disk, vec3
from nextweek.core.sampler import random_float

# =============================================================================
# Camera Configuration
# =============================================================================


@dataclass
class Camera:
    """Configuration for a thin-lens camera.

    Attributes:
        look_from: Camera position in world space.
        look_at: Point the camera looks at.
        vup: Up direction used to orient the camera (must not be parallel
            to the view direction).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Image width divided by height.
        aperture: Lens diameter; 0 gives a pinhole camera.
        focus_dist: Distance to the plane of perfect focus. None means the
            distance from look_from to look_at.
        time0: Shutter open time.
        time1: Shutter close time.
    """

    look_from: tuple[float, float, float] = (0.0, 0.0, 0.0)
    look_at: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 90.0
    aspect_ratio: float = 4.0 / 3.0
    aperture: float = 0.0
    focus_dist: float | None = None
    time0: float = 0.0
    time1: float = 0.0

    def resolved_focus_dist(self) -> float:
        if self.focus_dist is not None:
            return float(self.focus_dist)
        return float(np.linalg.norm(np.subtract(self.look_from, self.look_at)))

    def validate(self) -> None:
        """Check that the camera defines a usable basis and lens.

        Raises:
            ValueError: If any parameter is degenerate or out of range.
        """
        look_from = np.asarray(self.look_from, dtype=np.float64)
        look_at = np.asarray(self.look_at, dtype=np.float64)
        vup = np.asarray(self.vup, dtype=np.float64)

        view = look_from - look_at
        if np.linalg.norm(view) < 1e-12:
            raise ValueError("Camera look_from and look_at must differ")
        if np.linalg.norm(np.cross(vup, view)) < 1e-12:
            raise ValueError("Camera vup must not be zero or parallel to the view direction")
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"Camera vfov must be in (0, 180) degrees, got {self.vfov}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"Camera aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.aperture < 0.0:
            raise ValueError(f"Camera aperture must be non-negative, got {self.aperture}")
        if self.focus_dist is not None and self.focus_dist <= 0.0:
            raise ValueError(f"Camera focus_dist must be positive, got {self.focus_dist}")
        if self.time1 < self.time0:
            raise ValueError(f"Camera time1 ({self.time1}) is before time0 ({self.time0})")

    def basis(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """The orthonormal (u, v, w) basis of the camera."""
        w = np.subtract(self.look_from, self.look_at).astype(np.float64)
        w /= np.linalg.norm(w)
        u = np.cross(self.vup, w)
        u /= np.linalg.norm(u)
        v = np.cross(w, u)
        return u, v, w

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("look_from", "look_at", "vup"):
            data[key] = list(data[key])
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Camera":
        kwargs = dict(data)
        for key in ("look_from", "look_at", "vup"):
            if key in kwargs:
                kwargs[key] = tuple(float(x) for x in kwargs[key])
        return cls(**kwargs)


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Focus plane extents, scaled by the focus distance
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())
_time0 = ti.field(dtype=ti.f32, shape=())
_time1 = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup
# =============================================================================


def setup_camera(camera: Camera) -> None:
    """Validate a camera and write its derived state to the Taichi fields.

    Must be called before rendering with the camera.

    Raises:
        ValueError: If the camera is degenerate (see ``Camera.validate``).
    """
    camera.validate()

    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)
    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height
    focus_dist = camera.resolved_focus_dist()

    origin = np.asarray(camera.look_from, dtype=np.float64)
    u, v, w = camera.basis()

    horizontal = focus_dist * viewport_width * u
    vertical = focus_dist * viewport_height * v
    lower_left = origin - horizontal / 2.0 - vertical / 2.0 - focus_dist * w

    _camera_origin[None] = origin.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.aperture / 2.0
    _time0[None] = camera.time0
    _time1[None] = camera.time1


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32, state: ti.u32):
    """Generate a camera ray through normalized image coordinates (s, t).

    s = 0 is the left edge and s = 1 the right edge; t = 0 is the bottom
    edge and t = 1 the top edge. Sub-pixel jitter is the caller's job.

    Args:
        s: Horizontal coordinate in [0, 1].
        t: Vertical coordinate in [0, 1].
        state: The generator state.

    Returns:
        A tuple of (origin, direction, time, new_state). The direction is
        not normalized.
    """
    rd, st = random_in_unit_disk(state)
    rd = _lens_radius[None] * rd
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    target = (
        _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    )
    direction = target - origin

    r, st = random_float(st)
    time = _time0[None] + r * (_time1[None] - _time0[None])

    return origin, direction, time, st


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera origin (lens center) in world space."""
    return _camera_origin[None]


@ti.func
def get_camera_basis():
    """Get the camera's orthonormal basis as a tuple (u, v, w)."""
    return _camera_u[None], _camera_v[None], _camera_w[None]


def get_camera_info() -> dict[str, Any]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        (3-tuples), lens_radius and the shutter interval.
    """

    def as_tuple(field) -> tuple[float, float, float]:
        value = field[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": as_tuple(_camera_origin),
        "u": as_tuple(_camera_u),
        "v": as_tuple(_camera_v),
        "w": as_tuple(_camera_w),
        "horizontal": as_tuple(_viewport_horizontal),
        "vertical": as_tuple(_viewport_vertical),
        "lower_left": as_tuple(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
        "shutter": (float(_time0[None]), float(_time1[None])),
    }
