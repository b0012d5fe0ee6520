"""Rigid instance transforms (rotate about an axis, translate).

``Translate`` and ``Rotate`` wrappers are resolved on the Python side into
one composed rigid transform per leaf primitive, ``p_world = R p + o``.
During rendering the ray is moved into the primitive's local frame, tested
against the untransformed primitive, and the hit point and normal are moved
back to world space:

    local origin    = R^T (origin - o)
    local direction = R^T direction
    world point     = R p_local + o
    world normal    = R n_local

Rigid transforms keep the ray parameter t unchanged, so the hit distance
needs no correction.

Example:
    >>> xf = Transform.from_translation((1.0, 0.0, 0.0)).compose(
    ...     Transform.from_rotation(1, 90.0))
    >>> p = xf.apply_point((0.0, 0.0, 1.0))  # rotate first, then translate
    >>> # p is (2, 0, 0) up to rounding
"""

import math
from dataclasses import dataclass, field

import numpy as np
import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

AXIS_NAMES = ("x", "y", "z")


def rotation_matrix(axis: int, angle_degrees: float) -> np.ndarray:
    """Right-handed rotation matrix about a coordinate axis.

    Args:
        axis: 0, 1 or 2 for the x, y or z axis.
        angle_degrees: Rotation angle in degrees (counter-clockwise when
            looking down the axis toward the origin).

    Returns:
        A (3, 3) float64 rotation matrix.

    Raises:
        ValueError: If axis is not 0, 1 or 2.
    """
    if axis not in (0, 1, 2):
        raise ValueError(f"Rotation axis must be 0, 1 or 2, got {axis}")

    theta = math.radians(angle_degrees)
    c = math.cos(theta)
    s = math.sin(theta)
    if axis == 0:
        return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])
    if axis == 1:
        return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


@dataclass(frozen=True)
class Transform:
    """Rigid transform p -> rotation @ p + offset.

    Attributes:
        rotation: (3, 3) orthonormal rotation matrix.
        offset: (3,) translation applied after the rotation.
    """

    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    offset: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "rotation", np.asarray(self.rotation, dtype=np.float64).reshape(3, 3)
        )
        object.__setattr__(self, "offset", np.asarray(self.offset, dtype=np.float64).reshape(3))

    @classmethod
    def identity(cls) -> "Transform":
        return cls()

    @classmethod
    def from_translation(cls, offset) -> "Transform":
        return cls(np.eye(3), offset)

    @classmethod
    def from_rotation(cls, axis: int, angle_degrees: float) -> "Transform":
        return cls(rotation_matrix(axis, angle_degrees), np.zeros(3))

    def compose(self, inner: "Transform") -> "Transform":
        """Transform that applies ``inner`` first and then ``self``."""
        return Transform(
            self.rotation @ inner.rotation,
            self.rotation @ inner.offset + self.offset,
        )

    def is_identity(self) -> bool:
        return bool(np.allclose(self.rotation, np.eye(3)) and np.allclose(self.offset, 0.0))

    def apply_point(self, point) -> np.ndarray:
        return self.rotation @ np.asarray(point, dtype=np.float64) + self.offset

    def apply_vector(self, vector) -> np.ndarray:
        return self.rotation @ np.asarray(vector, dtype=np.float64)


@ti.func
def point_to_local(rotation: tm.mat3, offset: vec3, p: vec3) -> vec3:
    """Move a world-space point into the local frame: R^T (p - o)."""
    return rotation.transpose() @ (p - offset)


@ti.func
def vector_to_local(rotation: tm.mat3, d: vec3) -> vec3:
    """Move a world-space direction into the local frame: R^T d."""
    return rotation.transpose() @ d


@ti.func
def point_to_world(rotation: tm.mat3, offset: vec3, p: vec3) -> vec3:
    """Move a local point back to world space: R p + o."""
    return rotation @ p + offset


@ti.func
def vector_to_world(rotation: tm.mat3, d: vec3) -> vec3:
    """Move a local direction or normal back to world space: R d.

    Normals transform like directions under a pure rotation.
    """
    return rotation @ d
