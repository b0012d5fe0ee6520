"""Axis-aligned bounding boxes.

Bounding boxes live in two places. On the Python side, ``AABB`` is a small
numpy-backed value type used while building the BVH (union, centroid,
transforming a box by a rigid transform); each axis reads as an
``Interval``, which carries the union and overlap arithmetic. On the Taichi
side, ``hit_aabb`` performs the ray-slab test during traversal against boxes
stored in fields.

The slab test is written so that flat boxes (zero width along an axis, as
produced by an axis-aligned quad) never reject rays that actually reach the
face:

- a ray parallel to a slab (direction component exactly zero) is inside the
  slab for every t if its origin lies within [min, max], and outside for
  every t otherwise;
- entering and leaving distances are compared with ``>=`` so a zero-width
  slab produces a single valid t rather than an empty range.

Example:
    >>> import numpy as np
    >>> a = AABB(np.array([0.0, 0.0, 0.0]), np.array([1.0, 1.0, 1.0]))
    >>> b = AABB(np.array([2.0, -1.0, 0.0]), np.array([3.0, 0.0, 0.5]))
    >>> a.union(b).max
    array([3., 1., 1.])
"""

from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from nextweek.core.interval import Interval

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@dataclass(frozen=True)
class AABB:
    """An axis-aligned box given by its minimum and maximum corners.

    Attributes:
        min: Minimum corner, shape (3,).
        max: Maximum corner, shape (3,).
    """

    min: np.ndarray
    max: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "min", np.asarray(self.min, dtype=np.float64).reshape(3))
        object.__setattr__(self, "max", np.asarray(self.max, dtype=np.float64).reshape(3))

    @classmethod
    def from_points(cls, *points) -> "AABB":
        """Smallest box containing all the given points."""
        stacked = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        return cls(stacked.min(axis=0), stacked.max(axis=0))

    @classmethod
    def from_intervals(cls, x: Interval, y: Interval, z: Interval) -> "AABB":
        """Box spanning one interval per axis."""
        return cls(np.array([x.min, y.min, z.min]), np.array([x.max, y.max, z.max]))

    @classmethod
    def empty(cls) -> "AABB":
        """A box containing nothing; the identity for ``union``."""
        return cls(np.full(3, np.inf), np.full(3, -np.inf))

    def axis_interval(self, axis: int) -> Interval:
        return Interval(float(self.min[axis]), float(self.max[axis]))

    def union(self, other: "AABB") -> "AABB":
        """Return the smallest box enclosing both boxes."""
        return AABB.from_intervals(
            *(self.axis_interval(axis).union(other.axis_interval(axis)) for axis in range(3))
        )

    def centroid(self) -> np.ndarray:
        return 0.5 * (self.min + self.max)

    def extent(self) -> np.ndarray:
        return np.array([self.axis_interval(axis).size for axis in range(3)])

    def longest_axis(self) -> int:
        """Index (0, 1 or 2) of the axis with the greatest extent."""
        return int(np.argmax(self.extent()))

    def contains_box(self, other: "AABB") -> bool:
        return bool(np.all(self.min <= other.min) and np.all(other.max <= self.max))

    def corners(self) -> np.ndarray:
        """The eight corners of the box, shape (8, 3)."""
        result = np.empty((8, 3))
        for index in range(8):
            result[index] = [
                self.max[0] if index & 1 else self.min[0],
                self.max[1] if index & 2 else self.min[1],
                self.max[2] if index & 4 else self.min[2],
            ]
        return result

    def transformed(self, rotation: np.ndarray, offset: np.ndarray) -> "AABB":
        """Bound this box after applying ``p -> rotation @ p + offset``.

        All eight corners are transformed and re-bounded, so the result
        contains the transformed box for any rotation.
        """
        moved = self.corners() @ np.asarray(rotation, dtype=np.float64).T + offset
        return AABB(moved.min(axis=0), moved.max(axis=0))

    def hit(self, origin, direction, t_min: float, t_max: float) -> bool:
        """Python version of the slab test, mirroring ``hit_aabb``."""
        ray_t = Interval(t_min, t_max)
        for axis in range(3):
            slab = self.axis_interval(axis)
            o = float(origin[axis])
            d = float(direction[axis])
            if d == 0.0:
                if not slab.contains(o):
                    return False
                continue
            t0 = (slab.min - o) / d
            t1 = (slab.max - o) / d
            ray_t = ray_t.intersection(Interval(min(t0, t1), max(t0, t1)))
            if ray_t.is_empty():
                return False
        return True


@ti.func
def hit_aabb(
    box_min: vec3,
    box_max: vec3,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.i32:
    """Test whether a ray overlaps a box within (t_min, t_max).

    Args:
        box_min: Minimum corner of the box.
        box_max: Maximum corner of the box.
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        t_min: Lower end of the parametric range.
        t_max: Upper end of the parametric range.

    Returns:
        1 if the ray's range overlaps the box, 0 otherwise.
    """
    lo = t_min
    hi = t_max
    inside = 1

    for axis in ti.static(range(3)):
        o = ray_origin[axis]
        d = ray_direction[axis]
        if d == 0.0:
            if o < box_min[axis] or o > box_max[axis]:
                inside = 0
        else:
            inv_d = 1.0 / d
            t0 = (box_min[axis] - o) * inv_d
            t1 = (box_max[axis] - o) * inv_d
            if t0 > t1:
                t0, t1 = t1, t0
            lo = ti.max(lo, t0)
            hi = ti.min(hi, t1)
            if hi < lo:
                inside = 0

    return inside
