"""Scene-description hittables and their flattening into leaf primitives.

Hittables are plain Python dataclasses describing what is in the scene:

    SphereObject        static sphere
    MovingSphereObject  sphere whose center moves linearly over time
    QuadObject          parallelogram (rectangle) given by a corner and two edges
    Box                 axis-aligned box made of six quads
    HittableList        ordered group of hittables
    Translate, Rotate   instance wrappers moving a child into world space

Every hittable reports its world-space bounding box over a time interval
and can be flattened into ``Primitive`` leaves. Flattening composes nested
wrappers into a single rigid ``Transform`` per leaf, so the renderer only
ever intersects spheres and quads, each with at most one transform.

Example:
    >>> box = Box((0, 0, 0), (1, 2, 1), material_id=0)
    >>> rotated = Translate(Rotate(box, axis=1, angle=15.0), offset=(2, 0, 1))
    >>> leaves = list(rotated.primitives())
    >>> len(leaves)
    6
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, Union

import numpy as np

from .aabb import AABB
from .transform import AXIS_NAMES, Transform


class PrimitiveKind(IntEnum):
    """Leaf primitive kinds understood by the Taichi intersection code."""

    SPHERE = 0
    QUAD = 1


def _as_vec3(value, name: str) -> np.ndarray:
    arr = np.asarray(value, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have 3 components, got shape {arr.shape}")
    return arr


def _as_tuple(value) -> tuple[float, float, float]:
    return tuple(float(x) for x in value)


@dataclass(frozen=True)
class Primitive:
    """A leaf primitive with its material and composed instance transform.

    Attributes:
        kind: Whether ``shape`` is a sphere (static or moving) or a quad.
        shape: The untransformed leaf hittable.
        material_id: Unified material id from the SceneManager.
        transform: Local-to-world rigid transform (identity if unwrapped).
    """

    kind: PrimitiveKind
    shape: Union["SphereObject", "MovingSphereObject", "QuadObject"]
    material_id: int
    transform: Transform

    def bounding_box(self, time0: float, time1: float) -> AABB:
        box = self.shape.bounding_box(time0, time1)
        if self.transform.is_identity():
            return box
        return box.transformed(self.transform.rotation, self.transform.offset)


@dataclass(frozen=True)
class SphereObject:
    """A static sphere."""

    center: tuple[float, float, float]
    radius: float
    material_id: int

    def __post_init__(self) -> None:
        _as_vec3(self.center, "center")
        if self.radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> AABB:
        c = np.asarray(self.center, dtype=np.float64)
        return AABB(c - self.radius, c + self.radius)

    def primitives(self, transform: Transform | None = None) -> Iterator[Primitive]:
        yield Primitive(
            PrimitiveKind.SPHERE, self, self.material_id, transform or Transform.identity()
        )


@dataclass(frozen=True)
class MovingSphereObject:
    """A sphere moving linearly from center0 (at time0) to center1 (at time1)."""

    center0: tuple[float, float, float]
    center1: tuple[float, float, float]
    time0: float
    time1: float
    radius: float
    material_id: int

    def __post_init__(self) -> None:
        _as_vec3(self.center0, "center0")
        _as_vec3(self.center1, "center1")
        if self.radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")

    def center_at(self, time: float) -> np.ndarray:
        c0 = np.asarray(self.center0, dtype=np.float64)
        c1 = np.asarray(self.center1, dtype=np.float64)
        span = self.time1 - self.time0
        if span == 0.0:
            return c0
        return c0 + ((time - self.time0) / span) * (c1 - c0)

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> AABB:
        # Linear motion: the boxes at the interval ends bound every time between
        start = self.center_at(time0)
        end = self.center_at(time1)
        box0 = AABB(start - self.radius, start + self.radius)
        box1 = AABB(end - self.radius, end + self.radius)
        return box0.union(box1)

    def primitives(self, transform: Transform | None = None) -> Iterator[Primitive]:
        yield Primitive(
            PrimitiveKind.SPHERE, self, self.material_id, transform or Transform.identity()
        )


@dataclass(frozen=True)
class QuadObject:
    """A parallelogram with corner q and edges u, v."""

    q: tuple[float, float, float]
    u: tuple[float, float, float]
    v: tuple[float, float, float]
    material_id: int

    def __post_init__(self) -> None:
        _as_vec3(self.q, "q")
        u = _as_vec3(self.u, "u")
        v = _as_vec3(self.v, "v")
        if np.linalg.norm(np.cross(u, v)) < 1e-12:
            raise ValueError("Quad edges u and v must not be parallel or zero")

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> AABB:
        q = np.asarray(self.q, dtype=np.float64)
        u = np.asarray(self.u, dtype=np.float64)
        v = np.asarray(self.v, dtype=np.float64)
        return AABB.from_points(q, q + u, q + v, q + u + v)

    def primitives(self, transform: Transform | None = None) -> Iterator[Primitive]:
        yield Primitive(
            PrimitiveKind.QUAD, self, self.material_id, transform or Transform.identity()
        )


@dataclass
class HittableList:
    """An ordered group of hittables; its box is the union of the children's."""

    objects: list = field(default_factory=list)

    def add(self, obj) -> None:
        self.objects.append(obj)

    def __len__(self) -> int:
        return len(self.objects)

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> AABB:
        box = AABB.empty()
        for obj in self.objects:
            box = box.union(obj.bounding_box(time0, time1))
        return box

    def primitives(self, transform: Transform | None = None) -> Iterator[Primitive]:
        for obj in self.objects:
            yield from obj.primitives(transform)


@dataclass(frozen=True)
class Box:
    """Axis-aligned box spanning two opposite corners, built from six quads."""

    p0: tuple[float, float, float]
    p1: tuple[float, float, float]
    material_id: int

    def __post_init__(self) -> None:
        a = _as_vec3(self.p0, "p0")
        b = _as_vec3(self.p1, "p1")
        if np.any(np.abs(a - b) < 1e-12):
            raise ValueError("Box corners must differ along every axis")

    def sides(self) -> HittableList:
        """The six faces as quads, outward normals by the right-hand rule."""
        lo = np.minimum(self.p0, self.p1).astype(np.float64)
        hi = np.maximum(self.p0, self.p1).astype(np.float64)
        dx = np.array([hi[0] - lo[0], 0.0, 0.0])
        dy = np.array([0.0, hi[1] - lo[1], 0.0])
        dz = np.array([0.0, 0.0, hi[2] - lo[2]])
        m = self.material_id

        def quad(corner, u, v):
            return QuadObject(_as_tuple(corner), _as_tuple(u), _as_tuple(v), m)

        return HittableList(
            [
                quad((lo[0], lo[1], hi[2]), dx, dy),  # front
                quad((hi[0], lo[1], hi[2]), -dz, dy),  # right
                quad((hi[0], lo[1], lo[2]), -dx, dy),  # back
                quad((lo[0], lo[1], lo[2]), dz, dy),  # left
                quad((lo[0], hi[1], hi[2]), dx, -dz),  # top
                quad((lo[0], lo[1], lo[2]), dx, dz),  # bottom
            ]
        )

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> AABB:
        return AABB(np.minimum(self.p0, self.p1), np.maximum(self.p0, self.p1))

    def primitives(self, transform: Transform | None = None) -> Iterator[Primitive]:
        yield from self.sides().primitives(transform)


@dataclass(frozen=True)
class Translate:
    """Instance wrapper moving its child by a fixed offset."""

    child: object
    offset: tuple[float, float, float]

    def __post_init__(self) -> None:
        _as_vec3(self.offset, "offset")

    @property
    def transform(self) -> Transform:
        return Transform.from_translation(self.offset)

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> AABB:
        box = self.child.bounding_box(time0, time1)
        offset = np.asarray(self.offset, dtype=np.float64)
        return AABB(box.min + offset, box.max + offset)

    def primitives(self, transform: Transform | None = None) -> Iterator[Primitive]:
        outer = transform or Transform.identity()
        yield from self.child.primitives(outer.compose(self.transform))


@dataclass(frozen=True)
class Rotate:
    """Instance wrapper rotating its child about the x (0), y (1) or z (2) axis.

    Angles are in degrees.
    """

    child: object
    axis: int
    angle: float

    def __post_init__(self) -> None:
        if self.axis not in (0, 1, 2):
            raise ValueError(f"Rotation axis must be 0, 1 or 2, got {self.axis}")

    @property
    def axis_name(self) -> str:
        return AXIS_NAMES[self.axis]

    @property
    def transform(self) -> Transform:
        return Transform.from_rotation(self.axis, self.angle)

    def bounding_box(self, time0: float = 0.0, time1: float = 1.0) -> AABB:
        xf = self.transform
        return self.child.bounding_box(time0, time1).transformed(xf.rotation, xf.offset)

    def primitives(self, transform: Transform | None = None) -> Iterator[Primitive]:
        outer = transform or Transform.identity()
        yield from self.child.primitives(outer.compose(self.transform))


Hittable = Union[
    SphereObject, MovingSphereObject, QuadObject, Box, HittableList, Translate, Rotate
]
