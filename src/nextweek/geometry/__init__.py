"""Geometry module for shape primitives and spatial acceleration.

This module provides geometric primitives and intersection algorithms:

Components:
    sphere: Sphere primitive (static or moving) with ray-sphere intersection
    quad: Parallelogram primitive used for walls and box faces
    aabb: Axis-aligned bounding boxes and the ray-slab test
    transform: Rigid rotate/translate instance transforms
    hittable: Python scene-description hittables and leaf flattening
    bvh: Median-split bounding volume hierarchy and its flat storage

Intersection routines are Taichi functions (@ti.func); bounding boxes,
hittable descriptions and BVH construction are plain Python.
"""

from .aabb import AABB, hit_aabb
from .bvh import BVHNode, build_bvh, flatten_bvh
from .hittable import (
    Box,
    HittableList,
    MovingSphereObject,
    Primitive,
    PrimitiveKind,
    QuadObject,
    Rotate,
    SphereObject,
    Translate,
)
from .quad import Quad, hit_quad, make_quad, quad_area, quad_normal
from .sphere import HitRecord, Sphere, hit_sphere, make_sphere, sphere_center_at, sphere_uv
from .transform import Transform, rotation_matrix

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
    "sphere_center_at",
    "sphere_uv",
    "Quad",
    "hit_quad",
    "make_quad",
    "quad_area",
    "quad_normal",
    "AABB",
    "hit_aabb",
    "Transform",
    "rotation_matrix",
    "PrimitiveKind",
    "Primitive",
    "SphereObject",
    "MovingSphereObject",
    "QuadObject",
    "Box",
    "HittableList",
    "Translate",
    "Rotate",
    "BVHNode",
    "build_bvh",
    "flatten_bvh",
]
