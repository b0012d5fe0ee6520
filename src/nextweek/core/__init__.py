"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and vector utilities
    interval: Closed real intervals for hit ranges and extents
    sampler: Explicit per-sample random number generation
    integrator: Iterative path tracing and render settings
    progressive: Progressive sample accumulation

All compute-intensive operations use Taichi kernels so pixels render in
parallel.
"""

from .interval import EMPTY, UNIVERSE, Interval
from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)
from .sampler import init_rng, random_float, random_range, wang_hash

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import them directly from nextweek.core.integrator or nextweek.core.progressive.

__all__ = [
    "Interval",
    "EMPTY",
    "UNIVERSE",
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_fresnel",
    "near_zero",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "wang_hash",
    "init_rng",
    "random_float",
    "random_range",
]
