"""Ray data structure and vector utilities for Taichi ray tracing.

This module provides the fundamental Ray dataclass and the vector utility
functions shared by the camera, the primitives and the materials. A ray
carries the time at which it was emitted so moving geometry can be
intersected at the right position (motion blur).

All random generators take the caller's generator state (see
``nextweek.core.sampler``) and return the advanced state alongside their
result, so every draw is explicit and reproducible.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction, time=0.0)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from nextweek.core.sampler import random_float

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Components below this magnitude count as zero for degenerate-direction checks
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A ray P(t) = origin + t * direction emitted at a point in time.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to
            be unit length.
        time: The emission time, inside the camera's shutter interval.
    """

    origin: vec3
    direction: vec3
    time: ti.f32


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3, time: ti.f32) -> Ray:
    """Create a ray from origin, direction and emission time."""
    return Ray(origin=origin, direction=direction, time=time)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v, or the zero vector when
        v has zero length (never NaN).
    """
    len_sq = tm.dot(v, v)
    result = vec3(0.0, 0.0, 0.0)
    if len_sq > 0.0:
        result = v / ti.sqrt(len_sq)
    return result


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes v - 2 * dot(v, n) * n. The result has the same length as the
    incident vector when the normal is unit length.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Refract an incident vector through a surface.

    Computes the refracted direction using Snell's law. If total internal
    reflection occurs (the discriminant 1 - eta^2 * (1 - cos^2) is
    negative) no refracted direction exists and the zero vector is
    returned; callers must reflect instead.

    Args:
        incident: The incoming direction vector (should be normalized).
        normal: The surface normal (normalized, facing the incident ray).
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction vector, or zero vector if total internal
        reflection occurs.
    """
    cos_i = tm.min(-tm.dot(incident, normal), 1.0)
    discriminant = 1.0 - eta * eta * (1.0 - cos_i * cos_i)
    result = vec3(0.0, 0.0, 0.0)
    if discriminant >= 0.0:
        r_perp = eta * (incident + cos_i * normal)
        r_parallel = -ti.sqrt(discriminant) * normal
        result = r_perp + r_parallel
    return result


@ti.func
def schlick_fresnel(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The approximate Fresnel reflectance coefficient.
    """
    r0 = ((1.0 - ref_idx) / (1.0 + ref_idx)) ** 2
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Useful for detecting degenerate scatter directions.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Generate a random point inside the unit sphere.

    Rejection sampling: draw uniformly in the [-1, 1]^3 cube and retry
    until the point falls inside the sphere (expected ~1.9 draws).

    Args:
        state: The generator state.

    Returns:
        A tuple of (point, new_state) with |point| < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    s = state
    while True:
        x, s = random_float(s)
        y, s = random_float(s)
        z, s = random_float(s)
        p = vec3(2.0 * x - 1.0, 2.0 * y - 1.0, 2.0 * z - 1.0)
        if length_squared(p) < 1.0:
            break
    return p, s


@ti.func
def random_unit_vector(state: ti.u32):
    """Generate a random unit vector uniformly distributed on the sphere.

    Points too close to the center are rejected so the normalization is
    always well defined.

    Returns:
        A tuple of (unit_vector, new_state).
    """
    p = vec3(0.0, 0.0, 1.0)
    s = state
    while True:
        q, s = random_in_unit_sphere(s)
        len_sq = length_squared(q)
        if len_sq > 1e-20:
            p = q / ti.sqrt(len_sq)
            break
    return p, s


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Generate a random point inside the unit disk in the xy-plane.

    Used for depth-of-field lens sampling.

    Returns:
        A tuple of (point, new_state) where point = (x, y, 0), x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    s = state
    while True:
        x, s = random_float(s)
        y, s = random_float(s)
        p = vec3(2.0 * x - 1.0, 2.0 * y - 1.0, 0.0)
        if p.x * p.x + p.y * p.y < 1.0:
            break
    return p, s
