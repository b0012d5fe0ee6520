"""Sphere primitive with robust ray-sphere intersection.

This module provides the Sphere dataclass, the HitRecord shared by every
primitive, and the intersection function. Intersection uses the robust
quadratic formula from Ray Tracing Gems to avoid catastrophic cancellation
when b^2 is nearly equal to 4ac.

Moving spheres are handled by evaluating the center at the ray's time with
``sphere_center_at`` and then intersecting an ordinary sphere, so the
intersection math is shared between static and moving spheres.

Texture coordinates follow the equirectangular mapping:

    phi = atan2(-z, x) + pi,  theta = acos(-y),  u = phi / 2pi,  v = theta / pi

where (x, y, z) is the outward unit normal at the hit point.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from nextweek.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The surface normal at the intersection point (unit length,
            oriented against the incoming ray).
            Only valid if hit == 1.
        front_face: Whether the ray hit the front face (1) or back face (0).
            Front face means the ray arrived from outside the surface.
            Only valid if hit == 1.
        u: Surface texture coordinate in [0, 1].
        v: Surface texture coordinate in [0, 1].
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    u: ti.f32
    v: ti.f32


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Roots of a*t^2 + 2*h*t + c = 0, ordered, given sqrt(h^2 - a*c)."""
    # q = -(h + sign(h) * sqrt(discriminant)) avoids cancellation
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Tangent ray through the center plane; the textbook formula is exact here
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def sphere_uv(outward_normal: vec3):
    """Map a point on the unit sphere to equirectangular (u, v).

    Args:
        outward_normal: Unit vector from the center to the surface point.

    Returns:
        Tuple of (u, v), each in [0, 1]. v = 0 at y = -1, v = 1 at y = +1.
    """
    y = tm.clamp(outward_normal.y, -1.0, 1.0)
    theta = ti.acos(-y)
    phi = ti.atan2(-outward_normal.z, outward_normal.x) + tm.pi
    return phi / (2.0 * tm.pi), theta / tm.pi


@ti.func
def sphere_center_at(
    center0: vec3, center1: vec3, time0: ti.f32, time1: ti.f32, time: ti.f32
) -> vec3:
    """Center of a moving sphere at a given time.

    The center moves linearly from center0 at time0 to center1 at time1
    (and keeps moving along the same line outside that range). A sphere
    with time1 == time0 is treated as static at center0.
    """
    center = center0
    span = time1 - time0
    if span != 0.0:
        center = center0 + ((time - time0) / span) * (center1 - center0)
    return center


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect a ray with a sphere.

    With oc = origin - center, points on the ray at distance radius from the
    center satisfy a*t^2 + 2*h*t + c = 0 where a = |d|^2, h = d . oc and
    c = |oc|^2 - r^2. The nearer root inside the open interval (t_min, t_max)
    wins, otherwise the farther one is tried.

    The returned normal always opposes the ray, and (u, v) are taken from
    the outward normal.
    """
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0
    hit_u = 0.0
    hit_v = 0.0

    if discriminant >= 0.0 and a > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = (t > t_min) and (t < t_max)

        if not valid:
            t = t1
            valid = (t > t_min) and (t < t_max)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction

            outward_normal = (hit_point - sphere.center) / sphere.radius
            hit_u, hit_v = sphere_uv(outward_normal)

            if tm.dot(ray_direction, outward_normal) > 0.0:
                # Ray is inside the sphere, hitting back face
                is_front_face = 0
                hit_normal = -outward_normal
            else:
                is_front_face = 1
                hit_normal = outward_normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
        u=hit_u,
        v=hit_v,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius within a Taichi kernel."""
    return Sphere(center=center, radius=radius)
