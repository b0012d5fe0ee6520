"""Quad (parallelogram) primitive, the building block of boxes and walls.

A quad is a corner Q plus two edge vectors u and v; it covers the points

    P = Q + alpha * u + beta * v,   0 <= alpha <= 1, 0 <= beta <= 1

and (alpha, beta) at the hit point doubles as the surface texture
coordinate. The geometric normal is normalize(cross(u, v)).

An axis-aligned box is six quads (see ``nextweek.geometry.hittable.Box``),
and the Cornell box walls are single quads.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from nextweek.geometry.quad import Quad, hit_quad
    >>> # Floor quad at y=0, spanning x=[0,1] and z=[0,1]
    >>> quad = Quad(
    ...     Q=ti.math.vec3(0, 0, 0),
    ...     u=ti.math.vec3(1, 0, 0),
    ...     v=ti.math.vec3(0, 0, 1)
    ... )
    >>> # Use hit_quad within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from .sphere import HitRecord

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Quad:
    """A parallelogram with vertices Q, Q+u, Q+v and Q+u+v.

    Attributes:
        Q: The corner point of the quad (vec3).
        u: First edge vector from Q (vec3).
        v: Second edge vector from Q (vec3).
    """

    Q: vec3
    u: vec3
    v: vec3


@ti.func
def _quad_plane(quad: Quad):
    """Plane normal, plane constant and the dual edge vectors of a quad.

    With n = cross(u, v), the dual vectors

        w_u = cross(v, n) / |n|^2,   w_v = cross(n, u) / |n|^2

    satisfy dot(w_u, u) = dot(w_v, v) = 1 and dot(w_u, v) = dot(w_v, u) = 0,
    so alpha = dot(w_u, P - Q) and beta = dot(w_v, P - Q).

    Returns:
        Tuple of (normal, d, w_u, w_v). For a degenerate quad (parallel
        edges) the dual vectors are zero.
    """
    n = tm.cross(quad.u, quad.v)
    n_dot_n = tm.dot(n, n)

    normal = vec3(0.0, 0.0, 0.0)
    w_u = vec3(0.0, 0.0, 0.0)
    w_v = vec3(0.0, 0.0, 0.0)

    if n_dot_n > 1e-12:
        normal = n / ti.sqrt(n_dot_n)
        w_u = tm.cross(quad.v, n) / n_dot_n
        w_v = tm.cross(n, quad.u) / n_dot_n

    d = tm.dot(normal, quad.Q)
    return normal, d, w_u, w_v


@ti.func
def hit_quad(
    ray_origin: vec3,
    ray_direction: vec3,
    quad: Quad,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-quad intersection.

    Intersects the ray with the quad's plane,

        t = (d - dot(normal, ray_origin)) / dot(normal, ray_direction),

    then accepts the hit if t lies in (t_min, t_max) and the plane point's
    (alpha, beta) coordinates are inside [0, 1] x [0, 1]. Rays parallel to
    the plane never hit.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        quad: The quad to test intersection against.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A HitRecord with u = alpha and v = beta at the hit point.
    """
    normal, d, w_u, w_v = _quad_plane(quad)
    denom = tm.dot(normal, ray_direction)

    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0
    hit_u = 0.0
    hit_v = 0.0

    if ti.abs(denom) > 1e-8:
        t = (d - tm.dot(normal, ray_origin)) / denom

        if t > t_min and t < t_max:
            p = ray_origin + t * ray_direction
            offset = p - quad.Q
            alpha = tm.dot(w_u, offset)
            beta = tm.dot(w_v, offset)

            if alpha >= 0.0 and alpha <= 1.0 and beta >= 0.0 and beta <= 1.0:
                did_hit = 1
                hit_t = t
                hit_point = p
                hit_u = alpha
                hit_v = beta

                if denom > 0.0:
                    # Ray travels along the normal: back face
                    is_front_face = 0
                    hit_normal = -normal
                else:
                    is_front_face = 1
                    hit_normal = normal

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
def make_quad(q: vec3, u: vec3, v: vec3) -> Quad:
    """Create a quad from a corner point and two edges within a kernel."""
    return Quad(Q=q, u=u, v=v)


@ti.func
def quad_normal(quad: Quad) -> vec3:
    """Unit normal normalize(cross(u, v)) of a quad (right-hand rule)."""
    return tm.normalize(tm.cross(quad.u, quad.v))


@ti.func
def quad_area(quad: Quad) -> ti.f32:
    """Area |cross(u, v)| of a quad."""
    return tm.length(tm.cross(quad.u, quad.v))
