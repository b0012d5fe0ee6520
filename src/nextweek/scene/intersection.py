"""Scene-level primitive storage and ray intersection.

Leaf primitives (spheres, moving spheres and quads) are stored in Taichi
fields in Structure-of-Arrays layout. A primitive table ties each leaf to
its shape slot, its material id and an optional rigid transform, so the
same intersection code serves plain primitives, box faces and rotated or
translated instances.

Two closest-hit queries are provided:

    intersect_scene         walks the uploaded BVH with an explicit stack
    intersect_scene_linear  tests every primitive (reference and fallback)

Both narrow t_max to the closest hit found so far and return identical
results for the same scene.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from nextweek.scene.intersection import (
    ...     SceneHitRecord, add_sphere, add_quad, intersect_scene_linear, clear_scene
    ... )
    >>> clear_scene()
    >>> add_sphere((0, 0, -1), 0.5, material_id=0)
    >>> add_quad((-1, -0.5, -2), (2, 0, 0), (0, 1, 0), material_id=1)
    >>> # Use intersect_scene_linear within a Taichi kernel
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from nextweek.geometry.aabb import hit_aabb
from nextweek.geometry.bvh import (
    BVH_STACK_SIZE,
    MAX_PRIMITIVES,
    bvh_bbox_max,
    bvh_bbox_min,
    bvh_left,
    bvh_primitive,
    bvh_right,
    num_bvh_nodes,
)
from nextweek.geometry.hittable import MovingSphereObject, Primitive, PrimitiveKind, SphereObject
from nextweek.geometry.quad import Quad, hit_quad
from nextweek.geometry.sphere import HitRecord, Sphere, hit_sphere, sphere_center_at
from nextweek.geometry.transform import (
    Transform,
    point_to_local,
    point_to_world,
    vector_to_local,
    vector_to_world,
)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Extends the primitive HitRecord with the material of the hit primitive.

    Attributes:
        hit: Whether the ray intersected any primitive (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
        point: The world-space intersection point.
        normal: The world-space surface normal (unit length, facing the ray).
        front_face: Whether the ray hit the front face (1) or back face (0).
        u: Surface texture coordinate.
        v: Surface texture coordinate.
        material_id: The unified material id of the hit primitive, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    u: ti.f32
    v: ti.f32
    material_id: ti.i32


# Maximum number of each kind of primitive and of distinct transforms
MAX_SPHERES = 4096
MAX_QUADS = MAX_PRIMITIVES
MAX_TRANSFORMS = 4096

# Sphere storage; static spheres have center1 == center0 and time1 == time0
sphere_centers0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_centers1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_times0 = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_times1 = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Quad storage: corner Q and the two edge vectors
quad_corners = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
quad_edge_u = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
quad_edge_v = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
num_quads = ti.field(dtype=ti.i32, shape=())

# Local-to-world rigid transforms
transform_rotations = ti.Matrix.field(3, 3, dtype=ti.f32, shape=MAX_TRANSFORMS)
transform_offsets = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRANSFORMS)
num_transforms = ti.field(dtype=ti.i32, shape=())

# Primitive table: kind, slot in the kind's storage, material, transform (-1 = none)
primitive_kinds = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
primitive_shapes = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
primitive_materials = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
primitive_transforms = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
num_primitives = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives and transforms from the scene.

    Resets the counts to zero; field data is overwritten as new primitives
    are added.
    """
    num_spheres[None] = 0
    num_quads[None] = 0
    num_transforms[None] = 0
    num_primitives[None] = 0


def _add_primitive(kind: PrimitiveKind, shape_idx: int, material_id: int, transform_id: int) -> int:
    idx = num_primitives[None]
    if idx >= MAX_PRIMITIVES:
        raise RuntimeError(f"Maximum number of primitives ({MAX_PRIMITIVES}) exceeded")
    primitive_kinds[idx] = int(kind)
    primitive_shapes[idx] = shape_idx
    primitive_materials[idx] = material_id
    primitive_transforms[idx] = transform_id
    num_primitives[None] = idx + 1
    return idx


def add_transform(transform: Transform) -> int:
    """Store a local-to-world rigid transform and return its id.

    Raises:
        RuntimeError: If the maximum number of transforms is exceeded.
    """
    idx = num_transforms[None]
    if idx >= MAX_TRANSFORMS:
        raise RuntimeError(f"Maximum number of transforms ({MAX_TRANSFORMS}) exceeded")
    transform_rotations[idx] = ti.Matrix(transform.rotation.astype(np.float32).tolist())
    transform_offsets[idx] = vec3(*transform.offset.tolist())
    num_transforms[None] = idx + 1
    return idx


def add_moving_sphere(
    center0,
    center1,
    time0: float,
    time1: float,
    radius: float,
    material_id: int = 0,
    transform_id: int = -1,
) -> int:
    """Add a sphere moving linearly from center0 at time0 to center1 at time1.

    Returns:
        The primitive index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres or primitives is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers0[idx] = vec3(*center0)
    sphere_centers1[idx] = vec3(*center1)
    sphere_times0[idx] = time0
    sphere_times1[idx] = time1
    sphere_radii[idx] = radius
    num_spheres[None] = idx + 1
    return _add_primitive(PrimitiveKind.SPHERE, idx, material_id, transform_id)


def add_sphere(center, radius: float, material_id: int = 0, transform_id: int = -1) -> int:
    """Add a static sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (should be positive).
        material_id: The material ID to associate with this sphere.
        transform_id: Optional transform id from ``add_transform``.

    Returns:
        The primitive index of the added sphere.
    """
    return add_moving_sphere(center, center, 0.0, 0.0, radius, material_id, transform_id)


def add_quad(q, u, v, material_id: int = 0, transform_id: int = -1) -> int:
    """Add a quad with vertices Q, Q+u, Q+v, Q+u+v to the scene.

    Returns:
        The primitive index of the added quad.

    Raises:
        RuntimeError: If the maximum number of quads or primitives is exceeded.
    """
    idx = num_quads[None]
    if idx >= MAX_QUADS:
        raise RuntimeError(f"Maximum number of quads ({MAX_QUADS}) exceeded")
    quad_corners[idx] = vec3(*q)
    quad_edge_u[idx] = vec3(*u)
    quad_edge_v[idx] = vec3(*v)
    num_quads[None] = idx + 1
    return _add_primitive(PrimitiveKind.QUAD, idx, material_id, transform_id)


def upload_primitives(primitives: list[Primitive]) -> None:
    """Replace the stored scene with the given leaf primitives.

    Primitive ``i`` of the list becomes primitive index ``i`` in the store,
    which is what BVH leaves refer to. Leaves sharing one Transform object
    (the faces of a rotated box) share one stored transform.
    """
    clear_scene()
    transform_ids: dict[int, int] = {}
    for prim in primitives:
        transform_id = -1
        if not prim.transform.is_identity():
            key = id(prim.transform)
            if key not in transform_ids:
                transform_ids[key] = add_transform(prim.transform)
            transform_id = transform_ids[key]

        shape = prim.shape
        if isinstance(shape, MovingSphereObject):
            add_moving_sphere(
                shape.center0,
                shape.center1,
                shape.time0,
                shape.time1,
                shape.radius,
                prim.material_id,
                transform_id,
            )
        elif isinstance(shape, SphereObject):
            add_sphere(shape.center, shape.radius, prim.material_id, transform_id)
        else:
            add_quad(shape.q, shape.u, shape.v, prim.material_id, transform_id)


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_quad_count() -> int:
    """Get the number of quads in the scene."""
    return int(num_quads[None])


def get_primitive_count() -> int:
    """Get the number of leaf primitives in the scene."""
    return int(num_primitives[None])


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """A SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        u=0.0,
        v=0.0,
        material_id=-1,
    )


@ti.func
def _to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        u=rec.u,
        v=rec.v,
        material_id=material_id,
    )


@ti.func
def hit_primitive(
    prim_idx: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    ray_time: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect one stored primitive, applying its instance transform.

    The ray is moved into the primitive's local frame, intersected with the
    untransformed shape, and the hit point and normal are moved back to
    world space. t is unchanged by rigid transforms.
    """
    shape_idx = primitive_shapes[prim_idx]
    xf = primitive_transforms[prim_idx]

    origin = ray_origin
    direction = ray_direction
    if xf >= 0:
        origin = point_to_local(transform_rotations[xf], transform_offsets[xf], ray_origin)
        direction = vector_to_local(transform_rotations[xf], ray_direction)

    rec = HitRecord(hit=0)
    if primitive_kinds[prim_idx] == int(PrimitiveKind.SPHERE):
        center = sphere_center_at(
            sphere_centers0[shape_idx],
            sphere_centers1[shape_idx],
            sphere_times0[shape_idx],
            sphere_times1[shape_idx],
            ray_time,
        )
        sphere = Sphere(center=center, radius=sphere_radii[shape_idx])
        rec = hit_sphere(origin, direction, sphere, t_min, t_max)
    else:
        quad = Quad(Q=quad_corners[shape_idx], u=quad_edge_u[shape_idx], v=quad_edge_v[shape_idx])
        rec = hit_quad(origin, direction, quad, t_min, t_max)

    if rec.hit == 1 and xf >= 0:
        rec.point = point_to_world(transform_rotations[xf], transform_offsets[xf], rec.point)
        rec.normal = vector_to_world(transform_rotations[xf], rec.normal)

    return rec


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    ray_time: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the closest hit in (t_min, t_max) by walking the BVH.

    Nodes are popped from an explicit stack. A node whose box the ray misses
    within (t_min, closest_t) is pruned. Internal nodes push the right child
    then the left, so the left subtree is searched first and the right
    subtree only reports hits strictly closer than anything found on the
    left.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        ray_time: The ray's time, for moving spheres.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        The closest SceneHitRecord, or a miss record.
    """
    closest_t = t_max
    result = _make_miss_record()

    stack = ti.Vector([0 for _ in range(BVH_STACK_SIZE)], dt=ti.i32)
    stack_ptr = 0
    if num_bvh_nodes[None] > 0:
        stack_ptr = 1

    while stack_ptr > 0:
        stack_ptr -= 1
        node = stack[stack_ptr]

        box_min = bvh_bbox_min[node]
        box_max = bvh_bbox_max[node]
        if hit_aabb(box_min, box_max, ray_origin, ray_direction, t_min, closest_t):
            prim_idx = bvh_primitive[node]
            if prim_idx >= 0:
                rec = hit_primitive(prim_idx, ray_origin, ray_direction, ray_time, t_min, closest_t)
                if rec.hit == 1:
                    closest_t = rec.t
                    result = _to_scene_hit_record(rec, primitive_materials[prim_idx])
            else:
                if stack_ptr < BVH_STACK_SIZE:
                    stack[stack_ptr] = bvh_right[node]
                    stack_ptr += 1
                if stack_ptr < BVH_STACK_SIZE:
                    stack[stack_ptr] = bvh_left[node]
                    stack_ptr += 1

    return result


@ti.func
def intersect_scene_linear(
    ray_origin: vec3,
    ray_direction: vec3,
    ray_time: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Find the closest hit in (t_min, t_max) by testing every primitive.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        ray_time: The ray's time, for moving spheres.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        The closest SceneHitRecord, or a miss record.
    """
    closest_t = t_max
    result = _make_miss_record()

    for i in range(num_primitives[None]):
        rec = hit_primitive(i, ray_origin, ray_direction, ray_time, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _to_scene_hit_record(rec, primitive_materials[i])

    return result
