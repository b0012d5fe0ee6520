"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters toward ``normal + random_unit_vector``, which
yields a cosine-weighted distribution of directions about the normal. With
that distribution the BRDF and the sampling density cancel, so the path
weight for a bounce is simply the albedo, taken from the material's texture
at the hit point.

If the random unit vector nearly cancels the normal the scatter direction
would be degenerate; the normal itself is used instead.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from nextweek.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, state = scatter_lambertian(albedo, normal, state)
"""

import taichi as ti
import taichi.math as tm

from nextweek.core.ray import near_zero, random_unit_vector

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def lambertian_direction(normal: vec3, offset: vec3) -> vec3:
    """Scatter direction for a given random unit offset.

    Returns ``normal + offset``, or ``normal`` when the sum is near zero.
    """
    direction = normal + offset
    if near_zero(direction):
        direction = normal
    return direction


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, state: ti.u32):
    """Sample a scattered ray direction for a Lambertian surface.

    Args:
        albedo: The diffuse reflectance at the hit point (RGB).
        normal: The surface normal at the hit point (unit, facing the ray).
        state: The generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, new_state). The
        direction is never the zero vector.
    """
    offset, s = random_unit_vector(state)
    direction = lambertian_direction(normal, offset)
    return direction, albedo, s


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

# Lambertian materials reference a texture for their albedo
lambertian_texture_ids = ti.field(dtype=ti.i32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(texture_id: int) -> int:
    """Add a Lambertian material whose albedo comes from a texture.

    Args:
        texture_id: Id of the albedo texture.

    Returns:
        The index of the added material within the Lambertian registry.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_texture_ids[idx] = texture_id
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_texture(material_idx: ti.i32) -> ti.i32:
    """Get the albedo texture id of a Lambertian material by index."""
    return lambertian_texture_ids[material_idx]
