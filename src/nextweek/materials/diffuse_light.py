"""Diffuse light (emissive) material.

A diffuse light never scatters: a path that reaches it ends there, picking
up the light's emitted radiance. The emitted radiance is the value of the
light's texture at the hit, usually a solid color with components well
above 1 (for example (10, 10, 10) for a ceiling light).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from nextweek.materials.textures import add_solid_texture
    >>> from nextweek.materials.diffuse_light import add_diffuse_light_material
    >>> light = add_diffuse_light_material(add_solid_texture((4.0, 4.0, 4.0)))
"""

import taichi as ti
import taichi.math as tm

from nextweek.materials.textures import texture_value

# Type alias for 3D vectors
vec3 = tm.vec3

# Maximum number of diffuse light materials in the scene
MAX_DIFFUSE_LIGHT_MATERIALS = 64

# Emitters reference a texture for their radiance
diffuse_light_texture_ids = ti.field(dtype=ti.i32, shape=MAX_DIFFUSE_LIGHT_MATERIALS)
num_diffuse_light_materials = ti.field(dtype=ti.i32, shape=())


def clear_diffuse_light_materials() -> None:
    """Clear all diffuse light materials."""
    num_diffuse_light_materials[None] = 0


def add_diffuse_light_material(texture_id: int) -> int:
    """Add an emissive material whose radiance comes from a texture.

    Args:
        texture_id: Id of the emission texture.

    Returns:
        The index of the added material within the diffuse light registry.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_diffuse_light_materials[None]
    if idx >= MAX_DIFFUSE_LIGHT_MATERIALS:
        raise RuntimeError(
            f"Maximum number of diffuse light materials ({MAX_DIFFUSE_LIGHT_MATERIALS}) exceeded"
        )
    diffuse_light_texture_ids[idx] = texture_id
    num_diffuse_light_materials[None] = idx + 1
    return idx


def get_diffuse_light_material_count() -> int:
    """Get the number of diffuse light materials in the registry."""
    return int(num_diffuse_light_materials[None])


@ti.func
def emitted_diffuse_light(material_idx: ti.i32, u: ti.f32, v: ti.f32, p: vec3) -> vec3:
    """Radiance emitted by a diffuse light at (u, v, p)."""
    return texture_value(diffuse_light_texture_ids[material_idx], u, v, p)
