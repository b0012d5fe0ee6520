"""Dielectric (glass/water) material implementation.

A dielectric either reflects or refracts each incoming ray:

    - the refraction ratio is 1/ior entering from outside (front face) and
      ior leaving the material;
    - if ratio * sin(theta) > 1 there is no refracted ray (total internal
      reflection) and the ray reflects;
    - otherwise it reflects with the Schlick reflectance probability and
      refracts the rest of the time.

Clear dielectrics absorb nothing, so the attenuation is always white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from nextweek.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, state = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from nextweek.core.ray import normalize, reflect, refract, schlick_fresnel
from nextweek.core.sampler import random_float

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """n_incident / n_transmitted for a ray hitting the given face."""
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def cannot_refract(ior: ti.f32, unit_direction: vec3, normal: vec3, front_face: ti.i32) -> ti.i32:
    """Whether total internal reflection rules out refraction.

    Args:
        ior: Index of refraction of the material.
        unit_direction: The incoming ray direction (normalized).
        normal: The surface normal (unit, facing the incoming ray).
        front_face: 1 if the ray hits the outside of the surface.

    Returns:
        1 if ratio * sin(theta) > 1, 0 otherwise.
    """
    ratio = refraction_ratio(ior, front_face)
    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))
    result = 0
    if ratio * sin_theta > 1.0:
        result = 1
    return result


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Compute the scattered direction for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal (unit, facing the incoming ray).
        front_face: 1 if the ray hits the outside of the surface,
            0 if it travels inside the material.
        state: The generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, new_state). The
        attenuation is always (1, 1, 1) and the ray always scatters.
    """
    unit_direction = normalize(incident_direction)
    ratio = refraction_ratio(ior, front_face)
    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)

    r, s = random_float(state)
    must_reflect = cannot_refract(ior, unit_direction, normal, front_face)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if must_reflect or schlick_fresnel(cos_theta, ratio) > r:
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, ratio)

    return scattered_direction, vec3(1.0, 1.0, 1.0), s


# =============================================================================
# Dielectric Registry
# =============================================================================

MAX_DIELECTRIC_MATERIALS = 256

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Register a dielectric with index of refraction ``ior`` (water 1.33,
    glass 1.5, diamond 2.4) and return its index among dielectrics.

    Raises:
        RuntimeError: If the registry is full.
        ValueError: If ior is below 1.
    """
    if not ior >= 1.0:
        raise ValueError(f"Dielectric ior must be at least 1, got {ior}")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]
