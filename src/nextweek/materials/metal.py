"""Metal (specular reflective) material implementation.

A metal reflects the incoming direction about the normal,

    R = unit(I) - 2 (unit(I) . N) N,

and blurs the reflection by adding ``fuzz`` times a random point in the
unit sphere. fuzz = 0 is a perfect mirror, fuzz = 1 the blurriest metal.
Fuzzed directions that end up at or below the surface are absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from nextweek.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, state = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal, state
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from nextweek.core.ray import normalize, random_in_unit_sphere, reflect

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Compute the scattered direction for a metal surface.

    Args:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Blur radius in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal (unit, facing the incoming ray).
        state: The generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, new_state)
        where did_scatter is 0 when the fuzzed direction points into the
        surface and the ray is absorbed.
    """
    reflected = reflect(normalize(incident_direction), normal)
    offset, s = random_in_unit_sphere(state)
    scattered_direction = reflected + fuzz * offset

    did_scatter = 1
    if tm.dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0

    return scattered_direction, albedo, did_scatter, s


# =============================================================================
# Metal Registry
# =============================================================================

MAX_METAL_MATERIALS = 256


@ti.dataclass
class MetalParams:
    albedo: vec3
    fuzz: ti.f32


metal_materials = MetalParams.field(shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Forget every registered metal; slots are overwritten on reuse."""
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Register a metal and return its index among metals.

    Raises:
        RuntimeError: If the registry is full.
        ValueError: If an albedo component or the fuzz is outside [0, 1].
    """
    if len(albedo) != 3 or not all(0.0 <= c <= 1.0 for c in albedo):
        raise ValueError(f"Metal albedo must be 3 components in [0, 1], got {albedo}")
    if not 0.0 <= fuzz <= 1.0:
        raise ValueError(f"Metal fuzz must be in [0, 1], got {fuzz}")

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_materials.albedo[idx] = albedo
    metal_materials.fuzz[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_materials[material_idx].albedo


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_materials[material_idx].fuzz
