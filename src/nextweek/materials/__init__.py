"""Materials module: scattering models and the textures that feed them.

Components:
    textures: Solid, 3D checker and image textures
    lambertian: Ideal diffuse reflection with textured albedo
    metal: Specular reflection blurred by a fuzz radius
    dielectric: Glass-like reflection/refraction with Schlick's approximation
    diffuse_light: Emissive surfaces that end a path

Each material keeps its parameters in module-level Taichi fields with
``add_*``/``clear_*`` registry functions, and exposes a ``@ti.func``
scatter (or emission) routine taking an explicit generator state. The
SceneManager maps unified material ids onto these per-type registries.
"""

from .dielectric import (
    add_dielectric_material,
    cannot_refract,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    refraction_ratio,
    scatter_dielectric,
)
from .diffuse_light import (
    add_diffuse_light_material,
    clear_diffuse_light_materials,
    emitted_diffuse_light,
    get_diffuse_light_material_count,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_material_count,
    get_lambertian_texture,
    lambertian_direction,
    scatter_lambertian,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
)
from .textures import (
    TextureType,
    add_checker_texture,
    add_image_texture,
    add_solid_texture,
    clear_textures,
    get_texture_count,
    get_texture_type,
    texture_value,
)

__all__ = [
    # Textures
    "TextureType",
    "add_solid_texture",
    "add_checker_texture",
    "add_image_texture",
    "clear_textures",
    "get_texture_count",
    "get_texture_type",
    "texture_value",
    # Lambertian
    "scatter_lambertian",
    "lambertian_direction",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_texture",
    # Metal
    "scatter_metal",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "scatter_dielectric",
    "refraction_ratio",
    "cannot_refract",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    # Diffuse light
    "emitted_diffuse_light",
    "add_diffuse_light_material",
    "clear_diffuse_light_materials",
    "get_diffuse_light_material_count",
]
