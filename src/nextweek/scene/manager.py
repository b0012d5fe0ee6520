"""Unified scene manager for coordinating textures, materials and hittables.

This module provides a high-level scene building API on top of the
per-type Taichi registries. It tracks which material type (Lambertian,
Metal, Dielectric, DiffuseLight) each material ID corresponds to, enabling
material dispatch in the path tracer.

The SceneManager maintains:
- A unified material_id space across all material types
- Mapping from material_id to (material_type, type_local_index)
- The list of scene hittables (spheres, quads, boxes, instances)
- ``build()``, which flattens the hittables into leaf primitives, uploads
  them and builds the BVH
- Scene serialization to and from plain dictionaries / JSON files
- Residency: the Taichi registries hold one scene, and a manager reloads
  its own textures and materials before writing when another scene was
  resident

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from nextweek.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=red)
    >>> scene.build()
"""

import json
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

import taichi as ti

from nextweek.camera.thin_lens import Camera
from nextweek.geometry.bvh import build_bvh, clear_bvh, flatten_bvh, upload_bvh
from nextweek.geometry.hittable import (
    Box,
    HittableList,
    MovingSphereObject,
    QuadObject,
    Rotate,
    SphereObject,
    Translate,
)
from nextweek.materials.dielectric import add_dielectric_material, clear_dielectric_materials
from nextweek.materials.diffuse_light import (
    add_diffuse_light_material,
    clear_diffuse_light_materials,
)
from nextweek.materials.lambertian import add_lambertian_material, clear_lambertian_materials
from nextweek.materials.metal import add_metal_material, clear_metal_materials
from nextweek.materials.textures import (
    TextureType,
    add_checker_texture,
    add_image_texture,
    add_solid_texture,
    clear_textures,
    load_image_texels,
)
from nextweek.scene.intersection import clear_scene, upload_primitives

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering (or emission) function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2
    DIFFUSE_LIGHT = 3


# Maximum number of materials across all types
MAX_MATERIALS = 1024

# Taichi fields for kernel-side material type lookup
# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


# The Taichi registries hold one scene at a time: the resident manager's
# textures and materials, plus its primitives and BVH once uploaded for
# the shutter interval in _resident_shutter.
_resident_manager = None
_resident_shutter: tuple[float, float] | None = None


def clear_scene_data() -> None:
    """Empty every Taichi scene registry. No manager is resident afterwards."""
    global _resident_manager, _resident_shutter
    clear_scene()
    clear_bvh()
    clear_textures()
    clear_lambertian_materials()
    clear_metal_materials()
    clear_dielectric_materials()
    clear_diffuse_light_materials()
    _clear_material_tracking()
    _resident_manager = None
    _resident_shutter = None


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Args:
        material_id: The unified material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    This is used to look up material properties in the type-specific
    registries (e.g., metal_materials[type_index]).

    Args:
        material_id: The unified material ID.

    Returns:
        The index within the type-specific material array.
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material.
        type_index: The index within the type-specific material array.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class TextureInfo:
    """Information about a registered texture.

    Attributes:
        texture_id: The texture id in the texture registry.
        texture_type: Solid, checker or image.
        params: The texture parameters as provided during creation.
        texels: The (H, W, 3) texel array of an image texture.
    """

    texture_id: int
    texture_type: TextureType
    params: dict[str, Any]
    texels: Any = field(default=None, repr=False, compare=False)


def _validate_albedo(albedo: tuple[float, float, float], name: str = "albedo") -> None:
    if len(albedo) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if not 0.0 <= component <= 1.0:
            raise ValueError(f"{name} component {i} = {component} is outside [0, 1]")


def _triple(value) -> tuple[float, float, float]:
    return (float(value[0]), float(value[1]), float(value[2]))


def _upload_texture(texture_type: TextureType, params: dict[str, Any], texels=None) -> int:
    """Write one texture to the Taichi texture registry and return its id."""
    if texture_type == TextureType.SOLID:
        return add_solid_texture(_triple(params["color"]))
    if texture_type == TextureType.CHECKER:
        return add_checker_texture(float(params["scale"]), params["even"], params["odd"])
    return add_image_texture(texels)


def _upload_material(material_type: MaterialType, params: dict[str, Any]) -> tuple[int, int]:
    """Write one material to its type registry and the unified id table.

    Returns:
        Tuple of (material_id, type_index).
    """
    material_id = num_materials[None]
    if material_id >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    if material_type == MaterialType.LAMBERTIAN:
        type_index = add_lambertian_material(params["texture"])
    elif material_type == MaterialType.METAL:
        type_index = add_metal_material(_triple(params["albedo"]), params["fuzz"])
    elif material_type == MaterialType.DIELECTRIC:
        type_index = add_dielectric_material(params["ior"])
    else:
        type_index = add_diffuse_light_material(params["texture"])

    material_types[material_id] = int(material_type)
    material_type_indices[material_id] = type_index
    num_materials[None] = material_id + 1
    return material_id, type_index


class SceneManager:
    """Unified scene manager coordinating textures, materials and hittables.

    Hittables are kept as Python descriptions until ``build()`` flattens
    them into leaf primitives and uploads them together with the BVH.

    The Taichi registries hold a single scene. The manager that last wrote
    to them is resident; any other manager reloads its own textures and
    materials into the registries before its next write or build, so
    several managers can coexist and each renders its own scene. A build
    is valid only for the shutter interval it was made for.

    Attributes:
        textures: TextureInfo for every registered texture.
        materials: MaterialInfo for every registered material.
        objects: Top-level hittables in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> red_diffuse = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red_diffuse)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
        >>> scene.build()
    """

    def __init__(self) -> None:
        """Initialize an empty scene and make it resident."""
        self.textures: list[TextureInfo] = []
        self.materials: list[MaterialInfo] = []
        self.objects: list = []
        self._make_resident()

    def clear(self) -> None:
        """Clear the entire scene (textures, materials and objects).

        Resets all Taichi fields and internal tracking structures.
        """
        self.textures.clear()
        self.materials.clear()
        self.objects.clear()
        clear_scene_data()
        self._make_resident()

    @property
    def is_resident(self) -> bool:
        """Whether the Taichi registries currently hold this scene."""
        return _resident_manager is self

    def _make_resident(self) -> None:
        """Reload this scene's textures and materials if another scene is resident."""
        global _resident_manager
        if _resident_manager is self:
            return

        clear_scene_data()
        for tex in self.textures:
            _upload_texture(tex.texture_type, tex.params, tex.texels)
        for mat in self.materials:
            _upload_material(mat.material_type, mat.params)
        _resident_manager = self

        if self.textures or self.materials:
            logger.debug(
                "Reloaded %d textures and %d materials into the registries",
                len(self.textures),
                len(self.materials),
            )

    def _invalidate_build(self) -> None:
        global _resident_shutter
        if _resident_manager is self:
            _resident_shutter = None

    # =========================================================================
    # Texture Management
    # =========================================================================

    def _check_texture_id(self, texture_id: int) -> None:
        if not 0 <= texture_id < len(self.textures):
            raise ValueError(f"Invalid texture_id: {texture_id}")

    def _register_texture(
        self, texture_type: TextureType, params: dict[str, Any], texels=None
    ) -> int:
        self._make_resident()
        texture_id = _upload_texture(texture_type, params, texels)
        self.textures.append(TextureInfo(texture_id, texture_type, params, texels))
        return texture_id

    def add_solid_texture(self, color: tuple[float, float, float]) -> int:
        """Add a constant-color texture and return its id."""
        return self._register_texture(TextureType.SOLID, {"color": list(_triple(color))})

    def add_checker_texture(
        self,
        even: int | tuple[float, float, float],
        odd: int | tuple[float, float, float],
        scale: float = 10.0,
    ) -> int:
        """Add a 3D checker texture.

        Args:
            even: Texture id, or a color for a new solid texture, used where
                sin(s*x) * sin(s*y) * sin(s*z) is non-negative.
            odd: Texture id or color used elsewhere.
            scale: Spatial frequency of the checkerboard.

        Returns:
            The texture id.
        """
        even_id = even if isinstance(even, int) else self.add_solid_texture(even)
        odd_id = odd if isinstance(odd, int) else self.add_solid_texture(odd)
        self._check_texture_id(even_id)
        self._check_texture_id(odd_id)
        return self._register_texture(
            TextureType.CHECKER, {"scale": scale, "even": even_id, "odd": odd_id}
        )

    def add_image_texture(self, source) -> int:
        """Add an image texture from a file path, PIL image or RGB array.

        Only textures loaded from a path survive ``to_dict``.
        """
        texels = load_image_texels(source)
        path = str(source) if isinstance(source, (str, Path)) else None
        return self._register_texture(TextureType.IMAGE, {"path": path}, texels)

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(self, material_type: MaterialType, params: dict[str, Any]) -> int:
        """Assign a unified material ID to a new material."""
        self._make_resident()
        material_id, type_index = _upload_material(material_type, params)
        self.materials.append(MaterialInfo(material_id, material_type, type_index, params))
        return material_id

    def _resolve_texture(
        self,
        color: tuple[float, float, float] | None,
        texture_id: int | None,
        name: str,
    ) -> int:
        if (color is None) == (texture_id is None):
            raise ValueError(f"Exactly one of {name} or texture_id must be given")
        if texture_id is None:
            return self.add_solid_texture(color)
        self._check_texture_id(texture_id)
        return texture_id

    def add_lambertian_material(
        self,
        albedo: tuple[float, float, float] | None = None,
        texture_id: int | None = None,
    ) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B), each
                component in [0, 1]. Creates a solid texture.
            texture_id: An existing texture to use for the albedo instead.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If both or neither of albedo and texture_id are
                given, an albedo component is outside [0, 1] or the texture
                does not exist.
        """
        if albedo is not None:
            _validate_albedo(albedo)
        tex = self._resolve_texture(albedo, texture_id, "albedo")
        return self._register_material(MaterialType.LAMBERTIAN, {"texture": tex})

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B), each in [0, 1].
            fuzz: Blur radius in [0, 1]. Default is 0 (perfect mirror).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component or the fuzz is outside [0, 1].
        """
        return self._register_material(
            MaterialType.METAL, {"albedo": list(_triple(albedo)), "fuzz": fuzz}
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).
                Common values: Water=1.33, Glass=1.5, Diamond=2.4

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If IOR is less than 1.0.
        """
        return self._register_material(MaterialType.DIELECTRIC, {"ior": ior})

    def add_diffuse_light_material(
        self,
        color: tuple[float, float, float] | None = None,
        texture_id: int | None = None,
    ) -> int:
        """Add an emissive material to the scene.

        Args:
            color: Emitted radiance as (R, G, B); components may exceed 1.
            texture_id: An existing texture to use for the emission instead.

        Returns:
            The unified material ID for this material.
        """
        tex = self._resolve_texture(color, texture_id, "color")
        return self._register_material(MaterialType.DIFFUSE_LIGHT, {"texture": tex})

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a given material ID (Python side).

        For kernel-side lookup, use the get_material_type() Taichi function.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id].material_type
        return None

    # =========================================================================
    # Object Management
    # =========================================================================

    def _check_material_id(self, material_id: int) -> None:
        if not 0 <= material_id < len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")

    def add(self, hittable) -> int:
        """Add any hittable (including groups and instance wrappers).

        Returns:
            The index of the hittable in ``objects``.

        Raises:
            ValueError: If any leaf refers to an unknown material.
        """
        for prim in hittable.primitives():
            self._check_material_id(prim.material_id)
        self.objects.append(hittable)
        self._invalidate_build()
        return len(self.objects) - 1

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a static sphere to the scene.

        Raises:
            ValueError: If the radius is not positive or material_id is invalid.
        """
        return self.add(SphereObject(_triple(center), float(radius), material_id))

    def add_moving_sphere(
        self,
        center0: tuple[float, float, float],
        center1: tuple[float, float, float],
        time0: float,
        time1: float,
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere moving linearly from center0 at time0 to center1 at time1."""
        return self.add(
            MovingSphereObject(
                _triple(center0), _triple(center1), time0, time1, float(radius), material_id
            )
        )

    def add_quad(
        self,
        corner: tuple[float, float, float],
        edge_u: tuple[float, float, float],
        edge_v: tuple[float, float, float],
        material_id: int,
    ) -> int:
        """Add a quad (parallelogram) to the scene.

        The quad has vertices at corner, corner+edge_u, corner+edge_v and
        corner+edge_u+edge_v.
        """
        return self.add(QuadObject(_triple(corner), _triple(edge_u), _triple(edge_v), material_id))

    def add_box(
        self,
        p0: tuple[float, float, float],
        p1: tuple[float, float, float],
        material_id: int,
        rotate_y: float = 0.0,
        translate: tuple[float, float, float] | None = None,
    ) -> int:
        """Add an axis-aligned box, optionally rotated about y then translated."""
        obj = Box(_triple(p0), _triple(p1), material_id)
        if rotate_y != 0.0:
            obj = Rotate(obj, axis=1, angle=rotate_y)
        if translate is not None:
            obj = Translate(obj, _triple(translate))
        return self.add(obj)

    # =========================================================================
    # Building
    # =========================================================================

    def primitives(self) -> list:
        """Flatten every object into its leaf primitives."""
        return [prim for obj in self.objects for prim in obj.primitives()]

    def build(self, time0: float = 0.0, time1: float = 1.0) -> int:
        """Upload the leaf primitives and their BVH to the Taichi fields.

        Reloads this scene's textures and materials first when another
        manager has written to the registries since.

        Args:
            time0: Shutter open time used for moving-sphere bounds.
            time1: Shutter close time.

        Returns:
            The number of BVH nodes.

        Raises:
            ValueError: If the scene contains no objects.
            RuntimeError: If a Taichi store overflows.
        """
        global _resident_shutter
        prims = self.primitives()
        root = build_bvh(prims, time0, time1)
        arrays = flatten_bvh(root)

        self._make_resident()
        upload_primitives(prims)
        upload_bvh(arrays)
        _resident_shutter = (float(time0), float(time1))
        logger.info(
            "Built scene: %d objects, %d primitives, %d BVH nodes (depth %d)",
            len(self.objects),
            len(prims),
            int(arrays["num_nodes"]),
            root.depth(),
        )
        return int(arrays["num_nodes"])

    @property
    def is_built(self) -> bool:
        """Whether this scene's primitives and BVH are currently uploaded."""
        return self.is_resident and _resident_shutter is not None

    def is_built_for(self, time0: float, time1: float) -> bool:
        return self.is_built and _resident_shutter == (float(time0), float(time1))

    def ensure_built(self, time0: float = 0.0, time1: float = 1.0) -> None:
        """Build unless the uploaded data already matches this scene and shutter."""
        if not self.is_built_for(time0, time1):
            self.build(time0, time1)

    def get_object_count(self) -> int:
        return len(self.objects)

    def get_primitive_count(self) -> int:
        """Get the number of leaf primitives the objects flatten to."""
        return sum(1 for _ in self.primitives())

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization).

        Raises:
            ValueError: If an image texture was not loaded from a file.
        """
        textures = []
        for tex in self.textures:
            if tex.texture_type == TextureType.IMAGE and tex.params["path"] is None:
                raise ValueError(
                    f"Image texture {tex.texture_id} was created from memory and cannot be saved"
                )
            textures.append({"type": tex.texture_type.name.lower(), **tex.params})

        materials = [
            {"type": mat.material_type.name.lower(), **mat.params} for mat in self.materials
        ]
        objects = [hittable_to_dict(obj) for obj in self.objects]
        return {"textures": textures, "materials": materials, "objects": objects}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary, replacing the current scene.

        Textures and materials keep their positions, so ids used by objects
        in ``data`` stay valid.

        Raises:
            ValueError: If the dictionary contains an unknown type or invalid data.
        """
        self.clear()

        for tex in data.get("textures", []):
            tex_type = tex.get("type", "").lower()
            if tex_type == "solid":
                self.add_solid_texture(_triple(tex["color"]))
            elif tex_type == "checker":
                self.add_checker_texture(
                    int(tex["even"]), int(tex["odd"]), float(tex.get("scale", 10.0))
                )
            elif tex_type == "image":
                self.add_image_texture(tex["path"])
            else:
                raise ValueError(f"Unknown texture type: {tex_type}")

        for mat in data.get("materials", []):
            mat_type = mat.get("type", "").lower()
            if mat_type == "lambertian":
                if "texture" in mat:
                    self.add_lambertian_material(texture_id=int(mat["texture"]))
                else:
                    self.add_lambertian_material(albedo=_triple(mat.get("albedo", [0.5] * 3)))
            elif mat_type == "metal":
                self.add_metal_material(
                    _triple(mat.get("albedo", [0.8] * 3)), float(mat.get("fuzz", 0.0))
                )
            elif mat_type == "dielectric":
                self.add_dielectric_material(float(mat.get("ior", 1.5)))
            elif mat_type == "diffuse_light":
                if "texture" in mat:
                    self.add_diffuse_light_material(texture_id=int(mat["texture"]))
                else:
                    self.add_diffuse_light_material(color=_triple(mat.get("color", [1.0] * 3)))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for obj in data.get("objects", []):
            self.add(hittable_from_dict(obj))

    def __repr__(self) -> str:
        """Return a string representation of the scene."""
        return (
            f"SceneManager(textures={len(self.textures)}, "
            f"materials={len(self.materials)}, objects={len(self.objects)})"
        )


# =============================================================================
# Hittable Serialization
# =============================================================================


def hittable_to_dict(obj) -> dict[str, Any]:
    """Convert a hittable description to a JSON-compatible dict.

    Raises:
        ValueError: If the object is not a known hittable.
    """
    if isinstance(obj, SphereObject):
        return {
            "type": "sphere",
            "center": list(obj.center),
            "radius": obj.radius,
            "material": obj.material_id,
        }
    if isinstance(obj, MovingSphereObject):
        return {
            "type": "moving_sphere",
            "center0": list(obj.center0),
            "center1": list(obj.center1),
            "time0": obj.time0,
            "time1": obj.time1,
            "radius": obj.radius,
            "material": obj.material_id,
        }
    if isinstance(obj, QuadObject):
        return {
            "type": "quad",
            "q": list(obj.q),
            "u": list(obj.u),
            "v": list(obj.v),
            "material": obj.material_id,
        }
    if isinstance(obj, Box):
        return {
            "type": "box",
            "p0": list(obj.p0),
            "p1": list(obj.p1),
            "material": obj.material_id,
        }
    if isinstance(obj, HittableList):
        return {"type": "list", "objects": [hittable_to_dict(o) for o in obj.objects]}
    if isinstance(obj, Translate):
        return {
            "type": "translate",
            "offset": list(obj.offset),
            "child": hittable_to_dict(obj.child),
        }
    if isinstance(obj, Rotate):
        return {
            "type": "rotate",
            "axis": obj.axis_name,
            "angle": obj.angle,
            "child": hittable_to_dict(obj.child),
        }
    raise ValueError(f"Cannot serialize object of type {type(obj).__name__}")


def hittable_from_dict(data: dict[str, Any]):
    """Build a hittable description from a dict produced by hittable_to_dict.

    Raises:
        ValueError: If the type is unknown or the data is invalid.
    """
    kind = data.get("type", "").lower()
    if kind == "sphere":
        return SphereObject(_triple(data["center"]), float(data["radius"]), int(data["material"]))
    if kind == "moving_sphere":
        return MovingSphereObject(
            _triple(data["center0"]),
            _triple(data["center1"]),
            float(data.get("time0", 0.0)),
            float(data.get("time1", 1.0)),
            float(data["radius"]),
            int(data["material"]),
        )
    if kind == "quad":
        return QuadObject(
            _triple(data["q"]), _triple(data["u"]), _triple(data["v"]), int(data["material"])
        )
    if kind == "box":
        return Box(_triple(data["p0"]), _triple(data["p1"]), int(data["material"]))
    if kind == "list":
        return HittableList([hittable_from_dict(o) for o in data.get("objects", [])])
    if kind == "translate":
        return Translate(hittable_from_dict(data["child"]), _triple(data["offset"]))
    if kind == "rotate":
        axis = data.get("axis", "y")
        if isinstance(axis, str):
            if axis not in ("x", "y", "z"):
                raise ValueError(f"Unknown rotation axis: {axis}")
            axis = "xyz".index(axis)
        return Rotate(hittable_from_dict(data["child"]), int(axis), float(data["angle"]))
    raise ValueError(f"Unknown object type: {kind}")


# =============================================================================
# Scene = objects + camera
# =============================================================================


@dataclass
class Scene:
    """A renderable scene: the built scene manager plus its camera."""

    manager: SceneManager
    camera: Camera = field(default_factory=Camera)

    def to_dict(self) -> dict[str, Any]:
        return {**self.manager.to_dict(), "camera": self.camera.to_dict()}


def load_scene_file(path: str | Path) -> Scene:
    """Load a scene description from a JSON file.

    The file holds ``textures``, ``materials``, ``objects`` and an optional
    ``camera`` object (see ``SceneManager.to_dict`` and ``Camera.to_dict``).

    Raises:
        ValueError: If the file contents are not a valid scene.
        OSError: If the file cannot be read.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Scene file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Scene file {path} must contain a JSON object")

    manager = SceneManager()
    manager.from_dict(data)
    camera = Camera.from_dict(data["camera"]) if "camera" in data else Camera()
    logger.info("Loaded scene %s: %r", path, manager)
    return Scene(manager=manager, camera=camera)


def save_scene_file(scene: Scene, path: str | Path) -> None:
    """Write a scene description to a JSON file."""
    Path(path).write_text(json.dumps(scene.to_dict(), indent=2), encoding="utf-8")
