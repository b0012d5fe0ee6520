"""Scene module for scene management and ray-scene queries.

Components:
    intersection: Leaf primitive storage, BVH traversal and closest-hit queries
    manager: Unified scene manager coordinating textures, materials and objects
    cornell_box: Sample scenes (Cornell box and its "next week" variant)

Scene data is organized for efficient kernel access:
    - Structure-of-Arrays layout for geometric data
    - A primitive table tying leaves to materials and instance transforms
    - A flattened BVH walked with an explicit stack
"""

from .cornell_box import (
    SCENES,
    CornellBoxParams,
    create_cornell_box_scene,
    create_next_week_scene,
    create_scene,
    get_cornell_box_bounds,
)
from .intersection import (
    MAX_QUADS,
    MAX_SPHERES,
    SceneHitRecord,
    clear_scene,
    get_primitive_count,
    get_quad_count,
    get_sphere_count,
    intersect_scene,
    intersect_scene_linear,
    upload_primitives,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    Scene,
    SceneManager,
    TextureInfo,
    get_material_type,
    get_material_type_index,
    hittable_from_dict,
    hittable_to_dict,
    load_scene_file,
    save_scene_file,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "clear_scene",
    "upload_primitives",
    "get_sphere_count",
    "get_quad_count",
    "get_primitive_count",
    "intersect_scene",
    "intersect_scene_linear",
    "MAX_SPHERES",
    "MAX_QUADS",
    # Manager module
    "Scene",
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "TextureInfo",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "hittable_to_dict",
    "hittable_from_dict",
    "load_scene_file",
    "save_scene_file",
    # Sample scenes
    "CornellBoxParams",
    "create_cornell_box_scene",
    "create_next_week_scene",
    "create_scene",
    "get_cornell_box_bounds",
    "SCENES",
]
