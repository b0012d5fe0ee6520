"""Cornell box scene configurations.

This module provides factory functions for the sample scenes: an enclosed
Cornell-style box lit by a ceiling light, and a "next week" variant of the
same room that exercises textures, instancing and motion blur.

The room spans x in [-1, 1], y in [-1, 1] and z in [-2.8, -0.8]; its front
is open and the camera sits at the origin looking down -z with a 90 degree
vertical field of view.

Cornell box:
- Floor and ceiling: white diffuse
- Left wall: red diffuse, right wall: green diffuse, back wall: white diffuse
- Ceiling light: emissive quad with radiance (10, 10, 10)
- A purple diffuse sphere, a near-mirror metal sphere and a small green
  emissive sphere

Next week variant:
- Checkered floor
- Two boxes rotated about y and moved into place
- A glass sphere and a sphere moving upward during the shutter interval

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from nextweek.scene.cornell_box import create_cornell_box_scene
    >>> from nextweek.core.integrator import render
    >>>
    >>> scene = create_cornell_box_scene(aspect_ratio=4.0 / 3.0)
    >>> image = render(scene, 320, 240, samples_per_pixel=100)
"""

from collections.abc import Callable
from dataclasses import dataclass

from nextweek.camera.thin_lens import Camera
from nextweek.scene.manager import Scene, SceneManager

# =============================================================================
# Cornell Box Parameters
# =============================================================================


@dataclass
class CornellBoxParams:
    """Parameters for configuring a Cornell box scene.

    All parameters have defaults matching the reference render.

    Attributes:
        light_radiance: Emitted radiance of the ceiling light.
        left_wall_color: RGB albedo of the left wall (red).
        right_wall_color: RGB albedo of the right wall (green).
        white_color: RGB albedo of the floor, ceiling and back wall.
        diffuse_sphere_color: Albedo of the large diffuse sphere.
        metal_sphere_color: Albedo of the metal sphere.
        metal_sphere_fuzz: Fuzz of the metal sphere.
        glow_sphere_radiance: Radiance of the small emissive sphere.

    Example:
        >>> params = CornellBoxParams(light_radiance=(15.0, 14.0, 12.0))
        >>> scene = create_cornell_box_scene(params=params)
    """

    light_radiance: tuple[float, float, float] = (10.0, 10.0, 10.0)
    left_wall_color: tuple[float, float, float] = (0.85, 0.0, 0.0)
    right_wall_color: tuple[float, float, float] = (0.0, 0.85, 0.0)
    white_color: tuple[float, float, float] = (0.85, 0.85, 0.85)
    diffuse_sphere_color: tuple[float, float, float] = (0.9, 0.2, 0.9)
    metal_sphere_color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    metal_sphere_fuzz: float = 0.03
    glow_sphere_radiance: tuple[float, float, float] = (0.5, 1.0, 0.5)


# =============================================================================
# Room Geometry
# =============================================================================

ROOM_MIN = (-1.0, -1.0, -2.8)
ROOM_MAX = (1.0, 1.0, -0.8)

# Ceiling light, slightly below the ceiling
LIGHT_CORNER = (-0.5, 0.99, -2.3)
LIGHT_EDGE_U = (1.0, 0.0, 0.0)
LIGHT_EDGE_V = (0.0, 0.0, 1.0)


def default_camera(aspect_ratio: float = 4.0 / 3.0) -> Camera:
    """Camera at the origin looking into the open front of the room."""
    return Camera(
        look_from=(0.0, 0.0, 0.0),
        look_at=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )


def _add_room(
    scene: SceneManager,
    params: CornellBoxParams,
    floor_material: int | None = None,
) -> None:
    """Add the five walls and the ceiling light."""
    white = scene.add_lambertian_material(albedo=params.white_color)
    red = scene.add_lambertian_material(albedo=params.left_wall_color)
    green = scene.add_lambertian_material(albedo=params.right_wall_color)
    light = scene.add_diffuse_light_material(color=params.light_radiance)

    floor = white if floor_material is None else floor_material

    # Floor
    scene.add_quad((-1.0, -1.0, -0.8), (2.0, 0.0, 0.0), (0.0, 0.0, -2.0), floor)
    # Ceiling
    scene.add_quad((-1.0, 1.0, -2.8), (2.0, 0.0, 0.0), (0.0, 0.0, 2.0), white)
    # Left wall
    scene.add_quad((-1.0, -1.0, -0.8), (0.0, 0.0, -2.0), (0.0, 2.0, 0.0), red)
    # Right wall
    scene.add_quad((1.0, -1.0, -2.8), (0.0, 0.0, 2.0), (0.0, 2.0, 0.0), green)
    # Back wall
    scene.add_quad((-1.0, -1.0, -2.8), (2.0, 0.0, 0.0), (0.0, 2.0, 0.0), white)
    # Light
    scene.add_quad(LIGHT_CORNER, LIGHT_EDGE_U, LIGHT_EDGE_V, light)


# =============================================================================
# Scene Factories
# =============================================================================


def create_cornell_box_scene(
    params: CornellBoxParams | None = None,
    aspect_ratio: float = 4.0 / 3.0,
) -> Scene:
    """Create the Cornell box scene.

    Args:
        params: Optional colors and radiances; defaults to CornellBoxParams().
        aspect_ratio: Image width / height for the camera.

    Returns:
        A Scene with 6 quads, 3 spheres and the default camera.
    """
    if params is None:
        params = CornellBoxParams()

    scene = SceneManager()
    _add_room(scene, params)

    diffuse = scene.add_lambertian_material(albedo=params.diffuse_sphere_color)
    metal = scene.add_metal_material(
        albedo=params.metal_sphere_color, fuzz=params.metal_sphere_fuzz
    )
    glow = scene.add_diffuse_light_material(color=params.glow_sphere_radiance)

    scene.add_sphere((-0.5, -0.5, -1.5), 0.5, diffuse)
    scene.add_sphere((0.36, -0.4, -2.3), 0.6, metal)
    scene.add_sphere((0.1, -0.9, -1.15), 0.1, glow)

    return Scene(manager=scene, camera=default_camera(aspect_ratio))


def create_next_week_scene(
    params: CornellBoxParams | None = None,
    aspect_ratio: float = 4.0 / 3.0,
) -> Scene:
    """Create the room with a checkered floor, rotated boxes and motion blur.

    The camera shutter is open over [0, 1], during which the diffuse sphere
    rises by 0.1.
    """
    if params is None:
        params = CornellBoxParams()

    scene = SceneManager()
    checker = scene.add_checker_texture((0.2, 0.3, 0.1), (0.9, 0.9, 0.9), scale=10.0)
    floor = scene.add_lambertian_material(texture_id=checker)
    _add_room(scene, params, floor_material=floor)

    white = scene.add_lambertian_material(albedo=params.white_color)
    orange = scene.add_lambertian_material(albedo=(0.8, 0.45, 0.1))
    glass = scene.add_dielectric_material(ior=1.5)

    scene.add_box(
        (0.0, 0.0, 0.0), (0.45, 0.9, 0.45), white, rotate_y=15.0, translate=(-0.05, -1.0, -2.5)
    )
    scene.add_box(
        (0.0, 0.0, 0.0), (0.4, 0.4, 0.4), white, rotate_y=-18.0, translate=(0.35, -1.0, -1.7)
    )

    scene.add_moving_sphere((-0.55, -0.7, -1.5), (-0.55, -0.6, -1.5), 0.0, 1.0, 0.3, orange)
    scene.add_sphere((-0.1, -0.8, -1.2), 0.2, glass)

    camera = default_camera(aspect_ratio)
    camera.time0 = 0.0
    camera.time1 = 1.0
    return Scene(manager=scene, camera=camera)


# Scene name -> factory taking an aspect ratio
SCENES: dict[str, Callable[..., Scene]] = {
    "cornell": create_cornell_box_scene,
    "nextweek": create_next_week_scene,
}


def create_scene(name: str, aspect_ratio: float = 4.0 / 3.0) -> Scene:
    """Create a named sample scene.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        factory = SCENES[name]
    except KeyError:
        raise ValueError(
            f"Unknown scene '{name}' (expected one of {', '.join(sorted(SCENES))})"
        ) from None
    return factory(aspect_ratio=aspect_ratio)


def get_cornell_box_bounds() -> dict[str, tuple[float, float, float]]:
    """Get the bounding box of the room.

    Returns:
        A dictionary with 'min', 'max', 'center' and 'size' entries.
    """
    center = tuple((lo + hi) / 2.0 for lo, hi in zip(ROOM_MIN, ROOM_MAX))
    size = tuple(hi - lo for lo, hi in zip(ROOM_MIN, ROOM_MAX))
    return {"min": ROOM_MIN, "max": ROOM_MAX, "center": center, "size": size}
