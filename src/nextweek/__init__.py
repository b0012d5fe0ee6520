"""Taichi-based offline path tracer in the "Ray Tracing: The Next Week" lineage.

This package renders scenes of spheres, moving spheres, quads and boxes
(optionally rotated and translated) with Lambertian, metal, dielectric and
emissive materials, using a BVH for intersection and an iterative Monte
Carlo path tracer running in parallel Taichi kernels.

Subpackages:
    core: Vector/ray utilities, random sampling, the integrator and progressive rendering
    geometry: Shape primitives, bounding boxes, instance transforms and the BVH
    materials: Textures and material scattering models
    scene: Scene management, intersection queries and sample scenes
    camera: Thin-lens camera with defocus and motion blur
    preview: Image export
"""

__version__ = "0.1.0"
