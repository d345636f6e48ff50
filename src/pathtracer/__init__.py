"""Taichi-based offline Monte Carlo ray tracer.

This package renders spheres with physically inspired materials using
Taichi kernels, with support for:
- Path tracing with a sky gradient background
- Material models (Lambertian, metal, dielectric) over textures (solid,
  checker, Perlin marble, image)
- Static and moving spheres accelerated by a bounding volume hierarchy
- Thin-lens camera with defocus blur and motion blur
- Deterministic parallel rendering, one random stream per image row

Subpackages:
    core: Rays, random streams, the integrator kernel and the renderer
    geometry: Sphere primitive, bounding boxes and the BVH
    textures: Texture models and the unified texture registry
    materials: Scattering material models
    scene: Scene storage, closest-hit queries and the scene manager
    camera: Thin-lens camera with ray generation
    output: Image file export

Taichi must be initialized (see pathtracer.config.init_taichi) before the
subpackages are imported, since they declare Taichi fields at import time.
"""

__version__ = "0.1.0"
