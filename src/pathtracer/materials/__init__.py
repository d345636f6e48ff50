"""Materials module for surface scattering models.

This module implements the three material models of the renderer:

Components:
    lambertian: Ideal diffuse reflection, albedo from a texture
    metal: Specular reflection with optional fuzz, tint from a texture
    dielectric: Glass-like refraction with Schlick Fresnel reflectance

Each material provides a scatter function with the contract

    scatter(...) -> (scattered_ray, attenuation, did_scatter)

where did_scatter == 0 means the ray was absorbed. Every scattered ray
keeps the incoming ray's time sample. Randomness comes from the calling
worker's private stream.

All scattering computations are implemented as Taichi functions.
"""

from .dielectric import (
    DielectricMaterial,
    add_dielectric_material,
    clear_dielectric_materials,
    get_dielectric_ior,
    get_dielectric_material_count,
    scatter_dielectric,
    scatter_dielectric_by_id,
    will_reflect,
)
from .lambertian import (
    LambertianMaterial,
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    MetalMaterial,
    add_metal_material,
    clear_metal_materials,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)

__all__ = [
    # Lambertian
    "LambertianMaterial",
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    # Metal
    "MetalMaterial",
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_fuzz",
    # Dielectric
    "DielectricMaterial",
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    "will_reflect",
]
