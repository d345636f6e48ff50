"""Lambertian (ideal diffuse) material implementation.

A diffuse surface scatters toward

    target = hit_point + normal + random_in_unit_sphere()

i.e. along normal + a random point in the unit sphere, which approximates
a cosine-weighted distribution about the normal. The attenuation is the
texture value at the hit point, and a diffuse surface always scatters.

Example:
    >>> from pathtracer.materials.lambertian import add_lambertian_material
    >>> idx = add_lambertian_material(texture_id=0)
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_lambertian(
    >>> #     texture_id, ray, point, normal, u, v, stream)
"""

import taichi as ti

from pathtracer.core.ray import Ray, near_zero, real, vec3
from pathtracer.core.sampler import random_in_unit_sphere
from pathtracer.textures.registry import texture_value, validate_texture_id


@ti.dataclass
class LambertianMaterial:
    """Lambertian (ideal diffuse) material properties.

    Attributes:
        texture_id: Unified id of the texture supplying the albedo.
    """

    texture_id: ti.i32


@ti.func
def scatter_lambertian(
    texture_id: ti.i32,
    incident: Ray,
    point: vec3,
    normal: vec3,
    u: real,
    v: real,
    stream: ti.i32,
):
    """Sample a scattered ray for a Lambertian surface.

    Args:
        texture_id: Unified id of the albedo texture.
        incident: The incoming ray (only its time is used).
        point: The hit point, origin of the scattered ray.
        normal: The unit surface normal on the incident side.
        u: Surface u coordinate at the hit.
        v: Surface v coordinate at the hit.
        stream: Random stream owned by the calling worker.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where:
        - scattered: Ray from point along normal + random_in_unit_sphere,
          carrying the incident ray's time.
        - attenuation: The texture value at the hit.
        - did_scatter: Always 1 for diffuse surfaces.
    """
    direction = normal + random_in_unit_sphere(stream)

    # The offset can cancel the normal almost exactly
    if near_zero(direction):
        direction = normal

    scattered = Ray(origin=point, direction=direction, time=incident.time)
    attenuation = texture_value(texture_id, u, v, point)
    did_scatter = 1
    return scattered, attenuation, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 1024

# Storage for Lambertian material properties
lambertian_texture_ids = ti.field(dtype=ti.i32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(texture_id: int) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        texture_id: Unified id of a registered texture.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If texture_id does not refer to a registered texture.
    """
    validate_texture_id(texture_id)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_texture_ids[idx] = texture_id
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def scatter_lambertian_by_id(
    material_idx: ti.i32,
    incident: Ray,
    point: vec3,
    normal: vec3,
    u: real,
    v: real,
    stream: ti.i32,
):
    """Scatter off a Lambertian material looked up by registry index."""
    return scatter_lambertian(
        lambertian_texture_ids[material_idx], incident, point, normal, u, v, stream
    )
