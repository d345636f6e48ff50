"""Metal (specular reflective) material implementation.

This module implements the metal BSDF, which models specular reflection with
optional fuzziness. Perfect metals (fuzz=0) produce mirror-like reflections,
while fuzzier metals scatter reflected rays within a sphere of radius fuzz
around the mirror direction.

The reflection formula is:
    R = I - 2(I . N)N

where I is the normalized incident direction and N is the surface normal.
The ray is absorbed when the perturbed direction points into the surface.

Example:
    >>> from pathtracer.materials.metal import add_metal_material
    >>> idx = add_metal_material(texture_id=0, fuzz=0.3)
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_metal(
    >>> #     texture_id, fuzz, ray, point, normal, u, v, stream)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, normalize, real, reflect, vec3
from pathtracer.core.sampler import random_in_unit_sphere
from pathtracer.textures.registry import texture_value, validate_texture_id


@ti.dataclass
class MetalMaterial:
    """Metal (specular reflective) material properties.

    Attributes:
        texture_id: Unified id of the texture tinting reflections.
        fuzz: The surface fuzziness in [0, 1]. 0 = perfect mirror.
    """

    texture_id: ti.i32
    fuzz: real


@ti.func
def scatter_metal(
    texture_id: ti.i32,
    fuzz: real,
    incident: Ray,
    point: vec3,
    normal: vec3,
    u: real,
    v: real,
    stream: ti.i32,
):
    """Compute the scattered ray for a metal surface.

    Reflects the incident ray about the normal, then perturbs the result by
    fuzz * random_in_unit_sphere(). The random draw is skipped when fuzz is
    exactly 0.

    Args:
        texture_id: Unified id of the tint texture.
        fuzz: The fuzziness in [0, 1].
        incident: The incoming ray.
        point: The hit point, origin of the scattered ray.
        normal: The unit surface normal on the incident side.
        u: Surface u coordinate at the hit.
        v: Surface v coordinate at the hit.
        stream: Random stream owned by the calling worker.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where:
        - scattered: The reflected ray, carrying the incident ray's time.
        - attenuation: The texture value at the hit.
        - did_scatter: 1 if the ray leaves above the surface, 0 if absorbed.
    """
    direction = reflect(normalize(incident.direction), normal)
    if fuzz > 0.0:
        direction += fuzz * random_in_unit_sphere(stream)

    did_scatter = 1
    if tm.dot(direction, normal) <= 0.0:
        did_scatter = 0

    scattered = Ray(origin=point, direction=direction, time=incident.time)
    attenuation = texture_value(texture_id, u, v, point)
    return scattered, attenuation, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 1024

# Storage for metal material properties
metal_texture_ids = ti.field(dtype=ti.i32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=real, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_metal_materials[None] = 0


def add_metal_material(texture_id: int, fuzz: float = 0.0) -> int:
    """Add a metal material to the material registry.

    Args:
        texture_id: Unified id of a registered texture.
        fuzz: The surface fuzziness in [0, 1]. Default is 0 (perfect mirror).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If texture_id is not registered or fuzz is outside [0, 1].
    """
    validate_texture_id(texture_id)

    if fuzz < 0.0 or fuzz > 1.0:
        raise ValueError(
            f"Fuzz = {fuzz} is outside [0, 1]. "
            "Fuzz must be between 0 (perfect mirror) and 1 (maximum fuzz)."
        )

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_texture_ids[idx] = texture_id
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> real:
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident: Ray,
    point: vec3,
    normal: vec3,
    u: real,
    v: real,
    stream: ti.i32,
):
    """Scatter off a metal material looked up by registry index.

    Returns:
        A tuple of (scattered, attenuation, did_scatter).
    """
    return scatter_metal(
        metal_texture_ids[material_idx],
        get_metal_fuzz(material_idx),
        incident,
        point,
        normal,
        u,
        v,
        stream,
    )
