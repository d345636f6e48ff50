"""Dielectric (glass/water) material implementation.

This module implements the dielectric BSDF, which models transparent materials
like glass and water with refraction and Fresnel reflectance.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when the refraction discriminant is negative

The ray reflects with probability equal to the Schlick reflectance and
refracts otherwise. Total internal reflection always reflects and does not
consume a random number. Attenuation is always white: clear dielectrics do
not absorb.

Example:
    >>> from pathtracer.materials.dielectric import add_dielectric_material
    >>> idx = add_dielectric_material(ior=1.5)
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, ray, point, normal, front_face, stream)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, normalize, real, reflect, refract, schlick, vec3
from pathtracer.core.sampler import random_real


@ti.dataclass
class DielectricMaterial:
    """Dielectric (glass/water) material properties.

    Attributes:
        ior: Index of refraction. Common values:
            - Air: 1.0
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4
    """

    ior: real


@ti.func
def scatter_dielectric(
    ior: real,
    incident: Ray,
    point: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Compute the scattered ray for a dielectric surface.

    Whether the ray enters or exits the medium follows from front_face,
    which the intersection derives from the sign of
    dot(incident.direction, outward_normal).

    Args:
        ior: Index of refraction of the material.
        incident: The incoming ray.
        point: The hit point, origin of the scattered ray.
        normal: The unit surface normal on the incident side.
        front_face: 1 if the ray enters the medium, 0 if it exits.
        stream: Random stream owned by the calling worker.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where:
        - scattered: The reflected or refracted ray, carrying the incident
          ray's time.
        - attenuation: White (1, 1, 1).
        - did_scatter: Always 1 for dielectrics.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    unit = normalize(incident.direction)

    # Entering: air to glass (1/ior). Exiting: glass to air (ior).
    refraction_ratio = 1.0 / ior
    if front_face == 0:
        refraction_ratio = ior

    cos_incident = tm.min(-tm.dot(unit, normal), 1.0)
    ok, refracted = refract(unit, normal, refraction_ratio)

    direction = reflect(unit, normal)
    if ok == 1:
        # Schlick is evaluated on the lower-index side of the boundary
        cosine = cos_incident
        if front_face == 0:
            sin2_t = refraction_ratio * refraction_ratio * (1.0 - cos_incident * cos_incident)
            cosine = ti.sqrt(tm.max(1.0 - sin2_t, 0.0))
        reflect_prob = schlick(cosine, ior)
        if random_real(stream) >= reflect_prob:
            direction = refracted

    scattered = Ray(origin=point, direction=direction, time=incident.time)
    did_scatter = 1
    return scattered, attenuation, did_scatter


@ti.func
def will_reflect(ior: real, incident_direction: vec3, normal: vec3, front_face: ti.i32) -> ti.i32:
    """Return 1 if the ray undergoes total internal reflection."""
    refraction_ratio = 1.0 / ior
    if front_face == 0:
        refraction_ratio = ior
    ok, _ = refract(normalize(incident_direction), normal, refraction_ratio)
    return 1 - ok


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=real, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Must be positive.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is not positive.
    """
    if ior <= 0.0:
        raise ValueError(f"Index of refraction = {ior} must be positive.")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> real:
    """Get the IOR for a dielectric material by index."""
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident: Ray,
    point: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Scatter off a dielectric material looked up by registry index.

    Returns:
        A tuple of (scattered, attenuation, did_scatter).
    """
    return scatter_dielectric(
        get_dielectric_ior(material_idx), incident, point, normal, front_face, stream
    )
