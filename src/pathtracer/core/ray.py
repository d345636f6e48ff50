"""Ray data structure and vector utilities for Monte Carlo ray tracing.

This module provides the fundamental Ray dataclass and the vector helpers
shared by every other module. All helpers are Taichi functions, so they can
be called from inside kernels running on any Taichi backend.

Vectors are double precision. Call ``pathtracer.config.init_taichi`` (which
sets ``default_fp=ti.f64``) before importing this module so kernel literals
match the field types.

Example:
    >>> from pathtracer.config import init_taichi
    >>> init_taichi()
    >>> from pathtracer.core.ray import Ray, ray_at, vec3
    >>> ray = Ray(origin=vec3(0.0), direction=vec3(0.0, 0.0, -1.0), time=0.0)
    >>> # ray_at(ray, 5.0) inside a kernel gives (0, 0, -5)
"""

import taichi as ti
import taichi.math as tm

# Scalar and 3D vector types used throughout the renderer
real = ti.f64
vec3 = ti.types.vector(3, real)


@ti.dataclass
class Ray:
    """A ray with an origin, a direction and a time sample.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction vector. Not required to be unit length.
        time: The shutter time this ray samples, used for motion blur.
    """

    origin: vec3
    direction: vec3
    time: real


@ti.func
def ray_at(ray: Ray, t: real) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3, time: real) -> Ray:
    """Create a ray from origin, direction and time sample."""
    return Ray(origin=origin, direction=direction, time=time)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> real:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> real:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The input must be non-zero; a zero vector divides by zero.
    """
    return v / tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> real:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the right-handed cross product a x b.

    The camera basis depends on this orientation: cross(x, y) == z.
    """
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes R = I - 2(I . N)N. The normal should be unit length; the sign of
    the normal does not change the result.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, ratio: real):
    """Refract an incident vector through a surface using Snell's law.

    Refraction is impossible when the discriminant
    1 - ratio^2 * (1 - cos^2(theta_i)) is negative (total internal
    reflection). That case is reported through the returned flag, not by
    an exceptional value.

    Args:
        incident: The incoming direction (any length; normalized internally).
        normal: The unit normal on the incident side of the surface.
        ratio: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        A tuple of (ok, refracted) where:
        - ok: 1 if the ray refracts, 0 on total internal reflection.
        - refracted: The refracted direction (zero vector when ok == 0).
    """
    unit = normalize(incident)
    dt = tm.dot(unit, normal)
    discriminant = 1.0 - ratio * ratio * (1.0 - dt * dt)
    ok = 0
    refracted = vec3(0.0, 0.0, 0.0)
    if discriminant >= 0.0:
        ok = 1
        refracted = ratio * (unit - normal * dt) - normal * ti.sqrt(discriminant)
    return ok, refracted


@ti.func
def schlick(cosine: real, ref_idx: real) -> real:
    """Compute Fresnel reflectance using Schlick's approximation.

    r0 + (1 - r0)(1 - cosine)^5 with r0 = ((1 - n) / (1 + n))^2.

    Args:
        cosine: Cosine of the angle between the ray and the normal, measured
            on the lower-index side of the boundary.
        ref_idx: Refractive index of the material.

    Returns:
        The approximate reflectance in [0, 1].
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if all components of v are within 1e-8 of zero."""
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s
