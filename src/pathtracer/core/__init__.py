"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and vector utilities
    sampler: Per-row random number streams
    integrator: Radiance estimation kernel and render targets
    renderer: Band-by-band render driver with progress reporting

The integrator estimates the radiance reaching each pixel by averaging
independent random light paths, clamping and gamma-encoding the result
into 8-bit RGB.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    real,
    reflect,
    refract,
    schlick,
    vec3,
)

# Note: sampler, integrator and renderer declare Taichi fields and are NOT
# imported here. Import them directly after pathtracer.config.init_taichi().

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "real",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick",
    "near_zero",
]
