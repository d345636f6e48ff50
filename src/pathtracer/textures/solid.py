"""Solid (constant color) texture.

Example:
    >>> from pathtracer.textures.solid import add_solid_texture
    >>> idx = add_solid_texture((0.5, 0.5, 0.5))
    >>> # solid_value(idx) inside a kernel returns the stored color
"""

import taichi as ti

from pathtracer.core.ray import real, vec3

# Maximum number of solid textures in the scene
MAX_SOLID_TEXTURES = 1024

solid_colors = ti.Vector.field(3, dtype=real, shape=MAX_SOLID_TEXTURES)
num_solid_textures = ti.field(dtype=ti.i32, shape=())


def validate_color(color: tuple[float, float, float], name: str = "Color") -> None:
    """Check that a color has three components, each in [0, 1].

    Raises:
        ValueError: If the color is malformed or out of range.
    """
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(f"{name} component {i} = {component} is outside [0, 1]")


def clear_solid_textures() -> None:
    """Clear all solid textures."""
    num_solid_textures[None] = 0


def add_solid_texture(color: tuple[float, float, float]) -> int:
    """Add a constant color texture.

    Args:
        color: The (R, G, B) color, each component in [0, 1].

    Returns:
        The index of the texture within the solid registry.

    Raises:
        RuntimeError: If the maximum number of solid textures is exceeded.
        ValueError: If any color component is outside [0, 1].
    """
    validate_color(color)

    idx = num_solid_textures[None]
    if idx >= MAX_SOLID_TEXTURES:
        raise RuntimeError(f"Maximum number of solid textures ({MAX_SOLID_TEXTURES}) exceeded")

    solid_colors[idx] = vec3(color[0], color[1], color[2])
    num_solid_textures[None] = idx + 1
    return idx


def get_solid_texture_count() -> int:
    """Get the number of solid textures in the registry."""
    return int(num_solid_textures[None])


@ti.func
def solid_value(texture_idx: ti.i32) -> vec3:
    return solid_colors[texture_idx]
