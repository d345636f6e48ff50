"""Three-dimensional checker texture.

The pattern is a solid lattice in world space rather than a UV checker: the
sign of

    sin(10 x) * sin(10 y) * sin(10 z)

selects between the odd color (negative) and the even color (otherwise).
Cells are pi/10 units wide along every axis.

Example:
    >>> from pathtracer.textures.checker import add_checker_texture
    >>> idx = add_checker_texture((0.2, 0.3, 0.1), (0.9, 0.9, 0.9))
"""

import taichi as ti

from pathtracer.core.ray import real, vec3
from pathtracer.textures.solid import validate_color

# Maximum number of checker textures in the scene
MAX_CHECKER_TEXTURES = 256

# Spatial frequency of the lattice
CHECKER_FREQUENCY = 10.0

checker_even_colors = ti.Vector.field(3, dtype=real, shape=MAX_CHECKER_TEXTURES)
checker_odd_colors = ti.Vector.field(3, dtype=real, shape=MAX_CHECKER_TEXTURES)
num_checker_textures = ti.field(dtype=ti.i32, shape=())


def clear_checker_textures() -> None:
    """Clear all checker textures."""
    num_checker_textures[None] = 0


def add_checker_texture(
    even: tuple[float, float, float],
    odd: tuple[float, float, float],
) -> int:
    """Add a checker texture.

    Args:
        even: Color where the sine product is non-negative.
        odd: Color where the sine product is negative.

    Returns:
        The index of the texture within the checker registry.

    Raises:
        RuntimeError: If the maximum number of checker textures is exceeded.
        ValueError: If any color component is outside [0, 1].
    """
    validate_color(even, "Even color")
    validate_color(odd, "Odd color")

    idx = num_checker_textures[None]
    if idx >= MAX_CHECKER_TEXTURES:
        raise RuntimeError(
            f"Maximum number of checker textures ({MAX_CHECKER_TEXTURES}) exceeded"
        )

    checker_even_colors[idx] = vec3(even[0], even[1], even[2])
    checker_odd_colors[idx] = vec3(odd[0], odd[1], odd[2])
    num_checker_textures[None] = idx + 1
    return idx


def get_checker_texture_count() -> int:
    """Get the number of checker textures in the registry."""
    return int(num_checker_textures[None])


@ti.func
def checker_value(texture_idx: ti.i32, p: vec3) -> vec3:
    """Evaluate the checker pattern at world-space point p."""
    sines = (
        ti.sin(CHECKER_FREQUENCY * p.x)
        * ti.sin(CHECKER_FREQUENCY * p.y)
        * ti.sin(CHECKER_FREQUENCY * p.z)
    )
    result = checker_even_colors[texture_idx]
    if sines < 0.0:
        result = checker_odd_colors[texture_idx]
    return result
