"""Unified texture ids and kernel-side texture dispatch.

Each texture type keeps its own registry (solid colors, checker colors,
Perlin tables, image texels). This module maps a single texture_id space
onto (TextureType, type-local index) pairs, so materials can reference any
texture by one integer and textures can be shared between materials.

Example:
    >>> from pathtracer.textures.registry import TextureType, register_texture
    >>> from pathtracer.textures.solid import add_solid_texture
    >>> tex_id = register_texture(TextureType.SOLID, add_solid_texture((1, 0, 0)))
    >>> # texture_value(tex_id, u, v, p) inside a kernel returns red
"""

from enum import IntEnum

import taichi as ti

from pathtracer.core.ray import real, vec3
from pathtracer.textures.checker import checker_value, clear_checker_textures
from pathtracer.textures.image import clear_image_textures, image_value
from pathtracer.textures.noise import clear_noise_textures, noise_value
from pathtracer.textures.solid import clear_solid_textures, solid_value


class TextureType(IntEnum):
    """Enumeration of supported texture types."""

    SOLID = 0
    CHECKER = 1
    NOISE = 2
    IMAGE = 3


# Maximum number of textures across all types
MAX_TEXTURES = 1024

texture_types = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_type_indices = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
num_textures = ti.field(dtype=ti.i32, shape=())


def clear_textures() -> None:
    """Clear the texture id table and every per-type texture registry."""
    clear_solid_textures()
    clear_checker_textures()
    clear_noise_textures()
    clear_image_textures()
    num_textures[None] = 0


def register_texture(texture_type: TextureType, type_index: int) -> int:
    """Assign a unified texture id to an entry of a per-type registry.

    Args:
        texture_type: Which registry type_index refers to.
        type_index: Index returned by the per-type add_*_texture function.

    Returns:
        The unified texture id.

    Raises:
        RuntimeError: If the maximum number of textures is exceeded.
    """
    texture_id = num_textures[None]
    if texture_id >= MAX_TEXTURES:
        raise RuntimeError(f"Maximum number of textures ({MAX_TEXTURES}) exceeded")

    texture_types[texture_id] = int(texture_type)
    texture_type_indices[texture_id] = type_index
    num_textures[None] = texture_id + 1
    return texture_id


def get_texture_count() -> int:
    """Get the total number of registered textures."""
    return int(num_textures[None])


def validate_texture_id(texture_id: int) -> None:
    """Raise ValueError unless texture_id refers to a registered texture."""
    if texture_id < 0 or texture_id >= num_textures[None]:
        raise ValueError(f"Invalid texture_id: {texture_id}")


@ti.func
def texture_value(texture_id: ti.i32, u: real, v: real, p: vec3) -> vec3:
    """Evaluate a texture at surface coordinates (u, v) and point p.

    Args:
        texture_id: The unified texture id.
        u: Surface longitude coordinate in [0, 1].
        v: Surface latitude coordinate in [0, 1].
        p: World-space point being shaded.

    Returns:
        The texture color. Unknown ids evaluate to black.
    """
    tex_type = texture_types[texture_id]
    idx = texture_type_indices[texture_id]

    color = vec3(0.0, 0.0, 0.0)
    if tex_type == int(TextureType.SOLID):
        color = solid_value(idx)
    elif tex_type == int(TextureType.CHECKER):
        color = checker_value(idx, p)
    elif tex_type == int(TextureType.NOISE):
        color = noise_value(idx, p)
    elif tex_type == int(TextureType.IMAGE):
        color = image_value(idx, u, v)
    return color
