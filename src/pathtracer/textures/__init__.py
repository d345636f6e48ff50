"""Textures module for procedural and image-based surface colors.

Components:
    solid: Constant color
    checker: World-space 3-D checker lattice
    noise: Perlin turbulence ("marble")
    image: Nearest-texel image lookup by sphere (u, v)
    registry: Unified texture ids and kernel-side dispatch

Textures are pure functions of (u, v, point). All per-texture state is
written on the host before rendering and is read-only inside kernels.
"""

from .checker import add_checker_texture, checker_value, clear_checker_textures
from .image import (
    add_image_texture,
    add_image_texture_from_array,
    clear_image_textures,
    image_value,
    load_image_texels,
)
from .noise import (
    add_noise_texture,
    clear_noise_textures,
    generate_perlin_tables,
    get_perlin_tables,
    noise_value,
    perlin_noise,
    perlin_turbulence,
)
from .registry import (
    MAX_TEXTURES,
    TextureType,
    clear_textures,
    get_texture_count,
    register_texture,
    texture_value,
    validate_texture_id,
)
from .solid import add_solid_texture, clear_solid_textures, solid_value

__all__ = [
    # Solid
    "add_solid_texture",
    "clear_solid_textures",
    "solid_value",
    # Checker
    "add_checker_texture",
    "clear_checker_textures",
    "checker_value",
    # Noise
    "add_noise_texture",
    "clear_noise_textures",
    "generate_perlin_tables",
    "get_perlin_tables",
    "perlin_noise",
    "perlin_turbulence",
    "noise_value",
    # Image
    "add_image_texture",
    "add_image_texture_from_array",
    "clear_image_textures",
    "load_image_texels",
    "image_value",
    # Registry
    "MAX_TEXTURES",
    "TextureType",
    "clear_textures",
    "get_texture_count",
    "register_texture",
    "texture_value",
    "validate_texture_id",
]
