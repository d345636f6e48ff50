"""Image texture sampled with sphere (u, v) coordinates.

Images are decoded with Pillow, converted to RGB floats in [0, 1] and
packed into a single texel pool field. Each image texture records its
offset into the pool and its dimensions. Lookup is nearest-texel:

    i = floor(u * width),  j = floor((1 - v) * height)

clamped to the image, so v = 1 maps to the top row of the file.

Example:
    >>> from pathtracer.textures.image import add_image_texture
    >>> idx = add_image_texture("res/texture.png")
"""

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
import taichi as ti
from PIL import Image as PILImage

from pathtracer.core.ray import real, vec3

logger = logging.getLogger(__name__)

# Maximum number of image textures in the scene
MAX_IMAGE_TEXTURES = 16

# Total texels shared by all image textures (e.g. one 1024x1024 image)
MAX_IMAGE_TEXELS = 1 << 20

image_texels = ti.Vector.field(3, dtype=ti.f32, shape=MAX_IMAGE_TEXELS)
image_offsets = ti.field(dtype=ti.i32, shape=MAX_IMAGE_TEXTURES)
image_widths = ti.field(dtype=ti.i32, shape=MAX_IMAGE_TEXTURES)
image_heights = ti.field(dtype=ti.i32, shape=MAX_IMAGE_TEXTURES)
num_image_textures = ti.field(dtype=ti.i32, shape=())
num_image_texels = ti.field(dtype=ti.i32, shape=())


def load_image_texels(path: str | Path) -> npt.NDArray[np.float32]:
    """Decode an image file into an (H, W, 3) float32 array in [0, 1].

    Row 0 of the result is the top row of the image.

    Raises:
        FileNotFoundError: If the file does not exist.
        PIL.UnidentifiedImageError: If Pillow cannot decode the file.
    """
    with PILImage.open(path) as img:
        rgb = img.convert("RGB")
        return np.asarray(rgb, dtype=np.float32) / 255.0


@ti.kernel
def _upload_texels(offset: ti.i32, count: ti.i32, texels: ti.types.ndarray()):
    for i in range(count):
        image_texels[offset + i] = ti.Vector([texels[i, 0], texels[i, 1], texels[i, 2]])


def clear_image_textures() -> None:
    """Clear all image textures and release the texel pool."""
    num_image_textures[None] = 0
    num_image_texels[None] = 0


def add_image_texture_from_array(texels: npt.ArrayLike) -> int:
    """Add an image texture from an (H, W, 3) array of RGB values in [0, 1].

    Returns:
        The index of the texture within the image registry.

    Raises:
        ValueError: If the array has the wrong shape or the pool is too small.
        RuntimeError: If the maximum number of image textures is exceeded.
    """
    data = np.asarray(texels, dtype=np.float32)
    if data.ndim != 3 or data.shape[2] != 3 or data.shape[0] == 0 or data.shape[1] == 0:
        raise ValueError(f"Image texels must have shape (H, W, 3), got {data.shape}")

    height, width = data.shape[0], data.shape[1]
    count = height * width
    offset = num_image_texels[None]
    if offset + count > MAX_IMAGE_TEXELS:
        raise ValueError(
            f"Image of {width}x{height} texels does not fit in the texel pool "
            f"({MAX_IMAGE_TEXELS - offset} texels left)"
        )

    idx = num_image_textures[None]
    if idx >= MAX_IMAGE_TEXTURES:
        raise RuntimeError(f"Maximum number of image textures ({MAX_IMAGE_TEXTURES}) exceeded")

    _upload_texels(offset, count, np.ascontiguousarray(data.reshape(count, 3)))
    image_offsets[idx] = offset
    image_widths[idx] = width
    image_heights[idx] = height
    num_image_texels[None] = offset + count
    num_image_textures[None] = idx + 1
    return idx


def add_image_texture(path: str | Path) -> int:
    """Load an image file with Pillow and add it as a texture."""
    texels = load_image_texels(path)
    idx = add_image_texture_from_array(texels)
    logger.info("Loaded image texture %s (%dx%d)", path, texels.shape[1], texels.shape[0])
    return idx


def get_image_texture_count() -> int:
    """Get the number of image textures in the registry."""
    return int(num_image_textures[None])


@ti.func
def _clamp01(x: real) -> real:
    return ti.min(ti.max(x, 0.0), 1.0)


@ti.func
def image_value(texture_idx: ti.i32, u: real, v: real) -> vec3:
    """Nearest-texel lookup at surface coordinates (u, v)."""
    width = image_widths[texture_idx]
    height = image_heights[texture_idx]

    i = ti.cast(ti.floor(_clamp01(u) * width), ti.i32)
    j = ti.cast(ti.floor((1.0 - _clamp01(v)) * height), ti.i32)
    i = ti.min(ti.max(i, 0), width - 1)
    j = ti.min(ti.max(j, 0), height - 1)

    texel = image_texels[image_offsets[texture_idx] + j * width + i]
    return ti.cast(texel, real)
