"""Image export utilities for rendered images.

This module saves the renderer's 8-bit pixel grid to an image file. The
format is chosen by the file extension (case-insensitive):

    - .png          PNG (lossless)
    - .jpg / .jpeg  JPEG with a configurable quality
    - .bmp          BMP

The renderer stores row 0 at the bottom of the picture, image files store
it at the top, so the grid is flipped vertically before encoding.

Example:
    >>> from pathtracer.output.export import save_image
    >>> pixels = renderer.render(scene)
    >>> save_image(pixels, "out.png")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# Extension -> Pillow format name
SUPPORTED_FORMATS = {
    ".png": "PNG",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".bmp": "BMP",
}


class UnsupportedFormatError(ValueError):
    """Raised when the output file extension is not a supported format."""

    def __init__(self, path: str | Path) -> None:
        super().__init__("file format not supported, use: png, bmp or jpg")
        self.path = str(path)


def get_image_format(path: str | Path) -> str:
    """Return the Pillow format name for a path's extension.

    Raises:
        UnsupportedFormatError: If the extension is not supported.
    """
    suffix = Path(path).suffix.lower()
    if suffix not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(path)
    return SUPPORTED_FORMATS[suffix]


def to_top_down(pixels: npt.NDArray[np.uint8]) -> npt.NDArray[np.uint8]:
    """Flip a bottom-up pixel grid so row 0 is the top of the picture."""
    return np.ascontiguousarray(np.flipud(pixels))


def save_image(pixels: npt.NDArray[np.uint8], path: str | Path, quality: int = 100) -> None:
    """Save an 8-bit RGB pixel grid to an image file.

    Args:
        pixels: uint8 array of shape (H, W, 3), row 0 at the bottom.
        path: Output file path; the extension selects the format.
        quality: JPEG quality in [1, 100] (ignored for PNG and BMP).

    Raises:
        UnsupportedFormatError: If the extension is not supported.
        ValueError: If pixels is not an (H, W, 3) array or quality is out
            of range.
    """
    image_format = get_image_format(path)

    pixels = np.asarray(pixels)
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) pixel array, got shape {pixels.shape}")
    if not 1 <= quality <= 100:
        raise ValueError(f"JPEG quality must be in [1, 100], got {quality}")

    pil_image = PILImage.fromarray(to_top_down(pixels.astype(np.uint8)))
    if image_format == "JPEG":
        pil_image.save(path, format=image_format, quality=quality)
    else:
        pil_image.save(path, format=image_format)

    logger.info("Wrote %dx%d %s image to %s", pixels.shape[1], pixels.shape[0], image_format, path)
