"""Output module for writing rendered images to disk.

Components:
    export: PNG/JPEG/BMP encoding of the 8-bit pixel grid via Pillow
"""

from .export import (
    SUPPORTED_FORMATS,
    UnsupportedFormatError,
    get_image_format,
    save_image,
    to_top_down,
)

__all__ = [
    "SUPPORTED_FORMATS",
    "UnsupportedFormatError",
    "get_image_format",
    "save_image",
    "to_top_down",
]
