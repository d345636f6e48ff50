"""Camera module for view and ray generation.

This module provides the camera model for generating primary rays:

Components:
    thin_lens: Look-at camera with defocus blur and a shutter interval

Camera responsibilities:
    - Transform (s, t) viewport coordinates to world-space rays
    - Sample the lens disk for depth of field
    - Sample the shutter interval for motion blur

Ray generation uses normalized viewport coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    ThinLensCamera,
    compute_camera_frame,
    get_camera_info,
    get_camera_origin,
    get_ray,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "compute_camera_frame",
    "setup_camera",
    "get_ray",
    "get_camera_origin",
    "get_camera_info",
]
