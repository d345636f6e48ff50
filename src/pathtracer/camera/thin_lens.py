"""Thin-lens camera model with defocus blur and a shutter interval.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane (vup x w)
- v: points up in the image plane (w x u)

The viewport sits at the focus distance in front of the camera, so points
on that plane are in perfect focus. Each ray starts at a random point on a
lens disk of radius aperture / 2 and passes through the viewport point
(s, t):

    origin    = lookfrom + lens_radius * (rd.x * u + rd.y * v)
    direction = lower_left + s * horizontal + t * vertical - origin

Each ray also samples a time in [shutter_open, shutter_open +
shutter_duration], which moving spheres use for motion blur. The lens
sample is skipped when the aperture is zero and the time sample when the
duration is zero, so a pinhole camera with a closed shutter draws no random
numbers at all.

Example:
    >>> from pathtracer.camera.thin_lens import ThinLensCamera, setup_camera
    >>> camera = ThinLensCamera(
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=2.0,
    ...     aperture=0.1,
    ... )
    >>> setup_camera(camera)
    >>> # get_ray(s, t, stream) inside a kernel
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Optional

import numpy as np
import taichi as ti

from pathtracer.core.ray import Ray, normalize, real, vec3
from pathtracer.core.sampler import random_in_unit_disk, random_real

logger = logging.getLogger(__name__)

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class ThinLensCamera:
    """Configuration for a thin-lens camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera (no defocus blur).
        focus_dist: Distance to the plane of perfect focus. None focuses on
            lookat, i.e. uses |lookfrom - lookat|.
        shutter_open: Time at which the shutter opens.
        shutter_duration: How long the shutter stays open. 0 disables
            motion blur.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 20.0
    aspect_ratio: float = 2.0
    aperture: float = 0.0
    focus_dist: Optional[float] = None
    shutter_open: float = 0.0
    shutter_duration: float = 0.0

    @property
    def shutter_close(self) -> float:
        return self.shutter_open + self.shutter_duration

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("lookfrom", "lookat", "vup"):
            data[key] = list(data[key])
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ThinLensCamera":
        kwargs = dict(data)
        for key in ("lookfrom", "lookat", "vup"):
            if key in kwargs:
                kwargs[key] = tuple(kwargs[key])
        return cls(**kwargs)


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=real, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=real, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=real, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=real, shape=())  # Backward (opposite view)

# Viewport vectors for ray computation, scaled to the focus plane
_viewport_horizontal = ti.Vector.field(3, dtype=real, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=real, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=real, shape=())  # Lower-left of viewport

_lens_radius = ti.field(dtype=real, shape=())
_shutter_open = ti.field(dtype=real, shape=())
_shutter_duration = ti.field(dtype=real, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def _validate_camera(camera: ThinLensCamera) -> None:
    if not 0.0 < camera.vfov < 180.0:
        raise ValueError(f"Vertical field of view must be in (0, 180) degrees, got {camera.vfov}")
    if camera.aspect_ratio <= 0.0:
        raise ValueError(f"Aspect ratio must be positive, got {camera.aspect_ratio}")
    if camera.aperture < 0.0:
        raise ValueError(f"Aperture must be non-negative, got {camera.aperture}")
    if camera.shutter_duration < 0.0:
        raise ValueError(
            f"Shutter duration must be non-negative, got {camera.shutter_duration}"
        )
    if camera.focus_dist is not None and camera.focus_dist <= 0.0:
        raise ValueError(f"Focus distance must be positive, got {camera.focus_dist}")


def compute_camera_frame(camera: ThinLensCamera) -> dict[str, np.ndarray]:
    """Derive the basis and viewport of a camera on the host.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        (float64 arrays), plus focus_dist and lens_radius.

    Raises:
        ValueError: If the configuration is invalid or the basis is
            degenerate (lookfrom == lookat, or view direction parallel to vup).
    """
    _validate_camera(camera)

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    # w points from lookat toward lookfrom (backward)
    view = lookfrom - lookat
    view_length = np.linalg.norm(view)
    if view_length == 0.0:
        raise ValueError("Camera lookfrom and lookat must be different points")
    w = view / view_length

    # u points right (perpendicular to w and vup)
    u = np.cross(vup, w)
    u_length = np.linalg.norm(u)
    if u_length < 1e-12:
        raise ValueError("Camera view direction must not be parallel to vup")
    u = u / u_length

    # v points up in the camera's frame
    v = np.cross(w, u)

    focus_dist = view_length if camera.focus_dist is None else float(camera.focus_dist)

    # Viewport dimensions at the focus plane
    half_height = math.tan(math.radians(camera.vfov) / 2.0)
    half_width = camera.aspect_ratio * half_height
    horizontal = 2.0 * half_width * focus_dist * u
    vertical = 2.0 * half_height * focus_dist * v
    lower_left = lookfrom - half_width * focus_dist * u - half_height * focus_dist * v - focus_dist * w

    return {
        "origin": lookfrom,
        "u": u,
        "v": v,
        "w": w,
        "horizontal": horizontal,
        "vertical": vertical,
        "lower_left": lower_left,
        "focus_dist": focus_dist,
        "lens_radius": camera.aperture / 2.0,
    }


def setup_camera(camera: ThinLensCamera) -> None:
    """Initialize camera state from configuration.

    Computes the camera's orthonormal basis (u, v, w) and viewport geometry
    from the provided camera parameters. This must be called before rendering.

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If the camera configuration is invalid or degenerate.
    """
    frame = compute_camera_frame(camera)

    _camera_origin[None] = frame["origin"].tolist()
    _camera_u[None] = frame["u"].tolist()
    _camera_v[None] = frame["v"].tolist()
    _camera_w[None] = frame["w"].tolist()
    _viewport_horizontal[None] = frame["horizontal"].tolist()
    _viewport_vertical[None] = frame["vertical"].tolist()
    _lower_left_corner[None] = frame["lower_left"].tolist()
    _lens_radius[None] = frame["lens_radius"]
    _shutter_open[None] = camera.shutter_open
    _shutter_duration[None] = camera.shutter_duration

    logger.debug(
        "Camera at %s looking at %s (vfov=%.1f, focus_dist=%.3f, aperture=%.3f)",
        camera.lookfrom,
        camera.lookat,
        camera.vfov,
        frame["focus_dist"],
        camera.aperture,
    )


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(s: real, t: real, stream: ti.i32) -> Ray:
    """Generate a ray through normalized viewport coordinates (s, t).

    - s = 0: left edge of image, s = 1: right edge
    - t = 0: bottom edge of image, t = 1: top edge

    The lens sample is drawn before the time sample.

    Args:
        s: Horizontal coordinate in [0, 1] (left to right).
        t: Vertical coordinate in [0, 1] (bottom to top).
        stream: Random stream owned by the calling worker.

    Returns:
        A Ray with a normalized direction and a shutter time sample.
    """
    origin = _camera_origin[None]
    lens_radius = _lens_radius[None]
    if lens_radius > 0.0:
        rd = lens_radius * random_in_unit_disk(stream)
        origin += _camera_u[None] * rd.x + _camera_v[None] * rd.y

    target = _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    direction = normalize(target - origin)

    time = _shutter_open[None]
    duration = _shutter_duration[None]
    if duration > 0.0:
        time += duration * random_real(stream)

    return Ray(origin=origin, direction=direction, time=time)


@ti.func
def get_camera_origin() -> vec3:
    """Get the camera origin (position) in world space."""
    return _camera_origin[None]


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, Any]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        as 3-tuples and lens_radius, shutter_open, shutter_duration as floats.
    """

    def _tuple(field) -> tuple[float, float, float]:
        vec = field[None]
        return (float(vec[0]), float(vec[1]), float(vec[2]))

    return {
        "origin": _tuple(_camera_origin),
        "u": _tuple(_camera_u),
        "v": _tuple(_camera_v),
        "w": _tuple(_camera_w),
        "horizontal": _tuple(_viewport_horizontal),
        "vertical": _tuple(_viewport_vertical),
        "lower_left": _tuple(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
        "shutter_open": float(_shutter_open[None]),
        "shutter_duration": float(_shutter_duration[None]),
    }
