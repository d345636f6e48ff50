"""Path tracing integrator for Monte Carlo light transport.

This module implements the rendering kernel: for every pixel it averages
``samples`` jittered camera rays, each traced through the scene by
bouncing off surfaces according to their material until the ray escapes
to the sky, is absorbed, or reaches the depth bound.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Iterative throughput loop (no recursion inside kernels)
    - Sky gradient background for escaped rays
    - One parallel worker per image row, with its own random stream
    - Gamma encoding and 8-bit quantization inside the kernel

The pixel buffers are indexed [row, column] with row 0 at the bottom of
the picture (viewport t close to 0).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.integrator import (
    ...     render_image, setup_render_target, get_pixels_numpy
    ... )
    >>> from pathtracer.core.sampler import seed_streams
    >>> # ... build a scene with SceneManager ...
    >>> setup_render_target(200, 100)
    >>> seed_streams(0, 100)
    >>> render_image(samples=16)
    >>> pixels = get_pixels_numpy()
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray
from pathtracer.core.ray import Ray, normalize, real, vec3
from pathtracer.core.sampler import random_real
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import SceneHitRecord, intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum ray bounces (path length)
MAX_DEPTH = 50

# t_min and t_max for ray intersection
T_MIN = 0.001
T_MAX = 1e30

# Sky gradient endpoints (horizon and zenith)
SKY_HORIZON = (1.0, 1.0, 1.0)
SKY_ZENITH = (0.5, 0.7, 1.0)

DEFAULT_GAMMA = 2.0


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Quantized output, [row, column], row 0 at the bottom
_pixels = ti.Vector.field(3, dtype=ti.u8, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Averaged linear radiance before gamma encoding
_linear = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.
    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT
    to avoid Taichi kernel recompilation issues.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    # Clear buffers
    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _pixels.fill(0)
    _linear.fill(0.0)


def reset_render_target() -> None:
    """Forget the render target so it must be set up again."""
    _render_target_initialized[None] = 0
    _image_width[None] = 0
    _image_height[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Background
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Vertical white-to-blue gradient seen by rays that escape the scene."""
    unit = normalize(direction)
    t = 0.5 * (unit.y + 1.0)
    horizon = vec3(SKY_HORIZON[0], SKY_HORIZON[1], SKY_HORIZON[2])
    zenith = vec3(SKY_ZENITH[0], SKY_ZENITH[1], SKY_ZENITH[2])
    return (1.0 - t) * horizon + t * zenith


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(material_id: ti.i32, incident: Ray, rec: SceneHitRecord, stream: ti.i32):
    """Dispatch to the appropriate material scattering function.

    Based on the material type, calls the corresponding scatter function
    and returns the scattered ray and attenuation.

    Args:
        material_id: The unified material ID.
        incident: The incoming ray.
        rec: The closest hit of the incoming ray.
        stream: Random stream of the calling worker.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where:
        - scattered: The outgoing ray, carrying the incoming ray's time.
        - attenuation: The color attenuation for this bounce.
        - did_scatter: 1 if ray scattered, 0 if absorbed.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    # Default values
    scattered = Ray(origin=rec.point, direction=rec.normal, time=incident.time)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, incident, rec.point, rec.normal, rec.u, rec.v, stream
        )

    elif mat_type == int(MaterialType.METAL):
        scattered, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident, rec.point, rec.normal, rec.u, rec.v, stream
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident, rec.point, rec.normal, rec.front_face, stream
        )

    return scattered, attenuation, did_scatter


# =============================================================================
# Path Tracing
# =============================================================================


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the radiance carried back along a ray.

    Equivalent to the recursive definition

        color(r, d) = sky(r)                          if r misses
                    = att * color(scattered, d + 1)   if d < max_depth and r scatters
                    = black                           otherwise

    written as a loop that multiplies the attenuations into a throughput.

    Args:
        ray: The camera ray.
        max_depth: Hits at this depth or deeper return black.
        stream: Random stream of the calling worker.

    Returns:
        The estimated radiance (RGB).
    """
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray

    # Active flag for path continuation (Taichi doesn't support break in ti.func loops)
    active = 1

    for depth in range(max_depth + 1):
        if active == 1:
            rec = intersect_scene(current, T_MIN, T_MAX)

            if rec.hit == 0:
                radiance = throughput * sky_color(current.direction)
                active = 0
            elif depth >= max_depth:
                active = 0
            else:
                scattered, attenuation, did_scatter = _scatter_material(
                    rec.material_id, current, rec, stream
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    current = scattered

    return radiance


@ti.func
def _quantize(value: real, gamma: real) -> ti.u8:
    """Clamp, gamma-encode and map a linear channel onto 0..255."""
    c = tm.clamp(value, 0.0, 1.0)
    c = c ** (1.0 / gamma)
    q = ti.min(ti.cast(ti.floor(256.0 * c), ti.i32), 255)
    return ti.cast(q, ti.u8)


@ti.func
def render_pixel(i: ti.i32, j: ti.i32, samples: ti.i32, max_depth: ti.i32) -> vec3:
    """Average ``samples`` jittered paths through pixel (i, j).

    Row j's stream supplies every random number, so a row renders the same
    regardless of how rows are scheduled.
    """
    width = ti.cast(_image_width[None], real)
    height = ti.cast(_image_height[None], real)
    color = vec3(0.0, 0.0, 0.0)

    for _ in range(samples):
        s = (ti.cast(i, real) + random_real(j)) / width
        t = (ti.cast(j, real) + random_real(j)) / height
        sample = ray_color(get_ray(s, t, j), max_depth, j)

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(sample[c]) or tm.isinf(sample[c]):
                sample[c] = 0.0

        color += sample

    return color / ti.cast(samples, real)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(row_start: ti.i32, row_end: ti.i32, samples: ti.i32, max_depth: ti.i32, gamma: real):
    """Render rows [row_start, row_end), one parallel worker per row."""
    for j in range(row_start, row_end):
        for i in range(_image_width[None]):
            color = render_pixel(i, j, samples, max_depth)
            _linear[j, i] = ti.cast(color, ti.f32)
            for c in ti.static(range(3)):
                _pixels[j, i][c] = _quantize(color[c], gamma)


@ti.kernel
def _trace_single_ray(
    origin: vec3, direction: vec3, time: real, max_depth: ti.i32, stream: ti.i32
) -> vec3:
    result = vec3(0.0, 0.0, 0.0)
    # Keep the path loop serial
    ti.loop_config(serialize=True)
    for _ in range(1):
        ray = Ray(origin=origin, direction=direction, time=time)
        result = ray_color(ray, max_depth, stream)
    return result


# =============================================================================
# Public Rendering API
# =============================================================================


def _check_render_args(samples: int, max_depth: int, gamma: float) -> None:
    if samples < 1:
        raise ValueError(f"samples must be at least 1, got {samples}")
    if max_depth < 1:
        raise ValueError(f"max_depth must be at least 1, got {max_depth}")
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")


def render_rows(
    row_start: int,
    row_end: int,
    samples: int,
    max_depth: int = MAX_DEPTH,
    gamma: float = DEFAULT_GAMMA,
) -> None:
    """Render the rows [row_start, row_end) of the render target.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the row range or render parameters are invalid.
    """
    _check_render_target_initialized()
    _check_render_args(samples, max_depth, gamma)

    _, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Row range [{row_start}, {row_end}) is outside [0, {height})")
    if row_start == row_end:
        return

    _render_rows(row_start, row_end, samples, max_depth, gamma)


def render_image(
    samples: int = 1,
    max_depth: int = MAX_DEPTH,
    gamma: float = DEFAULT_GAMMA,
) -> None:
    """Render every row of the render target in one kernel launch.

    The random streams of rows [0, height) must have been seeded.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    _, height = get_image_dimensions()
    render_rows(0, height, samples, max_depth, gamma)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    time: float = 0.0,
    max_depth: int = MAX_DEPTH,
    stream: int = 0,
) -> tuple[float, float, float]:
    """Trace one ray through the current scene and return its radiance.

    Python-callable for testing and debugging. For production rendering,
    use render_image() which processes all pixels in parallel.
    """
    color = _trace_single_ray(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        time,
        max_depth,
        stream,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def get_pixels_numpy() -> np.ndarray:
    """Get the quantized image as a NumPy array.

    Returns:
        uint8 array of shape (height, width, 3). Row 0 is the bottom of
        the picture.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return _pixels.to_numpy()[:height, :width, :].astype(np.uint8)


def get_linear_image_numpy() -> np.ndarray:
    """Get the averaged linear radiance as a float32 array of shape (H, W, 3)."""
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return _linear.to_numpy()[:height, :width, :].astype(np.float32)
