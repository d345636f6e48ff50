"""Band-by-band renderer driving the integrator kernel.

The Renderer wraps the integrator's module-level render target and kernel
in a small object that:
- Seeds one random stream per image row from the settings' master seed
- Builds the scene (camera upload, optional BVH) for the shutter interval
- Renders the image in bands of rows, one kernel launch per band
- Reports progress through a callback or a generator
- Returns the finished pixel grid as a NumPy array

Rows never share a random stream, so the same seed gives the same image
whatever the band size.

Example:
    >>> from pathtracer.config import RenderSettings, init_taichi
    >>> init_taichi("cpu")
    >>> from pathtracer.core.renderer import Renderer
    >>> from pathtracer.scene.random_scene import create_random_scene
    >>>
    >>> settings = RenderSettings(width=200, height=100, samples_per_pixel=8)
    >>> scene = create_random_scene(seed=0, aspect_ratio=settings.aspect_ratio)
    >>> pixels = Renderer(settings).render(scene)
"""

import logging
import time
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt
import taichi as ti

from pathtracer.config import RenderSettings
from pathtracer.core.integrator import (
    get_linear_image_numpy,
    get_pixels_numpy,
    render_rows,
    setup_render_target,
)
from pathtracer.core.sampler import seed_streams
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]


class Renderer:
    """Renders a SceneManager's scene with fixed RenderSettings.

    Attributes:
        settings: The validated render settings.
        last_render_seconds: Wall time of the most recent render, or None.
    """

    def __init__(self, settings: RenderSettings | None = None) -> None:
        """Initialize the renderer.

        Raises:
            ValueError: If the settings are invalid.
        """
        self.settings = settings if settings is not None else RenderSettings()
        self.settings.validate()
        self.last_render_seconds: float | None = None

    @property
    def width(self) -> int:
        return self.settings.width

    @property
    def height(self) -> int:
        return self.settings.height

    def prepare(self, scene: SceneManager) -> None:
        """Build the scene and reset the render target and random streams.

        Raises:
            RuntimeError: If the scene has no camera.
        """
        settings = self.settings
        if scene.camera is not None and abs(scene.camera.aspect_ratio - settings.aspect_ratio) > 1e-6:
            logger.warning(
                "Camera aspect ratio %.4f differs from image aspect ratio %.4f",
                scene.camera.aspect_ratio,
                settings.aspect_ratio,
            )

        scene.build(use_bvh=settings.use_bvh)
        setup_render_target(settings.width, settings.height)
        seed_streams(settings.seed, settings.height)

    def render_bands(self, scene: SceneManager) -> Generator[tuple[int, int], None, None]:
        """Render band by band, yielding (rows_done, total_rows) after each.

        Yields:
            Tuple of (rows_done, total_rows).
        """
        settings = self.settings
        self.prepare(scene)

        total = settings.height
        logger.info(
            "Rendering %dx%d at %d spp (max depth %d, seed %d, BVH %s)",
            settings.width,
            settings.height,
            settings.samples_per_pixel,
            settings.max_depth,
            settings.seed,
            "on" if settings.use_bvh else "off",
        )

        start = time.perf_counter()
        for row_start in range(0, total, settings.band_rows):
            row_end = min(row_start + settings.band_rows, total)
            band_start = time.perf_counter()
            render_rows(
                row_start,
                row_end,
                settings.samples_per_pixel,
                settings.max_depth,
                settings.gamma,
            )
            ti.sync()
            logger.debug(
                "Rows %d-%d done in %.3fs", row_start, row_end - 1, time.perf_counter() - band_start
            )
            yield (row_end, total)

        self.last_render_seconds = time.perf_counter() - start
        logger.info("Render finished in %.2fs", self.last_render_seconds)

    def render(
        self,
        scene: SceneManager,
        callback: ProgressCallback | None = None,
    ) -> npt.NDArray[np.uint8]:
        """Render the scene and return the pixel grid.

        Args:
            scene: Scene with a camera set.
            callback: Optional callback called after each band with
                (rows_done, total_rows).

        Returns:
            uint8 array of shape (height, width, 3), row 0 at the bottom.

        Raises:
            RuntimeError: If the scene has no camera.
        """
        for done, total in self.render_bands(scene):
            if callback is not None:
                callback(done, total)
        return get_pixels_numpy()

    def get_linear_image(self) -> npt.NDArray[np.float32]:
        """Averaged linear radiance of the last render, shape (H, W, 3)."""
        return get_linear_image_numpy()
