"""Render settings and Taichi initialization.

Taichi fields are declared at import time of the modules that own them, so
``init_taichi`` must run before any of ``pathtracer.core.sampler``,
``pathtracer.core.integrator``, ``pathtracer.scene`` and friends is
imported.
"""

from dataclasses import asdict, dataclass
from typing import Any

import taichi as ti

# Architectures accepted by init_taichi, by name. Metal is absent: it has no float64
ARCHS = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
}


@dataclass
class RenderSettings:
    """Parameters of one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Jittered camera rays averaged per pixel.
        max_depth: Scatter bound; hits at this depth return black.
        gamma: Gamma applied before quantization.
        seed: Master seed of the per-row random streams.
        use_bvh: Build and traverse a BVH instead of a linear scan.
        band_rows: Rows rendered per kernel launch.
    """

    width: int = 1000
    height: int = 500
    samples_per_pixel: int = 100
    max_depth: int = 50
    gamma: float = 2.0
    seed: int = 0
    use_bvh: bool = True
    band_rows: int = 16

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def validate(self) -> None:
        """Raise ValueError if any setting is out of range."""
        # Local import: the integrator declares fields and needs ti.init first
        from pathtracer.core.integrator import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH

        if not 1 <= self.width <= MAX_IMAGE_WIDTH:
            raise ValueError(f"width must be in [1, {MAX_IMAGE_WIDTH}], got {self.width}")
        if not 1 <= self.height <= MAX_IMAGE_HEIGHT:
            raise ValueError(f"height must be in [1, {MAX_IMAGE_HEIGHT}], got {self.height}")
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}")
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {self.max_depth}")
        if self.gamma <= 0.0:
            raise ValueError(f"gamma must be positive, got {self.gamma}")
        if self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")
        if self.band_rows < 1:
            raise ValueError(f"band_rows must be at least 1, got {self.band_rows}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def init_taichi(arch: str = "cpu", seed: int = 0) -> None:
    """Initialize Taichi in float64 mode.

    Args:
        arch: One of the names in ARCHS.
        seed: Taichi's own random seed (renders use their own streams).

    Raises:
        ValueError: If the architecture name is unknown.
    """
    if arch not in ARCHS:
        raise ValueError(f"Unknown arch {arch!r}, expected one of: {', '.join(ARCHS)}")
    ti.init(arch=ARCHS[arch], default_fp=ti.f64, random_seed=seed)
