"""Axis-aligned bounding boxes.

Boxes are built on the host (as numpy-backed dataclasses) while the BVH is
constructed, then uploaded as plain min/max corner fields. The slab test
``hit_aabb`` runs inside kernels during traversal.

The slab test intersects the ray with the three pairs of axis-aligned planes:

    t0 = (min - O) / D,  t1 = (max - O) / D   (swapped when D < 0)

and narrows [t_min, t_max] to their overlap. The ray misses the box when
the interval becomes empty.

Example:
    >>> from pathtracer.geometry.aabb import AABB
    >>> a = AABB((0, 0, 0), (1, 1, 1))
    >>> b = AABB((2, -1, 0), (3, 0, 1))
    >>> a.merge(b).maximum
    array([3., 1., 1.])
"""

from dataclasses import dataclass

import numpy as np
import taichi as ti

from pathtracer.core.ray import Ray, real, vec3


@dataclass
class AABB:
    """Axis-aligned bounding box with minimum and maximum corners.

    Attributes:
        minimum: Componentwise lower corner.
        maximum: Componentwise upper corner.
    """

    minimum: np.ndarray
    maximum: np.ndarray

    def __post_init__(self):
        self.minimum = np.asarray(self.minimum, dtype=np.float64)
        self.maximum = np.asarray(self.maximum, dtype=np.float64)
        if np.any(self.minimum > self.maximum):
            raise ValueError(
                f"AABB minimum {self.minimum.tolist()} exceeds maximum "
                f"{self.maximum.tolist()}"
            )

    def merge(self, other: "AABB") -> "AABB":
        """Return the smallest box enclosing both boxes."""
        return surrounding_box(self, other)

    def contains(self, other: "AABB", eps: float = 1e-9) -> bool:
        """Return True if ``other`` lies entirely inside this box."""
        return bool(
            np.all(self.minimum <= other.minimum + eps)
            and np.all(self.maximum >= other.maximum - eps)
        )

    def centroid(self) -> np.ndarray:
        """Return the center point of the box."""
        return 0.5 * (self.minimum + self.maximum)

    def extent(self) -> np.ndarray:
        """Return the box size along each axis."""
        return self.maximum - self.minimum

    def hit(self, origin, direction, t_min: float, t_max: float) -> bool:
        """Host-side slab test mirroring hit_aabb (used for tooling and tests)."""
        origin = np.asarray(origin, dtype=np.float64)
        direction = np.asarray(direction, dtype=np.float64)
        for axis in range(3):
            with np.errstate(divide="ignore", invalid="ignore"):
                inv_d = 1.0 / direction[axis]
                t0 = (self.minimum[axis] - origin[axis]) * inv_d
                t1 = (self.maximum[axis] - origin[axis]) * inv_d
            if inv_d < 0.0:
                t0, t1 = t1, t0
            t_min = t0 if t0 > t_min else t_min
            t_max = t1 if t1 < t_max else t_max
            if t_max <= t_min:
                return False
        return True


def surrounding_box(box0: AABB, box1: AABB) -> AABB:
    """Componentwise union of two boxes over all three axes."""
    return AABB(
        np.minimum(box0.minimum, box1.minimum),
        np.maximum(box0.maximum, box1.maximum),
    )


@ti.func
def hit_aabb(box_min: vec3, box_max: vec3, ray: Ray, t_min: real, t_max: real) -> ti.i32:
    """Slab test of a ray against a box over the open interval (t_min, t_max).

    Args:
        box_min: Lower corner of the box.
        box_max: Upper corner of the box.
        ray: The ray to test.
        t_min: Lower bound of the accepted parameter interval.
        t_max: Upper bound of the accepted parameter interval.

    Returns:
        1 if the ray overlaps the box inside the interval, 0 otherwise.
    """
    hit = 1
    lo = t_min
    hi = t_max
    for axis in ti.static(range(3)):
        inv_d = 1.0 / ray.direction[axis]
        t0 = (box_min[axis] - ray.origin[axis]) * inv_d
        t1 = (box_max[axis] - ray.origin[axis]) * inv_d
        if inv_d < 0.0:
            t0, t1 = t1, t0
        lo = ti.max(lo, t0)
        hi = ti.min(hi, t1)
        if hi <= lo:
            hit = 0
    return hit
