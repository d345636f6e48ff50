"""Sphere primitive with time-dependent center and ray intersection.

A sphere's center moves linearly from ``center0`` at ``time0`` to
``center1`` at ``time1``; a static sphere is the degenerate case where both
keyframes coincide. Rays carry a time sample, so a moving sphere is tested
at the position it occupies at that instant, which produces motion blur when
samples are spread over the shutter interval.

The ray-sphere intersection solves

    |O + tD - C(time)|^2 = r^2

with the reduced (half-b) quadratic:

    a = D . D,  b = oc . D,  c = oc . oc - r^2,  discriminant = b^2 - a*c

where oc = O - C(time). The near root is tried first so the first surface
along the ray is reported.

Example:
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3
    >>> sphere = Sphere(center0=vec3(0, 0, -1), center1=vec3(0, 0, -1),
    ...                 time0=0.0, time1=1.0, radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import math

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, ray_at, real, vec3
from pathtracer.geometry.aabb import AABB


@ti.dataclass
class Sphere:
    """A sphere whose center interpolates between two keyframes.

    Attributes:
        center0: Center at time0.
        center1: Center at time1 (equal to center0 for a static sphere).
        time0: Time of the first keyframe.
        time1: Time of the second keyframe (must differ from time0).
        radius: The radius of the sphere (positive).
    """

    center0: vec3
    center1: vec3
    time0: real
    time1: real
    radius: real


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 otherwise.
        t: Ray parameter of the intersection. Only valid if hit == 1.
        point: World-space intersection point.
        normal: Unit surface normal facing the side the ray came from.
        front_face: 1 if the ray hit the outside of the surface (normal is
            the geometric outward normal), 0 if it hit from inside.
        u: Surface longitude coordinate in [0, 1].
        v: Surface latitude coordinate in [0, 1].
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3
    front_face: ti.i32
    u: real
    v: real


@ti.func
def sphere_center(sphere: Sphere, time: real) -> vec3:
    """Compute the sphere center at the given time by linear interpolation."""
    alpha = (time - sphere.time0) / (sphere.time1 - sphere.time0)
    return sphere.center0 + alpha * (sphere.center1 - sphere.center0)


@ti.func
def get_sphere_uv(outward_normal: vec3):
    """Map a unit outward normal to (u, v) surface coordinates.

    u is the azimuth around the Y axis starting at -X; v runs from 0 at the
    south pole (-Y) to 1 at the north pole (+Y).

    Returns:
        A tuple (u, v), each in [0, 1].
    """
    phi = ti.atan2(-outward_normal.z, outward_normal.x) + tm.pi
    theta = ti.acos(tm.clamp(-outward_normal.y, -1.0, 1.0))
    return phi / (2.0 * tm.pi), theta / tm.pi


@ti.func
def _make_sphere_hit(ray: Ray, sphere: Sphere, t: real) -> HitRecord:
    point = ray_at(ray, t)
    outward_normal = (point - sphere_center(sphere, ray.time)) / sphere.radius
    u, v = get_sphere_uv(outward_normal)

    front_face = 1
    normal = outward_normal
    if tm.dot(ray.direction, outward_normal) > 0.0:
        # Ray is inside the sphere, hitting the back face
        front_face = 0
        normal = -outward_normal

    return HitRecord(
        hit=1,
        t=t,
        point=point,
        normal=normal,
        front_face=front_face,
        u=u,
        v=v,
    )


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: real, t_max: real) -> HitRecord:
    """Test for ray-sphere intersection in the open interval (t_min, t_max).

    A non-positive discriminant is a miss (tangent rays do not count). The
    near root (-b - sqrt(disc)) / a is accepted first; the far root is only
    used when the near one is outside the interval, e.g. when the ray starts
    inside the sphere.

    Args:
        ray: The ray to test, evaluated at ray.time for moving spheres.
        sphere: The sphere to test against.
        t_min: Exclusive lower bound on accepted t (avoids self-intersection).
        t_max: Exclusive upper bound on accepted t (closest hit so far).

    Returns:
        A HitRecord; check its hit field before reading the rest.
    """
    oc = ray.origin - sphere_center(sphere, ray.time)
    a = tm.dot(ray.direction, ray.direction)
    b = tm.dot(oc, ray.direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = b * b - a * c

    result = HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        u=0.0,
        v=0.0,
    )

    if discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)

        root = (-b - sqrt_d) / a
        if root > t_min and root < t_max:
            result = _make_sphere_hit(ray, sphere, root)
        else:
            root = (-b + sqrt_d) / a
            if root > t_min and root < t_max:
                result = _make_sphere_hit(ray, sphere, root)

    return result


# =============================================================================
# Host-side helpers
# =============================================================================


def center_at(
    center0: tuple[float, float, float],
    center1: tuple[float, float, float],
    time0: float,
    time1: float,
    time: float,
) -> np.ndarray:
    """Host-side equivalent of sphere_center for keyframe tuples."""
    c0 = np.asarray(center0, dtype=np.float64)
    c1 = np.asarray(center1, dtype=np.float64)
    alpha = (time - time0) / (time1 - time0)
    return c0 + alpha * (c1 - c0)


def sphere_bounding_box(
    center0: tuple[float, float, float],
    center1: tuple[float, float, float],
    time0: float,
    time1: float,
    radius: float,
    t0: float,
    t1: float,
) -> AABB:
    """Bounding box of a (possibly moving) sphere over the interval [t0, t1].

    Motion is linear, so the union of the boxes at both ends of the interval
    encloses the whole swept volume.
    """
    r = np.full(3, abs(radius))
    start = center_at(center0, center1, time0, time1, t0)
    end = center_at(center0, center1, time0, time1, t1)
    return AABB(start - r, start + r).merge(AABB(end - r, end + r))


def sphere_uv_host(outward_normal: tuple[float, float, float]) -> tuple[float, float]:
    """Host-side equivalent of get_sphere_uv, used by tests and tooling."""
    x, y, z = outward_normal
    phi = math.atan2(-z, x) + math.pi
    theta = math.acos(max(-1.0, min(1.0, -y)))
    return phi / (2.0 * math.pi), theta / math.pi
