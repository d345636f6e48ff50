"""Scene-level primitive intersection testing.

This module stores the scene's spheres in Taichi fields and answers the
closest-hit query: what, if anything, does a ray hit first inside
(t_min, t_max)? Two strategies are available and return the same closest
hit:

    intersect_scene_linear  tests every sphere
    intersect_bvh           walks the uploaded bounding volume hierarchy

Both narrow the acceptance interval's upper bound to the best t found so
far. ``intersect_scene`` picks the BVH when one is built and enabled.

Example:
    >>> from pathtracer.scene.intersection import add_sphere, build_scene_bvh
    >>> add_sphere((0, 0, -1), (0, 0, -1), 0.0, 1.0, 0.5, material_id=0)
    >>> build_scene_bvh(0.0, 1.0)
    >>> # Use intersect_scene within a Taichi kernel
"""

import logging

import taichi as ti

from pathtracer.core.ray import Ray, real, vec3
from pathtracer.geometry.aabb import AABB, hit_aabb, surrounding_box
from pathtracer.geometry.bvh import (
    BVH_STACK_SIZE,
    MAX_BVH_PRIMITIVES,
    BVHNode,
    build_bvh,
    bvh_box_max,
    bvh_box_min,
    bvh_left,
    bvh_primitive,
    bvh_right,
    clear_bvh,
    flatten_bvh,
    num_bvh_nodes,
    upload_bvh,
)
from pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere, sphere_bounding_box

logger = logging.getLogger(__name__)


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Extends the basic HitRecord with material_id for scene-level queries.

    Attributes:
        hit: Whether the ray intersected any primitive (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
        point: The 3D point where the ray intersected the surface.
        normal: The unit surface normal, facing the side the ray came from.
        front_face: Whether the ray hit the front face (1) or back face (0).
        u: Surface u coordinate at the hit.
        v: Surface v coordinate at the hit.
        material_id: The material ID of the hit primitive. -1 on a miss.
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3
    front_face: ti.i32
    u: real
    v: real
    material_id: ti.i32


# Maximum number of spheres supported in the scene
MAX_SPHERES = MAX_BVH_PRIMITIVES

# Sphere storage: Structure of Arrays layout
sphere_center0 = ti.Vector.field(3, dtype=real, shape=MAX_SPHERES)
sphere_center1 = ti.Vector.field(3, dtype=real, shape=MAX_SPHERES)
sphere_time0 = ti.field(dtype=real, shape=MAX_SPHERES)
sphere_time1 = ti.field(dtype=real, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=real, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# 1 to route intersect_scene through the BVH when one is uploaded
use_bvh = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives and the hierarchy built over them.

    Resets the primitive count to zero. The actual field data is not
    cleared but will be overwritten when new primitives are added.
    """
    num_spheres[None] = 0
    clear_bvh()
    use_bvh[None] = 1


def add_sphere(
    center0: tuple[float, float, float],
    center1: tuple[float, float, float],
    time0: float,
    time1: float,
    radius: float,
    material_id: int = 0,
) -> int:
    """Add a (possibly moving) sphere to the scene.

    A static sphere passes the same center twice. The keyframe times must
    differ so the center can be interpolated. Any uploaded BVH is dropped,
    so queries scan linearly until the hierarchy is built again.

    Args:
        center0: Center at time0.
        center1: Center at time1.
        time0: Time of the first keyframe.
        time1: Time of the second keyframe.
        radius: The radius of the sphere (must be positive).
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
        ValueError: If radius is not positive or time1 == time0.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")
    if time1 == time0:
        raise ValueError(f"Sphere keyframe times must differ, got {time0} and {time1}")

    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_center0[idx] = vec3(center0[0], center0[1], center0[2])
    sphere_center1[idx] = vec3(center1[0], center1[1], center1[2])
    sphere_time0[idx] = time0
    sphere_time1[idx] = time1
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1

    # The hierarchy no longer covers every sphere
    clear_bvh()
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def set_use_bvh(enabled: bool) -> None:
    """Route closest-hit queries through the BVH (True) or a linear scan."""
    use_bvh[None] = 1 if enabled else 0


def get_sphere_boxes(t0: float, t1: float) -> list[AABB]:
    """Bounding boxes of every sphere over the time interval [t0, t1]."""
    n = get_sphere_count()
    c0 = sphere_center0.to_numpy()[:n]
    c1 = sphere_center1.to_numpy()[:n]
    time0 = sphere_time0.to_numpy()[:n]
    time1 = sphere_time1.to_numpy()[:n]
    radii = sphere_radii.to_numpy()[:n]
    return [
        sphere_bounding_box(c0[i], c1[i], float(time0[i]), float(time1[i]), float(radii[i]), t0, t1)
        for i in range(n)
    ]


def scene_bounding_box(t0: float, t1: float) -> AABB:
    """Box enclosing every sphere over [t0, t1].

    Raises:
        ValueError: If the scene holds no primitives.
    """
    boxes = get_sphere_boxes(t0, t1)
    if not boxes:
        raise ValueError("Cannot compute the bounding box of an empty scene")
    box = boxes[0]
    for other in boxes[1:]:
        box = surrounding_box(box, other)
    return box


def build_scene_bvh(t0: float = 0.0, t1: float = 1.0) -> BVHNode | None:
    """Build and upload a BVH over the current spheres for shutter [t0, t1].

    Returns:
        The host-side root node (None for an empty scene).
    """
    root = build_bvh(get_sphere_boxes(t0, t1))
    flat = flatten_bvh(root)
    upload_bvh(flat)
    if root is not None:
        logger.info(
            "Built BVH over %d spheres: %d nodes, depth %d",
            get_sphere_count(),
            flat.node_count,
            root.depth(),
        )
    return root


# =============================================================================
# Kernel-side queries
# =============================================================================


@ti.func
def _get_sphere(idx: ti.i32) -> Sphere:
    return Sphere(
        center0=sphere_center0[idx],
        center1=sphere_center1[idx],
        time0=sphere_time0[idx],
        time1=sphere_time1[idx],
        radius=sphere_radii[idx],
    )


@ti.func
def _hit_record_to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    """Convert a HitRecord to a SceneHitRecord with material ID."""
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        u=rec.u,
        v=rec.v,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        u=0.0,
        v=0.0,
        material_id=-1,
    )


@ti.func
def intersect_scene_linear(ray: Ray, t_min: real, t_max: real) -> SceneHitRecord:
    """Test the ray against every sphere, keeping the closest hit.

    Args:
        ray: The ray to trace.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A SceneHitRecord containing the closest intersection, or a miss
        record if no intersection was found.
    """
    closest_t = t_max
    result = _make_miss_record()

    for i in range(num_spheres[None]):
        rec = hit_sphere(ray, _get_sphere(i), t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _hit_record_to_scene_hit_record(rec, sphere_material_ids[i])

    return result


@ti.func
def intersect_bvh(ray: Ray, t_min: real, t_max: real) -> SceneHitRecord:
    """Closest-hit query through the uploaded BVH.

    Iterative depth-first traversal with a fixed-size local stack. A node
    whose box the ray misses (within the current closest t) is pruned
    together with its subtree; otherwise both children are visited, and
    leaves test their sphere against the shrinking interval.
    """
    closest_t = t_max
    result = _make_miss_record()

    stack = ti.Vector([0 for _ in range(BVH_STACK_SIZE)], dt=ti.i32)
    stack_ptr = 0
    if num_bvh_nodes[None] > 0:
        stack[0] = 0
        stack_ptr = 1

    while stack_ptr > 0:
        stack_ptr -= 1
        node = stack[stack_ptr]

        if hit_aabb(bvh_box_min[node], bvh_box_max[node], ray, t_min, closest_t) == 1:
            prim = bvh_primitive[node]
            if prim >= 0:
                rec = hit_sphere(ray, _get_sphere(prim), t_min, closest_t)
                if rec.hit == 1:
                    closest_t = rec.t
                    result = _hit_record_to_scene_hit_record(rec, sphere_material_ids[prim])
            elif stack_ptr + 2 <= BVH_STACK_SIZE:
                stack[stack_ptr] = bvh_right[node]
                stack[stack_ptr + 1] = bvh_left[node]
                stack_ptr += 2

    return result


@ti.func
def intersect_scene(ray: Ray, t_min: real, t_max: real) -> SceneHitRecord:
    """Closest hit of the ray against the scene within (t_min, t_max).

    Uses the BVH when one is uploaded and enabled, otherwise a linear scan.
    """
    result = _make_miss_record()
    if use_bvh[None] == 1 and num_bvh_nodes[None] > 0:
        result = intersect_bvh(ray, t_min, t_max)
    else:
        result = intersect_scene_linear(ray, t_min, t_max)
    return result
