"""Geometry module for shape primitives and spatial acceleration.

This module provides geometric primitives and intersection algorithms:

Components:
    sphere: Static and moving sphere with ray-sphere intersection
    aabb: Axis-Aligned Bounding Box utilities and the slab test
    bvh: Bounding Volume Hierarchy construction and device storage

Intersection routines are implemented as Taichi functions (@ti.func).
Bounding boxes and the BVH are built on the host and uploaded to Taichi
fields; traversal lives with the scene storage in
pathtracer.scene.intersection.
"""

from .aabb import AABB, hit_aabb, surrounding_box
from .bvh import (
    BVH_STACK_SIZE,
    MAX_BVH_NODES,
    MAX_BVH_PRIMITIVES,
    BVHNode,
    FlatBVH,
    build_bvh,
    clear_bvh,
    flatten_bvh,
    get_bvh_node_count,
    upload_bvh,
)
from .sphere import (
    HitRecord,
    Sphere,
    get_sphere_uv,
    hit_sphere,
    sphere_bounding_box,
    sphere_center,
)

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "sphere_center",
    "get_sphere_uv",
    "sphere_bounding_box",
    "AABB",
    "surrounding_box",
    "hit_aabb",
    "BVHNode",
    "FlatBVH",
    "build_bvh",
    "flatten_bvh",
    "upload_bvh",
    "clear_bvh",
    "get_bvh_node_count",
    "MAX_BVH_PRIMITIVES",
    "MAX_BVH_NODES",
    "BVH_STACK_SIZE",
]
