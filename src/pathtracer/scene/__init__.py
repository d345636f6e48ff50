"""Scene module for scene storage, closest-hit queries and management.

Components:
    intersection: Sphere storage in Taichi fields and closest-hit queries
        (linear scan or BVH)
    manager: Unified scene manager coordinating textures, materials,
        spheres and the camera
    random_scene: Procedural field of random spheres

Scene data is organized for efficient kernel access:
    - Structure-of-Arrays layout for sphere data
    - Contiguous material ID arrays
    - Flattened pre-order BVH arrays
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    build_scene_bvh,
    clear_scene,
    get_sphere_count,
    intersect_bvh,
    intersect_scene,
    intersect_scene_linear,
    scene_bounding_box,
    set_use_bvh,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    TextureInfo,
    clear_all_scene_data,
    get_material_type,
    get_material_type_index,
)
from .random_scene import create_random_scene

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "set_use_bvh",
    "build_scene_bvh",
    "scene_bounding_box",
    "intersect_scene",
    "intersect_scene_linear",
    "intersect_bvh",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "TextureInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "clear_all_scene_data",
    "get_material_type",
    "get_material_type_index",
    # Random scene
    "create_random_scene",
]
