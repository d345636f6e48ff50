"""Unified scene manager for coordinating textures, materials and spheres.

This module provides a high-level scene management API that coordinates
primitive storage with texture and material registration. It tracks which
material type (Lambertian, Metal, Dielectric) each material ID corresponds
to, enabling proper material dispatch in the integrator.

The SceneManager maintains:
- A unified texture_id space across all texture types
- A unified material_id space across all material types
- Mapping from material_id to (material_type, type_local_index)
- The scene camera and the BVH built over the spheres
- Scene serialization to plain dictionaries

Materials and textures are registered once and shared by id; spheres only
store the id of their material.

Example:
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> tex = scene.add_solid_texture((0.8, 0.3, 0.3))
    >>> mat = scene.add_lambertian_material(tex)
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=mat)
    >>> scene.set_camera(ThinLensCamera(lookfrom=(0, 0, 1), lookat=(0, 0, -1)))
    >>> scene.build()
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional

import numpy as np
import taichi as ti

from pathtracer.camera.thin_lens import ThinLensCamera, compute_camera_frame, setup_camera
from pathtracer.geometry.bvh import clear_bvh, get_bvh_node_count
from pathtracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from pathtracer.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from pathtracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    build_scene_bvh,
    clear_scene,
    get_sphere_count,
    set_use_bvh,
)
from pathtracer.textures.checker import add_checker_texture
from pathtracer.textures.image import add_image_texture
from pathtracer.textures.noise import add_noise_texture
from pathtracer.textures.registry import (
    MAX_TEXTURES,
    TextureType,
    clear_textures,
    get_texture_count,
    register_texture,
)
from pathtracer.textures.solid import add_solid_texture

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the integrator to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 1024

# Taichi fields for kernel-side material type lookup
# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


def clear_all_scene_data() -> None:
    """Reset every scene registry: spheres, BVH, materials and textures."""
    clear_scene()
    clear_lambertian_materials()
    clear_metal_materials()
    clear_dielectric_materials()
    _clear_material_tracking()
    clear_textures()


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Args:
        material_id: The unified material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    Args:
        material_id: The unified material ID.

    Returns:
        The index into the type-specific material array.
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class TextureInfo:
    """Information about a registered texture.

    Attributes:
        texture_id: The unified texture ID.
        texture_type: The type of texture.
        type_index: The index within the type-specific texture registry.
        params: The texture parameters as provided during creation.
    """

    texture_id: int
    texture_type: TextureType
    type_index: int
    params: dict[str, Any]


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material (Lambertian, Metal, Dielectric).
        type_index: The index within the type-specific material array.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center0: The center at time0.
        center1: The center at time1 (equal to center0 for static spheres).
        time0: Time of the first keyframe.
        time1: Time of the second keyframe.
        radius: The radius of the sphere.
        material_id: The material ID assigned to the sphere.
    """

    sphere_index: int
    center0: tuple[float, float, float]
    center1: tuple[float, float, float]
    time0: float
    time1: float
    radius: float
    material_id: int

    @property
    def is_moving(self) -> bool:
        return tuple(self.center0) != tuple(self.center1)


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        textures: List of texture configurations.
        materials: List of material configurations.
        spheres: List of sphere configurations.
        camera: Camera configuration, or None if no camera is set.
    """

    textures: list[dict[str, Any]] = field(default_factory=list)
    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    camera: Optional[dict[str, Any]] = None


def _as_vec3(values) -> tuple[float, float, float]:
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """Unified scene manager coordinating textures, materials and spheres.

    Creating a SceneManager resets the module-level scene registries, so
    only one scene is live at a time.

    Attributes:
        textures: List of TextureInfo for all registered textures.
        materials: List of MaterialInfo for all registered materials.
        spheres: List of SphereInfo for all spheres in the scene.
        camera: The scene camera, or None until set_camera is called.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_checker_texture((0.2, 0.3, 0.1), (0.9, 0.9, 0.9))
        >>> scene.add_sphere((0, -1000, 0), 1000, scene.add_lambertian_material(ground))
        >>> scene.add_dielectric_sphere((0, 1, 0), 1.0, ior=1.5)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.textures: list[TextureInfo] = []
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.camera: Optional[ThinLensCamera] = None
        self._built_interval: Optional[tuple[float, float]] = None
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_all_scene_data()
        self.textures.clear()
        self.materials.clear()
        self.spheres.clear()
        self.camera = None
        self._built_interval = None

    def clear(self) -> None:
        """Clear the entire scene (textures, materials, spheres and camera)."""
        self._clear_all()

    # =========================================================================
    # Texture Management
    # =========================================================================

    def _register_texture(
        self, texture_type: TextureType, type_index: int, params: dict[str, Any]
    ) -> int:
        texture_id = register_texture(texture_type, type_index)
        self.textures.append(
            TextureInfo(
                texture_id=texture_id,
                texture_type=texture_type,
                type_index=type_index,
                params=params,
            )
        )
        return texture_id

    def add_solid_texture(self, color: tuple[float, float, float]) -> int:
        """Add a constant color texture.

        Returns:
            The unified texture ID.

        Raises:
            ValueError: If any color component is outside [0, 1].
            RuntimeError: If a texture capacity is exceeded.
        """
        type_index = add_solid_texture(color)
        return self._register_texture(TextureType.SOLID, type_index, {"color": color})

    def add_checker_texture(
        self,
        even: tuple[float, float, float],
        odd: tuple[float, float, float],
    ) -> int:
        """Add a 3-D checker texture alternating between two colors.

        Returns:
            The unified texture ID.
        """
        type_index = add_checker_texture(even, odd)
        return self._register_texture(
            TextureType.CHECKER, type_index, {"even": even, "odd": odd}
        )

    def add_noise_texture(self, scale: float = 1.0, seed: Optional[int] = None) -> int:
        """Add a Perlin turbulence (marble) texture.

        Args:
            scale: Frequency of the marble bands.
            seed: Seed for the Perlin tables. None picks a fresh seed, which
                is recorded so to_dict() reproduces the same tables.

        Returns:
            The unified texture ID.
        """
        if seed is None:
            seed = int(np.random.default_rng().integers(0, 2**32))
        type_index = add_noise_texture(scale, seed)
        return self._register_texture(
            TextureType.NOISE, type_index, {"scale": scale, "seed": seed}
        )

    def add_image_texture(self, path: str) -> int:
        """Load an image file and add it as a texture.

        Returns:
            The unified texture ID.

        Raises:
            FileNotFoundError: If the image file does not exist.
        """
        type_index = add_image_texture(path)
        return self._register_texture(TextureType.IMAGE, type_index, {"path": str(path)})

    def get_texture_count(self) -> int:
        """Get the total number of textures in the scene."""
        return get_texture_count()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self, material_type: MaterialType, type_index: int, params: dict[str, Any]
    ) -> int:
        # Assign unified material ID
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        # Update Taichi fields
        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        # Track locally
        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(self, texture_id: int) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            texture_id: Unified id of the albedo texture.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If texture_id is not registered.
        """
        type_index = add_lambertian_material(texture_id)
        return self._register_material(
            MaterialType.LAMBERTIAN, type_index, {"texture_id": texture_id}
        )

    def add_metal_material(self, texture_id: int, fuzz: float = 0.0) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            texture_id: Unified id of the tint texture.
            fuzz: The surface fuzziness in [0, 1]. Default is 0 (perfect mirror).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If texture_id is not registered or fuzz is outside [0, 1].
        """
        type_index = add_metal_material(texture_id, fuzz)
        return self._register_material(
            MaterialType.METAL, type_index, {"texture_id": texture_id, "fuzz": fuzz}
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If IOR is not positive.
        """
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": ior})

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a given material ID (Python side).

        For kernel-side lookup, use the get_material_type() Taichi function.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id].material_type
        return None

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_moving_sphere(
        self,
        center0: tuple[float, float, float],
        center1: tuple[float, float, float],
        time0: float,
        time1: float,
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere whose center moves linearly from center0 to center1.

        Args:
            center0: Center at time0.
            center1: Center at time1.
            time0: Time of the first keyframe.
            time1: Time of the second keyframe (must be after time0).
            radius: The radius of the sphere (must be positive).
            material_id: The unified material ID to assign to the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If material_id is invalid, radius is not positive or
                time1 <= time0.
        """
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")
        if time1 <= time0:
            raise ValueError(f"Moving sphere needs time1 > time0, got [{time0}, {time1}]")

        sphere_index = add_sphere(center0, center1, time0, time1, radius, material_id)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center0=_as_vec3(center0),
                center1=_as_vec3(center1),
                time0=time0,
                time1=time1,
                radius=radius,
                material_id=material_id,
            )
        )
        self._built_interval = None
        return sphere_index

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a static sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere (must be positive).
            material_id: The unified material ID to assign to the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If material_id is invalid or radius is not positive.
        """
        return self.add_moving_sphere(center, center, 0.0, 1.0, radius, material_id)

    # =========================================================================
    # Convenience Methods (add object with material in one call)
    # =========================================================================

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new solid-color Lambertian material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_lambertian_material(self.add_solid_texture(albedo))
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new solid-color metal material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_metal_material(self.add_solid_texture(albedo), fuzz)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with a new dielectric material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_dielectric_material(ior)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    # =========================================================================
    # Camera and Build
    # =========================================================================

    def set_camera(self, camera: ThinLensCamera) -> None:
        """Set the scene camera.

        Raises:
            ValueError: If the camera configuration is invalid or degenerate.
        """
        compute_camera_frame(camera)
        self.camera = camera
        self._built_interval = None

    def build(
        self,
        time0: Optional[float] = None,
        time1: Optional[float] = None,
        use_bvh: bool = True,
    ) -> None:
        """Prepare the scene for rendering.

        Uploads the camera and, when use_bvh is set, builds the BVH over the
        spheres' bounds for the interval [time0, time1]. The interval
        defaults to the camera's shutter interval.

        Raises:
            RuntimeError: If no camera has been set.
        """
        if self.camera is None:
            raise RuntimeError("Scene has no camera. Call set_camera() first.")

        setup_camera(self.camera)

        if time0 is None:
            time0 = self.camera.shutter_open
        if time1 is None:
            time1 = self.camera.shutter_close

        if use_bvh:
            build_scene_bvh(time0, time1)
        else:
            clear_bvh()
        set_use_bvh(use_bvh)
        self._built_interval = (time0, time1)

        logger.info(
            "Scene built: %d spheres, %d materials, %d textures, BVH %s",
            self.get_sphere_count(),
            self.get_material_count(),
            self.get_texture_count(),
            f"{get_bvh_node_count()} nodes" if use_bvh else "disabled",
        )

    @property
    def is_built(self) -> bool:
        return self._built_interval is not None

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for tex in self.textures:
            tex_config: dict[str, Any] = {"type": tex.texture_type.name.lower()}
            for key, value in tex.params.items():
                tex_config[key] = list(value) if isinstance(value, tuple) else value
            config.textures.append(tex_config)

        for mat in self.materials:
            config.materials.append({"type": mat.material_type.name.lower(), **mat.params})

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center0": list(sphere.center0),
                    "center1": list(sphere.center1),
                    "time0": sphere.time0,
                    "time1": sphere.time1,
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        if self.camera is not None:
            config.camera = self.camera.to_dict()

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration. The scene must
        be built again before rendering.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        # Textures first (needed by materials)
        for tex_config in config.textures:
            tex_type = tex_config.get("type", "").lower()
            if tex_type == "solid":
                self.add_solid_texture(_as_vec3(tex_config.get("color", [0.5, 0.5, 0.5])))
            elif tex_type == "checker":
                self.add_checker_texture(
                    _as_vec3(tex_config.get("even", [0.2, 0.3, 0.1])),
                    _as_vec3(tex_config.get("odd", [0.9, 0.9, 0.9])),
                )
            elif tex_type == "noise":
                self.add_noise_texture(tex_config.get("scale", 1.0), tex_config.get("seed"))
            elif tex_type == "image":
                self.add_image_texture(tex_config["path"])
            else:
                raise ValueError(f"Unknown texture type: {tex_type}")

        # Materials next (needed by spheres)
        for mat_config in config.materials:
            mat_type = mat_config.get("type", "").lower()
            if mat_type == "lambertian":
                self.add_lambertian_material(mat_config.get("texture_id", 0))
            elif mat_type == "metal":
                self.add_metal_material(
                    mat_config.get("texture_id", 0), mat_config.get("fuzz", 0.0)
                )
            elif mat_type == "dielectric":
                self.add_dielectric_material(mat_config.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for sphere_config in config.spheres:
            if "center" in sphere_config:
                self.add_sphere(
                    _as_vec3(sphere_config["center"]),
                    sphere_config.get("radius", 1.0),
                    sphere_config.get("material_id", 0),
                )
            else:
                self.add_moving_sphere(
                    _as_vec3(sphere_config.get("center0", [0, 0, 0])),
                    _as_vec3(sphere_config.get("center1", sphere_config.get("center0", [0, 0, 0]))),
                    sphere_config.get("time0", 0.0),
                    sphere_config.get("time1", 1.0),
                    sphere_config.get("radius", 1.0),
                    sphere_config.get("material_id", 0),
                )

        if config.camera is not None:
            self.set_camera(ThinLensCamera.from_dict(config.camera))

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary."""
        config = self.to_config()
        return {
            "textures": config.textures,
            "materials": config.materials,
            "spheres": config.spheres,
            "camera": config.camera,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary produced by to_dict()."""
        config = SceneConfig(
            textures=data.get("textures", []),
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
            camera=data.get("camera"),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS

    @staticmethod
    def get_max_textures() -> int:
        """Get the maximum number of textures supported."""
        return MAX_TEXTURES
