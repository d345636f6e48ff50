"""Procedural "final scene": a field of small random spheres.

The scene contains:
- A huge checkered ground sphere
- Three large feature spheres: Perlin marble, polished metal and an image
  texture (or a plain diffuse sphere when no image is given)
- A 4x4 grid of small spheres with randomly chosen materials

All randomness comes from a single numpy Generator seeded by the caller,
so the same seed always builds the same scene.

Example:
    >>> from pathtracer.scene.random_scene import create_random_scene
    >>> scene = create_random_scene(seed=7, aspect_ratio=2.0, motion_blur=True)
    >>> scene.get_sphere_count()
"""

import logging
from typing import Optional

import numpy as np

from pathtracer.camera.thin_lens import ThinLensCamera
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Ground
GROUND_CENTER = (0.0, -1000.0, 0.0)
GROUND_RADIUS = 1000.0
GROUND_EVEN = (0.2, 0.3, 0.1)
GROUND_ODD = (0.9, 0.9, 0.9)

# Feature spheres
FEATURE_RADIUS = 1.0
MARBLE_CENTER = (0.0, 1.0, 0.0)
MARBLE_SCALE = 4.0
METAL_CENTER = (-4.0, 1.0, 0.0)
METAL_ALBEDO = (0.7, 0.6, 0.5)
IMAGE_CENTER = (4.0, 1.0, 0.0)
FALLBACK_ALBEDO = (0.4, 0.2, 0.1)

# Small sphere grid, a and b in [-GRID_EXTENT, GRID_EXTENT)
GRID_EXTENT = 2
SMALL_RADIUS = 0.2
CLEARANCE_POINT = np.array([4.0, 0.2, 0.0])
CLEARANCE = 0.9

# Camera
LOOKFROM = (13.0, 2.0, 3.0)
LOOKAT = (0.0, 0.0, 0.0)
VFOV = 20.0
APERTURE = 0.1


def create_random_scene(
    seed: int = 0,
    aspect_ratio: float = 2.0,
    motion_blur: bool = False,
    texture_path: Optional[str] = None,
) -> SceneManager:
    """Build the random sphere scene with its camera.

    Small sphere materials are drawn as: diffuse (60%, albedo = product of
    two uniforms per channel), metal (20%, albedo in [0.5, 1), fuzz in
    [0, 0.5)), glass (10%, ior 1.5) and marble (10%, sharing the feature
    marble texture).

    Args:
        seed: Seed for the scene layout and the marble's Perlin tables.
        aspect_ratio: Camera aspect ratio (image width / height).
        motion_blur: If True, diffuse small spheres bounce upward during
            a shutter open over [0, 1].
        texture_path: Image file for the textured feature sphere.

    Returns:
        A SceneManager with spheres, materials and camera set (not built).

    Raises:
        FileNotFoundError: If texture_path does not exist.
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    ground_tex = scene.add_checker_texture(GROUND_EVEN, GROUND_ODD)
    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, scene.add_lambertian_material(ground_tex))

    marble_tex = scene.add_noise_texture(MARBLE_SCALE, seed=seed)
    marble_mat = scene.add_lambertian_material(marble_tex)
    scene.add_sphere(MARBLE_CENTER, FEATURE_RADIUS, marble_mat)

    scene.add_metal_sphere(METAL_CENTER, FEATURE_RADIUS, METAL_ALBEDO, fuzz=0.0)

    if texture_path is not None:
        image_mat = scene.add_lambertian_material(scene.add_image_texture(texture_path))
        scene.add_sphere(IMAGE_CENTER, FEATURE_RADIUS, image_mat)
    else:
        scene.add_lambertian_sphere(IMAGE_CENTER, FEATURE_RADIUS, FALLBACK_ALBEDO)

    glass_mat = scene.add_dielectric_material(1.5)

    for a in range(-GRID_EXTENT, GRID_EXTENT):
        for b in range(-GRID_EXTENT, GRID_EXTENT):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), SMALL_RADIUS, b + 0.9 * rng.random()])

            if np.linalg.norm(center - CLEARANCE_POINT) <= CLEARANCE:
                continue

            if choose_mat < 0.6:
                albedo = tuple(float(x) for x in rng.random(3) * rng.random(3))
                material_id = scene.add_lambertian_material(scene.add_solid_texture(albedo))
                if motion_blur:
                    center1 = center + np.array([0.0, 0.5 * rng.random(), 0.0])
                    scene.add_moving_sphere(
                        tuple(center), tuple(center1), 0.0, 1.0, SMALL_RADIUS, material_id
                    )
                else:
                    scene.add_sphere(tuple(center), SMALL_RADIUS, material_id)
            elif choose_mat < 0.8:
                albedo = tuple(float(x) for x in 0.5 * (1.0 + rng.random(3)))
                fuzz = float(0.5 * rng.random())
                scene.add_metal_sphere(tuple(center), SMALL_RADIUS, albedo, fuzz)
            elif choose_mat < 0.9:
                scene.add_sphere(tuple(center), SMALL_RADIUS, glass_mat)
            else:
                scene.add_sphere(tuple(center), SMALL_RADIUS, marble_mat)

    scene.set_camera(
        ThinLensCamera(
            lookfrom=LOOKFROM,
            lookat=LOOKAT,
            vfov=VFOV,
            aspect_ratio=aspect_ratio,
            aperture=APERTURE,
            shutter_open=0.0,
            shutter_duration=1.0 if motion_blur else 0.0,
        )
    )

    logger.info(
        "Random scene (seed %d): %d spheres, %d materials%s",
        seed,
        scene.get_sphere_count(),
        scene.get_material_count(),
        ", motion blur" if motion_blur else "",
    )
    return scene
