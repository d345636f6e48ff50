"""Import tests for every pathtracer module.

Kernel signatures are checked when the decorator runs, so a bad
annotation surfaces as an import error here.
"""

import importlib

import numpy as np
import pytest

# Listed explicitly: importing during collection would declare fields
# before the session's ti.init
MODULES = [
    "pathtracer",
    "pathtracer.camera",
    "pathtracer.camera.thin_lens",
    "pathtracer.cli",
    "pathtracer.config",
    "pathtracer.core",
    "pathtracer.core.integrator",
    "pathtracer.core.ray",
    "pathtracer.core.renderer",
    "pathtracer.core.sampler",
    "pathtracer.geometry",
    "pathtracer.geometry.aabb",
    "pathtracer.geometry.bvh",
    "pathtracer.geometry.sphere",
    "pathtracer.logging_config",
    "pathtracer.materials",
    "pathtracer.materials.dielectric",
    "pathtracer.materials.lambertian",
    "pathtracer.materials.metal",
    "pathtracer.output",
    "pathtracer.output.export",
    "pathtracer.scene",
    "pathtracer.scene.intersection",
    "pathtracer.scene.manager",
    "pathtracer.scene.random_scene",
    "pathtracer.textures",
    "pathtracer.textures.checker",
    "pathtracer.textures.image",
    "pathtracer.textures.noise",
    "pathtracer.textures.registry",
    "pathtracer.textures.solid",
]


@pytest.mark.parametrize("name", MODULES)
def test_module_imports(name):
    assert importlib.import_module(name) is not None


def test_image_texture_upload_kernel():
    from pathtracer.textures.image import add_image_texture_from_array, get_image_texture_count

    idx = add_image_texture_from_array(np.full((2, 3, 3), 0.5, dtype=np.float32))
    assert idx == 0
    assert get_image_texture_count() == 1
