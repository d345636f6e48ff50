"""Pytest configuration for pathtracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=42)
    yield
    # Note: We don't call ti.reset() here as it can cause issues
    # with subsequent tests if any cleanup happens after


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before each test.

    This ensures tests are isolated from each other.
    """
    # Import here to ensure Taichi is initialized
    from pathtracer.core.integrator import reset_render_target
    from pathtracer.scene.manager import clear_all_scene_data as _clear_scene_data

    def _clear_all():
        _clear_scene_data()
        reset_render_target()

    # Clear everything before test
    _clear_all()

    yield

    # Clear everything after test
    _clear_all()


@pytest.fixture
def seeded_streams():
    """Seed the random streams used by kernel-side samplers."""
    from pathtracer.core.sampler import seed_streams

    seed_streams(1234, 64)
