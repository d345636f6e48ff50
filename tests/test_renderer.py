"""Unit tests for the band-by-band Renderer.

Tests cover:
- Output shape and dtype
- Progress reporting through the callback and the generator
- Band size does not change the image
- Settings validation and missing camera
"""

import logging

import numpy as np
import pytest


def _settings(**overrides):
    from pathtracer.config import RenderSettings

    values = {
        "width": 16,
        "height": 8,
        "samples_per_pixel": 2,
        "max_depth": 6,
        "seed": 5,
        "band_rows": 3,
    }
    values.update(overrides)
    return RenderSettings(**values)


def _scene():
    from pathtracer.camera.thin_lens import ThinLensCamera
    from pathtracer.scene.manager import SceneManager

    scene = SceneManager()
    ground = scene.add_checker_texture((0.2, 0.3, 0.1), (0.9, 0.9, 0.9))
    scene.add_sphere((0, -1000, 0), 1000, scene.add_lambertian_material(ground))
    scene.add_dielectric_sphere((0, 1, 0), 1.0)
    scene.add_metal_sphere((-4, 1, 0), 1.0, (0.7, 0.6, 0.5))
    scene.set_camera(ThinLensCamera(lookfrom=(13, 2, 3), lookat=(0, 0, 0), aspect_ratio=2.0))
    return scene


class TestRender:
    """Tests for Renderer.render."""

    def test_shape_and_dtype(self):
        from pathtracer.core.renderer import Renderer

        renderer = Renderer(_settings())
        pixels = renderer.render(_scene())
        assert pixels.shape == (8, 16, 3)
        assert pixels.dtype == np.uint8
        assert renderer.last_render_seconds is not None
        assert renderer.get_linear_image().shape == (8, 16, 3)

    def test_callback_progress(self):
        from pathtracer.core.renderer import Renderer

        calls = []
        Renderer(_settings()).render(_scene(), callback=lambda done, total: calls.append((done, total)))
        assert calls == [(3, 8), (6, 8), (8, 8)]

    def test_render_bands_generator(self):
        from pathtracer.core.renderer import Renderer

        progress = list(Renderer(_settings(band_rows=4)).render_bands(_scene()))
        assert progress == [(4, 8), (8, 8)]

    def test_band_size_does_not_change_image(self):
        from pathtracer.core.renderer import Renderer

        first = Renderer(_settings(band_rows=1)).render(_scene())
        second = Renderer(_settings(band_rows=8)).render(_scene())
        np.testing.assert_array_equal(first, second)

    def test_bvh_and_linear_scan_agree(self):
        from pathtracer.core.renderer import Renderer

        with_bvh = Renderer(_settings(use_bvh=True)).render(_scene())
        without_bvh = Renderer(_settings(use_bvh=False)).render(_scene())
        np.testing.assert_array_equal(with_bvh, without_bvh)

    def test_aspect_mismatch_warns(self, caplog):
        from pathtracer.core.renderer import Renderer

        with caplog.at_level(logging.WARNING, logger="pathtracer"):
            Renderer(_settings(width=8, height=8)).render(_scene())
        assert "aspect ratio" in caplog.text


class TestValidation:
    """Invalid settings and scenes are rejected before rendering."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"width": 0},
            {"height": 5000},
            {"samples_per_pixel": 0},
            {"max_depth": 0},
            {"gamma": 0.0},
            {"seed": -1},
            {"band_rows": 0},
        ],
    )
    def test_invalid_settings(self, overrides):
        from pathtracer.core.renderer import Renderer

        with pytest.raises(ValueError):
            Renderer(_settings(**overrides))

    def test_scene_without_camera(self):
        from pathtracer.core.renderer import Renderer
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_dielectric_sphere((0, 0, 0), 1.0)
        with pytest.raises(RuntimeError):
            Renderer(_settings()).render(scene)

    def test_settings_to_dict(self):
        data = _settings().to_dict()
        assert data["width"] == 16
        assert data["use_bvh"] is True
        assert _settings().aspect_ratio == 2.0
