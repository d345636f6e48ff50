"""Unit tests for the Metal material module.

Tests cover:
- Perfect specular reflection (fuzz=0)
- Fuzzy reflection stays within the fuzz sphere
- Absorption when the reflection points below the surface
- Attenuation from the tint texture and time propagation
- Material registry operations and fuzz validation
"""

import math

import numpy as np
import pytest
import taichi as ti


def _solid_texture(color):
    from pathtracer.textures.registry import TextureType, register_texture
    from pathtracer.textures.solid import add_solid_texture

    return register_texture(TextureType.SOLID, add_solid_texture(color))


class TestPerfectReflection:
    """Tests for perfect specular reflection (fuzz=0)."""

    def _reflect(self, incident_dir, normal, fuzz=0.0, stream=0):
        from pathtracer.core.ray import Ray, vec3
        from pathtracer.materials.metal import scatter_metal

        tex = _solid_texture((0.9, 0.8, 0.7))
        result_dir = ti.Vector.field(3, dtype=ti.f64, shape=())
        result_att = ti.Vector.field(3, dtype=ti.f64, shape=())
        result_time = ti.field(dtype=ti.f64, shape=())
        result_scatter = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(d: vec3, n: vec3, f: ti.f64):
            incident = Ray(origin=vec3(0.0, 0.0, 0.0), direction=d, time=0.25)
            scattered, attenuation, did_scatter = scatter_metal(
                tex, f, incident, vec3(0.0, 0.0, 0.0), n, 0.0, 0.0, stream
            )
            result_dir[None] = scattered.direction
            result_att[None] = attenuation
            result_time[None] = scattered.time
            result_scatter[None] = did_scatter

        test_kernel(vec3(*incident_dir), vec3(*normal), fuzz)
        return (
            result_dir.to_numpy(),
            result_att.to_numpy(),
            result_time[None],
            result_scatter[None],
        )

    def test_normal_incidence(self):
        d, att, time, did_scatter = self._reflect((0.0, -1.0, 0.0), (0.0, 1.0, 0.0))
        np.testing.assert_allclose(d, [0.0, 1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(att, [0.9, 0.8, 0.7])
        assert time == 0.25
        assert did_scatter == 1

    def test_45_degrees_normalizes_incident(self):
        """Test the reflection is computed from the normalized incident."""
        d, _, _, did_scatter = self._reflect((3.0, -3.0, 0.0), (0.0, 1.0, 0.0))
        inv_sqrt2 = 1.0 / math.sqrt(2.0)
        np.testing.assert_allclose(d, [inv_sqrt2, inv_sqrt2, 0.0], atol=1e-12)
        assert did_scatter == 1

    def test_fuzz_zero_draws_no_random_numbers(self):
        from pathtracer.core.sampler import get_stream_state, seed_streams

        seed_streams(4, 4)
        before = get_stream_state(0)
        self._reflect((0.0, -1.0, 0.0), (0.0, 1.0, 0.0), fuzz=0.0)
        assert get_stream_state(0) == before

    def test_grazing_reflection_with_fuzz_can_be_absorbed(self):
        """Test rays pushed below the surface report did_scatter == 0."""
        from pathtracer.core.ray import Ray, vec3
        from pathtracer.core.sampler import seed_streams
        from pathtracer.materials.metal import scatter_metal

        tex = _solid_texture((1.0, 1.0, 1.0))
        n = 512
        seed_streams(8, n)
        flags = ti.field(dtype=ti.i32, shape=n)
        dots = ti.field(dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for s in range(n):
                incident = Ray(
                    origin=vec3(0.0, 0.0, 0.0), direction=vec3(1.0, -0.01, 0.0), time=0.0
                )
                scattered, attenuation, did_scatter = scatter_metal(
                    tex, 1.0, incident, vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0), 0.0, 0.0, s
                )
                flags[s] = did_scatter
                dots[s] = scattered.direction.y

        test_kernel()
        f = flags.to_numpy()
        d = dots.to_numpy()
        assert 0 < f.sum() < n
        assert np.all((d > 0.0) == (f == 1))

    def test_fuzzy_reflection_within_fuzz_sphere(self):
        from pathtracer.core.ray import Ray, vec3
        from pathtracer.core.sampler import seed_streams
        from pathtracer.materials.metal import scatter_metal

        tex = _solid_texture((1.0, 1.0, 1.0))
        n = 256
        seed_streams(12, n)
        dirs = ti.Vector.field(3, dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for s in range(n):
                incident = Ray(
                    origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, -1.0, 0.0), time=0.0
                )
                scattered, attenuation, did_scatter = scatter_metal(
                    tex, 0.3, incident, vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0), 0.0, 0.0, s
                )
                dirs[s] = scattered.direction

        test_kernel()
        offsets = dirs.to_numpy() - [0.0, 1.0, 0.0]
        assert np.all(np.linalg.norm(offsets, axis=1) < 0.3)


class TestMetalRegistry:
    """Tests for the metal material registry."""

    def test_add_and_read_fuzz(self):
        from pathtracer.materials.metal import add_metal_material, get_metal_fuzz, get_metal_material_count

        tex = _solid_texture((0.5, 0.5, 0.5))
        idx = add_metal_material(tex, 0.25)
        assert get_metal_material_count() == 1

        out = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            out[None] = get_metal_fuzz(idx)

        test_kernel()
        assert out[None] == 0.25

    @pytest.mark.parametrize("fuzz", [-0.1, 1.5])
    def test_invalid_fuzz_raises(self, fuzz):
        from pathtracer.materials.metal import add_metal_material

        tex = _solid_texture((0.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            add_metal_material(tex, fuzz)

    def test_boundary_fuzz_accepted(self):
        from pathtracer.materials.metal import add_metal_material

        tex = _solid_texture((0.5, 0.5, 0.5))
        add_metal_material(tex, 0.0)
        add_metal_material(tex, 1.0)

    def test_unknown_texture_raises(self):
        from pathtracer.materials.metal import add_metal_material

        with pytest.raises(ValueError):
            add_metal_material(3, 0.0)
