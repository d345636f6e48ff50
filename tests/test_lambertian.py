"""Unit tests for the Lambertian material module.

Tests cover:
- Scattered rays leave from the hit point into the normal's hemisphere
- Attenuation comes from the albedo texture
- The scattered ray keeps the incoming time sample
- Material registry operations and validation
"""

import numpy as np
import pytest
import taichi as ti


def _solid_texture(color):
    from pathtracer.textures.registry import TextureType, register_texture
    from pathtracer.textures.solid import add_solid_texture

    return register_texture(TextureType.SOLID, add_solid_texture(color))


class TestLambertianScatter:
    """Tests for scatter_lambertian."""

    def test_scatter_properties(self):
        from pathtracer.core.ray import Ray, vec3
        from pathtracer.core.sampler import seed_streams
        from pathtracer.materials.lambertian import scatter_lambertian

        tex = _solid_texture((0.8, 0.4, 0.2))
        n = 256
        seed_streams(17, n)
        origins = ti.Vector.field(3, dtype=ti.f64, shape=n)
        directions = ti.Vector.field(3, dtype=ti.f64, shape=n)
        attenuations = ti.Vector.field(3, dtype=ti.f64, shape=n)
        times = ti.field(dtype=ti.f64, shape=n)
        flags = ti.field(dtype=ti.i32, shape=n)

        @ti.kernel
        def test_kernel():
            for s in range(n):
                incident = Ray(
                    origin=vec3(0.0, 1.0, 0.0), direction=vec3(0.3, -1.0, 0.0), time=0.42
                )
                scattered, attenuation, did_scatter = scatter_lambertian(
                    tex, incident, vec3(1.0, 0.0, 2.0), vec3(0.0, 1.0, 0.0), 0.5, 0.5, s
                )
                origins[s] = scattered.origin
                directions[s] = scattered.direction
                attenuations[s] = attenuation
                times[s] = scattered.time
                flags[s] = did_scatter

        test_kernel()
        assert np.all(flags.to_numpy() == 1)
        np.testing.assert_allclose(origins.to_numpy(), np.tile([1.0, 0.0, 2.0], (n, 1)))
        np.testing.assert_allclose(attenuations.to_numpy(), np.tile([0.8, 0.4, 0.2], (n, 1)))
        np.testing.assert_array_equal(times.to_numpy(), 0.42)
        # normal + point in unit sphere stays in the upper hemisphere
        d = directions.to_numpy()
        assert np.all(d[:, 1] > 0.0)
        assert np.all(np.linalg.norm(d - [0.0, 1.0, 0.0], axis=1) < 1.0)

    def test_scatter_is_deterministic_per_stream(self):
        from pathtracer.core.ray import Ray, vec3
        from pathtracer.core.sampler import seed_streams
        from pathtracer.materials.lambertian import scatter_lambertian

        tex = _solid_texture((0.5, 0.5, 0.5))
        out = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            incident = Ray(origin=vec3(0.0, 1.0, 0.0), direction=vec3(0.0, -1.0, 0.0), time=0.0)
            scattered, attenuation, did_scatter = scatter_lambertian(
                tex, incident, vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0), 0.0, 0.0, 3
            )
            out[None] = scattered.direction

        seed_streams(99, 8)
        test_kernel()
        first = out.to_numpy()
        seed_streams(99, 8)
        test_kernel()
        np.testing.assert_array_equal(first, out.to_numpy())


class TestLambertianRegistry:
    """Tests for the Lambertian material registry."""

    def test_add_and_count(self):
        from pathtracer.materials.lambertian import add_lambertian_material, get_lambertian_material_count

        tex = _solid_texture((0.5, 0.5, 0.5))
        assert add_lambertian_material(tex) == 0
        assert add_lambertian_material(tex) == 1
        assert get_lambertian_material_count() == 2

    def test_unknown_texture_raises(self):
        from pathtracer.materials.lambertian import add_lambertian_material

        with pytest.raises(ValueError):
            add_lambertian_material(5)

    def test_scatter_by_id_uses_registered_texture(self):
        from pathtracer.core.ray import Ray, vec3
        from pathtracer.core.sampler import seed_streams
        from pathtracer.materials.lambertian import add_lambertian_material, scatter_lambertian_by_id

        _solid_texture((0.1, 0.1, 0.1))
        mat = add_lambertian_material(_solid_texture((0.3, 0.6, 0.9)))
        seed_streams(0, 4)
        out = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            incident = Ray(origin=vec3(0.0, 1.0, 0.0), direction=vec3(0.0, -1.0, 0.0), time=0.0)
            scattered, attenuation, did_scatter = scatter_lambertian_by_id(
                mat, incident, vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0), 0.0, 0.0, 0
            )
            out[None] = attenuation

        test_kernel()
        np.testing.assert_allclose(out.to_numpy(), [0.3, 0.6, 0.9])
