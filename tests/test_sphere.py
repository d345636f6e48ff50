"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere
- Ray starting inside sphere (back face)
- Tangent rays and interval bounds
- Moving spheres
- Surface (u, v) coordinates
- Bounding boxes of static and moving spheres
"""

import math

import numpy as np
import taichi as ti


def _static_sphere(center, radius):
    from pathtracer.geometry.sphere import Sphere, vec3

    c = vec3(center[0], center[1], center[2])
    return Sphere(center0=c, center1=c, time0=0.0, time1=1.0, radius=radius)


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_hit_sphere_direct_hit(self):
        """Test ray hitting sphere head-on from outside."""
        from pathtracer.core.ray import Ray
        from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())
        t_val = ti.field(dtype=ti.f64, shape=())
        point = ti.Vector.field(3, dtype=ti.f64, shape=())
        normal = ti.Vector.field(3, dtype=ti.f64, shape=())
        front_face = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 0.0, 5.0), direction=vec3(0.0, 0.0, -1.0), time=0.0)
            c = vec3(0.0, 0.0, 0.0)
            sphere = Sphere(center0=c, center1=c, time0=0.0, time1=1.0, radius=1.0)
            record = hit_sphere(ray, sphere, 0.001, 1000.0)
            hit[None] = record.hit
            t_val[None] = record.t
            point[None] = record.point
            normal[None] = record.normal
            front_face[None] = record.front_face

        test_kernel()
        assert hit[None] == 1
        # Should hit at z=1 (front of sphere), so t=4
        assert abs(t_val[None] - 4.0) < 1e-12
        p = point[None]
        assert abs(p[2] - 1.0) < 1e-12
        # Normal should point outward: (0, 0, 1)
        n = normal[None]
        assert abs(n[0]) < 1e-12
        assert abs(n[1]) < 1e-12
        assert abs(n[2] - 1.0) < 1e-12
        assert front_face[None] == 1

    def test_hit_sphere_miss(self):
        """Test ray missing sphere entirely."""
        from pathtracer.core.ray import Ray
        from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(5.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0), time=0.0)
            c = vec3(0.0, 0.0, 0.0)
            sphere = Sphere(center0=c, center1=c, time0=0.0, time1=1.0, radius=1.0)
            hit[None] = hit_sphere(ray, sphere, 0.001, 1000.0).hit

        test_kernel()
        assert hit[None] == 0

    def test_hit_sphere_inside(self):
        """Test ray starting inside sphere (back face hit)."""
        from pathtracer.core.ray import Ray
        from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())
        t_val = ti.field(dtype=ti.f64, shape=())
        normal = ti.Vector.field(3, dtype=ti.f64, shape=())
        front_face = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, 1.0), time=0.0)
            c = vec3(0.0, 0.0, 0.0)
            sphere = Sphere(center0=c, center1=c, time0=0.0, time1=1.0, radius=2.0)
            record = hit_sphere(ray, sphere, 0.001, 1000.0)
            hit[None] = record.hit
            t_val[None] = record.t
            normal[None] = record.normal
            front_face[None] = record.front_face

        test_kernel()
        assert hit[None] == 1
        assert abs(t_val[None] - 2.0) < 1e-12
        # The stored normal faces the ray
        assert abs(normal[None][2] + 1.0) < 1e-12
        assert front_face[None] == 0

    def test_tangent_ray_misses(self):
        """Test a ray grazing the sphere (zero discriminant) is not a hit."""
        from pathtracer.core.ray import Ray
        from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 0.0, 5.0), direction=vec3(0.0, 0.0, -1.0), time=0.0)
            c = vec3(0.0, 0.0, 0.0)
            sphere = Sphere(center0=c, center1=c, time0=0.0, time1=1.0, radius=1.0)
            hit[None] = hit_sphere(ray, sphere, 0.001, 1000.0).hit

        test_kernel()
        assert hit[None] == 0

    def test_far_root_when_near_root_outside_interval(self):
        """Test the far root is used when the near one is below t_min."""
        from pathtracer.core.ray import Ray
        from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3

        t_val = ti.field(dtype=ti.f64, shape=())
        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 0.0, 5.0), direction=vec3(0.0, 0.0, -1.0), time=0.0)
            c = vec3(0.0, 0.0, 0.0)
            sphere = Sphere(center0=c, center1=c, time0=0.0, time1=1.0, radius=1.0)
            record = hit_sphere(ray, sphere, 4.5, 1000.0)
            hit[None] = record.hit
            t_val[None] = record.t

        test_kernel()
        assert hit[None] == 1
        assert abs(t_val[None] - 6.0) < 1e-12

    def test_t_max_excludes_hits(self):
        from pathtracer.core.ray import Ray
        from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 0.0, 5.0), direction=vec3(0.0, 0.0, -1.0), time=0.0)
            c = vec3(0.0, 0.0, 0.0)
            sphere = Sphere(center0=c, center1=c, time0=0.0, time1=1.0, radius=1.0)
            hit[None] = hit_sphere(ray, sphere, 0.001, 3.0).hit

        test_kernel()
        assert hit[None] == 0

    def test_unnormalized_direction(self):
        """Test t is measured in units of the direction vector."""
        from pathtracer.core.ray import Ray
        from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3

        t_val = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 0.0, 5.0), direction=vec3(0.0, 0.0, -2.0), time=0.0)
            c = vec3(0.0, 0.0, 0.0)
            sphere = Sphere(center0=c, center1=c, time0=0.0, time1=1.0, radius=1.0)
            t_val[None] = hit_sphere(ray, sphere, 0.001, 1000.0).t

        test_kernel()
        assert abs(t_val[None] - 2.0) < 1e-12


class TestMovingSphere:
    """Tests for time-dependent sphere centers."""

    def test_center_interpolates(self):
        from pathtracer.geometry.sphere import Sphere, sphere_center, vec3

        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            sphere = Sphere(
                center0=vec3(0.0, 0.0, 0.0),
                center1=vec3(0.0, 2.0, 0.0),
                time0=0.0,
                time1=1.0,
                radius=0.5,
            )
            result[None] = sphere_center(sphere, 0.25)

        test_kernel()
        assert abs(result[None][1] - 0.5) < 1e-12

    def test_ray_time_selects_position(self):
        """Test a ray at time 1 hits the moved sphere but misses it at time 0."""
        from pathtracer.core.ray import Ray
        from pathtracer.geometry.sphere import Sphere, hit_sphere, vec3

        hits = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            sphere = Sphere(
                center0=vec3(0.0, 0.0, 0.0),
                center1=vec3(0.0, 3.0, 0.0),
                time0=0.0,
                time1=1.0,
                radius=1.0,
            )
            early = Ray(origin=vec3(0.0, 3.0, 5.0), direction=vec3(0.0, 0.0, -1.0), time=0.0)
            late = Ray(origin=vec3(0.0, 3.0, 5.0), direction=vec3(0.0, 0.0, -1.0), time=1.0)
            hits[0] = hit_sphere(early, sphere, 0.001, 1000.0).hit
            hits[1] = hit_sphere(late, sphere, 0.001, 1000.0).hit

        test_kernel()
        assert hits[0] == 0
        assert hits[1] == 1


class TestSphereUV:
    """Tests for surface coordinates."""

    def test_kernel_uv_matches_host(self):
        from pathtracer.geometry.sphere import get_sphere_uv, sphere_uv_host, vec3

        normals = [(1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, -1.0), (-1.0, 0.0, 0.0)]
        result = ti.Vector.field(2, dtype=ti.f64, shape=len(normals))
        inputs = ti.Vector.field(3, dtype=ti.f64, shape=len(normals))
        for i, n in enumerate(normals):
            inputs[i] = n

        @ti.kernel
        def test_kernel():
            for i in range(len(normals)):
                u, v = get_sphere_uv(inputs[i])
                result[i] = ti.Vector([u, v])

        test_kernel()
        for i, n in enumerate(normals):
            u, v = sphere_uv_host(n)
            assert abs(result[i][0] - u) < 1e-12
            assert abs(result[i][1] - v) < 1e-12

    def test_known_uv_values(self):
        from pathtracer.geometry.sphere import sphere_uv_host

        assert sphere_uv_host((1.0, 0.0, 0.0)) == (0.5, 0.5)
        u, v = sphere_uv_host((0.0, 1.0, 0.0))
        assert abs(v - 1.0) < 1e-12
        u, v = sphere_uv_host((0.0, -1.0, 0.0))
        assert abs(v) < 1e-12
        u, v = sphere_uv_host((0.0, 0.0, 1.0))
        assert abs(u - 0.25) < 1e-12
        assert math.isclose(sphere_uv_host((-1.0, 0.0, 0.0))[1], 0.5)


class TestSphereBoundingBox:
    """Tests for host-side bounding boxes."""

    def test_static_box(self):
        from pathtracer.geometry.sphere import sphere_bounding_box

        box = sphere_bounding_box((1, 2, 3), (1, 2, 3), 0.0, 1.0, 0.5, 0.0, 1.0)
        np.testing.assert_allclose(box.minimum, [0.5, 1.5, 2.5])
        np.testing.assert_allclose(box.maximum, [1.5, 2.5, 3.5])

    def test_moving_box_is_union_of_end_boxes(self):
        from pathtracer.geometry.sphere import sphere_bounding_box

        box = sphere_bounding_box((0, 0, 0), (0, 2, 0), 0.0, 1.0, 1.0, 0.0, 1.0)
        np.testing.assert_allclose(box.minimum, [-1.0, -1.0, -1.0])
        np.testing.assert_allclose(box.maximum, [1.0, 3.0, 1.0])

    def test_moving_box_over_sub_interval(self):
        from pathtracer.geometry.sphere import sphere_bounding_box

        box = sphere_bounding_box((0, 0, 0), (0, 2, 0), 0.0, 1.0, 1.0, 0.0, 0.5)
        np.testing.assert_allclose(box.maximum, [1.0, 2.0, 1.0])
