"""Unit tests for the render driver.

Tests cover:
- Primary ray directions
- Argument validation
- Empty scene renders the background everywhere
- Output independent of the worker count
- Agreement between the kernel and single-ray queries
"""

import math

import numpy as np
import pytest
import taichi as ti

BACKGROUND = (0.2, 0.7, 0.8)


def _small_scene():
    from tiny_raytracer.materials.material import Material
    from tiny_raytracer.scene.manager import Scene

    scene = Scene()
    scene.add_sphere(
        (0.0, 0.0, -16.0),
        3.0,
        Material.color((0.4, 0.4, 0.3), 0.6).with_specular(50.0, 0.3).with_reflect(0.1),
    )
    scene.add_sphere(
        (-1.0, -1.5, -12.0),
        2.0,
        Material.color((0.6, 0.7, 0.8), 0.0).with_specular(125.0, 0.5).with_reflect(0.1).with_refract(1.5, 0.8),
    )
    scene.add_checkerboard(
        (-10.0, -4.0, -30.0),
        (0.0, 0.0, 2.0),
        (2.0, 0.0, 0.0),
        (10, 10),
        (Material.color((0.3, 0.3, 0.3), 1.0), Material.color((0.3, 0.2, 0.1), 1.0)),
    )
    scene.add_light((-20.0, 20.0, 20.0), 1.5)
    scene.add_light((30.0, 50.0, -25.0), 1.8)
    return scene


class TestPrimaryDirection:
    """Tests for camera ray generation."""

    def test_pixel_centers(self):
        """Test directions through the corner and center pixels."""
        from tiny_raytracer.core.render import primary_direction

        result = ti.Vector.field(3, dtype=ti.f32, shape=3)
        fov = math.pi / 2.0

        @ti.kernel
        def test_kernel(fov_half_tan: ti.f32):
            result[0] = primary_direction(0, 0, 4, 2, fov_half_tan)
            result[1] = primary_direction(1, 3, 4, 2, fov_half_tan)
            result[2] = primary_direction(0, 1, 4, 2, fov_half_tan)

        test_kernel(math.tan(fov / 2.0))
        # tan(45 deg) = 1, so the image plane is at z = -height / 2
        top_left = result[0]
        assert top_left[0] == pytest.approx(-1.5)
        assert top_left[1] == pytest.approx(0.5)
        assert top_left[2] == pytest.approx(-1.0)
        bottom_right = result[1]
        assert bottom_right[0] == pytest.approx(1.5)
        assert bottom_right[1] == pytest.approx(-0.5)
        inner = result[2]
        assert inner[0] == pytest.approx(-0.5)

    def test_default_workers_positive(self):
        from tiny_raytracer.core.render import default_workers

        assert default_workers() >= 1


class TestRenderValidation:
    """Tests for argument checks in render()."""

    def test_size_mismatch(self):
        """Test that the framebuffer must match the requested size."""
        from tiny_raytracer.core.framebuffer import Framebuffer
        from tiny_raytracer.core.render import render

        with pytest.raises(ValueError, match="Framebuffer is 4x3"):
            render(Framebuffer(4, 3), 8, 6, math.pi / 3)

    @pytest.mark.parametrize("fov", [0.0, -0.5, math.pi, 4.0])
    def test_invalid_fov(self, fov):
        """Test that the field of view must lie in (0, pi)."""
        from tiny_raytracer.core.framebuffer import Framebuffer
        from tiny_raytracer.core.render import render

        with pytest.raises(ValueError, match="Field of view"):
            render(Framebuffer(4, 3), 4, 3, fov)

    def test_invalid_depth(self):
        from tiny_raytracer.core.framebuffer import Framebuffer
        from tiny_raytracer.core.render import render

        with pytest.raises(ValueError, match="Depth budget"):
            render(Framebuffer(4, 3), 4, 3, math.pi / 3, depth_budget=-1)

    def test_invalid_workers(self):
        from tiny_raytracer.core.framebuffer import Framebuffer
        from tiny_raytracer.core.render import render

        with pytest.raises(ValueError, match="Worker count"):
            render(Framebuffer(4, 3), 4, 3, math.pi / 3, workers=0)

    def test_depth_above_maximum(self):
        from tiny_raytracer.core.framebuffer import Framebuffer
        from tiny_raytracer.core.render import render
        from tiny_raytracer.core.shading import MAX_DEPTH_BUDGET

        with pytest.raises(ValueError, match="Depth budget"):
            render(Framebuffer(4, 3), 4, 3, math.pi / 3, depth_budget=MAX_DEPTH_BUDGET + 1)

    def test_workers_above_stack_count(self):
        """Test that more workers than frame stacks raises ValueError."""
        from tiny_raytracer.core.framebuffer import Framebuffer
        from tiny_raytracer.core.render import render
        from tiny_raytracer.core.shading import MAX_RAY_STACKS

        with pytest.raises(ValueError, match="Worker count"):
            render(Framebuffer(4, 3), 4, 3, math.pi / 3, workers=MAX_RAY_STACKS + 1)

    def test_default_workers_within_stack_count(self):
        from tiny_raytracer.core.render import default_workers
        from tiny_raytracer.core.shading import MAX_RAY_STACKS

        assert 1 <= default_workers() <= MAX_RAY_STACKS


class TestRender:
    """Tests for full-image rendering."""

    def test_empty_scene_is_background(self):
        """Test that every pixel of an empty scene is the background."""
        from tiny_raytracer.core.framebuffer import Framebuffer
        from tiny_raytracer.core.render import render

        fb = Framebuffer(8, 6)
        result = render(fb, 8, 6, math.pi / 3)
        assert result is fb

        image = fb.to_numpy()
        expected = np.broadcast_to(np.array(BACKGROUND, dtype=np.float32), image.shape)
        np.testing.assert_allclose(image, expected, atol=1e-6)

    @pytest.mark.parametrize("workers", [2, 3, 4, 7, 1000])
    def test_worker_count_does_not_change_image(self, workers):
        """Test that any worker count reproduces the single-worker image exactly.

        1000 workers is more than the 768 pixels and is clamped to one per pixel.
        """
        from tiny_raytracer.core.framebuffer import Framebuffer

        scene = _small_scene()
        single = Framebuffer(32, 24)
        multi = Framebuffer(32, 24)
        scene.render(single, 32, 24, math.pi / 3, workers=1)
        scene.render(multi, 32, 24, math.pi / 3, workers=workers)

        assert np.array_equal(single.to_numpy(), multi.to_numpy())

    def test_depth_budgets_do_not_leak_between_renders(self):
        """Test that rendering at another budget leaves no state behind."""
        from tiny_raytracer.core.framebuffer import Framebuffer

        scene = _small_scene()
        first = Framebuffer(16, 12)
        deep = Framebuffer(16, 12)
        again = Framebuffer(16, 12)
        scene.render(first, 16, 12, math.pi / 3, depth_budget=1, workers=3)
        scene.render(deep, 16, 12, math.pi / 3, depth_budget=16, workers=3)
        scene.render(again, 16, 12, math.pi / 3, depth_budget=1, workers=3)

        assert np.array_equal(first.to_numpy(), again.to_numpy())
        assert not np.array_equal(first.to_numpy(), deep.to_numpy())

    def test_rendered_values_are_bounded(self):
        """Test that compressed colors stay within [0, 1] with no NaNs."""
        from tiny_raytracer.core.framebuffer import Framebuffer

        scene = _small_scene()
        fb = Framebuffer(32, 24)
        scene.render(fb, 32, 24, math.pi / 3)

        image = fb.to_numpy()
        assert not np.isnan(image).any()
        assert image.min() >= 0.0
        assert image.max() <= 1.0 + 1e-6

    def test_center_pixel_matches_single_ray(self):
        """Test that the kernel agrees with a single ray along the same direction."""
        from tiny_raytracer.core.framebuffer import Framebuffer

        scene = _small_scene()
        width, height = 8, 6
        fov = math.pi / 3
        fb = Framebuffer(width, height)
        scene.render(fb, width, height, fov, workers=2)

        row, col = 3, 4
        direction = (
            (col + 0.5) - width / 2.0,
            -(row + 0.5) + height / 2.0,
            -height / (2.0 * math.tan(fov / 2.0)),
        )
        expected = scene.cast_ray((0.0, 0.0, 0.0), direction)
        assert fb.get_pixel(row, col) == pytest.approx(expected, abs=1e-5)

    def test_depth_zero_renders_background(self):
        """Test that a zero budget skips all intersection work."""
        from tiny_raytracer.core.framebuffer import Framebuffer

        scene = _small_scene()
        fb = Framebuffer(8, 6)
        scene.render(fb, 8, 6, math.pi / 3, depth_budget=0)

        image = fb.to_numpy()
        expected = np.broadcast_to(np.array(BACKGROUND, dtype=np.float32), image.shape)
        np.testing.assert_allclose(image, expected, atol=1e-6)
