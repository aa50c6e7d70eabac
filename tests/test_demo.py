"""Tests for the demo scene and the example render script.

Tests cover:
- Scene composition (objects, lights, materials)
- Board placement under the spheres
- Small end-to-end renders to PNG
"""

import importlib.util
import math
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

EXAMPLE_SCRIPT = Path(__file__).resolve().parent.parent / "examples" / "render_scene.py"


@pytest.fixture
def demo_scene():
    from tiny_raytracer.scene.demo import create_demo_scene

    scene = create_demo_scene()
    yield scene
    scene.clear()


class TestDemoScene:
    """Tests for create_demo_scene()."""

    def test_counts(self, demo_scene):
        """Test four spheres, one board and three lights."""
        from tiny_raytracer.scene.manager import CheckerboardInfo, SphereInfo

        assert demo_scene.object_count == 5
        assert demo_scene.light_count == 3
        assert sum(isinstance(o, SphereInfo) for o in demo_scene.objects) == 4
        assert sum(isinstance(o, CheckerboardInfo) for o in demo_scene.objects) == 1
        # Four sphere materials plus two board tiles
        assert len(demo_scene.materials) == 6

    def test_without_board(self):
        from tiny_raytracer.scene.demo import create_demo_scene

        scene = create_demo_scene(include_board=False)
        assert scene.object_count == 4

    def test_glass_refracts(self):
        from tiny_raytracer.scene.demo import GLASS

        assert GLASS.refract is not None
        assert GLASS.refract.index == pytest.approx(1.5)

    def test_floor_below_spheres(self, demo_scene):
        """Test that a downward ray beside the spheres lands on the floor."""
        from tiny_raytracer.scene.demo import BOARD_DARK, BOARD_LIGHT

        hit = demo_scene.test_intersect((-8.0, 0.0, -25.0), (0.0, -1.0, 0.0))
        assert hit is not None
        assert hit.point[1] == pytest.approx(-4.0, abs=1e-4)
        assert hit.normal == pytest.approx((0.0, 1.0, 0.0), abs=1e-5)
        assert hit.material in (BOARD_LIGHT, BOARD_DARK)

    def test_small_render(self, demo_scene, tmp_path):
        """Test a low-resolution render of the full scene."""
        from tiny_raytracer.core.framebuffer import Framebuffer

        fb = Framebuffer(64, 48)
        demo_scene.render(fb, 64, 48, math.pi / 3)
        image = fb.to_numpy()
        assert not np.isnan(image).any()
        assert image.min() >= 0.0
        assert image.max() <= 1.0 + 1e-6
        # Not a flat background
        assert np.unique(fb.to_uint8().reshape(-1, 3), axis=0).shape[0] > 10

        target = tmp_path / "demo.png"
        fb.write_png(str(target))
        with Image.open(target) as img:
            assert img.size == (64, 48)


class TestRenderScript:
    """Tests for the example render script."""

    def _load_script(self):
        spec = importlib.util.spec_from_file_location("render_scene", EXAMPLE_SCRIPT)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module

    def test_render_demo_writes_png(self, tmp_path):
        """Test that render_demo() writes an image of the requested size."""
        module = self._load_script()
        output = tmp_path / "script.png"

        result = module.render_demo(
            width=32,
            height=24,
            fov_degrees=60.0,
            depth=2,
            workers=2,
            output_path=str(output),
            quiet=True,
        )

        assert result == output
        with Image.open(output) as img:
            assert img.size == (32, 24)
            assert img.mode == "RGB"
