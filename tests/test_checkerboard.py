"""Unit tests for checkerboard intersection.

Tests cover:
- Hits on the board and cell parity
- Rays pointing away from the plane
- Hits outside the finite board
- Rays parallel to the plane
- Rays from the back side of the board
"""

import pytest
import taichi as ti

EVEN = 7
ODD = 8


def _run_hit_board(origin, direction):
    from tiny_raytracer.geometry.checkerboard import Checkerboard, hit_checkerboard, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    dist = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    mat = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(ox: ti.f32, oy: ti.f32, oz: ti.f32, dx: ti.f32, dy: ti.f32, dz: ti.f32):
        # Floor at y=-4 spanning x in [-10, 10] and z in [-30, -10]
        board = Checkerboard(
            origin=vec3(-10.0, -4.0, -30.0),
            cell_u=vec3(0.0, 0.0, 2.0),
            cell_v=vec3(2.0, 0.0, 0.0),
            width=10,
            height=10,
            material_even=EVEN,
            material_odd=ODD,
        )
        record = hit_checkerboard(vec3(ox, oy, oz), vec3(dx, dy, dz), board)
        hit[None] = record.hit
        dist[None] = record.dist
        point[None] = record.point
        normal[None] = record.normal
        mat[None] = record.material_id

    test_kernel(*origin, *direction)
    return hit[None], dist[None], point[None], normal[None], mat[None]


class TestCheckerboardIntersection:
    """Tests for ray-checkerboard intersection."""

    def test_hit_first_cell(self):
        """Test a straight-down ray landing in cell (0, 0)."""
        hit, dist, point, normal, mat = _run_hit_board((-9.0, 0.0, -29.0), (0.0, -1.0, 0.0))
        assert hit == 1
        assert abs(dist - 4.0) < 1e-5
        assert abs(point[0] + 9.0) < 1e-5
        assert abs(point[1] + 4.0) < 1e-5
        assert abs(point[2] + 29.0) < 1e-5
        # cross(cell_u, cell_v) points up
        assert abs(normal[0]) < 1e-6
        assert abs(normal[1] - 1.0) < 1e-6
        assert abs(normal[2]) < 1e-6
        assert mat == EVEN

    @pytest.mark.parametrize(
        "x,z,expected",
        [
            (-9.0, -27.0, ODD),  # cell (1, 0)
            (-7.0, -29.0, ODD),  # cell (0, 1)
            (-7.0, -27.0, EVEN),  # cell (1, 1)
            (9.0, -11.0, EVEN),  # cell (9, 9)
        ],
    )
    def test_cell_parity(self, x, z, expected):
        """Test that adjacent cells alternate materials."""
        hit, _, _, _, mat = _run_hit_board((x, 0.0, z), (0.0, -1.0, 0.0))
        assert hit == 1
        assert mat == expected

    def test_ray_pointing_away(self):
        """Test that a ray moving away from the plane misses."""
        hit, _, _, _, mat = _run_hit_board((-9.0, 0.0, -29.0), (0.0, 1.0, 0.0))
        assert hit == 0
        assert mat == -1

    def test_outside_board_bounds(self):
        """Test that a hit on the plane beyond the board is a miss."""
        hit, _, _, _, _ = _run_hit_board((15.0, 0.0, -29.0), (0.0, -1.0, 0.0))
        assert hit == 0

    def test_parallel_ray(self):
        """Test that a ray parallel to the plane misses."""
        hit, _, _, _, _ = _run_hit_board((-9.0, 0.0, -29.0), (1.0, 0.0, 0.0))
        assert hit == 0

    def test_hit_from_below(self):
        """Test that the board is hit from its back side with the same normal."""
        hit, dist, _, normal, mat = _run_hit_board((-9.0, -8.0, -29.0), (0.0, 1.0, 0.0))
        assert hit == 1
        assert abs(dist - 4.0) < 1e-5
        assert abs(normal[1] - 1.0) < 1e-6
        assert mat == EVEN

    def test_oblique_ray_distance(self):
        """Test that the distance is measured along the normalized ray."""
        hit, dist, point, _, _ = _run_hit_board((-9.0, 0.0, -25.0), (0.0, -4.0, -3.0))
        assert hit == 1
        # 3-4-5 triangle: drop of 4 along a ray of slope 4/5
        assert abs(dist - 5.0) < 1e-4
        assert abs(point[1] + 4.0) < 1e-4
        assert abs(point[2] + 28.0) < 1e-4
