"""Checkerboard primitive: a finite plane tiled with alternating materials.

A checkerboard is defined by:
- origin: A corner of the board
- cell_u: Edge vector of one cell along the first grid direction
- cell_v: Edge vector of one cell along the second grid direction
- width, height: Number of cells along cell_u and cell_v

The two cell vectors need not be orthogonal; they span an oblique grid on
the plane through origin whose normal is normalize(cross(cell_u, cell_v)).
Cells whose integer coordinates sum to an even number use the first
material, the others use the second.

Ray-board intersection follows the parametric plane test:
1. Solve the ray/plane equation for the distance to the plane
2. Express the hit point in cell coordinates using the dual basis
3. Reject points outside [0, width] x [0, height]

The plane distance is solved with the board-to-origin offset, which yields
the negated forward distance: a hit exists only when that local value is
negative, and the reported distance is its negation.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tiny_raytracer.geometry.checkerboard import Checkerboard, hit_checkerboard
    >>> # Floor at y=-4 made of 10 x 10 cells of size 2
    >>> board = Checkerboard(
    ...     origin=ti.math.vec3(-10, -4, -30),
    ...     cell_u=ti.math.vec3(0, 0, 2),
    ...     cell_v=ti.math.vec3(2, 0, 0),
    ...     width=10,
    ...     height=10,
    ...     material_even=0,
    ...     material_odd=1,
    ... )
    >>> # Use hit_checkerboard within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from .sphere import IntersectionInfo, make_miss

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Checkerboard:
    """A finite checkerboard defined by an origin, two cell vectors and a size.

    Attributes:
        origin: A corner point of the board (vec3).
        cell_u: Edge vector of a single cell along the first direction (vec3).
        cell_v: Edge vector of a single cell along the second direction (vec3).
        width: Number of cells along cell_u.
        height: Number of cells along cell_v.
        material_even: Material of cells whose coordinates sum to an even number.
        material_odd: Material of the remaining cells.
    """

    origin: vec3
    cell_u: vec3
    cell_v: vec3
    width: ti.i32
    height: ti.i32
    material_even: ti.i32
    material_odd: ti.i32


@ti.func
def _compute_board_frame(board: Checkerboard):
    """Compute the plane normal and the dual basis of the cell vectors.

    The dual vectors w_u and w_v satisfy:
        dot(w_u, cell_u) = 1, dot(w_u, cell_v) = 0
        dot(w_v, cell_u) = 0, dot(w_v, cell_v) = 1

    so that for a point P on the plane, P = origin + a * cell_u + b * cell_v
    with a = dot(w_u, P - origin) and b = dot(w_v, P - origin).

    Args:
        board: The checkerboard to compute the frame for.

    Returns:
        Tuple of (normal, w_u, w_v).
    """
    n = tm.cross(board.cell_u, board.cell_v)
    normal = tm.normalize(n)
    n_dot_n = tm.dot(n, n)
    w_u = tm.cross(board.cell_v, n) / n_dot_n
    w_v = tm.cross(n, board.cell_u) / n_dot_n
    return normal, w_u, w_v


@ti.func
def hit_checkerboard(ray_origin: vec3, ray_direction: vec3, board: Checkerboard) -> IntersectionInfo:
    """Find the intersection of a ray with a checkerboard.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        board: The checkerboard to test intersection against.

    Returns:
        An IntersectionInfo; check the hit field to determine if an
        intersection occurred. The material is resolved from the parity of
        the cell that was hit.
    """
    normal, w_u, w_v = _compute_board_frame(board)
    dir_1 = tm.normalize(ray_direction)
    denom = tm.dot(dir_1, normal)

    result = make_miss()

    # Ray not parallel to the plane
    if ti.abs(denom) > 1e-8:
        # Negated distance to the plane; the board is ahead when negative
        local = tm.dot(ray_origin - board.origin, normal) / denom

        if local < 0.0:
            dist = -local
            hit_point = ray_origin + dir_1 * dist

            offset = hit_point - board.origin
            a = tm.dot(w_u, offset)
            b = tm.dot(w_v, offset)

            inside = (
                a >= 0.0
                and b >= 0.0
                and a <= ti.cast(board.width, ti.f32)
                and b <= ti.cast(board.height, ti.f32)
            )
            if inside:
                cell_sum = ti.cast(a, ti.i32) + ti.cast(b, ti.i32)
                material_id = board.material_odd
                if cell_sum % 2 == 0:
                    material_id = board.material_even

                result = IntersectionInfo(
                    hit=1,
                    dist=dist,
                    point=hit_point,
                    normal=normal,
                    material_id=material_id,
                )

    return result
