"""Scene-level object storage and linear-scan intersection testing.

Objects are tagged variants. A single object table records, in insertion
order, the kind of each object and its slot in the storage for that kind.
Each kind keeps its parameters in Taichi fields (Structure of Arrays).
``ray_intersect`` dispatches on the kind; ``test_intersect`` scans every
object and keeps the nearest hit.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tiny_raytracer.scene.intersection import (
    ...     add_sphere, add_checkerboard, clear_objects, test_intersect, vec3
    ... )
    >>> clear_objects()
    >>> add_sphere(vec3(0, 0, -16), 2.0, material_id=0)
    >>> add_checkerboard(vec3(-10, -4, -30), vec3(0, 0, 2), vec3(2, 0, 0), (10, 10), 1, 2)
    >>> # Use test_intersect within a Taichi kernel
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from tiny_raytracer.geometry.checkerboard import Checkerboard, hit_checkerboard
from tiny_raytracer.geometry.sphere import IntersectionInfo, Sphere, hit_sphere, make_miss

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


class ObjectKind(IntEnum):
    """Variant tag of an object in the object table."""

    SPHERE = 0
    CHECKERBOARD = 1


# Maximum number of objects supported in the scene (per kind and in total)
MAX_OBJECTS = 1024

# Object table: insertion order, variant tag and per-variant slot
object_kinds = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_slots = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())

# Sphere storage
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Checkerboard storage
board_origins = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
board_cell_u = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
board_cell_v = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
board_dims = ti.Vector.field(2, dtype=ti.i32, shape=MAX_OBJECTS)
board_material_ids = ti.Vector.field(2, dtype=ti.i32, shape=MAX_OBJECTS)
num_boards = ti.field(dtype=ti.i32, shape=())


def clear_objects() -> None:
    """Clear all objects from the scene.

    Resets the counts to zero. The actual field data is not cleared but
    will be overwritten when new objects are added.
    """
    num_objects[None] = 0
    num_spheres[None] = 0
    num_boards[None] = 0


def _append_object(kind: ObjectKind, slot: int) -> int:
    idx = num_objects[None]
    if idx >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    object_kinds[idx] = int(kind)
    object_slots[idx] = slot
    num_objects[None] = idx + 1
    return idx


def add_sphere(center: vec3, radius: float, material_id: int) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (should be positive).
        material_id: The material of the sphere's surface.

    Returns:
        The index of the added object in the object table.

    Raises:
        RuntimeError: If the maximum number of objects is exceeded.
    """
    slot = num_spheres[None]
    if slot >= MAX_OBJECTS or num_objects[None] >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    sphere_centers[slot] = center
    sphere_radii[slot] = radius
    sphere_material_ids[slot] = material_id
    num_spheres[None] = slot + 1
    return _append_object(ObjectKind.SPHERE, slot)


def add_checkerboard(
    origin: vec3,
    cell_u: vec3,
    cell_v: vec3,
    dims: tuple[int, int],
    material_even: int,
    material_odd: int,
) -> int:
    """Add a checkerboard to the scene.

    The board covers the parallelogram from origin to
    origin + dims[0] * cell_u + dims[1] * cell_v.

    Args:
        origin: A corner of the board.
        cell_u: Edge vector of one cell along the first direction.
        cell_v: Edge vector of one cell along the second direction.
        dims: Number of cells (width, height) along cell_u and cell_v.
        material_even: Material of cells whose coordinates sum to an even number.
        material_odd: Material of the other cells.

    Returns:
        The index of the added object in the object table.

    Raises:
        RuntimeError: If the maximum number of objects is exceeded.
    """
    slot = num_boards[None]
    if slot >= MAX_OBJECTS or num_objects[None] >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    board_origins[slot] = origin
    board_cell_u[slot] = cell_u
    board_cell_v[slot] = cell_v
    board_dims[slot] = [dims[0], dims[1]]
    board_material_ids[slot] = [material_even, material_odd]
    num_boards[None] = slot + 1
    return _append_object(ObjectKind.CHECKERBOARD, slot)


def get_object_count() -> int:
    """Get the number of objects in the scene."""
    return int(num_objects[None])


@ti.func
def ray_intersect(object_index: ti.i32, ray_origin: vec3, ray_direction: vec3) -> IntersectionInfo:
    """Intersect a ray with one object of the object table.

    Args:
        object_index: Position of the object in the object table.
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).

    Returns:
        The nearest forward intersection with the object, or a miss record.
    """
    kind = object_kinds[object_index]
    slot = object_slots[object_index]
    result = make_miss()

    if kind == ti.static(ObjectKind.SPHERE.value):
        sphere = Sphere(
            center=sphere_centers[slot],
            radius=sphere_radii[slot],
            material_id=sphere_material_ids[slot],
        )
        result = hit_sphere(ray_origin, ray_direction, sphere)

    elif kind == ti.static(ObjectKind.CHECKERBOARD.value):
        dims = board_dims[slot]
        materials = board_material_ids[slot]
        board = Checkerboard(
            origin=board_origins[slot],
            cell_u=board_cell_u[slot],
            cell_v=board_cell_v[slot],
            width=dims[0],
            height=dims[1],
            material_even=materials[0],
            material_odd=materials[1],
        )
        result = hit_checkerboard(ray_origin, ray_direction, board)

    return result


@ti.func
def test_intersect(ray_origin: vec3, ray_direction: vec3) -> IntersectionInfo:
    """Test a ray against every object in the scene.

    Objects are scanned in insertion order and the hit with the smallest
    distance wins. On equal distances the earlier object is kept.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).

    Returns:
        The nearest intersection, or a miss record if nothing was hit.
    """
    nearest = make_miss()

    for i in range(num_objects[None]):
        rec = ray_intersect(i, ray_origin, ray_direction)
        if rec.hit == 1 and (nearest.hit == 0 or rec.dist < nearest.dist):
            nearest = rec

    return nearest
