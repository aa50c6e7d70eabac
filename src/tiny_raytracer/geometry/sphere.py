"""Sphere primitive with ray-sphere intersection.

This module provides the IntersectionInfo record shared by all primitives,
the Sphere dataclass and its intersection function.

The intersection projects the sphere center onto the normalized ray and
measures the perpendicular distance from the center to the ray's line. When
that distance is within the radius, the chord gives a near and a far root;
the near root is preferred and the far root is used when the ray starts
inside the sphere.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tiny_raytracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -16), radius=2.0, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class IntersectionInfo:
    """Record of a ray-object intersection.

    Attributes:
        hit: Whether the ray intersected the object (1 if hit, 0 if miss).
        dist: Distance along the normalized ray to the hit point (>= 0).
            Only valid if hit == 1.
        point: The world-space hit point. Only valid if hit == 1.
        normal: Unit-length outward surface normal at the hit point.
            Only valid if hit == 1.
        material_id: The resolved material of the surface at the hit point.
            Only valid if hit == 1. -1 for misses.
    """

    hit: ti.i32
    dist: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


@ti.dataclass
class Sphere:
    """A sphere defined by center point, radius and material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
        material_id: The material of the whole surface.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.func
def make_miss() -> IntersectionInfo:
    """Create an IntersectionInfo indicating no intersection."""
    return IntersectionInfo(
        hit=0,
        dist=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )


@ti.func
def hit_sphere(ray_origin: vec3, ray_direction: vec3, sphere: Sphere) -> IntersectionInfo:
    """Find the nearest forward intersection of a ray with a sphere.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        sphere: The sphere to test intersection against.

    Returns:
        An IntersectionInfo; check the hit field to determine if an
        intersection occurred. The normal always points away from the
        center, even for rays starting inside the sphere.
    """
    dir_1 = tm.normalize(ray_direction)
    radius_sq = sphere.radius * sphere.radius

    to_center = sphere.center - ray_origin
    dir_len = tm.dot(to_center, dir_1)
    dist_to_line = tm.dot(to_center, to_center) - dir_len * dir_len

    result = make_miss()

    if dist_to_line <= radius_sq:
        segment_len = ti.sqrt(radius_sq - dist_to_line)
        near = dir_len - segment_len
        far = dir_len + segment_len

        # Origin inside the sphere: the near root is behind the ray
        selected = near
        if near < 0.0:
            selected = far

        if selected >= 0.0:
            hit_point = ray_origin + dir_1 * selected
            result = IntersectionInfo(
                hit=1,
                dist=selected,
                point=hit_point,
                normal=tm.normalize(hit_point - sphere.center),
                material_id=sphere.material_id,
            )

    return result
