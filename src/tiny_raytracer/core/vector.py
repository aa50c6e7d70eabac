"""Vector utilities for Whitted-style ray tracing.

This module provides the vector helpers shared by the geometry and shading
code: mirror reflection, Snell refraction and the surface offset used to
start secondary rays. All operations are Taichi functions on single-precision
``vec3`` values and run inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tiny_raytracer.core.vector import reflect, refract, vec3
    >>> # Use within a Taichi kernel:
    >>> # mirrored = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Offset applied along the normal when spawning shadow and secondary rays
SURFACE_EPSILON = 1e-3


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The direction to reflect.
        normal: The surface normal (should be normalized). Its sign does not
            affect the result.

    Returns:
        ``incident - 2 * dot(incident, normal) * normal``.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, n_incoming: ti.f32, n_outgoing: ti.f32) -> vec3:
    """Refract an incident vector through a surface using Snell's law.

    A negative cosine means the ray travels along the normal, i.e. it is
    leaving the volume the normal points out of. In that case the normal is
    flipped and the two indices are swapped, so a single outward normal
    serves for both entering and exiting rays.

    Args:
        incident: The incoming direction (should be normalized).
        normal: The outward surface normal (should be normalized).
        n_incoming: Index of refraction on the outward side of the surface.
        n_outgoing: Index of refraction on the inward side of the surface.

    Returns:
        The transmitted direction, or the negated mirror reflection of
        ``incident`` when total internal reflection occurs.
    """
    cos_i = -tm.dot(incident, normal)
    n = normal
    ni = n_incoming
    nr = n_outgoing
    if cos_i < 0.0:
        cos_i = -cos_i
        n = -normal
        ni = n_outgoing
        nr = n_incoming

    eta = ni / nr
    cos_r_sq = 1.0 - eta * eta * (1.0 - cos_i * cos_i)

    # Total internal reflection
    result = -reflect(incident, n)
    if cos_r_sq >= 0.0:
        result = incident * eta + n * (eta * cos_i - ti.sqrt(cos_r_sq))
    return result


@ti.func
def offset_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Push a surface point off the surface on the side ``direction`` leaves by.

    Args:
        point: The intersection point.
        normal: The surface normal at the point.
        direction: The direction the new ray will travel.

    Returns:
        ``point`` moved by SURFACE_EPSILON along ``normal`` or ``-normal``.
    """
    offset_dir = normal
    if tm.dot(direction, normal) < 0.0:
        offset_dir = -normal
    return point + SURFACE_EPSILON * offset_dir


@ti.func
def max_component(v: vec3) -> ti.f32:
    return tm.max(v.x, tm.max(v.y, v.z))
