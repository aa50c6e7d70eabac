"""Geometry module for shape primitives.

Components:
    sphere: IntersectionInfo record and ray-sphere intersection
    checkerboard: Finite oblique checker plane with alternating materials

All intersection routines are Taichi functions (@ti.func) and follow the
pattern:
    info = hit_shape(ray_origin, ray_direction, shape)
"""

from .checkerboard import Checkerboard, hit_checkerboard
from .sphere import IntersectionInfo, Sphere, hit_sphere, make_miss

__all__ = [
    "IntersectionInfo",
    "make_miss",
    "Sphere",
    "hit_sphere",
    "Checkerboard",
    "hit_checkerboard",
]
