"""Core rendering module.

Components:
    vector: Reflection, refraction and ray-offset helpers on vec3
    shading: Whitted-style recursive cast_ray with hard shadows
    framebuffer: Row-major float framebuffer and PNG encoding
    render: Primary-ray generation and the pixel-parallel render kernel

All compute-intensive operations use Taichi kernels.
"""

from .vector import SURFACE_EPSILON, max_component, offset_origin, reflect, refract, vec3

# Note: shading and render are NOT imported here; they own Taichi fields and
# pull in the scene storage. Import them directly once Taichi is initialized:
#   from tiny_raytracer.core.render import render

__all__ = [
    "vec3",
    "reflect",
    "refract",
    "offset_origin",
    "max_component",
    "SURFACE_EPSILON",
]
