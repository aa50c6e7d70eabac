"""Taichi-based Whitted-style ray tracer.

This package renders scenes of spheres and checkerboards lit by point lights
using recursive ray tracing, with support for:
- Diffuse and specular local shading with hard shadows
- Mirror reflection and refraction with a bounded recursion depth
- Pixel-parallel rendering with deterministic output

Subpackages:
    core: Vector utilities, recursive shading, framebuffer and render driver
    geometry: Shape primitives and intersection algorithms
    materials: Optional-component material model and GPU registry
    scene: Object table, lights and the Scene container

Modules that own Taichi fields must be imported after ``ti.init()``.
"""

__version__ = "0.1.0"
