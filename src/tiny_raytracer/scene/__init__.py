"""Scene module: object table, lights and the Scene container.

Components:
    intersection: Tagged-variant object storage and the linear-scan test
    lights: Point lights and their storage
    manager: Scene container with the push/query/render API
    demo: Demo scene composition

Scene data lives in Taichi fields (Structure of Arrays), so these modules
must be imported after ti.init().
"""

from .intersection import (
    MAX_OBJECTS,
    ObjectKind,
    add_checkerboard,
    add_sphere,
    clear_objects,
    get_object_count,
    ray_intersect,
    test_intersect,
)
from .lights import MAX_LIGHTS, Light, add_light, clear_lights, get_light_count

# Note: manager and demo are NOT imported here to avoid circular imports
# (the shading core imports the storage modules above). Use:
#   from tiny_raytracer.scene.manager import Scene

__all__ = [
    "ObjectKind",
    "add_sphere",
    "add_checkerboard",
    "clear_objects",
    "get_object_count",
    "ray_intersect",
    "test_intersect",
    "MAX_OBJECTS",
    "Light",
    "add_light",
    "clear_lights",
    "get_light_count",
    "MAX_LIGHTS",
]
