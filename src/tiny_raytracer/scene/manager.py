"""Scene container coordinating objects, materials and lights.

This module provides the high-level scene API used by setup code. A Scene
keeps Python-side descriptions of its objects and lights, registers each
distinct material once, and mirrors everything into the Taichi fields read
by the shading kernels.

The Scene maintains:
- An ordered list of objects (SphereInfo | CheckerboardInfo)
- An ordered list of point lights
- A mapping from Material values to registered material ids

The Taichi storage is global, so there is one active scene per Taichi
runtime: creating or clearing a Scene resets it. Scenes are mutated only
before rendering; render() and the probing methods never write to the
scene.

Example:
    >>> import math
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tiny_raytracer.core.framebuffer import Framebuffer
    >>> from tiny_raytracer.materials.material import Material
    >>> from tiny_raytracer.scene.lights import Light
    >>> from tiny_raytracer.scene.manager import Scene, SphereInfo
    >>> scene = Scene()
    >>> red = Material.color((0.3, 0.1, 0.1), 0.9).with_specular(10.0, 0.1)
    >>> scene.push_object(SphereInfo(center=(1.5, -0.5, -18.0), radius=3.0, material=red))
    >>> scene.push_light(Light(position=(-20.0, 20.0, 20.0), intensity=1.5))
    >>> scene.render(Framebuffer(320, 240), 320, 240, math.pi / 3)
"""

import logging
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from tiny_raytracer.core.framebuffer import Framebuffer
from tiny_raytracer.core.render import render as render_framebuffer
from tiny_raytracer.core.shading import DEFAULT_DEPTH_BUDGET, trace_ray
from tiny_raytracer.materials.material import Material, add_material, clear_materials
from tiny_raytracer.scene.intersection import (
    add_checkerboard,
    add_sphere,
    clear_objects,
    test_intersect,
)
from tiny_raytracer.scene.lights import Light, add_light, clear_lights

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class SphereInfo:
    """A sphere in the scene.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere (> 0).
        material: The material of the sphere's surface.
    """

    center: tuple[float, float, float]
    radius: float
    material: Material

    def __post_init__(self) -> None:
        if self.radius <= 0.0:
            raise ValueError(f"Sphere radius must be > 0, got {self.radius}")


@dataclass(frozen=True)
class CheckerboardInfo:
    """A finite checkerboard in the scene.

    The two cell vectors must not be parallel; this is not checked.

    Attributes:
        origin: A corner of the board.
        cell_u: Edge vector of one cell along the first direction.
        cell_v: Edge vector of one cell along the second direction.
        dims: Number of cells (width, height) along cell_u and cell_v.
        materials: Materials of cells whose coordinates sum to an even and an
            odd number, respectively.
    """

    origin: tuple[float, float, float]
    cell_u: tuple[float, float, float]
    cell_v: tuple[float, float, float]
    dims: tuple[int, int]
    materials: tuple[Material, Material]

    def __post_init__(self) -> None:
        if self.dims[0] <= 0 or self.dims[1] <= 0:
            raise ValueError(f"Checkerboard dimensions must be positive, got {self.dims}")


SceneObject = SphereInfo | CheckerboardInfo


@dataclass(frozen=True)
class Intersection:
    """Nearest intersection of a ray with the scene.

    Attributes:
        dist: Distance along the normalized ray.
        point: The hit point.
        normal: Unit outward surface normal at the hit point.
        material_id: Registered id of the resolved material.
        material: The resolved material.
    """

    dist: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    material_id: int
    material: Material


# Python-scope result storage for test_intersect()
_query_hit = ti.field(dtype=ti.i32, shape=())
_query_dist = ti.field(dtype=ti.f32, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_material_id = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _test_intersect_kernel(ox: ti.f32, oy: ti.f32, oz: ti.f32, dx: ti.f32, dy: ti.f32, dz: ti.f32):
    ti.loop_config(serialize=True)
    for _ in range(1):
        rec = test_intersect(vec3(ox, oy, oz), vec3(dx, dy, dz))
        _query_hit[None] = rec.hit
        _query_dist[None] = rec.dist
        _query_point[None] = rec.point
        _query_normal[None] = rec.normal
        _query_material_id[None] = rec.material_id


def _as_tuple(v) -> tuple[float, float, float]:
    return (float(v[0]), float(v[1]), float(v[2]))


class Scene:
    """An ordered collection of objects and point lights.

    Attributes:
        objects: Objects in insertion order.
        lights: Lights in insertion order.
        materials: Registered materials, indexed by material id.

    Example:
        >>> scene = Scene()
        >>> ivory = Material.color((0.4, 0.4, 0.3), 0.6).with_specular(50.0, 0.3)
        >>> scene.add_sphere((-3.0, 0.0, -16.0), 2.0, ivory)
        >>> scene.add_light((-20.0, 20.0, 20.0), 1.5)
        >>> color = scene.cast_ray((0.0, 0.0, 0.0), (-0.18, 0.0, -1.0))
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.objects: list[SceneObject] = []
        self.lights: list[Light] = []
        self.materials: list[Material] = []
        self._material_ids: dict[Material, int] = {}
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_objects()
        clear_lights()
        clear_materials()
        self.objects.clear()
        self.lights.clear()
        self.materials.clear()
        self._material_ids.clear()

    def clear(self) -> None:
        """Clear the entire scene (objects, lights and materials)."""
        self._clear_all()
        logger.debug("Scene cleared")

    # =========================================================================
    # Setup
    # =========================================================================

    def register_material(self, material: Material) -> int:
        """Register a material, reusing the id of an equal material.

        Args:
            material: The material to register.

        Returns:
            The material id.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
        """
        material_id = self._material_ids.get(material)
        if material_id is None:
            material_id = add_material(material)
            self._material_ids[material] = material_id
            self.materials.append(material)
        return material_id

    def push_object(self, obj: SceneObject) -> int:
        """Append an object to the scene.

        Args:
            obj: A SphereInfo or CheckerboardInfo.

        Returns:
            The index of the object in the scene.

        Raises:
            TypeError: If obj is not a supported object description.
            RuntimeError: If the maximum number of objects or materials is
                exceeded.
        """
        if isinstance(obj, SphereInfo):
            material_id = self.register_material(obj.material)
            idx = add_sphere(vec3(*obj.center), obj.radius, material_id)
        elif isinstance(obj, CheckerboardInfo):
            even_id = self.register_material(obj.materials[0])
            odd_id = self.register_material(obj.materials[1])
            idx = add_checkerboard(
                vec3(*obj.origin),
                vec3(*obj.cell_u),
                vec3(*obj.cell_v),
                obj.dims,
                even_id,
                odd_id,
            )
        else:
            raise TypeError(f"Unsupported scene object: {type(obj).__name__}")

        self.objects.append(obj)
        logger.debug("Added object %d: %r", idx, obj)
        return idx

    def push_light(self, light: Light) -> int:
        """Append a point light to the scene.

        Returns:
            The index of the light in the scene.

        Raises:
            RuntimeError: If the maximum number of lights is exceeded.
        """
        idx = add_light(light)
        self.lights.append(light)
        logger.debug("Added light %d: %r", idx, light)
        return idx

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material: Material,
    ) -> int:
        """Convenience wrapper around push_object() for a sphere."""
        return self.push_object(SphereInfo(center=center, radius=radius, material=material))

    def add_checkerboard(
        self,
        origin: tuple[float, float, float],
        cell_u: tuple[float, float, float],
        cell_v: tuple[float, float, float],
        dims: tuple[int, int],
        materials: tuple[Material, Material],
    ) -> int:
        """Convenience wrapper around push_object() for a checkerboard."""
        return self.push_object(
            CheckerboardInfo(origin=origin, cell_u=cell_u, cell_v=cell_v, dims=dims, materials=materials)
        )

    def add_light(self, position: tuple[float, float, float], intensity: float) -> int:
        """Convenience wrapper around push_light()."""
        return self.push_light(Light(position=position, intensity=intensity))

    @property
    def object_count(self) -> int:
        return len(self.objects)

    @property
    def light_count(self) -> int:
        return len(self.lights)

    # =========================================================================
    # Queries
    # =========================================================================

    def test_intersect(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
    ) -> Intersection | None:
        """Find the nearest intersection of a ray with the scene.

        Args:
            origin: Ray origin.
            direction: Ray direction (need not be normalized).

        Returns:
            The nearest Intersection, or None if the ray hits nothing.
        """
        _test_intersect_kernel(
            origin[0], origin[1], origin[2],
            direction[0], direction[1], direction[2],
        )
        if _query_hit[None] == 0:
            return None

        material_id = int(_query_material_id[None])
        return Intersection(
            dist=float(_query_dist[None]),
            point=_as_tuple(_query_point[None]),
            normal=_as_tuple(_query_normal[None]),
            material_id=material_id,
            material=self.materials[material_id],
        )

    def cast_ray(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        depth_budget: int = DEFAULT_DEPTH_BUDGET,
    ) -> tuple[float, float, float]:
        """Resolve a single ray to a color.

        Args:
            origin: Ray origin.
            direction: Ray direction (need not be normalized).
            depth_budget: Remaining recursive bounces, in [0, MAX_DEPTH_BUDGET].

        Returns:
            Tuple of (R, G, B) color values.
        """
        return trace_ray(origin, direction, depth_budget)

    def render(
        self,
        framebuffer: Framebuffer,
        width: int,
        height: int,
        fov: float,
        *,
        depth_budget: int = DEFAULT_DEPTH_BUDGET,
        workers: int | None = None,
    ) -> Framebuffer:
        """Render the scene through a pinhole camera at the origin.

        Args:
            framebuffer: Destination framebuffer of size width x height.
            width: Image width in pixels.
            height: Image height in pixels.
            fov: Vertical field of view in radians.
            depth_budget: Recursion budget for reflection and refraction.
            workers: Number of pixel chunks shaded concurrently. Defaults to
                the hardware concurrency.

        Returns:
            The framebuffer that was rendered into.
        """
        return render_framebuffer(
            framebuffer,
            width,
            height,
            fov,
            depth_budget=depth_budget,
            workers=workers,
        )

    def __repr__(self) -> str:
        return (
            f"Scene(objects={self.object_count}, lights={self.light_count}, "
            f"materials={len(self.materials)})"
        )
