"""Whitted-style shading with a bounded reflection/refraction tree.

This module implements ``cast_ray``, which resolves a ray to a color by
combining local shading at the nearest hit with traced mirror and transmitted
rays:

    - Hard shadows: one shadow ray per point light
    - Diffuse term: sum of intensity * max(0, l . n), tinted by the base color
    - Specular term: sum of intensity * max(0, reflect(l, n) . d)^exponent, white
    - Reflection and refraction: secondary rays with one less depth budget

Each material component is optional and an absent one contributes zero. The
summed color is compressed by its largest channel when that channel exceeds
1.0, which preserves hue instead of clipping channels independently.

Every hit spawns up to two secondary rays, so a ray resolves a binary tree of
at most ``depth_budget`` levels. The tree is walked depth-first with an
explicit stack of frames kept in Taichi fields. Each concurrent evaluator
owns one stack, selected by ``stack_id``. A frame is closed once both of its
children have been added to it, and then its color is compressed and added
into its parent. The depth budget is a runtime value, so a single compiled
kernel serves every budget up to MAX_DEPTH_BUDGET.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tiny_raytracer.core.shading import trace_ray
    >>> color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), depth_budget=4)
"""

import taichi as ti
import taichi.math as tm

from tiny_raytracer.core.vector import max_component, offset_origin, reflect, refract
from tiny_raytracer.materials.material import get_material
from tiny_raytracer.scene.intersection import test_intersect
from tiny_raytracer.scene.lights import light_intensities, light_positions, num_lights

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Shading Constants
# =============================================================================

# Color returned for rays that hit nothing or run out of depth budget
BACKGROUND_COLOR = (0.2, 0.7, 0.8)

# Index of refraction of the medium surrounding every object
AIR_REFRACTION_INDEX = 1.0

# Default number of recursive bounces (reflection/refraction)
DEFAULT_DEPTH_BUDGET = 4

# Largest supported depth budget (frames per stack is one more)
MAX_DEPTH_BUDGET = 16

# Number of independent frame stacks, i.e. concurrent ray evaluators
MAX_RAY_STACKS = 1024

# Frame stages
STAGE_OPEN = 0
STAGE_REFLECT = 1
STAGE_REFRACT = 2
STAGE_CLOSE = 3

# =============================================================================
# Frame Stack Storage
# =============================================================================

_STACK_SHAPE = (MAX_RAY_STACKS, MAX_DEPTH_BUDGET + 1)

stack_origins = ti.Vector.field(3, dtype=ti.f32, shape=_STACK_SHAPE)
stack_directions = ti.Vector.field(3, dtype=ti.f32, shape=_STACK_SHAPE)
stack_colors = ti.Vector.field(3, dtype=ti.f32, shape=_STACK_SHAPE)
stack_stages = ti.field(dtype=ti.i32, shape=_STACK_SHAPE)

stack_has_reflect = ti.field(dtype=ti.i32, shape=_STACK_SHAPE)
stack_reflect_origins = ti.Vector.field(3, dtype=ti.f32, shape=_STACK_SHAPE)
stack_reflect_directions = ti.Vector.field(3, dtype=ti.f32, shape=_STACK_SHAPE)
stack_reflect_albedos = ti.field(dtype=ti.f32, shape=_STACK_SHAPE)

stack_has_refract = ti.field(dtype=ti.i32, shape=_STACK_SHAPE)
stack_refract_origins = ti.Vector.field(3, dtype=ti.f32, shape=_STACK_SHAPE)
stack_refract_directions = ti.Vector.field(3, dtype=ti.f32, shape=_STACK_SHAPE)
stack_refract_albedos = ti.field(dtype=ti.f32, shape=_STACK_SHAPE)


@ti.func
def background_color() -> vec3:
    return vec3(BACKGROUND_COLOR[0], BACKGROUND_COLOR[1], BACKGROUND_COLOR[2])


@ti.func
def compress_energy(color: vec3) -> vec3:
    """Scale a color down uniformly so that no channel exceeds 1.0.

    Colors whose largest channel is at most 1.0 are returned unchanged, so
    applying the compression twice is the same as applying it once.
    """
    result = color
    largest = max_component(color)
    if largest > 1.0:
        result = color / largest
    return result


@ti.func
def _light_sums(point: vec3, normal: vec3, direction: vec3, specular_exponent: ti.f32):
    """Accumulate the diffuse and specular light sums at a surface point.

    Lights blocked by an object strictly closer than the light itself are
    skipped. Shadow rays start slightly off the surface on the side facing
    the light.

    Args:
        point: The hit point.
        normal: The surface normal at the hit point.
        direction: The normalized direction of the incoming ray.
        specular_exponent: Shininess exponent of the surface.

    Returns:
        A tuple of (diffuse_intensity, specular_intensity).
    """
    diffuse_intensity = 0.0
    specular_intensity = 0.0

    for i in range(num_lights[None]):
        to_light = light_positions[i] - point
        light_dir = tm.normalize(to_light)
        light_dist = tm.length(to_light)

        shadow_origin = offset_origin(point, normal, light_dir)
        shadow = test_intersect(shadow_origin, light_dir)
        occluded = shadow.hit == 1 and shadow.dist < light_dist

        if not occluded:
            intensity = light_intensities[i]
            diffuse_intensity += intensity * tm.max(0.0, tm.dot(light_dir, normal))
            angle = tm.max(0.0, tm.dot(reflect(light_dir, normal), direction))
            specular_intensity += intensity * angle**specular_exponent

    return diffuse_intensity, specular_intensity


@ti.func
def _open_frame(stack_id: ti.i32, level: ti.i32, depth_budget: ti.i32) -> ti.i32:
    """Shade the local terms of a frame and prepare its secondary rays.

    Reads the frame's ray from the stack, writes its partial color (diffuse
    plus specular) and the origin, direction and albedo of each child ray.

    Returns:
        1 if the frame is already final (nothing hit, or no budget left at
        this level), in which case its color is the background. 0 otherwise.
    """
    final = 1
    stack_colors[stack_id, level] = background_color()
    stack_has_reflect[stack_id, level] = 0
    stack_has_refract[stack_id, level] = 0

    if level < depth_budget:
        ray_origin = stack_origins[stack_id, level]
        ray_direction = stack_directions[stack_id, level]
        info = test_intersect(ray_origin, ray_direction)

        if info.hit == 1:
            final = 0
            direction = tm.normalize(ray_direction)
            point = info.point
            normal = info.normal
            material = get_material(info.material_id)

            diffuse_intensity, specular_intensity = _light_sums(
                point, normal, direction, material.specular_exponent
            )

            diffuse_color = vec3(0.0, 0.0, 0.0)
            if material.has_diffuse == 1:
                diffuse_color = material.diffuse_color * diffuse_intensity * material.diffuse_albedo

            specular_color = vec3(0.0, 0.0, 0.0)
            if material.has_specular == 1:
                specular_color = vec3(1.0, 1.0, 1.0) * specular_intensity * material.specular_albedo

            stack_colors[stack_id, level] = diffuse_color + specular_color

            if material.has_reflect == 1:
                reflect_dir = reflect(direction, normal)
                stack_has_reflect[stack_id, level] = 1
                stack_reflect_origins[stack_id, level] = offset_origin(point, normal, reflect_dir)
                stack_reflect_directions[stack_id, level] = reflect_dir
                stack_reflect_albedos[stack_id, level] = material.reflect_albedo

            if material.has_refract == 1:
                refract_dir = refract(direction, normal, AIR_REFRACTION_INDEX, material.refract_index)
                stack_has_refract[stack_id, level] = 1
                stack_refract_origins[stack_id, level] = offset_origin(point, normal, refract_dir)
                stack_refract_directions[stack_id, level] = refract_dir
                stack_refract_albedos[stack_id, level] = material.refract_albedo

    return final


@ti.func
def _push_frame(stack_id: ti.i32, level: ti.i32, ray_origin: vec3, ray_direction: vec3):
    stack_origins[stack_id, level] = ray_origin
    stack_directions[stack_id, level] = ray_direction
    stack_stages[stack_id, level] = STAGE_OPEN


@ti.func
def cast_ray(ray_origin: vec3, ray_direction: vec3, depth_budget: ti.i32, stack_id: ti.i32) -> vec3:
    """Resolve a ray to a color.

    Equivalent to evaluating, at every hit,
    ``compress(diffuse + specular + reflect_albedo * cast_ray(reflected, budget - 1)
    + refract_albedo * cast_ray(transmitted, budget - 1))``, with absent terms
    left out and the background returned for misses and a zero budget.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        depth_budget: Remaining recursion budget, in [0, MAX_DEPTH_BUDGET].
            A budget of 0 returns the background color without testing
            intersection.
        stack_id: Frame stack to evaluate on, in [0, MAX_RAY_STACKS). Two
            evaluations running at the same time must use different stacks.

    Returns:
        The RGB color seen along the ray. No channel exceeds 1.0.
    """
    result = background_color()
    _push_frame(stack_id, 0, ray_origin, ray_direction)
    level = 0

    while level >= 0:
        stage = stack_stages[stack_id, level]
        finished = 0

        if stage == STAGE_OPEN:
            stack_stages[stack_id, level] = STAGE_REFLECT
            finished = _open_frame(stack_id, level, depth_budget)

        elif stage == STAGE_REFLECT:
            stack_stages[stack_id, level] = STAGE_REFRACT
            if stack_has_reflect[stack_id, level] == 1:
                _push_frame(
                    stack_id,
                    level + 1,
                    stack_reflect_origins[stack_id, level],
                    stack_reflect_directions[stack_id, level],
                )
                level += 1

        elif stage == STAGE_REFRACT:
            stack_stages[stack_id, level] = STAGE_CLOSE
            if stack_has_refract[stack_id, level] == 1:
                _push_frame(
                    stack_id,
                    level + 1,
                    stack_refract_origins[stack_id, level],
                    stack_refract_directions[stack_id, level],
                )
                level += 1

        else:
            stack_colors[stack_id, level] = compress_energy(stack_colors[stack_id, level])
            finished = 1

        if finished == 1:
            color = stack_colors[stack_id, level]
            level -= 1
            if level < 0:
                result = color
            else:
                # The parent advanced its stage before pushing this child
                weight = stack_refract_albedos[stack_id, level]
                if stack_stages[stack_id, level] == STAGE_REFRACT:
                    weight = stack_reflect_albedos[stack_id, level]
                stack_colors[stack_id, level] = stack_colors[stack_id, level] + color * weight

    return result


def check_depth_budget(depth_budget: int) -> None:
    """Validate a depth budget.

    Raises:
        ValueError: If depth_budget is outside [0, MAX_DEPTH_BUDGET].
    """
    if not 0 <= depth_budget <= MAX_DEPTH_BUDGET:
        raise ValueError(
            f"Depth budget must be in [0, {MAX_DEPTH_BUDGET}], got {depth_budget}"
        )


# =============================================================================
# Python-scope Single Ray
# =============================================================================

_single_ray_color = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _cast_ray_kernel(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    depth_budget: ti.i32,
):
    """Evaluate a single ray on stack 0. Used for testing and debugging."""
    # Serial outer loop keeps the scene scans inside cast_ray sequential
    ti.loop_config(serialize=True)
    for _ in range(1):
        _single_ray_color[None] = cast_ray(vec3(ox, oy, oz), vec3(dx, dy, dz), depth_budget, 0)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth_budget: int = DEFAULT_DEPTH_BUDGET,
) -> tuple[float, float, float]:
    """Resolve a single ray to a color from Python.

    This is a Python-callable function for testing. For production
    rendering, use the render driver which processes all pixels in parallel.

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction (x, y, z), need not be normalized.
        depth_budget: Recursion budget, in [0, MAX_DEPTH_BUDGET].

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        ValueError: If depth_budget is out of range.
    """
    check_depth_budget(depth_budget)

    _cast_ray_kernel(
        origin[0], origin[1], origin[2],
        direction[0], direction[1], direction[2],
        int(depth_budget),
    )
    color = _single_ray_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))
