"""Render driver: primary rays and the pixel-parallel render kernel.

The camera is a pinhole at the world origin looking down -z with +y up. The
image plane sits at distance ``height / (2 * tan(fov / 2))`` so that one
pixel spans one unit, and pixel (row, col) is sampled at its center:

    direction = ((col + 0.5) - width / 2,
                 -(row + 0.5) + height / 2,
                 -height / (2 * tan(fov / 2)))

Every pixel is an independent evaluation of ``cast_ray``. The flat pixel
range is split into ``workers`` contiguous chunks. The kernel's outermost
loop runs over the chunks and Taichi spreads them across its thread pool;
each chunk shades its pixels in order on its own frame stack. The worker
count is a runtime argument of a single compiled kernel, the scene fields
are only read during the render and each pixel is written once, so the image
is identical for any number of workers.

The size of Taichi's CPU thread pool is fixed by ``ti.init`` (see
``cpu_max_num_threads``). ``workers`` bounds how many chunks can run at once.

Example:
    >>> import math
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tiny_raytracer.core.framebuffer import Framebuffer
    >>> from tiny_raytracer.core.render import render
    >>> framebuffer = Framebuffer(320, 240)
    >>> render(framebuffer, 320, 240, math.pi / 3)
"""

import logging
import math
import os
import time

import taichi as ti
import taichi.math as tm

from tiny_raytracer.core.framebuffer import Framebuffer
from tiny_raytracer.core.shading import (
    DEFAULT_DEPTH_BUDGET,
    MAX_RAY_STACKS,
    cast_ray,
    check_depth_budget,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


def default_workers() -> int:
    """Number of workers used when no worker count is given."""
    return min(os.cpu_count() or 1, MAX_RAY_STACKS)


@ti.func
def primary_direction(row: ti.i32, col: ti.i32, width: ti.i32, height: ti.i32, fov_half_tan: ti.f32) -> vec3:
    """Direction of the camera ray through the center of pixel (row, col).

    Args:
        row: Pixel row (0 = top).
        col: Pixel column (0 = left).
        width: Image width in pixels.
        height: Image height in pixels.
        fov_half_tan: tan(vertical_fov / 2).

    Returns:
        The (unnormalized) ray direction in camera space.
    """
    wf = ti.cast(width, ti.f32)
    hf = ti.cast(height, ti.f32)
    dir_x = (ti.cast(col, ti.f32) + 0.5) - wf / 2.0
    dir_y = -(ti.cast(row, ti.f32) + 0.5) + hf / 2.0
    dir_z = -hf / (2.0 * fov_half_tan)
    return vec3(dir_x, dir_y, dir_z)


@ti.kernel
def _render_kernel(
    pixels: ti.template(),
    width: ti.i32,
    height: ti.i32,
    fov_half_tan: ti.f32,
    depth_budget: ti.i32,
    workers: ti.i32,
    chunk_size: ti.i32,
):
    """Evaluate one primary ray per pixel into a flat row-major field.

    Args:
        pixels: Destination vector field of size width * height.
        width: Image width in pixels.
        height: Image height in pixels.
        fov_half_tan: tan(vertical_fov / 2).
        depth_budget: Recursion budget.
        workers: Number of chunks; chunk w runs on frame stack w.
        chunk_size: Pixels per chunk (the last chunk may be shorter).
    """
    # One chunk per task so that chunks are spread over the thread pool
    ti.loop_config(block_dim=1)
    for w in range(workers):
        begin = w * chunk_size
        end = ti.min(begin + chunk_size, width * height)
        for rc in range(begin, end):
            r = rc // width
            c = rc % width
            direction = primary_direction(r, c, width, height, fov_half_tan)
            pixels[rc] = cast_ray(vec3(0.0, 0.0, 0.0), direction, depth_budget, w)


def render(
    framebuffer: Framebuffer,
    width: int,
    height: int,
    fov: float,
    *,
    depth_budget: int = DEFAULT_DEPTH_BUDGET,
    workers: int | None = None,
) -> Framebuffer:
    """Render the current scene into a framebuffer.

    Args:
        framebuffer: Destination framebuffer; its size must be width x height.
        width: Image width in pixels.
        height: Image height in pixels.
        fov: Vertical field of view in radians, in (0, pi).
        depth_budget: Recursion budget for reflection and refraction, in
            [0, MAX_DEPTH_BUDGET].
        workers: Number of pixel chunks shaded concurrently, in
            [1, MAX_RAY_STACKS]. Defaults to the hardware concurrency.

    Returns:
        The framebuffer that was rendered into.

    Raises:
        ValueError: If the framebuffer size does not match, the field of view
            is outside (0, pi), or depth_budget/workers are out of range.
    """
    if framebuffer.width != width or framebuffer.height != height:
        raise ValueError(
            f"Framebuffer is {framebuffer.width}x{framebuffer.height}, "
            f"expected {width}x{height}"
        )
    if not 0.0 < fov < math.pi:
        raise ValueError(f"Field of view must be in (0, pi) radians, got {fov}")
    check_depth_budget(depth_budget)
    if workers is None:
        workers = default_workers()
    if not 1 <= workers <= MAX_RAY_STACKS:
        raise ValueError(f"Worker count must be in [1, {MAX_RAY_STACKS}], got {workers}")

    num_pixels = width * height
    # No empty chunks
    workers = min(workers, num_pixels)
    chunk_size = (num_pixels + workers - 1) // workers

    logger.info(
        "Rendering %dx%d (fov=%.4f rad, depth=%d, workers=%d)",
        width, height, fov, depth_budget, workers,
    )
    start = time.perf_counter()
    _render_kernel(
        framebuffer.pixels,
        width,
        height,
        math.tan(fov / 2.0),
        int(depth_budget),
        int(workers),
        int(chunk_size),
    )
    ti.sync()
    logger.info("Rendered %dx%d in %.3fs", width, height, time.perf_counter() - start)
    return framebuffer
