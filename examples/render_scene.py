#!/usr/bin/env python3
"""Render the demo scene.

This script renders the demo scene (four spheres over a checkerboard floor,
three point lights) with the Whitted-style ray tracer and saves it as a PNG.

Usage:
    python examples/render_scene.py [options]

Options:
    --width WIDTH       Image width in pixels (default: 1024)
    --height HEIGHT     Image height in pixels (default: 768)
    --fov DEGREES       Vertical field of view in degrees (default: 60)
    --depth DEPTH       Recursion budget for reflection/refraction (default: 4)
    --workers N         Pixel chunks shaded concurrently (default: all cores)
    --no-board          Leave out the checkerboard floor
    --output OUTPUT     Output file path (default: output.png)
    --cpu               Force the CPU backend
    --verbose           Enable debug logging
    --quiet             Suppress progress output

Example:
    python examples/render_scene.py --width 320 --height 240 --output demo.png
"""

from __future__ import annotations

import argparse
import logging
import math
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the demo scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=1024,
        help="Image width in pixels (default: 1024)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=768,
        help="Image height in pixels (default: 768)",
    )
    parser.add_argument(
        "--fov",
        type=float,
        default=60.0,
        help="Vertical field of view in degrees (default: 60)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=4,
        help="Recursion budget for reflection/refraction (default: 4)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Pixel chunks shaded concurrently (default: all cores)",
    )
    parser.add_argument(
        "--no-board",
        action="store_true",
        help="Leave out the checkerboard floor",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="output.png",
        help="Output file path (default: output.png)",
    )
    parser.add_argument(
        "--cpu",
        action="store_true",
        help="Force the CPU backend",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_demo(
    width: int = 1024,
    height: int = 768,
    fov_degrees: float = 60.0,
    depth: int = 4,
    workers: int | None = None,
    include_board: bool = True,
    output_path: str = "output.png",
    quiet: bool = False,
) -> Path:
    """Render the demo scene and save it to a PNG file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        fov_degrees: Vertical field of view in degrees.
        depth: Recursion budget for reflection and refraction.
        workers: Pixel chunks shaded concurrently, or None for all cores.
        include_board: Whether to add the checkerboard floor.
        output_path: Output file path (PNG).
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from tiny_raytracer.core.framebuffer import Framebuffer
    from tiny_raytracer.scene.demo import create_demo_scene

    if not quiet:
        print(f"Creating demo scene ({width}x{height})...")

    scene = create_demo_scene(include_board=include_board)
    framebuffer = Framebuffer(width, height)

    if not quiet:
        print(f"Rendering {scene!r} with depth {depth}...")

    start_time = time.time()
    scene.render(
        framebuffer,
        width,
        height,
        math.radians(fov_degrees),
        depth_budget=depth,
        workers=workers,
    )

    output_file = Path(output_path)
    framebuffer.write_png(str(output_file))

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize Taichi
    # Use GPU if available, fall back to CPU. On the CPU the worker count also
    # sizes the thread pool.
    cpu_options = {}
    if args.workers is not None and args.workers >= 1:
        cpu_options["cpu_max_num_threads"] = args.workers
    workers = args.workers
    if args.cpu:
        ti.init(arch=ti.cpu, **cpu_options)
        backend = "CPU"
    else:
        try:
            ti.init(arch=ti.gpu)
            backend = "GPU"
        except Exception:
            ti.init(arch=ti.cpu, **cpu_options)
            backend = "CPU"
    if backend == "GPU" and workers is None:
        # One frame stack per GPU thread
        from tiny_raytracer.core.shading import MAX_RAY_STACKS

        workers = MAX_RAY_STACKS
    if not args.quiet:
        print(f"Using {backend} backend")

    try:
        render_demo(
            width=args.width,
            height=args.height,
            fov_degrees=args.fov,
            depth=args.depth,
            workers=workers,
            include_board=not args.no_board,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
