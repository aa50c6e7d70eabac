"""Pytest configuration for ray tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear objects, lights and materials before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so the field-owning modules load after ti.init()
    from tiny_raytracer.materials.material import clear_materials
    from tiny_raytracer.scene.intersection import clear_objects
    from tiny_raytracer.scene.lights import clear_lights

    def _clear_all():
        clear_objects()
        clear_lights()
        clear_materials()

    _clear_all()

    yield

    _clear_all()
