"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts. Tests run in single
    precision on the CPU with a fixed seed.
    """
    from pathtracer.scalar import Precision, init_taichi

    init_taichi(Precision.SINGLE, arch="cpu", seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here to ensure Taichi is initialized
    from pathtracer.core.ray import set_background_palette
    from pathtracer.materials.material import clear_materials
    from pathtracer.scene.intersection import clear_scene
    from pathtracer.scene.manager import Scene

    def _clear_all():
        clear_scene()
        clear_materials()
        set_background_palette()
        Scene._live = None

    _clear_all()
    yield
    _clear_all()

