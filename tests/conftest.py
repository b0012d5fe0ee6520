"""Pytest configuration for renderer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session. Modules that
declare Taichi fields are imported inside tests, after ti.init().
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate fields created by earlier imports.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized first
    from nextweek.core.integrator import clear_render_target, setup_background
    from nextweek.scene.manager import clear_scene_data

    def _clear_all():
        clear_scene_data()
        clear_render_target()
        setup_background((0.0, 0.0, 0.0), sky=False)

    _clear_all()
    yield
    _clear_all()
