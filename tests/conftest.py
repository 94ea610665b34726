"""Pytest configuration for voxtrace tests.

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
    """Reset geometries, materials, lights, camera and render target around each test."""
    # Import here so Taichi is initialized first
    from voxtrace.camera.viewplane import reset_camera
    from voxtrace.core.integrator import release_render_target, reset_background
    from voxtrace.core.shading import clear_lights
    from voxtrace.materials.phong import clear_phong_materials
    from voxtrace.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_phong_materials()
        clear_lights()
        reset_camera()
        reset_background()
        release_render_target()

    _clear_all()

    yield

    _clear_all()


@pytest.fixture
def unit_sphere_scene():
    """One unit sphere at the origin with a plain white material.

    Returns:
        The geometry id of the sphere.
    """
    from voxtrace.materials.phong import add_phong_material
    from voxtrace.scene.intersection import add_ellipsoid_geometry

    material = add_phong_material((0.1, 0.1, 0.1), (0.7, 0.7, 0.7), (0.5, 0.5, 0.5), 10.0)
    return add_ellipsoid_geometry((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), 1.0, material)
