"""Scene module.

Components:
    intersection: Unified geometry table with nearest-hit and shadow queries
    manager: SceneManager, the high-level scene building API
    demo: Reference demo scene

Note: manager and demo are NOT imported here because they depend on
voxtrace.core.shading, which itself depends on the intersection module.
Import them directly from voxtrace.scene.manager and voxtrace.scene.demo.
"""

from .intersection import (
    MAX_GEOMETRIES,
    GeometryKind,
    add_ellipsoid_geometry,
    add_volume_geometry,
    clear_scene,
    get_geometry_count,
    intersect_geometry,
    intersect_scene,
    intersect_shadow_ray,
    query_geometry,
    query_nearest,
    query_occluded,
)

__all__ = [
    "MAX_GEOMETRIES",
    "GeometryKind",
    "add_ellipsoid_geometry",
    "add_volume_geometry",
    "clear_scene",
    "get_geometry_count",
    "intersect_geometry",
    "intersect_scene",
    "intersect_shadow_ray",
    "query_geometry",
    "query_nearest",
    "query_occluded",
]
