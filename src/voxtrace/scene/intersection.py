"""Scene-level ray intersection over all geometries.

Every geometry in the scene has an entry in a unified geometry table that
records its kind (ellipsoid or volume) and its index in the kind's own
storage. intersect_geometry() dispatches a ray to the right hit routine, and
intersect_scene() scans the whole table for the nearest visible hit.

There is no acceleration structure: every query tests every geometry, in
registration order. A candidate replaces the current best only if the best
is not a visible hit yet or the candidate's t is strictly smaller, so on
equal t the geometry registered first wins.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from voxtrace.scene.intersection import add_ellipsoid_geometry, query_nearest
    >>> gid = add_ellipsoid_geometry((0, 0, 0), (1, 1, 1), 1.0, material_id=0)
    >>> hit = query_nearest((0, 0, -5), (0, 0, 1), 0.0, 100.0)
    >>> hit.t
    4.0
"""

import logging
from enum import IntEnum

import taichi as ti

from voxtrace.core.ray import vec3
from voxtrace.geometry.ellipsoid import (
    add_ellipsoid,
    clear_ellipsoids,
    ellipsoid_colors,
    ellipsoid_material_ids,
    hit_ellipsoid,
    load_ellipsoid,
)
from voxtrace.geometry.record import (
    Intersection,
    IntersectionInfo,
    no_intersection,
    read_intersection,
)
from voxtrace.geometry.volume import add_volume, clear_volumes, hit_volume
from voxtrace.materials.colormap import ColorMap
from voxtrace.materials.phong import get_phong_coefficients

logger = logging.getLogger(__name__)


class GeometryKind(IntEnum):
    """Kinds of geometry stored in the scene table."""

    ELLIPSOID = 0
    VOLUME = 1


# Maximum number of geometries across all kinds
MAX_GEOMETRIES = 2048

geometry_kinds = ti.field(dtype=ti.i32, shape=MAX_GEOMETRIES)
geometry_indices = ti.field(dtype=ti.i32, shape=MAX_GEOMETRIES)
num_geometries = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all geometries from the scene."""
    num_geometries[None] = 0
    clear_ellipsoids()
    clear_volumes()


def _register_geometry(kind: GeometryKind, type_index: int) -> int:
    gid = num_geometries[None]
    if gid >= MAX_GEOMETRIES:
        raise RuntimeError(f"Maximum number of geometries ({MAX_GEOMETRIES}) exceeded")
    geometry_kinds[gid] = int(kind)
    geometry_indices[gid] = type_index
    num_geometries[None] = gid + 1
    logger.debug("Registered %s geometry %d", kind.name.lower(), gid)
    return gid


def add_ellipsoid_geometry(
    center: tuple[float, float, float],
    semi_axes: tuple[float, float, float],
    radius: float,
    material_id: int,
    color: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0),
) -> int:
    """Add an ellipsoid to the scene.

    Args:
        center: The center point.
        semi_axes: Per-axis semi-lengths.
        radius: Radius factor.
        material_id: Index into the Phong material registry.
        color: RGBA color carried on intersection records.

    Returns:
        The geometry id of the added ellipsoid.

    Raises:
        ValueError: If the ellipsoid parameters are invalid.
        RuntimeError: If a capacity limit is exceeded.
    """
    if num_geometries[None] >= MAX_GEOMETRIES:
        raise RuntimeError(f"Maximum number of geometries ({MAX_GEOMETRIES}) exceeded")
    idx = add_ellipsoid(center, semi_axes, radius, material_id, color)
    return _register_geometry(GeometryKind.ELLIPSOID, idx)


def add_volume_geometry(
    position: tuple[float, float, float],
    scale: float,
    resolution: tuple[int, int, int],
    thickness: tuple[float, float, float],
    voxels,
    color_map: ColorMap,
) -> int:
    """Add a volumetric mask to the scene.

    See voxtrace.geometry.volume.add_volume() for the parameters.

    Returns:
        The geometry id of the added volume.
    """
    if num_geometries[None] >= MAX_GEOMETRIES:
        raise RuntimeError(f"Maximum number of geometries ({MAX_GEOMETRIES}) exceeded")
    idx = add_volume(position, scale, resolution, thickness, voxels, color_map)
    return _register_geometry(GeometryKind.VOLUME, idx)


def get_geometry_count() -> int:
    """Get the number of geometries in the scene."""
    return int(num_geometries[None])


def get_geometry_kind(geometry_id: int) -> GeometryKind:
    """Get the kind of a geometry by id."""
    if not 0 <= geometry_id < num_geometries[None]:
        raise IndexError(f"No geometry with id {geometry_id}")
    return GeometryKind(int(geometry_kinds[geometry_id]))


@ti.func
def _hit_ellipsoid_with_material(
    ray_origin: vec3,
    ray_direction: vec3,
    type_index: ti.i32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> Intersection:
    """Intersect a stored ellipsoid and attach its material and color."""
    rec = hit_ellipsoid(ray_origin, ray_direction, load_ellipsoid(type_index), t_min, t_max)
    if rec.valid == 1:
        ambient, diffuse, specular, shininess = get_phong_coefficients(
            ellipsoid_material_ids[type_index]
        )
        rec.ambient = ambient
        rec.diffuse = diffuse
        rec.specular = specular
        rec.shininess = shininess
        rec.color = ellipsoid_colors[type_index]
    return rec


@ti.func
def intersect_geometry(
    geometry_id: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> Intersection:
    """Intersect a ray with one geometry from the scene table.

    Args:
        geometry_id: Index into the geometry table.
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Lower bound of the parametric window.
        t_max: Upper bound of the parametric window.

    Returns:
        The geometry's Intersection, tagged with geometry_id when valid.
    """
    kind = geometry_kinds[geometry_id]
    type_index = geometry_indices[geometry_id]
    rec = no_intersection()

    if kind == int(GeometryKind.ELLIPSOID):
        rec = _hit_ellipsoid_with_material(ray_origin, ray_direction, type_index, t_min, t_max)
    elif kind == int(GeometryKind.VOLUME):
        rec = hit_volume(ray_origin, ray_direction, type_index, t_min, t_max)

    if rec.valid == 1:
        rec.geometry_id = geometry_id
    return rec


@ti.func
def _find_nearest(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> Intersection:
    """Linear scan for the nearest valid, visible intersection."""
    result = no_intersection()

    for gid in range(num_geometries[None]):
        rec = intersect_geometry(gid, ray_origin, ray_direction, t_min, t_max)
        if rec.valid == 1 and rec.visible == 1:
            if result.valid == 0 or result.visible == 0 or rec.t < result.t:
                result = rec

    return result


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> Intersection:
    """Find the nearest visible intersection over all geometries.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Lower bound of the parametric window.
        t_max: Upper bound of the parametric window.

    Returns:
        The nearest valid, visible Intersection, or the no_intersection()
        sentinel if nothing is hit.
    """
    return _find_nearest(ray_origin, ray_direction, t_min, t_max)


@ti.func
def intersect_shadow_ray(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.i32:
    """Test whether anything blocks a shadow ray.

    Runs the same nearest-hit search as intersect_scene(), so volumes
    occlude light like any other geometry.

    Returns:
        1 if an occluder was found inside the window, 0 otherwise.
    """
    rec = _find_nearest(ray_origin, ray_direction, t_min, t_max)
    return rec.valid


# =============================================================================
# Python-side queries (testing and debugging)
# =============================================================================

_query_result = Intersection.field(shape=())
_query_occluded = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _query_nearest_kernel(origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32):
    _query_result[None] = intersect_scene(origin, direction, t_min, t_max)


@ti.kernel
def _query_geometry_kernel(
    geometry_id: ti.i32, origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32
):
    _query_result[None] = intersect_geometry(geometry_id, origin, direction, t_min, t_max)


@ti.kernel
def _query_occluded_kernel(origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32):
    _query_occluded[None] = intersect_shadow_ray(origin, direction, t_min, t_max)


def query_nearest(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    t_min: float,
    t_max: float,
) -> IntersectionInfo:
    """Run intersect_scene() for a single ray from Python."""
    _query_nearest_kernel(vec3(*origin), vec3(*direction), t_min, t_max)
    return read_intersection(_query_result)


def query_geometry(
    geometry_id: int,
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    t_min: float,
    t_max: float,
) -> IntersectionInfo:
    """Intersect a single ray with one geometry from Python."""
    if not 0 <= geometry_id < num_geometries[None]:
        raise IndexError(f"No geometry with id {geometry_id}")
    _query_geometry_kernel(geometry_id, vec3(*origin), vec3(*direction), t_min, t_max)
    return read_intersection(_query_result)


def query_occluded(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    t_min: float,
    t_max: float,
) -> bool:
    """Run intersect_shadow_ray() for a single ray from Python."""
    _query_occluded_kernel(vec3(*origin), vec3(*direction), t_min, t_max)
    return bool(_query_occluded[None])
