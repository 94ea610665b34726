"""Intersection record shared by every geometry type.

Each geometry's hit routine returns an Intersection describing the result of
testing one ray against it over a parametric window (t_min, t_max). The
record distinguishes two flags:

- valid: the ray interacts with the geometry inside the window.
- visible: the interaction contributes to shading. A valid but invisible
  record models a volume that was crossed without accumulating opacity.

When valid == 0 no other field is meaningful. no_intersection() builds the
sentinel used as the default result everywhere.
"""

from dataclasses import dataclass

import taichi as ti

from voxtrace.core.ray import vec3, vec4


@ti.dataclass
class Intersection:
    """Record of a ray-geometry intersection.

    Attributes:
        valid: 1 if the ray intersects the geometry inside the window.
        visible: 1 if the intersection contributes to shading.
        geometry_id: Index of the owning geometry in the scene table,
            -1 when unknown or for the sentinel.
        t: The ray parameter of the hit.
        origin: Origin of the tested ray.
        direction: Direction of the tested ray.
        position: The hit point, origin + t * direction.
        normal: Unit surface normal at the hit point.
        ambient: Phong ambient coefficient of the hit material.
        diffuse: Phong diffuse coefficient of the hit material.
        specular: Phong specular coefficient of the hit material.
        shininess: Phong specular exponent of the hit material.
        color: RGBA color of the geometry at the hit.
    """

    valid: ti.i32
    visible: ti.i32
    geometry_id: ti.i32
    t: ti.f32
    origin: vec3
    direction: vec3
    position: vec3
    normal: vec3
    ambient: vec3
    diffuse: vec3
    specular: vec3
    shininess: ti.f32
    color: vec4


@ti.func
def no_intersection() -> Intersection:
    """Create the sentinel record meaning "no intersection"."""
    zero = vec3(0.0, 0.0, 0.0)
    return Intersection(
        valid=0,
        visible=0,
        geometry_id=-1,
        t=0.0,
        origin=zero,
        direction=zero,
        position=zero,
        normal=zero,
        ambient=zero,
        diffuse=zero,
        specular=zero,
        shininess=0.0,
        color=vec4(0.0, 0.0, 0.0, 0.0),
    )


@dataclass(frozen=True)
class IntersectionInfo:
    """Python-side copy of an Intersection read back from a kernel.

    Attributes mirror the Taichi record, with flags converted to bool and
    vectors converted to tuples.
    """

    valid: bool
    visible: bool
    geometry_id: int
    t: float
    position: tuple[float, float, float]
    normal: tuple[float, float, float]
    ambient: tuple[float, float, float]
    diffuse: tuple[float, float, float]
    specular: tuple[float, float, float]
    shininess: float
    color: tuple[float, float, float, float]


def _to_tuple(v, size: int = 3) -> tuple:
    return tuple(float(v[i]) for i in range(size))


def read_intersection(record_field) -> IntersectionInfo:
    """Copy a 0-D Intersection field into an IntersectionInfo.

    Args:
        record_field: A field created with Intersection.field(shape=()).

    Returns:
        The record contents as plain Python values.
    """
    return IntersectionInfo(
        valid=bool(record_field.valid[None]),
        visible=bool(record_field.visible[None]),
        geometry_id=int(record_field.geometry_id[None]),
        t=float(record_field.t[None]),
        position=_to_tuple(record_field.position[None]),
        normal=_to_tuple(record_field.normal[None]),
        ambient=_to_tuple(record_field.ambient[None]),
        diffuse=_to_tuple(record_field.diffuse[None]),
        specular=_to_tuple(record_field.specular[None]),
        shininess=float(record_field.shininess[None]),
        color=_to_tuple(record_field.color[None], 4),
    )
