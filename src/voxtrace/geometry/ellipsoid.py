"""Ellipsoid primitive with analytic ray-ellipsoid intersection.

An ellipsoid is the implicit surface

    sum_i ((p - center)_i / semi_axes_i)^2 = radius^2

Substituting the ray p = o + t*d and writing u = o - center, s = semi_axes
gives the quadratic a*t^2 + b*t + c = 0 with

    a = sum(d_i^2 / s_i^2)
    b = 2 * sum(d_i * u_i / s_i^2)
    c = sum(u_i^2 / s_i^2) - radius^2

A non-positive discriminant is a miss: tangent rays are rejected along with
rays that pass by. Of the two roots the nearer one inside the open window
(t_min, t_max) wins. The normal is the normalized gradient of the implicit
function, 2 * (p - center) / s^2.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from voxtrace.geometry.ellipsoid import Ellipsoid, hit_ellipsoid, vec3
    >>> ellipsoid = Ellipsoid(
    ...     center=vec3(0, 0, 0), semi_axes=vec3(1, 1, 1), radius=1.0
    ... )
    >>> # Use hit_ellipsoid within a Taichi kernel
"""

import logging

import taichi as ti

from voxtrace.core.ray import safe_normalize, vec3, vec4
from voxtrace.geometry.record import Intersection, no_intersection

logger = logging.getLogger(__name__)

# Squared direction lengths at or below this are treated as a zero-length ray
DEGENERATE_EPSILON = 1e-12


@ti.dataclass
class Ellipsoid:
    """An axis-aligned ellipsoid.

    Attributes:
        center: The center point (vec3).
        semi_axes: Per-axis semi-length (vec3, all components positive).
        radius: Scalar radius factor applied to all axes.
    """

    center: vec3
    semi_axes: vec3
    radius: ti.f32


@ti.func
def ellipsoid_normal(ellipsoid: Ellipsoid, point: vec3) -> vec3:
    """Compute the unit outward normal at a point on the ellipsoid.

    Args:
        ellipsoid: The ellipsoid.
        point: A point on its surface.

    Returns:
        The normalized gradient 2 * (point - center) / semi_axes^2.
    """
    s2 = ellipsoid.semi_axes * ellipsoid.semi_axes
    return safe_normalize((point - ellipsoid.center) * 2.0 / s2)


@ti.func
def hit_ellipsoid(
    ray_origin: vec3,
    ray_direction: vec3,
    ellipsoid: Ellipsoid,
    t_min: ti.f32,
    t_max: ti.f32,
) -> Intersection:
    """Test for ray-ellipsoid intersection.

    Only geometric fields of the returned record are filled in; the scene
    attaches geometry id, material and color.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        ellipsoid: The ellipsoid to test against.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        An Intersection with valid == visible == 1 on a hit, or the
        no_intersection() sentinel.
    """
    u = ray_origin - ellipsoid.center
    s2 = ellipsoid.semi_axes * ellipsoid.semi_axes

    a = (ray_direction * ray_direction / s2).sum()
    b = 2.0 * (ray_direction * u / s2).sum()
    c = (u * u / s2).sum() - ellipsoid.radius * ellipsoid.radius

    result = no_intersection()

    if ray_direction.dot(ray_direction) > DEGENERATE_EPSILON:
        delta = b * b - 4.0 * a * c
        if delta > 0.0:
            sqrt_delta = ti.sqrt(delta)
            t1 = (-b - sqrt_delta) / (2.0 * a)
            t2 = (-b + sqrt_delta) / (2.0 * a)

            t = t1
            found = (t_min < t1) and (t1 < t_max)
            if not found:
                t = t2
                found = (t_min < t2) and (t2 < t_max)

            if found:
                point = ray_origin + t * ray_direction
                result.valid = 1
                result.visible = 1
                result.t = t
                result.origin = ray_origin
                result.direction = ray_direction
                result.position = point
                result.normal = ellipsoid_normal(ellipsoid, point)

    return result


@ti.func
def make_ellipsoid(center: vec3, semi_axes: vec3, radius: ti.f32) -> Ellipsoid:
    """Create an ellipsoid within a Taichi kernel."""
    return Ellipsoid(center=center, semi_axes=semi_axes, radius=radius)


# =============================================================================
# Ellipsoid Storage
# =============================================================================

MAX_ELLIPSOIDS = 1024

# Structure of Arrays layout
ellipsoid_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_ELLIPSOIDS)
ellipsoid_semi_axes = ti.Vector.field(3, dtype=ti.f32, shape=MAX_ELLIPSOIDS)
ellipsoid_radii = ti.field(dtype=ti.f32, shape=MAX_ELLIPSOIDS)
ellipsoid_material_ids = ti.field(dtype=ti.i32, shape=MAX_ELLIPSOIDS)
ellipsoid_colors = ti.Vector.field(4, dtype=ti.f32, shape=MAX_ELLIPSOIDS)
num_ellipsoids = ti.field(dtype=ti.i32, shape=())


def clear_ellipsoids() -> None:
    """Remove all stored ellipsoids."""
    num_ellipsoids[None] = 0


def add_ellipsoid(
    center: tuple[float, float, float],
    semi_axes: tuple[float, float, float],
    radius: float,
    material_id: int,
    color: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0),
) -> int:
    """Store an ellipsoid.

    Args:
        center: The center point.
        semi_axes: Per-axis semi-lengths, all strictly positive.
        radius: Radius factor, strictly positive.
        material_id: Index into the Phong material registry.
        color: RGBA color carried on the intersection record.

    Returns:
        The index of the stored ellipsoid.

    Raises:
        ValueError: If a semi-axis or the radius is not positive.
        RuntimeError: If the maximum number of ellipsoids is exceeded.
    """
    for i, s in enumerate(semi_axes):
        if not s > 0.0:
            raise ValueError(f"Semi-axis {i} = {s} must be positive")
    if not radius > 0.0:
        raise ValueError(f"Radius must be positive, got {radius}")

    idx = num_ellipsoids[None]
    if idx >= MAX_ELLIPSOIDS:
        raise RuntimeError(f"Maximum number of ellipsoids ({MAX_ELLIPSOIDS}) exceeded")

    ellipsoid_centers[idx] = vec3(center[0], center[1], center[2])
    ellipsoid_semi_axes[idx] = vec3(semi_axes[0], semi_axes[1], semi_axes[2])
    ellipsoid_radii[idx] = radius
    ellipsoid_material_ids[idx] = material_id
    ellipsoid_colors[idx] = vec4(color[0], color[1], color[2], color[3])
    num_ellipsoids[None] = idx + 1
    logger.debug("Added ellipsoid %d at %s (semi-axes %s, radius %s)", idx, center, semi_axes, radius)
    return idx


def get_ellipsoid_count() -> int:
    """Get the number of stored ellipsoids."""
    return int(num_ellipsoids[None])


@ti.func
def load_ellipsoid(idx: ti.i32) -> Ellipsoid:
    """Read a stored ellipsoid inside a kernel."""
    return Ellipsoid(
        center=ellipsoid_centers[idx],
        semi_axes=ellipsoid_semi_axes[idx],
        radius=ellipsoid_radii[idx],
    )

