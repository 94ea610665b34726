"""Point lights and Phong shading with hard shadows.

Every light is tested independently against the shaded point. A shadow ray
leaves the hit position toward the light and runs the same nearest-hit
search as camera rays over the window (SHADOW_T_MIN, SHADOW_T_MAX). If it
finds any occluder the light contributes nothing at all, not even its
ambient term. Otherwise the light adds

    intensity * (ambient + diffuse + specular)

with the usual Phong terms built from the view vector E, the normal N, the
unit light direction T and the mirror vector R = 2N(N . T) - T. The diffuse
term only applies when N . T > 0 and the specular term only when E . R > 0.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from voxtrace.core.shading import add_light
    >>> add_light(
    ...     position=(0.0, 10.0, -10.0),
    ...     ambient=(0.2, 0.2, 0.2),
    ...     diffuse=(1.0, 1.0, 1.0),
    ...     specular=(1.0, 1.0, 1.0),
    ...     intensity=1.0,
    ... )
    0
"""

import logging
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from voxtrace.core.ray import reflect_about, safe_normalize, vec3
from voxtrace.geometry.record import Intersection
from voxtrace.scene.intersection import intersect_scene, intersect_shadow_ray

logger = logging.getLogger(__name__)

# Parametric window for shadow rays (unit direction, so world units)
SHADOW_T_MIN = 1.0
SHADOW_T_MAX = 1000.0

# Maximum number of point lights
MAX_LIGHTS = 64


@dataclass(frozen=True)
class Light:
    """Host-side description of a point light.

    Attributes:
        position: Light position in world space.
        ambient: Ambient color (R, G, B).
        diffuse: Diffuse color (R, G, B).
        specular: Specular color (R, G, B).
        intensity: Scalar applied to the sum of all three terms.
    """

    position: tuple[float, float, float]
    ambient: tuple[float, float, float]
    diffuse: tuple[float, float, float]
    specular: tuple[float, float, float]
    intensity: float = 1.0


# =============================================================================
# Light Storage
# =============================================================================

light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_ambient = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_diffuse = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_specular = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_intensity = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Remove all lights."""
    num_lights[None] = 0


def _validate_color(name: str, rgb: tuple[float, float, float]) -> None:
    if len(rgb) != 3:
        raise ValueError(f"Light {name} must have 3 components, got {len(rgb)}")
    for i, component in enumerate(rgb):
        if component < 0.0:
            raise ValueError(f"Light {name} component {i} = {component} is negative")


def add_light(
    position: tuple[float, float, float],
    ambient: tuple[float, float, float],
    diffuse: tuple[float, float, float],
    specular: tuple[float, float, float],
    intensity: float = 1.0,
) -> int:
    """Add a point light.

    Args:
        position: Light position in world space.
        ambient: Ambient color (R, G, B), non-negative.
        diffuse: Diffuse color (R, G, B), non-negative.
        specular: Specular color (R, G, B), non-negative.
        intensity: Non-negative scale for the light's contribution.

    Returns:
        The index of the added light.

    Raises:
        ValueError: If a color component or the intensity is negative.
        RuntimeError: If the maximum number of lights is exceeded.
    """
    _validate_color("ambient", ambient)
    _validate_color("diffuse", diffuse)
    _validate_color("specular", specular)
    if intensity < 0.0:
        raise ValueError(f"Light intensity must be non-negative, got {intensity}")

    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")

    light_positions[idx] = vec3(position[0], position[1], position[2])
    light_ambient[idx] = vec3(ambient[0], ambient[1], ambient[2])
    light_diffuse[idx] = vec3(diffuse[0], diffuse[1], diffuse[2])
    light_specular[idx] = vec3(specular[0], specular[1], specular[2])
    light_intensity[idx] = intensity
    num_lights[None] = idx + 1
    logger.debug("Added light %d at %s (intensity %s)", idx, position, intensity)
    return idx


def get_light_count() -> int:
    """Get the number of lights."""
    return int(num_lights[None])


def get_light(idx: int) -> Light:
    """Read a stored light back into a Light.

    Raises:
        IndexError: If idx does not name a stored light.
    """
    if not 0 <= idx < num_lights[None]:
        raise IndexError(f"No light with index {idx}")

    def _rgb(v) -> tuple[float, float, float]:
        return (float(v[0]), float(v[1]), float(v[2]))

    return Light(
        position=_rgb(light_positions[idx]),
        ambient=_rgb(light_ambient[idx]),
        diffuse=_rgb(light_diffuse[idx]),
        specular=_rgb(light_specular[idx]),
        intensity=float(light_intensity[idx]),
    )


# =============================================================================
# Shading (Taichi-compatible)
# =============================================================================


@ti.func
def light_contribution(k: ti.i32, hit: Intersection) -> vec3:
    """Compute the contribution of light k at a hit.

    Args:
        k: Index of the light.
        hit: A valid, visible intersection carrying its Phong coefficients.

    Returns:
        The light's RGB contribution, exactly zero if the light is occluded.
    """
    to_light = safe_normalize(light_positions[k] - hit.position)
    occluded = intersect_shadow_ray(hit.position, to_light, SHADOW_T_MIN, SHADOW_T_MAX)

    color = vec3(0.0, 0.0, 0.0)
    if occluded == 0:
        eye = -safe_normalize(hit.direction)
        normal = hit.normal
        mirror = reflect_about(normal, to_light)

        color = hit.ambient * light_ambient[k]

        n_dot_t = tm.dot(normal, to_light)
        if n_dot_t > 0.0:
            color += hit.diffuse * light_diffuse[k] * n_dot_t

        e_dot_r = tm.dot(eye, mirror)
        if e_dot_r > 0.0:
            color += hit.specular * light_specular[k] * e_dot_r**hit.shininess

        color *= light_intensity[k]

    return color


@ti.func
def shade(hit: Intersection) -> vec3:
    """Sum the contributions of all lights at a hit."""
    color = vec3(0.0, 0.0, 0.0)
    for k in range(num_lights[None]):
        color += light_contribution(k, hit)
    return color


# =============================================================================
# Python-side queries
# =============================================================================

_shade_result = ti.Vector.field(3, dtype=ti.f32, shape=())
_shade_hit = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _shade_ray_kernel(origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32):
    hit = intersect_scene(origin, direction, t_min, t_max)
    _shade_hit[None] = hit.valid
    _shade_result[None] = vec3(0.0, 0.0, 0.0)
    if hit.valid == 1:
        _shade_result[None] = shade(hit)


def shade_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    t_min: float = 0.0,
    t_max: float = 400.0,
) -> tuple[float, float, float] | None:
    """Trace and shade a single ray from Python.

    Args:
        origin: Ray origin.
        direction: Ray direction.
        t_min: Lower bound of the parametric window.
        t_max: Upper bound of the parametric window.

    Returns:
        The shaded (R, G, B) color, or None if the ray hits nothing.
    """
    _shade_ray_kernel(vec3(*origin), vec3(*direction), t_min, t_max)
    if _shade_hit[None] == 0:
        return None
    color = _shade_result[None]
    return (float(color[0]), float(color[1]), float(color[2]))
