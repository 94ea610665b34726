"""Ray data structure and vector utilities.

This module provides the Ray dataclass shared by every intersection routine
and the handful of vector helpers used by the intersection and shading code.
All operations are Taichi functions so they can be inlined into kernels.

A ray is parameterized as ``origin + t * direction``. The direction is not
required to be unit length; routines that need a unit vector normalize it
themselves. Rays built with make_ray_between() carry a unit direction, so
their parameter t is measured in world units.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, -5.0)
    >>> direction = ti.math.vec3(0.0, 0.0, 1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 4.0)  # Point 4 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3
vec4 = tm.vec4
ivec3 = tm.ivec3

# Vectors shorter than this are treated as zero-length
ZERO_LENGTH_EPSILON = 1e-12


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not necessarily
            unit length; t is measured in multiples of this vector.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


@ti.func
def make_ray_between(start: vec3, end: vec3) -> Ray:
    """Create a ray starting at ``start`` and heading toward ``end``.

    The direction is normalized, so t along the returned ray is a world-space
    distance from ``start``. If the two points coincide the direction is the
    zero vector, which every intersection routine reports as a miss.

    Args:
        start: The ray origin.
        end: A point the ray passes through.

    Returns:
        A new Ray with unit (or zero) direction.
    """
    return Ray(origin=start, direction=safe_normalize(end - start))


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def safe_normalize(v: vec3) -> vec3:
    """Normalize a vector, mapping zero-length input to the zero vector.

    tm.normalize() divides by the length unconditionally and produces NaN
    for a zero vector; this variant never does.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the direction of v, or vec3(0) if |v| is below
        ZERO_LENGTH_EPSILON.
    """
    result = vec3(0.0, 0.0, 0.0)
    n = tm.length(v)
    if n > ZERO_LENGTH_EPSILON:
        result = v / n
    return result


@ti.func
def reflect_about(normal: vec3, to_light: vec3) -> vec3:
    """Mirror a light direction about a surface normal.

    Computes R = 2N(N . T) - T, the direction of perfect specular reflection
    of a light arriving along -T.

    Args:
        normal: The surface normal (unit length).
        to_light: Unit vector from the surface point toward the light.

    Returns:
        The mirror-reflection vector.
    """
    return 2.0 * tm.dot(normal, to_light) * normal - to_light
