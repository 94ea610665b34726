"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    shading: Point lights and Phong shading with shadow rays
    integrator: Render target and the per-pixel render loop
    tracer: RayTracer, an object-oriented wrapper around the integrator

Every pixel is resolved with a single primary ray; there is no sampling and
no recursion beyond the shadow rays cast during shading.
"""

from .ray import (
    Ray,
    cross,
    dot,
    ivec3,
    length,
    make_ray,
    make_ray_between,
    ray_at,
    reflect_about,
    safe_normalize,
    vec3,
    vec4,
)

# Note: shading, integrator and tracer are NOT imported here to avoid circular imports.
# Import directly from voxtrace.core.integrator or voxtrace.core.tracer when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "make_ray_between",
    "vec3",
    "vec4",
    "ivec3",
    "length",
    "dot",
    "cross",
    "safe_normalize",
    "reflect_about",
]
