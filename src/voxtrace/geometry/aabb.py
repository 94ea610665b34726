"""Axis-aligned bounding box intersection using the slab method.

The box [box_min, box_max] is the intersection of three slabs, one per axis.
For each axis the ray enters and leaves the slab at

    t0 = (box_min[k] - origin[k]) / direction[k]
    t1 = (box_max[k] - origin[k]) / direction[k]

(swapped when direction[k] is negative). The ray hits the box when the
three [t0, t1] intervals overlap.

A direction component of zero would turn those quotients into 0/0 or
+-inf. Such axes are handled without dividing: the ray runs parallel to
the slab, so it is either always inside it (no constraint on t) or never
(a miss).
"""

import taichi as ti

from voxtrace.core.ray import vec3

# Direction components smaller than this are treated as parallel to a slab
PARALLEL_EPSILON = 1e-12

# Stand-in for an unbounded slab interval
T_INFINITY = 1e30


@ti.func
def intersect_aabb(origin: vec3, direction: vec3, box_min: vec3, box_max: vec3):
    """Intersect a ray with an axis-aligned box.

    The ray is treated as a full line; callers clamp the returned interval
    to their own parametric window.

    Args:
        origin: The ray origin.
        direction: The ray direction (any length).
        box_min: The minimum corner of the box.
        box_max: The maximum corner of the box.

    Returns:
        A tuple of (hit, t_near, t_far) where:
        - hit: 1 if the line crosses the box, 0 otherwise.
        - t_near: Parameter where the line enters the box.
        - t_far: Parameter where the line leaves the box.
    """
    hit = 1
    t_near = -T_INFINITY
    t_far = T_INFINITY

    for k in ti.static(range(3)):
        if ti.abs(direction[k]) < PARALLEL_EPSILON:
            if origin[k] < box_min[k] or origin[k] > box_max[k]:
                hit = 0
        else:
            t0 = (box_min[k] - origin[k]) / direction[k]
            t1 = (box_max[k] - origin[k]) / direction[k]
            if t0 > t1:
                temp = t0
                t0 = t1
                t1 = temp
            t_near = ti.max(t_near, t0)
            t_far = ti.min(t_far, t1)

    if t_near > t_far:
        hit = 0

    return hit, t_near, t_far
