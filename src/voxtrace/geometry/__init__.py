"""Geometry module for primitives and their intersection routines.

Components:
    record: The Intersection record shared by all primitives
    aabb: Slab test for axis-aligned bounding boxes
    ellipsoid: Analytic ray-ellipsoid intersection
    volume: Volumetric masks rendered by ray marching

All intersection routines are Taichi functions returning an Intersection;
a miss is the no_intersection() sentinel.
"""

from .aabb import intersect_aabb
from .ellipsoid import Ellipsoid, ellipsoid_normal, hit_ellipsoid, make_ellipsoid
from .record import Intersection, IntersectionInfo, no_intersection, read_intersection
from .volume import composite_over, hit_volume

__all__ = [
    "Intersection",
    "IntersectionInfo",
    "no_intersection",
    "read_intersection",
    "intersect_aabb",
    "Ellipsoid",
    "ellipsoid_normal",
    "hit_ellipsoid",
    "make_ellipsoid",
    "hit_volume",
    "composite_over",
]
