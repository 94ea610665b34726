"""Unit tests for the slab ray-box intersection.

Tests cover:
- Hits along and against each axis
- Misses beside the box
- Direction components of exactly zero (parallel to a slab)
"""

import pytest
import taichi as ti


def _run(origin, direction, box_min=(0.0, 0.0, 0.0), box_max=(1.0, 1.0, 1.0)):
    from voxtrace.core.ray import vec3
    from voxtrace.geometry.aabb import intersect_aabb

    hit = ti.field(dtype=ti.i32, shape=())
    t_near = ti.field(dtype=ti.f32, shape=())
    t_far = ti.field(dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, lo: vec3, hi: vec3):
        h, tn, tf = intersect_aabb(o, d, lo, hi)
        hit[None] = h
        t_near[None] = tn
        t_far[None] = tf

    test_kernel(vec3(*origin), vec3(*direction), vec3(*box_min), vec3(*box_max))
    return hit[None], t_near[None], t_far[None]


class TestSlabIntersection:
    """Tests for intersect_aabb."""

    def test_hit_along_z(self):
        """A ray through the box center enters and leaves at the faces."""
        hit, t_near, t_far = _run((0.5, 0.5, -2.0), (0.0, 0.0, 1.0))
        assert hit == 1
        assert t_near == pytest.approx(2.0, abs=1e-5)
        assert t_far == pytest.approx(3.0, abs=1e-5)

    def test_hit_negative_direction(self):
        """Negative direction components swap the slab bounds."""
        hit, t_near, t_far = _run((0.5, 0.5, 3.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert t_near == pytest.approx(2.0, abs=1e-5)
        assert t_far == pytest.approx(3.0, abs=1e-5)

    def test_hit_diagonal(self):
        """A diagonal ray hits the box through a corner region."""
        hit, t_near, t_far = _run((-1.0, -1.0, -1.0), (1.0, 1.0, 1.0))
        assert hit == 1
        assert t_near == pytest.approx(1.0, abs=1e-5)
        assert t_far == pytest.approx(2.0, abs=1e-5)

    def test_miss_beside_box(self):
        """Disjoint slab intervals are a miss."""
        hit, _, _ = _run((-2.0, 0.5, -2.0), (1.0, 0.0, 0.5))
        assert hit == 0

    @pytest.mark.parametrize("axis", [0, 1, 2])
    def test_zero_component_outside_slab_misses(self, axis):
        """A zero direction component with the origin outside that slab never hits."""
        origin = [0.5, 0.5, 0.5]
        direction = [0.0, 0.0, 0.0]
        origin[axis] = 2.0
        # Travel along another axis, parallel to the slab we are outside of
        other = (axis + 1) % 3
        origin[other] = -5.0
        direction[other] = 1.0

        hit, t_near, t_far = _run(tuple(origin), tuple(direction))
        assert hit == 0

    def test_zero_component_on_box_boundary(self):
        """A parallel ray lying exactly in a face plane counts as inside the slab."""
        hit, t_near, t_far = _run((1.0, 0.5, -2.0), (0.0, 0.0, 1.0))
        assert hit == 1
        assert t_near == pytest.approx(2.0, abs=1e-5)
        assert t_far == pytest.approx(3.0, abs=1e-5)

    def test_origin_inside_box(self):
        """From inside the box, t_near is negative and t_far positive."""
        hit, t_near, t_far = _run((0.5, 0.5, 0.5), (1.0, 0.0, 0.0))
        assert hit == 1
        assert t_near < 0.0
        assert t_far == pytest.approx(0.5, abs=1e-5)
