"""Unit tests for point lights and Phong shading.

The reference setup is a unit sphere at the origin seen from (0, 0, -5)
along +z. The hit is at (0, 0, -1) with normal (0, 0, -1). A light at
(0, 6, -7) then gives N . T = E . R = sqrt(0.5).
"""

import math

import pytest

HALF_SQRT2 = math.sqrt(0.5)

# Material from the unit_sphere_scene fixture
AMBIENT = 0.1
DIFFUSE = 0.7
SPECULAR = 0.5
SHININESS = 10.0


def _expected(light_ambient=0.2, light_diffuse=1.0, light_specular=1.0, intensity=1.0):
    return intensity * (
        AMBIENT * light_ambient
        + DIFFUSE * light_diffuse * HALF_SQRT2
        + SPECULAR * light_specular * HALF_SQRT2**SHININESS
    )


def _white_light(position, intensity=1.0):
    from voxtrace.core.shading import add_light

    return add_light(position, (0.2, 0.2, 0.2), (1.0, 1.0, 1.0), (1.0, 1.0, 1.0), intensity)


class TestLightStorage:
    """Tests for the light registry."""

    def test_add_and_read_back(self):
        from voxtrace.core.shading import add_light, get_light, get_light_count

        idx = add_light((1.0, 2.0, 3.0), (0.1, 0.1, 0.1), (0.9, 0.8, 0.7), (1.0, 1.0, 1.0), 2.5)

        assert idx == 0
        assert get_light_count() == 1
        light = get_light(idx)
        assert light.position == pytest.approx((1.0, 2.0, 3.0))
        assert light.diffuse == pytest.approx((0.9, 0.8, 0.7))
        assert light.intensity == pytest.approx(2.5)

    def test_default_intensity(self):
        from voxtrace.core.shading import add_light, get_light

        idx = add_light((0.0, 0.0, 0.0), (0.1, 0.1, 0.1), (1.0, 1.0, 1.0), (1.0, 1.0, 1.0))
        assert get_light(idx).intensity == 1.0

    def test_clear_lights(self):
        from voxtrace.core.shading import clear_lights, get_light_count

        _white_light((0.0, 10.0, 0.0))
        clear_lights()
        assert get_light_count() == 0

    def test_missing_light(self):
        from voxtrace.core.shading import get_light

        with pytest.raises(IndexError):
            get_light(0)

    def test_negative_values_rejected(self):
        from voxtrace.core.shading import add_light, get_light_count

        with pytest.raises(ValueError):
            add_light((0.0, 0.0, 0.0), (-0.1, 0.0, 0.0), (1.0, 1.0, 1.0), (1.0, 1.0, 1.0))
        with pytest.raises(ValueError):
            add_light((0.0, 0.0, 0.0), (0.1, 0.1, 0.1), (1.0, 1.0, 1.0), (1.0, 1.0, 1.0), -1.0)
        assert get_light_count() == 0

    def test_light_capacity(self):
        from voxtrace.core.shading import MAX_LIGHTS

        for _ in range(MAX_LIGHTS):
            _white_light((0.0, 10.0, 0.0))
        with pytest.raises(RuntimeError):
            _white_light((0.0, 10.0, 0.0))


class TestPhongShading:
    """Tests for shade() through shade_ray()."""

    def test_miss_returns_none(self, unit_sphere_scene):
        from voxtrace.core.shading import shade_ray

        _white_light((0.0, 6.0, -7.0))
        assert shade_ray((5.0, 5.0, -5.0), (0.0, 0.0, 1.0)) is None

    def test_no_lights_is_black(self, unit_sphere_scene):
        from voxtrace.core.shading import shade_ray

        assert shade_ray((0.0, 0.0, -5.0), (0.0, 0.0, 1.0)) == pytest.approx((0.0, 0.0, 0.0))

    def test_lit_point(self, unit_sphere_scene):
        """Unoccluded light: ambient + diffuse + specular."""
        from voxtrace.core.shading import shade_ray

        _white_light((0.0, 6.0, -7.0))
        color = shade_ray((0.0, 0.0, -5.0), (0.0, 0.0, 1.0))

        expected = _expected()
        assert color == pytest.approx((expected, expected, expected), abs=1e-4)

    def test_intensity_scales_everything(self, unit_sphere_scene):
        from voxtrace.core.shading import shade_ray

        _white_light((0.0, 6.0, -7.0), intensity=0.5)
        color = shade_ray((0.0, 0.0, -5.0), (0.0, 0.0, 1.0))
        assert color[0] == pytest.approx(_expected(intensity=0.5), abs=1e-4)

    def test_lights_add_up(self, unit_sphere_scene):
        from voxtrace.core.shading import shade_ray

        _white_light((0.0, 6.0, -7.0))
        _white_light((0.0, -6.0, -7.0))
        color = shade_ray((0.0, 0.0, -5.0), (0.0, 0.0, 1.0))
        assert color[1] == pytest.approx(2.0 * _expected(), abs=1e-4)

    def test_colored_light_channels(self, unit_sphere_scene):
        from voxtrace.core.shading import add_light, shade_ray

        add_light((0.0, 6.0, -7.0), (0.2, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 1.0))
        r, g, b = shade_ray((0.0, 0.0, -5.0), (0.0, 0.0, 1.0))

        assert r == pytest.approx(AMBIENT * 0.2 + DIFFUSE * HALF_SQRT2, abs=1e-4)
        assert g == pytest.approx(0.0, abs=1e-6)
        assert b == pytest.approx(SPECULAR * HALF_SQRT2**SHININESS, abs=1e-4)

    def test_occluded_light_contributes_nothing(self, unit_sphere_scene):
        """An occluder between the point and the light removes even the ambient term."""
        from voxtrace.core.shading import shade_ray
        from voxtrace.materials.phong import add_phong_material
        from voxtrace.scene.intersection import add_ellipsoid_geometry

        material = add_phong_material((0.1, 0.1, 0.1), (0.5, 0.5, 0.5), (0.0, 0.0, 0.0), 1.0)
        add_ellipsoid_geometry((0.0, 3.0, -4.0), (1.0, 1.0, 1.0), 0.5, material)
        _white_light((0.0, 6.0, -7.0))

        assert shade_ray((0.0, 0.0, -5.0), (0.0, 0.0, 1.0)) == (0.0, 0.0, 0.0)

    def test_only_occluded_light_is_dropped(self, unit_sphere_scene):
        from voxtrace.core.shading import shade_ray
        from voxtrace.materials.phong import add_phong_material
        from voxtrace.scene.intersection import add_ellipsoid_geometry

        material = add_phong_material((0.1, 0.1, 0.1), (0.5, 0.5, 0.5), (0.0, 0.0, 0.0), 1.0)
        add_ellipsoid_geometry((0.0, 3.0, -4.0), (1.0, 1.0, 1.0), 0.5, material)
        _white_light((0.0, 6.0, -7.0))
        _white_light((0.0, -6.0, -7.0))

        color = shade_ray((0.0, 0.0, -5.0), (0.0, 0.0, 1.0))
        assert color[0] == pytest.approx(_expected(), abs=1e-4)

    def test_light_behind_surface_is_self_shadowed(self, unit_sphere_scene):
        """The shadow ray passes through the sphere's far side."""
        from voxtrace.core.shading import shade_ray

        _white_light((0.0, 0.0, 5.0))
        assert shade_ray((0.0, 0.0, -5.0), (0.0, 0.0, 1.0)) == (0.0, 0.0, 0.0)

    def test_shadow_window_skips_near_occluders(self, unit_sphere_scene):
        """Occluders closer than SHADOW_T_MIN to the hit do not cast shadows."""
        from voxtrace.core.shading import shade_ray
        from voxtrace.materials.phong import add_phong_material
        from voxtrace.scene.intersection import add_ellipsoid_geometry

        material = add_phong_material((0.1, 0.1, 0.1), (0.5, 0.5, 0.5), (0.0, 0.0, 0.0), 1.0)
        # Thin shell crossed by the shadow ray at t ~ 0.5 only
        add_ellipsoid_geometry((0.0, 0.3536, -1.3536), (1.0, 1.0, 1.0), 0.1, material)
        _white_light((0.0, 6.0, -7.0))

        color = shade_ray((0.0, 0.0, -5.0), (0.0, 0.0, 1.0))
        assert color[0] == pytest.approx(_expected(), abs=1e-4)

    def test_light_at_hit_point_gives_ambient_only(self, unit_sphere_scene):
        from voxtrace.core.shading import shade_ray

        _white_light((0.0, 0.0, -1.0))
        color = shade_ray((0.0, 0.0, -5.0), (0.0, 0.0, 1.0))
        assert color[0] == pytest.approx(AMBIENT * 0.2, abs=1e-5)
