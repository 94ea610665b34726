"""Unit tests for the Phong material registry."""

import pytest
import taichi as ti


class TestPhongMaterial:
    """Tests for PhongMaterial and material_from_color."""

    def test_from_color(self):
        from voxtrace.materials.phong import PhongMaterial

        mat = PhongMaterial.from_color((1.0, 0.5, 0.0, 0.3))
        assert mat.ambient == pytest.approx((0.1, 0.05, 0.0))
        assert mat.diffuse == pytest.approx((0.8, 0.4, 0.0))
        assert mat.specular == pytest.approx((0.3, 0.15, 0.0))
        assert mat.shininess == 50.0

    def test_kernel_derivation_matches_host(self):
        from voxtrace.core.ray import vec4
        from voxtrace.materials.phong import PhongMaterial, material_from_color

        ambient = ti.Vector.field(3, dtype=ti.f32, shape=())
        diffuse = ti.Vector.field(3, dtype=ti.f32, shape=())
        specular = ti.Vector.field(3, dtype=ti.f32, shape=())
        shininess = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            a, d, s, sh = material_from_color(vec4(0.2, 0.4, 0.6, 1.0))
            ambient[None] = a
            diffuse[None] = d
            specular[None] = s
            shininess[None] = sh

        test_kernel()
        expected = PhongMaterial.from_color((0.2, 0.4, 0.6))
        for i in range(3):
            assert ambient[None][i] == pytest.approx(expected.ambient[i])
            assert diffuse[None][i] == pytest.approx(expected.diffuse[i])
            assert specular[None][i] == pytest.approx(expected.specular[i])
        assert shininess[None] == pytest.approx(expected.shininess)


class TestPhongRegistry:
    """Tests for material storage."""

    def test_add_and_read_back(self):
        from voxtrace.materials.phong import (
            add_phong_material,
            get_phong_material,
            get_phong_material_count,
        )

        first = add_phong_material((0.1, 0.1, 0.1), (0.7, 0.2, 0.2), (0.5, 0.5, 0.5), 32.0)
        second = add_phong_material((0.0, 0.0, 0.0), (0.2, 0.7, 0.2), (0.0, 0.0, 0.0), 0.0)

        assert (first, second) == (0, 1)
        assert get_phong_material_count() == 2

        mat = get_phong_material(first)
        assert mat.diffuse == pytest.approx((0.7, 0.2, 0.2))
        assert mat.shininess == pytest.approx(32.0)

    def test_kernel_lookup(self):
        from voxtrace.materials.phong import add_phong_material, get_phong_coefficients

        idx = add_phong_material((0.1, 0.2, 0.3), (0.4, 0.5, 0.6), (0.7, 0.8, 0.9), 12.0)
        diffuse = ti.Vector.field(3, dtype=ti.f32, shape=())
        shininess = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(m: ti.i32):
            a, d, s, sh = get_phong_coefficients(m)
            diffuse[None] = d
            shininess[None] = sh

        test_kernel(idx)
        assert diffuse[None][1] == pytest.approx(0.5)
        assert shininess[None] == pytest.approx(12.0)

    def test_clear(self):
        from voxtrace.materials.phong import (
            add_phong_material,
            clear_phong_materials,
            get_phong_material_count,
        )

        add_phong_material((0.1, 0.1, 0.1), (0.5, 0.5, 0.5), (0.5, 0.5, 0.5), 10.0)
        clear_phong_materials()
        assert get_phong_material_count() == 0

    def test_missing_index(self):
        from voxtrace.materials.phong import get_phong_material

        with pytest.raises(IndexError):
            get_phong_material(0)

    @pytest.mark.parametrize(
        "ambient,diffuse,specular,shininess",
        [
            ((1.2, 0.0, 0.0), (0.5, 0.5, 0.5), (0.5, 0.5, 0.5), 10.0),
            ((0.1, 0.1, 0.1), (0.5, -0.5, 0.5), (0.5, 0.5, 0.5), 10.0),
            ((0.1, 0.1, 0.1), (0.5, 0.5, 0.5), (0.5, 0.5), 10.0),
            ((0.1, 0.1, 0.1), (0.5, 0.5, 0.5), (0.5, 0.5, 0.5), -1.0),
        ],
    )
    def test_invalid_material_rejected(self, ambient, diffuse, specular, shininess):
        from voxtrace.materials.phong import add_phong_material, get_phong_material_count

        with pytest.raises(ValueError):
            add_phong_material(ambient, diffuse, specular, shininess)
        assert get_phong_material_count() == 0
