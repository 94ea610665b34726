"""Tests for the preview module.

This module tests the preview/display and preview/export functionality:
- Clamping of linear colors above 1
- Gamma correction
- Conversion to 8-bit and PNG export of rendered images

Note: show_preview() is only exercised with a non-interactive Matplotlib
backend, so no window is opened.
"""

import numpy as np
import pytest
from PIL import Image as PILImage


def _render_small_scene(width=16, height=12, intensity=1.0):
    """Render a lit unit sphere and return the RayTracer."""
    from voxtrace.camera.viewplane import ViewPlaneCamera
    from voxtrace.core.tracer import RayTracer
    from voxtrace.scene.manager import SceneManager

    scene = SceneManager()
    scene.add_ellipsoid((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), 1.0, color=(0.9, 0.9, 0.9, 1.0))
    scene.add_light((0.0, 10.0, -10.0), (0.5, 0.5, 0.5), (1.0, 1.0, 1.0), (1.0, 1.0, 1.0), intensity)

    camera = ViewPlaneCamera((0.0, 0.0, -6.0), (0.0, 0.0, 1.0), (0.0, 1.0, 0.0), 2.0, 2.0, 1.5)
    tracer = RayTracer(width, height)
    tracer.render(camera)
    return tracer


class TestProcessImageForDisplay:
    """Tests for clamping and gamma correction."""

    def test_identity_in_range(self):
        from voxtrace.preview.display import process_image_for_display

        image = np.linspace(0.0, 1.0, 12, dtype=np.float32).reshape(2, 2, 3)
        assert np.array_equal(process_image_for_display(image), image)

    def test_clamps_overexposed_and_negative(self):
        from voxtrace.preview.display import process_image_for_display

        image = np.array([[[2.5, -0.5, 0.3]]], dtype=np.float32)
        result = process_image_for_display(image)
        assert result[0, 0].tolist() == pytest.approx([1.0, 0.0, 0.3])
        assert result.dtype == np.float32

    def test_gamma_brightens_midtones(self):
        from voxtrace.preview.display import process_image_for_display

        result = process_image_for_display(np.array([[[0.0, 0.5, 1.0]]], dtype=np.float32), 2.2)
        assert result[0, 0, 0] == pytest.approx(0.0)
        assert result[0, 0, 1] == pytest.approx(0.5 ** (1.0 / 2.2), abs=1e-6)
        assert result[0, 0, 2] == pytest.approx(1.0)

    def test_gamma_clamps_first(self):
        from voxtrace.preview.display import process_image_for_display

        result = process_image_for_display(np.full((1, 1, 3), 4.0, dtype=np.float32), 2.2)
        assert np.all(result == 1.0)

    @pytest.mark.parametrize("gamma", [0.0, -2.2])
    def test_invalid_gamma(self, gamma):
        from voxtrace.preview.display import process_image_for_display

        with pytest.raises(ValueError, match="Gamma"):
            process_image_for_display(np.zeros((1, 1, 3), dtype=np.float32), gamma)

    def test_input_not_modified(self):
        from voxtrace.preview.display import process_image_for_display

        image = np.full((2, 2, 3), 3.0, dtype=np.float32)
        process_image_for_display(image, 2.2)
        assert np.all(image == 3.0)


class TestSaturatedFraction:
    def test_counts_channels_above_one(self):
        from voxtrace.preview.display import saturated_fraction

        image = np.array([[[1.5, 0.2, 1.0], [0.0, 3.0, 0.9]]], dtype=np.float32)
        assert saturated_fraction(image) == pytest.approx(2.0 / 6.0)

    def test_empty_image(self):
        from voxtrace.preview.display import saturated_fraction

        assert saturated_fraction(np.zeros((0, 0, 3), dtype=np.float32)) == 0.0

    def test_bright_light_overexposes_render(self):
        from voxtrace.preview.display import saturated_fraction

        tracer = _render_small_scene(intensity=4.0)
        assert saturated_fraction(tracer.get_image_numpy(clip=False)) > 0.0
        assert saturated_fraction(tracer.get_image_numpy()) == 0.0


class TestExport:
    """Tests for 8-bit conversion and PNG files."""

    def test_image_to_uint8(self):
        from voxtrace.preview.export import image_to_uint8

        image = np.array([[[0.0, 0.5, 1.0], [2.0, -1.0, 0.25]]], dtype=np.float32)
        result = image_to_uint8(image)

        assert result.dtype == np.uint8
        assert result[0, 0].tolist() == [0, 127, 255]
        assert result[0, 1].tolist() == [255, 0, 63]

    def test_save_png_from_array(self, tmp_path):
        from voxtrace.preview.export import save_png_from_array

        image = np.zeros((10, 20, 3), dtype=np.float32)
        image[:, :, 2] = 1.0
        path = tmp_path / "blue.png"
        save_png_from_array(image, str(path))

        with PILImage.open(path) as img:
            assert img.size == (20, 10)
            assert img.mode == "RGB"
            assert img.getpixel((3, 3)) == (0, 0, 255)

    def test_save_png_from_tracer_with_gamma(self, tmp_path):
        from voxtrace.preview.export import image_to_uint8, save_png

        tracer = _render_small_scene()
        path = tmp_path / "render.png"
        save_png(tracer, str(path), gamma=2.2)

        expected = image_to_uint8(tracer.get_image_numpy(clip=False), 2.2)
        with PILImage.open(path) as img:
            assert img.size == (16, 12)
            assert np.array_equal(np.asarray(img), expected)


class TestShowPreview:
    """Tests for the Matplotlib preview."""

    def test_show_preview_non_blocking(self, monkeypatch):
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        from voxtrace.preview.display import show_preview

        tracer = _render_small_scene()
        monkeypatch.setattr(plt, "show", lambda block=True: None)

        show_preview(tracer, gamma=2.2, block=False)
        assert plt.gca().get_title() == "Render Preview - 16x12 (gamma 2.2)"
        plt.close("all")
