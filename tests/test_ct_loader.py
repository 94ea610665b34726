"""Tests for the CT mask loader."""

import numpy as np
import pytest

HEADER = """ObjectFileName: mask.raw
Resolution:\t4 3 2
SliceThickness: 0.5 0.5 1.25
Format:   UCHAR
"""


def _write_mask(tmp_path, header=HEADER, data=None, name="mask"):
    dat = tmp_path / f"{name}.dat"
    raw = tmp_path / f"{name}.raw"
    dat.write_text(header)
    if data is None:
        data = np.arange(24, dtype=np.uint8)
    data.tofile(raw)
    return dat, raw


class TestParseHeader:
    """Tests for parse_ct_header."""

    def test_parse(self):
        from voxtrace.data.ct_loader import parse_ct_header

        resolution, thickness = parse_ct_header(HEADER)
        assert resolution == (4, 3, 2)
        assert thickness == pytest.approx((0.5, 0.5, 1.25))

    def test_mixed_separators(self):
        from voxtrace.data.ct_loader import parse_ct_header

        text = "Resolution::\t 8\t8  8\nSliceThickness\t1 1 1\n"
        assert parse_ct_header(text) == ((8, 8, 8), (1.0, 1.0, 1.0))

    def test_extra_values_ignored(self):
        from voxtrace.data.ct_loader import parse_ct_header

        text = "Resolution: 2 2 2 99\nSliceThickness: 1 1 1\n"
        assert parse_ct_header(text)[0] == (2, 2, 2)

    def test_blank_lines_and_unknown_keys(self):
        from voxtrace.data.ct_loader import parse_ct_header

        text = "\n\nComment: anything goes\nResolution: 1 2 3\n\nSliceThickness: 1 2 3\n"
        assert parse_ct_header(text) == ((1, 2, 3), (1.0, 2.0, 3.0))

    @pytest.mark.parametrize(
        "text,message",
        [
            ("SliceThickness: 1 1 1\n", "Resolution"),
            ("Resolution: 2 2 2\n", "SliceThickness"),
            ("Resolution: 2 2\nSliceThickness: 1 1 1\n", "3 values"),
            ("Resolution: 2 two 2\nSliceThickness: 1 1 1\n", "invalid"),
            ("Resolution: 2 0 2\nSliceThickness: 1 1 1\n", "positive"),
            ("Resolution: 2 2 2\nSliceThickness: 1 -1 1\n", "positive"),
        ],
    )
    def test_invalid_headers(self, text, message):
        from voxtrace.data.ct_loader import CtMaskError, parse_ct_header

        with pytest.raises(CtMaskError, match=message):
            parse_ct_header(text)

    def test_error_is_value_error(self):
        from voxtrace.data.ct_loader import CtMaskError

        assert issubclass(CtMaskError, ValueError)


class TestLoadCtMask:
    """Tests for load_ct_mask."""

    def test_load(self, tmp_path):
        from voxtrace.data.ct_loader import load_ct_mask

        dat, raw = _write_mask(tmp_path)
        mask = load_ct_mask(dat, raw)

        assert mask.resolution == (4, 3, 2)
        assert mask.thickness == pytest.approx((0.5, 0.5, 1.25))
        assert mask.voxel_count == 24
        assert mask.voxels.dtype == np.uint8
        assert np.array_equal(mask.voxels, np.arange(24, dtype=np.uint8))

    def test_accepts_string_paths(self, tmp_path):
        from voxtrace.data.ct_loader import load_ct_mask

        dat, raw = _write_mask(tmp_path)
        assert load_ct_mask(str(dat), str(raw)).voxel_count == 24

    def test_trailing_bytes_ignored(self, tmp_path):
        from voxtrace.data.ct_loader import load_ct_mask

        dat, raw = _write_mask(tmp_path, data=np.full(30, 7, dtype=np.uint8))
        mask = load_ct_mask(dat, raw)
        assert mask.voxels.size == 24

    def test_short_raw_file(self, tmp_path):
        from voxtrace.data.ct_loader import CtMaskError, load_ct_mask

        dat, raw = _write_mask(tmp_path, data=np.zeros(10, dtype=np.uint8))
        with pytest.raises(CtMaskError, match="raw data"):
            load_ct_mask(dat, raw)

    def test_missing_file(self, tmp_path):
        from voxtrace.data.ct_loader import load_ct_mask

        with pytest.raises(OSError):
            load_ct_mask(tmp_path / "nope.dat", tmp_path / "nope.raw")

    def test_loaded_mask_feeds_volume(self, tmp_path):
        """Raw bytes are x-fastest, the layout add_volume expects for flat data."""
        import taichi as ti

        from voxtrace.data.ct_loader import load_ct_mask
        from voxtrace.geometry.volume import add_volume, voxel_value
        from voxtrace.materials.colormap import ColorMap

        dat, raw = _write_mask(tmp_path)
        mask = load_ct_mask(dat, raw)
        idx = add_volume(
            (0.0, 0.0, 0.0),
            1.0,
            mask.resolution,
            mask.thickness,
            mask.voxels,
            ColorMap().add(1, 255, (1.0, 1.0, 1.0, 1.0)),
        )

        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(v: ti.i32):
            result[None] = voxel_value(v, 3, 1, 1)

        test_kernel(idx)
        assert result[None] == (1 * 3 + 1) * 4 + 3
