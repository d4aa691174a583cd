"""Tests for the preview module.

This module tests the preview/display and preview/export functionality including:
- Tone mapping functions (Reinhard, exposure)
- Gamma encoding
- PNG and PPM export
- RMSE computation

Note: Tests avoid displaying actual windows by not calling show_preview
in automated tests. The processing functions are tested directly.
"""

import numpy as np
import pytest
from PIL import Image as PILImage


def _gradient_buffer():
    """2x2 buffer: red bottom-left, green bottom-right, blue top-left, white top-right."""
    from pathtracer.image.buffer import PixelBuffer

    buffer = PixelBuffer(2, 2)
    buffer[0] = (1.0, 0.0, 0.0)
    buffer[1] = (0.0, 1.0, 0.0)
    buffer[2] = (0.0, 0.0, 1.0)
    buffer[3] = (1.0, 1.0, 1.0)
    return buffer


class TestToneMapping:
    """Test tone mapping operators."""

    def test_reinhard_formula(self):
        """Reinhard maps L to L / (1 + L)."""
        from pathtracer.preview.display import tone_map_reinhard

        for val in [0.0, 0.5, 1.0, 2.0, 10.0]:
            image = np.full((2, 2, 3), val, dtype=np.float32)
            assert np.allclose(tone_map_reinhard(image), val / (1.0 + val), atol=1e-6)

    def test_reinhard_clamps_negative(self):
        from pathtracer.preview.display import tone_map_reinhard

        image = np.full((2, 2, 3), -1.0, dtype=np.float32)
        assert np.all(tone_map_reinhard(image) == 0.0)

    def test_exposure_formula(self):
        from pathtracer.preview.display import tone_map_exposure

        image = np.full((2, 2, 3), 1.0, dtype=np.float32)
        result = tone_map_exposure(image, exposure=2.0)
        assert np.allclose(result, 1.0 - np.exp(-2.0), atol=1e-6)

    def test_exposure_output_bounded(self):
        from pathtracer.preview.display import tone_map_exposure

        image = np.full((2, 2, 3), 1000.0, dtype=np.float32)
        result = tone_map_exposure(image)
        assert np.all(result <= 1.0)
        assert np.all(result >= 0.0)


class TestGammaEncoding:
    """Test gamma encoding."""

    def test_square_root_encoding(self):
        from pathtracer.preview.display import encode_gamma

        image = np.full((2, 2, 3), 0.25, dtype=np.float32)
        assert np.allclose(encode_gamma(image, 0.5), 0.5, atol=1e-6)

    def test_linear_clamps(self):
        from pathtracer.preview.display import encode_gamma

        image = np.array([[[-0.5, 0.5, 1.5]]], dtype=np.float32)
        assert np.allclose(encode_gamma(image), [[[0.0, 0.5, 1.0]]])

    def test_matches_buffer_gamma(self):
        """Display gamma and buffer gamma share one convention."""
        from pathtracer.image.buffer import PixelBuffer
        from pathtracer.preview.display import encode_gamma

        pixels = np.random.default_rng(1).random((3, 3, 3))
        buffer = PixelBuffer(3, 3, pixels)
        assert np.allclose(encode_gamma(pixels, 0.45), buffer.apply_gamma(0.45).pixels, atol=1e-6)

    def test_invalid_gamma(self):
        from pathtracer.preview.display import encode_gamma

        with pytest.raises(ValueError):
            encode_gamma(np.zeros((1, 1, 3)), 0.0)

    def test_unknown_tone_map(self):
        from pathtracer.preview.display import process_image_for_display

        with pytest.raises(ValueError, match="Unknown tone mapping"):
            process_image_for_display(np.zeros((1, 1, 3)), tone_map="filmic")


class TestPNGExport:
    """Test PNG export."""

    def test_save_png_top_row_first(self, tmp_path):
        from pathtracer.preview.export import save_png

        path = save_png(_gradient_buffer(), tmp_path / "out" / "image.png")
        assert path.exists()

        loaded = np.array(PILImage.open(path))
        assert loaded.shape == (2, 2, 3)
        assert loaded.dtype == np.uint8
        # Top row of the file is buffer row 1
        assert tuple(loaded[0, 0]) == (0, 0, 255)
        assert tuple(loaded[0, 1]) == (255, 255, 255)
        assert tuple(loaded[1, 0]) == (255, 0, 0)
        assert tuple(loaded[1, 1]) == (0, 255, 0)

    def test_save_png_with_gamma(self, tmp_path):
        from pathtracer.image.buffer import PixelBuffer
        from pathtracer.preview.export import save_png

        buffer = PixelBuffer(1, 1, [[0.25, 0.25, 0.25]])
        path = save_png(buffer, tmp_path / "gamma.png", gamma=0.5)
        loaded = np.array(PILImage.open(path))
        assert tuple(loaded[0, 0]) == (127, 127, 127)

    def test_save_image_dispatch(self, tmp_path):
        from pathtracer.preview.export import save_image

        buffer = _gradient_buffer()
        png = save_image(buffer, tmp_path / "a.png")
        ppm = save_image(buffer, tmp_path / "a.PPM")
        assert png.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"
        assert ppm.read_text().startswith("P3\n")


class TestPPMExport:
    """Test plain-text PPM export."""

    def test_ppm_string(self):
        from pathtracer.preview.export import ppm_string

        text = ppm_string(_gradient_buffer())
        assert text == "P3\n2 2\n255\n0 0 255\n255 255 255\n255 0 0\n0 255 0\n"

    def test_ppm_truncates_and_clamps(self):
        from pathtracer.image.buffer import PixelBuffer
        from pathtracer.preview.export import ppm_string

        buffer = PixelBuffer(1, 1, [[0.5, 1.2, -0.3]])
        assert ppm_string(buffer).splitlines()[-1] == "127 255 0"

    def test_write_ppm(self, tmp_path):
        from pathtracer.preview.export import write_ppm

        path = write_ppm(_gradient_buffer(), tmp_path / "nested" / "image.ppm")
        lines = path.read_text().splitlines()
        assert lines[:3] == ["P3", "2 2", "255"]
        assert len(lines) == 3 + 4


class TestRMSE:
    """Test RMSE computation."""

    def test_identical_images(self):
        from pathtracer.preview.export import compute_rmse

        image = np.random.default_rng(2).random((4, 4, 3))
        assert compute_rmse(image, image) == 0.0

    def test_known_difference(self):
        from pathtracer.preview.export import compute_rmse

        a = np.zeros((2, 2, 3))
        b = np.full((2, 2, 3), 0.5)
        assert compute_rmse(a, b) == pytest.approx(0.5)

    def test_shape_mismatch(self):
        from pathtracer.preview.export import compute_rmse

        with pytest.raises(ValueError, match="shapes must match"):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((3, 2, 3)))
