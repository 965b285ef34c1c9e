"""
Unit tests for image decoding utilities.
"""

import base64
import io

import numpy as np
import pytest
from PIL import Image

from themecolor.services.colors.errors import NoImageProvidedError
from themecolor.services.imaging import (
    decode_base64_image, decode_image, decode_image_bytes, resize_long_edge
)


class TestDecodeImageBytes:
    """Test byte decoding into RGBA buffers."""

    def test_downsizes_long_edge(self, png_bytes):
        buffer, width, height = decode_image_bytes(png_bytes)
        assert (width, height) == (200, 50)
        assert len(buffer) == width * height * 4

    def test_pixels_are_rgba(self, png_bytes):
        buffer, width, height = decode_image_bytes(png_bytes)
        pixels = np.frombuffer(buffer, dtype=np.uint8).reshape(-1, 4)
        np.testing.assert_array_equal(pixels[0], [200, 50, 50, 255])

    def test_small_image_not_resized(self):
        stream = io.BytesIO()
        Image.new("RGB", (40, 30), (10, 20, 30)).save(stream, format="PNG")
        buffer, width, height = decode_image_bytes(stream.getvalue())
        assert (width, height) == (40, 30)
        pixels = np.frombuffer(buffer, dtype=np.uint8).reshape(-1, 4)
        np.testing.assert_array_equal(pixels[0], [10, 20, 30, 255])

    def test_custom_max_edge(self, png_bytes):
        _, width, height = decode_image_bytes(png_bytes, max_edge=100)
        assert (width, height) == (100, 25)

    def test_empty_bytes_raise(self):
        with pytest.raises(NoImageProvidedError):
            decode_image_bytes(b"")

    def test_garbage_raises_value_error(self):
        with pytest.raises(ValueError, match="Failed to decode image"):
            decode_image_bytes(b"\x89PNG but not really")

    def test_decompression_bomb_raises_value_error(self, png_bytes, monkeypatch):
        # Pillow refuses images over twice MAX_IMAGE_PIXELS
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
        with pytest.raises(ValueError, match="Image too large to decode"):
            decode_image_bytes(png_bytes)


class TestDecodeBase64Image:
    """Test base64 and data URL payloads."""

    def test_plain_base64(self, png_bytes):
        assert decode_base64_image(base64.b64encode(png_bytes).decode("ascii")) == png_bytes

    def test_data_url(self, png_bytes):
        encoded = "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")
        assert decode_base64_image(encoded) == png_bytes

    def test_invalid_base64(self):
        with pytest.raises(ValueError):
            decode_base64_image("###not base64###")

    def test_empty_payload(self):
        with pytest.raises(NoImageProvidedError):
            decode_base64_image("   ")

    def test_decode_image_dispatches_on_type(self, png_bytes):
        from_bytes = decode_image(png_bytes)
        from_text = decode_image(base64.b64encode(png_bytes).decode("ascii"))
        assert from_bytes == from_text


class TestResizeLongEdge:
    """Test aspect-preserving downsizing."""

    def test_tall_image(self):
        resized = resize_long_edge(Image.new("RGBA", (50, 1000)), 200)
        assert resized.size == (10, 200)

    def test_never_below_one_pixel(self):
        resized = resize_long_edge(Image.new("RGBA", (1000, 1)), 200)
        assert resized.size == (200, 1)
