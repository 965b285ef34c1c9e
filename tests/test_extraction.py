"""
Unit tests for median-cut palette extraction.

Tests the core extraction pipeline components:
- pixel buffer validation
- strided sampling with alpha and luminance filtering
- median-cut quantization and importance ranking
- role assignment and end-to-end palette extraction
"""

import numpy as np
import pytest

from themecolor.config import MAX_PALETTE_SIZE, ExtractionConfig
from themecolor.schemas import ExtractionResponse
from themecolor.services.colors.errors import (
    ExtractionError, InsufficientColorVarietyError, NoImageProvidedError
)
from themecolor.services.colors.extraction import (
    BucketColor, PaletteRole, assign_role, extract_palette, median_cut,
    pixel_luminance, rank_by_importance, sample_pixels, to_pixel_array
)

from conftest import make_rgba


class TestToPixelArray:
    """Test pixel buffer validation."""

    def test_rgba_bytes(self):
        array = to_pixel_array(bytes(2 * 3 * 4), 2, 3)
        assert array.shape == (6, 4)
        assert array.dtype == np.uint8

    def test_rgb_array(self):
        image = np.zeros((3, 2, 3), dtype=np.uint8)
        assert to_pixel_array(image, 2, 3, channels=3).shape == (6, 3)

    def test_size_mismatch_raises(self):
        with pytest.raises(ValueError, match="size mismatch"):
            to_pixel_array(bytes(10), 2, 3)

    def test_empty_buffer_raises(self):
        with pytest.raises(NoImageProvidedError):
            to_pixel_array(b"", 2, 3)

    def test_missing_buffer_raises(self):
        with pytest.raises(NoImageProvidedError):
            to_pixel_array(None, 2, 3)

    def test_zero_dimensions_raise(self):
        with pytest.raises(NoImageProvidedError):
            to_pixel_array(bytes(4), 0, 1)

    def test_bad_channel_count_raises(self):
        with pytest.raises(ValueError):
            to_pixel_array(bytes(8), 2, 2, channels=2)

    def test_non_uint8_array_raises(self):
        with pytest.raises(ValueError):
            to_pixel_array(np.zeros((2, 2, 4), dtype=np.float32), 2, 2)


class TestSamplePixels:
    """Test strided sampling and filters."""

    def test_stride_bounds_visited_pixels(self):
        """At most sample_limit pixels are visited"""
        pixels = make_rgba(100, 100, (120, 120, 120)).reshape(-1, 4)
        samples = sample_pixels(pixels, ExtractionConfig(sample_limit=1000))
        assert len(samples) == 1000

    def test_non_divisible_stride(self):
        pixels = make_rgba(7, 3, (120, 120, 120)).reshape(-1, 4)
        samples = sample_pixels(pixels, ExtractionConfig(sample_limit=10))
        # ceil(21 / 10) = 3 -> indices 0, 3, ..., 18
        assert len(samples) == 7

    def test_transparent_pixels_dropped(self):
        image = make_rgba(10, 10, (120, 120, 120))
        image[:5, :, 3] = 0
        samples = sample_pixels(image.reshape(-1, 4), ExtractionConfig())
        assert len(samples) == 50

    def test_alpha_threshold_inclusive(self):
        image = make_rgba(4, 1, (120, 120, 120), alpha=128)
        samples = sample_pixels(image.reshape(-1, 4), ExtractionConfig(alpha_threshold=128))
        assert len(samples) == 4

    def test_extreme_luminance_dropped(self):
        image = make_rgba(10, 1, (120, 120, 120))
        image[0, :3, :3] = 0
        image[0, 3:6, :3] = 255
        samples = sample_pixels(image.reshape(-1, 4), ExtractionConfig())
        assert len(samples) == 4

    def test_rgb_input_has_no_alpha_filter(self):
        pixels = np.full((20, 3), 120, dtype=np.uint8)
        assert len(sample_pixels(pixels, ExtractionConfig())) == 20

    def test_samples_are_rgb(self):
        pixels = make_rgba(5, 5, (120, 60, 30)).reshape(-1, 4)
        samples = sample_pixels(pixels, ExtractionConfig())
        assert samples.shape[1] == 3
        np.testing.assert_array_equal(samples[0], [120, 60, 30])


class TestPixelLuminance:
    """Test vectorized WCAG luminance."""

    def test_extremes(self):
        lum = pixel_luminance(np.array([[0, 0, 0], [255, 255, 255]], dtype=np.uint8))
        np.testing.assert_allclose(lum, [0.0, 1.0], atol=1e-9)


class TestMedianCut:
    """Test median-cut quantization."""

    def test_uniform_samples_give_one_leaf(self):
        samples = np.full((50, 3), (200, 50, 50), dtype=np.uint8)
        leaves = median_cut(samples, 0, 3)
        assert leaves == [BucketColor(200, 50, 50, 50)]

    def test_empty_samples_give_no_leaves(self):
        assert median_cut(np.empty((0, 3), dtype=np.uint8)) == []

    def test_leaf_count_bounded_by_depth(self, noisy_rgba):
        samples = noisy_rgba.reshape(-1, 4)[:, :3]
        for depth in range(0, 5):
            leaves = median_cut(samples, 0, depth)
            assert 1 <= len(leaves) <= 2 ** depth

    def test_counts_sum_to_samples(self, noisy_rgba):
        samples = noisy_rgba.reshape(-1, 4)[:, :3]
        leaves = median_cut(samples, 0, 3)
        assert len(leaves) == 8
        assert sum(leaf.count for leaf in leaves) == len(samples)

    def test_splits_widest_channel(self):
        samples = np.array([[10, 100, 100]] * 4 + [[250, 100, 100]] * 4, dtype=np.uint8)
        leaves = median_cut(samples, 0, 1)
        assert [(leaf.r, leaf.count) for leaf in leaves] == [(10, 4), (250, 4)]

    def test_average_rounds_half_up(self):
        samples = np.array([[10, 10, 10], [11, 11, 11]], dtype=np.uint8)
        assert median_cut(samples, 0, 0) == [BucketColor(11, 11, 11, 2)]

    def test_deterministic(self, noisy_rgba):
        samples = noisy_rgba.reshape(-1, 4)[:, :3]
        assert median_cut(samples, 0, 3) == median_cut(samples.copy(), 0, 3)


class TestRanking:
    """Test importance ranking."""

    def test_importance_weights_saturation(self):
        gray = BucketColor(128, 128, 128, 100)
        red = BucketColor(255, 0, 0, 60)
        assert gray.importance == 100
        assert red.importance == 120
        assert rank_by_importance([gray, red]) == [red, gray]

    def test_ties_keep_bucket_order(self):
        a = BucketColor(10, 20, 30, 5)
        b = BucketColor(30, 20, 10, 5)
        assert rank_by_importance([a, b]) == [a, b]
        assert rank_by_importance([b, a]) == [b, a]


class TestAssignRole:
    """Test role suggestion rules, first match wins."""

    @pytest.mark.parametrize("index,luminance,role", [
        (0, 0.95, PaletteRole.PRIMARY),
        (0, 0.05, PaletteRole.PRIMARY),
        (1, 0.85, PaletteRole.BACKGROUND),
        (1, 0.10, PaletteRole.FOREGROUND),
        (1, 0.50, PaletteRole.ACCENT),
        (2, 0.50, PaletteRole.MUTED),
        (3, 0.25, PaletteRole.SECONDARY),
        (4, 0.75, PaletteRole.SECONDARY),
        (2, 0.80, PaletteRole.SECONDARY),
        (2, 0.20, PaletteRole.SECONDARY),
    ])
    def test_roles(self, index, luminance, role):
        assert assign_role(index, luminance) == role


class TestExtractPalette:
    """Test end-to-end extraction."""

    def test_single_color_image(self, solid_red_rgba):
        result = extract_palette(solid_red_rgba.tobytes(), 10, 10)
        assert len(result.palette) == 1
        assert result.leaf_count == 1
        entry = result.palette[0]
        assert entry.hex == "#C83232"
        assert entry.rgb == (200, 50, 50)
        assert entry.pixel_count == 100
        assert entry.role == PaletteRole.PRIMARY

    def test_two_color_image(self, red_blue_rgba):
        result = extract_palette(red_blue_rgba, 10, 10)
        assert [entry.hex for entry in result.palette] == ["#3232C8", "#C83232"]
        assert [entry.pixel_count for entry in result.palette] == [50, 50]
        assert result.palette[0].role == PaletteRole.PRIMARY

    def test_palette_size_limit(self, noisy_rgba):
        result = extract_palette(noisy_rgba, 64, 64)
        assert len(result.palette) == 5
        assert result.leaf_count == 8
        importance = [e.pixel_count * (1 + (max(e.rgb) - min(e.rgb)) / 255) for e in result.palette]
        assert importance == sorted(importance, reverse=True)

    def test_oklch_matches_entry_color(self, solid_red_rgba):
        entry = extract_palette(solid_red_rgba, 10, 10).palette[0]
        assert entry.oklch.startswith("oklch(")
        assert entry.oklch == str(entry.color)

    def test_transparent_image_fails(self):
        image = make_rgba(10, 10, (200, 50, 50), alpha=0)
        with pytest.raises(InsufficientColorVarietyError) as exc_info:
            extract_palette(image, 10, 10)
        assert exc_info.value.sample_count == 0
        assert exc_info.value.required == 10
        assert "Not enough distinct colors" in str(exc_info.value)

    def test_black_image_fails(self):
        with pytest.raises(ExtractionError):
            extract_palette(make_rgba(10, 10, (0, 0, 0)), 10, 10)

    def test_min_samples_is_configurable(self):
        image = make_rgba(3, 3, (200, 50, 50))
        with pytest.raises(InsufficientColorVarietyError):
            extract_palette(image, 3, 3)
        result = extract_palette(image, 3, 3, settings=ExtractionConfig(min_samples=9))
        assert result.sample_count == 9

    def test_rgb_buffer(self):
        image = np.full((10, 10, 3), (50, 50, 200), dtype=np.uint8)
        result = extract_palette(image.tobytes(), 10, 10, channels=3)
        assert result.palette[0].hex == "#3232C8"

    def test_deterministic(self, noisy_rgba):
        assert extract_palette(noisy_rgba, 64, 64) == extract_palette(noisy_rgba, 64, 64)

    def test_records_stage_metrics(self, solid_red_rgba, metrics_collector):
        extract_palette(solid_red_rgba, 10, 10, metrics=metrics_collector)
        assert metrics_collector.get_operation_stats("pixel_sampling")["total_calls"] == 1
        assert metrics_collector.get_operation_stats("median_cut")["total_calls"] == 1

    def test_to_schema(self, red_blue_rgba):
        response = extract_palette(red_blue_rgba, 10, 10).to_schema()
        assert isinstance(response, ExtractionResponse)
        assert response.palette[0].role == "primary"
        assert response.sample_count == 100

    def test_largest_palette_fits_schema(self, noisy_rgba):
        """The biggest configurable palette still renders through the output schema"""
        settings = ExtractionConfig(palette_size=MAX_PALETTE_SIZE)
        response = extract_palette(noisy_rgba, 64, 64, settings=settings).to_schema()
        assert len(response.palette) == MAX_PALETTE_SIZE

    def test_oversized_palette_rejected_up_front(self):
        with pytest.raises(ValueError, match="palette_size"):
            ExtractionConfig(palette_size=MAX_PALETTE_SIZE + 1)
