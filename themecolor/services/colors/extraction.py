"""
Palette extraction service.

Quantizes a decoded pixel buffer into a small theme palette:

1. Strided sampling, dropping translucent and near-black/near-white pixels
2. Median-cut recursion into up to 2**max_depth leaf buckets
3. Ranking of bucket representatives by count weighted with saturation
4. Promotion of the top entries to canonical colors with a theme role

Image decoding lives outside this module (see services/imaging.py); the input
here is an interleaved RGBA or RGB byte buffer.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

import numpy as np
from loguru import logger

from themecolor.config import ExtractionConfig
from themecolor.schemas import ExtractionResponse, PaletteEntrySchema
from ..observability import MetricsCollector, performance_monitor
from .conversion import CanonicalColor, from_rgb, to_canonical_string
from .errors import InsufficientColorVarietyError, NoImageProvidedError


PixelBuffer = Union[bytes, bytearray, memoryview, np.ndarray]

LUMINANCE_WEIGHTS = np.array([0.2126, 0.7152, 0.0722])


class PaletteRole(str, Enum):
    """Theme role suggested for an extracted color."""
    PRIMARY = "primary"
    ACCENT = "accent"
    BACKGROUND = "background"
    FOREGROUND = "foreground"
    MUTED = "muted"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class BucketColor:
    """Equal-weight average of one median-cut leaf bucket."""
    r: int
    g: int
    b: int
    count: int

    @property
    def saturation(self) -> int:
        return max(self.r, self.g, self.b) - min(self.r, self.g, self.b)

    @property
    def importance(self) -> float:
        return self.count * (1 + self.saturation / 255)


@dataclass(frozen=True)
class PaletteEntry:
    """One extracted palette color."""
    color: CanonicalColor
    rgb: Tuple[int, int, int]
    pixel_count: int
    luminance: float
    role: PaletteRole

    @property
    def hex(self) -> str:
        r, g, b = self.rgb
        return f"#{r:02X}{g:02X}{b:02X}"

    @property
    def oklch(self) -> str:
        return to_canonical_string(self.color)

    def to_schema(self) -> PaletteEntrySchema:
        return PaletteEntrySchema(
            hex=self.hex,
            oklch=self.oklch,
            role=self.role.value,
            luminance=self.luminance,
            pixel_count=self.pixel_count,
        )


@dataclass(frozen=True)
class ExtractionResult:
    """Palette plus the counts that produced it."""
    palette: List[PaletteEntry]
    sample_count: int
    leaf_count: int

    def to_schema(self) -> ExtractionResponse:
        return ExtractionResponse(
            palette=[entry.to_schema() for entry in self.palette],
            sample_count=self.sample_count,
            leaf_count=self.leaf_count,
        )


def to_pixel_array(pixels: PixelBuffer, width: int, height: int, channels: int = 4) -> np.ndarray:
    """
    View an interleaved pixel buffer as an (N, channels) uint8 array.

    Args:
        pixels: Raw RGBA/RGB bytes or a uint8 array of any shape
        width: Image width in pixels
        height: Image height in pixels
        channels: 4 for RGBA, 3 for RGB

    Returns:
        Array of shape (width * height, channels)

    Raises:
        NoImageProvidedError: If the buffer or dimensions are empty
        ValueError: If the buffer does not match the dimensions
    """
    if channels not in (3, 4):
        raise ValueError(f"Expected 3 (RGB) or 4 (RGBA) channels, got {channels}")
    if pixels is None or width <= 0 or height <= 0:
        raise NoImageProvidedError("No image provided")

    if isinstance(pixels, np.ndarray):
        if pixels.dtype != np.uint8:
            raise ValueError(f"Pixel array must be uint8, got {pixels.dtype}")
        flat = pixels.reshape(-1)
    else:
        flat = np.frombuffer(pixels, dtype=np.uint8)

    if flat.size == 0:
        raise NoImageProvidedError("No image provided")

    expected = width * height * channels
    if flat.size != expected:
        raise ValueError(
            f"Pixel buffer size mismatch: got {flat.size} bytes, "
            f"expected {width}×{height}×{channels} = {expected}"
        )

    return flat.reshape(-1, channels)


def pixel_luminance(rgb_u8: np.ndarray) -> np.ndarray:
    """WCAG relative luminance for an (N, 3) uint8 array."""
    c = rgb_u8.astype(np.float64) / 255.0
    linear = np.where(c <= 0.04045, c / 12.92, ((c + 0.055) / 1.055) ** 2.4)
    return linear @ LUMINANCE_WEIGHTS


def sample_pixels(pixel_array: np.ndarray, settings: ExtractionConfig) -> np.ndarray:
    """
    Stride through the buffer and keep informative samples.

    At most settings.sample_limit pixels are visited. Pixels with alpha below
    the visibility threshold, and pixels whose luminance falls outside
    settings.luminance_bounds, are skipped.

    Returns:
        Qualifying RGB samples, shape (M, 3) uint8
    """
    total = len(pixel_array)
    step = max(1, math.ceil(total / settings.sample_limit))
    strided = pixel_array[::step]

    keep = np.ones(len(strided), dtype=bool)

    if strided.shape[1] == 4:
        visible = strided[:, 3] >= settings.alpha_threshold
        keep &= visible
        logger.debug(f"Alpha filter: kept {int(np.sum(visible))}/{len(visible)} pixels")

    rgb = strided[:, :3]
    low, high = settings.luminance_bounds
    luminance = pixel_luminance(rgb)
    informative = (luminance >= low) & (luminance <= high)
    keep &= informative
    logger.debug(f"Luminance filter: kept {int(np.sum(informative))}/{len(informative)} pixels")

    samples = rgb[keep]
    logger.info(f"Sampling: {total} pixels, stride {step} → {len(samples)} samples")
    return samples


def _average_bucket(samples: np.ndarray) -> BucketColor:
    mean = samples.astype(np.float64).mean(axis=0)
    r, g, b = (int(v) for v in np.floor(mean + 0.5))
    return BucketColor(r=r, g=g, b=b, count=len(samples))


def median_cut(samples: np.ndarray, depth: int = 0, max_depth: int = 3) -> List[BucketColor]:
    """
    Recursively split samples at the median of their widest channel.

    A bucket becomes a leaf when the depth budget is spent or every sample in
    it is identical. Empty buckets produce no leaf.

    Args:
        samples: RGB samples, shape (N, 3)
        depth: Current recursion depth
        max_depth: Depth budget; at most 2**max_depth leaves

    Returns:
        Leaf representatives in bucket order
    """
    if len(samples) == 0:
        return []

    if depth >= max_depth:
        return [_average_bucket(samples)]

    ranges = samples.max(axis=0).astype(np.int32) - samples.min(axis=0).astype(np.int32)
    channel = int(np.argmax(ranges))
    if ranges[channel] == 0:
        return [_average_bucket(samples)]

    ordered = samples[np.argsort(samples[:, channel], kind="stable")]
    mid = len(ordered) // 2

    return (
        median_cut(ordered[:mid], depth + 1, max_depth)
        + median_cut(ordered[mid:], depth + 1, max_depth)
    )


def rank_by_importance(buckets: List[BucketColor]) -> List[BucketColor]:
    """Order buckets by count × (1 + saturation/255), highest first; ties keep bucket order."""
    return sorted(buckets, key=lambda bucket: bucket.importance, reverse=True)


def assign_role(index: int, luminance: float) -> PaletteRole:
    """
    Suggest a theme role from rank and luminance.

    Rules are evaluated in order and the first match wins.
    """
    if index == 0:
        return PaletteRole.PRIMARY
    if luminance > 0.8:
        return PaletteRole.BACKGROUND
    if luminance < 0.2:
        return PaletteRole.FOREGROUND
    if index == 1:
        return PaletteRole.ACCENT
    if 0.3 < luminance < 0.7:
        return PaletteRole.MUTED
    return PaletteRole.SECONDARY


def promote_bucket(bucket: BucketColor, index: int) -> PaletteEntry:
    """Convert a ranked bucket representative into a palette entry."""
    rgb = (bucket.r, bucket.g, bucket.b)
    luminance = float(pixel_luminance(np.array([rgb], dtype=np.uint8))[0])
    return PaletteEntry(
        color=from_rgb(*rgb),
        rgb=rgb,
        pixel_count=bucket.count,
        luminance=luminance,
        role=assign_role(index, luminance),
    )


def extract_palette(pixels: PixelBuffer,
                    width: int,
                    height: int,
                    channels: int = 4,
                    settings: Optional[ExtractionConfig] = None,
                    metrics: Optional[MetricsCollector] = None) -> ExtractionResult:
    """
    Extract up to settings.palette_size representative colors from pixels.

    Args:
        pixels: Interleaved RGBA (channels=4) or RGB (channels=3) bytes
        width: Image width in pixels
        height: Image height in pixels
        channels: Channels per pixel
        settings: Extraction parameters (defaults from config)
        metrics: Optional collector for stage timings

    Returns:
        ExtractionResult with palette entries ordered by importance

    Raises:
        NoImageProvidedError: If no pixel data was supplied
        InsufficientColorVarietyError: If fewer than settings.min_samples
            samples survive filtering
    """
    settings = settings or ExtractionConfig()
    pixel_array = to_pixel_array(pixels, width, height, channels)

    with performance_monitor("pixel_sampling", metrics, sample_count=len(pixel_array)):
        samples = sample_pixels(pixel_array, settings)

    if len(samples) < settings.min_samples:
        logger.warning(f"Extraction aborted: {len(samples)} samples < {settings.min_samples}")
        raise InsufficientColorVarietyError(len(samples), settings.min_samples)

    with performance_monitor("median_cut", metrics, sample_count=len(samples)):
        leaves = median_cut(samples, 0, settings.max_depth)

    ranked = rank_by_importance(leaves)[:settings.palette_size]
    palette = [promote_bucket(bucket, i) for i, bucket in enumerate(ranked)]

    roles = [entry.role.value for entry in palette]
    logger.info(f"Extraction successful: {len(leaves)} buckets → {len(palette)} colors {roles}")

    return ExtractionResult(palette=palette, sample_count=len(samples), leaf_count=len(leaves))
