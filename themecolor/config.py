"""
ThemeColor Configuration
Manages environment variables and defaults for the color engine services.
"""
import os
from dataclasses import dataclass, field
from typing import Tuple


# Upper bound on palette entries reported by an extraction
MAX_PALETTE_SIZE = 5


class Config:
    """Configuration class for ThemeColor services."""

    # Logging
    LOG_LEVEL: str = os.environ.get("THEMECOLOR_LOG_LEVEL", "INFO")

    # Display conversion
    FALLBACK_HEX: str = os.environ.get("THEMECOLOR_FALLBACK_HEX", "#888888")

    # Palette extraction defaults
    SAMPLE_LIMIT: int = int(os.environ.get("THEMECOLOR_SAMPLE_LIMIT", "10000"))
    MAX_DEPTH: int = int(os.environ.get("THEMECOLOR_MAX_DEPTH", "3"))
    ALPHA_THRESHOLD: int = int(os.environ.get("THEMECOLOR_ALPHA_THRESHOLD", "128"))
    LUMINANCE_MIN: float = float(os.environ.get("THEMECOLOR_LUMINANCE_MIN", "0.05"))
    LUMINANCE_MAX: float = float(os.environ.get("THEMECOLOR_LUMINANCE_MAX", "0.95"))
    MIN_SAMPLES: int = int(os.environ.get("THEMECOLOR_MIN_SAMPLES", "10"))
    PALETTE_SIZE: int = int(os.environ.get("THEMECOLOR_PALETTE_SIZE", "5"))

    # Decoder adapter
    PREVIEW_MAX_EDGE: int = int(os.environ.get("THEMECOLOR_PREVIEW_MAX_EDGE", "200"))

    # Color vision deficiency analysis
    CVD_DISTINCT_THRESHOLD: float = float(os.environ.get("THEMECOLOR_CVD_DISTINCT_THRESHOLD", "0.1"))
    CVD_MAX_PALETTE_SIZE: int = int(os.environ.get("THEMECOLOR_CVD_MAX_PALETTE_SIZE", "20"))

    # Observability
    METRICS_ENABLED: bool = bool(int(os.environ.get("THEMECOLOR_METRICS_ENABLED", "1")))

    @classmethod
    def validate_max_depth(cls, depth: int) -> bool:
        """Validate median-cut depth budget (2**depth leaf buckets)."""
        return 0 <= depth <= 8

    @classmethod
    def validate_alpha_threshold(cls, alpha: int) -> bool:
        """Validate visibility threshold on the 8-bit alpha channel."""
        return 0 <= alpha <= 255

    @classmethod
    def validate_luminance_bounds(cls, low: float, high: float) -> bool:
        """Validate the accepted sample luminance window."""
        return 0.0 <= low < high <= 1.0

    @classmethod
    def validate_palette_size(cls, size: int) -> bool:
        """Validate the number of palette entries returned (1-5)."""
        return 1 <= size <= MAX_PALETTE_SIZE

    @classmethod
    def validate_threshold(cls, threshold: float) -> bool:
        """Validate a normalized distinguishability threshold."""
        return 0.0 <= threshold <= 1.0


# Global config instance
config = Config()


@dataclass(frozen=True)
class ExtractionConfig:
    """Named parameters for one palette extraction run."""
    sample_limit: int = config.SAMPLE_LIMIT
    max_depth: int = config.MAX_DEPTH
    alpha_threshold: int = config.ALPHA_THRESHOLD
    luminance_bounds: Tuple[float, float] = field(
        default=(config.LUMINANCE_MIN, config.LUMINANCE_MAX)
    )
    min_samples: int = config.MIN_SAMPLES
    palette_size: int = config.PALETTE_SIZE

    def __post_init__(self):
        if self.sample_limit < 1:
            raise ValueError(f"sample_limit must be positive, got {self.sample_limit}")
        if not Config.validate_max_depth(self.max_depth):
            raise ValueError(f"max_depth out of range [0, 8]: {self.max_depth}")
        if not Config.validate_alpha_threshold(self.alpha_threshold):
            raise ValueError(f"alpha_threshold out of range [0, 255]: {self.alpha_threshold}")
        low, high = self.luminance_bounds
        if not Config.validate_luminance_bounds(low, high):
            raise ValueError(f"Invalid luminance bounds: {self.luminance_bounds}")
        if self.min_samples < 1:
            raise ValueError(f"min_samples must be positive, got {self.min_samples}")
        if not Config.validate_palette_size(self.palette_size):
            raise ValueError(f"palette_size out of range [1, {MAX_PALETTE_SIZE}]: {self.palette_size}")
