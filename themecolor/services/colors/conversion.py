"""
Color Space Conversion Module

Parses color text into the canonical perceptual representation (an OKLCH-style
lightness/chroma/hue triple) and converts it back to 8-bit sRGB for display.

Conversion chain, both directions:
    sRGB <-> linear RGB <-> CIE XYZ (D65) <-> CIE Lab <-> polar LCh

The polar form is reinterpreted as the canonical color with L and C divided by
100. It is an approximation of OKLab built on CIE Lab. It is self-consistent
and round-trips 8-bit sRGB to within one unit per channel, and downstream
numeric expectations are calibrated against it.
"""

import math
import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from loguru import logger

from themecolor.config import config


# Linear sRGB -> XYZ, D65 reference white
RGB_TO_XYZ = (
    (0.4124564, 0.3575761, 0.1804375),
    (0.2126729, 0.7151522, 0.0721750),
    (0.0193339, 0.1191920, 0.9503041),
)

# XYZ -> linear sRGB
XYZ_TO_RGB = (
    (3.2404542, -1.5371385, -0.4985314),
    (-0.9692660, 1.8760108, 0.0415560),
    (0.0556434, -0.2040259, 1.0572252),
)

D65_WHITE = (0.95047, 1.0, 1.08883)

LAB_EPSILON = 0.008856
LAB_INVERSE_EPSILON = 0.206893  # cube root of LAB_EPSILON
LAB_SLOPE = 7.787
LAB_OFFSET = 16.0 / 116.0

# CIE L and C are on a 0-100 scale; canonical L and C are on 0-1
CANONICAL_SCALE = 100.0

SRGB_BREAKPOINT = 0.04045
LINEAR_BREAKPOINT = 0.0031308

MAX_CHROMA = 0.4

_NUMBER = r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)"
HEX_PATTERN = re.compile(r"^#([0-9a-fA-F]{6})$")
RGB_PATTERN = re.compile(r"^rgb\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)$", re.IGNORECASE)
OKLCH_PATTERN = re.compile(
    rf"^oklch\(\s*({_NUMBER})\s+({_NUMBER})\s+({_NUMBER})(?:\s*/\s*({_NUMBER}))?\s*\)$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class CanonicalColor:
    """Immutable perceptual color: L in [0,1], C >= 0, H in [0,360), alpha in [0,1]."""
    lightness: float
    chroma: float
    hue: float
    alpha: float = 1.0

    def __str__(self) -> str:
        return to_canonical_string(self)


@dataclass(frozen=True)
class DisplayColor:
    """8-bit sRGB triple derived from a canonical color."""
    r: int
    g: int
    b: int

    @property
    def hex(self) -> str:
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"

    def as_unit(self) -> Tuple[float, float, float]:
        """Channels scaled to [0, 1]."""
        return self.r / 255.0, self.g / 255.0, self.b / 255.0


ColorLike = Union[CanonicalColor, str]


def normalize_hue(hue: float) -> float:
    """Wrap a hue angle into [0, 360)."""
    wrapped = hue % 360.0
    # Tiny negative inputs round up to exactly 360.0
    if wrapped >= 360.0:
        wrapped = 0.0
    return wrapped


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def srgb_to_linear(c: float) -> float:
    """Remove the sRGB transfer curve from a channel in [0, 1]."""
    if c <= SRGB_BREAKPOINT:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


def linear_to_srgb(c: float) -> float:
    """Apply the sRGB transfer curve to a linear channel."""
    if c <= LINEAR_BREAKPOINT:
        return 12.92 * c
    return 1.055 * (c ** (1.0 / 2.4)) - 0.055


def _apply_matrix(matrix, vector) -> Tuple[float, float, float]:
    return (
        matrix[0][0] * vector[0] + matrix[0][1] * vector[1] + matrix[0][2] * vector[2],
        matrix[1][0] * vector[0] + matrix[1][1] * vector[1] + matrix[1][2] * vector[2],
        matrix[2][0] * vector[0] + matrix[2][1] * vector[1] + matrix[2][2] * vector[2],
    )


def linear_rgb_to_xyz(rgb: Tuple[float, float, float]) -> Tuple[float, float, float]:
    return _apply_matrix(RGB_TO_XYZ, rgb)


def xyz_to_linear_rgb(xyz: Tuple[float, float, float]) -> Tuple[float, float, float]:
    return _apply_matrix(XYZ_TO_RGB, xyz)


def _lab_f(t: float) -> float:
    if t > LAB_EPSILON:
        return t ** (1.0 / 3.0)
    return LAB_SLOPE * t + LAB_OFFSET


def _lab_f_inverse(t: float) -> float:
    if t > LAB_INVERSE_EPSILON:
        return t * t * t
    return (t - LAB_OFFSET) / LAB_SLOPE


def xyz_to_lab(xyz: Tuple[float, float, float]) -> Tuple[float, float, float]:
    """CIE XYZ to CIE Lab relative to the D65 white point."""
    fx = _lab_f(xyz[0] / D65_WHITE[0])
    fy = _lab_f(xyz[1] / D65_WHITE[1])
    fz = _lab_f(xyz[2] / D65_WHITE[2])
    return 116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz)


def lab_to_xyz(lab: Tuple[float, float, float]) -> Tuple[float, float, float]:
    """CIE Lab to CIE XYZ relative to the D65 white point."""
    L, a, b = lab
    fy = (L + 16.0) / 116.0
    fx = a / 500.0 + fy
    fz = fy - b / 200.0
    return (
        D65_WHITE[0] * _lab_f_inverse(fx),
        D65_WHITE[1] * _lab_f_inverse(fy),
        D65_WHITE[2] * _lab_f_inverse(fz),
    )


def lab_to_canonical(lab: Tuple[float, float, float], alpha: float = 1.0) -> CanonicalColor:
    """Reinterpret polar Lab as the canonical color."""
    L, a, b = lab
    chroma = math.sqrt(a * a + b * b)
    hue = normalize_hue(math.degrees(math.atan2(b, a)))
    return CanonicalColor(
        lightness=clamp(L / CANONICAL_SCALE, 0.0, 1.0),
        chroma=chroma / CANONICAL_SCALE,
        hue=hue,
        alpha=alpha,
    )


def canonical_to_lab(color: CanonicalColor) -> Tuple[float, float, float]:
    L = color.lightness * CANONICAL_SCALE
    C = color.chroma * CANONICAL_SCALE
    h_rad = math.radians(color.hue)
    return L, C * math.cos(h_rad), C * math.sin(h_rad)


def from_srgb(r: float, g: float, b: float, alpha: float = 1.0) -> CanonicalColor:
    """Promote sRGB channels in [0, 1] to a canonical color."""
    linear = (srgb_to_linear(r), srgb_to_linear(g), srgb_to_linear(b))
    return lab_to_canonical(xyz_to_lab(linear_rgb_to_xyz(linear)), alpha)


def from_rgb(r: int, g: int, b: int, alpha: float = 1.0) -> CanonicalColor:
    """Promote 8-bit sRGB channels to a canonical color."""
    return from_srgb(r / 255.0, g / 255.0, b / 255.0, alpha)


def to_srgb(color: CanonicalColor) -> Tuple[float, float, float]:
    """
    Convert a canonical color to gamma-encoded sRGB in [0, 1].

    Out-of-gamut channels are hard-clamped after conversion.

    Raises:
        ValueError: If the color holds non-finite components
    """
    components = (color.lightness, color.chroma, color.hue)
    if not all(math.isfinite(v) for v in components):
        raise ValueError(f"Non-finite color components: {components}")

    linear = xyz_to_linear_rgb(lab_to_xyz(canonical_to_lab(color)))
    return tuple(clamp(linear_to_srgb(c), 0.0, 1.0) for c in linear)


def to_linear_rgb(color: CanonicalColor) -> Tuple[float, float, float]:
    """Gamut-clamped linear RGB for a canonical color."""
    return tuple(srgb_to_linear(c) for c in to_srgb(color))


def _to_8bit(c: float) -> int:
    return int(clamp(math.floor(c * 255.0 + 0.5), 0, 255))


def to_display(color: CanonicalColor) -> DisplayColor:
    """Convert a canonical color to 8-bit sRGB."""
    r, g, b = to_srgb(color)
    return DisplayColor(_to_8bit(r), _to_8bit(g), _to_8bit(b))


def to_display_hex(color: CanonicalColor) -> str:
    """
    Convert a canonical color to a #RRGGBB display string.

    Returns the configured neutral gray fallback when conversion fails so
    rendering code never has to handle an exception here.
    """
    try:
        return to_display(color).hex
    except (TypeError, ValueError, OverflowError, AttributeError) as e:
        logger.warning(f"Display conversion failed for {color!r}: {e}; using {config.FALLBACK_HEX}")
        return config.FALLBACK_HEX


def to_canonical_string(color: CanonicalColor) -> str:
    """Serialize as ``oklch(L C H)`` (``/ A`` appended when translucent), 4 decimals."""
    lightness = round(color.lightness, 4) + 0.0
    chroma = round(color.chroma, 4) + 0.0
    hue = round(color.hue, 4) + 0.0
    if hue >= 360.0:
        hue = 0.0

    text = f"oklch({lightness:.4f} {chroma:.4f} {hue:.4f}"
    if color.alpha < 1.0:
        text += f" / {round(color.alpha, 4) + 0.0:.4f}"
    return text + ")"


def _parse_hex(match) -> CanonicalColor:
    digits = match.group(1)
    r, g, b = (int(digits[i:i + 2], 16) for i in (0, 2, 4))
    return from_rgb(r, g, b)


def _parse_rgb(match) -> Optional[CanonicalColor]:
    r, g, b = (int(match.group(i)) for i in (1, 2, 3))
    if not all(0 <= v <= 255 for v in (r, g, b)):
        return None
    return from_rgb(r, g, b)


def _parse_oklch(match) -> Optional[CanonicalColor]:
    lightness = float(match.group(1))
    chroma = float(match.group(2))
    hue = float(match.group(3))
    alpha = float(match.group(4)) if match.group(4) is not None else 1.0

    if not 0.0 <= lightness <= 1.0:
        return None
    if chroma < 0.0:
        return None
    if not 0.0 <= hue < 360.0:
        return None
    if not 0.0 <= alpha <= 1.0:
        return None
    return CanonicalColor(lightness=lightness, chroma=chroma, hue=hue, alpha=alpha)


def parse_color(text) -> Optional[CanonicalColor]:
    """
    Parse color text into a canonical color.

    Accepted grammars:
        #RRGGBB             six hex digits, any case
        rgb(R, G, B)        integers 0-255
        oklch(L C H)        space separated, optional ``/ A``

    Returns:
        The canonical color, or None for anything unrecognized or out of its
        nominal domain. Never raises.
    """
    if not isinstance(text, str):
        return None

    text = text.strip()

    match = HEX_PATTERN.match(text)
    if match:
        return _parse_hex(match)

    match = RGB_PATTERN.match(text)
    if match:
        return _parse_rgb(match)

    match = OKLCH_PATTERN.match(text)
    if match:
        return _parse_oklch(match)

    logger.debug(f"Unrecognized color text: {text!r}")
    return None


def coerce_color(value: ColorLike) -> CanonicalColor:
    """
    Accept a canonical color or color text.

    Raises:
        ValueError: If text does not parse
        TypeError: If value is neither a string nor a CanonicalColor
    """
    if isinstance(value, CanonicalColor):
        return value
    if isinstance(value, str):
        parsed = parse_color(value)
        if parsed is None:
            raise ValueError(f"Unrecognized color: {value!r}")
        return parsed
    raise TypeError(f"Expected CanonicalColor or str, got {type(value).__name__}")
