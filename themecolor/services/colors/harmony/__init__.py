"""
ThemeColor Harmony Engine

Lightness, chroma and hue manipulation on canonical colors, blending, and
color theory rules (complementary, triadic, analogous, split complementary)
for palette suggestions.
"""

from dataclasses import dataclass, replace
from typing import List

from ..conversion import (
    MAX_CHROMA, CanonicalColor, ColorLike, clamp, coerce_color, normalize_hue
)


@dataclass(frozen=True)
class HarmonySet:
    """Harmony suggestions for a base color; every member keeps the base L and C."""
    complementary: CanonicalColor
    triadic: List[CanonicalColor]
    analogous: List[CanonicalColor]
    split_complementary: List[CanonicalColor]


def adjust_lightness(color: ColorLike, delta: float) -> CanonicalColor:
    """Shift lightness by delta, clamped to [0, 1]."""
    base = coerce_color(color)
    return replace(base, lightness=clamp(base.lightness + delta, 0.0, 1.0))


def adjust_chroma(color: ColorLike, delta: float) -> CanonicalColor:
    """Shift chroma by delta, clamped to [0, 0.4]."""
    base = coerce_color(color)
    return replace(base, chroma=clamp(base.chroma + delta, 0.0, MAX_CHROMA))


def shift_hue(color: ColorLike, degrees: float) -> CanonicalColor:
    """
    Rotate hue by degrees (may be negative or exceed a full turn).

    Result hue is in [0, 360); rotations equal modulo 360 give equal results.
    """
    base = coerce_color(color)
    return replace(base, hue=normalize_hue(base.hue + (degrees % 360.0)))


def hue_difference(h1: float, h2: float) -> float:
    """Signed shortest rotation from h1 to h2, folded into (-180, 180]."""
    diff = (h2 - h1) % 360.0
    if diff > 180.0:
        diff -= 360.0
    return diff


def hue_separation(h1: float, h2: float) -> float:
    """
    Minimum angular separation between two hues.

    Returns:
        Separation in degrees [0, 180]
    """
    return abs(hue_difference(h1, h2))


def mix(color1: ColorLike, color2: ColorLike, t: float = 0.5) -> CanonicalColor:
    """
    Blend two colors; t = 0 gives color1 and t = 1 gives color2.

    Lightness, chroma and alpha interpolate linearly. Hue follows the
    shortest arc between the two hues.
    """
    a = coerce_color(color1)
    b = coerce_color(color2)
    t = clamp(t, 0.0, 1.0)

    lightness = a.lightness * (1 - t) + b.lightness * t
    chroma = a.chroma * (1 - t) + b.chroma * t
    alpha = a.alpha * (1 - t) + b.alpha * t
    hue = normalize_hue(a.hue + hue_difference(a.hue, b.hue) * t)

    return CanonicalColor(lightness=lightness, chroma=chroma, hue=hue, alpha=alpha)


def generate_palette(base_color: ColorLike, count: int = 5) -> List[CanonicalColor]:
    """
    Spread count colors evenly around the hue circle starting at the base.

    Raises:
        ValueError: If count is not positive
    """
    if count < 1:
        raise ValueError(f"count must be positive, got {count}")

    base = coerce_color(base_color)
    hue_step = 360.0 / count
    return [replace(base, hue=normalize_hue(base.hue + i * hue_step)) for i in range(count)]


def generate_harmony(color: ColorLike) -> HarmonySet:
    """Generate complementary, triadic, analogous and split complementary colors."""
    base = coerce_color(color)

    def rotated(degrees: float) -> CanonicalColor:
        return replace(base, hue=normalize_hue(base.hue + degrees))

    return HarmonySet(
        complementary=rotated(180),
        triadic=[rotated(120), rotated(240)],
        analogous=[rotated(-30), rotated(30)],
        split_complementary=[rotated(150), rotated(210)],
    )


def is_light_color(color: ColorLike) -> bool:
    """True for colors with canonical lightness above 0.6."""
    return coerce_color(color).lightness > 0.6


def contrasting_text_color(background: ColorLike) -> str:
    """'black' for light backgrounds, 'white' for dark ones."""
    return "black" if is_light_color(background) else "white"
