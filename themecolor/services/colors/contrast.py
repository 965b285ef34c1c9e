"""
Contrast Evaluation Module

WCAG 2.1 relative luminance, contrast ratio and compliance checks on
canonical colors, plus helpers that propose a compliant foreground.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from loguru import logger

from themecolor.schemas import ContrastReport
from .conversion import (
    CanonicalColor, ColorLike, coerce_color, to_canonical_string, to_linear_rgb
)


# WCAG contrast thresholds
AA_NORMAL = 4.5
AA_LARGE = 3.0
AAA_NORMAL = 7.0
AAA_LARGE = 4.5

LUMINANCE_WEIGHTS = (0.2126, 0.7152, 0.0722)

NEAR_BLACK = CanonicalColor(lightness=0.2, chroma=0.0, hue=0.0)
NEAR_WHITE = CanonicalColor(lightness=0.95, chroma=0.0, hue=0.0)
WHITE = CanonicalColor(lightness=1.0, chroma=0.0, hue=0.0)
BLACK = CanonicalColor(lightness=0.0, chroma=0.0, hue=0.0)

# Binary search limits for find_minimal_fix
FIX_TOLERANCE = 0.005
FIX_MAX_ITERATIONS = 20


class ComplianceLevel(str, Enum):
    """Highest WCAG tier a color pair satisfies."""
    AAA = "AAA"
    AA = "AA"
    AA_LARGE = "AA Large"
    FAIL = "Fail"


@dataclass(frozen=True)
class ContrastResult:
    """WCAG compliance of a foreground/background pair."""
    ratio: float
    passes_aa: bool
    passes_aa_large: bool
    passes_aaa: bool
    passes_aaa_large: bool
    level: ComplianceLevel
    score: str

    def to_schema(self) -> ContrastReport:
        return ContrastReport(
            ratio=self.ratio,
            passes_aa=self.passes_aa,
            passes_aa_large=self.passes_aa_large,
            passes_aaa=self.passes_aaa,
            passes_aaa_large=self.passes_aaa_large,
            level=self.level.value,
            score=self.score,
        )


@dataclass(frozen=True)
class AccessiblePairs:
    """White and black foreground results against one background."""
    white: ContrastResult
    black: ContrastResult
    recommended: str  # "white" or "black"


@dataclass(frozen=True)
class MinimalFix:
    """Outcome of the lightness binary search in find_minimal_fix."""
    color: CanonicalColor
    adjustment: float
    direction: Optional[str]  # "lightened", "darkened", or None if already passing
    already_passes: bool


def relative_luminance(color: ColorLike) -> float:
    """
    WCAG relative luminance in [0, 1].

    The color is converted to gamut-clamped linear RGB and weighted with the
    Rec. 709 coefficients.
    """
    r, g, b = to_linear_rgb(coerce_color(color))
    wr, wg, wb = LUMINANCE_WEIGHTS
    return wr * r + wg * g + wb * b


def contrast_ratio(foreground: ColorLike, background: ColorLike) -> float:
    """
    Contrast ratio in [1, 21].

    Symmetric: swapping foreground and background gives the same value.
    """
    lum1 = relative_luminance(foreground)
    lum2 = relative_luminance(background)

    lighter = max(lum1, lum2)
    darker = min(lum1, lum2)

    return (lighter + 0.05) / (darker + 0.05)


def compliance_level(ratio: float) -> ComplianceLevel:
    """Get the highest compliance level achieved."""
    if ratio >= AAA_NORMAL:
        return ComplianceLevel.AAA
    if ratio >= AA_NORMAL:
        return ComplianceLevel.AA
    if ratio >= AA_LARGE:
        return ComplianceLevel.AA_LARGE
    return ComplianceLevel.FAIL


def contrast_score(ratio: float) -> str:
    """Descriptive score: excellent, good, acceptable or poor."""
    if ratio >= AAA_NORMAL:
        return "excellent"
    if ratio >= AA_NORMAL:
        return "good"
    if ratio >= AA_LARGE:
        return "acceptable"
    return "poor"


def check_compliance(foreground: ColorLike, background: ColorLike) -> ContrastResult:
    """
    Check WCAG compliance for a color pair.

    Pass flags use the exact ratio; the reported ratio is rounded to two
    decimals.
    """
    ratio = contrast_ratio(foreground, background)

    return ContrastResult(
        ratio=round(ratio, 2),
        passes_aa=ratio >= AA_NORMAL,
        passes_aa_large=ratio >= AA_LARGE,
        passes_aaa=ratio >= AAA_NORMAL,
        passes_aaa_large=ratio >= AAA_LARGE,
        level=compliance_level(ratio),
        score=contrast_score(ratio),
    )


def suggest_accessible_color(foreground: ColorLike, background: ColorLike,
                             target_ratio: float = AA_NORMAL) -> CanonicalColor:
    """
    Coarse accessible foreground suggestion.

    Returns the foreground unchanged when it already meets target_ratio,
    otherwise near-black for light backgrounds (luminance > 0.5) and
    near-white for dark ones. Use find_minimal_fix for the smallest change.
    """
    fg = coerce_color(foreground)
    if contrast_ratio(fg, background) >= target_ratio:
        return fg

    if relative_luminance(background) > 0.5:
        return NEAR_BLACK
    return NEAR_WHITE


def get_accessible_pairs(base: ColorLike) -> AccessiblePairs:
    """Compare white and black foregrounds against a background color."""
    white_fg = check_compliance(WHITE, base)
    black_fg = check_compliance(BLACK, base)

    return AccessiblePairs(
        white=white_fg,
        black=black_fg,
        recommended="white" if white_fg.ratio > black_fg.ratio else "black",
    )


def find_minimal_fix(foreground: ColorLike, background: ColorLike,
                     target_ratio: float = AA_NORMAL,
                     adjust_foreground: bool = True) -> MinimalFix:
    """
    Find the smallest lightness change that meets target_ratio.

    Binary-searches a lightness delta in [0, 1] applied to the foreground (or
    the background when adjust_foreground is False), keeping chroma and hue.
    The direction is chosen from the background lightness: on a dark
    background (L < 0.5) a foreground is lightened, on a light one darkened;
    a background being adjusted moves the other way.

    Args:
        foreground: Foreground color
        background: Background color
        target_ratio: Contrast ratio to reach
        adjust_foreground: Adjust the foreground (True) or background (False)

    Returns:
        MinimalFix with the adjusted color and the size of the change
    """
    fg = coerce_color(foreground)
    bg = coerce_color(background)

    if contrast_ratio(fg, bg) >= target_ratio:
        return MinimalFix(color=fg, adjustment=0.0, direction=None, already_passes=True)

    to_adjust = fg if adjust_foreground else bg
    fixed = bg if adjust_foreground else fg

    if adjust_foreground:
        should_lighten = bg.lightness < 0.5
    else:
        should_lighten = bg.lightness > 0.5

    low, high = 0.0, 1.0
    best_l = 1.0 if should_lighten else 0.0
    iterations = 0

    while high - low > FIX_TOLERANCE and iterations < FIX_MAX_ITERATIONS:
        mid = (low + high) / 2
        if should_lighten:
            test_l = min(1.0, to_adjust.lightness + mid)
        else:
            test_l = max(0.0, to_adjust.lightness - mid)

        candidate = replace(to_adjust, lightness=test_l)
        if adjust_foreground:
            ratio = contrast_ratio(candidate, fixed)
        else:
            ratio = contrast_ratio(fixed, candidate)

        if ratio >= target_ratio:
            best_l = test_l
            high = mid
        else:
            low = mid
        iterations += 1

    result = replace(to_adjust, lightness=best_l)
    adjustment = abs(best_l - to_adjust.lightness)
    direction = "lightened" if should_lighten else "darkened"

    logger.debug(
        f"Minimal fix for {to_canonical_string(to_adjust)}: {direction} by {adjustment:.4f} "
        f"after {iterations} iterations"
    )

    return MinimalFix(color=result, adjustment=adjustment, direction=direction, already_passes=False)
