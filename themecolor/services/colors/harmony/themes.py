"""
ThemeColor Harmony Engine: Theme Mode and Accessible Palette Generation

Token-aware light/dark mode transforms and a palette generator whose
foreground tokens are walked darker until they meet a WCAG target against
their surfaces.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional

from loguru import logger

from ..contrast import AA_NORMAL, AAA_NORMAL, contrast_ratio
from ..conversion import CanonicalColor, ColorLike, clamp, coerce_color, normalize_hue


SURFACE_TOKENS = {"background", "card", "popover", "muted"}
EDGE_TOKENS = {"border", "input"}
ACCENT_TOKENS = {"primary", "secondary", "accent", "ring"}
DESTRUCTIVE_TOKEN = "destructive"

# (name, foreground token, background token)
CONTRAST_PAIRS = [
    ("Background / Foreground", "foreground", "background"),
    ("Card / Card Foreground", "cardForeground", "card"),
    ("Primary / Primary Foreground", "primaryForeground", "primary"),
    ("Secondary / Secondary Foreground", "secondaryForeground", "secondary"),
    ("Muted / Muted Foreground", "mutedForeground", "muted"),
    ("Accent / Accent Foreground", "accentForeground", "accent"),
    ("Destructive / Destructive Foreground", "destructiveForeground", "destructive"),
]

LIGHTNESS_STEP = 0.02
PRIMARY_LIGHTNESS_BAND = (0.2, 0.95)


@dataclass
class ThemePolicy:
    """Constants for token-aware mode transforms."""

    # Dark mode
    dark_surface_base: float = 0.12
    dark_surface_range: float = 0.15
    dark_surface_band: tuple = (0.08, 0.35)
    dark_foreground_band: tuple = (0.85, 0.98)
    dark_edge_band: tuple = (0.25, 0.45)
    dark_accent_lift: float = 0.10
    dark_accent_max_l: float = 0.85
    dark_destructive_lift: float = 0.12
    dark_destructive_max_l: float = 0.75
    max_chroma: float = 0.35

    # Light mode
    light_surface_band: tuple = (0.92, 0.99)
    light_foreground_band: tuple = (0.10, 0.25)
    light_edge_band: tuple = (0.85, 0.92)
    light_accent_drop: float = 0.15
    light_accent_min_l: float = 0.40
    light_accent_min_c: float = 0.10
    light_destructive_min_l: float = 0.45


@dataclass(frozen=True)
class PairCheck:
    """Contrast of one surface/foreground token pair."""
    name: str
    ratio: float
    passes: bool


def _is_foreground_token(token: str) -> bool:
    return token == "foreground" or token.endswith("Foreground")


def dark_mode_color(color: ColorLike, token: str,
                    darkness: float = 0.85,
                    saturation_boost: float = 1.1,
                    policy: Optional[ThemePolicy] = None) -> CanonicalColor:
    """
    Map a light-theme token color to its dark-theme counterpart.

    Args:
        color: Light-theme color
        token: Token name (background, primaryForeground, border, ...)
        darkness: 0.5 gives lighter dark surfaces, 1.0 the darkest
        saturation_boost: Chroma multiplier for accent tokens
        policy: Transform constants

    Returns:
        Dark-theme color with the original hue
    """
    policy = policy or ThemePolicy()
    base = coerce_color(color)
    l, c = base.lightness, base.chroma
    new_c = c

    if token in SURFACE_TOKENS:
        target_l = policy.dark_surface_base + (1 - darkness) * policy.dark_surface_range
        new_l = clamp(target_l, *policy.dark_surface_band)
    elif _is_foreground_token(token):
        new_l = clamp(1 - l, *policy.dark_foreground_band)
    elif token in EDGE_TOKENS:
        new_l = clamp(1 - l * darkness, *policy.dark_edge_band)
    elif token in ACCENT_TOKENS:
        new_l = min(policy.dark_accent_max_l, l + policy.dark_accent_lift)
        new_c = min(policy.max_chroma, c * saturation_boost)
    elif token == DESTRUCTIVE_TOKEN:
        new_l = min(policy.dark_destructive_max_l, l + policy.dark_destructive_lift)
        new_c = min(policy.max_chroma, c * saturation_boost * 0.95)
    else:
        new_l = 1 - l

    return replace(base, lightness=clamp(new_l, 0.0, 1.0), chroma=new_c)


def light_mode_color(color: ColorLike, token: str, policy: Optional[ThemePolicy] = None) -> CanonicalColor:
    """Map a dark-theme token color back to a light-theme counterpart."""
    policy = policy or ThemePolicy()
    base = coerce_color(color)
    l, c = base.lightness, base.chroma
    new_c = c

    if token in SURFACE_TOKENS:
        new_l = clamp(1 - l, *policy.light_surface_band)
    elif _is_foreground_token(token):
        new_l = clamp(1 - l, *policy.light_foreground_band)
    elif token in EDGE_TOKENS:
        new_l = clamp(1 - l, *policy.light_edge_band)
    elif token in ACCENT_TOKENS:
        new_l = max(policy.light_accent_min_l, l - policy.light_accent_drop)
        new_c = max(policy.light_accent_min_c, c * 0.9)
    elif token == DESTRUCTIVE_TOKEN:
        new_l = max(policy.light_destructive_min_l, l - policy.light_accent_drop)
    else:
        new_l = 1 - l

    return replace(base, lightness=clamp(new_l, 0.0, 1.0), chroma=new_c)


def generate_dark_mode(tokens: Mapping[str, ColorLike],
                       darkness: float = 0.85,
                       saturation_boost: float = 1.1) -> Dict[str, CanonicalColor]:
    """Apply dark_mode_color to every token in a theme."""
    return {
        name: dark_mode_color(color, name, darkness, saturation_boost)
        for name, color in tokens.items()
    }


def generate_light_mode(tokens: Mapping[str, ColorLike]) -> Dict[str, CanonicalColor]:
    """Apply light_mode_color to every token in a theme."""
    return {name: light_mode_color(color, name) for name, color in tokens.items()}


def _walk_darker(start_l: float, chroma: float, hue: float,
                 surface: CanonicalColor, target_ratio: float, floor: float) -> CanonicalColor:
    """Lower lightness in fixed steps until the color meets target_ratio on surface."""
    lightness = start_l
    candidate = CanonicalColor(lightness, chroma, hue)
    while contrast_ratio(candidate, surface) < target_ratio and lightness > 0:
        lightness -= LIGHTNESS_STEP
        candidate = CanonicalColor(max(0.0, lightness), chroma, hue)
    return CanonicalColor(max(floor, lightness), chroma, hue)


def generate_accessible_palette(brand_color: ColorLike, level: str = "AA") -> Dict[str, CanonicalColor]:
    """
    Generate a full light theme from a brand color.

    Foreground tokens start at a readable lightness and step darker until they
    reach the level's normal-text ratio (AA 4.5, AAA 7.0) on their surface.

    Args:
        brand_color: Brand color driving hue and chroma
        level: "AA" or "AAA"

    Returns:
        Mapping of the 19 theme token names to colors

    Raises:
        ValueError: If level is not AA or AAA
    """
    if level not in ("AA", "AAA"):
        raise ValueError(f"Unsupported WCAG level: {level!r}")
    target_ratio = AAA_NORMAL if level == "AAA" else AA_NORMAL

    brand = coerce_color(brand_color)
    hue = brand.hue
    chroma = brand.chroma or 0.15

    background = CanonicalColor(0.985, 0.008, hue)
    foreground = _walk_darker(0.15, 0.02, hue, background, target_ratio, floor=0.1)

    popover = CanonicalColor(0.995, 0.005, hue)

    # Primary keeps the brand lightness unless its text cannot reach the target;
    # it then moves away from the text color: light primaries lighten, dark ones darken
    primary_l = brand.lightness if brand.lightness else 0.6
    light_primary = primary_l > 0.6
    if light_primary:
        primary_foreground = CanonicalColor(0.15, 0.02, hue)
    else:
        primary_foreground = CanonicalColor(0.98, 0.01, hue)
    while contrast_ratio(CanonicalColor(primary_l, chroma, hue), primary_foreground) < target_ratio:
        if light_primary and primary_l < PRIMARY_LIGHTNESS_BAND[1]:
            primary_l = min(PRIMARY_LIGHTNESS_BAND[1], primary_l + LIGHTNESS_STEP)
        elif not light_primary and primary_l > PRIMARY_LIGHTNESS_BAND[0]:
            primary_l = max(PRIMARY_LIGHTNESS_BAND[0], primary_l - LIGHTNESS_STEP)
        else:
            break
    primary = CanonicalColor(primary_l, chroma, hue)

    secondary = CanonicalColor(0.92, 0.025, hue)
    secondary_foreground = _walk_darker(0.25, 0.03, hue, secondary, target_ratio, floor=0.1)

    muted = CanonicalColor(0.94, 0.02, hue)
    muted_foreground = _walk_darker(0.45, 0.04, hue, muted, target_ratio, floor=0.25)

    accent_hue = normalize_hue(hue + 30)
    accent = CanonicalColor(0.93, 0.04, accent_hue)
    accent_foreground = _walk_darker(0.25, 0.03, accent_hue, accent, target_ratio, floor=0.1)

    destructive = CanonicalColor(0.55, 0.22, 25.0)
    destructive_foreground = CanonicalColor(0.98, 0.01, 25.0)

    border = CanonicalColor(0.88, 0.025, hue)

    logger.debug(f"Generated {level} palette for brand hue {hue:.1f}")

    return {
        "background": background,
        "foreground": foreground,
        "card": background,
        "cardForeground": foreground,
        "popover": popover,
        "popoverForeground": foreground,
        "primary": primary,
        "primaryForeground": primary_foreground,
        "secondary": secondary,
        "secondaryForeground": secondary_foreground,
        "muted": muted,
        "mutedForeground": muted_foreground,
        "accent": accent,
        "accentForeground": accent_foreground,
        "destructive": destructive,
        "destructiveForeground": destructive_foreground,
        "border": border,
        "input": border,
        "ring": primary,
    }


def check_palette_contrast(palette: Mapping[str, ColorLike], target_ratio: float) -> List[PairCheck]:
    """
    Check the standard surface/foreground pairs of a theme.

    Pairs whose tokens are missing from the palette are skipped.
    """
    checks = []
    for name, fg_token, bg_token in CONTRAST_PAIRS:
        if fg_token not in palette or bg_token not in palette:
            continue
        ratio = contrast_ratio(palette[fg_token], palette[bg_token])
        checks.append(PairCheck(name=name, ratio=round(ratio, 2), passes=ratio >= target_ratio))
    return checks
