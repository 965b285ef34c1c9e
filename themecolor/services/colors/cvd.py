"""
Color Vision Deficiency Simulation Module

Approximates dichromatic vision with the Brettel, Viénot and Mollon (1997)
projection and achromatic vision with luminance-weighted grayscale.

Pipeline per color:
    sRGB -> linear RGB -> LMS -> simulated LMS -> linear RGB -> sRGB

Each call is a pure function of its inputs. Palette analysis compares every
unordered pair, O(n^2) per deficiency type; it is meant for theme-sized
palettes (config.CVD_MAX_PALETTE_SIZE) and warns when given more.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Sequence, Tuple, Union

import numpy as np
from loguru import logger

from themecolor.config import config
from themecolor.schemas import CvdAnalysisResponse, CvdPairIssue, CvdTypeReport
from .conversion import (
    CanonicalColor, ColorLike, coerce_color, parse_color, to_display_hex
)


class CvdType(str, Enum):
    """Supported color vision deficiency types."""
    PROTANOPIA = "protanopia"        # red-blind
    DEUTERANOPIA = "deuteranopia"    # green-blind
    TRITANOPIA = "tritanopia"        # blue-blind
    ACHROMATOPSIA = "achromatopsia"  # no color vision


@dataclass(frozen=True)
class CvdMatrices:
    """Forward cone response, dichromatic projection and inverse."""
    rgb2lms: np.ndarray
    simulate: np.ndarray
    lms2rgb: np.ndarray


@dataclass(frozen=True)
class CvdDescription:
    name: str
    description: str
    prevalence: str


@dataclass(frozen=True)
class CvdReport:
    """Pairwise distinguishability of a palette under one deficiency."""
    simulated: List[str]
    issues: List[Tuple[int, int]]
    accessible: bool


RGB_TO_LMS = np.array([
    [0.31399022, 0.63951294, 0.04649755],
    [0.15537241, 0.75789446, 0.08670142],
    [0.01775239, 0.10944209, 0.87256922],
])

LMS_TO_RGB = np.array([
    [5.47221206, -4.64196010, 0.16963708],
    [-1.12524190, 2.29317094, -0.16789520],
    [0.02980165, -0.19318073, 1.16364789],
])

BRETTEL_MATRICES: Dict[CvdType, CvdMatrices] = {
    CvdType.PROTANOPIA: CvdMatrices(
        rgb2lms=RGB_TO_LMS,
        simulate=np.array([
            [0.0, 2.02344377, -2.52581341],
            [0.0, 1.0, 0.0],
            [0.0, 0.0, 1.0],
        ]),
        lms2rgb=LMS_TO_RGB,
    ),
    CvdType.DEUTERANOPIA: CvdMatrices(
        rgb2lms=RGB_TO_LMS,
        simulate=np.array([
            [1.0, 0.0, 0.0],
            [0.49421036, 0.0, 1.24827314],
            [0.0, 0.0, 1.0],
        ]),
        lms2rgb=LMS_TO_RGB,
    ),
    CvdType.TRITANOPIA: CvdMatrices(
        rgb2lms=RGB_TO_LMS,
        simulate=np.array([
            [1.0, 0.0, 0.0],
            [0.0, 1.0, 0.0],
            [-0.86744736, 1.86727089, 0.0],
        ]),
        lms2rgb=LMS_TO_RGB,
    ),
}

CVD_DESCRIPTIONS = {
    CvdType.PROTANOPIA: CvdDescription(
        "Protanopia", "Red-blind: difficulty distinguishing red and green", "~1% of males"),
    CvdType.DEUTERANOPIA: CvdDescription(
        "Deuteranopia", "Green-blind: difficulty distinguishing red and green", "~1% of males"),
    CvdType.TRITANOPIA: CvdDescription(
        "Tritanopia", "Blue-blind: difficulty distinguishing blue and yellow", "~0.003% of population"),
    CvdType.ACHROMATOPSIA: CvdDescription(
        "Achromatopsia", "Complete color blindness: sees only grayscale", "~0.003% of population"),
}

NORMAL_VISION = CvdDescription("Normal", "Normal color vision", "~92% of population")

MAX_RGB_DISTANCE = math.sqrt(3.0)


def _hex_to_unit_rgb(hex_color: str) -> np.ndarray:
    digits = hex_color.lstrip('#')
    return np.array([int(digits[i:i + 2], 16) for i in (0, 2, 4)], dtype=np.float64) / 255.0


def _unit_rgb_to_hex(rgb: np.ndarray) -> str:
    r, g, b = (int(v) for v in np.clip(np.floor(rgb * 255.0 + 0.5), 0, 255))
    return f"#{r:02X}{g:02X}{b:02X}"


def _srgb_to_linear(rgb: np.ndarray) -> np.ndarray:
    return np.where(rgb <= 0.04045, rgb / 12.92, ((rgb + 0.055) / 1.055) ** 2.4)


def _linear_to_srgb(rgb: np.ndarray) -> np.ndarray:
    # Negative linear values take the linear segment; clamp happens on output
    safe = np.maximum(rgb, 0.0)
    return np.where(rgb <= 0.0031308, 12.92 * rgb, 1.055 * safe ** (1.0 / 2.4) - 0.055)


def resolve_cvd_type(cvd_type: Union[CvdType, str]):
    """Map a CvdType or its string value to CvdType; unknown values give None."""
    if isinstance(cvd_type, CvdType):
        return cvd_type
    try:
        return CvdType(str(cvd_type).lower())
    except ValueError:
        return None


def _simulate_achromatopsia(hex_color: str) -> str:
    rgb = _hex_to_unit_rgb(hex_color)
    gray = 0.2126 * rgb[0] + 0.7152 * rgb[1] + 0.0722 * rgb[2]
    return _unit_rgb_to_hex(np.array([gray, gray, gray]))


def _simulate_dichromat(hex_color: str, matrices: CvdMatrices) -> str:
    linear = _srgb_to_linear(_hex_to_unit_rgb(hex_color))

    lms = matrices.rgb2lms @ linear
    simulated_lms = matrices.simulate @ lms
    simulated_rgb = matrices.lms2rgb @ simulated_lms

    srgb = np.clip(_linear_to_srgb(simulated_rgb), 0.0, 1.0)
    return _unit_rgb_to_hex(srgb)


def simulate_hex(color: ColorLike, cvd_type: Union[CvdType, str]) -> str:
    """
    Simulate a deficiency and return the result as #RRGGBB.

    Unknown types are logged and the color passes through unchanged.
    """
    hex_color = to_display_hex(coerce_color(color))
    resolved = resolve_cvd_type(cvd_type)

    if resolved is None:
        logger.warning(f"Unknown CVD type: {cvd_type!r}; passing color through unchanged")
        return hex_color
    if resolved is CvdType.ACHROMATOPSIA:
        return _simulate_achromatopsia(hex_color)
    return _simulate_dichromat(hex_color, BRETTEL_MATRICES[resolved])


def simulate(color: ColorLike, cvd_type: Union[CvdType, str]) -> CanonicalColor:
    """
    Simulate how a color appears under a deficiency.

    The simulation runs on the 8-bit display color and the result is promoted
    back to a canonical color. Alpha is preserved.
    """
    source = coerce_color(color)
    if resolve_cvd_type(cvd_type) is None:
        logger.warning(f"Unknown CVD type: {cvd_type!r}; passing color through unchanged")
        return source

    simulated = parse_color(simulate_hex(source, cvd_type))
    if source.alpha != 1.0:
        simulated = CanonicalColor(simulated.lightness, simulated.chroma, simulated.hue, source.alpha)
    return simulated


def simulate_all_types(color: ColorLike) -> Dict[str, str]:
    """Display hex for normal vision and every deficiency type."""
    canonical = coerce_color(color)
    results = {"normal": to_display_hex(canonical)}
    for cvd_type in CvdType:
        results[cvd_type.value] = simulate_hex(canonical, cvd_type)
    return results


def _rgb_distance(hex1: str, hex2: str) -> float:
    """Normalized Euclidean distance between two display colors in sRGB [0, 1]."""
    return float(np.linalg.norm(_hex_to_unit_rgb(hex1) - _hex_to_unit_rgb(hex2))) / MAX_RGB_DISTANCE


def are_distinguishable(color1: ColorLike, color2: ColorLike,
                        cvd_type: Union[CvdType, str],
                        threshold: float = config.CVD_DISTINCT_THRESHOLD) -> bool:
    """
    Check whether two colors stay apart under a deficiency.

    Both colors are simulated, their distance measured in gamma-encoded sRGB
    and normalized by sqrt(3), then compared against threshold.
    """
    sim1 = simulate_hex(color1, cvd_type)
    sim2 = simulate_hex(color2, cvd_type)
    return _rgb_distance(sim1, sim2) >= threshold


def analyze_palette(colors: Sequence[ColorLike],
                    threshold: float = config.CVD_DISTINCT_THRESHOLD) -> Dict[CvdType, CvdReport]:
    """
    Find indistinguishable color pairs for every deficiency type.

    Args:
        colors: Palette colors (canonical or text)
        threshold: Normalized distance below which a pair is flagged

    Returns:
        Mapping of CvdType to a report listing (i, j) index pairs, i < j
    """
    canonical = [coerce_color(c) for c in colors]
    n = len(canonical)

    if n > config.CVD_MAX_PALETTE_SIZE:
        logger.warning(
            f"Pairwise CVD analysis of {n} colors exceeds the supported palette size "
            f"({config.CVD_MAX_PALETTE_SIZE}); cost grows with n^2"
        )

    results: Dict[CvdType, CvdReport] = {}
    for cvd_type in CvdType:
        simulated = [simulate_hex(c, cvd_type) for c in canonical]
        issues = []
        for i in range(n):
            for j in range(i + 1, n):
                if _rgb_distance(simulated[i], simulated[j]) < threshold:
                    issues.append((i, j))

        results[cvd_type] = CvdReport(simulated=simulated, issues=issues, accessible=not issues)
        logger.debug(f"{cvd_type.value}: {len(issues)} indistinguishable pairs among {n} colors")

    return results


def analysis_to_schema(colors: Sequence[ColorLike],
                       analysis: Dict[CvdType, CvdReport]) -> CvdAnalysisResponse:
    """Render an analyze_palette result with display hex values for each pair."""
    source_hex = [to_display_hex(coerce_color(c)) for c in colors]
    reports = {}
    for cvd_type, report in analysis.items():
        reports[cvd_type.value] = CvdTypeReport(
            simulated=report.simulated,
            accessible=report.accessible,
            issues=[
                CvdPairIssue(
                    index1=i, index2=j,
                    color1=source_hex[i], color2=source_hex[j],
                    simulated1=report.simulated[i], simulated2=report.simulated[j],
                )
                for i, j in report.issues
            ],
        )
    return CvdAnalysisResponse(reports=reports)


def describe_cvd(cvd_type: Union[CvdType, str]) -> CvdDescription:
    """Human-readable name, description and prevalence; unknown types read as normal vision."""
    resolved = resolve_cvd_type(cvd_type)
    if resolved is None:
        return NORMAL_VISION
    return CVD_DESCRIPTIONS[resolved]
