"""
ThemeColor Schemas
Pydantic models for the color engine's output boundary.
"""
from typing import Dict, List, Literal
from pydantic import BaseModel, Field

from themecolor.config import MAX_PALETTE_SIZE


HEX_PATTERN = r"^#[0-9A-Fa-f]{6}$"

PaletteRoleName = Literal["primary", "accent", "background", "foreground", "muted", "secondary"]


# ============================================================================
# PALETTE EXTRACTION SCHEMAS
# ============================================================================

class PaletteEntrySchema(BaseModel):
    """Single extracted color with its suggested theme role."""
    hex: str = Field(
        ...,
        pattern=HEX_PATTERN,
        description="Display color in format #RRGGBB"
    )
    oklch: str = Field(
        ...,
        description="Canonical color string, oklch(L C H)"
    )
    role: PaletteRoleName = Field(
        ...,
        description="Suggested theme role derived from rank and luminance"
    )
    luminance: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="WCAG relative luminance (0.0-1.0)"
    )
    pixel_count: int = Field(
        ...,
        ge=0,
        description="Number of samples in the median-cut bucket"
    )


class ExtractionResponse(BaseModel):
    """Palette extraction result."""
    palette: List[PaletteEntrySchema] = Field(
        ...,
        max_length=MAX_PALETTE_SIZE,
        description="Up to five colors ordered by importance"
    )
    sample_count: int = Field(
        ...,
        ge=0,
        description="Samples that survived alpha and luminance filtering"
    )
    leaf_count: int = Field(
        ...,
        ge=0,
        description="Median-cut buckets before ranking"
    )


# ============================================================================
# CONTRAST SCHEMAS
# ============================================================================

class ContrastReport(BaseModel):
    """WCAG compliance of a foreground/background pair."""
    ratio: float = Field(..., ge=1.0, le=21.0, description="Contrast ratio (1-21)")
    passes_aa: bool = Field(..., description="Normal text, 4.5:1")
    passes_aa_large: bool = Field(..., description="Large text, 3:1")
    passes_aaa: bool = Field(..., description="Normal text, 7:1")
    passes_aaa_large: bool = Field(..., description="Large text, 4.5:1")
    level: Literal["AAA", "AA", "AA Large", "Fail"] = Field(
        ...,
        description="Highest tier satisfied"
    )
    score: Literal["excellent", "good", "acceptable", "poor"] = Field(
        ...,
        description="Descriptive contrast score"
    )


# ============================================================================
# COLOR VISION DEFICIENCY SCHEMAS
# ============================================================================

class CvdPairIssue(BaseModel):
    """Two palette colors that collapse together under a deficiency."""
    index1: int = Field(..., ge=0)
    index2: int = Field(..., ge=0)
    color1: str = Field(..., pattern=HEX_PATTERN)
    color2: str = Field(..., pattern=HEX_PATTERN)
    simulated1: str = Field(..., pattern=HEX_PATTERN)
    simulated2: str = Field(..., pattern=HEX_PATTERN)


class CvdTypeReport(BaseModel):
    """Palette analysis for one deficiency type."""
    simulated: List[str] = Field(..., description="Simulated display colors in palette order")
    issues: List[CvdPairIssue] = Field(default_factory=list)
    accessible: bool = Field(..., description="True when no pair is flagged")


class CvdAnalysisResponse(BaseModel):
    """Palette analysis across all deficiency types."""
    reports: Dict[str, CvdTypeReport] = Field(
        ...,
        description="Keyed by deficiency type: protanopia, deuteranopia, tritanopia, achromatopsia"
    )
