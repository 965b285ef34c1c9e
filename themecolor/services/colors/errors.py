"""
Color engine exception types.

Parse failures are not exceptions: ``parse_color`` returns ``None``. The types
here cover failures a caller has to report, chiefly palette extraction.
"""


class ColorEngineError(Exception):
    """Base class for color engine failures."""


class ExtractionError(ColorEngineError, RuntimeError):
    """Palette extraction could not produce a palette."""


class InsufficientColorVarietyError(ExtractionError):
    """Too few qualifying samples survived alpha and luminance filtering."""

    def __init__(self, sample_count: int, required: int):
        self.sample_count = sample_count
        self.required = required
        super().__init__(
            f"Not enough distinct colors in image: {sample_count} usable samples, "
            f"at least {required} required"
        )


class NoImageProvidedError(ColorEngineError, ValueError):
    """No pixel data (or no image bytes) was supplied."""
