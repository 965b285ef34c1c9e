"""
Extraction session: the stateful wrapper a UI binds to.

Tracks idle/loading/success/error for successive extractions. A new
extraction supersedes the previous palette; failures are captured as a
human-readable message instead of propagating.
"""

from enum import Enum
from typing import List, Optional

from themecolor.config import ExtractionConfig
from themecolor.utils.logging import get_logger
from ..imaging import decode_image
from ..observability import MetricsCollector
from .errors import ColorEngineError
from .extraction import ExtractionResult, PaletteEntry, PixelBuffer, extract_palette


class ExtractionState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class ExtractionSession:
    """Holds the latest extraction result and its lifecycle state."""

    def __init__(self, settings: Optional[ExtractionConfig] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.settings = settings or ExtractionConfig()
        self.metrics = metrics
        self.state = ExtractionState.IDLE
        self.result: Optional[ExtractionResult] = None
        self.error: Optional[str] = None
        self._log = get_logger()

    @property
    def palette(self) -> List[PaletteEntry]:
        return self.result.palette if self.result else []

    @property
    def is_loading(self) -> bool:
        return self.state == ExtractionState.LOADING

    @property
    def is_success(self) -> bool:
        return self.state == ExtractionState.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.state == ExtractionState.ERROR

    def _begin(self):
        self.state = ExtractionState.LOADING
        self.error = None

    def _fail(self, message: str):
        self.state = ExtractionState.ERROR
        self.error = message
        self._log.warning("Extraction failed", {"error": message})

    def _succeed(self, result: ExtractionResult) -> ExtractionResult:
        self.result = result
        self.state = ExtractionState.SUCCESS
        self._log.info("Extraction succeeded", {
            "colors": len(result.palette),
            "sample_count": result.sample_count,
        })
        return result

    def extract(self, pixels: PixelBuffer, width: int, height: int,
                channels: int = 4) -> Optional[ExtractionResult]:
        """
        Extract a palette from a decoded pixel buffer.

        Returns:
            The result on success, None on failure (see ``error``)
        """
        self._begin()
        try:
            result = extract_palette(pixels, width, height, channels,
                                     settings=self.settings, metrics=self.metrics)
        except (ColorEngineError, ValueError) as e:
            self._fail(str(e))
            return None
        return self._succeed(result)

    def extract_from_image(self, data) -> Optional[ExtractionResult]:
        """
        Decode image bytes (or base64/data-URL text) and extract a palette.

        Returns:
            The result on success, None on failure (see ``error``)
        """
        self._begin()
        if not data:
            self._fail("Please provide a valid image file")
            return None

        try:
            buffer, width, height = decode_image(data)
            result = extract_palette(buffer, width, height, 4,
                                     settings=self.settings, metrics=self.metrics)
        except (ColorEngineError, ValueError) as e:
            self._fail(str(e))
            return None
        return self._succeed(result)

    def clear(self):
        """Return to idle and drop the current palette and error."""
        self.state = ExtractionState.IDLE
        self.result = None
        self.error = None
        self._log.debug("Extraction session cleared")
