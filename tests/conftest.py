"""
Test configuration and fixtures for the ThemeColor engine tests.
"""
import io

import numpy as np
import pytest
from loguru import logger
from PIL import Image

from themecolor.services.observability import MetricsCollector
from themecolor.utils.logging import get_logger


@pytest.fixture(scope="session", autouse=True)
def structured_logger():
    """Configure the process logger once per session."""
    return get_logger()


@pytest.fixture
def log_records():
    """Capture loguru records emitted during a test."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


@pytest.fixture
def metrics_collector():
    """Fresh metrics collector."""
    return MetricsCollector(max_history=50)


def make_rgba(width: int, height: int, color, alpha: int = 255) -> np.ndarray:
    """Solid-color RGBA image as a (height, width, 4) uint8 array."""
    image = np.zeros((height, width, 4), dtype=np.uint8)
    image[:, :, :3] = color
    image[:, :, 3] = alpha
    return image


@pytest.fixture
def solid_red_rgba():
    """10x10 opaque image of a single mid-saturation red."""
    return make_rgba(10, 10, (200, 50, 50))


@pytest.fixture
def red_blue_rgba():
    """10x10 image, top half red and bottom half blue."""
    image = make_rgba(10, 10, (200, 50, 50))
    image[5:, :, :3] = (50, 50, 200)
    return image


@pytest.fixture
def noisy_rgba():
    """Deterministic 64x64 image of mid-luminance random colors."""
    rng = np.random.default_rng(42)
    image = np.empty((64, 64, 4), dtype=np.uint8)
    image[:, :, :3] = rng.integers(60, 200, size=(64, 64, 3), dtype=np.uint8)
    image[:, :, 3] = 255
    return image


@pytest.fixture
def png_bytes():
    """400x100 PNG of a single red, wider than the preview limit."""
    buffer = io.BytesIO()
    Image.new("RGBA", (400, 100), (200, 50, 50, 255)).save(buffer, format="PNG")
    return buffer.getvalue()
