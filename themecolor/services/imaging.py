"""
ThemeColor Imaging Utilities
Decodes image bytes into the interleaved RGBA buffer the palette extractor consumes.
"""
import base64
import binascii
import io
from typing import Tuple

import numpy as np
from loguru import logger
from PIL import Image, UnidentifiedImageError

from themecolor.config import config
from themecolor.services.colors.errors import NoImageProvidedError


DATA_URL_PREFIX = "data:"


def decode_base64_image(encoded: str) -> bytes:
    """
    Decode a base64 image payload, optionally wrapped in a data URL.

    Args:
        encoded: Base64 text or "data:image/...;base64,..." URL

    Returns:
        Raw image bytes

    Raises:
        NoImageProvidedError: If the payload is empty
        ValueError: If the payload is not valid base64
    """
    if not encoded or not encoded.strip():
        raise NoImageProvidedError("No image provided")

    payload = encoded.strip()
    if payload.startswith(DATA_URL_PREFIX):
        _, _, payload = payload.partition(",")

    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 image payload: {str(e)}")


def resize_long_edge(image: Image.Image, max_edge: int = None) -> Image.Image:
    """
    Resize image so the longest edge is at most max_edge pixels.

    Images already within the limit are returned unchanged; the aspect ratio
    is preserved and no dimension drops below one pixel.
    """
    if max_edge is None:
        max_edge = config.PREVIEW_MAX_EDGE

    width, height = image.size
    current_max = max(width, height)

    if current_max <= max_edge:
        return image

    scale = max_edge / current_max
    new_size = (max(1, int(width * scale)), max(1, int(height * scale)))
    return image.resize(new_size, Image.BILINEAR)


def decode_image_bytes(file_bytes: bytes, max_edge: int = None) -> Tuple[bytes, int, int]:
    """
    Decode image bytes into a downsized RGBA pixel buffer.

    Args:
        file_bytes: Encoded image (PNG, JPEG, or anything Pillow reads)
        max_edge: Longest edge after resizing (default from config)

    Returns:
        Tuple of (rgba_bytes, width, height)

    Raises:
        NoImageProvidedError: If no bytes were supplied
        ValueError: If the bytes cannot be decoded as an image, or exceed
            Pillow's decompression bomb limit
    """
    if not file_bytes:
        raise NoImageProvidedError("No image provided")

    try:
        with Image.open(io.BytesIO(file_bytes)) as pil_image:
            pil_image.load()
            rgba = pil_image.convert("RGBA")
    except Image.DecompressionBombError as e:
        raise ValueError(f"Image too large to decode: {str(e)}")
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Failed to decode image: {str(e)}")

    original_size = rgba.size
    rgba = resize_long_edge(rgba, max_edge)
    width, height = rgba.size
    logger.debug(f"Decoded image {original_size[0]}×{original_size[1]} → {width}×{height}")

    buffer = np.asarray(rgba, dtype=np.uint8).tobytes()
    return buffer, width, height


def decode_image(data, max_edge: int = None) -> Tuple[bytes, int, int]:
    """Decode raw bytes, or base64/data-URL text, into an RGBA buffer."""
    if isinstance(data, str):
        data = decode_base64_image(data)
    return decode_image_bytes(data, max_edge)
