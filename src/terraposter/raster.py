"""Raster encoding and output helpers."""

from __future__ import annotations

import io
import logging
import re
from datetime import datetime
from pathlib import Path

from PIL import Image


__all__ = [
    "EncodingError",
    "derive_filename",
    "encode_png",
    "save_png",
    "scale_image",
]

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
PNG_COMPRESS_LEVEL = 9

_SEPARATORS = re.compile(r"[\s/\\]+")

# Posters are far above Pillow's decompression bomb threshold
Image.MAX_IMAGE_PIXELS = 300_000_000


class EncodingError(Exception):
    """Raised when a rendered image cannot be encoded."""


def encode_png(image: Image.Image) -> bytes:
    """Encode an image as lossless PNG bytes.

    Raises:
        EncodingError: If Pillow fails to encode the image.
    """
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG", compress_level=PNG_COMPRESS_LEVEL)
    except (OSError, ValueError) as e:
        raise EncodingError(f"Failed to encode PNG: {e}") from e

    data = buffer.getvalue()
    logger.debug("Encoded %dx%d PNG (%d bytes)", image.width, image.height, len(data))
    return data


def derive_filename(name: str, theme_name: str, timestamp: datetime | None = None) -> str:
    """Build an output file name like ``new_york_noir_20240101_120000.png``."""
    timestamp = timestamp or datetime.now()
    slug = _SEPARATORS.sub("_", name.strip().lower())
    theme_slug = _SEPARATORS.sub("_", theme_name.strip())
    return f"{slug}_{theme_slug}_{timestamp.strftime(TIMESTAMP_FORMAT)}.png"


def scale_image(image: Image.Image, width: int, height: int) -> Image.Image:
    """Resample an image to ``width`` x ``height`` with a Lanczos filter."""
    if image.size == (width, height):
        return image.copy()
    return image.resize((width, height), Image.Resampling.LANCZOS)


def save_png(data: bytes, directory: Path | str, filename: str) -> Path:
    """Write encoded PNG bytes to ``directory``, creating it if needed."""
    output_dir = Path(directory)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / filename
    path.write_bytes(data)
    logger.info("Saved poster to %s", path)
    return path
