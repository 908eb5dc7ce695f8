"""Font management utilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from matplotlib.font_manager import FontProperties

from .config import get_fonts_dir


if TYPE_CHECKING:
    from pathlib import Path


__all__ = ["FONT_FILES", "FontSet", "load_fonts", "px_to_points"]

logger = logging.getLogger(__name__)

FONT_FILES = {
    "bold": "Roboto-Bold.ttf",
    "regular": "Roboto-Regular.ttf",
    "light": "Roboto-Light.ttf",
}

# matplotlib weight names for the system fallback
_FALLBACK_WEIGHTS = {
    "bold": "bold",
    "regular": "normal",
    "light": "light",
}


def px_to_points(size_px: float, dpi: float) -> float:
    """Convert a pixel size to typographic points at ``dpi``."""
    return size_px * 72.0 / dpi


@dataclass
class FontSet:
    """Container for the Roboto font file paths."""

    bold: Path | None = None
    regular: Path | None = None
    light: Path | None = None

    @property
    def is_loaded(self) -> bool:
        """Check if all fonts are loaded."""
        return all([self.bold, self.regular, self.light])

    def get_properties(self, weight: str, size_px: float, dpi: float) -> FontProperties:
        """Get FontProperties for a weight with an em size given in pixels.

        Falls back to the regular file, then to matplotlib's sans-serif family.

        Args:
            weight: Font weight ('bold', 'regular', or 'light').
            size_px: Em size in canvas pixels.
            dpi: Resolution of the canvas the text is drawn on.
        """
        size = px_to_points(size_px, dpi)
        font_path = getattr(self, weight, None) or self.regular

        if font_path is not None and font_path.exists():
            return FontProperties(fname=str(font_path), size=size)

        return FontProperties(
            family="sans-serif",
            weight=_FALLBACK_WEIGHTS.get(weight, "normal"),
            size=size,
        )


def load_fonts() -> FontSet:
    """Locate Roboto fonts in the fonts directory.

    Returns:
        A FontSet; weights whose file is missing are left as None.
    """
    fonts_dir = get_fonts_dir()
    font_set = FontSet()

    for weight, filename in FONT_FILES.items():
        path = fonts_dir / filename
        if path.exists():
            setattr(font_set, weight, path)
        else:
            logger.debug("Font not found: %s", path)

    if not font_set.is_loaded:
        logger.info("Roboto fonts not fully available, using system sans-serif fallback")
    return font_set
