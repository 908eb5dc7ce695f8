"""Preview and export rendering on top of the poster compositor.

A preview is rendered at a small resolution and rescaled to the display
width; an export is rendered at the full preset size. Both share the same
proportional layout, so the preview is a faithful thumbnail of the export.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .config import DEFAULT_RADIUS, DEFAULT_SIZE, DEFAULT_THEME, CustomText, OutputSize, get_poster_size
from .geo import fetch_map_data
from .raster import derive_filename, encode_png, scale_image
from .render import PosterCompositor, RenderRequest
from .render_constants import PREVIEW_LONG_EDGE


if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from PIL import Image

    from .config import PosterSize
    from .geo import GeoPoint, LocationInfo, MapDataSnapshot


__all__ = [
    "ExportArtifact",
    "PosterSession",
    "preview_size",
    "render_export",
    "render_preview",
]

logger = logging.getLogger(__name__)


def preview_size(size: PosterSize | OutputSize) -> OutputSize:
    """Scale a preset down so its long edge is the preview long edge."""
    scale = PREVIEW_LONG_EDGE / max(size.width, size.height)
    return OutputSize(round(size.width * scale), round(size.height * scale))


def _render_image(
    request: RenderRequest,
    output_size: OutputSize,
    compositor: PosterCompositor | None,
    on_progress: Callable[[str], None] | None,
) -> Image.Image:
    compositor = compositor or PosterCompositor()
    canvas = compositor.render(request, output_size, on_progress)
    try:
        return canvas.to_image()
    finally:
        canvas.close()


def render_export(
    request: RenderRequest,
    on_progress: Callable[[str], None] | None = None,
    compositor: PosterCompositor | None = None,
) -> Image.Image:
    """Render the poster at the full resolution of its size preset."""
    size = get_poster_size(request.size_name)
    return _render_image(request, size.to_output_size(), compositor, on_progress)


def render_preview(
    request: RenderRequest,
    display_width: int,
    on_progress: Callable[[str], None] | None = None,
    compositor: PosterCompositor | None = None,
) -> Image.Image:
    """Render a reduced-resolution poster and rescale it to ``display_width``.

    The displayed height follows the preset's aspect ratio.
    """
    if display_width <= 0:
        raise ValueError(f"Display width must be positive, got {display_width}")

    size = get_poster_size(request.size_name)
    image = _render_image(request, preview_size(size), compositor, on_progress)
    display_height = round(display_width / size.aspect_ratio)
    return scale_image(image, display_width, display_height)


@dataclass(frozen=True)
class ExportArtifact:
    """An encoded export and the file name it should be saved under."""

    data: bytes
    filename: str


class PosterSession:
    """Current poster selection plus a cached export.

    Changing the theme, size or custom text drops the cached export. Changing
    the radius also drops the fetched map data, which must then be reloaded.
    """

    def __init__(
        self,
        location: LocationInfo,
        snapshot: MapDataSnapshot | None = None,
        theme_name: str = DEFAULT_THEME,
        size_name: str = DEFAULT_SIZE,
        radius: float = DEFAULT_RADIUS,
        custom_text: CustomText | None = None,
        compositor: PosterCompositor | None = None,
    ) -> None:
        self.location = location
        self.snapshot = snapshot
        self.theme_name = theme_name
        self.size_name = size_name
        self.radius = radius
        self.custom_text = custom_text or CustomText()
        self.compositor = compositor or PosterCompositor()
        self._export: ExportArtifact | None = None

    @property
    def has_cached_export(self) -> bool:
        return self._export is not None

    @property
    def request(self) -> RenderRequest:
        """The render request for the current selection.

        Raises:
            RuntimeError: If no map data has been loaded yet.
        """
        if self.snapshot is None:
            raise RuntimeError("No map data loaded; call load() first")
        return RenderRequest(
            snapshot=self.snapshot,
            location=self.location,
            theme_name=self.theme_name,
            size_name=self.size_name,
            custom_text=self.custom_text,
        )

    def _invalidate_export(self) -> None:
        if self._export is not None:
            logger.debug("Discarding cached export")
        self._export = None

    def set_theme(self, theme_name: str) -> None:
        self.theme_name = theme_name
        self._invalidate_export()

    def set_size(self, size_name: str) -> None:
        self.size_name = size_name
        self._invalidate_export()

    def set_custom_text(self, custom_text: CustomText) -> None:
        self.custom_text = custom_text
        self._invalidate_export()

    def set_radius(self, radius: float) -> None:
        self.radius = radius
        self.snapshot = None
        self._invalidate_export()

    def set_location(self, location: LocationInfo) -> None:
        self.location = location
        self.snapshot = None
        self._invalidate_export()

    def load(
        self,
        fetch: Callable[[GeoPoint, float], MapDataSnapshot] = fetch_map_data,
    ) -> MapDataSnapshot:
        """Fetch map data for the current location and radius."""
        self.snapshot = fetch(self.location.center, self.radius)
        self._invalidate_export()
        return self.snapshot

    def preview(
        self,
        display_width: int,
        on_progress: Callable[[str], None] | None = None,
    ) -> Image.Image:
        return render_preview(self.request, display_width, on_progress, self.compositor)

    def export(
        self,
        on_progress: Callable[[str], None] | None = None,
        timestamp: datetime | None = None,
    ) -> ExportArtifact:
        """Render and encode the full-resolution poster.

        The artifact is cached and returned again until the selection changes.

        Raises:
            EncodingError: If the image cannot be encoded. Nothing is cached.
        """
        if self._export is not None:
            logger.info("Using cached export")
            return self._export

        request = self.request
        image = render_export(request, on_progress, self.compositor)
        data = encode_png(image)
        name = request.custom_text.title or self.location.city
        self._export = ExportArtifact(data, derive_filename(name, self.theme_name, timestamp))
        return self._export

