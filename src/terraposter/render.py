"""Poster composition onto a raster canvas."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import matplotlib.colors as mcolors
import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.collections import LineCollection, PolyCollection
from matplotlib.figure import Figure
from matplotlib.lines import Line2D
from PIL import Image

from .config import DEFAULT_SIZE, DEFAULT_THEME, CustomText, get_theme
from .fonts import load_fonts, px_to_points
from .geo import FeatureCategory
from .projection import DegenerateGeometryError, project_path
from .render_constants import (
    AGG_DPI,
    ATTRIBUTION_FONT_FRACTION,
    ATTRIBUTION_TEXT,
    ATTRIBUTION_X_POS,
    ATTRIBUTION_Y_POS,
    BASE_WIDTH_DIVISOR,
    COORDS_FONT_FRACTION,
    COORDS_Y_POS,
    DIVIDER_LINE_WIDTH,
    DIVIDER_X_END,
    DIVIDER_X_START,
    DIVIDER_Y_POS,
    GRADIENT_HEIGHT_FRACTION,
    GRADIENT_STEPS,
    MIN_TITLE_FONT_PX,
    NAME_FONT_FRACTION,
    NAME_Y_POS,
    NAME_Y_POS_NO_COORDS,
    PADDING_FRACTION,
    SUBTITLE_FONT_FRACTION,
    SUBTITLE_Y_POS,
    TEXT_CENTER_X,
    TITLE_CHAR_WIDTH,
    TITLE_FONT_MAX_FRACTION,
    TITLE_LETTER_SPACING,
    TITLE_MAX_WIDTH_FRACTION,
    TITLE_Y_POS,
)
from .styles import (
    MIN_AREA_POINTS,
    MIN_LINE_POINTS,
    DrawStyle,
    TextStyle,
    area_style,
    road_style,
    sort_roads,
)


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from matplotlib.artist import Artist

    from .config import OutputSize, Theme
    from .fonts import FontSet
    from .geo import Bounds, Feature, LocationInfo, MapDataSnapshot


__all__ = [
    "RENDER_PHASES",
    "PosterCanvas",
    "PosterCompositor",
    "RenderRequest",
    "TextItem",
    "TypographyLayout",
    "format_coordinates",
    "layout_typography",
    "space_letters",
    "title_font_size",
]

logger = logging.getLogger(__name__)

RENDER_PHASES = (
    "Rendering background...",
    "Rendering water...",
    "Rendering parks...",
    "Rendering roads...",
    "Adding gradient fades...",
    "Adding typography...",
    "Done!",
)


@dataclass(frozen=True)
class RenderRequest:
    """Everything one render call needs besides the output resolution."""

    snapshot: MapDataSnapshot
    location: LocationInfo
    theme_name: str = DEFAULT_THEME
    size_name: str = DEFAULT_SIZE
    custom_text: CustomText = field(default_factory=CustomText)


class PosterCanvas:
    """A raster surface painted one call at a time.

    Wraps a matplotlib Agg figure whose single axes spans the whole image and
    maps data coordinates 1:1 onto pixels, origin top-left with y growing
    downwards. Every draw call rasterizes immediately onto the existing
    buffer, on top of what is already there.
    """

    def __init__(self, width: int, height: int, dpi: int = AGG_DPI) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Canvas size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.dpi = dpi
        self.figure = Figure(figsize=(width / dpi, height / dpi), dpi=dpi)
        self._agg = FigureCanvasAgg(self.figure)
        self._has_buffer = False

        ax = self.figure.add_axes((0.0, 0.0, 1.0, 1.0))
        ax.set_axis_off()
        ax.set_xlim(0, width)
        ax.set_ylim(height, 0)
        ax.set_autoscale_on(False)
        self.ax = ax

    def __enter__(self) -> PosterCanvas:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _paint(self, artist: Artist) -> None:
        if not self._has_buffer:
            self._agg.draw()
            self._has_buffer = True
        artist.set_animated(True)
        self.ax.draw_artist(artist)
        artist.remove()

    def fill_background(self, color: str) -> None:
        """Clear the whole canvas to a solid color."""
        self.figure.patch.set_facecolor(color)
        self._agg.draw()
        self._has_buffer = True

    def fill_polygons(self, polygons: Sequence[np.ndarray], style: DrawStyle) -> None:
        """Fill closed polygons, in order, with one solid style."""
        if not polygons:
            return
        collection = PolyCollection(
            list(polygons),
            closed=True,
            facecolors=style.fill,
            edgecolors="none",
            linewidths=0,
            alpha=style.alpha,
            antialiaseds=True,
        )
        self.ax.add_collection(collection, autolim=False)
        self._paint(collection)

    def stroke_paths(self, paths: Sequence[np.ndarray], styles: Sequence[DrawStyle]) -> None:
        """Stroke open paths in order, each with its own style."""
        if len(paths) != len(styles):
            raise ValueError("Each path needs exactly one style")

        pairs = zip(paths, styles)
        for (cap, join, alpha), group in itertools.groupby(
            pairs, key=lambda pair: (pair[1].cap, pair[1].join, pair[1].alpha)
        ):
            run = list(group)
            collection = LineCollection(
                [path for path, _ in run],
                edgecolors=[style.stroke for _, style in run],
                linewidths=[px_to_points(style.line_width, self.dpi) for _, style in run],
                capstyle=cap,
                joinstyle=join,
                alpha=alpha,
                antialiaseds=True,
            )
            self.ax.add_collection(collection, autolim=False)
            self._paint(collection)

    def fill_vertical_gradient(
        self,
        color: str,
        y_start: float,
        y_end: float,
        alpha_start: float,
        alpha_end: float,
    ) -> None:
        """Fill a full-width band whose opacity ramps linearly from top to bottom."""
        rgba = np.zeros((GRADIENT_STEPS, 1, 4))
        rgba[:, :, :3] = mcolors.to_rgb(color)
        rgba[:, 0, 3] = np.linspace(alpha_start, alpha_end, GRADIENT_STEPS)

        image = self.ax.imshow(
            rgba,
            extent=(0, self.width, y_end, y_start),
            origin="upper",
            aspect="auto",
            interpolation="nearest",
        )
        self._paint(image)

    def draw_line(self, x0: float, y0: float, x1: float, y1: float, style: DrawStyle) -> None:
        """Stroke one straight segment."""
        line = Line2D(
            [x0, x1],
            [y0, y1],
            color=style.stroke,
            linewidth=px_to_points(style.line_width, self.dpi),
            alpha=style.alpha,
            solid_capstyle=style.cap,
        )
        self.ax.add_line(line)
        self._paint(line)

    def draw_text(self, text: str, x: float, y: float, style: TextStyle, fonts: FontSet) -> None:
        """Draw one line of text with its baseline at ``y``."""
        artist = self.ax.text(
            x,
            y,
            text,
            color=style.color,
            alpha=style.alpha,
            ha=style.align,
            va="baseline",
            fontproperties=fonts.get_properties(style.weight, style.size, self.dpi),
        )
        self._paint(artist)

    def to_image(self) -> Image.Image:
        """Copy the current pixels out as an RGB Pillow image."""
        if not self._has_buffer:
            self._agg.draw()
            self._has_buffer = True
        pixels = np.asarray(self._agg.buffer_rgba()).copy()
        return Image.fromarray(pixels).convert("RGB")

    def close(self) -> None:
        """Release the figure."""
        self.figure.clear()


@dataclass(frozen=True)
class TextItem:
    """A positioned line of text."""

    text: str
    x: float
    y: float
    style: TextStyle


@dataclass(frozen=True)
class TypographyLayout:
    """All text plus the decorative divider, in draw order."""

    title: TextItem
    divider: tuple[float, float, float, float]
    divider_style: DrawStyle
    subtitle: TextItem
    coordinates: TextItem | None
    name: TextItem | None
    attribution: TextItem

    @property
    def items(self) -> list[TextItem]:
        candidates = [self.title, self.subtitle, self.coordinates, self.name, self.attribution]
        return [item for item in candidates if item is not None]


def space_letters(text: str, spacing: int = TITLE_LETTER_SPACING) -> str:
    """Join every character of ``text`` with ``spacing`` spaces."""
    return (" " * spacing).join(text)


def format_coordinates(lat: float, lon: float) -> str:
    """Format a position as e.g. ``48.8566° N / 2.3522° E``."""
    lat_dir = "N" if lat >= 0 else "S"
    lon_dir = "E" if lon >= 0 else "W"
    return f"{abs(lat):.4f}° {lat_dir} / {abs(lon):.4f}° {lon_dir}"


def title_font_size(spaced_title: str, width: float) -> float:
    """Font size that fits the spaced title within 80% of the canvas width."""
    char_count = max(len(spaced_title), 1)
    fitted = (width * TITLE_MAX_WIDTH_FRACTION) / (char_count * TITLE_CHAR_WIDTH)
    return min(width * TITLE_FONT_MAX_FRACTION, max(fitted, MIN_TITLE_FONT_PX))


def layout_typography(
    request: RenderRequest,
    width: float,
    height: float,
    theme: Theme | None = None,
) -> TypographyLayout:
    """Compute the poster's text elements and their positions.

    The title falls back to the city and the subtitle to the country. The
    coordinates line is shown only when no custom title is set, and the
    caption moves up into its slot when it is hidden.
    """
    theme = theme or get_theme(request.theme_name)
    custom = request.custom_text
    location = request.location
    center_x = width * TEXT_CENTER_X
    base_width = width / BASE_WIDTH_DIVISOR

    spaced_title = space_letters((custom.title or location.city).upper())
    title = TextItem(
        spaced_title,
        center_x,
        height * TITLE_Y_POS,
        TextStyle(theme.text, title_font_size(spaced_title, width), weight="bold"),
    )
    subtitle = TextItem(
        (custom.subtitle or location.country).upper(),
        center_x,
        height * SUBTITLE_Y_POS,
        TextStyle(theme.text, width * SUBTITLE_FONT_FRACTION, weight="light"),
    )

    show_coords = not custom.title
    coordinates = None
    if show_coords:
        coordinates = TextItem(
            format_coordinates(location.lat, location.lon),
            center_x,
            height * COORDS_Y_POS,
            TextStyle(theme.text, width * COORDS_FONT_FRACTION, alpha=0.7),
        )

    name = None
    if custom.name:
        name_y = NAME_Y_POS if show_coords else NAME_Y_POS_NO_COORDS
        name = TextItem(
            custom.name,
            center_x,
            height * name_y,
            TextStyle(theme.text, width * NAME_FONT_FRACTION, alpha=0.6),
        )

    attribution = TextItem(
        ATTRIBUTION_TEXT,
        width * ATTRIBUTION_X_POS,
        height * ATTRIBUTION_Y_POS,
        TextStyle(
            theme.text,
            width * ATTRIBUTION_FONT_FRACTION,
            weight="light",
            alpha=0.5,
            align="right",
        ),
    )

    return TypographyLayout(
        title=title,
        divider=(
            width * DIVIDER_X_START,
            height * DIVIDER_Y_POS,
            width * DIVIDER_X_END,
            height * DIVIDER_Y_POS,
        ),
        divider_style=DrawStyle(stroke=theme.text, line_width=DIVIDER_LINE_WIDTH * base_width),
        subtitle=subtitle,
        coordinates=coordinates,
        name=name,
        attribution=attribution,
    )


def _noop_progress(_message: str) -> None:
    return None


class PosterCompositor:
    """Paints a poster in a fixed phase order.

    Phases: background, water, parks, roads, gradient fades, typography.
    Later phases occlude earlier ones, so the order is never changed.
    """

    def __init__(self, fonts: FontSet | None = None) -> None:
        self.fonts = fonts if fonts is not None else load_fonts()

    def render(
        self,
        request: RenderRequest,
        output_size: OutputSize,
        on_progress: Callable[[str], None] | None = None,
    ) -> PosterCanvas:
        """Render the poster onto a fresh canvas of ``output_size`` pixels.

        Args:
            request: Map data, location, theme, size preset and custom text.
            output_size: Target resolution in pixels.
            on_progress: Called with a message before each phase starts.

        Returns:
            The finished canvas. The caller owns it and should close it.
        """
        report = on_progress or _noop_progress
        theme = get_theme(request.theme_name)
        width, height = output_size.width, output_size.height
        snapshot = request.snapshot

        logger.info(
            "Rendering %dx%d poster for %s (theme: %s)",
            width,
            height,
            request.location.city,
            request.theme_name,
        )

        canvas = PosterCanvas(width, height)
        try:
            report("Rendering background...")
            canvas.fill_background(theme.bg)

            report("Rendering water...")
            self._fill_areas(canvas, snapshot.water, snapshot.bounds, area_style(FeatureCategory.WATER, theme))

            report("Rendering parks...")
            self._fill_areas(canvas, snapshot.parks, snapshot.bounds, area_style(FeatureCategory.PARK, theme))

            report("Rendering roads...")
            self._stroke_roads(canvas, snapshot.roads, snapshot.bounds, theme)

            report("Adding gradient fades...")
            self._draw_gradient_fades(canvas, theme.gradient_color)

            report("Adding typography...")
            self._draw_typography(canvas, layout_typography(request, width, height, theme))
        except Exception:
            canvas.close()
            raise

        report("Done!")
        return canvas

    def _project_features(
        self,
        canvas: PosterCanvas,
        features: Sequence[Feature],
        bounds: Bounds,
        min_points: int,
    ) -> list[tuple[Feature, np.ndarray]]:
        padding = canvas.width * PADDING_FRACTION
        projected = []
        for feature in features:
            try:
                path = project_path(
                    feature.coordinates,
                    bounds,
                    canvas.width,
                    canvas.height,
                    padding,
                    min_points=min_points,
                )
            except DegenerateGeometryError as e:
                logger.debug("Skipping %s feature %s: %s", feature.category.value, feature.id, e)
                continue
            projected.append((feature, path))
        return projected

    def _fill_areas(
        self,
        canvas: PosterCanvas,
        features: Sequence[Feature],
        bounds: Bounds,
        style: DrawStyle,
    ) -> None:
        projected = self._project_features(canvas, features, bounds, MIN_AREA_POINTS)
        canvas.fill_polygons([path for _, path in projected], style)
        logger.debug("Filled %d of %d areas", len(projected), len(features))

    def _stroke_roads(
        self,
        canvas: PosterCanvas,
        roads: Sequence[Feature],
        bounds: Bounds,
        theme: Theme,
    ) -> None:
        base_width = canvas.width / BASE_WIDTH_DIVISOR
        projected = self._project_features(canvas, sort_roads(roads), bounds, MIN_LINE_POINTS)
        canvas.stroke_paths(
            [path for _, path in projected],
            [road_style(road.road_type, theme, base_width) for road, _ in projected],
        )
        logger.debug("Stroked %d of %d roads", len(projected), len(roads))

    def _draw_gradient_fades(self, canvas: PosterCanvas, color: str) -> None:
        band = canvas.height * GRADIENT_HEIGHT_FRACTION
        canvas.fill_vertical_gradient(color, 0.0, band, 1.0, 0.0)
        canvas.fill_vertical_gradient(color, canvas.height - band, canvas.height, 0.0, 1.0)

    def _draw_typography(self, canvas: PosterCanvas, layout: TypographyLayout) -> None:
        canvas.draw_text(layout.title.text, layout.title.x, layout.title.y, layout.title.style, self.fonts)
        canvas.draw_line(*layout.divider, layout.divider_style)
        for item in (layout.subtitle, layout.coordinates, layout.name, layout.attribution):
            if item is not None:
                canvas.draw_text(item.text, item.x, item.y, item.style, self.fonts)
