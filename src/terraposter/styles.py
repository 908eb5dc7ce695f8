"""Style policy: colors, widths and draw order for map features."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .geo import FeatureCategory
from .render_constants import ROAD_ORDER, ROAD_WIDTH_DEFAULT, ROAD_WIDTHS


if TYPE_CHECKING:
    from collections.abc import Iterable

    from .config import Theme
    from .geo import Feature


__all__ = [
    "MIN_AREA_POINTS",
    "MIN_LINE_POINTS",
    "DrawStyle",
    "TextStyle",
    "area_style",
    "classify_road",
    "road_color",
    "road_priority",
    "road_style",
    "road_width",
    "sort_roads",
]

MIN_LINE_POINTS = 2
MIN_AREA_POINTS = 3

_ROAD_PRIORITY = {road_type: index for index, road_type in enumerate(ROAD_ORDER)}


@dataclass(frozen=True)
class DrawStyle:
    """Pen state for one fill or stroke call."""

    fill: str | None = None
    stroke: str | None = None
    line_width: float = 1.0
    alpha: float = 1.0
    cap: str = "butt"
    join: str = "miter"


@dataclass(frozen=True)
class TextStyle:
    """Pen state for one text call. ``size`` is the em size in pixels."""

    color: str
    size: float
    weight: str = "regular"
    alpha: float = 1.0
    align: str = "center"


def classify_road(road_type: str) -> str:
    """Map a highway value onto one of the theme's road color classes.

    Matching is by substring, so e.g. ``motorway_link`` shares the motorway
    color and any value containing ``primary`` is primary.
    """
    if "motorway" in road_type:
        return "motorway"
    if "trunk" in road_type or "primary" in road_type:
        return "primary"
    if "secondary" in road_type:
        return "secondary"
    if "tertiary" in road_type:
        return "tertiary"
    if "residential" in road_type or road_type == "living_street":
        return "residential"
    return "default"


def road_color(road_type: str, theme: Theme) -> str:
    """Return the theme color for a highway value."""
    return getattr(theme, f"road_{classify_road(road_type)}")


def road_width(road_type: str, base_width: float) -> float:
    """Return the stroke width in pixels for a highway value."""
    return ROAD_WIDTHS.get(road_type, ROAD_WIDTH_DEFAULT) * base_width


def road_priority(road_type: str | None) -> int:
    """Paint priority of a highway value; unknown values sort lowest."""
    return _ROAD_PRIORITY.get(road_type or "", -1)


def sort_roads(roads: Iterable[Feature]) -> list[Feature]:
    """Order roads so the most important ones paint last.

    The sort is stable: roads of equal priority keep their input order.
    """
    return sorted(roads, key=lambda road: road_priority(road.road_type))


def road_style(road_type: str | None, theme: Theme, base_width: float) -> DrawStyle:
    """Stroke style for a road: themed color, table width, round ends."""
    road_type = road_type or ""
    return DrawStyle(
        stroke=road_color(road_type, theme),
        line_width=road_width(road_type, base_width),
        cap="round",
        join="round",
    )


def area_style(category: FeatureCategory, theme: Theme) -> DrawStyle:
    """Solid fill style for a water or park polygon."""
    if category is FeatureCategory.WATER:
        return DrawStyle(fill=theme.water)
    if category is FeatureCategory.PARK:
        return DrawStyle(fill=theme.parks)
    raise ValueError(f"No area style for category {category.value!r}")
