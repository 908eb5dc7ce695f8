"""Shared render constants.

All positions are fractions of the canvas size and all font sizes are
fractions of the canvas width, so a preview and an export of the same preset
share one layout.
"""

from __future__ import annotations


__all__ = [
    "AGG_DPI",
    "ATTRIBUTION_FONT_FRACTION",
    "ATTRIBUTION_TEXT",
    "ATTRIBUTION_X_POS",
    "ATTRIBUTION_Y_POS",
    "BASE_WIDTH_DIVISOR",
    "COORDS_FONT_FRACTION",
    "COORDS_Y_POS",
    "DIVIDER_LINE_WIDTH",
    "DIVIDER_X_END",
    "DIVIDER_X_START",
    "DIVIDER_Y_POS",
    "GRADIENT_HEIGHT_FRACTION",
    "GRADIENT_STEPS",
    "MIN_TITLE_FONT_PX",
    "NAME_FONT_FRACTION",
    "NAME_Y_POS",
    "NAME_Y_POS_NO_COORDS",
    "PADDING_FRACTION",
    "PREVIEW_LONG_EDGE",
    "ROAD_ORDER",
    "ROAD_WIDTHS",
    "ROAD_WIDTH_DEFAULT",
    "SUBTITLE_FONT_FRACTION",
    "SUBTITLE_Y_POS",
    "TEXT_CENTER_X",
    "TITLE_CHAR_WIDTH",
    "TITLE_FONT_MAX_FRACTION",
    "TITLE_LETTER_SPACING",
    "TITLE_MAX_WIDTH_FRACTION",
    "TITLE_Y_POS",
]

# Agg resolution. A power of two keeps pixel sizes exact through the
# inches round-trip matplotlib does internally.
AGG_DPI = 64

# Canvas padding around the projected map, as a fraction of canvas width
PADDING_FRACTION = 0.05

# Road widths are relative to this many pixels of canvas width
BASE_WIDTH_DIVISOR = 800

# Working resolution of the preview render (long edge, pixels)
PREVIEW_LONG_EDGE = 800

# Typography positioning constants (fractions of width / height, y down)
TEXT_CENTER_X = 0.5
TITLE_Y_POS = 0.86
DIVIDER_Y_POS = 0.875
DIVIDER_X_START = 0.4
DIVIDER_X_END = 0.6
SUBTITLE_Y_POS = 0.90
COORDS_Y_POS = 0.93
NAME_Y_POS = 0.955
NAME_Y_POS_NO_COORDS = 0.93
ATTRIBUTION_X_POS = 0.98
ATTRIBUTION_Y_POS = 0.98
ATTRIBUTION_TEXT = "© OpenStreetMap contributors"

# Font sizes as fractions of canvas width
TITLE_FONT_MAX_FRACTION = 0.06
TITLE_MAX_WIDTH_FRACTION = 0.8
TITLE_CHAR_WIDTH = 0.6
TITLE_LETTER_SPACING = 2
MIN_TITLE_FONT_PX = 24
SUBTITLE_FONT_FRACTION = 0.022
COORDS_FONT_FRACTION = 0.014
NAME_FONT_FRACTION = 0.016
ATTRIBUTION_FONT_FRACTION = 0.008

# Divider width in base-width units
DIVIDER_LINE_WIDTH = 2.0

# Gradient constants
GRADIENT_HEIGHT_FRACTION = 0.25
GRADIENT_STEPS = 256

# Relative road widths by exact highway value
ROAD_WIDTH_DEFAULT = 1.0
ROAD_WIDTHS: dict[str, float] = {
    "motorway": 4.0,
    "motorway_link": 3.0,
    "trunk": 3.5,
    "trunk_link": 2.5,
    "primary": 3.0,
    "primary_link": 2.0,
    "secondary": 2.5,
    "secondary_link": 1.8,
    "tertiary": 2.0,
    "tertiary_link": 1.5,
    "residential": 1.2,
    "living_street": 1.0,
    "unclassified": 1.0,
}

# Least important first; later entries paint on top
ROAD_ORDER: tuple[str, ...] = (
    "unclassified",
    "living_street",
    "residential",
    "tertiary_link",
    "tertiary",
    "secondary_link",
    "secondary",
    "primary_link",
    "primary",
    "trunk_link",
    "trunk",
    "motorway_link",
    "motorway",
)
