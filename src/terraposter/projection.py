"""Linear projection of geographic coordinates onto canvas pixels.

The mapping is a plain equirectangular-style interpolation over the poster
bounds: longitude runs left to right, latitude runs bottom to top, so north
maps to the smallest y. Points outside the bounds are not clamped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

import numpy as np


if TYPE_CHECKING:
    from collections.abc import Sequence

    from .geo import Bounds, GeoPoint


__all__ = [
    "CanvasPoint",
    "DegenerateGeometryError",
    "project",
    "project_path",
]


class DegenerateGeometryError(ValueError):
    """Raised when a feature has too few points to be drawn."""


class CanvasPoint(NamedTuple):
    """A position on the canvas in pixels, origin top-left."""

    x: float
    y: float


def project(
    point: GeoPoint,
    bounds: Bounds,
    canvas_width: float,
    canvas_height: float,
    padding: float,
) -> CanvasPoint:
    """Map a geographic point to canvas pixel coordinates.

    Args:
        point: The point to project.
        bounds: The geographic region spanning the drawable area.
        canvas_width: Canvas width in pixels.
        canvas_height: Canvas height in pixels.
        padding: Margin in pixels kept on every side of the drawable area.

    Returns:
        The projected CanvasPoint.
    """
    usable_width = canvas_width - 2 * padding
    usable_height = canvas_height - 2 * padding
    x = padding + (point.lon - bounds.west) / (bounds.east - bounds.west) * usable_width
    y = padding + (bounds.north - point.lat) / (bounds.north - bounds.south) * usable_height
    return CanvasPoint(x, y)


def project_path(
    coordinates: Sequence[GeoPoint],
    bounds: Bounds,
    canvas_width: float,
    canvas_height: float,
    padding: float,
    min_points: int = 2,
) -> np.ndarray:
    """Project a whole coordinate sequence to an (N, 2) array of pixels.

    Uses the same formula as project(), vectorized.

    Raises:
        DegenerateGeometryError: If fewer than ``min_points`` coordinates are given.
    """
    if len(coordinates) < min_points:
        raise DegenerateGeometryError(
            f"Need at least {min_points} points, got {len(coordinates)}"
        )

    lat_lon = np.array([(p.lat, p.lon) for p in coordinates], dtype=np.float64)
    usable_width = canvas_width - 2 * padding
    usable_height = canvas_height - 2 * padding

    xy = np.empty_like(lat_lon)
    xy[:, 0] = padding + (lat_lon[:, 1] - bounds.west) / (bounds.east - bounds.west) * usable_width
    xy[:, 1] = padding + (bounds.north - lat_lon[:, 0]) / (bounds.north - bounds.south) * usable_height
    return xy
