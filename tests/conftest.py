"""Shared fixtures: a tiny synthetic map around (0, 0)."""

from __future__ import annotations

import pytest

from terraposter.config import CustomText
from terraposter.fonts import FontSet
from terraposter.geo import Bounds, Feature, FeatureCategory, GeoPoint, LocationInfo, MapDataSnapshot
from terraposter.render import PosterCompositor, RenderRequest


# Unit bounds: on a W x W canvas with 5% padding, lat/lon 0 maps to the center
UNIT_BOUNDS = Bounds(south=-1.0, north=1.0, west=-1.0, east=1.0, center=GeoPoint(0.0, 0.0), radius_meters=1)


def make_area(feature_id: int, category: FeatureCategory, south: float, north: float, west: float, east: float) -> Feature:
    return Feature(
        feature_id,
        (
            GeoPoint(north, west),
            GeoPoint(north, east),
            GeoPoint(south, east),
            GeoPoint(south, west),
        ),
        {},
        category,
    )


def make_road(feature_id: int, road_type: str, *points: tuple[float, float]) -> Feature:
    return Feature(
        feature_id,
        tuple(GeoPoint(lat, lon) for lat, lon in points),
        {"highway": road_type},
        FeatureCategory.ROAD,
        road_type,
    )


@pytest.fixture
def sample_snapshot() -> MapDataSnapshot:
    """Water top-left, park bottom-right, a motorway across and a residential street down."""
    return MapDataSnapshot(
        bounds=UNIT_BOUNDS,
        roads=(
            make_road(1, "motorway", (0.0, -1.0), (0.0, 1.0)),
            make_road(2, "residential", (1.0, 0.0), (-1.0, 0.0)),
            make_road(3, "primary", (0.5, 0.5)),
        ),
        water=(
            make_area(10, FeatureCategory.WATER, 0.2, 0.6, -0.6, -0.2),
            Feature(11, (GeoPoint(0.0, 0.0), GeoPoint(0.1, 0.1)), {}, FeatureCategory.WATER),
        ),
        parks=(make_area(20, FeatureCategory.PARK, -0.6, -0.2, 0.2, 0.6),),
    )


@pytest.fixture
def sample_location() -> LocationInfo:
    return LocationInfo("Paris", "France", 48.8566, 2.3522)


@pytest.fixture
def sample_request(sample_snapshot: MapDataSnapshot, sample_location: LocationInfo) -> RenderRequest:
    return RenderRequest(
        snapshot=sample_snapshot,
        location=sample_location,
        theme_name="noir",
        size_name="square",
        custom_text=CustomText(),
    )


@pytest.fixture
def compositor() -> PosterCompositor:
    """A compositor using matplotlib's bundled sans-serif font."""
    return PosterCompositor(fonts=FontSet())
