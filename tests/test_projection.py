"""Tests for the projection module."""

from __future__ import annotations

import numpy as np
import pytest

from terraposter.geo import Bounds, GeoPoint
from terraposter.projection import (
    CanvasPoint,
    DegenerateGeometryError,
    project,
    project_path,
)


BOUNDS = Bounds(south=10.0, north=20.0, west=30.0, east=50.0, center=GeoPoint(15.0, 40.0), radius_meters=1)
WIDTH = 400
HEIGHT = 300
PADDING = 20


class TestProject:
    """Tests for single point projection."""

    def test_corners_map_to_padding_edges(self) -> None:
        """Test that the bounds' edges land exactly on the padded frame."""
        assert project(GeoPoint(20.0, 30.0), BOUNDS, WIDTH, HEIGHT, PADDING) == CanvasPoint(20, 20)
        assert project(GeoPoint(10.0, 50.0), BOUNDS, WIDTH, HEIGHT, PADDING) == CanvasPoint(380, 280)

    def test_north_is_up(self) -> None:
        """Test that a more northern point has a smaller y."""
        north = project(GeoPoint(18.0, 40.0), BOUNDS, WIDTH, HEIGHT, PADDING)
        south = project(GeoPoint(12.0, 40.0), BOUNDS, WIDTH, HEIGHT, PADDING)
        assert north.y < south.y

    def test_center_maps_to_canvas_center(self) -> None:
        """Test that the middle of the bounds is the middle of the canvas."""
        point = project(GeoPoint(15.0, 40.0), BOUNDS, WIDTH, HEIGHT, PADDING)
        assert point.x == pytest.approx(WIDTH / 2)
        assert point.y == pytest.approx(HEIGHT / 2)

    @pytest.mark.parametrize(
        ("lat", "lon"),
        [(10.0, 30.0), (12.5, 33.3), (19.99, 49.99), (15.0, 40.0), (20.0, 50.0)],
    )
    def test_inside_points_stay_inside_frame(self, lat: float, lon: float) -> None:
        """Test that points inside the bounds project inside the padded frame."""
        x, y = project(GeoPoint(lat, lon), BOUNDS, WIDTH, HEIGHT, PADDING)
        assert PADDING <= x <= WIDTH - PADDING
        assert PADDING <= y <= HEIGHT - PADDING

    def test_outside_points_not_clamped(self) -> None:
        """Test that points beyond the bounds project beyond the frame."""
        x, y = project(GeoPoint(25.0, 25.0), BOUNDS, WIDTH, HEIGHT, PADDING)
        assert x < PADDING
        assert y < PADDING


class TestProjectPath:
    """Tests for vectorized path projection."""

    def test_matches_single_point_projection(self) -> None:
        """Test that path projection agrees with project() point by point."""
        coords = [GeoPoint(11.0, 31.0), GeoPoint(14.0, 45.0), GeoPoint(19.5, 49.0)]
        path = project_path(coords, BOUNDS, WIDTH, HEIGHT, PADDING)
        expected = np.array([project(p, BOUNDS, WIDTH, HEIGHT, PADDING) for p in coords])
        assert path.shape == (3, 2)
        np.testing.assert_allclose(path, expected)

    def test_too_few_points_raise(self) -> None:
        """Test that a single point cannot form a path."""
        with pytest.raises(DegenerateGeometryError, match="at least 2"):
            project_path([GeoPoint(15.0, 40.0)], BOUNDS, WIDTH, HEIGHT, PADDING)

    def test_custom_minimum(self) -> None:
        """Test that polygons can demand three points."""
        coords = [GeoPoint(11.0, 31.0), GeoPoint(14.0, 45.0)]
        with pytest.raises(DegenerateGeometryError):
            project_path(coords, BOUNDS, WIDTH, HEIGHT, PADDING, min_points=3)

    def test_degenerate_error_is_value_error(self) -> None:
        """Test that degenerate geometry can be handled as ValueError."""
        assert issubclass(DegenerateGeometryError, ValueError)
