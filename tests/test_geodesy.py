"""
Unit tests for the geodesic calculator.

Tests cover:
- Reference distances and bearings
- Symmetry of distance
- Coincident points
- Bearing normalization
- Rejection of non-finite input
"""
import math
import pytest

from app.domain.errors import InvalidArgumentError
from app.utils.geodesy import (
    distance_and_bearing,
    haversine_distance_m,
    initial_bearing_deg,
)


class TestReferenceValues:
    """Known distances and bearings."""

    def test_one_degree_of_longitude_at_equator(self):
        result = distance_and_bearing(0, 0, 0, 1)

        assert result.distance == 111195
        assert result.bearing == 90

    def test_one_degree_of_latitude(self):
        result = distance_and_bearing(0, 0, 1, 0)

        assert result.distance == 111195
        assert result.bearing == 0

    def test_due_south_and_west(self):
        assert distance_and_bearing(0, 0, -1, 0).bearing == 180
        assert distance_and_bearing(0, 0, 0, -1).bearing == 270

    def test_short_plot_offset(self):
        """A ~15 m offset inside a plot stays in whole meters."""
        result = distance_and_bearing(6.2442, -75.5812, 6.2443, -75.5811)

        assert 15 <= result.distance <= 17
        assert 40 <= result.bearing <= 50

    def test_unrounded_helpers(self):
        assert haversine_distance_m(0, 0, 0, 1) == pytest.approx(111194.93, abs=0.01)
        assert initial_bearing_deg(0, 0, 0, 1) == pytest.approx(90.0)


class TestProperties:
    """Invariants of the calculator."""

    @pytest.mark.parametrize("lat,lon", [(0, 0), (6.2442, -75.5812), (-33.9, 18.4), (89.9, 179.9)])
    def test_same_point_is_zero_distance_zero_bearing(self, lat, lon):
        result = distance_and_bearing(lat, lon, lat, lon)

        assert result.distance == 0
        assert result.bearing == 0

    @pytest.mark.parametrize("a,b", [
        ((6.2442, -75.5812), (6.2501, -75.5700)),
        ((-33.9, 18.4), (51.5, -0.12)),
        ((10.0, 170.0), (-10.0, -170.0)),
    ])
    def test_distance_is_symmetric(self, a, b):
        forward = distance_and_bearing(*a, *b)
        backward = distance_and_bearing(*b, *a)

        assert forward.distance == backward.distance

    def test_bearing_always_in_range(self):
        for dlat in (-1, -0.001, 0, 0.001, 1):
            for dlon in (-1, -0.001, 0.001, 1):
                bearing = distance_and_bearing(10, 20, 10 + dlat, 20 + dlon).bearing
                assert 0 <= bearing < 360

    def test_bearing_rounding_to_360_wraps_to_zero(self):
        # Slightly west of due north: raw bearing ~359.9999
        result = distance_and_bearing(0, 0, 1, -0.000001)

        assert result.bearing == 0

    def test_antipodal_points(self):
        result = distance_and_bearing(0, 0, 0, 180)

        assert result.distance == round(math.pi * 6371000)


class TestInvalidInput:
    """Non-finite coordinates are rejected."""

    @pytest.mark.parametrize("coords", [
        (math.nan, 0, 0, 0),
        (0, math.inf, 0, 0),
        (0, 0, -math.inf, 0),
        (0, 0, 0, math.nan),
    ])
    def test_non_finite_raises(self, coords):
        with pytest.raises(InvalidArgumentError):
            distance_and_bearing(*coords)

    def test_invalid_argument_is_value_error(self):
        with pytest.raises(ValueError):
            distance_and_bearing(math.nan, 0, 0, 0)
