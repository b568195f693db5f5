"""
Unit tests for the satellite detection simulator.
"""
import pytest

from app.services.domain.detection_simulator import (
    OFFSET_HALF_WIDTH_DEG,
    DetectionSimulator,
    size_class_for_ndvi,
)
from app.utils.geodesy import distance_and_bearing


class TestSizeClassForNdvi:

    @pytest.mark.parametrize("ndvi,expected", [
        (0.85, "very_large"),
        (0.8, "large"),
        (0.75, "large"),
        (0.7, "medium"),
        (0.65, "medium"),
        (0.6, "small"),
    ])
    def test_thresholds(self, ndvi, expected):
        assert size_class_for_ndvi(ndvi) == expected


class TestDetectionSimulator:

    def test_count_and_ids(self):
        detections = DetectionSimulator(seed=1).simulate(6.2442, -75.5812, 20)

        assert len(detections) == 20
        assert [d.id for d in detections[:3]] == ["tree_0", "tree_1", "tree_2"]

    def test_values_within_bounds(self):
        detections = DetectionSimulator(seed=7).simulate(6.2442, -75.5812, 200)

        for d in detections:
            assert abs(d.latitude - 6.2442) <= OFFSET_HALF_WIDTH_DEG
            assert abs(d.longitude - (-75.5812)) <= OFFSET_HALF_WIDTH_DEG
            assert 0.6 <= d.ndvi < 0.9
            assert 0.7 <= d.confidence < 0.95
            assert d.size_class == size_class_for_ndvi(d.ndvi)

    def test_seed_is_reproducible(self):
        first = DetectionSimulator(seed=42).simulate(0.0, 0.0, 5)
        second = DetectionSimulator(seed=42).simulate(0.0, 0.0, 5)

        assert first == second

    def test_zero_count(self):
        assert DetectionSimulator(seed=0).simulate(0.0, 0.0, 0) == []

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            DetectionSimulator(seed=0).simulate(0.0, 0.0, -1)

    def test_detections_stay_close_to_origin(self):
        """Every detection is within the scatter window diagonal (~400 m)."""
        detections = DetectionSimulator(seed=3).simulate(6.2442, -75.5812, 50)

        for d in detections:
            offset = distance_and_bearing(6.2442, -75.5812, d.latitude, d.longitude)
            assert offset.distance < 400
            assert 0 <= offset.bearing < 360
