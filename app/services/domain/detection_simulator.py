"""
Domain service: synthetic satellite tree detections.

Stand-in for the imagery analysis pipeline. Produces detections scattered
around a plot centre with a pseudo-random vegetation index (NDVI).
"""
from typing import Optional
import logging

import numpy as np

from app.domain.models import SimulatedDetection, SizeClass

logger = logging.getLogger(__name__)

# Half-width of the square scatter window, in degrees (~275 m of latitude)
OFFSET_HALF_WIDTH_DEG = 0.0025

NDVI_MIN = 0.6
NDVI_SPAN = 0.3
CONFIDENCE_MIN = 0.7
CONFIDENCE_SPAN = 0.25


def size_class_for_ndvi(ndvi: float) -> str:
    """Map a vegetation index to a size class."""
    if ndvi > 0.8:
        return SizeClass.VERY_LARGE
    if ndvi > 0.7:
        return SizeClass.LARGE
    if ndvi > 0.6:
        return SizeClass.MEDIUM
    return SizeClass.SMALL


class DetectionSimulator:
    """
    Generates pseudo-random detections around a coordinate.

    Pass a seed (or a numpy Generator) for reproducible output.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def simulate(
        self,
        latitude: float,
        longitude: float,
        count: int,
    ) -> list[SimulatedDetection]:
        """
        Simulate detections around a plot centre.

        Args:
            latitude: Plot centre latitude in degrees
            longitude: Plot centre longitude in degrees
            count: Number of detections to generate

        Returns:
            List of SimulatedDetection
        """
        if count < 0:
            raise ValueError("count must be non-negative")

        offsets = (self.rng.random((count, 2)) - 0.5) * (2 * OFFSET_HALF_WIDTH_DEG)
        ndvi = NDVI_MIN + self.rng.random(count) * NDVI_SPAN
        confidence = CONFIDENCE_MIN + self.rng.random(count) * CONFIDENCE_SPAN

        detections = [
            SimulatedDetection(
                id=f"tree_{i}",
                latitude=latitude + float(offsets[i, 0]),
                longitude=longitude + float(offsets[i, 1]),
                ndvi=float(ndvi[i]),
                size_class=size_class_for_ndvi(float(ndvi[i])),
                confidence=float(confidence[i]),
            )
            for i in range(count)
        ]

        logger.info(f"Simulated {len(detections)} detections around ({latitude:.6f}, {longitude:.6f})")
        return detections
