# services/aggregator.py
# Collapses raw measurements into one mean value per location

import logging
import math
from typing import AsyncIterable, Dict, Iterable, List, Tuple

from idw_api.entities import KnownPoint, MeasurementPoint

logger = logging.getLogger(__name__)


class PointAggregator:
    """
    Running mean per exact (lat, lng) pair.

    Only a sum, a count and a running mean are kept per location, so memory
    grows with the number of distinct locations, not the number of
    measurements. Locations come out in the order they were first seen and
    every sum is built in input order, which keeps the means identical from
    run to run.

    The exact sum / count is used while the sum stays finite. Values near the
    float limit overflow the sum, and those locations fall back to the running
    mean, which never leaves the range of the values it averages.
    """

    def __init__(self):
        self._sums: Dict[Tuple[float, float], List[float]] = {}
        self.consumed = 0
        self.skipped = 0

    def add(self, point: MeasurementPoint):
        self.consumed += 1
        try:
            lat, lng, value = float(point.lat), float(point.lng), float(point.value)
        except (TypeError, ValueError):
            self.skipped += 1
            return
        if not (math.isfinite(lat) and math.isfinite(lng) and math.isfinite(value)):
            self.skipped += 1
            return

        acc = self._sums.get((lat, lng))
        if acc is None:
            self._sums[(lat, lng)] = [value, 1, value]
        else:
            acc[1] += 1
            acc[0] += value
            acc[2] += value / acc[1] - acc[2] / acc[1]

    def known_points(self) -> List[KnownPoint]:
        return [KnownPoint(lat=lat, lng=lng, value=total / count if math.isfinite(total) else mean)
                for (lat, lng), (total, count, mean) in self._sums.items()]

    def log_summary(self):
        if self.skipped:
            logger.debug(f"Skipped {self.skipped} of {self.consumed} measurements without a numeric value or location")
        logger.debug(f"Aggregated {self.consumed} measurements into {len(self._sums)} locations")


def aggregate(points: Iterable[MeasurementPoint]) -> List[KnownPoint]:
    """Drain points and return one KnownPoint per distinct location."""
    agg = PointAggregator()
    for point in points:
        agg.add(point)
    agg.log_summary()
    return agg.known_points()


async def aggregate_async(points: AsyncIterable[MeasurementPoint]) -> List[KnownPoint]:
    """Same as aggregate(), pulling from an async source one point at a time."""
    agg = PointAggregator()
    async for point in points:
        agg.add(point)
    agg.log_summary()
    return agg.known_points()
