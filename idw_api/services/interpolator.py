# services/interpolator.py
# Core interpolation engine using IDW over every known point

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from idw_api.config import CHUNK_SIZE
from idw_api.entities import KnownPoint
from idw_api.errors import InvalidParameterError
from idw_api.services.geo import haversine_km


def _check_power(power: float):
    if not isinstance(power, (int, float)) or not math.isfinite(power) or power <= 0:
        raise InvalidParameterError(f"power must be a positive number, got {power}")


class IdwInterpolator:
    """
    Estimates values at arbitrary locations from a fixed set of known points.

    The idea is simple: every known point contributes to the estimate, and
    closer points have more influence (weight = 1 / distance^power). A
    location that sits exactly on a known point just gets that point's value.

    Weights are evaluated as (d_min / d)^power. That is the same ratio as
    1 / d^power once normalized, but it cannot overflow for tiny distances or
    underflow to 0/0 for huge powers, since the nearest point always weighs 1.
    """

    def __init__(self, known_points: Sequence[KnownPoint], power: float = 1.0, chunk_size: int = CHUNK_SIZE):
        _check_power(power)
        self.power = float(power)
        self.chunk_size = max(1, chunk_size)

        self._lats = np.array([p.lat for p in known_points], dtype=np.float64)
        self._lngs = np.array([p.lng for p in known_points], dtype=np.float64)
        self._values = np.array([p.value for p in known_points], dtype=np.float64)

        if len(self._values):
            self.value_range: Optional[Tuple[float, float]] = (
                float(self._values.min()), float(self._values.max())
            )
        else:
            self.value_range = None

    def _estimate_chunk(self, lats: np.ndarray, lngs: np.ndarray) -> np.ndarray:
        # rows = centroids, columns = known points
        dist = haversine_km(lats[:, None], lngs[:, None], self._lats[None, :], self._lngs[None, :])
        out = np.empty(len(lats), dtype=np.float64)

        # Direct hit - no need to interpolate
        exact = dist == 0
        hit = exact.any(axis=1)
        if hit.any():
            out[hit] = self._values[exact[hit].argmax(axis=1)]

        rest = ~hit
        if rest.any():
            d = dist[rest]
            weights = (d.min(axis=1, keepdims=True) / d) ** self.power
            # normalize first so the weighted sum stays within the value range
            weights /= weights.sum(axis=1, keepdims=True)
            est = (weights * self._values).sum(axis=1)
            lo, hi = self.value_range
            out[rest] = np.clip(est, lo, hi)

        return out

    def interpolate_many(self, centroids: Sequence[Tuple[float, float]]) -> List[Optional[float]]:
        """
        Estimate every (lat, lng) centroid.

        Centroids are processed in fixed-size chunks so the distance matrix
        stays bounded; each row only depends on its own centroid, so the
        result does not depend on the chunk size.
        """
        if not len(self._values):
            return [None] * len(centroids)

        coords = np.array(centroids, dtype=np.float64).reshape(-1, 2)
        result: List[Optional[float]] = []
        for start in range(0, len(coords), self.chunk_size):
            chunk = coords[start:start + self.chunk_size]
            result.extend(self._estimate_chunk(chunk[:, 0], chunk[:, 1]).tolist())
        return result

    def interpolate(self, lat: float, lng: float) -> Optional[float]:
        """Compute the IDW value at one point, None without known points."""
        return self.interpolate_many([(lat, lng)])[0]


def estimate(known_points: Sequence[KnownPoint], centroid: Tuple[float, float], power: float) -> Optional[float]:
    """IDW estimate at a single (lat, lng) centroid."""
    return IdwInterpolator(known_points, power).interpolate(*centroid)


def estimate_all(known_points: Sequence[KnownPoint], centroids: Sequence[Tuple[float, float]],
                 power: float) -> List[Optional[float]]:
    """IDW estimate for each (lat, lng) centroid, in order."""
    return IdwInterpolator(known_points, power).interpolate_many(centroids)
