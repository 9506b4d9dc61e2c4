"""Geometry helpers for building test regions."""

import math

from idw_api.config import EARTH_RADIUS_KM
from idw_api.entities import Region

# degrees of arc that span one kilometer on the equator (and along any meridian)
KM_IN_DEGREES = 1 / (EARTH_RADIUS_KM * math.pi / 180)


def square_region(side_km: float, lat0: float = 0.0, lng0: float = 0.0) -> Region:
    """Box of side_km x side_km (on the equator) with its south-west corner at (lat0, lng0)."""
    d = side_km * KM_IN_DEGREES
    return Region(west=lng0, south=lat0, east=lng0 + d, north=lat0 + d)
