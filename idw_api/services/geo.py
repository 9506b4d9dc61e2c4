# services/geo.py
# Distance and area helpers shared by the grid builder, estimator and cost guard

import numpy as np
import pyproj

from idw_api.config import EARTH_RADIUS_KM
from idw_api.entities import Region

_GEOD = pyproj.Geod(ellps="WGS84")


def haversine_km(lat1, lng1, lat2, lng2):
    """
    Great-circle distance in kilometers.

    Works on scalars or numpy arrays (broadcasting), so the estimator can
    compute a whole centroid x point matrix in one call.
    """
    lat1_r, lat2_r = np.radians(lat1), np.radians(lat2)
    dlat = np.radians(np.subtract(lat2, lat1))
    dlng = np.radians(np.subtract(lng2, lng1))

    a = np.sin(dlat / 2) ** 2 + np.cos(lat1_r) * np.cos(lat2_r) * np.sin(dlng / 2) ** 2
    # clip guards against a creeping just above 1 for antipodal points
    return EARTH_RADIUS_KM * 2 * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def region_area_sq_km(region: Region) -> float:
    """Geodesic area of the region on the WGS84 ellipsoid, in km²."""
    area, _ = _GEOD.geometry_area_perimeter(region.polygon)
    return abs(area) / 1_000_000
