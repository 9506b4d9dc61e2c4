# services/cost_guard.py
# Pre-flight check that keeps huge grids off the server

import logging

from idw_api.config import COST_CEILING
from idw_api.errors import CostRejectedError, InvalidParameterError

logger = logging.getLogger(__name__)


def check_cost(region_area_sq_km: float, cell_width_km: float, ceiling: float = COST_CEILING) -> float:
    """
    Reject requests where area / cell width exceeds the ceiling.

    Returns the ratio when the request is acceptable so callers can report it.
    """
    if cell_width_km <= 0:
        raise InvalidParameterError(f"cellWidth must be positive, got {cell_width_km}")

    ratio = region_area_sq_km / cell_width_km
    if ratio > ceiling:
        logger.info(f"Rejected: {region_area_sq_km:.1f} km² / {cell_width_km:g} km = {ratio:.1f} > {ceiling:g}")
        raise CostRejectedError(region_area_sq_km, ratio, ceiling)
    return ratio
