# routes/grid_utils.py
# Endpoints that expose the grid builder and the cost guard on their own

from typing import Literal

from fastapi import APIRouter, HTTPException, Query
from pydantic import ValidationError
from shapely.geometry import mapping

from idw_api.config import COST_CEILING, DEFAULT_CELL_UNIT, DEFAULT_CELL_WIDTH, DEFAULT_GRID_TYPE, UNIT_TO_KM
from idw_api.errors import BadInputError, CostRejectedError
from idw_api.models import AreaResult, FeatureCollection, GridRequest
from idw_api.routes.statistics import validation_message
from idw_api.services.cost_guard import check_cost
from idw_api.services.geo import region_area_sq_km
from idw_api.services.grid_builder import build_grid

router = APIRouter(prefix="/grid", tags=["Grid Utilities"])


def _grid_request(bbox: str, grid_type: str, cell_unit: str, cell_width: float) -> GridRequest:
    try:
        return GridRequest(bbox=bbox, grid_type=grid_type, cell_unit=cell_unit, cell_width=cell_width)
    except ValidationError as e:
        raise HTTPException(400, validation_message(e))


@router.get("/area", response_model=AreaResult)
async def area(
    bbox: str = Query(..., description="west,south,east,north"),
    cell_unit: Literal["kilometers", "miles"] = Query(DEFAULT_CELL_UNIT, alias="cellUnit"),
    cell_width: float = Query(DEFAULT_CELL_WIDTH, alias="cellWidth"),
):
    """
    Geodesic area of a bbox and whether an interpolation over it would pass
    the cost check.

    Handy for clients that want to pick a cell width before asking for /statistics/idw.
    """
    req = _grid_request(bbox, DEFAULT_GRID_TYPE, cell_unit, cell_width)
    try:
        area_km2 = region_area_sq_km(req.region)
    except BadInputError as e:
        raise HTTPException(400, str(e))

    width_km = req.cell_width * UNIT_TO_KM[req.cell_unit]
    ratio = area_km2 / width_km
    return AreaResult(
        area_km2=round(area_km2, 4),
        cell_width_km=width_km,
        ratio=round(ratio, 4),
        ceiling=COST_CEILING,
        accepted=ratio <= COST_CEILING,
    )


@router.get("/cells", response_model=FeatureCollection)
async def cells(
    bbox: str = Query(..., description="west,south,east,north"),
    grid_type: Literal["hex", "square", "triangle"] = Query(DEFAULT_GRID_TYPE, alias="gridType"),
    cell_unit: Literal["kilometers", "miles"] = Query(DEFAULT_CELL_UNIT, alias="cellUnit"),
    cell_width: float = Query(DEFAULT_CELL_WIDTH, alias="cellWidth"),
):
    """
    The bare grid over a bbox as GeoJSON, in the same order the IDW
    endpoint uses. Each feature carries its index and centroid.

    Same cost ceiling as /statistics/idw.
    """
    req = _grid_request(bbox, grid_type, cell_unit, cell_width)
    try:
        region = req.region
        check_cost(region_area_sq_km(region), req.cell_width * UNIT_TO_KM[req.cell_unit])
        grid = build_grid(region, req.grid_type, req.cell_width, req.cell_unit)
    except BadInputError as e:
        raise HTTPException(400, str(e))
    except CostRejectedError as e:
        raise HTTPException(422, str(e))

    return FeatureCollection(features=[
        {
            "type": "Feature",
            "geometry": mapping(cell.polygon),
            "properties": {"index": cell.index, "centroid": [cell.centroid[1], cell.centroid[0]]},
        }
        for cell in grid
    ])
