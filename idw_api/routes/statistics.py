# routes/statistics.py
# Endpoint for IDW interpolation of one phenomenon

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from idw_api.config import (
    DEFAULT_CELL_UNIT,
    DEFAULT_CELL_WIDTH,
    DEFAULT_GRID_TYPE,
    DEFAULT_NUM_CLASSES,
    DEFAULT_POWER,
)
from idw_api.errors import BadInputError, ComputationFailedError, CostRejectedError
from idw_api.models import IdwRequest
from idw_api.services.pipeline import InterpolationPipeline
from idw_api.services.sources import MeasurementSource

router = APIRouter(prefix="/statistics", tags=["Interpolation"])

# This gets set by main.py on startup
source: Optional[MeasurementSource] = None


def set_dependencies(src: Optional[MeasurementSource]):
    """Called by main.py to inject the measurement source."""
    global source
    source = src


def validation_message(err: ValidationError) -> str:
    return "; ".join(f"{'.'.join(str(p) for p in e['loc']) or 'request'}: {e['msg']}" for e in err.errors())


@router.get("/idw")
async def calculate_idw(
    phenomenon: str = Query(..., description="Name of the phenomenon, e.g. Temperatur"),
    bbox: str = Query(..., description="west,south,east,north"),
    from_date: Optional[datetime] = Query(None, alias="from-date"),
    to_date: Optional[datetime] = Query(None, alias="to-date"),
    exposure: Optional[Literal["indoor", "outdoor"]] = Query(None),
    grid_type: Literal["hex", "square", "triangle"] = Query(DEFAULT_GRID_TYPE, alias="gridType"),
    cell_unit: Literal["kilometers", "miles"] = Query(DEFAULT_CELL_UNIT, alias="cellUnit"),
    cell_width: float = Query(DEFAULT_CELL_WIDTH, alias="cellWidth"),
    power: float = Query(DEFAULT_POWER),
    num_classes: int = Query(DEFAULT_NUM_CLASSES, alias="numClasses"),
):
    """
    Inverse Distance Weighting interpolation as a GeoJSON FeatureCollection.

    Every cell of the grid over bbox gets a value estimated from the mean
    measurement at each sensor location, plus its class in an array of
    equal-interval breaks.

    Requests with (area in km² / cellWidth in km) > 2500 are rejected.
    """
    if source is None:
        raise HTTPException(503, "No measurement source configured")

    try:
        req = IdwRequest(
            phenomenon=phenomenon,
            bbox=bbox,
            from_date=from_date,
            to_date=to_date,
            exposure=exposure,
            grid_type=grid_type,
            cell_unit=cell_unit,
            cell_width=cell_width,
            power=power,
            num_classes=num_classes,
        )
        pipeline = InterpolationPipeline(req.to_config())
        # cost is checked before the source is touched
        result = await pipeline.run_async(source.stream(req.to_query()))
    except ValidationError as e:
        raise HTTPException(400, validation_message(e))
    except BadInputError as e:
        raise HTTPException(400, str(e))
    except CostRejectedError as e:
        raise HTTPException(422, str(e))
    except ComputationFailedError as e:
        raise HTTPException(500, str(e))

    return StreamingResponse(result.iter_json(), media_type="application/json; charset=utf-8")
