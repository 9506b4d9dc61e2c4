# models.py
# Pydantic models for request/response validation

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from idw_api.config import (
    DEFAULT_CELL_UNIT,
    DEFAULT_CELL_WIDTH,
    DEFAULT_GRID_TYPE,
    DEFAULT_NUM_CLASSES,
    DEFAULT_POWER,
    DEFAULT_TIME_WINDOW_DAYS,
)
from idw_api.entities import IdwConfig, MeasurementQuery, Region


def parse_bbox(value: Any) -> List[float]:
    """'west,south,east,north' (or a list of four numbers) -> [w, s, e, n]."""
    if isinstance(value, str):
        parts = [p.strip() for p in value.split(",")]
    else:
        parts = list(value)
    if len(parts) != 4:
        raise ValueError("bbox needs exactly 4 comma-separated numbers: west,south,east,north")
    try:
        return [float(p) for p in parts]
    except (TypeError, ValueError):
        raise ValueError("bbox values must be numbers")


# --- Grid Models ---

class GridRequest(BaseModel):
    """Region and cell parameters, shared by the grid and IDW endpoints."""
    bbox: List[float] = Field(..., description="west,south,east,north in WGS84")
    grid_type: Literal["hex", "square", "triangle"] = DEFAULT_GRID_TYPE
    cell_unit: Literal["kilometers", "miles"] = DEFAULT_CELL_UNIT
    cell_width: float = Field(DEFAULT_CELL_WIDTH, gt=0)

    @field_validator("bbox", mode="before")
    @classmethod
    def split_bbox(cls, v):
        return parse_bbox(v)

    @property
    def region(self) -> Region:
        return Region.from_bbox(self.bbox)


# --- Interpolation Models ---

class IdwRequest(GridRequest):
    """
    Validated parameters of one /statistics/idw call.

    Built once at the request boundary, then turned into the engine's
    IdwConfig and the source's MeasurementQuery.
    """
    phenomenon: str
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    exposure: Optional[Literal["indoor", "outdoor"]] = None
    power: float = Field(DEFAULT_POWER, gt=0)
    num_classes: int = Field(DEFAULT_NUM_CLASSES, ge=1)

    @field_validator("phenomenon")
    @classmethod
    def phenomenon_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("invalid phenomenon parameter")
        return v

    @model_validator(mode="after")
    def default_time_range(self):
        # default window: the last two days
        if self.to_date is None:
            self.to_date = datetime.now(timezone.utc)
        if self.from_date is None:
            self.from_date = self.to_date - timedelta(days=DEFAULT_TIME_WINDOW_DAYS)
        if _as_utc(self.from_date) >= _as_utc(self.to_date):
            raise ValueError("from-date must be before to-date")
        return self

    def to_config(self) -> IdwConfig:
        return IdwConfig(
            region=self.region,
            grid_type=self.grid_type,
            cell_width=self.cell_width,
            cell_unit=self.cell_unit,
            power=self.power,
            num_classes=self.num_classes,
        )

    def to_query(self) -> MeasurementQuery:
        return MeasurementQuery(
            phenomenon=self.phenomenon,
            region=self.region,
            from_date=self.from_date,
            to_date=self.to_date,
            exposure=self.exposure,
        )


def _as_utc(ts: datetime) -> datetime:
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts


class FeatureCollection(BaseModel):
    """Response for the bare grid endpoint."""
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: List[Dict[str, Any]]


class AreaResult(BaseModel):
    """Response for the cost pre-check."""
    area_km2: float
    cell_width_km: float
    ratio: float
    ceiling: float
    accepted: bool


# --- System Models ---

class ServiceStatus(BaseModel):
    """Service health/status response."""
    status: str
    source_ready: bool
    measurements_loaded: int
