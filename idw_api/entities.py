# entities.py
# Plain data types passed between the engine stages

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Tuple

from shapely.geometry import Polygon, box

from idw_api.config import (
    CELL_UNITS,
    DEFAULT_CELL_UNIT,
    DEFAULT_CELL_WIDTH,
    DEFAULT_GRID_TYPE,
    DEFAULT_NUM_CLASSES,
    DEFAULT_POWER,
    GRID_TYPES,
    UNIT_TO_KM,
)
from idw_api.errors import InvalidGridError, InvalidParameterError


@dataclass(frozen=True)
class MeasurementPoint:
    """One raw measurement as it comes out of the measurement store."""
    sensor_id: Any
    value: float
    lat: float
    lng: float


@dataclass(frozen=True)
class KnownPoint:
    """Mean of all measurements taken at one exact location."""
    lat: float
    lng: float
    value: float


@dataclass(frozen=True)
class GridCell:
    """
    One cell of the tessellation.

    polygon is in GeoJSON axis order (x=lng, y=lat), centroid is (lat, lng).
    """
    index: int
    polygon: Polygon
    centroid: Tuple[float, float]


@dataclass(frozen=True)
class InterpolatedFeature:
    cell: GridCell
    value: float
    class_index: int


@dataclass(frozen=True)
class Region:
    """Bounding box of interest in WGS84 degrees."""
    west: float
    south: float
    east: float
    north: float

    @classmethod
    def from_bbox(cls, bbox) -> "Region":
        """Build from a [west, south, east, north] sequence."""
        if len(bbox) != 4:
            raise InvalidGridError(f"bbox needs 4 numbers, got {len(bbox)}")
        return cls(*(float(v) for v in bbox))

    def __post_init__(self):
        coords = (self.west, self.south, self.east, self.north)
        if not all(math.isfinite(c) for c in coords):
            raise InvalidGridError("bbox coordinates must be finite numbers")
        if not (-180 <= self.west <= 180 and -180 <= self.east <= 180):
            raise InvalidGridError("longitudes must be within [-180, 180]")
        if not (-90 <= self.south <= 90 and -90 <= self.north <= 90):
            raise InvalidGridError("latitudes must be within [-90, 90]")
        if self.west >= self.east or self.south >= self.north:
            raise InvalidGridError("region has zero area (west must be < east and south < north)")

    @property
    def polygon(self) -> Polygon:
        """Closed ring, counter-clockwise, starting at the south-west corner."""
        return box(self.west, self.south, self.east, self.north)


@dataclass(frozen=True)
class IdwConfig:
    """
    Everything one interpolation run needs, validated once.

    Built at the request boundary and handed to InterpolationPipeline.
    """
    region: Region
    grid_type: str = DEFAULT_GRID_TYPE
    cell_width: float = DEFAULT_CELL_WIDTH
    cell_unit: str = DEFAULT_CELL_UNIT
    power: float = DEFAULT_POWER
    num_classes: int = DEFAULT_NUM_CLASSES

    def __post_init__(self):
        if self.grid_type not in GRID_TYPES:
            raise InvalidParameterError(f"gridType must be one of {list(GRID_TYPES)}")
        if self.cell_unit not in CELL_UNITS:
            raise InvalidParameterError(f"cellUnit must be one of {list(CELL_UNITS)}")
        if not math.isfinite(self.cell_width) or self.cell_width <= 0:
            raise InvalidParameterError("cellWidth must be a positive number")
        if not math.isfinite(self.power) or self.power <= 0:
            raise InvalidParameterError("power must be a positive number")
        n = self.num_classes
        if (isinstance(n, bool) or not isinstance(n, (int, float))
                or not math.isfinite(n) or int(n) != n):
            raise InvalidParameterError("numClasses must be an integer")
        if n < 1:
            raise InvalidParameterError("numClasses must be at least 1")
        object.__setattr__(self, "num_classes", int(n))

    @property
    def cell_width_km(self) -> float:
        return self.cell_width * UNIT_TO_KM[self.cell_unit]


@dataclass(frozen=True)
class MeasurementQuery:
    """Filters a measurement source applies before streaming points."""
    phenomenon: str
    region: Region
    from_date: datetime
    to_date: datetime
    exposure: Optional[str] = None
