# services/grid_builder.py
# Tessellates a bounding region into hex, square or triangle cells

import logging
import math
from typing import Callable, Dict, Iterator, List, Tuple

from shapely.geometry import Polygon
from shapely.prepared import prep

from idw_api.config import UNIT_TO_KM
from idw_api.entities import GridCell, Region
from idw_api.errors import InvalidGridError
from idw_api.services.geo import haversine_km

logger = logging.getLogger(__name__)

# ceil() on span/step would turn 2.0000000001 into 3 columns
_COUNT_PRECISION = 9

_HEX_ANGLES = [math.radians(60 * i) for i in range(6)]
_HEX_COS = [math.cos(a) for a in _HEX_ANGLES]
_HEX_SIN = [math.sin(a) for a in _HEX_ANGLES]


def _degrees_per_km(region: Region) -> Tuple[float, float]:
    """
    Degrees of longitude / latitude that correspond to one kilometer.

    Longitude is measured along the middle latitude of the region, latitude
    along its west edge, both with the same haversine distance the
    estimator uses.
    """
    mid_lat = (region.south + region.north) / 2
    width_km = float(haversine_km(mid_lat, region.west, mid_lat, region.east))
    height_km = float(haversine_km(region.south, region.west, region.north, region.west))
    if width_km <= 0 or height_km <= 0:
        raise InvalidGridError("region has zero area")
    return (region.east - region.west) / width_km, (region.north - region.south) / height_km


def _count(span: float, step: float) -> int:
    """How many steps it takes to cover span (at least one)."""
    return max(1, math.ceil(round(span / step, _COUNT_PRECISION)))


def _square_lattice(region: Region, cell_w: float, cell_h: float) -> Iterator[Tuple[int, int, float, float]]:
    """Yields (col, row, x, y) lower-left corners, column by column, centered on the region."""
    bbox_w = region.east - region.west
    bbox_h = region.north - region.south
    cols = _count(bbox_w, cell_w)
    rows = _count(bbox_h, cell_h)

    x0 = region.west - (cols * cell_w - bbox_w) / 2
    y0 = region.south - (rows * cell_h - bbox_h) / 2
    for col in range(cols):
        x = x0 + col * cell_w
        for row in range(rows):
            yield col, row, x, y0 + row * cell_h


def _squares(region: Region, cell_w: float, cell_h: float) -> Iterator[Polygon]:
    for _, _, x, y in _square_lattice(region, cell_w, cell_h):
        yield Polygon([(x, y), (x, y + cell_h), (x + cell_w, y + cell_h), (x + cell_w, y)])


def _triangles(region: Region, cell_w: float, cell_h: float) -> Iterator[Polygon]:
    """Every square split in two, the diagonal flipping like a checkerboard."""
    for col, row, x, y in _square_lattice(region, cell_w, cell_h):
        sw, nw = (x, y), (x, y + cell_h)
        ne, se = (x + cell_w, y + cell_h), (x + cell_w, y)
        if (col + row) % 2 == 0:
            yield Polygon([sw, nw, ne])
            yield Polygon([sw, ne, se])
        else:
            yield Polygon([sw, nw, se])
            yield Polygon([nw, ne, se])


def _hexagons(region: Region, cell_w: float, cell_h: float) -> Iterator[Polygon]:
    """
    Flat-topped hexagons, cell_w wide from vertex to vertex.

    Columns are 3/4 of a width apart and every odd column sits half a hexagon
    lower, so the odd columns get one extra cell at the top.
    """
    rx = cell_w / 2
    ry = cell_h / 2
    hex_h = math.sqrt(3) * ry
    x_step = 0.75 * cell_w

    bbox_w = region.east - region.west
    bbox_h = region.north - region.south

    # a column fully covers +/- a quarter width around its center
    if bbox_w <= cell_w / 2:
        cols = 1
    else:
        cols = _count(bbox_w - cell_w / 2, x_step) + 1
    rows = _count(bbox_h, hex_h)

    covered_w = (cols - 1) * x_step + cell_w / 2
    x0 = region.west + cell_w / 4 - (covered_w - bbox_w) / 2
    y0 = region.south + hex_h / 2 - (rows * hex_h - bbox_h) / 2

    for col in range(cols):
        cx = x0 + col * x_step
        odd = col % 2 == 1
        for row in range(rows + 1 if odd else rows):
            cy = y0 + row * hex_h - (hex_h / 2 if odd else 0)
            yield Polygon([(cx + rx * c, cy + ry * s) for c, s in zip(_HEX_COS, _HEX_SIN)])


_BUILDERS: Dict[str, Callable[[Region, float, float], Iterator[Polygon]]] = {
    "hex": _hexagons,
    "square": _squares,
    "triangle": _triangles,
}


def build_grid(region: Region, shape: str, cell_width: float, unit: str = "kilometers") -> List[GridCell]:
    """
    Cover region with cells of the given shape and width.

    Cells that only partly overlap the region are kept; cells that merely
    touch its boundary are not. Order is column by column from the west,
    south to north inside a column.
    """
    if shape not in _BUILDERS:
        raise InvalidGridError(f"Unknown grid type '{shape}'. Choose from: {list(_BUILDERS)}")
    if unit not in UNIT_TO_KM:
        raise InvalidGridError(f"Unknown cell unit '{unit}'. Choose from: {list(UNIT_TO_KM)}")
    if not math.isfinite(cell_width) or cell_width <= 0:
        raise InvalidGridError(f"cellWidth must be positive, got {cell_width}")

    width_km = cell_width * UNIT_TO_KM[unit]
    deg_x, deg_y = _degrees_per_km(region)

    area = prep(region.polygon)
    cells: List[GridCell] = []
    for poly in _BUILDERS[shape](region, width_km * deg_x, width_km * deg_y):
        if not area.intersects(poly) or area.touches(poly):
            continue
        c = poly.centroid
        cells.append(GridCell(index=len(cells), polygon=poly, centroid=(c.y, c.x)))

    logger.debug(f"Built {len(cells)} {shape} cells ({cell_width} {unit})")
    return cells
