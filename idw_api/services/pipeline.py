# services/pipeline.py
# Wires cost check, aggregation, grid, IDW and classification together

"""
Interpolation pipeline
======================
IDW needs every known point before it can estimate a single cell, so the
run happens in two phases:

1. materialize - cost check, drain the measurement stream into known points,
   build the grid, estimate every cell, compute the class breaks
2. emit - hand out features one at a time from a lazy generator

Nothing is written anywhere; dropping the result discards everything.
"""

import asyncio
import json
import logging
import time
from enum import Enum
from typing import AsyncIterable, Callable, Iterable, Iterator, List, Optional

from shapely.geometry import mapping

from idw_api.config import CHUNK_SIZE, COST_CEILING
from idw_api.entities import GridCell, IdwConfig, InterpolatedFeature, KnownPoint, MeasurementPoint
from idw_api.errors import ComputationFailedError, InterpolationError
from idw_api.services.aggregator import aggregate, aggregate_async
from idw_api.services.classifier import classify
from idw_api.services.cost_guard import check_cost
from idw_api.services.geo import region_area_sq_km
from idw_api.services.grid_builder import build_grid
from idw_api.services.interpolator import IdwInterpolator

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    START = "start"
    COST_CHECK = "cost_check"
    AGGREGATE_POINTS = "aggregate_points"
    BUILD_GRID = "build_grid"
    ESTIMATE_ALL = "estimate_all"
    CLASSIFY = "classify"
    EMIT_FEATURES = "emit_features"
    DONE = "done"
    REJECTED = "rejected"
    FAILED = "failed"


def feature_to_geojson(feature: InterpolatedFeature) -> dict:
    return {
        "type": "Feature",
        "geometry": mapping(feature.cell.polygon),
        "properties": {"value": feature.value, "class": feature.class_index},
    }


class InterpolationResult:
    """
    Output of a finished materialize phase.

    features() and iter_json() can only be consumed once, and only one of
    them: the result is a stream, not a container.
    """

    def __init__(self, cells: List[GridCell], estimates: List[Optional[float]], breaks: List[float],
                 class_of: Callable[[float], int], on_done: Optional[Callable[[], None]] = None):
        self.cells = cells
        self.estimates = estimates
        self.breaks = breaks
        self._class_of = class_of
        self._on_done = on_done
        self._started = False

    def features(self) -> Iterator[InterpolatedFeature]:
        """Cells with an estimate, in grid order. Cells without one are left out."""
        if self._started:
            raise RuntimeError("features of an interpolation result can only be iterated once")
        self._started = True
        return self._generate()

    def _generate(self) -> Iterator[InterpolatedFeature]:
        for cell, value in zip(self.cells, self.estimates):
            if value is None:
                continue
            yield InterpolatedFeature(cell=cell, value=value, class_index=self._class_of(value))
        if self._on_done:
            self._on_done()

    def iter_json(self) -> Iterator[str]:
        """
        The FeatureCollection as JSON text, one feature per chunk.

        Meant for a streaming HTTP response: the next feature is only
        serialized when the consumer asks for it.
        """
        yield '{"type":"FeatureCollection","features":['
        for i, feature in enumerate(self.features()):
            prefix = "," if i else ""
            yield prefix + json.dumps(feature_to_geojson(feature), separators=(",", ":"))
        yield '],"breaks":' + json.dumps(self.breaks) + "}"

    def to_geojson(self) -> dict:
        """Whole FeatureCollection as a dict. Consumes the feature stream."""
        return {
            "type": "FeatureCollection",
            "features": [feature_to_geojson(f) for f in self.features()],
            "breaks": list(self.breaks),
        }


class InterpolationPipeline:
    """
    One interpolation run for one request.

    Usage:
        pipeline = InterpolationPipeline(config)
        result = pipeline.run(points)          # or: await pipeline.run_async(stream)
        for chunk in result.iter_json():
            ...
    """

    def __init__(self, config: IdwConfig, cost_ceiling: float = COST_CEILING, chunk_size: int = CHUNK_SIZE):
        self.config = config
        self.cost_ceiling = cost_ceiling
        self.chunk_size = chunk_size
        self.stage = Stage.START
        self.known_points: List[KnownPoint] = []

    def _enter(self, stage: Stage):
        logger.debug(f"IDW pipeline: {self.stage.value} -> {stage.value}")
        self.stage = stage

    def check_cost(self) -> float:
        """Runs the cost guard; moves the pipeline to REJECTED on failure."""
        self._enter(Stage.COST_CHECK)
        area = region_area_sq_km(self.config.region)
        try:
            return check_cost(area, self.config.cell_width_km, self.cost_ceiling)
        except InterpolationError:
            self._enter(Stage.REJECTED)
            raise

    def run(self, points: Iterable[MeasurementPoint]) -> InterpolationResult:
        self.check_cost()
        self._enter(Stage.AGGREGATE_POINTS)
        known = self._guarded(aggregate, points)
        return self._guarded(self._materialize, known)

    async def run_async(self, points: AsyncIterable[MeasurementPoint]) -> InterpolationResult:
        self.check_cost()
        self._enter(Stage.AGGREGATE_POINTS)
        try:
            known = await aggregate_async(points)
        except Exception as e:
            self._fail(e)
        # grid + IDW are CPU bound; keep the event loop free for other requests
        return await asyncio.to_thread(self._guarded, self._materialize, known)

    def _guarded(self, func, *args):
        try:
            return func(*args)
        except Exception as e:
            self._fail(e)

    def _fail(self, error: Exception):
        failed_in = self.stage
        self._enter(Stage.FAILED)
        if isinstance(error, InterpolationError):
            raise error
        logger.exception(f"IDW computation failed during {failed_in.value} "
                         f"(grid={self.config.grid_type}, cellWidth={self.config.cell_width} {self.config.cell_unit}, "
                         f"known points={len(self.known_points)})")
        raise ComputationFailedError() from error

    def _materialize(self, known_points: List[KnownPoint]) -> InterpolationResult:
        cfg = self.config
        start = time.time()
        self.known_points = known_points

        self._enter(Stage.BUILD_GRID)
        cells = build_grid(cfg.region, cfg.grid_type, cfg.cell_width, cfg.cell_unit)

        self._enter(Stage.ESTIMATE_ALL)
        interpolator = IdwInterpolator(known_points, cfg.power, self.chunk_size)
        estimates = interpolator.interpolate_many([c.centroid for c in cells])

        self._enter(Stage.CLASSIFY)
        breaks, class_of = classify([v for v in estimates if v is not None], cfg.num_classes)

        logger.info(f"Interpolated {len(cells)} {cfg.grid_type} cells from {len(known_points)} locations "
                    f"in {time.time() - start:.2f}s")

        self._enter(Stage.EMIT_FEATURES)
        return InterpolationResult(cells, estimates, breaks, class_of,
                                   on_done=lambda: self._enter(Stage.DONE))
