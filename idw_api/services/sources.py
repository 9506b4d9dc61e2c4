# services/sources.py
# Where measurements come from

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import AsyncIterator, Iterable, Optional, Protocol

import pandas as pd

from idw_api.entities import MeasurementPoint, MeasurementQuery

logger = logging.getLogger(__name__)

COLUMNS = ["sensorId", "phenomenon", "value", "lat", "lng", "createdAt", "exposure"]

# hand control back to the event loop every this many rows
_YIELD_EVERY = 500


class MeasurementSource(Protocol):
    """Anything that can stream the measurements matching a query."""

    def stream(self, query: MeasurementQuery) -> AsyncIterator[MeasurementPoint]:
        ...


def _utc(ts: datetime) -> pd.Timestamp:
    stamp = pd.Timestamp(ts)
    if stamp.tzinfo is None:
        return stamp.tz_localize(timezone.utc)
    return stamp.tz_convert(timezone.utc)


class DataFrameMeasurementSource:
    """
    Measurements held in a pandas DataFrame with the columns in COLUMNS.

    Filtering happens up front on the frame, streaming is row by row so the
    consumer controls the pace.
    """

    def __init__(self, df: pd.DataFrame):
        missing = [c for c in COLUMNS if c not in df.columns and c != "exposure"]
        if missing:
            raise ValueError(f"Measurement data is missing columns: {missing}")

        df = df.copy()
        if "exposure" not in df.columns:
            df["exposure"] = None
        df["createdAt"] = pd.to_datetime(df["createdAt"], utc=True)
        df["phenomenon"] = df["phenomenon"].astype(str).str.strip()
        self.df = df

    @classmethod
    def from_parquet(cls, path: str) -> "DataFrameMeasurementSource":
        logger.info(f"Loading measurements from {path}...")
        start = time.time()
        df = pd.read_parquet(path)
        logger.info(f"  Loaded {len(df):,} rows in {time.time() - start:.2f}s")
        return cls(df)

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> "DataFrameMeasurementSource":
        return cls(pd.DataFrame.from_records(list(records), columns=COLUMNS))

    def __len__(self):
        return len(self.df)

    def select(self, query: MeasurementQuery) -> pd.DataFrame:
        """Rows matching phenomenon, time range, bbox and exposure."""
        df = self.df
        r = query.region
        mask = (
            (df["phenomenon"] == query.phenomenon.strip())
            & (df["createdAt"] >= _utc(query.from_date))
            & (df["createdAt"] <= _utc(query.to_date))
            & df["lat"].between(r.south, r.north)
            & df["lng"].between(r.west, r.east)
        )
        if query.exposure:
            mask &= df["exposure"] == query.exposure
        return df.loc[mask, ["sensorId", "value", "lat", "lng"]]

    async def stream(self, query: MeasurementQuery) -> AsyncIterator[MeasurementPoint]:
        rows = self.select(query)
        logger.debug(f"Streaming {len(rows)} '{query.phenomenon}' measurements")
        for i, (sensor_id, value, lat, lng) in enumerate(rows.itertuples(index=False, name=None)):
            if i and i % _YIELD_EVERY == 0:
                await asyncio.sleep(0)
            yield MeasurementPoint(sensor_id=sensor_id, value=value, lat=lat, lng=lng)


def load_source(path: Optional[str]) -> Optional[DataFrameMeasurementSource]:
    """Parquet-backed source, or None if there is no file to load."""
    if not path:
        return None
    try:
        return DataFrameMeasurementSource.from_parquet(path)
    except FileNotFoundError:
        logger.warning(f"No measurement file at {path}, /statistics/idw will answer 503")
        return None
