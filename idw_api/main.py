# main.py
# Application entry point

"""
Sensor IDW Interpolation Service
================================
REST API that turns sensor measurements of one phenomenon into an
interpolated grid (Inverse Distance Weighting) with equal-interval classes.

The service exposes two feature groups:
1. Interpolation - GET /statistics/idw streams a GeoJSON FeatureCollection
2. Grid utilities - inspect the grid and the cost check for a bbox

Run with:
    uvicorn idw_api.main:app --reload --port 8000
"""

import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from idw_api.config import API_TITLE, API_VERSION, LOG_LEVEL, MEASUREMENTS_PATH
from idw_api.models import ServiceStatus
from idw_api.routes import grid_utils, statistics
from idw_api.services.sources import load_source

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Create the app
app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    description="Inverse Distance Weighting interpolation of sensor measurements on hex, square or triangle grids.",
    docs_url="/docs"
)

# Allow frontend to call us
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup():
    """Load the measurement source when the app starts."""
    logger.info("=" * 50)
    logger.info(f"Starting {API_TITLE} v{API_VERSION}")
    logger.info("=" * 50)

    start = time.time()
    if statistics.source is None:
        statistics.set_dependencies(load_source(MEASUREMENTS_PATH))

    logger.info(f"Ready in {time.time() - start:.1f}s")


# Mount the routers
app.include_router(statistics.router)
app.include_router(grid_utils.router)


# Root endpoint
@app.get("/", tags=["System"])
async def root():
    """API overview."""
    return {
        "service": API_TITLE,
        "version": API_VERSION,
        "docs": "/docs",
        "endpoints": {
            "interpolation": [
                "GET /statistics/idw?phenomenon=&bbox="
            ],
            "grid_utils": [
                "GET /grid/cells?bbox=",
                "GET /grid/area?bbox="
            ]
        }
    }


@app.get("/status", tags=["System"], response_model=ServiceStatus)
async def status():
    """Check if the service has measurements to interpolate."""
    src = statistics.source
    return {
        "status": "ok" if src is not None else "no data",
        "source_ready": src is not None,
        "measurements_loaded": len(src) if hasattr(src, "__len__") else 0
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
