# config.py
# App configuration and constants

import os

# Data paths - can be overridden via environment variables
MEASUREMENTS_PATH = os.getenv("MEASUREMENTS_PATH", "measurements.parquet")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Requests with (area in km² / cell width in km) above this are rejected.
# The public API docs have always promised 2500, so that is the contract.
COST_CEILING = float(os.getenv("IDW_COST_CEILING", "2500"))

# How many centroids are evaluated per numpy batch in the IDW estimator
CHUNK_SIZE = int(os.getenv("IDW_CHUNK_SIZE", "1024"))

# Request defaults
DEFAULT_GRID_TYPE = "hex"
DEFAULT_CELL_UNIT = "kilometers"
DEFAULT_CELL_WIDTH = 50.0
DEFAULT_POWER = 1.0
DEFAULT_NUM_CLASSES = 6
DEFAULT_TIME_WINDOW_DAYS = 2

GRID_TYPES = ("hex", "square", "triangle")
CELL_UNITS = ("kilometers", "miles")

# Unit conversion to kilometers
UNIT_TO_KM = {
    "kilometers": 1.0,
    "miles": 1.609344,
}

# Mean earth radius (IUGG), used for every distance in the engine
EARTH_RADIUS_KM = 6371.0088

# API metadata
API_TITLE = "Sensor IDW Interpolation Service"
API_VERSION = "1.0.0"
