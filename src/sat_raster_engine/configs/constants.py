"""Configuration constants for the grid transform engine."""
from enum import Enum

# Parallel dispatch
GRAIN_SIZE = 16384  # Number of destination cells per work chunk
INTERRUPT_CHECK_EVERY = 10000  # Serial loop polls the cancel event at least this often (cells)
MAX_WORKERS = None  # None = os.cpu_count()

# Memory management
MAX_WINDOW_SIZE_GB = 1.0  # Maximum window size in GB before chunking
CHUNK_HEIGHT = 10000  # Number of rows to read per chunk
MAX_MODE_WINDOW_CELLS = 4_000_000  # Source cells gathered per mode batch

# Geographic extent of a whole-world WGS84 raster: (lng1, lng2, lat1, lat2)
WORLD_BOUNDS = (-180.0, 180.0, -90.0, 90.0)

# CRS
class CRS(Enum):
    WGS84 = "EPSG:4326"
    WEB_MERCATOR = "EPSG:3857"

    def __int__(self):
        return int(self.value[self.value.find(":") + 1:])
