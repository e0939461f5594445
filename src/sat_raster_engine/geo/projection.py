"""Web Mercator tile-space projection and the tile -> source pixel mapping."""
from typing import Sequence, Tuple, Union

import numpy as np

from sat_raster_engine.configs.constants import CRS
from sat_raster_engine.errors import ConfigurationError


class WebMercator:
    """
    Web Mercator restricted to the normalized unit square: x_norm in [0, 1]
    runs west to east over [-180, 180] degrees, y_norm in [0, 1] runs north to
    south over roughly (+85.05, -85.05) degrees.
    """
    name = "web-mercator"
    crs = CRS.WEB_MERCATOR

    @staticmethod
    def reverse(x_norm, y_norm) -> Tuple[np.ndarray, np.ndarray]:
        """Normalized tile coordinates -> (lng, lat) in degrees."""
        x_norm = np.asarray(x_norm, dtype=np.float64)
        y_norm = np.asarray(y_norm, dtype=np.float64)
        lng = x_norm * 360.0 - 180.0
        lat = np.degrees(np.arctan(np.sinh(np.pi * (1.0 - 2.0 * y_norm))))
        return lng, lat

    @staticmethod
    def forward(lng, lat) -> Tuple[np.ndarray, np.ndarray]:
        """(lng, lat) in degrees -> normalized tile coordinates. Undefined at the poles."""
        lng = np.asarray(lng, dtype=np.float64)
        lat = np.radians(np.asarray(lat, dtype=np.float64))
        x_norm = (lng + 180.0) / 360.0
        y_norm = (1.0 - np.arcsinh(np.tan(lat)) / np.pi) / 2.0
        return x_norm, y_norm

    def __repr__(self) -> str:
        return "WebMercator()"


PROJECTION_NAMES = {
    "web-mercator": WebMercator,
    "webmercator": WebMercator,
    "web_mercator": WebMercator,
    CRS.WEB_MERCATOR.value.lower(): WebMercator,
}

def get_projection(name: Union[str, int, CRS, WebMercator] = "web-mercator") -> WebMercator:
    """
    Projection for a name, EPSG code or CRS member. Only Web Mercator is supported.
    """
    if isinstance(name, WebMercator):
        return name
    if isinstance(name, CRS):
        key = name.value.lower()
    elif isinstance(name, int) and not isinstance(name, bool):
        key = f"epsg:{name}"
    else:
        key = str(name).strip().lower()
    if key not in PROJECTION_NAMES:
        raise ConfigurationError(
            f"Unknown projection {name!r}; only Web Mercator ({CRS.WEB_MERCATOR.value}) is supported"
        )
    return PROJECTION_NAMES[key]()

def lnglat_to_source(
    lng, lat,
    bounds: Sequence[float],
    src_nrow: int,
    src_ncol: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Geographic coordinates -> fractional (x, y) pixel position in a source
    raster covering bounds = (lng1, lng2, lat1, lat2), north-up.
    """
    lng1, lng2, lat1, lat2 = bounds
    src_x = (lng - lng1) / (lng2 - lng1) * src_ncol
    src_y = (lat2 - lat) / (lat2 - lat1) * src_nrow
    return src_x, src_y

def tile_to_source(
    projection: WebMercator,
    xs, ys,
    tile_x: int, tile_y: int,
    total_width: int, total_height: int,
    bounds: Sequence[float],
    src_nrow: int,
    src_ncol: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Source pixel position for destination pixels (xs, ys) of a tile placed at
    (tile_x, tile_y) inside a total_width x total_height world mosaic.

    A tile can be rendered on its own, without projecting the whole mosaic.
    """
    x_norm = (np.asarray(xs, dtype=np.float64) + tile_x) / total_width
    y_norm = (np.asarray(ys, dtype=np.float64) + tile_y) / total_height
    lng, lat = projection.reverse(x_norm, y_norm)
    return lnglat_to_source(lng, lat, bounds, src_nrow, src_ncol)

def tile_local_ratios(
    projection: WebMercator,
    xs, ys,
    tile_x: int, tile_y: int,
    total_width: int, total_height: int,
    bounds: Sequence[float],
    src_nrow: int,
    src_ncol: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Source cells spanned by each destination pixel, along x and y: the source
    distance between the pixel's leading and trailing edges.
    """
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)
    args = (tile_x, tile_y, total_width, total_height, bounds, src_nrow, src_ncol)
    x0, y0 = tile_to_source(projection, xs, ys, *args)
    x1, y1 = tile_to_source(projection, xs + 1.0, ys + 1.0, *args)
    return np.abs(x1 - x0), np.abs(y1 - y0)
