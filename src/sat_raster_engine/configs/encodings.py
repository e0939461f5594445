# PIXEL ENCODINGS --------------------------------------------------------

from enum import Enum
from typing import Union

import numpy as np

from sat_raster_engine.errors import ConfigurationError

class PixelEncoding(Enum):
    FLOAT64 = "float64"
    FLOAT32 = "float32"
    UINT32 = "uint32"
    INT32 = "int32"
    UINT16 = "uint16"
    INT16 = "int16"
    UINT8 = "uint8"
    INT8 = "int8"
    BOOL1 = "bool1"

    @property
    def dtype(self) -> np.dtype:
        if self is PixelEncoding.BOOL1:
            return np.dtype(np.bool_)
        return np.dtype(self.value)

    @property
    def itemsize(self) -> int:
        return self.dtype.itemsize

    @property
    def is_integer(self) -> bool:
        return np.issubdtype(self.dtype, np.integer)

# raster package data type codes
RASTER_DATATYPE_CODES = {
    "FLT8S": PixelEncoding.FLOAT64,
    "FLT4S": PixelEncoding.FLOAT32,
    "INT4U": PixelEncoding.UINT32,
    "INT4S": PixelEncoding.INT32,
    "INT2U": PixelEncoding.UINT16,
    "INT2S": PixelEncoding.INT16,
    "INT1U": PixelEncoding.UINT8,
    "INT1S": PixelEncoding.INT8,
    "LOG1S": PixelEncoding.BOOL1,
}

def check_bool_width(width: int = None) -> None:
    """
    The bool1 encoding reads one byte per cell; refuse to run anywhere numpy
    stores bool differently.
    """
    if width is None:
        width = np.dtype(np.bool_).itemsize
    if width != 1:
        raise ConfigurationError(
            f"bool1 encoding requires a 1-byte boolean, this platform uses {width} bytes"
        )

def resolve_encoding(name: Union[str, PixelEncoding]) -> PixelEncoding:
    """
    Resolve a pixel encoding from its canonical name (case-insensitive),
    a raster data type code (e.g. "FLT4S") or an existing PixelEncoding.

    Raises:
        ConfigurationError: unknown encoding, or bool1 on a platform where
            bool is not 1 byte.
    """
    if isinstance(name, PixelEncoding):
        encoding = name
    elif isinstance(name, str):
        key = name.strip()
        encoding = RASTER_DATATYPE_CODES.get(key.upper())
        if encoding is None:
            try:
                encoding = PixelEncoding(key.lower())
            except ValueError:
                valid = [e.value for e in PixelEncoding] + list(RASTER_DATATYPE_CODES)
                raise ConfigurationError(
                    f"Unknown pixel encoding {name!r}; expected one of {valid}"
                ) from None
    else:
        raise ConfigurationError(f"Pixel encoding must be a string, got {type(name)}")

    if encoding is PixelEncoding.BOOL1:
        check_bool_width()
    return encoding

def encoding_from_dtype(dtype) -> PixelEncoding:
    """
    Map a numpy (or rasterio dtype string) to its pixel encoding.
    """
    dt = np.dtype(dtype)
    if dt == np.bool_:
        return resolve_encoding(PixelEncoding.BOOL1)
    try:
        return PixelEncoding(dt.name)
    except ValueError:
        raise ConfigurationError(f"No pixel encoding for dtype {dt.name}") from None
