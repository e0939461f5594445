"""Resampling and Web Mercator reprojection of large flat rasters."""

__version__ = "0.1.0"

# Import submodules to make them available at package level
from . import configs
from . import core
from . import geo
from . import pipelines

from .pipelines import resample, reproject

__all__ = [
    "configs",
    "core",
    "geo",
    "pipelines",
    "resample",
    "reproject",
]
