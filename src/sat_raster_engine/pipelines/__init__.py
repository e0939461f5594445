"""Parallel grid transforms and the resample/reproject entry points."""

from .config import TransformConfig, init_transform_config
from .transform import ParallelGridTransform, TransformReport
from .engine import resample, reproject, resample_grid, reproject_grid

__all__ = [
    "TransformConfig",
    "init_transform_config",
    "ParallelGridTransform",
    "TransformReport",
    "resample",
    "reproject",
    "resample_grid",
    "reproject_grid",
]
