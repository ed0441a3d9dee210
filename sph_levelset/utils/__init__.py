"""
Utilities for sph_levelset: logging, exceptions, per-package parallel iteration.

Field dumps live in sph_levelset.utils.io and are imported from there.
"""

from __future__ import annotations

from .exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    GeometryQualityWarning,
    LevelSetError,
    validate_bounds,
    validate_positions,
    validate_positive,
)
from .parallel import ExecutionPolicy, chunk_indices, package_for
from .sph_logging import LoggedOperation, configure_logging, get_logger

__all__ = [
    # Exceptions
    "ConfigurationError",
    "DimensionMismatchError",
    "GeometryQualityWarning",
    "LevelSetError",
    "validate_bounds",
    "validate_positions",
    "validate_positive",
    # Parallel iteration
    "ExecutionPolicy",
    "chunk_indices",
    "package_for",
    # Logging
    "LoggedOperation",
    "configure_logging",
    "get_logger",
]
