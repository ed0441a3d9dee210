"""
Configuration for sph_levelset.

Example:
    >>> from sph_levelset.config import LevelSetConfig
    >>> config = LevelSetConfig(data_spacing=0.02, band_half_width=4)
    >>> config.effective_reinitialization_sweeps
    40
"""

from __future__ import annotations

from .core import (
    MAX_REINITIALIZATION_CFL,
    ExecutionConfig,
    KernelConfig,
    LevelSetConfig,
    LoggingConfig,
    MultilevelConfig,
    create_accurate_config,
    create_fast_config,
)

__all__ = [
    "MAX_REINITIALIZATION_CFL",
    "ExecutionConfig",
    "KernelConfig",
    "LevelSetConfig",
    "LoggingConfig",
    "MultilevelConfig",
    "create_accurate_config",
    "create_fast_config",
]
