"""
Logging utilities for sph_levelset.

Usage:
    >>> from sph_levelset.utils.sph_logging import get_logger, configure_logging
    >>> logger = get_logger(__name__)
    >>> configure_logging(level="DEBUG")
    >>> logger.info("Building level set...")
"""

from __future__ import annotations

from .logger import (
    LevelSetFormatter,
    LoggedOperation,
    SPHLogger,
    configure_development_logging,
    configure_logging,
    configure_research_logging,
    get_logger,
    log_build_completion,
    log_build_start,
    log_sweep_progress,
)

__all__ = [
    # Core logging
    "configure_logging",
    "configure_research_logging",
    "configure_development_logging",
    "get_logger",
    # Structured logging helpers
    "log_build_completion",
    "log_build_start",
    "log_sweep_progress",
    # Classes
    "LevelSetFormatter",
    "LoggedOperation",
    "SPHLogger",
]
