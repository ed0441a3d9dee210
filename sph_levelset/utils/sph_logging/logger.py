#!/usr/bin/env python3
"""
Logging Infrastructure for sph_levelset

Provides structured logging with configurable levels, formatting, and colored
console output for level-set construction and maintenance passes.
"""

from __future__ import annotations

import logging
import sys
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Any, ClassVar

import colorlog


class LevelSetFormatter(logging.Formatter):
    """Formatter for sph_levelset logging with optional colors and source location."""

    def __init__(self, use_colors: bool = False, include_location: bool = False):
        self.use_colors = use_colors
        self.include_location = include_location

        format_str = "%(asctime)s - %(name)-20s - %(levelname)-8s - %(message)s"
        if self.include_location:
            format_str += " [%(filename)s:%(lineno)d]"

        if self.use_colors:
            self.colored_formatter = colorlog.ColoredFormatter(
                "%(log_color)s" + format_str,
                datefmt="%Y-%m-%d %H:%M:%S",
                log_colors={
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "red,bg_white",
                },
            )

        super().__init__(format_str, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record):
        if self.use_colors:
            return self.colored_formatter.format(record)
        return super().format(record)


class SPHLogger:
    """
    Central logging manager for sph_levelset.

    Thread Safety:
        Logger creation uses double-check locking, so concurrent probe or
        build threads calling get_logger() never install duplicate handlers.

    Singleton Pattern:
        Uses __new__ to ensure only one instance manages global configuration.
    """

    _instance = None
    _lock: ClassVar[threading.Lock] = threading.Lock()
    _loggers: ClassVar[dict[str, logging.Logger]] = {}
    _log_level = logging.INFO
    _log_to_file = False
    _log_file_path: Path | None = None
    _use_colors = True
    _include_location = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def configure(
        cls,
        level: str | int = "INFO",
        log_to_file: bool = False,
        log_file_path: str | Path | None = None,
        use_colors: bool = True,
        include_location: bool = False,
        suppress_external: bool = True,
    ):
        """
        Configure global logging settings for sph_levelset.

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_to_file: Whether to log to file
            log_file_path: Path to log file (optional)
            use_colors: Use colored terminal output
            include_location: Include file location in log messages
            suppress_external: Suppress verbose logging from external libraries
        """
        with cls._lock:
            if isinstance(level, str):
                cls._log_level = getattr(logging, level.upper())
            else:
                cls._log_level = level

            cls._log_to_file = log_to_file
            cls._use_colors = use_colors
            cls._include_location = include_location

            if log_to_file:
                if log_file_path is None:
                    log_dir = Path.cwd() / "logs"
                    log_dir.mkdir(exist_ok=True)
                    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
                    cls._log_file_path = log_dir / f"sph_levelset_{timestamp}.log"
                else:
                    cls._log_file_path = Path(log_file_path)
                    cls._log_file_path.parent.mkdir(parents=True, exist_ok=True)

            if suppress_external:
                logging.getLogger("h5py").setLevel(logging.WARNING)

            for logger in cls._loggers.values():
                cls._setup_logger(logger)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        Get or create a logger for the specified module/component.

        Args:
            name: Logger name (typically __name__ from calling module)

        Returns:
            Configured logger instance
        """
        # Fast path without lock
        if name in cls._loggers:
            return cls._loggers[name]

        with cls._lock:
            if name not in cls._loggers:
                logger = logging.getLogger(name)
                if not logger.handlers:
                    cls._setup_logger(logger)
                cls._loggers[name] = logger

        return cls._loggers[name]

    @classmethod
    def _setup_logger(cls, logger: logging.Logger):
        """Configure individual logger with current settings."""
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
        logger.setLevel(cls._log_level)

        formatter = LevelSetFormatter(use_colors=cls._use_colors, include_location=cls._include_location)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(cls._log_level)
        logger.addHandler(console_handler)

        if cls._log_to_file and cls._log_file_path:
            file_handler = logging.FileHandler(cls._log_file_path)
            # File logs never carry color codes
            file_formatter = LevelSetFormatter(use_colors=False, include_location=cls._include_location)
            file_handler.setFormatter(file_formatter)
            file_handler.setLevel(cls._log_level)
            logger.addHandler(file_handler)

        logger.propagate = False


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a logger for the current module.

    Args:
        name: Logger name (if None, uses calling module name)

    Returns:
        Configured logger instance
    """
    if name is None:
        import inspect

        frame = inspect.currentframe()
        if frame and frame.f_back:
            name = frame.f_back.f_globals.get("__name__", "sph_levelset")
        else:
            name = "sph_levelset"

    return SPHLogger.get_logger(name)


def configure_logging(**kwargs):
    """
    Configure global logging settings.

    Keyword Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to log to file
        log_file_path: Path to log file
        use_colors: Use colored terminal output
        include_location: Include file location in messages
        suppress_external: Suppress external library logging
    """
    SPHLogger.configure(**kwargs)


def configure_research_logging(
    experiment_name: str | None = None,
    level: str = "INFO",
    include_debug: bool = False,
    log_dir: str | Path | None = None,
) -> str:
    """
    Configure logging for a recorded build session: console plus a log file.

    Args:
        experiment_name: Name of the session (used in the file name)
        level: Base logging level
        include_debug: Whether to include debug information
        log_dir: Directory for log files. If None, uses 'levelset_logs' in CWD.

    Returns:
        Path to the log file created
    """
    if include_debug:
        level = "DEBUG"

    session_dir = Path(log_dir) if log_dir else Path("levelset_logs")
    session_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    if experiment_name:
        safe_name = "".join(c for c in experiment_name if c.isalnum() or c in (" ", "-", "_")).strip()
        safe_name = safe_name.replace(" ", "_")
        log_file = str(session_dir / f"{safe_name}_{timestamp}.log")
    else:
        log_file = str(session_dir / f"levelset_session_{timestamp}.log")

    configure_logging(
        level=level,
        log_to_file=True,
        log_file_path=log_file,
        use_colors=True,
        include_location=include_debug,
        suppress_external=True,
    )

    logger = get_logger("sph_levelset.session")
    logger.info(f"Session started: {experiment_name or 'unnamed'}")
    logger.info(f"Log file: {log_file}")

    return log_file


def configure_development_logging(include_location: bool = True):
    """
    Configure logging for development and debugging: DEBUG level, console only.

    Args:
        include_location: Include file:line information
    """
    configure_logging(
        level="DEBUG",
        log_to_file=False,
        use_colors=True,
        include_location=include_location,
        suppress_external=False,
    )

    logger = get_logger("sph_levelset.development")
    logger.info("Development logging enabled - DEBUG level with full details")


def log_build_start(logger: logging.Logger, component: str, config: dict[str, Any]):
    """Log level-set construction start with its configuration."""
    logger.info(f"Building {component}")
    logger.debug(f"{component} configuration: {config}")


def log_sweep_progress(
    logger: logging.Logger,
    stage: str,
    sweep: int,
    total_sweeps: int,
    residual: float,
    additional_info: dict[str, Any] | None = None,
):
    """Log progress of an iterative sweep stage."""
    progress_pct = (sweep / max(total_sweeps, 1)) * 100
    msg = f"{stage} sweep {sweep}/{total_sweeps} ({progress_pct:.1f}%) - residual: {residual:.2e}"

    if additional_info:
        info_str = ", ".join(f"{k}: {v}" for k, v in additional_info.items())
        msg += f" - {info_str}"

    logger.debug(msg)


def log_build_completion(
    logger: logging.Logger,
    component: str,
    core_packages: int,
    total_cells: int,
    execution_time: float,
):
    """Log construction completion with a package summary."""
    fraction = 100.0 * core_packages / max(total_cells, 1)
    logger.info(
        f"{component} built - {core_packages}/{total_cells} cells allocated ({fraction:.1f}%), "
        f"time: {execution_time:.3f}s"
    )


class LoggedOperation:
    """Context manager for logging timed operations."""

    def __init__(self, logger: logging.Logger, operation_name: str, log_level: int = logging.INFO):
        self.logger = logger
        self.operation_name = operation_name
        self.log_level = log_level
        self.start_time: float | None = None
        self.duration: float = 0.0

    def __enter__(self):
        self.logger.log(self.log_level, f"Starting {self.operation_name}")
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - (self.start_time or 0.0)

        if exc_type is None:
            self.logger.log(self.log_level, f"Completed {self.operation_name} in {self.duration:.3f}s")
        else:
            self.logger.error(f"Failed {self.operation_name} after {self.duration:.3f}s: {exc_val}")

        return False
