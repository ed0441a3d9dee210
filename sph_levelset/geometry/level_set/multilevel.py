"""
Multi-resolution level set.

An ordered stack of LevelSet instances, coarsest first; level i has data
spacing reference_spacing / 2**i. A probe with resolution ratio h_ratio
(reference spacing over the caller's spacing) is routed to level

    clamp(round(log2(h_ratio)), 0, total_levels - 1)

and, when the position is not inside a core package of that level, one
level coarser. Without h_ratio the finest level is used. The routing
depends only on the inputs and the built meshes, so repeated probes give
identical answers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from sph_levelset.utils.exceptions import validate_positions
from sph_levelset.utils.sph_logging import LoggedOperation, get_logger

from .level_set import LevelSet
from .protocol import BaseLevelSet

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from sph_levelset.config import MultilevelConfig
    from sph_levelset.geometry.implicit import GeometrySource

logger = get_logger(__name__)


class MultilevelLevelSet(BaseLevelSet):
    """
    Composition of level sets at doubling resolution.

    Example:
        >>> config = MultilevelConfig(reference_spacing=0.04, total_levels=2)
        >>> level_sets = MultilevelLevelSet(circle.get_bounding_box(), circle, config)
        >>> level_sets.select_level([0.98, 0.0], h_ratio=2.0)
        1
    """

    def __init__(self, tentative_bounds: NDArray, geometry: GeometrySource, config: MultilevelConfig):
        self.config = config
        self.levels: list[LevelSet] = []

        with LoggedOperation(logger, f"multilevel level set ({config.total_levels} levels)"):
            for level in range(config.total_levels):
                level_config = config.level_config(level)
                logger.info(f"Level {level}: data spacing {level_config.data_spacing:.4g}")
                self.levels.append(LevelSet(tentative_bounds, geometry, level_config))

    @property
    def dimension(self) -> int:
        return self.levels[0].dimension

    @property
    def total_levels(self) -> int:
        return len(self.levels)

    @property
    def finest(self) -> LevelSet:
        return self.levels[-1]

    def requested_level(self, h_ratio: float | None) -> int:
        """Level matching a resolution ratio, before the footprint fallback."""
        if h_ratio is None:
            return self.total_levels - 1
        if h_ratio <= 0:
            return 0
        level = int(np.round(np.log2(h_ratio)))
        return int(np.clip(level, 0, self.total_levels - 1))

    def _select_levels(self, points: NDArray, h_ratio: float | None) -> NDArray[np.intp]:
        requested = self.requested_level(h_ratio)
        levels = np.full(len(points), requested, dtype=np.intp)
        if requested > 0:
            covered = self.levels[requested].mesh.is_within_core_package(points)
            levels[~covered] = requested - 1
        return levels

    def select_level(self, position: NDArray, h_ratio: float | None = None) -> int | NDArray:
        """Level a probe at position would be answered from."""
        points, is_single = validate_positions(position, self.dimension, component="MultilevelLevelSet")
        levels = self._select_levels(points, h_ratio)
        return int(levels[0]) if is_single else levels

    def _probe(self, probe_name: str, position: NDArray, h_ratio: float | None):
        points, is_single = validate_positions(position, self.dimension, component="MultilevelLevelSet")
        levels = self._select_levels(points, h_ratio)

        result = None
        for level in np.unique(levels):
            mask = levels == level
            values = np.asarray(getattr(self.levels[level], probe_name)(points[mask]))
            if result is None:
                result = np.zeros((len(points), *values.shape[1:]))
            result[mask] = values

        if is_single:
            return float(result[0]) if result.ndim == 1 else result[0]
        return result

    def probe_signed_distance(self, position: NDArray, h_ratio: float | None = None) -> float | NDArray:
        return self._probe("probe_signed_distance", position, h_ratio)

    def probe_level_set_gradient(self, position: NDArray, h_ratio: float | None = None) -> NDArray:
        return self._probe("probe_level_set_gradient", position, h_ratio)

    def probe_kernel_integral(self, position: NDArray, h_ratio: float | None = None) -> float | NDArray:
        return self._probe("probe_kernel_integral", position, h_ratio)

    def probe_kernel_gradient_integral(self, position: NDArray, h_ratio: float | None = None) -> NDArray:
        return self._probe("probe_kernel_gradient_integral", position, h_ratio)

    def probe_is_within_mesh_bound(self, position: NDArray) -> bool | NDArray:
        """Containment in the bounds of every level (the finest bounds are the tightest)."""
        points, is_single = validate_positions(position, self.dimension, component="MultilevelLevelSet")
        within = np.ones(len(points), dtype=bool)
        for level_set in self.levels:
            within &= level_set.mesh.is_within_mesh_bound(points)
        return bool(within[0]) if is_single else within

    def is_within_core_package(self, position: NDArray) -> bool | NDArray:
        """Core-package test at the finest level."""
        return self.finest.is_within_core_package(position)

    def clean_interface(self, small_shift_factor: float = 0.01) -> None:
        for level_set in self.levels:
            level_set.clean_interface(small_shift_factor)

    def correct_topology(self, small_shift_factor: float = 0.01) -> int:
        return sum(level_set.correct_topology(small_shift_factor) for level_set in self.levels)

    def __repr__(self) -> str:
        spacings = ", ".join(f"{level.data_spacing:.4g}" for level in self.levels)
        return f"MultilevelLevelSet(levels=[{spacings}])"
