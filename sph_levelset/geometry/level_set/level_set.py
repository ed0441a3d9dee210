"""
Single-resolution level set.

LevelSet owns one PackageMesh, builds it from a geometry through the
FieldBuilder pipeline, and answers probes by interpolating the stored
fields. Positions outside the mesh bounds get the far-outside value with
zero correction terms.

Example:
    >>> from sph_levelset.config import LevelSetConfig
    >>> from sph_levelset.geometry.implicit import Hypersphere
    >>> circle = Hypersphere(center=[0.0, 0.0], radius=1.0)
    >>> level_set = LevelSet(circle.get_bounding_box(), circle, LevelSetConfig(data_spacing=0.02))
    >>> level_set.probe_signed_distance([0.0, 0.0])
    -1.0
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from sph_levelset.geometry.implicit import GeometrySource
from sph_levelset.kernels import create_kernel
from sph_levelset.utils.exceptions import ConfigurationError, DimensionMismatchError, validate_positions
from sph_levelset.utils.sph_logging import get_logger

from .data_package import DISTANCE, DISTANCE_GRADIENT, KERNEL_GRADIENT, KERNEL_WEIGHT
from .field_builder import FieldBuilder
from .package_mesh import PackageMesh
from .protocol import BaseLevelSet

if TYPE_CHECKING:
    from pathlib import Path

    from numpy.typing import NDArray

    from sph_levelset.config import LevelSetConfig
    from sph_levelset.kernels import BaseKernel

    from .field_builder import BuildReport

logger = get_logger(__name__)


class LevelSet(BaseLevelSet):
    """
    Level set at one data spacing.

    Args:
        tentative_bounds: Region to cover, shape (d, 2); expanded by buffer cells
        geometry: Signed distance / inside-test oracle
        config: Discretization and maintenance parameters
        kernel: Kernel for the correction integrals (default from config.kernel)

    Attributes:
        mesh: The underlying PackageMesh
        report: BuildReport of the construction run
    """

    def __init__(
        self,
        tentative_bounds: NDArray,
        geometry: GeometrySource,
        config: LevelSetConfig,
        kernel: BaseKernel | None = None,
    ):
        if not isinstance(geometry, GeometrySource):
            raise ConfigurationError(
                parameter_name="geometry",
                provided_value=type(geometry).__name__,
                component="LevelSet",
                reason="geometry must provide dimension, signed_distance() and contains()",
            )

        self.config = config
        self.mesh = PackageMesh(
            tentative_bounds,
            data_spacing=config.data_spacing,
            package_size=config.package_size,
            buffer_width=config.mesh_buffer_width,
        )
        if geometry.dimension != self.mesh.dimension:
            raise DimensionMismatchError(
                array_name="tentative_bounds",
                provided_shape=np.shape(tentative_bounds),
                expected_dimension=geometry.dimension,
                component="LevelSet",
            )

        self.geometry = geometry
        self.kernel = kernel or create_kernel(
            config.kernel.kernel_type,
            self.mesh.dimension,
            config.kernel.smoothing_length_ratio * config.data_spacing,
        )
        self._builder = FieldBuilder(self.mesh, geometry, config, self.kernel)
        self.report: BuildReport = self._builder.build()

    @property
    def dimension(self) -> int:
        return self.mesh.dimension

    @property
    def data_spacing(self) -> float:
        return self.mesh.data_spacing

    @property
    def far_outside_value(self) -> float:
        """Distance returned outside the mesh and in far-outside cells."""
        return self.mesh.far_outside_value

    @property
    def far_inside_value(self) -> float:
        """Distance stored in far-inside cells."""
        return self.mesh.far_inside_value

    # ------------------------------------------------------------------
    # Probes
    # ------------------------------------------------------------------

    def _probe(self, name: str, position: NDArray, outside_value: float):
        points, is_single = validate_positions(position, self.dimension, component="LevelSet")
        within = self.mesh.is_within_mesh_bound(points)

        value_shape = self.mesh.fields.get(name).value_shape
        result = np.full((len(points), *value_shape), outside_value, dtype=float)
        if np.any(within):
            result[within] = self.mesh.interpolate(name, points[within])

        if is_single:
            return float(result[0]) if not value_shape else result[0]
        return result

    def probe_signed_distance(self, position: NDArray, h_ratio: float | None = None) -> float | NDArray:
        return self._probe(DISTANCE, position, self.far_outside_value)

    def probe_level_set_gradient(self, position: NDArray, h_ratio: float | None = None) -> NDArray:
        return self._probe(DISTANCE_GRADIENT, position, 0.0)

    def probe_kernel_integral(self, position: NDArray, h_ratio: float | None = None) -> float | NDArray:
        return self._probe(KERNEL_WEIGHT, position, 0.0)

    def probe_kernel_gradient_integral(self, position: NDArray, h_ratio: float | None = None) -> NDArray:
        return self._probe(KERNEL_GRADIENT, position, 0.0)

    def probe_is_within_mesh_bound(self, position: NDArray) -> bool | NDArray:
        points, is_single = validate_positions(position, self.dimension, component="LevelSet")
        within = self.mesh.is_within_mesh_bound(points)
        return bool(within[0]) if is_single else within

    def is_within_core_package(self, position: NDArray) -> bool | NDArray:
        points, is_single = validate_positions(position, self.dimension, component="LevelSet")
        core = self.mesh.is_within_core_package(points)
        return bool(core[0]) if is_single else core

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def clean_interface(self, small_shift_factor: float = 0.01) -> None:
        self._builder.clean_interface(small_shift_factor)

    def correct_topology(self, small_shift_factor: float = 0.01) -> int:
        return self._builder.correct_topology(small_shift_factor)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def write_mesh_field_to_plt(self, filename: str | Path) -> Path:
        """Dump distance, classification and kernel fields as Tecplot ASCII."""
        from sph_levelset.utils.io import write_mesh_field_to_plt

        return write_mesh_field_to_plt(self.mesh, filename)

    def save_hdf5(self, filename: str | Path, **kwargs) -> Path:
        """Dump the package arrays to HDF5 (see save_mesh_field_hdf5)."""
        from sph_levelset.utils.io import save_mesh_field_hdf5

        return save_mesh_field_hdf5(self.mesh, filename, **kwargs)

    def __repr__(self) -> str:
        return f"LevelSet(dimension={self.dimension}, spacing={self.data_spacing:.4g}, mesh={self.mesh!r})"
