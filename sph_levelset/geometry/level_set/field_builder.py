"""
Level-set construction pipeline.

FieldBuilder drives the stages that turn a GeometrySource into a filled
PackageMesh:

1. seed          exact distances in core packages near the interface
2. classify      BAND / FAR_INSIDE / FAR_OUTSIDE / UNDETERMINED per sample
3. diffuse sign  resolve UNDETERMINED samples to a fixed point
4. reinitialize  Eikonal relaxation within the band, then gradient refresh
5. integrate     boundary-corrected kernel weight and gradient

and the maintenance passes clean_interface / correct_topology that are run
after the distance field was disturbed.
"""

from __future__ import annotations

import logging
import time
import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from scipy import ndimage

from sph_levelset.utils.exceptions import GeometryQualityWarning
from sph_levelset.utils.parallel import package_for
from sph_levelset.utils.sph_logging import LoggedOperation, get_logger, log_build_completion, log_build_start

from .data_package import DISTANCE
from .interface import (
    classify_near_interface,
    diffuse_sign,
    flip_isolated_samples,
    nudge_near_zero,
    redistance_interface,
)
from .kernel_integrals import compute_kernel_integrals
from .reinitialization import reinitialize, update_distance_gradient

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from sph_levelset.config import LevelSetConfig
    from sph_levelset.geometry.implicit import GeometrySource
    from sph_levelset.kernels import BaseKernel

    from .package_mesh import PackageMesh

logger = get_logger(__name__)


@dataclass
class BuildReport:
    """Summary of one construction run."""

    core_packages: int
    total_cells: int
    inconsistent_cells: int
    diffusion_sweeps: int
    diffusion_flips: int
    reinitialization_residual: float
    integrated_samples: int
    build_time: float


class FieldBuilder:
    """
    Fills the fields of a PackageMesh from a geometry.

    Example:
        >>> mesh = PackageMesh(bounds, data_spacing=0.02)
        >>> builder = FieldBuilder(mesh, Hypersphere([0, 0], 1.0), config, kernel)
        >>> report = builder.build()
    """

    def __init__(self, mesh: PackageMesh, geometry: GeometrySource, config: LevelSetConfig, kernel: BaseKernel):
        self.mesh = mesh
        self.geometry = geometry
        self.config = config
        self.kernel = kernel
        self._policy = config.execution.policy
        self._max_workers = config.execution.max_workers

    @property
    def band_width(self) -> float:
        return self.config.band_half_width * self.mesh.data_spacing

    def build(self) -> BuildReport:
        """Run the full construction pipeline."""
        log_build_start(
            logger,
            f"level set (spacing {self.mesh.data_spacing:.4g})",
            self.config.model_dump(exclude={"logging"}),
        )
        start = time.perf_counter()

        with LoggedOperation(logger, "seeding", logging.DEBUG):
            inconsistent = self.seed()
        with LoggedOperation(logger, "classification and sign diffusion", logging.DEBUG):
            self.classify()
            sweeps, flips = self.diffuse_sign()
        with LoggedOperation(logger, "reinitialization", logging.DEBUG):
            residual = self.reinitialize()
            self.update_gradient()
        with LoggedOperation(logger, "kernel integrals", logging.DEBUG):
            integrated = self.update_kernel_integrals()

        elapsed = time.perf_counter() - start
        log_build_completion(logger, "Level set", self.mesh.n_core_packages, self.mesh.total_cells, elapsed)

        return BuildReport(
            core_packages=self.mesh.n_core_packages,
            total_cells=self.mesh.total_cells,
            inconsistent_cells=inconsistent,
            diffusion_sweeps=sweeps,
            diffusion_flips=flips,
            reinitialization_residual=residual,
            integrated_samples=integrated,
            build_time=elapsed,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def seed(self) -> int:
        """
        Allocate core packages around the interface and fill exact distances.

        Returns:
            Number of cell centres where the inside test and the distance sign disagree
        """
        mesh = self.mesh
        d = mesh.dimension
        centers = mesh.cell_centers().reshape(-1, d)
        shape = tuple(mesh.n_cells)

        distance = np.asarray(self.geometry.signed_distance(centers), dtype=float).reshape(shape)
        inside = np.asarray(self.geometry.contains(centers), dtype=bool).reshape(shape)

        inconsistent = int(np.count_nonzero(inside != (distance < 0)))
        if inconsistent:
            self._report_quality(f"{inconsistent} cell centres where contains() disagrees with the distance sign")

        core_mask = self._core_cells(distance, inside)
        mesh.allocate_core_packages(core_mask, inside)
        far_outside, far_inside = self._far_field_values(distance)
        mesh.set_singular_values(far_outside, far_inside)

        if mesh.n_core_packages == 0:
            logger.warning("No interface found inside the bounds; the level set is uniform far field")

        phi = mesh.interior(DISTANCE)
        sample_shape = (mesh.package_size,) * d

        def evaluate(block: NDArray[np.intp]) -> None:
            positions = mesh.sample_positions(block).reshape(-1, d)
            values = np.asarray(self.geometry.signed_distance(positions), dtype=float)
            phi[block] = values.reshape(len(block), *sample_shape)

        package_for(mesh.core_slots, evaluate, self._policy, self._max_workers)
        mesh.sync_halo(DISTANCE, extrapolate=True)

        logger.info(
            f"Seeded {mesh.n_core_packages} core packages of {mesh.total_cells} cells "
            f"(far field {far_inside:.4g} / {far_outside:.4g})"
        )
        return inconsistent

    def classify(self) -> dict[str, int]:
        counts = classify_near_interface(self.mesh, self.band_width, self._policy, self._max_workers)
        logger.debug(f"Classification: {counts}")
        return counts

    def diffuse_sign(self) -> tuple[int, int]:
        sweeps, flips = diffuse_sign(
            self.mesh,
            self.config.max_diffusion_sweeps,
            self._policy,
            self._max_workers,
            log_sweeps=self.config.logging.log_sweeps,
        )
        logger.debug(f"Sign diffusion reached its fixed point after {sweeps} sweeps")
        if flips:
            self._report_quality(f"sign diffusion flipped {flips} seeded samples")
        return sweeps, flips

    def reinitialize(self) -> float:
        return reinitialize(
            self.mesh,
            band_width=self.band_width,
            cfl=self.config.cfl,
            sweeps=self.config.effective_reinitialization_sweeps,
            policy=self._policy,
            max_workers=self._max_workers,
            log_sweeps=self.config.logging.log_sweeps,
        )

    def update_gradient(self) -> None:
        update_distance_gradient(self.mesh, self._policy, self._max_workers)

    def update_kernel_integrals(self) -> int:
        return compute_kernel_integrals(self.mesh, self.kernel, self._policy, self._max_workers)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def clean_interface(self, small_shift_factor: float) -> None:
        """Nudge near-zero distances, redistance the interface and refresh derived fields."""
        with LoggedOperation(logger, "interface cleaning", logging.DEBUG):
            nudged = nudge_near_zero(self.mesh, small_shift_factor * self.mesh.data_spacing)
            self.classify()
            diffuse_sign(self.mesh, self.config.max_diffusion_sweeps, self._policy, self._max_workers)
            redistance_interface(self.mesh, self._policy, self._max_workers)
            self.reinitialize()
            self.update_gradient()
            self.update_kernel_integrals()
        logger.debug(f"Interface cleaning nudged {nudged} samples")

    def correct_topology(self, small_shift_factor: float) -> int:
        """
        Remove isolated sign errors, then rerun diffusion, reinitialization and integrals.

        Returns:
            Number of samples flipped by the majority vote
        """
        with LoggedOperation(logger, "topology correction", logging.DEBUG):
            nudge_near_zero(self.mesh, small_shift_factor * self.mesh.data_spacing)
            flipped = flip_isolated_samples(self.mesh, self._policy, self._max_workers)
            self.classify()
            diffuse_sign(self.mesh, self.config.max_diffusion_sweeps, self._policy, self._max_workers)
            self.reinitialize()
            self.update_gradient()
            self.update_kernel_integrals()
        if flipped:
            logger.info(f"Topology correction flipped {flipped} isolated samples")
        return flipped

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _core_cells(self, distance: NDArray, inside: NDArray[np.bool_]) -> NDArray[np.bool_]:
        """Cells within seed_half_width of a sign change or of the zero level."""
        d = self.mesh.dimension
        half_diagonal = 0.5 * self.mesh.grid_spacing * np.sqrt(d)
        interface = np.abs(distance) < half_diagonal

        for axis in range(d):
            change = np.diff(inside, axis=axis)
            lower = [slice(None)] * d
            upper = [slice(None)] * d
            lower[axis] = slice(None, -1)
            upper[axis] = slice(1, None)
            interface[tuple(lower)] |= change
            interface[tuple(upper)] |= change

        if not np.any(interface):
            return interface

        structure = ndimage.generate_binary_structure(d, d)
        return ndimage.binary_dilation(interface, structure=structure, iterations=self.config.seed_half_width)

    def _far_field_values(self, distance: NDArray) -> tuple[float, float]:
        """(far_outside, far_inside) values of the singular packages."""
        if self.config.far_field_distance is not None:
            return self.config.far_field_distance, -self.config.far_field_distance

        floor = self.mesh.data_spacing
        negative = distance[distance < 0]
        positive = distance[distance >= 0]
        far_inside = min(float(negative.min()), -floor) if negative.size else -self.mesh.grid_spacing
        far_outside = max(float(positive.max()), floor) if positive.size else self.mesh.grid_spacing
        return far_outside, far_inside

    def _report_quality(self, message: str) -> None:
        logger.warning(f"Geometry quality: {message}")
        warnings.warn(f"Geometry quality: {message}", GeometryQualityWarning, stacklevel=3)
