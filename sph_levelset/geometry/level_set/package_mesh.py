"""
Sparse package mesh.

The mesh covers the tentative bounds, expanded by buffer cells, with a
regular grid of cells of width package_size * data_spacing. Cells near the
interface own a core package; every other cell points at one of the two
shared singular packages. The cell -> slot table is a dense integer array
over the (coarse) cell grid, so locating a package is one index operation.

Data indices address samples globally: sample g (per axis) sits at
    lower_bound + (g + 0.5) * data_spacing
and belongs to cell g // package_size.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from sph_levelset.core import FieldStore
from sph_levelset.utils.exceptions import ConfigurationError, validate_bounds, validate_positive
from sph_levelset.utils.sph_logging import get_logger

from .data_package import (
    DISTANCE,
    DISTANCE_GRADIENT,
    FAR_INSIDE_SLOT,
    FAR_OUTSIDE_SLOT,
    FIRST_CORE_SLOT,
    KERNEL_GRADIENT,
    KERNEL_WEIGHT,
    NEAR_INTERFACE_ID,
    DataPackage,
    NearInterface,
    interior_slice,
    local_sample_indices,
    padded_sample_indices,
    padded_shape,
)

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = get_logger(__name__)

# Relative slack when counting how many cells span the tentative bounds
_SPAN_TOLERANCE = 1e-9


class PackageMesh:
    """
    Coordinate-indexed table of data packages with shared far-field packages.

    Attributes:
        dimension: 2 or 3
        package_size: Samples per axis of one package
        data_spacing: Distance between samples
        grid_spacing: Width of one cell (package_size * data_spacing)
        lower_bound: Lower corner of the mesh, shape (d,)
        upper_bound: Upper corner of the mesh, shape (d,)
        n_cells: Number of cells per axis, shape (d,)
        fields: FieldStore with distance, distance_gradient, near_interface_id,
            kernel_weight and kernel_gradient

    Example:
        >>> mesh = PackageMesh(np.array([[-1, 1], [-1, 1]]), data_spacing=0.02)
        >>> mesh.n_cells
        array([29, 29])
    """

    def __init__(
        self,
        tentative_bounds: NDArray,
        data_spacing: float,
        package_size: int = 4,
        buffer_width: int = 2,
    ):
        bounds = validate_bounds(tentative_bounds, component="PackageMesh")
        self.data_spacing = validate_positive(data_spacing, "data_spacing", component="PackageMesh")
        if package_size < 2:
            raise ConfigurationError(
                parameter_name="package_size",
                provided_value=package_size,
                valid_range=(2, 16),
                component="PackageMesh",
            )

        self.dimension = bounds.shape[0]
        self.package_size = int(package_size)
        self.buffer_width = int(buffer_width)
        self.grid_spacing = self.package_size * self.data_spacing

        # Centered layout: the cell grid is symmetric about the bounds' midpoint
        span = bounds[:, 1] - bounds[:, 0]
        base_cells = np.array([math.ceil(s / self.grid_spacing - _SPAN_TOLERANCE) for s in span], dtype=np.intp)
        self.n_cells = np.maximum(base_cells, 1) + 2 * self.buffer_width
        center = bounds.mean(axis=1)
        self.lower_bound = center - 0.5 * self.n_cells * self.grid_spacing
        self.upper_bound = self.lower_bound + self.n_cells * self.grid_spacing
        self.n_samples = self.n_cells * self.package_size

        self.cell_slot = np.full(tuple(self.n_cells), FAR_OUTSIDE_SLOT, dtype=np.intp)
        self.core_cells = np.empty((0, self.dimension), dtype=np.intp)

        self.padded_shape = padded_shape(self.package_size, self.dimension)
        self._samples_per_package = int(np.prod(self.padded_shape))
        self._local_indices = local_sample_indices(self.package_size, self.dimension)
        self._padded_indices = padded_sample_indices(self.package_size, self.dimension)
        self._gather: NDArray[np.intp] | None = None
        self._singular_source: NDArray[np.bool_] | None = None

        self.fields = FieldStore(n_slots=FIRST_CORE_SLOT, padded_shape=self.padded_shape)
        d = (self.dimension,)
        self.fields.register(DISTANCE, np.float64)
        self.fields.register(DISTANCE_GRADIENT, np.float64, value_shape=d)
        self.fields.register(NEAR_INTERFACE_ID, np.int8, fill_value=int(NearInterface.FAR_OUTSIDE))
        self.fields.register(KERNEL_WEIGHT, np.float64)
        self.fields.register(KERNEL_GRADIENT, np.float64, value_shape=d)

        self.far_outside_value = 0.0
        self.far_inside_value = 0.0

        logger.debug(
            f"PackageMesh: {tuple(self.n_cells)} cells, spacing {self.data_spacing:.4g}, "
            f"bounds {self.lower_bound.tolist()} - {self.upper_bound.tolist()}"
        )

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    @property
    def n_slots(self) -> int:
        return FIRST_CORE_SLOT + len(self.core_cells)

    @property
    def n_core_packages(self) -> int:
        return len(self.core_cells)

    @property
    def total_cells(self) -> int:
        return int(np.prod(self.n_cells))

    @property
    def core_slots(self) -> NDArray[np.intp]:
        return np.arange(FIRST_CORE_SLOT, self.n_slots, dtype=np.intp)

    @property
    def bounds(self) -> NDArray:
        """Mesh bounds as a (d, 2) array."""
        return np.stack([self.lower_bound, self.upper_bound], axis=1)

    def cell_centers(self) -> NDArray:
        """Centres of all cells, shape (*n_cells, d)."""
        axes = [
            self.lower_bound[k] + (np.arange(self.n_cells[k]) + 0.5) * self.grid_spacing for k in range(self.dimension)
        ]
        return np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1)

    def allocate_core_packages(self, core_mask: NDArray[np.bool_], inside_mask: NDArray[np.bool_]) -> None:
        """
        Assign slots: one core package per cell in core_mask, singular elsewhere.

        Args:
            core_mask: Cells that get a real package, shape n_cells
            inside_mask: Inside tag of every cell, used for the singular ones
        """
        self.core_cells = np.argwhere(core_mask).astype(np.intp)
        self.cell_slot = np.where(inside_mask, FAR_INSIDE_SLOT, FAR_OUTSIDE_SLOT).astype(np.intp)
        self.cell_slot[tuple(self.core_cells.T)] = self.core_slots
        self.fields.resize(self.n_slots)
        self._gather = self._build_gather()

    def package(self, cell) -> DataPackage:
        """DataPackage view of the given cell."""
        cell = tuple(int(c) for c in cell)
        return DataPackage(self.fields, self.cell_slot[cell], cell, self.dimension)

    def singular_package(self, inside: bool) -> DataPackage:
        return DataPackage(self.fields, FAR_INSIDE_SLOT if inside else FAR_OUTSIDE_SLOT, None, self.dimension)

    # ------------------------------------------------------------------
    # Sample addressing
    # ------------------------------------------------------------------

    def sample_global_indices(self, slots: NDArray[np.intp]) -> NDArray[np.intp]:
        """Global data indices of the interior samples of core slots, shape (n, P**d, d)."""
        cells = self.core_cells[np.asarray(slots) - FIRST_CORE_SLOT]
        return cells[:, None, :] * self.package_size + self._local_indices[None, :, :]

    def sample_positions(self, slots: NDArray[np.intp]) -> NDArray:
        """Positions of the interior samples of core slots, shape (n, P**d, d)."""
        return self.lower_bound + (self.sample_global_indices(slots) + 0.5) * self.data_spacing

    def resolve(self, global_index: NDArray[np.intp]) -> tuple[NDArray[np.intp], tuple[NDArray[np.intp], ...]]:
        """
        Map global data indices to (slot, padded local index).

        Indices outside the mesh resolve to the far-outside package.

        Args:
            global_index: Shape (..., d)

        Returns:
            slot array of shape (...) and a d-tuple of padded local index arrays
        """
        global_index = np.asarray(global_index, dtype=np.intp)
        cell = np.floor_divide(global_index, self.package_size)
        local = global_index - cell * self.package_size
        valid = np.all((cell >= 0) & (cell < self.n_cells), axis=-1)
        clipped = np.clip(cell, 0, self.n_cells - 1)
        slot = np.where(valid, self.cell_slot[tuple(np.moveaxis(clipped, -1, 0))], FAR_OUTSIDE_SLOT)
        return slot, tuple(np.moveaxis(local + 1, -1, 0))

    def lookup(self, name: str, global_index: NDArray[np.intp], data: NDArray | None = None) -> NDArray:
        """Field values at arbitrary global data indices (far-outside value beyond the mesh)."""
        array = self.fields.get(name).data if data is None else data
        slot, local = self.resolve(global_index)
        return array[(slot, *local)]

    # ------------------------------------------------------------------
    # Ghost halo
    # ------------------------------------------------------------------

    def _build_gather(self) -> NDArray[np.intp]:
        """Flat source index of every padded sample of every slot."""
        n_per = self._samples_per_package
        gather = np.empty((self.n_slots, n_per), dtype=np.intp)

        # Singular packages are uniform and map onto themselves
        identity = np.arange(n_per, dtype=np.intp)
        gather[FAR_OUTSIDE_SLOT] = FAR_OUTSIDE_SLOT * n_per + identity
        gather[FAR_INSIDE_SLOT] = FAR_INSIDE_SLOT * n_per + identity

        self._singular_source = None
        if self.n_core_packages:
            global_index = self.core_cells[:, None, :] * self.package_size + self._padded_indices[None, :, :] - 1
            slot, local = self.resolve(global_index)
            gather[FIRST_CORE_SLOT:] = slot * n_per + np.ravel_multi_index(local, self.padded_shape)
            self._singular_source = (slot < FIRST_CORE_SLOT).reshape(self.n_core_packages, *self.padded_shape)

        return gather.reshape(-1)

    def synchronized(self, array: NDArray, extrapolate: bool = False) -> NDArray:
        """
        Copy of a field array with every halo refreshed from its owning package.

        The input is treated as a frozen snapshot; the result is a new buffer.

        Args:
            array: Field data, shape (n_slots, *padded_shape, *value_shape)
            extrapolate: Fill halo samples owned by a singular package (or lying
                beyond the mesh) by linear extrapolation from the interior
                instead of copying the uniform far-field value
        """
        if self._gather is None:
            return array.copy()
        n_slots = array.shape[0]
        value_shape = array.shape[1 + self.dimension :]
        flat = array.reshape(n_slots * self._samples_per_package, *value_shape)
        result = flat[self._gather].reshape(array.shape)
        if extrapolate:
            self._extrapolate_singular_halo(result)
        return result

    def sync_halo(self, name: str, extrapolate: bool = False) -> None:
        """Refresh the halo of a named field in place."""
        variable = self.fields.get(name)
        variable.data = self.synchronized(variable.data, extrapolate=extrapolate)
        variable.mark_dirty()

    def _extrapolate_singular_halo(self, array: NDArray) -> None:
        """
        Overwrite singular-owned halo samples of core packages with 2 * edge - inner.

        Axes are processed in order; a sample on several halo faces takes its
        final value from the last of them, whose two stencil samples were
        already completed by the earlier passes.
        """
        if self._singular_source is None:
            return
        core = array[FIRST_CORE_SLOT:]
        value_ndim = array.ndim - 1 - self.dimension
        p = self.package_size
        for axis in range(1, self.dimension + 1):
            for face, edge, inner in ((0, 1, 2), (p + 1, p, p - 1)):
                mask = np.take(self._singular_source, face, axis=axis)
                mask = mask.reshape(mask.shape + (1,) * value_ndim)
                extrapolated = 2.0 * np.take(core, edge, axis=axis) - np.take(core, inner, axis=axis)
                index = [slice(None)] * core.ndim
                index[axis] = face
                core[tuple(index)] = np.where(mask, extrapolated, core[tuple(index)])

    def interior(self, name: str) -> NDArray:
        """Interior view of a named field across all slots."""
        return self.fields.get(name).data[interior_slice(self.dimension)]

    def set_singular_values(self, far_outside_value: float, far_inside_value: float) -> None:
        """Fill both singular packages with their uniform far-field values."""
        self.far_outside_value = float(far_outside_value)
        self.far_inside_value = float(far_inside_value)
        fields = self.fields
        for slot, distance, tag, weight in (
            (FAR_OUTSIDE_SLOT, self.far_outside_value, NearInterface.FAR_OUTSIDE, 0.0),
            (FAR_INSIDE_SLOT, self.far_inside_value, NearInterface.FAR_INSIDE, 1.0),
        ):
            fields.get(DISTANCE).data[slot] = distance
            fields.get(NEAR_INTERFACE_ID).data[slot] = int(tag)
            fields.get(KERNEL_WEIGHT).data[slot] = weight
            fields.get(DISTANCE_GRADIENT).data[slot] = 0.0
            fields.get(KERNEL_GRADIENT).data[slot] = 0.0
        for name in fields.names():
            fields.get(name).mark_dirty()

    # ------------------------------------------------------------------
    # Point queries
    # ------------------------------------------------------------------

    def is_within_mesh_bound(self, positions: NDArray) -> NDArray[np.bool_]:
        """Half-open containment lower <= x < upper for (N, d) positions."""
        return np.all((positions >= self.lower_bound) & (positions < self.upper_bound), axis=1)

    def cell_index(self, positions: NDArray) -> NDArray[np.intp]:
        """Cell containing each position (clipped to the mesh), shape (N, d)."""
        cell = np.floor((positions - self.lower_bound) / self.grid_spacing).astype(np.intp)
        return np.clip(cell, 0, self.n_cells - 1)

    def is_within_core_package(self, positions: NDArray) -> NDArray[np.bool_]:
        """True where the position lies inside the mesh and in a cell with a core package."""
        inside = self.is_within_mesh_bound(positions)
        slot = self.cell_slot[tuple(self.cell_index(positions).T)]
        return inside & (slot >= FIRST_CORE_SLOT)

    def interpolate(self, name: str, positions: NDArray) -> NDArray:
        """
        Bi/trilinear interpolation of a field at positions inside the mesh bounds.

        All corners are read from the package of the cell holding the position;
        within half a sample of the cell boundary they include its halo.

        Args:
            name: Field name
            positions: Shape (N, d), all within the mesh bounds

        Returns:
            Shape (N, *value_shape)
        """
        data = self.fields.get(name).data
        value_shape = data.shape[1 + self.dimension :]

        s = (positions - self.lower_bound) / self.data_spacing - 0.5
        g0 = np.clip(np.floor(s).astype(np.intp), -1, self.n_samples - 1)
        weight = np.clip(s - g0, 0.0, 1.0)
        cell = self.cell_index(positions)
        base = np.clip(g0 - cell * self.package_size + 1, 0, self.package_size)
        slot = self.cell_slot[tuple(cell.T)]

        result = np.zeros((len(positions), *value_shape))
        for corner in np.ndindex(*(2,) * self.dimension):
            offset = np.asarray(corner, dtype=np.intp)
            corner_weight = np.prod(np.where(offset == 1, weight, 1.0 - weight), axis=1)
            index = base + offset
            values = data[(slot, *index.T)]
            result += corner_weight.reshape(-1, *(1,) * len(value_shape)) * values
        return result

    def __repr__(self) -> str:
        return (
            f"PackageMesh(dimension={self.dimension}, cells={tuple(int(n) for n in self.n_cells)}, "
            f"core_packages={self.n_core_packages}, spacing={self.data_spacing:.4g})"
        )
