"""
Data packages: fixed-size tiles of level-set samples.

A package covers one mesh cell with package_size samples per axis. Every
field is stored with a one-sample ghost halo, so a package's arrays have
shape (package_size + 2,) * d. Interior samples (padded index 1..P) hold
computed values; halo samples are copies of the neighbouring packages'
interior samples and only feed stencils and interpolation.

Slot layout shared by every field of a PackageMesh:
    slot 0  far-outside singular package (uniform, read-only after build)
    slot 1  far-inside singular package  (uniform, read-only after build)
    slot 2+ core packages near the interface
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from sph_levelset.core import FieldStore

FAR_OUTSIDE_SLOT = 0
FAR_INSIDE_SLOT = 1
FIRST_CORE_SLOT = 2

# Field names shared by the builder, the probes and the field dump
DISTANCE = "distance"
DISTANCE_GRADIENT = "distance_gradient"
NEAR_INTERFACE_ID = "near_interface_id"
KERNEL_WEIGHT = "kernel_weight"
KERNEL_GRADIENT = "kernel_gradient"


class NearInterface(IntEnum):
    """Classification tag of a sample relative to the zero level."""

    FAR_INSIDE = -1
    BAND = 0
    FAR_OUTSIDE = 1
    UNDETERMINED = 2


def padded_shape(package_size: int, dimension: int) -> tuple[int, ...]:
    """Shape of one package's array including the ghost halo."""
    return (package_size + 2,) * dimension


def interior_slice(dimension: int) -> tuple[slice, ...]:
    """Index selecting the interior samples of every package at once."""
    return (slice(None),) + (slice(1, -1),) * dimension


def axis_shift(array: NDArray, axis: int, offset: int, dimension: int) -> NDArray:
    """
    Interior-shaped view of array shifted by offset samples along a spatial axis.

    Args:
        array: Padded field, shape (n, *padded, *value_shape)
        axis: Spatial axis (0-based)
        offset: -1, 0 or +1
        dimension: Number of spatial axes
    """
    index = [slice(None)] + [slice(1, -1)] * dimension
    stop = -1 + offset
    index[axis + 1] = slice(1 + offset, stop if stop != 0 else None)
    return array[tuple(index)]


def local_sample_indices(package_size: int, dimension: int) -> NDArray[np.intp]:
    """Interior multi-indices (0-based, without halo) in C order, shape (P**d, d)."""
    grid = np.indices((package_size,) * dimension)
    return grid.reshape(dimension, -1).T.astype(np.intp)


def padded_sample_indices(package_size: int, dimension: int) -> NDArray[np.intp]:
    """Padded multi-indices in C order, shape ((P+2)**d, d)."""
    grid = np.indices(padded_shape(package_size, dimension))
    return grid.reshape(dimension, -1).T.astype(np.intp)


class DataPackage:
    """
    View of one package slot across all fields of a FieldStore.

    Reads and writes go straight to the store's buffers; a DataPackage owns
    no memory.

    Example:
        >>> package = mesh.package((12, 3))
        >>> package.is_core
        True
        >>> package.interior(DISTANCE).shape
        (4, 4)
    """

    def __init__(self, store: FieldStore, slot: int, cell: tuple[int, ...] | None, dimension: int):
        self._store = store
        self.slot = int(slot)
        self.cell = cell
        self.dimension = dimension

    @property
    def is_core(self) -> bool:
        return self.slot >= FIRST_CORE_SLOT

    @property
    def is_singular(self) -> bool:
        return not self.is_core

    def field(self, name: str) -> NDArray:
        """Padded array of this package for the named field."""
        return self._store.get(name).data[self.slot]

    def interior(self, name: str) -> NDArray:
        """Interior samples (halo excluded) for the named field."""
        return self.field(name)[(slice(1, -1),) * self.dimension]

    def __getitem__(self, key: tuple[str, tuple[int, ...]]):
        """Read one interior sample: package[name, local_index]."""
        name, local = key
        return self.field(name)[tuple(i + 1 for i in local)]

    def __setitem__(self, key: tuple[str, tuple[int, ...]], value) -> None:
        """Write one interior sample: package[name, local_index] = value."""
        if self.is_singular:
            raise ValueError("Singular packages are read-only")
        name, local = key
        variable = self._store.get(name)
        variable.data[self.slot][tuple(i + 1 for i in local)] = value
        variable.mark_dirty()

    def __repr__(self) -> str:
        kind = "core" if self.is_core else ("far_inside" if self.slot == FAR_INSIDE_SLOT else "far_outside")
        return f"DataPackage(slot={self.slot}, cell={self.cell}, kind={kind})"
