"""
Named, typed field storage for package meshes.

Every field of a package mesh is one MeshVariable: an owning NumPy buffer of
shape (n_slots, *padded_shape, *value_shape) where slot 0 and 1 are the shared
singular packages and slots >= 2 are core packages. A variable may carry a
mirror buffer (e.g. a staging copy for an accelerator or an external
consumer); the mirror is only refreshed by an explicit sync_mirror() call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import DTypeLike, NDArray


@dataclass
class MeshVariable:
    """
    One named field over all package slots.

    Attributes:
        name: Field name, unique inside a FieldStore
        data: Owning buffer, shape (n_slots, *padded_shape, *value_shape)
        value_shape: Trailing shape of one sample, () for scalars
        mirror: Optional mirrored buffer, refreshed only by sync_mirror()
        mirror_dirty: True when data changed since the last sync
    """

    name: str
    data: NDArray[Any]
    value_shape: tuple[int, ...] = ()
    mirror: NDArray[Any] | None = None
    mirror_dirty: bool = field(default=False)

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    @property
    def n_slots(self) -> int:
        return self.data.shape[0]

    def mark_dirty(self) -> None:
        """Record that data changed; a mirror, if any, is now stale."""
        if self.mirror is not None:
            self.mirror_dirty = True

    def enable_mirror(self) -> NDArray[Any]:
        """Allocate the mirror buffer (synchronized immediately)."""
        self.mirror = self.data.copy()
        self.mirror_dirty = False
        return self.mirror

    def sync_mirror(self) -> None:
        """Copy data into the mirror buffer."""
        if self.mirror is None:
            return
        if self.mirror.shape != self.data.shape:
            self.mirror = self.data.copy()
        else:
            np.copyto(self.mirror, self.data)
        self.mirror_dirty = False

    def resize(self, n_slots: int) -> None:
        """Grow or shrink to n_slots, keeping existing rows."""
        new_data = np.zeros((n_slots, *self.data.shape[1:]), dtype=self.data.dtype)
        n_keep = min(n_slots, self.n_slots)
        new_data[:n_keep] = self.data[:n_keep]
        self.data = new_data
        self.mark_dirty()


class FieldStore:
    """
    Registry of the MeshVariables belonging to one package mesh.

    Example:
        >>> store = FieldStore(n_slots=2, padded_shape=(6, 6))
        >>> phi = store.register("distance", np.float64)
        >>> grad = store.register("distance_gradient", np.float64, value_shape=(2,))
        >>> grad.data.shape
        (2, 6, 6, 2)
    """

    def __init__(self, n_slots: int, padded_shape: tuple[int, ...]):
        self.n_slots = n_slots
        self.padded_shape = tuple(padded_shape)
        self._variables: dict[str, MeshVariable] = {}

    def register(
        self,
        name: str,
        dtype: DTypeLike,
        value_shape: tuple[int, ...] = (),
        fill_value: float = 0,
    ) -> MeshVariable:
        """Register a field or return the existing one with the same name and type."""
        if name in self._variables:
            existing = self._variables[name]
            if existing.dtype != np.dtype(dtype) or existing.value_shape != tuple(value_shape):
                raise TypeError(
                    f"Field '{name}' already registered as {existing.dtype}{existing.value_shape}, "
                    f"requested {np.dtype(dtype)}{tuple(value_shape)}"
                )
            return existing

        data = np.full((self.n_slots, *self.padded_shape, *value_shape), fill_value, dtype=dtype)
        variable = MeshVariable(name=name, data=data, value_shape=tuple(value_shape))
        self._variables[name] = variable
        return variable

    def get(self, name: str) -> MeshVariable:
        """Look up a field by name."""
        try:
            return self._variables[name]
        except KeyError:
            raise KeyError(f"No field '{name}' registered; available: {sorted(self._variables)}") from None

    def __contains__(self, name: str) -> bool:
        return name in self._variables

    def names(self) -> list[str]:
        return list(self._variables)

    def resize(self, n_slots: int) -> None:
        """Resize every field to n_slots package slots."""
        self.n_slots = n_slots
        for variable in self._variables.values():
            variable.resize(n_slots)

    def sync_mirrors(self) -> None:
        """Refresh every enabled mirror."""
        for variable in self._variables.values():
            variable.sync_mirror()
