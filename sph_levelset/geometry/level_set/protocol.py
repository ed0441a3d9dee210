"""
Query interface shared by single- and multi-resolution level sets.

Probes accept one position of shape (d,) or a batch of shape (N, d) and
return a scalar / vector or an array with a leading N axis accordingly.
Probes are read-only and safe to call concurrently; the maintenance hooks
are the only writers and must not overlap with queries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray

# Gradient norms below this give a zero normal
TINY_GRADIENT = 1e-8


class BaseLevelSet(ABC):
    """
    Abstract level-set query facade.

    Subclasses provide the raw probes; the normal direction is derived from
    the interpolated gradient here.
    """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Spatial dimension."""

    @abstractmethod
    def probe_signed_distance(self, position: NDArray, h_ratio: float | None = None) -> float | NDArray:
        """Interpolated signed distance (negative inside)."""

    @abstractmethod
    def probe_level_set_gradient(self, position: NDArray, h_ratio: float | None = None) -> NDArray:
        """Interpolated distance gradient, not normalized."""

    @abstractmethod
    def probe_kernel_integral(self, position: NDArray, h_ratio: float | None = None) -> float | NDArray:
        """Interpolated inside share of the kernel support (1 deep inside, 0 far outside)."""

    @abstractmethod
    def probe_kernel_gradient_integral(self, position: NDArray, h_ratio: float | None = None) -> NDArray:
        """Interpolated kernel gradient integral over the inside part of the support."""

    @abstractmethod
    def probe_is_within_mesh_bound(self, position: NDArray) -> bool | NDArray:
        """Half-open bounding-box test lower <= x < upper."""

    @abstractmethod
    def is_within_core_package(self, position: NDArray) -> bool | NDArray:
        """True where the position falls in a cell owning a real package."""

    @abstractmethod
    def clean_interface(self, small_shift_factor: float = 0.01) -> None:
        """Maintenance after deformation: nudge, redistance and reinitialize the band."""

    @abstractmethod
    def correct_topology(self, small_shift_factor: float = 0.01) -> int:
        """Maintenance after deformation: remove isolated sign errors and rebuild derived fields."""

    def probe_normal_direction(self, position: NDArray, h_ratio: float | None = None) -> NDArray:
        """
        Outward unit normal from the interpolated gradient.

        Returns a zero vector where the gradient norm is below TINY_GRADIENT;
        callers should then rely on the sign of the distance only.
        """
        gradient = np.asarray(self.probe_level_set_gradient(position, h_ratio))
        norm = np.linalg.norm(gradient, axis=-1, keepdims=True)
        return np.where(norm > TINY_GRADIENT, gradient / np.maximum(norm, TINY_GRADIENT), 0.0)
