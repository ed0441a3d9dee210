"""
Hyperrectangle Domain (axis-aligned box)

    D = [a_1, b_1] x ... x [a_d, b_d]

The signed distance is exact everywhere, including outside the corners,
so box edges produce a correct distance field for the level-set seed.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from .implicit_domain import ImplicitDomain


class Hyperrectangle(ImplicitDomain):
    """
    Axis-aligned hyperrectangle in n dimensions.

    With center c, half extents e and q = |x - c| - e:
        phi(x) = ||max(q, 0)|| + min(max_i q_i, 0)

    Attributes:
        bounds: Array of shape (d, 2) where bounds[i] = [min_i, max_i]

    Example:
        >>> domain = Hyperrectangle(np.array([[0, 1], [0, 1]]))
        >>> domain.signed_distance(np.array([0.5, 0.5]))  # -0.5 (inside)
        >>> domain.signed_distance(np.array([2.0, 2.0]))  #  1.414... (corner)
    """

    def __init__(self, bounds: NDArray):
        """
        Initialize hyperrectangle domain.

        Args:
            bounds: Array of shape (d, 2) where bounds[i] = [min_i, max_i]

        Raises:
            ValueError: If bounds are invalid (min >= max)
        """
        bounds = np.asarray(bounds, dtype=float)

        if bounds.ndim != 2 or bounds.shape[1] != 2:
            raise ValueError(f"bounds must have shape (d, 2), got {bounds.shape}")

        if np.any(bounds[:, 0] >= bounds[:, 1]):
            raise ValueError("bounds must have min < max for all dimensions")

        self.bounds = bounds
        self._dimension = bounds.shape[0]
        self._center = bounds.mean(axis=1)
        self._half_extent = 0.5 * (bounds[:, 1] - bounds[:, 0])

    @property
    def dimension(self) -> int:
        """Spatial dimension of the hyperrectangle."""
        return self._dimension

    def signed_distance(self, x: NDArray) -> float | NDArray:
        """
        Compute exact Euclidean signed distance to the box boundary.

        Args:
            x: Point(s) - shape (d,) or (N, d)

        Returns:
            Signed distance(s) - scalar or shape (N,)
        """
        points, is_single = self._as_points(x)

        q = np.abs(points - self._center) - self._half_extent
        outside = np.linalg.norm(np.maximum(q, 0.0), axis=1)
        inside = np.minimum(np.max(q, axis=1), 0.0)
        sd = outside + inside

        return float(sd[0]) if is_single else sd

    def get_bounding_box(self) -> NDArray:
        """Bounding box is the box itself."""
        return self.bounds.copy()

    def __repr__(self) -> str:
        return f"Hyperrectangle(bounds={self.bounds.tolist()})"
