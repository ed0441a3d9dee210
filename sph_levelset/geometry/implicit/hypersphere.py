"""
Hypersphere Domain (disc in 2D, ball in 3D)

    D = {x in R^d : ||x - c|| <= r}

The signed distance is exact, which makes the hypersphere the reference
geometry for accuracy checks of the level-set engine.
"""

from __future__ import annotations

from math import gamma, pi

import numpy as np
from numpy.typing import NDArray

from .implicit_domain import ImplicitDomain


class Hypersphere(ImplicitDomain):
    """
    Hypersphere (ball) in n dimensions.

    Signed distance function (exact):
        phi(x) = ||x - c|| - r

    Attributes:
        center: Center point - array of shape (d,)
        radius: Radius (positive scalar)

    Example:
        >>> circle = Hypersphere(center=[0, 0], radius=1.0)
        >>> circle.signed_distance([0, 0])  # -1.0 (center)
        >>> circle.signed_distance([2, 0])  #  1.0 (outside)
    """

    def __init__(self, center: NDArray | list, radius: float):
        """
        Initialize hypersphere domain.

        Args:
            center: Center point - array-like of shape (d,)
            radius: Radius (must be positive)

        Raises:
            ValueError: If radius <= 0 or center is not 1D
        """
        self.center = np.asarray(center, dtype=float)
        self.radius = float(radius)

        if self.radius <= 0:
            raise ValueError(f"Radius must be positive, got {radius}")

        if self.center.ndim != 1:
            raise ValueError(f"Center must be 1D array, got shape {self.center.shape}")

        self._dimension = len(self.center)

    @property
    def dimension(self) -> int:
        """Spatial dimension of the hypersphere."""
        return self._dimension

    def signed_distance(self, x: NDArray) -> float | NDArray:
        """
        Compute exact signed distance phi(x) = ||x - c|| - r.

        Args:
            x: Point(s) - shape (d,) or (N, d)

        Returns:
            Signed distance(s) - scalar or shape (N,)
        """
        points, is_single = self._as_points(x)
        sd = np.linalg.norm(points - self.center, axis=1) - self.radius
        return float(sd[0]) if is_single else sd

    def get_bounding_box(self) -> NDArray:
        """Bounding box [c_i - r, c_i + r] per axis."""
        bounds = np.zeros((self.dimension, 2))
        bounds[:, 0] = self.center - self.radius
        bounds[:, 1] = self.center + self.radius
        return bounds

    def compute_volume(self) -> float:
        """Exact volume V_d(r) = pi^(d/2) / Gamma(d/2 + 1) * r^d."""
        coefficient = pi ** (self.dimension / 2) / gamma(self.dimension / 2 + 1)
        return coefficient * (self.radius**self.dimension)

    def __repr__(self) -> str:
        return f"Hypersphere(center={self.center.tolist()}, radius={self.radius:.3f})"
