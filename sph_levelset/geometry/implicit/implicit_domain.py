"""
Implicit Domain Infrastructure

A solid D in R^d is described implicitly by a signed distance function:
    phi: R^d -> R  where  phi(x) < 0  <=>  x in D

The level-set engine only needs two answers from a geometry, the signed
distance and the inside test, so anything implementing GeometrySource can be
sampled: analytic primitives, CSG trees, or adapters around mesh-distance
libraries.

References:
- Osher & Fedkiw (2003): Level Set Methods and Dynamic Implicit Surfaces
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray


@runtime_checkable
class GeometrySource(Protocol):
    """
    Stateless geometry oracle consumed by the level-set builder.

    Implementations must be pure and safe to call from several threads.
    """

    @property
    def dimension(self) -> int: ...

    def signed_distance(self, x: NDArray[np.float64]) -> float | NDArray[np.float64]: ...

    def contains(self, x: NDArray[np.float64]) -> bool | NDArray[np.bool_]: ...


class ImplicitDomain(ABC):
    """
    Abstract base class for n-dimensional implicit domains.

    Convention:
        x in D    <=>  phi(x) < 0   (interior)
        x on dD   <=>  phi(x) = 0   (boundary)
        x not in D <=> phi(x) > 0   (exterior)

    Subclasses must implement:
    - dimension
    - signed_distance(x)
    - get_bounding_box()

    Example:
        >>> domain = Hyperrectangle(np.array([[0, 1], [0, 1]]))
        >>> domain.contains(np.array([0.5, 0.5]))  # True (interior)
        >>> domain.contains(np.array([1.5, 0.5]))  # False (exterior)
    """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Spatial dimension of the domain."""

    @abstractmethod
    def signed_distance(self, x: NDArray[np.float64]) -> float | NDArray[np.float64]:
        """
        Compute signed distance function phi(x).

        Args:
            x: Point(s) to evaluate - shape (d,) or (N, d)

        Returns:
            Signed distance(s) - scalar float or array of shape (N,)
        """

    @abstractmethod
    def get_bounding_box(self) -> NDArray[np.float64]:
        """
        Get axis-aligned bounding box containing the domain.

        Returns:
            bounds: Array of shape (d, 2) where bounds[i] = [min_i, max_i]
        """

    def contains(self, x: NDArray[np.float64]) -> bool | NDArray[np.bool_]:
        """
        Inside test: phi(x) < 0.

        Args:
            x: Point(s) - shape (d,) or (N, d)

        Returns:
            Boolean or boolean array of shape (N,)
        """
        sd = self.signed_distance(x)
        if np.isscalar(sd):
            return bool(sd < 0)
        return np.asarray(sd) < 0

    def _as_points(self, x: NDArray) -> tuple[NDArray[np.float64], bool]:
        """Normalize input to (N, d) and remember whether a single point was given."""
        x = np.asarray(x, dtype=float)
        is_single = x.ndim == 1

        if is_single:
            x = x.reshape(1, -1)

        if x.shape[1] != self.dimension:
            raise ValueError(f"Point dimension {x.shape[1]} does not match domain dimension {self.dimension}")

        return x, is_single

    def get_boundary_normal(self, x: NDArray[np.float64], eps: float = 1e-6) -> NDArray[np.float64]:
        """
        Outward unit normal n = grad(phi) / |grad(phi)| by central differences.

        Args:
            x: Point(s) to evaluate - shape (d,) or (N, d)
            eps: Finite difference step size

        Returns:
            Unit normal vector(s) - same shape as x; zero where the gradient vanishes
        """
        points, is_single = self._as_points(x)
        n_points, d = points.shape
        grad = np.zeros_like(points)

        for j in range(d):
            offset = np.zeros(d)
            offset[j] = eps
            phi_plus = np.atleast_1d(self.signed_distance(points + offset))
            phi_minus = np.atleast_1d(self.signed_distance(points - offset))
            grad[:, j] = (phi_plus - phi_minus) / (2 * eps)

        norm = np.linalg.norm(grad, axis=1, keepdims=True)
        normals = np.where(norm > 1e-12, grad / np.maximum(norm, 1e-12), 0.0)

        return normals[0] if is_single else normals

    def __repr__(self) -> str:
        """String representation of the domain."""
        return f"{self.__class__.__name__}(dimension={self.dimension})"
