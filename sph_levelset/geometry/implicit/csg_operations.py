"""
Constructive Solid Geometry (CSG) Operations

Complex solids are built from primitives:
- Union: D1 u D2 u ... u Dn         phi = min(phi_i)
- Intersection: D1 n D2 n ... n Dn  phi = max(phi_i)
- Complement: R^d \\ D              phi = -phi_D
- Difference: D1 \\ D2 = D1 n (R^d \\ D2)

The min/max combinations give the correct sign everywhere but only a bound
on the distance away from the nearest active surface. The level-set
reinitialization restores the distance property near the interface.

References:
- Ricci (1973): An Constructive Geometry for Computer Graphics
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from .implicit_domain import ImplicitDomain


def _check_dimensions(domains: list[ImplicitDomain]) -> int:
    if not domains:
        raise ValueError("domains list cannot be empty")

    dimension = domains[0].dimension
    if not all(d.dimension == dimension for d in domains):
        raise ValueError(f"All domains must have same dimension, got dimensions: {[d.dimension for d in domains]}")
    return dimension


class UnionDomain(ImplicitDomain):
    """
    Union of multiple domains: a point is inside if inside ANY constituent.

    Example:
        >>> circle1 = Hypersphere(center=[0, 0], radius=1.0)
        >>> circle2 = Hypersphere(center=[1, 0], radius=1.0)
        >>> union = UnionDomain([circle1, circle2])  # Peanut shape
    """

    def __init__(self, domains: list[ImplicitDomain]):
        self._dimension = _check_dimensions(domains)
        self.domains = domains

    @property
    def dimension(self) -> int:
        return self._dimension

    def signed_distance(self, x: NDArray) -> float | NDArray:
        distances = np.array([domain.signed_distance(x) for domain in self.domains])
        sd = np.min(distances, axis=0)
        return float(sd) if np.ndim(sd) == 0 else sd

    def get_bounding_box(self) -> NDArray:
        boxes = np.array([domain.get_bounding_box() for domain in self.domains])
        bounds = np.zeros((self.dimension, 2))
        bounds[:, 0] = np.min(boxes[:, :, 0], axis=0)
        bounds[:, 1] = np.max(boxes[:, :, 1], axis=0)
        return bounds

    def __repr__(self) -> str:
        return f"UnionDomain({len(self.domains)} domains)"


class IntersectionDomain(ImplicitDomain):
    """Intersection of multiple domains: inside only if inside ALL constituents."""

    def __init__(self, domains: list[ImplicitDomain]):
        self._dimension = _check_dimensions(domains)
        self.domains = domains

    @property
    def dimension(self) -> int:
        return self._dimension

    def signed_distance(self, x: NDArray) -> float | NDArray:
        distances = np.array([domain.signed_distance(x) for domain in self.domains])
        sd = np.max(distances, axis=0)
        return float(sd) if np.ndim(sd) == 0 else sd

    def get_bounding_box(self) -> NDArray:
        """Conservative box: overlap of the constituent boxes."""
        boxes = np.array([domain.get_bounding_box() for domain in self.domains])
        bounds = np.zeros((self.dimension, 2))
        bounds[:, 0] = np.max(boxes[:, :, 0], axis=0)
        bounds[:, 1] = np.min(boxes[:, :, 1], axis=0)

        if np.any(bounds[:, 0] >= bounds[:, 1]):
            # Empty intersection
            return self.domains[0].get_bounding_box()

        return bounds

    def __repr__(self) -> str:
        return f"IntersectionDomain({len(self.domains)} domains)"


class ComplementDomain(ImplicitDomain):
    """
    Complement of a domain: inside where the original is outside.

    The complement is unbounded; a bounding box must be set explicitly
    before it can seed a level set on its own.
    """

    def __init__(self, domain: ImplicitDomain, bounding_box: NDArray | None = None):
        self.domain = domain
        self._bounding_box = None if bounding_box is None else np.asarray(bounding_box, dtype=float)

    @property
    def dimension(self) -> int:
        return self.domain.dimension

    def signed_distance(self, x: NDArray) -> float | NDArray:
        return -self.domain.signed_distance(x)

    def get_bounding_box(self) -> NDArray:
        if self._bounding_box is None:
            raise ValueError(
                "ComplementDomain is unbounded. Set bounding box manually via:\ncomplement.set_bounding_box(bounds)"
            )
        return self._bounding_box.copy()

    def set_bounding_box(self, bounds: NDArray):
        self._bounding_box = np.asarray(bounds, dtype=float)

    def __repr__(self) -> str:
        return f"ComplementDomain({self.domain})"


class DifferenceDomain(IntersectionDomain):
    """
    Set difference D1 \\ D2: points inside D1 but outside D2.

    Example:
        >>> plate = Hyperrectangle(np.array([[-1, 1], [-1, 1]]))
        >>> hole = Hypersphere(center=[0, 0], radius=0.5)
        >>> plate_with_hole = DifferenceDomain(plate, hole)
    """

    def __init__(self, domain1: ImplicitDomain, domain2: ImplicitDomain):
        complement = ComplementDomain(domain2, bounding_box=domain1.get_bounding_box())
        super().__init__([domain1, complement])
        self.domain1 = domain1
        self.domain2 = domain2

    def __repr__(self) -> str:
        return f"DifferenceDomain({self.domain1} \\ {self.domain2})"
