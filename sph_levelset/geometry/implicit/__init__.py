"""
Implicit geometry sources for level-set construction.

Geometries are described by signed distance functions (negative inside):
- Primitives: Hypersphere, Hyperrectangle
- CSG: UnionDomain, IntersectionDomain, ComplementDomain, DifferenceDomain

Any object satisfying the GeometrySource protocol can seed a level set.

Example:
    >>> from sph_levelset.geometry.implicit import Hypersphere, Hyperrectangle, DifferenceDomain
    >>> plate = Hyperrectangle(np.array([[-1, 1], [-1, 1]]))
    >>> hole = Hypersphere(center=[0, 0], radius=0.4)
    >>> solid = DifferenceDomain(plate, hole)
"""

from .csg_operations import ComplementDomain, DifferenceDomain, IntersectionDomain, UnionDomain
from .hyperrectangle import Hyperrectangle
from .hypersphere import Hypersphere
from .implicit_domain import GeometrySource, ImplicitDomain

__all__ = [
    # Interfaces
    "GeometrySource",
    "ImplicitDomain",
    # Primitives
    "Hyperrectangle",
    "Hypersphere",
    # CSG
    "ComplementDomain",
    "DifferenceDomain",
    "IntersectionDomain",
    "UnionDomain",
]
