"""
Geometry for sph_levelset: implicit geometry sources and the level sets built from them.
"""

from .implicit import (
    ComplementDomain,
    DifferenceDomain,
    GeometrySource,
    Hyperrectangle,
    Hypersphere,
    ImplicitDomain,
    IntersectionDomain,
    UnionDomain,
)
from .level_set import BaseLevelSet, LevelSet, MultilevelLevelSet, NearInterface, PackageMesh

__all__ = [
    # Implicit geometry
    "ComplementDomain",
    "DifferenceDomain",
    "GeometrySource",
    "Hyperrectangle",
    "Hypersphere",
    "ImplicitDomain",
    "IntersectionDomain",
    "UnionDomain",
    # Level sets
    "BaseLevelSet",
    "LevelSet",
    "MultilevelLevelSet",
    "NearInterface",
    "PackageMesh",
]
