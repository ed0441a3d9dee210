"""
Sparse multi-level level sets.

Components:
- PackageMesh: coordinate-indexed table of data packages plus shared
  far-field packages
- FieldBuilder: seed, classify, diffuse sign, reinitialize, kernel integrals
- LevelSet: single-resolution query facade
- MultilevelLevelSet: stack of LevelSets at doubling resolution

Example:
    >>> from sph_levelset.config import LevelSetConfig
    >>> from sph_levelset.geometry import Hypersphere, LevelSet
    >>> circle = Hypersphere(center=[0.0, 0.0], radius=1.0)
    >>> level_set = LevelSet(circle.get_bounding_box(), circle, LevelSetConfig(data_spacing=0.02))
    >>> level_set.probe_normal_direction([1.0, 0.0])
    array([1., 0.])
"""

from .data_package import (
    DISTANCE,
    DISTANCE_GRADIENT,
    KERNEL_GRADIENT,
    KERNEL_WEIGHT,
    NEAR_INTERFACE_ID,
    DataPackage,
    NearInterface,
)
from .field_builder import BuildReport, FieldBuilder
from .level_set import LevelSet
from .multilevel import MultilevelLevelSet
from .package_mesh import PackageMesh
from .protocol import TINY_GRADIENT, BaseLevelSet

__all__ = [
    # Field names
    "DISTANCE",
    "DISTANCE_GRADIENT",
    "KERNEL_GRADIENT",
    "KERNEL_WEIGHT",
    "NEAR_INTERFACE_ID",
    "TINY_GRADIENT",
    # Storage
    "DataPackage",
    "NearInterface",
    "PackageMesh",
    # Construction
    "BuildReport",
    "FieldBuilder",
    # Queries
    "BaseLevelSet",
    "LevelSet",
    "MultilevelLevelSet",
]
