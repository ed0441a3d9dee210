"""
sph_levelset: sparse multi-level level sets for SPH boundary handling.

Signed distance, surface normal and boundary-corrected kernel integrals of a
solid geometry, stored in packages near the interface and queried at
arbitrary points.

Example:
    >>> from sph_levelset import Hypersphere, LevelSet, LevelSetConfig
    >>> circle = Hypersphere(center=[0.0, 0.0], radius=1.0)
    >>> level_set = LevelSet(circle.get_bounding_box(), circle, LevelSetConfig(data_spacing=0.02))
    >>> level_set.probe_signed_distance([0.0, 0.0])
    -1.0
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sph-levelset")  # Matches the name in pyproject.toml
except PackageNotFoundError:
    # package is not installed
    __version__ = "0.0.0-dev"

from .config import (  # noqa: E402
    ExecutionConfig,
    KernelConfig,
    LevelSetConfig,
    LoggingConfig,
    MultilevelConfig,
    create_accurate_config,
    create_fast_config,
)
from .geometry import (  # noqa: E402
    BaseLevelSet,
    ComplementDomain,
    DifferenceDomain,
    GeometrySource,
    Hyperrectangle,
    Hypersphere,
    ImplicitDomain,
    IntersectionDomain,
    LevelSet,
    MultilevelLevelSet,
    NearInterface,
    PackageMesh,
    UnionDomain,
)
from .kernels import CubicSplineKernel, WendlandC2Kernel, create_kernel  # noqa: E402
from .utils import (  # noqa: E402
    ConfigurationError,
    DimensionMismatchError,
    ExecutionPolicy,
    GeometryQualityWarning,
    LevelSetError,
    configure_logging,
    get_logger,
)

__all__ = [
    "__version__",
    # Configuration
    "ExecutionConfig",
    "KernelConfig",
    "LevelSetConfig",
    "LoggingConfig",
    "MultilevelConfig",
    "create_accurate_config",
    "create_fast_config",
    # Geometry
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
    # Kernels
    "CubicSplineKernel",
    "WendlandC2Kernel",
    "create_kernel",
    # Utilities
    "ConfigurationError",
    "DimensionMismatchError",
    "ExecutionPolicy",
    "GeometryQualityWarning",
    "LevelSetError",
    "configure_logging",
    "get_logger",
]
