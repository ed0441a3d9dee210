"""SPH smoothing kernels used for boundary-corrected kernel integrals."""

from .smoothing_kernels import BaseKernel, CubicSplineKernel, KernelType, WendlandC2Kernel, create_kernel

__all__ = [
    "BaseKernel",
    "CubicSplineKernel",
    "KernelType",
    "WendlandC2Kernel",
    "create_kernel",
]
