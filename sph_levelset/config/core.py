"""
Level-set configuration classes.

Configurations specify HOW a level set is discretized and maintained
(spacing, band sizing, sweep counts, kernel, execution policy), not WHAT
geometry it represents - that is the GeometrySource passed at construction.

Band half-width and reinitialization sweep count are empirically tuned
constants; they stay configurable rather than derived.
"""

from __future__ import annotations

import math
from typing import Literal, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sph_levelset.utils.parallel import ExecutionPolicy

# Pseudo-time step bound for reinitialization, as a fraction of data spacing
MAX_REINITIALIZATION_CFL = 0.1


class LoggingConfig(BaseModel):
    """
    Configuration for logging during construction and maintenance.

    Attributes
    ----------
    log_sweeps : bool
        Emit a DEBUG record per sweep (default: False)
    """

    log_sweeps: bool = False


class ExecutionConfig(BaseModel):
    """
    Configuration for per-package work dispatch.

    Attributes
    ----------
    policy : ExecutionPolicy
        SEQUENTIAL or PARALLEL (default: SEQUENTIAL)
    max_workers : int | None
        Thread count for PARALLEL (default: CPU count)
    """

    policy: ExecutionPolicy = ExecutionPolicy.SEQUENTIAL
    max_workers: int | None = Field(None, ge=1, le=256)


class KernelConfig(BaseModel):
    """
    SPH smoothing kernel used for the kernel-integral correction fields.

    Attributes
    ----------
    kernel_type : Literal["wendland_c2", "cubic_spline"]
        Kernel family (default: wendland_c2)
    smoothing_length_ratio : float
        Smoothing length h as a multiple of the level's data spacing (default: 1.3)
    """

    kernel_type: Literal["wendland_c2", "cubic_spline"] = "wendland_c2"
    smoothing_length_ratio: float = Field(1.3, gt=0.0, le=4.0)


class LevelSetConfig(BaseModel):
    """
    Discretization and maintenance parameters of a single-resolution level set.

    Attributes
    ----------
    data_spacing : float
        Distance between samples (must be positive)
    package_size : int
        Samples per axis in one data package (default: 4)
    seed_half_width : int
        Cells kept as real packages on each side of a sign change (default: 4)
    band_half_width : int
        Reinitialization region |phi| <= band_half_width * data_spacing (default: 4)
    buffer_width : int
        Minimum cells added around the tentative bounds on every side (default: 2);
        see mesh_buffer_width
    cfl : float
        Pseudo-time step as fraction of data spacing, at most 0.1 (default: 0.1)
    reinitialization_sweeps : int | None
        Fixed sweep count; None derives ceil(band_half_width / cfl)
    max_diffusion_sweeps : int
        Safety cap for sign diffusion; the fixed point is reached far earlier
    far_field_distance : float | None
        Magnitude of the singular far-field value; None uses the extreme
        seeded cell-centre distance on each side of the interface
    """

    model_config = ConfigDict(validate_assignment=True)

    data_spacing: float = Field(..., gt=0.0, description="Distance between samples")
    package_size: int = Field(4, ge=2, le=16)
    seed_half_width: int = Field(4, ge=1, le=64)
    band_half_width: int = Field(4, ge=1, le=64)
    buffer_width: int = Field(2, ge=1, le=64)
    cfl: float = Field(MAX_REINITIALIZATION_CFL, gt=0.0)
    reinitialization_sweeps: int | None = Field(None, ge=0, le=10000)
    max_diffusion_sweeps: int = Field(1000, ge=1)
    far_field_distance: float | None = Field(None, gt=0.0)
    kernel: KernelConfig = Field(default_factory=KernelConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("cfl")
    @classmethod
    def validate_cfl(cls, v: float) -> float:
        """Reinitialization is only stable for pseudo-time steps up to 0.1 * spacing."""
        if v > MAX_REINITIALIZATION_CFL:
            raise ValueError(f"cfl must be <= {MAX_REINITIALIZATION_CFL} for reinitialization, got {v}")
        return v

    @property
    def grid_spacing(self) -> float:
        """Width of one package cell."""
        return self.package_size * self.data_spacing

    @property
    def mesh_buffer_width(self) -> int:
        """
        Buffer cells actually laid out around the tentative bounds.

        Cells within half a cell diagonal of the zero level may sit one cell
        outside the bounds, and the seed band extends seed_half_width cells
        beyond them, so the buffer never drops below seed_half_width + 1.
        """
        return max(self.buffer_width, self.seed_half_width + 1)

    @property
    def effective_reinitialization_sweeps(self) -> int:
        """Sweep count actually used by reinitialization."""
        if self.reinitialization_sweeps is not None:
            return self.reinitialization_sweeps
        return math.ceil(self.band_half_width / self.cfl - 1e-9)

    def for_spacing(self, data_spacing: float) -> LevelSetConfig:
        """Copy of this configuration at another data spacing."""
        return self.model_copy(update={"data_spacing": data_spacing})


class MultilevelConfig(BaseModel):
    """
    Resolution-adaptation policy of a multilevel level set.

    Level 0 uses reference_spacing; level i uses reference_spacing / 2**i.

    Attributes
    ----------
    reference_spacing : float
        Data spacing of the coarsest level
    total_levels : int
        Number of levels (default: 1)
    level_set : LevelSetConfig | None
        Template for per-level parameters; data_spacing is overridden per level
    """

    reference_spacing: float = Field(..., gt=0.0)
    total_levels: int = Field(1, ge=1, le=8)
    level_set: LevelSetConfig | None = None

    @model_validator(mode="after")
    def fill_level_template(self) -> MultilevelConfig:
        """Default the per-level template to the reference spacing."""
        if self.level_set is None:
            self.level_set = LevelSetConfig(data_spacing=self.reference_spacing)
        return self

    def level_spacing(self, level: int) -> float:
        """Data spacing of the given level."""
        return self.reference_spacing / (2**level)

    def level_config(self, level: int) -> LevelSetConfig:
        """Full configuration of the given level."""
        template = cast("LevelSetConfig", self.level_set)
        return template.for_spacing(self.level_spacing(level))


def create_fast_config(data_spacing: float) -> LevelSetConfig:
    """Narrow seed band and few sweeps for quick previews."""
    return LevelSetConfig(
        data_spacing=data_spacing,
        seed_half_width=2,
        band_half_width=3,
        reinitialization_sweeps=10,
    )


def create_accurate_config(data_spacing: float) -> LevelSetConfig:
    """Wide seed band and a derived sweep count tied to the band width."""
    return LevelSetConfig(
        data_spacing=data_spacing,
        seed_half_width=6,
        band_half_width=6,
        cfl=0.05,
    )
