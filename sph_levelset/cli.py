"""
Command-line interface for sph_levelset.

Builds level sets of primitive shapes, dumps their fields and probes points.
"""

from __future__ import annotations

import sys

import click
import numpy as np

from sph_levelset.config import LevelSetConfig, MultilevelConfig
from sph_levelset.geometry import Hyperrectangle, Hypersphere, LevelSet, MultilevelLevelSet
from sph_levelset.utils import LevelSetError, configure_logging
from sph_levelset.utils.sph_logging import configure_development_logging, configure_research_logging

SHAPES = ("circle", "sphere", "square", "cube")


def _make_geometry(shape: str, radius: float):
    if shape == "circle":
        return Hypersphere(center=[0.0, 0.0], radius=radius)
    if shape == "sphere":
        return Hypersphere(center=[0.0, 0.0, 0.0], radius=radius)
    dimension = 2 if shape == "square" else 3
    return Hyperrectangle(np.array([[-radius, radius]] * dimension))


def _build(shape: str, radius: float, spacing: float, levels: int, band: int):
    geometry = _make_geometry(shape, radius)
    bounds = geometry.get_bounding_box()
    template = LevelSetConfig(data_spacing=spacing, band_half_width=band)
    if levels == 1:
        return LevelSet(bounds, geometry, template)
    reference = spacing * 2 ** (levels - 1)
    config = MultilevelConfig(reference_spacing=reference, total_levels=levels, level_set=template)
    return MultilevelLevelSet(bounds, geometry, config)


def _configure_cli_logging(verbose: bool, log_dir: str | None, session_name: str) -> None:
    if log_dir:
        log_file = configure_research_logging(session_name, include_debug=verbose, log_dir=log_dir)
        click.echo(f"Logging to: {log_file}")
    elif verbose:
        configure_development_logging(include_location=False)
    else:
        configure_logging(level="WARNING")


def _shape_options(function):
    options = [
        click.option("--shape", type=click.Choice(SHAPES), default="circle", help="Primitive to build"),
        click.option("--radius", "-r", type=float, default=1.0, help="Radius or half edge length"),
        click.option("--spacing", "-h", type=float, default=0.02, help="Data spacing of the finest level"),
        click.option("--levels", "-l", type=int, default=1, help="Number of resolution levels"),
        click.option("--band", type=int, default=4, help="Band half width in samples"),
        click.option("--verbose", "-v", is_flag=True, help="Enable verbose output"),
        click.option(
            "--log-dir", type=click.Path(file_okay=False), default=None, help="Also write a session log file here"
        ),
    ]
    for option in reversed(options):
        function = option(function)
    return function


@click.group()
@click.version_option(package_name="sph-levelset", prog_name="sph-levelset")
def main():
    """
    sph-levelset: sparse multi-level level sets for SPH boundary handling.
    """


@main.command()
@_shape_options
@click.option(
    "--output", "-o", type=click.Path(), default=None, help="Field dump (.plt for Tecplot ASCII, .h5 for HDF5)"
)
def build(shape, radius, spacing, levels, band, verbose, log_dir, output):
    """
    Build a level set for a primitive shape and optionally dump it.

    Examples:
        sph-levelset build --shape circle -r 1.0 -h 0.02
        sph-levelset build --shape cube -h 0.05 -o cube.h5
    """
    _configure_cli_logging(verbose, log_dir, f"build {shape}")
    try:
        level_set = _build(shape, radius, spacing, levels, band)
    except (LevelSetError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    finest = level_set if isinstance(level_set, LevelSet) else level_set.finest
    click.echo(f"{level_set!r}")
    click.echo(f"Core packages: {finest.report.core_packages}/{finest.report.total_cells}")
    click.echo(f"Far field: inside {finest.far_inside_value:.6g}, outside {finest.far_outside_value:.6g}")
    click.echo(f"Build time: {finest.report.build_time:.3f}s")

    if output:
        if output.endswith((".h5", ".hdf5")):
            path = finest.save_hdf5(output)
        else:
            path = finest.write_mesh_field_to_plt(output)
        click.echo(f"Saved field dump to: {path}")


@main.command()
@_shape_options
@click.option("--point", "-p", "points", multiple=True, required=True, help="Comma separated coordinates")
@click.option("--h-ratio", type=float, default=None, help="Resolution ratio selecting the level")
def probe(shape, radius, spacing, levels, band, verbose, log_dir, points, h_ratio):
    """
    Probe distance, normal and kernel integral at points.

    Examples:
        sph-levelset probe -p 0,0 -p 1,0
        sph-levelset probe --shape sphere -h 0.05 -p 0.5,0,0
    """
    _configure_cli_logging(verbose, log_dir, f"probe {shape}")
    try:
        level_set = _build(shape, radius, spacing, levels, band)
        positions = np.array([[float(v) for v in point.split(",")] for point in points])
        distance = level_set.probe_signed_distance(positions, h_ratio)
        normal = level_set.probe_normal_direction(positions, h_ratio)
        weight = level_set.probe_kernel_integral(positions, h_ratio)
        within = level_set.probe_is_within_mesh_bound(positions)
    except (LevelSetError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for i, position in enumerate(positions):
        coordinates = ", ".join(f"{v:.6g}" for v in position)
        normal_text = ", ".join(f"{v:.4f}" for v in normal[i])
        click.echo(
            f"({coordinates}): distance={distance[i]:.6f} normal=({normal_text}) "
            f"kernel_integral={weight[i]:.4f} within_bounds={bool(within[i])}"
        )


if __name__ == "__main__":
    main()
