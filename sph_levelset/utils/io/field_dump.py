"""
Field dumps of package meshes for external visualization.

Two formats:
- Tecplot ASCII (.plt): one POINT zone per core package with sample
  coordinates, distance, classification and kernel fields; readable by
  Tecplot and ParaView
- HDF5 (.h5): the raw package arrays plus the cell -> slot table, enough
  to rebuild probes offline

Examples:
    >>> from sph_levelset.utils.io import write_mesh_field_to_plt, save_mesh_field_hdf5
    >>> write_mesh_field_to_plt(level_set.mesh, "circle.plt")
    >>> save_mesh_field_hdf5(level_set.mesh, "circle.h5")
    >>> fields = load_mesh_field_hdf5("circle.h5")
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import h5py
import numpy as np

from sph_levelset.geometry.level_set.data_package import (
    DISTANCE,
    DISTANCE_GRADIENT,
    FIRST_CORE_SLOT,
    KERNEL_GRADIENT,
    KERNEL_WEIGHT,
    NEAR_INTERFACE_ID,
    local_sample_indices,
)
from sph_levelset.utils.sph_logging import get_logger

if TYPE_CHECKING:
    from sph_levelset.geometry.level_set.package_mesh import PackageMesh

logger = get_logger(__name__)

_AXES = ("x", "y", "z")
_SCALAR_FIELDS = (DISTANCE, NEAR_INTERFACE_ID, KERNEL_WEIGHT)
_VECTOR_FIELDS = (DISTANCE_GRADIENT, KERNEL_GRADIENT)


def _variable_names(dimension: int) -> list[str]:
    names = list(_AXES[:dimension]) + list(_SCALAR_FIELDS)
    for field in _VECTOR_FIELDS:
        names += [f"{field}_{axis}" for axis in _AXES[:dimension]]
    return names


def write_mesh_field_to_plt(mesh: PackageMesh, filename: str | Path) -> Path:
    """
    Write the interior samples of every core package as Tecplot ASCII zones.

    The far-field values are recorded as dataset auxiliary data.

    Args:
        mesh: Built package mesh
        filename: Output path

    Returns:
        The written path
    """
    filepath = Path(filename)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    d = mesh.dimension
    p = mesh.package_size
    slots = mesh.core_slots
    positions = mesh.sample_positions(slots)
    n_samples = positions.shape[1]

    columns = [positions[..., k] for k in range(d)]
    for name in _SCALAR_FIELDS:
        columns.append(mesh.interior(name)[slots].reshape(len(slots), n_samples).astype(float))
    for name in _VECTOR_FIELDS:
        values = mesh.interior(name)[slots].reshape(len(slots), n_samples, d)
        columns += [values[..., k] for k in range(d)]
    table = np.stack(columns, axis=-1)

    # Tecplot expects the I index to vary fastest
    local = local_sample_indices(p, d)
    order = np.lexsort(tuple(local[:, k] for k in range(d)))

    with filepath.open("w") as f:
        f.write('TITLE = "sph_levelset mesh field"\n')
        f.write("VARIABLES = " + ", ".join(f'"{name}"' for name in _variable_names(d)) + "\n")
        f.write(f'DATASETAUXDATA far_inside_value = "{mesh.far_inside_value:.10g}"\n')
        f.write(f'DATASETAUXDATA far_outside_value = "{mesh.far_outside_value:.10g}"\n')
        f.write(f'DATASETAUXDATA data_spacing = "{mesh.data_spacing:.10g}"\n')

        sizes = ", ".join(f"{index}={p}" for index in ("I", "J", "K")[:d])
        for row, cell in enumerate(mesh.core_cells):
            label = ",".join(str(int(c)) for c in cell)
            f.write(f'ZONE T="package ({label})", {sizes}, DATAPACKING=POINT\n')
            np.savetxt(f, table[row, order], fmt="%.10g")

    logger.info(f"Wrote {len(slots)} packages to {filepath}")
    return filepath


def save_mesh_field_hdf5(
    mesh: PackageMesh,
    filename: str | Path,
    *,
    compression: str | None = "gzip",
    compression_opts: int | None = 4,
    metadata: dict[str, Any] | None = None,
) -> Path:
    """
    Save the package arrays of a mesh to HDF5.

    Layout:
        /mesh      attrs: lower_bound, upper_bound, data_spacing, package_size,
                   far_inside_value, far_outside_value; datasets: cell_slot, core_cells
        /fields    one dataset per field, core slots only, halo included
        /metadata  user metadata as attributes

    Args:
        mesh: Built package mesh
        filename: Output path
        compression: h5py compression filter (None to disable)
        compression_opts: Compression level
        metadata: Extra scalar metadata
    """
    filepath = Path(filename)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    if compression is None:
        compression_opts = None

    with h5py.File(filepath, "w") as f:
        mesh_group = f.create_group("mesh")
        mesh_group.attrs["lower_bound"] = mesh.lower_bound
        mesh_group.attrs["upper_bound"] = mesh.upper_bound
        mesh_group.attrs["data_spacing"] = mesh.data_spacing
        mesh_group.attrs["package_size"] = mesh.package_size
        mesh_group.attrs["far_inside_value"] = mesh.far_inside_value
        mesh_group.attrs["far_outside_value"] = mesh.far_outside_value
        mesh_group.create_dataset("cell_slot", data=mesh.cell_slot)
        mesh_group.create_dataset("core_cells", data=mesh.core_cells)

        fields = f.create_group("fields")
        for name in mesh.fields.names():
            fields.create_dataset(
                name,
                data=mesh.fields.get(name).data[FIRST_CORE_SLOT:],
                compression=compression if mesh.n_core_packages else None,
                compression_opts=compression_opts if mesh.n_core_packages else None,
            )

        meta_group = f.create_group("metadata")
        for key, value in (metadata or {}).items():
            meta_group.attrs[key] = value if isinstance(value, (str, int, float, bool)) else str(value)

        f.attrs["format_version"] = "1.0"
        f.attrs["package"] = "sph_levelset"

    logger.info(f"Saved {mesh.n_core_packages} packages to {filepath}")
    return filepath


def load_mesh_field_hdf5(filename: str | Path) -> dict[str, Any]:
    """
    Load a dump written by save_mesh_field_hdf5.

    Returns:
        Dictionary with the mesh attributes, 'cell_slot', 'core_cells',
        'fields' (name -> array) and 'metadata'
    """
    filepath = Path(filename)
    if not filepath.exists():
        raise FileNotFoundError(f"Field dump not found: {filepath}")

    with h5py.File(filepath, "r") as f:
        mesh_group = f["mesh"]
        result: dict[str, Any] = {key: mesh_group.attrs[key] for key in mesh_group.attrs}
        result["cell_slot"] = mesh_group["cell_slot"][()]
        result["core_cells"] = mesh_group["core_cells"][()]
        result["fields"] = {name: f["fields"][name][()] for name in f["fields"]}
        result["metadata"] = dict(f["metadata"].attrs)

    return result
