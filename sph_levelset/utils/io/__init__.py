"""
I/O utilities for level-set field dumps.

- Tecplot ASCII: human-inspectable zones per core package
- HDF5: raw package arrays for offline analysis
"""

from __future__ import annotations

from .field_dump import load_mesh_field_hdf5, save_mesh_field_hdf5, write_mesh_field_to_plt

__all__ = [
    "load_mesh_field_hdf5",
    "save_mesh_field_hdf5",
    "write_mesh_field_to_plt",
]
