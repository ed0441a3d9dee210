"""
Fixtures for level-set component tests.

The planar mesh covers [-1.4, 1.4]^2 with 7 x 7 cells of 4 x 4 samples at
spacing 0.1, every cell owning a core package. Sample g sits at
-1.35 + 0.1 * g, so no sample lies on x = 0.
"""

import pytest

import numpy as np

from sph_levelset.geometry.level_set import DISTANCE, PackageMesh


def make_all_core_mesh(slope: float = 1.0) -> PackageMesh:
    """All-core mesh holding phi = slope * x, far field +/- 1."""
    mesh = PackageMesh(np.array([[-1.0, 1.0], [-1.0, 1.0]]), data_spacing=0.1, package_size=4, buffer_width=1)
    core = np.ones(tuple(mesh.n_cells), dtype=bool)
    mesh.allocate_core_packages(core, np.zeros_like(core))
    mesh.set_singular_values(1.0, -1.0)

    slots = mesh.core_slots
    positions = mesh.sample_positions(slots)
    phi = mesh.interior(DISTANCE)
    phi[slots] = (slope * positions[..., 0]).reshape(len(slots), 4, 4)
    mesh.sync_halo(DISTANCE)
    return mesh


@pytest.fixture
def plane_mesh():
    """phi = x on an all-core mesh."""
    return make_all_core_mesh()


@pytest.fixture
def steep_plane_mesh():
    """phi = 2x on an all-core mesh."""
    return make_all_core_mesh(slope=2.0)
