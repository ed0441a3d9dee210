"""
Unit tests for the sparse package mesh and data packages.
"""

import pytest

import numpy as np

from sph_levelset.geometry.level_set import (
    DISTANCE,
    DISTANCE_GRADIENT,
    KERNEL_WEIGHT,
    DataPackage,
    PackageMesh,
)
from sph_levelset.utils.exceptions import ConfigurationError

pytestmark = pytest.mark.unit


@pytest.fixture
def unit_box_mesh():
    """Mesh over [-1, 1]^2 at spacing 0.02 (no packages allocated)."""
    return PackageMesh(np.array([[-1.0, 1.0], [-1.0, 1.0]]), data_spacing=0.02)


@pytest.fixture
def small_mesh():
    """4 x 4 cells of 2 x 2 samples with two core cells and one far-inside cell."""
    mesh = PackageMesh(np.array([[0.0, 1.0], [0.0, 1.0]]), data_spacing=0.25, package_size=2, buffer_width=1)
    core = np.zeros((4, 4), dtype=bool)
    core[1, 1] = core[1, 2] = True
    inside = np.zeros((4, 4), dtype=bool)
    inside[2, 1] = True
    mesh.allocate_core_packages(core, inside)
    mesh.set_singular_values(5.0, -5.0)
    return mesh


class TestLayout:
    """Test the centred cell layout."""

    def test_cell_count_and_bounds(self, unit_box_mesh):
        np.testing.assert_array_equal(unit_box_mesh.n_cells, [29, 29])
        np.testing.assert_allclose(unit_box_mesh.lower_bound, [-1.16, -1.16])
        np.testing.assert_allclose(unit_box_mesh.upper_bound, [1.16, 1.16])
        assert unit_box_mesh.grid_spacing == pytest.approx(0.08)
        assert unit_box_mesh.total_cells == 29 * 29

    def test_cell_centred_on_box_midpoint(self, unit_box_mesh):
        centers = unit_box_mesh.cell_centers()
        assert centers.shape == (29, 29, 2)
        np.testing.assert_allclose(centers[14, 14], [0.0, 0.0], atol=1e-12)

    def test_no_packages_before_allocation(self, unit_box_mesh):
        assert unit_box_mesh.n_slots == 2
        assert unit_box_mesh.n_core_packages == 0
        assert np.all(unit_box_mesh.cell_slot == 0)

    def test_bounds_property(self, unit_box_mesh):
        bounds = unit_box_mesh.bounds
        assert bounds.shape == (2, 2)
        np.testing.assert_allclose(bounds[:, 0], unit_box_mesh.lower_bound)

    def test_three_dimensional_layout(self):
        mesh = PackageMesh(np.array([[-0.5, 0.5]] * 3), data_spacing=0.05)
        assert mesh.dimension == 3
        assert mesh.padded_shape == (6, 6, 6)
        assert mesh.fields.get(DISTANCE_GRADIENT).data.shape == (2, 6, 6, 6, 3)

    @pytest.mark.parametrize(
        ("bounds", "spacing", "package_size"),
        [
            ([[-1.0, 1.0], [-1.0, 1.0]], 0.0, 4),
            ([[-1.0, 1.0], [-1.0, 1.0]], 0.02, 1),
            ([[1.0, -1.0], [-1.0, 1.0]], 0.02, 4),
            ([[-1.0, 1.0]], 0.02, 4),
        ],
    )
    def test_invalid_parameters(self, bounds, spacing, package_size):
        with pytest.raises(ConfigurationError):
            PackageMesh(np.array(bounds), data_spacing=spacing, package_size=package_size)


class TestAllocation:
    """Test slot assignment."""

    def test_slots(self, small_mesh):
        assert small_mesh.n_slots == 4
        assert small_mesh.cell_slot[1, 1] == 2
        assert small_mesh.cell_slot[1, 2] == 3
        assert small_mesh.cell_slot[2, 1] == 1
        assert small_mesh.cell_slot[0, 0] == 0
        np.testing.assert_array_equal(small_mesh.core_slots, [2, 3])

    def test_fields_resized(self, small_mesh):
        assert small_mesh.fields.get(DISTANCE).data.shape == (4, 4, 4)
        assert small_mesh.fields.get(DISTANCE_GRADIENT).data.shape == (4, 4, 4, 2)

    def test_singular_values(self, small_mesh):
        distance = small_mesh.fields.get(DISTANCE).data
        weight = small_mesh.fields.get(KERNEL_WEIGHT).data
        assert np.all(distance[0] == 5.0)
        assert np.all(distance[1] == -5.0)
        assert np.all(weight[0] == 0.0)
        assert np.all(weight[1] == 1.0)

    def test_sample_positions(self, small_mesh):
        positions = small_mesh.sample_positions(np.array([2]))
        # Cell (1, 1) starts at -0.5 + 0.5 = 0.0
        np.testing.assert_allclose(positions[0], [[0.125, 0.125], [0.125, 0.375], [0.375, 0.125], [0.375, 0.375]])


class TestResolveAndHalo:
    """Test global addressing and ghost-halo synchronization."""

    def test_resolve_out_of_mesh(self, small_mesh):
        slot, _ = small_mesh.resolve(np.array([[-1, 0], [8, 3], [2, 2]]))
        np.testing.assert_array_equal(slot, [0, 0, 2])

    def test_resolve_local_index(self, small_mesh):
        slot, local = small_mesh.resolve(np.array([[3, 5]]))
        assert slot[0] == 3
        assert (local[0][0], local[1][0]) == (2, 2)

    def test_halo_matches_owner(self, small_mesh):
        mesh = small_mesh
        slots = mesh.core_slots
        global_index = mesh.sample_global_indices(slots)
        phi = mesh.interior(DISTANCE)
        phi[slots] = (100.0 * global_index[..., 0] + global_index[..., 1]).reshape(len(slots), 2, 2)
        mesh.sync_halo(DISTANCE)

        data = mesh.fields.get(DISTANCE).data
        for slot in slots:
            cell = mesh.core_cells[slot - 2]
            for padded in np.ndindex(4, 4):
                g = cell * 2 + np.array(padded) - 1
                owner = g // 2
                if np.any(owner < 0) or np.any(owner >= mesh.n_cells):
                    expected = 5.0
                elif mesh.cell_slot[tuple(owner)] >= 2:
                    expected = 100.0 * g[0] + g[1]
                else:
                    expected = 5.0 if mesh.cell_slot[tuple(owner)] == 0 else -5.0
                assert data[(slot, *padded)] == expected

    def test_extrapolated_halo_continues_linear_field(self, small_mesh):
        mesh = small_mesh
        slots = mesh.core_slots
        global_index = mesh.sample_global_indices(slots)
        phi = mesh.interior(DISTANCE)
        phi[slots] = (100.0 * global_index[..., 0] + global_index[..., 1]).reshape(len(slots), 2, 2)
        mesh.sync_halo(DISTANCE, extrapolate=True)

        data = mesh.fields.get(DISTANCE).data
        for slot in slots:
            cell = mesh.core_cells[slot - 2]
            for padded in np.ndindex(4, 4):
                g = cell * 2 + np.array(padded) - 1
                assert data[(slot, *padded)] == pytest.approx(100.0 * g[0] + g[1])

    def test_extrapolation_leaves_singular_packages(self, small_mesh):
        small_mesh.sync_halo(DISTANCE, extrapolate=True)
        distance = small_mesh.fields.get(DISTANCE).data
        assert np.all(distance[0] == 5.0)
        assert np.all(distance[1] == -5.0)

    def test_synchronized_returns_new_buffer(self, small_mesh):
        data = small_mesh.fields.get(DISTANCE).data
        before = data.copy()
        synced = small_mesh.synchronized(data)
        assert synced is not data
        np.testing.assert_array_equal(data, before)

    def test_lookup_beyond_mesh(self, small_mesh):
        values = small_mesh.lookup(DISTANCE, np.array([[-3, -3], [4, 2]]))
        np.testing.assert_array_equal(values, [5.0, -5.0])


class TestPointQueries:
    """Test containment and interpolation."""

    def test_half_open_bounds(self, unit_box_mesh):
        points = np.array([unit_box_mesh.lower_bound, unit_box_mesh.upper_bound, [0.0, 0.0], [0.0, 1.2]])
        np.testing.assert_array_equal(unit_box_mesh.is_within_mesh_bound(points), [True, False, True, False])

    def test_cell_index_clipped(self, unit_box_mesh):
        cells = unit_box_mesh.cell_index(np.array([[0.0, 0.0], [-5.0, 5.0]]))
        np.testing.assert_array_equal(cells, [[14, 14], [0, 28]])

    def test_is_within_core_package(self, small_mesh):
        points = np.array([[0.2, 0.2], [0.2, 0.7], [0.7, 0.2], [-0.4, -0.4], [3.0, 3.0]])
        np.testing.assert_array_equal(small_mesh.is_within_core_package(points), [True, True, False, False, False])

    def test_linear_field_reproduced(self, plane_mesh):
        rng = np.random.default_rng(7)
        points = rng.uniform(-1.35, 1.35, size=(50, 2))
        values = plane_mesh.interpolate(DISTANCE, points)
        np.testing.assert_allclose(values, points[:, 0], atol=1e-12)

    def test_interpolation_next_to_singular_cells(self, small_mesh):
        # Points within half a sample of a core cell's boundary with singular cells
        slots = small_mesh.core_slots
        positions = small_mesh.sample_positions(slots)
        phi = small_mesh.interior(DISTANCE)
        phi[slots] = (positions[..., 0] + 2.0 * positions[..., 1]).reshape(len(slots), 2, 2)
        small_mesh.sync_halo(DISTANCE, extrapolate=True)

        points = np.array([[0.05, 0.25], [0.25, 0.95], [0.45, 0.02], [0.02, 0.98]])
        assert np.all(small_mesh.is_within_core_package(points))
        values = small_mesh.interpolate(DISTANCE, points)
        np.testing.assert_allclose(values, points[:, 0] + 2.0 * points[:, 1], atol=1e-12)

    def test_vector_field_interpolation(self, plane_mesh):
        slots = plane_mesh.core_slots
        gradient = plane_mesh.interior(DISTANCE_GRADIENT)
        gradient[slots] = plane_mesh.sample_positions(slots).reshape(len(slots), 4, 4, 2)
        plane_mesh.sync_halo(DISTANCE_GRADIENT)

        points = np.array([[0.1, -0.3], [-1.0, 0.77]])
        np.testing.assert_allclose(plane_mesh.interpolate(DISTANCE_GRADIENT, points), points, atol=1e-12)

    def test_repr(self, unit_box_mesh):
        assert "cells=(29, 29)" in repr(unit_box_mesh)


class TestDataPackage:
    """Test package views."""

    def test_core_package_view(self, small_mesh):
        package = small_mesh.package((1, 1))
        assert isinstance(package, DataPackage)
        assert package.is_core
        assert package.interior(DISTANCE).shape == (2, 2)
        assert package.field(DISTANCE).shape == (4, 4)

    def test_write_and_read(self, small_mesh):
        package = small_mesh.package((1, 2))
        package[DISTANCE, (1, 0)] = 0.25
        assert package[DISTANCE, (1, 0)] == 0.25
        assert small_mesh.fields.get(DISTANCE).data[3, 2, 1] == 0.25

    def test_singular_package_read_only(self, small_mesh):
        package = small_mesh.package((2, 1))
        assert package.is_singular
        assert package[DISTANCE, (0, 0)] == -5.0
        with pytest.raises(ValueError, match="read-only"):
            package[DISTANCE, (0, 0)] = 1.0

    def test_singular_package_lookup(self, small_mesh):
        assert small_mesh.singular_package(inside=True).slot == 1
        assert small_mesh.singular_package(inside=False).slot == 0
        assert "far_inside" in repr(small_mesh.singular_package(inside=True))
