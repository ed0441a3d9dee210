"""
End-to-end checks on the unit circle at spacing 0.02 with a 4-sample band.
"""

import pytest

import numpy as np

from sph_levelset.geometry.level_set import DISTANCE

pytestmark = pytest.mark.integration


class TestUnitCircle:
    """Reference values of the unit-circle build."""

    def test_center_distance(self, circle_level_set):
        assert circle_level_set.probe_signed_distance([0.0, 0.0]) == pytest.approx(-1.0, abs=0.05)

    def test_far_outside_sentinel(self, circle_level_set):
        assert circle_level_set.probe_signed_distance([2.0, 0.0]) == circle_level_set.far_outside_value

    def test_normal_on_interface(self, circle_level_set):
        normal = circle_level_set.probe_normal_direction([1.0, 0.0])
        np.testing.assert_allclose(normal, [1.0, 0.0], atol=0.1)

    def test_kernel_integral_at_center(self, circle_level_set):
        assert circle_level_set.probe_kernel_integral([0.0, 0.0]) == pytest.approx(1.0, abs=0.05)


class TestFieldQuality:
    """Accuracy of the stored fields."""

    def test_seed_accuracy_near_interface(self, circle_level_set, unit_circle, circle_ring_points):
        probed = circle_level_set.probe_signed_distance(circle_ring_points)
        exact = unit_circle.signed_distance(circle_ring_points)
        np.testing.assert_allclose(probed, exact, atol=circle_level_set.data_spacing)

    def test_gradient_norm_in_band(self, circle_level_set):
        angles = np.linspace(0.0, 2.0 * np.pi, 73)[:-1]
        points = np.vstack(
            [r * np.column_stack([np.cos(angles), np.sin(angles)]) for r in (0.96, 0.98, 1.0, 1.02, 1.04)]
        )
        norms = np.linalg.norm(circle_level_set.probe_level_set_gradient(points), axis=1)
        assert np.max(np.abs(norms - 1.0)) < 0.05

    def test_normals_point_outward(self, circle_level_set, circle_ring_points):
        normals = circle_level_set.probe_normal_direction(circle_ring_points)
        radial = circle_ring_points / np.linalg.norm(circle_ring_points, axis=1, keepdims=True)
        np.testing.assert_allclose(np.sum(normals * radial, axis=1), 1.0, atol=0.01)

    def test_sign_matches_inside_test(self, circle_level_set, unit_circle):
        mesh = circle_level_set.mesh
        slots = mesh.core_slots
        positions = mesh.sample_positions(slots).reshape(-1, 2)
        phi = mesh.interior(DISTANCE)[slots].reshape(-1)
        exact = unit_circle.signed_distance(positions)

        resolved = np.abs(exact) > 1e-12
        np.testing.assert_array_equal((phi < 0)[resolved], unit_circle.contains(positions)[resolved])

    def test_singular_cells_match_inside_test(self, circle_level_set, unit_circle):
        mesh = circle_level_set.mesh
        centers = mesh.cell_centers()
        singular = mesh.cell_slot < 2
        inside = unit_circle.contains(centers[singular])
        np.testing.assert_array_equal(mesh.cell_slot[singular] == 1, inside)


class TestKernelIntegrals:
    """Boundary-corrected kernel fields near the interface."""

    def test_half_support_on_interface(self, circle_level_set):
        weights = circle_level_set.probe_kernel_integral(np.array([[1.0, 0.0], [0.0, -1.0], [0.6, 0.8]]))
        np.testing.assert_allclose(weights, 0.5, atol=0.1)

    def test_weight_bounds(self, circle_level_set, circle_ring_points):
        weights = circle_level_set.probe_kernel_integral(circle_ring_points)
        assert np.all(weights >= 0.0)
        assert np.all(weights <= 1.0 + 1e-9)

    def test_gradient_points_inward(self, circle_level_set):
        points = np.array([[1.0, 0.0], [0.0, 1.0], [-0.6, -0.8]])
        gradients = circle_level_set.probe_kernel_gradient_integral(points)
        normals = circle_level_set.probe_normal_direction(points)
        assert np.all(np.sum(gradients * normals, axis=1) < 0.0)

    def test_far_outside_weight(self, circle_level_set):
        assert circle_level_set.probe_kernel_integral([1.15, 0.0]) == pytest.approx(0.0)


class TestBoundsConvention:
    """Half-open bounding-box convention."""

    def test_corners(self, circle_level_set):
        lower = circle_level_set.mesh.lower_bound
        upper = circle_level_set.mesh.upper_bound
        assert circle_level_set.probe_is_within_mesh_bound(lower)
        assert not circle_level_set.probe_is_within_mesh_bound(upper)
        assert not circle_level_set.probe_is_within_mesh_bound(np.array([lower[0], upper[1]]))

    def test_probes_at_corners(self, circle_level_set):
        lower = circle_level_set.mesh.lower_bound
        upper = circle_level_set.mesh.upper_bound
        assert np.isfinite(circle_level_set.probe_signed_distance(lower))
        assert circle_level_set.probe_signed_distance(upper) == circle_level_set.far_outside_value


def core_edge_points(mesh):
    """Points a quarter sample inside core cells, next to each face shared with a singular cell."""
    dx = mesh.data_spacing
    points = []
    for cell in mesh.core_cells:
        center = mesh.lower_bound + (cell + 0.5) * mesh.grid_spacing
        for axis in range(mesh.dimension):
            for step, inset in ((-1, 0.25 * dx), (1, -0.25 * dx)):
                neighbour = cell.copy()
                neighbour[axis] += step
                if neighbour[axis] < 0 or neighbour[axis] >= mesh.n_cells[axis]:
                    continue
                if mesh.cell_slot[tuple(neighbour)] >= 2:
                    continue
                point = center.copy()
                face = cell[axis] + (1 if step == 1 else 0)
                point[axis] = mesh.lower_bound[axis] + face * mesh.grid_spacing + inset
                points.append(point)
    return np.array(points)


class TestCorePackageEdges:
    """Queries across whole core packages, including the faces shared with singular cells."""

    def test_distance_at_package_edges(self, circle_level_set, unit_circle):
        points = core_edge_points(circle_level_set.mesh)
        assert len(points) > 0
        assert np.all(circle_level_set.is_within_core_package(points))

        values = circle_level_set.probe_signed_distance(points)
        exact = unit_circle.signed_distance(points)
        np.testing.assert_allclose(values, exact, atol=0.25 * circle_level_set.data_spacing)

    def test_gradient_norm_at_samples(self, circle_level_set):
        mesh = circle_level_set.mesh
        samples = mesh.sample_positions(mesh.core_slots).reshape(-1, 2)
        norms = np.linalg.norm(circle_level_set.probe_level_set_gradient(samples), axis=1)
        assert np.max(np.abs(norms - 1.0)) < 0.1

    def test_gradient_norm_at_package_edges(self, circle_level_set):
        points = core_edge_points(circle_level_set.mesh)
        norms = np.linalg.norm(circle_level_set.probe_level_set_gradient(points), axis=1)
        assert np.max(np.abs(norms - 1.0)) < 0.1


class TestSeedBandCoverage:
    """The mesh padding keeps the whole seeded band."""

    def test_band_outside_the_bounding_box(self, circle_level_set, unit_circle):
        # Cut cells reach past the box; the band extends seed_half_width cells beyond them
        config = circle_level_set.config
        reach = config.seed_half_width * config.grid_spacing
        angles = np.linspace(0.0, 2.0 * np.pi, 9)[:-1]
        directions = np.column_stack([np.cos(angles), np.sin(angles)])
        points = np.vstack([(1.0 + t) * directions for t in np.linspace(0.0, reach, 9)])

        assert np.all(circle_level_set.probe_is_within_mesh_bound(points))
        assert np.all(circle_level_set.is_within_core_package(points))
        values = circle_level_set.probe_signed_distance(points)
        np.testing.assert_allclose(values, unit_circle.signed_distance(points), atol=circle_level_set.data_spacing)

    def test_point_beyond_box_edge(self, circle_level_set):
        assert circle_level_set.probe_signed_distance([1.16, 0.0]) == pytest.approx(0.16, abs=0.02)
