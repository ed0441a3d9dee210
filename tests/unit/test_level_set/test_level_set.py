"""
Unit tests for the single-resolution level set facade.
"""

import pytest

import numpy as np

from sph_levelset.config import LevelSetConfig
from sph_levelset.geometry import Hypersphere, LevelSet
from sph_levelset.geometry.level_set import BaseLevelSet, BuildReport
from sph_levelset.kernels import CubicSplineKernel
from sph_levelset.utils.exceptions import ConfigurationError, DimensionMismatchError

pytestmark = pytest.mark.unit


class TestConstruction:
    """Test construction and validation."""

    def test_report(self, circle_level_set):
        # The circle centre is far from the interface, so singular cells remain
        report = circle_level_set.report
        assert isinstance(report, BuildReport)
        assert 0 < report.core_packages < report.total_cells
        assert report.inconsistent_cells == 0
        assert report.diffusion_flips == 0
        assert report.integrated_samples > 0
        assert report.build_time >= 0.0

    def test_is_query_facade(self, coarse_circle_level_set):
        assert isinstance(coarse_circle_level_set, BaseLevelSet)
        assert coarse_circle_level_set.dimension == 2
        assert coarse_circle_level_set.data_spacing == pytest.approx(0.05)

    def test_far_field_values(self, circle_level_set):
        # An odd cell count puts a cell centre on the circle centre
        assert circle_level_set.far_inside_value == pytest.approx(-1.0)
        assert circle_level_set.far_outside_value > 0.5

    def test_explicit_far_field_distance(self, unit_circle):
        config = LevelSetConfig(data_spacing=0.05, seed_half_width=1, far_field_distance=3.0)
        level_set = LevelSet(unit_circle.get_bounding_box(), unit_circle, config)
        assert level_set.far_outside_value == 3.0
        assert level_set.far_inside_value == -3.0
        assert level_set.probe_signed_distance([0.0, 0.0]) == pytest.approx(-3.0)
        assert level_set.probe_signed_distance([-1.35, -1.35]) == pytest.approx(3.0)

    def test_custom_kernel(self, unit_circle):
        kernel = CubicSplineKernel(dimension=2, smoothing_length=0.065)
        level_set = LevelSet(unit_circle.get_bounding_box(), unit_circle, LevelSetConfig(data_spacing=0.05), kernel)
        assert level_set.kernel is kernel

    def test_geometry_without_protocol_rejected(self):
        with pytest.raises(ConfigurationError, match="geometry"):
            LevelSet(np.array([[-1.0, 1.0], [-1.0, 1.0]]), object(), LevelSetConfig(data_spacing=0.05))

    def test_dimension_mismatch_rejected(self, unit_circle):
        with pytest.raises(DimensionMismatchError):
            LevelSet(np.array([[-1.0, 1.0]] * 3), unit_circle, LevelSetConfig(data_spacing=0.1))

    def test_invalid_bounds_rejected(self, unit_circle):
        with pytest.raises(ConfigurationError):
            LevelSet(np.array([[1.0, -1.0], [-1.0, 1.0]]), unit_circle, LevelSetConfig(data_spacing=0.05))

    def test_no_interface_gives_uniform_far_field(self):
        circle = Hypersphere(center=[5.0, 5.0], radius=0.5)
        level_set = LevelSet(np.array([[-1.0, 1.0], [-1.0, 1.0]]), circle, LevelSetConfig(data_spacing=0.1))
        assert level_set.report.core_packages == 0
        assert level_set.probe_signed_distance([0.0, 0.0]) == pytest.approx(level_set.far_outside_value)
        assert level_set.probe_kernel_integral([0.0, 0.0]) == 0.0


class TestProbeShapes:
    """Test single and batch probe signatures."""

    def test_single_point_scalars(self, coarse_circle_level_set):
        assert isinstance(coarse_circle_level_set.probe_signed_distance([0.5, 0.0]), float)
        assert isinstance(coarse_circle_level_set.probe_kernel_integral(np.array([0.5, 0.0])), float)
        assert isinstance(coarse_circle_level_set.probe_is_within_mesh_bound([0.5, 0.0]), bool)
        assert isinstance(coarse_circle_level_set.is_within_core_package([0.5, 0.0]), bool)

    def test_single_point_vectors(self, coarse_circle_level_set):
        assert coarse_circle_level_set.probe_level_set_gradient([1.0, 0.0]).shape == (2,)
        assert coarse_circle_level_set.probe_kernel_gradient_integral([1.0, 0.0]).shape == (2,)
        assert coarse_circle_level_set.probe_normal_direction([1.0, 0.0]).shape == (2,)

    def test_batch(self, coarse_circle_level_set):
        points = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.1], [3.0, 3.0]])
        assert coarse_circle_level_set.probe_signed_distance(points).shape == (4,)
        assert coarse_circle_level_set.probe_kernel_integral(points).shape == (4,)
        assert coarse_circle_level_set.probe_level_set_gradient(points).shape == (4, 2)
        assert coarse_circle_level_set.probe_normal_direction(points).shape == (4, 2)
        assert coarse_circle_level_set.probe_is_within_mesh_bound(points).shape == (4,)

    def test_wrong_dimension(self, coarse_circle_level_set):
        with pytest.raises(DimensionMismatchError):
            coarse_circle_level_set.probe_signed_distance([0.0, 0.0, 0.0])
        with pytest.raises(DimensionMismatchError):
            coarse_circle_level_set.probe_normal_direction(np.zeros((3, 3)))

    def test_h_ratio_ignored_by_single_level(self, coarse_circle_level_set):
        point = np.array([0.97, 0.1])
        level_set = coarse_circle_level_set
        assert level_set.probe_signed_distance(point, 4.0) == level_set.probe_signed_distance(point)


class TestProbeValues:
    """Test probe values on the coarse circle."""

    def test_outside_mesh(self, coarse_circle_level_set):
        point = np.array([2.5, 0.0])
        assert not coarse_circle_level_set.probe_is_within_mesh_bound(point)
        assert coarse_circle_level_set.probe_signed_distance(point) == coarse_circle_level_set.far_outside_value
        assert coarse_circle_level_set.probe_kernel_integral(point) == 0.0
        np.testing.assert_array_equal(coarse_circle_level_set.probe_level_set_gradient(point), [0.0, 0.0])
        np.testing.assert_array_equal(coarse_circle_level_set.probe_normal_direction(point), [0.0, 0.0])

    def test_far_inside_cell(self, circle_level_set):
        assert circle_level_set.probe_signed_distance([0.0, 0.0]) == -1.0
        assert circle_level_set.probe_kernel_integral([0.0, 0.0]) == 1.0
        assert not circle_level_set.is_within_core_package([0.0, 0.0])

    def test_core_package_at_interface(self, coarse_circle_level_set):
        assert coarse_circle_level_set.is_within_core_package([1.0, 0.0])
        assert coarse_circle_level_set.probe_signed_distance([1.0, 0.0]) == pytest.approx(0.0, abs=0.02)

    def test_normal_is_unit_and_outward(self, coarse_circle_level_set):
        normal = coarse_circle_level_set.probe_normal_direction([0.0, 1.0])
        assert np.linalg.norm(normal) == pytest.approx(1.0)
        np.testing.assert_allclose(normal, [0.0, 1.0], atol=0.05)

    def test_repr(self, coarse_circle_level_set):
        assert repr(coarse_circle_level_set).startswith("LevelSet(dimension=2")
