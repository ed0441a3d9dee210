"""
Three-dimensional build: sphere of radius 0.5 at spacing 0.05.
"""

import pytest

import numpy as np

from sph_levelset.config import LevelSetConfig
from sph_levelset.geometry import Hypersphere, LevelSet

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def sphere_level_set():
    sphere = Hypersphere(center=[0.0, 0.0, 0.0], radius=0.5)
    config = LevelSetConfig(data_spacing=0.05, seed_half_width=2)
    return LevelSet(sphere.get_bounding_box(), sphere, config)


class TestSphere3D:
    """Probes of the 3D sphere."""

    def test_3d_center_distance(self, sphere_level_set):
        assert sphere_level_set.probe_signed_distance([0.0, 0.0, 0.0]) == pytest.approx(-0.5, abs=0.05)
        assert sphere_level_set.probe_kernel_integral([0.0, 0.0, 0.0]) == pytest.approx(1.0, abs=0.05)

    def test_3d_surface_distance(self, sphere_level_set, small_sphere):
        directions = np.array([[1, 0, 0], [0, -1, 0], [0, 0, 1], [1, 1, 1], [-1, 1, -1]], dtype=float)
        points = 0.5 * directions / np.linalg.norm(directions, axis=1, keepdims=True)
        probed = sphere_level_set.probe_signed_distance(points)
        np.testing.assert_allclose(probed, small_sphere.signed_distance(points), atol=sphere_level_set.data_spacing)

    def test_3d_normal(self, sphere_level_set):
        normal = sphere_level_set.probe_normal_direction([0.0, 0.0, 0.5])
        assert normal.shape == (3,)
        np.testing.assert_allclose(normal, [0.0, 0.0, 1.0], atol=0.1)

    def test_3d_kernel_gradient_points_inward(self, sphere_level_set):
        gradient = sphere_level_set.probe_kernel_gradient_integral([0.5, 0.0, 0.0])
        assert gradient[0] < 0.0

    def test_3d_outside_bounds(self, sphere_level_set):
        point = np.array([1.5, 1.5, 1.5])
        assert not sphere_level_set.probe_is_within_mesh_bound(point)
        assert sphere_level_set.probe_signed_distance(point) == sphere_level_set.far_outside_value
