"""
Unit tests for implicit geometry sources.

Run with: python -m pytest tests/unit/test_geometry/test_implicit_domains.py -v
"""

import pytest

import numpy as np

from sph_levelset.geometry.implicit import (
    ComplementDomain,
    DifferenceDomain,
    GeometrySource,
    Hyperrectangle,
    Hypersphere,
    IntersectionDomain,
    UnionDomain,
)

pytestmark = pytest.mark.unit


class TestHypersphere:
    """Test hypersphere domain."""

    def test_signed_distance_center_and_outside(self, unit_circle):
        assert unit_circle.signed_distance(np.array([0.0, 0.0])) == pytest.approx(-1.0)
        assert unit_circle.signed_distance(np.array([2.0, 0.0])) == pytest.approx(1.0)

    def test_single_point_returns_float(self, unit_circle):
        assert isinstance(unit_circle.signed_distance([0.5, 0.0]), float)

    def test_batch_returns_array(self, unit_circle):
        points = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 3.0]])
        np.testing.assert_allclose(unit_circle.signed_distance(points), [-1.0, 0.0, 2.0])

    def test_contains(self, unit_circle):
        assert unit_circle.contains(np.array([0.2, 0.2]))
        assert not unit_circle.contains(np.array([1.2, 0.0]))

    def test_bounding_box(self, small_sphere):
        np.testing.assert_allclose(small_sphere.get_bounding_box(), [[-0.5, 0.5]] * 3)

    def test_volume(self, unit_circle):
        assert unit_circle.compute_volume() == pytest.approx(np.pi)

    def test_invalid_radius(self):
        with pytest.raises(ValueError, match="Radius must be positive"):
            Hypersphere(center=[0.0, 0.0], radius=0.0)

    def test_dimension_mismatch(self, unit_circle):
        with pytest.raises(ValueError, match="does not match"):
            unit_circle.signed_distance(np.array([0.0, 0.0, 0.0]))

    def test_boundary_normal(self, unit_circle):
        normal = unit_circle.get_boundary_normal(np.array([0.0, 1.0]))
        np.testing.assert_allclose(normal, [0.0, 1.0], atol=1e-6)

    def test_satisfies_geometry_source(self, unit_circle):
        assert isinstance(unit_circle, GeometrySource)


class TestHyperrectangle:
    """Test hyperrectangle domain."""

    def test_interior_distance(self, unit_square):
        assert unit_square.signed_distance(np.array([0.0, 0.0])) == pytest.approx(-0.5)
        assert unit_square.signed_distance(np.array([0.4, 0.0])) == pytest.approx(-0.1)

    def test_exterior_face_and_corner(self, unit_square):
        assert unit_square.signed_distance(np.array([1.0, 0.0])) == pytest.approx(0.5)
        assert unit_square.signed_distance(np.array([1.5, 1.5])) == pytest.approx(np.sqrt(2.0))

    def test_invalid_bounds(self):
        with pytest.raises(ValueError, match="min < max"):
            Hyperrectangle(np.array([[1.0, 0.0], [0.0, 1.0]]))


class TestCSG:
    """Test constructive solid geometry."""

    def test_union(self):
        union = UnionDomain([Hypersphere([0.0, 0.0], 1.0), Hypersphere([1.5, 0.0], 1.0)])
        assert union.contains(np.array([0.0, 0.0]))
        assert union.contains(np.array([1.5, 0.0]))
        assert not union.contains(np.array([0.0, 2.0]))
        np.testing.assert_allclose(union.get_bounding_box(), [[-1.0, 2.5], [-1.0, 1.0]])

    def test_intersection(self):
        lens = IntersectionDomain([Hypersphere([0.0, 0.0], 1.0), Hypersphere([1.0, 0.0], 1.0)])
        assert lens.contains(np.array([0.5, 0.0]))
        assert not lens.contains(np.array([-0.5, 0.0]))

    def test_difference(self):
        plate = Hyperrectangle(np.array([[-1.0, 1.0], [-1.0, 1.0]]))
        hole = Hypersphere([0.0, 0.0], 0.5)
        solid = DifferenceDomain(plate, hole)

        assert not solid.contains(np.array([0.0, 0.0]))
        assert solid.contains(np.array([0.75, 0.0]))
        assert solid.signed_distance(np.array([0.6, 0.0])) == pytest.approx(-0.1)
        np.testing.assert_allclose(solid.get_bounding_box(), plate.get_bounding_box())

    def test_complement_requires_bounds(self):
        complement = ComplementDomain(Hypersphere([0.0, 0.0], 1.0))
        with pytest.raises(ValueError, match="unbounded"):
            complement.get_bounding_box()

        complement.set_bounding_box(np.array([[-2.0, 2.0], [-2.0, 2.0]]))
        assert complement.get_bounding_box().shape == (2, 2)
        assert complement.contains(np.array([1.5, 0.0]))

    def test_mixed_dimensions_rejected(self):
        with pytest.raises(ValueError, match="same dimension"):
            UnionDomain([Hypersphere([0.0, 0.0], 1.0), Hypersphere([0.0, 0.0, 0.0], 1.0)])
