"""
Pytest configuration and shared fixtures for the sph_levelset test suite.

Level sets are comparatively expensive to build, so the read-only ones are
session scoped; tests that run maintenance build their own.
"""

import pytest

import numpy as np

from sph_levelset.config import LevelSetConfig
from sph_levelset.geometry import Hyperrectangle, Hypersphere, LevelSet

# =============================================================================
# Test Configuration
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (slower, cross-component)")
    config.addinivalue_line("markers", "slow: Slow tests (may take >10 seconds)")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test paths."""
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)

        if "slow" in item.name or "3d" in item.name:
            item.add_marker(pytest.mark.slow)


# =============================================================================
# Geometry Fixtures
# =============================================================================


@pytest.fixture
def unit_circle():
    """Unit circle centred at the origin."""
    return Hypersphere(center=[0.0, 0.0], radius=1.0)


@pytest.fixture
def small_sphere():
    """Sphere of radius 0.5 centred at the origin."""
    return Hypersphere(center=[0.0, 0.0, 0.0], radius=0.5)


@pytest.fixture
def unit_square():
    """Square [-0.5, 0.5]^2."""
    return Hyperrectangle(np.array([[-0.5, 0.5], [-0.5, 0.5]]))


# =============================================================================
# Level Set Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def circle_level_set():
    """Unit circle at spacing 0.02 with a 4-sample band (read-only)."""
    circle = Hypersphere(center=[0.0, 0.0], radius=1.0)
    config = LevelSetConfig(data_spacing=0.02, band_half_width=4)
    return LevelSet(circle.get_bounding_box(), circle, config)


@pytest.fixture(scope="session")
def coarse_circle_level_set():
    """Unit circle at spacing 0.05 (read-only)."""
    circle = Hypersphere(center=[0.0, 0.0], radius=1.0)
    return LevelSet(circle.get_bounding_box(), circle, LevelSetConfig(data_spacing=0.05))


@pytest.fixture
def circle_ring_points():
    """Points on circles of radius 0.95, 1.0 and 1.05."""
    angles = np.linspace(0.0, 2.0 * np.pi, 37)[:-1]
    rings = [r * np.column_stack([np.cos(angles), np.sin(angles)]) for r in (0.95, 1.0, 1.05)]
    return np.vstack(rings)
