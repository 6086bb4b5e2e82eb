"""
Shared fixtures for the natural-neighbor tests.
"""

import numpy as np
import pytest
from scipy.spatial import Delaunay

from natural_neighbor import Interpolator

UNIT_SQUARE = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]


@pytest.fixture
def unit_square():
    """Interpolator over the corners of the unit square."""
    return Interpolator(UNIT_SQUARE)


@pytest.fixture
def random_sites():
    """60 reproducible sites in the unit square."""
    return np.random.default_rng(0).random((60, 2))


@pytest.fixture
def random_interpolator(random_sites):
    return Interpolator(random_sites)


@pytest.fixture
def interior_queries(random_sites):
    """Random query points strictly inside the convex hull of ``random_sites``."""
    queries = np.random.default_rng(1).random((200, 2))
    inside = Delaunay(random_sites).find_simplex(queries) >= 0
    return queries[inside]


@pytest.fixture
def grid_sites():
    """Sites on a regular 20 x 20 grid with unit spacing."""
    x, y = np.meshgrid(np.arange(20.0), np.arange(20.0))
    return np.column_stack([x.ravel(), y.ravel()])


@pytest.fixture
def cocircular_sites():
    """16 sites on the unit circle plus one at its center."""
    angles = np.linspace(0.0, 2.0 * np.pi, 16, endpoint=False)
    ring = np.column_stack([np.cos(angles), np.sin(angles)])
    return np.vstack([ring, [[0.0, 0.0]]])
